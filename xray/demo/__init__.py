"""
Demo module - example producer used by POST /api/demo/run-competitor-selection
"""

from .competitor_selection import CompetitorSelectionError, CompetitorSelectionPipeline

__all__ = ["CompetitorSelectionPipeline", "CompetitorSelectionError"]
