"""
X-Ray - execution traces for multi-step decision pipelines
"""

__version__ = "0.1.0"
