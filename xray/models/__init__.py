"""
Models module - SQLAlchemy database models
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import models after Base is defined to avoid circular imports
from .execution import XRayExecution  # noqa: E402
from .step import XRayStep  # noqa: E402

__all__ = ["Base", "XRayExecution", "XRayStep"]
