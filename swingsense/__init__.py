"""
SwingSense motion engine: turns 2-D pose sequences into swing reports.
"""

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .exceptions import SwingSenseException, ValidationError, InvalidPoseSequence, AnalysisError
from .logging_config import setup_logging

__version__ = "1.0.0"

__all__ = list(_core_all) + [
    "SwingSenseException", "ValidationError", "InvalidPoseSequence", "AnalysisError",
    "setup_logging",
]
