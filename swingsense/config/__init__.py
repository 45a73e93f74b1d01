from .thresholds import (
    AngleRange,
    ThresholdConfig,
    get_thresholds,
    THRESHOLDS,
)
from .settings import Settings, get_settings, settings

__all__ = [
    "AngleRange",
    "ThresholdConfig",
    "get_thresholds",
    "THRESHOLDS",
    "Settings", "get_settings", "settings"
]
