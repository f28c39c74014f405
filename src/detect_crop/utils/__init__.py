"""
Utility modules for constants.
"""

from .constants import (
    DEFAULT_CAPTURE_TIMEOUT_MS,
    ENV_CROP_OUTPUT,
    ENV_VIDEO_INPUT,
    ENV_VIDEO_OUTPUT,
    FPS_REPORT_INTERVAL,
)

__all__ = [
    "DEFAULT_CAPTURE_TIMEOUT_MS",
    # Environment overrides
    "ENV_CROP_OUTPUT",
    "ENV_VIDEO_INPUT",
    "ENV_VIDEO_OUTPUT",
    "FPS_REPORT_INTERVAL",
]
