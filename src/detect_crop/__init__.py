"""
detect-crop

Real-time video analytics loop: detect objects in a video stream with
YOLO and save fixed-size crops around the first confident detection of
a target class, rate-limited by frame count.

Package structure:
  core/     - Policy engine, ROI selection, pacing, control loop,
              OpenCV source and YOLO detector
  outputs/  - Display, video file, and image sequence outputs
  models/   - Value types and collaborator protocols
  config/   - Configuration loading and validation
  utils/    - Constants
"""

__version__ = "1.0.0"

from .config import (
    ConfigValidationError,
    ValidationResult,
    validate_config_full,
)
from .core import (
    ControlLoop,
    DetectionPolicy,
    EmissionPacer,
    evaluate_detections,
    select_roi,
)
from .models import ROI, Detection, PolicyConfig, PolicyDecision

__all__ = [
    # Config
    "ConfigValidationError",
    # Core
    "ControlLoop",
    "Detection",
    "DetectionPolicy",
    "EmissionPacer",
    "PolicyConfig",
    "PolicyDecision",
    "ROI",
    "ValidationResult",
    "evaluate_detections",
    "select_roi",
    "validate_config_full",
]
