"""
Core processing components.

Policy engine, ROI selection, emission pacing, and the control loop.
Camera and model implementations live in camera.py and detector.py and
are imported directly by the CLI, so the core stays importable without
a model runtime.
"""

from .crop import NumpyCropExtractor
from .loop import ControlLoop, LoopState, LoopStats
from .overlay import draw_overlay, parse_overlay_flags
from .pacer import EmissionPacer
from .policy import DetectionPolicy, evaluate_detections, find_qualifying_detection
from .roi import select_roi

__all__ = [
    "ControlLoop",
    "DetectionPolicy",
    "EmissionPacer",
    "LoopState",
    "LoopStats",
    "NumpyCropExtractor",
    "draw_overlay",
    "evaluate_detections",
    "find_qualifying_detection",
    "parse_overlay_flags",
    "select_roi",
]
