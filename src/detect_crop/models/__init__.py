"""
Consolidated data models for detect-crop.

This package contains the value types and collaborator protocols
shared by the core loop and the I/O implementations.
"""

from .detection import ROI, Detection, PolicyDecision
from .interfaces import (
    CropExtractor,
    CropOutput,
    Detector,
    FrameOutput,
    FrameSource,
)
from .policy import PolicyConfig

__all__ = [
    # Protocols
    "CropExtractor",
    "CropOutput",
    # Value types
    "Detection",
    "Detector",
    "FrameOutput",
    "FrameSource",
    "PolicyConfig",
    "PolicyDecision",
    "ROI",
]
