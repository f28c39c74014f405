"""
Pydantic schemas for configuration validation.

Provides type-safe, declarative validation with clear error messages.
Every section has defaults, so an empty file (or no file at all) is a
valid configuration apart from the source URI.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.constants import (
    CAMERA_RECONNECT_DELAY,
    DEFAULT_CAPTURE_TIMEOUT_MS,
    DEFAULT_CROP_HEIGHT,
    DEFAULT_CROP_WIDTH,
    DEFAULT_DETECTOR_THRESHOLD,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MODEL_FILE,
    DEFAULT_OUTPUT_FPS,
    DEFAULT_OVERLAY,
    DEFAULT_PACING_INTERVAL,
    DEFAULT_TARGET_CLASS,
    FPS_REPORT_INTERVAL,
    MAX_CAMERA_RECONNECT_ATTEMPTS,
    OVERLAY_FLAGS,
)


class StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class SourceConfig(StrictModel):
    """Video source settings."""

    uri: str | None = Field(default=None, description="Input URI (file, device, URL)")
    capture_timeout_ms: int = Field(default=DEFAULT_CAPTURE_TIMEOUT_MS, gt=0)
    reconnect_attempts: int = Field(default=MAX_CAMERA_RECONNECT_ATTEMPTS, ge=0)
    reconnect_delay: float = Field(default=CAMERA_RECONNECT_DELAY, ge=0)


class DetectionConfig(StrictModel):
    """Detector settings."""

    model_file: str = Field(default=DEFAULT_MODEL_FILE, min_length=1)
    threshold: float = Field(
        default=DEFAULT_DETECTOR_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Detector-side confidence floor",
    )
    device: Literal["auto", "cpu", "cuda"] = "auto"
    half: bool = False


class CropConfig(StrictModel):
    """Crop window size."""

    width: int = Field(default=DEFAULT_CROP_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_CROP_HEIGHT, gt=0)


class PolicySettings(StrictModel):
    """Detection policy settings."""

    target_class: str = Field(default=DEFAULT_TARGET_CLASS, min_length=1)
    min_confidence: float = Field(default=DEFAULT_MIN_CONFIDENCE, ge=0.0, le=1.0)
    crop: CropConfig = Field(default_factory=CropConfig)
    min_pacing_interval: int = Field(
        default=DEFAULT_PACING_INTERVAL,
        ge=0,
        description="Frames that must pass between crop emissions",
    )


class OutputConfig(StrictModel):
    """Output settings."""

    uri: str | None = Field(default=None, description="Full-frame output URI")
    crop_uri: str | None = Field(default=None, description="Crop output URI")
    headless: bool = False
    fps: float = Field(default=DEFAULT_OUTPUT_FPS, gt=0)


class OverlayConfig(StrictModel):
    """Overlay drawn on the full-frame output (display only)."""

    flags: str = DEFAULT_OVERLAY

    @field_validator("flags")
    @classmethod
    def validate_flags(cls, v: str) -> str:
        flags = {f.strip().lower() for f in v.split(",") if f.strip()}
        unknown = flags - set(OVERLAY_FLAGS)
        if unknown:
            raise ValueError(
                f"Unknown overlay flag(s): {', '.join(sorted(unknown))} "
                f"(valid: {', '.join(OVERLAY_FLAGS)})"
            )
        return v


class RuntimeConfig(StrictModel):
    """Runtime settings."""

    status_interval: int = Field(
        default=FPS_REPORT_INTERVAL, ge=0, description="Frames between status logs"
    )


class Config(StrictModel):
    """Complete configuration schema."""

    source: SourceConfig = Field(default_factory=SourceConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    policy: PolicySettings = Field(default_factory=PolicySettings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    overlay: OverlayConfig = Field(default_factory=OverlayConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)


def validate_config_pydantic(config: dict) -> Config:
    """
    Validate configuration using Pydantic.

    Args:
        config: Raw configuration dictionary

    Returns:
        Validated Config object

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return Config(**config)
