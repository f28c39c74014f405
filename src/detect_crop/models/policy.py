"""
Policy configuration model.

Built once at startup from the validated config dictionary and never
mutated while the loop runs.
"""

from dataclasses import dataclass

from ..utils.constants import (
    DEFAULT_CROP_HEIGHT,
    DEFAULT_CROP_WIDTH,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_PACING_INTERVAL,
    DEFAULT_TARGET_CLASS,
)


@dataclass(frozen=True)
class PolicyConfig:
    """
    Detection policy parameters.

    Attributes:
        target_class: Substring the detection label must contain
        min_confidence: Detections at or below this confidence are rejected
        crop_width: Width of the emitted crop in pixels
        crop_height: Height of the emitted crop in pixels
        min_pacing_interval: Frames that must pass between crop emissions
    """

    target_class: str = DEFAULT_TARGET_CLASS
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    crop_width: int = DEFAULT_CROP_WIDTH
    crop_height: int = DEFAULT_CROP_HEIGHT
    min_pacing_interval: int = DEFAULT_PACING_INTERVAL

    def __post_init__(self):
        if self.crop_width <= 0 or self.crop_height <= 0:
            raise ValueError(
                f"Crop size must be positive: {self.crop_width}x{self.crop_height}"
            )
        if self.min_pacing_interval < 0:
            raise ValueError(
                f"Pacing interval must be >= 0: {self.min_pacing_interval}"
            )

    @property
    def crop_size(self) -> tuple[int, int]:
        """(width, height) of the crop."""
        return (self.crop_width, self.crop_height)

    @classmethod
    def from_config(cls, config: dict) -> "PolicyConfig":
        """Create policy from the full configuration dictionary."""
        policy = config.get("policy", {})
        crop = policy.get("crop", {})

        return cls(
            target_class=policy.get("target_class", DEFAULT_TARGET_CLASS),
            min_confidence=policy.get("min_confidence", DEFAULT_MIN_CONFIDENCE),
            crop_width=crop.get("width", DEFAULT_CROP_WIDTH),
            crop_height=crop.get("height", DEFAULT_CROP_HEIGHT),
            min_pacing_interval=policy.get(
                "min_pacing_interval", DEFAULT_PACING_INTERVAL
            ),
        )
