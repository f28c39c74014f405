"""
Emission pacer - frame-count rate limit for crop emissions.
"""

import logging

logger = logging.getLogger(__name__)


class EmissionPacer:
    """
    Allows at most one emission per `min_interval` frames.

    The initial last-emission index sits one interval before frame 0,
    so the very first qualifying frame always passes.
    """

    def __init__(self, min_interval: int):
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self.min_interval = min_interval
        self.last_emission_frame = -(min_interval + 1)

    def should_emit(self, frame_index: int) -> bool:
        """True iff more than min_interval frames passed since the last emission."""
        return frame_index - self.last_emission_frame > self.min_interval

    def record_emission(self, frame_index: int) -> None:
        """Mark frame_index as the latest emission."""
        if frame_index < self.last_emission_frame:
            raise ValueError(
                f"Emission at frame {frame_index} precedes last emission "
                f"at frame {self.last_emission_frame}"
            )
        self.last_emission_frame = frame_index
        logger.debug(f"Emission recorded at frame {frame_index}")

    def frames_until_ready(self, frame_index: int) -> int:
        """Frames left before should_emit() turns true (0 if ready)."""
        return max(0, self.last_emission_frame + self.min_interval + 1 - frame_index)
