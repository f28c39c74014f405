"""
Crop extraction into a single long-lived buffer.
"""

import logging

import numpy as np

from ..models import ROI

logger = logging.getLogger(__name__)


class NumpyCropExtractor:
    """
    Copies ROI pixels into one reusable buffer.

    The buffer is owned by this extractor for its lifetime. Each crop()
    overwrites it, so callers must finish rendering a crop before asking
    for the next one.
    """

    def __init__(self, crop_width: int, crop_height: int):
        self.crop_width = crop_width
        self.crop_height = crop_height
        self._buffer: np.ndarray | None = None

    @property
    def buffer(self) -> np.ndarray | None:
        return self._buffer

    def crop(self, frame: np.ndarray, roi: ROI) -> np.ndarray:
        """
        Copy the ROI region of frame into the crop buffer.

        Args:
            frame: Source frame (H, W) or (H, W, C)
            roi: Region to copy, must be crop-sized and inside the frame

        Returns:
            The crop buffer (same object on every call)

        Raises:
            ValueError: If the ROI is the wrong size or leaves the frame
        """
        if (roi.width, roi.height) != (self.crop_width, self.crop_height):
            raise ValueError(
                f"ROI {roi.width}x{roi.height} does not match crop size "
                f"{self.crop_width}x{self.crop_height}"
            )

        frame_height, frame_width = frame.shape[:2]
        if roi.x < 0 or roi.y < 0 or roi.right > frame_width or roi.bottom > frame_height:
            raise ValueError(
                f"ROI {roi.as_xyxy()} outside frame {frame_width}x{frame_height}"
            )

        self._ensure_buffer(frame)
        np.copyto(self._buffer, frame[roi.y : roi.bottom, roi.x : roi.right])
        return self._buffer

    def _ensure_buffer(self, frame: np.ndarray) -> None:
        shape = (self.crop_height, self.crop_width) + frame.shape[2:]
        if (
            self._buffer is None
            or self._buffer.shape != shape
            or self._buffer.dtype != frame.dtype
        ):
            logger.debug(f"Allocating crop buffer {shape} {frame.dtype}")
            self._buffer = np.empty(shape, dtype=frame.dtype)

    def close(self) -> None:
        """Release the crop buffer."""
        self._buffer = None
