"""
Video file output - cv2.VideoWriter, opened lazily on the first frame.

A writer that cannot be opened disables the output; later frames are dropped.
"""

import logging
import os

import cv2
import numpy as np

from ..utils.constants import DEFAULT_OUTPUT_FPS

logger = logging.getLogger(__name__)

FOURCC_BY_EXTENSION = {
    ".mp4": "mp4v",
    ".avi": "XVID",
    ".mkv": "XVID",
}


class VideoFileOutput:
    """Writes every rendered frame to a video file."""

    def __init__(self, path: str, fps: float = DEFAULT_OUTPUT_FPS):
        self.path = path
        self.fps = fps
        self.status = ""
        self.frames_written = 0
        self.disabled = False
        self._writer: cv2.VideoWriter | None = None

        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)

    def _open(self, frame: np.ndarray) -> None:
        height, width = frame.shape[:2]
        ext = os.path.splitext(self.path)[1].lower()
        fourcc = cv2.VideoWriter_fourcc(*FOURCC_BY_EXTENSION.get(ext, "mp4v"))
        writer = cv2.VideoWriter(self.path, fourcc, self.fps, (width, height))
        if not writer.isOpened():
            raise RuntimeError(f"Cannot open video writer: {self.path}")
        self._writer = writer
        logger.info(f"Recording to {self.path} ({width}x{height} @ {self.fps} FPS)")

    def render(self, frame: np.ndarray) -> None:
        if self.disabled:
            return
        if self._writer is None:
            try:
                self._open(frame)
            except (RuntimeError, cv2.error) as e:
                logger.error(f"Video output disabled: {e}")
                self.disabled = True
                return
        self._writer.write(frame)
        self.frames_written += 1

    def set_status(self, status: str) -> None:
        self.status = status

    def is_live(self) -> bool:
        return True

    def close(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None
            logger.info(f"Saved {self.frames_written} frames to {self.path}")
