"""
Camera / video source backed by OpenCV.

Accepts device indices ("0"), device paths ("/dev/video0"), local
video or image files, and network URLs (rtsp://, http://).
"""

import logging
import os
import time

import cv2
import numpy as np

from ..utils.constants import (
    CAMERA_RECONNECT_DELAY,
    DEFAULT_CAPTURE_TIMEOUT_MS,
    MAX_CAMERA_RECONNECT_ATTEMPTS,
    MAX_CONSECUTIVE_CAPTURE_FAILURES,
)

logger = logging.getLogger(__name__)


def parse_source_uri(uri: str) -> str | int:
    """
    Normalize a source URI into something cv2.VideoCapture accepts.

    "0" -> 0, "v4l2:///dev/video0" -> "/dev/video0", "file://a.mp4" -> "a.mp4".
    """
    uri = uri.strip()
    if uri.isdigit():
        return int(uri)
    for prefix in ("file://", "v4l2://"):
        if uri.startswith(prefix):
            return uri[len(prefix) :]
    return uri


def is_file_source(source: str | int) -> bool:
    """True for local files, which end for good when a read fails."""
    return isinstance(source, str) and "://" not in source and os.path.isfile(source)


def initialize_camera(
    source: str | int,
    timeout_ms: int = DEFAULT_CAPTURE_TIMEOUT_MS,
    max_attempts: int = MAX_CAMERA_RECONNECT_ATTEMPTS,
    reconnect_delay: float = CAMERA_RECONNECT_DELAY,
) -> cv2.VideoCapture:
    """
    Initialize camera with retry logic.

    Args:
        source: Device index, path, or URL
        timeout_ms: Open/read timeout hint for backends that honor it
        max_attempts: Retries after the first attempt
        reconnect_delay: Seconds between attempts

    Returns:
        Opened OpenCV VideoCapture object

    Raises:
        RuntimeError: If the source cannot be opened after retries
    """
    for attempt in range(max_attempts + 1):
        logger.info(f"Connecting to video source: {source} (attempt {attempt + 1})")
        cap = cv2.VideoCapture(source)

        if cap.isOpened():
            cap.set(cv2.CAP_PROP_READ_TIMEOUT_MSEC, timeout_ms)
            logger.info("Video source connected")
            return cap

        cap.release()
        if attempt < max_attempts:
            logger.warning(f"Failed to connect, retrying in {reconnect_delay}s...")
            time.sleep(reconnect_delay)

    logger.error(f"Failed to open video source after {max_attempts + 1} attempts")
    raise RuntimeError(f"Cannot open video source: {source}")


class OpenCVFrameSource:
    """
    FrameSource over cv2.VideoCapture.

    Files go dead on the first failed read (end of stream). Live sources
    tolerate MAX_CONSECUTIVE_CAPTURE_FAILURES failed reads, then try to
    reconnect once; if that fails the source goes dead.
    """

    def __init__(
        self,
        uri: str,
        capture_timeout_ms: int = DEFAULT_CAPTURE_TIMEOUT_MS,
        max_reconnect_attempts: int = MAX_CAMERA_RECONNECT_ATTEMPTS,
        reconnect_delay: float = CAMERA_RECONNECT_DELAY,
    ):
        self.uri = uri
        self.source = parse_source_uri(uri)
        self.is_file = is_file_source(self.source)
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self._timeout_ms = capture_timeout_ms
        self._cap: cv2.VideoCapture | None = initialize_camera(
            self.source, capture_timeout_ms, max_reconnect_attempts, reconnect_delay
        )
        self._live = True
        self._consecutive_failures = 0
        self._width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

        logger.info(
            f"Source: {uri} ({self._width}x{self._height}, "
            f"{'file' if self.is_file else 'live'})"
        )

    @property
    def frame_width(self) -> int:
        return self._width

    @property
    def frame_height(self) -> int:
        return self._height

    def capture(self, timeout_ms: int) -> np.ndarray | None:
        """Read the next frame, or None on timeout / failure / end of stream."""
        if not self._live or self._cap is None:
            return None

        if timeout_ms != self._timeout_ms:
            self._cap.set(cv2.CAP_PROP_READ_TIMEOUT_MSEC, timeout_ms)
            self._timeout_ms = timeout_ms

        ret, frame = self._cap.read()
        if ret and frame is not None:
            self._consecutive_failures = 0
            self._height, self._width = frame.shape[:2]
            return frame

        if self.is_file:
            logger.info(f"End of file: {self.uri}")
            self._live = False
            return None

        self._consecutive_failures += 1
        if self._consecutive_failures >= MAX_CONSECUTIVE_CAPTURE_FAILURES:
            self._reconnect()
        return None

    def _reconnect(self) -> None:
        logger.warning(
            f"{self._consecutive_failures} consecutive read failures - reconnecting"
        )
        self._cap.release()
        self._consecutive_failures = 0
        try:
            self._cap = initialize_camera(
                self.source,
                self._timeout_ms,
                self.max_reconnect_attempts,
                self.reconnect_delay,
            )
        except RuntimeError as e:
            logger.error(f"Video source lost: {e}")
            self._cap = None
            self._live = False

    def is_live(self) -> bool:
        return self._live

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._live = False
