"""
Display output - OpenCV window with status in the title bar.
"""

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

QUIT_KEYS = (ord("q"), 27)  # q, ESC


class DisplayOutput:
    """
    Renders frames to an OpenCV window.

    The output reports itself closed once the user presses q/ESC or
    closes the window.
    """

    def __init__(self, window_name: str):
        self.window_name = window_name
        self._closed = False
        self._shown = False
        cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
        logger.info(f"Display window opened: {window_name}")

    def render(self, frame: np.ndarray) -> None:
        if self._closed:
            return
        cv2.imshow(self.window_name, frame)
        self._shown = True
        if (cv2.waitKey(1) & 0xFF) in QUIT_KEYS:
            logger.info("Quit key pressed")
            self._closed = True

    def set_status(self, status: str) -> None:
        if not self._closed:
            cv2.setWindowTitle(self.window_name, f"{self.window_name} | {status}")

    def is_live(self) -> bool:
        if self._closed:
            return False
        if self._shown and cv2.getWindowProperty(
            self.window_name, cv2.WND_PROP_VISIBLE
        ) < 1:
            self._closed = True
        return not self._closed

    def close(self) -> None:
        self._closed = True
        try:
            cv2.destroyWindow(self.window_name)
        except cv2.error as e:
            logger.debug(f"Window already gone: {e}")
