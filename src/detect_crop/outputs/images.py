"""
Image sequence output - one JPEG per rendered frame.

Typical use is the crop output: each emitted region of interest lands
in its own timestamped file.
"""

import logging
import os
from datetime import datetime

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class ImageSequenceOutput:
    """Saves rendered frames as numbered, timestamped JPEGs in a directory."""

    def __init__(self, output_dir: str, prefix: str = "frame"):
        self.output_dir = output_dir
        self.prefix = prefix
        self.status = ""
        self.count = 0
        os.makedirs(output_dir, exist_ok=True)
        logger.info(f"Saving images to {output_dir}/")

    def render(self, frame: np.ndarray) -> None:
        self.count += 1
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = os.path.join(
            self.output_dir, f"{self.prefix}_{self.count:06d}_{timestamp}.jpg"
        )
        if cv2.imwrite(filename, frame):
            logger.debug(f"Saved {filename}")
        else:
            logger.warning(f"Failed to write image: {filename}")

    def set_status(self, status: str) -> None:
        self.status = status

    def is_live(self) -> bool:
        return True

    def close(self) -> None:
        logger.info(f"Saved {self.count} images to {self.output_dir}/")
