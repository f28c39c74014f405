"""
Frame and crop outputs.

URI forms:
  display://[name]       - OpenCV window
  path/to/file.mp4|.avi  - video file
  path/to/dir            - image sequence (one JPEG per frame)
"""

import logging

from ..utils.constants import (
    DEFAULT_OUTPUT_FPS,
    DISPLAY_URI_SCHEME,
    VIDEO_FILE_EXTENSIONS,
)
from .display import DisplayOutput
from .images import ImageSequenceOutput
from .video import VideoFileOutput

logger = logging.getLogger(__name__)


def create_output(
    uri: str | None,
    window_name: str,
    prefix: str = "frame",
    fps: float = DEFAULT_OUTPUT_FPS,
):
    """
    Create an output from a URI.

    Creation failures are logged and yield None, so the caller carries on
    without that output.

    Args:
        uri: Output URI (None means no output)
        window_name: Window title for display:// outputs without a name
        prefix: Filename prefix for image sequences
        fps: Frame rate for video files

    Returns:
        Output instance, or None
    """
    if not uri:
        return None

    try:
        if uri.startswith(DISPLAY_URI_SCHEME):
            name = uri[len(DISPLAY_URI_SCHEME) :] or window_name
            return DisplayOutput(name)
        if uri.lower().endswith(VIDEO_FILE_EXTENSIONS):
            return VideoFileOutput(uri, fps=fps)
        return ImageSequenceOutput(uri, prefix=prefix)
    except Exception as e:
        logger.error(f"Failed to create output stream '{uri}': {e}")
        return None


__all__ = [
    "DisplayOutput",
    "ImageSequenceOutput",
    "VideoFileOutput",
    "create_output",
]
