"""
Collaborator Protocols - the narrow interfaces the control loop depends on.

Video I/O and the neural network are black boxes to the loop. Any
implementation satisfying these protocols (OpenCV, GStreamer, a test fake)
can be plugged in without changing core code.

Example:
    source: FrameSource = OpenCVFrameSource("video.mp4")
    frame = source.capture(timeout_ms=1000)
    if frame is None and not source.is_live():
        ...  # end of stream
"""

from typing import Protocol, runtime_checkable

import numpy as np

from .detection import ROI, Detection


@runtime_checkable
class FrameSource(Protocol):
    """Supplies BGR frames on demand."""

    @property
    def frame_width(self) -> int: ...

    @property
    def frame_height(self) -> int: ...

    def capture(self, timeout_ms: int) -> np.ndarray | None:
        """
        Capture the next frame.

        Args:
            timeout_ms: Maximum time to wait for a frame

        Returns:
            Frame, or None on timeout / failed read
        """
        ...

    def is_live(self) -> bool:
        """False once the stream has ended or the device is gone."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class Detector(Protocol):
    """Runs an object-detection model over a frame."""

    @property
    def device(self) -> str:
        """Inference backend, e.g. 'cuda' or 'cpu'."""
        ...

    @property
    def precision(self) -> str:
        """Inference precision label, e.g. 'FP16'."""
        ...

    @property
    def network_fps(self) -> float:
        """Throughput of the most recent forward pass."""
        ...

    def detect(self, frame: np.ndarray) -> list[Detection]:
        """
        Detect objects in a frame.

        Returns:
            Detections in model output order (empty list if none)
        """
        ...

    def class_label(self, class_id: int) -> str: ...

    def close(self) -> None: ...


@runtime_checkable
class FrameOutput(Protocol):
    """Consumes full frames for display or recording."""

    def render(self, frame: np.ndarray) -> None: ...

    def set_status(self, status: str) -> None: ...

    def is_live(self) -> bool:
        """False once the sink has been closed (e.g. window closed by user)."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class CropOutput(Protocol):
    """Consumes cropped regions of interest."""

    def render(self, frame: np.ndarray) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class CropExtractor(Protocol):
    """Copies ROI pixels from a frame into a fixed-size buffer."""

    def crop(self, frame: np.ndarray, roi: ROI) -> np.ndarray: ...

    def close(self) -> None: ...
