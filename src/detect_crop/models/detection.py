"""
Detection data models - detections, crop regions, and policy decisions.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Detection:
    """
    A single detector output.

    Attributes:
        class_id: Model class ID
        label: Human-readable class label (resolved via the detector)
        confidence: Detection confidence, 0.0 to 1.0
        left, top, right, bottom: Bounding box in frame pixels
    """

    class_id: int
    label: str
    confidence: float
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> tuple[float, float]:
        """Bounding box center (x, y)."""
        return (self.left + self.width / 2, self.top + self.height / 2)

    def as_xyxy(self) -> tuple[int, int, int, int]:
        return (int(self.left), int(self.top), int(self.right), int(self.bottom))


@dataclass(frozen=True)
class ROI:
    """Fixed-size crop rectangle, always fully inside the frame."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def as_xyxy(self) -> tuple[int, int, int, int]:
        """Return (x1, y1, x2, y2) with exclusive x2/y2."""
        return (self.x, self.y, self.right, self.bottom)


@dataclass(frozen=True)
class PolicyDecision:
    """Emission decision for one frame: where to crop and which detection won."""

    roi: ROI
    detection: Detection
    frame_index: int
