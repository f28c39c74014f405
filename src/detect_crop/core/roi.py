"""
ROI selection - map a detection to a fixed-size crop clamped to the frame.
"""

from ..models import ROI, Detection


def select_roi(
    detection: Detection,
    frame_width: int,
    frame_height: int,
    crop_width: int,
    crop_height: int,
) -> ROI:
    """
    Center a crop_width x crop_height window on the detection.

    Each axis is clamped independently so the window never leaves the
    frame. Only the position moves, the size is always exactly the crop
    size.

    Args:
        detection: Detection to center on
        frame_width: Frame width in pixels
        frame_height: Frame height in pixels
        crop_width: Crop width in pixels
        crop_height: Crop height in pixels

    Returns:
        ROI fully inside [0, frame_width) x [0, frame_height)

    Raises:
        ValueError: If the frame is smaller than the crop in either axis
    """
    if frame_width < crop_width or frame_height < crop_height:
        raise ValueError(
            f"Frame {frame_width}x{frame_height} is smaller than "
            f"crop {crop_width}x{crop_height}"
        )

    center_x, center_y = detection.center
    x = _clamp_axis(int(center_x), crop_width, frame_width)
    y = _clamp_axis(int(center_y), crop_height, frame_height)

    return ROI(x=x, y=y, width=crop_width, height=crop_height)


def _clamp_axis(center: int, extent: int, frame_extent: int) -> int:
    """Return the window start for one axis after clamping its center."""
    half = extent // 2
    if center - half < 0:
        center = half
    if center - half + extent > frame_extent:
        center = frame_extent - extent + half
    return center - half
