"""
Frame overlay - draw detections onto the rendered frame.

Display only: overlays are drawn on a copy after the crop is taken,
so they never appear in emitted crops and never affect policy.
"""

import cv2
import numpy as np

from ..models import Detection
from ..utils.constants import OVERLAY_FLAGS

BOX_COLOR = (0, 255, 0)
TEXT_COLOR = (255, 255, 255)


def parse_overlay_flags(flags: str | None) -> frozenset[str]:
    """
    Parse a comma-separated overlay flag string.

    Args:
        flags: e.g. "box,labels,conf" or "none"

    Returns:
        Set of active flags ("none" yields an empty set)

    Raises:
        ValueError: On an unknown flag
    """
    if not flags:
        return frozenset()

    parsed = {f.strip().lower() for f in flags.split(",") if f.strip()}
    unknown = parsed - set(OVERLAY_FLAGS)
    if unknown:
        raise ValueError(
            f"Unknown overlay flag(s): {', '.join(sorted(unknown))} "
            f"(valid: {', '.join(OVERLAY_FLAGS)})"
        )

    parsed.discard("none")
    return frozenset(parsed)


def draw_overlay(
    frame: np.ndarray, detections: list[Detection], flags: frozenset[str]
) -> np.ndarray:
    """
    Draw detections onto a copy of the frame.

    Args:
        frame: Frame to annotate (left untouched)
        detections: Detections for this frame
        flags: Active overlay flags from parse_overlay_flags()

    Returns:
        Annotated copy, or the original frame when there is nothing to draw
    """
    if not flags or not detections:
        return frame

    annotated = frame.copy()
    for det in detections:
        x1, y1, x2, y2 = det.as_xyxy()

        if "box" in flags:
            cv2.rectangle(annotated, (x1, y1), (x2, y2), BOX_COLOR, 2)

        text_parts = []
        if "labels" in flags:
            text_parts.append(det.label)
        if "conf" in flags:
            text_parts.append(f"{det.confidence * 100:.1f}%")

        if text_parts:
            cv2.putText(
                annotated,
                " ".join(text_parts),
                (x1 + 5, max(y1 - 5, 15)),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.6,
                TEXT_COLOR,
                2,
            )

    return annotated
