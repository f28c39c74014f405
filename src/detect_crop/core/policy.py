"""
Detection Policy Engine - decide whether a frame's detections merit a crop.

Filters run in this order for each detection (model output order):
  1. confidence must exceed the policy minimum
  2. label must contain the target class substring
  3. bounding box must fit inside the crop size
The first detection passing all three is the frame's only candidate.
Pacing then applies to the frame as a whole: if the pacer refuses,
no later detection in the same frame is considered.
"""

import logging
from collections.abc import Sequence

from ..models import Detection, PolicyConfig, PolicyDecision
from .pacer import EmissionPacer
from .roi import select_roi

logger = logging.getLogger(__name__)


def qualifies(detection: Detection, config: PolicyConfig) -> bool:
    """Check a single detection against confidence, class, and size filters."""
    if detection.confidence <= config.min_confidence:
        return False
    if config.target_class not in detection.label:
        return False
    return (
        detection.width <= config.crop_width
        and detection.height <= config.crop_height
    )


def find_qualifying_detection(
    detections: Sequence[Detection], config: PolicyConfig
) -> Detection | None:
    """Return the first detection that passes all filters, in input order."""
    for n, det in enumerate(detections):
        logger.debug(
            f"detected obj {n} class #{det.class_id} ({det.label}) "
            f"confidence={det.confidence:.3f} "
            f"box=({det.left:.1f}, {det.top:.1f}, {det.right:.1f}, {det.bottom:.1f}) "
            f"w={det.width:.1f} h={det.height:.1f}"
        )
        if qualifies(det, config):
            logger.debug(f"hit detected: obj {n} ({det.label})")
            return det
    return None


def evaluate_detections(
    detections: Sequence[Detection],
    frame_index: int,
    frame_width: int,
    frame_height: int,
    config: PolicyConfig,
    pacer: EmissionPacer,
) -> PolicyDecision | None:
    """
    Compute the emission decision for one frame without touching pacer state.

    Args:
        detections: Detections for this frame (may be empty)
        frame_index: Current frame counter value
        frame_width: Frame width in pixels
        frame_height: Frame height in pixels
        config: Policy configuration
        pacer: Pacer consulted read-only

    Returns:
        PolicyDecision for the first qualifying detection, or None
    """
    hit = find_qualifying_detection(detections, config)
    if hit is None or not pacer.should_emit(frame_index):
        return None
    return _decision_for(hit, frame_index, frame_width, frame_height, config)


def _decision_for(
    detection: Detection,
    frame_index: int,
    frame_width: int,
    frame_height: int,
    config: PolicyConfig,
) -> PolicyDecision:
    roi = select_roi(
        detection, frame_width, frame_height, config.crop_width, config.crop_height
    )
    return PolicyDecision(roi=roi, detection=detection, frame_index=frame_index)


class DetectionPolicy:
    """
    Stateful policy engine: evaluates detections and records emissions.

    Owns the pacer so emission history cannot be updated by anyone else.
    """

    def __init__(self, config: PolicyConfig, pacer: EmissionPacer | None = None):
        self.config = config
        self.pacer = pacer or EmissionPacer(config.min_pacing_interval)
        self.hit_count = 0
        self.paced_count = 0
        self.emission_count = 0

    def decide(
        self,
        detections: Sequence[Detection],
        frame_index: int,
        frame_width: int,
        frame_height: int,
    ) -> PolicyDecision | None:
        """
        Decide whether to emit a crop for this frame.

        On a positive decision the emission is recorded in the pacer
        before returning.
        """
        hit = find_qualifying_detection(detections, self.config)
        if hit is None:
            return None

        self.hit_count += 1
        if not self.pacer.should_emit(frame_index):
            self.paced_count += 1
            logger.debug(
                f"Frame {frame_index}: hit paced out "
                f"({self.pacer.frames_until_ready(frame_index)} frames until ready)"
            )
            return None

        decision = _decision_for(
            hit, frame_index, frame_width, frame_height, self.config
        )
        self.pacer.record_emission(frame_index)
        self.emission_count += 1
        logger.info(
            f"Frame {frame_index}: emitting crop for '{hit.label}' "
            f"({hit.confidence:.2f}) at {decision.roi.as_xyxy()}"
        )
        return decision
