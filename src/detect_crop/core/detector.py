"""
YOLO detector - ultralytics model behind the Detector protocol.
"""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import logging

import numpy as np
import torch
from ultralytics import YOLO

from ..models import Detection
from ..utils.constants import DEFAULT_DETECTOR_THRESHOLD, DEFAULT_MODEL_FILE

logger = logging.getLogger(__name__)


def resolve_device(device: str = "auto") -> str:
    """Map 'auto' to cuda when available, else cpu."""
    if device == "auto":
        return "cuda" if torch.cuda.is_available() else "cpu"
    if device == "cuda" and not torch.cuda.is_available():
        logger.warning("CUDA requested but not available - falling back to CPU")
        return "cpu"
    return device


class YoloDetector:
    """
    Runs a YOLO model and converts its boxes into Detection values.

    The detector threshold is a floor applied inside the model; the
    policy's minimum confidence is applied later and independently.
    """

    def __init__(
        self,
        model_file: str = DEFAULT_MODEL_FILE,
        threshold: float = DEFAULT_DETECTOR_THRESHOLD,
        device: str = "auto",
        half: bool = False,
    ):
        self.model_file = model_file
        self.threshold = threshold
        self.device = resolve_device(device)
        self.half = half and self.device == "cuda"

        self.model: YOLO | None = YOLO(model_file)
        self.model.to(self.device)
        self._names: dict[int, str] = dict(self.model.names)
        self._network_fps = 0.0

        logger.info(f"Model initialized: {model_file} ({len(self._names)} classes)")
        logger.info(f"Device: {self.device} | Precision: {self.precision}")
        if self.device == "cuda":
            logger.info(f"GPU: {torch.cuda.get_device_name(0)}")
        else:
            logger.warning("Running on CPU - performance will be slow")

    @property
    def precision(self) -> str:
        return "FP16" if self.half else "FP32"

    @property
    def network_fps(self) -> float:
        return self._network_fps

    def class_label(self, class_id: int) -> str:
        return self._names.get(class_id, f"class_{class_id}")

    def detect(self, frame: np.ndarray) -> list[Detection]:
        """Run inference on one BGR frame."""
        results = self.model.predict(
            source=frame,
            conf=self.threshold,
            device=self.device,
            half=self.half,
            verbose=False,
        )
        result = results[0]

        inference_ms = result.speed.get("inference") or 0
        self._network_fps = 1000 / inference_ms if inference_ms > 0 else 0.0
        logger.debug(
            "Timing: "
            + ", ".join(f"{k}={v:.1f}ms" for k, v in result.speed.items() if v is not None)
        )

        boxes = result.boxes
        if boxes is None or len(boxes) == 0:
            return []

        xyxy = boxes.xyxy.cpu().numpy()
        classes = boxes.cls.int().cpu().tolist()
        confs = boxes.conf.cpu().tolist()

        detections = []
        for class_id, box, conf in zip(classes, xyxy, confs):
            x1, y1, x2, y2 = (float(v) for v in box)
            detections.append(
                Detection(
                    class_id=class_id,
                    label=self.class_label(class_id),
                    confidence=float(conf),
                    left=x1,
                    top=y1,
                    right=x2,
                    bottom=y2,
                )
            )
        return detections

    def close(self) -> None:
        """Drop the model and free cached GPU memory."""
        self.model = None
        if self.device == "cuda":
            torch.cuda.empty_cache()
