"""
Control Loop - capture, detect, decide, render.

One thread drives every stage of every frame. Capture is the only
suspension point with a deadline; the shutdown event is polled once
per iteration, so in-flight capture or detection is never interrupted.
A failing detect or output step is logged and counted, and only that
frame's remaining work for the step is skipped.

States:
    RUNNING  -> normal per-frame cycle
    DRAINING -> end of stream, output closed, interrupt or error seen;
                the current iteration finishes and resources are released
    STOPPED  -> terminal, everything released
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from threading import Event

import numpy as np

from ..models import (
    CropExtractor,
    CropOutput,
    Detector,
    FrameOutput,
    FrameSource,
    PolicyDecision,
)
from ..utils.constants import (
    DEFAULT_CAPTURE_TIMEOUT_MS,
    FPS_REPORT_INTERVAL,
    FPS_WINDOW_SIZE,
)
from .overlay import draw_overlay
from .policy import DetectionPolicy

logger = logging.getLogger(__name__)

# Stop reasons
STOP_END_OF_STREAM = "end_of_stream"
STOP_OUTPUT_CLOSED = "output_closed"
STOP_INTERRUPTED = "interrupted"
STOP_ERROR = "error"


class LoopState(Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


@dataclass
class LoopStats:
    """Counters reported in periodic and final status logs."""

    frames: int = 0
    detections: int = 0
    hits: int = 0
    crops: int = 0
    paced: int = 0
    capture_failures: int = 0
    detect_failures: int = 0
    output_failures: int = 0
    start_time: float = field(default_factory=time.time)
    fps_list: list[float] = field(default_factory=list)

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    @property
    def recent_fps(self) -> float:
        """Average loop FPS over the last FPS_WINDOW_SIZE frames."""
        window = self.fps_list[-FPS_WINDOW_SIZE:]
        return sum(window) / len(window) if window else 0.0


class ControlLoop:
    """
    Per-frame orchestrator for source, detector, policy and outputs.

    The loop owns every collaborator passed to it and closes all of them
    when it stops, whatever the exit path.
    """

    def __init__(
        self,
        source: FrameSource,
        detector: Detector,
        policy: DetectionPolicy,
        extractor: CropExtractor,
        frame_output: FrameOutput | None = None,
        crop_output: CropOutput | None = None,
        overlay_flags: frozenset[str] = frozenset(),
        capture_timeout_ms: int = DEFAULT_CAPTURE_TIMEOUT_MS,
        status_interval: int = FPS_REPORT_INTERVAL,
    ):
        self.source = source
        self.detector = detector
        self.policy = policy
        self.extractor = extractor
        self.frame_output = frame_output
        self.crop_output = crop_output
        self.overlay_flags = overlay_flags
        self.capture_timeout_ms = capture_timeout_ms
        self.status_interval = status_interval

        self.state = LoopState.RUNNING
        self.stop_reason: str | None = None
        self.frame_count = 0
        self.stats = LoopStats()
        self._undersized_warned = False

    def run(self, shutdown_event: Event | None = None) -> LoopStats:
        """
        Run until the stream ends, the output closes, or shutdown is requested.

        Args:
            shutdown_event: Cancellation token checked after each iteration

        Returns:
            Final loop statistics

        Raises:
            Exception: Failures outside the per-frame detect and output
                steps, re-raised after resources have been released
        """
        self.state = LoopState.RUNNING
        self.stats = LoopStats()
        logger.info("Processing loop started")

        try:
            while self.state is LoopState.RUNNING:
                self._iterate()

                if (
                    self.state is LoopState.RUNNING
                    and shutdown_event is not None
                    and shutdown_event.is_set()
                ):
                    logger.info("Shutdown signal received")
                    self._drain(STOP_INTERRUPTED)

        except KeyboardInterrupt:
            logger.info("Processing stopped by user")
            self._drain(STOP_INTERRUPTED)
        except Exception as e:
            logger.error(f"Fatal error in processing loop: {e}", exc_info=True)
            self._drain(STOP_ERROR)
            raise
        finally:
            logger.info("Shutting down...")
            self._release_resources()
            self.state = LoopState.STOPPED
            self._log_final_stats()

        return self.stats

    def _drain(self, reason: str) -> None:
        if self.state is LoopState.RUNNING:
            self.stop_reason = reason
            self.state = LoopState.DRAINING
            logger.info(f"Draining: {reason}")

    def _iterate(self) -> None:
        """Process one frame (or skip on a capture timeout)."""
        iteration_start = time.perf_counter()

        frame = self.source.capture(self.capture_timeout_ms)
        if frame is None:
            if not self.source.is_live():
                logger.info("End of stream")
                self._drain(STOP_END_OF_STREAM)
                return
            self.stats.capture_failures += 1
            logger.warning("Failed to capture video frame")
            return

        self.frame_count += 1
        self.stats.frames = self.frame_count
        frame_height, frame_width = frame.shape[:2]

        detections = self._detect(frame)

        decision = None
        if detections is not None and self._frame_fits_crop(frame_width, frame_height):
            decision = self.policy.decide(
                detections, self.frame_count, frame_width, frame_height
            )
        self.stats.hits = self.policy.hit_count
        self.stats.paced = self.policy.paced_count

        if decision is not None:
            self.stats.crops += 1
            if self.crop_output is not None:
                self._deliver_crop(frame, decision)

        if self.frame_output is not None:
            self._render_frame(frame, detections or [])

        elapsed = time.perf_counter() - iteration_start
        self.stats.fps_list.append(1.0 / elapsed if elapsed > 0 else 0.0)
        logger.debug(
            f"Frame {self.frame_count}: {elapsed * 1000:.1f}ms total, "
            f"network {self.detector.network_fps:.0f} FPS"
        )

        if self.status_interval and self.frame_count % self.status_interval == 0:
            self._log_status()

    def _detect(self, frame: np.ndarray) -> list | None:
        """Run the detector; None means detection failed for this frame."""
        try:
            detections = list(self.detector.detect(frame) or [])
        except Exception as e:
            self.stats.detect_failures += 1
            logger.error(f"Detection failed on frame {self.frame_count}: {e}")
            return None

        self.stats.detections += len(detections)
        if detections:
            logger.debug(f"{len(detections)} objects detected")
        return detections

    def _deliver_crop(self, frame: np.ndarray, decision: PolicyDecision) -> None:
        try:
            self.crop_output.render(self.extractor.crop(frame, decision.roi))
        except Exception as e:
            self.stats.output_failures += 1
            logger.error(f"Crop output failed on frame {self.frame_count}: {e}")

    def _render_frame(self, frame: np.ndarray, detections: list) -> None:
        try:
            self.frame_output.render(draw_overlay(frame, detections, self.overlay_flags))
            self.frame_output.set_status(
                f"{self.detector.device} | {self.detector.precision} | "
                f"Network {self.detector.network_fps:.0f} FPS | Crops {self.stats.crops}"
            )
        except Exception as e:
            self.stats.output_failures += 1
            logger.error(f"Frame output failed on frame {self.frame_count}: {e}")

        if not self.frame_output.is_live():
            logger.info("Output closed by user")
            self._drain(STOP_OUTPUT_CLOSED)

    def _frame_fits_crop(self, frame_width: int, frame_height: int) -> bool:
        config = self.policy.config
        fits = frame_width >= config.crop_width and frame_height >= config.crop_height
        if not fits and not self._undersized_warned:
            logger.warning(
                f"Frame {frame_width}x{frame_height} is smaller than crop "
                f"{config.crop_width}x{config.crop_height} - crops disabled for such frames"
            )
            self._undersized_warned = True
        return fits

    def _release_resources(self) -> None:
        """Close every collaborator, continuing past individual failures."""
        resources = [
            ("frame source", self.source),
            ("frame output", self.frame_output),
            ("crop output", self.crop_output),
            ("detector", self.detector),
            ("crop buffer", self.extractor),
        ]
        for name, resource in resources:
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as e:
                logger.warning(f"Error releasing {name}: {e}")

    def _log_status(self) -> None:
        """Log periodic status."""
        logger.info(
            f"[{self.stats.elapsed / 60:.1f}min] Frame {self.frame_count} | "
            f"FPS: {self.stats.recent_fps:.1f} | Hits: {self.stats.hits} | "
            f"Crops: {self.stats.crops}"
        )

    def _log_final_stats(self) -> None:
        """Log final statistics."""
        stats = self.stats
        avg_fps = sum(stats.fps_list) / len(stats.fps_list) if stats.fps_list else 0

        logger.info("Shutdown complete")
        logger.info(f"Stop reason: {self.stop_reason}")
        logger.info(f"Runtime: {stats.elapsed / 60:.1f} minutes")
        logger.info(f"Frames: {stats.frames}")
        logger.info(f"Avg FPS: {avg_fps:.1f}")
        logger.info(
            f"Detections: {stats.detections} | Hits: {stats.hits} | "
            f"Crops: {stats.crops} | Paced: {stats.paced}"
        )
        if stats.capture_failures:
            logger.info(f"Capture failures: {stats.capture_failures}")
        if stats.detect_failures or stats.output_failures:
            logger.info(
                f"Detection failures: {stats.detect_failures} | "
                f"Output failures: {stats.output_failures}"
            )
