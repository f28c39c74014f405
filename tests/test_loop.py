"""
Tests for the control loop (state machine, crop delivery, resource release)
"""

import unittest
from threading import Event

import numpy as np

from detect_crop.core.crop import NumpyCropExtractor
from detect_crop.core.loop import (
    STOP_END_OF_STREAM,
    STOP_ERROR,
    STOP_INTERRUPTED,
    STOP_OUTPUT_CLOSED,
    ControlLoop,
    LoopState,
)
from detect_crop.core.policy import DetectionPolicy
from detect_crop.models import Detection, PolicyConfig

TIMEOUT = None  # Scripted capture timeout with a live source


def make_frame(width: int = 1920, height: int = 1080) -> np.ndarray:
    """Frame whose pixels encode their coordinates, so crops are checkable."""
    ys, xs = np.indices((height, width))
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[..., 0] = xs % 256
    frame[..., 1] = ys % 256
    frame[..., 2] = (xs // 256 + ys // 256) % 256
    return frame


def dog_at(cx: float, cy: float, confidence: float = 0.9) -> Detection:
    return Detection(16, "dog", confidence, cx - 50, cy - 40, cx + 50, cy + 40)


class FakeSource:
    """Plays back a script of frames; None entries are capture timeouts."""

    def __init__(self, script: list, size: tuple[int, int] = (1920, 1080)):
        self.script = list(script)
        self.frame_width, self.frame_height = size
        self.closed = False
        self.timeouts_requested: list[int] = []

    def capture(self, timeout_ms: int):
        self.timeouts_requested.append(timeout_ms)
        if not self.script:
            return None
        return self.script.pop(0)

    def is_live(self) -> bool:
        return bool(self.script)

    def close(self) -> None:
        self.closed = True


class BrokenSource(FakeSource):
    """Delivers its script, then fails on the next capture."""

    def capture(self, timeout_ms: int):
        if not self.script:
            raise RuntimeError("device unplugged")
        return super().capture(timeout_ms)

    def is_live(self) -> bool:
        return True


class FakeDetector:
    """Returns scripted detections per call, then empty lists."""

    device = "cpu"
    precision = "FP32"
    network_fps = 30.0

    def __init__(self, script: list | None = None, error_on_call: int | None = None):
        self.script = list(script or [])
        self.error_on_call = error_on_call
        self.calls = 0
        self.closed = False

    def detect(self, frame):
        self.calls += 1
        if self.error_on_call == self.calls:
            raise RuntimeError("inference failed")
        return self.script.pop(0) if self.script else []

    def class_label(self, class_id: int) -> str:
        return "dog"

    def close(self) -> None:
        self.closed = True


class RecordingOutput:
    """Keeps a copy of everything rendered."""

    def __init__(self, close_after: int | None = None):
        self.frames: list[np.ndarray] = []
        self.statuses: list[str] = []
        self.close_after = close_after
        self.closed = False

    def render(self, frame):
        self.frames.append(frame.copy())

    def set_status(self, status: str) -> None:
        self.statuses.append(status)

    def is_live(self) -> bool:
        return self.close_after is None or len(self.frames) < self.close_after

    def close(self) -> None:
        self.closed = True


class FailingClose(RecordingOutput):
    def close(self) -> None:
        raise OSError("device busy")


class FailingRender(RecordingOutput):
    """Raises on the first `fail_count` renders, then records."""

    def __init__(self, fail_count: int = 1):
        super().__init__()
        self.fail_count = fail_count
        self.attempts = 0

    def render(self, frame):
        self.attempts += 1
        if self.attempts <= self.fail_count:
            raise RuntimeError("Cannot open video writer: crops.mp4")
        super().render(frame)


def build_loop(source, detector, frame_output=None, crop_output=None, **policy_kwargs):
    policy_config = PolicyConfig(**policy_kwargs)
    return ControlLoop(
        source=source,
        detector=detector,
        policy=DetectionPolicy(policy_config),
        extractor=NumpyCropExtractor(policy_config.crop_width, policy_config.crop_height),
        frame_output=frame_output,
        crop_output=crop_output,
        status_interval=0,
    )


class TestLoopTermination(unittest.TestCase):
    """Test the RUNNING -> DRAINING -> STOPPED transitions."""

    def test_end_of_stream(self):
        """Test the loop stops normally when the source ends."""
        frame = make_frame()
        source = FakeSource([frame, frame, frame])
        loop = build_loop(source, FakeDetector())

        stats = loop.run()

        self.assertEqual(stats.frames, 3)
        self.assertEqual(loop.stop_reason, STOP_END_OF_STREAM)
        self.assertIs(loop.state, LoopState.STOPPED)

    def test_timeout_on_live_source_skips_iteration(self):
        """Test a capture timeout skips the frame without stopping."""
        frame = make_frame()
        source = FakeSource([TIMEOUT, frame, TIMEOUT, frame])
        detector = FakeDetector()
        loop = build_loop(source, detector)

        stats = loop.run()

        self.assertEqual(stats.frames, 2)
        self.assertEqual(stats.capture_failures, 2)
        self.assertEqual(detector.calls, 2)
        self.assertEqual(loop.frame_count, 2)

    def test_capture_uses_bounded_wait(self):
        """Test every capture is requested with the configured timeout."""
        source = FakeSource([make_frame()])
        build_loop(source, FakeDetector()).run()

        self.assertTrue(all(t == 1000 for t in source.timeouts_requested))

    def test_output_closed_stops_loop(self):
        """Test the loop stops once the frame output reports closed."""
        frame = make_frame()
        source = FakeSource([frame] * 5)
        output = RecordingOutput(close_after=2)
        loop = build_loop(source, FakeDetector(), frame_output=output)

        stats = loop.run()

        self.assertEqual(stats.frames, 2)
        self.assertEqual(loop.stop_reason, STOP_OUTPUT_CLOSED)
        self.assertTrue(output.closed)

    def test_shutdown_event_checked_after_iteration(self):
        """Test a set shutdown event stops the loop after one full iteration."""
        frame = make_frame()
        source = FakeSource([frame] * 5)
        output = RecordingOutput()
        shutdown = Event()
        shutdown.set()
        loop = build_loop(source, FakeDetector(), frame_output=output)

        stats = loop.run(shutdown)

        self.assertEqual(stats.frames, 1)
        self.assertEqual(len(output.frames), 1)
        self.assertEqual(loop.stop_reason, STOP_INTERRUPTED)
        self.assertTrue(source.closed)

    def test_source_error_releases_and_propagates(self):
        """Test an error outside the per-frame steps still releases everything."""
        source = BrokenSource([make_frame()])
        detector = FakeDetector()
        frame_output, crop_output = RecordingOutput(), RecordingOutput()
        loop = build_loop(source, detector, frame_output, crop_output)

        with self.assertRaises(RuntimeError):
            loop.run()

        self.assertEqual(loop.stop_reason, STOP_ERROR)
        self.assertIs(loop.state, LoopState.STOPPED)
        self.assertTrue(source.closed)
        self.assertTrue(detector.closed)
        self.assertTrue(frame_output.closed)
        self.assertTrue(crop_output.closed)
        self.assertIsNone(loop.extractor.buffer)

    def test_release_continues_past_close_failure(self):
        """Test one failing close() does not block the others."""
        source = FakeSource([make_frame()])
        detector = FakeDetector()
        crop_output = RecordingOutput()
        loop = build_loop(source, detector, FailingClose(), crop_output)

        loop.run()

        self.assertTrue(source.closed)
        self.assertTrue(detector.closed)
        self.assertTrue(crop_output.closed)


class TestLoopFaultTolerance(unittest.TestCase):
    """Test that one bad frame or output never ends the run."""

    def test_detector_error_skips_only_that_frame(self):
        """Test a failed detection is counted and the loop carries on."""
        frame = make_frame()
        source = FakeSource([frame] * 3)
        detector = FakeDetector(
            [[dog_at(500, 500)], [dog_at(500, 500)], [dog_at(500, 500)]],
            error_on_call=2,
        )
        frame_output, crop_output = RecordingOutput(), RecordingOutput()
        loop = build_loop(source, detector, frame_output, crop_output, min_pacing_interval=0)

        with self.assertLogs("detect_crop.core.loop", level="ERROR"):
            stats = loop.run()

        self.assertEqual(stats.frames, 3)
        self.assertEqual(stats.detect_failures, 1)
        self.assertEqual(loop.stop_reason, STOP_END_OF_STREAM)
        self.assertEqual(len(frame_output.frames), 3)
        # No decision on the failed frame
        self.assertEqual(stats.crops, 2)
        self.assertEqual(loop.policy.pacer.last_emission_frame, 3)

    def test_crop_output_error_does_not_block_frame_output(self):
        """Test a crop output that fails to open leaves the rest running."""
        frame = make_frame()
        source = FakeSource([frame] * 3)
        detector = FakeDetector([[dog_at(500, 500)] for _ in range(3)])
        frame_output, crop_output = RecordingOutput(), FailingRender()
        loop = build_loop(source, detector, frame_output, crop_output, min_pacing_interval=0)

        stats = loop.run()

        self.assertEqual(len(frame_output.frames), 3)
        self.assertEqual(len(crop_output.frames), 2)
        self.assertEqual(stats.output_failures, 1)
        self.assertEqual(loop.stop_reason, STOP_END_OF_STREAM)

    def test_frame_output_error_does_not_stop_loop(self):
        """Test a failing frame render is counted, later frames still render."""
        frame = make_frame()
        source = FakeSource([frame] * 3)
        frame_output = FailingRender(fail_count=2)
        loop = build_loop(source, FakeDetector(), frame_output=frame_output)

        stats = loop.run()

        self.assertEqual(stats.frames, 3)
        self.assertEqual(stats.output_failures, 2)
        self.assertEqual(len(frame_output.frames), 1)
        self.assertTrue(frame_output.closed)


class TestLoopCropping(unittest.TestCase):
    """Test crop decisions flowing to the crop output."""

    def test_crop_pixels_match_roi(self):
        """Test the crop is an exact copy of the clamped ROI."""
        frame = make_frame()
        source = FakeSource([frame])
        crop_output = RecordingOutput()
        loop = build_loop(source, FakeDetector([[dog_at(10, 10)]]), crop_output=crop_output)

        stats = loop.run()

        self.assertEqual(stats.crops, 1)
        self.assertEqual(len(crop_output.frames), 1)
        crop = crop_output.frames[0]
        self.assertEqual(crop.shape, (416, 416, 3))
        self.assertTrue(np.array_equal(crop, frame[0:416, 0:416]))

    def test_crops_are_paced(self):
        """Test a dog in every frame yields a crop every 21 frames."""
        frame = make_frame(640, 480)
        source = FakeSource([frame] * 45)
        detector = FakeDetector([[dog_at(320, 240)] for _ in range(45)])
        crop_output = RecordingOutput()
        loop = build_loop(source, detector, crop_output=crop_output)

        stats = loop.run()

        # Frames 1, 22, 43
        self.assertEqual(len(crop_output.frames), 3)
        self.assertEqual(stats.hits, 45)
        self.assertEqual(stats.paced, 42)
        self.assertEqual(loop.policy.pacer.last_emission_frame, 43)

    def test_full_frame_always_rendered(self):
        """Test every captured frame reaches the frame output with a status."""
        frame = make_frame()
        source = FakeSource([frame, frame])
        output = RecordingOutput()
        loop = build_loop(source, FakeDetector([[dog_at(500, 500)]]), frame_output=output)

        loop.run()

        self.assertEqual(len(output.frames), 2)
        self.assertTrue(np.array_equal(output.frames[0], frame))
        self.assertTrue(output.statuses[0].startswith("cpu | FP32"))
        self.assertIn("30 FPS", output.statuses[0])

    def test_no_crop_output_still_decides(self):
        """Test a missing crop output is skipped without error."""
        source = FakeSource([make_frame()])
        loop = build_loop(source, FakeDetector([[dog_at(500, 500)]]))

        stats = loop.run()

        self.assertEqual(stats.crops, 1)
        self.assertIsNone(loop.extractor.buffer)

    def test_undersized_frame_skips_policy(self):
        """Test frames smaller than the crop never produce crops."""
        small = make_frame(320, 240)
        source = FakeSource([small, small])
        crop_output = RecordingOutput()
        loop = build_loop(
            source, FakeDetector([[dog_at(100, 100)], [dog_at(100, 100)]]),
            crop_output=crop_output,
        )

        stats = loop.run()

        self.assertEqual(stats.frames, 2)
        self.assertEqual(stats.crops, 0)
        self.assertEqual(crop_output.frames, [])

    def test_non_target_detections_ignored(self):
        """Test other classes and low confidence never crop."""
        frame = make_frame()
        cat = Detection(15, "cat", 0.95, 100, 100, 200, 200)
        source = FakeSource([frame, frame])
        crop_output = RecordingOutput()
        loop = build_loop(
            source, FakeDetector([[cat], [dog_at(500, 500, confidence=0.65)]]),
            crop_output=crop_output,
        )

        stats = loop.run()

        self.assertEqual(stats.detections, 2)
        self.assertEqual(stats.crops, 0)


if __name__ == "__main__":
    unittest.main()
