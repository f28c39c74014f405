"""
detect-crop CLI
Main entry point: locate objects in a video stream and save crops of the
target class.

  input_URI     resource URI of the input stream
  output_URI    resource URI of the full-frame output (display://, video, dir)
  crop_URI      resource URI of the crop output (video or image dir)
"""

import argparse
import logging
import os
import signal
import sys
from threading import Event

from .config import (
    ConfigValidationError,
    apply_overrides,
    load_config,
    print_validation_result,
    validate_config_full,
)
from .core import ControlLoop, DetectionPolicy, NumpyCropExtractor, parse_overlay_flags
from .models import PolicyConfig
from .outputs import create_output
from .utils.constants import (
    DEFAULT_CROP_WINDOW_NAME,
    DEFAULT_WINDOW_NAME,
    DISPLAY_URI_SCHEME,
)

logger = logging.getLogger(__name__)


class StartupError(Exception):
    """Raised when the source or detector cannot be created."""


def _install_signal_handlers(shutdown_event: Event) -> None:
    """
    Set shutdown_event on SIGINT/SIGTERM.

    The loop polls the event once per frame, so the current frame always
    completes before shutdown.
    """

    def _handle_shutdown_signal(signum, _frame):
        signal_name = "SIGTERM" if signum == signal.SIGTERM else "SIGINT"
        print(f"\nReceived {signal_name}, initiating graceful shutdown...")
        shutdown_event.set()

    signal.signal(signal.SIGTERM, _handle_shutdown_signal)
    signal.signal(signal.SIGINT, _handle_shutdown_signal)


def setup_logging(quiet: bool = False, verbose: bool = False) -> None:
    """
    Setup logging configuration.

    Args:
        quiet: If True, only show warnings and errors
        verbose: If True, show per-detection debug output
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    # Custom formatter with shorter module names
    class ShortNameFormatter(logging.Formatter):
        def format(self, record):
            record.name = record.name.replace("detect_crop.", "dc.")
            return super().format(record)

    handler = logging.StreamHandler()
    handler.setFormatter(
        ShortNameFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s", datefmt="%H:%M:%S"
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="detect-crop",
        description="Locate objects in a video stream and save crops of a target class",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  detect-crop video.mp4                              # Display with crops disabled
  detect-crop rtsp://cam/stream out.mp4 crops/       # Record and save crops
  detect-crop 0 display:// crops/ --target person    # Webcam, crop people
  detect-crop --validate                             # Check config validity

Environment Variables:
  VIDEO_INPUT  - Override input URI from config
  VIDEO_OUTPUT - Override output URI from config
  CROP_OUTPUT  - Override crop output URI from config
        """,
    )

    parser.add_argument("input_uri", nargs="?", help="Resource URI of input stream")
    parser.add_argument("output_uri", nargs="?", help="Resource URI of output stream")
    parser.add_argument("crop_uri", nargs="?", help="Resource URI of crop output")

    parser.add_argument("-c", "--config", help="Path to config file (default: config.yaml)")
    parser.add_argument("--network", help="Detection model file (e.g. yolo11n.pt)")
    parser.add_argument("--threshold", type=float, help="Detector confidence threshold")
    parser.add_argument("--device", choices=["auto", "cpu", "cuda"], help="Inference device")
    parser.add_argument("--target", help="Target class substring (default: dog)")
    parser.add_argument(
        "--min-confidence", type=float, help="Minimum confidence to crop (default: 0.70)"
    )
    parser.add_argument(
        "--pacing", type=int, help="Minimum frames between crops (default: 20)"
    )
    parser.add_argument(
        "--overlay", help='Overlay flags: "box,labels,conf" or "none" (default: none)'
    )
    parser.add_argument(
        "--headless", action="store_true", default=None, help="Run without a display"
    )

    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Quiet mode - only warnings and errors"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose mode - per-detection logs"
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and show derived settings",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    """Load config file + environment, then layer command-line values on top."""
    config = load_config(args.config)
    return apply_overrides(
        config,
        {
            "source.uri": args.input_uri,
            "output.uri": args.output_uri,
            "output.crop_uri": args.crop_uri,
            "output.headless": args.headless,
            "detection.model_file": args.network,
            "detection.threshold": args.threshold,
            "detection.device": args.device,
            "policy.target_class": args.target,
            "policy.min_confidence": args.min_confidence,
            "policy.min_pacing_interval": args.pacing,
            "overlay.flags": args.overlay,
        },
    )


def display_available() -> bool:
    """True when a window can be opened."""
    if sys.platform in ("win32", "darwin"):
        return True
    return bool(os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))


def resolve_output_uri(config: dict) -> str | None:
    """Fall back to a display window when no output is configured."""
    output = config["output"]
    if output["uri"]:
        return output["uri"]
    if output["headless"] or not display_available():
        return None
    return DISPLAY_URI_SCHEME


def create_source(config: dict):
    """Open the video source."""
    from .core.camera import OpenCVFrameSource

    source_cfg = config["source"]
    try:
        return OpenCVFrameSource(
            source_cfg["uri"],
            capture_timeout_ms=source_cfg["capture_timeout_ms"],
            max_reconnect_attempts=source_cfg["reconnect_attempts"],
            reconnect_delay=source_cfg["reconnect_delay"],
        )
    except Exception as e:
        raise StartupError(f"failed to create input stream: {e}") from e


def create_detector(config: dict):
    """Load the detection model."""
    from .core.detector import YoloDetector

    detection = config["detection"]
    try:
        return YoloDetector(
            model_file=detection["model_file"],
            threshold=detection["threshold"],
            device=detection["device"],
            half=detection["half"],
        )
    except Exception as e:
        raise StartupError(f"failed to load detection model: {e}") from e


def check_frame_size(source, policy: PolicyConfig) -> None:
    """Reject sources whose reported size cannot hold a crop."""
    width, height = source.frame_width, source.frame_height
    # Some network streams report 0x0 until the first frame arrives
    if width <= 0 or height <= 0:
        return
    if width < policy.crop_width or height < policy.crop_height:
        raise StartupError(
            f"input {width}x{height} is smaller than crop "
            f"{policy.crop_width}x{policy.crop_height}"
        )


def print_banner(config: dict, output_uri: str | None) -> None:
    """Print system startup banner."""
    policy = config["policy"]

    print("\n" + "=" * 70)
    print("DETECT-CROP")
    print("=" * 70)
    print(f"\nInput:  {config['source']['uri']}")
    print(f"Output: {output_uri or 'none'}")
    print(f"Crops:  {config['output']['crop_uri'] or 'none'}")
    print(f"\nModel: {config['detection']['model_file']}")
    print(
        f"Target: '{policy['target_class']}' | confidence > {policy['min_confidence']} | "
        f"crop {policy['crop']['width']}x{policy['crop']['height']} | "
        f"every >{policy['min_pacing_interval']} frames"
    )
    print("  Press Ctrl+C to stop")
    print("=" * 70)
    print()


def print_final_status(loop: ControlLoop) -> None:
    """Print stop reason and counters."""
    reasons = {
        "end_of_stream": "End of stream reached",
        "output_closed": "Output closed by user",
        "interrupted": "Shutdown signal received (SIGTERM/SIGINT)",
        "error": "Stopped on error",
    }
    stats = loop.stats

    print(f"\n{'=' * 70}")
    print(reasons.get(loop.stop_reason, f"Stopped ({loop.stop_reason})"))
    print(f"Frames: {stats.frames} | Hits: {stats.hits} | Crops: {stats.crops}")
    print("=" * 70)
    print("SHUTDOWN COMPLETE")
    print(f"{'=' * 70}\n")


def run(config: dict, shutdown_event: Event) -> ControlLoop:
    """
    Build collaborators and run the loop to completion.

    Raises:
        StartupError: If the source or detector cannot be created
    """
    policy_config = PolicyConfig.from_config(config)
    overlay_flags = parse_overlay_flags(config["overlay"]["flags"])

    source = create_source(config)
    try:
        check_frame_size(source, policy_config)
        detector = create_detector(config)
    except StartupError:
        source.close()
        raise

    output_uri = resolve_output_uri(config)
    print_banner(config, output_uri)

    frame_output = create_output(
        output_uri, DEFAULT_WINDOW_NAME, prefix="frame", fps=config["output"]["fps"]
    )
    crop_output = create_output(
        config["output"]["crop_uri"],
        DEFAULT_CROP_WINDOW_NAME,
        prefix="crop",
        fps=config["output"]["fps"],
    )

    loop = ControlLoop(
        source=source,
        detector=detector,
        policy=DetectionPolicy(policy_config),
        extractor=NumpyCropExtractor(policy_config.crop_width, policy_config.crop_height),
        frame_output=frame_output,
        crop_output=crop_output,
        overlay_flags=overlay_flags,
        capture_timeout_ms=config["source"]["capture_timeout_ms"],
        status_interval=config["runtime"]["status_interval"],
    )
    loop.run(shutdown_event)
    return loop


def main(argv: list[str] | None = None) -> int:
    """
    Main orchestrator function.

    Returns:
        Process exit code: 0 on normal termination, 1 on invalid config,
        startup failure, or a fatal loop error.
    """
    args = parse_args(argv)
    setup_logging(quiet=args.quiet or args.validate, verbose=args.verbose)

    try:
        config = build_config(args)
    except ConfigValidationError as e:
        logger.error(str(e))
        return 1

    result = validate_config_full(config)
    if args.validate:
        print_validation_result(result)
        return 0 if result.valid else 1
    if not result.valid:
        print_validation_result(result)
        return 1
    for warning in result.warnings:
        logger.warning(warning)

    shutdown_event = Event()
    _install_signal_handlers(shutdown_event)

    try:
        loop = run(result.derived["config"], shutdown_event)
    except StartupError as e:
        logger.error(f"detect-crop: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1

    print_final_status(loop)
    return 0


if __name__ == "__main__":
    sys.exit(main())
