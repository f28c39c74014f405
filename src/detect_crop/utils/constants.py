"""
Constants used throughout detect-crop
"""

# Detection policy defaults
DEFAULT_TARGET_CLASS = "dog"
DEFAULT_MIN_CONFIDENCE = 0.70
DEFAULT_CROP_WIDTH = 416
DEFAULT_CROP_HEIGHT = 416
DEFAULT_PACING_INTERVAL = 20  # Frames skipped at least between crop emissions

# Detector defaults
DEFAULT_MODEL_FILE = "yolo11n.pt"
DEFAULT_DETECTOR_THRESHOLD = 0.5  # Detector-side floor, separate from policy

# Capture
DEFAULT_CAPTURE_TIMEOUT_MS = 1000
MAX_CAMERA_RECONNECT_ATTEMPTS = 2
CAMERA_RECONNECT_DELAY = 2.0  # Seconds between reconnection attempts
MAX_CONSECUTIVE_CAPTURE_FAILURES = 30  # Live streams: failures before reconnect

# Performance and monitoring
FPS_REPORT_INTERVAL = 100  # Report status every N frames
FPS_WINDOW_SIZE = 100  # Number of frames to average for FPS calculation

# Outputs
DISPLAY_URI_SCHEME = "display://"
VIDEO_FILE_EXTENSIONS = (".mp4", ".avi", ".mkv")
DEFAULT_OUTPUT_FPS = 30.0
DEFAULT_WINDOW_NAME = "detect-crop"
DEFAULT_CROP_WINDOW_NAME = "detect-crop: crop"

# Overlay
OVERLAY_FLAGS = ("box", "labels", "conf", "none")
DEFAULT_OVERLAY = "none"

# Environment variables
ENV_VIDEO_INPUT = "VIDEO_INPUT"
ENV_VIDEO_OUTPUT = "VIDEO_OUTPUT"
ENV_CROP_OUTPUT = "CROP_OUTPUT"
