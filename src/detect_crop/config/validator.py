"""
Configuration Validator - Validates config syntax and semantic correctness.

Provides comprehensive validation with detailed error messages.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .schemas import validate_config_pydantic

logger = logging.getLogger(__name__)


# ANSI color codes for terminal output
class Colors:
    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls):
        """Disable colors for non-TTY output."""
        cls.GREEN = cls.RED = cls.YELLOW = ""
        cls.CYAN = cls.BOLD = cls.RESET = ""


# Disable colors if not a TTY
if not sys.stdout.isatty():
    Colors.disable()


@dataclass
class ValidationResult:
    """Result of config validation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    derived: dict[str, Any] = field(default_factory=dict)


def validate_config_full(config: dict) -> ValidationResult:
    """
    Comprehensive config validation with detailed error messages.

    Args:
        config: Configuration dictionary (after env and CLI overrides)

    Returns:
        ValidationResult with errors, warnings, and the normalized config
        (all defaults filled in) under derived["config"].
    """
    result = ValidationResult(valid=True)

    try:
        parsed = validate_config_pydantic(config or {})
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "config"
            result.errors.append(f"{location}: {err['msg']}")
        result.valid = False
        return result

    normalized = parsed.model_dump()
    result.derived["config"] = normalized

    _validate_source(normalized, result)
    _validate_detection(normalized, result)
    _validate_outputs(normalized, result)

    if result.errors:
        result.valid = False

    return result


def _validate_source(config: dict, result: ValidationResult) -> None:
    if not config["source"]["uri"]:
        result.errors.append(
            "source.uri is required (config file, VIDEO_INPUT, or input_uri argument)"
        )


def _validate_detection(config: dict, result: ValidationResult) -> None:
    detection = config["detection"]
    policy = config["policy"]

    model_path = Path(detection["model_file"])
    if not model_path.exists():
        result.warnings.append(
            f"Model file not found: {detection['model_file']} (will be downloaded if valid)"
        )

    if policy["min_confidence"] < detection["threshold"]:
        result.warnings.append(
            f"policy.min_confidence ({policy['min_confidence']}) is below "
            f"detection.threshold ({detection['threshold']}) - the detector "
            f"threshold is the effective minimum"
        )

    result.derived["target_class"] = policy["target_class"]
    result.derived["crop_size"] = (policy["crop"]["width"], policy["crop"]["height"])


def _validate_outputs(config: dict, result: ValidationResult) -> None:
    output = config["output"]
    if not output["crop_uri"]:
        result.warnings.append(
            "output.crop_uri not set - crops will be decided but not saved"
        )
    if output["headless"] and output["uri"] and output["uri"].startswith("display://"):
        result.errors.append("output.uri cannot be a display in headless mode")


def print_validation_result(result: ValidationResult) -> None:
    """Print validation result in Terraform-like format."""
    print()
    print(f"{Colors.BOLD}Configuration Validation{Colors.RESET}")
    print("=" * 60)

    if result.valid:
        print(f"\n{Colors.GREEN}✓ Configuration is valid{Colors.RESET}")
    else:
        print(f"\n{Colors.RED}✗ Configuration has errors{Colors.RESET}")

    if result.errors:
        print(f"\n{Colors.RED}Errors:{Colors.RESET}")
        for error in result.errors:
            print(f"  {Colors.RED}✗{Colors.RESET} {error}")

    if result.warnings:
        print(f"\n{Colors.YELLOW}Warnings:{Colors.RESET}")
        for warning in result.warnings:
            print(f"  {Colors.YELLOW}!{Colors.RESET} {warning}")

    if result.valid and result.derived:
        print(f"\n{Colors.CYAN}Derived Configuration:{Colors.RESET}")
        config = result.derived["config"]
        width, height = result.derived["crop_size"]
        print(f"  Source: {config['source']['uri']}")
        print(f"  Model: {config['detection']['model_file']}")
        print(
            f"  Target: '{result.derived['target_class']}' "
            f"(confidence > {config['policy']['min_confidence']})"
        )
        print(f"  Crop: {width}x{height}")
        print(f"  Pacing: {config['policy']['min_pacing_interval']} frames")

    print()
