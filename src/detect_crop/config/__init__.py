"""
Configuration loading and validation.

- load_config: Find and parse config.yaml, apply environment overrides
- apply_overrides: Layer command-line values on top
- validate_config_full: Comprehensive validation with errors/warnings

Pydantic schemas available for type-safe validation:
- Config: Complete configuration schema
- validate_config_pydantic: Validate and parse config to Pydantic model
"""

from .loader import (
    ConfigValidationError,
    apply_overrides,
    find_config_file,
    load_config,
    load_config_file,
    load_config_with_env,
)
from .schemas import (
    Config,
    DetectionConfig,
    PolicySettings,
    validate_config_pydantic,
)
from .validator import (
    ValidationResult,
    print_validation_result,
    validate_config_full,
)

__all__ = [
    # Pydantic validation
    "Config",
    # Exception
    "ConfigValidationError",
    "DetectionConfig",
    "PolicySettings",
    "ValidationResult",
    # Loading
    "apply_overrides",
    "find_config_file",
    "load_config",
    "load_config_file",
    "load_config_with_env",
    # Display
    "print_validation_result",
    # Validation
    "validate_config_full",
    "validate_config_pydantic",
]
