"""Site file loader with validation."""

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from sitepipe.config.settings import SiteSettings


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when a site file cannot be read or fails validation."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details (``loc``, ``msg``,
                ``type``).
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


def format_validation_error(error: dict[str, str]) -> str:
    """Format one validation error for display."""
    location = error.get("loc") or "<root>"
    return f"{location}: {error['msg']}"


def _load_yaml_file(file_path: Path) -> dict[str, object]:
    """Load a YAML mapping.

    Raises:
        ConfigValidationError: If the file is unreadable, not YAML, or not
            a mapping.
    """
    try:
        parsed = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        error = {"loc": "", "msg": str(e), "type": "read_error"}
        raise ConfigValidationError([error], str(file_path)) from e
    except yaml.YAMLError as e:
        error = {"loc": "", "msg": str(e), "type": "yaml_error"}
        raise ConfigValidationError([error], str(file_path)) from e

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        error = {
            "loc": "",
            "msg": f"expected a mapping, got {type(parsed).__name__}",
            "type": "mapping_type",
        }
        raise ConfigValidationError([error], str(file_path))
    return parsed


def load_settings(config_path: Path | None = None) -> SiteSettings:
    """Load site settings from the environment and an optional site file.

    Args:
        config_path: Optional YAML file. Its keys are ``SiteSettings``
            field names and override environment values.

    Returns:
        Validated settings.

    Raises:
        ConfigValidationError: If the site file is invalid.
    """
    if config_path is None:
        return SiteSettings()

    log = logger.bind(component="config", file_path=str(config_path))
    data = _load_yaml_file(config_path)

    unknown = sorted(str(key) for key in data if key not in SiteSettings.model_fields)
    if unknown:
        errors = [
            {"loc": key, "msg": "unknown setting", "type": "extra_forbidden"}
            for key in unknown
        ]
        log.warning("config_validation_failed", error_count=len(errors))
        raise ConfigValidationError(errors, str(config_path))

    try:
        settings = SiteSettings(**data)  # type: ignore[arg-type]
    except ValidationError as e:
        errors = [
            {
                "loc": ".".join(str(part) for part in err["loc"]),
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        log.warning("config_validation_failed", error_count=len(errors))
        raise ConfigValidationError(errors, str(config_path)) from e

    log.info("config_loaded", keys=sorted(data))
    return settings
