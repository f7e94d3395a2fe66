"""Settings loading."""

from sitepipe.config.loader import (
    ConfigValidationError,
    format_validation_error,
    load_settings,
)
from sitepipe.config.settings import SiteSettings


__all__ = [
    "ConfigValidationError",
    "SiteSettings",
    "format_validation_error",
    "load_settings",
]
