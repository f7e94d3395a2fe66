"""Observability module for logging and metrics."""

from sitepipe.observability.logging import (
    bind_build_context,
    clear_build_context,
    configure_logging,
)
from sitepipe.observability.metrics import BuildMetrics


__all__ = [
    "BuildMetrics",
    "bind_build_context",
    "clear_build_context",
    "configure_logging",
]
