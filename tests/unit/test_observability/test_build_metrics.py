"""Tests for build metrics and logging helpers."""

import io
import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from sitepipe.observability.logging import (
    bind_build_context,
    clear_build_context,
    configure_logging,
)
from sitepipe.observability.metrics import BuildMetrics


@pytest.fixture(autouse=True)
def reset_state() -> Iterator[None]:
    """Reset metrics and logging configuration around each test."""
    BuildMetrics.reset()
    yield
    clear_build_context()
    structlog.reset_defaults()


class TestBuildMetrics:
    """Tests for BuildMetrics."""

    def test_singleton(self) -> None:
        """get_instance returns the same object until reset."""
        first = BuildMetrics.get_instance()
        assert BuildMetrics.get_instance() is first
        BuildMetrics.reset()
        assert BuildMetrics.get_instance() is not first

    def test_build_started_clears_timings(self) -> None:
        """Per-build timings are cleared while counters accumulate."""
        metrics = BuildMetrics.get_instance()
        metrics.record_build_started()
        metrics.record_phase_duration("run commands", 12.5)
        metrics.record_page_rendered("index.html", 3.0)

        metrics.record_build_started()

        assert metrics.builds_total == 2
        assert metrics.phase_durations_ms == {}
        assert metrics.page_durations_ms == {}
        assert metrics.pages_rendered_total == 1

    def test_summary(self) -> None:
        """The summary exposes counters."""
        metrics = BuildMetrics.get_instance()
        metrics.record_build_started()
        metrics.record_commands_run(2)
        metrics.record_assets_copied(3, 300)
        metrics.record_public_files_copied(1)
        metrics.record_render_failure()
        metrics.record_build_failed()

        summary = metrics.get_summary()

        assert summary["builds_total"] == 1
        assert summary["builds_failed_total"] == 1
        assert summary["commands_run_total"] == 2
        assert summary["assets_copied_total"] == 3
        assert summary["asset_bytes_total"] == 300
        assert summary["public_files_copied_total"] == 1
        assert summary["render_failures_total"] == 1


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self) -> None:
        """JSON mode writes one object per line with bound context."""
        stream = io.StringIO()
        configure_logging(output=stream, json_format=True)
        bind_build_context("build-42")

        structlog.get_logger().info("build_started", renderers=2)

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "build_started"
        assert record["build_id"] == "build-42"
        assert record["renderers"] == 2
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_level_filtering(self) -> None:
        """Messages below the configured level are dropped."""
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, output=stream, json_format=True)

        log = structlog.get_logger()
        log.info("hidden")
        log.warning("shown")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "shown" in output

    def test_console_output(self) -> None:
        """Console mode renders the event name."""
        stream = io.StringIO()
        configure_logging(output=stream)

        structlog.get_logger().info("site_configured", steps=3)

        assert "site_configured" in stream.getvalue()
