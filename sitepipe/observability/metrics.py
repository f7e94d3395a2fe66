"""Build metrics collection."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class BuildMetrics:
    """Metrics for site builds.

    Attributes:
        builds_total: Builds started.
        builds_failed_total: Builds that ended in a fatal error.
        commands_run_total: Commands that exited successfully.
        assets_copied_total: Fingerprinted assets written.
        asset_bytes_total: Bytes of fingerprinted assets written.
        public_files_copied_total: Public files mirrored.
        pages_rendered_total: Renderers that completed.
        render_failures_total: Renderers that raised.
        phase_durations_ms: Duration of each phase in the last build.
        page_durations_ms: Duration of each renderer in the last build.
    """

    builds_total: int = 0
    builds_failed_total: int = 0
    commands_run_total: int = 0
    assets_copied_total: int = 0
    asset_bytes_total: int = 0
    public_files_copied_total: int = 0
    pages_rendered_total: int = 0
    render_failures_total: int = 0
    phase_durations_ms: dict[str, float] = field(default_factory=dict)
    page_durations_ms: dict[str, float] = field(default_factory=dict)

    _instance: ClassVar["BuildMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "BuildMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_build_started(self) -> None:
        """Record a build start and clear per-build timings."""
        self.builds_total += 1
        self.phase_durations_ms.clear()
        self.page_durations_ms.clear()

    def record_build_failed(self) -> None:
        """Record a fatal build failure."""
        self.builds_failed_total += 1

    def record_phase_duration(self, phase: str, duration_ms: float) -> None:
        """Record how long a phase took.

        Args:
            phase: Phase name.
            duration_ms: Duration in milliseconds.
        """
        self.phase_durations_ms[phase] = duration_ms

    def record_commands_run(self, count: int) -> None:
        """Record successfully completed commands."""
        self.commands_run_total += count

    def record_assets_copied(self, count: int, total_bytes: int) -> None:
        """Record fingerprinted assets.

        Args:
            count: Number of assets written.
            total_bytes: Bytes written.
        """
        self.assets_copied_total += count
        self.asset_bytes_total += total_bytes

    def record_public_files_copied(self, count: int) -> None:
        """Record mirrored public files."""
        self.public_files_copied_total += count

    def record_page_rendered(self, path: str, duration_ms: float) -> None:
        """Record a completed renderer.

        Args:
            path: Output-relative page path.
            duration_ms: Duration in milliseconds.
        """
        self.pages_rendered_total += 1
        self.page_durations_ms[path] = duration_ms

    def record_render_failure(self) -> None:
        """Record a renderer that raised."""
        self.render_failures_total += 1

    def get_summary(self) -> dict[str, object]:
        """Get metrics summary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "builds_total": self.builds_total,
            "builds_failed_total": self.builds_failed_total,
            "commands_run_total": self.commands_run_total,
            "assets_copied_total": self.assets_copied_total,
            "asset_bytes_total": self.asset_bytes_total,
            "public_files_copied_total": self.public_files_copied_total,
            "pages_rendered_total": self.pages_rendered_total,
            "render_failures_total": self.render_failures_total,
            "phase_durations_ms": dict(self.phase_durations_ms),
        }
