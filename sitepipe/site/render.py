"""Render engine with per-renderer failure isolation."""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

import structlog

from sitepipe.observability.metrics import BuildMetrics
from sitepipe.site.context import BuildContext
from sitepipe.site.io import OutputWriter
from sitepipe.site.models import FileKind, GeneratedFile, RenderFailure, Renderer


logger = structlog.get_logger()


def normalize_render_path(path: str) -> str:
    """Normalize an output-relative renderer path.

    Leading slashes are dropped so ``/index.html`` and ``index.html`` name the
    same file.

    Raises:
        ValueError: If the path is empty or escapes the output directory.
    """
    cleaned = PurePosixPath(path.replace("\\", "/").lstrip("/"))
    if not cleaned.parts or cleaned == PurePosixPath("."):
        msg = f"invalid render path {path!r}: empty"
        raise ValueError(msg)
    if ".." in cleaned.parts:
        msg = f"invalid render path {path!r}: escapes the output directory"
        raise ValueError(msg)
    return cleaned.as_posix()


@dataclass
class RenderOutcome:
    """Files written and failures recorded by one render phase."""

    files: list[GeneratedFile] = field(default_factory=list)
    failures: list[RenderFailure] = field(default_factory=list)


class RenderEngine:
    """Runs every registered renderer into its output file.

    A renderer that raises is logged and recorded; the remaining renderers
    still run. Whatever the failing renderer wrote before raising stays on
    disk.
    """

    def __init__(
        self,
        output_dir: Path,
        writer: OutputWriter,
        metrics: BuildMetrics | None = None,
        build_id: str | None = None,
    ) -> None:
        """Initialize the render engine.

        Args:
            output_dir: Root output directory.
            writer: Writer used to record rendered files.
            metrics: Optional metrics instance.
            build_id: Optional build ID for logging context.
        """
        self._output_dir = output_dir
        self._writer = writer
        self._metrics = metrics or BuildMetrics.get_instance()
        self._log = logger.bind(component="render")
        if build_id:
            self._log = self._log.bind(build_id=build_id)

    def render_all(
        self, renderers: Mapping[str, Renderer], ctx: BuildContext
    ) -> RenderOutcome:
        """Render every page.

        Args:
            renderers: Output-relative path to renderer.
            ctx: Context handed to each renderer.

        Returns:
            RenderOutcome with written files and isolated failures.
        """
        outcome = RenderOutcome()
        for path, renderer in renderers.items():
            try:
                generated = self.render(path, renderer, ctx)
            except Exception as e:
                error_summary = f"{type(e).__name__}: {e}"
                self._log.error("render_failed", path=path, error=error_summary)
                self._metrics.record_render_failure()
                outcome.failures.append(
                    RenderFailure(path=path, error_summary=error_summary)
                )
                continue
            outcome.files.append(generated)
        return outcome

    def render(self, path: str, renderer: Renderer, ctx: BuildContext) -> GeneratedFile:
        """Render a single page into ``<output>/<path>``.

        Raises:
            Exception: Whatever the renderer or the filesystem raises.
        """
        self._log.info("rendering_page", path=path)
        start_time = time.perf_counter()

        target = self._output_dir / path
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as out:
            renderer(ctx, out)

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._metrics.record_page_rendered(path, duration_ms)
        return self._writer.record(target, FileKind.PAGE)
