"""Site construction and the build orchestrator."""

import shutil
import time
import uuid
from collections.abc import Callable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TypeVar

import structlog

from sitepipe.observability.metrics import BuildMetrics
from sitepipe.site.assets import (
    AssetFingerprinter,
    AssetTable,
    normalize_assets_route,
)
from sitepipe.site.commands import CommandRunner
from sitepipe.site.constants import (
    COMPONENT_SITE,
    DEFAULT_ASSETS_DIR,
    DEFAULT_ASSETS_ROUTE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PUBLIC_DIR,
    PHASE_ASSETS,
    PHASE_COMMANDS,
    PHASE_CREATE_OUTPUT,
    PHASE_PUBLIC,
    PHASE_REMOVE_OUTPUT,
)
from sitepipe.site.context import BuildContext
from sitepipe.site.errors import BuildError, SiteError
from sitepipe.site.io import OutputWriter
from sitepipe.site.models import (
    BuildManifest,
    BuildResult,
    ConfigureStep,
    FileKind,
    Renderer,
)
from sitepipe.site.public import StaticCopier
from sitepipe.site.queue import ConfigurationQueue
from sitepipe.site.render import RenderEngine, normalize_render_path
from sitepipe.site.state_machine import BuildState, BuildStateMachine


logger = structlog.get_logger()

T = TypeVar("T")


def _remove_output(output_dir: Path) -> None:
    if output_dir.is_symlink() or output_dir.is_file():
        output_dir.unlink()
    elif output_dir.exists():
        shutil.rmtree(output_dir)


class Site:
    """The central build context.

    A site is assembled by configuration steps and then built into its
    output directory. Directory attributes are settable so steps may change
    them; the assets route is validated on assignment.

    Build phases, in order:
        1. Reset the output directory
        2. Run commands
        3. Fingerprint and copy assets
        4. Copy public files
        5. Render pages (failures are isolated per page)

    Example::

        def configure(ctx, site):
            site.run("npm run bundle")
            site.render("index.html", render_index)

        site = Site.new(configure)
        result = site.build()
    """

    def __init__(  # noqa: PLR0913
        self,
        output_dir: str | Path = DEFAULT_OUTPUT_DIR,
        public_dir: str | Path = DEFAULT_PUBLIC_DIR,
        assets_dir: str | Path = DEFAULT_ASSETS_DIR,
        assets_route: str = DEFAULT_ASSETS_ROUTE,
        shell: str | None = None,
        command_timeout: float | None = None,
    ) -> None:
        """Initialize an unconfigured site.

        Most callers want ``Site.new``, which also runs configuration steps.

        Args:
            output_dir: Directory that every build replaces.
            public_dir: Directory of files copied verbatim.
            assets_dir: Directory of files copied under content hashes.
            assets_route: Output sub-directory and URL segment for assets.
            shell: Shell for build commands (default ``$SHELL``, then ``sh``).
            command_timeout: Optional per-command timeout in seconds.
        """
        self.output_dir = Path(output_dir)
        self.public_dir = Path(public_dir)
        self.assets_dir = Path(assets_dir)
        self.assets_route = assets_route
        self.shell = shell
        self.command_timeout = command_timeout

        self._queue = ConfigurationQueue()
        self._renderers: dict[str, Renderer] = {}
        self._commands: list[str] = []
        self._assets = AssetTable(self.assets_route)

    @classmethod
    def new(
        cls,
        *configurers: ConfigureStep,
        ctx: BuildContext | None = None,
        **options: object,
    ) -> "Site":
        """Create a site and drain its configuration queue.

        Args:
            configurers: Initial configuration steps, queued in order.
            ctx: Context handed to every step.
            options: Keyword arguments for ``Site.__init__``.

        Returns:
            The configured site.

        Raises:
            ConfigurationError: If any step fails. No site is returned.
        """
        site = cls(**options)  # type: ignore[arg-type]
        for configurer in configurers:
            site.configure(configurer)

        steps = site._queue.drain(ctx or BuildContext(), site)
        logger.bind(component=COMPONENT_SITE).info(
            "site_configured",
            steps=steps,
            renderers=len(site._renderers),
            commands=len(site._commands),
        )
        return site

    # ------------------------------------------------------------------
    # Registration (used by configuration steps)
    # ------------------------------------------------------------------

    def configure(self, step: ConfigureStep) -> None:
        """Queue a configuration step to run after the steps already queued."""
        self._queue.push(step)

    def render(self, path: str, renderer: Renderer) -> None:
        """Register the renderer for an output-relative path.

        A later registration for the same path replaces the earlier one.

        Raises:
            ValueError: If the path is empty or escapes the output directory.
        """
        self._renderers[normalize_render_path(path)] = renderer

    def run(self, command: str) -> None:
        """Register a shell command to run at the start of every build."""
        self._commands.append(command)

    @property
    def assets_route(self) -> str:
        """Get the output sub-directory and URL segment for assets."""
        return self._assets_route

    @assets_route.setter
    def assets_route(self, route: str) -> None:
        """Set the assets route.

        Raises:
            ValueError: If the route escapes the output directory.
        """
        self._assets_route = normalize_assets_route(route)

    @property
    def renderers(self) -> Mapping[str, Renderer]:
        """Get a read-only view of the registered renderers."""
        return MappingProxyType(self._renderers)

    @property
    def commands(self) -> tuple[str, ...]:
        """Get the registered commands in run order."""
        return tuple(self._commands)

    @property
    def assets(self) -> AssetTable:
        """Get the asset table of the current or most recent build."""
        return self._assets

    def asset(self, name: str) -> str:
        """Resolve a logical asset name to its fingerprinted URL path.

        Raises:
            AssetNotFoundError: If the name was not fingerprinted by a build.
        """
        return self._assets.url(name)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(
        self, ctx: BuildContext | None = None, build_id: str | None = None
    ) -> BuildResult:
        """Rebuild the output directory from scratch.

        Args:
            ctx: Build context. Cancelling it stops the active command and
                fails the build before its next fatal phase.
            build_id: Identifier for log correlation (generated when omitted).

        Returns:
            BuildResult; renderer failures are listed, not raised.

        Raises:
            BuildError: If resetting, a command, the asset copy or the public
                copy fails.
        """
        ctx = ctx or BuildContext()
        build_id = build_id or uuid.uuid4().hex[:12]
        output_dir = self.output_dir
        metrics = BuildMetrics.get_instance()
        machine = BuildStateMachine(build_id)
        log = logger.bind(build_id=build_id, component=COMPONENT_SITE)

        start_time = time.perf_counter()
        metrics.record_build_started()
        log.info(
            "build_started",
            output_dir=str(output_dir),
            commands=len(self._commands),
            renderers=len(self._renderers),
        )

        self._assets = AssetTable(self.assets_route)
        writer = OutputWriter(output_dir, build_id)
        manifest = BuildManifest(
            build_id=build_id, output_dir=str(output_dir.resolve())
        )

        try:
            machine.to_resetting()
            self._run_phase(PHASE_REMOVE_OUTPUT, ctx, lambda: _remove_output(output_dir))
            self._run_phase(
                PHASE_CREATE_OUTPUT,
                ctx,
                lambda: output_dir.mkdir(parents=True, exist_ok=True),
            )

            machine.to_running_commands()
            runner = CommandRunner(self.shell, self.command_timeout, build_id)
            commands_run = self._run_phase(
                PHASE_COMMANDS, ctx, lambda: runner.run_all(self._commands, ctx)
            )
            metrics.record_commands_run(commands_run)

            machine.to_copying_assets()
            fingerprinter = AssetFingerprinter(
                self.assets_dir, output_dir, self._assets, writer, build_id
            )
            asset_files = self._run_phase(PHASE_ASSETS, ctx, fingerprinter.copy)
            manifest.add_files(asset_files)
            metrics.record_assets_copied(
                len(asset_files), sum(f.bytes_written for f in asset_files)
            )

            machine.to_copying_public()
            copier = StaticCopier(self.public_dir, output_dir, writer, build_id)
            public_files = self._run_phase(PHASE_PUBLIC, ctx, copier.copy)
            manifest.add_files(public_files)
            metrics.record_public_files_copied(len(public_files))
        except BuildError as e:
            machine.to_failed()
            metrics.record_build_failed()
            log.error(
                "build_failed",
                phase=e.phase,
                state=machine.state.name,
                error=f"{type(e.cause).__name__}: {e.cause}",
            )
            raise

        machine.to_rendering()
        self._assets.freeze()
        render_start = time.perf_counter()
        engine = RenderEngine(output_dir, writer, metrics, build_id)
        outcome = engine.render_all(dict(self._renderers), ctx.with_assets(self._assets))
        manifest.add_files(outcome.files)
        metrics.record_phase_duration(
            "render pages", (time.perf_counter() - render_start) * 1000
        )
        machine.to_done()

        duration_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "build_complete",
            state=BuildState.DONE.name,
            assets=len(manifest.files_of_kind(FileKind.ASSET)),
            public_files=len(public_files),
            pages=len(outcome.files),
            render_failures=len(outcome.failures),
            total_bytes=manifest.total_bytes,
            duration_ms=round(duration_ms, 2),
        )
        log.debug("build_metrics", **metrics.get_summary())

        return BuildResult(
            manifest=manifest,
            assets=self._assets.as_dict(),
            render_failures=outcome.failures,
            duration_ms=duration_ms,
        )

    def _run_phase(self, phase: str, ctx: BuildContext, action: Callable[[], T]) -> T:
        """Run one fatal phase, wrapping its failure in a BuildError."""
        start_time = time.perf_counter()
        try:
            ctx.raise_if_cancelled()
            return action()
        except (SiteError, OSError) as e:
            raise BuildError(phase, e) from e
        finally:
            BuildMetrics.get_instance().record_phase_duration(
                phase, (time.perf_counter() - start_time) * 1000
            )
