"""CLI commands for building and serving sites."""

import importlib
import logging
import sys
import uuid
from pathlib import Path

import click
import structlog

from sitepipe import __version__
from sitepipe.config import (
    ConfigValidationError,
    SiteSettings,
    format_validation_error,
    load_settings,
)
from sitepipe.observability.logging import (
    bind_build_context,
    clear_build_context,
    configure_logging,
)
from sitepipe.server import serve as serve_directory
from sitepipe.site import BuildContext, ConfigureStep, Site, SiteError


logger = structlog.get_logger()

COMPONENT_CLI = "cli"


def load_configurer(reference: str) -> ConfigureStep:
    """Import a configurer from a ``MODULE:ATTR`` reference.

    The current directory is importable so site scripts next to the
    invocation can be referenced by module name.

    Args:
        reference: e.g. ``mysite:configure`` or ``mysite.pages:configure``.

    Returns:
        The referenced callable.

    Raises:
        click.BadParameter: If the reference is malformed, cannot be
            imported, or is not callable.
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        msg = f"expected MODULE:ATTR, got {reference!r}"
        raise click.BadParameter(msg, param_hint="--site")

    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    importlib.invalidate_caches()

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        msg = f"cannot import {module_name!r}: {e}"
        raise click.BadParameter(msg, param_hint="--site") from e

    target: object = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            msg = f"{module_name!r} has no attribute {attr!r}"
            raise click.BadParameter(msg, param_hint="--site") from e

    if not callable(target):
        msg = f"{reference!r} is not callable"
        raise click.BadParameter(msg, param_hint="--site")
    return target  # type: ignore[return-value]


def _resolve_configurer(
    click_ctx: click.Context, site_ref: str | None
) -> ConfigureStep | None:
    if site_ref:
        return load_configurer(site_ref)
    obj = click_ctx.find_object(dict) or {}
    configurer: ConfigureStep | None = obj.get("configurer")
    return configurer


def _load_settings_or_exit(config_path: Path | None) -> SiteSettings:
    try:
        return load_settings(config_path)
    except ConfigValidationError as e:
        click.echo(f"Configuration validation failed: {e.file_path}", err=True)
        for error in e.errors:
            click.echo(f"  - {format_validation_error(error)}", err=True)
        sys.exit(1)


def _new_site(
    settings: SiteSettings, configurer: ConfigureStep | None, ctx: BuildContext
) -> Site:
    steps: list[ConfigureStep] = [settings.apply]
    if configurer is not None:
        steps.append(configurer)
    try:
        return Site.new(*steps, ctx=ctx)
    except SiteError as e:
        logger.bind(component=COMPONENT_CLI).error("configure_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


site_option = click.option(
    "--site",
    "site_ref",
    default=None,
    metavar="MODULE:ATTR",
    help="Configurer to build the site from, e.g. mysite:configure.",
)
config_option = click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML site file with directory layout and commands.",
)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines.")
@click.pass_context
def cli(click_ctx: click.Context, verbose: bool, json_logs: bool) -> None:
    """Build and serve static sites."""
    click_ctx.ensure_object(dict)
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        json_format=json_logs,
    )


@cli.command()
@site_option
@config_option
@click.pass_context
def build(
    click_ctx: click.Context, site_ref: str | None, config_path: Path | None
) -> None:
    """Rebuild the output directory from scratch."""
    configurer = _resolve_configurer(click_ctx, site_ref)
    settings = _load_settings_or_exit(config_path)

    build_id = uuid.uuid4().hex[:12]
    bind_build_context(build_id)
    log = logger.bind(component=COMPONENT_CLI, command="build")
    log.info("building", output_dir=str(settings.output_dir))

    ctx = BuildContext()
    site = _new_site(settings, configurer, ctx)
    try:
        result = site.build(ctx, build_id=build_id)
    except SiteError as e:
        click.echo(f"build: {e}", err=True)
        sys.exit(1)
    finally:
        clear_build_context()

    click.echo(
        f"Build complete. {len(result.manifest.files)} files written "
        f"to {site.output_dir}"
    )
    for failure in result.render_failures:
        click.echo(f"  render failed: {failure.path} ({failure.error_summary})")


@cli.command()
@site_option
@config_option
@click.option("--host", default=None, help="Bind address (default from settings).")
@click.option("--port", type=int, default=None, help="Bind port (default from settings).")
@click.pass_context
def serve(  # noqa: PLR0913
    click_ctx: click.Context,
    site_ref: str | None,
    config_path: Path | None,
    host: str | None,
    port: int | None,
) -> None:
    """Serve the output directory with clean URLs."""
    configurer = _resolve_configurer(click_ctx, site_ref)
    settings = _load_settings_or_exit(config_path)
    site = _new_site(settings, configurer, BuildContext())

    bind_host = host or settings.host
    bind_port = settings.port if port is None else port
    click.echo(f"Serving {site.output_dir} on http://{bind_host}:{bind_port}")
    serve_directory(site.output_dir, bind_host, bind_port)


def main(configurer: ConfigureStep | None = None, argv: list[str] | None = None) -> None:
    """Run the command line for a site script.

    Site scripts call this with their configurer::

        if __name__ == "__main__":
            main(configure)

    and are then run as ``python mysite.py build`` or ``python mysite.py serve``.

    Args:
        configurer: Configuration step used when ``--site`` is not given.
        argv: Arguments (default ``sys.argv[1:]``).
    """
    cli.main(args=argv, obj={"configurer": configurer})
