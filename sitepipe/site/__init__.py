"""Site build engine module."""

from sitepipe.site.assets import (
    AssetFingerprinter,
    AssetTable,
    content_digest,
    fingerprint_name,
)
from sitepipe.site.commands import CommandRunner
from sitepipe.site.context import BuildContext
from sitepipe.site.errors import (
    AssetError,
    AssetNotFoundError,
    BuildCancelledError,
    BuildError,
    CommandError,
    ConfigurationError,
    PublicCopyError,
    SiteError,
)
from sitepipe.site.io import OutputWriter
from sitepipe.site.models import (
    BuildManifest,
    BuildResult,
    ConfigureStep,
    FileKind,
    GeneratedFile,
    RenderFailure,
    Renderer,
)
from sitepipe.site.public import StaticCopier
from sitepipe.site.queue import ConfigurationQueue
from sitepipe.site.render import RenderEngine
from sitepipe.site.site import Site
from sitepipe.site.state_machine import BuildState, BuildStateMachine


__all__ = [
    "AssetError",
    "AssetFingerprinter",
    "AssetNotFoundError",
    "AssetTable",
    "BuildCancelledError",
    "BuildContext",
    "BuildError",
    "BuildManifest",
    "BuildResult",
    "BuildState",
    "BuildStateMachine",
    "CommandError",
    "CommandRunner",
    "ConfigurationError",
    "ConfigurationQueue",
    "ConfigureStep",
    "FileKind",
    "GeneratedFile",
    "OutputWriter",
    "PublicCopyError",
    "RenderEngine",
    "RenderFailure",
    "Renderer",
    "Site",
    "SiteError",
    "StaticCopier",
    "content_digest",
    "fingerprint_name",
]
