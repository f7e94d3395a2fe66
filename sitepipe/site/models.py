"""Data models and callback protocols for site builds."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO, Protocol


if TYPE_CHECKING:
    from sitepipe.site.context import BuildContext
    from sitepipe.site.site import Site


class ConfigureStep(Protocol):
    """Protocol for configuration steps.

    A configuration step receives the build context and the site under
    construction. It may register renderers, commands or further steps on
    the site, and signals failure by raising.
    """

    def __call__(self, ctx: "BuildContext", site: "Site") -> None:
        """Configure the site."""
        ...


class Renderer(Protocol):
    """Protocol for page renderers.

    A renderer writes the body of exactly one output file to ``out``.
    """

    def __call__(self, ctx: "BuildContext", out: BinaryIO) -> None:
        """Render the page body into ``out``."""
        ...


class FileKind(str, Enum):
    """Origin of a file in the output tree.

    - ASSET: Fingerprinted copy of an assets file
    - PUBLIC: Verbatim copy of a public file
    - PAGE: Output of a renderer
    """

    ASSET = "asset"
    PUBLIC = "public"
    PAGE = "page"


@dataclass(frozen=True)
class GeneratedFile:
    """Information about a generated file.

    Attributes:
        path: POSIX path relative to the output directory.
        absolute_path: Absolute path to file.
        kind: Which phase produced the file.
        bytes_written: Number of bytes written.
        sha256: SHA-256 checksum of content.
    """

    path: str
    absolute_path: str
    kind: FileKind
    bytes_written: int
    sha256: str


@dataclass(frozen=True)
class RenderFailure:
    """A renderer that failed during the render phase.

    Attributes:
        path: Output-relative path the renderer was registered for.
        error_summary: ``"<ExceptionType>: <message>"``.
    """

    path: str
    error_summary: str


@dataclass
class BuildManifest:
    """Manifest of files written by one build.

    Attributes:
        build_id: Build identifier.
        output_dir: Absolute output directory.
        files: Generated files in the order they were written.
        total_bytes: Total bytes written.
    """

    build_id: str
    output_dir: str
    files: list[GeneratedFile] = field(default_factory=list)
    total_bytes: int = 0

    def add_file(self, file_info: GeneratedFile) -> None:
        """Add a file to the manifest.

        Args:
            file_info: Information about the generated file.
        """
        self.files.append(file_info)
        self.total_bytes += file_info.bytes_written

    def add_files(self, files: list[GeneratedFile]) -> None:
        """Add several files to the manifest."""
        for file_info in files:
            self.add_file(file_info)

    def files_of_kind(self, kind: FileKind) -> list[GeneratedFile]:
        """Return the generated files produced by one phase."""
        return [f for f in self.files if f.kind == kind]


@dataclass
class BuildResult:
    """Result of a completed build.

    A build that returns a result reached the end of the render phase.
    Individual renderer failures are listed in ``render_failures``.

    Attributes:
        manifest: Manifest of generated files.
        assets: Logical asset name to fingerprinted path (relative to the
            assets route).
        render_failures: Renderers that raised.
        duration_ms: Wall-clock build duration in milliseconds.
    """

    manifest: BuildManifest
    assets: dict[str, str] = field(default_factory=dict)
    render_failures: list[RenderFailure] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """Check whether every renderer succeeded."""
        return not self.render_failures
