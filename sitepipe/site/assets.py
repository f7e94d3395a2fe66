"""Asset fingerprinting.

Copies every file below the assets directory into ``<output>/<route>/``,
renaming it with a short content digest:

    ``css/site.css`` -> ``css/site.3f2a9c1.css``

Identical bytes always produce the same name, so fingerprinted assets can be
served with long-lived cache headers.
"""

import hashlib
from pathlib import Path, PurePosixPath

import structlog

from sitepipe.site.constants import DEFAULT_ASSETS_ROUTE, DIGEST_LENGTH
from sitepipe.site.errors import AssetError, AssetNotFoundError
from sitepipe.site.io import OutputWriter, read_source_file, walk_source_tree
from sitepipe.site.models import FileKind, GeneratedFile


logger = structlog.get_logger()


def content_digest(data: bytes) -> str:
    """Compute the fingerprint of asset content.

    Args:
        data: Full file contents.

    Returns:
        First ``DIGEST_LENGTH`` lowercase hex characters of the SHA-256 digest.

    Examples:
        >>> content_digest(b"image")
        '6105d6c'
    """
    return hashlib.sha256(data).hexdigest()[:DIGEST_LENGTH]


def fingerprint_name(filename: str, digest: str) -> str:
    """Insert a digest into a filename, before its extension.

    The extension is everything from the last ``.`` of the name, so
    ``app.min.js`` becomes ``app.min.<digest>.js`` and ``LICENSE`` becomes
    ``LICENSE.<digest>``.

    Args:
        filename: Base name of the file (no directory part).
        digest: Fingerprint to embed.

    Returns:
        The fingerprinted filename.
    """
    index = filename.rfind(".")
    if index == -1:
        return f"{filename}.{digest}"
    return f"{filename[:index]}.{digest}{filename[index:]}"


def normalize_assets_route(route: str) -> str:
    """Normalize the assets route to a relative POSIX path.

    Surrounding slashes are dropped; an empty route serves assets from the
    output root.

    Raises:
        ValueError: If the route escapes the output directory.
    """
    cleaned = PurePosixPath(route.replace("\\", "/").strip("/"))
    if ".." in cleaned.parts:
        msg = f"invalid assets route {route!r}: escapes the output directory"
        raise ValueError(msg)
    if cleaned == PurePosixPath("."):
        return ""
    return cleaned.as_posix()


class AssetTable:
    """Mapping from logical asset name to fingerprinted path.

    Logical names are POSIX paths relative to the assets directory. Entries
    are relative to the assets route. The table is filled during the asset
    phase and frozen before rendering starts.
    """

    __slots__ = ("_entries", "_frozen", "_route")

    def __init__(self, route: str = DEFAULT_ASSETS_ROUTE) -> None:
        """Initialize an empty table.

        Raises:
            ValueError: If the route escapes the output directory.
        """
        self._route = normalize_assets_route(route)
        self._entries: dict[str, str] = {}
        self._frozen = False

    @property
    def route(self) -> str:
        """Get the URL segment assets are served under."""
        return self._route

    @property
    def frozen(self) -> bool:
        """Check whether the table accepts new entries."""
        return self._frozen

    def add(self, name: str, path: str) -> None:
        """Record a fingerprinted asset.

        Raises:
            RuntimeError: If the table is frozen.
        """
        if self._frozen:
            msg = f"asset table is frozen, cannot add {name!r}"
            raise RuntimeError(msg)
        self._entries[name] = path

    def freeze(self) -> None:
        """Make the table read-only."""
        self._frozen = True

    def path(self, name: str) -> str:
        """Get the fingerprinted path of an asset, relative to the route.

        Raises:
            AssetNotFoundError: If the name was never fingerprinted.
        """
        try:
            return self._entries[name]
        except KeyError:
            raise AssetNotFoundError(name) from None

    def url(self, name: str) -> str:
        """Get the absolute URL path of an asset.

        Raises:
            AssetNotFoundError: If the name was never fingerprinted.
        """
        path = self.path(name)
        if not self._route:
            return f"/{path}"
        return f"/{self._route}/{path}"

    def as_dict(self) -> dict[str, str]:
        """Return a copy of all entries."""
        return dict(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class AssetFingerprinter:
    """Copies the assets tree into the output directory under content hashes."""

    def __init__(
        self,
        assets_dir: Path,
        output_dir: Path,
        table: AssetTable,
        writer: OutputWriter,
        build_id: str | None = None,
    ) -> None:
        """Initialize the fingerprinter.

        Args:
            assets_dir: Source directory of assets.
            output_dir: Root output directory.
            table: Table that receives one entry per copied file.
            writer: Writer used for the output files.
            build_id: Optional build ID for logging context.
        """
        self._assets_dir = assets_dir
        self._dest_root = output_dir / table.route
        self._table = table
        self._writer = writer
        self._log = logger.bind(component="assets")
        if build_id:
            self._log = self._log.bind(build_id=build_id)

    def copy(self) -> list[GeneratedFile]:
        """Fingerprint and copy every asset.

        A missing assets directory is not an error.

        Returns:
            One GeneratedFile per copied asset, in walk order.

        Raises:
            AssetError: If walking, reading or writing fails.
        """
        if not self._assets_dir.exists():
            self._log.debug("assets_dir_missing", assets_dir=str(self._assets_dir))
            return []
        if not self._assets_dir.is_dir():
            raise AssetError(
                str(self._assets_dir), NotADirectoryError("not a directory")
            )

        results: list[GeneratedFile] = []
        try:
            for rel_dir, _dirnames, filenames in walk_source_tree(self._assets_dir):
                try:
                    (self._dest_root / rel_dir).mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise AssetError(rel_dir.as_posix(), e) from e

                for filename in filenames:
                    results.append(self._copy_file(filename, rel_dir))
        except OSError as e:
            raise AssetError(str(e.filename), e) from e

        self._log.info(
            "assets_copied",
            count=len(results),
            total_bytes=sum(f.bytes_written for f in results),
        )
        return results

    def _copy_file(self, filename: str, rel_dir: Path) -> GeneratedFile:
        name = (rel_dir / filename).as_posix()
        try:
            data = read_source_file(self._assets_dir / rel_dir / filename)
            new_name = fingerprint_name(filename, content_digest(data))
            generated = self._writer.write(
                self._dest_root / rel_dir / new_name, data, FileKind.ASSET
            )
        except OSError as e:
            raise AssetError(name, e) from e

        entry = (rel_dir / new_name).as_posix()
        self._table.add(name, entry)
        self._log.info("asset_copied", name=name, fingerprinted=entry)
        return generated
