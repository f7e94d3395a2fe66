"""I/O utilities for source trees and the output tree.

Provides sorted walking of source directories and atomic file writing so
readers of the output directory (such as the dev server) never see
partially copied files.
"""

import errno
import hashlib
import os
import stat
import tempfile
from collections.abc import Iterator
from pathlib import Path

import structlog

from sitepipe.site.models import FileKind, GeneratedFile


logger = structlog.get_logger()

FILE_MODE = 0o644


def _raise(error: OSError) -> None:
    raise error


def walk_source_tree(root: Path) -> Iterator[tuple[Path, list[str], list[str]]]:
    """Walk a source directory top-down in sorted order.

    Symlinked directories are followed. Reaching a directory that is already
    being walked higher up the same path is a symlink loop and an error.

    Args:
        root: Directory to walk.

    Yields:
        Tuples of (directory relative to root, sub-directory names,
        non-directory entry names). Both name lists are sorted.

    Raises:
        OSError: If a directory cannot be listed or a symlink loops.
    """
    walker = os.walk(root, onerror=_raise, followlinks=True)
    for dirpath, dirnames, filenames in walker:
        current = Path(dirpath)
        rel_dir = current.relative_to(root)
        real_current = current.resolve()
        for depth in range(len(rel_dir.parts)):
            if root.joinpath(*rel_dir.parts[:depth]).resolve() == real_current:
                raise OSError(errno.ELOOP, "symlink loop", str(current))
        dirnames.sort()
        yield rel_dir, dirnames, sorted(filenames)


def read_source_file(path: Path) -> bytes:
    """Read a file from a source tree.

    Symlinks are followed. Dangling links and special files (FIFOs,
    sockets, devices) are errors rather than skipped.

    Raises:
        OSError: If the path is missing, not a regular file, or unreadable.
    """
    if not stat.S_ISREG(path.stat().st_mode):
        raise OSError(errno.EINVAL, "not a regular file", str(path))
    return path.read_bytes()


class OutputWriter:
    """Writes files below the output directory and records them.

    Writes content to a temporary file in the target directory first, then
    renames it to the final path.
    """

    def __init__(self, base_dir: Path, build_id: str | None = None) -> None:
        """Initialize the output writer.

        Args:
            base_dir: Output directory, used for relative path calculation.
            build_id: Optional build ID for logging context.
        """
        self._base_dir = base_dir
        self._log = logger.bind(component="output_writer")
        if build_id:
            self._log = self._log.bind(build_id=build_id)

    def write(self, path: Path, content: bytes, kind: FileKind) -> GeneratedFile:
        """Write bytes to ``path`` with atomic semantics.

        Args:
            path: Target file path. Its parent directory must exist.
            content: Bytes to write.
            kind: Phase that produced the file.

        Returns:
            GeneratedFile with path, checksum, and size information.

        Raises:
            OSError: If the temporary file cannot be written or renamed.
        """
        fd, temp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            # mkstemp creates the file owner-only
            temp_path.chmod(FILE_MODE)
            temp_path.replace(path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        return self._describe(path, content, kind)

    def record(self, path: Path, kind: FileKind) -> GeneratedFile:
        """Describe a file that was written by someone else.

        Args:
            path: Path of an existing file below the output directory.
            kind: Phase that produced the file.

        Returns:
            GeneratedFile for the file's current content.
        """
        return self._describe(path, path.read_bytes(), kind)

    def _describe(self, path: Path, content: bytes, kind: FileKind) -> GeneratedFile:
        sha256 = hashlib.sha256(content).hexdigest()

        try:
            relative_path = path.relative_to(self._base_dir).as_posix()
        except ValueError:
            relative_path = str(path)

        self._log.debug(
            "file_written",
            path=relative_path,
            kind=kind.value,
            bytes=len(content),
            sha256=sha256[:12],
        )

        return GeneratedFile(
            path=relative_path,
            absolute_path=str(path),
            kind=kind,
            bytes_written=len(content),
            sha256=sha256,
        )
