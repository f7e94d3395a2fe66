"""Public file mirroring."""

from pathlib import Path

import structlog

from sitepipe.site.errors import PublicCopyError
from sitepipe.site.io import OutputWriter, read_source_file, walk_source_tree
from sitepipe.site.models import FileKind, GeneratedFile


logger = structlog.get_logger()


class StaticCopier:
    """Mirrors the public directory into the output root, byte for byte.

    ``public/robots.txt`` becomes ``<output>/robots.txt``; nothing is renamed.
    """

    def __init__(
        self,
        public_dir: Path,
        output_dir: Path,
        writer: OutputWriter,
        build_id: str | None = None,
    ) -> None:
        self._public_dir = public_dir
        self._output_dir = output_dir
        self._writer = writer
        self._log = logger.bind(component="public")
        if build_id:
            self._log = self._log.bind(build_id=build_id)

    def copy(self) -> list[GeneratedFile]:
        """Copy every public file and directory.

        A missing public directory is not an error.

        Returns:
            One GeneratedFile per copied file.

        Raises:
            PublicCopyError: If walking, reading or writing fails.
        """
        if not self._public_dir.exists():
            self._log.debug("public_dir_missing", public_dir=str(self._public_dir))
            return []
        if not self._public_dir.is_dir():
            raise PublicCopyError(
                str(self._public_dir), NotADirectoryError("not a directory")
            )

        results: list[GeneratedFile] = []
        try:
            for rel_dir, dirnames, filenames in walk_source_tree(self._public_dir):
                for dirname in dirnames:
                    dest_dir = self._output_dir / rel_dir / dirname
                    try:
                        dest_dir.mkdir(parents=True, exist_ok=True)
                    except OSError as e:
                        raise PublicCopyError((rel_dir / dirname).as_posix(), e) from e

                for filename in filenames:
                    results.append(self._copy_file(filename, rel_dir))
        except OSError as e:
            raise PublicCopyError(str(e.filename), e) from e

        self._log.info("public_files_copied", count=len(results))
        return results

    def _copy_file(self, filename: str, rel_dir: Path) -> GeneratedFile:
        rel_path = (rel_dir / filename).as_posix()
        try:
            return self._writer.write(
                self._output_dir / rel_dir / filename,
                read_source_file(self._public_dir / rel_dir / filename),
                FileKind.PUBLIC,
            )
        except OSError as e:
            raise PublicCopyError(rel_path, e) from e
