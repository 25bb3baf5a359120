"""Compression of dump documents into single-entry zip archives."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from backend.services.backup.errors import PackagingError
from backend.services.backup.models import Artifact, DumpDocument


logger = logging.getLogger(__name__)

COMPRESS_LEVEL = 9


class Packager:
    """Write a dump to disk and compress it."""

    def compress(self, document: DumpDocument, destination: Path, *, source_path: Path) -> Artifact:
        """Write ``document`` to ``source_path`` and zip it into ``destination``.

        The archive holds exactly one member named after ``source_path``. The
        archive is fully written and closed before this returns. The
        uncompressed source is left in place for the caller to clean up.

        Args:
            document: Dump to package.
            destination: Archive path to create.
            source_path: Where to write the uncompressed dump.

        Returns:
            Artifact: The created archive.

        Raises:
            PackagingError: When writing or compressing fails.
        """

        destination = Path(destination)
        source_path = Path(source_path)
        try:
            source_path.parent.mkdir(parents=True, exist_ok=True)
            source_path.write_text(document.text, encoding="utf-8")

            destination.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(
                destination,
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=COMPRESS_LEVEL,
            ) as archive:
                archive.write(source_path, arcname=source_path.name)

            size = destination.stat().st_size
        except (OSError, zipfile.BadZipFile) as exc:
            raise PackagingError(f"Failed to package {document.database} into {destination.name}: {exc}") from exc

        logger.debug("Packaged database=%s archive=%s size=%s", document.database, destination, size)
        return Artifact(path=destination, entry_name=source_path.name, size=size)
