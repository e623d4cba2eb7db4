"""File repository for exported dictionary fragments.

Maps item keys to files under ``<folder>/<category>/<safe_key>.config``,
persists fragments through the codec, and archives (soft-deletes) files by
moving them to ``<archive>/<category>/<safe_key>_<timestamp>.config``.
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path

from ..errors import FileOperationError
from ..file_handler import validate_inside, write_file
from .codec import XmlFragmentCodec
from .models import Fragment

logger = logging.getLogger(__name__)

FILE_EXTENSION = ".config"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

_FALLBACK_ALIAS = "item"


def to_safe_alias(key: str) -> str:
    """Turn an item key into a file name unique to that key.

    Runs of characters outside ``[A-Za-z0-9._-]`` collapse to ``_`` and
    leading/trailing dots and underscores are stripped, so the result can
    never name a parent directory.  A key that had to be rewritten gets
    the first 10 hex digits of its SHA-256 appended, so ``"a b"`` and
    ``"a_b"`` land in different files.  Keys with no usable character at
    all become ``item_<digest>``.
    """
    alias = _UNSAFE_CHARS.sub("_", key).strip("._")
    if alias and alias == key:
        return alias
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:10]
    return f"{alias or _FALLBACK_ALIAS}_{digest}"


class FileRepository:
    """Store fragments as files.

    Args:
        root: Default sync folder; ``archive`` resolves files under it.
        archive_root: Folder receiving archived files.
        codec: Codec used to serialize fragments.
    """

    def __init__(
        self,
        root: Path,
        archive_root: Path,
        codec: XmlFragmentCodec,
    ) -> None:
        self.root = root
        self.archive_root = archive_root
        self.codec = codec

    def path_for(self, folder: Path, category: str, safe_key: str) -> Path:
        """Return the file path for *safe_key* in *category* under *folder*."""
        path = folder / category / f"{safe_key}{FILE_EXTENSION}"
        return validate_inside(path, folder)

    def persist(self, fragment: Fragment, path: Path) -> int:
        """Serialize *fragment* and write it to *path*.

        Returns:
            Number of bytes written.

        Raises:
            FileOperationError: If the file cannot be written.
        """
        data = self.codec.dumps(fragment)
        try:
            written = write_file(path, data)
        except OSError as exc:
            raise FileOperationError(
                f"Cannot write {path}: {exc}", key=fragment.key
            ) from exc
        logger.debug("Wrote %s (%d bytes)", path, written)
        return written

    def archive(self, category: str, safe_key: str) -> Path | None:
        """Move the file for *safe_key* into the archive folder.

        Returns:
            The archived path, or ``None`` if there was no file to archive.

        Raises:
            FileOperationError: If the move fails.
        """
        source = self.path_for(self.root, category, safe_key)
        if not source.exists():
            logger.info("Nothing to archive for %s/%s", category, safe_key)
            return None

        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        target = (
            self.archive_root / category / f"{safe_key}_{stamp}{FILE_EXTENSION}"
        )
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(target))
        except OSError as exc:
            raise FileOperationError(
                f"Cannot archive {source}: {exc}", key=safe_key
            ) from exc
        logger.info("Archived %s -> %s", source, target)
        return target

    def list_files(self, folder: Path, category: str) -> list[Path]:
        """Return every fragment file in *category* under *folder*, sorted."""
        directory = folder / category
        if not directory.is_dir():
            return []
        return sorted(
            p for p in directory.glob(f"*{FILE_EXTENSION}") if p.is_file()
        )
