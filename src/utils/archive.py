"""
Zip container access.
Input archives are only read; translated output goes to a new archive that
carries every original entry plus the replaced data files.
"""
import logging
import os
import zipfile
from dataclasses import dataclass
from typing import Dict, List, Optional

from src.utils.file_ops import safe_write

logger = logging.getLogger(__name__)

COMPRESSION_LEVEL = 6


class ArchiveError(Exception):
    """The input container itself cannot be read."""


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    is_dir: bool
    _archive: "GameArchive"

    def read_text(self) -> str:
        return self._archive.read_text(self.name)


class GameArchive:
    """Read-only view of a game zip."""

    def __init__(self, path: str):
        self.path = path
        self._zip: Optional[zipfile.ZipFile] = None

    def open(self) -> "GameArchive":
        try:
            self._zip = zipfile.ZipFile(self.path, 'r')
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveError(f"Cannot open archive {self.path}: {e}") from e
        return self

    def close(self):
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def _zipfile(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise ArchiveError("Archive is not open")
        return self._zip

    @property
    def size(self) -> int:
        return os.path.getsize(self.path)

    def entries(self) -> List[ArchiveEntry]:
        return [ArchiveEntry(info.filename, info.is_dir(), self) for info in self._zipfile.infolist()]

    def read_text(self, name: str) -> str:
        """Entry contents as text; a UTF-8 BOM is dropped."""
        try:
            raw = self._zipfile.read(name)
        except (KeyError, zipfile.BadZipFile, OSError) as e:
            raise ArchiveError(f"Cannot read {name}: {e}") from e
        return raw.decode('utf-8-sig')


def default_output_path(source_path: str, target_lang: str) -> str:
    stem, _ = os.path.splitext(source_path)
    suffix = target_lang.strip().lower().replace(' ', '_') or "translated"
    return f"{stem}_{suffix}.zip"


def write_translated_archive(source_path: str, dest_path: str, replacements: Dict[str, str]) -> int:
    """
    Copy ``source_path`` to ``dest_path``, swapping in ``replacements``
    (entry name -> new text). Returns the number of replaced entries.
    """
    replaced = 0
    try:
        with zipfile.ZipFile(source_path, 'r') as src, \
                safe_write(dest_path, 'wb') as f, \
                zipfile.ZipFile(f, 'w', compression=zipfile.ZIP_DEFLATED,
                                compresslevel=COMPRESSION_LEVEL) as dst:
            for info in src.infolist():
                if info.is_dir():
                    dst.writestr(info, b"")
                    continue
                if info.filename in replacements:
                    dst.writestr(info.filename, replacements[info.filename].encode('utf-8'))
                    replaced += 1
                else:
                    dst.writestr(info.filename, src.read(info.filename))
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"Failed to write {dest_path}: {e}") from e

    logger.info(f"Wrote {dest_path} ({replaced} translated files)")
    return replaced
