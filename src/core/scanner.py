"""
Turns archive entries into FileRecords ready for translation.
"""
import json
import logging
from typing import List

from .constants import FileRecord
from .parser_factory import classify, file_priority, is_supported_file, locate
from src.utils.archive import ArchiveError

logger = logging.getLogger(__name__)


def scan_archive(archive) -> List[FileRecord]:
    """
    Parse every supported data file in ``archive`` and extract its text.

    ``archive`` only needs ``entries()`` yielding objects with ``name``,
    ``is_dir`` and ``read_text()``. Entries that are not valid JSON are
    logged and left out. Records come back sorted by priority.
    """
    records: List[FileRecord] = []
    seen = set()

    for entry in archive.entries():
        if not is_supported_file(entry.name, entry.is_dir):
            continue
        if entry.name in seen:
            logger.warning(f"Duplicate entry {entry.name}, keeping the first one")
            continue
        seen.add(entry.name)

        try:
            document = json.loads(entry.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError, ArchiveError) as e:
            logger.warning(f"Skipping {entry.name}: unreadable or not valid JSON ({e})")
            continue

        kind = classify(entry.name)
        items = locate(document, kind)
        records.append(FileRecord(
            name=entry.name,
            kind=kind,
            document=document,
            items=items,
            priority=file_priority(entry.name),
        ))
        logger.debug(f"{entry.name}: {kind.value}, {len(items)} strings")

    # sorted() is stable, so equal priorities keep archive order
    return sorted(records, key=lambda r: r.priority)
