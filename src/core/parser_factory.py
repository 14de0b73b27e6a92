"""
Parser Factory for RPGMJsonTranslator.
Classifies data files by name and returns the matching text locator.
"""
import re
from typing import Any, List, Tuple

from .constants import (
    CORE_GROUP,
    CORE_PRIORITY,
    COMMON_EVENTS_FILE,
    DATA_EXTENSION,
    FALLBACK_PRIORITY,
    MAP_FILE_PATTERN,
    MAP_GROUP,
    SYSTEM_FILE,
    TextItem,
)
from .enums import FileKind
from .parsers.base import BaseLocator
from .parsers.json_parser import (
    CommonEventsLocator,
    MapLocator,
    RecordsLocator,
    SystemLocator,
)

MAP_FILE_RE = re.compile(MAP_FILE_PATTERN)

_LOCATORS = {
    FileKind.MAP: MapLocator,
    FileKind.SYSTEM: SystemLocator,
    FileKind.COMMON_EVENTS: CommonEventsLocator,
    FileKind.RECORDS: RecordsLocator,
}


def base_name(file_path: str) -> str:
    """Archive entry names always use forward slashes."""
    return file_path.split("/")[-1]


def classify(file_path: str) -> FileKind:
    """Get the file family for a data file based on its name."""
    name = base_name(file_path)
    if MAP_FILE_RE.match(name):
        return FileKind.MAP
    if name == SYSTEM_FILE:
        return FileKind.SYSTEM
    if name == COMMON_EVENTS_FILE:
        return FileKind.COMMON_EVENTS
    return FileKind.RECORDS


def get_locator(kind: FileKind) -> BaseLocator:
    return _LOCATORS[kind]()


def locate(document: Any, kind: FileKind) -> List[TextItem]:
    """Ordered translatable items of ``document``."""
    return get_locator(kind).locate(document)


def is_supported_file(file_path: str, is_dir: bool = False) -> bool:
    """Check if an archive entry is a data file worth scanning."""
    if is_dir:
        return False
    name = base_name(file_path)
    if not name.endswith(DATA_EXTENSION):
        return False
    return bool(MAP_FILE_RE.match(name)) or name in CORE_PRIORITY


def file_priority(file_path: str) -> Tuple[int, int]:
    """Core files first (fixed table), then maps by number, then the rest."""
    name = base_name(file_path)
    if name in CORE_PRIORITY:
        return (CORE_GROUP, CORE_PRIORITY[name])
    if MAP_FILE_RE.match(name):
        return (MAP_GROUP, int(re.sub(r"\D", "", name)))
    return FALLBACK_PRIORITY


def sort_by_priority(names: List[str]) -> List[str]:
    return sorted(names, key=file_priority)

