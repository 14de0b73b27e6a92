from enum import Enum

class PipelineStage(Enum):
    """Pipeline execution stages."""
    SETUP = "setup"
    SCANNED = "scanned"
    TRANSLATING = "translating"
    DONE = "done"


class FileStatus(Enum):
    """Per-file translation status."""
    PENDING = "pending"
    TRANSLATING = "translating"
    DONE = "done"
    SKIP = "skip"


class FileKind(Enum):
    """Data file families, each with its own text traversal."""
    SYSTEM = "system"
    COMMON_EVENTS = "common_events"
    RECORDS = "records"
    MAP = "map"
