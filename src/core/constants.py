from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .enums import FileKind, FileStatus

# --- Constants ---

# Default Configuration
DEFAULT_BATCH_SIZE = 25
DEFAULT_MAX_RETRIES = 3
DEFAULT_RATE_LIMIT_BACKOFF = 8.0  # seconds, after a 429 from the backend
DEFAULT_RETRY_BACKOFF = 2.0       # seconds, after any other failure
DEFAULT_INTER_BATCH_DELAY_MS = 150
DEFAULT_TIMEOUT_SECONDS = 120
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TARGET_LANG = "Arabic"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_VALIDATE_CONTROL_CODES = True

API_KEY_ENV = "ANTHROPIC_API_KEY"
ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

# File selection
DATA_EXTENSION = ".json"
MAP_FILE_PATTERN = r'^Map\d+\.json$'
SYSTEM_FILE = "System.json"
COMMON_EVENTS_FILE = "CommonEvents.json"

# Priority keys are (group, rank) pairs; lower sorts earlier.
# Core files rank by this table, numbered maps by their number.
CORE_PRIORITY = {
    "System.json": 1,
    "CommonEvents.json": 2,
    "Items.json": 3,
    "Skills.json": 4,
    "Enemies.json": 5,
    "Troops.json": 6,
    "Actors.json": 7,
    "Classes.json": 8,
    "Armors.json": 9,
    "Weapons.json": 10,
    "States.json": 11,
    "MapInfos.json": 12,
}
CORE_GROUP = 0
MAP_GROUP = 1
FALLBACK_GROUP = 2
FALLBACK_PRIORITY = (FALLBACK_GROUP, 0)

# Database record fields that carry player-facing text
RECORD_TEXT_FIELDS = (
    "name", "description", "note", "nickname", "profile",
    "message1", "message2", "message3", "message4",
)

# System.json term arrays, in extraction order
SYSTEM_TERM_LISTS = ("commands", "basic", "params")

# Inline escape sequences (RPG Maker MV/MZ message codes)
# \N[1], \C[2], \I[64], \V[10], \PX[4] ...
REGEX_BRACKET_CODE = r'\\[a-zA-Z]\[[^\]]*\]'
# \G \. \| \! \> \< \^ \{ \} \$ ...
REGEX_ESCAPE_CODE = r'\\[a-zA-Z.\^|!<>{}]'
# <WordWrap>, <br>, plugin markup
REGEX_MARKUP_TAG = r'<[^>]+>'
REGEX_ENGLISH_RUN = r'[a-zA-Z]{3,}'

# Backend prompt. The model must echo codes untouched and answer with bare JSON.
SYSTEM_PROMPT_TEMPLATE = """You are a professional English to {target_lang} translator specialised in RPG games.

Strict rules:
1. Keep RPG Maker control codes exactly as they are: \\n \\N[x] \\I[x] \\C[x] \\V[x] \\G \\$ \\. \\| \\! \\> \\< \\^ \\fb \\{{ \\}} \\B \\i and the numbers inside the brackets
2. Keep %1 %2 %3 placeholders exactly as they are
3. Keep character names as they are
4. Translate naturally and conversationally, not stiffly
5. Render sensitive content in moderate, appropriate language
6. Reply ONLY with a clean JSON array, no markdown and no explanation"""

USER_PROMPT_TEMPLATE = (
    "Translate these lines into {target_lang} and return a JSON array "
    "with the same order and the same count:\n{payload}"
)


# --- Data Transfer Objects (DTOs) ---

@dataclass(frozen=True)
class TextItem:
    """One translatable string and where it lives in its document."""
    path: Any  # Address
    text: str


@dataclass
class FileRecord:
    """Represents one scanned data file and its translation state."""
    name: str
    kind: FileKind
    document: Any
    items: List[TextItem] = field(default_factory=list)
    status: FileStatus = FileStatus.PENDING
    progress: int = 0  # percent
    priority: Tuple[int, int] = FALLBACK_PRIORITY
    translated_document: Optional[Any] = None

    @property
    def base_name(self) -> str:
        return self.name.split("/")[-1]

    @property
    def output_document(self) -> Any:
        """The document to serialize: translated if available, else the original."""
        if self.translated_document is not None:
            return self.translated_document
        return self.document
