import re
from abc import ABC, abstractmethod
from typing import Any, List

from ..address import Address
from ..constants import (
    TextItem,
    REGEX_BRACKET_CODE,
    REGEX_ESCAPE_CODE,
    REGEX_MARKUP_TAG,
    REGEX_ENGLISH_RUN,
)

BRACKET_CODE_RE = re.compile(REGEX_BRACKET_CODE)
ESCAPE_CODE_RE = re.compile(REGEX_ESCAPE_CODE)
MARKUP_TAG_RE = re.compile(REGEX_MARKUP_TAG)
ENGLISH_RUN_RE = re.compile(REGEX_ENGLISH_RUN)

# Event command codes
CODE_SHOW_TEXT_HEADER = 101  # [faceName, faceIndex, background, positionType, speakerName]
CODE_SHOW_CHOICES = 102      # [choices[], cancelType, ...]
CODE_SHOW_TEXT = 401         # [line]
CODE_CHOICE_WHEN = 402       # [choiceIndex, label]


def strip_control_codes(text: str) -> str:
    """Remove engine escape sequences so only readable text remains."""
    text = BRACKET_CODE_RE.sub("", text)
    text = ESCAPE_CODE_RE.sub("", text)
    return MARKUP_TAG_RE.sub("", text)


def has_english(text: Any) -> bool:
    """
    True if ``text`` is a string with a run of three or more Latin letters
    once control codes are stripped.

    "Hello there" -> True, "%1 gold" -> True, "OK" -> False,
    "\\N[1]さようなら" -> False.
    """
    if not text or not isinstance(text, str):
        return False
    return ENGLISH_RUN_RE.search(strip_control_codes(text)) is not None


class BaseLocator(ABC):
    """Base class for all text locators."""

    # Show Text header (speaker name) is only read from map events
    include_speaker_names = False

    def __init__(self):
        self.extracted: List[TextItem] = []

    def locate(self, data: Any) -> List[TextItem]:
        """
        Extracts translatable text.
        Returns an ordered list of TextItem(path, text) in document order.
        """
        self.extracted = []
        self._walk(data)
        return self.extracted

    @abstractmethod
    def _walk(self, data: Any):
        pass

    def _add(self, path: Address, value: Any):
        if has_english(value):
            self.extracted.append(TextItem(path=path, text=value))

    def _process_command_list(self, commands: Any, list_path: Address):
        """Scan an event command list (``list`` of a page or common event)."""
        if not isinstance(commands, list):
            return
        for c_i, cmd in enumerate(commands):
            if isinstance(cmd, dict):
                self._process_event_command(cmd, list_path.child(c_i))

    def _process_event_command(self, cmd: dict, path: Address):
        """Process an RPG Maker event command for translatable text."""
        code = cmd.get("code")
        params = cmd.get("parameters")
        if not isinstance(params, list):
            return
        params_path = path.child("parameters")

        if code == CODE_SHOW_TEXT_HEADER and self.include_speaker_names:
            if len(params) > 4:
                self._add(params_path.child(4), params[4])

        elif code == CODE_SHOW_TEXT:
            if len(params) > 0:
                self._add(params_path.child(0), params[0])

        elif code == CODE_SHOW_CHOICES:
            choices = params[0] if len(params) > 0 else None
            if isinstance(choices, list):
                for o_i, choice in enumerate(choices):
                    self._add(params_path.child(0, o_i), choice)

        elif code == CODE_CHOICE_WHEN:
            if len(params) > 1:
                self._add(params_path.child(1), params[1])
