"""
Text locators for RPG Maker MV/MZ JSON data files.
One locator per file family; all share the event command rule from BaseLocator.
"""
import logging
from typing import Any

from .base import BaseLocator
from ..address import Address
from ..constants import RECORD_TEXT_FIELDS, SYSTEM_TERM_LISTS

logger = logging.getLogger(__name__)

ROOT = Address()


class MapLocator(BaseLocator):
    """
    Map###.json: ``events[].pages[].list[]`` command trees.
    Also picks up the speaker name of Show Text headers.
    """

    include_speaker_names = True

    def _walk(self, data: Any):
        if not isinstance(data, dict):
            logger.debug("Map document is not an object, nothing to extract")
            return
        events = data.get("events")
        if not isinstance(events, list):
            return
        for e_i, event in enumerate(events):
            # Deleted events are stored as null
            if not isinstance(event, dict):
                continue
            self._process_pages(event, ROOT.child("events", e_i))

    def _process_pages(self, event: dict, event_path: Address):
        pages = event.get("pages")
        if not isinstance(pages, list):
            return
        for p_i, page in enumerate(pages):
            if isinstance(page, dict):
                self._process_command_list(page.get("list"), event_path.child("pages", p_i, "list"))


class SystemLocator(BaseLocator):
    """System.json: vocabulary terms, the message table and the game title."""

    def _walk(self, data: Any):
        if not isinstance(data, dict):
            return
        terms = data.get("terms")
        terms_path = ROOT.child("terms")
        if isinstance(terms, dict):
            for list_name in SYSTEM_TERM_LISTS:
                values = terms.get(list_name)
                if isinstance(values, list):
                    for i, value in enumerate(values):
                        self._add(terms_path.child(list_name, i), value)

            messages = terms.get("messages")
            if isinstance(messages, dict):
                for key, value in messages.items():
                    self._add(terms_path.child("messages", key), value)

        self._add(ROOT.child("gameTitle"), data.get("gameTitle"))


class CommonEventsLocator(BaseLocator):
    """CommonEvents.json: each event's name, then its command list."""

    def _walk(self, data: Any):
        if not isinstance(data, list):
            return
        for e_i, event in enumerate(data):
            if not isinstance(event, dict):
                continue
            self._add(ROOT.child(e_i, "name"), event.get("name"))
            self._process_command_list(event.get("list"), ROOT.child(e_i, "list"))


class RecordsLocator(MapLocator):
    """
    Database arrays (Actors, Items, Skills, Weapons, Troops ...).
    Reads the known text fields of each record; page-bearing records
    such as troops also get their command lists scanned.
    """

    include_speaker_names = False

    def _walk(self, data: Any):
        if isinstance(data, list):
            for i, record in enumerate(data):
                self._process_record(record, ROOT.child(i))
        else:
            self._process_record(data, ROOT)

    def _process_record(self, record: Any, record_path: Address):
        # Index 0 of every database array is null
        if not isinstance(record, dict):
            return
        for field_name in RECORD_TEXT_FIELDS:
            self._add(record_path.child(field_name), record.get(field_name))
        self._process_pages(record, record_path)
