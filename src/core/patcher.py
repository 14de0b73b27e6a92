"""
Writes translated strings back into a copy of a document.
"""
import copy
import logging
from typing import Any, List, Optional, Sequence

from .address import Address, set_value
from .constants import TextItem

logger = logging.getLogger(__name__)


class Patcher:
    """
    Applies translations to a deep copy of a document.
    The source document is never mutated.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.misses: List[Address] = []
        self.applied_count = 0

    def apply(self, document: Any, items: Sequence[TextItem],
              translations: Sequence[Optional[str]], name: str = "") -> Any:
        """
        Returns a new document where ``items[i].path`` holds ``translations[i]``
        for every non-null string translation. Other values are untouched.
        """
        if len(items) != len(translations):
            raise ValueError(
                f"{len(items)} items but {len(translations)} translations for {name or 'document'}"
            )

        self.misses = []
        self.applied_count = 0
        clone = copy.deepcopy(document)

        for item, translated in zip(items, translations):
            if not translated or not isinstance(translated, str):
                continue
            if set_value(clone, item.path, translated):
                self.applied_count += 1
            else:
                self.misses.append(item.path)

        if self.misses:
            self.logger.warning(
                f"{len(self.misses)} translation target(s) not found in {name or 'document'}, "
                f"first: {self.misses[0]}"
            )
        return clone

