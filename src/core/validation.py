"""
Validation module for RPGMJsonTranslator.
Ensures translation integrity and safety before documents are written out.
"""
import logging
from collections import Counter
from typing import Any, List, Optional, Sequence, Tuple

from .parsers.base import BRACKET_CODE_RE, ESCAPE_CODE_RE

logger = logging.getLogger(__name__)


def control_codes(text: str) -> Counter:
    """Multiset of engine escape sequences in ``text`` (case-insensitive)."""
    codes = BRACKET_CODE_RE.findall(text) + ESCAPE_CODE_RE.findall(text)
    return Counter(code.upper() for code in codes)


class Validator:
    """Static validation utilities."""

    @staticmethod
    def validate_control_codes(original: str, translated: str) -> Tuple[bool, List[str]]:
        """
        Check that every control code of the original survived translation.
        Returns (is_valid, missing_codes).
        """
        missing = control_codes(original) - control_codes(translated)
        return not missing, sorted(missing.elements())

    @staticmethod
    def filter_translations(originals: Sequence[str],
                            translations: Sequence[Optional[str]]) -> List[Optional[str]]:
        """
        Replace translations that lost control codes with None so the
        original text is kept for those items.
        """
        result = []
        for original, translated in zip(originals, translations):
            if translated is not None:
                is_valid, missing = Validator.validate_control_codes(original, translated)
                if not is_valid:
                    logger.warning(f"Validation Failed: Missing control codes {missing}")
                    logger.debug(f"Original: {original}")
                    logger.debug(f"Translated: {translated}")
                    translated = None
            result.append(translated)
        return result

    @staticmethod
    def validate_json_structure(original_data: Any, translated_data: Any) -> bool:
        """
        Recursively validate that the structure of translated data matches original.
        Checks list lengths and key presence for critical structures.
        """
        if type(original_data) != type(translated_data):
            logger.error(f"Type mismatch: {type(original_data)} vs {type(translated_data)}")
            return False

        if isinstance(original_data, list):
            if len(original_data) != len(translated_data):
                logger.error(f"List length mismatch: {len(original_data)} vs {len(translated_data)}")
                return False
            for orig_item, trans_item in zip(original_data, translated_data):
                if isinstance(orig_item, (dict, list)):
                    if not Validator.validate_json_structure(orig_item, trans_item):
                        return False
            return True

        if isinstance(original_data, dict):
            original_keys = set(original_data.keys())
            translated_keys = set(translated_data.keys())

            if original_keys != translated_keys:
                logger.error(f"Key mismatch in translated data: {original_keys ^ translated_keys}")
                return False

            for key in original_keys:
                orig_val = original_data[key]
                if isinstance(orig_val, (dict, list)):
                    if not Validator.validate_json_structure(orig_val, translated_data[key]):
                        logger.error(f"Structure mismatch at key '{key}'")
                        return False

            return True

        return True
