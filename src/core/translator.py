"""
Translation backends.
A backend turns an ordered list of strings into an equally long, equally
ordered list of translations in one call, and signals rate limiting with
RateLimitedError so callers can back off harder.
"""
from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import aiohttp

from src.core.constants import (
    ANTHROPIC_MESSAGES_URL,
    ANTHROPIC_VERSION,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TARGET_LANG,
    DEFAULT_TIMEOUT_SECONDS,
    SYSTEM_PROMPT_TEMPLATE,
    USER_PROMPT_TEMPLATE,
)

CODE_FENCE_START_RE = re.compile(r'^```(?:json)?\s*')
CODE_FENCE_END_RE = re.compile(r'\s*```$')


class TranslationError(Exception):
    """Backend call failed or returned something unusable."""


class RateLimitedError(TranslationError):
    """Backend asked us to slow down (HTTP 429)."""


def parse_translation_array(raw: str, expected_count: int) -> List[str]:
    """
    Parse the model reply into a list of strings.
    Markdown code fences around the array are tolerated.
    """
    cleaned = CODE_FENCE_END_RE.sub("", CODE_FENCE_START_RE.sub("", raw.strip())).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise TranslationError(f"Response is not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise TranslationError(f"Response is not an array but {type(parsed).__name__}")
    if len(parsed) != expected_count:
        raise TranslationError(f"Batch mismatch: got {len(parsed)}, expected {expected_count}")
    if not all(isinstance(p, str) for p in parsed):
        raise TranslationError("Response array contains non-string entries")
    return parsed


class BaseTranslator(ABC):
    def __init__(self, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._session: Optional[aiohttp.ClientSession] = None
        self.timeout_seconds = timeout_seconds

    async def _get_session(self) -> aiohttp.ClientSession:
        """
        Get or create an aiohttp ClientSession.
        Reuses the session if it's already open, creates a new one otherwise.

        Important: Call close() when done to avoid resource leaks.
        """
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self):
        """
        Close the aiohttp session.
        Call this when the translator is no longer needed to prevent resource leaks.
        """
        if self._session:
            try:
                await self._session.close()
            except Exception as e:
                self.logger.warning(f"Error closing session: {e}")
            finally:
                self._session = None

    async def __aenter__(self):
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - automatically closes session."""
        await self.close()

    @abstractmethod
    async def translate_batch(self, texts: List[str]) -> List[str]:
        """
        Translate ``texts`` in one call.
        Raises RateLimitedError or TranslationError on failure.
        """


class ClaudeTranslator(BaseTranslator):
    """
    Anthropic Messages API backend.
    The whole batch goes out as one JSON array and must come back as one.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        target_lang: str = DEFAULT_TARGET_LANG,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        endpoint: str = ANTHROPIC_MESSAGES_URL,
    ):
        super().__init__(timeout_seconds=timeout_seconds)
        if not api_key:
            raise ValueError("An API key is required for ClaudeTranslator")
        self.api_key = api_key
        self.model = model
        self.target_lang = target_lang
        self.max_tokens = max_tokens
        self.endpoint = endpoint
        self.system_prompt = SYSTEM_PROMPT_TEMPLATE.format(target_lang=target_lang)

    def _build_payload(self, texts: List[str]) -> dict:
        user_content = USER_PROMPT_TEMPLATE.format(
            target_lang=self.target_lang,
            payload=json.dumps(texts, ensure_ascii=False),
        )
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": self.system_prompt,
            "messages": [{"role": "user", "content": user_content}],
        }

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    @staticmethod
    def _extract_text(data: Any) -> str:
        if not isinstance(data, dict):
            raise TranslationError("Unexpected response envelope")
        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise TranslationError(f"API error: {message}")
        content = data.get("content") or []
        if content and isinstance(content[0], dict):
            return content[0].get("text") or "[]"
        return "[]"

    async def translate_batch(self, texts: List[str]) -> List[str]:
        if not texts:
            return []

        session = await self._get_session()
        try:
            async with session.post(self.endpoint, json=self._build_payload(texts),
                                    headers=self._headers()) as resp:
                if resp.status == 429:
                    self.logger.warning("Backend returned 429 (rate limited)")
                    raise RateLimitedError("Rate limited by backend")
                data = await resp.json(content_type=None)
                if resp.status >= 400 and not (isinstance(data, dict) and data.get("error")):
                    raise TranslationError(f"HTTP {resp.status}")
        except aiohttp.ClientError as e:
            raise TranslationError(f"Transport error: {e}") from e
        except json.JSONDecodeError as e:
            raise TranslationError(f"Response body is not JSON: {e}") from e

        raw = self._extract_text(data)
        return parse_translation_array(raw, len(texts))


class DryRunTranslator(BaseTranslator):
    """Offline backend: every string translates to itself."""

    async def translate_batch(self, texts: List[str]) -> List[str]:
        self.logger.debug(f"Dry run: echoing {len(texts)} strings")
        return list(texts)
