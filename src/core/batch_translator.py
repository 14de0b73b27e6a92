"""
Batch translation with retry, back-off and cancellation.

One call handles one batch. Whatever goes wrong, the caller gets a list as
long as the input: either every translation, or all None.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence

from .cancellation import CancellationToken
from .constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RATE_LIMIT_BACKOFF,
    DEFAULT_RETRY_BACKOFF,
)
from .translator import BaseTranslator, RateLimitedError, TranslationError

Sleep = Callable[[float], Awaitable[None]]


class AttemptOutcome(Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    RETRYABLE_FAILURE = "retryable_failure"
    CANCELLED = "cancelled"


class BatchTranslator:
    """Drives a translation backend for a single batch at a time."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        rate_limit_backoff: float = DEFAULT_RATE_LIMIT_BACKOFF,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        sleep: Optional[Sleep] = None,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.max_retries = max(1, max_retries)
        self.rate_limit_backoff = rate_limit_backoff
        self.retry_backoff = retry_backoff
        self._sleep = sleep or asyncio.sleep

    async def translate(
        self,
        texts: Sequence[str],
        capability: BaseTranslator,
        token: Optional[CancellationToken] = None,
    ) -> List[Optional[str]]:
        """
        Translate one batch.
        Returns len(texts) entries: the translations, or None for each item
        if the batch failed, ran out of attempts or was cancelled.
        """
        texts = list(texts)
        if not texts:
            return []
        failed: List[Optional[str]] = [None] * len(texts)
        token = token or CancellationToken()

        for attempt in range(1, self.max_retries + 1):
            if token.is_cancelled:
                return failed

            outcome, result = await self._attempt(texts, capability, token)

            if outcome is AttemptOutcome.SUCCESS:
                return result
            if outcome is AttemptOutcome.CANCELLED:
                self.logger.info("Batch cancelled")
                return failed

            if attempt == self.max_retries:
                break

            delay = self.rate_limit_backoff if outcome is AttemptOutcome.RATE_LIMITED else self.retry_backoff
            self.logger.warning(
                f"Attempt {attempt}/{self.max_retries} {outcome.value}. Backing off {delay:.1f}s..."
            )
            if not await self._wait(delay, token):
                self.logger.info("Batch cancelled during back-off")
                return failed

        self.logger.warning(f"Giving up on batch of {len(texts)} after {self.max_retries} attempts")
        return failed

    async def _attempt(self, texts: List[str], capability: BaseTranslator,
                       token: CancellationToken):
        """Run one backend call raced against cancellation."""
        call = asyncio.ensure_future(capability.translate_batch(texts))
        cancel_wait = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({call, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_wait.cancel()

        if call not in done or token.is_cancelled:
            # The call may not honour cancellation; its result is discarded either way
            if call.done() and not call.cancelled():
                call.exception()
            else:
                call.cancel()
            return AttemptOutcome.CANCELLED, None

        try:
            result = call.result()
        except RateLimitedError as e:
            self.logger.debug(f"Rate limited: {e}")
            return AttemptOutcome.RATE_LIMITED, None
        except TranslationError as e:
            self.logger.debug(f"Translation failed: {e}")
            return AttemptOutcome.RETRYABLE_FAILURE, None
        except Exception as e:
            self.logger.debug(f"Unexpected backend error: {e!r}")
            return AttemptOutcome.RETRYABLE_FAILURE, None

        if not self._is_valid_result(result, len(texts)):
            self.logger.debug("Malformed batch result")
            return AttemptOutcome.RETRYABLE_FAILURE, None
        return AttemptOutcome.SUCCESS, list(result)

    @staticmethod
    def _is_valid_result(result, expected_count: int) -> bool:
        return (
            isinstance(result, list)
            and len(result) == expected_count
            and all(isinstance(r, str) for r in result)
        )

    async def _wait(self, delay: float, token: CancellationToken) -> bool:
        """Sleep ``delay`` seconds unless cancelled first. False if cancelled."""
        sleeper = asyncio.ensure_future(self._sleep(delay))
        cancel_wait = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({sleeper, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            cancel_wait.cancel()
        return not token.is_cancelled
