"""test_batch_translator.py - retry, back-off and cancellation of one batch"""

import asyncio
import unittest

from base_test import FakeTranslator, SleepRecorder, broken, rate_limited
from src.core.batch_translator import BatchTranslator
from src.core.cancellation import CancellationToken

TEXTS = ["Hello", "Goodbye", "Thanks"]


class TestBatchTranslator(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.sleep = SleepRecorder()
        self.batch = BatchTranslator(max_retries=3, rate_limit_backoff=8.0,
                                     retry_backoff=2.0, sleep=self.sleep)

    async def test_success_preserves_order(self):
        backend = FakeTranslator(transform=str.upper)
        result = await self.batch.translate(TEXTS, backend)
        self.assertEqual(result, ["HELLO", "GOODBYE", "THANKS"])
        self.assertEqual(len(backend.calls), 1)
        self.assertEqual(self.sleep.delays, [])

    async def test_rate_limit_backs_off_longer_and_retries(self):
        backend = FakeTranslator(script=[rate_limited(), None])
        result = await self.batch.translate(TEXTS, backend)
        self.assertEqual(result, ["<Hello>", "<Goodbye>", "<Thanks>"])
        self.assertEqual(self.sleep.delays, [8.0])

    async def test_generic_failure_backs_off_shorter(self):
        backend = FakeTranslator(script=[broken(), None])
        await self.batch.translate(TEXTS, backend)
        self.assertEqual(self.sleep.delays, [2.0])

    async def test_unexpected_exception_is_retryable(self):
        backend = FakeTranslator(script=[ConnectionResetError("peer"), None])
        result = await self.batch.translate(TEXTS, backend)
        self.assertEqual(result[0], "<Hello>")

    async def test_malformed_results_are_retried(self):
        for bad in (["only one"], "not a list", ["a", 2, "c"]):
            with self.subTest(bad=bad):
                backend = FakeTranslator(script=[bad, None])
                result = await self.batch.translate(TEXTS, backend)
                self.assertEqual(len(backend.calls), 2)
                self.assertEqual(result, ["<Hello>", "<Goodbye>", "<Thanks>"])

    async def test_exhausted_rate_limits_return_all_null(self):
        backend = FakeTranslator(script=[rate_limited()] * 3)
        result = await self.batch.translate(TEXTS, backend)
        self.assertEqual(result, [None, None, None])
        self.assertEqual(len(backend.calls), 3)
        self.assertEqual(self.sleep.delays, [8.0, 8.0])

    async def test_exhausted_generic_failures_return_all_null(self):
        backend = FakeTranslator(script=[broken(), ["x"], broken()])
        result = await self.batch.translate(TEXTS, backend)
        self.assertEqual(result, [None, None, None])
        self.assertEqual(self.sleep.delays, [2.0, 2.0])

    async def test_cancelled_before_call(self):
        token = CancellationToken()
        token.cancel()
        backend = FakeTranslator()
        result = await self.batch.translate(TEXTS, backend, token)
        self.assertEqual(result, [None, None, None])
        self.assertEqual(backend.calls, [])

    async def test_cancelled_during_call_discards_result(self):
        token = CancellationToken()
        backend = FakeTranslator(on_call=lambda n: token.cancel())
        result = await self.batch.translate(TEXTS, backend, token)
        self.assertEqual(result, [None, None, None])

    async def test_cancelled_during_hanging_call(self):
        token = CancellationToken()

        class HangingTranslator(FakeTranslator):
            async def translate_batch(self, texts):
                self.calls.append(list(texts))
                await asyncio.sleep(3600)

        backend = HangingTranslator()
        task = asyncio.ensure_future(self.batch.translate(TEXTS, backend, token))
        await asyncio.sleep(0.01)
        token.cancel()
        result = await asyncio.wait_for(task, timeout=5)
        self.assertEqual(result, [None, None, None])
        self.assertEqual(len(backend.calls), 1)

    async def test_cancelled_during_back_off(self):
        token = CancellationToken()

        async def slow_sleep(seconds):
            token.cancel()
            await asyncio.sleep(3600)

        batch = BatchTranslator(max_retries=3, sleep=slow_sleep)
        backend = FakeTranslator(script=[rate_limited(), None])
        result = await asyncio.wait_for(batch.translate(TEXTS, backend, token), timeout=5)
        self.assertEqual(result, [None, None, None])
        self.assertEqual(len(backend.calls), 1)

    async def test_length_always_matches_input(self):
        scenarios = [
            [],
            [rate_limited()] * 3,
            [broken()] * 3,
            [["too", "many", "items", "here"]] * 3,
        ]
        for script in scenarios:
            with self.subTest(script=script):
                result = await self.batch.translate(TEXTS, FakeTranslator(script=list(script)))
                self.assertEqual(len(result), len(TEXTS))

    async def test_empty_batch(self):
        backend = FakeTranslator()
        self.assertEqual(await self.batch.translate([], backend), [])
        self.assertEqual(backend.calls, [])


if __name__ == '__main__':
    unittest.main()
