import asyncio
import threading

POLL_INTERVAL = 0.05


class CancellationToken:
    """
    Shared stop flag for a whole run.
    Safe to raise from another thread (e.g. a UI stop button).
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        """Return once the token is cancelled."""
        while not self._event.is_set():
            await asyncio.sleep(POLL_INTERVAL)
