"""One-shot countdown barrier."""

import asyncio


class CountDownLatch:
    """Opens once ``count`` arrivals have been recorded. Never resets."""

    def __init__(self, count: int):
        if count < 0:
            raise ValueError(f"count must not be negative, got {count}")
        self._count = count
        self._opened = asyncio.Event()
        if count == 0:
            self._opened.set()

    @property
    def count(self) -> int:
        return self._count

    def is_open(self) -> bool:
        return self._opened.is_set()

    def count_down(self) -> None:
        if self._count == 0:
            return
        self._count -= 1
        if self._count == 0:
            self._opened.set()

    async def wait(self, timeout: float | None = None) -> None:
        """Block until open. Raises asyncio.TimeoutError after ``timeout`` seconds."""
        if self._opened.is_set():
            return
        await asyncio.wait_for(self._opened.wait(), timeout)
