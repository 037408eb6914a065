"""
Polling Loop - cancellable background reads against the ledger.

One loop instance = one asyncio task + one AbortSignal created for it. The
loop reads, publishes, sleeps, and repeats until the signal is aborted or the
publish callback says it is done.

Rules:
- The abort flag is checked before every read and again after it returns.
  A read that completes after abort is dropped; nothing is published.
- Err outcomes are never published and never stop the loop; the next read
  happens after the same fixed interval (no backoff).
- Restarting means closing the old Subscription first. Each loop captures its
  own signal, so an old in-flight read can never publish into new state.
- There is no timeout on a read; a hung call hangs that loop only.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .result import Err, Result

logger = logging.getLogger("hector.polling")

Read = Callable[[], Awaitable[Result]]
# Returns True to keep polling, False when the loop has what it needs.
Publish = Callable[[Any], bool]


class AbortSignal:
    """Cooperative cancellation flag for exactly one loop instance."""

    def __init__(self):
        self.aborted: bool = False
        self._event: Optional[asyncio.Event] = None

    def abort(self) -> None:
        self.aborted = True
        if self._event is not None:
            self._event.set()

    async def sleep(self, seconds: float) -> None:
        """Sleep for `seconds`, waking early if aborted."""
        if self.aborted:
            return
        if self._event is None:
            self._event = asyncio.Event()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass


class Subscription:
    """
    Handle to a running loop. close() is idempotent.

    Closing only flips the signal; a read already in flight is allowed to
    finish and its result is discarded by the loop.
    """

    def __init__(self, name: str, signal: AbortSignal, task: "asyncio.Task"):
        self.name = name
        self.signal = signal
        self.task = task

    @property
    def closed(self) -> bool:
        return self.signal.aborted

    @property
    def done(self) -> bool:
        return self.task.done()

    def close(self) -> None:
        if self.signal.aborted:
            return
        self.signal.abort()
        logger.debug(f"Polling closed: {self.name}")

    async def wait(self) -> None:
        """Wait for the loop task to finish (after close, or after it stopped by itself)."""
        await asyncio.shield(self.task)


async def poll(read: Read, publish: Publish, interval: float, signal: AbortSignal, name: str = "poll") -> None:
    """
    The loop body. Runs until aborted or until `publish` returns False.

    `read` should return a Result; an exception is logged and handled as Err
    so one bad call never kills the loop.
    """
    while not signal.aborted:
        try:
            result = await read()
        except Exception as e:
            logger.warning(f"[{name}] read raised {type(e).__name__}: {e}")
            result = Err(f"{type(e).__name__}: {e}")

        if signal.aborted:
            return

        if result.is_ok:
            if not publish(result.value):
                return
        else:
            logger.debug(f"[{name}] read failed, retrying in {interval}s: {result.reason}")

        await signal.sleep(interval)


def start_polling(read: Read, publish: Publish, interval: float, name: str = "poll") -> Subscription:
    """Start a new loop instance with its own signal. Requires a running event loop."""
    signal = AbortSignal()
    task = asyncio.get_running_loop().create_task(
        poll(read, publish, interval, signal, name),
        name=name,
    )
    logger.debug(f"Polling started: {name} (interval: {interval}s)")
    return Subscription(name, signal, task)
