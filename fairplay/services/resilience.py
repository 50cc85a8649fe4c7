# fairplay/services/resilience.py
"""
Concurrency primitives for the shared page.

- PageEpoch: generation counter bumped on every navigation. Work captures a
  token when it starts and checks it at each resumption point; results for a
  superseded page are dropped instead of applied.
- SerialChannel: FIFO lock that funnels every mutation of the shared document
  so two apply/revert flows never interleave their script executions.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from fairplay.errors import StaleEpochError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Page Epoch
# -----------------------------------------------------------------------------


@dataclass
class PageEpoch:
    """
    Page-load generation counter.

    Usage:
        token = epoch.current
        html = await provider.analyze(...)
        if not epoch.is_current(token):
            return  # page changed while we waited
    """

    _value: int = field(default=0, init=False)

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        """Invalidate all in-flight work. Returns the new epoch."""
        self._value += 1
        logger.debug(f"Page epoch advanced to {self._value}")
        return self._value

    def is_current(self, token: int) -> bool:
        return token == self._value

    def ensure_current(self, token: int) -> None:
        """Raise StaleEpochError if `token` has been superseded."""
        if token != self._value:
            raise StaleEpochError(f"Result for page epoch {token} arrived after epoch {self._value} started")


# -----------------------------------------------------------------------------
# Serial Channel
# -----------------------------------------------------------------------------


@dataclass
class SerialChannel:
    """
    Ordered executor for mutations of one shared resource.

    asyncio.Lock wakes waiters in FIFO order, so operations run in the order
    they were submitted.

    Usage:
        channel = SerialChannel(name="document")

        async with channel:
            await surface.replace_html(pristine)
            for script in scripts:
                await surface.execute_script(script)

        # or for a single call
        await channel.run(surface.execute_script, script)
    """

    name: str = "document"
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run one coroutine function with exclusive access."""
        async with self._lock:
            return await func(*args, **kwargs)

    async def __aenter__(self):
        await self._lock.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self._lock.release()
