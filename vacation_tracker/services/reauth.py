"""
De-duplicated re-authentication trigger.

Several requests can fail with an expired token at the same moment. The
first failure fires the listeners; the rest are absorbed until the flag
resets after a short delay.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ReauthSignal:
    """Single-shot flag that re-arms itself `reset_after` seconds after firing."""

    def __init__(self, reset_after: float = 1.5) -> None:
        self.reset_after = reset_after
        self._fired = False
        self._listeners: list[Listener] = []
        self._reset_handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._fired

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def trigger(self) -> bool:
        """Fire once. Returns True only for the call that actually fired."""
        if self._fired:
            return False
        self._fired = True

        for listener in self._listeners:
            try:
                listener()
            except Exception:
                logger.exception("Re-authentication listener failed")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to schedule on: stays armed until reset() is called
            return True
        self._reset_handle = loop.call_later(self.reset_after, self.reset)
        return True

    def reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
        self._fired = False
