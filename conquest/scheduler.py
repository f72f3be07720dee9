"""Cancellable phase and turn timers."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class GameTimer:
    """A single-slot timer on the running event loop.

    Arming cancels whatever was armed before. Every arm or cancel bumps the
    epoch, and a callback only runs if the epoch it captured is still
    current, so a stale timeout can never act on a newer state.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        on_error: Optional[Callable[[str, Exception], None]] = None,
    ):
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self.on_error = on_error
        self.epoch = 0
        self.label: Optional[str] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def arm(self, delay: float, callback: Callable[[], None], label: str) -> int:
        """Schedule callback after delay seconds, replacing any armed timer."""
        self.cancel()
        epoch = self.epoch
        self.label = label
        self._handle = self._get_loop().call_later(delay, self._fire, epoch, callback, label)
        logger.debug(f"Armed {label} timer for {delay}s (epoch {epoch})")
        return epoch

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            logger.debug(f"Cancelled {self.label} timer (epoch {self.epoch})")
        self._handle = None
        self.label = None
        self.epoch += 1

    def _fire(self, epoch: int, callback: Callable[[], None], label: str) -> None:
        if epoch != self.epoch:
            logger.debug(f"Dropping stale {label} timer (epoch {epoch}, now {self.epoch})")
            return
        self._handle = None
        self.label = None
        try:
            callback()
        except Exception as e:
            logger.exception(f"Error in {label} timer callback: {e}")
            if self.on_error:
                try:
                    self.on_error(label, e)
                except Exception as hook_error:
                    logger.error(f"Timer error hook failed: {hook_error}")
