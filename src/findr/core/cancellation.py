"""Cooperative cancellation for aggregated searches."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from findr.exceptions import SearchCancelledError

logger = logging.getLogger(__name__)

DEFAULT_REASON = "Search cancelled"


class CancellationToken:
    """Cooperative cancellation token for one search.

    Create a token, pass it to ``aggregator.search_stream(query, cancel=token)``,
    and call ``token.cancel()`` to stop the search. Providers receive the
    aggregator's own token and may check ``cancelled`` or ``await wait()``.

    Tokens can be chained with ``link``: cancelling the parent cancels the
    child with the same reason.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._callbacks: list[Callable[[str], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = DEFAULT_REASON) -> None:
        """Request cancellation. Idempotent: the first reason wins."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                logger.warning("Cancellation callback failed", exc_info=True)

    def on_cancel(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register ``callback(reason)`` to run on cancellation.

        Runs immediately if the token is already cancelled.

        Returns:
            A function that unregisters the callback.
        """
        if self._event.is_set():
            callback(self._reason or DEFAULT_REASON)
            return lambda: None
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove

    def link(self, child: CancellationToken) -> Callable[[], None]:
        """Propagate this token's cancellation to ``child``."""
        return self.on_cancel(child.cancel)

    async def wait(self) -> str:
        """Wait until the token is cancelled and return the reason."""
        await self._event.wait()
        return self._reason or DEFAULT_REASON

    def raise_if_cancelled(self) -> None:
        """Raise ``SearchCancelledError`` if cancellation was requested."""
        if self._event.is_set():
            raise SearchCancelledError(self._reason or DEFAULT_REASON)
