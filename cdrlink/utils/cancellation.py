"""Cooperative cancellation for long record scans.

A superseded analysis run is abandoned by setting its token; every component
scan calls ``checkpoint()`` periodically and stops with AnalysisCancelled.
"""

from __future__ import annotations

import threading
from typing import Iterable, Iterator, Optional, TypeVar

from config.defaults import CANCEL_CHECK_INTERVAL

T = TypeVar("T")


class AnalysisCancelled(RuntimeError):
    """Raised inside a component scan once its cancellation token is set."""


class CancellationToken:
    """Thread-safe cancellation flag shared by all components of one run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled("analysis cancelled")


def checkpoint(token: Optional[CancellationToken]) -> None:
    """Raise AnalysisCancelled if ``token`` is set; no-op for None."""
    if token is not None:
        token.raise_if_cancelled()


def checked(
    items: Iterable[T],
    token: Optional[CancellationToken],
    interval: int = CANCEL_CHECK_INTERVAL,
) -> Iterator[T]:
    """Yield ``items``, checking ``token`` before the first and every ``interval`` items.

    Args:
        items: Any iterable (typically records).
        token: Cancellation token or None.
        interval: Number of items between checks.

    Yields:
        The items of ``items`` unchanged.
    """
    if token is None:
        yield from items
        return
    for i, item in enumerate(items):
        if i % interval == 0:
            token.raise_if_cancelled()
        yield item
