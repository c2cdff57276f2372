"""
Single-flight token refresh.

At most one refresh runs per coordinator.  Callers that hit a 401 while
it is running wait for it and share its outcome; callers whose request
went out before the last refresh finished reuse that finished outcome
instead of starting another one.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable

from wardclient.errors import SessionExpired

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    def __init__(self, refresh_fn: Callable[[], str]):
        self._refresh_fn = refresh_fn
        self._lock = threading.Lock()
        self._inflight: Future | None = None
        self._last: Future | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        """Bumped each time a refresh finishes, successfully or not."""
        with self._lock:
            return self._generation

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def refresh(self, seen_generation: int | None = None) -> str:
        """Return a fresh access token or raise the shared failure.

        ``seen_generation`` is the generation observed when the failing
        request was sent.
        """
        with self._lock:
            if self._inflight is not None:
                flight, leader = self._inflight, False
            elif (seen_generation is not None and seen_generation < self._generation
                  and self._last is not None):
                flight, leader = self._last, False
            else:
                flight = self._inflight = Future()
                leader = True

        if leader:
            self._lead(flight)
        return flight.result()

    def _lead(self, flight: Future) -> None:
        logger.debug("refreshing access token")
        try:
            flight.set_result(self._refresh_fn())
        except Exception as exc:
            flight.set_exception(exc)
        finally:
            if not flight.done():
                flight.set_exception(SessionExpired("Token refresh was interrupted."))
            with self._lock:
                self._inflight = None
                self._last = flight
                self._generation += 1
