"""
Page base - the fetch-and-render cycle every dashboard shares.

A load cycle:
  1. take a fresh generation number for its channel
  2. run all fetches concurrently and wait for every one
  3. if any failed: keep the previous state, show one error message
  4. if a newer cycle started on the same channel meanwhile: drop the results
  5. otherwise commit every result together

Channels let a page run independent cycles (e.g. "contacts" and "studies")
without one discarding the other.
"""

import logging
import threading
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Iterable, Optional

from ministrycrm.api.errors import ApiError, SESSION_EXPIRED_MESSAGE, UnauthorizedError, describe_error

logger = logging.getLogger(__name__)

UNKNOWN = 'Unknown'


def fetch_all(executor: Executor, fetches: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
    """
    Run every fetch concurrently; all-or-nothing.
    Waits for all of them, then re-raises the first failure (in dict order).
    """
    futures = {name: executor.submit(fn) for name, fn in fetches.items()}
    results = {}
    failure: Optional[BaseException] = None
    for name, future in futures.items():
        try:
            results[name] = future.result()
        except Exception as e:
            logger.debug(f"fetch '{name}' failed: {type(e).__name__}: {e}")
            if failure is None:
                failure = e
    if failure is not None:
        raise failure
    return results


def lookup(items: Iterable[Any], item_id: Optional[int], attr: str = 'name', fallback: str = UNKNOWN) -> str:
    """Linear scan for item_id; fallback label when it is not there."""
    for item in items:
        if item.id == item_id:
            return getattr(item, attr)
    return fallback


class Page:
    """Loading flag, error message and generation-guarded load cycles."""

    load_error = 'Failed to load data. Please try again later.'

    def __init__(self, app):
        self.app = app
        self.loading = True
        self.error = ''
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def _next_generation(self, channel: str) -> int:
        with self._lock:
            generation = self._generations.get(channel, 0) + 1
            self._generations[channel] = generation
            return generation

    def is_current(self, channel: str, generation: int) -> bool:
        with self._lock:
            return self._generations.get(channel) == generation

    def load_error_message(self, exc: ApiError) -> str:
        if isinstance(exc, UnauthorizedError):
            return SESSION_EXPIRED_MESSAGE
        return self.load_error

    def run_cycle(
        self,
        fetches: Dict[str, Callable[[], Any]],
        commit: Callable[[Dict[str, Any]], None],
        channel: str = 'main',
    ) -> bool:
        """Run one load cycle. Returns True if its results were committed."""
        generation = self._next_generation(channel)
        self.loading = True
        self.error = ''

        try:
            results = fetch_all(self.app.executor, fetches)
        except ApiError as e:
            if not self.is_current(channel, generation):
                logger.debug(f"{type(self).__name__}[{channel}] stale cycle {generation} failed, ignored")
                return False
            logger.error(f"{type(self).__name__}[{channel}] load failed: {type(e).__name__}: {e}")
            self.error = self.load_error_message(e)
            self.loading = False
            return False

        with self._lock:
            if self._generations.get(channel) != generation:
                logger.debug(f"{type(self).__name__}[{channel}] stale cycle {generation} discarded")
                return False
            commit(results)
            self.loading = False
        return True

    def mutate(
        self,
        action: Callable[[], Any],
        refetch: Callable[[], Any],
        rejected_message: str,
        event: Optional[str] = None,
        event_data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Send one mutation, then refetch the affected list.
        A failed mutation leaves the page state untouched apart from `error`.
        """
        self.error = ''
        try:
            action()
        except ApiError as e:
            logger.error(f"{type(self).__name__} mutation failed: {type(e).__name__}: {e}")
            self.error = describe_error(e, rejected_message)
            return False
        if event:
            self.app.bus.emit(event, event_data or {})
        refetch()
        return True
