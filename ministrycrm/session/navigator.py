"""
Navigator - tracks which page the user is on.

The CLI has no browser location bar; pages and the session push route strings
('/login', '/contacts', '/contacts/3') here, and observers hear about it via
EVENT_NAVIGATED.
"""

import logging
import threading
from typing import List

from ministrycrm.bus.events import EVENT_NAVIGATED

logger = logging.getLogger(__name__)

LOGIN_ROUTE = '/login'
DASHBOARD_ROUTE = '/dashboard'
CONTACTS_ROUTE = '/contacts'


class Navigator:

    def __init__(self, bus, initial: str = DASHBOARD_ROUTE):
        self.bus = bus
        self.history: List[str] = [initial]
        # Session expiry can navigate from worker threads
        self._lock = threading.Lock()

    @property
    def current(self) -> str:
        return self.history[-1]

    def push(self, route: str):
        with self._lock:
            if route == self.current:
                return
            previous = self.current
            self.history.append(route)
        logger.debug(f"Navigate {previous} -> {route}")
        self.bus.emit(EVENT_NAVIGATED, {'from': previous, 'to': route})

    def back(self) -> str:
        with self._lock:
            if len(self.history) > 1:
                self.history.pop()
            return self.current

    def at_login(self) -> bool:
        return self.current.startswith(LOGIN_ROUTE)
