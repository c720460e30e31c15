"""
Auth Session - who is logged in.

An explicit session object, built once per process and handed to the pages
and the CLI. Lifecycle:

  hydrate()    read token + user snapshot from storage; show the cached user
               straight away (optimistic), or send the user to /login
  revalidate() ask the core service who the token belongs to; refresh the
               snapshot on success, log out on any failure
  logout()     clear both storage keys, forget the user, go to /login
  expire()     same teardown, triggered by a 401 from any service
"""

import json
import logging
import threading
from concurrent.futures import Executor, Future
from typing import Optional

from pydantic import ValidationError

from ministrycrm.api.client import TOKEN_KEY, USER_KEY
from ministrycrm.api.errors import ApiError
from ministrycrm.bus.events import EVENT_LOGGED_IN, EVENT_LOGGED_OUT, EVENT_SESSION_EXPIRED
from ministrycrm.models import AuthResponse, RegisterRequest, User
from ministrycrm.session.navigator import DASHBOARD_ROUTE, LOGIN_ROUTE

logger = logging.getLogger(__name__)


class AuthSession:

    def __init__(self, storage, navigator, bus, core=None):
        self.storage = storage
        self.navigator = navigator
        self.bus = bus
        self.core = core
        self.user: Optional[User] = None
        self.loading = True
        self._lock = threading.Lock()

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == 'admin'

    @property
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY)

    def _read_snapshot(self) -> Optional[User]:
        raw = self.storage.get_item(USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Stored user snapshot is unreadable, ignoring it: {e}")
            return None

    def _persist(self, auth: AuthResponse):
        self.storage.set_item(TOKEN_KEY, auth.token)
        self.storage.set_item(USER_KEY, auth.user.model_dump_json())

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def hydrate(self) -> Optional[User]:
        """Load the cached session synchronously. Never touches the network."""
        token = self.token
        cached = self._read_snapshot()

        with self._lock:
            if token and cached:
                self.user = cached
                self.loading = False
                logger.debug(f"Session hydrated for {cached.username}")
                return cached
            self.user = None
            self.loading = False

        if not self.navigator.at_login():
            self.navigator.push(LOGIN_ROUTE)
        return None

    def revalidate(self) -> Optional[User]:
        """Confirm the token with GET /users/me; log out if that fails."""
        if not self.token:
            return None
        try:
            fresh = self.core.get_current_user()
        except ApiError as e:
            logger.warning(f"Session revalidation failed, logging out: {e}")
            # A 401 has already expired the session through the client
            if self.user is not None or self.token:
                self.logout()
            return None

        with self._lock:
            self.user = fresh
        self.storage.set_item(USER_KEY, fresh.model_dump_json())
        logger.info(f"Session revalidated for {fresh.username}")
        return fresh

    def start(self, executor: Optional[Executor] = None) -> Optional[Future]:
        """
        Hydrate, then revalidate in the background.
        Returns the revalidation future, or None when there is nothing to check.
        """
        if self.hydrate() is None:
            return None
        if executor is None:
            future: Future = Future()
            future.set_result(self.revalidate())
            return future
        return executor.submit(self.revalidate)

    def _teardown(self):
        """Clear stored and in-memory session. Returns (had a session, previous user)."""
        with self._lock:
            previous = self.user
            active = previous is not None or self.token is not None
            if active:
                self.storage.clear(TOKEN_KEY, USER_KEY)
                self.user = None
        self.navigator.push(LOGIN_ROUTE)
        return active, previous

    def logout(self):
        _, previous = self._teardown()
        logger.info(f"Logged out {previous.username if previous else '(no user)'}")
        self.bus.emit(EVENT_LOGGED_OUT, {'username': previous.username if previous else None})

    def expire(self):
        """401 from a backend: the stored token is no longer any good."""
        active, previous = self._teardown()
        # Parallel requests can all see the same 401; only the first one ends the session
        if not active:
            logger.debug("Session already expired, ignoring repeated 401")
            return
        logger.warning(f"Session expired for {previous.username if previous else '(no user)'}")
        self.bus.emit(EVENT_SESSION_EXPIRED, {'username': previous.username if previous else None})

    # -------------------------------------------------------------------------
    # Login / register
    # -------------------------------------------------------------------------

    def _begin(self, auth: AuthResponse) -> User:
        self._persist(auth)
        with self._lock:
            self.user = auth.user
            self.loading = False
        self.navigator.push(DASHBOARD_ROUTE)
        logger.info(f"Logged in as {auth.user.username} ({auth.user.role})")
        self.bus.emit(EVENT_LOGGED_IN, {'username': auth.user.username, 'role': auth.user.role})
        return auth.user

    def login(self, username: str, password: str) -> User:
        return self._begin(self.core.login(username, password))

    def register(self, request: RegisterRequest) -> User:
        return self._begin(self.core.register(request))
