"""
Core service API - auth, users, contacts and statuses.
One method per backend operation; every response is validated on the way in.
"""

import logging
from typing import Optional

from ministrycrm.api.client import ServiceClient, parse
from ministrycrm.logging_config import log_call
from ministrycrm.models import (
    AuthResponse,
    Contact,
    ContactPayload,
    ContactsPage,
    LoginRequest,
    RegisterRequest,
    Status,
    StatusChange,
    StatusHistoryPage,
    StatusList,
    User,
    UserList,
)

logger = logging.getLogger(__name__)


class CoreAPI:
    """Wrapper over the core service (auth/contacts/statuses)."""

    def __init__(self, client: ServiceClient):
        self.client = client

    # -------------------------------------------------------------------------
    # Auth & users
    # -------------------------------------------------------------------------

    @log_call
    def login(self, username: str, password: str) -> AuthResponse:
        body = LoginRequest(username=username, password=password)
        return parse(AuthResponse, self.client.post('/login', json=body.to_json(), authenticated=False))

    @log_call
    def register(self, request: RegisterRequest) -> AuthResponse:
        return parse(AuthResponse, self.client.post('/register', json=request.to_json(), authenticated=False))

    @log_call
    def get_current_user(self) -> User:
        return parse(User, self.client.get('/users/me'))

    @log_call
    def list_users(self) -> UserList:
        return parse(UserList, self.client.get('/users'))

    # -------------------------------------------------------------------------
    # Contacts
    # -------------------------------------------------------------------------

    @log_call
    def list_contacts(self, limit: int = 20, offset: int = 0) -> ContactsPage:
        return parse(ContactsPage, self.client.get('/contacts', params={'limit': limit, 'offset': offset}))

    @log_call
    def get_contact(self, contact_id: int) -> Contact:
        return parse(Contact, self.client.get(f'/contacts/{contact_id}'))

    @log_call
    def create_contact(self, payload: ContactPayload) -> Contact:
        return parse(Contact, self.client.post('/contacts', json=payload.to_json()))

    @log_call
    def update_contact(self, contact_id: int, payload: ContactPayload) -> Contact:
        return parse(Contact, self.client.put(f'/contacts/{contact_id}', json=payload.to_json()))

    @log_call
    def update_contact_status(self, contact_id: int, status_id: int, notes: Optional[str] = '') -> Contact:
        body = StatusChange(status_id=status_id, notes=notes or '')
        return parse(Contact, self.client.put(f'/contacts/{contact_id}/status', json=body.to_json()))

    @log_call
    def get_status_history(self, contact_id: int) -> StatusHistoryPage:
        return parse(StatusHistoryPage, self.client.get(f'/contacts/{contact_id}/status-history'))

    # -------------------------------------------------------------------------
    # Statuses
    # -------------------------------------------------------------------------

    @log_call
    def list_statuses(self) -> StatusList:
        return parse(StatusList, self.client.get('/statuses'))

    @log_call
    def get_status(self, status_id: int) -> Status:
        return parse(Status, self.client.get(f'/statuses/{status_id}'))
