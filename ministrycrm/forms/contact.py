"""
Contact form - create a contact or edit an existing one.
On success the user is sent back to the contacts list.
"""

import logging
from typing import List, Optional

from ministrycrm.api.errors import ApiError
from ministrycrm.bus.events import EVENT_CONTACT_CREATED, EVENT_CONTACT_UPDATED
from ministrycrm.dashboards.base import fetch_all
from ministrycrm.forms.base import Form
from ministrycrm.models import ContactPayload, Status
from ministrycrm.session.navigator import CONTACTS_ROUTE

logger = logging.getLogger(__name__)

# "New Contact"
DEFAULT_STATUS_ID = 1


class ContactForm(Form):

    defaults = {
        'name': '',
        'location': '',
        'phone': '',
        'email': '',
        'notes': '',
        'current_status_id': DEFAULT_STATUS_ID,
    }
    labels = {'current_status_id': 'Status'}
    required = ('name',)
    rejected_message = 'Failed to save contact. Please check the details and try again.'

    def __init__(self, app, contact_id: Optional[int] = None):
        super().__init__(app)
        self.contact_id = contact_id
        self.statuses: List[Status] = []
        self.is_open = True

    @property
    def is_edit(self) -> bool:
        return self.editing_id is not None

    @property
    def event(self) -> str:
        return EVENT_CONTACT_UPDATED if self.is_edit else EVENT_CONTACT_CREATED

    def load(self) -> bool:
        """Fetch the status choices and, when editing, the contact itself."""
        core = self.app.core
        fetches = {'statuses': core.list_statuses}
        if self.contact_id is not None:
            cid = self.contact_id
            fetches['contact'] = lambda: core.get_contact(cid)
        try:
            results = fetch_all(self.app.executor, fetches)
        except ApiError as e:
            logger.error(f"ContactForm load failed: {type(e).__name__}: {e}")
            self.error = 'Failed to load data. Please try again.'
            return False
        self.statuses = sorted(results['statuses'].statuses, key=lambda s: s.display_order)
        if 'contact' in results:
            self.edit(results['contact'])
        return True

    def set(self, name, value):
        # The status selector holds an int as soon as it changes
        if name == 'current_status_id':
            value = int(value, 10) if isinstance(value, str) else int(value)
        super().set(name, value)

    def edit(self, entity):
        super().edit(entity)
        self.fields['current_status_id'] = entity.current_status_id

    def build_payload(self) -> ContactPayload:
        return ContactPayload(
            name=self.text('name'),
            location=self.text('location'),
            phone=self.text('phone'),
            email=self.text('email'),
            notes=self.text('notes'),
            current_status_id=self.fields['current_status_id'],
        )

    def create(self, payload):
        return self.app.core.create_contact(payload)

    def save_update(self, entity_id, payload):
        return self.app.core.update_contact(entity_id, payload)

    def after_save(self, saved):
        self.app.navigator.push(CONTACTS_ROUTE)

    def cancel(self):
        self.app.navigator.push(CONTACTS_ROUTE)
