"""
Contact pages: the contacts table, one contact's detail view, and the
overview counts by status.
"""

import logging
from typing import List, Optional, Tuple

from ministrycrm.api.errors import NotFoundError
from ministrycrm.bus.events import EVENT_STATUS_CHANGED
from ministrycrm.dashboards.base import Page, lookup
from ministrycrm.models import Contact, Status, StatusHistory
from ministrycrm.session.navigator import CONTACTS_ROUTE

logger = logging.getLogger(__name__)

# Badge colours (click.style names) per progression stage
STATUS_COLORS = {
    'New Contact': 'blue',
    'In Studies': 'yellow',
    'Baptized': 'magenta',
    'Gospel Worker': 'green',
}
DEFAULT_STATUS_COLOR = 'white'

# Contacts fetched for the overview counts
OVERVIEW_LIMIT = 1000


def by_display_order(statuses: List[Status]) -> List[Status]:
    return sorted(statuses, key=lambda s: s.display_order)


class StatusLookup:
    """Shared status-name and badge-colour resolution."""

    statuses: List[Status]

    def status_name(self, status_id: int) -> str:
        return lookup(self.statuses, status_id)

    def status_color(self, status_id: int) -> str:
        return STATUS_COLORS.get(self.status_name(status_id), DEFAULT_STATUS_COLOR)


class ContactsDashboard(StatusLookup, Page):
    """Contacts table with status badges."""

    load_error = 'Failed to load contacts. Please try again later.'

    def __init__(self, app, limit: Optional[int] = None, offset: int = 0):
        super().__init__(app)
        self.limit = limit or app.config.CONTACTS_PAGE_SIZE
        self.offset = offset
        self.contacts: List[Contact] = []
        self.statuses: List[Status] = []

    def load(self) -> bool:
        core = self.app.core
        return self.run_cycle(
            {
                'contacts': lambda: core.list_contacts(self.limit, self.offset),
                'statuses': core.list_statuses,
            },
            self._commit,
        )

    def _commit(self, results):
        self.contacts = results['contacts'].contacts
        self.statuses = by_display_order(results['statuses'].statuses)


class OverviewPage(StatusLookup, Page):
    """Contact totals per status, in display order."""

    load_error = 'Failed to load the overview. Please try again later.'

    def __init__(self, app):
        super().__init__(app)
        self.contacts: List[Contact] = []
        self.statuses: List[Status] = []

    def load(self) -> bool:
        core = self.app.core
        return self.run_cycle(
            {
                'contacts': lambda: core.list_contacts(OVERVIEW_LIMIT, 0),
                'statuses': core.list_statuses,
            },
            self._commit,
        )

    def _commit(self, results):
        self.contacts = results['contacts'].contacts
        self.statuses = by_display_order(results['statuses'].statuses)

    @property
    def total_contacts(self) -> int:
        return len(self.contacts)

    def counts(self) -> List[Tuple[str, int]]:
        """(status name, count) per status, plus 'Unknown' if any contact has an unlisted status."""
        tally = {}
        for c in self.contacts:
            tally[c.current_status_id] = tally.get(c.current_status_id, 0) + 1
        rows = [(s.name, tally.pop(s.id, 0)) for s in self.statuses]
        leftover = sum(tally.values())
        if leftover:
            rows.append(('Unknown', leftover))
        return rows


class ContactDetailPage(StatusLookup, Page):
    """One contact with its status history and a status-change action."""

    load_error = 'Failed to load contact. Please try again.'
    not_found_message = 'Contact not found'

    def __init__(self, app, contact_id: int):
        super().__init__(app)
        self.contact_id = contact_id
        self.contact: Optional[Contact] = None
        self.statuses: List[Status] = []
        self.history: List[StatusHistory] = []
        self.not_found = False

    def load(self) -> bool:
        core = self.app.core
        cid = self.contact_id
        self.not_found = False
        return self.run_cycle(
            {
                'contact': lambda: core.get_contact(cid),
                'statuses': core.list_statuses,
                'history': lambda: core.get_status_history(cid),
            },
            self._commit,
        )

    def load_error_message(self, exc) -> str:
        if isinstance(exc, NotFoundError):
            self.not_found = True
            return self.not_found_message
        return super().load_error_message(exc)

    def _commit(self, results):
        self.contact = results['contact']
        self.statuses = by_display_order(results['statuses'].statuses)
        # Rendered in the order the service returns it
        self.history = results['history'].history

    def change_status(self, status_id: int, notes: str = '') -> bool:
        return self.mutate(
            lambda: self.app.core.update_contact_status(self.contact_id, status_id, notes),
            self.load,
            'Failed to update status. Please try again.',
            event=EVENT_STATUS_CHANGED,
            event_data={'contact_id': self.contact_id, 'status_id': status_id},
        )

    def back(self):
        """Escape hatch from the not-found state."""
        self.app.navigator.push(CONTACTS_ROUTE)
