"""
Bible study dashboard: pick a contact, see their completed lessons and
progress summary.
"""

import logging
from typing import List, Optional

from ministrycrm.bus.events import EVENT_STUDY_DELETED
from ministrycrm.dashboards.base import Page, lookup
from ministrycrm.models import Contact, Lesson, Study, StudyStats

logger = logging.getLogger(__name__)

# Contacts offered in the selector
CONTACT_SELECTOR_LIMIT = 1000


def format_duration(minutes: Optional[int]) -> str:
    if not minutes:
        return '—'
    return f"{minutes // 60}h {minutes % 60}m"


class StudiesDashboard(Page):

    load_error = 'Failed to load data. Please try again later.'
    studies_error = 'Failed to load studies. Please try again later.'

    def __init__(self, app):
        super().__init__(app)
        self.contacts: List[Contact] = []
        self.lessons: List[Lesson] = []
        self.selected_contact_id: Optional[int] = None
        self.studies: List[Study] = []
        self.stats: Optional[StudyStats] = None

    def load(self, contact_id: Optional[int] = None) -> bool:
        """Load contacts + lessons, then the selected (or first) contact's studies."""
        core, studies = self.app.core, self.app.studies
        ok = self.run_cycle(
            {
                'contacts': lambda: core.list_contacts(CONTACT_SELECTOR_LIMIT, 0),
                'lessons': studies.list_lessons,
            },
            self._commit_initial,
            channel='initial',
        )
        if not ok:
            return False
        target = contact_id or self.selected_contact_id
        if target is None and self.contacts:
            target = self.contacts[0].id
        if target is None:
            return True
        return self.select_contact(target)

    def _commit_initial(self, results):
        self.contacts = results['contacts'].contacts
        self.lessons = results['lessons'].lessons

    def select_contact(self, contact_id: int) -> bool:
        self.selected_contact_id = contact_id
        return self.refresh_studies()

    def refresh_studies(self) -> bool:
        if self.selected_contact_id is None:
            return False
        cid = self.selected_contact_id
        studies = self.app.studies
        committed = self.run_cycle(
            {
                'studies': lambda: studies.list_studies(cid),
                'stats': lambda: studies.get_study_stats(cid),
            },
            self._commit_studies,
            channel='studies',
        )
        if not committed and self.error == self.load_error:
            self.error = self.studies_error
        return committed

    def _commit_studies(self, results):
        self.studies = results['studies'].studies
        self.stats = results['stats']

    def contact_name(self, contact_id: Optional[int]) -> str:
        return lookup(self.contacts, contact_id, fallback='Unknown Contact')

    def lesson_title(self, study: Study) -> str:
        return study.lesson_title or lookup(self.lessons, study.lesson_id, 'title', 'Unknown Lesson')

    def delete_study(self, study_id: int) -> bool:
        return self.mutate(
            lambda: self.app.studies.delete_study(study_id),
            self.refresh_studies,
            'Failed to delete study record.',
            event=EVENT_STUDY_DELETED,
            event_data={'study_id': study_id, 'contact_id': self.selected_contact_id},
        )
