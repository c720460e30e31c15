"""
Study form - record a completed lesson for a contact.
"""

from datetime import date

from ministrycrm.bus.events import EVENT_STUDY_SAVED
from ministrycrm.forms.base import Form, FormError
from ministrycrm.models import StudyPayload


class StudyForm(Form):

    defaults = {
        'contact_id': '',
        'lesson_id': '',
        'date_completed': '',
        'location': '',
        'duration_minutes': '',
        'notes': '',
    }
    labels = {
        'contact_id': 'Contact',
        'lesson_id': 'Lesson',
        'date_completed': 'Date completed',
        'duration_minutes': 'Duration (minutes)',
    }
    required = ('contact_id', 'lesson_id', 'date_completed')
    rejected_message = 'Failed to save study. Please check the lesson and date and try again.'
    event = EVENT_STUDY_SAVED

    def edit(self, entity):
        super().edit(entity)
        if entity.date_completed is not None:
            self.fields['date_completed'] = entity.date_completed.date().isoformat()

    def build_payload(self) -> StudyPayload:
        try:
            completed = date.fromisoformat(self.text('date_completed'))
        except ValueError:
            raise FormError('Date completed must be in YYYY-MM-DD format.')
        duration = self.integer('duration_minutes')
        if duration is not None and duration < 0:
            raise FormError('Duration cannot be negative.')
        return StudyPayload(
            contact_id=self.integer('contact_id'),
            lesson_id=self.integer('lesson_id'),
            date_completed=completed,
            location=self.text('location'),
            duration_minutes=duration,
            notes=self.text('notes'),
        )

    def create(self, payload):
        return self.app.studies.create_study(payload)

    def save_update(self, entity_id, payload):
        return self.app.studies.update_study(entity_id, payload)
