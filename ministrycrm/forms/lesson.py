"""
Bible study lesson form (admin).
"""

from ministrycrm.bus.events import EVENT_LESSON_SAVED
from ministrycrm.forms.base import Form
from ministrycrm.models import LessonPayload


class LessonForm(Form):

    defaults = {
        'title': '',
        'description': '',
        'sequence_number': '',
    }
    required = ('title', 'sequence_number')
    rejected_message = 'Failed to save lesson. This sequence number or title might already exist.'
    event = EVENT_LESSON_SAVED

    def build_payload(self) -> LessonPayload:
        return LessonPayload(
            title=self.text('title'),
            description=self.text('description'),
            sequence_number=self.integer('sequence_number'),
        )

    def create(self, payload):
        return self.app.studies.create_lesson(payload)

    def save_update(self, entity_id, payload):
        return self.app.studies.update_lesson(entity_id, payload)
