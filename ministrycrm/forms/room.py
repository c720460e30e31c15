"""
Room form (admin).
"""

import re

from ministrycrm.bus.events import EVENT_ROOM_SAVED
from ministrycrm.forms.base import Form, FormError
from ministrycrm.models import RoomPayload

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


class RoomForm(Form):

    defaults = {
        'name': '',
        'capacity': '',
        'location': '',
        'description': '',
        'availability_start': '',
        'availability_end': '',
        'is_available': True,
    }
    labels = {
        'name': 'Room name',
        'availability_start': 'Available from',
        'availability_end': 'Available until',
    }
    required = ('name', 'capacity')
    rejected_message = 'Failed to save room. Please check all fields and try again.'
    event = EVENT_ROOM_SAVED

    def _time(self, name):
        value = self.text(name)
        if value is not None and not _TIME_RE.match(value):
            raise FormError(f"{self.label(name)} must be a time in HH:MM format.")
        return value

    def build_payload(self) -> RoomPayload:
        capacity = self.integer('capacity')
        if capacity < 1:
            raise FormError('Capacity must be at least 1.')
        return RoomPayload(
            name=self.text('name'),
            capacity=capacity,
            location=self.text('location'),
            description=self.text('description'),
            availability_start=self._time('availability_start'),
            availability_end=self._time('availability_end'),
            is_available=bool(self.fields['is_available']),
        )

    def create(self, payload):
        return self.app.reservations.create_room(payload)

    def save_update(self, entity_id, payload):
        return self.app.reservations.update_room(entity_id, payload)
