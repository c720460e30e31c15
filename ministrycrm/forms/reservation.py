"""
Reservation form - book a room on the dashboard's selected day.

Start and end are entered as HH:MM in the configured timezone and sent to the
service as UTC ISO-8601 timestamps. Overlaps are the service's call.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from ministrycrm.bus.events import EVENT_RESERVATION_CREATED, EVENT_RESERVATION_UPDATED
from ministrycrm.forms.base import Form, FormError
from ministrycrm.models import ReservationPayload

_TIME_FORMAT = '%Y-%m-%d %H:%M'


def to_utc_iso(day: str, hhmm: str, tz) -> str:
    """'2024-06-01', '09:30' in tz -> '2024-06-01T07:30:00Z' (for tz=Europe/Berlin in summer)."""
    try:
        local = datetime.strptime(f"{day} {hhmm}", _TIME_FORMAT).replace(tzinfo=tz)
    except ValueError:
        raise FormError('Times must be in HH:MM format.')
    return local.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def to_local(value: datetime, tz) -> datetime:
    """Service timestamp in tz; a naive timestamp is read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


class ReservationForm(Form):

    defaults = {
        'room_id': '',
        'title': '',
        'description': '',
        'start_time': '',
        'end_time': '',
    }
    labels = {'room_id': 'Room'}
    required = ('room_id', 'title', 'start_time', 'end_time')
    rejected_message = 'Failed to create reservation. The room might not be available for the selected time.'

    def __init__(self, app, dashboard):
        super().__init__(app, on_saved=dashboard.refresh_reservations)
        self.dashboard = dashboard

    @property
    def event(self) -> str:
        return EVENT_RESERVATION_UPDATED if self.editing_id is not None else EVENT_RESERVATION_CREATED

    def edit(self, entity):
        """Pre-fill from a reservation: local HH:MM times, and its day becomes the dashboard's day."""
        super().edit(entity)
        tz = ZoneInfo(self.app.config.TIMEZONE)
        start, end = to_local(entity.start_time, tz), to_local(entity.end_time, tz)
        self.fields['start_time'] = start.strftime('%H:%M')
        self.fields['end_time'] = end.strftime('%H:%M')
        self.dashboard.selected_date = start.date().isoformat()

    def build_payload(self) -> ReservationPayload:
        tz = ZoneInfo(self.app.config.TIMEZONE)
        day = self.dashboard.selected_date
        return ReservationPayload(
            room_id=self.integer('room_id'),
            title=self.text('title'),
            description=self.text('description'),
            start_time=to_utc_iso(day, self.text('start_time'), tz),
            end_time=to_utc_iso(day, self.text('end_time'), tz),
        )

    def create(self, payload):
        return self.app.reservations.create_reservation(payload)

    def save_update(self, entity_id, payload):
        return self.app.reservations.update_reservation(entity_id, payload)
