"""
Room reservations for one day, optionally narrowed to one room.
"""

import logging
from datetime import date
from typing import List, Optional

from ministrycrm.bus.events import EVENT_RESERVATION_CANCELLED
from ministrycrm.dashboards.base import Page, lookup
from ministrycrm.forms.reservation import ReservationForm
from ministrycrm.models import Reservation, Room

logger = logging.getLogger(__name__)


class ReservationsDashboard(Page):

    load_error = 'Failed to load reservations. Please try again later.'
    rooms_error = 'Failed to load rooms. Please try again later.'

    def __init__(self, app, selected_date: Optional[str] = None, room_id: Optional[int] = None):
        super().__init__(app)
        self.rooms: List[Room] = []
        self.reservations: List[Reservation] = []
        self.selected_date = selected_date or date.today().isoformat()
        self.selected_room_id = room_id

        self.form = ReservationForm(app, self)

    def load(self) -> bool:
        """Rooms for the selectors, then the day's reservations."""
        if not self.refresh_rooms():
            return False
        return self.refresh_reservations()

    def refresh_rooms(self) -> bool:
        committed = self.run_cycle(
            {'rooms': self.app.reservations.list_rooms},
            self._commit_rooms,
            channel='rooms',
        )
        if not committed and self.error == self.load_error:
            self.error = self.rooms_error
        return committed

    def _commit_rooms(self, results):
        self.rooms = results['rooms'].rooms

    def refresh_reservations(self) -> bool:
        day, room_id = self.selected_date, self.selected_room_id
        api = self.app.reservations
        return self.run_cycle(
            {'reservations': lambda: api.reservations_by_date(day, day, room_id)},
            self._commit_reservations,
            channel='reservations',
        )

    def _commit_reservations(self, results):
        reservations = results['reservations'].reservations
        if self.selected_room_id:
            reservations = [r for r in reservations if r.room_id == self.selected_room_id]
        self.reservations = reservations

    def select_date(self, day: str) -> bool:
        """Switch to another YYYY-MM-DD day; ValueError on a malformed date."""
        date.fromisoformat(day)
        self.selected_date = day
        return self.refresh_reservations()

    def select_room(self, room_id: Optional[int]) -> bool:
        self.selected_room_id = room_id or None
        return self.refresh_reservations()

    def room_name(self, reservation: Reservation) -> str:
        return reservation.room_name or lookup(self.rooms, reservation.room_id, fallback='Unknown Room')

    def room_label(self, room_id: Optional[int]) -> str:
        if not room_id:
            return 'All Rooms'
        return lookup(self.rooms, room_id, fallback='Unknown Room')

    def edit_reservation(self, reservation: Reservation):
        self.form.edit(reservation)

    def cancel(self, reservation_id: int) -> bool:
        return self.mutate(
            lambda: self.app.reservations.delete_reservation(reservation_id),
            self.refresh_reservations,
            'Failed to cancel reservation.',
            event=EVENT_RESERVATION_CANCELLED,
            event_data={'reservation_id': reservation_id},
        )
