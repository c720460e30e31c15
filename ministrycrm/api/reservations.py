"""
Reservation service API - rooms and room bookings.
"""

from typing import Optional

from ministrycrm.api.client import ServiceClient, parse
from ministrycrm.logging_config import log_call
from ministrycrm.models import (
    Reservation,
    ReservationList,
    ReservationPayload,
    Room,
    RoomList,
    RoomPayload,
)


class ReservationsAPI:
    """Wrapper over the rooms/reservations service."""

    def __init__(self, client: ServiceClient):
        self.client = client

    # Rooms --------------------------------------------------------------------

    @log_call
    def list_rooms(self) -> RoomList:
        return parse(RoomList, self.client.get('/rooms'))

    @log_call
    def create_room(self, payload: RoomPayload) -> Room:
        return parse(Room, self.client.post('/rooms', json=payload.to_json()))

    @log_call
    def update_room(self, room_id: int, payload: RoomPayload) -> Room:
        return parse(Room, self.client.put(f'/rooms/{room_id}', json=payload.to_json()))

    @log_call
    def delete_room(self, room_id: int) -> None:
        self.client.delete(f'/rooms/{room_id}')

    # Reservations -------------------------------------------------------------

    @log_call
    def reservations_by_date(self, start: str, end: str, room_id: Optional[int] = None) -> ReservationList:
        """Reservations between two YYYY-MM-DD dates (inclusive), optionally for one room."""
        params = {'start': start, 'end': end}
        if room_id:
            params['room_id'] = room_id
        return parse(ReservationList, self.client.get('/reservations/by-date', params=params))

    @log_call
    def create_reservation(self, payload: ReservationPayload) -> Reservation:
        return parse(Reservation, self.client.post('/reservations', json=payload.to_json()))

    @log_call
    def update_reservation(self, reservation_id: int, payload: ReservationPayload) -> Reservation:
        return parse(Reservation, self.client.put(f'/reservations/{reservation_id}', json=payload.to_json()))

    @log_call
    def delete_reservation(self, reservation_id: int) -> None:
        self.client.delete(f'/reservations/{reservation_id}')
