"""
Admin dashboard: rooms, users and Bible study lessons, one tab at a time.
"""

import logging
from typing import List

from ministrycrm.bus.events import EVENT_LESSON_DELETED, EVENT_ROOM_DELETED
from ministrycrm.dashboards.base import Page
from ministrycrm.forms.lesson import LessonForm
from ministrycrm.forms.room import RoomForm
from ministrycrm.models import Lesson, Room, User

logger = logging.getLogger(__name__)

TABS = ('rooms', 'users', 'lessons')

ROLE_COLORS = {'admin': 'magenta', 'user': 'blue'}


class AdminDashboard(Page):

    def __init__(self, app, tab: str = 'rooms'):
        super().__init__(app)
        if tab not in TABS:
            raise ValueError(f"Unknown admin tab '{tab}'. Choose from: {', '.join(TABS)}")
        self.active_tab = tab
        self.rooms: List[Room] = []
        self.users: List[User] = []
        self.lessons: List[Lesson] = []
        self.room_form = RoomForm(app, on_saved=self.refresh_rooms)
        self.lesson_form = LessonForm(app, on_saved=self.refresh_lessons)

    @property
    def load_error(self) -> str:
        return f"Failed to load {self.active_tab}. Please ensure you have admin permissions."

    def select_tab(self, tab: str) -> bool:
        if tab not in TABS:
            raise ValueError(f"Unknown admin tab '{tab}'. Choose from: {', '.join(TABS)}")
        self.active_tab = tab
        return self.load()

    def load(self) -> bool:
        return {
            'rooms': self.refresh_rooms,
            'users': self.refresh_users,
            'lessons': self.refresh_lessons,
        }[self.active_tab]()

    # All tabs share one channel: switching tabs drops the previous tab's in-flight load

    def refresh_rooms(self) -> bool:
        return self.run_cycle({'rooms': self.app.reservations.list_rooms}, self._commit_rooms, channel='tab')

    def _commit_rooms(self, results):
        self.rooms = results['rooms'].rooms

    def refresh_users(self) -> bool:
        return self.run_cycle({'users': self.app.core.list_users}, self._commit_users, channel='tab')

    def _commit_users(self, results):
        self.users = results['users'].users

    def refresh_lessons(self) -> bool:
        return self.run_cycle({'lessons': self.app.studies.list_lessons}, self._commit_lessons, channel='tab')

    def _commit_lessons(self, results):
        self.lessons = sorted(results['lessons'].lessons, key=lambda l: l.sequence_number)

    # Rooms --------------------------------------------------------------------

    def edit_room(self, room: Room):
        self.room_form.edit(room)

    def delete_room(self, room_id: int) -> bool:
        return self.mutate(
            lambda: self.app.reservations.delete_room(room_id),
            self.refresh_rooms,
            'Failed to delete room. It may have existing reservations.',
            event=EVENT_ROOM_DELETED,
            event_data={'room_id': room_id},
        )

    # Lessons ------------------------------------------------------------------

    def edit_lesson(self, lesson: Lesson):
        self.lesson_form.edit(lesson)

    def delete_lesson(self, lesson_id: int) -> bool:
        return self.mutate(
            lambda: self.app.studies.delete_lesson(lesson_id),
            self.refresh_lessons,
            'Failed to delete lesson. It may be referenced in study records.',
            event=EVENT_LESSON_DELETED,
            event_data={'lesson_id': lesson_id},
        )
