"""
Data Models
Pydantic schemas for every backend request and response. Responses are
validated where they enter the client, so a malformed payload fails fast
instead of leaking missing fields into the pages.
"""

from datetime import date, datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

# Go encodes an unset time.Time as this instant
_ZERO_TIME_PREFIX = '0001-01-01'


def _timestamp(value):
    """Accept ISO timestamps, bare dates, or the zero time (read as None)."""
    if value is None or value == '':
        return None
    if isinstance(value, str):
        if value.startswith(_ZERO_TIME_PREFIX):
            return None
        if len(value) == 10:
            return f"{value}T00:00:00"
    return value


def _empty_list(value):
    """Backends send null for empty slices."""
    return [] if value is None else value


Timestamp = Annotated[Optional[datetime], BeforeValidator(_timestamp)]


class Schema(BaseModel):
    """Base for all response schemas: unknown fields are ignored."""
    model_config = ConfigDict(extra='ignore')


class Payload(BaseModel):
    """Base for request bodies: unknown fields are rejected."""
    model_config = ConfigDict(extra='forbid')

    def to_json(self) -> dict:
        return self.model_dump(mode='json', exclude_none=True)


# =============================================================================
# USERS & AUTH
# =============================================================================

class User(Schema):
    """Logged-in user or admin listing entry"""
    id: int
    username: str
    email: str = ''
    role: Literal['admin', 'user'] = 'user'
    full_name: str = ''
    phone: Optional[str] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None


class UserList(Schema):
    users: Annotated[List[User], BeforeValidator(_empty_list)] = Field(default_factory=list)


class AuthResponse(Schema):
    token: str = Field(..., min_length=1)
    user: User


class LoginRequest(Payload):
    username: str
    password: str


class RegisterRequest(Payload):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    email: str
    full_name: str
    phone: Optional[str] = None
    role: Literal['admin', 'user'] = 'user'


# =============================================================================
# CONTACTS & STATUSES
# =============================================================================

class Contact(Schema):
    """A tracked individual progressing through engagement statuses"""
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    date_added: Timestamp = None
    last_updated: Timestamp = None
    current_status_id: int


class ContactsPage(Schema):
    contacts: Annotated[List[Contact], BeforeValidator(_empty_list)] = Field(default_factory=list)
    limit: int = 0
    offset: int = 0


class ContactPayload(Payload):
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    current_status_id: int = 1


class Status(Schema):
    """A named stage in a contact's progression"""
    id: int
    name: str
    description: Optional[str] = None
    display_order: int = 0


class StatusList(Schema):
    statuses: Annotated[List[Status], BeforeValidator(_empty_list)] = Field(default_factory=list)


class StatusChange(Payload):
    status_id: int
    notes: str = ''


class StatusHistory(Schema):
    id: int
    contact_id: int
    status_id: int
    status_name: str = ''
    notes: Optional[str] = None
    date_changed: Timestamp = None


class StatusHistoryPage(Schema):
    contact_id: int
    history: Annotated[List[StatusHistory], BeforeValidator(_empty_list)] = Field(default_factory=list)


# =============================================================================
# LESSONS & STUDIES
# =============================================================================

class Lesson(Schema):
    id: int
    title: str
    description: Optional[str] = None
    sequence_number: int = 0
    created_at: Timestamp = None
    updated_at: Timestamp = None


class LessonList(Schema):
    lessons: Annotated[List[Lesson], BeforeValidator(_empty_list)] = Field(default_factory=list)


class LessonPayload(Payload):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    sequence_number: int


class Study(Schema):
    """A completed lesson for one contact"""
    id: int
    contact_id: int
    lesson_id: int
    lesson_title: Optional[str] = None
    date_completed: Timestamp = None
    location: Optional[str] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    taught_by_user_id: Optional[int] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None


class StudyList(Schema):
    contact_id: Optional[int] = None
    studies: Annotated[List[Study], BeforeValidator(_empty_list)] = Field(default_factory=list)


class StudyStats(Schema):
    """Progress summary computed by the study service"""
    total_lessons: int = 0
    completed_lessons: int = 0
    progress_percentage: float = 0.0
    last_study_date: Timestamp = None
    total_study_time_minutes: int = 0


class StudyPayload(Payload):
    contact_id: int
    lesson_id: int
    date_completed: date
    location: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


# =============================================================================
# ROOMS & RESERVATIONS
# =============================================================================

class Room(Schema):
    id: int
    name: str
    capacity: int
    location: Optional[str] = None
    description: Optional[str] = None
    availability_start: Optional[str] = None
    availability_end: Optional[str] = None
    is_available: bool = True

    @field_validator('availability_start', 'availability_end', mode='before')
    @classmethod
    def _blank_is_none(cls, value):
        return value or None


class RoomList(Schema):
    rooms: Annotated[List[Room], BeforeValidator(_empty_list)] = Field(default_factory=list)


class RoomPayload(Payload):
    name: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=1)
    location: Optional[str] = None
    description: Optional[str] = None
    availability_start: Optional[str] = None
    availability_end: Optional[str] = None
    is_available: bool = True


class Reservation(Schema):
    """A booked time interval for a room"""
    id: int
    room_id: int
    room_name: Optional[str] = None
    user_id: Optional[int] = None
    contact_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    recurring_type: str = 'none'
    recurring_end_date: Timestamp = None

    @field_validator('contact_id', mode='before')
    @classmethod
    def _zero_is_none(cls, value):
        return value or None


class ReservationList(Schema):
    reservations: Annotated[List[Reservation], BeforeValidator(_empty_list)] = Field(default_factory=list)
    room_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ReservationPayload(Payload):
    room_id: int
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_time: str
    end_time: str
