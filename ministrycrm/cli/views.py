"""
Terminal rendering for pages and lists.
Every list has an explicit empty state; every foreign key has a fallback label.
"""

from datetime import datetime
from typing import Iterable, Optional

import click

from ministrycrm.dashboards.admin import ROLE_COLORS
from ministrycrm.dashboards.studies import format_duration
from ministrycrm.models import Lesson, Room, Status, User

DASH = '—'


def badge(text: str, color: str, width: int = 0) -> str:
    """Coloured [label], padded to width before styling so columns line up."""
    return click.style(f"[{text}]".ljust(width), fg=color)


def fmt_date(value: Optional[datetime]) -> str:
    return value.date().isoformat() if value else DASH


def fmt_datetime(value: Optional[datetime]) -> str:
    return value.strftime('%Y-%m-%d %H:%M') if value else DASH


def fmt_time(value: datetime, tz) -> str:
    return value.astimezone(tz).strftime('%H:%M')


def heading(title: str):
    click.echo(f"\n{'=' * 80}")
    click.echo(title)
    click.echo(f"{'=' * 80}")


def render_error(message: str, retry: Optional[str] = None):
    click.echo(f"Error: {message}", err=True)
    if retry:
        click.echo(f"Try again: {retry}", err=True)


# =============================================================================
# CONTACTS
# =============================================================================

def render_contacts(page):
    if not page.contacts:
        click.echo('No contacts found. Run "crm contacts add" to get started.')
        return

    click.echo(f"\nFound {len(page.contacts)} contacts:\n")
    click.echo(f"{'ID':<6} {'Name':<28} {'Status':<18} {'Phone':<16} {'Added':<10}")
    click.echo("-" * 82)

    for c in page.contacts:
        click.echo(
            f"{c.id:<6} {c.name[:26]:<28} "
            f"{badge(page.status_name(c.current_status_id), page.status_color(c.current_status_id), 18)} "
            f"{(c.phone or DASH)[:14]:<16} {fmt_date(c.date_added):<10}"
        )
        click.echo(f"{'':<6} {(c.email or 'No email')[:40]}")


def render_contact_detail(page):
    c = page.contact
    heading(f"CONTACT #{c.id}: {c.name}")
    click.echo(f"Status:      {badge(page.status_name(c.current_status_id), page.status_color(c.current_status_id))}")
    click.echo(f"Email:       {c.email or '(not set)'}")
    click.echo(f"Phone:       {c.phone or '(not set)'}")
    click.echo(f"Location:    {c.location or '(not set)'}")
    click.echo(f"Added:       {fmt_date(c.date_added)}")
    click.echo(f"Updated:     {fmt_date(c.last_updated)}")

    if c.notes:
        click.echo(f"\nNotes:\n{c.notes}")

    heading("STATUS HISTORY")
    if page.history:
        for h in page.history:
            click.echo(f"\n[{fmt_datetime(h.date_changed)}] {h.status_name or page.status_name(h.status_id)}")
            if h.notes:
                click.echo(f"  {h.notes}")
    else:
        click.echo("No status changes recorded.")

    click.echo(f"\nChange status: crm contacts status {c.id} <status_id> [--notes ...]")
    click.echo(f"Add Bible study session: crm studies add {c.id}")
    click.echo()


def render_statuses(statuses: Iterable[Status]):
    statuses = list(statuses)
    if not statuses:
        click.echo("No statuses found.")
        return
    click.echo(f"{'ID':<6} {'Order':<7} {'Name':<20} Description")
    click.echo("-" * 70)
    for s in statuses:
        click.echo(f"{s.id:<6} {s.display_order:<7} {s.name[:18]:<20} {s.description or ''}")


def render_overview(page, user: Optional[User]):
    heading(f"DASHBOARD{' - Welcome, ' + user.full_name if user and user.full_name else ''}")
    click.echo(f"Total contacts: {page.total_contacts}\n")
    rows = page.counts()
    if not rows:
        click.echo("No statuses found.")
        return
    click.echo(f"{'Status':<20} {'Contacts':>8}")
    click.echo("-" * 30)
    for name, count in rows:
        click.echo(f"{name[:18]:<20} {count:>8}")
    click.echo()


# =============================================================================
# STUDIES
# =============================================================================

def render_studies(page):
    if not page.contacts:
        click.echo('No contacts found. Run "crm contacts add" to get started.')
        return

    cid = page.selected_contact_id
    heading(f"BIBLE STUDIES: {page.contact_name(cid)} (#{cid})")

    stats = page.stats
    if stats is not None:
        click.echo(
            f"Progress:    {stats.completed_lessons}/{stats.total_lessons} lessons "
            f"({stats.progress_percentage:.0f}%)"
        )
        click.echo(f"Last study:  {fmt_date(stats.last_study_date) if stats.last_study_date else 'None'}")
        click.echo(f"Study time:  {format_duration(stats.total_study_time_minutes)}")
        click.echo()

    if not page.studies:
        click.echo(f'No studies found. Run "crm studies add {cid}" to record one.')
        return

    click.echo(f"{'ID':<6} {'Lesson':<32} {'Completed':<11} {'Duration':<9} {'Location':<18}")
    click.echo("-" * 80)
    for s in page.studies:
        click.echo(
            f"{s.id:<6} {page.lesson_title(s)[:30]:<32} {fmt_date(s.date_completed):<11} "
            f"{format_duration(s.duration_minutes):<9} {(s.location or DASH)[:16]:<18}"
        )


def render_lessons(lessons: Iterable[Lesson]):
    lessons = list(lessons)
    if not lessons:
        click.echo("No lessons found.")
        return
    click.echo(f"{'ID':<6} {'Seq':<5} {'Title':<34} Description")
    click.echo("-" * 80)
    for lesson in lessons:
        click.echo(
            f"{lesson.id:<6} {lesson.sequence_number:<5} {lesson.title[:32]:<34} "
            f"{(lesson.description or DASH)[:34]}"
        )


# =============================================================================
# ROOMS & RESERVATIONS
# =============================================================================

def room_availability(room: Room) -> str:
    if room.availability_start and room.availability_end:
        return f"{room.availability_start} - {room.availability_end}"
    return 'All day'


def render_rooms(rooms: Iterable[Room]):
    rooms = list(rooms)
    if not rooms:
        click.echo("No rooms found.")
        return
    click.echo(f"{'ID':<6} {'Name':<24} {'Cap':>4}  {'Location':<18} {'Availability':<14} Status")
    click.echo("-" * 82)
    for r in rooms:
        status = badge('Available', 'green') if r.is_available else badge('Unavailable', 'red')
        click.echo(
            f"{r.id:<6} {r.name[:22]:<24} {r.capacity:>4}  {(r.location or DASH)[:16]:<18} "
            f"{room_availability(r):<14} {status}"
        )


def render_reservations(page, tz):
    heading(f"ROOM RESERVATIONS: {page.selected_date} ({page.room_label(page.selected_room_id)})")
    if not page.reservations:
        click.echo('No reservations found. Run "crm reservations book" to book a room.')
        return
    click.echo(f"{'ID':<6} {'Time':<13} {'Room':<22} Title")
    click.echo("-" * 80)
    for r in page.reservations:
        when = f"{fmt_time(r.start_time, tz)}-{fmt_time(r.end_time, tz)}"
        click.echo(f"{r.id:<6} {when:<13} {page.room_name(r)[:20]:<22} {r.title}")
        if r.description:
            click.echo(f"{'':<6} {r.description[:70]}")


def render_users(users: Iterable[User]):
    users = list(users)
    if not users:
        click.echo("No users found.")
        return
    click.echo(f"{'ID':<6} {'Username':<18} {'Full Name':<24} {'Email':<26} Role")
    click.echo("-" * 86)
    for u in users:
        click.echo(
            f"{u.id:<6} {u.username[:16]:<18} {u.full_name[:22]:<24} {u.email[:24]:<26} "
            f"{badge(u.role, ROLE_COLORS.get(u.role, 'white'))}"
        )
