#!/usr/bin/env python3
"""
Ministry CRM Terminal CLI
Command-line interface for contacts, Bible studies, room reservations and admin.
"""

import logging
from datetime import date
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

import click

from ministrycrm.api.errors import ApiError, UnauthorizedError, describe_error
from ministrycrm.app import build_app
from ministrycrm.bus.events import EVENT_SESSION_EXPIRED
from ministrycrm.cli import views
from ministrycrm.dashboards.admin import AdminDashboard
from ministrycrm.dashboards.contacts import ContactDetailPage, ContactsDashboard, OverviewPage
from ministrycrm.dashboards.reservations import ReservationsDashboard
from ministrycrm.dashboards.studies import StudiesDashboard
from ministrycrm.forms.contact import ContactForm
from ministrycrm.forms.study import StudyForm
from ministrycrm.logging_config import configure_logging, log_call
from ministrycrm.models import RegisterRequest, User

_ISO_DATE = click.DateTime(formats=['%Y-%m-%d'])


def _on_session_expired(event_data):
    click.echo("You have been signed out. Run: crm login", err=True)


def _session_user(app) -> Optional[User]:
    """Cached user (revalidated in the background), or None with a login hint."""
    app.session.start(app.executor)
    user = app.session.user
    if user is None:
        click.echo("Not logged in. Run: crm login", err=True)
    return user


def _require_login(ctx):
    if _session_user(ctx.obj) is None:
        ctx.exit(1)


def _loaded(ok: bool, page, retry: str) -> bool:
    if not ok:
        views.render_error(page.error, retry)
    return ok


def _refreshed(page, retry: str) -> bool:
    """After a successful save: False (error shown) if the list refetch failed."""
    if page.error:
        views.render_error(page.error, retry)
        return False
    return True


def _prompt_text(form, name: str, label: Optional[str] = None):
    """Prompt for one form field, offering its current value as the default."""
    current = form.fields[name]
    current = '' if current is None else str(current)
    value = click.prompt(label or form.label(name), default=current, show_default=bool(current))
    form.set(name, value)


def _prompt_fields(form, names: Iterable[str]):
    for name in names:
        _prompt_text(form, name)


def _submit(form, saved_label: str) -> Optional[object]:
    saved = form.submit()
    if saved is None:
        click.echo(f"Error: {form.error}", err=True)
        return None
    click.echo(f"\n✓ {saved_label} #{saved.id}")
    return saved


@click.group()
@click.pass_context
def cli(ctx):
    """Ministry CRM - Contacts, Bible Studies & Room Reservations"""
    configure_logging()
    app = build_app()
    ctx.obj = app
    app.bus.on(EVENT_SESSION_EXPIRED, _on_session_expired)

    def _close():
        app.close()
        app.bus.off(EVENT_SESSION_EXPIRED, _on_session_expired)

    ctx.call_on_close(_close)


# =============================================================================
# SESSION COMMANDS
# =============================================================================

@cli.command('login')
@click.option('--username', prompt=True, help='Account username')
@click.option('--password', prompt=True, hide_input=True, help='Account password')
@click.pass_obj
@log_call
def login(app, username, password):
    """Log in and remember the session"""
    try:
        user = app.session.login(username, password)
    except UnauthorizedError:
        click.echo("Error: Invalid username or password.", err=True)
        return
    except ApiError as e:
        click.echo(f"Error: {describe_error(e, 'Login failed. Please check your details.')}", err=True)
        return
    click.echo(f"✓ Logged in as {user.username} ({user.role})")


@cli.command('register')
@click.pass_obj
@log_call
def register(app):
    """Create an account (interactive)"""
    click.echo("\n=== REGISTER ===\n")
    username = click.prompt("Username")
    full_name = click.prompt("Full name")
    email = click.prompt("Email")
    phone = click.prompt("Phone", default="", show_default=False) or None
    password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    try:
        user = app.session.register(RegisterRequest(
            username=username, password=password, email=email, full_name=full_name, phone=phone,
        ))
    except ApiError as e:
        click.echo(
            f"Error: {describe_error(e, 'Registration failed. The username or email may already be taken.')}",
            err=True,
        )
        return
    click.echo(f"\n✓ Registered and logged in as {user.username}")


@cli.command('logout')
@click.pass_obj
@log_call
def logout(app):
    """Forget the stored session"""
    app.session.hydrate()
    app.session.logout()
    click.echo("✓ Logged out")


@cli.command('whoami')
@click.pass_obj
@log_call
def whoami(app):
    """Show the logged-in user, confirmed with the server"""
    future = app.session.start(app.executor)
    cached = app.session.user
    if cached is None:
        click.echo("Not logged in. Run: crm login", err=True)
        return

    try:
        fresh = future.result() if future is not None else cached
    except Exception as e:
        logging.getLogger("ministrycrm").error(f"whoami revalidation crashed: {e}", exc_info=True)
        click.echo(f"Unexpected error: {e}", err=True)
        return
    if fresh is None:
        click.echo("Session is no longer valid. Run: crm login", err=True)
        return

    click.echo(f"{fresh.full_name or fresh.username} ({fresh.username})")
    click.echo(f"Email: {fresh.email or '(not set)'}")
    click.echo(f"Role:  {views.badge(fresh.role, 'magenta' if fresh.role == 'admin' else 'blue')}")


@cli.command('overview')
@click.pass_obj
@log_call
def overview(app):
    """Contact totals per status"""
    user = _session_user(app)
    if user is None:
        return
    page = OverviewPage(app)
    if _loaded(page.load(), page, "crm overview"):
        views.render_overview(page, user)


@cli.command('statuses')
@click.pass_obj
@log_call
def statuses(app):
    """List contact statuses in display order"""
    if _session_user(app) is None:
        return
    try:
        result = app.core.list_statuses()
    except ApiError as e:
        views.render_error(describe_error(e, 'Failed to load statuses.'), "crm statuses")
        return
    views.render_statuses(sorted(result.statuses, key=lambda s: s.display_order))


# =============================================================================
# CONTACTS COMMANDS
# =============================================================================

@cli.group()
@click.pass_context
def contacts(ctx):
    """Manage contacts and their status"""
    _require_login(ctx)


@contacts.command('list')
@click.option('--limit', type=int, default=None, help='Page size (default: CONTACTS_PAGE_SIZE)')
@click.option('--offset', type=int, default=0, help='Rows to skip')
@click.pass_obj
@log_call
def contacts_list(app, limit, offset):
    """List contacts with their status"""
    page = ContactsDashboard(app, limit=limit, offset=offset)
    if not _loaded(page.load(), page, "crm contacts list"):
        return
    views.render_contacts(page)
    if len(page.contacts) == page.limit:
        click.echo(f"\nNext page: crm contacts list --offset {offset + page.limit}")


@contacts.command('show')
@click.argument('contact_id', type=int)
@click.pass_obj
@log_call
def contacts_show(app, contact_id):
    """Show contact details and status history"""
    logger = logging.getLogger("ministrycrm")
    page = ContactDetailPage(app, contact_id)
    if page.load():
        views.render_contact_detail(page)
        return

    if page.not_found:
        logger.warning(f"contacts_show | contact_id={contact_id} not found")
        click.echo(f"{page.error}: #{contact_id}", err=True)
        click.echo("Back to list: crm contacts list", err=True)
        page.back()
        return
    views.render_error(page.error, f"crm contacts show {contact_id}")


def _prompt_status(form):
    click.echo("\nStatuses:")
    for s in form.statuses:
        click.echo(f"  {s.id}: {s.name}")
    form.set('current_status_id', click.prompt("Status ID", type=int, default=form.fields['current_status_id']))


@contacts.command('add')
@click.pass_obj
@log_call
def contacts_add(app):
    """Add a new contact (interactive)"""
    form = ContactForm(app)
    if not form.load():
        views.render_error(form.error, "crm contacts add")
        return

    click.echo("\n=== ADD NEW CONTACT ===\n")
    _prompt_fields(form, ('name', 'location', 'phone', 'email', 'notes'))
    _prompt_status(form)
    saved = _submit(form, "Created contact")
    if saved is not None:
        click.echo(f"  {saved.name}")


@contacts.command('edit')
@click.argument('contact_id', type=int)
@click.option('--name', help='Update name')
@click.option('--email', help='Update email')
@click.option('--phone', help='Update phone')
@click.option('--location', help='Update location')
@click.option('--notes', help='Update notes')
@click.pass_obj
@log_call
def contacts_edit(app, contact_id, name, email, phone, location, notes):
    """Edit a contact (options set fields; without options, prompts for each)"""
    form = ContactForm(app, contact_id)
    if not form.load():
        views.render_error(form.error, f"crm contacts edit {contact_id}")
        return

    updates = {
        k: v for k, v in
        {'name': name, 'email': email, 'phone': phone, 'location': location, 'notes': notes}.items()
        if v is not None
    }
    if updates:
        form.update(**updates)
    else:
        click.echo(f"\n=== EDIT CONTACT #{contact_id} ===\n")
        _prompt_fields(form, ('name', 'location', 'phone', 'email', 'notes'))
        _prompt_status(form)

    _submit(form, "Updated contact")


@contacts.command('status')
@click.argument('contact_id', type=int)
@click.argument('status_id', type=int)
@click.option('--notes', default='', help='Why the status changed')
@click.pass_obj
@log_call
def contacts_status(app, contact_id, status_id, notes):
    """Move a contact to another status"""
    page = ContactDetailPage(app, contact_id)
    if not page.load():
        views.render_error(page.error, f"crm contacts status {contact_id} {status_id}")
        return

    previous = page.status_name(page.contact.current_status_id)
    if not page.change_status(status_id, notes):
        views.render_error(page.error, f"crm contacts status {contact_id} {status_id}")
        return
    click.echo(f"✓ {page.contact.name}: {previous} → {page.status_name(status_id)}")


# =============================================================================
# BIBLE STUDY COMMANDS
# =============================================================================

@cli.group()
@click.pass_context
def studies(ctx):
    """Record and review Bible study sessions"""
    _require_login(ctx)


@studies.command('list')
@click.option('--contact', 'contact_id', type=int, help='Contact to show (default: first contact)')
@click.pass_obj
@log_call
def studies_list(app, contact_id):
    """Completed lessons and progress for one contact"""
    page = StudiesDashboard(app)
    ok = page.load(contact_id)
    retry = f"crm studies list{f' --contact {contact_id}' if contact_id else ''}"
    if not ok and not page.contacts:
        views.render_error(page.error, retry)
        return
    views.render_studies(page)
    if page.error:
        views.render_error(page.error, retry)


def _prompt_study(form, page):
    click.echo("\nLessons:")
    if not page.lessons:
        click.echo("  No lessons found. An admin can add them: crm admin lessons add")
    for lesson in sorted(page.lessons, key=lambda l: l.sequence_number):
        click.echo(f"  {lesson.id}: {lesson.sequence_number}. {lesson.title}")
    _prompt_text(form, 'lesson_id', "Lesson ID")
    if not form.fields['date_completed']:
        form.set('date_completed', date.today().isoformat())
    _prompt_text(form, 'date_completed', "Date completed (YYYY-MM-DD)")
    _prompt_fields(form, ('location', 'duration_minutes', 'notes'))


@studies.command('add')
@click.argument('contact_id', type=int)
@click.pass_obj
@log_call
def studies_add(app, contact_id):
    """Record a completed lesson for a contact (interactive)"""
    page = StudiesDashboard(app)
    if not _loaded(page.load(contact_id), page, f"crm studies add {contact_id}"):
        return

    click.echo(f"\n=== RECORD BIBLE STUDY: {page.contact_name(contact_id)} ===")
    form = StudyForm(app, on_saved=page.refresh_studies)
    form.set('contact_id', str(contact_id))
    _prompt_study(form, page)
    if _submit(form, "Recorded study") is not None and _refreshed(page, f"crm studies list --contact {contact_id}"):
        views.render_studies(page)


@studies.command('edit')
@click.argument('study_id', type=int)
@click.pass_obj
@log_call
def studies_edit(app, study_id):
    """Edit a study record (interactive)"""
    try:
        study = app.studies.get_study(study_id)
    except ApiError as e:
        views.render_error(describe_error(e, f"Study #{study_id} not found."), f"crm studies edit {study_id}")
        return

    page = StudiesDashboard(app)
    if not _loaded(page.load(study.contact_id), page, f"crm studies edit {study_id}"):
        return

    click.echo(f"\n=== EDIT STUDY #{study_id}: {page.contact_name(study.contact_id)} ===")
    form = StudyForm(app, on_saved=page.refresh_studies)
    form.edit(study)
    _prompt_study(form, page)
    retry = f"crm studies list --contact {study.contact_id}"
    if _submit(form, "Updated study") is not None and _refreshed(page, retry):
        views.render_studies(page)


@studies.command('delete')
@click.argument('study_id', type=int)
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@click.pass_obj
@log_call
def studies_delete(app, study_id, yes):
    """Delete a study record"""
    try:
        study = app.studies.get_study(study_id)
    except ApiError as e:
        views.render_error(describe_error(e, f"Study #{study_id} not found."), f"crm studies delete {study_id}")
        return

    page = StudiesDashboard(app)
    if not _loaded(page.load(study.contact_id), page, f"crm studies delete {study_id}"):
        return

    if not yes and not click.confirm(
        f"Delete study #{study_id} ({page.lesson_title(study)}) for {page.contact_name(study.contact_id)}?"
    ):
        click.echo("Cancelled.")
        return

    if not page.delete_study(study_id):
        views.render_error(page.error, f"crm studies delete {study_id}")
        return
    click.echo(f"✓ Deleted study #{study_id}")
    if _refreshed(page, f"crm studies list --contact {study.contact_id}"):
        views.render_studies(page)


# =============================================================================
# RESERVATION COMMANDS
# =============================================================================

@cli.group()
@click.pass_context
def reservations(ctx):
    """Book and review room reservations"""
    _require_login(ctx)


def _day(value) -> Optional[str]:
    return value.date().isoformat() if value else None


def _list_retry(page) -> str:
    return f"crm reservations list --date {page.selected_date}"


@reservations.command('list')
@click.option('--date', 'day', type=_ISO_DATE, help='Day to show (default: today)')
@click.option('--room', 'room_id', type=int, help='Only this room')
@click.pass_obj
@log_call
def reservations_list(app, day, room_id):
    """Reservations for one day"""
    page = ReservationsDashboard(app, selected_date=_day(day), room_id=room_id)
    if not _loaded(page.load(), page, "crm reservations list"):
        return
    views.render_reservations(page, ZoneInfo(app.config.TIMEZONE))


@reservations.command('book')
@click.option('--date', 'day', type=_ISO_DATE, help='Day to book (default: today)')
@click.pass_obj
@log_call
def reservations_book(app, day):
    """Book a room (interactive; times in HH:MM)"""
    page = ReservationsDashboard(app, selected_date=_day(day))
    if not _loaded(page.refresh_rooms(), page, "crm reservations book"):
        return

    if not page.rooms:
        click.echo("No rooms found. An admin can add one: crm admin rooms add")
        return

    click.echo(f"\n=== BOOK A ROOM: {page.selected_date} ({app.config.TIMEZONE}) ===\n")
    views.render_rooms(page.rooms)
    click.echo()

    form = page.form
    form.open()
    _prompt_text(form, 'room_id', "Room ID")
    _prompt_fields(form, ('title', 'description'))
    _prompt_text(form, 'start_time', "Start time (HH:MM)")
    _prompt_text(form, 'end_time', "End time (HH:MM)")

    if _submit(form, "Booked reservation") is not None and _refreshed(page, _list_retry(page)):
        views.render_reservations(page, ZoneInfo(app.config.TIMEZONE))


@reservations.command('edit')
@click.argument('reservation_id', type=int)
@click.option('--date', 'day', type=_ISO_DATE, help='Day the reservation is on (default: today)')
@click.pass_obj
@log_call
def reservations_edit(app, reservation_id, day):
    """Change a reservation's room, title or times (interactive)"""
    page = ReservationsDashboard(app, selected_date=_day(day))
    if not _loaded(page.load(), page, f"crm reservations edit {reservation_id}"):
        return
    reservation = next((r for r in page.reservations if r.id == reservation_id), None)
    if reservation is None:
        click.echo(f"Reservation #{reservation_id} not found on {page.selected_date}.", err=True)
        click.echo("Find it with: crm reservations list --date <YYYY-MM-DD>", err=True)
        return

    page.edit_reservation(reservation)
    click.echo(f"\n=== EDIT RESERVATION #{reservation_id}: {page.selected_date} ({app.config.TIMEZONE}) ===\n")
    views.render_rooms(page.rooms)
    click.echo()

    form = page.form
    _prompt_text(form, 'room_id', "Room ID")
    _prompt_fields(form, ('title', 'description'))
    _prompt_text(form, 'start_time', "Start time (HH:MM)")
    _prompt_text(form, 'end_time', "End time (HH:MM)")

    if _submit(form, "Updated reservation") is not None and _refreshed(page, _list_retry(page)):
        views.render_reservations(page, ZoneInfo(app.config.TIMEZONE))


@reservations.command('cancel')
@click.argument('reservation_id', type=int)
@click.option('--date', 'day', type=_ISO_DATE, help='Day to show afterwards (default: today)')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@click.pass_obj
@log_call
def reservations_cancel(app, reservation_id, day, yes):
    """Cancel a reservation"""
    if not yes and not click.confirm(f"Cancel reservation #{reservation_id}?"):
        click.echo("Cancelled.")
        return

    page = ReservationsDashboard(app, selected_date=_day(day))
    # Room names for the list shown afterwards
    if not _loaded(page.refresh_rooms(), page, f"crm reservations cancel {reservation_id}"):
        return
    if not page.cancel(reservation_id):
        views.render_error(page.error, f"crm reservations cancel {reservation_id}")
        return
    click.echo(f"✓ Cancelled reservation #{reservation_id}")
    if _refreshed(page, _list_retry(page)):
        views.render_reservations(page, ZoneInfo(app.config.TIMEZONE))


# =============================================================================
# ADMIN COMMANDS
# =============================================================================

@cli.group()
@click.pass_context
def admin(ctx):
    """Rooms, users and lessons (admin only)"""
    _require_login(ctx)
    if not ctx.obj.session.is_admin:
        click.echo("Admin access required.", err=True)
        ctx.exit(1)


@admin.command('users')
@click.pass_obj
@log_call
def admin_users(app):
    """List user accounts"""
    page = AdminDashboard(app, 'users')
    if _loaded(page.load(), page, "crm admin users"):
        views.render_users(page.users)


# --- rooms -------------------------------------------------------------------

@admin.group('rooms')
def admin_rooms():
    """Manage rooms"""
    pass


@admin_rooms.command('list')
@click.pass_obj
@log_call
def admin_rooms_list(app):
    """List rooms"""
    page = AdminDashboard(app, 'rooms')
    if _loaded(page.load(), page, "crm admin rooms list"):
        views.render_rooms(page.rooms)


def _prompt_room(form):
    _prompt_fields(form, ('name', 'capacity', 'location', 'description'))
    _prompt_text(form, 'availability_start', "Available from (HH:MM, Enter for all day)")
    _prompt_text(form, 'availability_end', "Available until (HH:MM, Enter for all day)")
    form.set('is_available', click.confirm("Available for booking?", default=form.fields['is_available']))


@admin_rooms.command('add')
@click.pass_obj
@log_call
def admin_rooms_add(app):
    """Add a room (interactive)"""
    page = AdminDashboard(app, 'rooms')
    click.echo("\n=== ADD ROOM ===\n")
    page.room_form.open()
    _prompt_room(page.room_form)
    if _submit(page.room_form, "Created room") is not None and _refreshed(page, "crm admin rooms list"):
        views.render_rooms(page.rooms)


@admin_rooms.command('edit')
@click.argument('room_id', type=int)
@click.pass_obj
@log_call
def admin_rooms_edit(app, room_id):
    """Edit a room (interactive)"""
    page = AdminDashboard(app, 'rooms')
    if not _loaded(page.load(), page, f"crm admin rooms edit {room_id}"):
        return
    room = next((r for r in page.rooms if r.id == room_id), None)
    if room is None:
        click.echo(f"Room #{room_id} not found.", err=True)
        return

    click.echo(f"\n=== EDIT ROOM #{room_id} ===\n")
    page.edit_room(room)
    _prompt_room(page.room_form)
    if _submit(page.room_form, "Updated room") is not None and _refreshed(page, "crm admin rooms list"):
        views.render_rooms(page.rooms)


@admin_rooms.command('delete')
@click.argument('room_id', type=int)
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@click.pass_obj
@log_call
def admin_rooms_delete(app, room_id, yes):
    """Delete a room"""
    if not yes and not click.confirm(f"Delete room #{room_id}?"):
        click.echo("Cancelled.")
        return
    page = AdminDashboard(app, 'rooms')
    if not page.delete_room(room_id):
        views.render_error(page.error, f"crm admin rooms delete {room_id}")
        return
    click.echo(f"✓ Deleted room #{room_id}")
    if _refreshed(page, "crm admin rooms list"):
        views.render_rooms(page.rooms)


# --- lessons -----------------------------------------------------------------

@admin.group('lessons')
def admin_lessons():
    """Manage Bible study lessons"""
    pass


@admin_lessons.command('list')
@click.pass_obj
@log_call
def admin_lessons_list(app):
    """List lessons in sequence order"""
    page = AdminDashboard(app, 'lessons')
    if _loaded(page.load(), page, "crm admin lessons list"):
        views.render_lessons(page.lessons)


@admin_lessons.command('add')
@click.pass_obj
@log_call
def admin_lessons_add(app):
    """Add a lesson (interactive)"""
    page = AdminDashboard(app, 'lessons')
    click.echo("\n=== ADD LESSON ===\n")
    page.lesson_form.open()
    _prompt_fields(page.lesson_form, ('sequence_number', 'title', 'description'))
    if _submit(page.lesson_form, "Created lesson") is not None and _refreshed(page, "crm admin lessons list"):
        views.render_lessons(page.lessons)


@admin_lessons.command('edit')
@click.argument('lesson_id', type=int)
@click.pass_obj
@log_call
def admin_lessons_edit(app, lesson_id):
    """Edit a lesson (interactive)"""
    page = AdminDashboard(app, 'lessons')
    if not _loaded(page.load(), page, f"crm admin lessons edit {lesson_id}"):
        return
    lesson = next((l for l in page.lessons if l.id == lesson_id), None)
    if lesson is None:
        click.echo(f"Lesson #{lesson_id} not found.", err=True)
        return

    click.echo(f"\n=== EDIT LESSON #{lesson_id} ===\n")
    page.edit_lesson(lesson)
    _prompt_fields(page.lesson_form, ('sequence_number', 'title', 'description'))
    if _submit(page.lesson_form, "Updated lesson") is not None and _refreshed(page, "crm admin lessons list"):
        views.render_lessons(page.lessons)


@admin_lessons.command('delete')
@click.argument('lesson_id', type=int)
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@click.pass_obj
@log_call
def admin_lessons_delete(app, lesson_id, yes):
    """Delete a lesson"""
    if not yes and not click.confirm(f"Delete lesson #{lesson_id}?"):
        click.echo("Cancelled.")
        return
    page = AdminDashboard(app, 'lessons')
    if not page.delete_lesson(lesson_id):
        views.render_error(page.error, f"crm admin lessons delete {lesson_id}")
        return
    click.echo(f"✓ Deleted lesson #{lesson_id}")
    if _refreshed(page, "crm admin lessons list"):
        views.render_lessons(page.lessons)


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()
