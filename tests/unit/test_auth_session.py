"""
Unit tests for AuthSession (ministrycrm/session/auth.py).

mock_app gives a real session over real storage / navigator / bus, with the
core API mocked. The expiry tests use wired_app so a 401 travels through the
real client interceptor.
"""

from unittest.mock import MagicMock

import pytest

from ministrycrm.api.client import TOKEN_KEY, USER_KEY
from ministrycrm.api.errors import TransportError, UnauthorizedError
from ministrycrm.bus.events import (
    EVENT_LOGGED_IN,
    EVENT_LOGGED_OUT,
    EVENT_NAVIGATED,
    EVENT_SESSION_EXPIRED,
)
from ministrycrm.dashboards.base import fetch_all
from ministrycrm.models import AuthResponse, RegisterRequest, User

PASTOR = User(id=1, username='pastor', full_name='Pastor Jim', role='admin')
MEMBER = User(id=2, username='deacon', full_name='Deacon Sam', role='user')


def _store(app, user=PASTOR, token='tok'):
    app.storage.set_item(TOKEN_KEY, token)
    app.storage.set_item(USER_KEY, user.model_dump_json())


def _events(bus, *names):
    seen = []
    for name in names:
        bus.on(name, lambda data, name=name: seen.append((name, data)))
    return seen


# ---------------------------------------------------------------------------
# hydrate()
# ---------------------------------------------------------------------------

class TestHydrate:

    def test_cached_user_is_shown_immediately(self, mock_app):
        _store(mock_app)
        user = mock_app.session.hydrate()
        assert user == PASTOR
        assert mock_app.session.user == PASTOR
        assert mock_app.session.loading is False
        mock_app.core.get_current_user.assert_not_called()

    def test_no_token_sends_user_to_login(self, mock_app):
        mock_app.storage.set_item(USER_KEY, PASTOR.model_dump_json())
        assert mock_app.session.hydrate() is None
        assert mock_app.navigator.current == '/login'

    def test_no_user_snapshot_sends_user_to_login(self, mock_app):
        mock_app.storage.set_item(TOKEN_KEY, 'tok')
        assert mock_app.session.hydrate() is None
        assert mock_app.navigator.current == '/login'

    def test_unreadable_snapshot_counts_as_logged_out(self, mock_app):
        mock_app.storage.set_item(TOKEN_KEY, 'tok')
        mock_app.storage.set_item(USER_KEY, '{"id": "not-a-number"')
        assert mock_app.session.hydrate() is None

    def test_is_admin(self, mock_app):
        _store(mock_app, MEMBER)
        mock_app.session.hydrate()
        assert mock_app.session.is_admin is False
        _store(mock_app, PASTOR)
        mock_app.session.hydrate()
        assert mock_app.session.is_admin is True


# ---------------------------------------------------------------------------
# revalidate() / start()
# ---------------------------------------------------------------------------

class TestRevalidate:

    def test_success_refreshes_snapshot(self, mock_app):
        _store(mock_app)
        renamed = PASTOR.model_copy(update={'full_name': 'Pastor James'})
        mock_app.core.get_current_user.return_value = renamed
        mock_app.session.hydrate()

        assert mock_app.session.revalidate() == renamed
        assert mock_app.session.user.full_name == 'Pastor James'
        assert User.model_validate_json(mock_app.storage.get_item(USER_KEY)).full_name == 'Pastor James'

    def test_failure_logs_out(self, mock_app):
        _store(mock_app)
        mock_app.core.get_current_user.side_effect = TransportError('down')
        mock_app.session.hydrate()

        assert mock_app.session.revalidate() is None
        assert mock_app.session.user is None
        assert mock_app.storage.get_item(TOKEN_KEY) is None
        assert mock_app.storage.get_item(USER_KEY) is None
        assert mock_app.navigator.current == '/login'

    def test_without_token_does_nothing(self, mock_app):
        assert mock_app.session.revalidate() is None
        mock_app.core.get_current_user.assert_not_called()

    def test_start_runs_revalidation_in_background(self, mock_app):
        _store(mock_app)
        mock_app.core.get_current_user.return_value = PASTOR
        future = mock_app.session.start(mock_app.executor)
        assert mock_app.session.user == PASTOR
        assert future.result(timeout=5) == PASTOR

    def test_start_without_executor_revalidates_inline(self, mock_app):
        _store(mock_app)
        mock_app.core.get_current_user.return_value = PASTOR
        future = mock_app.session.start()
        assert future.done()
        mock_app.core.get_current_user.assert_called_once()

    def test_start_logged_out_returns_none(self, mock_app):
        assert mock_app.session.start(mock_app.executor) is None
        mock_app.core.get_current_user.assert_not_called()


# ---------------------------------------------------------------------------
# login() / register() / logout()
# ---------------------------------------------------------------------------

class TestLoginLogout:

    def test_login_persists_and_navigates(self, mock_app, bus):
        seen = _events(bus, EVENT_LOGGED_IN)
        mock_app.navigator.push('/login')
        mock_app.core.login.return_value = AuthResponse(token='fresh', user=PASTOR)

        user = mock_app.session.login('pastor', 'secret')

        assert user == PASTOR
        assert mock_app.storage.get_item(TOKEN_KEY) == 'fresh'
        assert User.model_validate_json(mock_app.storage.get_item(USER_KEY)) == PASTOR
        assert mock_app.navigator.current == '/dashboard'
        assert seen == [(EVENT_LOGGED_IN, {'username': 'pastor', 'role': 'admin'})]

    def test_failed_login_stores_nothing(self, mock_app):
        mock_app.core.login.side_effect = UnauthorizedError('bad credentials', 401)
        with pytest.raises(UnauthorizedError):
            mock_app.session.login('pastor', 'wrong')
        assert mock_app.storage.get_item(TOKEN_KEY) is None
        assert mock_app.session.user is None

    def test_register_logs_in(self, mock_app):
        mock_app.core.register.return_value = AuthResponse(token='new', user=MEMBER)
        request = RegisterRequest(username='deacon', password='pw', email='d@church.test', full_name='Deacon Sam')
        assert mock_app.session.register(request) == MEMBER
        mock_app.core.register.assert_called_once_with(request)
        assert mock_app.storage.get_item(TOKEN_KEY) == 'new'

    def test_logout_clears_everything(self, mock_app, bus):
        seen = _events(bus, EVENT_LOGGED_OUT)
        _store(mock_app)
        mock_app.storage.set_item('theme', 'dark')
        mock_app.session.hydrate()

        mock_app.session.logout()

        assert mock_app.session.user is None
        assert mock_app.storage.get_item(TOKEN_KEY) is None
        assert mock_app.storage.get_item(USER_KEY) is None
        assert mock_app.storage.get_item('theme') == 'dark'
        assert mock_app.navigator.current == '/login'
        assert seen == [(EVENT_LOGGED_OUT, {'username': 'pastor'})]


# ---------------------------------------------------------------------------
# 401 from any service expires the session
# ---------------------------------------------------------------------------

class TestExpiry:

    @pytest.mark.parametrize('service', ['core', 'studies', 'reservations'])
    def test_401_from_any_service(self, wired_app, respond, bus, service):
        seen = _events(bus, EVENT_SESSION_EXPIRED)
        _store(wired_app)
        wired_app.session.hydrate()
        api = getattr(wired_app, service)
        api.client.session.request = MagicMock(return_value=respond(401, text='token expired'))

        with pytest.raises(UnauthorizedError):
            api.client.get('/anything')

        assert wired_app.storage.get_item(TOKEN_KEY) is None
        assert wired_app.storage.get_item(USER_KEY) is None
        assert wired_app.session.user is None
        assert wired_app.navigator.current == '/login'
        assert seen == [(EVENT_SESSION_EXPIRED, {'username': 'pastor'})]

    def test_401_during_revalidation_tears_down_once(self, wired_app, respond, bus):
        seen = _events(bus, EVENT_SESSION_EXPIRED, EVENT_LOGGED_OUT)
        _store(wired_app)
        wired_app.core.client.session.request = MagicMock(return_value=respond(401, text='token expired'))

        wired_app.session.hydrate()
        assert wired_app.session.revalidate() is None

        assert [name for name, _ in seen] == [EVENT_SESSION_EXPIRED]
        assert wired_app.navigator.current == '/login'

    def test_navigation_to_login_is_announced(self, wired_app, respond, bus):
        seen = _events(bus, EVENT_NAVIGATED)
        _store(wired_app)
        wired_app.session.hydrate()
        wired_app.reservations.client.session.request = MagicMock(return_value=respond(401))

        with pytest.raises(UnauthorizedError):
            wired_app.reservations.list_rooms()

        assert seen[-1] == (EVENT_NAVIGATED, {'from': '/dashboard', 'to': '/login'})

    def test_repeated_401s_end_the_session_once(self, wired_app, respond, bus):
        seen = _events(bus, EVENT_SESSION_EXPIRED)
        _store(wired_app)
        wired_app.session.hydrate()
        wired_app.core.client.session.request = MagicMock(return_value=respond(401))

        for _ in range(3):
            with pytest.raises(UnauthorizedError):
                wired_app.core.list_statuses()

        assert seen == [(EVENT_SESSION_EXPIRED, {'username': 'pastor'})]
        assert wired_app.navigator.history.count('/login') == 1

    def test_parallel_401s_end_the_session_once(self, wired_app, respond, bus):
        seen = _events(bus, EVENT_SESSION_EXPIRED)
        _store(wired_app)
        wired_app.session.hydrate()
        for api in (wired_app.core, wired_app.studies, wired_app.reservations):
            api.client.session.request = MagicMock(return_value=respond(401))

        with pytest.raises(UnauthorizedError):
            fetch_all(wired_app.executor, {
                'contacts': lambda: wired_app.core.list_contacts(20, 0),
                'lessons': wired_app.studies.list_lessons,
                'rooms': wired_app.reservations.list_rooms,
            })

        assert len(seen) == 1
        assert wired_app.session.user is None
        assert wired_app.storage.get_item(TOKEN_KEY) is None

    def test_expire_without_a_session_is_silent(self, mock_app, bus):
        seen = _events(bus, EVENT_SESSION_EXPIRED)
        mock_app.session.expire()
        assert seen == []
        assert mock_app.navigator.current == '/login'
