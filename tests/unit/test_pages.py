"""
Unit tests for the shared page machinery (ministrycrm/dashboards/base.py):
fetch_all, lookup, load cycles with generation guards, and mutations.
"""

import threading
import time
from types import SimpleNamespace

import pytest

from ministrycrm.api.errors import (
    NETWORK_MESSAGE,
    RejectedError,
    SESSION_EXPIRED_MESSAGE,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from ministrycrm.dashboards.base import Page, fetch_all, lookup


def _later(value, delay=0.05):
    def fetch():
        time.sleep(delay)
        return value
    return fetch


def _fail(exc, delay=0.0):
    def fetch():
        time.sleep(delay)
        raise exc
    return fetch


# ---------------------------------------------------------------------------
# fetch_all
# ---------------------------------------------------------------------------

class TestFetchAll:

    def test_returns_every_result_by_name(self, mock_app):
        results = fetch_all(mock_app.executor, {'a': lambda: 1, 'b': _later(2)})
        assert results == {'a': 1, 'b': 2}

    def test_runs_fetches_concurrently(self, mock_app):
        start = time.perf_counter()
        fetch_all(mock_app.executor, {name: _later(name, 0.2) for name in 'abc'})
        assert time.perf_counter() - start < 0.5

    def test_any_failure_raises(self, mock_app):
        with pytest.raises(TransportError):
            fetch_all(mock_app.executor, {'a': lambda: 1, 'b': _fail(TransportError('down'))})

    def test_waits_for_slow_fetches_before_raising(self, mock_app):
        finished = []

        def slow():
            time.sleep(0.1)
            finished.append(True)
            return 'late'

        with pytest.raises(ServerError):
            fetch_all(mock_app.executor, {'fast_fail': _fail(ServerError('500')), 'slow': slow})
        assert finished == [True]

    def test_first_failure_in_dict_order_wins(self, mock_app):
        with pytest.raises(RejectedError):
            fetch_all(mock_app.executor, {
                'a': _fail(RejectedError('400'), delay=0.1),
                'b': _fail(ServerError('500')),
            })


# ---------------------------------------------------------------------------
# lookup
# ---------------------------------------------------------------------------

ROOMS = [SimpleNamespace(id=1, name='Sanctuary'), SimpleNamespace(id=2, name='Library')]


def test_lookup_found():
    assert lookup(ROOMS, 2) == 'Library'


def test_lookup_missing_uses_fallback():
    assert lookup(ROOMS, 99) == 'Unknown'
    assert lookup(ROOMS, None, fallback='Unknown Room') == 'Unknown Room'


def test_lookup_other_attribute():
    lessons = [SimpleNamespace(id=5, title='Creation')]
    assert lookup(lessons, 5, 'title') == 'Creation'


# ---------------------------------------------------------------------------
# run_cycle
# ---------------------------------------------------------------------------

class TestRunCycle:

    def test_commits_all_results_together(self, mock_app):
        page = Page(mock_app)
        committed = []
        assert page.run_cycle({'a': lambda: 1, 'b': lambda: 2}, committed.append) is True
        assert committed == [{'a': 1, 'b': 2}]
        assert page.loading is False
        assert page.error == ''

    def test_failure_keeps_previous_state(self, mock_app):
        page = Page(mock_app)
        page.items = ['kept']

        def commit(results):
            page.items = results['items']

        ok = page.run_cycle({'items': lambda: ['new'], 'other': _fail(TransportError('down'))}, commit)

        assert ok is False
        assert page.items == ['kept']
        assert page.error == page.load_error
        assert page.loading is False

    def test_unauthorized_shows_session_message(self, mock_app):
        page = Page(mock_app)
        page.run_cycle({'a': _fail(UnauthorizedError('401'))}, lambda r: None)
        assert page.error == SESSION_EXPIRED_MESSAGE

    def test_success_clears_previous_error(self, mock_app):
        page = Page(mock_app)
        page.run_cycle({'a': _fail(ServerError('500'))}, lambda r: None)
        assert page.error
        page.run_cycle({'a': lambda: 1}, lambda r: None)
        assert page.error == ''

    def test_latest_cycle_wins(self, mock_app):
        page = Page(mock_app)
        committed = []
        started, release = threading.Event(), threading.Event()
        outcome = {}

        def slow():
            started.set()
            release.wait(5)
            return 'old'

        first = threading.Thread(
            target=lambda: outcome.update(first=page.run_cycle({'v': slow}, lambda r: committed.append(r['v'])))
        )
        first.start()
        assert started.wait(5)

        assert page.run_cycle({'v': lambda: 'new'}, lambda r: committed.append(r['v'])) is True
        release.set()
        first.join(5)

        assert outcome['first'] is False
        assert committed == ['new']

    def test_stale_failure_does_not_overwrite_fresh_state(self, mock_app):
        page = Page(mock_app)
        started, release = threading.Event(), threading.Event()

        def slow_fail():
            started.set()
            release.wait(5)
            raise TransportError('down')

        first = threading.Thread(target=lambda: page.run_cycle({'v': slow_fail}, lambda r: None))
        first.start()
        assert started.wait(5)

        page.run_cycle({'v': lambda: 'fresh'}, lambda r: None)
        release.set()
        first.join(5)

        assert page.error == ''

    def test_channels_do_not_discard_each_other(self, mock_app):
        page = Page(mock_app)
        committed = []
        started, release = threading.Event(), threading.Event()

        def slow():
            started.set()
            release.wait(5)
            return 'contacts'

        first = threading.Thread(
            target=lambda: page.run_cycle({'v': slow}, lambda r: committed.append(r['v']), channel='initial')
        )
        first.start()
        assert started.wait(5)

        page.run_cycle({'v': lambda: 'studies'}, lambda r: committed.append(r['v']), channel='studies')
        release.set()
        first.join(5)

        assert sorted(committed) == ['contacts', 'studies']


# ---------------------------------------------------------------------------
# mutate
# ---------------------------------------------------------------------------

class TestMutate:

    def test_success_emits_and_refetches(self, mock_app, bus):
        page = Page(mock_app)
        calls, seen = [], []
        bus.on('room_deleted', seen.append)

        ok = page.mutate(lambda: calls.append('delete'), lambda: calls.append('refetch'),
                         'Failed to delete room.', event='room_deleted', event_data={'room_id': 3})

        assert ok is True
        assert calls == ['delete', 'refetch']
        assert seen == [{'room_id': 3}]

    def test_rejection_sets_resource_message_and_skips_refetch(self, mock_app):
        page = Page(mock_app)
        refetched = []

        ok = page.mutate(_fail(RejectedError('409')), lambda: refetched.append(True), 'Failed to delete room.')

        assert ok is False
        assert page.error == 'Failed to delete room.'
        assert refetched == []

    def test_transport_failure_sets_network_message(self, mock_app):
        page = Page(mock_app)
        page.mutate(_fail(TransportError('down')), lambda: None, 'Failed to delete room.')
        assert page.error == NETWORK_MESSAGE
