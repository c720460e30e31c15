"""
Shared fixtures for unit tests.

- respond: factory for fake requests.Response objects
- config: a Config stand-in pointing storage into tmp_path
- wired_app: the real build_app() wiring; tests patch <api>.client.session.request
- mock_app: real storage / navigator / session / bus, MagicMock service APIs
"""

import json
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from ministrycrm.app import App, build_app
from ministrycrm.bus.events import EventBus
from ministrycrm.session.auth import AuthSession
from ministrycrm.session.navigator import Navigator
from ministrycrm.session.storage import LocalStorage


def http_response(status=200, body=None, text=None):
    """A MagicMock shaped like the parts of requests.Response the client reads."""
    resp = MagicMock(name=f"Response[{status}]")
    resp.status_code = status
    if body is not None:
        raw = json.dumps(body)
        resp.json.return_value = body
    else:
        raw = text or ''
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    resp.text = raw
    resp.content = raw.encode('utf-8')
    return resp


@pytest.fixture
def respond():
    return http_response


@pytest.fixture
def config(tmp_path):
    return SimpleNamespace(
        CORE_API_URL='http://core.test',
        STUDY_API_URL='http://studies.test',
        RESERVATION_API_URL='http://rooms.test',
        REQUEST_TIMEOUT_SECONDS=5.0,
        STORAGE_PATH=tmp_path / 'storage.json',
        CONTACTS_PAGE_SIZE=20,
        FETCH_WORKERS=4,
        TIMEZONE='UTC',
    )


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def wired_app(config, bus):
    app = build_app(config, bus)
    yield app
    app.close()


@pytest.fixture
def mock_app(config, bus):
    storage = LocalStorage(config.STORAGE_PATH)
    navigator = Navigator(bus)
    core = MagicMock(name='core')
    session = AuthSession(storage, navigator, bus, core)
    executor = ThreadPoolExecutor(max_workers=config.FETCH_WORKERS)
    app = App(
        storage, navigator, session, core,
        MagicMock(name='studies'), MagicMock(name='reservations'),
        bus, executor, config,
    )
    yield app
    executor.shutdown(wait=True)
