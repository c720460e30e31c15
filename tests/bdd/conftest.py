"""
Shared fixtures and step definitions for BDD tests.

- runner, app, context: available to all scenario files in this directory
- app: real session / storage / navigator over MagicMock service APIs,
  patched in as the CLI's build_app()
- no_logging: autouse, prevents log file creation during tests
- 'the output contains' and login steps: shared across all feature files
"""

from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from pytest_bdd import given, parsers, then, when

from ministrycrm.api.client import TOKEN_KEY, USER_KEY
from ministrycrm.app import App
from ministrycrm.bus.events import EventBus
from ministrycrm.cli.main import cli
from ministrycrm.models import User
from ministrycrm.session.auth import AuthSession
from ministrycrm.session.navigator import Navigator
from ministrycrm.session.storage import LocalStorage

USERS = {
    'admin': User(id=1, username='pastor', full_name='Pastor Jim', email='pastor@church.test', role='admin'),
    'member': User(id=2, username='deacon', full_name='Deacon Sam', email='deacon@church.test', role='user'),
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def app(tmp_path):
    config = SimpleNamespace(
        STORAGE_PATH=tmp_path / 'storage.json',
        CONTACTS_PAGE_SIZE=20,
        FETCH_WORKERS=4,
        TIMEZONE='UTC',
    )
    bus = EventBus()
    storage = LocalStorage(config.STORAGE_PATH)
    navigator = Navigator(bus)
    core = MagicMock(name='core')
    executor = ThreadPoolExecutor(max_workers=config.FETCH_WORKERS)
    app = App(
        storage, navigator, AuthSession(storage, navigator, bus, core), core,
        MagicMock(name='studies'), MagicMock(name='reservations'),
        bus, executor, config,
    )
    with patch("ministrycrm.cli.main.build_app", return_value=app):
        yield app
    executor.shutdown(wait=True)


@pytest.fixture
def context():
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {}


@pytest.fixture(autouse=True)
def no_logging():
    with patch("ministrycrm.cli.main.configure_logging"):
        yield


@given(parsers.re(r"an? (?P<role>admin|member) is logged in"))
def logged_in(app, role):
    user = USERS[role]
    app.storage.set_item(TOKEN_KEY, 'tok')
    app.storage.set_item(USER_KEY, user.model_dump_json())
    app.core.get_current_user.return_value = user


@given("nobody is logged in")
def logged_out(app):
    app.storage.clear(TOKEN_KEY, USER_KEY)


@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )


@then(parsers.parse("the command exits with code {code:d}"))
def exits_with(context, code):
    assert context["result"].exit_code == code, context["result"].output


@when("the user lists contacts")
def list_contacts(runner, context):
    context["result"] = runner.invoke(cli, ["contacts", "list"])
