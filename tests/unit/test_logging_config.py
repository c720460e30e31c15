"""
Unit tests for ministrycrm/logging_config.py.

configure_logging: idempotency, dir creation, level, handler type.
log_call: entry/exit/failure lines, password masking, re-raise.
"""

import logging
import logging.handlers
import os
from unittest.mock import MagicMock, patch

import pytest

from ministrycrm.logging_config import configure_logging, log_call
from ministrycrm.models import RegisterRequest


def _reset_logger():
    logger = logging.getLogger("ministrycrm")
    for h in logger.handlers[:]:
        h.close()
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def log_dir(tmp_path):
    """Point the log file into tmp_path and leave the logger clean afterwards."""
    _reset_logger()
    target = tmp_path / "logs"
    with patch("ministrycrm.logging_config._LOG_DIR", target), \
         patch("ministrycrm.logging_config._LOG_FILE", target / "ministrycrm.log"):
        yield target
    _reset_logger()


@pytest.fixture
def captured():
    """A mock logger standing in for 'ministrycrm' inside log_call."""
    mock_logger = MagicMock()
    with patch("ministrycrm.logging_config.logging") as mock_logging:
        mock_logging.getLogger.return_value = mock_logger
        yield mock_logger


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------

class TestConfigureLogging:

    def test_returns_ministrycrm_logger(self, log_dir):
        result = configure_logging()
        assert isinstance(result, logging.Logger)
        assert result.name == "ministrycrm"

    def test_creates_log_dir(self, log_dir):
        assert not log_dir.exists()
        configure_logging()
        assert log_dir.is_dir()

    def test_single_rotating_handler_even_when_called_twice(self, log_dir):
        configure_logging()
        configure_logging()
        handlers = logging.getLogger("ministrycrm").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)
        assert handlers[0].get_name() == "ministrycrm-file"

    def test_default_level_is_info(self, log_dir):
        env = {k: v for k, v in os.environ.items() if k != "LOG_LEVEL"}
        with patch.dict(os.environ, env, clear=True):
            configure_logging()
        assert logging.getLogger("ministrycrm").level == logging.INFO

    @pytest.mark.parametrize("name,level", [("DEBUG", logging.DEBUG), ("warning", logging.WARNING)])
    def test_respects_log_level(self, log_dir, name, level):
        with patch.dict(os.environ, {"LOG_LEVEL": name}):
            configure_logging()
        assert logging.getLogger("ministrycrm").level == level

    def test_unknown_log_level_falls_back_to_info(self, log_dir):
        with patch.dict(os.environ, {"LOG_LEVEL": "CHATTY"}):
            configure_logging()
        assert logging.getLogger("ministrycrm").level == logging.INFO

    def test_child_loggers_reach_the_file(self, log_dir):
        with patch.dict(os.environ, {"LOG_LEVEL": "INFO"}):
            configure_logging()
        logging.getLogger("ministrycrm.api.client").warning("core GET /contacts -> 500")
        for h in logging.getLogger("ministrycrm").handlers:
            h.flush()
        assert "core GET /contacts -> 500" in (log_dir / "ministrycrm.log").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# log_call decorator
# ---------------------------------------------------------------------------

class TestLogCall:

    def test_passes_return_value_through(self):
        @log_call
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_preserves_function_name(self):
        @log_call
        def list_rooms():
            pass

        assert list_rooms.__name__ == "list_rooms"

    def test_call_line_has_name_and_args(self, captured):
        @log_call
        def list_contacts(limit, offset=0):
            pass

        list_contacts(20, offset=40)

        msg = captured.debug.call_args[0][0]
        assert msg.startswith("CALL list_contacts")
        assert "20" in msg
        assert "offset=40" in msg

    def test_no_args_shows_dash(self, captured):
        @log_call
        def list_statuses():
            pass

        list_statuses()
        assert "args=(-)" in captured.debug.call_args[0][0]

    def test_password_kwarg_is_masked(self, captured):
        @log_call
        def login(username, password):
            pass

        login(username="pastor", password="s3cret")

        msg = captured.debug.call_args[0][0]
        assert "s3cret" not in msg
        assert "password=***" in msg
        assert "username='pastor'" in msg

    def test_positional_password_is_masked(self, captured):
        @log_call
        def login(username, password):
            pass

        login("pastor", "s3cret")

        msg = captured.debug.call_args[0][0]
        assert "s3cret" not in msg
        assert "'pastor', password=***" in msg

    def test_token_kwarg_is_masked(self, captured):
        @log_call
        def resume(token):
            pass

        resume(token="abc.def.ghi")

        msg = captured.debug.call_args[0][0]
        assert "abc.def.ghi" not in msg
        assert "token=***" in msg

    def test_secret_model_fields_are_masked(self, captured):
        @log_call
        def register(request):
            pass

        register(RegisterRequest(username="deacon", password="s3cret", email="d@church.test", full_name="Deacon Sam"))

        msg = captured.debug.call_args[0][0]
        assert "s3cret" not in msg
        assert "RegisterRequest(username='deacon', password=***" in msg
        assert "full_name='Deacon Sam'" in msg

    def test_ok_line_with_timing(self, captured):
        @log_call
        def noop():
            pass

        noop()

        captured.info.assert_called_once()
        msg = captured.info.call_args[0][0]
        assert "OK" in msg and "noop" in msg and "ms" in msg

    def test_fail_line_and_reraise(self, captured):
        @log_call
        def boom():
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            boom()

        msg = captured.error.call_args[0][0]
        assert "FAIL boom" in msg
        assert "ValueError: bad input" in msg
        captured.info.assert_not_called()
