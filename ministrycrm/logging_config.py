"""
Logging configuration for Ministry CRM.

Single 'ministrycrm' logger used across all modules.

  Log file : logs/ministrycrm.log
  Rotation : 5 MB × 3 backups
  Level    : LOG_LEVEL env var (DEBUG / INFO / WARNING / ERROR / CRITICAL)
             defaults to INFO when unset

Usage
-----
    from ministrycrm.logging_config import configure_logging, log_call

    # Once at startup (idempotent, safe to call multiple times):
    configure_logging()

    # On any function you want traced:
    @log_call
    def list_contacts(limit, offset):
        ...

Log format per line
-------------------
    2026-10-17 14:32:01 | DEBUG    | CALL list_contacts | args=(limit=20, offset=0)
    2026-10-17 14:32:01 | INFO     | OK   list_contacts | 42ms
    2026-10-17 14:32:01 | ERROR    | FAIL list_contacts | TransportError: connection refused | 3ms
"""

import functools
import inspect
import logging
import logging.handlers
import os
import time
from pathlib import Path

_LOG_DIR = Path(__file__).parent.parent / "logs"
_LOG_FILE = _LOG_DIR / "ministrycrm.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3
_HANDLER_NAME = "ministrycrm-file"

# Argument and field names whose values never reach the log file
_SECRETS = frozenset({"password", "token"})


def configure_logging() -> logging.Logger:
    """
    Set up the ministrycrm logger. Idempotent, safe to call on every CLI entry.
    Returns the configured logger.
    """
    _LOG_DIR.mkdir(exist_ok=True)

    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger("ministrycrm")

    # Guard: don't add a second file handler if already configured
    if any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        return logger

    logger.setLevel(level)

    handler = logging.handlers.RotatingFileHandler(
        _LOG_FILE,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    logger.addHandler(handler)

    return logger


def _masked(value) -> str:
    """repr(), with the secret fields of a pydantic model (e.g. RegisterRequest) hidden."""
    fields = getattr(type(value), "model_fields", None)
    if not isinstance(fields, dict) or not _SECRETS & set(fields):
        return repr(value)
    shown = ", ".join(
        f"{k}=***" if k in _SECRETS else f"{k}={getattr(value, k)!r}" for k in fields
    )
    return f"{type(value).__name__}({shown})"


def _arg_parts(names, args, kwargs):
    parts = []
    for i, value in enumerate(args):
        name = names[i] if i < len(names) else None
        parts.append(f"{name}=***" if name in _SECRETS else _masked(value))
    parts += [f"{k}={'***' if k in _SECRETS else _masked(v)}" for k, v in kwargs.items()]
    return parts


def log_call(func):
    """
    Decorator: logs entry, clean exit, and exceptions for any function.

    - DEBUG on entry   : CALL <name> | args=(...)
    - INFO  on success : OK   <name> | <N>ms
    - ERROR on failure : FAIL <name> | ExcType: message | <N>ms   (then re-raises)
    """
    names = list(inspect.signature(func).parameters)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("ministrycrm")
        name = func.__name__
        start = time.perf_counter()

        parts = _arg_parts(names, args, kwargs)
        arg_str = ", ".join(parts) if parts else "-"
        logger.debug(f"CALL {name} | args=({arg_str})")

        try:
            result = func(*args, **kwargs)
            ms = int((time.perf_counter() - start) * 1000)
            logger.info(f"OK   {name} | {ms}ms")
            return result
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

    return wrapper
