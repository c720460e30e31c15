"""
Durable key-value storage (the terminal's "local storage").

A single JSON file holds string values. Every read goes to disk so that a
value written by another process (a second terminal logging in or out) is
picked up on the next call. Writes replace the file atomically.
"""

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class LocalStorage:
    """get_item / set_item / remove_item over a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Storage file {self.path} unreadable, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not a JSON object, treating as empty")
            return {}
        return data

    def _write(self, data: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix='.storage-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str):
        with self._mutate() as data:
            data[key] = value
        logger.debug(f"Storage set '{key}'")

    def remove_item(self, key: str):
        with self._mutate() as data:
            data.pop(key, None)
        logger.debug(f"Storage removed '{key}'")

    def clear(self, *keys: str):
        """Remove the given keys in one write, or everything when none are given."""
        with self._mutate() as data:
            if keys:
                for key in keys:
                    data.pop(key, None)
            else:
                data.clear()

    @contextmanager
    def _mutate(self):
        data = self._read()
        yield data
        self._write(data)
