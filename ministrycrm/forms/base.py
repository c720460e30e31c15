"""
Form base - controlled inputs that become one create or update request.

Fields are held as the strings a user typed. Numbers are parsed when the
form is submitted. A successful submit resets and closes the form and then
runs the owner's refetch; a failed one keeps the input and sets `error`.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ValidationError

from ministrycrm.api.errors import ApiError, describe_error

logger = logging.getLogger(__name__)

INVALID_MESSAGE = 'Please check all fields and try again.'


class FormError(ValueError):
    """Input that cannot be turned into a payload."""


class Form:
    # name -> default value; every value is a string except checkboxes (bool)
    defaults: Dict[str, Any] = {}
    labels: Dict[str, str] = {}
    required: Tuple[str, ...] = ()
    # Shown when the service rejects the request (validation / conflict)
    rejected_message = 'Failed to save. Please check all fields and try again.'
    event: Optional[str] = None

    def __init__(self, app, on_saved: Optional[Callable[[], Any]] = None):
        self.app = app
        self.on_saved = on_saved
        self.fields: Dict[str, Any] = dict(self.defaults)
        self.editing_id: Optional[int] = None
        self.is_open = False
        self.error = ''
        self.saving = False

    # -------------------------------------------------------------------------
    # Field handling
    # -------------------------------------------------------------------------

    def label(self, name: str) -> str:
        return self.labels.get(name, name.replace('_', ' ').capitalize())

    def set(self, name: str, value: Any):
        if name not in self.fields:
            raise KeyError(f"{type(self).__name__} has no field '{name}'")
        self.fields[name] = value

    def update(self, **values):
        for name, value in values.items():
            self.set(name, value)

    def missing_fields(self):
        return [name for name in self.required if not str(self.fields.get(name) or '').strip()]

    def text(self, name: str) -> Optional[str]:
        """Stripped text, or None when blank."""
        value = str(self.fields.get(name) or '').strip()
        return value or None

    def integer(self, name: str) -> Optional[int]:
        raw = self.text(name)
        if raw is None:
            return None
        try:
            return int(raw, 10)
        except ValueError:
            raise FormError(f"{self.label(name)} must be a whole number.")

    # -------------------------------------------------------------------------
    # Panel state
    # -------------------------------------------------------------------------

    def open(self):
        self.is_open = True

    def close(self):
        self.is_open = False

    def toggle(self):
        if self.is_open:
            self.close()
        else:
            self.reset()
            self.open()

    def reset(self):
        self.fields = dict(self.defaults)
        self.editing_id = None
        self.is_open = False
        self.error = ''

    def edit(self, entity):
        """Pre-fill from an existing entity and switch to update mode."""
        self.fields = dict(self.defaults)
        for name in self.fields:
            value = getattr(entity, name, None)
            if value is None:
                continue
            self.fields[name] = value if isinstance(value, bool) else str(value)
        self.editing_id = entity.id
        self.is_open = True
        self.error = ''

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def build_payload(self) -> BaseModel:
        raise NotImplementedError

    def create(self, payload):
        raise NotImplementedError

    def save_update(self, entity_id: int, payload):
        raise NotImplementedError

    def after_save(self, saved):
        if self.on_saved is not None:
            self.on_saved()

    def submit(self):
        """Create or update. Returns the saved entity, or None on failure."""
        self.error = ''

        missing = self.missing_fields()
        if missing:
            self.error = f"Please fill in all required fields: {', '.join(self.label(m) for m in missing)}"
            return None

        try:
            payload = self.build_payload()
        except FormError as e:
            self.error = str(e)
            return None
        except ValidationError as e:
            logger.warning(f"{type(self).__name__} payload invalid: {e.error_count()} error(s)")
            self.error = INVALID_MESSAGE
            return None

        editing_id = self.editing_id
        self.saving = True
        try:
            if editing_id is not None:
                saved = self.save_update(editing_id, payload)
            else:
                saved = self.create(payload)
        except ApiError as e:
            logger.error(f"{type(self).__name__} submit failed: {type(e).__name__}: {e}")
            self.error = describe_error(e, self.rejected_message)
            return None
        finally:
            self.saving = False

        logger.info(f"{type(self).__name__} {'updated' if editing_id is not None else 'created'} #{saved.id}")
        if self.event:
            self.app.bus.emit(self.event, {'id': saved.id, 'created': editing_id is None})
        self.reset()
        self.after_save(saved)
        return saved
