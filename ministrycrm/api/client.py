"""
Service Client - one configured HTTP client per backend service.

Each client carries the same interceptor pair:
  - request side : BearerAuth reads the token from storage on every call
  - response side: a 401 on an authenticated call tears the session down
                   (on_unauthorized) before the error reaches the caller

Usage:
    client = ServiceClient('core', 'http://localhost:8080', storage,
                           on_unauthorized=session.expire)
    data = client.get('/contacts', params={'limit': 20, 'offset': 0})
    page = parse(ContactsPage, data)
"""

import logging
from typing import Any, Callable, Dict, Optional, Type, TypeVar

import requests
from requests.auth import AuthBase
from pydantic import BaseModel, ValidationError

from ministrycrm.api.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RejectedError,
    SchemaError,
    ServerError,
    TransportError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

TOKEN_KEY = 'token'
USER_KEY = 'user'

M = TypeVar('M', bound=BaseModel)


class BearerAuth(AuthBase):
    """Attach `Authorization: Bearer <token>` read from storage at call time."""

    def __init__(self, storage):
        self.storage = storage

    def __call__(self, request):
        token = self.storage.get_item(TOKEN_KEY)
        if token:
            request.headers['Authorization'] = f'Bearer {token}'
        return request


def _error_detail(response) -> str:
    """Best-effort server error text (plain-text bodies from http.Error, or JSON)."""
    try:
        body = response.json()
    except ValueError:
        return (response.text or '').strip()
    if isinstance(body, dict):
        return str(body.get('error') or body.get('message') or body.get('detail') or body)
    return str(body)


_STATUS_ERRORS = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
}


class ServiceClient:
    """HTTP client for one backend service."""

    def __init__(
        self,
        name: str,
        base_url: str,
        storage,
        timeout: float = 10.0,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self.name = name
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.on_unauthorized = on_unauthorized
        self.auth = BearerAuth(storage)
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None when empty).

        Raises an ApiError subclass on transport failure or non-2xx status.
        """
        url = self.url(path)
        logger.debug(f"{self.name} {method} {url} params={params}")

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                auth=self.auth if authenticated else None,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"{self.name} {method} {url} transport failure: {e}")
            raise TransportError(f"{self.name} service unreachable: {e}") from e

        logger.debug(f"{self.name} {method} {url} -> {response.status_code}")

        if response.status_code >= 400:
            self._raise_for_status(method, url, response, authenticated)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{self.name} {method} {url} returned a non-JSON body")
            raise SchemaError(f"{self.name} service returned invalid JSON", response.status_code) from e

    def _raise_for_status(self, method: str, url: str, response, authenticated: bool):
        status = response.status_code
        detail = _error_detail(response)

        if status == 401 and authenticated:
            logger.warning(f"{self.name} {method} {url} -> 401, ending session")
            if self.on_unauthorized is not None:
                self.on_unauthorized()

        error_cls = _STATUS_ERRORS.get(status)
        if error_cls is None:
            error_cls = ServerError if status >= 500 else RejectedError

        log = logger.error if status >= 500 else logger.warning
        log(f"{self.name} {method} {url} -> {status}: {detail}")
        raise error_cls(f"{self.name} {method} {url} failed with {status}", status, detail)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return self.request('GET', path, params=params, **kwargs)

    def post(self, path: str, json: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return self.request('POST', path, json=json, **kwargs)

    def put(self, path: str, json: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return self.request('PUT', path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request('DELETE', path, **kwargs)

    def close(self):
        self.session.close()


def parse(model: Type[M], data: Any) -> M:
    """Validate a decoded response body against its schema."""
    if data is None:
        raise SchemaError(f"Expected a {model.__name__} body, got an empty response")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Response did not match {model.__name__}: {e.error_count()} error(s)")
        raise SchemaError(f"Malformed {model.__name__} response: {e}") from e
