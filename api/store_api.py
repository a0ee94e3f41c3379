"""
===============================================================================
STORE API CLIENT — AUTH HEADER, FETCH, CREATE, UPDATE
===============================================================================

Purpose:
    Thin requests-based client for the dashboard backend:
      - GET  {base}/stores            list stores
      - GET  {base}/stores/{id}       one store (edit page hydration)
      - POST {base}/stores            create (multipart)
      - PUT  {base}/stores/{id}       update (multipart)
      - GET  {base}/returns           returns summary

Key behaviors:
    - Authentication:
        * Every call sends "Authorization: Bearer <token>".
        * A missing token is not checked here; the backend answers 401 and
          that surfaces as an ordinary failure.
    - Errors:
        * Any non-2xx response raises StoreApiError(status, message). The
          message is read from the JSON body ("message"), falling back to a
          generic text when the body is not JSON.
        * Network problems (requests.exceptions.RequestException) are wrapped
          in StoreApiError with status None.
    - Responses:
        * The backend wraps records as {"data": ...}; get_store() and
          list_stores() unwrap it.

Notes:
    - No caching. Every page visit refetches.

===============================================================================
"""

import logging

import requests


DEFAULT_TIMEOUT = 30


class StoreApiError(Exception):
    """Non-success response or network failure from the store backend."""

    def __init__(self, status, message, field_errors=None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.field_errors = field_errors or {}

    @property
    def is_validation(self) -> bool:
        return self.status in (400, 422)


def error_message(response, fallback: str) -> str:
    """Pull a readable message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message.strip():
            return message
    return fallback


def field_errors(response) -> dict:
    """Per-field messages from a 400/422 body ({"errors": {field: msg}}), if any."""
    try:
        body = response.json()
    except ValueError:
        return {}
    errors = body.get("errors") if isinstance(body, dict) else None
    if not isinstance(errors, dict):
        return {}
    out = {}
    for field, message in errors.items():
        if isinstance(message, list):
            message = message[0] if message else ""
        out[str(field)] = str(message)
    return out


def multipart_parts(data: dict, files: dict = None) -> dict:
    """
    Merge text fields and file parts into one requests `files=` mapping.

    Text fields become (None, value) parts so the body is always
    multipart/form-data, even when no file is attached.
    """
    parts = {key: (None, str(value)) for key, value in (data or {}).items()}
    parts.update(files or {})
    return parts


class StoreApiClient:
    def __init__(self, base_url: str, token: str = None, timeout: int = DEFAULT_TIMEOUT, session=None):
        """
        Parameters:
            base_url: API root, e.g. "https://api.example.com/api"
            token: bearer token for the signed-in user (may be None)
            timeout: seconds per request
            session: optional requests.Session (tests pass a mock)
        """
        self.base_url = (base_url or "").rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

        logging.basicConfig(level=logging.INFO)
        self.logger = logging.getLogger("StoreApiClient")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self.token or ''}"}

    def url(self, *parts) -> str:
        path = "/".join(str(p).strip("/") for p in parts)
        return f"{self.base_url}/{path}"

    def _request(self, method: str, url: str, fallback: str, **kwargs):
        self.logger.info("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                headers=self.auth_header(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            self.logger.error("%s %s failed: %s", method, url, e)
            raise StoreApiError(None, f"Failed to connect to the server: {e}")

        if not response.ok:
            message = error_message(response, fallback)
            self.logger.error("%s %s -> %s: %s", method, url, response.status_code, message)
            errors = field_errors(response) if response.status_code in (400, 422) else {}
            raise StoreApiError(response.status_code, message, errors)

        try:
            return response.json()
        except ValueError:
            # 2xx without a JSON body
            return {}

    @staticmethod
    def _data(body):
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    # -------------------------------------------------------------------------
    # Stores
    # -------------------------------------------------------------------------
    def list_stores(self) -> list:
        body = self._request("GET", self.url("stores"), "Failed to load stores")
        data = self._data(body)
        return data if isinstance(data, list) else []

    def get_store(self, store_id) -> dict:
        body = self._request("GET", self.url("stores", store_id), "Failed to load store data")
        data = self._data(body)
        if not isinstance(data, dict):
            raise StoreApiError(None, "Failed to load store data")
        return data

    def create_store(self, data: dict, files: dict = None) -> dict:
        body = self._request(
            "POST", self.url("stores"), "Failed to add store", files=multipart_parts(data, files)
        )
        return self._data(body)

    def update_store(self, store_id, data: dict, files: dict = None) -> dict:
        body = self._request(
            "PUT", self.url("stores", store_id), "Failed to update store", files=multipart_parts(data, files)
        )
        return self._data(body)

    # -------------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------------
    def get_returns_summary(self) -> dict:
        body = self._request("GET", self.url("returns"), "Failed to load returns")
        data = self._data(body)
        return data if isinstance(data, dict) else {}
