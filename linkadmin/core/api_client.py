"""
Remote Resource Client
======================

Thin ``requests`` wrapper for one admin API collection
(``/api/admin/users``, ``/api/admin/categories`` ...).

Each call is a single round trip. Non-2xx responses raise ``ApiError`` with
the server's ``error`` field when the body carries one. There is no retry and
no idempotency key, so a create repeated after a timed-out first attempt can
produce a duplicate.
"""

import requests

from .config import Config, get_config_value
from .logging_service import LoggingService


class ApiError(Exception):
    """A failed call to the admin API"""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}


class NotFoundError(ApiError):
    """The API answered 404 for a single entity"""


def _error_message(response, default):
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get('error'):
        return str(body['error'])
    return default


class ResourceClient:
    """
    Client for one REST collection.

    Args:
        resource: Collection path, e.g. "/api/admin/categories"
        base_url: API origin; defaults to the configured API_BASE_URL
        session: Optional requests.Session (shared between clients of one page)
        update_method: "PATCH" for most resources, "PUT" for article categories
    """

    def __init__(self, resource, base_url=None, session=None, timeout=None,
                 update_method='PATCH', auth_token=None, label=None):
        self.resource = '/' + resource.strip('/')
        self.base_url = (base_url or get_config_value('API_BASE_URL', Config.API_BASE_URL)).rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout or float(get_config_value('API_TIMEOUT', Config.API_TIMEOUT))
        self.update_method = update_method
        self.label = label or self.resource.rsplit('/', 1)[-1]

        token = auth_token or get_config_value('API_AUTH_TOKEN')
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def url(self, *parts):
        path = self.resource
        for part in parts:
            path += '/' + str(part).strip('/')
        return self.base_url + path

    def _request(self, method, url, default_error, **kwargs):
        try:
            response = self.session.request(
                method, url, headers=self.headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            LoggingService.log_api_call('api_client', url, method, None, {'error': str(e)})
            raise ApiError(default_error) from e

        LoggingService.log_api_call('api_client', url, method, response.status_code)

        if response.status_code == 404:
            raise NotFoundError(_error_message(response, default_error), 404)
        if not 200 <= response.status_code < 300:
            raise ApiError(
                _error_message(response, default_error),
                response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(default_error, response.status_code) from e

    def list(self, params=None):
        """GET the collection; query params are passed through as-is"""
        params = {k: v for k, v in (params or {}).items() if v not in (None, '')}
        return self._request('GET', self.url(), f"Failed to load {self.label}", params=params)

    def get(self, entity_id):
        return self._request('GET', self.url(entity_id), f"Failed to load {self.label}")

    def create(self, payload):
        return self._request('POST', self.url(), f"Failed to save {self.label}", json=payload)

    def update(self, entity_id, payload):
        return self._request(self.update_method, self.url(entity_id),
                             f"Failed to save {self.label}", json=payload)

    def remove(self, entity_id):
        self._request('DELETE', self.url(entity_id), f"Failed to delete {self.label}")

    def children(self, entity_id, name):
        """GET /resource/{id}/{name} for drill-down panels"""
        return self._request('GET', self.url(entity_id, name), f"Failed to load {name}")

    def upload(self, path, field_name, file_storage):
        """
        POST a multipart file to an upload endpoint outside the collection.

        Returns the parsed JSON body (e.g. {"success": true, "filePath": "/uploads/..."}).
        """
        url = self.base_url + '/' + path.strip('/')
        files = {
            field_name: (file_storage.filename, file_storage.stream,
                         file_storage.mimetype or 'application/octet-stream')
        }
        return self._request('POST', url, "Failed to upload file", files=files)
