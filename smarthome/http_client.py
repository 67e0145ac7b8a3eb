"""HTTP requests to the server and routing of their responses."""

from __future__ import annotations

import abc
import json
import logging
from typing import Any, Callable, Mapping

import requests

from smarthome.eventbus import Signal
from smarthome.packets import parse_data_packets

log = logging.getLogger(__name__)

HttpCallback = Callable[[Mapping[str, Any], bytes], Any]

DEFAULT_BASE_URL = "http://127.0.0.1:8889/"


class HttpClientPort(abc.ABC):
    """Sends requests; responses without a callback go out on the signals.

    ``http_text_response`` carries JSON bodies, ``http_data_response``
    binary ones.
    """

    def __init__(self) -> None:
        self.http_text_response = Signal()
        self.http_data_response = Signal()

    @abc.abstractmethod
    def send_request(
        self,
        request_type: str,
        data: bytes,
        content_type: str,
        callback: HttpCallback | None = None,
    ) -> None:
        """POST ``data`` to the endpoint named ``request_type``."""


def _json_object(body: bytes) -> dict[str, Any]:
    try:
        document = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return document if isinstance(document, dict) else {}


class HttpClient(HttpClientPort):
    """Posts to ``base_url + request_type`` with the session token attached."""

    def __init__(
        self,
        tokens: Any = None,
        login_user: Any = None,
        base_url: str = DEFAULT_BASE_URL,
        session: Any = None,
    ) -> None:
        super().__init__()
        self._tokens = tokens
        self._login_user = login_user
        self._base_url = base_url
        self._session = session if session is not None else requests.Session()

    def _headers(self, content_type: str) -> dict[str, str]:
        headers = {"Content-Type": content_type}
        token = self._tokens.token if self._tokens is not None else ""
        if token:
            headers["Authorization"] = f"Bearer {token}"
        headers["user_id"] = self._login_user.user_id if self._login_user is not None else ""
        return headers

    def send_request(
        self,
        request_type: str,
        data: bytes,
        content_type: str,
        callback: HttpCallback | None = None,
    ) -> None:
        """POST the request and hand the response to ``callback`` or the signals.

        Network failures, error statuses and 204 replies produce nothing.
        """
        url = self._base_url + request_type
        try:
            response = self._session.post(url, data=bytes(data), headers=self._headers(content_type))
        except requests.Timeout:
            log.warning("the request timed out: %s", url)
            return
        except requests.ConnectionError:
            log.warning("the connection failed: %s", url)
            return
        except requests.RequestException as exc:
            log.warning("request to %s failed: %s", url, exc)
            return

        status = response.status_code
        if status >= 400:
            log.warning("request to %s failed with status %d", url, status)
            return
        if status == 204:
            return
        self._handle_reply(response, callback)

    def _handle_reply(self, response: Any, callback: HttpCallback | None) -> None:
        body = bytes(response.content)
        is_json = "application/json" in (response.headers.get("Content-Type") or "")
        log.debug("response data: %r", body)

        if callback is not None:
            if is_json:
                callback(_json_object(body), b"")
                return
            packets = parse_data_packets(body)
            if not packets:
                log.warning("binary response holds no complete packet")
                return
            callback(packets[0].params, packets[0].data)
            return

        if is_json:
            self.http_text_response.emit(body)
        else:
            self.http_data_response.emit(body)