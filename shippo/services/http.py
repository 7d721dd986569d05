"""HTTP transport for the release API.

Publishing needs exactly two calls: POST a JSON document (create the
release) and POST a file (upload an asset). ``HttpClient`` is the injectable
seam; ``RealHttpClient`` speaks HTTPS through urllib and ``MockHttpClient``
answers from a URL table in tests.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, cast, runtime_checkable

from shippo import __version__
from shippo.core.result import Err, Ok, Result
from shippo.core.structured import as_str_dict, get_str

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]

type JsonObject = dict[str, Any]


@dataclass(frozen=True, slots=True)
class HttpError:
    """A failed request. ``status`` is 0 when no HTTP response arrived."""

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"

    @property
    def is_auth_error(self) -> bool:
        return self.status in (401, 403)


@runtime_checkable
class HttpClient(Protocol):
    def post_json(
        self, url: str, payload: JsonObject, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        """POST ``payload`` as JSON; the response must be a JSON object (or empty)."""
        ...

    def upload(
        self, url: str, path: Path, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        """POST the bytes of ``path`` as ``application/octet-stream``."""
        ...


def _api_message(error: urllib.error.HTTPError) -> str:
    """The ``message`` field of a JSON error body, else the HTTP reason."""
    try:
        body = error.read()
        data = as_str_dict(json.loads(body.decode("utf-8"))) if body else None
    except (OSError, ValueError, AttributeError):
        data = None
    message = get_str(data, "message") if data is not None else None
    return message or str(error.reason)


class RealHttpClient:
    """urllib client with system certificates and one timeout for every call."""

    def __init__(
        self, timeout: float = 60.0, user_agent: str = f"shippo/{__version__}"
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _send(
        self, url: str, body: bytes, content_type: str, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        all_headers = {"User-Agent": self.user_agent, "Content-Type": content_type, **headers}
        try:
            request = urllib.request.Request(url, data=body, method="POST", headers=all_headers)
            with urllib.request.urlopen(
                request, timeout=self.timeout, context=self._ssl_context
            ) as response:
                raw: bytes = response.read()
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=_api_message(e)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        return self._decode(url, raw)

    @staticmethod
    def _decode(url: str, raw: bytes) -> Result[JsonObject, HttpError]:
        if not raw:
            return Ok({})
        try:
            data = as_str_dict(json.loads(raw.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        if data is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON object"))
        return Ok(cast(JsonObject, data))

    def post_json(
        self, url: str, payload: JsonObject, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        return self._send(url, json.dumps(payload).encode("utf-8"), "application/json", headers)

    def upload(
        self, url: str, path: Path, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        try:
            body = path.read_bytes()
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=f"cannot read {path}: {e}"))
        return self._send(url, body, "application/octet-stream", headers)


class MockHttpClient:
    """Answers from a table keyed by URL without its query string; 404 otherwise.

    Usage:
        client = MockHttpClient()
        client.set_response("https://api.github.com/repos/o/r/releases", {"id": 1})
        client.post_json("https://api.github.com/repos/o/r/releases", {}, {})
        assert client.calls == [("post_json", "https://api.github.com/repos/o/r/releases")]
    """

    def __init__(self) -> None:
        self._responses: dict[str, JsonObject | HttpError] = {}
        self.calls: list[tuple[str, str]] = []
        self.payloads: list[JsonObject] = []
        self.headers: list[dict[str, str]] = []

    def set_response(self, url: str, response: JsonObject | HttpError) -> None:
        self._responses[url] = response

    def _answer(
        self, method: str, url: str, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        self.calls.append((method, url))
        self.headers.append(headers)
        response = self._responses.get(url.split("?", 1)[0])
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def post_json(
        self, url: str, payload: JsonObject, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        self.payloads.append(payload)
        return self._answer("post_json", url, headers)

    def upload(
        self, url: str, path: Path, headers: dict[str, str]
    ) -> Result[JsonObject, HttpError]:
        return self._answer("upload", url, headers)
