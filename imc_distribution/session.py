"""Outbound HTTP session shared by the channel adapters.

One session is constructed per distributor (see factory.build_distributor)
and handed to every adapter. It owns the per-call timeout and the live/dry-run
switch; in dry-run mode requests are recorded locally and answered with mock
ids, the same way the individual platform clients behave when not live.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlencode

from imc_distribution.errors import ChannelError, ChannelTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "imc-distribution/0.1"


@dataclass
class RecordedRequest:
    channel: str
    method: str
    url: str
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)


def extract_error(payload: Any) -> tuple[int | None, str] | None:
    """Find a vendor error (code, message) in a decoded response body.

    Understands the Graph API ``{"error": {"code", "message"}}`` shape, the
    Eventbrite ``{"error", "error_description", "status_code"}`` shape and the
    ``{"statusCode"|"status", "message"}`` shape used by Resend and LinkedIn.
    """
    if not isinstance(payload, Mapping):
        return None
    err = payload.get("error")
    if isinstance(err, Mapping):
        code = err.get("code")
        return (int(code) if isinstance(code, int) else None,
                str(err.get("message") or err.get("type") or "unknown error"))
    if isinstance(err, str) and err:
        code = payload.get("status_code")
        message = payload.get("error_description") or err
        return (int(code) if isinstance(code, int) else None, f"{err}: {message}" if message != err else err)
    return None


class ChannelSession:
    """Thin urllib wrapper with a bounded timeout per request."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, live: bool = False) -> None:
        self.timeout = timeout
        self._live = live
        self._lock = threading.Lock()
        self._recorded: list[RecordedRequest] = []

    @property
    def live(self) -> bool:
        return self._live

    @property
    def recorded(self) -> list[RecordedRequest]:
        with self._lock:
            return list(self._recorded)

    def post_json(
        self, channel: str, url: str, payload: Mapping[str, Any],
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        data = json.dumps(payload).encode("utf-8")
        merged = {"Content-Type": "application/json", **(headers or {})}
        return self._request(channel, "POST", url, data, merged, payload)

    def post_form(
        self, channel: str, url: str, params: Mapping[str, Any],
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        data = urlencode({k: v for k, v in params.items() if v is not None}).encode("utf-8")
        merged = {"Content-Type": "application/x-www-form-urlencoded", **(headers or {})}
        return self._request(channel, "POST", url, data, merged, dict(params))

    def put_bytes(
        self, channel: str, url: str, data: bytes,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        return self._request(channel, "PUT", url, data, dict(headers or {}), f"<{len(data)} bytes>")

    def get_json(
        self, channel: str, url: str, headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        return self._request(channel, "GET", url, None, dict(headers or {}), None)

    def get_bytes(self, channel: str, url: str) -> bytes:
        if not self._live:
            self._record(RecordedRequest(channel=channel, method="GET", url=url))
            return b""
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT}, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.read()
        except urllib.error.HTTPError as exc:
            raise ChannelError(channel, f"download failed ({exc.code}) for {url}", status=exc.code) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise ChannelTimeoutError(channel, self.timeout) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise ChannelTimeoutError(channel, self.timeout) from exc
            raise ChannelError(channel, f"connection error: {exc.reason}") from exc

    def _record(self, request: RecordedRequest) -> int:
        with self._lock:
            self._recorded.append(request)
            return len(self._recorded)

    def _request(
        self, channel: str, method: str, url: str, data: bytes | None,
        headers: dict[str, str], logged_body: Any,
    ) -> dict[str, Any]:
        if not self._live:
            count = self._record(RecordedRequest(
                channel=channel, method=method, url=url, body=logged_body,
                headers={k: v for k, v in headers.items() if k.lower() != "authorization"},
            ))
            logger.debug("dry-run %s %s (%s)", method, url, channel)
            return {"id": f"mock-{channel}-{count}", "mock": True}

        headers = {"User-Agent": USER_AGENT, **headers}
        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
                if not raw:
                    return {"status": resp.status, "headers": {k.lower(): v for k, v in resp.headers.items()}}
                result = json.loads(raw)
        except urllib.error.HTTPError as exc:
            body_text = exc.read().decode("utf-8", errors="replace")
            try:
                decoded = json.loads(body_text) if body_text else {}
            except json.JSONDecodeError:
                decoded = {}
            if not isinstance(decoded, dict):
                decoded = {}
            found = extract_error(decoded)
            if found is None:
                status_code = decoded.get("statusCode") or decoded.get("status")
                code = status_code if isinstance(status_code, int) else exc.code
                found = (code, str(decoded.get("message") or body_text or exc.reason))
            raise ChannelError.from_response(channel, found[1], found[0], status=exc.code) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise ChannelTimeoutError(channel, self.timeout) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise ChannelTimeoutError(channel, self.timeout) from exc
            raise ChannelError(channel, f"connection error: {exc.reason}") from exc
        except json.JSONDecodeError as exc:
            raise ChannelError(channel, f"unreadable response from {url}") from exc

        found = extract_error(result)
        if found is not None:
            raise ChannelError.from_response(channel, found[1], found[0])
        if not isinstance(result, dict):
            return {"result": result}
        return result
