"""reqchain transport - the single outbound HTTP call, built on requests."""

import codecs
import json
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import requests
from requests.structures import CaseInsensitiveDict

from reqchain.errors import RequestAborted, TransportError

CHUNK_SIZE = 64 * 1024


class CancelToken:
    """Cooperative cancellation shared between a caller and one request.

    The transport checks the token before dispatch and between body chunks;
    once cancelled, the in-flight request is closed and RequestAborted raised.
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason = "Request aborted"

    def cancel(self, reason: str | None = None) -> None:
        if reason:
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestAborted(self.reason)


@dataclass(frozen=True)
class TransportOptions:
    """Per-call options handed through to the transport untouched.

    Defaults mirror a browser fetch with conservative isolation: same-origin
    credentials, no referrer, no caching, redirects followed. ``timeout`` is
    None; the caller bounds a request with ``signal`` or an explicit timeout.
    """

    signal: CancelToken | None = None
    credentials: str = "same-origin"
    mode: str = "cors"
    referrer_policy: str = "no-referrer"
    cache: str = "no-store"
    redirect: str = "follow"
    timeout: float | None = None


class TransportResponse:
    """Completed response with a fully buffered body.

    ``text()`` and ``json()`` both read from the same buffered bytes, so the
    body can be read more than once (JSON first, then text on failure).
    """

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str] | None = None,
        content: bytes = b"",
        reason: str = "",
        url: str = "",
        encoding: str | None = None,
    ):
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.content = content
        self.reason = reason
        self.url = url
        self.encoding = _known_encoding(encoding)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code <= 299

    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text())


def _known_encoding(encoding: str | None) -> str | None:
    """Unknown charsets fall back to utf-8 decoding."""
    if not encoding:
        return None
    try:
        codecs.lookup(encoding)
    except LookupError:
        return None
    return encoding


def apply_policies(
    headers: Mapping[str, str] | None,
    options: TransportOptions,
) -> CaseInsensitiveDict:
    """Translate fetch-style options into concrete request headers."""
    result = CaseInsensitiveDict(headers or {})
    if options.credentials == "omit":
        result.pop("Authorization", None)
        result.pop("Cookie", None)
    if options.referrer_policy == "no-referrer":
        result.pop("Referer", None)
    if options.cache and options.cache != "default":
        result.setdefault("Cache-Control", options.cache)
    return result


class RequestsTransport:
    """Default transport: one ``requests.request`` call per request."""

    def __call__(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
        files: list | None = None,
        options: TransportOptions | None = None,
    ) -> TransportResponse:
        options = options or TransportOptions()
        token = options.signal
        if token is not None:
            token.raise_if_cancelled()

        kwargs: dict[str, Any] = {
            "method": method,
            "url": url,
            "headers": dict(apply_policies(headers, options)),
            "data": data,
            "files": files or None,
            "allow_redirects": options.redirect == "follow",
            "timeout": options.timeout,
            "stream": True,
        }

        try:
            resp = requests.request(**kwargs)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        try:
            chunks: list[bytes] = []
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if token is not None:
                    token.raise_if_cancelled()
                chunks.append(chunk)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed reading response: {e}") from e
        finally:
            resp.close()

        if token is not None:
            token.raise_if_cancelled()

        content_type = resp.headers.get("Content-Type", "")
        return TransportResponse(
            status_code=resp.status_code,
            headers=resp.headers,
            content=b"".join(chunks),
            reason=resp.reason or "",
            url=resp.url or url,
            encoding=resp.encoding if "charset" in content_type.lower() else None,
        )
