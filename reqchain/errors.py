"""reqchain errors - HTTP failures vs. client/protocol failures."""

import json
from collections.abc import Callable
from typing import Any


class ReqchainError(Exception):
    """Base for every error raised by reqchain.

    ``kind`` discriminates the two families:
      - "http"      → the server answered outside 200-299 (HttpError)
      - "protocol"  → anything else: transport, decoding, serialization, abort
    """

    kind: str = ""


class HttpError(ReqchainError):
    """Non-success HTTP response.

    ``response`` holds the parsed JSON body when the error body was valid JSON,
    otherwise the raw text.
    """

    kind = "http"

    def __init__(
        self,
        status_code: int,
        response: Any,
        status_text: str = "",
        url: str = "",
    ):
        self.status_code = status_code
        self.response = response
        self.status_text = status_text
        self.url = url
        body = response if isinstance(response, str) else json.dumps(response)
        self.message = f"HTTP Error {status_code}: {body}"
        super().__init__(self.message)

    @property
    def raw_response_body(self) -> Any:
        return self.response


class ProtocolError(ReqchainError):
    """Client-side failure that carries no HTTP status."""

    kind = "protocol"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnsupportedContentType(ProtocolError):
    def __init__(self, content_type: str):
        self.content_type = content_type
        super().__init__(f"Unsupported content type: {content_type}")


class SerializationError(ProtocolError):
    pass


class TransportError(ProtocolError):
    pass


class RequestAborted(ProtocolError):
    """The caller's cancel token fired while the request was in flight."""

    def __init__(self, message: str = "Request aborted"):
        super().__init__(message)


def handle_http_error(
    error: BaseException,
    callback: Callable[[dict], Any],
    passthrough: Callable[[], Any] | None = None,
) -> Any:
    """Route an HttpError to ``callback``; anything else to ``passthrough``.

    The callback receives {data, status_text, url, message}. Non-HTTP errors
    are re-raised when no passthrough is given.
    """
    if isinstance(error, HttpError):
        data = error.response if error.response is not None else {}
        return callback(
            {
                "data": data,
                "status_text": error.status_text,
                "url": error.url,
                "message": error.message,
            },
        )
    if passthrough is None:
        raise error
    return passthrough()
