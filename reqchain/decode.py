"""reqchain decode - classify a completed response and decode its body."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from reqchain.errors import HttpError, ProtocolError, UnsupportedContentType
from reqchain.transport import TransportResponse


@dataclass(frozen=True)
class Result:
    """Successful (2xx) response: status code plus decoded body."""

    status_code: int
    data: Any
    status_text: str = ""
    url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict, compare=False)


def read_error_body(response: TransportResponse) -> Any:
    """Best-effort error body: parsed JSON when possible, raw text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text()


def decode_response(response: TransportResponse) -> Result:
    """Turn a completed response into a Result or raise.

    - status outside 200-299      → HttpError (JSON body, else text)
    - application/json            → parsed JSON (None for an empty body)
    - text/* or no Content-Type   → raw text
    - anything else               → UnsupportedContentType
    """
    status_code = response.status_code
    content_type = response.headers.get("Content-Type") or ""

    if not response.ok:
        raise HttpError(
            status_code,
            read_error_body(response),
            status_text=response.reason,
            url=response.url,
        )

    kind = content_type.lower()
    if "application/json" in kind:
        if not response.content.strip():
            data = None
        else:
            try:
                data = response.json()
            except ValueError as e:
                raise ProtocolError(f"Invalid JSON in response body: {e}") from e
    elif "text/" in kind or content_type == "":
        data = response.text()
    else:
        raise UnsupportedContentType(content_type)

    return Result(
        status_code=status_code,
        data=data,
        status_text=response.reason,
        url=response.url,
        headers=response.headers,
    )
