"""reqchain request - immutable request descriptor and its transforms.

Every transform returns a new RequestDescriptor; headers, query and payload
are copied so two branches of one chain never share mutable state.
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

from requests.structures import CaseInsensitiveDict

from reqchain.query import encode_query
from reqchain.transport import TransportOptions


class Method(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class BodyMode(str, Enum):
    NONE = "none"
    JSON = "json"
    FORM = "form"


@dataclass(frozen=True)
class RequestDescriptor:
    method: Method
    path: str
    base_url: str = ""
    prefix: str = ""
    query: Mapping[str, Any] = field(default_factory=dict)
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body_mode: BodyMode = BodyMode.NONE
    payload: Any = None
    options: TransportOptions = field(default_factory=TransportOptions)
    debug: bool = False


def new_request(
    method: Method | str,
    path: str,
    *,
    base_url: str = "",
    prefix: str = "",
    query: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    debug: bool = False,
) -> RequestDescriptor:
    return RequestDescriptor(
        method=Method(method.upper()),
        path=path,
        base_url=base_url,
        prefix=prefix or "",
        query=dict(query or {}),
        headers=CaseInsensitiveDict(headers or {}),
        debug=debug,
    )


def with_query(desc: RequestDescriptor, params: Mapping[str, Any]) -> RequestDescriptor:
    return dataclasses.replace(desc, query={**desc.query, **params})


def with_headers(desc: RequestDescriptor, headers: Mapping[str, str]) -> RequestDescriptor:
    """Later headers override earlier ones, matching names case-insensitively."""
    merged = desc.headers.copy()
    merged.update(headers)
    return dataclasses.replace(desc, headers=merged)


def _copy_payload(data: Any) -> Any:
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, list):
        return list(data)
    return data


def with_json(desc: RequestDescriptor, data: Any) -> RequestDescriptor:
    return dataclasses.replace(desc, body_mode=BodyMode.JSON, payload=_copy_payload(data))


def with_form(desc: RequestDescriptor, data: Any = None) -> RequestDescriptor:
    payload = _copy_payload(data) if data is not None else {}
    return dataclasses.replace(desc, body_mode=BodyMode.FORM, payload=payload)


def _mapping_payload(desc: RequestDescriptor) -> dict:
    if desc.payload is None:
        return {}
    if not isinstance(desc.payload, Mapping):
        raise TypeError(
            f"Cannot set fields on a {type(desc.payload).__name__} payload",
        )
    return dict(desc.payload)


def with_field(desc: RequestDescriptor, key: str, value: Any) -> RequestDescriptor:
    payload = _mapping_payload(desc)
    payload[key] = value
    return dataclasses.replace(desc, payload=payload)


def without_field(desc: RequestDescriptor, key: str) -> RequestDescriptor:
    payload = _mapping_payload(desc)
    payload.pop(key, None)
    return dataclasses.replace(desc, payload=payload)


def append_field(desc: RequestDescriptor, key: str, value: Any) -> RequestDescriptor:
    """Add another value under ``key``; repeated appends collect into a list."""
    payload = _mapping_payload(desc)
    if key not in payload:
        payload[key] = value
    elif isinstance(payload[key], list):
        payload[key] = [*payload[key], value]
    else:
        payload[key] = [payload[key], value]
    return dataclasses.replace(desc, payload=payload)


def with_options(desc: RequestDescriptor, **options: Any) -> RequestDescriptor:
    return dataclasses.replace(desc, options=dataclasses.replace(desc.options, **options))


def resolve_url(desc: RequestDescriptor) -> str:
    """Join base URL, prefix and path, then attach the encoded query.

    The path resolves relative to the base URL: "/users" replaces the base
    path, "users" resolves against it. An absolute URL ignores the base.
    """
    path = desc.path
    if desc.prefix:
        path = f"{desc.prefix.rstrip('/')}/{path.lstrip('/')}"

    url = urljoin(desc.base_url, path) if desc.base_url else path

    query = encode_query(desc.query)
    if not query:
        # No params: an inline "?a=1" in the path survives as written.
        return url
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
