"""reqchain executor - HTTP request execution.

Resolves a RequestDescriptor into a URL, headers and body, performs exactly
one transport call and hands the response to decode_response. No retries:
every failure reaches the caller.
"""

import asyncio
import json
from collections.abc import Callable
from typing import Any

import click
from requests.structures import CaseInsensitiveDict

from reqchain.decode import Result, decode_response
from reqchain.errors import HttpError, SerializationError
from reqchain.form import FormFile, encode_form, is_file_like, to_multipart
from reqchain.request import BodyMode, Method, RequestDescriptor, resolve_url, with_options
from reqchain.transport import CancelToken, RequestsTransport

DebugSink = Callable[[str], Any]

DEBUG_BANNER = "================= REQCHAIN DEBUG ================="
DEBUG_RULE = "-" * len(DEBUG_BANNER)


def echo_stderr(message: str) -> None:
    click.echo(message, err=True)


def resolve_body(
    desc: RequestDescriptor,
) -> tuple[CaseInsensitiveDict, bytes | None, list | None]:
    """Return (headers, data, files) for the transport.

    - GET never carries a body, whatever the body mode
    - FORM drops Content-Type so requests writes the multipart boundary
    - JSON defaults Content-Type to application/json (callers may override)
    """
    headers = desc.headers.copy()

    if desc.method is Method.GET or desc.body_mode is BodyMode.NONE:
        return headers, None, None

    if desc.body_mode is BodyMode.FORM:
        headers.pop("Content-Type", None)
        return headers, None, to_multipart(encode_form(desc.payload))

    if desc.payload is None:
        return headers, None, None
    try:
        body = json.dumps(desc.payload)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize JSON payload: {e}") from e
    headers.setdefault("Content-Type", "application/json")
    return headers, body.encode("utf-8"), None


def execute(
    desc: RequestDescriptor,
    transport: Callable | None = None,
    sink: DebugSink | None = None,
) -> Result:
    """Execute ``desc`` and return the decoded Result.

    Raises HttpError for non-2xx responses and a ProtocolError subclass for
    transport, serialization and content-type failures.
    """
    transport = transport or RequestsTransport()
    sink = sink or echo_stderr
    url = resolve_url(desc)

    try:
        headers, data, files = resolve_body(desc)
        response = transport(
            desc.method.value,
            url,
            headers=headers,
            data=data,
            files=files,
            options=desc.options,
        )
        result = decode_response(response)
    except HttpError as e:
        if desc.debug:
            sink(debug_block(desc, url, status_code=e.status_code, response=e.response))
        raise
    except Exception as e:
        if desc.debug:
            sink(debug_block(desc, url, error=e))
        raise

    if desc.debug:
        sink(debug_block(desc, url, status_code=result.status_code, response=result.data))
    return result


async def execute_async(
    desc: RequestDescriptor,
    transport: Callable | None = None,
    sink: DebugSink | None = None,
) -> Result:
    """Run ``execute`` in a worker thread.

    Cancelling the awaiting task cancels the request's CancelToken, so the
    worker aborts its in-flight call instead of running to completion.
    """
    token = desc.options.signal
    if token is None:
        token = CancelToken()
        desc = with_options(desc, signal=token)
    try:
        return await asyncio.to_thread(execute, desc, transport, sink)
    except asyncio.CancelledError:
        token.cancel("Request cancelled")
        raise


# ── Debug output ─────────────────────────────────────────────────────────


def _describe(value: Any) -> Any:
    if isinstance(value, FormFile):
        return f"<file {value.name} ({len(value.content)} bytes)>"
    if is_file_like(value):
        return f"<file {value.name}>"
    return repr(value)


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, default=_describe)
    except (TypeError, ValueError):
        return repr(value)


def debug_block(
    desc: RequestDescriptor,
    url: str,
    status_code: int | None = None,
    response: Any = None,
    error: BaseException | None = None,
) -> str:
    """Render one diagnostic block: endpoint, method, payload, outcome."""
    lines = [
        "",
        DEBUG_BANNER,
        f"ENDPOINT: => {url}",
        f"METHOD: => {desc.method.value}",
        f"PAYLOAD: => {_format_value(desc.payload)}",
        DEBUG_RULE,
    ]
    if error is not None:
        lines.append(f"Request failed: {type(error).__name__}: {error}")
    else:
        lines.append(f"STATUS CODE: => {status_code}")
        lines.append(f"RESPONSE: => {_format_value(response)}")
    lines.append(DEBUG_RULE)
    return "\n".join(lines)
