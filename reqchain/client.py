"""reqchain client - fluent request builder.

    client = NextClient(ClientConfig(base_url="https://api.example.com"))
    result = client.post("/users", {"page": 1}).json({"name": "Ada"}).send()
    result.status_code, result.data

Each builder call returns a new RequestBuilder wrapping a new descriptor, so
partially built chains can be reused and branched safely.
"""

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from reqchain import request as rq
from reqchain.decode import Result
from reqchain.executor import DebugSink, execute, execute_async
from reqchain.request import BodyMode, Method, RequestDescriptor
from reqchain.transport import TransportOptions


@dataclass(frozen=True)
class ClientConfig:
    """Client-wide defaults, read-only once the client is built."""

    base_url: str = ""
    prefix: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    debug: bool = False


class RequestBuilder:
    def __init__(
        self,
        descriptor: RequestDescriptor,
        transport: Callable | None = None,
        sink: DebugSink | None = None,
    ):
        self._descriptor = descriptor
        self._transport = transport
        self._sink = sink

    @property
    def descriptor(self) -> RequestDescriptor:
        return self._descriptor

    def _next(self, descriptor: RequestDescriptor) -> "RequestBuilder":
        return RequestBuilder(descriptor, self._transport, self._sink)

    def _with_body(self) -> RequestDescriptor:
        if self._descriptor.body_mode is BodyMode.NONE:
            return rq.with_form(self._descriptor)
        return self._descriptor

    # ── Chain steps ──────────────────────────────────────────────────────

    def query(self, params: Mapping[str, Any]) -> "RequestBuilder":
        return self._next(rq.with_query(self._descriptor, params))

    def json(self, data: Any) -> "RequestBuilder":
        return self._next(rq.with_json(self._descriptor, data))

    def form(self, data: Any = None) -> "RequestBuilder":
        return self._next(rq.with_form(self._descriptor, data))

    def headers(self, headers: Mapping[str, str]) -> "RequestBuilder":
        return self._next(rq.with_headers(self._descriptor, headers))

    def set(self, key: str, value: Any) -> "RequestBuilder":
        """Set one payload key. Without a body selected, starts a form body."""
        return self._next(rq.with_field(self._with_body(), key, value))

    def remove(self, key: str) -> "RequestBuilder":
        return self._next(rq.without_field(self._with_body(), key))

    def append(self, key: str, value: Any) -> "RequestBuilder":
        """Add a value under ``key``; repeated keys become multi-value form fields."""
        return self._next(rq.append_field(self._with_body(), key, value))

    def transport_options(self, **options: Any) -> "RequestBuilder":
        return self._next(rq.with_options(self._descriptor, **options))

    # ── Execution ────────────────────────────────────────────────────────

    def _final(
        self,
        headers: Mapping[str, str] | None,
        options: TransportOptions | Mapping[str, Any] | None,
    ) -> RequestDescriptor:
        desc = self._with_body()
        if headers:
            desc = rq.with_headers(desc, headers)
        if isinstance(options, TransportOptions):
            desc = dataclasses.replace(desc, options=options)
        elif options:
            desc = rq.with_options(desc, **options)
        return desc

    def send(
        self,
        headers: Mapping[str, str] | None = None,
        options: TransportOptions | Mapping[str, Any] | None = None,
    ) -> Result:
        """Execute the request.

        Raises:
            HttpError: the server answered outside 200-299.
            ProtocolError: transport failure, abort, bad payload or an
                unsupported response content type.
        """
        return execute(self._final(headers, options), self._transport, self._sink)

    async def send_async(
        self,
        headers: Mapping[str, str] | None = None,
        options: TransportOptions | Mapping[str, Any] | None = None,
    ) -> Result:
        return await execute_async(self._final(headers, options), self._transport, self._sink)


class NextClient:
    """Entry point holding the base URL, prefix and default headers."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Callable | None = None,
        sink: DebugSink | None = None,
    ):
        self.config = config or ClientConfig()
        self._transport = transport
        self._sink = sink

    def request(
        self,
        method: Method | str,
        path: str,
        query: Mapping[str, Any] | None = None,
    ) -> RequestBuilder:
        descriptor = rq.new_request(
            method,
            path,
            base_url=self.config.base_url,
            prefix=self.config.prefix,
            query=query,
            headers=self.config.headers,
            debug=self.config.debug,
        )
        return RequestBuilder(descriptor, self._transport, self._sink)

    def get(self, path: str, query: Mapping[str, Any] | None = None) -> RequestBuilder:
        return self.request(Method.GET, path, query)

    def post(self, path: str, query: Mapping[str, Any] | None = None) -> RequestBuilder:
        return self.request(Method.POST, path, query)

    def put(self, path: str, query: Mapping[str, Any] | None = None) -> RequestBuilder:
        return self.request(Method.PUT, path, query)

    def patch(self, path: str, query: Mapping[str, Any] | None = None) -> RequestBuilder:
        return self.request(Method.PATCH, path, query)

    def delete(self, path: str, query: Mapping[str, Any] | None = None) -> RequestBuilder:
        return self.request(Method.DELETE, path, query)

    def head(self, path: str, query: Mapping[str, Any] | None = None) -> RequestBuilder:
        return self.request(Method.HEAD, path, query)

    def options(self, path: str, query: Mapping[str, Any] | None = None) -> RequestBuilder:
        return self.request(Method.OPTIONS, path, query)
