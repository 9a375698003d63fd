"""reqchain query - nested params to URL query strings."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from reqchain.form import to_text


class QueryParams:
    """Ordered query parameters with last-write-wins semantics.

    Unlike multipart form fields, a name holds exactly one value: setting
    ``a`` twice keeps only the second value (in the first one's position).
    """

    def __init__(self, params: Mapping[str, Any] | None = None):
        self._values: dict[str, str] = {}
        if params:
            self.update(params)

    def set(self, name: str, value: Any) -> None:
        self._values[name] = to_text(value)

    def get(self, name: str) -> str | None:
        return self._values.get(name)

    def update(self, params: Mapping[str, Any], prefix: str = "") -> "QueryParams":
        """Flatten ``params`` with bracket notation and set every leaf.

        Lists are not special-cased: their indices become bracketed keys
        (``ids[0]``, ``ids[1]``) just like mapping keys.
        """
        for key, value in params.items():
            self._add(f"{prefix}{key}", value)
        return self

    def _add(self, name: str, value: Any) -> None:
        if isinstance(value, Mapping):
            nested = value.items()
        elif isinstance(value, list | tuple):
            nested = enumerate(value)
        else:
            self.set(name, value)
            return
        for nested_key, nested_value in nested:
            self._add(f"{name}[{nested_key}]", nested_value)

    def items(self) -> list[tuple[str, str]]:
        return list(self._values.items())

    def __len__(self) -> int:
        return len(self._values)

    def __str__(self) -> str:
        return urlencode(self.items())


def encode_query(params: Mapping[str, Any] | None, prefix: str = "") -> str:
    """One-shot encoding of ``params`` into a query string (no leading '?')."""
    if not params:
        return ""
    return str(QueryParams().update(params, prefix))
