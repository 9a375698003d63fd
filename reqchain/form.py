"""reqchain form - nested values to multipart form fields."""

import mimetypes
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_MIME = "application/octet-stream"


@dataclass(frozen=True)
class FormFile:
    """In-memory file for multipart upload."""

    name: str
    content: bytes
    content_type: str = DEFAULT_MIME

    @classmethod
    def from_path(cls, path: str | Path) -> "FormFile":
        path = Path(path)
        mime = mimetypes.guess_type(str(path))[0] or DEFAULT_MIME
        return cls(name=path.name, content=path.read_bytes(), content_type=mime)


# (field name, text value or file-like object)
EncodedForm = list[tuple[str, Any]]


def is_file_like(value: Any) -> bool:
    """True for FormFile and for binary streams that carry a name (open files)."""
    if isinstance(value, FormFile):
        return True
    if isinstance(value, str | bytes | Mapping):
        return False
    name = getattr(value, "name", None)
    return isinstance(name, str) and callable(getattr(value, "read", None))


def to_text(value: Any) -> str:
    """String form of a scalar as it goes over the wire."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def _items(value: Any):
    if value is None:
        return []
    if isinstance(value, Mapping):
        return list(value.items())
    if isinstance(value, list | tuple):
        return list(enumerate(value))
    return []


def encode_form(
    value: Any,
    form: EncodedForm | None = None,
    key_prefix: str = "",
) -> EncodedForm:
    """Flatten a nested value into (field, value) pairs.

    - {"a": {"b": 1}}       → a[b]=1
    - {"a": [1, 2]}         → a[0]=1, a[1]=2
    - {"a": []}             → a=""
    - {"a": None}           → a=""
    - {"files": [f1, f2]}   → files=f1, files=f2   (no index on files)
    - {"doc": {"pdf": f}}   → doc=f                (file goes under the container key)

    Fields are appended to ``form`` when given, so recursion shares one list.
    """
    if form is None:
        form = []

    for key, item in _items(value):
        form_key = f"{key_prefix}[{key}]" if key_prefix else str(key)

        if is_file_like(item):
            form.append((key_prefix or str(key), item))
        elif isinstance(item, list | tuple):
            if not item:
                form.append((form_key, ""))
                continue
            for index, element in enumerate(item):
                if is_file_like(element):
                    form.append((form_key, element))
                else:
                    form.append((f"{form_key}[{index}]", to_text(element)))
        elif isinstance(item, Mapping):
            encode_form(item, form, form_key)
        else:
            form.append((form_key, to_text(item)))

    return form


def to_multipart(form: EncodedForm) -> list[tuple[str, tuple]]:
    """Convert encoded fields to the ``files=`` list requests expects.

    Text fields get a None filename so requests sends them as plain parts
    and always builds a multipart body, even without any file.
    """
    parts: list[tuple[str, tuple]] = []
    for name, value in form:
        if isinstance(value, FormFile):
            parts.append((name, (value.name, value.content, value.content_type)))
        elif is_file_like(value):
            filename = os.path.basename(value.name)
            mime = mimetypes.guess_type(filename)[0] or DEFAULT_MIME
            parts.append((name, (filename, value, mime)))
        else:
            parts.append((name, (None, value)))
    return parts


def parse_form_fields(form_specs: tuple[str, ...] | list[str]) -> dict[str, Any]:
    """Parse KEY=VALUE and KEY=@FILE specs into a payload for encode_form.

    Repeated keys collect into a list, so ``-F files=@a -F files=@b`` uploads
    both files under ``files``.
    """
    payload: dict[str, Any] = {}

    for spec in form_specs:
        if "=" not in spec:
            continue
        key, value = spec.split("=", 1)
        key = key.strip()
        item: Any = FormFile.from_path(value[1:]) if value.startswith("@") else value

        if key not in payload:
            payload[key] = item
        elif isinstance(payload[key], list):
            payload[key].append(item)
        else:
            payload[key] = [payload[key], item]

    return payload
