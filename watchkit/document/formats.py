"""Wire encodings for document trees.

A document tree is made of ``dict`` (string keys, insertion ordered),
``list``, ``str``, ``int``/``float``, ``bool``, ``None`` and ``bytes``.

JSON has no byte type, so byte sequences travel as base64 strings;
``DocumentParser.bytes_value()`` decodes them back.  YAML keeps them
native through the ``!!binary`` tag.
"""

from __future__ import annotations

import base64
import json
from enum import Enum
from typing import Any

import yaml

from watchkit.exceptions import DocumentFormatError


class DocumentFormat(str, Enum):
    JSON = "json"
    YAML = "yaml"


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode(tree: Any, format: DocumentFormat | str = DocumentFormat.JSON) -> bytes:
    """Serialise a document tree into *format*."""
    fmt = DocumentFormat(format)
    if fmt is DocumentFormat.JSON:
        return json.dumps(tree, default=_json_default, ensure_ascii=False).encode("utf-8")
    return yaml.safe_dump(
        tree, default_flow_style=False, sort_keys=False, allow_unicode=True
    ).encode("utf-8")


def decode(data: bytes | str, format: DocumentFormat | str = DocumentFormat.JSON) -> Any:
    """Deserialise *data* into a document tree.

    Raises:
        DocumentFormatError: The payload is not valid for *format*.
    """
    fmt = DocumentFormat(format)
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DocumentFormatError(
                f"Document is not valid UTF-8: {exc}", context={"format": fmt.value}
            ) from exc

    try:
        if fmt is DocumentFormat.JSON:
            return json.loads(data)
        return yaml.safe_load(data)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DocumentFormatError(
            f"Invalid {fmt.value.upper()} document: {exc}",
            context={"format": fmt.value, "raw_payload": data[:500]},
        ) from exc
