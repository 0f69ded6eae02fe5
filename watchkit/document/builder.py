"""Incremental document writer.

Components emit themselves through this builder.  A component's
``to_document(builder)`` writes exactly its own object (``start_object`` …
``end_object``); the container decides the key it lands under::

    builder.start_object()
    builder.field("trigger", trigger_wrapper)   # calls trigger_wrapper.to_document()
    builder.end_object()
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from watchkit.document.formats import DocumentFormat, encode
from watchkit.exceptions import DocumentFormatError


@runtime_checkable
class ToDocument(Protocol):
    """Anything that knows how to write its own object body."""

    def to_document(self, builder: "DocumentBuilder") -> "DocumentBuilder": ...


class DocumentBuilder:
    """Builds a document tree out of start/end/field calls.

    Usage::

        builder = DocumentBuilder()
        builder.start_object().field("method", "POST").end_object()
        builder.build()    # {"method": "POST"}
    """

    def __init__(self) -> None:
        self._root: Any = None
        self._has_root = False
        self._stack: list[dict[str, Any] | list[Any]] = []
        self._pending_name: str | None = None

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def start_object(self, name: str | None = None) -> "DocumentBuilder":
        if name is not None:
            self._set_name(name)
        container: dict[str, Any] = {}
        self._attach(container)
        self._stack.append(container)
        return self

    def end_object(self) -> "DocumentBuilder":
        self._close(dict, "end_object")
        return self

    def start_array(self, name: str | None = None) -> "DocumentBuilder":
        if name is not None:
            self._set_name(name)
        container: list[Any] = []
        self._attach(container)
        self._stack.append(container)
        return self

    def end_array(self) -> "DocumentBuilder":
        self._close(list, "end_array")
        return self

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def field(self, name: str, value: Any) -> "DocumentBuilder":
        """Write *value* under *name* in the current object."""
        self._set_name(name)
        return self.value(value)

    def value(self, value: Any) -> "DocumentBuilder":
        """Write *value* at the current position (array element or named field)."""
        if isinstance(value, ToDocument):
            depth = len(self._stack)
            value.to_document(self)
            if len(self._stack) != depth:
                raise DocumentFormatError(
                    f"{type(value).__name__}.to_document() left "
                    f"{len(self._stack) - depth} container(s) open"
                )
            return self
        if isinstance(value, Mapping):
            self.start_object()
            for key, item in value.items():
                if not isinstance(key, str):
                    raise DocumentFormatError(
                        f"Object keys must be strings, got {type(key).__name__}"
                    )
                self.field(key, item)
            return self.end_object()
        if isinstance(value, (list, tuple)):
            self.start_array()
            for item in value:
                self.value(item)
            return self.end_array()
        self._attach(self._scalar(value))
        return self

    @staticmethod
    def _scalar(value: Any) -> Any:
        if value is None or isinstance(value, (str, bool, int, float, bytes)):
            return value
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, timedelta):
            return int(value.total_seconds() * 1000)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, bytearray):
            return bytes(value)
        raise DocumentFormatError(
            f"Unsupported document value of type {type(value).__name__}"
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def build(self) -> Any:
        """Return the finished tree.

        Raises:
            DocumentFormatError: Nothing was written or a container is still open.
        """
        if self._stack:
            raise DocumentFormatError(
                f"Document is incomplete: {len(self._stack)} container(s) still open"
            )
        if not self._has_root:
            raise DocumentFormatError("Document is empty")
        return self._root

    def bytes(self, format: DocumentFormat | str = DocumentFormat.JSON) -> bytes:
        return encode(self.build(), format)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _set_name(self, name: str) -> None:
        if not self._stack or not isinstance(self._stack[-1], dict):
            raise DocumentFormatError(f"Field '{name}' written outside of an object")
        if self._pending_name is not None:
            raise DocumentFormatError(
                f"Field '{name}' written while field '{self._pending_name}' has no value"
            )
        self._pending_name = name

    def _attach(self, value: Any) -> None:
        if not self._stack:
            if self._has_root:
                raise DocumentFormatError("Document already has a root value")
            self._root = value
            self._has_root = True
            return
        parent = self._stack[-1]
        if isinstance(parent, list):
            parent.append(value)
            return
        if self._pending_name is None:
            raise DocumentFormatError("Value written inside an object without a field name")
        parent[self._pending_name] = value
        self._pending_name = None

    def _close(self, kind: type, call: str) -> None:
        if not self._stack or not isinstance(self._stack[-1], kind):
            raise DocumentFormatError(f"{call}() does not match the open container")
        if self._pending_name is not None:
            raise DocumentFormatError(f"Field '{self._pending_name}' has no value")
        self._stack.pop()
