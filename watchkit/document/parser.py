"""Streaming, token-based document reader.

Component parsers are handed a ``DocumentParser`` positioned on the first
token of their own sub-document and consume exactly that sub-document, so
the caller can carry on with the next sibling field afterwards.

Token walk for ``{"webhook": {"method": "POST"}}``::

    START_OBJECT
    FIELD_NAME      "webhook"
    START_OBJECT
    FIELD_NAME      "method"
    VALUE_STRING    "POST"
    END_OBJECT
    END_OBJECT
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from watchkit.document.formats import DocumentFormat, decode
from watchkit.exceptions import DocumentFormatError


class Token(str, Enum):
    START_OBJECT = "start_object"
    END_OBJECT = "end_object"
    START_ARRAY = "start_array"
    END_ARRAY = "end_array"
    FIELD_NAME = "field_name"
    VALUE_STRING = "value_string"
    VALUE_NUMBER = "value_number"
    VALUE_BOOLEAN = "value_boolean"
    VALUE_NULL = "value_null"
    VALUE_BYTES = "value_bytes"

    @property
    def is_value(self) -> bool:
        return self in _SCALAR_TOKENS


_SCALAR_TOKENS = frozenset(
    {
        Token.VALUE_STRING,
        Token.VALUE_NUMBER,
        Token.VALUE_BOOLEAN,
        Token.VALUE_NULL,
        Token.VALUE_BYTES,
    }
)

_Event = tuple[Token, "str | None", Any]


def _events(value: Any, name: str | None = None) -> Iterator[_Event]:
    if isinstance(value, Mapping):
        yield Token.START_OBJECT, name, None
        for key, item in value.items():
            if not isinstance(key, str):
                raise DocumentFormatError(
                    f"Object keys must be strings, got {type(key).__name__} under '{name}'"
                )
            yield Token.FIELD_NAME, key, key
            yield from _events(item, key)
        yield Token.END_OBJECT, name, None
    elif isinstance(value, (list, tuple)):
        yield Token.START_ARRAY, name, None
        for item in value:
            yield from _events(item, name)
        yield Token.END_ARRAY, name, None
    elif value is None:
        yield Token.VALUE_NULL, name, None
    elif isinstance(value, str):
        yield Token.VALUE_STRING, name, value
    elif isinstance(value, bool):
        yield Token.VALUE_BOOLEAN, name, value
    elif isinstance(value, (int, float)):
        yield Token.VALUE_NUMBER, name, value
    elif isinstance(value, (bytes, bytearray)):
        yield Token.VALUE_BYTES, name, bytes(value)
    else:
        raise DocumentFormatError(
            f"Unsupported document value of type {type(value).__name__} under '{name}'"
        )


class DocumentParser:
    """Pull parser over a decoded document tree.

    Usage::

        parser = DocumentParser.from_bytes(b'{"a": 1}')
        parser.next_token()          # Token.START_OBJECT
        parser.next_token()          # Token.FIELD_NAME
        parser.current_name()        # "a"
        parser.next_token()          # Token.VALUE_NUMBER
        parser.number_value()        # 1
    """

    def __init__(self, tree: Any) -> None:
        self._events = _events(tree)
        self._current: _Event | None = None

    @classmethod
    def from_bytes(
        cls, data: bytes | str, format: DocumentFormat | str = DocumentFormat.JSON
    ) -> "DocumentParser":
        return cls(decode(data, format))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def current_token(self) -> Token | None:
        return self._current[0] if self._current is not None else None

    def next_token(self) -> Token | None:
        """Advance and return the new current token (``None`` at end of input)."""
        self._current = next(self._events, None)
        return self.current_token

    def current_name(self) -> str | None:
        """Field name of the current token, or of the field holding the current value."""
        return self._current[1] if self._current is not None else None

    def expect(self, *tokens: Token) -> Token:
        """Fail unless the current token is one of *tokens*."""
        token = self.current_token
        if token not in tokens:
            expected = " or ".join(t.name for t in tokens)
            found = token.name if token is not None else "end of input"
            raise DocumentFormatError(
                f"Expected {expected} but found {found}"
                + (f" at '{self.current_name()}'" if self.current_name() else ""),
                context={"expected": [t.value for t in tokens], "found": found},
                field=self.current_name(),
            )
        return token  # type: ignore[return-value]

    def skip_children(self) -> None:
        """From START_OBJECT/START_ARRAY, advance to the matching end token."""
        if self.current_token not in (Token.START_OBJECT, Token.START_ARRAY):
            return
        depth = 1
        while depth:
            token = self.next_token()
            if token is None:
                raise DocumentFormatError("Unexpected end of input inside a container")
            if token in (Token.START_OBJECT, Token.START_ARRAY):
                depth += 1
            elif token in (Token.END_OBJECT, Token.END_ARRAY):
                depth -= 1

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def text(self) -> str:
        self.expect(Token.VALUE_STRING)
        return self._current[2]  # type: ignore[index]

    def number_value(self) -> int | float:
        self.expect(Token.VALUE_NUMBER)
        return self._current[2]  # type: ignore[index]

    def boolean_value(self) -> bool:
        self.expect(Token.VALUE_BOOLEAN)
        return self._current[2]  # type: ignore[index]

    def bytes_value(self) -> bytes:
        """Return a byte sequence from a native bytes token or a base64 string."""
        token = self.expect(Token.VALUE_BYTES, Token.VALUE_STRING)
        if token is Token.VALUE_BYTES:
            return self._current[2]  # type: ignore[index]
        try:
            return base64.b64decode(self.text(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DocumentFormatError(
                f"Field '{self.current_name()}' is not valid base64: {exc}"
            ) from exc

    def scalar(self) -> Any:
        """Return the current value whatever its scalar type."""
        token = self.current_token
        if token is None or not token.is_value:
            self.expect(*_SCALAR_TOKENS)
        return self._current[2]  # type: ignore[index]

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def map(self) -> dict[str, Any]:
        """Read the object starting at the current token into a dict."""
        self.expect(Token.START_OBJECT)
        result: dict[str, Any] = {}
        while self.next_token() is not Token.END_OBJECT:
            self.expect(Token.FIELD_NAME)
            key = self.current_name()
            self.next_token()
            result[key] = self._read_value()  # type: ignore[index]
        return result

    def list(self) -> list[Any]:
        """Read the array starting at the current token into a list."""
        self.expect(Token.START_ARRAY)
        result: list[Any] = []
        while self.next_token() is not Token.END_ARRAY:
            result.append(self._read_value())
        return result

    def value(self) -> Any:
        """Read whatever value starts at the current token."""
        return self._read_value()

    def _read_value(self) -> Any:
        token = self.current_token
        if token is Token.START_OBJECT:
            return self.map()
        if token is Token.START_ARRAY:
            return self.list()
        return self.scalar()
