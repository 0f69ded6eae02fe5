"""Template strings and the engine that renders them.

Template syntax:
    {{ctx.watch_id}}                 Field of the execution context
    {{ctx.payload.hits.total}}       Nested payload value (list items by index)
    {{name}}                         A param declared on the template itself
    {{env.VAR_NAME}}                 OS environment variable (when allowed)

Document forms — a template with no params is written as a bare string::

    "http://hooks.example/{{ctx.watch_id}}"
    {"text": "Disk at {{ctx.payload.used}}{{unit}}", "params": {"unit": "%"}}
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError, TemplateError

_OPEN = "{{"
_CLOSE = "}}"
_PATH = r"[A-Za-z_][\w-]*(?:\.[\w-]+)*"
_EXPRESSION_RE = re.compile(re.escape(_OPEN) + r"\s*(" + _PATH + r")\s*" + re.escape(_CLOSE))
_PATH_RE = re.compile(r"^\s*" + _PATH + r"\s*$")


@dataclass(frozen=True)
class Template:
    text: str
    params: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> "Template":
        """Check expression syntax.

        Raises:
            TemplateError: An expression is unterminated or not a dotted path.
        """
        pos = 0
        while (start := self.text.find(_OPEN, pos)) != -1:
            end = self.text.find(_CLOSE, start + len(_OPEN))
            if end == -1:
                raise TemplateError(self.text, f"unterminated expression at offset {start}")
            inner = self.text[start + len(_OPEN) : end]
            if not _PATH_RE.match(inner):
                raise TemplateError(self.text, f"invalid expression '{{{{{inner}}}}}'")
            pos = end + len(_CLOSE)
        return self

    def static_prefix(self) -> str:
        """Text before the first expression."""
        start = self.text.find(_OPEN)
        return self.text if start == -1 else self.text[:start]

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        if not self.params:
            return builder.value(self.text)
        return (
            builder.start_object()
            .field("text", self.text)
            .field("params", self.params)
            .end_object()
        )

    @classmethod
    def parse(cls, parser: DocumentParser) -> "Template":
        """Parse either template form and validate its syntax."""
        field_name = parser.current_name()
        token = parser.current_token
        if token is Token.VALUE_STRING:
            template = cls(parser.text())
        elif token is Token.START_OBJECT:
            text: str | None = None
            params: dict[str, Any] = {}
            while parser.next_token() is Token.FIELD_NAME:
                name = parser.current_name()
                parser.next_token()
                if name == "text" and parser.current_token is Token.VALUE_STRING:
                    text = parser.text()
                elif name == "params" and parser.current_token is Token.START_OBJECT:
                    params = parser.map()
                else:
                    raise ParseError(
                        f"unexpected field [{name}] in template", field=field_name
                    )
            parser.expect(Token.END_OBJECT)
            if text is None:
                raise ParseError("template is missing required field [text]", field=field_name)
            template = cls(text, params)
        else:
            raise ParseError(
                f"expected a template string or object but found [{token}]", field=field_name
            )
        try:
            return template.validate()
        except TemplateError as exc:
            raise ParseError(exc.message, field=field_name) from exc


class TemplateEngine:
    """Renders templates against a runtime model.

    Usage::

        engine = TemplateEngine()
        engine.render(Template("{{ctx.watch_id}} fired"), {"ctx": {"watch_id": "w1"}})
        # "w1 fired"
    """

    def __init__(self, allow_env: bool = False) -> None:
        self._allow_env = allow_env

    def render(self, template: Template | str, model: Mapping[str, Any]) -> str:
        """Return the template text with every expression substituted.

        Raises:
            TemplateError: A referenced value does not exist.
        """
        if isinstance(template, str):
            template = Template(template)
        scope: dict[str, Any] = {**template.params, **model}
        return _EXPRESSION_RE.sub(
            lambda m: self._stringify(self._lookup(m.group(1), scope, template.text)),
            template.text,
        )

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _lookup(self, path: str, scope: Mapping[str, Any], original: str) -> Any:
        head, *rest = path.split(".")
        if head == "env" and head not in scope:
            return self._resolve_env(rest, original)
        if head not in scope:
            raise TemplateError(original, f"unknown reference '{head}'")
        value: Any = scope[head]
        walked = head
        for part in rest:
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            elif (
                isinstance(value, Sequence)
                and not isinstance(value, (str, bytes))
                and part.isdigit()
                and int(part) < len(value)
            ):
                value = value[int(part)]
            else:
                raise TemplateError(original, f"'{walked}' has no field '{part}'")
            walked = f"{walked}.{part}"
        return value

    def _resolve_env(self, rest: list[str], original: str) -> str:
        if not self._allow_env:
            raise TemplateError(original, "environment variable access is disabled")
        if len(rest) != 1:
            raise TemplateError(original, "expected {{env.NAME}}")
        value = os.environ.get(rest[0])
        if value is None:
            raise TemplateError(original, f"environment variable '{rest[0]}' is not set")
        return value

    @staticmethod
    def _stringify(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (Mapping, list, tuple)):
            return json.dumps(value, default=str)
        return str(value)
