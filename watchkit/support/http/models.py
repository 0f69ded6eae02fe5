"""HTTP request templates, rendered requests and responses.

``HttpRequestTemplate`` is the declarative form stored in a watch (every
string is a template).  Rendering it against an execution context yields a
concrete ``HttpRequest``; sending that yields an ``HttpResponse``.  Requests
and responses are recorded in action results, so both parse and emit.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

import httpx

from watchkit.document import DocumentBuilder, DocumentParser, Token
from watchkit.exceptions import ParseError
from watchkit.support.template import Template, TemplateEngine


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"

    @classmethod
    def parse(cls, value: str, field_name: str = "method") -> "HttpMethod":
        try:
            return cls(value.upper())
        except ValueError:
            raise ParseError(
                f"unsupported http method [{value}]. Supported: "
                + ", ".join(m.value for m in cls),
                field=field_name,
            ) from None


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        return (
            builder.start_object()
            .start_object("basic")
            .field("username", self.username)
            .field("password", self.password)
            .end_object()
            .end_object()
        )

    @classmethod
    def parse(cls, parser: DocumentParser) -> "BasicAuth":
        parser.expect(Token.START_OBJECT)
        auth: BasicAuth | None = None
        while parser.next_token() is Token.FIELD_NAME:
            scheme = parser.current_name()
            parser.next_token()
            if scheme != "basic":
                raise ParseError(f"unsupported auth scheme [{scheme}]", field="auth")
            values = parser.map()
            username, password = values.get("username"), values.get("password")
            if not isinstance(username, str) or not isinstance(password, str):
                raise ParseError(
                    "basic auth requires string [username] and [password]", field="auth"
                )
            auth = cls(username, password)
        parser.expect(Token.END_OBJECT)
        if auth is None:
            raise ParseError("auth object is empty", field="auth")
        return auth


def _millis(value: timedelta) -> int:
    return int(value.total_seconds() * 1000)


def _parse_millis(parser: DocumentParser, field_name: str) -> timedelta:
    value = parser.number_value() if parser.current_token is Token.VALUE_NUMBER else None
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ParseError(
            f"[{field_name}] must be a non-negative integer number of milliseconds",
            field=field_name,
        )
    return timedelta(milliseconds=value)


def _parse_template_map(parser: DocumentParser, field_name: str) -> dict[str, Template]:
    parser.expect(Token.START_OBJECT)
    result: dict[str, Template] = {}
    while parser.next_token() is Token.FIELD_NAME:
        key = parser.current_name()
        parser.next_token()
        result[key] = Template.parse(parser)  # type: ignore[index]
    parser.expect(Token.END_OBJECT)
    return result


def _validate_url(url: Template) -> None:
    prefix = url.static_prefix()
    if not prefix:
        # Fully dynamic; checked by the transport once rendered.
        return
    scheme, sep, _ = prefix.partition("://")
    if not sep or scheme.lower() not in ("http", "https"):
        raise ParseError(
            f"url [{url.text}] must start with http:// or https://", field="url"
        )
    if prefix != url.text:
        return
    try:
        parsed = httpx.URL(url.text)
    except httpx.InvalidURL as exc:
        raise ParseError(f"invalid url [{url.text}]: {exc}", field="url") from exc
    if not parsed.host:
        raise ParseError(f"url [{url.text}] has no host", field="url")


@dataclass(frozen=True)
class HttpRequestTemplate:
    url: Template
    method: HttpMethod = HttpMethod.GET
    headers: dict[str, Template] = field(default_factory=dict)
    params: dict[str, Template] = field(default_factory=dict)
    body: Template | None = None
    auth: BasicAuth | None = None
    connection_timeout: timedelta | None = None
    read_timeout: timedelta | None = None

    def render(self, engine: TemplateEngine, model: Mapping[str, Any]) -> "HttpRequest":
        return HttpRequest(
            method=self.method,
            url=engine.render(self.url, model),
            headers={k: engine.render(v, model) for k, v in self.headers.items()},
            params={k: engine.render(v, model) for k, v in self.params.items()},
            body=engine.render(self.body, model) if self.body is not None else None,
            auth=self.auth,
            connection_timeout=self.connection_timeout,
            read_timeout=self.read_timeout,
        )

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        builder.field("method", self.method.value)
        builder.field("url", self.url)
        if self.params:
            builder.field("params", self.params)
        if self.headers:
            builder.field("headers", self.headers)
        if self.auth is not None:
            builder.field("auth", self.auth)
        if self.body is not None:
            builder.field("body", self.body)
        if self.connection_timeout is not None:
            builder.field("connection_timeout_in_millis", _millis(self.connection_timeout))
        if self.read_timeout is not None:
            builder.field("read_timeout_in_millis", _millis(self.read_timeout))
        return builder.end_object()

    @classmethod
    def parse(cls, parser: DocumentParser) -> "HttpRequestTemplate":
        """Parse a request template body.

        Raises:
            ParseError: A field is missing, unknown or malformed.  The error
                carries the field name but no owner; callers scope it.
        """
        parser.expect(Token.START_OBJECT)
        values: dict[str, Any] = {}
        while parser.next_token() is Token.FIELD_NAME:
            name = parser.current_name()
            token = parser.next_token()
            if name == "method":
                if token is not Token.VALUE_STRING:
                    raise ParseError("[method] must be a string", field=name)
                values["method"] = HttpMethod.parse(parser.text())
            elif name == "url":
                values["url"] = Template.parse(parser)
            elif name in ("headers", "params"):
                values[name] = _parse_template_map(parser, name)
            elif name == "body":
                values["body"] = Template.parse(parser)
            elif name == "auth":
                values["auth"] = BasicAuth.parse(parser)
            elif name == "connection_timeout_in_millis":
                values["connection_timeout"] = _parse_millis(parser, name)
            elif name == "read_timeout_in_millis":
                values["read_timeout"] = _parse_millis(parser, name)
            else:
                raise ParseError(f"unexpected field [{name}] in http request", field=name)
        parser.expect(Token.END_OBJECT)

        if "url" not in values:
            raise ParseError("http request is missing required field [url]", field="url")
        _validate_url(values["url"])
        return cls(**values)


@dataclass(frozen=True)
class HttpRequest:
    """A fully rendered request.  The auth password is never written out."""

    url: str
    method: HttpMethod = HttpMethod.GET
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    auth: BasicAuth | None = None
    connection_timeout: timedelta | None = None
    read_timeout: timedelta | None = None

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        builder.field("method", self.method.value)
        builder.field("url", self.url)
        if self.params:
            builder.field("params", self.params)
        if self.headers:
            builder.field("headers", self.headers)
        if self.auth is not None:
            builder.field("auth_username", self.auth.username)
        if self.body is not None:
            builder.field("body", self.body)
        return builder.end_object()

    @classmethod
    def parse(cls, parser: DocumentParser) -> "HttpRequest":
        values = parser.map()
        if not isinstance(values.get("url"), str):
            raise ParseError("http request is missing required field [url]", field="url")
        return cls(
            url=values["url"],
            method=HttpMethod.parse(str(values.get("method", "GET"))),
            headers={str(k): str(v) for k, v in (values.get("headers") or {}).items()},
            params={str(k): str(v) for k, v in (values.get("params") or {}).items()},
            body=values.get("body"),
        )


@dataclass(frozen=True)
class HttpResponse:
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def to_document(self, builder: DocumentBuilder) -> DocumentBuilder:
        builder.start_object()
        builder.field("status", self.status)
        if self.headers:
            builder.field("headers", self.headers)
        if self.body is not None:
            builder.field("body", self.body)
        return builder.end_object()

    @classmethod
    def parse(cls, parser: DocumentParser) -> "HttpResponse":
        values = parser.map()
        status = values.get("status")
        if not isinstance(status, int) or isinstance(status, bool):
            raise ParseError("http response requires an integer [status]", field="status")
        return cls(
            status=status,
            headers={str(k): str(v) for k, v in (values.get("headers") or {}).items()},
            body=values.get("body"),
        )
