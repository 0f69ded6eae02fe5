"""HTTP transport capability."""

from watchkit.support.http.client import HttpClient
from watchkit.support.http.models import (
    BasicAuth,
    HttpMethod,
    HttpRequest,
    HttpRequestTemplate,
    HttpResponse,
)

__all__ = [
    "BasicAuth",
    "HttpClient",
    "HttpMethod",
    "HttpRequest",
    "HttpRequestTemplate",
    "HttpResponse",
]
