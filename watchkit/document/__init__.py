"""Structured document model — ordered nested objects, arrays and scalars."""

from watchkit.document.builder import DocumentBuilder, ToDocument
from watchkit.document.formats import DocumentFormat, decode, encode
from watchkit.document.parser import DocumentParser, Token

__all__ = [
    "DocumentBuilder",
    "DocumentFormat",
    "DocumentParser",
    "ToDocument",
    "Token",
    "decode",
    "encode",
]
