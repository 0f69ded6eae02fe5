"""Watch definitions: the source builder, the runtime model and the parser."""

from watchkit.watch.parser import WatchParser
from watchkit.watch.source import TransformedAction, WatchSourceBuilder
from watchkit.watch.watch import Watch

__all__ = ["TransformedAction", "Watch", "WatchParser", "WatchSourceBuilder"]
