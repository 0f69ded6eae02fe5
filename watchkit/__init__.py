"""watchkit — Declarative watch documents with pluggable, executable actions.

A watch couples a trigger, an input, a condition, an optional transform and a
set of named actions.  Every piece is a typed component that reads and writes
its own body of a nested document; registries keyed by type discriminator turn
those documents back into typed values and executable actions.

Layers (bottom to top):
    1. Document   — ordered nested documents, JSON/YAML encodings, token parser
    2. Components — trigger / input / condition / transform contracts + registries
    3. Actions    — action factories, executable actions, results
    4. Watch      — source builder, parsed watch model, watch parser
    5. Services   — startup wiring of shared HTTP client and template engine
"""

__version__ = "0.1.0"

from watchkit.services import WatcherServices, create_services
from watchkit.watch import Watch, WatchParser, WatchSourceBuilder

__all__ = [
    "__version__",
    "Watch",
    "WatchParser",
    "WatchSourceBuilder",
    "WatcherServices",
    "create_services",
]
