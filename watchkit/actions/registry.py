"""Action layer — Action type registry.

The registry maps an action type discriminator to the one factory that
parses, records and instantiates that type.  It handles:
  - Registration at startup (duplicates are a ``ConfigurationError``)
  - A one-time ``freeze()`` barrier, after which the mapping is read-only
  - Parsing the ``actions`` object of a watch into ``ActionWrapper``s
  - Parsing the ``actions`` array of a watch record into results

Action document shape (inside a watch)::

    "actions": {
        "notify-ops": {
            "transform": {"simple": {...}},     # optional
            "webhook": {"method": "POST", "url": "http://hooks.example/alert"}
        }
    }
"""

from __future__ import annotations

from typing import Any

from watchkit.actions.base import Action, ActionFactory
from watchkit.actions.wrapper import ActionWrapper
from watchkit.components import ComponentRegistry, Transform
from watchkit.document import DocumentParser, Token
from watchkit.exceptions import (
    ConfigurationError,
    DocumentFormatError,
    ParseError,
    UnknownActionTypeError,
)
from watchkit.execution.context import Wid
from watchkit.logging import get_logger

log = get_logger(__name__)

ANY_FACTORY = ActionFactory[Any, Any, Any]


class ActionRegistry:
    """Runtime registry of action factories.

    Usage::

        registry = ActionRegistry(transforms)
        registry.register("webhook", WebhookActionFactory(http_client, engine))
        registry.freeze()

        wrappers = registry.parse_actions("my-watch", parser)
    """

    def __init__(self, transforms: ComponentRegistry[Transform]) -> None:
        self._factories: dict[str, ANY_FACTORY] = {}
        self._transforms = transforms
        self._frozen = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, action_type: str, factory: ANY_FACTORY) -> None:
        """Register *factory* under *action_type*.

        Raises:
            ConfigurationError: Duplicate type, frozen registry, or a factory
                whose own ``type()`` disagrees with *action_type*.
        """
        if not action_type:
            raise ConfigurationError(
                f"action factory {type(factory).__name__} registered without a type"
            )
        if self._frozen:
            raise ConfigurationError(
                f"cannot register action type [{action_type}]: registry is frozen",
                context={"type": action_type},
            )
        if factory.type() != action_type:
            raise ConfigurationError(
                f"factory {type(factory).__name__} handles [{factory.type()}], "
                f"not [{action_type}]",
                context={"type": action_type, "factory_type": factory.type()},
            )
        if action_type in self._factories:
            raise ConfigurationError(
                f"action type [{action_type}] is already registered",
                context={"type": action_type},
            )
        self._factories[action_type] = factory
        log.debug("action_factory_registered", type=action_type)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def types(self) -> list[str]:
        return sorted(self._factories)

    def lookup(
        self, action_type: str, action_id: str | None = None, watch_id: str | None = None
    ) -> ANY_FACTORY:
        """Return the factory for *action_type*.

        Raises:
            UnknownActionTypeError: No factory is registered for *action_type*.
        """
        try:
            return self._factories[action_type]
        except KeyError:
            raise UnknownActionTypeError.for_type(action_type, action_id, watch_id) from None

    # ------------------------------------------------------------------
    # Watch definitions
    # ------------------------------------------------------------------

    def parse_actions(self, watch_id: str, parser: DocumentParser) -> list[ActionWrapper]:
        """Parse the ``actions`` object the parser is positioned on."""
        if parser.current_token is not Token.START_OBJECT:
            raise ParseError(
                f"[actions] must be an object but found [{parser.current_token}]",
                watch_id=watch_id,
                field="actions",
            )
        wrappers: list[ActionWrapper] = []
        while parser.next_token() is Token.FIELD_NAME:
            action_id = parser.current_name() or ""
            parser.next_token()
            wrappers.append(self._parse_action(watch_id, action_id, parser))
        parser.expect(Token.END_OBJECT)
        return wrappers

    def _parse_action(
        self, watch_id: str, action_id: str, parser: DocumentParser
    ) -> ActionWrapper:
        if parser.current_token is not Token.START_OBJECT:
            raise ParseError(
                "action must be an object", watch_id=watch_id, action_id=action_id
            )
        transform: Transform | None = None
        action: Action | None = None
        factory: ANY_FACTORY | None = None
        while parser.next_token() is Token.FIELD_NAME:
            name = parser.current_name() or ""
            parser.next_token()
            if name == "transform":
                transform = self._transforms.parse(watch_id, action_id, parser)
                continue
            if action is not None:
                raise ParseError(
                    f"action defines more than one type: [{action.type()}] and [{name}]",
                    watch_id=watch_id,
                    action_id=action_id,
                    component_type=name,
                )
            factory = self.lookup(name, action_id, watch_id)
            try:
                action = factory.parse_action(watch_id, action_id, parser)
            except ParseError as exc:
                if exc.watch_id is not None:
                    raise
                raise exc.with_owner(watch_id, action_id) from exc
            except DocumentFormatError as exc:
                raise ParseError.from_format_error(exc, watch_id, action_id, name) from exc
        parser.expect(Token.END_OBJECT)
        if action is None or factory is None:
            raise ParseError(
                f"action does not define a type. Registered: {self.types()}",
                watch_id=watch_id,
                action_id=action_id,
            )
        return ActionWrapper(action_id, action, factory.create_executable(action), transform)

    # ------------------------------------------------------------------
    # Watch records
    # ------------------------------------------------------------------

    def parse_results(self, wid: Wid, parser: DocumentParser) -> list[ActionWrapper.Result]:
        """Parse the ``actions`` array of a watch record."""
        if parser.current_token is not Token.START_ARRAY:
            raise ParseError(
                "[actions] of a watch record must be an array",
                watch_id=wid.watch_id,
                field="actions",
            )
        results: list[ActionWrapper.Result] = []
        while parser.next_token() is not Token.END_ARRAY:
            results.append(self._parse_result(wid, parser))
        return results

    def _parse_result(self, wid: Wid, parser: DocumentParser) -> ActionWrapper.Result:
        watch_id = wid.watch_id
        if parser.current_token is not Token.START_OBJECT:
            raise ParseError(
                f"action result must be an object but found [{parser.current_token}]",
                watch_id=watch_id,
                field="actions",
            )
        action_id: str | None = None
        transform_payload: dict[str, Any] | None = None
        result = None
        while parser.next_token() is Token.FIELD_NAME:
            name = parser.current_name() or ""
            token = parser.next_token()
            if name == "id":
                if token is not Token.VALUE_STRING:
                    raise ParseError("[id] must be a string", watch_id=watch_id, field=name)
                action_id = parser.text()
            elif action_id is None:
                raise ParseError(
                    f"action result field [{name}] appears before [id]",
                    watch_id=watch_id,
                    field=name,
                )
            elif name == "transform":
                if token is not Token.START_OBJECT:
                    raise ParseError(
                        "[transform] must be an object",
                        watch_id=watch_id,
                        action_id=action_id,
                        field=name,
                    )
                transform_payload = parser.map().get("payload")
            elif result is not None:
                raise ParseError(
                    "action result defines more than one type: "
                    f"[{result.type()}] and [{name}]",
                    watch_id=watch_id,
                    action_id=action_id,
                    component_type=name,
                )
            else:
                factory = self.lookup(name, action_id, watch_id)
                try:
                    result = factory.parse_result(wid, action_id, parser)
                except ParseError as exc:
                    if exc.watch_id is not None:
                        raise
                    raise exc.with_owner(watch_id, action_id) from exc
                except DocumentFormatError as exc:
                    raise ParseError.from_format_error(exc, watch_id, action_id, name) from exc
        parser.expect(Token.END_OBJECT)
        if action_id is None or result is None:
            raise ParseError(
                "action result requires [id] and a typed result body",
                watch_id=watch_id,
                action_id=action_id,
            )
        return ActionWrapper.Result(action_id, result, transform_payload)
