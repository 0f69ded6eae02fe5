"""Startup wiring — registries bound to shared services.

``create_services()`` is the one-time initialization barrier: it builds every
registry, registers the built-in component kinds, wires the shared HTTP
client and template engine into the action factories and freezes everything.
After it returns, registries are read-only and safe to share between tasks.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from watchkit.actions.base import ActionFactory
from watchkit.actions.log import LoggingActionFactory
from watchkit.actions.registry import ActionRegistry
from watchkit.actions.webhook import WebhookActionFactory
from watchkit.components import (
    ComponentParser,
    ComponentRegistry,
    Condition,
    Input,
    Transform,
    Trigger,
)
from watchkit.conditions import AlwaysConditionParser, NeverConditionParser
from watchkit.config import Settings, get_settings
from watchkit.exceptions import ConfigurationError
from watchkit.inputs import NoneInputParser, SimpleInputParser
from watchkit.logging import get_logger
from watchkit.support.http import HttpClient
from watchkit.support.template import TemplateEngine
from watchkit.transforms import ChainTransformParser, SimpleTransformParser
from watchkit.triggers import ScheduleTriggerParser
from watchkit.watch.parser import WatchParser

log = get_logger(__name__)


@dataclass
class WatcherServices:
    settings: Settings
    http_client: HttpClient
    template_engine: TemplateEngine
    triggers: ComponentRegistry[Trigger]
    inputs: ComponentRegistry[Input]
    conditions: ComponentRegistry[Condition]
    transforms: ComponentRegistry[Transform]
    actions: ActionRegistry
    watch_parser: WatchParser

    @property
    def default_throttle_period(self) -> timedelta | None:
        seconds = self.settings.actions.default_throttle_period_seconds
        return timedelta(seconds=seconds) if seconds else None

    async def aclose(self) -> None:
        await self.http_client.aclose()


def create_services(
    settings: Settings | None = None,
    http_client: HttpClient | None = None,
    template_engine: TemplateEngine | None = None,
    action_factories: Iterable[ActionFactory[Any, Any, Any]] = (),
    component_parsers: Mapping[str, Iterable[ComponentParser[Any]]] | None = None,
) -> WatcherServices:
    """Build frozen registries with the built-in kinds plus any extras.

    Args:
        settings:          Defaults to ``get_settings()``.
        http_client:       Shared transport; built from ``settings.http`` if omitted.
        template_engine:   Shared renderer; built from ``settings.templates`` if omitted.
        action_factories:  Additional action types.
        component_parsers: Additional parsers keyed by family: ``"trigger"``,
                           ``"input"``, ``"condition"`` or ``"transform"``.

    Raises:
        ConfigurationError: Two factories or parsers claim the same type, or
            *component_parsers* names an unknown family.
    """
    settings = settings or get_settings()
    http_client = http_client or HttpClient(settings.http)
    template_engine = template_engine or TemplateEngine(allow_env=settings.templates.allow_env)
    timeout = settings.actions.execution_timeout_seconds

    triggers: ComponentRegistry[Trigger] = ComponentRegistry("trigger", [ScheduleTriggerParser()])
    inputs: ComponentRegistry[Input] = ComponentRegistry(
        "input", [NoneInputParser(), SimpleInputParser()]
    )
    conditions: ComponentRegistry[Condition] = ComponentRegistry(
        "condition", [AlwaysConditionParser(), NeverConditionParser()]
    )
    transforms: ComponentRegistry[Transform] = ComponentRegistry(
        "transform", [SimpleTransformParser()]
    )
    transforms.register(ChainTransformParser(transforms))

    families: dict[str, ComponentRegistry[Any]] = {
        "trigger": triggers,
        "input": inputs,
        "condition": conditions,
        "transform": transforms,
    }
    for family, extra in (component_parsers or {}).items():
        if family not in families:
            raise ConfigurationError(
                f"unknown component family [{family}]. Known: {sorted(families)}"
            )
        for component_parser in extra:
            families[family].register(component_parser)

    actions = ActionRegistry(transforms)
    for factory in (
        WebhookActionFactory(http_client, template_engine, timeout),
        LoggingActionFactory(template_engine, timeout),
        *action_factories,
    ):
        actions.register(factory.type(), factory)

    for registry in (*families.values(), actions):
        registry.freeze()

    log.info(
        "watch_services_ready",
        triggers=triggers.types(),
        inputs=inputs.types(),
        conditions=conditions.types(),
        transforms=transforms.types(),
        actions=actions.types(),
    )
    return WatcherServices(
        settings=settings,
        http_client=http_client,
        template_engine=template_engine,
        triggers=triggers,
        inputs=inputs,
        conditions=conditions,
        transforms=transforms,
        actions=actions,
        watch_parser=WatchParser(triggers, inputs, conditions, transforms, actions),
    )
