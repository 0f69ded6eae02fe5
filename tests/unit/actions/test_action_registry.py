"""Unit tests — ActionRegistry."""

from __future__ import annotations

import httpx
import pytest

from watchkit.actions.log import LoggingActionFactory
from watchkit.actions.registry import ActionRegistry
from watchkit.actions.webhook import WebhookActionFactory
from watchkit.components import ComponentRegistry, Transform
from watchkit.document import DocumentParser
from watchkit.exceptions import ConfigurationError, ParseError, UnknownActionTypeError
from watchkit.execution.context import WatchExecutionContext
from watchkit.support.http import HttpClient
from watchkit.support.template import TemplateEngine
from watchkit.transforms import SimpleTransform, SimpleTransformParser


def _positioned(tree: object) -> DocumentParser:
    parser = DocumentParser(tree)
    parser.next_token()
    return parser


@pytest.fixture
def transforms() -> ComponentRegistry[Transform]:
    return ComponentRegistry("transform", [SimpleTransformParser()])


@pytest.fixture
def webhook_factory() -> WebhookActionFactory:
    client = HttpClient(
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    )
    return WebhookActionFactory(client, TemplateEngine())


@pytest.fixture
def registry(
    transforms: ComponentRegistry[Transform], webhook_factory: WebhookActionFactory
) -> ActionRegistry:
    registry = ActionRegistry(transforms)
    registry.register("webhook", webhook_factory)
    registry.register("logging", LoggingActionFactory(TemplateEngine()))
    registry.freeze()
    return registry


@pytest.mark.unit
class TestRegistration:
    def test_duplicate_registration(
        self, transforms: ComponentRegistry[Transform], webhook_factory: WebhookActionFactory
    ) -> None:
        registry = ActionRegistry(transforms)
        registry.register("webhook", webhook_factory)
        with pytest.raises(ConfigurationError, match="already registered"):
            registry.register("webhook", webhook_factory)

    @pytest.mark.parametrize("order", [("webhook", "logging"), ("logging", "webhook")])
    def test_distinct_types_in_any_order(
        self,
        order: tuple[str, str],
        transforms: ComponentRegistry[Transform],
        webhook_factory: WebhookActionFactory,
    ) -> None:
        factories = {"webhook": webhook_factory, "logging": LoggingActionFactory(TemplateEngine())}
        registry = ActionRegistry(transforms)
        for action_type in order:
            registry.register(action_type, factories[action_type])
        assert registry.types() == ["logging", "webhook"]

    def test_register_after_freeze(self, registry: ActionRegistry) -> None:
        with pytest.raises(ConfigurationError, match="frozen"):
            registry.register("email", LoggingActionFactory(TemplateEngine()))

    def test_type_mismatch(
        self, transforms: ComponentRegistry[Transform], webhook_factory: WebhookActionFactory
    ) -> None:
        with pytest.raises(ConfigurationError, match="handles \\[webhook\\]"):
            ActionRegistry(transforms).register("email", webhook_factory)

    def test_lookup(self, registry: ActionRegistry, webhook_factory: WebhookActionFactory) -> None:
        assert registry.lookup("webhook") is webhook_factory

    def test_lookup_unknown(self, registry: ActionRegistry) -> None:
        with pytest.raises(UnknownActionTypeError, match="unknown action type \\[email\\]") as exc_info:
            registry.lookup("email", action_id="a1", watch_id="w1")
        assert exc_info.value.action_id == "a1"
        assert exc_info.value.component_type == "email"


@pytest.mark.unit
class TestParseActions:
    def test_parse_actions(self, registry: ActionRegistry) -> None:
        wrappers = registry.parse_actions(
            "w1",
            _positioned(
                {
                    "notify-ops": {"webhook": {"method": "POST", "url": "http://hooks.example/alert"}},
                    "log": {
                        "transform": {"simple": {"severity": "high"}},
                        "logging": {"text": "{{ctx.payload.severity}}"},
                    },
                }
            ),
        )
        assert [w.id for w in wrappers] == ["notify-ops", "log"]
        assert [w.type() for w in wrappers] == ["webhook", "logging"]
        assert wrappers[0].transform is None
        assert wrappers[1].transform == SimpleTransform({"severity": "high"})

    def test_unknown_type_among_valid_actions(self, registry: ActionRegistry) -> None:
        with pytest.raises(UnknownActionTypeError) as exc_info:
            registry.parse_actions(
                "w1",
                _positioned(
                    {
                        "ok-1": {"logging": {"text": "a"}},
                        "bad": {"email": {"to": "ops@example.com"}},
                        "ok-2": {"logging": {"text": "b"}},
                    }
                ),
            )
        assert exc_info.value.component_type == "email"
        assert exc_info.value.action_id == "bad"
        assert "email" in str(exc_info.value)

    def test_action_without_type(self, registry: ActionRegistry) -> None:
        with pytest.raises(ParseError, match="does not define a type"):
            registry.parse_actions("w1", _positioned({"a1": {"transform": {"simple": {}}}}))

    def test_action_with_two_types(self, registry: ActionRegistry) -> None:
        with pytest.raises(ParseError, match="more than one type"):
            registry.parse_actions(
                "w1",
                _positioned(
                    {"a1": {"logging": {"text": "a"}, "webhook": {"url": "http://h/"}}}
                ),
            )

    def test_actions_must_be_object(self, registry: ActionRegistry) -> None:
        with pytest.raises(ParseError, match="must be an object"):
            registry.parse_actions("w1", _positioned([]))


@pytest.mark.unit
class TestParseResults:
    def test_parse_results(
        self, registry: ActionRegistry, execution_context: WatchExecutionContext
    ) -> None:
        results = registry.parse_results(
            execution_context.wid,
            _positioned(
                [
                    {
                        "id": "notify-ops",
                        "webhook": {"status": "failure", "reason": "received [500] status code"},
                    },
                    {
                        "id": "log",
                        "transform": {"payload": {"severity": "high"}},
                        "logging": {"status": "success", "logged_text": "high"},
                    },
                ]
            ),
        )
        assert [r.id for r in results] == ["notify-ops", "log"]
        assert not results[0].action_result.success
        assert results[1].transform_payload == {"severity": "high"}

    def test_result_requires_id_first(
        self, registry: ActionRegistry, execution_context: WatchExecutionContext
    ) -> None:
        with pytest.raises(ParseError, match="before \\[id\\]"):
            registry.parse_results(
                execution_context.wid,
                _positioned([{"webhook": {"status": "success"}, "id": "a1"}]),
            )

    def test_result_with_unknown_type(
        self, registry: ActionRegistry, execution_context: WatchExecutionContext
    ) -> None:
        with pytest.raises(UnknownActionTypeError):
            registry.parse_results(
                execution_context.wid, _positioned([{"id": "a1", "email": {"status": "success"}}])
            )

    @pytest.mark.parametrize(
        "entry",
        [
            {"id": "a1", "webhook": "x"},
            {"id": "a1", "logging": ["x"]},
            {"id": "a1", "webhook": {"status": "success", "response": "oops"}},
        ],
    )
    def test_malformed_result_body_is_scoped(
        self,
        registry: ActionRegistry,
        execution_context: WatchExecutionContext,
        entry: dict[str, object],
    ) -> None:
        with pytest.raises(ParseError) as exc_info:
            registry.parse_results(execution_context.wid, _positioned([entry]))
        assert exc_info.value.watch_id == execution_context.wid.watch_id
        assert exc_info.value.action_id == "a1"

    def test_result_entry_must_be_object(
        self, registry: ActionRegistry, execution_context: WatchExecutionContext
    ) -> None:
        with pytest.raises(ParseError, match="must be an object") as exc_info:
            registry.parse_results(execution_context.wid, _positioned(["x"]))
        assert exc_info.value.watch_id == execution_context.wid.watch_id

    def test_result_transform_must_be_object(
        self, registry: ActionRegistry, execution_context: WatchExecutionContext
    ) -> None:
        with pytest.raises(ParseError, match="\\[transform\\] must be an object") as exc_info:
            registry.parse_results(
                execution_context.wid,
                _positioned([{"id": "a1", "transform": "x", "logging": {"status": "success"}}]),
            )
        assert not isinstance(exc_info.value, UnknownActionTypeError)

    def test_result_with_two_types(
        self, registry: ActionRegistry, execution_context: WatchExecutionContext
    ) -> None:
        entry = {
            "id": "a1",
            "webhook": {"status": "success"},
            "logging": {"status": "success"},
        }
        with pytest.raises(ParseError, match="more than one type") as exc_info:
            registry.parse_results(execution_context.wid, _positioned([entry]))
        assert exc_info.value.action_id == "a1"
