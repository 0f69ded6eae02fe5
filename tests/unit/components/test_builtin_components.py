"""Unit tests — built-in triggers, inputs, conditions and transforms."""

from __future__ import annotations

from datetime import timedelta

import pytest

from watchkit.components import ComponentRegistry, Transform
from watchkit.conditions import AlwaysCondition, NeverCondition
from watchkit.document import DocumentBuilder, DocumentParser
from watchkit.exceptions import ParseError
from watchkit.execution.context import WatchExecutionContext
from watchkit.inputs import NoneInput, NoneInputParser, SimpleInput, SimpleInputParser
from watchkit.transforms import (
    ChainTransform,
    ChainTransformParser,
    SimpleTransform,
    SimpleTransformParser,
)
from watchkit.triggers import ScheduleTrigger, ScheduleTriggerParser


def _positioned(tree: object) -> DocumentParser:
    parser = DocumentParser(tree)
    parser.next_token()
    return parser


def _emit(component: object) -> object:
    return DocumentBuilder().value(component).build()


@pytest.mark.unit
class TestScheduleTrigger:
    def test_interval(self) -> None:
        trigger = ScheduleTriggerParser().parse("w1", None, _positioned({"interval": "5m"}))
        assert trigger.interval_period() == timedelta(minutes=5)
        assert _emit(trigger) == {"interval": "5m"}

    def test_cron(self) -> None:
        trigger = ScheduleTriggerParser().parse(
            "w1", None, _positioned({"cron": "0 0/5 * * * ?"})
        )
        assert trigger.interval_period() is None
        assert _emit(trigger) == {"cron": "0 0/5 * * * ?"}

    @pytest.mark.parametrize(
        "body",
        [{}, {"interval": "5m", "cron": "0 0 * * * ?"}, {"interval": "0s"}, {"cron": "* *"}],
    )
    def test_invalid(self, body: dict) -> None:
        with pytest.raises(ParseError):
            ScheduleTriggerParser().parse("w1", None, _positioned(body))

    def test_unknown_field(self) -> None:
        with pytest.raises(ParseError, match="unexpected field \\[every\\]"):
            ScheduleTriggerParser().parse("w1", None, _positioned({"every": "5m"}))

    def test_constructor_validates(self) -> None:
        with pytest.raises(ValueError):
            ScheduleTrigger()


@pytest.mark.unit
class TestInputs:
    def test_none_input(self, execution_context: WatchExecutionContext) -> None:
        parsed = NoneInputParser().parse("w1", None, _positioned({}))
        assert parsed == NoneInput()
        assert parsed.execute(execution_context) == {}
        assert _emit(parsed) == {}

    def test_none_input_rejects_fields(self) -> None:
        with pytest.raises(ParseError):
            NoneInputParser().parse("w1", None, _positioned({"a": 1}))

    def test_simple_input_returns_copy(self, execution_context: WatchExecutionContext) -> None:
        parsed = SimpleInputParser().parse("w1", None, _positioned({"a": {"b": 1}}))
        payload = parsed.execute(execution_context)
        payload["a"]["b"] = 2
        assert parsed == SimpleInput({"a": {"b": 1}})

    def test_simple_input_must_be_object(self) -> None:
        with pytest.raises(ParseError):
            SimpleInputParser().parse("w1", None, _positioned([1]))


@pytest.mark.unit
class TestConditions:
    def test_always_and_never(self, execution_context: WatchExecutionContext) -> None:
        assert AlwaysCondition().matches(execution_context)
        assert not NeverCondition().matches(execution_context)
        assert _emit(NeverCondition()) == {}


@pytest.mark.unit
class TestTransforms:
    @pytest.fixture
    def transforms(self) -> ComponentRegistry[Transform]:
        registry: ComponentRegistry[Transform] = ComponentRegistry(
            "transform", [SimpleTransformParser()]
        )
        registry.register(ChainTransformParser(registry))
        return registry

    def test_simple_replaces_payload(self, execution_context: WatchExecutionContext) -> None:
        transform = SimpleTransform({"severity": "high"})
        assert transform.apply(execution_context, {"old": 1}) == {"severity": "high"}

    def test_chain(
        self,
        transforms: ComponentRegistry[Transform],
        execution_context: WatchExecutionContext,
    ) -> None:
        source = {"chain": [{"simple": {"a": 1}}, {"simple": {"b": 2}}]}
        chain = transforms.parse("w1", None, _positioned(source))
        assert chain == ChainTransform((SimpleTransform({"a": 1}), SimpleTransform({"b": 2})))
        assert chain.apply(execution_context, {}) == {"b": 2}
        assert _emit(chain) == source["chain"]

    def test_chain_must_be_array(self, transforms: ComponentRegistry[Transform]) -> None:
        with pytest.raises(ParseError, match="array"):
            transforms.parse("w1", None, _positioned({"chain": {"simple": {}}}))
