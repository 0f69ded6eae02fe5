"""Unit tests — create_services wiring."""

from __future__ import annotations

from datetime import timedelta

import pytest

from watchkit.actions.log import LoggingActionFactory
from watchkit.config import Settings
from watchkit.exceptions import ConfigurationError
from watchkit.inputs import SimpleInputParser
from watchkit.services import create_services
from watchkit.support.template import TemplateEngine


@pytest.mark.unit
class TestCreateServices:
    def test_builtin_types(self, test_settings: Settings) -> None:
        services = create_services(test_settings)
        assert services.triggers.types() == ["schedule"]
        assert services.inputs.types() == ["none", "simple"]
        assert services.conditions.types() == ["always", "never"]
        assert services.transforms.types() == ["chain", "simple"]
        assert services.actions.types() == ["logging", "webhook"]

    def test_registries_are_frozen(self, test_settings: Settings) -> None:
        services = create_services(test_settings)
        for registry in (
            services.triggers,
            services.inputs,
            services.conditions,
            services.transforms,
            services.actions,
        ):
            assert registry.frozen

    def test_template_engine_honours_settings(self) -> None:
        services = create_services(Settings(templates={"allow_env": True}))
        assert services.template_engine.render("{{env.PATH}}", {}) != ""

    def test_duplicate_extra_action_factory(self, test_settings: Settings) -> None:
        with pytest.raises(ConfigurationError, match="already registered"):
            create_services(
                test_settings, action_factories=[LoggingActionFactory(TemplateEngine())]
            )

    def test_duplicate_extra_component_parser(self, test_settings: Settings) -> None:
        with pytest.raises(ConfigurationError, match="already registered"):
            create_services(test_settings, component_parsers={"input": [SimpleInputParser()]})

    def test_unknown_component_family(self, test_settings: Settings) -> None:
        with pytest.raises(ConfigurationError, match="unknown component family"):
            create_services(test_settings, component_parsers={"action": []})

    def test_default_throttle_period(self) -> None:
        assert create_services(Settings()).default_throttle_period is None
        services = create_services(Settings(actions={"default_throttle_period_seconds": 30}))
        assert services.default_throttle_period == timedelta(seconds=30)

    async def test_aclose(self, test_settings: Settings) -> None:
        await create_services(test_settings).aclose()
