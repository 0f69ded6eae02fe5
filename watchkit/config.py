"""watchkit — Runtime configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. Environment variables prefixed with WATCHKIT_
    3. User config:   ~/.watchkit/config.yaml
    4. An explicit config file passed to ``Settings.load()``

Top-level blocks from a later file replace the same block from an earlier one.

Settings are read once at startup and handed to ``create_services()``,
which injects the relevant blocks into the HTTP client, the template engine
and the action factories.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class HttpConfig(BaseModel):
    connection_timeout_seconds: Annotated[float, Field(gt=0, le=300)] = Field(
        default=10.0,
        description="Default connect timeout for outgoing requests.",
    )
    read_timeout_seconds: Annotated[float, Field(gt=0, le=3600)] = Field(
        default=10.0,
        description="Default read timeout for outgoing requests.",
    )
    verify_ssl: bool = True
    max_connections: Annotated[int, Field(ge=1, le=1000)] = 100


class ActionsConfig(BaseModel):
    execution_timeout_seconds: Annotated[float, Field(gt=0, le=3600)] = Field(
        default=60.0,
        description=(
            "Upper bound on a single executable action.  A call that exceeds it "
            "is recorded as a failure result instead of hanging the caller."
        ),
    )
    default_throttle_period_seconds: Annotated[float, Field(ge=0)] = Field(
        default=0.0,
        description="Throttle period applied when a watch defines none. 0 = disabled.",
    )


class TemplatesConfig(BaseModel):
    allow_env: bool = Field(
        default=False,
        description="Expose process environment variables as {{env.NAME}}.",
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WATCHKIT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    http: HttpConfig = Field(default_factory=HttpConfig)
    actions: ActionsConfig = Field(default_factory=ActionsConfig)
    templates: TemplatesConfig = Field(default_factory=TemplatesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [Path.home() / ".watchkit" / "config.yaml"]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)


# Module-level singleton, replaced by ``Settings.load()`` at startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
