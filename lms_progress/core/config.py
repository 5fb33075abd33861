"""Process configuration, read once from the environment at import time.

Two layers decide the grading policy:

  1. Environment (this module): deployment-wide fallbacks for the
     certificate thresholds, grade weights and auto-generation switch.
  2. system_settings rows (services/course_config.py): runtime overrides
     an administrator can change without a redeploy.

Everything else here (environment, logging, connection URLs, CORS)
only comes from the environment.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_APP_ENVS: tuple[AppEnv, ...] = ("dev", "test", "prod")
_LOG_LEVELS: tuple[LogLevel, ...] = ("debug", "info", "warning", "error")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getenv_choice(name: str, default: str, choices: Sequence[str]) -> str:
    raw = _getenv(name, default).lower()
    if raw not in choices:
        raise ValueError(f"{name} must be {'|'.join(choices)} (got {raw!r})")
    return raw


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


def _getenv_number(name: str, default: float) -> float:
    raw = _getenv(name, str(default))
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative (got {raw!r})")
    return value


def _getenv_percentage(name: str, default: float) -> float:
    value = _getenv_number(name, default)
    if value > 100:
        raise ValueError(f"certificate thresholds must be between 0 and 100 ({name}={value})")
    return value


def _getenv_list(name: str, default: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in _getenv(name, default).split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    certificate_storage_dir: str = "var/certificates"
    cors_origins: tuple[str, ...] = field(default=("http://localhost:5173",))

    # Fallbacks used when no system_settings row overrides them
    virtual_certificate_threshold: float = 80.0
    complete_certificate_threshold: float = 70.0
    interactive_weight: float = 50.0
    activities_weight: float = 50.0
    auto_generate_certificates: bool = True

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=_getenv_choice("APP_ENV", "dev", _APP_ENVS),
        log_level=_getenv_choice("LOG_LEVEL", "info", _LOG_LEVELS),
        log_json=_getenv_bool("LOG_JSON", False),
        port=_getenv_int("PORT", 8000),
        # Empty means "not configured": in-memory repos, no cache
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        certificate_storage_dir=_getenv("CERTIFICATE_STORAGE_DIR", "var/certificates"),
        cors_origins=_getenv_list("CORS_ORIGINS", "http://localhost:5173"),
        virtual_certificate_threshold=_getenv_percentage("CERTIFICATE_VIRTUAL_THRESHOLD", 80),
        complete_certificate_threshold=_getenv_percentage("CERTIFICATE_COMPLETE_THRESHOLD", 70),
        interactive_weight=_getenv_number("GRADE_WEIGHT_INTERACTIVE", 50),
        activities_weight=_getenv_number("GRADE_WEIGHT_ACTIVITIES", 50),
        auto_generate_certificates=_getenv_bool("AUTO_GENERATE_CERTIFICATES", True),
    )


SETTINGS = load_settings()
