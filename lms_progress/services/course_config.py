"""Typed access to the certificate and grading configuration.

Values come from two layers:

  1. system_settings rows (key, value, type), editable at runtime
  2. Settings (environment), which supplies the defaults

A missing or malformed row is never fatal: the accessor logs a warning
and returns the default.  Every consumer gets this object injected
instead of reading setting rows itself.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from lms_progress.core.config import Settings
from lms_progress.models.setting import SystemSetting
from lms_progress.repos.settings_repo import SettingsRepo

logger = logging.getLogger(__name__)

VIRTUAL_THRESHOLD_KEY = "certificate_virtual_threshold"
COMPLETE_THRESHOLD_KEY = "certificate_complete_threshold"
GRADE_WEIGHTS_KEY = "grade_weights"
AUTO_GENERATE_KEY = "auto_generate_certificates"


@dataclass(frozen=True, slots=True)
class GradeWeights:
    """Percent weights for the final score.  Not normalized: 60/60 is legal."""

    interactive: float
    activities: float


def _parse(setting: SystemSetting) -> Any:
    match setting.type:
        case "integer":
            return int(setting.value)
        case "float":
            return float(setting.value)
        case "boolean":
            value = setting.value.strip().lower()
            if value in ("1", "true", "yes", "on"):
                return True
            if value in ("0", "false", "no", "off", ""):
                return False
            raise ValueError(f"not a boolean: {setting.value!r}")
        case "json":
            return json.loads(setting.value)
        case _:
            return setting.value


class CourseConfig:
    def __init__(self, settings_repo: SettingsRepo, defaults: Settings) -> None:
        self._repo = settings_repo
        self._defaults = defaults

    def _lookup(self, key: str) -> Any | None:
        setting = self._repo.get(key)
        if setting is None:
            return None
        try:
            return _parse(setting)
        except (ValueError, TypeError):
            logger.warning(
                "Ignoring malformed setting %s=%r (type %s)",
                key,
                setting.value,
                setting.type,
            )
            return None

    def _number(self, key: str, default: float) -> float:
        value = self._lookup(key)
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning("Setting %s is not numeric, using default", key)
            return default

    def virtual_threshold(self) -> float:
        return self._number(
            VIRTUAL_THRESHOLD_KEY, self._defaults.virtual_certificate_threshold
        )

    def complete_threshold(self) -> float:
        return self._number(
            COMPLETE_THRESHOLD_KEY, self._defaults.complete_certificate_threshold
        )

    def grade_weights(self) -> GradeWeights:
        interactive = self._defaults.interactive_weight
        activities = self._defaults.activities_weight

        raw = self._lookup(GRADE_WEIGHTS_KEY)
        if isinstance(raw, dict):
            try:
                interactive = float(raw.get("interactive", interactive))
                activities = float(raw.get("activities", activities))
            except (TypeError, ValueError):
                logger.warning("Setting %s has non-numeric weights", GRADE_WEIGHTS_KEY)
                interactive = self._defaults.interactive_weight
                activities = self._defaults.activities_weight
        elif raw is not None:
            logger.warning("Setting %s is not a JSON object", GRADE_WEIGHTS_KEY)

        # Dotted keys win over the JSON blob when both are present
        interactive = self._number(f"{GRADE_WEIGHTS_KEY}.interactive", interactive)
        activities = self._number(f"{GRADE_WEIGHTS_KEY}.activities", activities)
        return GradeWeights(interactive=interactive, activities=activities)

    def auto_generate_certificates(self) -> bool:
        value = self._lookup(AUTO_GENERATE_KEY)
        if isinstance(value, bool):
            return value
        return self._defaults.auto_generate_certificates

    def as_dict(self) -> dict[str, Any]:
        weights = self.grade_weights()
        return {
            "virtual_threshold": self.virtual_threshold(),
            "complete_threshold": self.complete_threshold(),
            "interactive_weight": weights.interactive,
            "activities_weight": weights.activities,
            "auto_generate": self.auto_generate_certificates(),
        }
