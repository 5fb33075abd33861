from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SystemSetting:
    key: str
    value: str
    type: str = "string"  # string|integer|float|boolean|json
    description: str | None = None
