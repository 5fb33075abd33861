from __future__ import annotations

from typing import Protocol

from lms_progress.models.setting import SystemSetting


class SettingsRepo(Protocol):
    def get(self, key: str) -> SystemSetting | None: ...
    def put(self, setting: SystemSetting) -> SystemSetting: ...
    def all(self) -> list[SystemSetting]: ...


class InMemorySettingsRepo:
    def __init__(self) -> None:
        self._by_key: dict[str, SystemSetting] = {}

    def get(self, key: str) -> SystemSetting | None:
        return self._by_key.get(key)

    def put(self, setting: SystemSetting) -> SystemSetting:
        self._by_key[setting.key] = setting
        return setting

    def all(self) -> list[SystemSetting]:
        return sorted(self._by_key.values(), key=lambda s: s.key)
