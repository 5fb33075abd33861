"""SQLAlchemy implementation of SettingsRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from lms_progress.db.tables import SystemSettingRow
from lms_progress.models.setting import SystemSetting


class SqlSettingsRepo:
    """Satisfies the SettingsRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, key: str) -> SystemSetting | None:
        row = self._session.get(SystemSettingRow, key)
        return _row_to_setting(row) if row is not None else None

    def put(self, setting: SystemSetting) -> SystemSetting:
        row = self._session.get(SystemSettingRow, setting.key)
        if row is None:
            row = SystemSettingRow(key=setting.key)
            self._session.add(row)
        row.value = setting.value
        row.type = setting.type
        row.description = setting.description
        self._session.flush()
        return _row_to_setting(row)

    def all(self) -> list[SystemSetting]:
        stmt = select(SystemSettingRow).order_by(SystemSettingRow.key)
        return [_row_to_setting(r) for r in self._session.scalars(stmt)]


def _row_to_setting(row: SystemSettingRow) -> SystemSetting:
    return SystemSetting(
        key=row.key, value=row.value, type=row.type, description=row.description
    )
