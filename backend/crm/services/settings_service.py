# Overview: Flat key/value application settings stored as JSON text.

from __future__ import annotations

import json
from typing import Any

from ..extensions import db
from ..models import Setting
from crm.time_utils import utcnow
from .snapshot_schemas import load_json_value


class SettingsError(ValueError):
    pass


class SettingsNotFoundError(SettingsError):
    pass


def get_all_settings(*, session=None) -> dict[str, Any]:
    """All settings folded into one {key: value} mapping."""
    session = session or db.session
    return {
        row.key: load_json_value(row.value)
        for row in session.query(Setting).order_by(Setting.key.asc()).all()
    }


def get_setting(key: str, *, session=None) -> Any:
    session = session or db.session
    row = session.get(Setting, key)
    if row is None:
        raise SettingsNotFoundError(f"Setting not found: {key}")
    return load_json_value(row.value)


def upsert_setting(key: str, value: Any, *, session=None) -> Setting:
    """Insert or overwrite one key without committing."""
    session = session or db.session
    key = str(key or "").strip()
    if not key:
        raise SettingsError("Setting key is required")

    encoded = json.dumps(value, ensure_ascii=False)
    row = session.get(Setting, key)
    if row is None:
        row = Setting(key=key, value=encoded, updated_at=utcnow())
        session.add(row)
    else:
        row.value = encoded
        row.updated_at = utcnow()
    return row


def set_setting(key: str, value: Any, *, session=None) -> Setting:
    session = session or db.session
    row = upsert_setting(key, value, session=session)
    session.commit()
    return row
