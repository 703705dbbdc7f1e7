"""Schemas for settings and data export/import."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from bill_calculator.schemas.bill import StoredReading


class SettingValue(BaseModel):
    """A single user preference."""

    key: str
    value: Any = None


class SettingUpdate(BaseModel):
    """Schema for saving a user preference."""

    value: Any = None


class DataSnapshot(BaseModel):
    """Complete export of the reading history and preferences."""

    version: int
    export_date: datetime
    readings: list[StoredReading]
    settings: dict[str, Any]


class ImportResult(BaseModel):
    """Summary of an import."""

    readings_imported: int
    settings_imported: int
