"""Storage service for the reading history and user preferences."""

import logging
from datetime import UTC, date, datetime
from typing import Any

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy import and_
from sqlalchemy.orm import Session

from bill_calculator.core.config import settings
from bill_calculator.models.reading import ReadingRecord, Setting
from bill_calculator.schemas.bill import ReadingHistoryEntry, StoredReading
from bill_calculator.schemas.storage import DataSnapshot, ImportResult
from bill_calculator.services.validation import parse_date

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def default_settings() -> dict[str, Any]:
    """Preferences used until the user saves their own."""
    return {
        "dark_mode": False,
        "default_rate_per_kwh": settings.DEFAULT_RATE_PER_KWH,
        "default_standing_charge": settings.DEFAULT_STANDING_CHARGE,
        "property_name": settings.DEFAULT_PROPERTY_NAME,
        "property_address": settings.DEFAULT_PROPERTY_ADDRESS,
        "rounded_values": settings.DEFAULT_ROUNDED_VALUES,
    }


def _to_stored_reading(record: ReadingRecord) -> StoredReading:
    return StoredReading.model_validate({**record.get_payload(), "id": record.id})


def save_reading(db: Session, entry: ReadingHistoryEntry) -> StoredReading:
    """Save a history entry and return it with its assigned id."""
    reading_date = parse_date(entry.date)
    prev_reading_date = parse_date(entry.prev_date)
    if reading_date is None or prev_reading_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reading dates must be in DD-MM-YYYY format",
        )

    record = ReadingRecord(
        reading_date=reading_date,
        prev_reading_date=prev_reading_date,
        period_days=entry.period_days,
        timestamp=entry.timestamp,
    )
    record.set_payload(entry.model_dump(mode="json"))
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Saved reading %d for %s", record.id, entry.date)
    return _to_stored_reading(record)


def get_all_readings(db: Session) -> list[StoredReading]:
    """Get every saved reading in the order it was saved."""
    records = db.query(ReadingRecord).order_by(ReadingRecord.id).all()
    return [_to_stored_reading(r) for r in records]


def get_readings_by_date_range(db: Session, start: date, end: date) -> list[StoredReading]:
    """Get readings whose current reading date falls within [start, end]."""
    records = (
        db.query(ReadingRecord)
        .filter(
            and_(
                ReadingRecord.reading_date >= start,
                ReadingRecord.reading_date <= end,
            )
        )
        .order_by(ReadingRecord.reading_date, ReadingRecord.timestamp)
        .all()
    )
    return [_to_stored_reading(r) for r in records]


def get_most_recent_reading(db: Session) -> StoredReading | None:
    """Get the reading with the latest reading date, newest entry first on ties."""
    record = (
        db.query(ReadingRecord)
        .order_by(
            ReadingRecord.reading_date.desc(),
            ReadingRecord.timestamp.desc(),
            ReadingRecord.id.desc(),
        )
        .first()
    )
    return _to_stored_reading(record) if record else None


def delete_reading(db: Session, reading_id: int) -> None:
    """Delete a saved reading."""
    record = db.query(ReadingRecord).filter(ReadingRecord.id == reading_id).first()
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reading not found",
        )
    db.delete(record)
    db.commit()
    logger.info("Deleted reading %d", reading_id)


def get_setting(db: Session, key: str, default: Any = None) -> Any:
    """Get a saved preference, or ``default`` if it was never saved."""
    stored = db.query(Setting).filter(Setting.key == key).first()
    return stored.get_value() if stored else default


def check_setting_type(key: str, value: Any) -> None:
    """Reject a value whose type does not match the known preference's default.

    Unknown keys are stored as given.
    """
    default = default_settings().get(key)
    if default is None:
        return
    if isinstance(default, bool):
        expected, valid = "true or false", isinstance(value, bool)
    elif isinstance(default, int | float):
        expected = "a number"
        valid = isinstance(value, int | float) and not isinstance(value, bool)
    else:
        expected, valid = "text", isinstance(value, str)
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Setting {key} must be {expected}",
        )


def save_setting(db: Session, key: str, value: Any) -> Any:
    """Save a preference, replacing any previous value."""
    check_setting_type(key, value)
    stored = db.query(Setting).filter(Setting.key == key).first()
    if not stored:
        stored = Setting(key=key)
        db.add(stored)
    stored.set_value(value)
    db.commit()
    return value


def get_all_settings(db: Session) -> dict[str, Any]:
    """Get every preference, saved values taking precedence over defaults."""
    saved = {s.key: s.get_value() for s in db.query(Setting).all()}
    return {**default_settings(), **saved}


def clear_all_data(db: Session) -> None:
    """Delete all readings and preferences."""
    db.query(ReadingRecord).delete()
    db.query(Setting).delete()
    db.commit()
    logger.info("Cleared all stored data")


def export_all(db: Session) -> DataSnapshot:
    """Export the reading history and preferences as one snapshot."""
    return DataSnapshot(
        version=SNAPSHOT_VERSION,
        export_date=datetime.now(UTC),
        readings=get_all_readings(db),
        settings=get_all_settings(db),
    )


def import_all(db: Session, data: Any) -> ImportResult:
    """Replace all stored data with the contents of an exported snapshot.

    The snapshot is checked in full before anything is deleted.
    """
    if not isinstance(data, dict) or not data.get("version") or not isinstance(
        data.get("readings"), list
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid data format",
        )

    preferences = data.get("settings") or {}
    if not isinstance(preferences, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid data format",
        )
    for key, value in preferences.items():
        check_setting_type(key, value)

    try:
        entries = [ReadingHistoryEntry.model_validate(r) for r in data["readings"]]
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid reading in import: {exc.error_count()} error(s)",
        ) from exc

    for entry in entries:
        if parse_date(entry.date) is None or parse_date(entry.prev_date) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Reading dates must be in DD-MM-YYYY format",
            )

    clear_all_data(db)
    for entry in entries:
        save_reading(db, entry)
    for key, value in preferences.items():
        save_setting(db, key, value)

    logger.info("Imported %d reading(s) and %d setting(s)", len(entries), len(preferences))
    return ImportResult(readings_imported=len(entries), settings_imported=len(preferences))
