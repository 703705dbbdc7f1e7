"""Reading history database model."""

import json
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bill_calculator.core.database import Base


class ReadingRecord(Base):
    """Persisted reading history entry.

    The full history entry (readings, usages, costs, rates) is stored as JSON;
    the reading date and creation timestamp are columns so "most recent" can be
    derived from them rather than from insertion order.
    """

    __tablename__ = "readings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    reading_date: Mapped[date] = mapped_column(Date, index=True)  # Current reading date
    prev_reading_date: Mapped[date] = mapped_column(Date)
    period_days: Mapped[int] = mapped_column()
    timestamp: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        index=True,
    )  # When the entry was created
    payload_json: Mapped[str] = mapped_column(Text)

    def get_payload(self) -> dict[str, Any]:
        """Parse the stored JSON payload."""
        return json.loads(self.payload_json)

    def set_payload(self, payload: dict[str, Any]) -> None:
        """Serialize a history entry payload to JSON for storage."""
        self.payload_json = json.dumps(payload)


class Setting(Base):
    """Key/value user preference."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text)

    def get_value(self) -> Any:
        """Parse the stored JSON value."""
        return json.loads(self.value_json)

    def set_value(self, value: Any) -> None:
        """Serialize a setting value to JSON for storage."""
        self.value_json = json.dumps(value)
