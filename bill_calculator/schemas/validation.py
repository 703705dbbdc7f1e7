"""Result schemas for reading set validation.

A check with ``is_valid=False`` carries a hard error in ``message``. A check
with ``is_valid=True`` and a non-empty ``message`` carries a warning.
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel


class CheckResult(BaseModel):
    """Outcome of a single validation check."""

    is_valid: bool = False
    message: str = ""

    @property
    def is_warning(self) -> bool:
        """True if the check passed but raised an advisory message."""
        return self.is_valid and bool(self.message)


class DateCheck(CheckResult):
    """Result of a date format check."""

    date: datetime.date | None = None


class DateRangeCheck(CheckResult):
    """Result of a date range check."""

    days_difference: int = 0


class NumberCheck(CheckResult):
    """Result of a reading, rate or percentage check."""

    value: Decimal | None = None


class ProgressionCheck(CheckResult):
    """Result of a reading progression check."""

    difference: Decimal = Decimal("0")


class SubMeterCheck(CheckResult):
    """Result of comparing total sub-meter usage with main meter usage."""

    main_usage: Decimal = Decimal("0")
    sub_meter_usage: Decimal = Decimal("0")


class ValidationResult(BaseModel):
    """Aggregated validation of a complete reading set."""

    is_valid: bool = True
    errors: list[str] = []
    warnings: list[str] = []
    days_difference: int | None = None
    main_usage: Decimal | None = None
