"""Validation of raw reading sets before a bill is calculated.

Checks never raise. Each returns a result whose ``message`` is a hard error
when ``is_valid`` is False and a warning when ``is_valid`` is True.
``validate_reading_set`` runs every check and collects all messages so one
submission reports every problem at once.
"""

import logging
import math
import re
from datetime import date
from decimal import Decimal, InvalidOperation

from bill_calculator.models.enums import SplitPolicy
from bill_calculator.schemas.bill import RawNumber, ReadingInput
from bill_calculator.schemas.validation import (
    DateCheck,
    DateRangeCheck,
    NumberCheck,
    ProgressionCheck,
    SubMeterCheck,
    ValidationResult,
)

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"(0[1-9]|[12][0-9]|3[01])-(0[1-9]|1[0-2])-([0-9]{4})")

MAX_READING = Decimal("1000000")
MAX_PERIOD_DAYS = 366
# Extreme daily usage for a property; a typical UK household uses 8-10 kWh/day
MAX_DAILY_USAGE_KWH = Decimal("100")
DEFAULT_PERIOD_DAYS = 30
# Pence per kWh or per day; real tariffs sit well below this
MAX_RATE_PENCE = Decimal("100")


def _is_blank(raw: RawNumber) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def parse_number(raw: RawNumber) -> Decimal | None:
    """Parse a reading, rate or percentage into a finite Decimal.

    Returns None for blanks, booleans and anything that is not a finite number.
    """
    if _is_blank(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        raw = repr(raw)
    elif isinstance(raw, str):
        raw = raw.strip()
    try:
        value = Decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return value if value.is_finite() else None


def parse_date(date_str: str | None) -> date | None:
    """Parse a DD-MM-YYYY date, returning None if it is malformed or not a real date."""
    if not date_str:
        return None
    match = DATE_PATTERN.fullmatch(date_str)
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def days_between(prev: date, curr: date) -> int:
    """Calendar days from one reading date to the next."""
    return (curr - prev).days


def validate_date_format(date_str: str | None, today: date | None = None) -> DateCheck:
    """Check a DD-MM-YYYY date is real and not after ``today``."""
    if not date_str:
        return DateCheck(message="Date is required")

    if not DATE_PATTERN.fullmatch(date_str):
        return DateCheck(message="Date must be in DD-MM-YYYY format")

    parsed = parse_date(date_str)
    if parsed is None:
        return DateCheck(message="Invalid date (e.g., February 31)")

    if parsed > (today or date.today()):
        return DateCheck(message="Date cannot be in the future")

    return DateCheck(is_valid=True, date=parsed)


def validate_date_range(prev: date, curr: date) -> DateRangeCheck:
    """Check the current date is after the previous one and return the day count."""
    if curr <= prev:
        return DateRangeCheck(message="Current date must be after previous date")

    days = days_between(prev, curr)
    message = ""
    if days > MAX_PERIOD_DAYS:
        message = "Warning: Readings are more than a year apart"
    return DateRangeCheck(is_valid=True, message=message, days_difference=days)


def validate_meter_reading(reading: RawNumber) -> NumberCheck:
    if _is_blank(reading):
        return NumberCheck(message="Reading is required")

    value = parse_number(reading)
    if value is None:
        return NumberCheck(message="Reading must be a number")
    if value < 0:
        return NumberCheck(message="Reading cannot be negative")
    if value > MAX_READING:
        return NumberCheck(message="Reading appears too large")

    return NumberCheck(is_valid=True, value=value)


def validate_reading_progression(
    prev_reading: Decimal,
    curr_reading: Decimal,
    days: int | None = None,
) -> ProgressionCheck:
    """Check a meter did not run backwards and flag implausibly high usage.

    Usage above 100 kWh per day over ``days`` (30 when unknown) is a warning.
    """
    if curr_reading < prev_reading:
        return ProgressionCheck(message="Current reading must be higher than previous reading")

    difference = curr_reading - prev_reading
    max_expected_usage = (days or DEFAULT_PERIOD_DAYS) * MAX_DAILY_USAGE_KWH

    message = ""
    if difference > max_expected_usage:
        message = "Warning: Usage appears unusually high"
    return ProgressionCheck(is_valid=True, message=message, difference=difference)


def validate_sub_meters(main_usage: Decimal, sub_usages: list[Decimal]) -> SubMeterCheck:
    """Check total sub-meter consumption does not exceed main meter consumption."""
    sub_total = sum(sub_usages, Decimal("0"))
    if sub_total > main_usage:
        return SubMeterCheck(
            message=(
                f"Sub-meter usage ({sub_total:f} kWh) cannot exceed "
                f"main meter usage ({main_usage:f} kWh)"
            ),
            main_usage=main_usage,
            sub_meter_usage=sub_total,
        )
    return SubMeterCheck(is_valid=True, main_usage=main_usage, sub_meter_usage=sub_total)


def validate_rate(rate: RawNumber) -> NumberCheck:
    """Check a rate in pence is positive, warning above 100 pence."""
    if _is_blank(rate):
        return NumberCheck(message="Rate is required")

    value = parse_number(rate)
    if value is None:
        return NumberCheck(message="Rate must be a number")
    if value <= 0:
        return NumberCheck(message="Rate must be greater than zero")

    message = ""
    if value > MAX_RATE_PENCE:
        message = "Warning: Rate appears unusually high"
    return NumberCheck(is_valid=True, message=message, value=value)


def validate_custom_split(percentage: RawNumber) -> NumberCheck:
    """Check the property's share of the standing charge is a percentage."""
    if _is_blank(percentage):
        return NumberCheck(message="Custom split percentage is required")

    value = parse_number(percentage)
    if value is None:
        return NumberCheck(message="Custom split percentage must be a number")
    if value < 0 or value > 100:
        return NumberCheck(message="Custom split percentage must be between 0 and 100")

    return NumberCheck(is_valid=True, value=value)


def validate_reading_set(data: ReadingInput, today: date | None = None) -> ValidationResult:
    """Validate a complete reading set, collecting every error and warning."""
    result = ValidationResult()

    def add_error(message: str) -> None:
        result.is_valid = False
        result.errors.append(message)

    # Dates
    prev_date_check = validate_date_format(data.prev_date, today)
    curr_date_check = validate_date_format(data.curr_date, today)

    if not prev_date_check.is_valid:
        add_error(f"Previous date: {prev_date_check.message}")
    if not curr_date_check.is_valid:
        add_error(f"Current date: {curr_date_check.message}")

    if prev_date_check.is_valid and curr_date_check.is_valid:
        range_check = validate_date_range(prev_date_check.date, curr_date_check.date)
        if not range_check.is_valid:
            add_error(range_check.message)
        else:
            if range_check.message:
                result.warnings.append(range_check.message)
            result.days_difference = range_check.days_difference

    # Main meter
    prev_main_check = validate_meter_reading(data.prev_main)
    curr_main_check = validate_meter_reading(data.curr_main)

    if not prev_main_check.is_valid:
        add_error(f"Previous main meter: {prev_main_check.message}")
    if not curr_main_check.is_valid:
        add_error(f"Current main meter: {curr_main_check.message}")

    main_progression_valid = False
    if prev_main_check.is_valid and curr_main_check.is_valid:
        main_progression = validate_reading_progression(
            prev_main_check.value,
            curr_main_check.value,
            result.days_difference,
        )
        if not main_progression.is_valid:
            add_error(main_progression.message)
        else:
            main_progression_valid = True
            if main_progression.message:
                result.warnings.append(main_progression.message)
            result.main_usage = main_progression.difference

    # Sub-meters; a missing value on either side is reported as a required reading
    sub_count = max(len(data.prev_sub), len(data.curr_sub))
    sub_usages: list[Decimal] = []
    for i in range(sub_count):
        prev_sub_check = validate_meter_reading(data.prev_sub[i] if i < len(data.prev_sub) else None)
        curr_sub_check = validate_meter_reading(data.curr_sub[i] if i < len(data.curr_sub) else None)

        if not prev_sub_check.is_valid:
            add_error(f"Previous sub-meter {i + 1}: {prev_sub_check.message}")
        if not curr_sub_check.is_valid:
            add_error(f"Current sub-meter {i + 1}: {curr_sub_check.message}")
        if not (prev_sub_check.is_valid and curr_sub_check.is_valid):
            continue

        sub_progression = validate_reading_progression(
            prev_sub_check.value,
            curr_sub_check.value,
            result.days_difference,
        )
        if not sub_progression.is_valid:
            add_error(f"Sub-meter {i + 1}: {sub_progression.message}")
            continue
        if sub_progression.message:
            result.warnings.append(f"Sub-meter {i + 1}: {sub_progression.message}")
        sub_usages.append(sub_progression.difference)

    # Aggregate check only makes sense once every consumption is known and non-negative
    if main_progression_valid and len(sub_usages) == sub_count:
        sub_meter_check = validate_sub_meters(result.main_usage, sub_usages)
        if not sub_meter_check.is_valid:
            add_error(sub_meter_check.message)

    # Rates
    rate_check = validate_rate(data.rate_per_kwh)
    standing_charge_check = validate_rate(data.standing_charge)

    if not rate_check.is_valid:
        add_error(f"Rate per kWh: {rate_check.message}")
    elif rate_check.message:
        result.warnings.append(rate_check.message)

    if not standing_charge_check.is_valid:
        add_error(f"Standing charge: {standing_charge_check.message}")
    elif standing_charge_check.message:
        result.warnings.append(standing_charge_check.message)

    # Standing charge split
    if data.standing_charge_split == SplitPolicy.CUSTOM:
        split_check = validate_custom_split(data.custom_split_percentage)
        if not split_check.is_valid:
            add_error(f"Custom split: {split_check.message}")
    elif data.standing_charge_split == SplitPolicy.USAGE and result.main_usage == 0:
        add_error("Usage-based standing charge split requires main meter usage above zero")

    if not result.is_valid:
        logger.info("Rejected reading set with %d error(s)", len(result.errors))
    elif result.warnings:
        logger.info("Accepted reading set with %d warning(s)", len(result.warnings))

    return result
