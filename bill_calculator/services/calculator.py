"""Bill calculation: usage, standing charge apportionment and cost breakdown.

The calculator expects a reading set that passed ``validate_reading_set``.
It re-parses the raw values but does not re-validate them; input it cannot
make sense of raises ``InvariantViolation`` instead of producing NaN figures.
"""

import logging
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from bill_calculator.core.exceptions import DegenerateApportionment, InvariantViolation
from bill_calculator.models.enums import SplitPolicy
from bill_calculator.schemas.bill import (
    BillCalculation,
    BillCosts,
    BillRates,
    BillReadings,
    BillUsages,
    MeterLabels,
    PartyCost,
    RawNumber,
    ReadingHistoryEntry,
    ReadingInput,
    ReadingSnapshot,
    SubMeterCost,
)
from bill_calculator.services.validation import days_between, parse_date, parse_number

logger = logging.getLogger(__name__)

PENCE_PER_POUND = Decimal("100")


def calculate_usage(prev_reading: Decimal, curr_reading: Decimal) -> Decimal:
    """Consumption between two cumulative readings."""
    return curr_reading - prev_reading


def calculate_energy_cost(usage: Decimal, rate_per_kwh: Decimal) -> Decimal:
    """Energy cost in pounds for ``usage`` kWh at ``rate_per_kwh`` pence."""
    return usage * (rate_per_kwh / PENCE_PER_POUND)


def calculate_standing_charge(days: int, standing_charge: Decimal) -> Decimal:
    """Standing charge in pounds for ``days`` at ``standing_charge`` pence per day."""
    return days * (standing_charge / PENCE_PER_POUND)


def apportion_standing_charge(
    policy: SplitPolicy,
    total_standing_charge: Decimal,
    property_usage: Decimal,
    sub_usages: list[Decimal],
    main_usage: Decimal,
    custom_percentage: Decimal | None = None,
) -> tuple[Decimal, list[Decimal]]:
    """Split the standing charge between the property and its sub-meters.

    Returns (property share, sub-meter shares). The shares always add up to
    ``total_standing_charge``; without sub-meters the property pays it all.
    """
    if policy == SplitPolicy.USAGE and main_usage == 0:
        raise DegenerateApportionment(
            "Cannot split the standing charge by usage when main meter usage is zero"
        )

    count = len(sub_usages)
    if count == 0:
        return total_standing_charge, []

    if policy == SplitPolicy.EQUAL:
        share = total_standing_charge / (count + 1)
        return share, [share] * count

    if policy == SplitPolicy.USAGE:
        property_share = property_usage * total_standing_charge / main_usage
        return property_share, [usage * total_standing_charge / main_usage for usage in sub_usages]

    if policy == SplitPolicy.CUSTOM:
        if custom_percentage is None or not 0 <= custom_percentage <= 100:
            raise InvariantViolation(
                f"Custom split percentage must be between 0 and 100, got {custom_percentage}"
            )
        property_share = total_standing_charge * custom_percentage / 100
        sub_share = (total_standing_charge - property_share) / count
        return property_share, [sub_share] * count

    raise InvariantViolation(f"Unsupported standing charge split: {policy!r}")


def _require_number(raw: RawNumber, name: str) -> Decimal:
    value = parse_number(raw)
    if value is None:
        logger.warning("Calculator received invalid %s: %r", name, raw)
        raise InvariantViolation(f"Invalid {name}: {raw!r}")
    return value


def calculate_bill(data: ReadingInput) -> BillCalculation:
    """Calculate an itemized bill from a validated reading set."""
    prev_date = parse_date(data.prev_date)
    curr_date = parse_date(data.curr_date)
    if prev_date is None or curr_date is None:
        raise InvariantViolation(
            f"Reading dates must be DD-MM-YYYY, got {data.prev_date!r} and {data.curr_date!r}"
        )
    period_days = days_between(prev_date, curr_date)
    if period_days <= 0:
        raise InvariantViolation("Current date must be after previous date")

    if len(data.prev_sub) != len(data.curr_sub):
        raise InvariantViolation(
            f"Got {len(data.prev_sub)} previous and {len(data.curr_sub)} current sub-meter readings"
        )

    prev_main = _require_number(data.prev_main, "previous main meter reading")
    curr_main = _require_number(data.curr_main, "current main meter reading")
    prev_sub = [
        _require_number(value, f"previous sub-meter {i + 1} reading")
        for i, value in enumerate(data.prev_sub)
    ]
    curr_sub = [
        _require_number(value, f"current sub-meter {i + 1} reading")
        for i, value in enumerate(data.curr_sub)
    ]
    rate_per_kwh = _require_number(data.rate_per_kwh, "rate per kWh")
    standing_charge = _require_number(data.standing_charge, "standing charge")

    custom_percentage: Decimal | None = None
    if data.standing_charge_split == SplitPolicy.CUSTOM:
        custom_percentage = _require_number(
            data.custom_split_percentage, "custom split percentage"
        )

    total_standing_charge = calculate_standing_charge(period_days, standing_charge)

    main_usage = calculate_usage(prev_main, curr_main)
    sub_usages = [calculate_usage(prev, curr) for prev, curr in zip(prev_sub, curr_sub)]
    # Property usage is derived, never measured
    property_usage = main_usage - sum(sub_usages, Decimal("0"))

    property_standing_charge, sub_standing_charges = apportion_standing_charge(
        data.standing_charge_split,
        total_standing_charge,
        property_usage,
        sub_usages,
        main_usage,
        custom_percentage,
    )

    property_energy_cost = calculate_energy_cost(property_usage, rate_per_kwh)
    property_cost = PartyCost(
        usage=property_usage,
        energy_cost=property_energy_cost,
        standing_charge=property_standing_charge,
        total=property_energy_cost + property_standing_charge,
    )

    sub_meter_costs: list[SubMeterCost] = []
    for label, usage, share in zip(data.sub_meter_labels, sub_usages, sub_standing_charges):
        energy_cost = calculate_energy_cost(usage, rate_per_kwh)
        sub_meter_costs.append(
            SubMeterCost(
                label=label,
                usage=usage,
                energy_cost=energy_cost,
                standing_charge=share,
                total=energy_cost + share,
            )
        )

    total_cost = property_cost.total + sum((cost.total for cost in sub_meter_costs), Decimal("0"))

    logger.debug(
        "Calculated bill for %s to %s: %s over %d day(s)",
        data.prev_date,
        data.curr_date,
        total_cost,
        period_days,
    )

    return BillCalculation(
        period_days=period_days,
        readings=BillReadings(
            prev=ReadingSnapshot(date=data.prev_date, main=prev_main, sub=prev_sub),
            curr=ReadingSnapshot(date=data.curr_date, main=curr_main, sub=curr_sub),
        ),
        rates=BillRates(
            rate_per_kwh=rate_per_kwh,
            standing_charge=standing_charge,
            standing_charge_split=data.standing_charge_split,
            custom_split_percentage=custom_percentage,
        ),
        usages=BillUsages(
            main=main_usage,
            property=property_usage,
            sub_meters=sub_usages,
            total=main_usage,
        ),
        costs=BillCosts(
            property=property_cost,
            sub_meters=sub_meter_costs,
            total_standing_charge=total_standing_charge,
            total=total_cost,
        ),
        meter_labels=MeterLabels(sub_meters=list(data.sub_meter_labels[: len(sub_usages)])),
    )


def format_calculation(
    calculation: BillCalculation,
    rounded_values: bool = True,
    round_to: int = 2,
) -> BillCalculation:
    """Return a display copy of a bill, rounding usages and costs if requested.

    The calculation passed in is never modified.
    """
    formatted = calculation.model_copy(deep=True)
    if not rounded_values:
        return formatted

    quantum = Decimal(1).scaleb(-round_to)

    def round_number(value: Decimal) -> Decimal:
        return value.quantize(quantum, rounding=ROUND_HALF_UP)

    def round_cost(cost: PartyCost) -> None:
        cost.usage = round_number(cost.usage)
        cost.energy_cost = round_number(cost.energy_cost)
        cost.standing_charge = round_number(cost.standing_charge)
        cost.total = round_number(cost.total)

    usages = formatted.usages
    usages.main = round_number(usages.main)
    usages.property = round_number(usages.property)
    usages.sub_meters = [round_number(usage) for usage in usages.sub_meters]
    usages.total = round_number(usages.total)

    costs = formatted.costs
    round_cost(costs.property)
    for cost in costs.sub_meters:
        round_cost(cost)
    costs.total_standing_charge = round_number(costs.total_standing_charge)
    costs.total = round_number(costs.total)

    return formatted


def create_reading_history_entry(
    calculation: BillCalculation,
    now: datetime | None = None,
) -> ReadingHistoryEntry:
    """Flatten a bill into a history entry stamped with the current time."""
    return ReadingHistoryEntry(
        date=calculation.readings.curr.date,
        prev_date=calculation.readings.prev.date,
        main_meter=calculation.readings.curr.main,
        sub_meters=list(calculation.readings.curr.sub),
        sub_meter_labels=list(calculation.meter_labels.sub_meters),
        usages=calculation.usages.model_copy(deep=True),
        costs=calculation.costs.model_copy(deep=True),
        rates=calculation.rates.model_copy(deep=True),
        period_days=calculation.period_days,
        timestamp=now or datetime.now(UTC),
    )
