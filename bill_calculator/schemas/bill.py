"""Bill calculation schemas: raw reading input, itemized bill and history entries."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, field_validator, model_validator

from bill_calculator.models.enums import SplitPolicy

logger = logging.getLogger(__name__)

# Readings and rates arrive as form text or JSON values and are parsed explicitly;
# bool stays in the union so JSON true/false is not coerced to 1/0
RawNumber = bool | str | int | float | Decimal | None

PROPERTY_LABEL = "Main Property"


def default_sub_meter_label(index: int) -> str:
    """Display name for a sub-meter without a label (index is zero-based)."""
    return f"Sub Meter {index + 1}"


class ReadingInput(BaseModel):
    """Raw, untrusted reading set as submitted from the form.

    Dates are DD-MM-YYYY text. Rates are in pence: ``rate_per_kwh`` per kWh
    and ``standing_charge`` per day.
    """

    prev_date: str | None = None
    curr_date: str | None = None
    prev_main: RawNumber = None
    curr_main: RawNumber = None
    prev_sub: list[RawNumber] = []
    curr_sub: list[RawNumber] = []
    sub_meter_labels: list[str | None] = []
    rate_per_kwh: RawNumber = None
    standing_charge: RawNumber = None
    standing_charge_split: SplitPolicy = SplitPolicy.EQUAL
    custom_split_percentage: RawNumber = None

    @field_validator("standing_charge_split", mode="before")
    @classmethod
    def default_unknown_split(cls, v: Any) -> SplitPolicy:
        """Map unrecognised split values to the equal split."""
        if isinstance(v, SplitPolicy):
            return v
        try:
            return SplitPolicy(str(v).strip().lower())
        except ValueError:
            if v not in (None, ""):
                logger.warning("Unknown standing charge split %r, using equal split", v)
            return SplitPolicy.EQUAL

    @model_validator(mode="after")
    def fill_sub_meter_labels(self) -> "ReadingInput":
        """Give every sub-meter a label, defaulting blanks to "Sub Meter N"."""
        count = max(len(self.prev_sub), len(self.curr_sub))
        labels = self.sub_meter_labels
        self.sub_meter_labels = [
            labels[i] if i < len(labels) and labels[i] and labels[i].strip()
            else default_sub_meter_label(i)
            for i in range(count)
        ]
        return self


class ReadingSnapshot(BaseModel):
    """Readings taken on one date."""

    date: str
    main: Decimal
    sub: list[Decimal]


class BillReadings(BaseModel):
    """Echo of the readings a bill was calculated from."""

    prev: ReadingSnapshot
    curr: ReadingSnapshot


class BillRates(BaseModel):
    """Echo of the rates (pence) and split policy a bill was calculated with."""

    rate_per_kwh: Decimal
    standing_charge: Decimal
    standing_charge_split: SplitPolicy
    custom_split_percentage: Decimal | None = None


class BillUsages(BaseModel):
    """Consumption in kWh. Property usage is main usage minus all sub-meter usage."""

    main: Decimal
    property: Decimal
    sub_meters: list[Decimal]
    total: Decimal


class PartyCost(BaseModel):
    """Cost breakdown (pounds) for one billed party."""

    usage: Decimal
    energy_cost: Decimal
    standing_charge: Decimal
    total: Decimal


class SubMeterCost(PartyCost):
    """Cost breakdown for a sub-meter."""

    label: str


class BillCosts(BaseModel):
    """Itemized costs for the property and every sub-meter."""

    property: PartyCost
    sub_meters: list[SubMeterCost]
    total_standing_charge: Decimal
    total: Decimal


class MeterLabels(BaseModel):
    """Display names of the billed parties."""

    property: str = PROPERTY_LABEL
    sub_meters: list[str]


class BillCalculation(BaseModel):
    """Fully itemized bill for one reading period."""

    period_days: int
    readings: BillReadings
    rates: BillRates
    usages: BillUsages
    costs: BillCosts
    meter_labels: MeterLabels


class ReadingHistoryEntry(BaseModel):
    """Flattened bill as persisted in the reading history."""

    date: str
    prev_date: str
    main_meter: Decimal
    sub_meters: list[Decimal]
    sub_meter_labels: list[str]
    usages: BillUsages
    costs: BillCosts
    rates: BillRates
    period_days: int
    timestamp: datetime


class StoredReading(ReadingHistoryEntry):
    """History entry as returned by the store."""

    id: int


class BillResponse(BaseModel):
    """Result of a calculate action."""

    warnings: list[str]
    calculation: BillCalculation
    history_entry: StoredReading | None = None
