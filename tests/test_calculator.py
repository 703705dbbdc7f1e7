"""Tests for bill calculation."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from bill_calculator.core.exceptions import DegenerateApportionment, InvariantViolation
from bill_calculator.models.enums import SplitPolicy
from bill_calculator.schemas.bill import ReadingInput
from bill_calculator.services.calculator import (
    apportion_standing_charge,
    calculate_bill,
    calculate_energy_cost,
    calculate_standing_charge,
    calculate_usage,
    create_reading_history_entry,
    format_calculation,
)

TOLERANCE = Decimal("1e-20")


def _reading_set(**overrides) -> ReadingInput:
    """Helper: the one-sub-meter reading set from the worked example."""
    data = {
        "prev_date": "01-01-2025",
        "curr_date": "31-01-2025",
        "prev_main": "1000",
        "curr_main": "1300",
        "prev_sub": ["500"],
        "curr_sub": ["650"],
        "sub_meter_labels": ["Shop"],
        "rate_per_kwh": "28",
        "standing_charge": "140",
        "standing_charge_split": "equal",
    }
    data.update(overrides)
    return ReadingInput(**data)


def _multi_meter_set(sub_count: int, split: str, percentage: str | None = None) -> ReadingInput:
    """Helper: a reading set with ``sub_count`` sub-meters of uneven usage."""
    prev_sub = [str(100 * i) for i in range(sub_count)]
    curr_sub = [str(100 * i + 7 * (i + 1)) for i in range(sub_count)]
    return _reading_set(
        prev_main="2000",
        curr_main="2333.3",
        prev_sub=prev_sub,
        curr_sub=curr_sub,
        sub_meter_labels=[],
        rate_per_kwh="27.03",
        standing_charge="61.64",
        standing_charge_split=split,
        custom_split_percentage=percentage,
    )


class TestHelpers:
    """Unit tests for the small calculation helpers."""

    def test_calculate_usage(self) -> None:
        """Test usage is current minus previous."""
        assert calculate_usage(Decimal("1000"), Decimal("1300.5")) == Decimal("300.5")

    def test_calculate_energy_cost(self) -> None:
        """Test energy cost converts pence to pounds."""
        assert calculate_energy_cost(Decimal("150"), Decimal("28")) == Decimal("42")

    def test_calculate_standing_charge(self) -> None:
        """Test standing charge is days times the daily rate in pounds."""
        assert calculate_standing_charge(30, Decimal("140")) == Decimal("42")


class TestCalculateBill:
    """Tests for the worked examples."""

    def test_equal_split(self) -> None:
        """Test the equal split example."""
        calc = calculate_bill(_reading_set())

        assert calc.period_days == 30
        assert calc.usages.main == Decimal("300")
        assert calc.usages.sub_meters == [Decimal("150")]
        assert calc.usages.property == Decimal("150")
        assert calc.usages.total == Decimal("300")
        assert calc.costs.total_standing_charge == Decimal("42.00")
        assert calc.costs.property.standing_charge == Decimal("21.00")
        assert calc.costs.property.energy_cost == Decimal("42.00")
        assert calc.costs.property.total == Decimal("63.00")
        sub = calc.costs.sub_meters[0]
        assert sub.label == "Shop"
        assert sub.standing_charge == Decimal("21.00")
        assert sub.energy_cost == Decimal("42.00")
        assert sub.total == Decimal("63.00")
        assert calc.costs.total == Decimal("126.00")

    def test_custom_split(self) -> None:
        """Test the custom split only reallocates the standing charge."""
        calc = calculate_bill(
            _reading_set(standing_charge_split="custom", custom_split_percentage="70")
        )

        assert calc.costs.property.standing_charge == Decimal("29.40")
        assert calc.costs.sub_meters[0].standing_charge == Decimal("12.60")
        assert calc.costs.property.total == Decimal("71.40")
        assert calc.costs.sub_meters[0].total == Decimal("54.60")
        assert calc.costs.total == Decimal("126.00")
        assert calc.rates.custom_split_percentage == Decimal("70")

    def test_usage_split(self) -> None:
        """Test the usage split follows each party's share of consumption."""
        calc = calculate_bill(
            _reading_set(curr_sub=["600"], standing_charge_split="usage")
        )

        # Property 200 kWh, shop 100 kWh of 300 kWh
        assert calc.costs.property.standing_charge == Decimal("28")
        assert calc.costs.sub_meters[0].standing_charge == Decimal("14")
        assert calc.costs.total == Decimal("126.00")

    def test_high_rate_still_calculates(self) -> None:
        """Test a warning-only rate is used as given."""
        calc = calculate_bill(_reading_set(rate_per_kwh="150"))
        assert calc.costs.property.energy_cost == Decimal("225")

    def test_echoes_inputs(self) -> None:
        """Test readings, rates and labels are echoed for traceability."""
        calc = calculate_bill(_reading_set())

        assert calc.readings.prev.date == "01-01-2025"
        assert calc.readings.curr.date == "31-01-2025"
        assert calc.readings.prev.main == Decimal("1000")
        assert calc.readings.curr.sub == [Decimal("650")]
        assert calc.rates.rate_per_kwh == Decimal("28")
        assert calc.rates.standing_charge == Decimal("140")
        assert calc.rates.standing_charge_split == SplitPolicy.EQUAL
        assert calc.rates.custom_split_percentage is None
        assert calc.meter_labels.property == "Main Property"
        assert calc.meter_labels.sub_meters == ["Shop"]

    def test_default_labels(self) -> None:
        """Test unlabelled sub-meters are numbered."""
        calc = calculate_bill(_multi_meter_set(2, "equal"))
        assert [c.label for c in calc.costs.sub_meters] == ["Sub Meter 1", "Sub Meter 2"]

    def test_unknown_split_uses_equal(self) -> None:
        """Test an unrecognised split value is billed as an equal split."""
        calc = calculate_bill(_reading_set(standing_charge_split="by-floor"))
        assert calc.rates.standing_charge_split == SplitPolicy.EQUAL
        assert calc.costs.property.standing_charge == Decimal("21")

    def test_numeric_inputs(self) -> None:
        """Test numbers are accepted as well as text."""
        calc = calculate_bill(
            _reading_set(prev_main=1000, curr_main=1300.0, rate_per_kwh=28, standing_charge=140)
        )
        assert calc.costs.total == Decimal("126")

    def test_idempotent(self) -> None:
        """Test identical input gives identical output."""
        data = _multi_meter_set(3, "usage")
        assert calculate_bill(data) == calculate_bill(data)


class TestConservation:
    """Property tests over every split policy and sub-meter count."""

    @pytest.mark.parametrize("sub_count", [0, 1, 4])
    @pytest.mark.parametrize(
        ("split", "percentage"),
        [("equal", None), ("usage", None), ("custom", "37.5")],
    )
    def test_totals_add_up(self, sub_count: int, split: str, percentage: str | None) -> None:
        """Test costs, usages and standing charge shares all sum to their totals."""
        calc = calculate_bill(_multi_meter_set(sub_count, split, percentage))
        costs = calc.costs

        sub_totals = sum((c.total for c in costs.sub_meters), Decimal("0"))
        assert abs(costs.total - (costs.property.total + sub_totals)) < TOLERANCE

        sub_usage = sum(calc.usages.sub_meters, Decimal("0"))
        assert abs(calc.usages.total - (calc.usages.property + sub_usage)) < TOLERANCE

        sub_standing = sum((c.standing_charge for c in costs.sub_meters), Decimal("0"))
        assert (
            abs(costs.total_standing_charge - (costs.property.standing_charge + sub_standing))
            < TOLERANCE
        )

    def test_no_sub_meters_property_pays_all(self) -> None:
        """Test the property carries the whole standing charge alone."""
        calc = calculate_bill(_multi_meter_set(0, "custom", "40"))
        assert calc.costs.property.standing_charge == calc.costs.total_standing_charge
        assert calc.costs.sub_meters == []


class TestApportionment:
    """Tests for standing charge apportionment edge cases."""

    def test_usage_split_zero_usage(self) -> None:
        """Test a usage split over zero consumption is reported, not divided."""
        with pytest.raises(DegenerateApportionment):
            apportion_standing_charge(
                SplitPolicy.USAGE,
                Decimal("42"),
                Decimal("0"),
                [Decimal("0")],
                Decimal("0"),
            )

    def test_custom_split_needs_percentage(self) -> None:
        """Test a custom split without a percentage is a precondition failure."""
        with pytest.raises(InvariantViolation):
            apportion_standing_charge(
                SplitPolicy.CUSTOM,
                Decimal("42"),
                Decimal("150"),
                [Decimal("150")],
                Decimal("300"),
            )

    def test_custom_split_full_property_share(self) -> None:
        """Test 100% leaves nothing for the sub-meters."""
        property_share, sub_shares = apportion_standing_charge(
            SplitPolicy.CUSTOM,
            Decimal("42"),
            Decimal("150"),
            [Decimal("100"), Decimal("50")],
            Decimal("300"),
            Decimal("100"),
        )
        assert property_share == Decimal("42")
        assert sub_shares == [Decimal("0"), Decimal("0")]


class TestPreconditions:
    """Tests that invalid input fails fast instead of producing NaN."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"prev_main": "abc"},
            {"curr_sub": ["x"]},
            {"rate_per_kwh": ""},
            {"standing_charge": None},
            {"prev_date": "2025-01-01"},
            {"curr_date": "01-01-2025"},
            {"curr_sub": []},
            {"standing_charge_split": "custom"},
        ],
    )
    def test_invariant_violations(self, overrides: dict) -> None:
        """Test each unusable input raises InvariantViolation."""
        with pytest.raises(InvariantViolation):
            calculate_bill(_reading_set(**overrides))

    def test_usage_split_zero_usage(self) -> None:
        """Test the calculator refuses to divide by zero main usage."""
        with pytest.raises(DegenerateApportionment):
            calculate_bill(
                _reading_set(curr_main="1000", curr_sub=["500"], standing_charge_split="usage")
            )


class TestFormatCalculation:
    """Tests for display rounding."""

    def test_unrounded_is_equal_copy(self) -> None:
        """Test disabling rounding returns an equal but separate copy."""
        calc = calculate_bill(_multi_meter_set(3, "equal"))
        formatted = format_calculation(calc, rounded_values=False)
        assert formatted == calc
        assert formatted is not calc
        assert formatted.costs is not calc.costs

    def test_rounding_does_not_mutate_original(self) -> None:
        """Test the original calculation keeps full precision."""
        calc = calculate_bill(_multi_meter_set(3, "equal"))
        before = calc.model_copy(deep=True)
        format_calculation(calc)
        assert calc == before

    @pytest.mark.parametrize("round_to", [0, 2, 3])
    def test_rounding_bound(self, round_to: int) -> None:
        """Test rounded figures stay within half a unit of the last place."""
        calc = calculate_bill(_multi_meter_set(3, "usage"))
        formatted = format_calculation(calc, rounded_values=True, round_to=round_to)
        bound = Decimal("0.5") * Decimal(1).scaleb(-round_to)

        pairs = [
            (calc.usages.main, formatted.usages.main),
            (calc.usages.property, formatted.usages.property),
            (calc.costs.total, formatted.costs.total),
            (calc.costs.total_standing_charge, formatted.costs.total_standing_charge),
            (calc.costs.property.total, formatted.costs.property.total),
            (calc.costs.property.energy_cost, formatted.costs.property.energy_cost),
        ]
        pairs += list(zip(calc.usages.sub_meters, formatted.usages.sub_meters))
        for original, rounded in zip(calc.costs.sub_meters, formatted.costs.sub_meters):
            pairs.append((original.standing_charge, rounded.standing_charge))
            pairs.append((original.total, rounded.total))

        for original, rounded in pairs:
            assert abs(original - rounded) <= bound
            assert rounded == rounded.quantize(Decimal(1).scaleb(-round_to))

    def test_rounds_half_up(self) -> None:
        """Test halves round away from zero like the displayed figures."""
        calc = calculate_bill(_reading_set(rate_per_kwh="28.005", curr_sub=["500"]))
        # 300 kWh at 0.28005 = 84.015
        assert format_calculation(calc).costs.property.energy_cost == Decimal("84.02")


class TestHistoryEntry:
    """Tests for the persisted projection of a bill."""

    def test_flattens_calculation(self) -> None:
        """Test the entry carries the current readings and the breakdown."""
        calc = calculate_bill(_reading_set())
        now = datetime(2025, 2, 1, 9, 30, tzinfo=UTC)
        entry = create_reading_history_entry(calc, now=now)

        assert entry.date == "31-01-2025"
        assert entry.prev_date == "01-01-2025"
        assert entry.main_meter == Decimal("1300")
        assert entry.sub_meters == [Decimal("650")]
        assert entry.sub_meter_labels == ["Shop"]
        assert entry.usages == calc.usages
        assert entry.costs == calc.costs
        assert entry.rates == calc.rates
        assert entry.period_days == 30
        assert entry.timestamp == now

    def test_timestamp_generated_at_call_time(self) -> None:
        """Test the timestamp is taken when the entry is created."""
        calc = calculate_bill(_reading_set())
        before = datetime.now(UTC)
        entry = create_reading_history_entry(calc)
        assert before <= entry.timestamp <= datetime.now(UTC)
