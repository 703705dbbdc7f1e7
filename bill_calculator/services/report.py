"""Report rendering for calculated bills."""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from weasyprint import HTML

from bill_calculator.models.enums import SplitPolicy
from bill_calculator.schemas.bill import BillCalculation
from bill_calculator.web.template_config import templates

logger = logging.getLogger(__name__)

BILL_TEMPLATE = "bill_report.html"
SUMMARY_TEMPLATE = "bill_summary.html"


def describe_split(calculation: BillCalculation) -> str:
    """Human-readable description of how the standing charge was split."""
    rates = calculation.rates
    if rates.standing_charge_split == SplitPolicy.USAGE:
        return "Split based on usage proportion"
    if rates.standing_charge_split == SplitPolicy.CUSTOM:
        return (
            f"Custom split ({calculation.meter_labels.property}: "
            f"{rates.custom_split_percentage}%)"
        )
    return "Equal split between all meters"


def report_filename(calculation: BillCalculation, summary: bool = False) -> str:
    """Download filename for a bill report."""
    kind = "summary" if summary else "bill"
    return f"electricity-{kind}-{calculation.readings.curr.date}.pdf"


def render_bill_report(
    calculation: BillCalculation,
    property_name: str,
    property_address: str | None = None,
    summary: bool = False,
    generated_at: datetime | None = None,
) -> str:
    """Render a bill as a standalone HTML document, the source of the PDF report.

    The full report lists readings, rates and the cost breakdown; the summary
    report only lists usage and the amount owed per party.
    """
    total_energy_cost = calculation.costs.property.energy_cost + sum(
        (cost.energy_cost for cost in calculation.costs.sub_meters), Decimal("0")
    )
    template = templates.get_template(SUMMARY_TEMPLATE if summary else BILL_TEMPLATE)
    html = template.render(
        calculation=calculation,
        property_name=property_name,
        address_lines=[line for line in (property_address or "").splitlines() if line.strip()],
        split_method=describe_split(calculation),
        total_energy_cost=total_energy_cost,
        generated_at=generated_at or datetime.now(UTC),
    )
    logger.info("Rendered %s report for %s", "summary" if summary else "bill", property_name)
    return html


def render_bill_pdf(
    calculation: BillCalculation,
    property_name: str,
    property_address: str | None = None,
    summary: bool = False,
    generated_at: datetime | None = None,
) -> bytes:
    """Render a bill report as an A4 PDF document."""
    html = render_bill_report(
        calculation,
        property_name,
        property_address=property_address,
        summary=summary,
        generated_at=generated_at,
    )
    return HTML(string=html).write_pdf()
