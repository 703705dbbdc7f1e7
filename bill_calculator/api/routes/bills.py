"""Bill routes: validate readings, calculate bills and download reports."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from bill_calculator.core.config import settings
from bill_calculator.core.database import get_db
from bill_calculator.core.exceptions import CalculationError
from bill_calculator.schemas.bill import BillCalculation, BillResponse, ReadingInput
from bill_calculator.schemas.validation import ValidationResult
from bill_calculator.services import calculator
from bill_calculator.services import report as report_service
from bill_calculator.services import storage as storage_service
from bill_calculator.services.validation import validate_reading_set

router = APIRouter(prefix="/bills", tags=["bills"])


def _validate_and_calculate(data: ReadingInput) -> tuple[ValidationResult, BillCalculation]:
    """Run the validator and, if the readings are valid, the calculator."""
    validation = validate_reading_set(data)
    if not validation.is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"errors": validation.errors, "warnings": validation.warnings},
        )
    try:
        calculation = calculator.calculate_bill(data)
    except CalculationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return validation, calculation


@router.post("/validate", response_model=ValidationResult)
def validate_readings(data: ReadingInput) -> ValidationResult:
    """Validate a reading set without calculating a bill.

    Always succeeds; problems are reported in ``errors`` and ``warnings``.
    """
    return validate_reading_set(data)


@router.post("/calculate", response_model=BillResponse)
def calculate_bill(
    data: ReadingInput,
    save: bool = Query(False, description="Save the bill to the reading history"),
    db: Session = Depends(get_db),
) -> BillResponse:
    """Validate a reading set and calculate the itemized bill.

    Figures are rounded for display when the ``rounded_values`` setting is on.
    The saved history entry always keeps the unrounded figures.
    """
    validation, calculation = _validate_and_calculate(data)

    history_entry = None
    if save:
        history_entry = storage_service.save_reading(
            db, calculator.create_reading_history_entry(calculation)
        )

    rounded_values = storage_service.get_setting(
        db, "rounded_values", settings.DEFAULT_ROUNDED_VALUES
    )
    return BillResponse(
        warnings=validation.warnings,
        calculation=calculator.format_calculation(
            calculation,
            rounded_values=rounded_values is True,
            round_to=settings.DEFAULT_ROUND_TO,
        ),
        history_entry=history_entry,
    )


@router.post(
    "/report",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
def download_report(
    data: ReadingInput,
    summary: bool = Query(False, description="Render the one-page summary instead"),
    db: Session = Depends(get_db),
) -> Response:
    """Calculate a bill and return it as a downloadable PDF report."""
    _, calculation = _validate_and_calculate(data)

    pdf = report_service.render_bill_pdf(
        calculation,
        property_name=storage_service.get_setting(
            db, "property_name", settings.DEFAULT_PROPERTY_NAME
        ),
        property_address=storage_service.get_setting(
            db, "property_address", settings.DEFAULT_PROPERTY_ADDRESS
        ),
        summary=summary,
    )
    filename = report_service.report_filename(calculation, summary)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
