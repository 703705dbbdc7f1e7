"""Reading history routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from bill_calculator.core.database import get_db
from bill_calculator.schemas.bill import ReadingHistoryEntry, StoredReading
from bill_calculator.services import storage as storage_service

router = APIRouter(prefix="/readings", tags=["readings"])


@router.get("/", response_model=list[StoredReading])
def list_readings(db: Session = Depends(get_db)) -> list[StoredReading]:
    """List every saved reading in the order it was saved."""
    return storage_service.get_all_readings(db)


@router.get("/latest", response_model=StoredReading | None)
def get_latest_reading(db: Session = Depends(get_db)) -> StoredReading | None:
    """Get the reading with the latest reading date.

    Used to pre-fill the previous readings of the next bill.
    """
    return storage_service.get_most_recent_reading(db)


@router.get("/range", response_model=list[StoredReading])
def list_readings_in_range(
    start: date = Query(..., description="First reading date to include"),
    end: date = Query(..., description="Last reading date to include"),
    db: Session = Depends(get_db),
) -> list[StoredReading]:
    """List readings taken between two dates, inclusive."""
    return storage_service.get_readings_by_date_range(db, start, end)


@router.post(
    "/",
    response_model=StoredReading,
    status_code=status.HTTP_201_CREATED,
)
def save_reading(
    entry: ReadingHistoryEntry,
    db: Session = Depends(get_db),
) -> StoredReading:
    """Save a reading history entry."""
    return storage_service.save_reading(db, entry)


@router.delete(
    "/{reading_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_reading(
    reading_id: int,
    db: Session = Depends(get_db),
) -> None:
    """Delete a saved reading."""
    storage_service.delete_reading(db, reading_id)
