"""Data export, import and reset routes."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from bill_calculator.core.database import get_db
from bill_calculator.schemas.storage import DataSnapshot, ImportResult
from bill_calculator.services import storage as storage_service

router = APIRouter(prefix="/data", tags=["data"])


@router.get("/export", response_model=DataSnapshot)
def export_data(db: Session = Depends(get_db)) -> DataSnapshot:
    """Export all readings and preferences."""
    return storage_service.export_all(db)


@router.post("/import", response_model=ImportResult)
def import_data(
    data: Any = Body(...),
    db: Session = Depends(get_db),
) -> ImportResult:
    """Replace all stored data with a previously exported snapshot."""
    return storage_service.import_all(db, data)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
def clear_data(db: Session = Depends(get_db)) -> None:
    """Delete all readings and preferences."""
    storage_service.clear_all_data(db)
