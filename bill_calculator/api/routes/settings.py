"""User preference routes."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bill_calculator.core.database import get_db
from bill_calculator.schemas.storage import SettingUpdate, SettingValue
from bill_calculator.services import storage as storage_service

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=dict[str, Any])
def list_settings(db: Session = Depends(get_db)) -> dict[str, Any]:
    """Get every preference, including defaults that were never saved."""
    return storage_service.get_all_settings(db)


@router.get("/{key}", response_model=SettingValue)
def get_setting(key: str, db: Session = Depends(get_db)) -> SettingValue:
    """Get a single preference."""
    default = storage_service.default_settings().get(key)
    return SettingValue(key=key, value=storage_service.get_setting(db, key, default))


@router.put("/{key}", response_model=SettingValue)
def save_setting(
    key: str,
    data: SettingUpdate,
    db: Session = Depends(get_db),
) -> SettingValue:
    """Save a single preference."""
    return SettingValue(key=key, value=storage_service.save_setting(db, key, data.value))
