# app/offerings/routes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import OfferingSheetIn
from . import service

router = APIRouter(prefix="/api/offerings", tags=["Offerings"])


@router.post("", response_model=dict)
def api_save_offerings(payload: OfferingSheetIn, db: Session = Depends(get_db)):
    return service.save_offerings(db, payload)


@router.get("", response_model=dict)
def api_get_offerings(
    assembly: str = Query(..., min_length=1),
    type: str = Query(..., min_length=1),
    month: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    return {"records": service.latest_offerings(db, assembly=assembly, type=type, month=month)}
