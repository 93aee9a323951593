# app/reports/routes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import ServiceReportIn
from . import service

router = APIRouter(prefix="/api/sunday-service-reports", tags=["Service Reports"])


@router.post("", response_model=dict)
def api_save_service_report(payload: ServiceReportIn, db: Session = Depends(get_db)):
    """
    Save the month's sheet for an assembly. `serviceType` picks the
    sunday / midweek / special collection; empty rows are dropped.
    """
    return service.save_report(db, payload)


@router.get("", response_model=dict)
def api_get_service_report(
    assembly: str = Query(..., min_length=1),
    month: str = Query(..., min_length=1),
    service_type: str = Query("sunday", alias="serviceType", pattern="^(sunday|midweek|special)$"),
    db: Session = Depends(get_db),
):
    return service.get_report(db, assembly=assembly, month=month, service_type=service_type)
