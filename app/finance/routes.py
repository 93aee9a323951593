# app/finance/routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import FinancialRecordIn
from . import service

router = APIRouter(prefix="/api/financial-records", tags=["Finance"])
admin_router = APIRouter(prefix="/api/admin/finances", tags=["Admin"])


@router.post("", response_model=dict)
def api_save_ledger(payload: FinancialRecordIn, db: Session = Depends(get_db)):
    return service.save_ledger(db, payload)


@router.get("", response_model=dict)
def api_get_ledger(
    assembly: str = Query(..., min_length=1),
    month: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    return service.get_ledger(db, assembly=assembly, month=month)


@admin_router.get("/summary", response_model=dict)
def api_finance_summary(
    assembly: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Collections across tithe, Sunday, midweek and special sheets, per assembly and per month."""
    return {"success": True, "data": service.finance_summary(db, assembly=assembly, month=month, year=year)}
