# app/ai/routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import AdminAnalysisIn, MonthlyReportIn
from . import service

router = APIRouter(tags=["AI Reports"])


@router.get("/api/admin/reports/ai-analysis", response_model=dict)
def api_ai_analysis(
    month: Optional[str] = Query(None, description="Month key, e.g. November-2025"),
    detailed: bool = Query(False),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": service.monthly_analysis(db, month=month, detailed=detailed)}


@router.get("/api/admin/reports/comparison", response_model=dict)
def api_compare_assemblies(
    assembly1: Optional[str] = Query(None),
    assembly2: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    data = service.compare_assemblies(db, assembly1=assembly1, assembly2=assembly2, month=month)
    return {"success": True, "data": data}


@router.post("/api/ai/financial-report", response_model=dict)
def api_admin_financial_report(payload: AdminAnalysisIn):
    return service.admin_financial_report(payload)


@router.post("/api/generate/financial-report", response_model=dict)
def api_monthly_financial_report(payload: MonthlyReportIn, db: Session = Depends(get_db)):
    """Markdown report for a month against the two months before it."""
    return service.monthly_financial_report(db, payload)
