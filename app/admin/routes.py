# app/admin/routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import AssemblyIn
from . import service

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/dashboard", response_model=dict)
def api_dashboard(
    assembly: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": service.dashboard(db, assembly=assembly, month=month, year=year)}


@router.get("/assemblies", response_model=dict)
def api_list_assemblies(
    status: Optional[str] = Query(None, pattern="^(active|inactive)$"),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": service.list_assemblies(db, status=status)}


@router.post("/assemblies", response_model=dict)
def api_save_assembly(payload: AssemblyIn, db: Session = Depends(get_db)):
    return service.save_assembly(db, payload)


@router.get("/reports/detailed", response_model=dict)
def api_detailed_reports(
    assembly: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    service_type: str = Query("all", alias="serviceType", pattern="^(sunday|midweek|special|all)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    Paged reports of one service type (or all) with a summary over the
    whole filtered set.
    """
    data = service.detailed_reports(
        db, assembly=assembly, month=month, year=year,
        service_type=service_type, page=page, limit=limit,
    )
    return {"success": True, "data": data}


@router.get("/assembly-details", response_model=dict)
def api_assembly_details(assembly: Optional[str] = Query(None), db: Session = Depends(get_db)):
    if not assembly or not assembly.strip():
        raise HTTPException(status_code=400, detail="Assembly name required")
    return {"success": True, "data": service.assembly_details(db, assembly.strip())}


@router.get("/financial-reports", response_model=dict)
def api_financial_reports(
    assembly: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    """Sunday finances in a createdAt window, with per-assembly filing status."""
    result = service.financial_reports(
        db, assembly=assembly, month=month, year=year,
        start_date=start_date, end_date=end_date,
    )
    return {"success": True, **result}
