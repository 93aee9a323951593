# app/tithes/routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import TitheDeleteIn, TitheSheetIn, TitherRegistrationIn
from . import service

router = APIRouter(prefix="/api/tithes", tags=["Tithes"])
admin_router = APIRouter(prefix="/api/admin/tithes", tags=["Admin"])


@router.post("", response_model=dict)
def api_save_tithes(payload: TitheSheetIn, db: Session = Depends(get_db)):
    return service.save_sheet(db, payload)


@router.get("", response_model=dict)
def api_list_tithes(
    assembly: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    sheets = service.list_sheets(db, assembly=assembly, month=month, sheet_id=id)
    return {"success": True, "data": [service.serialize_sheet(s) for s in sheets]}


@admin_router.get("/summary", response_model=dict)
def api_tithe_summary(
    year: Optional[str] = Query(None),
    assembly: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": service.summary_stats(db, year=year, assembly=assembly)}


@admin_router.get("/members", response_model=dict)
def api_tithe_members(
    assembly: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Registered tithers of an assembly with their matched payment history."""
    if not assembly or not assembly.strip():
        raise HTTPException(status_code=400, detail="Assembly parameter is required")
    data = service.member_details(db, assembly=assembly.strip(), name=name, month=month)
    return {"success": True, "data": data}


@admin_router.post("/members", response_model=dict)
def api_register_tithers(payload: TitherRegistrationIn, db: Session = Depends(get_db)):
    return service.register_tithers(db, payload)


@admin_router.get("", response_model=dict)
def api_admin_list_tithes(
    assembly: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    data = service.admin_list_sheets(db, assembly=assembly, month=month, year=year, page=page, limit=limit)
    return {"success": True, "data": data}


@admin_router.delete("", response_model=dict)
def api_delete_tithes(payload: Optional[TitheDeleteIn] = None, db: Session = Depends(get_db)):
    return service.delete_sheet(db, payload.id if payload else None)
