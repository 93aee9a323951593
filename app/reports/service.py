# app/reports/service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.schemas import MidweekRow, ServiceReportIn, SpecialRow, SundayRow
from app.utils.common import generate_date_for_week, to_number
from .constants import (
    SUNDAY_NUMERIC_FIELDS,
    SUNDAY_OFFERING_FIELDS,
    wire,
)
from . import dao

log = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Pure helpers
# ──────────────────────────────────────────────────────────────────────────────

def calc_sunday_totals(row: Any) -> Tuple[float, float]:
    """
    (total_attendance, total_offerings) for a Sunday row (model, schema or dict).
    Attendance is the main-service figure only; offerings exclude tithes.
    """
    get = row.get if isinstance(row, dict) else (lambda k, d=0: getattr(row, k, d))
    total_attendance = float(get("attendance", 0) or 0)
    total_offerings = sum(float(get(f, 0) or 0) for f in SUNDAY_OFFERING_FIELDS)
    return total_attendance, total_offerings


def _clean_sunday(raw_rows: List[dict], month: str) -> List[dict]:
    rows: List[dict] = []
    for raw in raw_rows:
        r = SundayRow.model_validate(raw)
        if not any(getattr(r, f) > 0 for f in SUNDAY_NUMERIC_FIELDS):
            continue
        total_attendance, total = calc_sunday_totals(r)
        record_date = r.date
        if not record_date and r.week and month:
            record_date = generate_date_for_week(r.week, month)
            log.debug("[reports] generated date %s for %s %s", record_date, r.week, month)
        row = {f: getattr(r, f) for f in SUNDAY_NUMERIC_FIELDS}
        row.update(week=r.week, date=record_date, total=total, total_attendance=total_attendance)
        rows.append(row)
    return rows


def _clean_midweek(raw_rows: List[dict]) -> List[dict]:
    rows: List[dict] = []
    for raw in raw_rows:
        r = MidweekRow.model_validate(raw)
        if r.attendance <= 0 and r.offering <= 0:
            continue
        rows.append({
            "date": r.date,
            "day": r.day.strip().lower(),
            "attendance": r.attendance,
            "offering": r.offering,
            "total": r.offering,
        })
    return rows


def _clean_special(raw_rows: List[dict]) -> List[dict]:
    rows: List[dict] = []
    for raw in raw_rows:
        r = SpecialRow.model_validate(raw)
        name = r.service_name.strip()
        if r.attendance <= 0 and r.offering <= 0 and not name:
            continue
        rows.append({
            "service_name": name or "Unnamed Service",
            "date": r.date,
            "attendance": r.attendance,
            "offering": r.offering,
        })
    return rows


def clean_rows(service_type: str, raw_rows: List[dict], month: str) -> List[dict]:
    """Drop completely empty spreadsheet rows and derive totals."""
    if service_type == "midweek":
        return _clean_midweek(raw_rows)
    if service_type == "special":
        return _clean_special(raw_rows)
    return _clean_sunday(raw_rows, month)

# ──────────────────────────────────────────────────────────────────────────────
# Serialization
# ──────────────────────────────────────────────────────────────────────────────

def serialize_record(service_type: str, rec) -> Dict[str, Any]:
    if service_type == "sunday":
        total_attendance, total = calc_sunday_totals(rec)
        out = {"id": rec.id, "week": rec.week, "date": rec.date}
        out.update({wire(f): getattr(rec, f) for f in SUNDAY_NUMERIC_FIELDS})
        out.update(total=total, totalAttendance=total_attendance)
        return out
    if service_type == "midweek":
        return {
            "id": rec.id, "date": rec.date, "day": rec.day,
            "attendance": rec.attendance, "offering": rec.offering, "total": rec.total,
        }
    return {
        "id": rec.id, "serviceName": rec.service_name, "date": rec.date,
        "attendance": rec.attendance, "offering": rec.offering, "total": rec.offering,
    }


def serialize_report(service_type: str, report) -> Dict[str, Any]:
    return {
        "id": report.id,
        "assembly": report.assembly,
        "submittedBy": report.submitted_by,
        "month": report.month,
        "serviceType": service_type,
        "createdAt": report.created_at,
        "updatedAt": report.updated_at,
        "records": [serialize_record(service_type, r) for r in report.records],
    }


def empty_report(assembly: str, month: str, service_type: str) -> Dict[str, Any]:
    return {
        "id": None,
        "assembly": assembly,
        "submittedBy": "",
        "month": month,
        "serviceType": service_type,
        "records": [],
        "createdAt": None,
        "updatedAt": None,
    }

# ──────────────────────────────────────────────────────────────────────────────
# Public service methods used by routes
# ──────────────────────────────────────────────────────────────────────────────

def save_report(db: Session, payload: ServiceReportIn) -> Dict[str, Any]:
    rows = clean_rows(payload.service_type, payload.records, payload.month)
    if not rows:
        raise HTTPException(status_code=400, detail="No valid records to save")

    report = dao.upsert_report(
        db, payload.service_type,
        assembly=payload.assembly,
        submitted_by=payload.submitted_by,
        month=payload.month,
        rows=rows,
    )
    log.info("[reports] saved %s report for %s %s (records=%s)",
             payload.service_type, payload.assembly, payload.month, len(rows))

    label = "special service record(s)" if payload.service_type == "special" else "record(s)"
    result = {"success": True, "message": f"{len(rows)} {label} saved"}
    if payload.service_type == "special":
        result["data"] = serialize_report("special", report)
    return result


def get_report(db: Session, *, assembly: str, month: str, service_type: str) -> Dict[str, Any]:
    report = dao.find_report(db, service_type, assembly, month)
    if report is None:
        return empty_report(assembly, month, service_type)
    return serialize_report(service_type, report)


def reports_for_period(db: Session, service_type: str = "all", *, assembly: Optional[str] = None,
                       month: Optional[str] = None, year: Optional[str] = None) -> List[Dict[str, Any]]:
    """Serialized reports of one service type, or of all three, newest first."""
    types = dao.REPORT_MODELS.keys() if service_type == "all" else (service_type,)
    out: List[Dict[str, Any]] = []
    for st in types:
        out.extend(
            serialize_report(st, r)
            for r in dao.list_reports(db, st, assembly=assembly, month=month, year=year)
        )
    out.sort(key=lambda r: r["createdAt"], reverse=True)
    return out


def rows_of(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [r for r in report.get("records") or [] if isinstance(r, dict)]


def report_total(report: Dict[str, Any]) -> float:
    return sum(to_number(r.get("total")) for r in rows_of(report))


def report_attendance(report: Dict[str, Any]) -> float:
    return sum(to_number(r.get("totalAttendance") or r.get("attendance")) for r in rows_of(report))
