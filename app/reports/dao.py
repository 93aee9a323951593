# app/reports/dao.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Query, Session, selectinload

from app.models import (
    MidweekServiceRecord,
    MidweekServiceReport,
    SpecialServiceRecord,
    SpecialServiceReport,
    SundayServiceRecord,
    SundayServiceReport,
)
from app.utils.common import month_key, normalize_month_name

REPORT_MODELS = {
    "sunday":  (SundayServiceReport,  SundayServiceRecord),
    "midweek": (MidweekServiceReport, MidweekServiceRecord),
    "special": (SpecialServiceReport, SpecialServiceRecord),
}


def like_escape(value: str) -> str:
    """User input for LIKE patterns: wildcards match literally under escape="\\"."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_period_filter(q: Query, model, *, assembly: Optional[str] = None,
                        month: Optional[str] = None, year: Optional[str] = None) -> Query:
    """
    Shared admin filter: 'all' or empty means no constraint.
      month + year -> exact "Month-Year"
      month only   -> that month of any year
      year only    -> any month of that year
    """
    has_month = bool(month) and month != "all"
    has_year = bool(year) and year != "all"
    if assembly and assembly != "all":
        q = q.filter(model.assembly == assembly)
    if has_month and has_year:
        q = q.filter(model.month == month_key(month, year))
    elif has_month:
        q = q.filter(model.month.like(f"{like_escape(normalize_month_name(month))}-%", escape="\\"))
    elif has_year:
        q = q.filter(model.month.like(f"%-{like_escape(year)}", escape="\\"))
    return q


def find_report(db: Session, service_type: str, assembly: str, month: str):
    model, _ = REPORT_MODELS[service_type]
    return (
        db.query(model)
        .options(selectinload(model.records))
        .filter(model.assembly == assembly, model.month == month)
        .order_by(model.created_at.desc())
        .first()
    )


def upsert_report(db: Session, service_type: str, *, assembly: str, submitted_by: str,
                  month: str, rows: Iterable[dict]):
    """
    One report per (assembly, month): replace the rows of an existing one,
    or create it.
    """
    model, record_model = REPORT_MODELS[service_type]
    report = db.query(model).filter_by(assembly=assembly, month=month).first()
    if report is None:
        report = model(assembly=assembly, month=month, submitted_by=submitted_by)
        db.add(report)
    report.submitted_by = submitted_by
    report.updated_at = datetime.utcnow()
    report.records = [record_model(position=i, **row) for i, row in enumerate(rows)]
    db.commit()
    db.refresh(report)
    return report


def list_reports(db: Session, service_type: str, *, assembly: Optional[str] = None,
                 month: Optional[str] = None, year: Optional[str] = None) -> List:
    model, _ = REPORT_MODELS[service_type]
    q = db.query(model).options(selectinload(model.records))
    q = apply_period_filter(q, model, assembly=assembly, month=month, year=year)
    return q.order_by(model.created_at.desc(), model.id.desc()).all()
