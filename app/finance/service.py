# app/finance/service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session, selectinload

from app.models import FinancialLine, FinancialRecord, TitheRecord
from app.reports import service as reports_service
from app.reports.constants import MIDWEEK_DAYS, SUNDAY_NUMERIC_FIELDS, wire
from app.reports.dao import apply_period_filter
from app.schemas import FinancialLineIn, FinancialRecordIn
from app.utils.common import month_sort_key, now_wat, to_number

log = logging.getLogger(__name__)

WEEKS = ("week1", "week2", "week3", "week4", "week5")

# ──────────────────────────────────────────────────────────────────────────────
# Income / expense ledger
# ──────────────────────────────────────────────────────────────────────────────

def _is_blank_line(raw: Dict[str, Any]) -> bool:
    return not (
        raw.get("description") or raw.get("category") or raw.get("type")
        or to_number(raw.get("amount")) > 0
    )


def serialize_ledger(rec: FinancialRecord) -> Dict[str, Any]:
    return {
        "id": rec.id,
        "assembly": rec.assembly,
        "submittedBy": rec.submitted_by,
        "month": rec.month,
        "records": [
            {
                "date": l.date,
                "description": l.description,
                "category": l.category,
                "type": l.type,
                "amount": l.amount,
                "paymentMethod": l.payment_method,
                "reference": l.reference,
            }
            for l in rec.records
        ],
        "totals": {"income": rec.total_income, "expense": rec.total_expense, "net": rec.net},
        "createdAt": rec.created_at,
        "updatedAt": rec.updated_at,
    }


def save_ledger(db: Session, payload: FinancialRecordIn) -> Dict[str, Any]:
    raw_lines = [r for r in payload.records if isinstance(r, dict) and not _is_blank_line(r)]
    if not raw_lines:
        raise HTTPException(status_code=400, detail="No valid records to save")
    try:
        lines = [FinancialLineIn.model_validate(r) for r in raw_lines]
    except ValidationError as e:
        log.warning("[finance] rejected ledger for %s %s: %s", payload.assembly, payload.month, e)
        raise HTTPException(status_code=400, detail="Invalid request")

    income = sum(l.amount for l in lines if l.type == "income")
    expense = sum(l.amount for l in lines if l.type == "expense")

    rec = db.query(FinancialRecord).filter_by(assembly=payload.assembly, month=payload.month).first()
    if rec is None:
        rec = FinancialRecord(assembly=payload.assembly, month=payload.month, submitted_by=payload.submitted_by)
        db.add(rec)
    rec.submitted_by = payload.submitted_by
    rec.updated_at = datetime.utcnow()
    rec.total_income, rec.total_expense, rec.net = income, expense, income - expense
    rec.records = [
        FinancialLine(
            position=i,
            date=l.date,
            description=l.description,
            category=l.category,
            type=l.type,
            amount=l.amount,
            payment_method=l.payment_method,
            reference=l.reference,
        )
        for i, l in enumerate(lines)
    ]
    db.commit()
    db.refresh(rec)
    log.info("[finance] saved ledger %s %s (lines=%s net=%.2f)", rec.assembly, rec.month, len(lines), rec.net)

    return {
        "success": True,
        "message": f"{len(lines)} financial record(s) saved",
        "data": serialize_ledger(rec),
    }


def get_ledger(db: Session, *, assembly: str, month: str) -> Dict[str, Any]:
    rec = (
        db.query(FinancialRecord)
        .options(selectinload(FinancialRecord.records))
        .filter_by(assembly=assembly, month=month)
        .first()
    )
    if rec is None:
        return {
            "id": None,
            "assembly": assembly,
            "submittedBy": "",
            "month": month,
            "records": [],
            "totals": {"income": 0, "expense": 0, "net": 0},
            "createdAt": None,
            "updatedAt": None,
        }
    return serialize_ledger(rec)

# ──────────────────────────────────────────────────────────────────────────────
# Collections summary (tithe + midweek + special + sunday)
# ──────────────────────────────────────────────────────────────────────────────

def _sum(rows: List[Dict[str, Any]], key: str) -> float:
    return float(sum(float(r.get(key) or 0) for r in rows))


def _assembly_summary(name: str, tithes: List[TitheRecord], by_type: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
    tithe_rows = [e for s in tithes for e in s.records]
    midweek_rows = [r for rep in by_type["midweek"] for r in rep["records"]]
    special_rows = [r for rep in by_type["special"] for r in rep["records"]]
    sunday_rows = [r for rep in by_type["sunday"] for r in rep["records"]]

    tithe_total = float(sum(e.total for e in tithe_rows))
    midweek_total = _sum(midweek_rows, "total")
    special_total = _sum(special_rows, "offering")
    sunday_total = _sum(sunday_rows, "total")

    months = {s.month for s in tithes}
    for reps in by_type.values():
        months.update(rep["month"] for rep in reps)

    return {
        "assembly": name,
        "totals": {
            "titheTotal": tithe_total,
            "midweekTotal": midweek_total,
            "specialTotal": special_total,
            "sundayTotal": sunday_total,
            "grandTotal": tithe_total + midweek_total + special_total + sunday_total,
        },
        "breakdown": {
            "titheByWeek": {w: float(sum(getattr(e, w) for e in tithe_rows)) for w in WEEKS},
            "midweekByDay": {
                day: _sum([r for r in midweek_rows if (r.get("day") or "").lower() == day], "total")
                for day in MIDWEEK_DAYS
            },
            "sundayBreakdown": {
                wire(f): _sum(sunday_rows, wire(f))
                for f in SUNDAY_NUMERIC_FIELDS if f not in ("attendance", "sbs_attendance", "visitors")
            },
        },
        "attendance": {
            "sunday": _sum(sunday_rows, "attendance"),
            "sundaySbs": _sum(sunday_rows, "sbsAttendance"),
            "sundayVisitors": _sum(sunday_rows, "visitors"),
            "midweek": _sum(midweek_rows, "attendance"),
            "special": _sum(special_rows, "attendance"),
        },
        "records": {
            "titheRecords": len(tithes),
            "midweekRecords": len(by_type["midweek"]),
            "specialRecords": len(by_type["special"]),
            "sundayRecords": len(by_type["sunday"]),
        },
        "specialServices": [
            {
                "serviceName": r.get("serviceName"),
                "date": r.get("date"),
                "attendance": r.get("attendance") or 0,
                "offering": r.get("offering") or 0,
            }
            for r in special_rows
        ],
        "monthsSubmitted": sorted(months, key=month_sort_key, reverse=True),
    }


def finance_summary(db: Session, *, assembly: Optional[str] = None, month: Optional[str] = None,
                    year: Optional[str] = None) -> Dict[str, Any]:
    tithe_q = db.query(TitheRecord).options(selectinload(TitheRecord.records))
    tithes = apply_period_filter(tithe_q, TitheRecord, assembly=assembly, month=month, year=year).all()
    reports = reports_service.reports_for_period(db, "all", assembly=assembly, month=month, year=year)

    names = sorted({s.assembly for s in tithes} | {r["assembly"] for r in reports})
    by_assembly = []
    for name in names:
        by_type = {
            st: [r for r in reports if r["serviceType"] == st and r["assembly"] == name]
            for st in ("sunday", "midweek", "special")
        }
        by_assembly.append(_assembly_summary(name, [s for s in tithes if s.assembly == name], by_type))

    def total(key: str) -> float:
        return sum(a["totals"][key] for a in by_assembly)

    def attendance(key: str) -> float:
        return sum(a["attendance"][key] for a in by_assembly)

    overall = {
        "titheTotal": total("titheTotal"),
        "midweekTotal": total("midweekTotal"),
        "specialTotal": total("specialTotal"),
        "sundayTotal": total("sundayTotal"),
        "grandTotal": total("grandTotal"),
        "totalAssemblies": len(by_assembly),
        "assembliesWithData": sum(1 for a in by_assembly if a["totals"]["grandTotal"] > 0),
        "totalAttendance": {
            k: attendance(k) for k in ("sunday", "sundaySbs", "sundayVisitors", "midweek", "special")
        },
    }

    # month -> running totals
    months: Dict[str, Dict[str, Any]] = {}

    def bucket(m: str) -> Dict[str, Any]:
        return months.setdefault(m, {
            "month": m,
            "assemblies": set(),
            "totals": {"tithe": 0.0, "midweek": 0.0, "special": 0.0, "sunday": 0.0, "grand": 0.0},
            "attendance": {"sunday": 0.0, "midweek": 0.0, "special": 0.0},
        })

    for s in tithes:
        b = bucket(s.month)
        b["assemblies"].add(s.assembly)
        t = float(sum(e.total for e in s.records))
        b["totals"]["tithe"] += t
        b["totals"]["grand"] += t
    for r in reports:
        b = bucket(r["month"])
        b["assemblies"].add(r["assembly"])
        st = r["serviceType"]
        t = reports_service.report_total(r)
        b["totals"][st] += t
        b["totals"]["grand"] += t
        b["attendance"][st] += _sum(r["records"], "attendance")

    by_month = []
    for m in sorted(months, key=month_sort_key, reverse=True):
        b = months[m]
        n = len(b["assemblies"])
        by_month.append({
            **b,
            "assemblies": sorted(b["assemblies"]),
            "averagePerAssembly": b["totals"]["grand"] / n if n else 0,
        })

    def people(a: Dict[str, Any]) -> float:
        return a["attendance"]["sunday"] + a["attendance"]["midweek"] + a["attendance"]["special"]

    all_months = sorted({b["month"] for b in by_month}, key=month_sort_key, reverse=True)
    n_reports = {st: sum(1 for r in reports if r["serviceType"] == st) for st in ("midweek", "special", "sunday")}

    if month and year:
        period = f"{month} {year}"
    elif year:
        period = str(year)
    else:
        period = "All Time"

    return {
        "overall": overall,
        "byAssembly": by_assembly,
        "byMonth": by_month,
        "summary": {
            "totalRecords": {
                "tithe": len(tithes),
                **n_reports,
                "total": len(tithes) + len(reports),
            },
            "averagePerAssembly": overall["grandTotal"] / len(by_assembly) if by_assembly else 0,
            "highestEarningAssembly": max(by_assembly, key=lambda a: a["totals"]["grandTotal"]) if by_assembly else None,
            "bestAttendanceAssembly": max(by_assembly, key=people) if by_assembly else None,
        },
        "filters": {
            "years": sorted({m.rsplit("-", 1)[-1] for m in all_months if "-" in m}, reverse=True),
            "months": all_months,
            "assemblies": names,
        },
        "generatedAt": now_wat().isoformat(),
        "period": period,
    }
