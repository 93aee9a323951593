# app/admin/service.py
from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import Assembly
from app.reports import service as reports_service
from app.reports.constants import SERVICE_TYPES, SUNDAY_OFFERING_FIELDS, wire
from app.schemas import AssemblyIn
from app.utils.common import (
    MONTH_NAMES,
    month_key,
    month_sort_key,
    now_wat,
    parse_iso_date,
    percent_change,
    round_half_up,
    safe_div,
    to_number,
)

log = logging.getLogger(__name__)


def _headcount(rec: Dict[str, Any]) -> float:
    """attendance + SBS + visitors for one serialized Sunday row."""
    return float(rec.get("attendance") or 0) + float(rec.get("sbsAttendance") or 0) + float(rec.get("visitors") or 0)

# ──────────────────────────────────────────────────────────────────────────────
# Dashboard
# ──────────────────────────────────────────────────────────────────────────────

def dashboard(db: Session, *, assembly: Optional[str] = None, month: Optional[str] = None,
              year: Optional[str] = None) -> Dict[str, Any]:
    reports = reports_service.reports_for_period(db, "sunday", assembly=assembly, month=month, year=year)

    breakdown: Dict[str, Dict[str, float]] = {}
    trends: Dict[str, float] = defaultdict(float)
    active_members = 0.0
    income = 0.0
    for r in reports:
        row = breakdown.setdefault(r["assembly"], {"income": 0.0, "records": 0, "attendance": 0.0})
        for rec in r["records"]:
            heads = _headcount(rec)
            total = float(rec.get("total") or 0)
            active_members += heads
            income += total
            row["income"] += total
            row["records"] += 1
            row["attendance"] += heads
            trends[r["month"]] += total

    recent = [
        {
            "id": i,
            "user": r["submittedBy"] or "Unknown User",
            "action": "submitted Sunday service report for",
            "target": r["assembly"],
            "time": r["createdAt"],
            "avatar": (r["submittedBy"] or "U")[:1].upper(),
        }
        for i, r in enumerate(reports[:5])
    ]

    return {
        "totalAssemblies": len({r["assembly"] for r in reports}),
        "activeMembers": active_members,
        "monthlyIncome": income,
        "reportsGenerated": len(reports),
        "recentActivities": recent,
        "assemblyBreakdown": [{"assembly": name, **data} for name, data in breakdown.items()],
        "monthlyTrends": [
            {"month": m, "income": trends[m]} for m in sorted(trends, key=month_sort_key)
        ],
        "totalRecords": sum(len(r["records"]) for r in reports),
    }

# ──────────────────────────────────────────────────────────────────────────────
# Assemblies
# ──────────────────────────────────────────────────────────────────────────────

def list_assemblies(db: Session, *, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Registered assemblies plus any assembly that has filed a Sunday report.
    Registered details win; report activity fills in the rest.
    """
    registered = {a.name: a for a in db.query(Assembly).all()}
    reports = reports_service.reports_for_period(db, "sunday")
    by_name: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for r in reports:
        by_name[r["assembly"]].append(r)

    out: List[Dict[str, Any]] = []
    for name in sorted(set(registered) | set(by_name)):
        reg = registered.get(name)
        reps = by_name.get(name, [])  # newest first
        rows = [rec for r in reps for rec in r["records"]]
        attendance = sum(_headcount(rec) for rec in rows)

        pastor = (reg.pastor if reg else None) or (reps[0]["submittedBy"] if reps else None) or "Unknown Pastor"
        if reg and reg.members:
            members = reg.members
        else:
            members = round_half_up(attendance / max(len(reps), 1))

        established = reg.established if reg and reg.established else (reps[-1]["createdAt"] if reps else None)

        out.append({
            "name": name,
            "pastor": pastor,
            "members": members,
            "totalIncome": sum(float(rec.get("total") or 0) for rec in rows),
            "reportsCount": len(reps),
            "totalRecords": len(rows),
            "lastReport": reps[0]["createdAt"] if reps else None,
            "status": reg.status if reg else "active",
            "location": (reg.location if reg else None) or f"{name} Assembly",
            "established": established,
        })

    if status:
        out = [a for a in out if a["status"] == status]
    return out


def save_assembly(db: Session, payload: AssemblyIn) -> Dict[str, Any]:
    asm = db.query(Assembly).filter_by(name=payload.name).first()
    created = asm is None
    if asm is None:
        asm = Assembly(name=payload.name)
        db.add(asm)
    asm.pastor = payload.pastor
    asm.location = payload.location
    asm.members = payload.members
    asm.status = payload.status
    est = parse_iso_date(payload.established)
    asm.established = datetime(est.year, est.month, est.day) if est else None
    db.commit()
    db.refresh(asm)
    log.info("[admin] %s assembly %s", "registered" if created else "updated", asm.name)
    return {
        "success": True,
        "created": created,
        "data": {
            "id": asm.id,
            "name": asm.name,
            "pastor": asm.pastor,
            "location": asm.location,
            "members": asm.members,
            "status": asm.status,
            "established": asm.established,
        },
    }

# ──────────────────────────────────────────────────────────────────────────────
# Detailed reports
# ──────────────────────────────────────────────────────────────────────────────

def summarize_reports(reports: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals over every filtered report, regardless of the page shown."""
    by_type = {st: [r for r in reports if r.get("serviceType", "sunday") == st] for st in SERVICE_TYPES}
    income = {st: sum(reports_service.report_total(r) for r in reps) for st, reps in by_type.items()}
    attendance = {st: sum(reports_service.report_attendance(r) for r in reps) for st, reps in by_type.items()}
    sunday_tithes = sum(
        to_number(rec.get("tithes")) for r in by_type["sunday"] for rec in reports_service.rows_of(r)
    )
    return {
        "totalReports": len(reports),
        "totalRecords": sum(len(reports_service.rows_of(r)) for r in reports),
        "totalAssemblies": len({r.get("assembly") for r in reports}),
        "sundayReports": len(by_type["sunday"]),
        "midweekReports": len(by_type["midweek"]),
        "specialReports": len(by_type["special"]),
        "sundayIncome": income["sunday"],
        "midweekIncome": income["midweek"],
        "specialIncome": income["special"],
        "sundayAttendance": attendance["sunday"],
        "midweekAttendance": attendance["midweek"],
        "specialAttendance": attendance["special"],
        "totalIncome": sum(income.values()),
        "sundayTithes": sunday_tithes,
        "totalAttendance": sum(attendance.values()),
    }


def detailed_reports(db: Session, *, assembly: Optional[str] = None, month: Optional[str] = None,
                     year: Optional[str] = None, service_type: str = "all",
                     page: int = 1, limit: int = 50) -> Dict[str, Any]:
    reports = reports_service.reports_for_period(db, service_type, assembly=assembly, month=month, year=year)
    total = len(reports)
    start = (page - 1) * limit
    return {
        "reports": reports[start:start + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
        "summary": summarize_reports(reports),
    }

# ──────────────────────────────────────────────────────────────────────────────
# Assembly details
# ──────────────────────────────────────────────────────────────────────────────

def assembly_details(db: Session, assembly: str) -> Dict[str, Any]:
    """Lifetime Sunday totals for one assembly with a month-by-month breakdown."""
    reports = reports_service.reports_for_period(db, "sunday", assembly=assembly)
    if not reports:
        raise HTTPException(status_code=404, detail="No data found for this assembly")

    monthly: Dict[str, Dict[str, float]] = {}
    for r in reports:
        row = monthly.setdefault(r["month"], {"income": 0.0, "attendance": 0.0, "records": 0})
        for rec in r["records"]:
            row["income"] += float(rec.get("total") or 0)
            row["attendance"] += _headcount(rec)
            row["records"] += 1

    return {
        "assembly": assembly,
        "income": sum(m["income"] for m in monthly.values()),
        "attendance": sum(m["attendance"] for m in monthly.values()),
        "records": sum(m["records"] for m in monthly.values()),
        "monthlyData": [{"month": m, **monthly[m]} for m in sorted(monthly, key=month_sort_key)],
        "recentReports": [
            {
                "month": r["month"],
                "submittedBy": r["submittedBy"],
                "createdAt": r["createdAt"],
                "totalRecords": len(r["records"]),
            }
            for r in reports[:5]
        ],
    }

# ──────────────────────────────────────────────────────────────────────────────
# Financial reports
# ──────────────────────────────────────────────────────────────────────────────

WEEK_LABELS = ("Week 1", "Week 2", "Week 3", "Week 4", "Week 5")
OFFERING_KEYS = tuple(wire(f) for f in SUNDAY_OFFERING_FIELDS)


def _parse_bound(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    parsed = parse_iso_date(raw)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Invalid date range")
    return parsed


def _in_range(created: Optional[datetime], start: Optional[date], end: Optional[date]) -> bool:
    if start is None and end is None:
        return True
    if created is None:
        return False
    day = created.date()
    return (start is None or day >= start) and (end is None or day <= end)


def _money(rows: List[Dict[str, Any]]) -> Dict[str, float]:
    return {
        "income": sum(float(rec.get("total") or 0) for rec in rows),
        "tithe": sum(float(rec.get("tithes") or 0) for rec in rows),
        "offering": sum(float(rec.get("offerings") or 0) for rec in rows),
        "attendance": sum(_headcount(rec) for rec in rows),
    }


def _growth(trends: List[Dict[str, Any]], key: str) -> float:
    """Change between the last two months in range; 0 with fewer than two."""
    if len(trends) < 2:
        return 0.0
    return round_half_up(percent_change(trends[-2][key], trends[-1][key]), 1)


def financial_reports(db: Session, *, assembly: Optional[str] = None, month: Optional[str] = None,
                      year: Optional[str] = None, start_date: Optional[str] = None,
                      end_date: Optional[str] = None) -> Dict[str, Any]:
    """
    Sunday-report finances for the admin finance page. The createdAt range is
    inclusive on both ends and each bound is optional.
    """
    start, end = _parse_bound(start_date), _parse_bound(end_date)
    reports = [
        r for r in reports_service.reports_for_period(db, "sunday", assembly=assembly, month=month, year=year)
        if _in_range(r["createdAt"], start, end)
    ]
    rows = [rec for r in reports for rec in r["records"]]
    log.info("[admin] financial reports: %s reports, %s rows", len(reports), len(rows))

    weekly: Dict[str, float] = defaultdict(float)
    for rec in rows:
        weekly[rec.get("week") or "Week 1"] += float(rec.get("tithes") or 0)
    total_tithe = sum(weekly.values())

    offerings = {k: sum(float(rec.get(k) or 0) for rec in rows) for k in OFFERING_KEYS}

    attendance = sum(float(rec.get("attendance") or 0) for rec in rows)
    sbs = sum(float(rec.get("sbsAttendance") or 0) for rec in rows)
    visitors = sum(float(rec.get("visitors") or 0) for rec in rows)
    headcount = attendance + sbs + visitors

    by_month: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    by_assembly: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for r in reports:
        by_month[r["month"]].extend(r["records"])
        by_assembly[r["assembly"]].extend(r["records"])
    trends = [{"month": m, **_money(by_month[m])} for m in sorted(by_month, key=month_sort_key)]

    performance = []
    for name, recs in by_assembly.items():
        money = _money(recs)
        performance.append({
            "assembly": name,
            **money,
            "records": len(recs),
            "efficiency": safe_div(money["income"], money["attendance"]),
        })
    performance.sort(key=lambda a: a["income"], reverse=True)

    total_income = sum(float(rec.get("total") or 0) for rec in rows)
    summary = {
        "totalIncome": total_income,
        "totalTithe": total_tithe,
        "totalOffering": offerings["offerings"],
        "totalAttendance": attendance,
        "totalSBSAttendance": sbs,
        "totalVisitors": visitors,
        "incomeGrowth": _growth(trends, "income"),
        "attendanceGrowth": _growth(trends, "attendance"),
        "averagePerAssembly": round_half_up(safe_div(total_income, len(performance))),
        "topPerformingAssembly": performance[0]["assembly"] if performance else "N/A",
    }

    return {
        "data": {
            "titheSummary": {
                **{f"week{i}": weekly.get(label, 0.0) for i, label in enumerate(WEEK_LABELS, start=1)},
                "totalTithe": total_tithe,
                "weeklyAverage": safe_div(total_tithe, len(rows)),
            },
            "offeringSummary": {**offerings, "totalOffering": sum(offerings.values())},
            "sundayServiceSummary": {
                "attendance": attendance,
                "sbsAttendance": sbs,
                "visitors": visitors,
                "totalAttendance": headcount,
                "attendanceRate": round_half_up(safe_div(attendance, headcount) * 100),
            },
            "monthlyTrends": trends,
            "assemblyPerformance": performance,
            "rawData": reports,
        },
        "summary": summary,
        "perAssembly": _assembly_status(db, reports),
    }


def _assembly_status(db: Session, reports: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Every registered or reporting assembly: 'completed' when it has filed the
    current month, 'partial' when it has filed other months, else 'pending'.
    """
    now = now_wat()
    current = month_key(MONTH_NAMES[now.month - 1], now.year)
    by_name: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for r in reports:
        by_name[r["assembly"]].append(r)
    names = {a for (a,) in db.query(Assembly.name)} | set(by_name)

    out: Dict[str, Dict[str, Any]] = {}
    for name in sorted(names):
        reps = by_name.get(name, [])
        if any(r["month"] == current for r in reps):
            status = "completed"
        elif reps:
            status = "partial"
        else:
            status = "pending"
        money = _money([rec for r in reps for rec in r["records"]])
        out[name] = {
            "hasData": bool(reps),
            "lastUpdate": max((r["createdAt"] for r in reps), default=None),
            "status": status,
            "summary": {
                "totalIncome": money["income"],
                "totalTithe": money["tithe"],
                "totalOffering": money["offering"],
                "totalAttendance": money["attendance"],
            },
        }
    return out
