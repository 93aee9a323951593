# app/tithes/service.py
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models import TitheEntry, TitheRecord, Tither
from app.reports.dao import apply_period_filter, like_escape
from app.schemas import TitheSheetIn, TitherRegistrationIn
from app.utils.common import month_sort_key, now_wat

log = logging.getLogger(__name__)

WEEKS = ("week1", "week2", "week3", "week4", "week5")


def entry_total(row) -> float:
    return float(sum(getattr(row, w) for w in WEEKS))


def serialize_sheet(sheet: TitheRecord) -> Dict[str, Any]:
    return {
        "id": sheet.id,
        "assembly": sheet.assembly,
        "submittedBy": sheet.submitted_by,
        "month": sheet.month,
        "createdAt": sheet.created_at,
        "updatedAt": sheet.updated_at,
        "records": [
            {
                "name": e.name,
                "titheNumber": e.tithe_number,
                **{w: getattr(e, w) for w in WEEKS},
                "total": e.total,
            }
            for e in sheet.records
        ],
    }

# ──────────────────────────────────────────────────────────────────────────────
# Sheets
# ──────────────────────────────────────────────────────────────────────────────

def save_sheet(db: Session, payload: TitheSheetIn) -> Dict[str, Any]:
    """Create or replace the (assembly, month) tithe sheet."""
    entries = [
        TitheEntry(
            position=i,
            name=row.name.strip(),
            tithe_number=row.tithe_number.strip(),
            total=entry_total(row),
            **{w: getattr(row, w) for w in WEEKS},
        )
        for i, row in enumerate(payload.records)
    ]

    sheet = (
        db.query(TitheRecord)
        .filter_by(assembly=payload.assembly, month=payload.month)
        .first()
    )
    is_update = sheet is not None
    if sheet is None:
        sheet = TitheRecord(assembly=payload.assembly, month=payload.month,
                            submitted_by=payload.submitted_by)
        db.add(sheet)
    sheet.submitted_by = payload.submitted_by
    sheet.updated_at = datetime.utcnow()
    sheet.records = entries
    db.commit()
    db.refresh(sheet)
    log.info("[tithes] %s sheet %s %s (rows=%s)",
             "updated" if is_update else "created", sheet.assembly, sheet.month, len(entries))

    return {
        "success": True,
        "message": "Tithe records updated successfully" if is_update else "Tithe records saved successfully",
        "isUpdate": is_update,
        "data": {
            "id": sheet.id,
            "assembly": sheet.assembly,
            "month": sheet.month,
            "recordCount": len(sheet.records),
            "createdAt": sheet.created_at,
            "updatedAt": sheet.updated_at,
        },
    }


def list_sheets(db: Session, *, assembly: Optional[str] = None, month: Optional[str] = None,
                sheet_id: Optional[int] = None, limit: int = 50) -> List[TitheRecord]:
    q = db.query(TitheRecord).options(selectinload(TitheRecord.records))
    if assembly:
        q = q.filter(TitheRecord.assembly == assembly)
    if month:
        q = q.filter(TitheRecord.month == month)
    if sheet_id is not None:
        q = q.filter(TitheRecord.id == sheet_id)
    return q.order_by(TitheRecord.created_at.desc(), TitheRecord.id.desc()).limit(limit).all()


def admin_list_sheets(db: Session, *, assembly: Optional[str] = None, month: Optional[str] = None,
                      year: Optional[str] = None, page: int = 1, limit: int = 100) -> Dict[str, Any]:
    """
    Paged tithe sheets for the admin table. `assembly` is a case-insensitive
    substring; month/year follow the shared period filter. The summary covers
    every matching sheet, not just the page.
    """
    q = db.query(TitheRecord).options(selectinload(TitheRecord.records))
    if assembly and assembly != "all":
        q = q.filter(TitheRecord.assembly.ilike(f"%{like_escape(assembly)}%", escape="\\"))
    q = apply_period_filter(q, TitheRecord, month=month, year=year)
    sheets = q.order_by(TitheRecord.created_at.desc(), TitheRecord.id.desc()).all()

    total = len(sheets)
    start = (page - 1) * limit
    entries = [e for s in sheets for e in s.records]

    return {
        "records": [serialize_sheet(s) for s in sheets[start:start + limit]],
        "pagination": {
            "page": page,
            "limit": limit,
            "totalCount": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
            "hasNextPage": page * limit < total,
            "hasPrevPage": page > 1,
        },
        "summary": {
            "totalTitheAmount": sum(float(e.total or 0) for e in entries),
            "totalRecords": len(entries),
            "totalAssemblies": len({s.assembly for s in sheets}),
            "totalSubmitters": len({s.submitted_by for s in sheets}),
        },
        "filters": {
            "assemblies": sorted(a for (a,) in db.query(TitheRecord.assembly).distinct()),
            "months": sorted((m for (m,) in db.query(TitheRecord.month).distinct()), key=month_sort_key),
        },
    }


def delete_sheet(db: Session, sheet_id: Optional[int]) -> Dict[str, Any]:
    if sheet_id is None:
        raise HTTPException(status_code=400, detail="Record ID is required")
    sheet = db.get(TitheRecord, sheet_id)
    if sheet is None:
        raise HTTPException(status_code=404, detail="Record not found")
    log.info("[tithes] deleting sheet %s (%s %s)", sheet_id, sheet.assembly, sheet.month)
    db.delete(sheet)
    db.commit()
    return {"success": True, "message": "Record deleted successfully", "deletedId": sheet_id}

# ──────────────────────────────────────────────────────────────────────────────
# Summary statistics
# ──────────────────────────────────────────────────────────────────────────────

def _entries_frame(sheets: List[TitheRecord]) -> pd.DataFrame:
    rows = [
        {
            "sheet_id": s.id,
            "assembly": s.assembly,
            "month": s.month,
            "submitted_by": s.submitted_by,
            "created_at": s.created_at,
            "total": float(e.total or 0),
        }
        for s in sheets
        for e in s.records
    ]
    cols = ["sheet_id", "assembly", "month", "submitted_by", "created_at", "total"]
    df = pd.DataFrame(rows, columns=cols)
    df["paid"] = df["total"] > 0
    return df


def _group_stats(df: pd.DataFrame, key: str) -> pd.DataFrame:
    g = df.groupby(key)
    out = pd.DataFrame({
        "totalTithe": g["total"].sum(),
        "totalMembers": g.size(),
        "paidMembers": g["paid"].sum().astype(int),
    })
    out["unpaidMembers"] = out["totalMembers"] - out["paidMembers"]
    out["averageTithe"] = out["totalTithe"] / out["paidMembers"].clip(lower=1)
    return out


def summary_stats(db: Session, *, year: Optional[str] = None, assembly: Optional[str] = None) -> Dict[str, Any]:
    q = db.query(TitheRecord).options(selectinload(TitheRecord.records))
    if year:
        q = q.filter(TitheRecord.month.like(f"%-{like_escape(year)}", escape="\\"))
    if assembly:
        q = q.filter(TitheRecord.assembly == assembly)
    sheets = q.order_by(TitheRecord.created_at.desc(), TitheRecord.id.desc()).all()
    df = _entries_frame(sheets)

    monthly_stats: List[Dict[str, Any]] = []
    assembly_stats: List[Dict[str, Any]] = []
    overall = {
        "grandTotalTithe": 0.0,
        "totalRecordsCount": 0,
        "uniqueAssemblies": 0,
        "uniqueSubmitters": 0,
        "paidMembers": 0,
        "unpaidMembers": 0,
        "averageTithe": 0.0,
    }

    if not df.empty:
        monthly = _group_stats(df, "month")
        monthly["totalAssemblies"] = df.groupby("month")["assembly"].nunique()
        for month, row in sorted(monthly.iterrows(), key=lambda kv: month_sort_key(kv[0]), reverse=True):
            monthly_stats.append({"month": month, **_plain(row)})

        per_asm = _group_stats(df, "assembly")
        per_asm["totalMonths"] = df.groupby("assembly")["month"].nunique()
        per_asm["lastSubmission"] = df.groupby("assembly")["created_at"].max()
        per_asm["participationRate"] = per_asm["paidMembers"] / per_asm["totalMembers"].clip(lower=1) * 100
        per_asm = per_asm.sort_values("totalTithe", ascending=False)
        for name, row in per_asm.iterrows():
            assembly_stats.append({"assembly": name, **_plain(row)})

        paid = int(df["paid"].sum())
        grand = float(df["total"].sum())
        overall = {
            "grandTotalTithe": grand,
            "totalRecordsCount": int(len(df)),
            "uniqueAssemblies": int(df["assembly"].nunique()),
            "uniqueSubmitters": int(df["submitted_by"].nunique()),
            "paidMembers": paid,
            "unpaidMembers": int(len(df)) - paid,
            "averageTithe": grand / max(paid, 1),
        }

    recent = [
        {
            "id": s.id,
            "assembly": s.assembly,
            "month": s.month,
            "submittedBy": s.submitted_by,
            "recordCount": len(s.records),
            "createdAt": s.created_at,
        }
        for s in sheets[:10]
    ]

    all_months = [m for (m,) in db.query(TitheRecord.month).distinct()]
    years = sorted({m.rsplit("-", 1)[-1] for m in all_months if "-" in m}, reverse=True)
    assemblies = sorted(a for (a,) in db.query(TitheRecord.assembly).distinct())

    return {
        "monthlyStats": monthly_stats,
        "assemblyStats": assembly_stats,
        "overallStats": overall,
        "recentSubmissions": recent,
        "filters": {"years": years, "assemblies": assemblies},
        "generatedAt": now_wat().isoformat(),
    }


def _plain(row: pd.Series) -> Dict[str, Any]:
    """numpy scalars -> python scalars for JSON."""
    out: Dict[str, Any] = {}
    for k, v in row.items():
        if isinstance(v, pd.Timestamp):
            out[k] = v.to_pydatetime()
        elif hasattr(v, "item"):
            out[k] = v.item()
        else:
            out[k] = v
    return out

# ──────────────────────────────────────────────────────────────────────────────
# Member registry & payment history
# ──────────────────────────────────────────────────────────────────────────────

def _names_match(a: str, b: str) -> bool:
    a, b = (a or "").strip().lower(), (b or "").strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def register_tithers(db: Session, payload: TitherRegistrationIn) -> Dict[str, Any]:
    created = updated = 0
    for m in payload.members:
        t = db.query(Tither).filter_by(tithe_number=m.tithe_number).first()
        if t is None:
            db.add(Tither(assembly=payload.assembly, name=m.name, tithe_number=m.tithe_number))
            created += 1
        else:
            t.assembly, t.name = payload.assembly, m.name
            updated += 1
    db.commit()
    return {"success": True, "created": created, "updated": updated}


def member_details(db: Session, *, assembly: str, name: Optional[str] = None,
                   month: Optional[str] = None) -> Dict[str, Any]:
    members = (
        db.query(Tither)
        .filter(func.lower(Tither.assembly) == assembly.lower())
        .order_by(Tither.id)
        .all()
    )
    if not members:
        raise HTTPException(status_code=404, detail="Assembly not found in member list")

    q = (
        db.query(TitheRecord)
        .options(selectinload(TitheRecord.records))
        .filter(TitheRecord.assembly.ilike(f"%{like_escape(assembly)}%", escape="\\"))
    )
    if month:
        q = q.filter(TitheRecord.month == month)
    sheets = sorted(q.all(), key=lambda s: month_sort_key(s.month), reverse=True)

    details: List[Dict[str, Any]] = []
    for sn, member in enumerate(members, start=1):
        hits = [
            (s.month, e)
            for s in sheets
            for e in s.records
            if _names_match(e.name, member.name)
        ]
        months_paid: List[str] = []
        for m, _ in hits:
            if m not in months_paid:
                months_paid.append(m)
        details.append({
            "sn": sn,
            "name": member.name,
            "titheNumber": hits[0][1].tithe_number if hits and hits[0][1].tithe_number else member.tithe_number,
            "totalPaid": sum(e.total for _, e in hits),
            "monthsPaid": months_paid,
            "paymentCount": len(hits),
            "lastPayment": months_paid[0] if months_paid else "Never",
            "weeklyBreakdown": {w: sum(getattr(e, w) for _, e in hits) for w in WEEKS},
            "records": [
                {"month": m, "weeks": {w: getattr(e, w) for w in WEEKS}, "total": e.total}
                for m, e in hits
            ],
        })

    filtered = [d for d in details if _names_match(d["name"], name)] if name else details
    paying = [d for d in details if d["totalPaid"] > 0]
    total_tithe = sum(d["totalPaid"] for d in details)

    return {
        "assembly": members[0].assembly,
        "totals": {
            "totalMembers": len(members),
            "membersWithPayments": len(paying),
            "totalTithe": total_tithe,
            "averageTithe": total_tithe / len(paying) if paying else 0,
        },
        "members": filtered,
        "generatedAt": now_wat().isoformat(),
    }
