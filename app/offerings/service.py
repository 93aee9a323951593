# app/offerings/service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import OfferingRecord
from app.schemas import OfferingSheetIn
from app.utils.common import to_number

log = logging.getLogger(__name__)

WEEK_COLUMNS = [f"week{i}" for i in range(1, 6)]
TUESDAY_COLUMNS = [f"tuesdayWeek{i}" for i in range(1, 6)]
THURSDAY_COLUMNS = [f"thursdayWeek{i}" for i in range(1, 6)]
CELL_COLUMNS = WEEK_COLUMNS + TUESDAY_COLUMNS + THURSDAY_COLUMNS
OFFERING_COLUMNS = CELL_COLUMNS + ["amount", "total"]

BLANK_ROWS = 5


def blank_row() -> Dict[str, float]:
    return {c: 0 for c in OFFERING_COLUMNS}


def clean_row(raw: Dict[str, Any]) -> Dict[str, float]:
    """
    Coerce every grid cell. `amount` is the sum of the weekly cells when any
    of them is filled, otherwise the single amount typed in; `total` mirrors it.
    """
    row = {c: to_number(raw.get(c)) for c in CELL_COLUMNS}
    cells = sum(row.values())
    row["amount"] = cells if cells > 0 else to_number(raw.get("amount"))
    row["total"] = row["amount"]
    return row


def save_offerings(db: Session, payload: OfferingSheetIn) -> Dict[str, Any]:
    rows = [clean_row(r) for r in payload.records if isinstance(r, dict)]
    rows = [r for r in rows if r["amount"] > 0]
    if not rows:
        raise HTTPException(status_code=400, detail="No valid records to save")

    rec = OfferingRecord(
        assembly=payload.assembly,
        submitted_by=payload.submitted_by,
        month=payload.month,
        type=payload.type,
        records=rows,
    )
    db.add(rec)
    db.commit()
    log.info("[offerings] saved %s %s %s (rows=%s)", payload.assembly, payload.type, payload.month, len(rows))
    return {"success": True, "message": f"{len(rows)} record(s) saved successfully"}


def latest_offerings(db: Session, *, assembly: str, type: str, month: str) -> List[Dict[str, Any]]:
    rec = (
        db.query(OfferingRecord)
        .filter_by(assembly=assembly, type=type, month=month)
        .order_by(OfferingRecord.created_at.desc(), OfferingRecord.id.desc())
        .first()
    )
    if rec is None:
        return [blank_row() for _ in range(BLANK_ROWS)]
    return list(rec.records)
