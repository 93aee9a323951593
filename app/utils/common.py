from __future__ import annotations
from datetime import datetime, date, timedelta
from typing import Any, List, Optional, Tuple
from zoneinfo import ZoneInfo
import math

from dateutil.relativedelta import relativedelta

# ─────────────────────────────
# Time & Date helpers
# ─────────────────────────────
LAGOS_TZ = ZoneInfo("Africa/Lagos")

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def now_wat() -> datetime:
    return datetime.now(tz=LAGOS_TZ)


def normalize_month_name(name: str) -> str:
    """'december' / 'DECEMBER' -> 'December'. Does not validate."""
    name = (name or "").strip()
    return name[:1].upper() + name[1:].lower()


def month_key(month_name: str, year: int | str) -> str:
    return f"{normalize_month_name(month_name)}-{year}"


def parse_month_key(month: str) -> Optional[Tuple[int, int]]:
    """
    "November-2025" -> (11, 2025). Returns None when the key is malformed.
    """
    try:
        name, year = (month or "").rsplit("-", 1)
        return MONTH_NAMES.index(normalize_month_name(name)) + 1, int(year)
    except ValueError:
        return None


def month_sort_key(month: str) -> Tuple[int, int]:
    """Chronological sort key; malformed keys sort first."""
    parsed = parse_month_key(month)
    if parsed is None:
        return (0, 0)
    m, y = parsed
    return (y, m)


def previous_months(month_name: str, year: int | str, n: int = 2) -> List[Tuple[str, int]]:
    """
    The n months before (month_name, year), most recent first.
    Raises ValueError on an unknown month name.
    """
    name = normalize_month_name(month_name)
    if name not in MONTH_NAMES:
        raise ValueError("Invalid month")
    anchor = date(int(year), MONTH_NAMES.index(name) + 1, 1)
    out: List[Tuple[str, int]] = []
    for i in range(1, n + 1):
        d = anchor - relativedelta(months=i)
        out.append((MONTH_NAMES[d.month - 1], d.year))
    return out


def generate_date_for_week(week: str, month: str) -> str:
    """
    "Week 2" + "November-2025" -> ISO date of the second Sunday of the month.
    Unknown week labels count as week 1; a malformed month gives "".
    """
    parsed = parse_month_key(month)
    if parsed is None:
        return ""
    m, y = parsed
    try:
        week_no = int(str(week).replace("Week", "").strip())
    except ValueError:
        week_no = 1
    week_no = max(week_no, 1)

    first = date(y, m, 1)
    first_sunday = first + timedelta(days=(6 - first.weekday()) % 7)
    return (first_sunday + timedelta(weeks=week_no - 1)).isoformat()


def parse_iso_date(raw: Any) -> Optional[date]:
    """Accepts date / ISO string; returns date or None."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00")).date()
    except ValueError:
        return None

# ─────────────────────────────
# Math / display helpers
# ─────────────────────────────
def to_number(value: Any) -> float:
    """Lenient numeric coercion for spreadsheet cells: junk, NaN and negatives become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        n = float(str(value).replace(",", "").strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(n) or math.isinf(n) or n < 0:
        return 0.0
    return n


def round_half_up(x: float, precision: int = 0):
    """Halves round upward (2.5 -> 3, 0.5 -> 1); the builtin round() sends them to even."""
    if precision == 0:
        return int(math.floor(x + 0.5))
    scale = 10 ** precision
    return math.floor(x * scale + 0.5) / scale


def safe_div(numer: float, denom: float) -> float:
    if not denom:
        return 0.0
    return numer / denom


def safe_percent(numer: float, denom: float, precision: int = 1) -> float:
    if not denom:
        return 0.0
    return round_half_up((numer / denom) * 100.0, precision)


def clamp_percent(p: float) -> float:
    return min(100.0, max(0.0, p))


def share_percent(part: float, whole: float, precision: int = 1) -> float:
    """part/whole as a percentage in [0, 100]."""
    return clamp_percent(safe_percent(part, whole, precision))


def percent_change(prev: float, current: float) -> float:
    if prev == 0 and current == 0:
        return 0.0
    if prev == 0:
        return 100.0
    return ((current - prev) / abs(prev)) * 100.0


def format_naira(amount: float) -> str:
    return f"₦{amount:,.0f}"
