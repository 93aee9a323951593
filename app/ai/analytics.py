# app/ai/analytics.py
"""
Pure aggregation over serialized service reports (the dicts returned by
app.reports.service.serialize_report). Nothing here touches the database
or the network, so every figure fed to a prompt or a fallback comes from
the same place.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from app.utils.common import percent_change, round_half_up, safe_div, share_percent

# performance rating by average income per service
RATING_EXCELLENT = 20000
RATING_GOOD = 10000
RATING_WEAK = 5000

COMPLIANT_COMPLETENESS = 80
SBS_OVERLAP = 0.75


def _num(v: Any) -> float:
    try:
        return float(v or 0)
    except (TypeError, ValueError):
        return 0.0


def _records(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    recs = report.get("records")
    return recs if isinstance(recs, list) else []


def report_income(report: Dict[str, Any]) -> float:
    return sum(_num(r.get("total")) for r in _records(report))


def report_attendance(report: Dict[str, Any]) -> float:
    return sum(_num(r.get("totalAttendance") or r.get("attendance")) for r in _records(report))


def report_completeness(report: Dict[str, Any]) -> float:
    """% of rows carrying both an attendance figure and a total."""
    recs = _records(report)
    if not recs:
        return 0.0
    complete = sum(
        1 for r in recs
        if _num(r.get("totalAttendance") or r.get("attendance")) and _num(r.get("total"))
    )
    return complete / len(recs) * 100


def _sunday_sum(reports: Iterable[Dict[str, Any]], key: str) -> float:
    return sum(
        _num(r.get(key))
        for rep in reports if rep.get("serviceType", "sunday") == "sunday"
        for r in _records(rep)
    )

# ──────────────────────────────────────────────────────────────────────────────
# Monthly analysis
# ──────────────────────────────────────────────────────────────────────────────

def analyze_monthly_data(reports: List[Dict[str, Any]]) -> Dict[str, Dict[str, Dict[str, float]]]:
    """Per assembly: sunday vs midweek income/attendance/records. Special folds into midweek."""
    out: Dict[str, Dict[str, Dict[str, float]]] = OrderedDict()
    for rep in reports:
        bucket = out.setdefault(rep.get("assembly") or "Unknown", {
            "sunday": {"income": 0.0, "attendance": 0.0, "records": 0},
            "midweek": {"income": 0.0, "attendance": 0.0, "records": 0},
        })
        key = "sunday" if rep.get("serviceType", "sunday") == "sunday" else "midweek"
        bucket[key]["income"] += report_income(rep)
        bucket[key]["attendance"] += sum(_num(r.get("attendance")) for r in _records(rep))
        bucket[key]["records"] += len(_records(rep))
    return out


def performance_rating(avg_income_per_service: float) -> str:
    if avg_income_per_service > RATING_EXCELLENT:
        return "Excellent"
    if avg_income_per_service > RATING_GOOD:
        return "Good"
    if avg_income_per_service < RATING_WEAK:
        return "Needs Improvement"
    return "Average"


def analyze_assembly_performance(reports: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    acc: Dict[str, Dict[str, Any]] = OrderedDict()
    for rep in reports:
        m = acc.setdefault(rep.get("assembly") or "Unknown", {
            "totalIncome": 0.0, "totalAttendance": 0.0, "recordsCount": 0, "services": set(),
        })
        m["totalIncome"] += report_income(rep)
        m["totalAttendance"] += sum(_num(r.get("attendance")) for r in _records(rep))
        m["recordsCount"] += len(_records(rep))
        m["services"].add(rep.get("serviceType", "sunday"))

    out = []
    for name, m in acc.items():
        avg_income = safe_div(m["totalIncome"], m["recordsCount"])
        out.append({
            "assembly": name,
            "totalIncome": m["totalIncome"],
            "totalAttendance": m["totalAttendance"],
            "servicesCount": len(m["services"]),
            "recordsCount": m["recordsCount"],
            "avgIncomePerService": round_half_up(avg_income),
            "avgAttendancePerService": round_half_up(safe_div(m["totalAttendance"], m["recordsCount"])),
            "incomePerAttendee": round_half_up(safe_div(m["totalIncome"], m["totalAttendance"])),
            "performanceRating": performance_rating(avg_income),
        })
    out.sort(key=lambda a: a["totalIncome"], reverse=True)
    return out


def calculate_financial_health_score(summary: Dict[str, Any]) -> int:
    """Base 5, nudged by income, tithe ratio and attendance per assembly; always 1..10."""
    score = 5
    assemblies = _num(summary.get("totalAssemblies"))

    income_per_assembly = safe_div(_num(summary.get("totalIncome")), assemblies)
    if income_per_assembly > 30000:
        score += 2
    elif income_per_assembly > 15000:
        score += 1
    elif income_per_assembly < 5000:
        score -= 2

    tithe_ratio = safe_div(_num(summary.get("sundayTithes")), _num(summary.get("sundayIncome")))
    if tithe_ratio > 0.15:
        score += 1
    elif tithe_ratio < 0.05:
        score -= 1

    attendance_per_assembly = safe_div(_num(summary.get("totalAttendance")), assemblies)
    if attendance_per_assembly > 100:
        score += 1
    elif attendance_per_assembly < 30:
        score -= 1

    return int(min(10, max(1, score)))


def generate_financial_recommendations(tithe_pct: float, summary: Dict[str, Any]) -> List[str]:
    recs: List[str] = []
    if tithe_pct < 10:
        recs.append("Consider emphasizing tithing teachings to increase tithe percentage")
    if safe_div(_num(summary.get("midweekIncome")), _num(summary.get("totalIncome"))) < 0.1:
        recs.append("Focus on midweek service engagement to diversify income streams")
    if safe_div(_num(summary.get("totalIncome")), _num(summary.get("totalAttendance"))) < 500:
        recs.append("Implement stewardship programs to increase giving per attendee")
    return recs


def analyze_financial_health(reports: List[Dict[str, Any]], summary: Dict[str, Any]) -> Dict[str, Any]:
    sunday_income = _num(summary.get("sundayIncome"))
    tithe_pct = share_percent(_num(summary.get("sundayTithes")), sunday_income)
    return {
        "tithePercentage": tithe_pct,
        "offeringsPercentage": share_percent(_sunday_sum(reports, "offerings"), sunday_income),
        "pastorsWarfarePercentage": share_percent(_sunday_sum(reports, "pastorsWarfare"), sunday_income),
        "thanksgivingPercentage": share_percent(_sunday_sum(reports, "thanksgiving"), sunday_income),
        "financialHealthScore": calculate_financial_health_score(summary),
        "recommendations": generate_financial_recommendations(tithe_pct, summary),
    }


def analyze_growth_trends(reports: List[Dict[str, Any]]) -> Dict[str, Any]:
    assemblies = {rep.get("assembly") for rep in reports}
    sbs = _sunday_sum(reports, "sbsAttendance")
    visitors = _sunday_sum(reports, "visitors")
    attendance = sum(_num(r.get("attendance")) for rep in reports for r in _records(rep))

    sbs_ratio = safe_div(sbs, attendance)
    visitor_rate = safe_div(visitors, len(assemblies))
    return {
        "sbsParticipationRate": share_percent(sbs, attendance),
        "averageVisitorsPerAssembly": round_half_up(visitor_rate, 1),
        "growthPotential": "High" if sbs_ratio > 0.5 else "Moderate",
        "visitorEngagement": "Excellent" if visitor_rate > 2 else "Good",
    }


def headline_metrics(summary: Dict[str, Any], assemblies: List[str]) -> Dict[str, Any]:
    total_income = _num(summary.get("totalIncome"))
    return {
        "totalAssemblies": len(assemblies),
        "totalIncome": total_income,
        "averageAssemblyIncome": round_half_up(safe_div(total_income, len(assemblies))),
        "averageAttendance": round_half_up(safe_div(_num(summary.get("totalAttendance")), _num(summary.get("totalRecords")))),
        "incomePerAttendee": round_half_up(safe_div(total_income, _num(summary.get("totalAttendance"))), 2),
        "tithesPercentage": share_percent(_num(summary.get("sundayTithes")), _num(summary.get("sundayIncome"))),
    }

# ──────────────────────────────────────────────────────────────────────────────
# District analysis
# ──────────────────────────────────────────────────────────────────────────────

def summarize_assemblies(reports: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    acc: Dict[str, Dict[str, Any]] = OrderedDict()
    for rep in reports:
        name = rep.get("assembly") or "Unknown"
        a = acc.setdefault(name, {
            "name": name,
            "totalIncome": 0.0, "totalAttendance": 0.0, "reportCount": 0,
            "sundayReports": 0, "midweekReports": 0, "specialReports": 0,
            "sundayIncome": 0.0, "midweekIncome": 0.0, "specialIncome": 0.0,
            "sundayAttendance": 0.0, "midweekAttendance": 0.0, "specialAttendance": 0.0,
            "completenessScore": 0.0,
        })
        income, attendance = report_income(rep), report_attendance(rep)
        a["reportCount"] += 1
        a["totalIncome"] += income
        a["totalAttendance"] += attendance
        st = rep.get("serviceType", "sunday")
        if st in ("sunday", "midweek", "special"):
            a[f"{st}Reports"] += 1
            a[f"{st}Income"] += income
            a[f"{st}Attendance"] += attendance
        # latest report processed wins
        a["completenessScore"] = report_completeness(rep)

    out = []
    for a in acc.values():
        n = a["reportCount"] or 1
        out.append({
            **a,
            "averagePerService": a["totalIncome"] / n,
            "averageAttendancePerService": a["totalAttendance"] / n,
        })
    out.sort(key=lambda a: a["totalIncome"], reverse=True)
    return out


def income_standard_deviation(assemblies: List[Dict[str, Any]]) -> float:
    if not assemblies:
        return 0.0
    return float(pd.Series([a["totalIncome"] for a in assemblies], dtype=float).std(ddof=0))


def income_concentration(assemblies: List[Dict[str, Any]]) -> float:
    """Share of income held by the top three (input sorted by income desc)."""
    total = sum(a["totalIncome"] for a in assemblies)
    if not total:
        return 0.0
    return share_percent(sum(a["totalIncome"] for a in assemblies[:3]), total)


def attendance_consistency(assemblies: List[Dict[str, Any]]) -> float:
    """1..10, higher when per-service attendance is similar across assemblies."""
    rates = [a["averageAttendancePerService"] for a in assemblies if a["reportCount"] > 0]
    if not rates:
        return 0.0
    std = float(pd.Series(rates, dtype=float).std(ddof=0))
    return max(1.0, min(10.0, 10 - std / 10))


def reporting_compliance(reports: List[Dict[str, Any]]) -> float:
    if not reports:
        return 0.0
    compliant = sum(1 for r in reports if report_completeness(r) >= COMPLIANT_COMPLETENESS)
    return share_percent(compliant, len(reports))


def calculate_district_metrics(reports: List[Dict[str, Any]], summary: Dict[str, Any],
                               assemblies: List[Dict[str, Any]]) -> Dict[str, Any]:
    total = len(assemblies)
    active = sum(1 for a in assemblies if a["reportCount"] > 0)
    total_income = _num(summary.get("totalIncome"))
    total_attendance = _num(summary.get("totalAttendance"))
    return {
        "totalAssemblies": total,
        "activeAssemblies": active,
        "inactiveAssemblies": total - active,
        "totalIncome": total_income,
        "averageIncomePerAssembly": safe_div(total_income, total),
        "incomeStandardDeviation": income_standard_deviation(assemblies),
        "totalAttendance": total_attendance,
        "averageAttendancePerAssembly": safe_div(total_attendance, total),
        "totalReports": len(reports),
        "averageReportsPerAssembly": safe_div(len(reports), total),
        "reportingRate": share_percent(active, total),
        "incomeConcentration": income_concentration(assemblies),
        "attendanceConsistency": attendance_consistency(assemblies),
    }

# ──────────────────────────────────────────────────────────────────────────────
# Assembly comparison
# ──────────────────────────────────────────────────────────────────────────────

def calculate_assembly_metrics(reports: List[Dict[str, Any]]) -> Dict[str, Any]:
    m: Dict[str, Any] = {
        "totalIncome": 0.0, "totalAttendance": 0.0,
        "sundayIncome": 0.0, "sundayAttendance": 0.0,
        "midweekIncome": 0.0, "midweekAttendance": 0.0,
        "tithes": 0.0, "offerings": 0.0, "pastorsWarfare": 0.0, "thanksgiving": 0.0,
        "sbsAttendance": 0.0, "visitors": 0.0, "recordsCount": 0,
        "services": {"sunday": 0, "midweek": 0, "special": 0},
    }
    for rep in reports:
        st = rep.get("serviceType", "sunday")
        for r in _records(rep):
            total, attendance = _num(r.get("total")), _num(r.get("attendance"))
            m["totalIncome"] += total
            m["totalAttendance"] += attendance
            m["recordsCount"] += 1
            if st == "sunday":
                m["sundayIncome"] += total
                m["sundayAttendance"] += attendance
                for k in ("tithes", "offerings", "pastorsWarfare", "thanksgiving", "sbsAttendance", "visitors"):
                    m[k] += _num(r.get(k))
                m["services"]["sunday"] += 1
            elif st == "midweek":
                m["midweekIncome"] += total
                m["midweekAttendance"] += attendance
                m["services"]["midweek"] += 1
            else:
                m["services"]["special"] += 1

    sundays = m["services"]["sunday"]
    m.update({
        "incomePerAttendee": safe_div(m["totalIncome"], m["totalAttendance"]),
        "tithePercentage": share_percent(m["tithes"], m["sundayIncome"]),
        "sbsParticipationRate": share_percent(m["sbsAttendance"], m["sundayAttendance"]),
        "visitorRate": safe_div(m["visitors"], sundays),
        "avgSundayAttendance": safe_div(m["sundayAttendance"], sundays),
        "avgMidweekAttendance": safe_div(m["midweekAttendance"], m["services"]["midweek"]),
    })
    return m

# ──────────────────────────────────────────────────────────────────────────────
# Month-over-month
# ──────────────────────────────────────────────────────────────────────────────

def attendance_metrics(record: Dict[str, Any]) -> Dict[str, float]:
    """
    Unique-attendance estimate for a Sunday row. Most SBS attendees also sit
    in the main service, so three quarters of the smaller figure is taken as
    overlap when both are reported.
    """
    attendance = _num(record.get("attendance"))
    sbs = _num(record.get("sbsAttendance"))
    raw = attendance + sbs
    if attendance > 0 and sbs > 0:
        overlap = min(attendance, sbs) * SBS_OVERLAP
        unique = max(max(attendance, sbs), round_half_up(attendance + sbs - overlap))
    else:
        overlap = 0.0
        unique = raw
    db_total = _num(record.get("totalAttendance"))
    return {
        "rawSum": raw,
        "dbTotal": db_total if db_total > 0 else raw,
        "unique": float(unique),
        "estimatedOverlap": overlap,
        "attendance": attendance,
        "sbsAttendance": sbs,
    }


def _empty_aggregate(name: str) -> Dict[str, Any]:
    return {
        "assembly": name,
        "totalIncome": 0.0,
        "totalTithes": 0.0,
        "totalAttendance": 0.0,
        "totalAttendanceRaw": 0.0,
        "totalAttendanceDB": 0.0,
        "estimatedTotalOverlap": 0.0,
        "totalRecords": 0,
        "offeringsBreakdown": {},
        "serviceBreakdown": {
            "sunday": {"records": 0, "attendance": 0.0, "uniqueAttendance": 0.0},
            "midweek": {"records": 0, "attendance": 0.0},
            "special": {"records": 0, "attendance": 0.0},
        },
        "attendanceCorrectionPct": 0,
        "incomePerAttendee": 0,
        "tithesPerAttendee": 0,
    }


BREAKDOWN_KEYS = ("tithes", "offerings", "specialOfferings", "pastorsWarfare", "thanksgiving", "etf", "districtSupport")


def aggregate_month(reports: List[Dict[str, Any]], assemblies: List[str]) -> List[Dict[str, Any]]:
    """One row per known assembly (zeros when it filed nothing), Sunday attendance de-duplicated."""
    acc: Dict[str, Dict[str, Any]] = OrderedDict((name, _empty_aggregate(name)) for name in assemblies)
    for rep in reports:
        name = rep.get("assembly") or "Unknown"
        a = acc.setdefault(name, _empty_aggregate(name))
        st = rep.get("serviceType", "sunday")
        recs = _records(rep)
        a["totalRecords"] += len(recs)
        svc = a["serviceBreakdown"].setdefault(st, {"records": 0, "attendance": 0.0})
        svc["records"] += len(recs)

        for r in recs:
            ob = a["offeringsBreakdown"]
            for k in BREAKDOWN_KEYS:
                ob[k] = ob.get(k, 0.0) + _num(r.get(k) if k != "offerings" else (r.get("offerings") or r.get("offering")))
            a["totalIncome"] += _num(r.get("total"))
            a["totalTithes"] += _num(r.get("tithes"))

            m = attendance_metrics(r)
            if st == "sunday":
                a["totalAttendance"] += m["unique"]
                svc["uniqueAttendance"] = svc.get("uniqueAttendance", 0.0) + m["unique"]
            else:
                a["totalAttendance"] += m["attendance"]
            a["totalAttendanceRaw"] += m["rawSum"]
            a["totalAttendanceDB"] += m["dbTotal"]
            a["estimatedTotalOverlap"] += m["estimatedOverlap"]
            svc["attendance"] += m["attendance"]

    for a in acc.values():
        raw = a["totalAttendanceRaw"]
        a["attendanceCorrectionPct"] = round_half_up(safe_div(raw - a["totalAttendance"], raw) * 100)
        a["incomePerAttendee"] = round_half_up(safe_div(a["totalIncome"], a["totalAttendance"]))
        a["tithesPerAttendee"] = round_half_up(safe_div(a["totalTithes"], a["totalAttendance"]))
    return list(acc.values())


def build_comparisons(current: List[Dict[str, Any]],
                      previous: List[Tuple[str, List[Dict[str, Any]]]]) -> List[Dict[str, Any]]:
    """
    current: aggregate_month() for the report month.
    previous: [(label, aggregate_month()), ...] most recent first.
    """
    def find(rows: List[Dict[str, Any]], name: str) -> Dict[str, Any]:
        return next((r for r in rows if r["assembly"] == name), _empty_aggregate(name))

    out = []
    for cur in current:
        name = cur["assembly"]
        entry: Dict[str, Any] = {
            "assembly": name,
            "current": {k: v for k, v in cur.items() if k not in ("assembly", "offeringsBreakdown")},
        }
        for i, (label, rows) in enumerate(previous, start=1):
            p = find(rows, name)
            entry[f"prev{i}"] = {
                "month": label,
                "totalIncome": p["totalIncome"],
                "totalTithes": p["totalTithes"],
                "totalAttendance": p["totalAttendance"],
            }
        p1 = find(previous[0][1], name) if previous else _empty_aggregate(name)
        entry["change"] = {
            "incomeVsPrev1": percent_change(p1["totalIncome"], cur["totalIncome"]),
            "attendanceVsPrev1": percent_change(p1["totalAttendance"], cur["totalAttendance"]),
            "tithesVsPrev1": percent_change(p1["totalTithes"], cur["totalTithes"]),
        }
        out.append(entry)
    return out


def district_totals(aggregated: List[Dict[str, Any]]) -> Dict[str, Any]:
    def total(key: str) -> float:
        return sum(a[key] for a in aggregated)

    raw, unique = total("totalAttendanceRaw"), total("totalAttendance")
    return {
        "totalIncome": total("totalIncome"),
        "totalAttendance": unique,
        "totalAttendanceRaw": raw,
        "totalAttendanceDB": total("totalAttendanceDB"),
        "totalTithes": total("totalTithes"),
        "estimatedTotalOverlap": total("estimatedTotalOverlap"),
        "totalRecords": total("totalRecords"),
        "attendanceCorrection": raw - unique,
        "attendanceCorrectionPct": round_half_up(safe_div(raw - unique, raw) * 100),
        "incomePerAttendee": round_half_up(safe_div(total("totalIncome"), unique)),
    }


def completeness_label(score: float) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def top_and_bottom(assemblies: List[Dict[str, Any]], n: int = 3,
                   key: Optional[str] = None) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """(top n, bottom n worst-first) from a list already sorted best-first, or sorted by `key`."""
    rows = sorted(assemblies, key=lambda a: a[key], reverse=True) if key else list(assemblies)
    return rows[:n], list(reversed(rows[-n:])) if rows else []
