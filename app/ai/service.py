# app/ai/service.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import openai
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.admin.service import summarize_reports
from app.config import settings
from app.models import Assembly
from app.reports import service as reports_service
from app.schemas import AdminAnalysisIn, MonthlyReportIn
from app.utils.common import (
    month_key,
    normalize_month_name,
    now_wat,
    parse_iso_date,
    parse_month_key,
    previous_months,
    MONTH_NAMES,
)
from . import analytics, fallbacks, llm, prompts

log = logging.getLogger(__name__)

LLM_ERRORS = (llm.LLMUnavailable, openai.OpenAIError)


def current_month_key() -> str:
    now = now_wat()
    return month_key(MONTH_NAMES[now.month - 1], now.year)


def _reports_for_month_key(db: Session, month: str) -> List[Dict[str, Any]]:
    parsed = parse_month_key(month)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Invalid month")
    m, y = parsed
    return reports_service.reports_for_period(db, "all", month=MONTH_NAMES[m - 1], year=str(y))

# ──────────────────────────────────────────────────────────────────────────────
# GET /api/admin/reports/ai-analysis
# ──────────────────────────────────────────────────────────────────────────────

def monthly_analysis(db: Session, *, month: Optional[str] = None, detailed: bool = False) -> Dict[str, Any]:
    month = month or current_month_key()
    reports = _reports_for_month_key(db, month)
    summary = summarize_reports(reports)

    assemblies = list(dict.fromkeys(r["assembly"] for r in reports))
    performance = analytics.analyze_assembly_performance(reports)
    health = analytics.analyze_financial_health(reports, summary)
    growth = analytics.analyze_growth_trends(reports)

    metrics = {
        **analytics.headline_metrics(summary, assemblies),
        "assemblyPerformance": performance,
        "financialHealth": health,
        "growthIndicators": growth,
    }

    try:
        text = llm.chat_completion(
            prompts.ANALYST_SYSTEM,
            prompts.analysis_prompt(summary, assemblies, performance, health, growth),
            max_tokens=1500,
        )
    except LLM_ERRORS as e:
        log.warning("[ai] monthly analysis fell back for %s: %s", month, e)
        text = fallbacks.fallback_analysis_summary(summary, assemblies, performance)

    detailed_report = None
    if detailed:
        try:
            detailed_report = llm.chat_completion(
                prompts.DETAILED_SYSTEM,
                prompts.detailed_report_prompt(month, analytics.analyze_monthly_data(reports), summary),
                max_tokens=3000,
            )
        except LLM_ERRORS as e:
            log.warning("[ai] detailed report fell back for %s: %s", month, e)
            detailed_report = fallbacks.fallback_detailed_report(summary, reports)

    return {
        "analysis": {"summary": text, "metrics": metrics},
        "detailedReport": detailed_report,
        "timestamp": now_wat().isoformat(),
        "month": month,
    }

# ──────────────────────────────────────────────────────────────────────────────
# GET /api/admin/reports/comparison
# ──────────────────────────────────────────────────────────────────────────────

def compare_assemblies(db: Session, *, assembly1: Optional[str], assembly2: Optional[str],
                       month: Optional[str] = None) -> Dict[str, Any]:
    if not assembly1 or not assembly2:
        raise HTTPException(status_code=400, detail="Please provide two assemblies to compare")
    month = month or current_month_key()
    reports = _reports_for_month_key(db, month)

    reports1 = [r for r in reports if r["assembly"] == assembly1]
    reports2 = [r for r in reports if r["assembly"] == assembly2]
    if not reports1 or not reports2:
        raise HTTPException(status_code=404, detail="One or both assemblies not found for the given month")

    m1 = analytics.calculate_assembly_metrics(reports1)
    m2 = analytics.calculate_assembly_metrics(reports2)
    try:
        text = llm.chat_completion(
            prompts.COMPARISON_SYSTEM,
            prompts.comparison_prompt(assembly1, assembly2, m1, m2, month),
            max_tokens=2000,
        )
    except LLM_ERRORS as e:
        log.warning("[ai] comparison fell back (%s vs %s): %s", assembly1, assembly2, e)
        text = fallbacks.fallback_comparison(assembly1, assembly2, m1, m2)

    return {"comparison": text, "metrics": {assembly1: m1, assembly2: m2}, "month": month}

# ──────────────────────────────────────────────────────────────────────────────
# POST /api/ai/financial-report
# ──────────────────────────────────────────────────────────────────────────────

def _period_text(payload: AdminAnalysisIn) -> str:
    if payload.period is None:
        return "the selected period"
    start, end = parse_iso_date(payload.period.from_), parse_iso_date(payload.period.to)
    return f"{start.isoformat() if start else payload.period.from_} to {end.isoformat() if end else payload.period.to}"


def admin_financial_report(payload: AdminAnalysisIn) -> Dict[str, Any]:
    """
    Structured district analysis from client-supplied reports. Any model or
    parse failure still answers 200, with the templated analysis and the
    reason in metadata.
    """
    reports = [r for r in payload.reports if isinstance(r, dict)]
    if not reports:
        raise HTTPException(status_code=400, detail="No reports data provided")

    location = payload.location or settings.DISTRICT_LOCATION
    summary = {**summarize_reports(reports), **(payload.summary or {})}
    period_text = _period_text(payload)

    assemblies = analytics.summarize_assemblies(reports)
    district = analytics.calculate_district_metrics(reports, summary, assemblies)

    try:
        raw = llm.chat_completion(
            prompts.superintendent_system(),
            prompts.admin_analysis_prompt(reports, assemblies, district, period_text, location),
            max_tokens=4000,
            json_mode=True,
        )
        analysis = json.loads(raw)
        if not isinstance(analysis, dict) or not analysis:
            raise ValueError("Model did not return a JSON object")
    except LLM_ERRORS + (ValueError,) as e:
        log.warning("[ai] admin analysis fell back: %s", e)
        return {
            "success": True,
            "data": fallbacks.fallback_admin_analysis(reports, summary, period_text, location),
            "metadata": {
                "generated_at": now_wat().isoformat(),
                "note": "Analysis generated with limited AI assistance",
                "fallback_reason": str(e) or "AI service unavailable",
            },
        }

    return {
        "success": True,
        "data": analysis,
        "metadata": {
            "generated_at": now_wat().isoformat(),
            "district_name": settings.DISTRICT_NAME,
            "location": location,
            "period": period_text,
            "total_assemblies": len(assemblies),
            "total_reports": len(reports),
            "total_income": district["totalIncome"],
            "total_attendance": district["totalAttendance"],
            "reporting_compliance_rate": analytics.reporting_compliance(reports),
        },
    }

# ──────────────────────────────────────────────────────────────────────────────
# POST /api/generate/financial-report
# ──────────────────────────────────────────────────────────────────────────────

def monthly_financial_report(db: Session, payload: MonthlyReportIn) -> Dict[str, Any]:
    month = normalize_month_name(payload.month)
    try:
        year = int(payload.year)
        previous = previous_months(month, year, 2)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid month")

    current_reports = reports_service.reports_for_period(db, "all", month=month, year=str(year))
    registered = [name for (name,) in db.query(Assembly.name).order_by(Assembly.name)]
    names = list(dict.fromkeys(registered + sorted({r["assembly"] for r in current_reports})))

    aggregated = analytics.aggregate_month(current_reports, names)
    names = [a["assembly"] for a in aggregated]
    previous_aggs = [
        (f"{m} {y}", analytics.aggregate_month(
            reports_service.reports_for_period(db, "all", month=m, year=str(y)), names))
        for m, y in previous
    ]
    comparisons = analytics.build_comparisons(aggregated, previous_aggs)
    totals = analytics.district_totals(aggregated)
    label = f"{month} {year}"

    generated_by = "ai"
    try:
        report = llm.chat_completion(
            prompts.MONTHLY_SYSTEM,
            prompts.monthly_report_prompt(label, aggregated, comparisons, totals, previous),
            max_tokens=4000,
        )
    except LLM_ERRORS as e:
        log.warning("[ai] monthly report fell back for %s: %s", label, e)
        report = fallbacks.fallback_monthly_report(label, aggregated, comparisons, totals, previous)
        generated_by = "fallback"

    return {
        "success": True,
        "month": month,
        "year": str(year),
        "report": report,
        "generatedBy": generated_by,
        "rawAggregated": aggregated,
        "comparisons": comparisons,
        "districtTotals": totals,
        "previousMonths": [{"month": m, "year": str(y)} for m, y in previous],
        "attendanceNote": prompts.ATTENDANCE_NOTE,
    }
