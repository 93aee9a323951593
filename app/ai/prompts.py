# app/ai/prompts.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from app.config import settings
from app.utils.common import format_naira, now_wat, round_half_up

ANALYST_SYSTEM = (
    "You are a church financial and growth analyst. Provide insightful, data-driven analysis "
    "for church leadership. Focus on key metrics, trends, and actionable insights."
)

DETAILED_SYSTEM = (
    "You are a church administration expert. Generate a comprehensive monthly report including "
    "executive summary, financial analysis, attendance analysis, assembly performance, "
    "recommendations, and next steps."
)

COMPARISON_SYSTEM = (
    "You are a church growth consultant specializing in comparative analysis between church "
    "assemblies. Provide balanced, data-driven insights that highlight both strengths and "
    "growth opportunities."
)

MONTHLY_SYSTEM = (
    "You are a senior financial analyst and church administration expert. "
    "You write monthly financial and numerical reports in Markdown using only the figures provided."
)


def superintendent_system() -> str:
    return (
        f"You are the District Superintendent of {settings.DISTRICT_NAME} in {settings.DISTRICT_LOCATION}. "
        "You have 20+ years of experience in church administration, financial management and "
        "ministerial oversight. Your analysis is honest and data-driven, strategic and actionable, "
        "culturally relevant to the Lagos context, and professional yet accessible to church "
        "leadership. Respond with a single JSON object."
    )


def _assembly_line(i: int, a: Dict[str, Any]) -> str:
    return f"{i}. {a['name']}: {format_naira(a['totalIncome'])}, {a['totalAttendance']:.0f} attendance, {a['reportCount']} reports"

# ──────────────────────────────────────────────────────────────────────────────
# Monthly analysis (admin reports page)
# ──────────────────────────────────────────────────────────────────────────────

def analysis_prompt(summary: Dict[str, Any], assemblies: List[str], performance: List[Dict[str, Any]],
                    health: Dict[str, Any], growth: Dict[str, Any]) -> str:
    top = "\n".join(
        f"- {a['assembly']}: {format_naira(a['totalIncome'])} ({a['performanceRating']})"
        for a in performance[:3]
    ) or "- none"
    return f"""
Analyze this church district performance data and provide key insights:

MONTHLY SUMMARY:
- Total Assemblies: {len(assemblies)}
- Total Income: {format_naira(summary.get('totalIncome', 0))}
- Total Attendance: {summary.get('totalAttendance', 0):.0f}
- Sunday Services: {summary.get('sundayReports', 0)} reports, {format_naira(summary.get('sundayIncome', 0))} income
- Midweek Services: {summary.get('midweekReports', 0)} reports, {format_naira(summary.get('midweekIncome', 0))} income

ASSEMBLY PERFORMANCE (Top 3 by income):
{top}

FINANCIAL HEALTH:
- Tithe Percentage: {health['tithePercentage']}%
- Financial Health Score: {health['financialHealthScore']}/10

GROWTH INDICATORS:
- SBS Participation: {growth['sbsParticipationRate']}%
- Visitor Rate: {growth['averageVisitorsPerAssembly']} per assembly

Please provide:
1. EXECUTIVE SUMMARY: Key achievements and areas for improvement
2. FINANCIAL ANALYSIS: Revenue streams, giving patterns, financial health
3. ATTENDANCE ANALYSIS: Growth patterns, engagement levels
4. ASSEMBLY HIGHLIGHTS: Top performers and those needing support
5. RECOMMENDATIONS: Actionable steps for improvement
6. NEXT STEPS: Priority areas for next month

Keep the analysis data-driven, practical, and focused on church growth and financial sustainability.""".strip()


def detailed_report_prompt(month: str, monthly: Dict[str, Dict[str, Dict[str, float]]],
                           summary: Dict[str, Any]) -> str:
    lines = ["DETAILED MONTHLY CHURCH REPORT", f"Month: {month or 'N/A'}", "", "ASSEMBLY BREAKDOWN:"]
    for name, data in monthly.items():
        lines += [
            "",
            f"{name}:",
            f"  Sunday: {format_naira(data['sunday']['income'])} ({data['sunday']['attendance']:.0f} attendees)",
            f"  Midweek: {format_naira(data['midweek']['income'])} ({data['midweek']['attendance']:.0f} attendees)",
        ]
    lines += [
        "",
        "FINANCIAL SUMMARY:",
        f"Total Income: {format_naira(summary.get('totalIncome', 0))}",
        f"Sunday Income: {format_naira(summary.get('sundayIncome', 0))}",
        f"Midweek Income: {format_naira(summary.get('midweekIncome', 0))}",
        f"Tithes: {format_naira(summary.get('sundayTithes', 0))}",
        "",
        "ATTENDANCE SUMMARY:",
        f"Total Attendance: {summary.get('totalAttendance', 0):.0f}",
        f"Sunday Attendance: {summary.get('sundayAttendance', 0):.0f}",
        f"Midweek Attendance: {summary.get('midweekAttendance', 0):.0f}",
        "",
        "Please generate a comprehensive report including:",
        "1. Executive Summary with key metrics",
        "2. Detailed Financial Analysis",
        "3. Attendance and Growth Analysis",
        "4. Assembly Performance Comparison",
        "5. Giving Patterns and Trends",
        "6. Strategic Recommendations",
        "7. Action Plan for Next Month",
        "",
        "Format as a professional church administration report.",
    ]
    return "\n".join(lines)

# ──────────────────────────────────────────────────────────────────────────────
# Two-assembly comparison
# ──────────────────────────────────────────────────────────────────────────────

def _metrics_block(name: str, m: Dict[str, Any]) -> str:
    return f"""{name.upper()}:
- Total Income: {format_naira(m['totalIncome'])}
- Total Attendance: {m['totalAttendance']:.0f}
- Sunday Attendance: {m['sundayAttendance']:.0f} (Avg: {round_half_up(m['avgSundayAttendance'])})
- Midweek Attendance: {m['midweekAttendance']:.0f} (Avg: {round_half_up(m['avgMidweekAttendance'])})
- Tithes: {format_naira(m['tithes'])} ({m['tithePercentage']:.1f}% of Sunday income)
- Income per Attendee: {format_naira(m['incomePerAttendee'])}
- SBS Participation: {m['sbsParticipationRate']:.1f}%
- Visitors: {m['visitors']:.0f}"""


def comparison_prompt(a1: str, a2: str, m1: Dict[str, Any], m2: Dict[str, Any], month: str) -> str:
    return f"""
Compare the performance of two church assemblies for {month}:

{_metrics_block(a1, m1)}

{_metrics_block(a2, m2)}

Please provide a comparative analysis covering:
1. FINANCIAL PERFORMANCE: Income comparison, giving patterns
2. ATTENDANCE & GROWTH: Size comparison, engagement levels
3. SPIRITUAL INDICATORS: SBS participation, visitor engagement
4. STRENGTHS: What each assembly does well
5. AREAS FOR IMPROVEMENT: Specific opportunities for each
6. CROSS-LEARNING: What can each learn from the other
7. RECOMMENDATIONS: Tailored suggestions for growth

Focus on actionable insights and practical recommendations.""".strip()

# ──────────────────────────────────────────────────────────────────────────────
# Comprehensive admin analysis (JSON)
# ──────────────────────────────────────────────────────────────────────────────

ADMIN_OUTPUT_SCHEMA = """{
  "executive_summary": "string (2-3 paragraph overview of district health)",
  "district_overview": "string",
  "assembly_performance_ranking": [
    {"rank": 1, "assembly": "string", "total_income": number, "total_attendance": number,
     "income_per_attendee": number, "report_completeness": "Excellent/Good/Fair/Poor",
     "key_strength": "string", "major_challenge": "string"}
  ],
  "financial_health_assessment": {
    "overall_health": "Strong/Moderate/Concerning",
    "revenue_distribution": "string", "giving_trends": "string", "collection_efficiency": "string",
    "areas_of_concern": ["string"],
    "sustainability_metrics": {"revenue_diversification_score": number (1-10),
                               "income_stability_index": number (1-10), "growth_trajectory": "string"}
  },
  "attendance_analysis": {
    "overall_trend": "string", "assembly_comparison": "string", "engagement_patterns": "string",
    "seasonal_factors": ["string"], "retention_analysis": "string", "growth_opportunities": ["string"]
  },
  "operational_efficiency": {
    "reporting_compliance": {"overall_compliance_rate": number (0-100), "best_performers": ["string"],
                             "lagging_assemblies": ["string"], "submission_timeliness": "string"},
    "data_quality": {"completeness_score": number (0-100), "accuracy_indicators": ["string"],
                     "missing_data_impact": "string"}
  },
  "strategic_recommendations": {
    "immediate_actions": ["string"], "short_term_goals": ["string"], "long_term_strategies": ["string"],
    "assembly_specific_interventions": [{"assembly": "string", "priority_area": "string", "recommended_action": "string"}]
  },
  "risk_assessment": {"financial_risks": ["string"], "operational_risks": ["string"],
                      "growth_risks": ["string"], "mitigation_strategies": ["string"]},
  "success_stories": [{"assembly": "string", "achievement": "string", "replicable_strategy": "string"}],
  "next_quarter_targets": {
    "financial_targets": {"overall_target": number, "assembly_targets": [{"assembly": "string", "target": number}]},
    "attendance_targets": {"overall_target": number, "assembly_targets": [{"assembly": "string", "target": number}]},
    "reporting_targets": {"completeness_goal": number (0-100), "timeliness_goal": "string"}
  },
  "detailed_report": "string (complete narrative report in professional format)"
}"""


def admin_analysis_prompt(reports: List[Dict[str, Any]], assemblies: List[Dict[str, Any]],
                          district: Dict[str, Any], period_text: str, location: str) -> str:
    top = assemblies[:3]
    bottom = list(reversed(assemblies[-3:]))
    counts = {st: sum(1 for r in reports if r.get("serviceType", "sunday") == st)
              for st in ("sunday", "midweek", "special")}
    return f"""You are analyzing the {settings.DISTRICT_NAME} performance.
Provide a comprehensive strategic analysis for district leadership.

DISTRICT OVERVIEW:
- Location: {location}
- Analysis Period: {period_text}
- Date Generated: {now_wat().strftime('%d %B %Y')}
- Total Assemblies: {district['totalAssemblies']}
- Active Assemblies: {district['activeAssemblies']}
- Reporting Rate: {district['reportingRate']:.1f}%

FINANCIAL PERFORMANCE:
- Total District Income: {format_naira(district['totalIncome'])}
- Average per Assembly: {format_naira(district['averageIncomePerAssembly'])}
- Top Assembly: {top[0]['name'] if top else 'N/A'} ({format_naira(top[0]['totalIncome'] if top else 0)})
- Income Concentration: {district['incomeConcentration']:.1f}% (top 3 assemblies)

ATTENDANCE PERFORMANCE:
- Total District Attendance: {district['totalAttendance']:,.0f}
- Average per Assembly: {round_half_up(district['averageAttendancePerAssembly'])}
- Attendance Consistency Score: {district['attendanceConsistency']:.1f}/10

OPERATIONAL METRICS:
- Total Reports Submitted: {district['totalReports']}
- Service Distribution: Sunday ({counts['sunday']}), Midweek ({counts['midweek']}), Special ({counts['special']})
- Average Reports per Assembly: {district['averageReportsPerAssembly']:.1f}
- Inactive Assemblies: {district['inactiveAssemblies']}

TOP PERFORMING ASSEMBLIES:
{chr(10).join(_assembly_line(i, a) for i, a in enumerate(top, 1))}

LAGGING ASSEMBLIES (Needs Attention):
{chr(10).join(_assembly_line(i, a) for i, a in enumerate(bottom, 1))}

SAMPLE REPORTS (for context):
{json.dumps(reports[:2], indent=2, default=str)}

EXPECTED OUTPUT FORMAT (JSON):
{ADMIN_OUTPUT_SCHEMA}

ANALYSIS GUIDELINES:
1. Be data-driven and honest
2. Focus on strategic district-level insights
3. Consider Lagos-specific challenges and opportunities
4. Provide actionable recommendations
5. Balance financial and ministerial perspectives
6. Highlight both successes and areas needing intervention
7. Set realistic, measurable targets
8. Identify transferable best practices"""

# ──────────────────────────────────────────────────────────────────────────────
# Month-over-month Markdown report
# ──────────────────────────────────────────────────────────────────────────────

ATTENDANCE_NOTE = (
    "Attendance figures use estimated unique attendance to avoid double-counting: "
    "many people attend both Sunday Bible School (SBS) and the main service. "
    "'totalAttendance' is the unique estimate, 'totalAttendanceRaw' the double-counted sum "
    "and 'estimatedTotalOverlap' the estimated duplicates."
)


def performance_table(aggregated: List[Dict[str, Any]], comparisons: List[Dict[str, Any]]) -> str:
    change = {c["assembly"]: c["change"]["incomeVsPrev1"] for c in comparisons}
    rows = [
        "| Assembly | Income | Attendance (Corrected) | Attendance (Raw) | Correction % | Tithes | % Income Change |",
        "|----------|--------|------------------------|------------------|--------------|--------|-----------------|",
    ]
    for a in aggregated:
        rows.append(
            f"| {a['assembly']} | {format_naira(a['totalIncome'])} | {a['totalAttendance']:.0f} | "
            f"{a['totalAttendanceRaw']:.0f} | {a['attendanceCorrectionPct']}% | "
            f"{format_naira(a['totalTithes'])} | {change.get(a['assembly'], 0):.1f}% |"
        )
    return "\n".join(rows)


def monthly_report_prompt(month_label: str, aggregated: List[Dict[str, Any]], comparisons: List[Dict[str, Any]],
                          totals: Dict[str, Any], previous: List[Tuple[str, int]]) -> str:
    payload = {
        "month": month_label,
        "assemblies": aggregated,
        "comparisons": comparisons,
        "districtTotals": totals,
        "previousMonths": [f"{m} {y}" for m, y in previous],
        "attendanceMetricsNote": ATTENDANCE_NOTE,
    }
    return f"""
You will produce a comprehensive MONTHLY FINANCIAL & NUMERICAL REPORT for a church district.

CRITICAL ATTENDANCE NOTE: {ATTENDANCE_NOTE}

STRICT RULES:
- DO NOT invent numbers, statistics, percentages, or assemblies.
- Use ONLY the numbers in the provided JSON.
- For attendance analysis, ALWAYS use 'totalAttendance' (corrected unique attendance).
- If data is missing or zero, interpret it realistically.

=========== INPUT JSON ===========
{json.dumps(payload, indent=2, default=str)}
==================================

Generate a full professional report with the following sections:

# 1. Executive Summary
# 2. District Totals Overview
- Total Income: {totals['totalIncome']:.0f}
- Total Attendance (Corrected/Unique): {totals['totalAttendance']:.0f}
- Total Attendance (Raw): {totals['totalAttendanceRaw']:.0f}
- Attendance Correction: {totals['attendanceCorrection']:.0f} people ({totals['attendanceCorrectionPct']}% reduction)
- Total Tithes: {totals['totalTithes']:.0f}
- Income per Attendee: {totals['incomePerAttendee']}
# 3. Assembly Performance Table
{performance_table(aggregated, comparisons)}
# 4. Attendance Analysis
# 5. Top 3 Performing Assemblies (by corrected attendance)
# 6. Bottom 3 Assemblies
# 7. Data Quality & Correction Assessment
# 8. Financial Health with Corrected Attendance
# 9. Ministry Impact with Accurate Numbers
# 10. Strategic Recommendations

Write everything in clean Markdown. Keep it professional, pastoral, and data-grounded.""".strip()
