# app/ai/fallbacks.py
"""
Templated stand-ins for every AI flow. Built only from precomputed
aggregates; none of these raise on empty input.
"""
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from app.utils.common import format_naira, now_wat, percent_change, round_half_up, safe_div, to_number
from . import analytics
from .prompts import ATTENDANCE_NOTE, performance_table

NOTE = "Note: This is a fallback report. For AI-generated insights, ensure the OpenAI API is properly configured."


def fallback_analysis_summary(summary: Dict[str, Any], assemblies: List[str],
                              performance: List[Dict[str, Any]]) -> str:
    top = performance[0]["assembly"] if performance else "N/A"
    return (
        f"Fallback Analysis: District with {len(assemblies)} assemblies generated "
        f"{format_naira(summary.get('totalIncome', 0))} total income with "
        f"{summary.get('totalAttendance', 0):.0f} total attendance. Top performing assembly: {top}."
    )


def fallback_detailed_report(summary: Dict[str, Any], reports: List[Dict[str, Any]]) -> str:
    names = list(dict.fromkeys(r.get("assembly") for r in reports if r.get("assembly")))
    return f"""MONTHLY CHURCH REPORT - FALLBACK VERSION

Executive Summary:
This month, {summary.get('totalAssemblies', 0)} assemblies reported a total income of {format_naira(summary.get('totalIncome', 0))} with {summary.get('totalAttendance', 0):.0f} total attendees.

Financial Overview:
- Total Income: {format_naira(summary.get('totalIncome', 0))}
- Sunday Services: {format_naira(summary.get('sundayIncome', 0))}
- Midweek Services: {format_naira(summary.get('midweekIncome', 0))}
- Tithes Collected: {format_naira(summary.get('sundayTithes', 0))}

Attendance Summary:
- Total: {summary.get('totalAttendance', 0):.0f} attendees
- Sunday: {summary.get('sundayAttendance', 0):.0f}
- Midweek: {summary.get('midweekAttendance', 0):.0f}

Assemblies Reporting: {', '.join(names) or 'None'}

Recommendations:
1. Review giving patterns across assemblies
2. Focus on increasing midweek engagement
3. Monitor attendance growth trends
4. Consider stewardship teaching emphasis

{NOTE}"""


def fallback_comparison(a1: str, a2: str, m1: Dict[str, Any], m2: Dict[str, Any]) -> str:
    income_diff = m1["totalIncome"] - m2["totalIncome"]
    income_pct = safe_div(abs(income_diff), max(m1["totalIncome"], m2["totalIncome"])) * 100
    lines = [
        f"COMPARISON: {a1} vs {a2}",
        "",
        "FINANCIAL:",
        f"- {a1}: {format_naira(m1['totalIncome'])}",
        f"- {a2}: {format_naira(m2['totalIncome'])}",
        f"- Difference: {format_naira(abs(income_diff))} ({income_pct:.1f}% {'higher' if income_diff > 0 else 'lower'})",
        "",
        "ATTENDANCE:",
        f"- {a1}: {m1['totalAttendance']:.0f} total",
        f"- {a2}: {m2['totalAttendance']:.0f} total",
        f"- Difference: {abs(m1['totalAttendance'] - m2['totalAttendance']):.0f} attendees",
        "",
        "TITHING:",
        f"- {a1}: {m1['tithePercentage']:.1f}% of Sunday income",
        f"- {a2}: {m2['tithePercentage']:.1f}% of Sunday income",
        "",
        "RECOMMENDATIONS:",
    ]
    recs = []
    if m1["incomePerAttendee"] > m2["incomePerAttendee"] * 1.5:
        recs.append(f"- {a2} could learn from {a1}'s giving culture")
    if m1["sbsParticipationRate"] > m2["sbsParticipationRate"] + 10:
        recs.append(f"- {a2} should focus on SBS participation improvement")
    if m2["visitors"] > m1["visitors"] * 2:
        recs.append(f"- {a1} could improve visitor engagement strategies")
    lines += recs or ["- Both assemblies should keep reporting consistently and review trends next month"]
    return "\n".join(lines)


def fallback_admin_analysis(reports: List[Dict[str, Any]], summary: Dict[str, Any],
                            period_text: str, location: str) -> Dict[str, Any]:
    assemblies = analytics.summarize_assemblies(reports)
    top, bottom = analytics.top_and_bottom(assemblies)
    active = sum(1 for a in assemblies if a["reportCount"] > 0)
    total_income = to_number(summary.get("totalIncome"))
    total_attendance = to_number(summary.get("totalAttendance"))

    if total_income > 100000:
        health = "Strong"
    elif total_income > 50000:
        health = "Moderate"
    else:
        health = "Concerning"

    return {
        "executive_summary": (
            f"District analysis for {len(assemblies)} assemblies during {period_text}. "
            f"Total income: {format_naira(total_income)}. Active reporting assemblies: {active}."
        ),
        "district_overview": (
            f"District shows {len(assemblies)} total assemblies with {active} actively reporting. "
            "Financial performance varies across assemblies."
        ),
        "assembly_performance_ranking": [
            {
                "rank": i,
                "assembly": a["name"],
                "total_income": a["totalIncome"],
                "total_attendance": a["totalAttendance"],
                "income_per_attendee": round_half_up(safe_div(a["totalIncome"], a["totalAttendance"])),
                "report_completeness": analytics.completeness_label(a["completenessScore"]),
                "key_strength": "Active reporting" if a["reportCount"] > 0 else "Needs activation",
                "major_challenge": "Data completeness" if a["reportCount"] > 0 else "No reports submitted",
            }
            for i, a in enumerate(assemblies, 1)
        ],
        "financial_health_assessment": {
            "overall_health": health,
            "revenue_distribution": "Revenue concentrated in top assemblies",
            "giving_trends": "Sunday services drive majority of income",
            "collection_efficiency": "Moderate efficiency across assemblies",
            "areas_of_concern": ["Low reporting compliance", "Income concentration"],
            "sustainability_metrics": {
                "revenue_diversification_score": 6,
                "income_stability_index": 7,
                "growth_trajectory": "Stable with growth potential",
            },
        },
        "attendance_analysis": {
            "overall_trend": "Attendance shows room for growth across assemblies",
            "assembly_comparison": "Significant variation in attendance patterns",
            "engagement_patterns": "Higher engagement in larger assemblies",
            "seasonal_factors": ["Holiday season impact", "Rainy season challenges"],
            "retention_analysis": "Need improved visitor retention strategies",
            "growth_opportunities": ["Midweek service promotion", "Youth engagement programs"],
        },
        "operational_efficiency": {
            "reporting_compliance": {
                "overall_compliance_rate": analytics.reporting_compliance(reports),
                "best_performers": [a["name"] for a in top],
                "lagging_assemblies": [a["name"] for a in bottom],
                "submission_timeliness": "Varies by assembly",
            },
            "data_quality": {
                "completeness_score": safe_div(sum(a["completenessScore"] for a in assemblies), len(assemblies)),
                "accuracy_indicators": ["Basic data captured", "Income tracking established"],
                "missing_data_impact": "Affects trend analysis accuracy",
            },
        },
        "strategic_recommendations": {
            "immediate_actions": [
                "Address non-reporting assemblies",
                "Improve data completeness",
                "Standardize reporting timelines",
            ],
            "short_term_goals": [
                "Increase reporting compliance to 80%",
                "Grow midweek attendance by 20%",
            ],
            "long_term_strategies": [
                "Develop assembly leadership pipelines",
                "Establish district-wide training programs",
                "Create sustainable funding models",
            ],
            "assembly_specific_interventions": [
                {
                    "assembly": a["name"],
                    "priority_area": "Growth optimization" if a["reportCount"] > 0 else "Activation",
                    "recommended_action": "Focus on attendance growth" if a["reportCount"] > 0 else "Establish reporting system",
                }
                for a in top
            ],
        },
        "risk_assessment": {
            "financial_risks": ["Income concentration", "Dependence on Sunday offerings"],
            "operational_risks": ["Reporting inconsistency", "Leadership gaps"],
            "growth_risks": ["Visitor retention", "Youth engagement"],
            "mitigation_strategies": ["Diversify income streams", "Standardize operations"],
        },
        "success_stories": [
            {
                "assembly": a["name"],
                "achievement": "Consistent reporting and strong participation",
                "replicable_strategy": "Regular follow-up and clear expectations",
            }
            for a in top
        ],
        "next_quarter_targets": {
            "financial_targets": {
                "overall_target": round_half_up(total_income * 1.1) if total_income else 100000,
                "assembly_targets": [{"assembly": a["name"], "target": round_half_up(a["totalIncome"] * 1.1)} for a in assemblies],
            },
            "attendance_targets": {
                "overall_target": round_half_up(total_attendance * 1.15) if total_attendance else 500,
                "assembly_targets": [{"assembly": a["name"], "target": round_half_up(a["totalAttendance"] * 1.15)} for a in assemblies],
            },
            "reporting_targets": {"completeness_goal": 90, "timeliness_goal": "Within 48 hours of service"},
        },
        "detailed_report": (
            "DISTRICT ADMIN ANALYSIS REPORT\n"
            f"Generated: {now_wat().strftime('%d %B %Y')}\n"
            f"Period: {period_text}\n"
            f"Location: {location}\n\n"
            "This report provides a strategic overview of district performance based on available data. "
            "Key focus areas include improving reporting compliance and developing growth strategies "
            "tailored to the Lagos context."
        ),
    }


def fallback_monthly_report(month_label: str, aggregated: List[Dict[str, Any]],
                            comparisons: List[Dict[str, Any]], totals: Dict[str, Any],
                            previous: List[Tuple[str, int]]) -> str:
    ranked = sorted(aggregated, key=lambda a: a["totalAttendance"], reverse=True)
    top = [a for a in ranked if a["totalRecords"] > 0][:3]
    idle = [a["assembly"] for a in aggregated if a["totalRecords"] == 0]
    prev_label = f"{previous[0][0]} {previous[0][1]}" if previous else "the previous month"

    prev_income = sum(c.get("prev1", {}).get("totalIncome", 0) for c in comparisons)
    change = percent_change(prev_income, totals["totalIncome"])

    lines = [
        f"# Monthly Financial Report: {month_label}",
        "",
        "## 1. Executive Summary",
        f"The district recorded {format_naira(totals['totalIncome'])} in income with an estimated "
        f"{totals['totalAttendance']:.0f} unique attendees across {sum(1 for a in aggregated if a['totalRecords'])} "
        f"reporting assemblies. Income changed by {change:.1f}% against {prev_label}.",
        "",
        "## 2. District Totals Overview",
        f"- Total Income: {format_naira(totals['totalIncome'])}",
        f"- Total Attendance (Corrected/Unique): {totals['totalAttendance']:.0f}",
        f"- Total Attendance (Raw): {totals['totalAttendanceRaw']:.0f}",
        f"- Attendance Correction: {totals['attendanceCorrection']:.0f} people ({totals['attendanceCorrectionPct']}% reduction)",
        f"- Total Tithes: {format_naira(totals['totalTithes'])}",
        f"- Income per Attendee: {format_naira(totals['incomePerAttendee'])}",
        "",
        "## 3. Assembly Performance Table",
        performance_table(aggregated, comparisons),
        "",
        "## 4. Top Assemblies (by corrected attendance)",
    ]
    lines += [f"- {a['assembly']}: {a['totalAttendance']:.0f} attendees, {format_naira(a['totalIncome'])}" for a in top] or ["- No assembly reported this month"]
    lines += ["", "## 5. Assemblies Without Reports"]
    lines += [f"- {name}" for name in idle] or ["- All assemblies reported"]
    lines += ["", "## 6. Data Note", ATTENDANCE_NOTE, "", NOTE]
    return "\n".join(lines)
