"""
Pure aggregation used by the AI reports and their fallbacks
"""
import pytest

from app.ai import analytics, fallbacks
from app.utils.common import share_percent


def sunday(assembly, rows):
    return {"assembly": assembly, "serviceType": "sunday", "month": "November-2025", "records": rows}


def midweek(assembly, rows):
    return {"assembly": assembly, "serviceType": "midweek", "month": "November-2025", "records": rows}


REPORTS = [
    sunday("Bethel", [
        {"attendance": 100, "sbsAttendance": 40, "visitors": 6, "tithes": 30000, "offerings": 20000,
         "pastorsWarfare": 2000, "thanksgiving": 3000, "total": 25000, "totalAttendance": 100},
        {"attendance": 80, "sbsAttendance": 0, "visitors": 2, "tithes": 0, "offerings": 5000,
         "total": 5000, "totalAttendance": 80},
    ]),
    midweek("Bethel", [{"day": "tuesday", "attendance": 30, "offering": 4000, "total": 4000}]),
    sunday("Zion", [
        {"attendance": 20, "sbsAttendance": 10, "visitors": 1, "tithes": 100, "offerings": 1000,
         "total": 1000, "totalAttendance": 20},
    ]),
]


class TestPerformance:
    @pytest.mark.parametrize("avg, rating", [
        (25000, "Excellent"),
        (15000, "Good"),
        (7000, "Average"),
        (4999, "Needs Improvement"),
        (0, "Needs Improvement"),
    ])
    def test_rating(self, avg, rating):
        assert analytics.performance_rating(avg) == rating

    def test_assembly_performance_sorted_by_income(self):
        perf = analytics.analyze_assembly_performance(REPORTS)
        assert [p["assembly"] for p in perf] == ["Bethel", "Zion"]
        bethel = perf[0]
        assert bethel["totalIncome"] == 34000
        assert bethel["recordsCount"] == 3
        assert bethel["servicesCount"] == 2
        assert bethel["avgIncomePerService"] == round(34000 / 3)

    def test_monthly_breakdown_splits_sunday_and_midweek(self):
        monthly = analytics.analyze_monthly_data(REPORTS)
        assert monthly["Bethel"]["sunday"]["income"] == 30000
        assert monthly["Bethel"]["midweek"]["income"] == 4000
        assert monthly["Zion"]["midweek"]["records"] == 0


class TestFinancialHealth:
    @pytest.mark.parametrize("summary", [
        {},
        {"totalAssemblies": 0, "totalIncome": 0},
        {"totalAssemblies": 1, "totalIncome": 10 ** 9, "sundayTithes": 10 ** 9, "sundayIncome": 1,
         "totalAttendance": 10 ** 6},
        {"totalAssemblies": 50, "totalIncome": 1, "sundayTithes": 0, "sundayIncome": 10 ** 6,
         "totalAttendance": 1},
        {"totalAssemblies": "junk", "totalIncome": None},
    ])
    def test_score_always_in_range(self, summary):
        assert 1 <= analytics.calculate_financial_health_score(summary) <= 10

    def test_percentages_are_bounded_shares(self):
        summary = {"sundayIncome": 31000, "sundayTithes": 30100, "totalIncome": 35000,
                   "totalAttendance": 230, "totalAssemblies": 2}
        health = analytics.analyze_financial_health(REPORTS, summary)
        assert health["tithePercentage"] == 97.1
        assert health["offeringsPercentage"] == share_percent(26000, 31000)
        for key in ("tithePercentage", "offeringsPercentage", "pastorsWarfarePercentage", "thanksgivingPercentage"):
            assert 0 <= health[key] <= 100

    def test_percentages_clamped_when_parts_exceed_whole(self):
        health = analytics.analyze_financial_health(REPORTS, {"sundayIncome": 10, "sundayTithes": 500})
        assert health["tithePercentage"] == 100
        assert health["offeringsPercentage"] == 100

    def test_recommendations(self):
        recs = analytics.generate_financial_recommendations(5, {"totalIncome": 100, "midweekIncome": 0,
                                                                "totalAttendance": 10})
        assert len(recs) == 3
        assert analytics.generate_financial_recommendations(
            50, {"totalIncome": 100000, "midweekIncome": 50000, "totalAttendance": 10}) == []

    def test_growth_trends(self):
        growth = analytics.analyze_growth_trends(REPORTS)
        assert growth["sbsParticipationRate"] == share_percent(50, 230)
        assert growth["averageVisitorsPerAssembly"] == 4.5
        assert growth["growthPotential"] == "Moderate"
        assert growth["visitorEngagement"] == "Excellent"

    def test_empty_inputs(self):
        assert analytics.analyze_growth_trends([])["sbsParticipationRate"] == 0
        assert analytics.analyze_assembly_performance([]) == []
        metrics = analytics.headline_metrics({}, [])
        assert metrics["averageAssemblyIncome"] == 0
        assert metrics["tithesPercentage"] == 0


class TestDistrictMetrics:
    def test_district_metrics(self):
        assemblies = analytics.summarize_assemblies(REPORTS)
        assert [a["name"] for a in assemblies] == ["Bethel", "Zion"]
        assert assemblies[0]["sundayReports"] == 1
        assert assemblies[0]["midweekIncome"] == 4000

        district = analytics.calculate_district_metrics(REPORTS, {"totalIncome": 35000, "totalAttendance": 230},
                                                        assemblies)
        assert district["totalAssemblies"] == 2
        assert district["activeAssemblies"] == 2
        assert district["reportingRate"] == 100
        assert district["incomeConcentration"] == 100
        assert district["incomeStandardDeviation"] == 16500
        assert 1 <= district["attendanceConsistency"] <= 10

    def test_reporting_compliance(self):
        reports = [
            sunday("A", [{"attendance": 10, "total": 5}]),
            sunday("B", [{"attendance": 10, "total": 0}]),
            sunday("C", []),
        ]
        assert analytics.reporting_compliance(reports) == 33.3
        assert analytics.reporting_compliance([]) == 0

    def test_top_and_bottom(self):
        rows = [{"name": n, "totalIncome": i} for n, i in (("a", 5), ("b", 4), ("c", 3), ("d", 2))]
        top, bottom = analytics.top_and_bottom(rows, n=2)
        assert [r["name"] for r in top] == ["a", "b"]
        assert [r["name"] for r in bottom] == ["d", "c"]
        assert analytics.top_and_bottom([]) == ([], [])

    @pytest.mark.parametrize("score, label", [(95, "Excellent"), (60, "Good"), (40, "Fair"), (10, "Poor")])
    def test_completeness_label(self, score, label):
        assert analytics.completeness_label(score) == label


class TestComparisonMetrics:
    def test_assembly_metrics(self):
        m = analytics.calculate_assembly_metrics([r for r in REPORTS if r["assembly"] == "Bethel"])
        assert m["totalIncome"] == 34000
        assert m["sundayIncome"] == 30000
        assert m["midweekIncome"] == 4000
        assert m["tithes"] == 30000
        assert m["services"] == {"sunday": 2, "midweek": 1, "special": 0}
        assert m["tithePercentage"] == 100
        assert m["avgSundayAttendance"] == 90
        assert m["visitorRate"] == 4

    def test_no_reports(self):
        m = analytics.calculate_assembly_metrics([])
        assert m["incomePerAttendee"] == 0
        assert m["tithePercentage"] == 0


class TestMonthOverMonth:
    def test_attendance_overlap(self):
        m = analytics.attendance_metrics({"attendance": 100, "sbsAttendance": 40})
        assert m["rawSum"] == 140
        assert m["estimatedOverlap"] == 30
        assert m["unique"] == 110

    def test_no_overlap_without_sbs(self):
        m = analytics.attendance_metrics({"attendance": 80})
        assert m["unique"] == 80
        assert m["estimatedOverlap"] == 0

    def test_unique_never_below_larger_figure(self):
        m = analytics.attendance_metrics({"attendance": 10, "sbsAttendance": 200})
        assert m["unique"] >= 200

    @pytest.mark.parametrize("attendance, sbs, unique", [(10, 2, 11), (2, 2, 3), (3, 1, 3)])
    def test_unique_rounds_halves_up(self, attendance, sbs, unique):
        m = analytics.attendance_metrics({"attendance": attendance, "sbsAttendance": sbs})
        assert m["unique"] == unique

    def test_per_attendee_figures_round_halves_up(self):
        agg = analytics.aggregate_month([sunday("Bethel", [{"attendance": 4, "offerings": 10, "total": 10, "tithes": 2}])], [])
        assert agg[0]["incomePerAttendee"] == 3
        assert agg[0]["tithesPerAttendee"] == 1

    def test_aggregate_includes_idle_assemblies(self):
        agg = analytics.aggregate_month(REPORTS, ["Shiloh", "Bethel"])
        names = [a["assembly"] for a in agg]
        assert names == ["Shiloh", "Bethel", "Zion"]

        shiloh, bethel, _ = agg
        assert shiloh["totalRecords"] == 0
        assert shiloh["incomePerAttendee"] == 0

        assert bethel["totalIncome"] == 34000
        assert bethel["totalTithes"] == 30000
        # 110 + 80 unique on Sundays, 30 midweek
        assert bethel["totalAttendance"] == 220
        assert bethel["totalAttendanceRaw"] == 250
        assert bethel["offeringsBreakdown"]["offerings"] == 29000

    def test_comparisons(self):
        current = analytics.aggregate_month(REPORTS, [])
        previous = analytics.aggregate_month([REPORTS[2]], [])
        comps = analytics.build_comparisons(current, [("October 2025", previous), ("September 2025", [])])

        bethel = next(c for c in comps if c["assembly"] == "Bethel")
        assert bethel["prev1"]["month"] == "October 2025"
        assert bethel["prev1"]["totalIncome"] == 0
        assert bethel["change"]["incomeVsPrev1"] == 100
        assert bethel["prev2"]["totalIncome"] == 0

        zion = next(c for c in comps if c["assembly"] == "Zion")
        assert zion["change"]["incomeVsPrev1"] == 0

        totals = analytics.district_totals(current)
        assert totals["totalIncome"] == 35000
        assert totals["attendanceCorrection"] == totals["totalAttendanceRaw"] - totals["totalAttendance"]


class TestFallbacks:
    def test_fallbacks_handle_empty_data(self):
        summary = {}
        assert fallbacks.fallback_analysis_summary(summary, [], []).startswith("Fallback Analysis")
        assert fallbacks.NOTE in fallbacks.fallback_detailed_report(summary, [])

        empty = analytics.calculate_assembly_metrics([])
        assert "COMPARISON: A vs B" in fallbacks.fallback_comparison("A", "B", empty, empty)

        admin = fallbacks.fallback_admin_analysis([], {}, "the selected period", "Lagos, Nigeria")
        assert admin["assembly_performance_ranking"] == []
        assert admin["next_quarter_targets"]["financial_targets"]["overall_target"] == 100000

        report = fallbacks.fallback_monthly_report("November 2025", [], [], analytics.district_totals([]), [])
        assert report.startswith("# Monthly Financial Report: November 2025")

    def test_admin_fallback_ranks_assemblies(self):
        admin = fallbacks.fallback_admin_analysis(REPORTS, {"totalIncome": "35000"}, "Nov", "Lagos")
        ranking = admin["assembly_performance_ranking"]
        assert [r["assembly"] for r in ranking] == ["Bethel", "Zion"]
        assert ranking[0]["rank"] == 1
        assert admin["financial_health_assessment"]["overall_health"] == "Concerning"
