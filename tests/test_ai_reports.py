"""
AI report endpoints: model output when available, templated fallbacks otherwise
"""
import json

import pytest

from app.ai import llm
from tests.helpers import post_midweek, post_sunday, sunday_row


@pytest.fixture
def november(client):
    post_sunday(client)
    post_midweek(client)
    post_sunday(client, assembly="Zion", rows=[sunday_row(tithes=500, offerings=800, sbsAttendance=0)])


class TestLLMClient:
    def test_missing_key_is_unavailable(self):
        with pytest.raises(llm.LLMUnavailable):
            llm.chat_completion("system", "user")


class TestMonthlyAnalysis:
    def test_fallback_without_key(self, client, november):
        res = client.get("/api/admin/reports/ai-analysis", params={"month": "November-2025"})
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["month"] == "November-2025"
        assert data["analysis"]["summary"].startswith("Fallback Analysis")
        assert data["detailedReport"] is None

        metrics = data["analysis"]["metrics"]
        assert metrics["totalAssemblies"] == 2
        assert metrics["totalIncome"] == 9000 + 5000 + 4800
        assert 1 <= metrics["financialHealth"]["financialHealthScore"] <= 10
        assert [p["assembly"] for p in metrics["assemblyPerformance"]] == ["Bethel", "Zion"]

    def test_detailed_fallback(self, client, november, llm_down):
        data = client.get("/api/admin/reports/ai-analysis",
                          params={"month": "November-2025", "detailed": "true"}).json()["data"]
        assert data["detailedReport"].startswith("MONTHLY CHURCH REPORT")
        assert "Bethel" in data["detailedReport"]

    def test_model_text_used(self, client, november, llm_reply):
        calls = llm_reply("District is growing.")
        data = client.get("/api/admin/reports/ai-analysis",
                          params={"month": "November-2025", "detailed": "true"}).json()["data"]
        assert data["analysis"]["summary"] == "District is growing."
        assert data["detailedReport"] == "District is growing."
        assert len(calls) == 2
        assert "Total Assemblies: 2" in calls[0][1]

    def test_invalid_month(self, client):
        res = client.get("/api/admin/reports/ai-analysis", params={"month": "Smarch-2025"})
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "Invalid month"}

    def test_no_reports(self, client):
        data = client.get("/api/admin/reports/ai-analysis", params={"month": "January-2020"}).json()["data"]
        assert data["analysis"]["metrics"]["totalIncome"] == 0


class TestComparison:
    def test_fallback(self, client, november):
        data = client.get("/api/admin/reports/comparison", params={
            "assembly1": "Bethel", "assembly2": "Zion", "month": "November-2025",
        }).json()["data"]
        assert data["comparison"].startswith("COMPARISON: Bethel vs Zion")
        assert data["metrics"]["Bethel"]["totalIncome"] == 14000
        assert data["metrics"]["Zion"]["totalIncome"] == 4800

    def test_model_text_used(self, client, november, llm_reply):
        calls = llm_reply("Bethel leads.")
        data = client.get("/api/admin/reports/comparison", params={
            "assembly1": "Bethel", "assembly2": "Zion", "month": "November-2025",
        }).json()["data"]
        assert data["comparison"] == "Bethel leads."
        assert "BETHEL:" in calls[0][1] and "ZION:" in calls[0][1]

    def test_needs_two_assemblies(self, client):
        res = client.get("/api/admin/reports/comparison", params={"assembly1": "Bethel"})
        assert res.status_code == 400
        assert res.json()["error"] == "Please provide two assemblies to compare"

    def test_unknown_assembly(self, client, november):
        res = client.get("/api/admin/reports/comparison", params={
            "assembly1": "Bethel", "assembly2": "Shiloh", "month": "November-2025",
        })
        assert res.status_code == 404
        assert res.json()["error"] == "One or both assemblies not found for the given month"


ADMIN_REPORTS = [
    {"assembly": "Bethel", "serviceType": "sunday",
     "records": [{"attendance": 50, "tithes": 10000, "total": 9000, "totalAttendance": 50}]},
    {"assembly": "Zion", "serviceType": "midweek", "records": [{"attendance": 20, "total": 3000}]},
]


class TestAdminFinancialReport:
    def test_requires_reports(self, client):
        res = client.post("/api/ai/financial-report", json={"reports": []})
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "No reports data provided"}

    def test_fallback_without_key(self, client):
        res = client.post("/api/ai/financial-report", json={"reports": ADMIN_REPORTS})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["metadata"]["note"] == "Analysis generated with limited AI assistance"
        assert body["metadata"]["fallback_reason"]
        assert body["data"]["executive_summary"].startswith("District analysis for 2 assemblies during the selected period")
        assert [r["assembly"] for r in body["data"]["assembly_performance_ranking"]] == ["Bethel", "Zion"]

    def test_model_json_used(self, client, llm_reply):
        calls = llm_reply(json.dumps({"executive_summary": "All well"}))
        res = client.post("/api/ai/financial-report", json={
            "reports": ADMIN_REPORTS,
            "summary": {"totalIncome": 12000},
            "period": {"from": "2025-11-01", "to": "2025-11-30T00:00:00Z"},
            "location": "Ikeja",
        })
        body = res.json()
        assert body["data"] == {"executive_summary": "All well"}
        meta = body["metadata"]
        assert meta["period"] == "2025-11-01 to 2025-11-30"
        assert meta["location"] == "Ikeja"
        assert meta["total_assemblies"] == 2
        assert meta["total_income"] == 12000
        assert 0 <= meta["reporting_compliance_rate"] <= 100
        assert calls[0][2]["json_mode"] is True

    def test_unparseable_model_output_falls_back(self, client, llm_reply):
        llm_reply("Sorry, here is some prose instead of JSON")
        body = client.post("/api/ai/financial-report", json={"reports": ADMIN_REPORTS}).json()
        assert body["success"] is True
        assert "fallback_reason" in body["metadata"]
        assert "executive_summary" in body["data"]

    def test_upstream_error_falls_back(self, client, llm_down):
        body = client.post("/api/ai/financial-report", json={"reports": ADMIN_REPORTS}).json()
        assert body["metadata"]["fallback_reason"] == "upstream timeout"


class TestMonthlyFinancialReport:
    def test_fallback_report(self, client, november):
        client.post("/api/admin/assemblies", json={"name": "Shiloh"})
        post_sunday(client, month="October-2025", rows=[sunday_row(offerings=1000)])

        res = client.post("/api/generate/financial-report", json={"month": "november", "year": 2025})
        assert res.status_code == 200
        body = res.json()
        assert body["month"] == "November"
        assert body["year"] == "2025"
        assert body["generatedBy"] == "fallback"
        assert body["report"].startswith("# Monthly Financial Report: November 2025")
        assert "Shiloh" in body["report"]
        assert body["previousMonths"] == [
            {"month": "October", "year": "2025"},
            {"month": "September", "year": "2025"},
        ]

        names = [a["assembly"] for a in body["rawAggregated"]]
        assert names == ["Shiloh", "Bethel", "Zion"]

        bethel = next(c for c in body["comparisons"] if c["assembly"] == "Bethel")
        assert bethel["prev1"]["month"] == "October 2025"
        assert bethel["prev1"]["totalIncome"] == 5000
        assert bethel["current"]["totalIncome"] == 14000

        totals = body["districtTotals"]
        assert totals["totalIncome"] == 18800
        assert totals["totalAttendance"] <= totals["totalAttendanceRaw"]

    def test_model_report_used(self, client, november, llm_reply):
        calls = llm_reply("# Report")
        body = client.post("/api/generate/financial-report", json={"month": "November", "year": "2025"}).json()
        assert body["report"] == "# Report"
        assert body["generatedBy"] == "ai"
        assert "INPUT JSON" in calls[0][1]

    def test_january_looks_back_into_previous_year(self, client):
        body = client.post("/api/generate/financial-report", json={"month": "January", "year": "2026"}).json()
        assert body["previousMonths"][0] == {"month": "December", "year": "2025"}

    @pytest.mark.parametrize("payload", [
        {"month": "Smarch", "year": "2025"},
        {"month": "November", "year": "twenty"},
    ])
    def test_invalid_month(self, client, payload):
        res = client.post("/api/generate/financial-report", json=payload)
        assert res.status_code == 400
        assert res.json()["error"] == "Invalid month"

    def test_missing_year(self, client):
        res = client.post("/api/generate/financial-report", json={"month": "November"})
        assert res.status_code == 400
        assert res.json()["error"] == "Missing required fields"
