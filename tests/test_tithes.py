"""
Tithe sheets, summary statistics and the member payment register
"""
import pytest


def tithe_sheet(assembly="Bethel", month="November-2025", records=None, submitted_by="Sec. Kemi"):
    return {
        "assembly": assembly,
        "submittedBy": submitted_by,
        "month": month,
        "records": records if records is not None else [
            {"name": "John Ade", "titheNumber": "T-001", "week1": 1000, "week2": "2,000"},
            {"name": "Mary Bola", "titheNumber": "T-002"},
        ],
    }


@pytest.fixture
def two_sheets(client):
    client.post("/api/tithes", json=tithe_sheet())
    client.post("/api/tithes", json=tithe_sheet(
        assembly="Zion",
        month="December-2025",
        records=[{"name": "Peter Obi", "titheNumber": "Z-9", "week1": 500, "week5": 500}],
    ))


class TestTitheSheets:
    def test_create_then_update(self, client):
        res = client.post("/api/tithes", json=tithe_sheet())
        assert res.status_code == 200
        body = res.json()
        assert body["isUpdate"] is False
        assert body["message"] == "Tithe records saved successfully"
        assert body["data"]["recordCount"] == 2

        res = client.post("/api/tithes", json=tithe_sheet(records=[{"name": "John Ade", "week3": 700}]))
        body = res.json()
        assert body["isUpdate"] is True
        assert body["message"] == "Tithe records updated successfully"
        assert body["data"]["recordCount"] == 1

        sheets = client.get("/api/tithes", params={"assembly": "Bethel"}).json()["data"]
        assert len(sheets) == 1
        assert sheets[0]["records"][0]["total"] == 700

    def test_totals_derived_server_side(self, client):
        client.post("/api/tithes", json=tithe_sheet(records=[
            {"name": "John Ade", "week1": 100, "week2": 200, "week5": 50, "total": 99999},
        ]))
        rec = client.get("/api/tithes").json()["data"][0]["records"][0]
        assert rec["total"] == 350
        assert rec["week5"] == 50

    def test_missing_month(self, client):
        payload = tithe_sheet()
        del payload["month"]
        res = client.post("/api/tithes", json=payload)
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "Missing required fields"}

    def test_list_filters(self, client, two_sheets):
        data = client.get("/api/tithes").json()["data"]
        assert {s["assembly"] for s in data} == {"Bethel", "Zion"}

        data = client.get("/api/tithes", params={"month": "December-2025"}).json()["data"]
        assert [s["assembly"] for s in data] == ["Zion"]

        sheet_id = data[0]["id"]
        data = client.get("/api/tithes", params={"id": sheet_id}).json()["data"]
        assert len(data) == 1 and data[0]["id"] == sheet_id

    def test_list_empty(self, client):
        assert client.get("/api/tithes").json() == {"success": True, "data": []}


class TestTitheSummary:
    def test_summary(self, client, two_sheets):
        data = client.get("/api/admin/tithes/summary").json()["data"]

        overall = data["overallStats"]
        assert overall["grandTotalTithe"] == 4000
        assert overall["totalRecordsCount"] == 3
        assert overall["paidMembers"] == 2
        assert overall["unpaidMembers"] == 1
        assert overall["uniqueAssemblies"] == 2
        assert overall["averageTithe"] == 2000

        assert [m["month"] for m in data["monthlyStats"]] == ["December-2025", "November-2025"]

        bethel = next(a for a in data["assemblyStats"] if a["assembly"] == "Bethel")
        assert bethel["totalTithe"] == 3000
        assert bethel["participationRate"] == 50
        assert bethel["totalMonths"] == 1
        assert data["assemblyStats"][0]["assembly"] == "Bethel"

        assert data["filters"] == {"years": ["2025"], "assemblies": ["Bethel", "Zion"]}
        assert len(data["recentSubmissions"]) == 2

    def test_summary_filters(self, client, two_sheets):
        data = client.get("/api/admin/tithes/summary", params={"assembly": "Zion"}).json()["data"]
        assert data["overallStats"]["grandTotalTithe"] == 1000

        data = client.get("/api/admin/tithes/summary", params={"year": "2024"}).json()["data"]
        assert data["overallStats"]["totalRecordsCount"] == 0
        assert data["monthlyStats"] == []

    @pytest.mark.parametrize("year", ["%", "_025", "20%"])
    def test_summary_year_wildcards_match_literally(self, client, two_sheets, year):
        data = client.get("/api/admin/tithes/summary", params={"year": year}).json()["data"]
        assert data["overallStats"]["totalRecordsCount"] == 0

    def test_summary_empty(self, client):
        data = client.get("/api/admin/tithes/summary").json()["data"]
        assert data["overallStats"]["grandTotalTithe"] == 0
        assert data["assemblyStats"] == []
        assert data["filters"] == {"years": [], "assemblies": []}


class TestTitheMembers:
    def register(self, client):
        return client.post("/api/admin/tithes/members", json={
            "assembly": "Bethel",
            "members": [
                {"name": "John Ade", "titheNumber": "T-001"},
                {"name": "Mary Bola", "titheNumber": "T-002"},
                {"name": "Grace Eze", "titheNumber": "T-003"},
            ],
        })

    def test_register_upserts(self, client):
        assert self.register(client).json() == {"success": True, "created": 3, "updated": 0}
        assert self.register(client).json() == {"success": True, "created": 0, "updated": 3}

    def test_member_history(self, client):
        self.register(client)
        client.post("/api/tithes", json=tithe_sheet())
        client.post("/api/tithes", json=tithe_sheet(
            month="October-2025", records=[{"name": "john ade", "week4": 500}],
        ))

        data = client.get("/api/admin/tithes/members", params={"assembly": "bethel"}).json()["data"]
        assert data["assembly"] == "Bethel"
        john, mary, grace = data["members"]

        assert john["sn"] == 1
        assert john["totalPaid"] == 3500
        assert john["monthsPaid"] == ["November-2025", "October-2025"]
        assert john["lastPayment"] == "November-2025"
        assert john["paymentCount"] == 2
        assert john["weeklyBreakdown"]["week4"] == 500

        assert mary["totalPaid"] == 0
        assert mary["paymentCount"] == 1
        assert grace["lastPayment"] == "Never"
        assert grace["records"] == []

        totals = data["totals"]
        assert totals["totalMembers"] == 3
        assert totals["membersWithPayments"] == 1
        assert totals["totalTithe"] == 3500

    def test_name_filter(self, client):
        self.register(client)
        data = client.get("/api/admin/tithes/members",
                          params={"assembly": "Bethel", "name": "mary"}).json()["data"]
        assert [m["name"] for m in data["members"]] == ["Mary Bola"]

    def test_assembly_required(self, client):
        res = client.get("/api/admin/tithes/members", params={"assembly": "  "})
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "Assembly parameter is required"}

    def test_unknown_assembly(self, client):
        res = client.get("/api/admin/tithes/members", params={"assembly": "Nowhere"})
        assert res.status_code == 404
        assert res.json()["error"] == "Assembly not found in member list"

    @pytest.mark.parametrize("assembly", ["%", "Beth_l", "%el"])
    def test_assembly_wildcards_match_literally(self, client, assembly):
        self.register(client)
        res = client.get("/api/admin/tithes/members", params={"assembly": assembly})
        assert res.status_code == 404


class TestAdminTitheSheets:
    def test_paged_listing(self, client, two_sheets):
        client.post("/api/tithes", json=tithe_sheet(month="October-2025", submitted_by="Bro. Femi"))

        data = client.get("/api/admin/tithes", params={"limit": 2}).json()["data"]
        assert len(data["records"]) == 2
        assert data["pagination"] == {
            "page": 1, "limit": 2, "totalCount": 3, "totalPages": 2,
            "hasNextPage": True, "hasPrevPage": False,
        }
        assert data["summary"] == {
            "totalTitheAmount": 7000, "totalRecords": 5, "totalAssemblies": 2, "totalSubmitters": 2,
        }
        assert data["filters"]["assemblies"] == ["Bethel", "Zion"]
        assert data["filters"]["months"] == ["October-2025", "November-2025", "December-2025"]

        page2 = client.get("/api/admin/tithes", params={"limit": 2, "page": 2}).json()["data"]
        assert len(page2["records"]) == 1
        assert page2["pagination"]["hasNextPage"] is False
        assert page2["pagination"]["hasPrevPage"] is True

    def test_filters(self, client, two_sheets):
        data = client.get("/api/admin/tithes", params={"assembly": "bet"}).json()["data"]
        assert [s["assembly"] for s in data["records"]] == ["Bethel"]

        data = client.get("/api/admin/tithes", params={"month": "december"}).json()["data"]
        assert [s["assembly"] for s in data["records"]] == ["Zion"]

        data = client.get("/api/admin/tithes", params={"month": "November", "year": "2025"}).json()["data"]
        assert data["summary"]["totalTitheAmount"] == 3000

        data = client.get("/api/admin/tithes", params={"year": "2024"}).json()["data"]
        assert data["records"] == []
        assert data["pagination"]["totalPages"] == 0

    @pytest.mark.parametrize("params", [{"assembly": "%"}, {"assembly": "_"}, {"month": "%"}, {"year": "%"}])
    def test_wildcards_match_literally(self, client, two_sheets, params):
        data = client.get("/api/admin/tithes", params=params).json()["data"]
        assert data["records"] == []

    def test_delete(self, client, two_sheets):
        sheet_id = client.get("/api/tithes", params={"assembly": "Zion"}).json()["data"][0]["id"]
        res = client.request("DELETE", "/api/admin/tithes", json={"id": sheet_id})
        assert res.status_code == 200
        assert res.json() == {"success": True, "message": "Record deleted successfully", "deletedId": sheet_id}
        assert [s["assembly"] for s in client.get("/api/tithes").json()["data"]] == ["Bethel"]

        res = client.request("DELETE", "/api/admin/tithes", json={"id": sheet_id})
        assert res.status_code == 404
        assert res.json() == {"success": False, "error": "Record not found"}

    @pytest.mark.parametrize("body", [{}, {"id": None}, None])
    def test_delete_requires_id(self, client, body):
        res = client.request("DELETE", "/api/admin/tithes", json=body)
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "Record ID is required"}
