"""
Payload builders shared by the API tests
"""


def sunday_row(week="Week 1", **overrides):
    row = {
        "week": week,
        "date": "",
        "attendance": 50,
        "sbsAttendance": 30,
        "visitors": 4,
        "tithes": 10000,
        "offerings": 5000,
        "specialOfferings": 1000,
        "etf": 500,
        "pastorsWarfare": 700,
        "vigil": 0,
        "thanksgiving": 1200,
        "retirees": 0,
        "missionaries": 300,
        "youthOfferings": 200,
        "districtSupport": 100,
    }
    row.update(overrides)
    return row


def post_sunday(client, assembly="Bethel", month="November-2025", rows=None, submitted_by="Pst. Ade"):
    return client.post("/api/sunday-service-reports", json={
        "assembly": assembly,
        "submittedBy": submitted_by,
        "month": month,
        "records": rows if rows is not None else [sunday_row()],
    })


def post_midweek(client, assembly="Bethel", month="November-2025", rows=None):
    return client.post("/api/sunday-service-reports", json={
        "assembly": assembly,
        "submittedBy": "Bro. Tunde",
        "month": month,
        "serviceType": "midweek",
        "records": rows if rows is not None else [
            {"date": "2025-11-04", "day": "Tuesday", "attendance": 20, "offering": 3000},
            {"date": "2025-11-06", "day": "thursday", "attendance": 25, "offering": 2000},
        ],
    })


def post_special(client, assembly="Bethel", month="November-2025", rows=None):
    return client.post("/api/sunday-service-reports", json={
        "assembly": assembly,
        "submittedBy": "Sis. Bola",
        "month": month,
        "serviceType": "special",
        "records": rows if rows is not None else [
            {"serviceName": "Harvest", "date": "2025-11-16", "attendance": 80, "offering": 40000},
        ],
    })
