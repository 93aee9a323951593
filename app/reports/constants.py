# app/reports/constants.py

SERVICE_TYPES = ("sunday", "midweek", "special")

MIDWEEK_DAYS = ("tuesday", "thursday")

# Sunday offering categories that make up a record's `total`. Tithes are
# tracked separately and never counted here.
SUNDAY_OFFERING_FIELDS = (
    "offerings",
    "special_offerings",
    "etf",
    "pastors_warfare",
    "vigil",
    "thanksgiving",
    "retirees",
    "missionaries",
    "youth_offerings",
    "district_support",
)

SUNDAY_ATTENDANCE_FIELDS = ("attendance", "sbs_attendance", "visitors")

# Every numeric cell on the Sunday sheet; a row with all of these at zero is empty.
SUNDAY_NUMERIC_FIELDS = SUNDAY_ATTENDANCE_FIELDS + ("tithes",) + SUNDAY_OFFERING_FIELDS

# snake_case column -> camelCase wire name
WIRE_NAMES = {
    "sbs_attendance": "sbsAttendance",
    "special_offerings": "specialOfferings",
    "pastors_warfare": "pastorsWarfare",
    "youth_offerings": "youthOfferings",
    "district_support": "districtSupport",
    "total_attendance": "totalAttendance",
    "service_name": "serviceName",
    "submitted_by": "submittedBy",
    "tithe_number": "titheNumber",
    "payment_method": "paymentMethod",
}


def wire(name: str) -> str:
    return WIRE_NAMES.get(name, name)
