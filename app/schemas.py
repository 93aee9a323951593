# app/schemas.py
"""
Request payloads. Field names on the wire are camelCase (the spreadsheet
forms post them that way); numeric cells are coerced leniently.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints

from app.utils.common import to_number

Amount = Annotated[float, BeforeValidator(to_number)]
Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _blank_to_str(v: Any) -> str:
    return "" if v is None else str(v)


Text = Annotated[str, BeforeValidator(_blank_to_str)]


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ─── Service reports ──────────────────────────────────────────────────────────
class SundayRow(_Payload):
    week: Text = ""
    date: Optional[str] = None
    attendance: Amount = 0
    sbs_attendance: Amount = Field(0, alias="sbsAttendance")
    visitors: Amount = 0
    tithes: Amount = 0
    offerings: Amount = 0
    special_offerings: Amount = Field(0, alias="specialOfferings")
    etf: Amount = 0
    pastors_warfare: Amount = Field(0, alias="pastorsWarfare")
    vigil: Amount = 0
    thanksgiving: Amount = 0
    retirees: Amount = 0
    missionaries: Amount = 0
    youth_offerings: Amount = Field(0, alias="youthOfferings")
    district_support: Amount = Field(0, alias="districtSupport")


class MidweekRow(_Payload):
    date: Optional[str] = None
    day: Text = ""
    attendance: Amount = 0
    offering: Amount = 0


class SpecialRow(_Payload):
    service_name: Text = Field("", alias="serviceName")
    date: Optional[str] = None
    attendance: Amount = 0
    offering: Amount = 0


class ServiceReportIn(_Payload):
    assembly: Required
    submitted_by: Required = Field(alias="submittedBy")
    month: Required
    records: List[Dict[str, Any]]
    service_type: Literal["sunday", "midweek", "special"] = Field("sunday", alias="serviceType")


# ─── Tithes ───────────────────────────────────────────────────────────────────
class TitheRow(_Payload):
    name: Text = ""
    tithe_number: Text = Field("", alias="titheNumber")
    week1: Amount = 0
    week2: Amount = 0
    week3: Amount = 0
    week4: Amount = 0
    week5: Amount = 0


class TitheSheetIn(_Payload):
    assembly: Required
    submitted_by: Required = Field(alias="submittedBy")
    month: Required
    records: List[TitheRow]


class TitherIn(_Payload):
    name: Required
    tithe_number: Required = Field(alias="titheNumber")


class TitherRegistrationIn(_Payload):
    assembly: Required
    members: List[TitherIn]


class TitheDeleteIn(_Payload):
    id: Optional[int] = None


# ─── Offering sheets ──────────────────────────────────────────────────────────
class OfferingSheetIn(_Payload):
    assembly: Required
    submitted_by: Required = Field(alias="submittedBy")
    month: Required
    type: Required
    records: List[Dict[str, Any]]


# ─── Ledger ───────────────────────────────────────────────────────────────────
class FinancialLineIn(_Payload):
    date: Text = ""
    description: Text = ""
    category: Text = ""
    type: Literal["income", "expense"] = "income"
    amount: Amount = 0
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    reference: Optional[str] = None


class FinancialRecordIn(_Payload):
    assembly: Required
    submitted_by: Required = Field(alias="submittedBy")
    month: Required
    # validated row by row once blank grid rows are dropped
    records: List[Dict[str, Any]]


# ─── Assemblies ───────────────────────────────────────────────────────────────
class AssemblyIn(_Payload):
    name: Required
    pastor: Optional[str] = None
    location: Optional[str] = None
    members: Annotated[int, BeforeValidator(lambda v: int(to_number(v)))] = 0
    status: Literal["active", "inactive"] = "active"
    established: Optional[str] = None


# ─── AI reports ───────────────────────────────────────────────────────────────
class Period(_Payload):
    from_: str = Field(alias="from")
    to: str


class AdminAnalysisIn(_Payload):
    reports: List[Dict[str, Any]] = []
    summary: Dict[str, Any] = {}
    period: Optional[Period] = None
    location: Optional[str] = None


class MonthlyReportIn(_Payload):
    month: Required
    year: Annotated[str, BeforeValidator(_blank_to_str), StringConstraints(strip_whitespace=True, min_length=1)]
