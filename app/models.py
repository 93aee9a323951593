# app/models.py
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, ForeignKey, JSON, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db import Base

# Month keys look like "November-2025" throughout.


# ─── Reference data ───────────────────────────────────────────────────────────
class Assembly(Base):
    __tablename__ = "assemblies"
    id          = Column(Integer, primary_key=True)
    name        = Column(String, unique=True, nullable=False, index=True)
    pastor      = Column(String)
    location    = Column(String)
    members     = Column(Integer, nullable=False, default=0)
    status      = Column(String, nullable=False, default="active")  # active | inactive
    established = Column(DateTime)
    created_at  = Column(DateTime, nullable=False, default=datetime.utcnow)


class Tither(Base):
    __tablename__ = "tithers"
    id           = Column(Integer, primary_key=True)
    assembly     = Column(String, nullable=False, index=True)
    name         = Column(String, nullable=False)
    tithe_number = Column(String, unique=True, nullable=False)


# ─── Service reports ──────────────────────────────────────────────────────────
class _ReportHeader:
    id           = Column(Integer, primary_key=True)
    assembly     = Column(String, nullable=False, index=True)
    submitted_by = Column(String, nullable=False)
    month        = Column(String, nullable=False, index=True)
    created_at   = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at   = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class SundayServiceReport(_ReportHeader, Base):
    __tablename__ = "sunday_service_reports"
    __table_args__ = (UniqueConstraint("assembly", "month", name="uq_sunday_assembly_month"),)

    records = relationship(
        "SundayServiceRecord", cascade="all, delete-orphan",
        order_by="SundayServiceRecord.position",
    )


class SundayServiceRecord(Base):
    __tablename__ = "sunday_service_records"
    id                = Column(Integer, primary_key=True)
    report_id         = Column(Integer, ForeignKey("sunday_service_reports.id", ondelete="CASCADE"), nullable=False)
    position          = Column(Integer, nullable=False, default=0)
    week              = Column(String, nullable=False)
    date              = Column(String)
    attendance        = Column(Float, nullable=False, default=0)
    sbs_attendance    = Column(Float, nullable=False, default=0)
    visitors          = Column(Float, nullable=False, default=0)
    tithes            = Column(Float, nullable=False, default=0)
    offerings         = Column(Float, nullable=False, default=0)
    special_offerings = Column(Float, nullable=False, default=0)
    etf               = Column(Float, nullable=False, default=0)
    pastors_warfare   = Column(Float, nullable=False, default=0)
    vigil             = Column(Float, nullable=False, default=0)
    thanksgiving      = Column(Float, nullable=False, default=0)
    retirees          = Column(Float, nullable=False, default=0)
    missionaries      = Column(Float, nullable=False, default=0)
    youth_offerings   = Column(Float, nullable=False, default=0)
    district_support  = Column(Float, nullable=False, default=0)
    total             = Column(Float, nullable=False, default=0)
    total_attendance  = Column(Float, nullable=False, default=0)


class MidweekServiceReport(_ReportHeader, Base):
    __tablename__ = "midweek_service_reports"
    __table_args__ = (UniqueConstraint("assembly", "month", name="uq_midweek_assembly_month"),)

    records = relationship(
        "MidweekServiceRecord", cascade="all, delete-orphan",
        order_by="MidweekServiceRecord.position",
    )


class MidweekServiceRecord(Base):
    __tablename__ = "midweek_service_records"
    id         = Column(Integer, primary_key=True)
    report_id  = Column(Integer, ForeignKey("midweek_service_reports.id", ondelete="CASCADE"), nullable=False)
    position   = Column(Integer, nullable=False, default=0)
    date       = Column(String)
    day        = Column(String, nullable=False)  # tuesday | thursday
    attendance = Column(Float, nullable=False, default=0)
    offering   = Column(Float, nullable=False, default=0)
    total      = Column(Float, nullable=False, default=0)


class SpecialServiceReport(_ReportHeader, Base):
    __tablename__ = "special_service_reports"
    __table_args__ = (UniqueConstraint("assembly", "month", name="uq_special_assembly_month"),)

    records = relationship(
        "SpecialServiceRecord", cascade="all, delete-orphan",
        order_by="SpecialServiceRecord.position",
    )


class SpecialServiceRecord(Base):
    __tablename__ = "special_service_records"
    id           = Column(Integer, primary_key=True)
    report_id    = Column(Integer, ForeignKey("special_service_reports.id", ondelete="CASCADE"), nullable=False)
    position     = Column(Integer, nullable=False, default=0)
    service_name = Column(String, nullable=False)
    date         = Column(String)
    attendance   = Column(Float, nullable=False, default=0)
    offering     = Column(Float, nullable=False, default=0)


# ─── Tithes ───────────────────────────────────────────────────────────────────
class TitheRecord(_ReportHeader, Base):
    __tablename__ = "tithe_records"
    __table_args__ = (UniqueConstraint("assembly", "month", name="uq_tithe_assembly_month"),)

    records = relationship(
        "TitheEntry", cascade="all, delete-orphan",
        order_by="TitheEntry.position",
    )


class TitheEntry(Base):
    __tablename__ = "tithe_entries"
    id           = Column(Integer, primary_key=True)
    sheet_id     = Column(Integer, ForeignKey("tithe_records.id", ondelete="CASCADE"), nullable=False)
    position     = Column(Integer, nullable=False, default=0)
    name         = Column(String, nullable=False, default="")
    tithe_number = Column(String, nullable=False, default="")
    week1        = Column(Float, nullable=False, default=0)
    week2        = Column(Float, nullable=False, default=0)
    week3        = Column(Float, nullable=False, default=0)
    week4        = Column(Float, nullable=False, default=0)
    week5        = Column(Float, nullable=False, default=0)
    total        = Column(Float, nullable=False, default=0)


# ─── Offering sheets ──────────────────────────────────────────────────────────
class OfferingRecord(_ReportHeader, Base):
    __tablename__ = "offering_records"
    type    = Column(String, nullable=False, index=True)
    # spreadsheet grid rows, see app.offerings.service.OFFERING_COLUMNS
    records = Column(JSON, nullable=False, default=list)


# ─── Income / expense ledger ──────────────────────────────────────────────────
class FinancialRecord(_ReportHeader, Base):
    __tablename__ = "financial_records"
    __table_args__ = (UniqueConstraint("assembly", "month", name="uq_financial_assembly_month"),)

    total_income  = Column(Float, nullable=False, default=0)
    total_expense = Column(Float, nullable=False, default=0)
    net           = Column(Float, nullable=False, default=0)

    records = relationship(
        "FinancialLine", cascade="all, delete-orphan",
        order_by="FinancialLine.position",
    )


class FinancialLine(Base):
    __tablename__ = "financial_lines"
    id             = Column(Integer, primary_key=True)
    record_id      = Column(Integer, ForeignKey("financial_records.id", ondelete="CASCADE"), nullable=False)
    position       = Column(Integer, nullable=False, default=0)
    date           = Column(String, nullable=False)
    description    = Column(String, nullable=False)
    category       = Column(String, nullable=False)
    type           = Column(String, nullable=False)  # income | expense
    amount         = Column(Float, nullable=False, default=0)
    payment_method = Column(String)
    reference      = Column(String)
