from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum, Index, func
)
from carbonledger.core.database import Base
import enum


class ReportType(str, enum.Enum):
    # Core GHG Protocol reports
    annual_ghg = "annual-ghg"
    scope1 = "scope1"
    scope2 = "scope2"
    scope3 = "scope3"
    # Compliance reports
    csrd = "csrd"
    tcfd = "tcfd"
    cdp = "cdp"
    ghg_protocol = "ghg-protocol"
    gri_305 = "gri-305"
    iso_14064 = "iso-14064"
    sec_climate = "sec-climate"
    # Management reports
    emission_trends = "emission-trends"
    carbon_intensity = "carbon-intensity"
    reduction_progress = "reduction-progress"
    forecasting = "forecasting"
    financial_impact = "financial-impact"
    # Supplier reports
    supply_chain_map = "supply-chain-map"
    supplier_performance = "supplier-performance"
    connection_report = "connection-report"
    # Offset reports
    offset_ledger = "offset-ledger"
    net_emissions = "net-emissions"
    mitigation_projects = "mitigation-projects"


class ReportStatus(str, enum.Enum):
    generating = "generating"
    completed = "completed"
    failed = "failed"
    scheduled = "scheduled"


# Allowed status moves. completed and failed are terminal, scheduled never enters generating.
REPORT_TRANSITIONS = {
    ReportStatus.generating: {ReportStatus.completed, ReportStatus.failed},
    ReportStatus.completed: set(),
    ReportStatus.failed: set(),
    ReportStatus.scheduled: set(),
}


class ReportFormat(str, enum.Enum):
    pdf = "pdf"
    excel = "excel"
    csv = "csv"
    json = "json"


class AuditAction(str, enum.Enum):
    generated = "generated"
    downloaded = "downloaded"
    shared = "shared"
    scheduled = "scheduled"


class Report(Base):
    """Report job: one report-generation request tracked through its lifecycle."""

    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_owner_type", "user_id", "report_type"),
        Index("ix_reports_status", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    report_type = Column(Enum(ReportType), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    parameters = Column(JSON, nullable=False, default=dict)
    data = Column(JSON, nullable=True)

    status = Column(Enum(ReportStatus), nullable=False, default=ReportStatus.generating)
    format = Column(Enum(ReportFormat), nullable=False, default=ReportFormat.pdf)

    file_info = Column(JSON, nullable=False, default=lambda: {"download_count": 0})
    schedule = Column(JSON, nullable=True)
    generation_metadata = Column(JSON, nullable=True)
    sharing = Column(JSON, nullable=False, default=lambda: {"is_public": False, "share_token": None, "shared_with": []})
    audit_trail = Column(JSON, nullable=False, default=list)
    failure_reason = Column(Text, nullable=True)

    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Report id={self.id} type={self.report_type} status={self.status}>"
