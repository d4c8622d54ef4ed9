from sqlalchemy import (
    Column, Integer, Float, String, Date, DateTime, ForeignKey, JSON, Enum, Index, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from carbonledger.core.database import Base
import enum


class EmissionStatus(str, enum.Enum):
    draft = "draft"
    submitted = "submitted"
    verified = "verified"
    published = "published"

    @property
    def rank(self) -> int:
        return EMISSION_STATUS_ORDER.index(self)


EMISSION_STATUS_ORDER = [
    EmissionStatus.draft,
    EmissionStatus.submitted,
    EmissionStatus.verified,
    EmissionStatus.published,
]

# Statuses that count as verified data for reports generated with include_verified_only
VERIFIED_STATUSES = (EmissionStatus.verified, EmissionStatus.published)


class EmissionRecord(Base):
    """One inventory of emission entries for an owner, scope and reporting period."""

    __tablename__ = "emission_records"
    __table_args__ = (
        CheckConstraint("scope IN (1, 2, 3)", name="ck_emission_records_scope"),
        Index("ix_emission_records_owner_scope_year", "user_id", "scope", "reporting_year"),
        Index("ix_emission_records_company_year", "company", "reporting_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    company = Column(String(255), nullable=False)
    scope = Column(Integer, nullable=False)

    reporting_year = Column(Integer, nullable=False)
    reporting_quarter = Column(Integer, nullable=True)
    reporting_month = Column(Integer, nullable=True)

    # Derived from the reporting period on every write
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    # Ordered embedded entries, serialised EmissionEntry documents
    entries = Column(JSON, nullable=False, default=list)
    # Derived: sum of entries[].co2e_amount
    total_co2e = Column(Float, nullable=False, default=0.0)

    status = Column(Enum(EmissionStatus), nullable=False, default=EmissionStatus.draft)
    methodology = Column(JSON, nullable=True)

    last_modified = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User")

    @property
    def reporting_period(self) -> dict:
        return {
            "year": self.reporting_year,
            "quarter": self.reporting_quarter,
            "month": self.reporting_month,
        }

    @property
    def is_published(self) -> bool:
        return self.status == EmissionStatus.published

    def __repr__(self):
        return f"<EmissionRecord id={self.id} scope={self.scope} CO₂e={self.total_co2e}>"
