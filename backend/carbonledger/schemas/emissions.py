from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Literal, Optional
from enum import Enum
from datetime import date, datetime

from carbonledger.models.emissions import EmissionStatus
from carbonledger.utils.time import MIN_REPORTING_YEAR, max_reporting_year, quarter_for_month

Scope = Literal[1, 2, 3]


class EmissionUnit(str, Enum):
    kg = "kg"
    tonnes = "tonnes"
    lbs = "lbs"


class EmissionFactorSource(str, Enum):
    defra = "DEFRA"
    epa = "EPA"
    iea = "IEA"
    ipcc = "IPCC"
    custom = "Custom"


class DataQuality(str, Enum):
    measured = "measured"
    calculated = "calculated"
    estimated = "estimated"


class EntryVerificationStatus(str, Enum):
    unverified = "unverified"
    internal = "internal"
    third_party = "third-party"


class MethodologyStandard(str, Enum):
    ghg_protocol = "GHG Protocol"
    iso_14064_1 = "ISO 14064-1"
    defra = "DEFRA"
    custom = "Custom"


# ─────────────────────────────────────────────
# 📎 Embedded entry documents
# ─────────────────────────────────────────────
class Coordinates(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class EntryLocation(BaseModel):
    facility: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class EntryPeriod(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Attachment(BaseModel):
    filename: str
    original_name: Optional[str] = None
    path: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)
    upload_date: Optional[datetime] = None


class EmissionEntry(BaseModel):
    source: str = Field(..., min_length=1, max_length=100, examples=["Fleet"])
    category: str = Field(..., min_length=1, examples=["Mobile combustion"])
    amount: float = Field(..., ge=0, examples=[100.0])
    unit: EmissionUnit = EmissionUnit.kg
    co2e_amount: float = Field(..., ge=0, examples=[100.0])  # amount × emission factor, computed by the caller
    activity_data: float = Field(..., examples=[40.0])
    emission_factor: float = Field(..., examples=[2.5])
    emission_factor_source: EmissionFactorSource = Field(..., examples=["DEFRA"])
    description: Optional[str] = Field(None, max_length=500)
    location: Optional[EntryLocation] = None
    period: Optional[EntryPeriod] = None
    data_quality: DataQuality = DataQuality.calculated
    verification_status: EntryVerificationStatus = EntryVerificationStatus.unverified
    attachments: List[Attachment] = Field(default_factory=list)


# ─────────────────────────────────────────────
# 🗓️ Reporting period / methodology
# ─────────────────────────────────────────────
class ReportingPeriod(BaseModel):
    year: int = Field(..., examples=[2024])
    quarter: Optional[int] = Field(None, ge=1, le=4)
    month: Optional[int] = Field(None, ge=1, le=12)

    @field_validator("year")
    @classmethod
    def check_year(cls, value: int) -> int:
        if value < MIN_REPORTING_YEAR:
            raise ValueError(f"Year must be {MIN_REPORTING_YEAR} or later")
        if value > max_reporting_year():
            raise ValueError("Year cannot be in the future")
        return value

    @model_validator(mode="after")
    def check_month_in_quarter(self):
        if self.quarter is not None and self.month is not None and quarter_for_month(self.month) != self.quarter:
            raise ValueError("month does not fall within quarter")
        return self


class Methodology(BaseModel):
    standard: MethodologyStandard = MethodologyStandard.ghg_protocol
    version: Optional[str] = None
    notes: Optional[str] = None


# ─────────────────────────────────────────────
# ✅ Create Schema
# ─────────────────────────────────────────────
class EmissionCreate(BaseModel):
    company: Optional[str] = Field(None, max_length=255)
    scope: Scope = Field(..., examples=[1])
    reporting_period: ReportingPeriod
    entries: List[EmissionEntry] = Field(..., min_length=1)
    status: EmissionStatus = EmissionStatus.draft
    methodology: Optional[Methodology] = None


class EmissionBulkCreate(BaseModel):
    emissions: List[EmissionCreate] = Field(..., min_length=1)


# ─────────────────────────────────────────────
# ✏️ Update Schema
# ─────────────────────────────────────────────
class EmissionUpdate(BaseModel):
    company: Optional[str] = Field(None, max_length=255)
    reporting_period: Optional[ReportingPeriod] = None
    entries: Optional[List[EmissionEntry]] = Field(None, min_length=1)
    status: Optional[EmissionStatus] = None
    methodology: Optional[Methodology] = None


# ─────────────────────────────────────────────
# 📤 Response Schema
# ─────────────────────────────────────────────
class EmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    company: str
    scope: int
    reporting_period: ReportingPeriod
    entries: List[EmissionEntry]
    total_co2e: float
    status: EmissionStatus
    methodology: Optional[Methodology] = None
    period_start: date
    period_end: date
    last_modified: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─────────────────────────────────────────────
# 📈 Summary Schemas
# ─────────────────────────────────────────────
class ScopeSummary(BaseModel):
    scope: int
    total_co2e: float
    entry_count: int
    last_updated: Optional[datetime] = None


class MonthlyTrend(BaseModel):
    scope: int
    month: Optional[int] = None
    total_co2e: float


class EmissionSummaryOut(BaseModel):
    success: bool = True
    year: int
    total_emissions: float
    scope_summary: List[ScopeSummary]
    monthly_trends: List[MonthlyTrend]
