from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Any, Dict, List, Literal, Optional
from enum import Enum
from datetime import datetime, timezone

from carbonledger.models.report import ReportFormat, ReportStatus, ReportType


class ScheduleFrequency(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    annually = "annually"


class SharePermission(str, Enum):
    view = "view"
    download = "download"


# ─────────────────────────────────────────────
# 📥 Generation parameters
# ─────────────────────────────────────────────
class ReportingPeriodRange(BaseModel):
    start_date: datetime = Field(..., examples=["2024-01-01T00:00:00Z"])
    end_date: datetime = Field(..., examples=["2024-12-31T23:59:59Z"])
    year: Optional[int] = None
    quarter: Optional[int] = Field(None, ge=1, le=4)

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are read as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ReportParameters(BaseModel):
    reporting_period: ReportingPeriodRange
    scopes: List[Literal[1, 2, 3]] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    suppliers: List[int] = Field(default_factory=list)
    include_verified_only: bool = False
    currency: str = "USD"


class ReportGenerate(BaseModel):
    report_type: ReportType = Field(..., examples=["annual-ghg"])
    title: str = Field(..., min_length=1, max_length=255, examples=["FY2024 GHG inventory"])
    description: Optional[str] = None
    parameters: ReportParameters
    format: ReportFormat = ReportFormat.pdf


class ReportScheduleIn(BaseModel):
    frequency: ScheduleFrequency
    next_run: Optional[datetime] = None
    recipients: List[EmailStr] = Field(default_factory=list)
    is_active: bool = True


class ReportScheduleCreate(ReportGenerate):
    schedule: ReportScheduleIn


class ReportShare(BaseModel):
    emails: List[EmailStr] = Field(default_factory=list)
    permission: SharePermission = SharePermission.view
    make_public: bool = False


# ─────────────────────────────────────────────
# 📤 Response
# ─────────────────────────────────────────────
class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    report_type: ReportType
    title: str
    description: Optional[str] = None
    parameters: Dict[str, Any]
    data: Optional[Dict[str, Any]] = None
    status: ReportStatus
    format: ReportFormat
    file_info: Dict[str, Any]
    schedule: Optional[Dict[str, Any]] = None
    generation_metadata: Optional[Dict[str, Any]] = None
    sharing: Dict[str, Any]
    audit_trail: List[Dict[str, Any]]
    failure_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReportSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    report_type: ReportType
    title: str
    status: ReportStatus
    created_at: Optional[datetime] = None


class ReportDownloadOut(BaseModel):
    success: bool = True
    message: str = "Report download started"
    filename: str
    download_url: str
    size: int
