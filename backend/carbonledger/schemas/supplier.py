from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from enum import Enum
from datetime import date, datetime

from carbonledger.models.supplier import (
    ConnectionStatus, EmissionsDataSource, IndustrySector, RelationshipType, SyncFrequency, VerificationLevel,
)


class EmissionsTrend(str, Enum):
    improving = "improving"
    stable = "stable"
    declining = "declining"
    unknown = "unknown"


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


# ─────────────────────────────────────────────
# 🏢 Company profile / contacts
# ─────────────────────────────────────────────
class CompanyProfile(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Nordic Freight AB"])
    registration_number: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None


class CompanyProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    registration_number: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None


class PrimaryContact(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    position: Optional[str] = None


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class ContactInfo(BaseModel):
    primary_contact: Optional[PrimaryContact] = None
    address: Optional[Address] = None


# ─────────────────────────────────────────────
# 🤝 Relationship
# ─────────────────────────────────────────────
class ContractValue(BaseModel):
    amount: Optional[float] = Field(None, ge=0)
    currency: str = "USD"


class ContractPeriod(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SupplierRelationship(BaseModel):
    type: RelationshipType = Field(..., examples=["Transportation"])
    tier: int = Field(1, ge=1, le=3)
    contract_value: Optional[ContractValue] = None
    contract_period: Optional[ContractPeriod] = None


class SupplierRelationshipUpdate(BaseModel):
    type: Optional[RelationshipType] = None
    tier: Optional[int] = Field(None, ge=1, le=3)
    contract_value: Optional[ContractValue] = None
    contract_period: Optional[ContractPeriod] = None


# ─────────────────────────────────────────────
# 🌍 Industry / location
# ─────────────────────────────────────────────
class Industry(BaseModel):
    sector: Optional[IndustrySector] = None
    naics_code: Optional[str] = None
    sic_code: Optional[str] = None


class Headquarters(BaseModel):
    country: Optional[str] = None
    city: Optional[str] = None


class SupplierLocation(BaseModel):
    region: Optional[str] = None
    operating_countries: List[str] = Field(default_factory=list)
    headquarters: Optional[Headquarters] = None


# ─────────────────────────────────────────────
# 🏭 Emissions data
# ─────────────────────────────────────────────
class EmissionsDataIn(BaseModel):
    scope1: float = Field(0.0, ge=0, examples=[10.0])
    scope2: float = Field(0.0, ge=0, examples=[20.0])
    scope3: float = Field(0.0, ge=0, examples=[5.0])
    data_source: EmissionsDataSource = EmissionsDataSource.manual
    verification_level: VerificationLevel = VerificationLevel.unverified


class EmissionsDataUpdate(BaseModel):
    scope1: Optional[float] = Field(None, ge=0)
    scope2: Optional[float] = Field(None, ge=0)
    scope3: Optional[float] = Field(None, ge=0)
    data_source: Optional[EmissionsDataSource] = None
    verification_level: Optional[VerificationLevel] = None


class EmissionsDataOut(BaseModel):
    scope1: float
    scope2: float
    scope3: float
    total_co2e: float
    data_source: EmissionsDataSource
    verification_level: VerificationLevel
    last_updated: Optional[datetime] = None


class PlatformDataIn(BaseModel):
    sync_frequency: SyncFrequency = SyncFrequency.monthly


class PlatformDataOut(BaseModel):
    connected_user_id: Optional[int] = None
    invitation_sent: Optional[datetime] = None
    last_sync_date: Optional[datetime] = None
    sync_frequency: SyncFrequency


# ─────────────────────────────────────────────
# 📊 Performance / risk / documents
# ─────────────────────────────────────────────
class Certification(BaseModel):
    name: str
    issuing_body: Optional[str] = None
    valid_until: Optional[date] = None


class SupplierTarget(BaseModel):
    type: Optional[str] = None
    target: Optional[str] = None
    deadline: Optional[date] = None
    progress: Optional[float] = Field(None, ge=0, le=100)


class Performance(BaseModel):
    emissions_trend: EmissionsTrend = EmissionsTrend.unknown
    sustainability_score: Optional[float] = Field(None, ge=0, le=100)
    certifications: List[Certification] = Field(default_factory=list)
    targets: List[SupplierTarget] = Field(default_factory=list)


class RiskAssessment(BaseModel):
    emission_risk: RiskLevel = RiskLevel.medium
    data_quality_risk: RiskLevel = RiskLevel.medium
    geographic_risk: RiskLevel = RiskLevel.low
    business_continuity_risk: RiskLevel = RiskLevel.low


class SupplierDocument(BaseModel):
    type: Optional[str] = None
    filename: str
    path: Optional[str] = None
    upload_date: Optional[datetime] = None


# ─────────────────────────────────────────────
# ✅ Create / ✏️ Update
# ─────────────────────────────────────────────
class SupplierCreate(BaseModel):
    company: CompanyProfile
    contact_info: Optional[ContactInfo] = None
    relationship: SupplierRelationship
    industry: Optional[Industry] = None
    location: Optional[SupplierLocation] = None
    emissions_data: EmissionsDataIn = Field(default_factory=EmissionsDataIn)
    connection_status: ConnectionStatus = ConnectionStatus.not_connected
    platform_data: PlatformDataIn = Field(default_factory=PlatformDataIn)
    performance: Optional[Performance] = None
    risk_assessment: Optional[RiskAssessment] = None
    documents: List[SupplierDocument] = Field(default_factory=list)
    notes: Optional[str] = None


class SupplierUpdate(BaseModel):
    company: Optional[CompanyProfileUpdate] = None
    contact_info: Optional[ContactInfo] = None
    relationship: Optional[SupplierRelationshipUpdate] = None
    industry: Optional[Industry] = None
    location: Optional[SupplierLocation] = None
    emissions_data: Optional[EmissionsDataUpdate] = None
    connection_status: Optional[ConnectionStatus] = None
    platform_data: Optional[PlatformDataIn] = None
    performance: Optional[Performance] = None
    risk_assessment: Optional[RiskAssessment] = None
    documents: Optional[List[SupplierDocument]] = None
    notes: Optional[str] = None


# ─────────────────────────────────────────────
# 📤 Response
# ─────────────────────────────────────────────
class SupplierRelationshipOut(BaseModel):
    type: RelationshipType
    tier: int
    contract_value: Optional[ContractValue] = None
    contract_period: Optional[ContractPeriod] = None


class SupplierOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    company: CompanyProfile
    contact_info: Optional[ContactInfo] = None
    relationship: SupplierRelationshipOut
    industry: Optional[Industry] = None
    location: Optional[SupplierLocation] = None
    emissions_data: EmissionsDataOut
    connection_status: ConnectionStatus
    platform_data: PlatformDataOut
    performance: Optional[Performance] = None
    risk_assessment: Optional[RiskAssessment] = None
    documents: Optional[List[SupplierDocument]] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─────────────────────────────────────────────
# ✉️ Invitations
# ─────────────────────────────────────────────
class SupplierInvite(BaseModel):
    email: EmailStr
    message: Optional[str] = Field(None, max_length=500)


class SupplierInviteOut(BaseModel):
    success: bool = True
    message: str = "Invitation sent successfully"
    supplier_name: str
    invited_email: EmailStr
    invitation_date: datetime


# ─────────────────────────────────────────────
# 🕸️ Network / analytics
# ─────────────────────────────────────────────
class ScopeBreakdown(BaseModel):
    scope1: float = 0.0
    scope2: float = 0.0
    scope3: float = 0.0


class NetworkNode(BaseModel):
    id: Optional[int] = None
    name: str
    type: str
    relationship: Optional[RelationshipType] = None
    emissions: ScopeBreakdown
    total: float
    connection_status: Optional[ConnectionStatus] = None
    children: List["NetworkNode"] = Field(default_factory=list)


class TypePerformance(BaseModel):
    type: RelationshipType
    total_suppliers: int
    total_emissions: float
    avg_emissions: float
    connected_count: int
    verified_count: int


class ConnectionSummary(BaseModel):
    connection_status: ConnectionStatus
    count: int
    total_emissions: float


class SupplierAnalyticsOut(BaseModel):
    success: bool = True
    performance_by_type: List[TypePerformance]
    connection_summary: List[ConnectionSummary]


NetworkNode.model_rebuild()
