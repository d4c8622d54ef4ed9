from sqlalchemy import (
    Column, Integer, Float, String, Text, DateTime, ForeignKey, JSON, Enum, Index, func
)
from carbonledger.core.database import Base
import enum


class RelationshipType(str, enum.Enum):
    direct_supplier = "Direct Supplier"
    transportation = "Transportation"
    it_services = "IT Services"
    materials = "Materials"
    manufacturing = "Manufacturing"
    energy_provider = "Energy Provider"
    consulting = "Consulting"
    other = "Other"


class IndustrySector(str, enum.Enum):
    manufacturing = "Manufacturing"
    technology = "Technology"
    transportation_logistics = "Transportation & Logistics"
    energy_utilities = "Energy & Utilities"
    materials_mining = "Materials & Mining"
    construction = "Construction"
    agriculture = "Agriculture"
    services = "Services"
    other = "Other"


class ConnectionStatus(str, enum.Enum):
    not_connected = "not-connected"
    invited = "invited"
    connected = "connected"
    disconnected = "disconnected"


class EmissionsDataSource(str, enum.Enum):
    connected = "connected"
    manual = "manual"
    estimated = "estimated"


class VerificationLevel(str, enum.Enum):
    unverified = "unverified"
    self_reported = "self-reported"
    third_party_verified = "third-party-verified"


class SyncFrequency(str, enum.Enum):
    real_time = "real-time"
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class SupplierLifecycle(str, enum.Enum):
    """Soft-delete state. Archived suppliers are never physically removed."""
    active = "active"
    archived = "archived"


class Supplier(Base):
    __tablename__ = "suppliers"
    __table_args__ = (
        Index("ix_suppliers_owner_company", "user_id", "company_name"),
        Index("ix_suppliers_owner_lifecycle", "user_id", "lifecycle"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Company profile
    company_name = Column(String(100), nullable=False)
    registration_number = Column(String(100), nullable=True)
    website = Column(String(255), nullable=True)
    logo = Column(String(255), nullable=True)
    contact_info = Column(JSON, nullable=True)

    # Relationship
    relationship_type = Column(Enum(RelationshipType), nullable=False, index=True)
    tier = Column(Integer, nullable=False, default=1)
    contract_value = Column(JSON, nullable=True)
    contract_period = Column(JSON, nullable=True)

    # Industry / location metadata
    industry = Column(JSON, nullable=True)
    location = Column(JSON, nullable=True)

    # Emissions data, total_co2e is derived from the three scopes on every write
    scope1 = Column(Float, nullable=False, default=0.0)
    scope2 = Column(Float, nullable=False, default=0.0)
    scope3 = Column(Float, nullable=False, default=0.0)
    total_co2e = Column(Float, nullable=False, default=0.0)
    data_source = Column(Enum(EmissionsDataSource), nullable=False, default=EmissionsDataSource.manual)
    verification_level = Column(Enum(VerificationLevel), nullable=False, default=VerificationLevel.unverified)
    emissions_last_updated = Column(DateTime(timezone=True), server_default=func.now())

    # Platform connection
    connection_status = Column(Enum(ConnectionStatus), nullable=False, default=ConnectionStatus.not_connected, index=True)
    connected_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    invitation_sent = Column(DateTime(timezone=True), nullable=True)
    last_sync_date = Column(DateTime(timezone=True), nullable=True)
    sync_frequency = Column(Enum(SyncFrequency), nullable=False, default=SyncFrequency.monthly)

    # Performance / risk
    performance = Column(JSON, nullable=True)
    risk_assessment = Column(JSON, nullable=True)
    documents = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    lifecycle = Column(Enum(SupplierLifecycle), nullable=False, default=SupplierLifecycle.active)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_active(self) -> bool:
        return self.lifecycle == SupplierLifecycle.active

    @property
    def company(self) -> dict:
        return {
            "name": self.company_name,
            "registration_number": self.registration_number,
            "website": self.website,
            "logo": self.logo,
        }

    @property
    def relationship(self) -> dict:
        return {
            "type": self.relationship_type,
            "tier": self.tier,
            "contract_value": self.contract_value,
            "contract_period": self.contract_period,
        }

    @property
    def emissions_data(self) -> dict:
        return {
            "scope1": self.scope1,
            "scope2": self.scope2,
            "scope3": self.scope3,
            "total_co2e": self.total_co2e,
            "data_source": self.data_source,
            "verification_level": self.verification_level,
            "last_updated": self.emissions_last_updated,
        }

    @property
    def platform_data(self) -> dict:
        return {
            "connected_user_id": self.connected_user_id,
            "invitation_sent": self.invitation_sent,
            "last_sync_date": self.last_sync_date,
            "sync_frequency": self.sync_frequency,
        }

    def __repr__(self):
        return f"<Supplier id={self.id} name={self.company_name} CO₂e={self.total_co2e}>"
