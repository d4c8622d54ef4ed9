from pydantic import BaseModel
from typing import List, Optional

from carbonledger.schemas.report import ReportSummary


class ScopeRollup(BaseModel):
    scope: int
    total_co2e: float
    entry_count: int


class MonthlyRollup(BaseModel):
    scope: int
    month: Optional[int] = None
    total_co2e: float


class SupplierRollup(BaseModel):
    total_suppliers: int = 0
    connected_suppliers: int = 0
    total_scope3: float = 0.0


class DashboardOverview(BaseModel):
    success: bool = True
    year: int
    total_emissions: float
    emissions_by_scope: List[ScopeRollup]
    suppliers: SupplierRollup
    recent_reports: List[ReportSummary]
    monthly_trends: List[MonthlyRollup]


class EmissionsChart(BaseModel):
    success: bool = True
    year: int
    scope1: List[float]
    scope2: List[float]
    scope3: List[float]
