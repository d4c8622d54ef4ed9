from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from carbonledger.core.database import get_db
from carbonledger.dependencies.redis_cache import RedisCache, get_dashboard_cache
from carbonledger.middleware.permissions import ResourceType, Operation, verify_permission
from carbonledger.models.user import User
from carbonledger.schemas.dashboard import DashboardOverview, EmissionsChart
from carbonledger.services import dashboard as dashboard_service
from carbonledger.utils.time import current_year

router = APIRouter()


# ─────────────────────────────────────────────
# 🧭 Overview
# ─────────────────────────────────────────────
@router.get("/overview", response_model=DashboardOverview)
async def dashboard_overview(
    year: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.DASHBOARD, Operation.READ)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    return await dashboard_service.get_overview(db, current_user.id, year or current_year(), cache)


# ─────────────────────────────────────────────
# 📈 Monthly chart series
# ─────────────────────────────────────────────
@router.get("/emissions-chart", response_model=EmissionsChart)
async def emissions_chart(
    year: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.DASHBOARD, Operation.READ)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    return await dashboard_service.get_emissions_chart(db, current_user.id, year or current_year(), cache)
