from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from carbonledger.core.database import get_db
from carbonledger.dependencies.redis_cache import RedisCache, get_dashboard_cache
from carbonledger.middleware.permissions import (
    ResourceType, Operation, verify_permission, manager_or_admin, get_owned_emission,
)
from carbonledger.models.user import User
from carbonledger.models.emissions import EmissionRecord, EmissionStatus
from carbonledger.schemas.common import Page
from carbonledger.schemas.emissions import (
    EmissionCreate, EmissionBulkCreate, EmissionUpdate, EmissionOut, EmissionSummaryOut,
)
from carbonledger.services import emissions as emission_service
from carbonledger.services.dashboard import scope_rollup, monthly_rollup, invalidate_owner
from carbonledger.utils.time import current_year

router = APIRouter()


# ─────────────────────────────────────────────
# 📊 List emissions with optional filters
# ─────────────────────────────────────────────
@router.get("/", response_model=Page[EmissionOut])
async def list_emissions(
    scope: Optional[int] = Query(None, ge=1, le=3),
    year: Optional[int] = None,
    status: Optional[EmissionStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.EMISSION, Operation.LIST)),
):
    records, total = await emission_service.list_emissions(
        db, current_user.id, scope=scope, year=year, status=status, page=page, limit=limit
    )
    return Page[EmissionOut].build([EmissionOut.model_validate(r) for r in records], total, page, limit)


# ─────────────────────────────────────────────
# 📈 Summary statistics for a year
# ─────────────────────────────────────────────
@router.get("/summary/stats", response_model=EmissionSummaryOut)
async def emission_summary(
    year: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.EMISSION, Operation.READ)),
):
    year = year or current_year()
    scopes = await scope_rollup(db, current_user.id, year)
    return EmissionSummaryOut(
        year=year,
        total_emissions=sum(row["total_co2e"] for row in scopes),
        scope_summary=scopes,
        monthly_trends=await monthly_rollup(db, current_user.id, year),
    )


# ─────────────────────────────────────────────
# 🆕 Register new emission record
# ─────────────────────────────────────────────
@router.post("/", response_model=EmissionOut, status_code=201)
async def create_emission_record(
    data: EmissionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.EMISSION, Operation.CREATE)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    record = await emission_service.create_emission(db, data, current_user)
    await invalidate_owner(cache, current_user.id)
    return record


# ─────────────────────────────────────────────
# 📦 Bulk import (managers / admins)
# ─────────────────────────────────────────────
@router.post("/bulk", response_model=List[EmissionOut], status_code=201)
async def bulk_import_emissions(
    data: EmissionBulkCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(manager_or_admin),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    records = await emission_service.bulk_create_emissions(db, data.emissions, current_user)
    await invalidate_owner(cache, current_user.id)
    return records


# ─────────────────────────────────────────────
# 🔍 Get emission detail by ID
# ─────────────────────────────────────────────
@router.get("/{emission_id}", response_model=EmissionOut)
async def get_emission_record(
    record: EmissionRecord = Depends(get_owned_emission),
    current_user: User = Depends(verify_permission(ResourceType.EMISSION, Operation.READ)),
):
    return record


# ─────────────────────────────────────────────
# ✏️ Update emission record
# ─────────────────────────────────────────────
@router.put("/{emission_id}", response_model=EmissionOut)
async def update_emission_record(
    data: EmissionUpdate,
    record: EmissionRecord = Depends(get_owned_emission),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.EMISSION, Operation.UPDATE)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    record = await emission_service.update_emission(db, record, data, current_user)
    await invalidate_owner(cache, current_user.id)
    return record


# ─────────────────────────────────────────────
# 🗑️ Delete emission record
# ─────────────────────────────────────────────
@router.delete("/{emission_id}", status_code=204)
async def delete_emission_record(
    record: EmissionRecord = Depends(get_owned_emission),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.EMISSION, Operation.DELETE)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    await emission_service.delete_emission(db, record, current_user)
    await invalidate_owner(cache, current_user.id)
    return Response(status_code=204)
