from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from carbonledger.core.database import get_db
from carbonledger.dependencies.redis_cache import RedisCache, get_dashboard_cache
from carbonledger.middleware.permissions import (
    ResourceType, Operation, verify_permission, get_owned_supplier,
)
from carbonledger.models.user import User
from carbonledger.models.supplier import ConnectionStatus, RelationshipType, Supplier
from carbonledger.schemas.common import Message, Page
from carbonledger.schemas.supplier import (
    SupplierCreate, SupplierUpdate, SupplierOut, SupplierInvite, SupplierInviteOut,
    NetworkNode, SupplierAnalyticsOut,
)
from carbonledger.services import suppliers as supplier_service
from carbonledger.services.dashboard import invalidate_owner

router = APIRouter()


# ─────────────────────────────────────────────
# 📋 List suppliers
# ─────────────────────────────────────────────
@router.get("/", response_model=Page[SupplierOut])
async def list_suppliers(
    connection_status: Optional[ConnectionStatus] = None,
    tier: Optional[int] = Query(None, ge=1, le=3),
    relationship_type: Optional[RelationshipType] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.LIST)),
):
    suppliers, total = await supplier_service.list_suppliers(
        db, current_user.id,
        connection_status=connection_status, tier=tier, relationship_type=relationship_type,
        page=page, limit=limit,
    )
    return Page[SupplierOut].build([SupplierOut.model_validate(s) for s in suppliers], total, page, limit)


# ─────────────────────────────────────────────
# 🕸️ Supply-chain network tree
# ─────────────────────────────────────────────
@router.get("/network/visualization", response_model=NetworkNode)
async def supplier_network(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.READ)),
):
    return await supplier_service.supplier_network(db, current_user)


# ─────────────────────────────────────────────
# 📊 Performance analytics
# ─────────────────────────────────────────────
@router.get("/analytics/performance", response_model=SupplierAnalyticsOut)
async def supplier_performance(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.READ)),
):
    return await supplier_service.supplier_analytics(db, current_user.id)


# ─────────────────────────────────────────────
# 🆕 Add supplier
# ─────────────────────────────────────────────
@router.post("/", response_model=SupplierOut, status_code=201)
async def create_supplier(
    data: SupplierCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.CREATE)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    supplier = await supplier_service.create_supplier(db, data, current_user)
    await invalidate_owner(cache, current_user.id)
    return supplier


# ─────────────────────────────────────────────
# 🔍 Supplier detail
# ─────────────────────────────────────────────
@router.get("/{supplier_id}", response_model=SupplierOut)
async def get_supplier(
    supplier: Supplier = Depends(get_owned_supplier),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.READ)),
):
    return supplier


# ─────────────────────────────────────────────
# ✏️ Update supplier
# ─────────────────────────────────────────────
@router.put("/{supplier_id}", response_model=SupplierOut)
async def update_supplier(
    data: SupplierUpdate,
    supplier: Supplier = Depends(get_owned_supplier),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.UPDATE)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    supplier = await supplier_service.update_supplier(db, supplier, data, current_user)
    await invalidate_owner(cache, current_user.id)
    return supplier


# ─────────────────────────────────────────────
# 🗄️ Archive supplier (soft delete)
# ─────────────────────────────────────────────
@router.delete("/{supplier_id}", response_model=Message)
async def archive_supplier(
    supplier: Supplier = Depends(get_owned_supplier),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.DELETE)),
    cache: Optional[RedisCache] = Depends(get_dashboard_cache),
):
    await supplier_service.archive_supplier(db, supplier, current_user)
    await invalidate_owner(cache, current_user.id)
    return Message(message="Supplier removed successfully")


# ─────────────────────────────────────────────
# ✉️ Invite supplier to the platform
# ─────────────────────────────────────────────
@router.post("/{supplier_id}/invite", response_model=SupplierInviteOut)
async def invite_supplier(
    invite: SupplierInvite,
    supplier: Supplier = Depends(get_owned_supplier),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.SUPPLIER, Operation.EXECUTE)),
):
    result = await supplier_service.invite_supplier(db, supplier, invite, current_user)
    return SupplierInviteOut(**result)
