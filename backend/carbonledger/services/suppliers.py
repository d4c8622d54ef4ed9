# Path: backend/carbonledger/services/suppliers.py

from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from carbonledger.core.logging import api_logger
from carbonledger.models.emissions import EmissionRecord
from carbonledger.models.supplier import (
    ConnectionStatus, RelationshipType, Supplier, SupplierLifecycle, VerificationLevel,
)
from carbonledger.models.user import User
from carbonledger.schemas.supplier import SupplierCreate, SupplierInvite, SupplierUpdate
from carbonledger.utils.time import utc_now


# ─────────────────────────────────────────────
# 🧮 Derived totals
# ─────────────────────────────────────────────
def compute_supplier_total(scope1: float, scope2: float, scope3: float) -> float:
    return float((scope1 or 0.0) + (scope2 or 0.0) + (scope3 or 0.0))


def recompute_supplier_totals(supplier: Supplier) -> Supplier:
    supplier.total_co2e = compute_supplier_total(supplier.scope1, supplier.scope2, supplier.scope3)
    return supplier


def _dump(model) -> Optional[dict]:
    return model.model_dump(mode="json") if model is not None else None


# ─────────────────────────────────────────────
# 🏗️ Payload -> columns
# ─────────────────────────────────────────────
def build_supplier(data: SupplierCreate, user: User) -> Supplier:
    relationship = data.relationship
    emissions = data.emissions_data
    supplier = Supplier(
        user_id=user.id,
        company_name=data.company.name,
        registration_number=data.company.registration_number,
        website=data.company.website,
        logo=data.company.logo,
        contact_info=_dump(data.contact_info),
        relationship_type=relationship.type,
        tier=relationship.tier,
        contract_value=_dump(relationship.contract_value),
        contract_period=_dump(relationship.contract_period),
        industry=_dump(data.industry),
        location=_dump(data.location),
        scope1=emissions.scope1,
        scope2=emissions.scope2,
        scope3=emissions.scope3,
        data_source=emissions.data_source,
        verification_level=emissions.verification_level,
        emissions_last_updated=utc_now(),
        connection_status=data.connection_status,
        sync_frequency=data.platform_data.sync_frequency,
        performance=_dump(data.performance),
        risk_assessment=_dump(data.risk_assessment),
        documents=[document.model_dump(mode="json") for document in data.documents],
        notes=data.notes,
        lifecycle=SupplierLifecycle.active,
    )
    return recompute_supplier_totals(supplier)


def apply_supplier_update(supplier: Supplier, data: SupplierUpdate) -> Supplier:
    if data.company is not None:
        for field, value in data.company.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(supplier, "company_name" if field == "name" else field, value)

    if data.relationship is not None:
        relationship = data.relationship
        if relationship.type is not None:
            supplier.relationship_type = relationship.type
        if relationship.tier is not None:
            supplier.tier = relationship.tier
        if relationship.contract_value is not None:
            supplier.contract_value = _dump(relationship.contract_value)
        if relationship.contract_period is not None:
            supplier.contract_period = _dump(relationship.contract_period)

    if data.emissions_data is not None:
        changes = data.emissions_data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(supplier, field, value)
        if {"scope1", "scope2", "scope3"} & changes.keys():
            supplier.emissions_last_updated = utc_now()

    for field in ("contact_info", "industry", "location", "performance", "risk_assessment"):
        value = getattr(data, field)
        if value is not None:
            setattr(supplier, field, _dump(value))

    if data.documents is not None:
        supplier.documents = [document.model_dump(mode="json") for document in data.documents]
    if data.connection_status is not None:
        supplier.connection_status = data.connection_status
    if data.platform_data is not None:
        supplier.sync_frequency = data.platform_data.sync_frequency
    if data.notes is not None:
        supplier.notes = data.notes

    return recompute_supplier_totals(supplier)


# ─────────────────────────────────────────────
# 📂 Persistence
# ─────────────────────────────────────────────
def _active(user_id: int):
    return select(Supplier).where(Supplier.user_id == user_id, Supplier.lifecycle == SupplierLifecycle.active)


async def list_suppliers(
    db: AsyncSession,
    user_id: int,
    connection_status: Optional[ConnectionStatus] = None,
    tier: Optional[int] = None,
    relationship_type: Optional[RelationshipType] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Supplier], int]:
    """Active suppliers of one owner, highest emitters first."""
    stmt = _active(user_id)
    if connection_status is not None:
        stmt = stmt.where(Supplier.connection_status == connection_status)
    if tier is not None:
        stmt = stmt.where(Supplier.tier == tier)
    if relationship_type is not None:
        stmt = stmt.where(Supplier.relationship_type == relationship_type)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))

    stmt = stmt.order_by(desc(Supplier.total_co2e), Supplier.id).offset((page - 1) * limit).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all()), total or 0


async def create_supplier(db: AsyncSession, data: SupplierCreate, user: User) -> Supplier:
    supplier = build_supplier(data, user)
    db.add(supplier)
    await db.commit()
    await db.refresh(supplier)

    api_logger.info(f"Supplier {supplier.id} ({supplier.company_name}) added by user {user.id}")
    return supplier


async def update_supplier(db: AsyncSession, supplier: Supplier, data: SupplierUpdate, user: User) -> Supplier:
    apply_supplier_update(supplier, data)
    await db.commit()
    await db.refresh(supplier)

    api_logger.info(f"Supplier {supplier.id} updated by user {user.id}")
    return supplier


async def archive_supplier(db: AsyncSession, supplier: Supplier, user: User) -> None:
    """Soft delete: the row stays, flagged archived."""
    supplier.lifecycle = SupplierLifecycle.archived
    await db.commit()

    api_logger.info(f"Supplier {supplier.id} archived by user {user.id}")


async def invite_supplier(db: AsyncSession, supplier: Supplier, invite: SupplierInvite, user: User) -> Dict[str, Any]:
    sent_at = utc_now()
    supplier.connection_status = ConnectionStatus.invited
    supplier.invitation_sent = sent_at
    await db.commit()

    # Delivery is left to the mail integration; the invitation is only recorded here
    api_logger.info(
        f"Supplier {supplier.id} invited to connect by user {user.id}",
        extra={"structured": {"supplier_id": supplier.id, "email": invite.email}},
    )
    return {
        "supplier_name": supplier.company_name,
        "invited_email": invite.email,
        "invitation_date": sent_at,
    }


# ─────────────────────────────────────────────
# 🕸️ Network / analytics
# ─────────────────────────────────────────────
def _scope_breakdown(scope1: float, scope2: float, scope3: float) -> Dict[str, float]:
    return {"scope1": float(scope1 or 0.0), "scope2": float(scope2 or 0.0), "scope3": float(scope3 or 0.0)}


async def owner_scope_totals(db: AsyncSession, user_id: int) -> Dict[str, float]:
    stmt = (
        select(EmissionRecord.scope, func.sum(EmissionRecord.total_co2e))
        .where(EmissionRecord.user_id == user_id)
        .group_by(EmissionRecord.scope)
    )
    totals = {scope: float(total or 0.0) for scope, total in (await db.execute(stmt)).all()}
    return _scope_breakdown(totals.get(1, 0.0), totals.get(2, 0.0), totals.get(3, 0.0))


async def supplier_network(db: AsyncSession, user: User) -> Dict[str, Any]:
    """
    Two-level tree: the owner's company at the root, active suppliers as children.

    The root carries the owner's own recorded emissions, all years combined.
    """
    suppliers = (await db.execute(_active(user.id).order_by(Supplier.tier, Supplier.id))).scalars().all()
    root_emissions = await owner_scope_totals(db, user.id)

    return {
        "id": None,
        "name": user.company or user.full_name,
        "type": "root",
        "emissions": root_emissions,
        "total": sum(root_emissions.values()),
        "children": [
            {
                "id": supplier.id,
                "name": supplier.company_name,
                "type": f"tier{supplier.tier}",
                "relationship": supplier.relationship_type,
                "emissions": _scope_breakdown(supplier.scope1, supplier.scope2, supplier.scope3),
                "total": supplier.total_co2e,
                "connection_status": supplier.connection_status,
                "children": [],
            }
            for supplier in suppliers
        ],
    }


def summarise_performance(suppliers: List[Supplier]) -> Dict[str, Any]:
    """Group active suppliers by relationship type and by connection status."""
    by_type: Dict[RelationshipType, List[Supplier]] = defaultdict(list)
    by_status: Dict[ConnectionStatus, List[Supplier]] = defaultdict(list)
    for supplier in suppliers:
        by_type[supplier.relationship_type].append(supplier)
        by_status[supplier.connection_status].append(supplier)

    performance = []
    for relationship_type, members in by_type.items():
        total = sum(member.total_co2e or 0.0 for member in members)
        performance.append({
            "type": relationship_type,
            "total_suppliers": len(members),
            "total_emissions": total,
            "avg_emissions": total / len(members),
            "connected_count": sum(1 for m in members if m.connection_status == ConnectionStatus.connected),
            "verified_count": sum(
                1 for m in members if m.verification_level == VerificationLevel.third_party_verified
            ),
        })
    performance.sort(key=lambda row: (-row["total_emissions"], row["type"].value))

    connections = [
        {
            "connection_status": status,
            "count": len(members),
            "total_emissions": sum(member.total_co2e or 0.0 for member in members),
        }
        for status, members in by_status.items()
    ]
    connections.sort(key=lambda row: row["connection_status"].value)

    return {"performance_by_type": performance, "connection_summary": connections}


async def supplier_analytics(db: AsyncSession, user_id: int) -> Dict[str, Any]:
    suppliers = (await db.execute(_active(user_id))).scalars().all()
    return summarise_performance(list(suppliers))
