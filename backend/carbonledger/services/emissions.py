# Path: backend/carbonledger/services/emissions.py

from typing import Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from carbonledger.models.emissions import EmissionRecord, EmissionStatus
from carbonledger.models.user import User
from carbonledger.schemas.emissions import EmissionCreate, EmissionUpdate, ReportingPeriod
from carbonledger.core.logging import api_logger
from carbonledger.core.security import is_elevated
from carbonledger.exceptions.ledger_exceptions import InvalidStatusTransition, PublishedRecordError
from carbonledger.utils.time import period_bounds, utc_now


# ─────────────────────────────────────────────
# 🧮 Derived fields
# ─────────────────────────────────────────────
def compute_total_co2e(entries: Iterable[dict]) -> float:
    """Sum of ``co2e_amount`` across serialised entries. An empty list totals 0."""
    return float(sum(entry.get("co2e_amount", 0.0) for entry in entries))


def recompute_totals(record: EmissionRecord) -> EmissionRecord:
    record.total_co2e = compute_total_co2e(record.entries or [])
    return record


def apply_reporting_period(record: EmissionRecord, period: ReportingPeriod) -> EmissionRecord:
    """Copy the period components onto the record and refresh its calendar bounds."""
    record.reporting_year = period.year
    record.reporting_quarter = period.quarter
    record.reporting_month = period.month
    record.period_start, record.period_end = period_bounds(period.year, period.quarter, period.month)
    return record


# ─────────────────────────────────────────────
# 🚦 Status rules
# ─────────────────────────────────────────────
def check_status_transition(current: EmissionStatus, new: EmissionStatus, actor_elevated: bool) -> None:
    """
    Forward moves along draft -> submitted -> verified -> published are open to
    every owner (steps may be skipped). Backward moves need an elevated actor.
    """
    if new.rank < current.rank and not actor_elevated:
        raise InvalidStatusTransition(
            f"Cannot move emission record from {current.value} back to {new.value}"
        )


def ensure_mutable(record: EmissionRecord, user: User) -> None:
    if record.is_published and not is_elevated(user):
        raise PublishedRecordError()


# ─────────────────────────────────────────────
# 🏗️ Record construction
# ─────────────────────────────────────────────
def build_record(data: EmissionCreate, user: User) -> EmissionRecord:
    record = EmissionRecord(
        user_id=user.id,
        company=data.company or user.company or user.full_name,
        scope=data.scope,
        entries=[entry.model_dump(mode="json") for entry in data.entries],
        status=data.status,
        methodology=data.methodology.model_dump(mode="json") if data.methodology else None,
        last_modified=utc_now(),
    )
    apply_reporting_period(record, data.reporting_period)
    return recompute_totals(record)


def apply_update(record: EmissionRecord, data: EmissionUpdate, user: User) -> EmissionRecord:
    ensure_mutable(record, user)

    if data.status is not None and data.status != record.status:
        check_status_transition(record.status, data.status, is_elevated(user))
        record.status = data.status
    if data.company is not None:
        record.company = data.company
    if data.reporting_period is not None:
        apply_reporting_period(record, data.reporting_period)
    if data.entries is not None:
        # JSON columns are reassigned, never mutated in place
        record.entries = [entry.model_dump(mode="json") for entry in data.entries]
    if data.methodology is not None:
        record.methodology = data.methodology.model_dump(mode="json")

    record.last_modified = utc_now()
    return recompute_totals(record)


# ─────────────────────────────────────────────
# 📂 Persistence
# ─────────────────────────────────────────────
async def list_emissions(
    db: AsyncSession,
    user_id: int,
    scope: Optional[int] = None,
    year: Optional[int] = None,
    status: Optional[EmissionStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[EmissionRecord], int]:
    """Owner-scoped page of records, newest reporting year first then by scope."""
    stmt = select(EmissionRecord).where(EmissionRecord.user_id == user_id)
    if scope is not None:
        stmt = stmt.where(EmissionRecord.scope == scope)
    if year is not None:
        stmt = stmt.where(EmissionRecord.reporting_year == year)
    if status is not None:
        stmt = stmt.where(EmissionRecord.status == status)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))

    stmt = (
        stmt.order_by(desc(EmissionRecord.reporting_year), EmissionRecord.scope, EmissionRecord.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total or 0


async def create_emission(db: AsyncSession, data: EmissionCreate, user: User) -> EmissionRecord:
    record = build_record(data, user)
    db.add(record)
    await db.commit()
    await db.refresh(record)

    api_logger.info(
        f"Emission record {record.id} created: scope {record.scope}, "
        f"{record.total_co2e:.2f} CO₂e, user {user.id}"
    )
    return record


async def bulk_create_emissions(db: AsyncSession, items: List[EmissionCreate], user: User) -> List[EmissionRecord]:
    """All-or-nothing import: every record is flushed in one transaction."""
    records = [build_record(item, user) for item in items]
    db.add_all(records)
    await db.commit()
    for record in records:
        await db.refresh(record)

    api_logger.info(f"Bulk import of {len(records)} emission records by user {user.id}")
    return records


async def update_emission(
    db: AsyncSession, record: EmissionRecord, data: EmissionUpdate, user: User
) -> EmissionRecord:
    apply_update(record, data, user)
    await db.commit()
    await db.refresh(record)

    api_logger.info(f"Emission record {record.id} updated by user {user.id} (status {record.status.value})")
    return record


async def delete_emission(db: AsyncSession, record: EmissionRecord, user: User) -> None:
    ensure_mutable(record, user)
    record_id = record.id
    await db.delete(record)
    await db.commit()

    api_logger.info(f"Emission record {record_id} deleted by user {user.id}")
