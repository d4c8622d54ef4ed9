# Path: backend/carbonledger/services/dashboard.py

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, desc

from carbonledger.core.config import settings
from carbonledger.core.logging import api_logger
from carbonledger.dependencies.redis_cache import RedisCache
from carbonledger.models.emissions import EmissionRecord
from carbonledger.models.report import Report
from carbonledger.models.supplier import ConnectionStatus, Supplier, SupplierLifecycle
from carbonledger.schemas.dashboard import DashboardOverview, EmissionsChart
from carbonledger.schemas.report import ReportSummary

MONTHS_PER_YEAR = 12


# ─────────────────────────────────────────────
# 📊 Rollup queries
# ─────────────────────────────────────────────
async def scope_rollup(db: AsyncSession, user_id: int, year: int) -> List[Dict[str, Any]]:
    """Per-scope totals for one reporting year, ordered by scope."""
    stmt = (
        select(
            EmissionRecord.scope,
            func.sum(EmissionRecord.total_co2e),
            func.sum(func.json_array_length(EmissionRecord.entries)),
            func.max(EmissionRecord.last_modified),
        )
        .where(EmissionRecord.user_id == user_id, EmissionRecord.reporting_year == year)
        .group_by(EmissionRecord.scope)
        .order_by(EmissionRecord.scope)
    )
    rows = (await db.execute(stmt)).all()
    return [
        {
            "scope": scope,
            "total_co2e": float(total or 0.0),
            "entry_count": int(entry_count or 0),
            "last_updated": last_updated,
        }
        for scope, total, entry_count, last_updated in rows
    ]


async def monthly_rollup(db: AsyncSession, user_id: int, year: int) -> List[Dict[str, Any]]:
    """
    Totals per (scope, reporting month) for one year, ordered by month then scope.

    Records without a month come first. Months with no data are absent.
    """
    stmt = (
        select(EmissionRecord.scope, EmissionRecord.reporting_month, func.sum(EmissionRecord.total_co2e))
        .where(EmissionRecord.user_id == user_id, EmissionRecord.reporting_year == year)
        .group_by(EmissionRecord.scope, EmissionRecord.reporting_month)
    )
    rows = (await db.execute(stmt)).all()
    # NULL ordering differs between backends, so sort here
    rows = sorted(rows, key=lambda row: (row[1] is not None, row[1] or 0, row[0]))
    return [
        {"scope": scope, "month": month, "total_co2e": float(total or 0.0)}
        for scope, month, total in rows
    ]


async def supplier_rollup(db: AsyncSession, user_id: int) -> Dict[str, Any]:
    stmt = select(
        func.count(Supplier.id),
        func.sum(case((Supplier.connection_status == ConnectionStatus.connected, 1), else_=0)),
        func.sum(Supplier.total_co2e),
    ).where(Supplier.user_id == user_id, Supplier.lifecycle == SupplierLifecycle.active)
    total, connected, total_scope3 = (await db.execute(stmt)).one()
    return {
        "total_suppliers": int(total or 0),
        "connected_suppliers": int(connected or 0),
        "total_scope3": float(total_scope3 or 0.0),
    }


async def recent_reports(db: AsyncSession, user_id: int, limit: int = 5) -> List[Report]:
    stmt = (
        select(Report)
        .where(Report.user_id == user_id)
        .order_by(desc(Report.created_at), desc(Report.id))
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())


# ─────────────────────────────────────────────
# 📈 Chart shaping
# ─────────────────────────────────────────────
def fill_monthly_series(monthly: List[Dict[str, Any]]) -> Dict[str, List[float]]:
    """
    Spread monthly rollups over twelve zero-filled slots per scope.

    A rollup without a month counts toward January.
    """
    series = {f"scope{scope}": [0.0] * MONTHS_PER_YEAR for scope in (1, 2, 3)}
    for row in monthly:
        key = f"scope{row['scope']}"
        if key not in series:
            continue
        slot = (row["month"] or 1) - 1
        series[key][slot] += row["total_co2e"]
    return series


# ─────────────────────────────────────────────
# 🧭 Views (cached per owner)
# ─────────────────────────────────────────────
async def _cached(cache: Optional[RedisCache], key: str, factory):
    if cache is None:
        return await factory()
    return await cache.get_or_set(key, factory, expire=settings.CACHE_TTL_SECONDS)


async def get_overview(
    db: AsyncSession, user_id: int, year: int, cache: Optional[RedisCache] = None
) -> Dict[str, Any]:
    """
    Emission and supplier rollups come from the cache. Recent reports are
    always read from the store since the worker changes their status.
    """
    async def build():
        scopes = await scope_rollup(db, user_id, year)
        overview = DashboardOverview(
            year=year,
            total_emissions=sum(row["total_co2e"] for row in scopes),
            emissions_by_scope=scopes,
            suppliers=await supplier_rollup(db, user_id),
            recent_reports=[],
            monthly_trends=await monthly_rollup(db, user_id, year),
        )
        return overview.model_dump(mode="json", exclude={"recent_reports"})

    rollups = await _cached(cache, f"{user_id}:overview:{year}", build)
    reports = await recent_reports(db, user_id)
    return {
        **rollups,
        "recent_reports": [ReportSummary.model_validate(report).model_dump(mode="json") for report in reports],
    }


async def get_emissions_chart(
    db: AsyncSession, user_id: int, year: int, cache: Optional[RedisCache] = None
) -> Dict[str, Any]:
    async def build():
        series = fill_monthly_series(await monthly_rollup(db, user_id, year))
        return EmissionsChart(year=year, **series).model_dump(mode="json")

    return await _cached(cache, f"{user_id}:chart:{year}", build)


async def invalidate_owner(cache: Optional[RedisCache], user_id: int) -> None:
    """Drop every cached dashboard view for one owner after a write."""
    if cache is None:
        return
    if await cache.clear_matching(f"{user_id}:*"):
        api_logger.debug(f"Dashboard cache cleared for user {user_id}")
