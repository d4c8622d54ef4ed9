# Path: backend/carbonledger/services/report_jobs.py

import secrets
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from carbonledger.core.config import settings
from carbonledger.core.logging import api_logger
from carbonledger.models.emissions import EmissionRecord, VERIFIED_STATUSES
from carbonledger.models.report import (
    AuditAction, Report, ReportStatus, ReportType, REPORT_TRANSITIONS,
)
from carbonledger.models.supplier import Supplier, SupplierLifecycle
from carbonledger.models.user import User
from carbonledger.schemas.report import ReportGenerate, ReportParameters, ReportScheduleCreate, ReportShare
from carbonledger.exceptions.ledger_exceptions import InvalidReportTransition, ReportNotReady
from carbonledger.utils.time import as_date, utc_now

REPORT_GENERATOR_VERSION = "1.0"


# ─────────────────────────────────────────────
# 🚦 Job state machine
# ─────────────────────────────────────────────
def can_transition(current: ReportStatus, new: ReportStatus) -> bool:
    return new in REPORT_TRANSITIONS.get(current, set())


def transition(report: Report, new_status: ReportStatus) -> Report:
    if not can_transition(report.status, new_status):
        raise InvalidReportTransition(
            f"Report {report.id} cannot move from {report.status.value} to {new_status.value}"
        )
    report.status = new_status
    return report


def audit_entry(action: AuditAction, user_id: Optional[int], details: Optional[Dict[str, Any]] = None) -> dict:
    return {
        "action": action.value,
        "user_id": user_id,
        "timestamp": utc_now().isoformat(),
        "details": details or {},
    }


def append_audit(report: Report, entry: dict) -> None:
    # JSON columns are reassigned, never mutated in place
    report.audit_trail = list(report.audit_trail or []) + [entry]


def mark_completed(
    report: Report,
    payload: Dict[str, Any],
    data_points: int,
    generation_time_ms: float,
) -> Report:
    """generating -> completed. Stores the payload and the generation metadata."""
    transition(report, ReportStatus.completed)
    report.data = payload
    report.failure_reason = None
    report.generation_metadata = {
        "generation_time": round(generation_time_ms, 2),
        "data_points": data_points,
        "version": REPORT_GENERATOR_VERSION,
    }
    report.completed_at = utc_now()
    append_audit(report, audit_entry(AuditAction.generated, report.user_id, {"data_points": data_points}))
    return report


def mark_failed(report: Report, reason: str) -> Report:
    """generating -> failed. A failed job never carries a partial payload."""
    transition(report, ReportStatus.failed)
    report.data = None
    report.failure_reason = reason
    return report


# ─────────────────────────────────────────────
# 🏗️ Job creation
# ─────────────────────────────────────────────
def _new_report(payload: ReportGenerate, user: User, status: ReportStatus) -> Report:
    return Report(
        user_id=user.id,
        report_type=payload.report_type,
        title=payload.title,
        description=payload.description,
        parameters=payload.parameters.model_dump(mode="json"),
        format=payload.format,
        status=status,
        file_info={"download_count": 0},
        sharing={"is_public": False, "share_token": None, "shared_with": []},
        audit_trail=[],
    )


async def create_job(db: AsyncSession, payload: ReportGenerate, user: User) -> Report:
    """Persist a job in ``generating``. The caller hands its id to the report worker."""
    report = _new_report(payload, user, ReportStatus.generating)
    db.add(report)
    await db.commit()
    await db.refresh(report)

    api_logger.info(f"Report job {report.id} ({report.report_type.value}) accepted for user {user.id}")
    return report


async def create_scheduled_job(db: AsyncSession, payload: ReportScheduleCreate, user: User) -> Report:
    """Persist a schedule definition. Scheduled jobs are stored only, never executed."""
    report = _new_report(payload, user, ReportStatus.scheduled)
    report.schedule = payload.schedule.model_dump(mode="json")
    report.audit_trail = [
        audit_entry(AuditAction.scheduled, user.id, {"frequency": payload.schedule.frequency.value})
    ]
    db.add(report)
    await db.commit()
    await db.refresh(report)

    api_logger.info(f"Report schedule {report.id} ({payload.schedule.frequency.value}) stored for user {user.id}")
    return report


# ─────────────────────────────────────────────
# 📥 Generation inputs
# ─────────────────────────────────────────────
async def fetch_report_inputs(db: AsyncSession, report: Report) -> Tuple[List[EmissionRecord], List[Supplier]]:
    """
    Load the owner's records selected by the job's parameters.

    An emission record qualifies when its whole period lies inside the
    requested range (bounds inclusive). ``locations`` and ``currency`` are
    stored on the job but do not filter.
    """
    params = ReportParameters.model_validate(report.parameters)
    start = as_date(params.reporting_period.start_date)
    end = as_date(params.reporting_period.end_date)

    emission_stmt = select(EmissionRecord).where(
        EmissionRecord.user_id == report.user_id,
        EmissionRecord.period_start >= start,
        EmissionRecord.period_end <= end,
    )
    if params.scopes:
        emission_stmt = emission_stmt.where(EmissionRecord.scope.in_(params.scopes))
    if params.include_verified_only:
        emission_stmt = emission_stmt.where(EmissionRecord.status.in_(VERIFIED_STATUSES))

    supplier_stmt = select(Supplier).where(
        Supplier.user_id == report.user_id,
        Supplier.lifecycle == SupplierLifecycle.active,
    )
    if params.suppliers:
        supplier_stmt = supplier_stmt.where(Supplier.id.in_(params.suppliers))

    emissions = (await db.execute(emission_stmt.order_by(EmissionRecord.id))).scalars().all()
    suppliers = (await db.execute(supplier_stmt.order_by(Supplier.id))).scalars().all()
    return list(emissions), list(suppliers)


# ─────────────────────────────────────────────
# 📂 Queries / user actions
# ─────────────────────────────────────────────
async def list_reports(
    db: AsyncSession,
    user_id: int,
    report_type: Optional[ReportType] = None,
    status: Optional[ReportStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Report], int]:
    stmt = select(Report).where(Report.user_id == user_id)
    if report_type is not None:
        stmt = stmt.where(Report.report_type == report_type)
    if status is not None:
        stmt = stmt.where(Report.status == status)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))

    stmt = stmt.order_by(desc(Report.created_at), desc(Report.id)).offset((page - 1) * limit).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all()), total or 0


def download_filename(report: Report) -> str:
    params = report.parameters or {}
    year = (params.get("reporting_period") or {}).get("year") or "report"
    return f"{report.report_type.value}_{year}.{report.format.value}"


async def record_download(db: AsyncSession, report: Report, user: User) -> Dict[str, Any]:
    if report.status != ReportStatus.completed:
        raise ReportNotReady()

    file_info = dict(report.file_info or {})
    file_info["download_count"] = int(file_info.get("download_count", 0)) + 1
    file_info["last_downloaded"] = utc_now().isoformat()
    file_info.setdefault("size", settings.REPORT_DEFAULT_FILE_SIZE)
    report.file_info = file_info
    append_audit(report, audit_entry(AuditAction.downloaded, user.id))

    await db.commit()

    api_logger.info(f"Report {report.id} downloaded by user {user.id} ({file_info['download_count']} total)")
    return {
        "filename": download_filename(report),
        "download_url": f"{settings.API_V1_STR}/reports/{report.id}/file",
        "size": file_info["size"],
    }


async def share_report(db: AsyncSession, report: Report, share: ReportShare, user: User) -> Report:
    sharing = dict(report.sharing or {})
    shared_with = list(sharing.get("shared_with") or [])
    known = {item["email"] for item in shared_with}
    for email in share.emails:
        if email not in known:
            shared_with.append({
                "email": email,
                "permission": share.permission.value,
                "shared_at": utc_now().isoformat(),
            })
            known.add(email)
    sharing["shared_with"] = shared_with

    if share.make_public:
        sharing["is_public"] = True
        sharing["share_token"] = sharing.get("share_token") or secrets.token_urlsafe(16)

    report.sharing = sharing
    append_audit(report, audit_entry(
        AuditAction.shared,
        user.id,
        {"emails": list(share.emails), "permission": share.permission.value, "public": share.make_public},
    ))

    await db.commit()
    await db.refresh(report)

    api_logger.info(f"Report {report.id} shared by user {user.id} with {len(share.emails)} recipient(s)")
    return report
