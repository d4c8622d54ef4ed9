from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from carbonledger.core.database import get_db
from carbonledger.middleware.permissions import (
    ResourceType, Operation, verify_permission, get_owned_report,
)
from carbonledger.models.user import User
from carbonledger.models.report import Report, ReportStatus, ReportType
from carbonledger.schemas.common import Page
from carbonledger.schemas.report import (
    ReportGenerate, ReportScheduleCreate, ReportShare, ReportOut, ReportDownloadOut,
)
from carbonledger.services import report_jobs
from carbonledger.services.report_worker import ReportWorker, get_report_worker

router = APIRouter()


# ─────────────────────────────────────────────
# 📋 List report jobs
# ─────────────────────────────────────────────
@router.get("/", response_model=Page[ReportOut])
async def list_reports(
    report_type: Optional[ReportType] = None,
    status: Optional[ReportStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.REPORT, Operation.LIST)),
):
    reports, total = await report_jobs.list_reports(
        db, current_user.id, report_type=report_type, status=status, page=page, limit=limit
    )
    return Page[ReportOut].build([ReportOut.model_validate(r) for r in reports], total, page, limit)


# ─────────────────────────────────────────────
# ⚙️ Request generation (returns before the work runs)
# ─────────────────────────────────────────────
@router.post("/generate", response_model=ReportOut, status_code=202)
async def generate_report(
    payload: ReportGenerate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.REPORT, Operation.CREATE)),
    worker: ReportWorker = Depends(get_report_worker),
):
    report = await report_jobs.create_job(db, payload, current_user)
    response = ReportOut.model_validate(report)
    await worker.submit(report.id)
    return response


# ─────────────────────────────────────────────
# 🗓️ Store a schedule definition
# ─────────────────────────────────────────────
@router.post("/schedule", response_model=ReportOut, status_code=201)
async def schedule_report(
    payload: ReportScheduleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.REPORT, Operation.CREATE)),
):
    return await report_jobs.create_scheduled_job(db, payload, current_user)


# ─────────────────────────────────────────────
# 🔍 Job detail (poll for status)
# ─────────────────────────────────────────────
@router.get("/{report_id}", response_model=ReportOut)
async def get_report(
    report: Report = Depends(get_owned_report),
    current_user: User = Depends(verify_permission(ResourceType.REPORT, Operation.READ)),
):
    return report


# ─────────────────────────────────────────────
# ⬇️ Download a completed report
# ─────────────────────────────────────────────
@router.get("/{report_id}/download", response_model=ReportDownloadOut)
async def download_report(
    report: Report = Depends(get_owned_report),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.REPORT, Operation.READ)),
):
    result = await report_jobs.record_download(db, report, current_user)
    return ReportDownloadOut(**result)


# ─────────────────────────────────────────────
# 🤝 Share with other users
# ─────────────────────────────────────────────
@router.post("/{report_id}/share", response_model=ReportOut)
async def share_report(
    share: ReportShare,
    report: Report = Depends(get_owned_report),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(verify_permission(ResourceType.REPORT, Operation.EXECUTE)),
):
    return await report_jobs.share_report(db, report, share, current_user)
