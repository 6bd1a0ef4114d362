"""
Router for generating, listing and loading persisted analysis reports.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.pipeline import (
    analyze_video_url,
    get_caption_resolver,
    get_section_analyzer,
    require_video_reference,
)
from services.reports import get_report, list_reports, save_report

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateReportRequest(BaseModel):
    videoUrl: Optional[str] = None
    auxFields: Dict[str, Any] = Field(default_factory=dict)


class ReportSummary(BaseModel):
    id: str
    videoUrl: str
    videoId: Optional[str] = None
    createdAt: str


class ReportResponse(ReportSummary):
    reportData: Dict[str, Dict[str, Any]]


class ReportHistoryResponse(BaseModel):
    reports: List[ReportSummary]


def _get_caption_resolver():
    return get_caption_resolver()


def _get_section_analyzer():
    return get_section_analyzer()


@router.post(
    "",
    status_code=201,
    response_model=ReportResponse,
    dependencies=[Depends(rate_limit("reports", settings.ANALYZE_RATE_LIMIT_PER_MINUTE, 60))],
)
async def create_report(
    request: CreateReportRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Run the whole pipeline for a video URL and store the finished report."""
    require_video_reference(request.videoUrl)
    report = await analyze_video_url(
        request.videoUrl,
        _get_caption_resolver(),
        _get_section_analyzer(),
        request.auxFields,
    )
    stored = await save_report(db, auth.user_id, report)
    logger.info("Stored report %s for user %s (%s)", stored.id, auth.user_id, report.video_id)
    return stored.to_payload()


@router.get("", response_model=ReportHistoryResponse)
async def get_report_history(
    limit: int = Query(default=settings.HISTORY_PAGE_SIZE, ge=1, le=200),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """List the user's reports, newest first."""
    reports = await list_reports(db, auth.user_id, limit=limit)
    return {"reports": [stored.to_summary() for stored in reports]}


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report_by_id(
    report_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Load one stored report verbatim."""
    stored = await get_report(db, auth.user_id, report_id)
    return stored.to_payload()
