"""Persistence for completed analysis reports."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from analysis.models import AnalysisReport
from models.analysis_report import AnalysisReportRecord
from models.user import User
from services.errors import ReportNotFoundError


@dataclass(frozen=True)
class StoredReport:
    id: str
    user_id: str
    report: AnalysisReport

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "videoUrl": self.report.source_url,
            "videoId": self.report.video_id,
            "createdAt": self.report.created_at.isoformat(),
            "reportData": self.report.report_data(),
        }

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "videoUrl": self.report.source_url,
            "videoId": self.report.video_id,
            "createdAt": self.report.created_at.isoformat(),
        }


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_stored(row: AnalysisReportRecord) -> StoredReport:
    report = AnalysisReport.from_report_data(
        source_url=row.video_url,
        report_data=row.sections_json or {},
        created_at=_as_utc(row.created_at),
        video_id=row.video_id,
    )
    return StoredReport(id=row.id, user_id=row.user_id, report=report)


async def ensure_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        user = User(id=user_id, is_anonymous=True)
        db.add(user)
        await db.flush()
    return user


async def save_report(db: AsyncSession, user_id: str, report: AnalysisReport) -> StoredReport:
    """Append a complete report to the user's history."""
    await ensure_user(db, user_id)
    row = AnalysisReportRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        video_url=report.source_url,
        video_id=report.video_id,
        sections_json=report.report_data(),
        created_at=report.created_at,
    )
    db.add(row)
    await db.commit()
    return StoredReport(id=row.id, user_id=user_id, report=report)


async def list_reports(db: AsyncSession, user_id: str, limit: int = 50) -> List[StoredReport]:
    """User's reports, newest first."""
    result = await db.execute(
        select(AnalysisReportRecord)
        .where(AnalysisReportRecord.user_id == user_id)
        .order_by(AnalysisReportRecord.created_at.desc())
        .limit(max(1, int(limit)))
    )
    return [_to_stored(row) for row in result.scalars().all()]


async def get_report(db: AsyncSession, user_id: str, report_id: str) -> StoredReport:
    result = await db.execute(
        select(AnalysisReportRecord).where(
            AnalysisReportRecord.id == report_id,
            AnalysisReportRecord.user_id == user_id,
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise ReportNotFoundError()
    return _to_stored(row)
