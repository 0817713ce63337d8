import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from soundscore.core.exceptions import ConflictError, NotFoundException
from soundscore.models.comment import Comment
from soundscore.models.report import Report, ReportStatus
from soundscore.models.user import User
from soundscore.services.base import BaseService
from soundscore.services.database import utcnow

logger = logging.getLogger(__name__)


class ReportService(BaseService):

    async def create_report(self, comment_id: int, reporter: User, reason: str) -> Report:
        comment = await self.get_or_404(Comment, comment_id)
        if comment.text is None:
            raise NotFoundException("Comment", comment_id)

        result = await self.db.execute(
            select(Report.id).where(
                Report.comment_id == comment_id,
                Report.reported_by == reporter.id,
                Report.status == ReportStatus.PENDING.value
            )
        )
        if result.first() is not None:
            raise ConflictError("You have already reported this comment", code="ALREADY_REPORTED")

        report = Report(comment_id=comment_id, reported_by=reporter.id, reason=reason)
        self.db.add(report)
        await self.commit()
        await self.db.refresh(report)
        logger.info(f"Comment {comment_id} reported by {reporter.id}")
        return report

    async def list_reports(self, status: Optional[ReportStatus] = None) -> List[Report]:
        query = (
            select(Report)
            .options(selectinload(Report.comment), selectinload(Report.reporter))
            .order_by(Report.created_at.desc(), Report.id.desc())
        )
        if status is not None:
            query = query.where(Report.status == status.value)
        result = await self.db.execute(query)
        reports = result.scalars().all()
        for report in reports:
            report.reporter_nickname = report.reporter.nickname if report.reporter else None
        return reports

    async def set_status(self, report_id: int, status: ReportStatus, moderator: User) -> Report:
        """
        Moves a report between pending and resolved. Resolving records who
        did it and when; reopening clears that trail. Re-applying the current
        status changes nothing.
        """
        report = await self.get_or_404(Report, report_id)
        if report.status != status.value:
            report.status = status.value
            if status == ReportStatus.RESOLVED:
                report.resolved_by = moderator.id
                report.resolved_at = utcnow()
            else:
                report.resolved_by = None
                report.resolved_at = None
            await self.db.commit()
            logger.info(f"Report {report_id} set to {status.value} by {moderator.id}")
        await self.db.refresh(report)
        return report
