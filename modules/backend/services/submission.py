"""
Submission Service.

Business logic for visitor submissions: intake, triage, and approval into
a published opportunity.
"""

from collections.abc import Sequence
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.config import get_app_config
from modules.backend.core.exceptions import ConflictError, ValidationError
from modules.backend.core.utils import utc_now
from modules.backend.events.publishers import OpportunityEventPublisher, SubmissionEventPublisher
from modules.backend.models.opportunity import Opportunity
from modules.backend.models.submission import Submission
from modules.backend.repositories.opportunity import OpportunityRepository
from modules.backend.repositories.submission import SubmissionRepository
from modules.backend.schemas.submission import SubmissionCreate
from modules.backend.services.base import BaseService
from modules.backend.services.favicon import favicon_url_sync

# Category tags given to an opportunity created from an approved submission
TYPE_TO_TAGS: dict[str, list[str]] = {
    "bootcamp": ["Bootcamp"],
    "grant": ["Grant", "Funding"],
    "fellowship": ["Fellowship"],
    "funding": ["Funding"],
    "credits": ["Credits"],
    "program": ["Program"],
    "scholarship": ["Scholarship"],
    "other": ["Other"],
}


def tags_for_type(opportunity_type: str) -> list[str]:
    """Map a submitted type to category tags; unknown types are used verbatim."""
    return list(TYPE_TO_TAGS.get(opportunity_type.lower(), [opportunity_type]))


class SubmissionService(BaseService):
    """Service for submission business logic."""

    def __init__(
        self,
        session: AsyncSession,
        publisher: SubmissionEventPublisher | None = None,
        opportunity_publisher: OpportunityEventPublisher | None = None,
    ) -> None:
        super().__init__(session)
        self.repo = SubmissionRepository(session)
        self.opportunities = OpportunityRepository(session)
        self.publisher = publisher or SubmissionEventPublisher()
        self.opportunity_publisher = opportunity_publisher or OpportunityEventPublisher()

    async def create_submission(
        self,
        data: SubmissionCreate,
        correlation_id: str = "",
    ) -> Submission:
        """
        Record a visitor submission as pending.

        Raises:
            ValidationError: If submissions are disabled
        """
        if not get_app_config().features.submissions_enabled:
            raise ValidationError("Submissions are currently closed")

        self._log_operation("Creating submission", opportunity_name=data.opportunity_name)

        submission = await self._execute_db_operation(
            "create_submission",
            self.repo.create(**data.model_dump(), status="pending"),
        )
        await self.publisher.submission_created(
            submission.id, submission.opportunity_name, correlation_id,
        )
        return submission

    async def get_submission(self, submission_id: str) -> Submission:
        """
        Get a submission by ID.

        Raises:
            NotFoundError: If submission not found
        """
        return await self.repo.get_by_id(submission_id)

    async def list_submissions_paginated(
        self,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Submission], int]:
        """
        List submissions newest first, with total count for pagination.

        Returns:
            Tuple of (submissions, total matching the status filter)
        """
        submissions = await self._execute_db_operation(
            "list_submissions",
            self.repo.list_recent(status=status, limit=limit, offset=offset),
        )
        total = await self._execute_db_operation(
            "count_submissions",
            self.repo.count_by_status(status),
        )
        return submissions, total

    async def count_pending(self) -> int:
        return await self._execute_db_operation("count_pending", self.repo.count_pending())

    async def update_status(self, submission_id: str, status: str) -> Submission:
        """
        Record a triage decision and stamp ``reviewed_at``.

        Raises:
            NotFoundError: If submission not found
        """
        self._log_operation("Updating submission status", submission_id=submission_id, status=status)
        return await self._execute_db_operation(
            "update_submission_status",
            self.repo.update(submission_id, status=status, reviewed_at=utc_now()),
        )

    async def approve(
        self,
        submission_id: str,
        admin: str,
        correlation_id: str = "",
    ) -> tuple[Submission, Opportunity]:
        """
        Publish a submission as an active opportunity and mark it approved.

        The opportunity takes its tags from the submitted type, a deadline
        the configured number of days out, and the submitter as provider.

        Raises:
            NotFoundError: If submission not found
            ConflictError: If the submission was already approved
        """
        submission = await self.repo.get_by_id(submission_id)
        if submission.status == "approved":
            raise ConflictError("Submission already approved")

        now = utc_now()
        deadline_days = get_app_config().listing.approved_deadline_days

        self._log_operation("Approving submission", submission_id=submission_id, admin=admin)

        opportunity = await self._execute_db_operation(
            "approve_submission_create",
            self.opportunities.create(
                title=submission.opportunity_name,
                provider=submission.user_name or "Unknown",
                description=submission.description,
                description_full=submission.description,
                logo_url=favicon_url_sync(submission.link),
                apply_url=submission.link,
                category_tags=tags_for_type(submission.opportunity_type),
                applicable_groups=[],
                regions=[],
                funding_types=[],
                eligibility="",
                deadline=now + timedelta(days=deadline_days),
                status="active",
                created_by=admin,
            ),
        )
        submission = await self._execute_db_operation(
            "approve_submission_status",
            self.repo.update_instance(submission, status="approved", reviewed_at=now),
        )
        await self.opportunity_publisher.opportunity_created(
            opportunity.id, opportunity.title, correlation_id,
        )
        return submission, opportunity

    async def delete_submissions(self, ids: Sequence[str]) -> int:
        """Delete several submissions. Unknown ids are ignored. Returns the number deleted."""
        self._log_operation("Deleting submissions", count=len(ids))
        return await self._execute_db_operation(
            "delete_submissions",
            self.repo.delete_many(list(ids)),
        )
