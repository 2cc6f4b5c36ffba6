from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

from aidjobs.core.progress import ProgressTracker
from aidjobs.db.models import Application, Job
from aidjobs.db.repositories import Repository
from aidjobs.errors import AuthorizationError, InvalidTransitionError

logger = logging.getLogger(__name__)

_MARKDOWN_PREFIX = re.compile(r"^[#>*\-\s]+")
_TITLE_LABEL = re.compile(r"^(job\s+title|title)\s*:\s*", re.IGNORECASE)


def title_from_text(text: str) -> str:
    for line in text.splitlines():
        candidate = _MARKDOWN_PREFIX.sub("", line).replace("**", "").strip()
        candidate = _TITLE_LABEL.sub("", candidate).strip()
        if candidate:
            return candidate[:255]
    return "Untitled position"


class PublishingService:
    def __init__(self, repo: Repository, progress: ProgressTracker | None = None):
        self.repo = repo
        self.progress = progress or ProgressTracker(repo)

    def publish(
        self,
        owner_id: str,
        draft_id: str,
        *,
        title: str | None = None,
        organization_name: str = "",
        location: str = "",
    ) -> Job:
        draft = self.repo.get_draft(owner_id, draft_id)
        if draft.status != "completed":
            raise InvalidTransitionError(f"draft {draft_id} is {draft.status}; only completed drafts can be published")

        job = self.repo.create_job(
            owner_id=owner_id,
            source_draft_id=draft.id,
            title=title or title_from_text(draft.generated_text),
            description=draft.generated_text,
            organization_name=organization_name,
            location=location,
            status="published",
            published_at=datetime.now(UTC),
        )
        logger.info("Published job id=%s from draft=%s", job.id, draft.id)
        self.progress.try_set_many(owner_id, {"has_published_job": True})
        return job

    def close(self, owner_id: str, job_id: str) -> Job:
        return self.repo.update_job(owner_id, job_id, status="closed")

    def list_public(self, limit: int = 50) -> list[Job]:
        return self.repo.list_public_jobs(limit=limit)

    def get_public(self, public_token: str) -> Job:
        return self.repo.get_public_job(public_token)

    def apply(self, applicant_id: str, job_id: str, cover_letter: str = "") -> Application:
        job = self.repo.get_readable_job(job_id)
        if job.status != "published":
            raise InvalidTransitionError(f"job {job_id} is not accepting applications")
        if job.owner_id == applicant_id:
            raise AuthorizationError("owners cannot apply to their own job")
        if self.repo.get_application_for(job_id, applicant_id) is not None:
            raise InvalidTransitionError(f"already applied to job {job_id}")

        application = self.repo.create_application(
            job_id=job_id,
            applicant_id=applicant_id,
            cover_letter=cover_letter,
        )
        logger.info("Application id=%s job=%s", application.id, job_id)
        progress = {"has_applied_to_job": True, "has_selected_job": True}
        if cover_letter.strip():
            progress["has_written_cover_letter"] = True
        self.progress.try_set_many(applicant_id, progress)
        return application

    def list_applications_for_job(self, owner_id: str, job_id: str) -> list[Application]:
        return self.repo.list_applications_for_job(owner_id, job_id)

    def list_my_applications(self, applicant_id: str) -> list[Application]:
        return self.repo.list_applications_for_applicant(applicant_id)
