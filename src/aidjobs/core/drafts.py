from __future__ import annotations

import logging

from aidjobs.config import Settings, get_settings
from aidjobs.core.progress import ProgressTracker
from aidjobs.db.models import JDDraft
from aidjobs.db.repositories import Repository
from aidjobs.errors import InvalidTransitionError

logger = logging.getLogger(__name__)

# pending -> processing -> completed | failed, and failed -> processing on retry.
TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing"},
    "processing": {"completed", "failed"},
    "failed": {"processing"},
    "completed": set(),
}

CATEGORIES_WITH_URL = {"brief_with_link", "link_only"}
CATEGORIES = {"brief", "brief_with_link", "link_only", "upload"}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


class DraftService:
    def __init__(
        self,
        repo: Repository,
        progress: ProgressTracker | None = None,
        *,
        settings: Settings | None = None,
    ):
        self.repo = repo
        self.progress = progress or ProgressTracker(repo)
        self.settings = settings or get_settings()

    def create(
        self,
        owner_id: str,
        category: str,
        raw_input: str,
        source_url: str | None = None,
        *,
        file_name: str | None = None,
        file_type: str | None = None,
    ) -> JDDraft:
        if category not in CATEGORIES:
            raise ValueError(f"unsupported input category '{category}'")
        if not raw_input.strip():
            raise ValueError("raw_input is required")
        if category in CATEGORIES_WITH_URL and not source_url:
            raise ValueError(f"category '{category}' requires a source_url")
        if category not in CATEGORIES_WITH_URL:
            source_url = None

        draft = self.repo.create_draft(
            owner_id=owner_id,
            input_category=category,
            input_summary=self._summary(category, raw_input, source_url, file_name),
            raw_input=raw_input,
            source_url=source_url,
            file_name=file_name,
            file_type=file_type,
        )
        logger.info("Draft created id=%s owner=%s category=%s", draft.id, owner_id, category)
        self.progress.try_set_many(owner_id, {"has_started_jd": True, "has_submitted_jd_inputs": True})
        return draft

    def get(self, owner_id: str, draft_id: str) -> JDDraft:
        return self.repo.get_draft(owner_id, draft_id)

    def list(self, owner_id: str, *, status: str | None = None, limit: int = 50) -> list[JDDraft]:
        return self.repo.list_drafts(owner_id, status=status, limit=limit)

    def latest_failed(self, owner_id: str) -> JDDraft | None:
        latest = self.repo.latest_draft(owner_id)
        if latest is None or latest.status != "failed":
            return None
        return latest

    def set_processing(self, owner_id: str, draft_id: str) -> JDDraft:
        draft = self._transition(owner_id, draft_id, "processing")
        return self.repo.update_draft(
            owner_id,
            draft.id,
            status="processing",
            generated_text="",
            error_detail="",
            attempts=draft.attempts + 1,
        )

    def complete(self, owner_id: str, draft_id: str, generated_text: str) -> JDDraft:
        if not generated_text.strip():
            raise ValueError("generated_text must not be empty")
        self._transition(owner_id, draft_id, "completed")
        draft = self.repo.update_draft(
            owner_id,
            draft_id,
            status="completed",
            generated_text=generated_text,
            error_detail="",
        )
        logger.info("Draft completed id=%s attempts=%s", draft.id, draft.attempts)
        self.progress.try_set_many(owner_id, {"has_generated_jd": True, "jd_generation_failed": False})
        return draft

    def fail(self, owner_id: str, draft_id: str, error_detail: str) -> JDDraft:
        self._transition(owner_id, draft_id, "failed")
        draft = self.repo.update_draft(
            owner_id,
            draft_id,
            status="failed",
            generated_text="",
            error_detail=error_detail or "generation failed",
        )
        logger.info("Draft failed id=%s attempts=%s error=%s", draft.id, draft.attempts, error_detail)
        self.progress.try_set_many(owner_id, {"jd_generation_failed": True})
        return draft

    def update_text(self, owner_id: str, draft_id: str, generated_text: str) -> JDDraft:
        """Replace the text of a completed draft with the owner's edited version."""
        if not generated_text.strip():
            raise ValueError("generated_text must not be empty")
        draft = self.repo.get_draft(owner_id, draft_id)
        if draft.status != "completed":
            raise InvalidTransitionError(f"draft {draft_id} is {draft.status}; only completed drafts can be edited")

        draft = self.repo.update_draft(owner_id, draft_id, generated_text=generated_text, error_detail="")
        logger.info("Draft edited id=%s owner=%s", draft.id, owner_id)
        return draft

    def _transition(self, owner_id: str, draft_id: str, target: str) -> JDDraft:
        draft = self.repo.get_draft(owner_id, draft_id)
        if not can_transition(draft.status, target):
            raise InvalidTransitionError(f"draft {draft_id} cannot move from {draft.status} to {target}")
        return draft

    def _summary(
        self,
        category: str,
        raw_input: str,
        source_url: str | None,
        file_name: str | None,
    ) -> str:
        if category == "link_only":
            return f"Job posting from: {source_url}"
        if category == "upload" and file_name:
            return f"Uploaded file: {file_name}"
        return raw_input[: self.settings.input_summary_max_chars]
