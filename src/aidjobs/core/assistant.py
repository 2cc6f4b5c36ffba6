from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from aidjobs.config import Settings, get_settings
from aidjobs.core import classifier, file_intake
from aidjobs.core.drafts import DraftService
from aidjobs.core.events import EventBus
from aidjobs.core.generation import GenerationRouter
from aidjobs.core.progress import ProgressTracker
from aidjobs.core.retry import RetryController, run_attempt
from aidjobs.core.runtime import get_event_bus
from aidjobs.db.models import JDDraft
from aidjobs.db.repositories import Repository
from aidjobs.errors import (
    AidJobsError,
    FileValidationError,
    GenerationError,
    InsufficientDetailError,
)
from aidjobs.llm.router import LLMRouter
from aidjobs.types import AssistantReply

logger = logging.getLogger(__name__)

READY_MESSAGE = (
    "Here's your job description! You can now refine it, adjust the tone, or publish it. "
    "It is ready for review."
)
RETRY_OFFER_MESSAGE = (
    "I noticed your previous job description generation didn't complete successfully. "
    "Would you like me to try again with your previous input?"
)
NOTHING_TO_RETRY_MESSAGE = "There is no failed job description request to retry."


class JDAssistant:
    """Chat-level flow for job-description generation.

    Wires the classifier, draft persistence, generation router and retry
    controller together and turns every outcome into an ``AssistantReply``.
    Status messages go to the owner's event stream as they happen.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        llm: LLMRouter | None = None,
        event_bus: EventBus | None = None,
    ):
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.progress = ProgressTracker(self.repo)
        self.drafts = DraftService(self.repo, self.progress, settings=self.settings)
        self.router = GenerationRouter(llm or LLMRouter(self.settings), settings=self.settings)
        self.retry_controller = RetryController(self.drafts, self.router)
        self.event_bus = event_bus or get_event_bus()

    def submit_text(self, owner_id: str, text: str) -> AssistantReply:
        if classifier.is_retry_request(text):
            failed = self.drafts.latest_failed(owner_id)
            if failed is not None:
                return self.retry(owner_id, failed.id)

        try:
            classification = classifier.classify_text(text, self.settings)
        except InsufficientDetailError as exc:
            logger.info("Asked for more detail owner=%s words=%s", owner_id, exc.word_count)
            return AssistantReply(kind="clarification", content=exc.user_message)

        draft = self.drafts.create(
            owner_id,
            classification.stored_category,
            text.strip(),
            classification.url,
        )
        reply = self._run(owner_id, draft)
        reply.follow_up_questions = classifier.follow_up_questions(classification)
        return reply

    def submit_upload(
        self,
        owner_id: str,
        file_name: str,
        data: bytes,
        content_type: str | None = None,
    ) -> AssistantReply:
        if len(data) > self.settings.upload_max_bytes:
            return AssistantReply(kind="rejected", content="That file is too large to process.")

        try:
            extracted = file_intake.extract_text(file_name, data, content_type, settings=self.settings)
        except FileValidationError as exc:
            return AssistantReply(kind="rejected", content=exc.user_message)

        draft = self.drafts.create(
            owner_id,
            "upload",
            extracted.text,
            file_name=extracted.file_name,
            file_type=extracted.file_type,
        )
        return self._run(owner_id, draft)

    def retry(self, owner_id: str, draft_id: str) -> AssistantReply:
        messages: list[str] = []
        self._status(owner_id, messages, "Retrying job description generation...", draft_id=draft_id)
        try:
            text = self.retry_controller.retry(
                draft_id,
                owner_id,
                on_status=lambda message: self._status(owner_id, messages, message, draft_id=draft_id),
            )
        except GenerationError as exc:
            return self._failed_reply(owner_id, self.drafts.get(owner_id, draft_id), exc, messages)

        return self._completed_reply(owner_id, self.drafts.get(owner_id, draft_id), text, messages)

    def pending_retry(self, owner_id: str) -> AssistantReply | None:
        flags = self.progress.get(owner_id)
        if not flags.jd_generation_failed:
            return None

        failed = self.drafts.latest_failed(owner_id)
        if failed is None:
            return None
        return AssistantReply(
            kind="retry_offer",
            content=RETRY_OFFER_MESSAGE,
            draft_id=failed.id,
            category=failed.input_category,
            can_retry=True,
        )

    def _run(self, owner_id: str, draft: JDDraft) -> AssistantReply:
        messages: list[str] = []
        try:
            text = run_attempt(
                self.drafts,
                self.router,
                owner_id,
                draft,
                on_status=lambda message: self._status(owner_id, messages, message, draft_id=draft.id),
            )
        except GenerationError as exc:
            return self._failed_reply(owner_id, self.drafts.get(owner_id, draft.id), exc, messages)

        return self._completed_reply(owner_id, self.drafts.get(owner_id, draft.id), text, messages)

    def _completed_reply(
        self,
        owner_id: str,
        draft: JDDraft,
        text: str,
        messages: list[str],
    ) -> AssistantReply:
        self._status(owner_id, messages, "Your job description is ready for review.", draft_id=draft.id)
        return AssistantReply(
            kind="completed",
            content=text,
            draft_id=draft.id,
            category=draft.input_category,
            messages=messages + [READY_MESSAGE],
        )

    def _failed_reply(
        self,
        owner_id: str,
        draft: JDDraft,
        exc: GenerationError,
        messages: list[str],
    ) -> AssistantReply:
        self._log_failure(owner_id, draft, exc)
        self._status(owner_id, messages, "Generation failed.", draft_id=draft.id)
        return AssistantReply(
            kind="failed",
            content=f"{exc.user_message}\n\nWould you like me to try again now?",
            draft_id=draft.id,
            category=draft.input_category,
            can_retry=True,
            messages=messages,
        )

    def _log_failure(self, owner_id: str, draft: JDDraft, exc: GenerationError) -> None:
        try:
            self.repo.log_error(
                user_id=owner_id,
                error_type="jd_generation_failed",
                details=f"draft={draft.id} category={draft.input_category} error={exc}",
                source="jd_assistant",
            )
        except AidJobsError as log_exc:
            logger.warning("Could not record generation failure draft=%s error=%s", draft.id, log_exc)

    def _status(self, owner_id: str, messages: list[str], message: str, *, draft_id: str | None = None) -> None:
        messages.append(message)
        self.event_bus.publish_from_sync(
            owner_id,
            {
                "type": "status",
                "draft_id": draft_id,
                "message": message,
                "at": datetime.now(UTC).isoformat(),
            },
        )
