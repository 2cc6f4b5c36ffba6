from __future__ import annotations

import logging

from aidjobs.core.drafts import DraftService
from aidjobs.core.generation import GenerationRouter, StatusCallback
from aidjobs.db.models import JDDraft
from aidjobs.errors import AidJobsError, GenerationError, InvalidTransitionError

logger = logging.getLogger(__name__)


def run_attempt(
    drafts: DraftService,
    router: GenerationRouter,
    owner_id: str,
    draft: JDDraft,
    on_status: StatusCallback | None = None,
) -> str:
    """Drive one attempt: processing, one generation call, then completed or failed.

    Used for first attempts and retries alike. Re-raises GenerationError after
    the failure has been recorded on the draft.
    """
    draft = drafts.set_processing(owner_id, draft.id)
    try:
        text = router.generate(
            draft.input_category,
            draft.raw_input,
            draft.source_url,
            file_name=draft.file_name,
            on_status=on_status,
        )
    except GenerationError as exc:
        drafts.fail(owner_id, draft.id, str(exc))
        raise
    except Exception as exc:
        logger.exception("Unexpected generation failure draft=%s", draft.id)
        drafts.fail(owner_id, draft.id, str(exc))
        raise GenerationError(str(exc)) from exc

    try:
        drafts.complete(owner_id, draft.id, text)
    except Exception as exc:
        logger.exception("Could not store generated text draft=%s", draft.id)
        _record_failure(drafts, owner_id, draft.id, f"could not store generated text: {exc}")
        raise
    return text


def _record_failure(drafts: DraftService, owner_id: str, draft_id: str, error_detail: str) -> None:
    # A draft left in processing can never be retried.
    try:
        drafts.fail(owner_id, draft_id, error_detail)
    except AidJobsError as exc:
        logger.warning("Could not mark draft failed id=%s error=%s", draft_id, exc)


class RetryController:
    def __init__(self, drafts: DraftService, router: GenerationRouter):
        self.drafts = drafts
        self.router = router

    def retry(self, draft_id: str, owner_id: str, on_status: StatusCallback | None = None) -> str:
        draft = self.drafts.get(owner_id, draft_id)
        if draft.status != "failed":
            raise InvalidTransitionError(f"draft {draft_id} is {draft.status}; only failed drafts can be retried")

        logger.info("Retrying draft id=%s attempt=%s", draft.id, draft.attempts + 1)
        return run_attempt(self.drafts, self.router, owner_id, draft, on_status=on_status)
