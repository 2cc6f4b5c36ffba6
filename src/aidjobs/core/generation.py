from __future__ import annotations

import logging
from collections.abc import Callable

from aidjobs.config import Settings, get_settings
from aidjobs.core import job_fetcher
from aidjobs.core.classifier import extract_domain, strip_urls
from aidjobs.errors import FetchError, GenerationError
from aidjobs.llm import prompts
from aidjobs.llm.router import LLMRouter

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


class GenerationRouter:
    """Picks one of four strategies by input category and makes one generation call.

    Stateless and never retries; retrying is done per draft by the caller.
    """

    def __init__(self, llm: LLMRouter | None = None, *, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.llm = llm or LLMRouter(self.settings)

    def generate(
        self,
        category: str,
        raw_input: str,
        source_url: str | None = None,
        *,
        file_name: str | None = None,
        on_status: StatusCallback | None = None,
    ) -> str:
        notify = on_status or (lambda message: None)
        logger.info("Generating JD category=%s url=%s", category, source_url)

        if category == "brief":
            return self._from_brief(raw_input, notify)
        if category == "brief_with_link":
            return self._from_brief_and_link(raw_input, source_url, notify)
        if category == "link_only":
            return self._rewrite_from_link(source_url, notify)
        if category == "upload":
            return self._refine_upload(raw_input, file_name, notify)
        raise GenerationError(f"Unknown input category '{category}'")

    def _from_brief(self, brief: str, notify: StatusCallback) -> str:
        notify("Generating your job description...")
        return self.llm.complete(
            system=prompts.BRIEF_SYSTEM_PROMPT,
            prompt=prompts.BRIEF_USER_PROMPT.format(brief=brief.strip()),
        )

    def _from_brief_and_link(self, raw_input: str, url: str | None, notify: StatusCallback) -> str:
        if not url:
            raise GenerationError("No URL found in input")

        notify(f"Fetching context from {extract_domain(url)}...")
        try:
            org_context = job_fetcher.fetch_organization_context(
                url,
                max_words=self.settings.org_context_max_words,
                timeout_sec=self.settings.fetch_timeout_sec,
            )
        except FetchError:
            logger.warning("Could not fetch organization context from %s; using brief only", url)
            org_context = f"Organization website: {url}"

        notify("Generating a mission-aligned job description...")
        return self.llm.complete(
            system=prompts.BRIEF_WITH_LINK_SYSTEM_PROMPT,
            prompt=prompts.BRIEF_WITH_LINK_USER_PROMPT.format(
                brief=strip_urls(raw_input),
                org_context=org_context,
            ),
        )

    def _rewrite_from_link(self, url: str | None, notify: StatusCallback) -> str:
        if not url:
            raise GenerationError("URL missing for link-only input")

        notify(f"Fetching the existing job posting from {extract_domain(url)}...")
        try:
            posting = job_fetcher.fetch_job_posting(
                url,
                max_words=self.settings.job_posting_max_words,
                timeout_sec=self.settings.fetch_timeout_sec,
            )
        except FetchError as exc:
            raise GenerationError(str(exc), user_message=FetchError.user_message) from exc

        notify("Rewriting it with better clarity, DEI language, and nonprofit alignment...")
        return self.llm.complete(
            system=prompts.REWRITE_SYSTEM_PROMPT,
            prompt=prompts.REWRITE_USER_PROMPT.format(url=url, posting=posting),
        )

    def _refine_upload(self, content: str, file_name: str | None, notify: StatusCallback) -> str:
        notify("Refining your uploaded job description...")
        return self.llm.complete(
            system=prompts.REFINE_SYSTEM_PROMPT,
            prompt=prompts.REFINE_USER_PROMPT.format(file_name=file_name or "upload", content=content),
            temperature=self.settings.generation_upload_temperature,
        )
