from __future__ import annotations

import re
from urllib.parse import urlparse

from aidjobs.config import Settings, get_settings
from aidjobs.errors import InsufficientDetailError
from aidjobs.types import Classification

_URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)
_TRAILING_PUNCTUATION = ".,;:!?)]}'\""
_RETRY_PHRASES = ("try again", "retry")


def extract_url(text: str) -> str | None:
    match = _URL_PATTERN.search(text)
    if not match:
        return None
    return match.group(0).rstrip(_TRAILING_PUNCTUATION) or None


def strip_urls(text: str) -> str:
    return " ".join(_URL_PATTERN.sub(" ", text).split())


def count_words(text: str) -> int:
    return len(text.split())


def extract_domain(url: str) -> str:
    host = urlparse(url).hostname or url
    return host.removeprefix("www.")


def is_retry_request(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in _RETRY_PHRASES)


def classify_text(text: str, settings: Settings | None = None) -> Classification:
    """Assign free text to brief_only, brief_with_link or link_only.

    Raises InsufficientDetailError for a URL-less brief shorter than
    ``classifier_min_brief_words``; the caller re-prompts instead of generating.
    """
    settings = settings or get_settings()
    trimmed = text.strip()
    url = extract_url(trimmed)
    brief = strip_urls(trimmed)
    words = count_words(brief)

    if url:
        if words < settings.classifier_link_context_min_words:
            return Classification(category="link_only", brief=brief, url=url, word_count=words)
        return Classification(category="brief_with_link", brief=brief, url=url, word_count=words)

    if words < settings.classifier_min_brief_words:
        raise InsufficientDetailError(word_count=words, minimum=settings.classifier_min_brief_words)
    return Classification(category="brief_only", brief=brief, word_count=words)


def follow_up_questions(classification: Classification, limit: int = 2) -> list[str]:
    if classification.category == "link_only":
        return []

    content = classification.brief.lower()
    questions: list[str] = []
    if not any(word in content for word in ("location", "remote", "hybrid")):
        questions.append("What is the location for this role? (e.g., remote, specific city, hybrid)")
    if not any(word in content for word in ("contract", "full-time", "part-time")):
        questions.append("What type of contract is this? (e.g., full-time, part-time, consultant)")
    if not any(word in content for word in ("experience", "years")):
        questions.append("What level of experience is required for this role?")
    if classification.category == "brief_only" and not any(
        word in content for word in ("organization", "organisation", "company")
    ):
        questions.append("What organization is this role for?")
    return questions[:limit]
