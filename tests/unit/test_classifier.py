from __future__ import annotations

import pytest

from aidjobs.config import Settings
from aidjobs.core.classifier import (
    classify_text,
    extract_domain,
    extract_url,
    follow_up_questions,
    is_retry_request,
)
from aidjobs.errors import InsufficientDetailError


def test_brief_with_link_is_detected() -> None:
    result = classify_text(
        "We need a field coordinator for a migration project in Kenya. Our organization: https://example.org"
    )

    assert result.category == "brief_with_link"
    assert result.url == "https://example.org"
    assert result.stored_category == "brief_with_link"
    assert "https://" not in result.brief


def test_bare_link_is_link_only() -> None:
    result = classify_text("https://jobs.example.org/posting/123")

    assert result.category == "link_only"
    assert result.url == "https://jobs.example.org/posting/123"
    assert result.word_count == 0


def test_short_brief_without_link_asks_for_detail() -> None:
    with pytest.raises(InsufficientDetailError) as excinfo:
        classify_text("need a coordinator")

    assert excinfo.value.word_count == 3
    assert excinfo.value.minimum == 10
    assert "Kenya" in excinfo.value.user_message


def test_long_brief_without_link_is_brief_only() -> None:
    result = classify_text(
        "We are hiring a monitoring and evaluation officer to track outcomes of our nutrition programme"
    )

    assert result.category == "brief_only"
    assert result.stored_category == "brief"
    assert result.url is None


def test_link_with_little_context_stays_link_only() -> None:
    result = classify_text("please rewrite https://jobs.example.org/123 thanks")

    assert result.category == "link_only"
    assert result.word_count == 3


def test_thresholds_come_from_settings() -> None:
    settings = Settings(classifier_min_brief_words=3, classifier_link_context_min_words=2)

    assert classify_text("need a coordinator", settings).category == "brief_only"
    assert classify_text("rewrite this https://example.org/job", settings).category == "brief_with_link"


def test_trailing_punctuation_is_stripped_from_url() -> None:
    assert extract_url("See https://example.org/careers. Thanks") == "https://example.org/careers"
    assert extract_url("(https://example.org)") == "https://example.org"
    assert extract_url("no link here") is None


def test_extract_domain_drops_www() -> None:
    assert extract_domain("https://www.example.org/about") == "example.org"
    assert extract_domain("http://jobs.example.org:8080/x") == "jobs.example.org"


@pytest.mark.parametrize(
    ("text", "expected"),
    [("Please try again", True), ("retry", True), ("We need a driver", False)],
)
def test_retry_phrases(text: str, expected: bool) -> None:
    assert is_retry_request(text) is expected


def test_follow_up_questions_cover_missing_details() -> None:
    result = classify_text(
        "We need a logistics officer for our emergency response team based in Juba for six months"
    )

    questions = follow_up_questions(result)
    assert len(questions) == 2
    assert questions[0].startswith("What is the location")
    assert follow_up_questions(classify_text("https://example.org/job")) == []
