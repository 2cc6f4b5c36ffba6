from __future__ import annotations

from aidjobs.core.publishing import title_from_text


def test_title_label_is_removed() -> None:
    assert title_from_text("Job Title: Field Coordinator\n\nAbout us") == "Field Coordinator"


def test_markdown_heading_is_removed() -> None:
    assert title_from_text("\n# **WASH Officer**\nDetails") == "WASH Officer"


def test_empty_text_gets_placeholder() -> None:
    assert title_from_text("  \n\n") == "Untitled position"
