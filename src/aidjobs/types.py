from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, Field

TextCategory = Literal["brief_only", "brief_with_link", "link_only"]
InputCategory = Literal["brief", "brief_with_link", "link_only", "upload"]
DraftStatus = Literal["pending", "processing", "completed", "failed"]
UserRole = Literal["organization", "candidate"]
LLMProvider = Literal["openai", "local"]
ReplyKind = Literal["clarification", "rejected", "completed", "failed", "retry_offer"]
ProgressFlagName = Literal[
    "has_uploaded_cv",
    "has_analyzed_cv",
    "has_selected_job",
    "has_written_cover_letter",
    "has_started_jd",
    "has_submitted_jd_inputs",
    "has_generated_jd",
    "jd_generation_failed",
    "has_published_job",
    "has_applied_to_job",
]

PROGRESS_FLAG_NAMES: tuple[str, ...] = get_args(ProgressFlagName)

STORED_CATEGORY: dict[str, str] = {
    "brief_only": "brief",
    "brief_with_link": "brief_with_link",
    "link_only": "link_only",
}


class Classification(BaseModel):
    category: TextCategory
    brief: str = ""
    url: str | None = None
    word_count: int = 0

    @property
    def stored_category(self) -> str:
        return STORED_CATEGORY[self.category]


class FlagSet(BaseModel):
    has_uploaded_cv: bool = False
    has_analyzed_cv: bool = False
    has_selected_job: bool = False
    has_written_cover_letter: bool = False
    has_started_jd: bool = False
    has_submitted_jd_inputs: bool = False
    has_generated_jd: bool = False
    jd_generation_failed: bool = False
    has_published_job: bool = False
    has_applied_to_job: bool = False


class PageContent(BaseModel):
    url: str
    title: str = ""
    description: str = ""
    text: str = ""


class ExtractedFile(BaseModel):
    file_name: str
    file_type: str
    text: str
    truncated: bool = False


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)


class AssistantReply(BaseModel):
    kind: ReplyKind
    content: str
    draft_id: str | None = None
    category: InputCategory | None = None
    can_retry: bool = False
    messages: list[str] = Field(default_factory=list)
    follow_up_questions: list[str] = Field(default_factory=list)
