from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    display_name: str = ""
    role: Literal["organization", "candidate"] = "organization"


class UserResponse(BaseModel):
    id: str
    email: str
    display_name: str
    role: str


class UserCreateResponse(UserResponse):
    api_token: str


class JDMessageRequest(BaseModel):
    text: str = Field(min_length=1)


class DraftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    input_category: str
    input_summary: str
    raw_input: str
    source_url: str | None
    file_name: str | None
    file_type: str | None
    status: str
    generated_text: str
    error_detail: str
    attempts: int
    created_at: datetime
    updated_at: datetime


class DraftEditRequest(BaseModel):
    generated_text: str = Field(min_length=1)


class JobPublishRequest(BaseModel):
    draft_id: str
    title: str | None = None
    organization_name: str = ""
    location: str = ""


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    source_draft_id: str | None
    title: str
    description: str
    organization_name: str
    location: str
    status: str
    public_token: str
    is_template: bool
    published_at: datetime | None


class ApplicationCreateRequest(BaseModel):
    cover_letter: str = ""


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    applicant_id: str
    cover_letter: str
    status: str
    created_at: datetime
