from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from aidjobs.db.base import Base, TimestampMixin, new_id


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    role: Mapped[str] = mapped_column(String(40), default="organization", nullable=False)
    api_token: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)


class UserProgressFlags(TimestampMixin, Base):
    __tablename__ = "user_progress_flags"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    has_uploaded_cv: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_analyzed_cv: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_selected_job: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_written_cover_letter: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_started_jd: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_submitted_jd_inputs: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_generated_jd: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    jd_generation_failed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_published_job: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_applied_to_job: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class JDDraft(TimestampMixin, Base):
    __tablename__ = "jd_drafts"
    __table_args__ = (
        CheckConstraint(
            "input_category IN ('brief', 'brief_with_link', 'link_only', 'upload')",
            name="ck_jd_drafts_input_category",
        ),
        CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed')",
            name="ck_jd_drafts_status",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    input_category: Mapped[str] = mapped_column(String(40), nullable=False)
    input_summary: Mapped[str] = mapped_column(Text, default="", nullable=False)
    raw_input: Mapped[str] = mapped_column(Text, nullable=False)
    source_url: Mapped[str | None] = mapped_column(String(800), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True, nullable=False)
    generated_text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    error_detail: Mapped[str] = mapped_column(Text, default="", nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Job(TimestampMixin, Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    source_draft_id: Mapped[str | None] = mapped_column(
        ForeignKey("jd_drafts.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    organization_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="published", nullable=False)
    public_token: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    is_template: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Application(TimestampMixin, Base):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("job_id", "applicant_id", name="uq_application_job_applicant"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    job_id: Mapped[str] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    applicant_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    cover_letter: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="submitted", nullable=False)


class ErrorLog(TimestampMixin, Base):
    __tablename__ = "error_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    error_type: Mapped[str] = mapped_column(String(120), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(120), nullable=False)
