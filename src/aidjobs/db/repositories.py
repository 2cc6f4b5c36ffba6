from __future__ import annotations

import logging
import secrets
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aidjobs.db.base import new_id
from aidjobs.db.models import Application, ErrorLog, JDDraft, Job, User, UserProgressFlags
from aidjobs.errors import (
    AuthorizationError,
    DraftNotFoundError,
    JobNotFoundError,
    NotFoundError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", JDDraft, Job)


def new_api_token() -> str:
    return secrets.token_urlsafe(32)


def new_public_token() -> str:
    return secrets.token_urlsafe(12)


class Repository:
    """Store access scoped by owner.

    Every read or write of an owned row goes through ``_owned``: an unknown id
    raises the matching not-found error, a row owned by someone else raises
    ``AuthorizationError``. Callers never see another owner's row.
    """

    def __init__(self, session: Session):
        self.session = session

    def create_user(self, *, email: str, display_name: str = "", role: str = "organization") -> User:
        user = User(
            id=new_id(), email=email, display_name=display_name, role=role, api_token=new_api_token()
        )
        self.session.add(user)
        self.session.add(UserProgressFlags(user_id=user.id))
        self._commit()
        self.session.refresh(user)
        return user

    def get_user(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def get_user_by_token(self, api_token: str) -> User | None:
        if not api_token:
            return None
        return self.session.scalar(select(User).where(User.api_token == api_token))

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email))

    def get_progress_flags(self, user_id: str) -> UserProgressFlags | None:
        return self.session.get(UserProgressFlags, user_id)

    def upsert_progress_flags(self, user_id: str, values: dict[str, bool]) -> UserProgressFlags:
        row = self.session.get(UserProgressFlags, user_id)
        if row is None:
            row = UserProgressFlags(user_id=user_id)
            self.session.add(row)
        for key, value in values.items():
            setattr(row, key, value)

        self._commit()
        self.session.refresh(row)
        return row

    def create_draft(self, *, owner_id: str, **values: Any) -> JDDraft:
        draft = JDDraft(owner_id=owner_id, status="pending", **values)
        self.session.add(draft)
        self._commit()
        self.session.refresh(draft)
        return draft

    def get_draft(self, owner_id: str, draft_id: str) -> JDDraft:
        return self._owned(JDDraft, draft_id, owner_id, DraftNotFoundError)

    def update_draft(self, owner_id: str, draft_id: str, **values: Any) -> JDDraft:
        draft = self.get_draft(owner_id, draft_id)
        for key, value in values.items():
            setattr(draft, key, value)

        self._commit()
        self.session.refresh(draft)
        return draft

    def list_drafts(self, owner_id: str, *, status: str | None = None, limit: int = 50) -> list[JDDraft]:
        statement = select(JDDraft).where(JDDraft.owner_id == owner_id)
        if status is not None:
            statement = statement.where(JDDraft.status == status)
        statement = statement.order_by(JDDraft.created_at.desc()).limit(limit)
        return list(self.session.scalars(statement).all())

    def latest_draft(self, owner_id: str, *, status: str | None = None) -> JDDraft | None:
        drafts = self.list_drafts(owner_id, status=status, limit=1)
        return drafts[0] if drafts else None

    def create_job(self, *, owner_id: str, **values: Any) -> Job:
        job = Job(owner_id=owner_id, public_token=new_public_token(), **values)
        self.session.add(job)
        self._commit()
        self.session.refresh(job)
        return job

    def get_job(self, owner_id: str, job_id: str) -> Job:
        return self._owned(Job, job_id, owner_id, JobNotFoundError)

    def update_job(self, owner_id: str, job_id: str, **values: Any) -> Job:
        job = self.get_job(owner_id, job_id)
        for key, value in values.items():
            setattr(job, key, value)

        self._commit()
        self.session.refresh(job)
        return job

    def get_readable_job(self, job_id: str) -> Job:
        """Public read: published jobs and templates are visible to everyone."""
        job = self.session.get(Job, job_id)
        if job is None or not (job.status == "published" or job.is_template):
            raise JobNotFoundError(f"job {job_id} not found")
        return job

    def get_public_job(self, public_token: str) -> Job:
        job = self.session.scalar(select(Job).where(Job.public_token == public_token))
        if job is None or not (job.status == "published" or job.is_template):
            raise JobNotFoundError(f"job with token {public_token} not found")
        return job

    def list_public_jobs(self, limit: int = 50) -> list[Job]:
        statement = (
            select(Job)
            .where((Job.status == "published") | (Job.is_template.is_(True)))
            .order_by(Job.published_at.desc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def create_application(self, *, job_id: str, applicant_id: str, cover_letter: str = "") -> Application:
        application = Application(job_id=job_id, applicant_id=applicant_id, cover_letter=cover_letter)
        self.session.add(application)
        self._commit()
        self.session.refresh(application)
        return application

    def get_application_for(self, job_id: str, applicant_id: str) -> Application | None:
        statement = select(Application).where(
            Application.job_id == job_id,
            Application.applicant_id == applicant_id,
        )
        return self.session.scalar(statement)

    def list_applications_for_job(self, owner_id: str, job_id: str) -> list[Application]:
        self.get_job(owner_id, job_id)
        statement = (
            select(Application)
            .where(Application.job_id == job_id)
            .order_by(Application.created_at.asc())
        )
        return list(self.session.scalars(statement).all())

    def list_applications_for_applicant(self, applicant_id: str) -> list[Application]:
        statement = (
            select(Application)
            .where(Application.applicant_id == applicant_id)
            .order_by(Application.created_at.desc())
        )
        return list(self.session.scalars(statement).all())

    def log_error(self, *, user_id: str | None, error_type: str, details: str, source: str) -> ErrorLog:
        entry = ErrorLog(user_id=user_id, error_type=error_type, details=details, source=source)
        self.session.add(entry)
        self._commit()
        self.session.refresh(entry)
        return entry

    def list_error_logs(self, user_id: str, limit: int = 50) -> list[ErrorLog]:
        statement = (
            select(ErrorLog)
            .where(ErrorLog.user_id == user_id)
            .order_by(ErrorLog.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def _owned(
        self,
        model: type[RowT],
        row_id: str,
        owner_id: str,
        not_found: type[NotFoundError],
    ) -> RowT:
        row = self.session.get(model, row_id)
        if row is None:
            raise not_found(f"{model.__tablename__} row {row_id} not found")
        if row.owner_id != owner_id:
            logger.warning(
                "Denied access table=%s id=%s caller=%s", model.__tablename__, row_id, owner_id
            )
            raise AuthorizationError(f"{model.__tablename__} row {row_id} is not owned by caller")
        return row

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Store write failed")
            raise PersistenceError(str(exc)) from exc
