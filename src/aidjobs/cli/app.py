from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import NoReturn

import typer
import uvicorn

from aidjobs.api.app import create_app
from aidjobs.config import get_settings
from aidjobs.core.assistant import JDAssistant
from aidjobs.core.drafts import DraftService
from aidjobs.core.progress import ProgressTracker
from aidjobs.core.publishing import PublishingService
from aidjobs.db.init import init_database
from aidjobs.db.models import JDDraft
from aidjobs.db.repositories import Repository
from aidjobs.db.session import SessionLocal
from aidjobs.errors import AidJobsError
from aidjobs.logging_config import configure_logging

app = typer.Typer(help="AidJobs CLI")
user_app = typer.Typer(help="Manage users")
jd_app = typer.Typer(help="Job-description assistant")
progress_app = typer.Typer(help="Per-user progress flags")
jobs_app = typer.Typer(help="Published jobs")

app.add_typer(user_app, name="user")
app.add_typer(jd_app, name="jd")
app.add_typer(progress_app, name="progress")
app.add_typer(jobs_app, name="jobs")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _echo(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _fail(exc: AidJobsError) -> NoReturn:
    typer.echo(json.dumps({"ok": False, "error": type(exc).__name__, "detail": str(exc)}, indent=2), err=True)
    raise typer.Exit(code=1)


def _draft_summary(draft: JDDraft) -> dict[str, object]:
    return {
        "id": draft.id,
        "category": draft.input_category,
        "summary": draft.input_summary,
        "status": draft.status,
        "attempts": draft.attempts,
        "created_at": draft.created_at.isoformat() if draft.created_at else None,
    }


@app.command("init")
def init_cmd() -> None:
    """Initialize the database and data directories."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@user_app.command("create")
def user_create(
    email: str = typer.Option(..., "--email"),
    display_name: str = typer.Option("", "--name"),
    role: str = typer.Option("organization", "--role"),
) -> None:
    configure_logging()
    ensure_initialized()
    if role not in {"organization", "candidate"}:
        raise typer.BadParameter("role must be 'organization' or 'candidate'")

    with SessionLocal() as db:
        repo = Repository(db)
        if repo.get_user_by_email(email):
            raise typer.BadParameter(f"user {email} already exists")
        user = repo.create_user(email=email, display_name=display_name, role=role)
        _echo({"id": user.id, "email": user.email, "role": user.role, "api_token": user.api_token})


@jd_app.command("generate")
def jd_generate(
    user_id: str = typer.Option(..., "--user-id"),
    text: str | None = typer.Option(None, "--text"),
    file: Path | None = typer.Option(None, "--file", exists=True, readable=True, dir_okay=False),
) -> None:
    """Generate a job description from a brief, a link, or an uploaded document."""
    configure_logging()
    ensure_initialized()
    if (text is None) == (file is None):
        raise typer.BadParameter("pass exactly one of --text or --file")

    with SessionLocal() as db:
        if Repository(db).get_user(user_id) is None:
            raise typer.BadParameter(f"user {user_id} not found")
        assistant = JDAssistant(db)
        try:
            if file is not None:
                content_type, _ = mimetypes.guess_type(file.name)
                reply = assistant.submit_upload(user_id, file.name, file.read_bytes(), content_type)
            else:
                reply = assistant.submit_text(user_id, text or "")
        except AidJobsError as exc:
            _fail(exc)
        _echo(reply.model_dump())


@jd_app.command("retry")
def jd_retry(
    user_id: str = typer.Option(..., "--user-id"),
    draft_id: str | None = typer.Option(None, "--draft-id"),
) -> None:
    """Retry a failed draft, or the most recent failed draft when no id is given."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        assistant = JDAssistant(db)
        if draft_id is None:
            offer = assistant.pending_retry(user_id)
            if offer is None:
                _echo({"ok": False, "detail": "nothing to retry"})
                raise typer.Exit(code=1)
            draft_id = offer.draft_id or ""
        try:
            reply = assistant.retry(user_id, draft_id)
        except AidJobsError as exc:
            _fail(exc)
        _echo(reply.model_dump())


@jd_app.command("list")
def jd_list(
    user_id: str = typer.Option(..., "--user-id"),
    status: str | None = typer.Option(None, "--status"),
    limit: int = typer.Option(20, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        drafts = Repository(db).list_drafts(user_id, status=status, limit=limit)
        _echo([_draft_summary(draft) for draft in drafts])


@jd_app.command("show")
def jd_show(
    user_id: str = typer.Option(..., "--user-id"),
    draft_id: str = typer.Option(..., "--draft-id"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            draft = Repository(db).get_draft(user_id, draft_id)
        except AidJobsError as exc:
            _fail(exc)
        _echo({**_draft_summary(draft), "generated_text": draft.generated_text, "error": draft.error_detail})


@jd_app.command("edit")
def jd_edit(
    user_id: str = typer.Option(..., "--user-id"),
    draft_id: str = typer.Option(..., "--draft-id"),
    text: str | None = typer.Option(None, "--text"),
    file: Path | None = typer.Option(None, "--file", exists=True, readable=True, dir_okay=False),
) -> None:
    """Replace the text of a completed draft."""
    configure_logging()
    ensure_initialized()
    if (text is None) == (file is None):
        raise typer.BadParameter("pass exactly one of --text or --file")
    new_text = file.read_text(encoding="utf-8") if file is not None else text or ""
    if not new_text.strip():
        raise typer.BadParameter("edited text must not be empty")

    with SessionLocal() as db:
        try:
            draft = DraftService(Repository(db)).update_text(user_id, draft_id, new_text)
        except AidJobsError as exc:
            _fail(exc)
        _echo({**_draft_summary(draft), "generated_text": draft.generated_text})


@progress_app.command("show")
def progress_show(user_id: str = typer.Option(..., "--user-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        if repo.get_user(user_id) is None:
            raise typer.BadParameter(f"user {user_id} not found")
        _echo(ProgressTracker(repo).get(user_id).model_dump())


@progress_app.command("set")
def progress_set(
    user_id: str = typer.Option(..., "--user-id"),
    flag: str = typer.Option(..., "--flag"),
    value: bool = typer.Option(True, "--value/--clear"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            flags = ProgressTracker(Repository(db)).set(user_id, flag, value)
        except AidJobsError as exc:
            _fail(exc)
        _echo(flags.model_dump())


@jobs_app.command("publish")
def jobs_publish(
    user_id: str = typer.Option(..., "--user-id"),
    draft_id: str = typer.Option(..., "--draft-id"),
    title: str | None = typer.Option(None, "--title"),
    organization: str = typer.Option("", "--organization"),
    location: str = typer.Option("", "--location"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            job = PublishingService(Repository(db)).publish(
                user_id,
                draft_id,
                title=title,
                organization_name=organization,
                location=location,
            )
        except AidJobsError as exc:
            _fail(exc)
        _echo({"id": job.id, "title": job.title, "public_token": job.public_token, "status": job.status})


@jobs_app.command("list")
def jobs_list(limit: int = typer.Option(20, "--limit")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        jobs = PublishingService(Repository(db)).list_public(limit=limit)
        _echo(
            [
                {
                    "id": job.id,
                    "title": job.title,
                    "organization": job.organization_name,
                    "location": job.location,
                    "public_token": job.public_token,
                    "published_at": job.published_at.isoformat() if job.published_at else None,
                }
                for job in jobs
            ]
        )


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    configure_logging(log_level)
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
