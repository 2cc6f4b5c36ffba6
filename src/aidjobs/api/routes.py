from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from aidjobs.api.deps import get_current_user, get_db
from aidjobs.api.schemas import (
    ApplicationCreateRequest,
    ApplicationResponse,
    DraftEditRequest,
    DraftResponse,
    JDMessageRequest,
    JobPublishRequest,
    JobResponse,
    UserCreateRequest,
    UserCreateResponse,
)
from aidjobs.core.assistant import JDAssistant
from aidjobs.core.drafts import DraftService
from aidjobs.core.progress import ProgressTracker
from aidjobs.core.publishing import PublishingService
from aidjobs.core.runtime import get_event_bus
from aidjobs.db.models import User
from aidjobs.db.repositories import Repository
from aidjobs.db.session import SessionLocal
from aidjobs.errors import (
    AidJobsError,
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    UnknownFlagError,
)
from aidjobs.llm.router import LLMRouter
from aidjobs.types import AssistantReply, FlagSet

router = APIRouter(prefix="/api", tags=["api"])


def get_llm_router() -> LLMRouter:
    return LLMRouter()


def http_error(exc: AidJobsError) -> HTTPException:
    if isinstance(exc, AuthorizationError):
        return HTTPException(status_code=403, detail=exc.user_message)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, UnknownFlagError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=500, detail=exc.user_message)


@router.post("/users", response_model=UserCreateResponse)
def create_user(payload: UserCreateRequest, db: Session = Depends(get_db)) -> UserCreateResponse:
    repo = Repository(db)
    if repo.get_user_by_email(payload.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    try:
        user = repo.create_user(email=payload.email, display_name=payload.display_name, role=payload.role)
    except AidJobsError as exc:
        raise http_error(exc) from exc
    return UserCreateResponse(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        api_token=user.api_token,
    )


@router.get("/progress", response_model=FlagSet)
def get_progress(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> FlagSet:
    return ProgressTracker(Repository(db)).get(user.id)


@router.put("/progress", response_model=FlagSet)
def update_progress(
    payload: dict[str, bool],
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FlagSet:
    try:
        return ProgressTracker(Repository(db)).set_many(user.id, payload)
    except AidJobsError as exc:
        raise http_error(exc) from exc


@router.post("/jd/messages", response_model=AssistantReply)
def send_jd_message(
    payload: JDMessageRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> AssistantReply:
    try:
        return JDAssistant(db, llm=llm).submit_text(user.id, payload.text)
    except AidJobsError as exc:
        raise http_error(exc) from exc


@router.post("/jd/uploads", response_model=AssistantReply)
def upload_jd_file(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> AssistantReply:
    data = file.file.read()
    try:
        return JDAssistant(db, llm=llm).submit_upload(
            user.id,
            file.filename or "upload",
            data,
            content_type=file.content_type,
        )
    except AidJobsError as exc:
        raise http_error(exc) from exc


@router.get("/jd/drafts", response_model=list[DraftResponse])
def list_drafts(
    status: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[DraftResponse]:
    rows = Repository(db).list_drafts(user.id, status=status)
    return [DraftResponse.model_validate(row) for row in rows]


@router.get("/jd/drafts/{draft_id}", response_model=DraftResponse)
def get_draft(draft_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> DraftResponse:
    try:
        return DraftResponse.model_validate(Repository(db).get_draft(user.id, draft_id))
    except AidJobsError as exc:
        raise http_error(exc) from exc


@router.patch("/jd/drafts/{draft_id}", response_model=DraftResponse)
def edit_draft(
    draft_id: str,
    payload: DraftEditRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DraftResponse:
    try:
        draft = DraftService(Repository(db)).update_text(user.id, draft_id, payload.generated_text)
    except AidJobsError as exc:
        raise http_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return DraftResponse.model_validate(draft)


@router.post("/jd/drafts/{draft_id}/retry", response_model=AssistantReply)
def retry_draft(
    draft_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> AssistantReply:
    try:
        return JDAssistant(db, llm=llm).retry(user.id, draft_id)
    except AidJobsError as exc:
        raise http_error(exc) from exc


@router.get("/jd/retry-offer", response_model=AssistantReply | None)
def get_retry_offer(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm: LLMRouter = Depends(get_llm_router),
) -> AssistantReply | None:
    return JDAssistant(db, llm=llm).pending_retry(user.id)


@router.post("/jobs", response_model=JobResponse)
def publish_job(
    payload: JobPublishRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JobResponse:
    try:
        job = PublishingService(Repository(db)).publish(
            user.id,
            payload.draft_id,
            title=payload.title,
            organization_name=payload.organization_name,
            location=payload.location,
        )
    except AidJobsError as exc:
        raise http_error(exc) from exc
    return JobResponse.model_validate(job)


@router.post("/jobs/{job_id}/close", response_model=JobResponse)
def close_job(job_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> JobResponse:
    try:
        return JobResponse.model_validate(PublishingService(Repository(db)).close(user.id, job_id))
    except AidJobsError as exc:
        raise http_error(exc) from exc


@router.get("/jobs/public", response_model=list[JobResponse])
def list_public_jobs(db: Session = Depends(get_db)) -> list[JobResponse]:
    return [JobResponse.model_validate(row) for row in PublishingService(Repository(db)).list_public()]


@router.get("/jobs/public/{public_token}", response_model=JobResponse)
def get_public_job(public_token: str, db: Session = Depends(get_db)) -> JobResponse:
    try:
        return JobResponse.model_validate(PublishingService(Repository(db)).get_public(public_token))
    except AidJobsError as exc:
        raise http_error(exc) from exc


@router.post("/jobs/{job_id}/applications", response_model=ApplicationResponse)
def apply_to_job(
    job_id: str,
    payload: ApplicationCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = PublishingService(Repository(db)).apply(user.id, job_id, payload.cover_letter)
    except AidJobsError as exc:
        raise http_error(exc) from exc
    return ApplicationResponse.model_validate(application)


@router.get("/jobs/{job_id}/applications", response_model=list[ApplicationResponse])
def list_job_applications(
    job_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ApplicationResponse]:
    try:
        rows = PublishingService(Repository(db)).list_applications_for_job(user.id, job_id)
    except AidJobsError as exc:
        raise http_error(exc) from exc
    return [ApplicationResponse.model_validate(row) for row in rows]


@router.get("/applications", response_model=list[ApplicationResponse])
def list_my_applications(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ApplicationResponse]:
    rows = PublishingService(Repository(db)).list_my_applications(user.id)
    return [ApplicationResponse.model_validate(row) for row in rows]


@router.websocket("/jd/stream")
async def stream_status(websocket: WebSocket, token: str = "") -> None:
    with SessionLocal() as db:
        user = Repository(db).get_user_by_token(token)
        owner_id = user.id if user else None

    if owner_id is None:
        await websocket.close(code=4401)
        return

    await websocket.accept()
    event_bus = get_event_bus()
    try:
        async for event in event_bus.subscribe(owner_id):
            await websocket.send_json(event)
    except WebSocketDisconnect:
        return
