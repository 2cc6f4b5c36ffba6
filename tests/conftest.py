from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="aidjobs-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test.db'}"
os.environ["DATA_DIR"] = str(_TEST_DIR / "data")
os.environ["APP_ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOCAL_LLM_ENABLED"] = "false"

import pytest  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from aidjobs.core import job_fetcher  # noqa: E402
from aidjobs.core.runtime import reset_event_bus  # noqa: E402
from aidjobs.db.base import Base  # noqa: E402
from aidjobs.db.models import User  # noqa: E402
from aidjobs.db.repositories import Repository  # noqa: E402
from aidjobs.db.session import SessionLocal, engine  # noqa: E402
from aidjobs.errors import FetchError, GenerationError  # noqa: E402
from aidjobs.types import PageContent  # noqa: E402

SAMPLE_JD = (
    "Job Title: Field Coordinator, Migration Programme\n\n"
    "About the organization: We support displaced communities across East Africa with protection, "
    "livelihoods and legal aid services.\n\n"
    "Key responsibilities: coordinate field teams, manage partner relationships, monitor project "
    "activities and report to the country director.\n\n"
    "Requirements: five years of humanitarian field experience, fluency in English and Swahili."
)


class FakeLLM:
    """Stands in for LLMRouter; pops one outcome per call."""

    def __init__(self, outcomes: list[str | Exception] | None = None):
        self.outcomes = list(outcomes or [])
        self.calls: list[dict] = []

    def complete(self, *, system: str, prompt: str, task: str = "writer", temperature: float | None = None) -> str:
        self.calls.append({"system": system, "prompt": prompt, "task": task, "temperature": temperature})
        outcome = self.outcomes.pop(0) if self.outcomes else SAMPLE_JD
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def reset_db() -> Iterator[None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    reset_event_bus()
    yield


@pytest.fixture
def session() -> Iterator[Session]:
    with SessionLocal() as db:
        yield db


@pytest.fixture
def repo(session: Session) -> Repository:
    return Repository(session)


@pytest.fixture
def make_user(repo: Repository) -> Callable[..., User]:
    def _make(email: str = "org@example.org", role: str = "organization") -> User:
        return repo.create_user(email=email, display_name=email.split("@")[0], role=role)

    return _make


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def timeout_error() -> GenerationError:
    return GenerationError("Request timed out")


@pytest.fixture
def fake_pages(monkeypatch: pytest.MonkeyPatch) -> dict[str, PageContent]:
    """Serves fetched pages from a dict; unknown URLs fail like a network error."""
    pages: dict[str, PageContent] = {}

    def _fetch_page(url: str, timeout_sec: int = 30) -> PageContent:
        url = job_fetcher.normalize_url(url)
        if url not in pages:
            raise FetchError(f"failed to fetch {url}")
        return pages[url]

    monkeypatch.setattr(job_fetcher, "fetch_page", _fetch_page)
    return pages
