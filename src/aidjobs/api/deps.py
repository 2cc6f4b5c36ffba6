from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from aidjobs.db.models import User
from aidjobs.db.repositories import Repository
from aidjobs.db.session import get_db_session


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    user = Repository(db).get_user_by_token(bearer_token(authorization))
    if user is None:
        raise HTTPException(status_code=401, detail="Missing or invalid API token")
    return user
