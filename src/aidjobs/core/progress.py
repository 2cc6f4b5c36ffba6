from __future__ import annotations

import logging
from collections.abc import Mapping

from aidjobs.db.models import UserProgressFlags
from aidjobs.db.repositories import Repository
from aidjobs.errors import AidJobsError, UnknownFlagError
from aidjobs.types import PROGRESS_FLAG_NAMES, FlagSet

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Per-user milestone flags used to gate which tools the UI offers.

    Flags are independent: no write is checked against another flag's value.
    """

    def __init__(self, repo: Repository):
        self.repo = repo

    def get(self, user_id: str) -> FlagSet:
        row = self.repo.get_progress_flags(user_id)
        if row is None:
            row = self.repo.upsert_progress_flags(user_id, {})
        return _to_flag_set(row)

    def set(self, user_id: str, flag: str, value: bool) -> FlagSet:
        return self.set_many(user_id, {flag: value})

    def set_many(self, user_id: str, values: Mapping[str, bool]) -> FlagSet:
        unknown = sorted(set(values) - set(PROGRESS_FLAG_NAMES))
        if unknown:
            raise UnknownFlagError(f"unknown progress flags: {', '.join(unknown)}")

        row = self.repo.upsert_progress_flags(user_id, {key: bool(value) for key, value in values.items()})
        return _to_flag_set(row)

    def try_set_many(self, user_id: str, values: Mapping[str, bool]) -> bool:
        try:
            self.set_many(user_id, values)
        except AidJobsError as exc:
            logger.warning("Progress flag update failed user=%s flags=%s error=%s", user_id, dict(values), exc)
            return False
        return True


def _to_flag_set(row: UserProgressFlags) -> FlagSet:
    return FlagSet(**{name: bool(getattr(row, name)) for name in PROGRESS_FLAG_NAMES})
