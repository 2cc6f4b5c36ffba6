from __future__ import annotations

import json

from typer.testing import CliRunner

from aidjobs.cli.app import app
from aidjobs.core.drafts import DraftService
from aidjobs.db.repositories import Repository

runner = CliRunner()


def _invoke(*args: str) -> dict | list:
    result = runner.invoke(app, list(args))
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_user_progress_and_generation_commands(tmp_path) -> None:
    user = _invoke("user", "create", "--email", "cli@example.org", "--name", "CLI Org")
    assert user["api_token"]

    reply = _invoke("jd", "generate", "--user-id", user["id"], "--text", "need a coordinator")
    assert reply["kind"] == "clarification"

    rejected_file = tmp_path / "tool.exe"
    rejected_file.write_bytes(b"MZ")
    reply = _invoke("jd", "generate", "--user-id", user["id"], "--file", str(rejected_file))
    assert reply["kind"] == "rejected"

    # No generation provider is configured in tests, so the attempt fails and is recorded.
    reply = _invoke(
        "jd",
        "generate",
        "--user-id",
        user["id"],
        "--text",
        "We are hiring a monitoring and evaluation officer for our nutrition programme in Mali",
    )
    assert reply["kind"] == "failed"

    drafts = _invoke("jd", "list", "--user-id", user["id"], "--status", "failed")
    assert [draft["id"] for draft in drafts] == [reply["draft_id"]]

    flags = _invoke("progress", "set", "--user-id", user["id"], "--flag", "has_uploaded_cv")
    assert flags["has_uploaded_cv"] is True
    assert _invoke("progress", "show", "--user-id", user["id"])["jd_generation_failed"] is True


def test_unknown_flag_exits_with_error() -> None:
    user = _invoke("user", "create", "--email", "flags@example.org")

    result = runner.invoke(app, ["progress", "set", "--user-id", user["id"], "--flag", "bogus"])

    assert result.exit_code == 1


def test_jobs_list_is_empty_without_published_jobs() -> None:
    assert _invoke("jobs", "list") == []


def test_progress_show_for_unknown_user_is_a_usage_error() -> None:
    result = runner.invoke(app, ["progress", "show", "--user-id", "missing-user"])

    assert result.exit_code == 2
    assert "not found" in result.output


def test_edit_command_updates_completed_draft(session, make_user) -> None:
    user = make_user()
    service = DraftService(Repository(session))
    draft = service.create(user.id, "brief", "We are hiring a finance officer for our cash programme in Yemen")
    service.set_processing(user.id, draft.id)
    service.complete(user.id, draft.id, "Job Title: Finance Officer")

    edited = _invoke("jd", "edit", "--user-id", user.id, "--draft-id", draft.id, "--text", "Job Title: Finance Lead")

    assert edited["generated_text"] == "Job Title: Finance Lead"
    shown = _invoke("jd", "show", "--user-id", user.id, "--draft-id", draft.id)
    assert shown["generated_text"] == "Job Title: Finance Lead"


def test_edit_command_rejects_failed_draft(session, make_user) -> None:
    user = make_user()
    service = DraftService(Repository(session))
    draft = service.create(user.id, "brief", "We are hiring a finance officer for our cash programme in Yemen")
    service.set_processing(user.id, draft.id)
    service.fail(user.id, draft.id, "timeout")

    result = runner.invoke(app, ["jd", "edit", "--user-id", user.id, "--draft-id", draft.id, "--text", "text"])

    assert result.exit_code == 1
    assert "InvalidTransitionError" in result.output
