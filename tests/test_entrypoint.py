import json
from pathlib import Path
from typing import Any

import pytest

from ghassist.entrypoint import run_prepare
from ghassist.errors import InsufficientPermissionsError, UnsupportedEventError
from ghassist.models import ModeName
from ghassist.outputs import ActionOutputs


def _env(tmp_path: Path, event_name: str, payload: dict[str, Any], **extra: str) -> dict[str, str]:
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps(payload))
    env = {
        "GITHUB_EVENT_NAME": event_name,
        "GITHUB_EVENT_PATH": str(event_path),
        "GITHUB_REPOSITORY": "acme/widgets",
        "GITHUB_ACTOR": "alice",
        "GITHUB_RUN_ID": "1234",
        "GITHUB_TOKEN": "app-token",
        "RUNNER_TEMP": str(tmp_path),
        "GITHUB_ACTION_PATH": "/action",
        "GITHUB_OUTPUT": str(tmp_path / "output.txt"),
    }
    env.update(extra)
    return env


def test_untriggered_issue_only_reports_outputs(tmp_path: Path, event_payload, connector) -> None:
    outputs = ActionOutputs()
    outcome = run_prepare(
        _env(tmp_path, "issues", event_payload("issues")),
        outputs=outputs,
        repo_path=tmp_path,
        connector_factory=lambda run_env, repository: connector,
    )

    assert outcome.mode == ModeName.AGENT
    assert outcome.contains_trigger is False
    assert outcome.result is None
    assert outputs.outputs == {"contains_trigger": "false", "mode": "agent", "github_token": "app-token"}
    assert connector.called("get_collaborator_permission")
    assert not connector.called("create_comment")
    assert not (tmp_path / "claude-prompts").exists()


def test_mention_runs_tag_mode(tmp_path: Path, event_payload, connector) -> None:
    env = _env(tmp_path, "issue_comment", event_payload("issue_comment"))
    outcome = run_prepare(env, repo_path=tmp_path, connector_factory=lambda run_env, repository: connector)

    assert outcome.mode == ModeName.TAG
    assert outcome.contains_trigger is True
    assert outcome.result is not None
    assert outcome.result.comment_id == 1000

    written = (tmp_path / "output.txt").read_text()
    assert "contains_trigger=true\n" in written
    assert "mode=tag\n" in written
    assert "claude_comment_id=1000\n" in written
    assert "base_branch=main\n" in written
    assert "branch_name=claude/issue-42-" in written
    assert "mcp_config<<ghadelimiter_" in written
    assert (tmp_path / "claude-prompts" / "claude-prompt.txt").exists()


def test_repo_config_changes_trigger_phrase(tmp_path: Path, event_payload, connector) -> None:
    (tmp_path / ".ghassist.yaml").write_text("inputs:\n  trigger_phrase: /bot\n")
    payload = event_payload("issue_comment", comment={"body": "/bot please help"})

    outcome = run_prepare(
        _env(tmp_path, "issue_comment", payload),
        outputs=ActionOutputs(),
        repo_path=tmp_path,
        connector_factory=lambda run_env, repository: connector,
    )

    assert outcome.mode == ModeName.TAG
    assert outcome.contains_trigger is True


def test_read_only_actor_is_rejected_before_any_side_effect(tmp_path: Path, event_payload, make_connector) -> None:
    connector = make_connector(permission="read")
    with pytest.raises(InsufficientPermissionsError):
        run_prepare(
            _env(tmp_path, "issue_comment", event_payload("issue_comment")),
            outputs=ActionOutputs(),
            repo_path=tmp_path,
            connector_factory=lambda run_env, repository: connector,
        )
    assert not connector.called("create_comment")


def test_non_write_allow_list_needs_workflow_token(tmp_path: Path, event_payload, make_connector) -> None:
    connector = make_connector(permission="read")
    payload = event_payload("issue_comment")

    with pytest.raises(InsufficientPermissionsError):
        run_prepare(
            _env(tmp_path, "issue_comment", payload, ALLOWED_NON_WRITE_USERS="alice"),
            outputs=ActionOutputs(),
            repo_path=tmp_path,
            connector_factory=lambda run_env, repository: connector,
        )

    outcome = run_prepare(
        _env(tmp_path, "issue_comment", payload, ALLOWED_NON_WRITE_USERS="alice", OVERRIDE_GITHUB_TOKEN="pat"),
        outputs=ActionOutputs(),
        repo_path=tmp_path,
        connector_factory=lambda run_env, repository: connector,
    )
    assert outcome.contains_trigger is True


def test_workflow_dispatch_with_prompt_runs_agent(tmp_path: Path, event_payload, connector) -> None:
    outputs = ActionOutputs()
    outcome = run_prepare(
        _env(tmp_path, "workflow_dispatch", event_payload("workflow_dispatch"), PROMPT="Triage stale issues"),
        outputs=outputs,
        repo_path=tmp_path,
        connector_factory=lambda run_env, repository: connector,
    )

    assert outcome.mode == ModeName.AGENT
    assert outcome.contains_trigger is True
    assert outputs.outputs["branch_name"] == "main"
    assert outputs.outputs["claude_comment_id"] == ""
    assert outputs.exported["GITHUB_EVENT_NAME"] == "workflow_dispatch"
    assert connector.calls == []
    assert (tmp_path / "claude-prompts" / "claude-prompt.txt").read_text() == "Triage stale issues"


def test_unsupported_event_fails(tmp_path: Path, connector) -> None:
    with pytest.raises(UnsupportedEventError, match="Unsupported event type: push"):
        run_prepare(
            _env(tmp_path, "push", {"ref": "refs/heads/main"}),
            outputs=ActionOutputs(),
            repo_path=tmp_path,
            connector_factory=lambda run_env, repository: connector,
        )
