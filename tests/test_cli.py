"""Smoke tests for all CLI commands using typer CliRunner."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import click
import pytest
import typer
from pytest_httpx import HTTPXMock
from typer.testing import CliRunner

import linctl.settings as settings_module
from linctl.client import ENDPOINT, LinearError
from linctl.main import app
from linctl.models import Comment, Issue, Organization, User, Viewer

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    config_path = tmp_path / "config.toml"
    monkeypatch.setattr(settings_module, "CONFIG_PATH", config_path)
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LINCTL_API_KEY", raising=False)
    settings_module._load_toml.cache_clear()
    yield config_path
    settings_module._load_toml.cache_clear()


def _issue(**overrides) -> Issue:
    node = {
        "id": "issue_1",
        "identifier": "ENG-1",
        "title": "Test issue",
        "description": "A test issue.",
        "url": "https://linear.app/t/ENG-1",
        "priority": 3,
        "state": {"id": "s1", "name": "In Progress", "type": "started"},
        "assignee": {"id": "u1", "name": "Test User"},
        "team": {"id": "t1", "name": "Engineering", "key": "ENG"},
        "labels": {"nodes": [{"id": "l1", "name": "bug"}]},
    }
    node.update(overrides)
    return Issue.model_validate(node)


def _comment(comment_id: str = "comment-1", **overrides) -> Comment:
    node = {
        "id": comment_id,
        "body": "Looks good to me",
        "createdAt": "2026-01-06T10:00:00Z",
        "user": {"id": "u1", "name": "Jane Doe"},
    }
    node.update(overrides)
    return Comment.model_validate(node)


def _mock_client() -> MagicMock:
    client = MagicMock()
    client.get_viewer.return_value = Viewer(
        user=User(id="me", name="Me Myself", email="me@example.com"),
        organization=Organization(id="o1", name="Acme", url_key="acme"),
    )
    client.list_issues.return_value = [_issue()]
    client.get_issue.return_value = _issue()
    client.create_issue.return_value = _issue(identifier="ENG-99", title="New")
    client.update_issue.return_value = _issue()
    client.find_team.return_value = MagicMock(id="t1")
    client.find_user.return_value = User(id="bot-1", name="Claude", display_name="claude")
    client.find_state.return_value = MagicMock(id="state-done")
    client.find_labels.return_value = [MagicMock(id="l1")]
    client.get_issue_comments.return_value = [
        _comment("c1"),
        _comment("c2", parent={"id": "c1"}, resolvedAt="2026-01-06T11:00:00Z"),
    ]
    client.create_comment.return_value = _comment("c3")
    client.resolve_comment.return_value = _comment("c1", resolvingUser={"id": "u1", "name": "Jane Doe"})
    client.unresolve_comment.return_value = _comment("c1")
    client.mention_agent.return_value = "mention-1"
    return client


def _invoke(client: MagicMock, args: list[str]):
    with patch("linctl.main.get_client", return_value=client):
        return runner.invoke(app, args)


def _option(path: list[str], name: str) -> click.Option:
    command = typer.main.get_command(app)
    for part in path:
        command = command.commands[part]  # type: ignore[attr-defined]
    for param in command.params:
        if name in param.opts:
            return param  # type: ignore[return-value]
    raise AssertionError(f"{name} not found on {' '.join(path)}")


class TestAgentView:
    def test_no_session_found(self, bare_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = bare_issue
        result = _invoke(client, ["agent", "view", "ENG-80"])
        assert result.exit_code == 0
        assert result.output.strip() == "No agent session found for ENG-80"

    def test_delegated_no_session(self, delegated_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = delegated_issue
        result = _invoke(client, ["agent", "view", "ENG-80"])
        assert result.exit_code == 0
        assert "Delegate: bot" in result.output
        assert "Delegated but no session started yet" in result.output

    def test_session_rich(self, session_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = session_issue
        result = _invoke(client, ["agent", "view", "ENG-80"])
        assert result.exit_code == 0
        assert "Status: active" in result.output
        assert "[thought]" in result.output
        assert "Bash: git status" in result.output

    def test_session_json_global_flag(self, session_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = session_issue
        result = _invoke(client, ["--json", "agent", "view", "ENG-80"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["issue"] == "ENG-80"
        assert data["agentSession"]["status"] == "active"

    def test_json_wins_over_plaintext(self, session_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = session_issue
        result = _invoke(client, ["--plaintext", "agent", "view", "ENG-80", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["title"] == "Fix login redirect"

    def test_plaintext(self, session_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = session_issue
        result = _invoke(client, ["agent", "view", "ENG-80", "--plaintext"])
        assert result.exit_code == 0
        assert "# Agent Session for ENG-80" in result.output

    def test_fetch_error_json(self) -> None:
        client = _mock_client()
        client.get_issue_agent_session.side_effect = LinearError("boom")
        result = _invoke(client, ["--json", "agent", "view", "ENG-80"])
        assert result.exit_code == 1
        assert json.loads(result.stdout) == {"error": "Failed to fetch issue: boom"}

    def test_not_authenticated(self) -> None:
        result = runner.invoke(app, ["agent", "view", "ENG-80"])
        assert result.exit_code == 1
        assert "Not authenticated" in result.output

    def test_issue_id_without_view_verb(self, session_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = session_issue
        result = _invoke(client, ["agent", "ENG-80", "--plaintext"])
        assert result.exit_code == 0
        client.get_issue_agent_session.assert_called_once_with("ENG-80")
        assert "# Agent Session for ENG-80" in result.output

    def test_malformed_response_json(self, httpx_mock: HTTPXMock, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LINCTL_API_KEY", "lin_api_test")
        session = {
            "id": "session-1",
            "status": "active",
            "activities": {"nodes": [{"id": "a", "content": {"type": "thought"}}]},
        }
        issue = {
            "id": "i",
            "identifier": "ENG-80",
            "title": "T",
            "comments": {"nodes": [{"id": "c", "agentSession": session}]},
        }
        httpx_mock.add_response(url=ENDPOINT, json={"data": {"issue": issue}})
        result = runner.invoke(app, ["--json", "agent", "view", "ENG-80"])
        assert result.exit_code == 1
        error = json.loads(result.stdout)["error"]
        assert error.startswith("Failed to fetch issue: unexpected response:")
        assert "createdAt" in error


class TestInvalidConfiguration:
    def test_bad_env_value_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LINCTL_TIMEOUT", "abc")
        result = _invoke(_mock_client(), ["--json", "agent", "view", "ENG-80"])
        assert result.exit_code == 1
        error = json.loads(result.stdout)["error"]
        assert error.startswith("Invalid configuration: timeout:")
        assert "\n" not in error

    def test_unparseable_config_file(self, isolated_config: Path) -> None:
        isolated_config.write_text("api_key = \n")
        result = _invoke(_mock_client(), ["--plaintext", "agent", "view", "ENG-80"])
        assert result.exit_code == 1
        assert "Error: Invalid configuration:" in result.output
        assert "Traceback" not in result.output


class TestAgentMention:
    def test_mentions_delegate(self, delegated_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = delegated_issue
        result = _invoke(client, ["agent", "mention", "ENG-80", "Fix this bug"])
        assert result.exit_code == 0, result.output
        client.mention_agent.assert_called_once_with("issue-uuid-80", "bot", "Fix this bug")
        assert "@bot mentioned on ENG-80" in result.output

    def test_json_output(self, session_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = session_issue
        result = _invoke(client, ["agent", "mention", "ENG-80", "Go", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "success": True,
            "commentId": "mention-1",
            "issue": "ENG-80",
            "agent": "testagent",
            "message": "Go",
        }

    def test_no_agent_fails_before_mutation(self, bare_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = bare_issue
        result = _invoke(client, ["agent", "mention", "ENG-80", "Fix this bug"])
        assert result.exit_code == 1
        assert "No agent found for ENG-80" in result.output
        client.mention_agent.assert_not_called()

    def test_mutation_error(self, delegated_issue: Issue) -> None:
        client = _mock_client()
        client.get_issue_agent_session.return_value = delegated_issue
        client.mention_agent.side_effect = LinearError("rate limited")
        result = _invoke(client, ["agent", "mention", "ENG-80", "hi", "--plaintext"])
        assert result.exit_code == 1
        assert "Failed to mention agent: rate limited" in result.output

    def test_requires_two_args(self) -> None:
        result = _invoke(_mock_client(), ["agent", "mention", "ENG-80"])
        assert result.exit_code != 0


class TestIssueCommands:
    def test_list_renders_table(self) -> None:
        result = _invoke(_mock_client(), ["issue", "list"])
        assert result.exit_code == 0
        assert "ENG-1" in result.output

    def test_list_json(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["issue", "ls", "--json", "--include-completed"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["identifier"] == "ENG-1"
        assert client.list_issues.call_args.kwargs["include_completed"] is True

    def test_get_plain(self) -> None:
        result = _invoke(_mock_client(), ["issue", "get", "ENG-1", "--plaintext"])
        assert result.exit_code == 0
        assert result.output.startswith("# ENG-1: Test issue")
        assert "**Priority:** 🟡 Medium" in result.output

    def test_create_resolves_team_delegate_labels(self) -> None:
        client = _mock_client()
        project = "123e4567-e89b-12d3-a456-426614174000"
        result = _invoke(
            client,
            [
                "issue", "create", "--title", "New", "--team", "ENG",
                "--delegate", "claude", "--label", "bug", "--project", project,
            ],
        )
        assert result.exit_code == 0, result.output
        assert "ENG-99" in result.output
        fields = client.create_issue.call_args.args[0]
        assert fields == {
            "title": "New",
            "teamId": "t1",
            "delegateId": "bot-1",
            "labelIds": ["l1"],
            "projectId": project,
        }

    def test_create_invalid_project_makes_no_call(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["issue", "create", "--title", "New", "--team", "ENG", "--project", "nope"])
        assert result.exit_code == 1
        assert "Invalid project ID" in result.output
        client.create_issue.assert_not_called()

    def test_create_project_not_found_hint(self) -> None:
        client = _mock_client()
        client.create_issue.side_effect = LinearError("Linear API error: Project not found")
        project = "123e4567-e89b-12d3-a456-426614174000"
        result = _invoke(client, ["issue", "create", "--title", "New", "--team", "ENG", "--project", project])
        assert result.exit_code == 1
        assert f"Project '{project}' not found" in result.output

    def test_update_remove_delegate_and_project(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["issue", "update", "ENG-1", "--delegate", "none", "--project", "unassigned"])
        assert result.exit_code == 0, result.output
        client.update_issue.assert_called_once_with("ENG-1", {"delegateId": None, "projectId": None})

    def test_update_state_looks_up_team_state(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["issue", "update", "ENG-1", "--state", "Done", "--assignee", "me"])
        assert result.exit_code == 0, result.output
        client.find_state.assert_called_once_with("t1", "Done")
        client.update_issue.assert_called_once_with("ENG-1", {"assigneeId": "me", "stateId": "state-done"})

    def test_update_without_flags_fails(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["issue", "update", "ENG-1"])
        assert result.exit_code == 1
        assert "No updates specified" in result.output
        client.update_issue.assert_not_called()

    def test_delegate_flag_help(self) -> None:
        help_text = "Delegate to agent (email, name, displayName, or 'none' to remove)"
        assert _option(["issue", "update"], "--delegate").help == help_text
        assert _option(["issue", "create"], "--delegate").help == help_text

    def test_project_flag_help(self) -> None:
        assert "Project ID to assign issue to" in (_option(["issue", "create"], "--project").help or "")
        update_help = _option(["issue", "update"], "--project").help or ""
        assert "Project ID to assign issue to" in update_help
        assert "unassigned" in update_help


class TestCommentCommands:
    def test_list_rich(self) -> None:
        result = _invoke(_mock_client(), ["comment", "list", "ENG-1"])
        assert result.exit_code == 0
        assert "Comments on ENG-1 (2)" in result.output
        assert "Jane Doe" in result.output

    def test_list_no_children_unresolved(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["comment", "ls", "ENG-1", "--no-children", "--resolved", "unresolved", "--json"])
        assert result.exit_code == 0
        assert [c["id"] for c in json.loads(result.stdout)] == ["c1"]

    def test_list_resolved_only(self) -> None:
        result = _invoke(_mock_client(), ["comment", "list", "ENG-1", "--resolved", "resolved", "--json"])
        assert [c["id"] for c in json.loads(result.stdout)] == ["c2"]

    def test_list_sort_maps_to_order_by(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["comment", "list", "ENG-1", "--sort", "created", "-l", "10"])
        assert result.exit_code == 0
        client.get_issue_comments.assert_called_once_with("ENG-1", limit=10, order_by="createdAt")

    def test_list_invalid_sort(self) -> None:
        client = _mock_client()
        result = _invoke(client, ["comment", "list", "ENG-1", "--sort", "bogus"])
        assert result.exit_code == 1
        assert "Invalid sort option: bogus" in result.output
        client.get_issue_comments.assert_not_called()

    def test_list_plain(self) -> None:
        result = _invoke(_mock_client(), ["comment", "list", "ENG-1", "--plaintext"])
        assert "Author: Jane Doe" in result.output
        assert "---" in result.output

    def test_create_reply(self) -> None:
        client = _mock_client()
        client.create_comment.return_value = _comment("c3", parent={"id": "c1"})
        result = _invoke(client, ["comment", "add", "ENG-1", "-b", "thanks", "--parent", "c1"])
        assert result.exit_code == 0, result.output
        client.create_comment.assert_called_once_with("ENG-1", "thanks", "c1")
        assert "Added reply to comment on ENG-1" in result.output

    def test_create_requires_body(self) -> None:
        result = _invoke(_mock_client(), ["comment", "create", "ENG-1"])
        assert result.exit_code != 0

    def test_create_blank_body(self) -> None:
        result = _invoke(_mock_client(), ["comment", "create", "ENG-1", "--body", "  "])
        assert result.exit_code == 1
        assert "Comment body is required" in result.output

    def test_delete_aliases(self) -> None:
        for alias in ("delete", "rm", "remove"):
            client = _mock_client()
            result = _invoke(client, ["comment", alias, "c1", "--json"])
            assert result.exit_code == 0
            assert json.loads(result.stdout)["commentId"] == "c1"
            client.delete_comment.assert_called_once_with("c1")

    def test_resolve(self) -> None:
        result = _invoke(_mock_client(), ["comment", "resolve", "c1", "--plaintext"])
        assert result.exit_code == 0
        assert "Resolved comment c1" in result.output
        assert "Resolved by: Jane Doe" in result.output

    def test_unresolve_error(self) -> None:
        client = _mock_client()
        client.unresolve_comment.side_effect = LinearError("not resolved")
        result = _invoke(client, ["comment", "unresolve", "c1"])
        assert result.exit_code == 1
        assert "Failed to unresolve comment: not resolved" in result.output


class TestAuthCommands:
    def test_login_saves_key(self, isolated_config: Path) -> None:
        with patch("linctl.main.LinearClient") as client_cls:
            client_cls.return_value = _mock_client()
            result = runner.invoke(app, ["auth", "login", "--api-key", "lin_api_new"])
        assert result.exit_code == 0, result.output
        assert "Authenticated as Me Myself" in result.output
        assert 'api_key = "lin_api_new"' in isolated_config.read_text()

    def test_login_rejected_key_not_saved(self, isolated_config: Path) -> None:
        with patch("linctl.main.LinearClient") as client_cls:
            client_cls.return_value.get_viewer.side_effect = LinearError("Linear API error: Unauthorized")
            result = runner.invoke(app, ["auth", "login", "--api-key", "bad"])
        assert result.exit_code == 1
        assert not isolated_config.exists()

    def test_status(self) -> None:
        result = _invoke(_mock_client(), ["auth", "status", "--plaintext"])
        assert result.exit_code == 0
        assert "Organization: Acme" in result.output

    def test_logout(self, isolated_config: Path) -> None:
        isolated_config.write_text('api_key = "lin_api_old"\n')
        result = runner.invoke(app, ["auth", "logout"])
        assert result.exit_code == 0
        assert "api_key" not in isolated_config.read_text()
