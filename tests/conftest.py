"""Shared test fixtures."""

import pytest

from linctl.models import Issue

SESSION_NODE = {
    "id": "session-1",
    "status": "active",
    "createdAt": "2026-01-06T20:17:02.878Z",
    "updatedAt": "2026-01-06T20:21:28.402Z",
    "appUser": {"id": "app-1", "name": "Test Agent", "displayName": "testagent"},
    "activities": {
        "nodes": [
            {
                "id": "a1",
                "createdAt": "2026-01-06T20:17:05.000Z",
                "ephemeral": False,
                "content": {"type": "thought", "body": "Reading the codebase"},
            },
            {
                "id": "a2",
                "createdAt": "2026-01-06T20:18:10.000Z",
                "ephemeral": False,
                "content": {"type": "action", "action": "Bash", "parameter": "git status"},
            },
            {
                "id": "a3",
                "createdAt": "2026-01-06T20:21:28.000Z",
                "ephemeral": False,
                "content": {"type": "response", "body": "Done."},
            },
        ],
        "pageInfo": {"hasNextPage": False, "endCursor": "cursor-3"},
    },
}


def issue_node(delegate: dict | None = None, comments: list[dict] | None = None) -> dict:
    return {
        "id": "issue-uuid-80",
        "identifier": "ENG-80",
        "title": "Fix login redirect",
        "delegate": delegate,
        "comments": {"nodes": comments or []},
    }


@pytest.fixture
def bare_issue() -> Issue:
    return Issue.model_validate(issue_node())


@pytest.fixture
def delegated_issue() -> Issue:
    return Issue.model_validate(issue_node(delegate={"id": "bot-1", "name": "Bot", "displayName": "bot"}))


@pytest.fixture
def session_issue() -> Issue:
    return Issue.model_validate(
        issue_node(
            delegate={"id": "bot-1", "name": "Test Agent", "displayName": "testagent"},
            comments=[
                {"id": "c1", "body": "plain comment"},
                {"id": "c2", "body": "@testagent fix it", "agentSession": SESSION_NODE},
            ],
        )
    )


@pytest.fixture
def session_node() -> dict:
    return SESSION_NODE
