"""Shared pydantic models — the contract between the Linear client and the commands."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class LinearModel(BaseModel):
    # Linear speaks camelCase; models accept either spelling and dump by alias.
    model_config = ConfigDict(frozen=True, populate_by_name=True)


def describe_validation_error(exc: ValidationError) -> str:
    """Collapse a pydantic error report into one line: ``loc: msg; loc: msg``."""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'value'}: {err['msg']}" for err in exc.errors()
    )


def _unwrap_nodes(value: Any) -> Any:
    """Flatten a GraphQL connection ``{"nodes": [...]}`` into a plain list."""
    if isinstance(value, dict) and "nodes" in value:
        return value["nodes"] or []
    if value is None:
        return []
    return value


class User(LinearModel):
    id: str
    name: str | None = None
    display_name: str | None = Field(None, alias="displayName")
    email: str | None = None

    @property
    def label(self) -> str:
        """Best human-readable name: display name, name, email, then "System"."""
        for candidate in (self.display_name, self.name, self.email):
            if candidate and candidate.strip():
                return candidate.strip()
        return "System"


class Organization(LinearModel):
    id: str
    name: str
    url_key: str | None = Field(None, alias="urlKey")


class Viewer(LinearModel):
    """The authenticated user plus the workspace the key belongs to."""

    user: User
    organization: Organization | None = None


class Team(LinearModel):
    id: str
    name: str
    key: str


class Label(LinearModel):
    id: str
    name: str
    color: str | None = None


class WorkflowState(LinearModel):
    id: str
    name: str
    type: str | None = None  # triage | backlog | unstarted | started | completed | canceled


class Project(LinearModel):
    id: str
    name: str


class PageInfo(LinearModel):
    has_next_page: bool = Field(False, alias="hasNextPage")
    end_cursor: str | None = Field(None, alias="endCursor")


# ---------------------------------------------------------------------------
# Agent activity content
# ---------------------------------------------------------------------------


class TextContent(LinearModel):
    """Content carrying a ``body`` string (thought, response, elicitation, error, prompt)."""

    type: str
    body: str


class ActionContent(LinearModel):
    """Tool invocation: ``action`` is the command name, ``parameter`` its argument."""

    type: str
    action: str
    parameter: str = ""
    result: str | None = None

    @property
    def body(self) -> str:
        return f"{self.action}: {self.parameter}"


class UnknownContent(LinearModel):
    """Anything else — the raw mapping is kept so new server-side types survive."""

    type: str
    raw: dict[str, Any] = {}

    @property
    def body(self) -> str:
        return ""


ActivityContent = TextContent | ActionContent | UnknownContent


def parse_content(raw: dict[str, Any] | None) -> ActivityContent:
    """Turn a loosely-typed activity content mapping into a typed variant.

    ``type`` defaults to "unknown" when missing or not a string. A string
    ``body`` wins over ``action``; a missing ``parameter`` becomes "".
    """
    raw = raw or {}
    kind = raw.get("type")
    if not isinstance(kind, str):
        kind = "unknown"

    body = raw.get("body")
    if isinstance(body, str):
        return TextContent(type=kind, body=body)

    action = raw.get("action")
    if isinstance(action, str):
        parameter = raw.get("parameter")
        result = raw.get("result")
        return ActionContent(
            type=kind,
            action=action,
            parameter=parameter if isinstance(parameter, str) else "",
            result=result if isinstance(result, str) else None,
        )

    return UnknownContent(type=kind, raw=dict(raw))


class AgentActivity(LinearModel):
    id: str
    created_at: datetime = Field(alias="createdAt")
    ephemeral: bool | None = None
    content: dict[str, Any] = {}

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, value: Any) -> Any:
        return value or {}


class ActivityConnection(LinearModel):
    nodes: list[AgentActivity] = []
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class AgentSession(LinearModel):
    id: str
    status: str  # pending | active | awaitingInput | complete | error — kept open
    app_user: User | None = Field(None, alias="appUser")
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    activities: ActivityConnection | None = None


# ---------------------------------------------------------------------------
# Comments and issues
# ---------------------------------------------------------------------------


class CommentRef(LinearModel):
    id: str


class Comment(LinearModel):
    id: str
    body: str = ""
    user: User | None = None
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    parent: CommentRef | None = None
    resolved_at: datetime | None = Field(None, alias="resolvedAt")
    resolving_user: User | None = Field(None, alias="resolvingUser")
    agent_session: AgentSession | None = Field(None, alias="agentSession")

    @property
    def is_reply(self) -> bool:
        return self.parent is not None and bool(self.parent.id)


class Issue(LinearModel):
    id: str
    identifier: str  # ENG-123
    title: str
    description: str | None = None
    url: str | None = None
    priority: int | None = None
    state: WorkflowState | None = None
    assignee: User | None = None
    delegate: User | None = None  # agent the issue is delegated to
    team: Team | None = None
    project: Project | None = None
    labels: list[Label] = []
    comments: list[Comment] = []  # server order
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")

    @field_validator("labels", "comments", mode="before")
    @classmethod
    def _connection_nodes(cls, value: Any) -> Any:
        return _unwrap_nodes(value)
