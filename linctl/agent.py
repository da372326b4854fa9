"""Agent session resolution and activity-stream rendering."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from rich.text import Text

from linctl.models import AgentActivity, AgentSession, Issue, User, parse_content
from linctl.output import OutputMode, to_json

MAX_LINE = 80
ELLIPSIS = "..."

_DEFAULT_STYLE = "white"

STATUS_STYLES = {
    "active": "green",
    "complete": "blue",
    "awaitingInput": "yellow",
    "error": "red",
    "pending": "magenta",
}

ACTIVITY_STYLES = {
    "thought": "magenta",
    "response": "green",
    "action": "blue",
    "error": "red",
    "elicitation": "yellow",
    "prompt": "cyan",
}


class AgentNotFoundError(LookupError):
    """No agent could be identified on an issue."""


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class NoDelegate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class DelegatedPending(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["delegated"] = "delegated"
    delegate: User


class SessionFound(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["session"] = "session"
    session: AgentSession
    delegate: User | None = None


SessionView = NoDelegate | DelegatedPending | SessionFound


def find_session(issue: Issue) -> AgentSession | None:
    """Return the session on the first comment carrying one, in server order."""
    for comment in issue.comments:
        if comment.agent_session is not None:
            return comment.agent_session
    return None


def resolve_session(issue: Issue) -> SessionView:
    session = find_session(issue)
    if session is not None:
        return SessionFound(session=session, delegate=issue.delegate)
    if issue.delegate is not None:
        return DelegatedPending(delegate=issue.delegate)
    return NoDelegate()


def resolve_agent_name(issue: Issue) -> str:
    """Display name to @mention: the delegate, else the first session's app user."""
    if issue.delegate is not None and issue.delegate.display_name:
        return issue.delegate.display_name
    for comment in issue.comments:
        session = comment.agent_session
        if session is not None and session.app_user is not None:
            if session.app_user.display_name:
                return session.app_user.display_name
            break
    raise AgentNotFoundError(f"No agent found for {issue.identifier}")


# ---------------------------------------------------------------------------
# Activity helpers
# ---------------------------------------------------------------------------


def activity_type(content: dict[str, Any] | None) -> str:
    return parse_content(content).type


def activity_body(content: dict[str, Any] | None) -> str:
    """Body text for an activity: ``body``, else "action: parameter", else ""."""
    return parse_content(content).body


def truncate_line(line: str, width: int = MAX_LINE) -> str:
    if len(line) <= width:
        return line
    return line[: width - len(ELLIPSIS)] + ELLIPSIS


def style_for(styles: dict[str, str], tag: str) -> str:
    # Unknown tags are new server-side values, not errors.
    return styles.get(tag, _DEFAULT_STYLE)


def _clock(ts: datetime | None) -> str:
    return ts.strftime("%H:%M:%S") if ts else "--:--:--"


def _stamp(ts: datetime | None) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S") if ts else "-"


def _activities(session: AgentSession) -> list[AgentActivity]:
    return session.activities.nodes if session.activities else []


def _has_more(session: AgentSession) -> bool:
    return bool(session.activities and session.activities.page_info.has_next_page)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


def render_agent_view(issue: Issue, view: SessionView, mode: OutputMode) -> str | Text:
    """Render a delegated or session view; NoDelegate is reported by the caller."""
    match mode:
        case OutputMode.JSON:
            return to_json(agent_view_payload(issue, view))
        case OutputMode.PLAIN:
            return _render_plain(issue, view)
        case _:
            return _render_rich(issue, view)


def agent_view_payload(issue: Issue, view: SessionView) -> dict[str, Any]:
    payload: dict[str, Any] = {"issue": issue.identifier, "title": issue.title}
    delegate = getattr(view, "delegate", None)
    if delegate is not None:
        payload["delegate"] = delegate.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(view, SessionFound):
        payload["agentSession"] = view.session.model_dump(mode="json", by_alias=True, exclude_none=True)
    return payload


def _render_plain(issue: Issue, view: SessionView) -> str:
    lines = [f"# Agent Session for {issue.identifier}", "", f"**Title**: {issue.title}"]
    delegate = getattr(view, "delegate", None)
    if delegate is not None:
        lines.append(f"**Delegate**: {delegate.name or ''} ({delegate.display_name or ''})")

    if not isinstance(view, SessionFound):
        lines.append("**Status**: delegated (no session yet)")
        return "\n".join(lines)

    session = view.session
    lines.append(f"**Status**: {session.status}")
    if session.app_user is not None:
        lines.append(f"**Agent**: {session.app_user.name or ''} ({session.app_user.display_name or ''})")
    lines.append(f"**Started**: {_stamp(session.created_at)}")
    lines.append(f"**Updated**: {_stamp(session.updated_at)}")

    activities = _activities(session)
    if activities:
        lines += ["", "## Activity Stream", ""]
        for activity in activities:
            body = activity_body(activity.content)
            lines.append(f"### [{activity_type(activity.content)}] {_clock(activity.created_at)}")
            if body:
                lines += [f"  {line}" for line in body.split("\n")]
                lines.append("")
        if _has_more(session):
            lines.append("_More activities available_")

    return "\n".join(lines).rstrip("\n")


def _render_rich(issue: Issue, view: SessionView) -> Text:
    # Text spans, not markup: body text is printed exactly as the agent wrote it.
    lines = [Text.assemble((issue.identifier, "bold cyan"), " ", (issue.title, "bold white"))]
    delegate = getattr(view, "delegate", None)
    if delegate is not None:
        lines += [Text(), _field("Delegate:", Text(delegate.display_name or delegate.label, style="cyan"))]

    if not isinstance(view, SessionFound):
        lines += [Text(), Text("Delegated but no session started yet", style="dim")]
        return Text("\n").join(lines)

    session = view.session
    lines.append(_field("Status:", Text(session.status, style=style_for(STATUS_STYLES, session.status))))
    if session.app_user is not None:
        lines.append(_field("Agent:", Text(session.app_user.label, style="cyan")))
    lines.append(_field("Started:", Text(_stamp(session.created_at))))

    activities = _activities(session)
    if not activities:
        lines += [Text(), Text("No activities yet", style="dim")]
        return Text("\n").join(lines)

    lines += [Text(), Text("Activity Stream:", style="bold yellow")]
    for activity in activities:
        kind = activity_type(activity.content)
        lines += [
            Text(),
            Text.assemble(
                "  ", (_clock(activity.created_at), "dim"), " [", (kind, style_for(ACTIVITY_STYLES, kind)), "]"
            ),
        ]
        body = activity_body(activity.content)
        if body:
            lines += [Text(f"    {truncate_line(line)}") for line in body.split("\n")]

    if _has_more(session):
        lines += [Text(), Text.assemble(("ℹ", "yellow"), " More activities available")]

    return Text("\n").join(lines)


def _field(name: str, value: Text) -> Text:
    return Text.assemble((name, "yellow"), " ", value)
