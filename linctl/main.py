"""linctl CLI — all commands."""

import logging
from typing import Annotated

import click
import typer
from pydantic import SecretStr
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from typer.core import TyperGroup

from linctl.agent import AgentNotFoundError, NoDelegate, render_agent_view, resolve_agent_name, resolve_session
from linctl.client import LinearClient, LinearError
from linctl.comments import (
    RESOLUTION_FILTERS,
    comment_author_name,
    filter_comments_by_resolution,
    format_time_ago,
    root_comments,
    sort_order,
)
from linctl.issues import InvalidProjectError, build_project_input, is_project_not_found_error, priority_label
from linctl.models import Comment, Issue
from linctl.output import OutputMode, console, emit, err_console, fail, info, mode_from_flags, print_json
from linctl.settings import ConfigError, NotAuthenticatedError, clear_api_key, get_settings, save_api_key

app = typer.Typer(help="linctl: a command-line client for Linear", no_args_is_help=True)
auth_app = typer.Typer(help="Manage Linear authentication", no_args_is_help=True)
issue_app = typer.Typer(help="List, view, create and update issues", no_args_is_help=True)
comment_app = typer.Typer(
    help="""Manage comments on Linear issues including listing, creating, deleting, and resolving comments.

Examples:

  linctl comment list LIN-123

  linctl comment create LIN-123 --body "This is fixed"

  linctl comment create LIN-123 --body "This is a reply" --parent COMMENT-ID

  linctl comment resolve COMMENT-ID""",
    short_help="Manage issue comments",
    no_args_is_help=True,
)


class AgentGroup(TyperGroup):
    """Route `linctl agent ISSUE-ID` to the `view` subcommand."""

    default_command = "view"

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0] not in self.commands and not args[0].startswith("-"):
            args = [self.default_command, *args]
        return super().parse_args(ctx, args)


agent_app = typer.Typer(
    cls=AgentGroup,
    help="View and trigger agent sessions. 'linctl agent ISSUE-ID' is short for 'linctl agent view ISSUE-ID'.",
    no_args_is_help=True,
)

app.add_typer(auth_app, name="auth")
app.add_typer(issue_app, name="issue")
app.add_typer(comment_app, name="comment")
app.add_typer(agent_app, name="agent")

log = logging.getLogger("linctl")

JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON")]
PlainOpt = Annotated[bool, typer.Option("--plaintext", help="Output plain text without colors")]

_DELEGATE_HELP = "Delegate to agent (email, name, displayName, or 'none' to remove)"
_NONE = "none"


# ---------------------------------------------------------------------------
# Global options, logging and client factory
# ---------------------------------------------------------------------------


def setup_logging(level: str = "WARNING") -> None:
    """Configure the root logger; records go to stderr so stdout stays parseable."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log API calls to stderr")] = False,
) -> None:
    ctx.obj = mode = mode_from_flags(json_out, plaintext)
    try:
        settings = get_settings()
    except ConfigError as exc:
        raise fail(f"Invalid configuration: {exc}", mode)
    setup_logging("DEBUG" if verbose else settings.log_level)


def _mode(ctx: typer.Context, json_out: bool = False, plaintext: bool = False) -> OutputMode:
    """Combine the root --json/--plaintext with the same flags given after the command."""
    inherited = ctx.find_object(OutputMode) or OutputMode.RICH
    return mode_from_flags(
        json_out or inherited is OutputMode.JSON,
        plaintext or inherited is OutputMode.PLAIN,
    )


def get_client(mode: OutputMode) -> LinearClient:
    try:
        return LinearClient(get_settings())
    except ConfigError as exc:
        raise fail(f"Invalid configuration: {exc}", mode)
    except NotAuthenticatedError as exc:
        raise fail(str(exc), mode)


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    api_key: Annotated[str | None, typer.Option("--api-key", help="Personal API key (prompted if omitted)")] = None,
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Verify a personal API key and store it in ~/.config/linctl/config.toml."""
    mode = _mode(ctx, json_out, plaintext)
    if not api_key:
        if mode is not OutputMode.JSON:
            typer.echo("Create a Personal API Key at: https://linear.app/settings/api")
        api_key = typer.prompt("Paste API key", hide_input=True)
    api_key = api_key.strip()

    settings = get_settings().model_copy(update={"api_key": SecretStr(api_key)})
    try:
        viewer = LinearClient(settings).get_viewer()
    except (NotAuthenticatedError, LinearError) as exc:
        raise fail(f"Authentication failed: {exc}", mode)

    path = save_api_key(api_key)
    org = viewer.organization.name if viewer.organization else "unknown workspace"
    match mode:
        case OutputMode.JSON:
            print_json({"status": "success", "user": _dump(viewer.user), "configPath": str(path)})
        case OutputMode.PLAIN:
            typer.echo(f"Authenticated as {viewer.user.label} ({org})")
            typer.echo(f"Saved credentials to {path}")
        case _:
            console.print(f"[green]✓[/green] Authenticated as [bold]{escape(viewer.user.label)}[/bold] ({escape(org)})")
            console.print(f"[dim]Saved credentials to {escape(str(path))}[/dim]")


@auth_app.command("status")
def auth_status(ctx: typer.Context, json_out: JsonOpt = False, plaintext: PlainOpt = False) -> None:
    """Show the authenticated user and workspace."""
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        viewer = client.get_viewer()
    except LinearError as exc:
        raise fail(f"Authentication failed: {exc}", mode)

    match mode:
        case OutputMode.JSON:
            payload = {"authenticated": True, "user": _dump(viewer.user)}
            if viewer.organization:
                payload["organization"] = _dump(viewer.organization)
            print_json(payload)
        case OutputMode.PLAIN:
            typer.echo(f"User: {viewer.user.label}")
            if viewer.user.email:
                typer.echo(f"Email: {viewer.user.email}")
            if viewer.organization:
                typer.echo(f"Organization: {viewer.organization.name}")
        case _:
            table = Table(title="Linear Authentication")
            table.add_column("Field", style="bold")
            table.add_column("Value")
            table.add_row("User", escape(viewer.user.label))
            table.add_row("Email", escape(viewer.user.email or "—"))
            if viewer.organization:
                table.add_row("Organization", escape(viewer.organization.name))
                table.add_row("URL key", escape(viewer.organization.url_key or "—"))
            console.print(table)


@auth_app.command("logout")
def auth_logout(ctx: typer.Context, json_out: JsonOpt = False, plaintext: PlainOpt = False) -> None:
    """Remove the stored API key."""
    mode = _mode(ctx, json_out, plaintext)
    removed = clear_api_key()
    message = "Logged out" if removed else "No stored credentials"
    match mode:
        case OutputMode.JSON:
            print_json({"status": "success", "removed": removed})
        case OutputMode.PLAIN:
            typer.echo(message)
        case _:
            console.print(f"[green]✓[/green] {message}" if removed else f"[dim]{message}[/dim]")


# ---------------------------------------------------------------------------
# issue
# ---------------------------------------------------------------------------


def render_issue_plain(issue: Issue) -> str:
    """Markdown-style block for one issue."""
    lines = [
        f"# {issue.identifier}: {issue.title}",
        "",
        f"**State:** {issue.state.name if issue.state else '—'}",
        f"**Team:** {issue.team.name if issue.team else '—'}",
        f"**Assignee:** {issue.assignee.label if issue.assignee else 'Unassigned'}",
    ]
    if issue.delegate:
        lines.append(f"**Delegate:** {issue.delegate.label}")
    if issue.priority is not None:
        lines.append(f"**Priority:** {priority_label(issue.priority)}")
    if issue.project:
        lines.append(f"**Project:** {issue.project.name}")
    lines += [
        f"**Labels:** {', '.join(label.name for label in issue.labels) if issue.labels else 'none'}",
        f"**URL:** {issue.url or '—'}",
        "",
        "## Description",
        "",
        issue.description or "_No description provided._",
    ]
    return "\n".join(lines)


def _issue_table(issue: Issue) -> Table:
    table = Table(title=escape(f"{issue.identifier}: {issue.title}"))
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("State", escape(issue.state.name if issue.state else "—"))
    table.add_row("Team", escape(issue.team.name if issue.team else "—"))
    table.add_row("Assignee", escape(issue.assignee.label if issue.assignee else "Unassigned"))
    if issue.delegate:
        table.add_row("Delegate", escape(issue.delegate.label))
    if issue.priority is not None:
        table.add_row("Priority", priority_label(issue.priority))
    if issue.project:
        table.add_row("Project", escape(issue.project.name))
    table.add_row("Labels", escape(", ".join(label.name for label in issue.labels)) if issue.labels else "none")
    table.add_row("URL", escape(issue.url or "—"))
    table.add_row("Description", escape(issue.description or "_No description provided._"))
    return table


def _print_issue_result(issue: Issue, verb: str, mode: OutputMode) -> None:
    match mode:
        case OutputMode.JSON:
            print_json(_dump(issue))
        case OutputMode.PLAIN:
            typer.echo(f"{verb} {issue.identifier}: {issue.title}")
            if issue.url:
                typer.echo(issue.url)
        case _:
            console.print(f"[green]✓[/green] {verb} [bold]{escape(issue.identifier)}[/bold] {escape(issue.title)}")
            if issue.url:
                console.print(f"  {escape(issue.url)}")


def _user_id(client: LinearClient, value: str) -> str | None:
    """Resolve --assignee/--delegate: "none" clears, "me" is the key's owner."""
    if value.lower() == _NONE:
        return None
    if value.lower() == "me":
        return client.get_viewer().user.id
    return client.find_user(value).id


def _mutation_failed(action: str, exc: LinearError, project: str) -> str:
    if project and is_project_not_found_error(exc):
        return f"Project '{project}' not found. Check the project ID."
    return f"Failed to {action}: {exc}"


@issue_app.command("list")
def issue_list(
    ctx: typer.Context,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a", help="'me' or a user email")] = "me",
    team: Annotated[str | None, typer.Option("--team", "-t", help="Team key (e.g. ENG)")] = None,
    state: Annotated[str | None, typer.Option("--state", "-s", help="Workflow state name")] = None,
    limit: Annotated[int, typer.Option("--limit", "-l", min=1, max=250, help="Maximum number of issues")] = 50,
    include_completed: Annotated[
        bool, typer.Option("--include-completed", help="Include completed and canceled issues")
    ] = False,
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """List issues (assigned to me by default)."""
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        issues = client.list_issues(
            assignee=None if (assignee or "").lower() in ("", "all", "any") else assignee,
            team=team,
            state=state,
            limit=limit,
            include_completed=include_completed,
        )
    except LinearError as exc:
        raise fail(f"Failed to list issues: {exc}", mode)

    if mode is OutputMode.JSON:
        print_json([_dump(i) for i in issues])
        return
    if mode is OutputMode.PLAIN:
        for issue in issues:
            state_name = issue.state.name if issue.state else "—"
            typer.echo(f"{issue.identifier}\t{state_name}\t{priority_label(issue.priority)}\t{issue.title}")
        return

    if not issues:
        console.print("[yellow]ℹ[/yellow] No issues found")
        return

    table = Table(title="Issues")
    table.add_column("ID", style="cyan")
    table.add_column("State")
    table.add_column("Pri")
    table.add_column("Title")
    table.add_column("Assignee", style="dim")

    for issue in issues:
        table.add_row(
            escape(issue.identifier),
            escape(issue.state.name if issue.state else "—"),
            priority_label(issue.priority),
            escape(issue.title),
            escape(issue.assignee.label if issue.assignee else "Unassigned"),
        )

    console.print(table)


issue_app.command("ls", hidden=True)(issue_list)


@issue_app.command("get")
def issue_get(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue ID (e.g. ENG-123)")],
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Show full details for an issue."""
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        issue = client.get_issue(issue_id)
    except LinearError as exc:
        raise fail(f"Failed to fetch issue: {exc}", mode)

    match mode:
        case OutputMode.JSON:
            print_json(_dump(issue))
        case OutputMode.PLAIN:
            typer.echo(render_issue_plain(issue))
        case _:
            console.print(_issue_table(issue))


issue_app.command("show", hidden=True)(issue_get)


@issue_app.command("create")
def issue_create(
    ctx: typer.Context,
    title: Annotated[str, typer.Option("--title", help="Issue title")],
    team: Annotated[str, typer.Option("--team", "-t", help="Team key (e.g. ENG)")],
    description: Annotated[str | None, typer.Option("--description", "-d", help="Issue description")] = None,
    priority: Annotated[
        int | None, typer.Option("--priority", "-p", min=0, max=4, help="Priority 0-4 (0=none, 1=urgent, 4=low)")
    ] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a", help="'me' or a user email/name")] = None,
    delegate: Annotated[str | None, typer.Option("--delegate", help=_DELEGATE_HELP)] = None,
    label: Annotated[list[str] | None, typer.Option("--label", help="Label name (repeatable)")] = None,
    project: Annotated[str, typer.Option("--project", help="Project ID to assign issue to")] = "",
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Create a new issue."""
    mode = _mode(ctx, json_out, plaintext)
    if not title.strip():
        raise fail("Issue title is required (--title)", mode)
    try:
        project_id, _ = build_project_input(project)
    except InvalidProjectError as exc:
        raise fail(str(exc), mode)

    client = get_client(mode)
    try:
        fields: dict = {"title": title, "teamId": client.find_team(team).id}
        if description:
            fields["description"] = description
        if priority is not None:
            fields["priority"] = priority
        if assignee and (assignee_id := _user_id(client, assignee)):
            fields["assigneeId"] = assignee_id
        if delegate and (delegate_id := _user_id(client, delegate)):
            fields["delegateId"] = delegate_id
        if label:
            fields["labelIds"] = [lb.id for lb in client.find_labels(label)]
        if project_id:
            fields["projectId"] = project_id
        created = client.create_issue(fields)
    except LinearError as exc:
        raise fail(_mutation_failed("create issue", exc, project), mode)

    _print_issue_result(created, "Created", mode)


@issue_app.command("update")
def issue_update(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue ID (e.g. ENG-123)")],
    title: Annotated[str | None, typer.Option("--title", help="New title")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d", help="New description")] = None,
    state: Annotated[str | None, typer.Option("--state", "-s", help="Workflow state name (e.g. 'In Progress')")] = None,
    assignee: Annotated[
        str | None, typer.Option("--assignee", "-a", help="'me', a user email/name, or 'none' to unassign")
    ] = None,
    priority: Annotated[int | None, typer.Option("--priority", "-p", min=0, max=4, help="Priority 0-4")] = None,
    delegate: Annotated[str | None, typer.Option("--delegate", help=_DELEGATE_HELP)] = None,
    project: Annotated[
        str, typer.Option("--project", help="Project ID to assign issue to (or 'unassigned' to remove)")
    ] = "",
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Update an existing issue."""
    mode = _mode(ctx, json_out, plaintext)
    try:
        project_id, has_project = build_project_input(project)
    except InvalidProjectError as exc:
        raise fail(str(exc), mode)

    if not any(v is not None for v in (title, description, state, assignee, priority, delegate)) and not has_project:
        raise fail("No updates specified. Use --help to see available flags.", mode)

    client = get_client(mode)
    try:
        fields: dict = {}
        if title is not None:
            fields["title"] = title
        if description is not None:
            fields["description"] = description
        if priority is not None:
            fields["priority"] = priority
        if assignee is not None:
            fields["assigneeId"] = _user_id(client, assignee)
        if delegate is not None:
            fields["delegateId"] = _user_id(client, delegate)
        if has_project:
            fields["projectId"] = project_id
        if state is not None:
            current = client.get_issue(issue_id)
            if current.team is None:
                raise LinearError(f"Issue '{issue_id}' has no team")
            fields["stateId"] = client.find_state(current.team.id, state).id
        updated = client.update_issue(issue_id, fields)
    except LinearError as exc:
        raise fail(_mutation_failed("update issue", exc, project), mode)

    _print_issue_result(updated, "Updated", mode)


# ---------------------------------------------------------------------------
# comment
# ---------------------------------------------------------------------------


def _print_comments_rich(issue_id: str, comments: list[Comment]) -> None:
    if not comments:
        console.print(f"\n[yellow]ℹ[/yellow] No comments on issue [cyan]{escape(issue_id)}[/cyan]")
        return

    console.print(f"\n[bold cyan]💬[/bold cyan] Comments on [cyan]{escape(issue_id)}[/cyan] ({len(comments)})\n")
    for i, comment in enumerate(comments):
        if i > 0:
            console.print("─" * 50)
        markers = ""
        if comment.is_reply:
            markers += " [dim]↳ reply[/dim]"
        if comment.resolved_at is not None:
            markers += " [green]✓ resolved[/green]"
        console.print(
            f"[bold cyan]{escape(comment_author_name(comment))}[/bold cyan] [dim]•[/dim] "
            f"[dim]{format_time_ago(comment.created_at)}[/dim]{markers}"
        )
        console.print(f"\n{escape(comment.body)}\n")


@comment_app.command("list")
def comment_list(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(metavar="ISSUE-ID", help="Issue ID (e.g. ENG-123)")],
    limit: Annotated[int, typer.Option("--limit", "-l", min=1, help="Maximum number of comments to return")] = 50,
    sort: Annotated[str, typer.Option("--sort", "-o", help="Sort order: linear (default), created, updated")] = "linear",
    no_children: Annotated[
        bool, typer.Option("--no-children", help="Only show root comments (skip comments that have a parent)")
    ] = False,
    resolved: Annotated[str, typer.Option("--resolved", help="Filter: all, resolved, unresolved")] = "all",
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """List all comments for a specific issue."""
    mode = _mode(ctx, json_out, plaintext)
    try:
        order_by = sort_order(sort)
    except ValueError as exc:
        raise fail(str(exc), mode)
    if resolved not in RESOLUTION_FILTERS:
        raise fail(f"Invalid resolved filter: {resolved}. Valid options are: {', '.join(RESOLUTION_FILTERS)}", mode)

    client = get_client(mode)
    try:
        comments = client.get_issue_comments(issue_id, limit=limit, order_by=order_by)
    except LinearError as exc:
        raise fail(f"Failed to list comments: {exc}", mode)

    if no_children:
        comments = root_comments(comments)
    comments = filter_comments_by_resolution(comments, resolved)

    match mode:
        case OutputMode.JSON:
            print_json([_dump(c) for c in comments])
        case OutputMode.PLAIN:
            for i, comment in enumerate(comments):
                if i > 0:
                    typer.echo("---")
                typer.echo(f"Author: {comment_author_name(comment)}")
                if comment.created_at:
                    typer.echo(f"Date: {comment.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
                if comment.resolved_at:
                    typer.echo(f"Resolved: {comment.resolved_at.strftime('%Y-%m-%d %H:%M:%S')}")
                typer.echo(f"Comment:\n{comment.body}")
        case _:
            _print_comments_rich(issue_id, comments)


comment_app.command("ls", hidden=True)(comment_list)


@comment_app.command("create")
def comment_create(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(metavar="ISSUE-ID", help="Issue ID (e.g. ENG-123)")],
    body: Annotated[str, typer.Option("--body", "-b", help="Comment body (required)")],
    parent: Annotated[str | None, typer.Option("--parent", help="Parent comment ID for threaded replies")] = None,
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Add a new comment to an issue; --parent makes it a threaded reply."""
    mode = _mode(ctx, json_out, plaintext)
    if not body.strip():
        raise fail("Comment body is required (--body)", mode)

    client = get_client(mode)
    try:
        comment = client.create_comment(issue_id, body, parent)
    except LinearError as exc:
        raise fail(f"Failed to create comment: {exc}", mode)

    match mode:
        case OutputMode.JSON:
            print_json(_dump(comment))
        case OutputMode.PLAIN:
            typer.echo(f"Created comment on {issue_id}")
            typer.echo(f"ID: {comment.id}")
            typer.echo(f"Author: {comment_author_name(comment)}")
            if comment.created_at:
                typer.echo(f"Date: {comment.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
            if comment.is_reply:
                typer.echo(f"Parent: {comment.parent.id}")
        case _:
            what = "Added reply to comment on" if comment.is_reply else "Added comment to"
            console.print(f"[green]✓[/green] {what} [bold cyan]{escape(issue_id)}[/bold cyan]")
            console.print(f"ID: [dim]{escape(comment.id)}[/dim]")
            console.print(f"\n{escape(comment.body)}")


comment_app.command("add", hidden=True)(comment_create)
comment_app.command("new", hidden=True)(comment_create)


@comment_app.command("delete")
def comment_delete(
    ctx: typer.Context,
    comment_id: Annotated[str, typer.Argument(metavar="COMMENT-ID", help="Comment ID")],
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Delete a comment."""
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        client.delete_comment(comment_id)
    except LinearError as exc:
        raise fail(f"Failed to delete comment: {exc}", mode)

    match mode:
        case OutputMode.JSON:
            print_json({"status": "success", "commentId": comment_id, "message": "Comment deleted successfully"})
        case OutputMode.PLAIN:
            typer.echo(f"Deleted comment {comment_id}")
        case _:
            console.print(f"[green]✓[/green] Deleted comment [cyan]{escape(comment_id)}[/cyan]")


comment_app.command("rm", hidden=True)(comment_delete)
comment_app.command("remove", hidden=True)(comment_delete)


@comment_app.command("resolve")
def comment_resolve(
    ctx: typer.Context,
    comment_id: Annotated[str, typer.Argument(metavar="COMMENT-ID", help="Comment ID")],
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Resolve a comment thread."""
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        comment = client.resolve_comment(comment_id)
    except LinearError as exc:
        raise fail(f"Failed to resolve comment: {exc}", mode)

    resolver = comment.resolving_user.label if comment.resolving_user else None
    match mode:
        case OutputMode.JSON:
            print_json(_dump(comment))
        case OutputMode.PLAIN:
            typer.echo(f"Resolved comment {comment_id}")
            if resolver:
                typer.echo(f"Resolved by: {resolver}")
        case _:
            console.print(f"[green]✓[/green] Resolved comment [cyan]{escape(comment_id)}[/cyan]")
            if resolver:
                console.print(f"Resolved by: [dim]{escape(resolver)}[/dim]")


@comment_app.command("unresolve")
def comment_unresolve(
    ctx: typer.Context,
    comment_id: Annotated[str, typer.Argument(metavar="COMMENT-ID", help="Comment ID")],
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """Unresolve a comment thread."""
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        comment = client.unresolve_comment(comment_id)
    except LinearError as exc:
        raise fail(f"Failed to unresolve comment: {exc}", mode)

    match mode:
        case OutputMode.JSON:
            print_json(_dump(comment))
        case OutputMode.PLAIN:
            typer.echo(f"Unresolved comment {comment_id}")
        case _:
            console.print(f"[green]✓[/green] Unresolved comment [cyan]{escape(comment_id)}[/cyan]")


# ---------------------------------------------------------------------------
# agent
# ---------------------------------------------------------------------------


@agent_app.command("view")
def agent_view(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue ID (e.g. ENG-80)")],
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """View the agent session status and activity stream for an issue."""
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        issue = client.get_issue_agent_session(issue_id)
    except LinearError as exc:
        raise fail(f"Failed to fetch issue: {exc}", mode)

    view = resolve_session(issue)
    log.debug("agent view for %s: %s", issue.identifier, view.kind)
    if isinstance(view, NoDelegate):
        info(f"No agent session found for {issue.identifier}", mode)
        return
    emit(render_agent_view(issue, view, mode), mode)


@agent_app.command("mention")
def agent_mention(
    ctx: typer.Context,
    issue_id: Annotated[str, typer.Argument(help="Issue ID (e.g. ENG-80)")],
    message: Annotated[str, typer.Argument(help="Message for the agent")],
    json_out: JsonOpt = False,
    plaintext: PlainOpt = False,
) -> None:
    """@mention an agent with a message.

    The agent is the issue's delegate, or else the app user of the first
    agent session found in the issue's comments.
    """
    mode = _mode(ctx, json_out, plaintext)
    client = get_client(mode)
    try:
        issue = client.get_issue_agent_session(issue_id)
    except LinearError as exc:
        raise fail(f"Failed to fetch issue: {exc}", mode)

    try:
        agent_name = resolve_agent_name(issue)
    except AgentNotFoundError as exc:
        raise fail(str(exc), mode)

    try:
        comment_id = client.mention_agent(issue.id, agent_name, message)
    except LinearError as exc:
        raise fail(f"Failed to mention agent: {exc}", mode)

    match mode:
        case OutputMode.JSON:
            print_json(
                {"success": True, "commentId": comment_id, "issue": issue_id, "agent": agent_name, "message": message}
            )
        case OutputMode.PLAIN:
            typer.echo(f"@{agent_name} mentioned on {issue.identifier}")
        case _:
            console.print(f"[green]✓[/green] @{escape(agent_name)} mentioned on {escape(issue.identifier)}")
