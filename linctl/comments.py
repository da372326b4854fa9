"""Comment list helpers: filtering, sorting and display names."""

from datetime import datetime, timezone

from linctl.models import Comment

RESOLUTION_FILTERS = ("all", "resolved", "unresolved")

SORT_OPTIONS = {
    "linear": None,  # Linear's default ordering
    "created": "createdAt",
    "createdAt": "createdAt",
    "updated": "updatedAt",
    "updatedAt": "updatedAt",
}


def sort_order(option: str) -> str | None:
    """Map a --sort value to Linear's PaginationOrderBy (None = server default)."""
    if option not in SORT_OPTIONS:
        raise ValueError(f"Invalid sort option: {option}. Valid options are: linear, created, updated")
    return SORT_OPTIONS[option]


def filter_comments_by_resolution(comments: list[Comment], resolution: str) -> list[Comment]:
    match resolution:
        case "all":
            return list(comments)
        case "resolved":
            return [c for c in comments if c.resolved_at is not None]
        case "unresolved":
            return [c for c in comments if c.resolved_at is None]
        case _:
            raise ValueError(f"Invalid resolved filter: {resolution}. Valid options are: {', '.join(RESOLUTION_FILTERS)}")


def root_comments(comments: list[Comment]) -> list[Comment]:
    """Drop threaded replies, keeping only top-level comments."""
    return [c for c in comments if not c.is_reply]


def comment_author_name(comment: Comment | None) -> str:
    if comment is None or comment.user is None:
        return "System"
    return comment.user.label


def _plural(count: int, unit: str) -> str:
    return f"1 {unit} ago" if count == 1 else f"{count} {unit}s ago"


def format_time_ago(ts: datetime | None, now: datetime | None = None) -> str:
    if ts is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    seconds = (now - ts).total_seconds()
    hours = seconds / 3600

    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return _plural(int(seconds // 60), "minute")
    if hours < 24:
        return _plural(int(hours), "hour")
    if hours < 30 * 24:
        return _plural(int(hours // 24), "day")
    if hours < 365 * 24:
        return _plural(int(hours // (24 * 30)), "month")
    return _plural(int(hours // (24 * 365)), "year")
