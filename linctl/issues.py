"""Issue flag helpers: project assignment and priority labels."""

import re

_UUID_RE = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")

UNASSIGNED = "unassigned"

PRIORITY_LABEL = {0: "— (No priority)", 1: "🔴 Urgent", 2: "🟠 High", 3: "🟡 Medium", 4: "🟢 Low"}


class InvalidProjectError(ValueError):
    pass


def is_valid_uuid(value: str) -> bool:
    return _UUID_RE.fullmatch(value) is not None


def build_project_input(flag: str) -> tuple[str | None, bool]:
    """Interpret --project.

    Returns ``(project_id, present)``: "" means the flag was not given,
    "unassigned" clears the project (``(None, True)``), a UUID assigns it.
    """
    if flag == "":
        return None, False
    if flag == UNASSIGNED:
        return None, True
    if is_valid_uuid(flag):
        return flag, True
    raise InvalidProjectError(f"Invalid project ID '{flag}': expected a UUID or '{UNASSIGNED}'")


def is_project_not_found_error(exc: BaseException | None) -> bool:
    if exc is None:
        return False
    message = str(exc).lower()
    return "project" in message and "not found" in message


def priority_label(priority: int | None) -> str:
    if priority is None:
        return "—"
    return PRIORITY_LABEL.get(priority, str(priority))
