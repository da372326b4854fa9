"""Linear GraphQL API client."""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from linctl.models import (
    Comment,
    Issue,
    Label,
    Organization,
    Team,
    User,
    Viewer,
    WorkflowState,
    describe_validation_error,
)
from linctl.settings import LinctlSettings, require_api_key

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ENDPOINT = "https://api.linear.app/graphql"

# Activities fetched per session; more than this only shows a "more available" notice.
ACTIVITY_PAGE_SIZE = 50

_USER_FIELDS = "id name displayName email"

_ISSUE_FIELDS = f"""
    id
    identifier
    title
    description
    url
    priority
    state {{ id name type }}
    assignee {{ {_USER_FIELDS} }}
    delegate {{ {_USER_FIELDS} }}
    team {{ id name key }}
    project {{ id name }}
    labels {{ nodes {{ id name color }} }}
    createdAt
    updatedAt
"""

_COMMENT_FIELDS = f"""
    id
    body
    createdAt
    updatedAt
    user {{ {_USER_FIELDS} }}
    parent {{ id }}
    resolvedAt
    resolvingUser {{ {_USER_FIELDS} }}
"""

_VIEWER = """
query Viewer {
  viewer { id name displayName email }
  organization { id name urlKey }
}
"""

_GET_ISSUE = f"""
query GetIssue($id: String!) {{
  issue(id: $id) {{
    {_ISSUE_FIELDS}
  }}
}}
"""

_LIST_ISSUES = f"""
query ListIssues($filter: IssueFilter, $first: Int) {{
  issues(filter: $filter, first: $first, orderBy: updatedAt) {{
    nodes {{
      {_ISSUE_FIELDS}
    }}
  }}
}}
"""

_CREATE_ISSUE = f"""
mutation CreateIssue($input: IssueCreateInput!) {{
  issueCreate(input: $input) {{
    success
    issue {{
      {_ISSUE_FIELDS}
    }}
  }}
}}
"""

_UPDATE_ISSUE = f"""
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {{
  issueUpdate(id: $id, input: $input) {{
    success
    issue {{
      {_ISSUE_FIELDS}
    }}
  }}
}}
"""

_FIND_TEAM = """
query FindTeam($key: String!) {
  teams(filter: { key: { eqIgnoreCase: $key } }) {
    nodes { id name key }
  }
}
"""

_LIST_USERS = f"""
query ListUsers {{
  users(first: 250) {{
    nodes {{ {_USER_FIELDS} }}
  }}
}}
"""

_FIND_STATE = """
query FindState($teamId: ID!, $name: String!) {
  workflowStates(filter: { team: { id: { eq: $teamId } }, name: { eqIgnoreCase: $name } }) {
    nodes { id name type }
  }
}
"""

_FIND_LABELS = """
query FindLabels($names: [String!]) {
  issueLabels(filter: { name: { in: $names } }) {
    nodes { id name color }
  }
}
"""

_ISSUE_COMMENTS = f"""
query IssueComments($id: String!, $first: Int, $orderBy: PaginationOrderBy) {{
  issue(id: $id) {{
    comments(first: $first, orderBy: $orderBy) {{
      nodes {{
        {_COMMENT_FIELDS}
      }}
    }}
  }}
}}
"""

_CREATE_COMMENT = f"""
mutation CreateComment($input: CommentCreateInput!) {{
  commentCreate(input: $input) {{
    success
    comment {{
      {_COMMENT_FIELDS}
    }}
  }}
}}
"""

_DELETE_COMMENT = """
mutation DeleteComment($id: String!) {
  commentDelete(id: $id) {
    success
  }
}
"""

_RESOLVE_COMMENT = f"""
mutation ResolveComment($id: String!) {{
  commentResolve(id: $id) {{
    success
    comment {{
      {_COMMENT_FIELDS}
    }}
  }}
}}
"""

_UNRESOLVE_COMMENT = f"""
mutation UnresolveComment($id: String!) {{
  commentUnresolve(id: $id) {{
    success
    comment {{
      {_COMMENT_FIELDS}
    }}
  }}
}}
"""

_ISSUE_AGENT_SESSION = f"""
query IssueAgentSession($id: String!, $activities: Int) {{
  issue(id: $id) {{
    id
    identifier
    title
    delegate {{ {_USER_FIELDS} }}
    comments {{
      nodes {{
        id
        body
        createdAt
        agentSession {{
          id
          status
          createdAt
          updatedAt
          appUser {{ {_USER_FIELDS} }}
          activities(first: $activities) {{
            nodes {{
              id
              createdAt
              ephemeral
              content {{
                ... on AgentActivityThoughtContent {{ type body }}
                ... on AgentActivityResponseContent {{ type body }}
                ... on AgentActivityElicitationContent {{ type body }}
                ... on AgentActivityErrorContent {{ type body }}
                ... on AgentActivityPromptContent {{ type body }}
                ... on AgentActivityActionContent {{ type action parameter result }}
              }}
            }}
            pageInfo {{ hasNextPage endCursor }}
          }}
        }}
      }}
    }}
  }}
}}
"""


class LinearError(RuntimeError):
    """Transport failure, GraphQL error, malformed payload, or unsuccessful mutation."""


def _parse(model: type[M], node: Any) -> M:
    try:
        return model.model_validate(node)
    except ValidationError as exc:
        raise LinearError(f"unexpected response: {describe_validation_error(exc)}") from exc


class LinearClient:
    def __init__(self, settings: LinctlSettings) -> None:
        self._api_key = require_api_key(settings)
        self._endpoint = settings.api_url or ENDPOINT
        self._timeout = settings.timeout

    def _gql(self, query: str, variables: dict | None = None) -> dict:
        operation = query.split("(", 1)[0].split("{", 1)[0].strip()
        log.debug("POST %s %s", self._endpoint, operation)
        try:
            response = httpx.post(
                self._endpoint,
                json={"query": query, "variables": variables or {}},
                headers={
                    "Authorization": self._api_key,
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise LinearError(f"request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("errors"):
            errors = data["errors"] if isinstance(data["errors"], list) else [data["errors"]]
            messages = "; ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
            )
            raise LinearError(f"Linear API error: {messages}")
        if response.is_error:
            raise LinearError(f"Linear API returned HTTP {response.status_code}")
        if not isinstance(data, dict) or data.get("data") is None:
            raise LinearError("Linear API returned no data")
        return data["data"]

    @staticmethod
    def _mutation_result(data: dict, field: str, payload: str | None = None) -> dict:
        result = data.get(field) or {}
        if not result.get("success"):
            raise LinearError(f"Linear {field} returned success=false")
        if payload is None:
            return result
        node = result.get(payload)
        if not node:
            raise LinearError(f"Linear {field} returned no {payload}")
        return node

    # -- viewer -------------------------------------------------------------

    def get_viewer(self) -> Viewer:
        data = self._gql(_VIEWER)
        org = data.get("organization")
        return Viewer(
            user=_parse(User, data["viewer"]),
            organization=_parse(Organization, org) if org else None,
        )

    # -- issues -------------------------------------------------------------

    def get_issue(self, issue_id: str) -> Issue:
        data = self._gql(_GET_ISSUE, {"id": issue_id})
        node = data.get("issue")
        if not node:
            raise LinearError(f"Issue '{issue_id}' not found")
        return _parse(Issue, node)

    def list_issues(
        self,
        assignee: str | None = None,
        team: str | None = None,
        state: str | None = None,
        limit: int = 50,
        include_completed: bool = False,
    ) -> list[Issue]:
        """List issues, most recently updated first.

        ``assignee`` is "me" (the API key's owner) or an email address.
        Completed and canceled issues are skipped unless ``include_completed``.
        """
        issue_filter: dict[str, Any] = {}
        if assignee == "me":
            issue_filter["assignee"] = {"isMe": {"eq": True}}
        elif assignee:
            issue_filter["assignee"] = {"email": {"eqIgnoreCase": assignee}}
        if team:
            issue_filter["team"] = {"key": {"eqIgnoreCase": team}}
        if state:
            issue_filter["state"] = {"name": {"eqIgnoreCase": state}}
        elif not include_completed:
            issue_filter["state"] = {"type": {"nin": ["completed", "canceled"]}}

        data = self._gql(_LIST_ISSUES, {"filter": issue_filter, "first": limit})
        return [_parse(Issue, n) for n in data["issues"]["nodes"]]

    def create_issue(self, fields: dict[str, Any]) -> Issue:
        data = self._gql(_CREATE_ISSUE, {"input": fields})
        return _parse(Issue, self._mutation_result(data, "issueCreate", "issue"))

    def update_issue(self, issue_id: str, fields: dict[str, Any]) -> Issue:
        data = self._gql(_UPDATE_ISSUE, {"id": issue_id, "input": fields})
        return _parse(Issue, self._mutation_result(data, "issueUpdate", "issue"))

    # -- lookups ------------------------------------------------------------

    def find_team(self, key: str) -> Team:
        nodes = self._gql(_FIND_TEAM, {"key": key})["teams"]["nodes"]
        if not nodes:
            raise LinearError(f"Team '{key}' not found")
        return _parse(Team, nodes[0])

    def find_user(self, query: str) -> User:
        """Match a user by email, name or display name (case-insensitive)."""
        wanted = query.strip().lower()
        for node in self._gql(_LIST_USERS)["users"]["nodes"]:
            user = _parse(User, node)
            if wanted in {(v or "").lower() for v in (user.email, user.name, user.display_name)}:
                return user
        raise LinearError(f"User '{query}' not found")

    def find_state(self, team_id: str, name: str) -> WorkflowState:
        nodes = self._gql(_FIND_STATE, {"teamId": team_id, "name": name})["workflowStates"]["nodes"]
        if not nodes:
            raise LinearError(f"State '{name}' not found")
        return _parse(WorkflowState, nodes[0])

    def find_labels(self, names: list[str]) -> list[Label]:
        nodes = self._gql(_FIND_LABELS, {"names": names})["issueLabels"]["nodes"]
        labels = [_parse(Label, n) for n in nodes]
        found = {label.name.lower() for label in labels}
        missing = [n for n in names if n.lower() not in found]
        if missing:
            raise LinearError(f"Label(s) not found: {', '.join(missing)}")
        return labels

    # -- comments -----------------------------------------------------------

    def get_issue_comments(self, issue_id: str, limit: int = 50, order_by: str | None = None) -> list[Comment]:
        variables: dict[str, Any] = {"id": issue_id, "first": limit}
        if order_by:
            variables["orderBy"] = order_by
        node = self._gql(_ISSUE_COMMENTS, variables).get("issue")
        if not node:
            raise LinearError(f"Issue '{issue_id}' not found")
        return [_parse(Comment, c) for c in node["comments"]["nodes"]]

    def create_comment(self, issue_id: str, body: str, parent_id: str | None = None) -> Comment:
        comment_input = {"issueId": issue_id, "body": body}
        if parent_id:
            comment_input["parentId"] = parent_id
        data = self._gql(_CREATE_COMMENT, {"input": comment_input})
        return _parse(Comment, self._mutation_result(data, "commentCreate", "comment"))

    def delete_comment(self, comment_id: str) -> None:
        data = self._gql(_DELETE_COMMENT, {"id": comment_id})
        self._mutation_result(data, "commentDelete")

    def resolve_comment(self, comment_id: str) -> Comment:
        data = self._gql(_RESOLVE_COMMENT, {"id": comment_id})
        return _parse(Comment, self._mutation_result(data, "commentResolve", "comment"))

    def unresolve_comment(self, comment_id: str) -> Comment:
        data = self._gql(_UNRESOLVE_COMMENT, {"id": comment_id})
        return _parse(Comment, self._mutation_result(data, "commentUnresolve", "comment"))

    # -- agent sessions -----------------------------------------------------

    def get_issue_agent_session(self, issue_id: str) -> Issue:
        """Fetch an issue with its delegate and every comment's agent session."""
        data = self._gql(_ISSUE_AGENT_SESSION, {"id": issue_id, "activities": ACTIVITY_PAGE_SIZE})
        node = data.get("issue")
        if not node:
            raise LinearError(f"Issue '{issue_id}' not found")
        return _parse(Issue, node)

    def mention_agent(self, issue_id: str, agent_display_name: str, message: str) -> str:
        """Post an @mention comment that triggers the agent. Returns the comment ID."""
        comment = self.create_comment(issue_id, f"@{agent_display_name} {message}")
        return comment.id
