"""
Hosting API access through PyGithub.

The rest of prflow sees only the plain records defined here, never PyGithub
objects, so commands can be exercised against an in-memory client.
"""

from dataclasses import dataclass, field
from itertools import islice
from typing import Iterator

from github import Auth, Github

from prflow.config import Config

# Mergeable states GitHub reports for PRs that may not be merged yet.
_BLOCKING_MERGE_STATES = {"blocked", "dirty", "draft", "unknown"}


@dataclass(frozen=True)
class PullRequestDraft:
    title: str
    description: str
    source_branch: str
    target_branch: str
    repository_slug: str
    project_key: str

    @property
    def repository(self) -> str:
        return f"{self.project_key}/{self.repository_slug}"


@dataclass(frozen=True)
class PullRequestHandle:
    id: int
    title: str
    # Head commit SHA; a merge against a stale value is rejected by the server.
    version: str


@dataclass(frozen=True)
class Reviewer:
    name: str
    approved: bool


@dataclass(frozen=True)
class PullRequestSummary:
    id: int
    title: str
    author: str
    reviewers: list[Reviewer] = field(default_factory=list)

    @property
    def approved(self) -> bool:
        return any(reviewer.approved for reviewer in self.reviewers)


@dataclass(frozen=True)
class MergeStatus:
    can_merge: bool
    reason: str = ""


class HostingClient:
    """Pull request operations on one repository of a GitHub (Enterprise) server."""

    def __init__(self, config: Config, auth: Auth.Auth, github: Github | None = None):
        self.config = config
        # Failed requests surface immediately; PyGithub would otherwise retry writes too.
        self._github = github or Github(base_url=config.base_url, auth=auth, retry=None)
        self._repos = {}

    def _repo(self, full_name: str | None = None):
        full_name = full_name or self.config.repository
        if full_name not in self._repos:
            self._repos[full_name] = self._github.get_repo(full_name)
        return self._repos[full_name]

    def create_pull_request(self, draft: PullRequestDraft) -> int:
        """Open a pull request and return the id the server assigned."""
        pr = self._repo(draft.repository).create_pull(
            base=draft.target_branch,
            head=draft.source_branch,
            title=draft.title,
            body=draft.description,
        )
        return pr.number

    def list_pull_requests(self, author: str, limit: int) -> Iterator[PullRequestSummary]:
        """Yield open pull requests by ``author``, newest first, at most ``limit`` of them."""
        query = f"is:pr is:open author:{author} repo:{self.config.repository}"
        issues = self._github.search_issues(query, sort="created", order="desc")
        # Logins are case-insensitive.
        wanted = author.casefold()
        mine = (
            issue for issue in issues
            if issue.user is not None and issue.user.login.casefold() == wanted
        )
        for issue in islice(mine, limit):
            yield PullRequestSummary(
                id=issue.number,
                title=issue.title,
                author=issue.user.login,
                reviewers=_reviewers(issue.as_pull_request()),
            )

    def get_pull_request(self, pr_id: int) -> PullRequestHandle:
        pr = self._repo().get_pull(pr_id)
        return PullRequestHandle(id=pr.number, title=pr.title, version=pr.head.sha)

    def get_merge_status(self, pr_id: int) -> MergeStatus:
        pr = self._repo().get_pull(pr_id)
        if pr.mergeable is None and not pr.merged and pr.state == "open":
            # The server computes mergeability in the background after the first read.
            pr = self._repo().get_pull(pr_id)
        state = pr.mergeable_state or "unknown"
        if pr.merged:
            return MergeStatus(can_merge=False, reason="already merged")
        if pr.state != "open":
            return MergeStatus(can_merge=False, reason=f"pull request is {pr.state}")
        if pr.mergeable is None:
            return MergeStatus(
                can_merge=False,
                reason="mergeability is still being computed by the server, run the command again shortly",
            )
        if not pr.mergeable or state in _BLOCKING_MERGE_STATES:
            return MergeStatus(can_merge=False, reason=state)
        return MergeStatus(can_merge=True, reason=state)

    def merge_pull_request(self, pr_id: int, version: str) -> str:
        """Merge the pull request if its head is still ``version``; return the resulting state."""
        pr = self._repo().get_pull(pr_id)
        status = pr.merge(sha=version)
        if status.merged:
            return "MERGED"
        return status.message or "NOT MERGED"


def _reviewers(pr) -> list[Reviewer]:
    """Latest verdict per reviewer; plain comments do not override an approval."""
    verdicts: dict[str, bool] = {}
    for review in pr.get_reviews():
        if review.user is None:
            continue
        name = review.user.login
        if review.state in ("APPROVED", "CHANGES_REQUESTED", "DISMISSED"):
            verdicts[name] = review.state == "APPROVED"
        else:
            verdicts.setdefault(name, False)
    return [Reviewer(name=name, approved=approved) for name, approved in verdicts.items()]
