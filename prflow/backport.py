"""
Backport a topic branch to several target branches.

For every target, in order:
1. Check out the topic branch
2. Create branch <topic>-<target> from the target
3. Cherry-pick the topic's commits (computed once against the base branch)
4. Push the new branch and open a pull request into the target

The first failure stops the whole run. The topic branch is checked out again
at the end unless a cherry-pick was left in progress for manual resolution.
"""

import sys
from dataclasses import dataclass, field

import requests
from github import GithubException

from prflow.config import Config
from prflow.errors import BackportError, ConfigError, GitError
from prflow.git import Git
from prflow.hosting import HostingClient
from prflow.pull_requests import create_pull_request


@dataclass(frozen=True)
class BackportSpec:
    topic_branch: str
    base_branch: str
    targets: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.base_branch:
            raise ConfigError("No merge-branch supplied")
        if self.base_branch == self.topic_branch:
            raise ConfigError(
                f"Topic branch and merge-branch are both '{self.topic_branch}'; nothing to backport"
            )
        if not self.targets:
            raise ConfigError("No backport target branches configured")


def backport_branch_name(topic_branch: str, target: str) -> str:
    return f"{topic_branch}-{target}"


def create_backport_prs(
    git: Git, client: HostingClient | None, config: Config, spec: BackportSpec, dry_run: bool = False
) -> list[int]:
    """Create one backport pull request per target; return their ids in target order."""
    commits = git.commit_range(spec.base_branch, spec.topic_branch)
    if not commits:
        raise ConfigError(f"No commits on '{spec.topic_branch}' that are not on '{spec.base_branch}'")

    print(
        f"Backporting {len(commits)} commit(s) from {spec.topic_branch} "
        f"to {', '.join(spec.targets)}"
    )
    if dry_run:
        for target in spec.targets:
            print(f"  {backport_branch_name(spec.topic_branch, target)} -> {target}")
        for commit in commits:
            print(f"  cherry-pick {commit}")
        return []

    repository = config.repository
    created: list[int] = []
    try:
        for target in spec.targets:
            created.append(_backport_to(git, client, config, spec.topic_branch, target, commits))
    finally:
        restore_topic_branch(git, spec.topic_branch)

    print(f"\nDone! Created {len(created)} pull request(s) in {repository}.")
    return created


def _backport_to(
    git: Git, client: HostingClient, config: Config, topic_branch: str, target: str, commits: list[str]
) -> int:
    branch = backport_branch_name(topic_branch, target)
    try:
        git.checkout(topic_branch)
    except GitError as e:
        raise BackportError(target, "checkout", str(e)) from e

    print(f"Creating branch {branch} from {target}...")
    try:
        git.create_branch(branch, target)
    except GitError as e:
        raise BackportError(target, "branch", str(e)) from e

    print(f"Cherry-picking {len(commits)} commit(s) onto {branch}...")
    try:
        git.cherry_pick(commits)
    except GitError as e:
        _report_conflicts(git, branch)
        raise BackportError(target, "cherry-pick", str(e)) from e

    try:
        return create_pull_request(git, client, config, branch, target)
    except (GitError, GithubException, requests.RequestException) as e:
        raise BackportError(target, "submit", str(e)) from e


def _report_conflicts(git: Git, branch: str) -> None:
    conflicted = git.conflicted_files()
    if not conflicted:
        return
    print(
        f"\nConflicts in {len(conflicted)} file(s); {branch} left with conflicts for manual resolve:",
        file=sys.stderr,
    )
    for path, kind in conflicted:
        print(f"  {path}  ({kind})", file=sys.stderr)


def restore_topic_branch(git: Git, topic_branch: str) -> None:
    """Check out the topic branch again, unless a cherry-pick awaits resolution."""
    if git.is_cherry_pick_in_progress():
        print(
            "\nCherry-pick in progress; resolve conflicts and run: git add <paths> && git cherry-pick --continue"
            f"\nOr discard it with: git cherry-pick --abort && git checkout {topic_branch}",
            file=sys.stderr,
        )
        return
    try:
        git.checkout(topic_branch)
    except GitError as e:
        print(f"Warning: could not check out {topic_branch} again: {e}", file=sys.stderr)
