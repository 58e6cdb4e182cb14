"""
Single pull request commands: create, list and merge.
"""

import sys
from typing import Callable, Iterator

from prflow.branch_name import make_title
from prflow.config import Config
from prflow.git import Git
from prflow.hosting import HostingClient, PullRequestDraft


def prompt_yes(question: str) -> bool:
    """Prompt with question; empty answer, 'Y' or 'y' mean yes, anything else no."""
    try:
        answer = input(question + " [Y/n]: ").strip()
    except EOFError:
        return False
    return answer in ("", "Y", "y")


def build_draft(git: Git, config: Config, source_branch: str, target_branch: str) -> PullRequestDraft:
    return PullRequestDraft(
        title=make_title(source_branch),
        description=git.last_commit_message(source_branch),
        source_branch=source_branch,
        target_branch=target_branch,
        repository_slug=config.repository_slug,
        project_key=config.project_key,
    )


def create_pull_request(
    git: Git, client: HostingClient, config: Config, source_branch: str, target_branch: str
) -> int:
    """
    Push ``source_branch`` and open a pull request from it into ``target_branch``.

    The push comes first because the server refuses pull requests whose head
    does not exist remotely. If the push succeeds but the API call fails, the
    pushed branch stays on the remote. Repeating the call opens another pull
    request; nothing checks for an existing one.
    """
    repository = config.repository
    print(f"Pushing {source_branch} to {config.remote}...")
    git.push(source_branch, config.remote)
    draft = build_draft(git, config, source_branch, target_branch)
    print(f"Creating pull request {source_branch} -> {target_branch} in {repository}...")
    pr_id = client.create_pull_request(draft)
    print(f"Created pull request #{pr_id}: {draft.title}")
    return pr_id


def list_pull_requests(client: HostingClient, config: Config) -> Iterator[str]:
    """Yield one formatted row per open pull request authored by the configured user."""
    for pr in client.list_pull_requests(config.user, config.list_limit):
        status = "APPROVED" if pr.approved else "-"
        yield f"#{pr.id}\t{status:<8}\t{pr.title}"


def merge_pull_request(
    client: HostingClient, pr_id: int, confirm: Callable[[str], bool] = prompt_yes
) -> int:
    """Merge a pull request after checking it can be merged and asking for confirmation.

    Returns the process exit status.
    """
    status = client.get_merge_status(pr_id)
    handle = client.get_pull_request(pr_id)
    if not status.can_merge:
        print(f"Pull request #{pr_id} cannot be merged ({status.reason}).", file=sys.stderr)
        return 1
    if not confirm(f'Merge #{handle.id} "{handle.title}"?'):
        print("Aborted.")
        return 0
    state = client.merge_pull_request(pr_id, handle.version)
    print(f"Pull request #{pr_id}: {state}")
    return 0
