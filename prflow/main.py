"""
Pull request workflows from the command line.

Usage:
    prflow create-pr [topic-branch] <merge-branch>
    prflow create-prs [topic-branch] <merge-branch> [branches...]
    prflow merge <id>
    prflow pull-requests
    prflow help

create-pr pushes the topic branch (default: current branch) and opens a pull
request into merge-branch. create-prs cherry-picks the topic's commits that are
not on merge-branch onto each target branch and opens one pull request per
target; targets default to the branches listed in .backport-branches.
"""

import argparse
import sys

import requests
from github import GithubException

from prflow.backport import BackportSpec, create_backport_prs
from prflow.config import Config, acquire_credentials, load_config, resolve_backport_targets
from prflow.errors import ConfigError, PrflowError
from prflow.git import Git
from prflow.hosting import HostingClient
from prflow.pull_requests import create_pull_request, list_pull_requests, merge_pull_request


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="prflow",
        description="Create, backport, list and merge pull requests.",
        epilog="Example: prflow create-prs feature/JIRA-1-fix main release-1 release-2",
    )
    parser.add_argument("--base-url", help="API base URL (default: PRFLOW_BASE_URL or https://api.github.com)")
    parser.add_argument("--project", help="Repository owner (default: PRFLOW_PROJECT env var)")
    parser.add_argument("--repo", help="Repository name (default: PRFLOW_REPO env var)")
    parser.add_argument("--user", help="Your user name (default: PRFLOW_USER env var)")
    parser.add_argument("--remote", help="Remote to push to (default: PRFLOW_REMOTE or origin)")
    parser.add_argument(
        "-C", "--repo-dir",
        dest="repo_dir",
        help="Run git in this directory instead of the current one",
    )

    commands = parser.add_subparsers(dest="command", metavar="<command>", parser_class=_Parser)

    create_pr = commands.add_parser(
        "create-pr", aliases=["c"],
        help="Push a branch and open a pull request",
    )
    create_pr.add_argument("branches", nargs="+", metavar="branch", help="[topic-branch] <merge-branch>")

    create_prs = commands.add_parser(
        "create-prs", aliases=["cs"],
        help="Cherry-pick a branch onto several branches and open a pull request for each",
    )
    create_prs.add_argument(
        "branches", nargs="+", metavar="branch",
        help="[topic-branch] <merge-branch> [target-branches...]",
    )
    create_prs.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the branches and commits that would be backported, change nothing",
    )

    merge = commands.add_parser("merge", aliases=["m"], help="Merge a pull request")
    merge.add_argument("id", type=int, help="Pull request number")
    merge.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    commands.add_parser("pull-requests", aliases=["pr", "prs"], help="List your open pull requests")
    commands.add_parser("help", aliases=["h"], help="Show this help")
    return parser


def make_git(config: Config) -> Git:
    return Git(config.repo_dir)


def make_client(config: Config) -> HostingClient:
    return HostingClient(config, acquire_credentials(config))


def split_create_pr_args(git: Git, branches: list[str]) -> tuple[str, str]:
    """Return (topic, merge_branch) from '[topic] <merge-branch>'."""
    if len(branches) > 2:
        raise ConfigError(f"create-pr takes at most two branches, got {len(branches)}")
    if len(branches) == 2:
        topic, merge_branch = branches
    else:
        topic, merge_branch = git.current_branch(), branches[0]
    if not merge_branch:
        raise ConfigError("No merge-branch supplied")
    if topic == merge_branch:
        raise ConfigError(f"Topic branch and merge-branch are both '{topic}'")
    return topic, merge_branch


def split_create_prs_args(git: Git, branches: list[str]) -> tuple[str, str, list[str]]:
    """Return (topic, merge_branch, targets) from '[topic] <merge-branch> [targets...]'."""
    if len(branches) == 1:
        return git.current_branch(), branches[0], []
    return branches[0], branches[1], branches[2:]


def run_command(args: argparse.Namespace, config: Config) -> int:
    command = args.command
    if command in ("create-pr", "c"):
        git = make_git(config)
        topic, merge_branch = split_create_pr_args(git, args.branches)
        create_pull_request(git, make_client(config), config, topic, merge_branch)
        return 0

    if command in ("create-prs", "cs"):
        git = make_git(config)
        topic, merge_branch, explicit = split_create_prs_args(git, args.branches)
        spec = BackportSpec(
            topic_branch=topic,
            base_branch=merge_branch,
            targets=resolve_backport_targets(explicit, config),
        )
        client = None if args.dry_run else make_client(config)
        create_backport_prs(git, client, config, spec, dry_run=args.dry_run)
        return 0

    if command in ("merge", "m"):
        client = make_client(config)
        if args.yes:
            return merge_pull_request(client, args.id, confirm=lambda question: True)
        return merge_pull_request(client, args.id)

    if command in ("pull-requests", "pr", "prs"):
        if not config.user:
            raise ConfigError("No user configured: set PRFLOW_USER or pass --user")
        for row in list_pull_requests(make_client(config), config):
            print(row)
        return 0

    raise ConfigError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in ("help", "h"):
        parser.print_help()
        return 0
    if not args.command:
        parser.print_usage(sys.stderr)
        return 1

    try:
        config = load_config(args)
        return run_command(args, config)
    except PrflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except GithubException as e:
        print(f"Error: {describe_api_error(e)}", file=sys.stderr)
        return 1
    except requests.RequestException as e:
        print(f"Error: request to {config.base_url} failed: {e}", file=sys.stderr)
        return 1


def describe_api_error(e: GithubException) -> str:
    """Render an API error with the server's own message."""
    data = e.data
    message = data.get("message") if isinstance(data, dict) else data
    if not message:
        message = str(e)
    return f"{e.status} {message}"


if __name__ == "__main__":
    sys.exit(main())
