"""
Runtime configuration for prflow.

Values come from command-line options first, then PRFLOW_* environment
variables, then defaults. The resulting Config is built once in main() and
passed to every command.
"""

import argparse
import getpass
import os
from dataclasses import dataclass, field
from typing import Mapping

from github import Auth

from prflow.errors import ConfigError

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_LIST_LIMIT = 25
DEFAULT_BACKPORT_BRANCHES_FILE = ".backport-branches"


@dataclass(frozen=True)
class Config:
    base_url: str = DEFAULT_BASE_URL
    project_key: str | None = None
    repository_slug: str | None = None
    user: str | None = None
    # Never printed: excluded from repr.
    token: str | None = field(default=None, repr=False)
    list_limit: int = DEFAULT_LIST_LIMIT
    backport_branches_file: str = DEFAULT_BACKPORT_BRANCHES_FILE
    remote: str = "origin"
    repo_dir: str | None = None

    @property
    def repository(self) -> str:
        """Return 'owner/repo' for the configured repository."""
        if not self.project_key or not self.repository_slug:
            raise ConfigError(
                "Repository not configured: set PRFLOW_PROJECT and PRFLOW_REPO (or --project/--repo)"
            )
        return f"{self.project_key}/{self.repository_slug}"


def load_config(args: argparse.Namespace, environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from parsed global options and the environment."""
    env = os.environ if environ is None else environ

    raw_limit = env.get("PRFLOW_LIST_LIMIT")
    try:
        list_limit = int(raw_limit) if raw_limit else DEFAULT_LIST_LIMIT
    except ValueError:
        raise ConfigError(f"PRFLOW_LIST_LIMIT must be an integer, got {raw_limit!r}") from None
    if list_limit < 1:
        raise ConfigError(f"PRFLOW_LIST_LIMIT must be positive, got {list_limit}")

    repo_dir = os.path.abspath(args.repo_dir) if getattr(args, "repo_dir", None) else None
    branches_file = env.get("PRFLOW_BACKPORT_BRANCHES") or DEFAULT_BACKPORT_BRANCHES_FILE
    if not os.path.isabs(branches_file):
        branches_file = os.path.join(repo_dir or os.getcwd(), branches_file)

    return Config(
        base_url=getattr(args, "base_url", None) or env.get("PRFLOW_BASE_URL") or DEFAULT_BASE_URL,
        project_key=getattr(args, "project", None) or env.get("PRFLOW_PROJECT"),
        repository_slug=getattr(args, "repo", None) or env.get("PRFLOW_REPO"),
        user=getattr(args, "user", None) or env.get("PRFLOW_USER"),
        token=env.get("PRFLOW_TOKEN") or env.get("GITHUB_TOKEN"),
        list_limit=list_limit,
        backport_branches_file=branches_file,
        remote=getattr(args, "remote", None) or env.get("PRFLOW_REMOTE") or "origin",
        repo_dir=repo_dir,
    )


def acquire_credentials(config: Config) -> Auth.Auth:
    """
    Return API credentials: the configured token, or a password prompted for
    without echo. The secret is handed straight to PyGithub and never stored
    on the Config or printed.
    """
    if config.token:
        return Auth.Token(config.token)
    if not config.user:
        raise ConfigError("No token configured and no user to log in as: set PRFLOW_TOKEN or PRFLOW_USER")
    password = getpass.getpass(f"Password for {config.user}: ")
    return Auth.Login(config.user, password)


def read_backport_branches(path: str) -> list[str]:
    """Read target branch names, one per line, skipping blanks and '#' comments."""
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except FileNotFoundError:
        return []
    branches = []
    for line in lines:
        name = line.strip()
        if name and not name.startswith("#"):
            branches.append(name)
    return branches


def resolve_backport_targets(explicit: list[str], config: Config) -> list[str]:
    """Explicit branches win; otherwise fall back to the configured branches file."""
    if explicit:
        return list(explicit)
    targets = read_backport_branches(config.backport_branches_file)
    if not targets:
        raise ConfigError(
            f"No backport target branches given and none configured in {config.backport_branches_file}"
        )
    return targets
