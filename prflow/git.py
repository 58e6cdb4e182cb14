"""
Thin wrapper over the git CLI for the operations prflow needs.

Every command runs in the repository directory given at construction time.
Failures raise GitError with git's stderr attached.
"""

import subprocess

from prflow.errors import GitError


# Git status --porcelain: first two chars = index + work tree; unmerged codes:
# UU = both modified, DU = deleted by us/updated by them, UD = updated by us/deleted by them,
# DD = both deleted, AA = both added
_CONFLICT_TYPE_LABELS = {
    "UU": "both modified",
    "AA": "both added",
    "DD": "both deleted",
    "DU": "modify/delete (deleted by us, changed by them)",
    "UD": "modify/delete (changed by us, deleted by them)",
}


class Git:
    """Run git commands against a local clone."""

    def __init__(self, repo_dir: str | None = None):
        self.repo_dir = repo_dir

    def run(self, args: list[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run ``git <args>`` and return the result."""
        cmd = ["git", *args]
        result = subprocess.run(cmd, cwd=self.repo_dir, capture_output=True, text=True)
        if check and result.returncode != 0:
            raise GitError(cmd, result.stderr or result.stdout)
        return result

    def current_branch(self) -> str:
        result = self.run(["branch", "--show-current"], check=False)
        if result.returncode != 0 or not result.stdout.strip():
            raise GitError(["git", "branch", "--show-current"], "Could not determine current branch")
        return result.stdout.strip()

    def checkout(self, branch: str) -> None:
        self.run(["checkout", branch])

    def create_branch(self, name: str, base: str) -> None:
        """Create branch ``name`` at ``base`` and check it out."""
        self.run(["checkout", "-b", name, base])

    def push(self, branch: str, remote: str = "origin") -> None:
        self.run(["push", remote, branch])

    def commit_range(self, base: str, topic: str) -> list[str]:
        """Return commits on ``topic`` that are not on ``base``, oldest first."""
        result = self.run(["rev-list", "--reverse", f"{base}..{topic}"])
        return result.stdout.split()

    def cherry_pick(self, commits: list[str]) -> None:
        """Replay ``commits`` onto the current branch, noting the source commit in each message."""
        self.run(["cherry-pick", "-x", *commits])

    def last_commit_message(self, branch: str) -> str:
        result = self.run(["log", "-1", "--format=%B", branch])
        return result.stdout.rstrip("\n")

    def is_cherry_pick_in_progress(self) -> bool:
        result = self.run(["rev-parse", "-q", "--verify", "CHERRY_PICK_HEAD"], check=False)
        return result.returncode == 0

    def conflicted_files(self) -> list[tuple[str, str]]:
        """Return list of (path, conflict_type_label) for unmerged paths."""
        result = self.run(["status", "--porcelain", "-u"], check=False)
        if result.returncode != 0:
            return []
        entries: list[tuple[str, str]] = []
        for line in result.stdout.strip().splitlines():
            if len(line) < 4:
                continue
            code = line[:2]
            rest = line[3:].strip()
            # Handle "old -> new" renames
            path = rest.split(" -> ")[-1].strip() if " -> " in rest else rest
            if code in _CONFLICT_TYPE_LABELS:
                entries.append((path, _CONFLICT_TYPE_LABELS[code]))
        return entries
