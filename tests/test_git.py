import subprocess

import pytest

from prflow.errors import GitError
from prflow.git import Git


class Recorder:
    """Replaces subprocess.run, answering each git command from a table."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def __call__(self, cmd, cwd=None, capture_output=False, text=False):
        self.calls.append((cmd, cwd))
        returncode, stdout, stderr = self.responses.get(tuple(cmd[1:3]), (0, "", ""))
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)


@pytest.fixture
def recorder(monkeypatch):
    rec = Recorder()
    monkeypatch.setattr(subprocess, "run", rec)
    return rec


def test_commands_run_in_repo_dir(recorder):
    Git("/work/repo").checkout("main")
    assert recorder.calls == [(["git", "checkout", "main"], "/work/repo")]


def test_create_branch(recorder):
    Git().create_branch("feature/x-release-1", "release-1")
    assert recorder.calls[0][0] == ["git", "checkout", "-b", "feature/x-release-1", "release-1"]


def test_commit_range_is_oldest_first(recorder):
    recorder.responses[("rev-list", "--reverse")] = (0, "aaa\nbbb\n", "")

    assert Git().commit_range("main", "feature/x") == ["aaa", "bbb"]
    assert recorder.calls[0][0] == ["git", "rev-list", "--reverse", "main..feature/x"]


def test_cherry_pick_records_origin(recorder):
    Git().cherry_pick(["aaa", "bbb"])
    assert recorder.calls[0][0] == ["git", "cherry-pick", "-x", "aaa", "bbb"]


def test_push(recorder):
    Git().push("feature/x", "upstream")
    assert recorder.calls[0][0] == ["git", "push", "upstream", "feature/x"]


def test_last_commit_message_keeps_body(recorder):
    recorder.responses[("log", "-1")] = (0, "Subject\n\nBody line\n\n", "")
    assert Git().last_commit_message("feature/x") == "Subject\n\nBody line"


def test_current_branch(recorder):
    recorder.responses[("branch", "--show-current")] = (0, "feature/x\n", "")
    assert Git().current_branch() == "feature/x"


def test_current_branch_detached_head(recorder):
    recorder.responses[("branch", "--show-current")] = (0, "", "")
    with pytest.raises(GitError, match="Could not determine current branch"):
        Git().current_branch()


def test_failure_raises_with_stderr(recorder):
    recorder.responses[("checkout", "-b")] = (128, "", "fatal: a branch named 'x' already exists\n")

    with pytest.raises(GitError) as excinfo:
        Git().create_branch("x", "main")

    assert excinfo.value.cmd == ["git", "checkout", "-b", "x", "main"]
    assert excinfo.value.stderr == "fatal: a branch named 'x' already exists"
    assert "Command failed: git checkout -b x main" in str(excinfo.value)


def test_is_cherry_pick_in_progress(recorder):
    assert Git().is_cherry_pick_in_progress() is True
    recorder.responses[("rev-parse", "-q")] = (1, "", "")
    assert Git().is_cherry_pick_in_progress() is False


def test_conflicted_files(recorder):
    recorder.responses[("status", "--porcelain")] = (
        0,
        "UU src/app.py\nM  README.md\nAA new.py\nR  old.py -> moved.py\nUD gone.py\n",
        "",
    )

    assert Git().conflicted_files() == [
        ("src/app.py", "both modified"),
        ("new.py", "both added"),
        ("gone.py", "modify/delete (changed by us, deleted by them)"),
    ]
