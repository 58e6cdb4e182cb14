"""Exceptions raised by prflow commands and reported by the CLI."""


class PrflowError(RuntimeError):
    """Base class for failures that end the current command."""


class ConfigError(PrflowError):
    """Missing or contradictory arguments or settings; nothing was changed."""


class GitError(PrflowError):
    """A git command exited with a non-zero status."""

    def __init__(self, cmd: list[str], stderr: str = ""):
        self.cmd = cmd
        self.stderr = stderr.strip()
        message = f"Command failed: {' '.join(cmd)}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)


class BackportError(PrflowError):
    """Processing of one backport target failed; remaining targets were skipped."""

    def __init__(self, target: str, stage: str, reason: str):
        self.target = target
        self.stage = stage
        super().__init__(f"Backport to '{target}' failed during {stage}: {reason}")
