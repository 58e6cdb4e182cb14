"""
Derive a pull request title from a topic branch name.

Branches are expected to look like ``<prefix>/<TICKET>-<NUM>-<subject-words>``,
e.g. ``feature/JIRA-123-fix-login-page`` -> ``JIRA-123: fix login page``.
Names that do not follow the pattern still produce a usable title.
"""


def parse_branch_name(branch: str) -> tuple[str, str]:
    """Split a branch name into (ticket, subject)."""
    name = branch.rsplit("/", 1)[-1]
    fields = name.split("-")
    ticket = "-".join(fields[:2])
    subject = " ".join(field for field in fields[2:] if field)
    return ticket, subject


def make_title(branch: str) -> str:
    ticket, subject = parse_branch_name(branch)
    if not subject:
        return ticket
    return f"{ticket}: {subject}"
