"""Create, backport, list and merge pull requests."""

from prflow.branch_name import make_title, parse_branch_name

__all__ = ["make_title", "parse_branch_name"]
