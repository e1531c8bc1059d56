"""Boundary types for the GitHub entities the runner reads.

The GitHub adapter maps PyGithub objects onto these at the edge, keeping
only the fields the runner actually uses.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PullRequestRef:
    """An open pull request whose head matches the triggering branch."""

    number: int


@dataclass(frozen=True)
class CheckOutcome:
    """One completed check run of the triggering check suite."""

    title: str
    url: str
    conclusion: str | None = None


@dataclass(frozen=True)
class IssueCommentRef:
    """An issue comment on a pull request.

    The one whose body carries the per-commit signature is the managed comment.
    """

    id: int
    body: str
