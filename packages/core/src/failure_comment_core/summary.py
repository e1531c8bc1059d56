"""Markdown rendering of one workflow's failed check runs."""

from __future__ import annotations

from collections.abc import Sequence

from failure_comment_core.models import CheckOutcome
from failure_comment_core.sections import Section, make_tag

ALL_CLEAR = "No jobs failed :+1:"


def render_section(workflow: str, failed_runs: Sequence[CheckOutcome]) -> Section:
    """Build the section a workflow owns in the shared comment.

    Rows keep the order GitHub returned the check runs in.
    """
    lines = [make_tag(workflow), f"### {workflow}"]

    if not failed_runs:
        lines.append(ALL_CLEAR)
    else:
        lines.append("| job | url |")
        lines.append("|-----|-----|")
        for run in failed_runs:
            lines.append(f"| {run.title} | {run.url} |")

    return Section(text="\n".join(lines), owner=workflow)
