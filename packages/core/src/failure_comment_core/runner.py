"""Failure-comment orchestration for one completed check suite."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rich.console import Console

from failure_comment_core.config import ActionConfig
from failure_comment_core.models import CheckOutcome, IssueCommentRef, PullRequestRef
from failure_comment_core.sections import Section, parse_body, reconcile, render_body
from failure_comment_core.summary import render_section

console = Console()
logger = logging.getLogger(__name__)

# Skipped runs report "skipped" and are still counted as failures.
_PASSING_CONCLUSIONS = frozenset({"success", "neutral"})


@dataclass
class RunSummary:
    """What one invocation did, for the CLI result line and for tests."""

    pull_requests: list[int] = field(default_factory=list)
    failed_runs: list[CheckOutcome] = field(default_factory=list)
    created: list[int] = field(default_factory=list)
    updated: list[int] = field(default_factory=list)
    labelled: list[int] = field(default_factory=list)
    skipped_reason: str | None = None  # "no-branch" | "no-pull-requests"


def is_failure(outcome: CheckOutcome) -> bool:
    return outcome.conclusion not in _PASSING_CONCLUSIONS


def find_managed_comment(comments: list[IssueCommentRef], signature: str) -> IssueCommentRef | None:
    """Return the first comment carrying ``signature``.

    At most one such comment is expected per PR and commit; if several exist,
    the first in listing order is the one that gets updated.
    """
    for comment in comments:
        if signature in comment.body:
            return comment
    return None


def _print_dry_run(action: str, pr_number: int, body: str) -> None:
    console.print(f"\n[bold]Dry run: would {action} comment on #{pr_number}[/bold]")
    console.print(body, markup=False, highlight=False)


def _reconcile_pull_request(
    client,
    config: ActionConfig,
    pr: PullRequestRef,
    section: Section,
    has_failures: bool,
    summary: RunSummary,
) -> None:
    comment = find_managed_comment(client.list_issue_comments(pr.number), config.signature)

    if comment is not None:
        sections = reconcile(section, parse_body(comment.body, config.signature))
        body = render_body(sections, config.signature)
        if config.dry_run:
            _print_dry_run("update", pr.number, body)
        else:
            client.update_comment(pr.number, comment.id, body)
            console.print(f"Updated comment on #{pr.number}")
        summary.updated.append(pr.number)
    elif has_failures:
        body = render_body([section], config.signature)
        if config.dry_run:
            _print_dry_run("create", pr.number, body)
        else:
            client.create_comment(pr.number, body)
            console.print(f"Created comment on #{pr.number}")
        summary.created.append(pr.number)
    else:
        logger.debug("No failures and no existing comment on #%d; leaving it alone", pr.number)
        return

    # Labelled on every update, including when the section now reads all clear.
    if not config.dry_run:
        client.add_label(pr.number, config.label)
    summary.labelled.append(pr.number)


def run(config: ActionConfig, client) -> RunSummary:
    """Reflect the failed runs of ``config.check_suite_id`` on every open PR of the branch.

    ``client`` is a GitHubClient or anything with the same methods. Remote
    errors are not caught: PRs handled before the failure keep their update.
    """
    summary = RunSummary()

    if not config.head_branch:
        console.print("Invoked without pull request")
        summary.skipped_reason = "no-branch"
        return summary

    prs = client.list_open_pull_requests(config.head_ref)
    if not prs:
        console.print(f"No open pull requests found with {config.head_branch} branch")
        summary.skipped_reason = "no-pull-requests"
        return summary
    summary.pull_requests = [pr.number for pr in prs]

    failed_runs = [
        check_run for check_run in client.list_completed_check_runs(config.check_suite_id) if is_failure(check_run)
    ]
    summary.failed_runs = failed_runs
    logger.info("%d failed check run(s) in suite %s", len(failed_runs), config.check_suite_id)

    section = render_section(config.workflow, failed_runs)

    for pr in prs:
        _reconcile_pull_request(client, config, pr, section, bool(failed_runs), summary)

    return summary
