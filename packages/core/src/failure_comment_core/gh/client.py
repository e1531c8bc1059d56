"""PyGithub adapter for the calls the runner makes.

Every list call walks PyGithub's PaginatedList to the end before returning,
so callers always see the complete result set. Nothing here retries: a
GithubException propagates to the caller.
"""

from __future__ import annotations

from github import Github

from failure_comment_core.models import CheckOutcome, IssueCommentRef, PullRequestRef


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


class GitHubClient:
    """Thin wrapper over one repository, returning closed boundary types."""

    def __init__(self, repo):
        self._repo = repo

    @classmethod
    def connect(cls, repo_name: str, token: str) -> GitHubClient:
        return cls(get_repo(repo_name, token))

    def list_open_pull_requests(self, head_ref: str) -> list[PullRequestRef]:
        """Return open PRs whose head is ``head_ref`` (``owner:branch``)."""
        return [PullRequestRef(number=pr.number) for pr in self._repo.get_pulls(state="open", head=head_ref)]

    def list_completed_check_runs(self, check_suite_id: int) -> list[CheckOutcome]:
        suite = self._repo.get_check_suite(check_suite_id)
        return [_to_outcome(run) for run in suite.get_check_runs(status="completed")]

    def list_issue_comments(self, issue_number: int) -> list[IssueCommentRef]:
        issue = self._repo.get_issue(issue_number)
        return [IssueCommentRef(id=c.id, body=c.body or "") for c in issue.get_comments()]

    def update_comment(self, issue_number: int, comment_id: int, body: str) -> None:
        self._repo.get_issue(issue_number).get_comment(comment_id).edit(body)

    def create_comment(self, issue_number: int, body: str) -> None:
        self._repo.get_issue(issue_number).create_comment(body)

    def add_label(self, issue_number: int, label: str) -> None:
        self._repo.get_issue(issue_number).add_to_labels(label)


def _to_outcome(run) -> CheckOutcome:
    # Runs that never set an output title still need a readable job cell.
    output = run.output
    title = output.title if output is not None and output.title else run.name
    return CheckOutcome(title=title, url=run.html_url, conclusion=run.conclusion)
