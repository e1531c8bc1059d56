"""Tests for the orchestration in runner.run."""

from unittest.mock import MagicMock

import pytest
from github import GithubException

from failure_comment_core.config import ActionConfig
from failure_comment_core.gh.client import GitHubClient
from failure_comment_core.models import CheckOutcome, IssueCommentRef, PullRequestRef
from failure_comment_core.runner import find_managed_comment, is_failure, run
from failure_comment_core.sections import SEPARATOR, make_signature, parse_body, render_body
from failure_comment_core.summary import render_section

SHA = "a" * 40
SIGNATURE = make_signature(SHA)


def _config(**overrides):
    values = dict(
        head_branch="feature",
        head_commit=SHA,
        workflow="build",
        check_suite_id=11,
        owner="acme",
        repo="widgets",
    )
    values.update(overrides)
    return ActionConfig(**values)


def _client(prs=(), runs=(), comments=None):
    """A GitHubClient double; ``comments`` maps PR number to its comment list."""
    client = MagicMock(spec=GitHubClient)
    client.list_open_pull_requests.return_value = [PullRequestRef(n) for n in prs]
    client.list_completed_check_runs.return_value = list(runs)
    client.list_issue_comments.side_effect = lambda number: (comments or {}).get(number, [])
    return client


FAILED = CheckOutcome(title="lint", url="http://ci/lint", conclusion="failure")
PASSED = CheckOutcome(title="unit", url="http://ci/unit", conclusion="success")


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


class TestIsFailure:
    @pytest.mark.parametrize("conclusion", ["failure", "cancelled", "timed_out", "skipped", "action_required", None])
    def test_counts_as_failure(self, conclusion):
        assert is_failure(CheckOutcome("t", "u", conclusion))

    @pytest.mark.parametrize("conclusion", ["success", "neutral"])
    def test_passing(self, conclusion):
        assert not is_failure(CheckOutcome("t", "u", conclusion))


class TestFindManagedComment:
    def test_none_when_absent(self):
        assert find_managed_comment([IssueCommentRef(1, "LGTM")], SIGNATURE) is None

    def test_first_match_wins(self):
        first = IssueCommentRef(1, SIGNATURE + " one")
        second = IssueCommentRef(2, SIGNATURE + " two")
        assert find_managed_comment([IssueCommentRef(0, "hi"), first, second], SIGNATURE) is first

    def test_other_commit_signature_ignored(self):
        stale = IssueCommentRef(1, make_signature("b" * 40))
        assert find_managed_comment([stale], SIGNATURE) is None


# ---------------------------------------------------------------------------
# run: early exits
# ---------------------------------------------------------------------------


class TestApplicability:
    @pytest.mark.parametrize("branch", [None, ""])
    def test_no_branch_makes_no_remote_calls(self, branch):
        client = _client(prs=[1], runs=[FAILED])
        summary = run(_config(head_branch=branch), client)
        assert client.mock_calls == []
        assert summary.skipped_reason == "no-branch"

    def test_no_branch_accepts_missing_client(self):
        assert run(_config(head_branch=None), None).skipped_reason == "no-branch"

    def test_no_open_pull_requests(self):
        client = _client(prs=[])
        summary = run(_config(), client)
        client.list_open_pull_requests.assert_called_once_with("acme:feature")
        client.list_completed_check_runs.assert_not_called()
        assert summary.skipped_reason == "no-pull-requests"


# ---------------------------------------------------------------------------
# run: per-PR reconciliation
# ---------------------------------------------------------------------------


class TestCreate:
    def test_creates_comment_and_labels_when_failures(self):
        client = _client(prs=[5], runs=[FAILED, PASSED])

        summary = run(_config(), client)

        client.list_completed_check_runs.assert_called_once_with(11)
        client.create_comment.assert_called_once()
        number, body = client.create_comment.call_args.args
        assert number == 5
        sections = parse_body(body, SIGNATURE)
        assert len(sections) == 1
        assert sections[0] == render_section("build", [FAILED])
        assert body.startswith(SIGNATURE + SEPARATOR)
        client.add_label.assert_called_once_with(5, "waiting-response")
        client.update_comment.assert_not_called()
        assert summary.created == [5]
        assert summary.failed_runs == [FAILED]

    def test_no_comment_created_when_all_clear(self):
        client = _client(prs=[5], runs=[PASSED, CheckOutcome("docs", "u", "neutral")])

        summary = run(_config(), client)

        client.create_comment.assert_not_called()
        client.update_comment.assert_not_called()
        client.add_label.assert_not_called()
        assert summary.created == [] and summary.labelled == []

    def test_configured_label_used(self):
        client = _client(prs=[5], runs=[FAILED])
        run(_config(label="ci-broken"), client)
        client.add_label.assert_called_once_with(5, "ci-broken")


class TestUpdate:
    def _existing_body(self):
        lint = render_section("lint", [CheckOutcome("style", "http://ci/style")])
        build = render_section("build", [FAILED])
        return render_body([lint, build], SIGNATURE), lint

    def test_update_to_all_clear_keeps_other_sections(self):
        body, lint = self._existing_body()
        client = _client(prs=[8], runs=[PASSED], comments={8: [IssueCommentRef(77, body)]})

        summary = run(_config(), client)

        client.update_comment.assert_called_once()
        number, comment_id, new_body = client.update_comment.call_args.args
        assert (number, comment_id) == (8, 77)
        sections = parse_body(new_body, SIGNATURE)
        assert sections[0] == lint
        assert sections[1].owner == "build"
        assert "No jobs failed :+1:" in sections[1].text
        assert len(sections) == 2
        client.add_label.assert_called_once_with(8, "waiting-response")
        client.create_comment.assert_not_called()
        assert summary.updated == [8]

    def test_appends_section_for_new_workflow(self):
        body = render_body([render_section("lint", [])], SIGNATURE)
        client = _client(prs=[8], runs=[FAILED], comments={8: [IssueCommentRef(77, body)]})

        run(_config(), client)

        new_body = client.update_comment.call_args.args[2]
        assert [s.owner for s in parse_body(new_body, SIGNATURE)] == ["lint", "build"]

    def test_rerun_is_stable(self):
        body = render_body([render_section("build", [FAILED])], SIGNATURE)
        client = _client(prs=[8], runs=[FAILED], comments={8: [IssueCommentRef(77, body)]})

        run(_config(), client)

        assert client.update_comment.call_args.args[2] == body

    def test_only_first_signed_comment_updated(self):
        body = render_body([render_section("build", [])], SIGNATURE)
        comments = {8: [IssueCommentRef(1, "unrelated"), IssueCommentRef(2, body), IssueCommentRef(3, body)]}
        client = _client(prs=[8], runs=[FAILED], comments=comments)

        run(_config(), client)

        client.update_comment.assert_called_once()
        assert client.update_comment.call_args.args[1] == 2

    def test_comment_for_older_commit_not_reused(self):
        stale = render_body([render_section("build", [FAILED])], make_signature("b" * 40))
        client = _client(prs=[8], runs=[FAILED], comments={8: [IssueCommentRef(1, stale)]})

        run(_config(), client)

        client.update_comment.assert_not_called()
        client.create_comment.assert_called_once()


class TestMultiplePullRequests:
    def test_each_pr_reconciled_independently(self):
        body = render_body([render_section("build", [FAILED])], SIGNATURE)
        client = _client(prs=[1, 2, 3], runs=[], comments={2: [IssueCommentRef(20, body)]})

        summary = run(_config(), client)

        assert [c.args[0] for c in client.list_issue_comments.call_args_list] == [1, 2, 3]
        client.create_comment.assert_not_called()
        assert client.update_comment.call_args.args[:2] == (2, 20)
        assert summary.pull_requests == [1, 2, 3]
        assert summary.updated == [2]
        assert summary.labelled == [2]

    def test_remote_failure_aborts_remaining_prs(self):
        client = _client(prs=[1, 2], runs=[FAILED])
        client.add_label.side_effect = [None, GithubException(500, {"message": "boom"}, None)]

        with pytest.raises(GithubException):
            run(_config(), client)

        assert [c.args[0] for c in client.create_comment.call_args_list] == [1, 2]


class TestDryRun:
    def test_reads_but_never_writes(self):
        body = render_body([render_section("build", [])], SIGNATURE)
        client = _client(prs=[1, 2], runs=[FAILED], comments={1: [IssueCommentRef(10, body)]})

        summary = run(_config(dry_run=True), client)

        client.update_comment.assert_not_called()
        client.create_comment.assert_not_called()
        client.add_label.assert_not_called()
        assert summary.updated == [1]
        assert summary.created == [2]
        assert summary.labelled == [1, 2]
