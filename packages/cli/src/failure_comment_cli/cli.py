"""CLI entry point for comment-failure-action.

Commands:
  run   reflect the failed check runs of a check suite on the branch's open PRs
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from github import GithubException
from rich.console import Console
from rich.logging import RichHandler

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("comment-failure-action"),
    prog_name="comment-failure",
)
@click.option(
    "--config",
    "config_path",
    default=".comment-failure.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="COMMENT_FAILURE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Summarise failed CI checks in one shared pull request comment."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command("run")
@click.option("--head-branch", envvar="INPUT_HEAD_BRANCH", default=None, help="Branch the check suite ran on.")
@click.option("--head-commit", envvar="INPUT_HEAD_COMMIT", default=None, help="Commit SHA the check suite ran on.")
@click.option("--workflow", envvar="INPUT_WORKFLOW", default=None, help="Workflow that owns the comment section.")
@click.option(
    "--check-suite-id",
    envvar="INPUT_CHECK_SUITE_ID",
    default=None,
    help="Check suite whose failed runs are reported.",
)
@click.option("--repo", envvar="INPUT_REPO", default=None, help="GitHub repository in owner/name format.")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the comment that would be written without posting to GitHub.",
)
@click.pass_context
def run_cmd(
    ctx,
    head_branch: str | None,
    head_commit: str | None,
    workflow: str | None,
    check_suite_id: str | None,
    repo: str | None,
    dry_run: bool,
):
    """Update the shared failure comment for a completed check suite.

    Unset options fall back to the GitHub Actions environment
    (GITHUB_REPOSITORY, GITHUB_WORKFLOW and the event payload) and then to
    the configuration file.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or INPUT_API_TOKEN, or use gh CLI)
    """
    from failure_comment_core.config import ActionConfig, ConfigError, build_config, read_inputs
    from failure_comment_core.gh.client import GitHubClient
    from failure_comment_core.runner import run
    from failure_comment_cli.auth import resolve_github_token

    config_path = ctx.obj.get("config_path", ".comment-failure.yml") if ctx.obj else ".comment-failure.yml"
    inputs = read_inputs(
        config_path,
        cli_overrides={
            "head_branch": head_branch,
            "head_commit": head_commit,
            "workflow": workflow,
            "check_suite_id": check_suite_id,
            "repository": repo,
            "dry_run": dry_run or None,
        },
    )

    if not inputs["head_branch"]:
        # Default-branch builds: nothing else is parsed, no token, no remote calls.
        run(ActionConfig(), client=None)
        return

    try:
        config = build_config(inputs)
        config.validate()
    except ConfigError as e:
        raise click.UsageError(str(e))

    token = config.github_token or resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )

    try:
        client = GitHubClient.connect(config.repo_full_name, token=token)
        summary = run(config, client)
    except GithubException as e:
        raise click.ClickException(f"GitHub API call failed: {e}")

    if summary.skipped_reason is None:
        console.print(
            f"[green]{len(summary.failed_runs)} failed job(s); "
            f"{len(summary.updated)} comment(s) updated, {len(summary.created)} created.[/green]"
        )
