"""Token lookup for the GitHub API client.

As a GitHub Action the token arrives either as GITHUB_TOKEN or as the
``api_token`` input (exposed by the runner as INPUT_API_TOKEN). Outside
Actions, a logged-in GitHub CLI session is reused.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_TOKEN_ENV_VARS = ("GITHUB_TOKEN", "INPUT_API_TOKEN")


def _token_from_gh_cli() -> str | None:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("gh CLI unavailable; no token from a CLI session.")
        return None

    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token() -> str | None:
    """Return the first token found in the environment, else the gh CLI's, else None.

    The CLI turns None into a UsageError.
    """
    for name in _TOKEN_ENV_VARS:
        token = os.environ.get(name)
        if token:
            logger.debug("Using GitHub token from %s.", name)
            return token

    token = _token_from_gh_cli()
    if token:
        logger.debug("Using GitHub token from the gh CLI session.")
    return token
