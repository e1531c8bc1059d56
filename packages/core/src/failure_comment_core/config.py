import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from failure_comment_core.sections import make_signature

DEFAULT_CONFIG: dict = {
    "head_branch": None,
    "head_commit": None,
    "workflow": None,
    "check_suite_id": None,
    "owner": None,
    "repo": None,
    "label": "waiting-response",
    "dry_run": False,
}

_REQUIRED = ("workflow", "head_commit", "check_suite_id", "owner", "repo")


class ConfigError(ValueError):
    """Raised when the invocation is missing inputs the runner cannot do without."""


@dataclass(frozen=True)
class ActionConfig:
    """Inputs for one invocation. Built once, then only read."""

    head_branch: Optional[str] = None
    head_commit: Optional[str] = None
    workflow: Optional[str] = None
    check_suite_id: Optional[int] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    label: str = "waiting-response"
    dry_run: bool = False
    github_token: Optional[str] = None

    @property
    def signature(self) -> str:
        return make_signature(self.head_commit or "")

    @property
    def head_ref(self) -> str:
        return f"{self.owner}:{self.head_branch}"

    @property
    def repo_full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def validate(self) -> None:
        missing = [name for name in _REQUIRED if getattr(self, name) in (None, "")]
        if missing:
            raise ConfigError(f"Missing required input(s): {', '.join(missing)}")


def _read_event_payload(event_path: Optional[str]) -> dict:
    if not event_path:
        return {}
    path = Path(event_path)
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return json.load(f) or {}


def actions_environment(environ=None) -> dict:
    """
    Read the inputs the GitHub Actions runtime provides for the current run.

    Handles ``check_suite`` and ``workflow_run`` event payloads. For
    ``workflow_run`` the name of the completed run is the workflow identity,
    not the workflow that is running this action.
    """
    env = os.environ if environ is None else environ
    found: dict = {}

    repository = env.get("GITHUB_REPOSITORY", "")
    if "/" in repository:
        found["owner"], found["repo"] = repository.split("/", 1)
    if env.get("GITHUB_WORKFLOW"):
        found["workflow"] = env["GITHUB_WORKFLOW"]

    payload = _read_event_payload(env.get("GITHUB_EVENT_PATH"))
    if "check_suite" in payload:
        suite = payload["check_suite"] or {}
        found["head_branch"] = suite.get("head_branch")
        found["head_commit"] = suite.get("head_sha")
        found["check_suite_id"] = suite.get("id")
    elif "workflow_run" in payload:
        run = payload["workflow_run"] or {}
        found["head_branch"] = run.get("head_branch")
        found["head_commit"] = run.get("head_sha")
        found["check_suite_id"] = run.get("check_suite_id")
        if run.get("name"):
            found["workflow"] = run["name"]

    # Keys the payload left unset must not hide values from the config file.
    return {key: value for key, value in found.items() if value is not None}


def _coerce_suite_id(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"check_suite_id must be an integer, got {value!r}")


def _split_repository(repository: str) -> tuple[str, str]:
    owner, _, name = repository.partition("/")
    if not owner or not name:
        raise ConfigError(f"repository must be in owner/name format, got {repository!r}")
    return owner, name


def read_inputs(config_path: str = ".comment-failure.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Merge the raw inputs (in order of precedence):
      1. Built-in defaults
      2. .comment-failure.yml in the current directory
      3. The GitHub Actions environment (GITHUB_* variables and event payload)
      4. CLI argument overrides

    Nothing is validated or coerced here, so a caller can apply the branch
    gate before malformed inputs turn into errors. A ``repository`` override
    in owner/name form is kept raw and split by build_config.
    """
    config = {**DEFAULT_CONFIG, "repository": None}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update({k: v for k, v in file_config.items() if k in DEFAULT_CONFIG})

    config.update(actions_environment())

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config


def build_config(inputs: dict) -> ActionConfig:
    """Turn merged inputs into an ActionConfig; raises ConfigError on malformed values."""
    owner, repo = inputs["owner"], inputs["repo"]
    if inputs.get("repository"):
        owner, repo = _split_repository(inputs["repository"])

    return ActionConfig(
        head_branch=inputs["head_branch"] or None,
        head_commit=inputs["head_commit"],
        workflow=inputs["workflow"],
        check_suite_id=_coerce_suite_id(inputs["check_suite_id"]),
        owner=owner,
        repo=repo,
        label=inputs["label"],
        dry_run=bool(inputs["dry_run"]),
        # Resolve credentials from environment variables
        github_token=os.environ.get("GITHUB_TOKEN"),
    )


def load_config(config_path: str = ".comment-failure.yml", cli_overrides: Optional[dict] = None) -> ActionConfig:
    return build_config(read_inputs(config_path, cli_overrides))
