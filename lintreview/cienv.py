"""Build information read from the environment of CI services."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any

_PR_NUM_RE = re.compile(r"[1-9][0-9]*\Z", re.ASCII)

_SLUG_ENVS = (
    "TRAVIS_REPO_SLUG",
    "DRONE_REPO",  # drone<=0.4
    "BITBUCKET_REPO_FULL_NAME",
)
_OWNER_ENVS = (
    "CI_REPO_OWNER",
    "CIRCLE_PROJECT_USERNAME",
    "DRONE_REPO_OWNER",
    "CI_PROJECT_NAMESPACE",
)
_REPO_ENVS = (
    "CI_REPO_NAME",
    "CIRCLE_PROJECT_REPONAME",
    "DRONE_REPO_NAME",
    "CI_PROJECT_NAME",
)
_SHA_ENVS = (
    "CI_COMMIT",
    "TRAVIS_PULL_REQUEST_SHA",
    "TRAVIS_COMMIT",
    "CIRCLE_SHA1",
    "DRONE_COMMIT",
    "CI_COMMIT_SHA",
    "BITBUCKET_COMMIT",
)
_BRANCH_ENVS = (
    "CI_BRANCH",
    "TRAVIS_PULL_REQUEST_BRANCH",
    "CIRCLE_BRANCH",
    "DRONE_COMMIT_BRANCH",
    "BITBUCKET_PR_DESTINATION_BRANCH",  # present only in PR pipelines
    "BITBUCKET_BRANCH",
)
_PR_ENVS = (
    "CI_PULL_REQUEST",
    "TRAVIS_PULL_REQUEST",
    "CIRCLE_PULL_REQUEST",
    "CIRCLE_PR_NUMBER",
    "DRONE_PULL_REQUEST",
    "CI_MERGE_REQUEST_IID",
    "BITBUCKET_PR_ID",
)


class CIEnvError(Exception):
    """Required build information is missing from the environment."""


@dataclass
class BuildInfo:
    """Repository and commit information about the current build."""

    owner: str = ""
    repo: str = ""
    sha: str = ""
    pull_request: int = 0  # merge request for GitLab
    branch: str = ""
    gerrit_change_id: str = ""
    gerrit_revision_id: str = ""


def _env(name: str) -> str:
    return os.environ.get(name, "")


def _first_env(names: tuple[str, ...]) -> str:
    return next((value for value in map(_env, names) if value), "")


def _owner_and_repo_from_slug(names: tuple[str, ...]) -> tuple[str, str]:
    parts = _first_env(names).split("/", 1)
    if len(parts) < 2:
        return "", ""
    return parts[0], parts[1]


def _pull_request_number() -> int:
    for name in _PR_ENVS:
        match = _PR_NUM_RE.search(_env(name))
        if match:
            return int(match.group())
    return 0


def get_build_info() -> tuple[BuildInfo, bool]:
    """Return the build information and whether this is a pull request build."""
    if is_in_github_action():
        event_path = _env("GITHUB_EVENT_PATH")
        if not event_path:
            raise CIEnvError("GITHUB_EVENT_PATH not found")
        return build_info_from_github_event_path(event_path)

    owner, repo = _owner_and_repo_from_slug(_SLUG_ENVS)
    owner = owner or _first_env(_OWNER_ENVS)
    if not owner:
        raise CIEnvError(
            "cannot get repo owner from environment variable. Set CI_REPO_OWNER?"
        )
    repo = repo or _first_env(_REPO_ENVS)
    if not repo:
        raise CIEnvError(
            "cannot get repo name from environment variable. Set CI_REPO_NAME?"
        )
    sha = _first_env(_SHA_ENVS)
    if not sha:
        raise CIEnvError(
            "cannot get commit SHA from environment variable. Set CI_COMMIT?"
        )
    pr = _pull_request_number()
    info = BuildInfo(
        owner=owner, repo=repo, sha=sha, pull_request=pr, branch=_first_env(_BRANCH_ENVS)
    )
    return info, pr != 0


def get_gerrit_build_info() -> BuildInfo:
    """Return the Gerrit change, revision and branch of the current build."""
    change_id = _env("GERRIT_CHANGE_ID")
    if not change_id:
        raise CIEnvError(
            "cannot get change id from environment variable. Set GERRIT_CHANGE_ID ?"
        )
    revision_id = _env("GERRIT_REVISION_ID")
    if not revision_id:
        raise CIEnvError(
            "cannot get revision id from environment variable. Set GERRIT_REVISION_ID ?"
        )
    branch = _env("GERRIT_BRANCH")
    if not branch:
        raise CIEnvError(
            "cannot get branch from environment variable. Set GERRIT_BRANCH ?"
        )
    return BuildInfo(
        gerrit_change_id=change_id, gerrit_revision_id=revision_id, branch=branch
    )


def _obj(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _int(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _repo_owner_id(repo: Any) -> int:
    # The owner object of a repository is matched case-insensitively.
    for key, value in _obj(repo).items():
        if key.lower() == "owner":
            return _int(_obj(value).get("id"))
    return 0


@dataclass
class GitHubPullRequest:
    """The parts of a GitHub pull request payload that are used."""

    number: int = 0
    head_sha: str = ""
    head_ref: str = ""
    head_repo_owner_id: int = 0
    base_repo_owner_id: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> GitHubPullRequest:
        data = _obj(data)
        head = _obj(data.get("head"))
        base = _obj(data.get("base"))
        return cls(
            number=_int(data.get("number")),
            head_sha=_str(head.get("sha")),
            head_ref=_str(head.get("ref")),
            head_repo_owner_id=_repo_owner_id(head.get("repo")),
            base_repo_owner_id=_repo_owner_id(base.get("repo")),
        )


@dataclass
class GitHubEvent:
    """The parts of a GitHub Actions event payload that are used."""

    pull_request: GitHubPullRequest = field(default_factory=GitHubPullRequest)
    repository_owner: str = ""
    repository_name: str = ""
    check_suite_after: str = ""
    check_suite_pull_requests: list[GitHubPullRequest] = field(default_factory=list)
    head_commit_id: str = ""
    action_name: str = ""

    @classmethod
    def from_dict(cls, data: Any, action_name: str = "") -> GitHubEvent:
        data = _obj(data)
        repository = _obj(data.get("repository"))
        check_suite = _obj(data.get("check_suite"))
        prs = check_suite.get("pull_requests")
        return cls(
            pull_request=GitHubPullRequest.from_dict(data.get("pull_request")),
            repository_owner=_str(_obj(repository.get("owner")).get("login")),
            repository_name=_str(repository.get("name")),
            check_suite_after=_str(check_suite.get("after")),
            check_suite_pull_requests=[
                GitHubPullRequest.from_dict(pr) for pr in (prs if isinstance(prs, list) else [])
            ],
            head_commit_id=_str(_obj(data.get("head_commit")).get("id")),
            action_name=action_name,
        )


def load_github_event_from_path(path: str | os.PathLike[str]) -> GitHubEvent:
    """Load a GitHub Actions event payload from a JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if data is not None and not isinstance(data, dict):
        raise CIEnvError(f"GitHub event in {os.fspath(path)} is not a JSON object")
    return GitHubEvent.from_dict(data, _env("GITHUB_EVENT_NAME"))


def load_github_event() -> GitHubEvent:
    """Load the event payload of the running GitHub Actions workflow."""
    event_path = _env("GITHUB_EVENT_PATH")
    if not event_path:
        raise CIEnvError("GITHUB_EVENT_PATH not found")
    return load_github_event_from_path(event_path)


def build_info_from_github_event_path(
    path: str | os.PathLike[str],
) -> tuple[BuildInfo, bool]:
    """Build information from a GitHub Actions event file, and whether it is a PR."""
    event = load_github_event_from_path(path)
    info = BuildInfo(
        owner=event.repository_owner,
        repo=event.repository_name,
        pull_request=event.pull_request.number,
        branch=event.pull_request.head_ref,
        sha=event.pull_request.head_sha,
    )
    # A re-run check_suite event carries its pull requests in the check suite.
    if info.pull_request == 0 and event.check_suite_pull_requests:
        pr = event.check_suite_pull_requests[0]
        info.pull_request = pr.number
        info.branch = pr.head_ref
        info.sha = pr.head_sha
    if not info.sha:
        info.sha = event.head_commit_id
    return info, info.pull_request != 0


def is_in_github_action() -> bool:
    """Whether the process runs in GitHub Actions."""
    return _env("GITHUB_ACTIONS") != ""


def has_read_only_permission_github_token() -> bool:
    """Whether this is a GitHub Actions run for a fork PR with a read-only token."""
    try:
        event = load_github_event()
    except (CIEnvError, OSError, ValueError):
        return False
    pr = event.pull_request
    is_forked_repo = pr.head_repo_owner_id != pr.base_repo_owner_id
    return is_forked_repo and event.action_name != "pull_request_target"


def is_in_bitbucket_pipeline() -> bool:
    """Whether the process runs in Bitbucket Pipelines."""
    return _env("BITBUCKET_PIPELINE_UUID") != ""


def is_in_bitbucket_pipe() -> bool:
    """Whether the process runs in a Bitbucket Pipe."""
    return (
        _env("BITBUCKET_PIPE_STORAGE_DIR") != ""
        or _env("BITBUCKET_PIPE_SHARED_STORAGE_DIR") != ""
    )