#!/usr/bin/env python3
"""
Auto request review GitHub Action entrypoint.
- Reads the YAML configuration committed to the repository.
- Requests reviews from the owners of the changed files, the reviewers of
  the author and the author's group members.
- Posts a comment tagging the reviewers and the remaining codeowners.

Inputs (as env):
  INPUT_REPO_TOKEN   - required (INPUT_TOKEN is accepted too)
  INPUT_CONFIG       - optional, path of the configuration file

This script uses GITHUB_REPOSITORY, GITHUB_EVENT_NAME, GITHUB_EVENT_PATH and
GITHUB_REF provided by the runner.
"""
from __future__ import annotations

import enum
import json
import logging
import os
import random
import sys
from typing import Any, Protocol

from github.GithubException import GithubException

from auto_request_review.config import Config, ConfigError
from auto_request_review.github_api import (
    DEFAULT_CONFIG_PATH,
    ConfigNotFound,
    GithubClient,
    RunContext,
)
from auto_request_review.notification import ping_all_reviewers
from auto_request_review.reviewer import (
    PullRequestInfo,
    collect_reviewers,
    fetch_default_reviewers,
    randomly_pick_reviewers,
    reconcile,
    should_request_review,
)
from auto_request_review.reviewers import Individual, OrderedRefs

LOGGING: dict[str, Any] = {
    "handlers": [
        logging.StreamHandler(),
    ],
    "format": "%(asctime)s.%(msecs)03d [%(levelname)s]: (%(name)s.%(funcName)s) %(message)s",
    "level": logging.INFO,
    "datefmt": "%Y-%m-%d %H:%M:%S",
}
logging.basicConfig(**LOGGING)  # type: ignore[arg-type]
logger = logging.getLogger(__name__)

PULL_REQUEST_EVENTS = {"pull_request", "pull_request_target"}


class Outcome(enum.Enum):
    NO_CONFIG = "no_config"
    IGNORED = "ignored"
    NO_REVIEWERS = "no_reviewers"
    ALREADY_SATISFIED = "already_satisfied"
    REQUESTED = "requested"
    NOTHING_TO_REQUEST = "nothing_to_request"


class Client(Protocol):
    org: str | None

    def fetch_config(self) -> Config: ...

    def get_pull_request(self) -> PullRequestInfo: ...

    def fetch_changed_files(self) -> list[str]: ...

    def assign_reviewers(self, reviewers: OrderedRefs) -> None: ...

    def list_existing_reviewers(self) -> OrderedRefs: ...

    def list_comments(self) -> list[str]: ...

    def post_comment(self, body: str) -> None: ...


def get_input(name: str, default: str = "") -> str:
    # Support both dash and underscore variants just in case
    candidates = [
        f"INPUT_{name}",
        f"INPUT_{name.replace('-', '_')}",
        f"INPUT_{name.replace('_', '-')}",
    ]
    for key in candidates:
        val = os.getenv(key)
        if val is not None:
            return val
    return default


def load_event() -> dict[str, Any]:
    path = os.getenv("GITHUB_EVENT_PATH")
    if not path:
        raise RuntimeError("GITHUB_EVENT_PATH is not set")
    with open(path, encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


def run(client: Client, rng: random.Random | None = None) -> Outcome:
    logger.info("Fetching configuration file from the source branch")
    try:
        config = client.fetch_config()
    except ConfigNotFound as e:
        logger.warning(
            f"::warning title=No configuration::{e} was not found; terminating the process"
        )
        return Outcome.NO_CONFIG

    pull_request = client.get_pull_request()
    if not should_request_review(pull_request, config):
        logger.info("Matched the ignoring rules; terminating the process")
        return Outcome.IGNORED

    logger.info("Fetching changed files in the pull request")
    changed_files = client.fetch_changed_files()

    author = pull_request.author
    reviewers = collect_reviewers(config, changed_files, author)
    codeowners = reviewers.copy()

    if not reviewers:
        logger.info("Matched no reviewers")
        reviewers = fetch_default_reviewers(config, excludes=[Individual(author)])
        if not reviewers:
            logger.info("No default reviewers are matched; terminating the process")
            return Outcome.NO_REVIEWERS
        logger.info("Falling back to the default reviewers")

    existing = client.list_existing_reviewers()
    if existing:
        logger.info(f"The following users are already reviewing this code: {existing.names()}")
    state = reconcile(reviewers, codeowners, existing, config.options.number_of_reviewers)

    if state.satisfied:
        logger.info("Already have enough reviewers")
        logger.info("Tagging all codeowners and reviewers in a comment")
        ping_all_reviewers(client, state.codeowners, existing)
        return Outcome.ALREADY_SATISFIED

    logger.info(f"Randomly picking {state.number_of_reviewers or 'all'} reviewers")
    picked = randomly_pick_reviewers(state.reviewers, state.number_of_reviewers, rng)
    if picked:
        logger.info(f"Requesting review to {', '.join(picked.names())}")
        client.assign_reviewers(picked)
    else:
        logger.info("Every candidate is already reviewing; no new review requests")

    logger.info("Tagging all codeowners and reviewers in a comment")
    ping_all_reviewers(client, state.codeowners.subtract(picked), picked)
    return Outcome.REQUESTED if picked else Outcome.NOTHING_TO_REQUEST


def main() -> int:
    token = get_input("REPO_TOKEN") or get_input("TOKEN")
    if not token:
        logger.error(
            "::error title=Missing token::INPUT_REPO_TOKEN (repo-token) is required"
        )
        return 1

    repo_slug = os.getenv("GITHUB_REPOSITORY")
    if not repo_slug:
        logger.error("::error title=Missing context::GITHUB_REPOSITORY is not set")
        return 1

    event_name = os.getenv("GITHUB_EVENT_NAME", "").lower()
    try:
        payload = load_event()
    except (RuntimeError, OSError, ValueError) as e:
        logger.error(f"::error title=Missing context::{e}")
        return 1

    if event_name not in PULL_REQUEST_EVENTS or "pull_request" not in payload:
        logger.info(
            f"Unsupported event: {event_name}. This action handles pull_request events."
        )
        return 0

    context = RunContext(
        token=token,
        repository=repo_slug,
        event_name=event_name,
        event=payload,
        config_path=get_input("CONFIG") or DEFAULT_CONFIG_PATH,
        ref=os.getenv("GITHUB_REF") or None,
    )

    try:
        outcome = run(GithubClient(context))
        logger.info(f"Finished: {outcome.value}")
        return 0

    except ConfigError as e:
        logger.error(f"::error title=Invalid configuration::{e}")
        return 1
    except GithubException as e:
        # Surface a proper annotation
        msg = getattr(e, "data", None) or str(e)
        logger.error(f"::error title=GitHub API error::{msg}")
        return 1
    except Exception as e:
        logger.error(f"::error title=Unhandled error::{e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
