"""GitHub side of a run: configuration, pull request data, reviews and comments.

All state lives on a ``GithubClient`` built for one run from an explicit
``RunContext``; nothing is cached at module level.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from github import Github
from github.GithubException import GithubException

from auto_request_review.config import Config, ConfigError, load_config
from auto_request_review.reviewer import PullRequestInfo
from auto_request_review.reviewers import Individual, OrderedRefs, ReviewerRef, Team, split_teams

logger = logging.getLogger(__name__)

PER_PAGE = 100
DEFAULT_CONFIG_PATH = ".github/auto_request_review.yml"


class ConfigNotFound(Exception):
    """The configuration file does not exist on the checked ref."""


@dataclass(frozen=True)
class RunContext:
    token: str
    repository: str
    event_name: str = "pull_request"
    event: dict[str, Any] = field(default_factory=dict)
    config_path: str = DEFAULT_CONFIG_PATH
    ref: str | None = None

    @property
    def org(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def pull_request_payload(self) -> dict[str, Any]:
        return self.event.get("pull_request") or {}

    @property
    def pull_number(self) -> int:
        return int(self.pull_request_payload["number"])

    @property
    def author(self) -> str:
        return self.pull_request_payload.get("user", {}).get("login", "")


class GithubClient:
    def __init__(self, context: RunContext) -> None:
        self.context = context

    @property
    def org(self) -> str:
        return self.context.org

    @cached_property
    def github(self) -> Github:
        return Github(self.context.token, per_page=PER_PAGE)

    @cached_property
    def repo(self) -> Any:
        return self.github.get_repo(self.context.repository)

    @cached_property
    def pull(self) -> Any:
        return self.repo.get_pull(self.context.pull_number)

    def fetch_config(self) -> Config:
        path = self.context.config_path
        kwargs = {"ref": self.context.ref} if self.context.ref else {}
        try:
            content = self.repo.get_contents(path, **kwargs)
        except GithubException as e:
            if e.status == 404:
                raise ConfigNotFound(path) from e
            raise
        if isinstance(content, list):
            raise ConfigError(f"{path} is a directory, not a configuration file")
        return load_config(content.decoded_content.decode("utf-8"))

    def get_pull_request(self) -> PullRequestInfo:
        payload = self.context.pull_request_payload
        return PullRequestInfo(
            number=self.context.pull_number,
            author=self.context.author,
            title=payload.get("title") or "",
            is_draft=bool(payload.get("draft", False)),
            labels=tuple(label["name"] for label in payload.get("labels") or []),
        )

    def fetch_changed_files(self) -> list[str]:
        files = self.pull.get_files()
        changed_files: list[str] = []
        page = 0
        # Keep going while pages come back full, a PR with exactly 100 files needs a second request
        while True:
            batch = files.get_page(page)
            changed_files.extend(f.filename for f in batch)
            if len(batch) < PER_PAGE:
                break
            page += 1
        logger.info(f"PR #{self.context.pull_number} changes {len(changed_files)} files")
        return changed_files

    def assign_reviewers(self, reviewers: OrderedRefs) -> None:
        individuals, teams = split_teams(reviewers)
        logger.info(f"Requesting individual reviewers: {individuals}, team reviewers: {teams}")
        self.pull.create_review_request(reviewers=individuals, team_reviewers=teams)

    def list_existing_reviewers(self) -> OrderedRefs:
        """Requested reviewers who have not answered yet plus everyone who reviewed."""
        author = self.context.author
        users, teams = self.pull.get_review_requests()
        pending: list[ReviewerRef] = [Individual(user.login) for user in users]
        pending += [Team(team.slug) for team in teams]
        # Reviews include comments, approvals and change requests
        reviewed = [
            Individual(review.user.login)
            for review in self.pull.get_reviews()
            if review.user is not None and review.user.login != author
        ]
        return OrderedRefs(pending).union(reviewed)

    def list_comments(self) -> list[str]:
        return [comment.body for comment in self.pull.get_issue_comments()]

    def post_comment(self, body: str) -> None:
        self.pull.create_issue_comment(body)
