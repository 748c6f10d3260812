"""Shared fakes for the PyGithub surface used by the action."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from github.GithubException import GithubException

from auto_request_review import github_api

# --- Global state for functional fakes --------------------------------------

FAKE_STATE: dict[str, Any] = {}


def reset_fake_state() -> None:
    """Reset all fake state between tests."""
    FAKE_STATE.clear()
    FAKE_STATE.update(
        {
            "contents": {},
            "prs": {},
            "tokens": [],
            "per_page": None,
            "content_refs": [],
        }
    )


# --- Pure functions for PR management ----------------------------------------


def create_pr(number: int = 2, files: list[str] | None = None) -> dict[str, Any]:
    """Create a PR dict."""
    pr: dict[str, Any] = {
        "number": number,
        "files": list(files or []),
        "pages_fetched": [],
        "requested_users": [],
        "requested_teams": [],
        "review_requests": [],
        "reviews": [],
        "comments": [],
    }
    FAKE_STATE["prs"][number] = pr
    return pr


def add_review(pr: dict[str, Any], login: str, state: str = "APPROVED") -> None:
    pr["reviews"].append({"login": login, "state": state})


def set_config(content: str, path: str = github_api.DEFAULT_CONFIG_PATH) -> None:
    FAKE_STATE["contents"][path] = content


# --- Wrapper classes (minimal OOP interface) ---------------------------------


class FakePaginatedList:
    """Serves a list through PaginatedList.get_page, remembering requested pages."""

    def __init__(self, items: list[Any], per_page: int, pages_fetched: list[int]) -> None:
        self._items = items
        self._per_page = per_page
        self._pages_fetched = pages_fetched

    def get_page(self, page: int) -> list[Any]:
        self._pages_fetched.append(page)
        start = page * self._per_page
        return self._items[start : start + self._per_page]


class PRWrapper:
    """Thin wrapper around PR dict for PyGithub API compatibility."""

    def __init__(self, pr_dict: dict[str, Any]) -> None:
        self._dict = pr_dict

    @property
    def number(self) -> int:
        return self._dict["number"]  # type: ignore[no-any-return]

    def get_files(self) -> FakePaginatedList:
        files = [SimpleNamespace(filename=name) for name in self._dict["files"]]
        return FakePaginatedList(files, FAKE_STATE["per_page"] or 30, self._dict["pages_fetched"])

    def create_review_request(
        self,
        reviewers: list[str] | None = None,
        team_reviewers: list[str] | None = None,
    ) -> None:
        if FAKE_STATE.get("fail_review_request"):
            raise GithubException(422, {"message": "Reviews may only be requested from collaborators"}, {})
        self._dict["review_requests"].append((list(reviewers or []), list(team_reviewers or [])))
        self._dict["requested_users"].extend(reviewers or [])
        self._dict["requested_teams"].extend(team_reviewers or [])

    def get_review_requests(self) -> tuple[list[Any], list[Any]]:
        users = [SimpleNamespace(login=login) for login in self._dict["requested_users"]]
        teams = [SimpleNamespace(slug=slug) for slug in self._dict["requested_teams"]]
        return users, teams

    def get_reviews(self) -> list[Any]:
        return [
            SimpleNamespace(user=SimpleNamespace(login=r["login"]), state=r["state"])
            for r in self._dict["reviews"]
        ]

    def get_issue_comments(self) -> list[Any]:
        return [SimpleNamespace(body=body) for body in self._dict["comments"]]

    def create_issue_comment(self, body: str) -> None:
        self._dict["comments"].append(body)


class RepoWrapper:
    """Thin wrapper around the fake repository state."""

    def get_contents(self, path: str, ref: str | None = None) -> Any:
        FAKE_STATE["content_refs"].append(ref)
        if path not in FAKE_STATE["contents"]:
            raise GithubException(404, {"message": "Not Found"}, {})
        return SimpleNamespace(decoded_content=FAKE_STATE["contents"][path].encode("utf-8"))

    def get_pull(self, number: int) -> PRWrapper:
        return PRWrapper(FAKE_STATE["prs"][number])


class FakeGithub:
    """Fake Github client (minimal state holder)."""

    def __init__(self, token: str, per_page: int = 30) -> None:
        FAKE_STATE["tokens"].append(token)
        FAKE_STATE["per_page"] = per_page

    def get_repo(self, slug: str) -> RepoWrapper:
        return RepoWrapper()


# --- Fixtures ----------------------------------------------------------------


@pytest.fixture(autouse=True)
def fake_github(monkeypatch: Any) -> dict[str, Any]:
    """Route the action's GitHub client to the in-memory fakes."""
    reset_fake_state()
    monkeypatch.setattr(github_api, "Github", FakeGithub, raising=True)
    return FAKE_STATE


@pytest.fixture
def event_payload() -> Callable[..., dict[str, Any]]:
    """Build a pull_request event payload."""

    def build(
        number: int = 2,
        author: str = "author",
        title: str = "Add feature",
        draft: bool = False,
        labels: list[str] | None = None,
    ) -> dict[str, Any]:
        return {
            "pull_request": {
                "number": number,
                "title": title,
                "draft": draft,
                "user": {"login": author},
                "labels": [{"name": name} for name in labels or []],
            }
        }

    return build


@pytest.fixture
def event_file(tmp_path: Path, monkeypatch: Any) -> Callable[[dict[str, Any]], Path]:
    """Create event file fixture."""

    def write_event(payload: dict[str, Any]) -> Path:
        p = tmp_path / "event.json"
        p.write_text(json.dumps(payload), encoding="utf-8")
        monkeypatch.setenv("GITHUB_EVENT_PATH", str(p))
        return p

    return write_event
