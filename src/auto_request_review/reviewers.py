"""Reviewer references and ordered reviewer sets.

A reviewer in the configuration is either an individual login or a team
written as ``team:<slug>``. GitHub takes the two kinds through separate
fields of the review request, so they are kept as distinct types here.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Union

TEAM_PREFIX = "team:"


@dataclass(frozen=True)
class Individual:
    name: str

    def __str__(self) -> str:
        return self.name

    def mention(self, org: str | None = None) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class Team:
    name: str

    def __str__(self) -> str:
        return f"{TEAM_PREFIX}{self.name}"

    def mention(self, org: str | None = None) -> str:
        # GitHub only links team mentions written as @org/slug
        if org:
            return f"@{org}/{self.name}"
        return f"@{self.name}"


ReviewerRef = Union[Individual, Team]


def parse_reviewer(raw: str) -> ReviewerRef:
    token = str(raw).strip()
    if token.startswith(TEAM_PREFIX):
        return Team(token[len(TEAM_PREFIX) :].strip())
    return Individual(token.lstrip("@"))


def split_teams(refs: Iterable[ReviewerRef]) -> tuple[list[str], list[str]]:
    """Partition refs into (individual logins, team slugs), keeping order."""
    individuals: list[str] = []
    teams: list[str] = []
    for ref in refs:
        if isinstance(ref, Team):
            teams.append(ref.name)
        else:
            individuals.append(ref.name)
    return individuals, teams


class OrderedRefs:
    """Set of reviewer refs that remembers insertion order."""

    def __init__(self, refs: Iterable[ReviewerRef] = ()) -> None:
        self._items: dict[ReviewerRef, None] = dict.fromkeys(refs)

    def __iter__(self) -> Iterator[ReviewerRef]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, ref: object) -> bool:
        return ref in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderedRefs):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"OrderedRefs({[str(r) for r in self]})"

    def add(self, ref: ReviewerRef) -> None:
        self._items.setdefault(ref, None)

    def discard(self, ref: ReviewerRef) -> None:
        self._items.pop(ref, None)

    def clear(self) -> None:
        self._items.clear()

    def union(self, *others: Iterable[ReviewerRef]) -> OrderedRefs:
        result = OrderedRefs(self)
        for other in others:
            for ref in other:
                result.add(ref)
        return result

    def subtract(self, other: Iterable[ReviewerRef]) -> OrderedRefs:
        removed = set(other)
        return OrderedRefs(ref for ref in self if ref not in removed)

    def copy(self) -> OrderedRefs:
        return OrderedRefs(self)

    def names(self) -> list[str]:
        return [str(ref) for ref in self]
