"""Reviewer selection: rule matching, aggregation, reconciliation and sampling.

Everything here is pure computation over the configuration and data already
fetched from GitHub, so it can be tested without any API fakes.
"""
from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from auto_request_review.config import Config
from auto_request_review.matcher import matches
from auto_request_review.reviewers import Individual, OrderedRefs, ReviewerRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PullRequestInfo:
    number: int
    author: str
    title: str
    is_draft: bool = False
    labels: tuple[str, ...] = ()


@dataclass
class Reconciliation:
    reviewers: OrderedRefs
    codeowners: OrderedRefs
    number_of_reviewers: int | None

    @property
    def satisfied(self) -> bool:
        return self.number_of_reviewers is not None and self.number_of_reviewers <= 0


def should_request_review(pull_request: PullRequestInfo, config: Config) -> bool:
    options = config.options
    if options.ignore_draft and pull_request.is_draft:
        logger.info(f"PR #{pull_request.number} is a draft")
        return False
    for keyword in options.ignored_keywords:
        if keyword and keyword in pull_request.title:
            logger.info(f"Title contains the ignored keyword {keyword!r}")
            return False
    for label in options.ignored_labels:
        if label in pull_request.labels:
            logger.info(f"PR carries the ignored label {label!r}")
            return False
    return True


def identify_reviewers_by_changed_files(
    config: Config,
    changed_files: Sequence[str],
    excludes: Iterable[ReviewerRef] = (),
) -> OrderedRefs:
    if not config.files:
        logger.info("No file rules configured; returning no reviewers for changed files")
        return OrderedRefs()

    matched = OrderedRefs()
    for rule in config.files:
        if not matches(rule, changed_files):
            continue
        logger.info(f"Rule {list(rule.patterns)} matched: {list(rule.reviewers)}")
        if config.options.last_files_match_only:
            matched.clear()
        matched = matched.union(config.expand_groups(rule.reviewers))

    return matched.subtract(excludes)


def identify_reviewers_by_author(config: Config, author: str) -> OrderedRefs:
    if not config.per_author:
        logger.info("No per-author rules configured; returning no reviewers for the author")
        return OrderedRefs()

    author_ref = Individual(author)
    matched = OrderedRefs()
    # Keys may name a group, so more than one key can match the same author
    for key, reviewers in config.per_author.items():
        if key == author or author_ref in config.expand_groups([key]):
            matched = matched.union(config.expand_groups(reviewers))

    matched.discard(author_ref)
    return matched


def fetch_other_group_members(config: Config, author: str) -> OrderedRefs:
    author_ref = Individual(author)
    members = OrderedRefs()
    for group in config.groups.values():
        if not config.group_assignment_enabled(group):
            continue
        group_refs = config.expand_groups(group.members)
        if author_ref in group_refs:
            logger.info(f"{author} belongs to group {group.name!r}")
            members = members.union(group_refs)

    members.discard(author_ref)
    return members


def fetch_default_reviewers(
    config: Config, excludes: Iterable[ReviewerRef] = ()
) -> OrderedRefs:
    return config.expand_groups(config.defaults).subtract(excludes)


def collect_reviewers(
    config: Config, changed_files: Sequence[str], author: str
) -> OrderedRefs:
    """Union of file-based, author-based and group-based reviewers."""
    logger.info("Identifying reviewers based on the changed files")
    by_files = identify_reviewers_by_changed_files(
        config, changed_files, excludes=[Individual(author)]
    )
    logger.info("Identifying reviewers based on the author")
    by_author = identify_reviewers_by_author(config, author)
    logger.info("Adding other group members if group assignment is enabled")
    by_group = fetch_other_group_members(config, author)
    return by_files.union(by_author, by_group)


def reconcile(
    reviewers: OrderedRefs,
    codeowners: OrderedRefs,
    existing: OrderedRefs,
    number_of_reviewers: int | None,
) -> Reconciliation:
    """Drop reviewers already engaged on the PR and shrink the quota."""
    remaining = None
    if number_of_reviewers is not None:
        remaining = number_of_reviewers - len(existing)
    return Reconciliation(
        reviewers=reviewers.subtract(existing),
        codeowners=codeowners.subtract(existing),
        number_of_reviewers=remaining,
    )


def randomly_pick_reviewers(
    reviewers: OrderedRefs,
    number_of_reviewers: int | None,
    rng: random.Random | None = None,
) -> OrderedRefs:
    if number_of_reviewers is None or number_of_reviewers >= len(reviewers):
        return reviewers.copy()
    rng = rng or random.Random()
    return OrderedRefs(rng.sample(list(reviewers), max(number_of_reviewers, 0)))
