"""Comment tagging the requested reviewers and the remaining codeowners."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from auto_request_review.reviewers import ReviewerRef, Team

logger = logging.getLogger(__name__)

HEADER = (
    "Attention: Files that you are the codeowner for have been modified in this PR.\n\n"
    "Reviewers are required to approve this review. Additional codeowner reviews are optional."
)


class CommentClient(Protocol):
    org: str | None

    def list_comments(self) -> list[str]: ...

    def post_comment(self, body: str) -> None: ...


def tagged_users(refs: Iterable[ReviewerRef], org: str | None = None) -> list[str]:
    """Mentions for refs, individuals first and teams after."""
    refs = list(refs)
    individuals = [ref for ref in refs if not isinstance(ref, Team)]
    teams = [ref for ref in refs if isinstance(ref, Team)]
    return [ref.mention(org) for ref in individuals + teams]


def compose_comment(
    codeowners: Iterable[ReviewerRef],
    reviewers: Iterable[ReviewerRef],
    org: str | None = None,
) -> str | None:
    tagged_reviewers = tagged_users(reviewers, org)
    tagged_codeowners = tagged_users(codeowners, org)
    if not tagged_reviewers and not tagged_codeowners:
        return None

    body = HEADER
    if tagged_reviewers:
        body += f"\n\nReviewers: {', '.join(tagged_reviewers)}"
    if tagged_codeowners:
        body += f"\n\nAdditional Codeowners: {', '.join(tagged_codeowners)}"
    return body


def ping_all_reviewers(
    client: CommentClient,
    codeowners: Iterable[ReviewerRef],
    reviewers: Iterable[ReviewerRef],
) -> bool:
    """Post the tagging comment unless an identical one exists.

    Returns True when a comment was posted.
    """
    body = compose_comment(codeowners, reviewers, client.org)
    if body is None:
        logger.info("No reviewers or codeowners to ping")
        return False

    if body in client.list_comments():
        logger.info("Reviewers were already pinged, not sending again")
        return False

    client.post_comment(body)
    logger.info("Posted a comment tagging reviewers and codeowners")
    return True
