"""Glob matching of ownership rules against the changed files of a pull request."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from wcmatch import glob

from auto_request_review.config import FileRule

logger = logging.getLogger(__name__)

# "*" and "?" stop at "/", only "**" crosses directories. Hidden files need an
# explicit dot in the pattern, as in a shell.
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.CASE | glob.FORCEUNIX


def glob_match(pattern: str, path: str) -> bool:
    """Tell whether a changed file path matches a glob pattern.

    Patterns are anchored at the repository root: ``*.md`` matches
    ``README.md`` but not ``docs/a.md``, and ``docs`` matches only a file
    named ``docs``.
    """
    if not pattern:
        return False
    return glob.globmatch(path, pattern, flags=GLOB_FLAGS)


def matches(rule: FileRule, changed_files: Sequence[str]) -> bool:
    """Tell whether a file rule applies to the changed files.

    By default a rule applies when any of its patterns matches any file. A
    ``match_all`` rule needs every pattern to match at least one file.
    """
    if not rule.patterns or not changed_files:
        return False

    def pattern_hits(pattern: str) -> bool:
        return any(glob_match(pattern, path) for path in changed_files)

    if rule.match_all:
        return all(pattern_hits(pattern) for pattern in rule.patterns)
    return any(pattern_hits(pattern) for pattern in rule.patterns)
