"""Typed view over the repository's auto request review YAML file."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import yaml

from auto_request_review.reviewers import OrderedRefs, parse_reviewer

logger = logging.getLogger(__name__)

DEFAULT_IGNORED_KEYWORDS = ("DO NOT REVIEW",)


class ConfigError(ValueError):
    """The configuration file is not valid YAML or has the wrong shape."""


@dataclass(frozen=True)
class FileRule:
    patterns: tuple[str, ...]
    reviewers: tuple[str, ...]
    match_all: bool = False


@dataclass(frozen=True)
class Group:
    name: str
    members: tuple[str, ...]
    # None inherits options.enable_group_assignment
    group_assignment: bool | None = None


@dataclass(frozen=True)
class Options:
    ignore_draft: bool = True
    ignored_keywords: tuple[str, ...] = DEFAULT_IGNORED_KEYWORDS
    ignored_labels: tuple[str, ...] = ()
    enable_group_assignment: bool = False
    number_of_reviewers: int | None = None
    last_files_match_only: bool = False


@dataclass(frozen=True)
class Config:
    files: tuple[FileRule, ...] = ()
    groups: dict[str, Group] = field(default_factory=dict)
    per_author: dict[str, tuple[str, ...]] = field(default_factory=dict)
    defaults: tuple[str, ...] = ()
    options: Options = field(default_factory=Options)

    def expand_groups(self, names: list[str] | tuple[str, ...]) -> OrderedRefs:
        """Replace group names by their members, one level deep."""
        refs = OrderedRefs()
        for name in names:
            group = self.groups.get(name)
            members = group.members if group else (name,)
            for member in members:
                refs.add(parse_reviewer(member))
        return refs

    def group_assignment_enabled(self, group: Group) -> bool:
        if group.group_assignment is None:
            return self.options.enable_group_assignment
        return group.group_assignment


def _string_list(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise ConfigError(f"{where} must be a list of strings")
    return tuple(str(item) for item in value if item is not None)


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{where} must be a mapping")
    return value


def _bool(value: Any, where: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"{where} must be true or false")
    return value


def _parse_files(raw: Any) -> list[FileRule]:
    rules = []
    for pattern, value in _mapping(raw, "files").items():
        where = f"files[{pattern!r}]"
        if isinstance(value, dict):
            rules.append(
                FileRule(
                    patterns=(str(pattern),),
                    reviewers=_string_list(value.get("reviewers"), f"{where}.reviewers"),
                    match_all=_bool(value.get("match_all"), f"{where}.match_all", False),
                )
            )
        else:
            rules.append(FileRule((str(pattern),), _string_list(value, where)))
    return rules


def _parse_rules(raw: Any) -> list[FileRule]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("rules must be a list")
    rules = []
    for index, entry in enumerate(raw):
        where = f"rules[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{where} must be a mapping")
        if "paths" not in entry:
            raise ConfigError(f"{where} needs a 'paths' key")
        rules.append(
            FileRule(
                patterns=_string_list(entry["paths"], f"{where}.paths"),
                reviewers=_string_list(entry.get("reviewers"), f"{where}.reviewers"),
                match_all=_bool(entry.get("match_all"), f"{where}.match_all", False),
            )
        )
    return rules


def _parse_groups(raw: Any) -> dict[str, Group]:
    groups = {}
    for name, value in _mapping(raw, "reviewers.groups").items():
        where = f"reviewers.groups[{name!r}]"
        if isinstance(value, dict):
            flag = value.get("group_assignment")
            groups[str(name)] = Group(
                name=str(name),
                members=_string_list(value.get("members"), f"{where}.members"),
                group_assignment=None if flag is None else _bool(flag, f"{where}.group_assignment", False),
            )
        else:
            groups[str(name)] = Group(str(name), _string_list(value, where))
    return groups


def _parse_options(raw: Any) -> Options:
    options = _mapping(raw, "options")
    number = options.get("number_of_reviewers")
    if number is not None and (isinstance(number, bool) or not isinstance(number, int) or number < 0):
        raise ConfigError("options.number_of_reviewers must be a non-negative integer")
    keywords = options.get("ignored_keywords")
    return Options(
        ignore_draft=_bool(options.get("ignore_draft"), "options.ignore_draft", True),
        ignored_keywords=DEFAULT_IGNORED_KEYWORDS
        if keywords is None
        else _string_list(keywords, "options.ignored_keywords"),
        ignored_labels=_string_list(options.get("ignored_labels"), "options.ignored_labels"),
        enable_group_assignment=_bool(
            options.get("enable_group_assignment"), "options.enable_group_assignment", False
        ),
        number_of_reviewers=number,
        last_files_match_only=_bool(
            options.get("last_files_match_only"), "options.last_files_match_only", False
        ),
    )


def parse_config(document: Any) -> Config:
    """Build a Config from an already parsed YAML document."""
    document = _mapping(document, "configuration")
    reviewers = _mapping(document.get("reviewers"), "reviewers")
    per_author = {
        str(author): _string_list(value, f"reviewers.per_author[{author!r}]")
        for author, value in _mapping(reviewers.get("per_author"), "reviewers.per_author").items()
    }
    config = Config(
        files=tuple(_parse_files(document.get("files")) + _parse_rules(document.get("rules"))),
        groups=_parse_groups(reviewers.get("groups")),
        per_author=per_author,
        defaults=_string_list(reviewers.get("defaults"), "reviewers.defaults"),
        options=_parse_options(document.get("options")),
    )
    logger.debug(f"Loaded {len(config.files)} file rules and {len(config.groups)} groups")
    return config


def load_config(text: str) -> Config:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse configuration: {e}") from e
    return parse_config(document)
