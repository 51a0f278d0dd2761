"""Rules package."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from diff_review.config import PatternsConfig
from diff_review.rules import business_data, comment_markers, environment
from diff_review.rules.base import CommentMarkerRule, EnvironmentRule, SensitiveDataRule


@dataclass(frozen=True, slots=True)
class PatternTables:
    """Immutable pattern configuration handed to the scanner."""

    comment_markers: tuple[CommentMarkerRule, ...] = ()
    environment_checks: tuple[EnvironmentRule, ...] = ()
    business_data: Mapping[str, tuple[SensitiveDataRule, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True, slots=True)
class PatternInfo:
    """Pattern metadata for listing."""

    family: str
    label: str
    regex: str


def default_pattern_tables() -> PatternTables:
    """Return the built-in pattern tables."""
    return PatternTables(
        comment_markers=comment_markers.DEFAULT_RULES,
        environment_checks=environment.DEFAULT_RULES,
        business_data=MappingProxyType(dict(business_data.DEFAULT_CATEGORIES)),
    )


def build_pattern_tables(config: PatternsConfig | None = None) -> PatternTables:
    """Build pattern tables from defaults plus configured additions.

    Raises ``ValueError`` when a configured regex does not compile or has no
    capture group where one is required.
    """
    if config is None:
        return default_pattern_tables()

    base = default_pattern_tables() if config.use_defaults else PatternTables()

    markers = list(base.comment_markers)
    for item in config.comment_markers:
        pattern = _compile(item.regex, item.ignore_case, "patterns.comment_markers")
        if pattern.groups < 1:
            raise ValueError(
                f"patterns.comment_markers regex for {item.type!r} needs a capture group"
            )
        markers.append(CommentMarkerRule(pattern=pattern, marker=item.type))

    checks = list(base.environment_checks)
    for item in config.environment_checks:
        checks.append(
            EnvironmentRule(
                pattern=_compile(item.regex, item.ignore_case, "patterns.environment_checks"),
                message=item.message,
            )
        )

    categories: dict[str, tuple[SensitiveDataRule, ...]] = dict(base.business_data)
    for category, regexes in config.business_data.items():
        added = tuple(
            SensitiveDataRule(
                pattern=_compile(regex, config.ignore_case, f"patterns.business_data.{category}")
            )
            for regex in regexes
        )
        categories[category] = categories.get(category, ()) + added

    return PatternTables(
        comment_markers=tuple(markers),
        environment_checks=tuple(checks),
        business_data=MappingProxyType(categories),
    )


def list_pattern_info(tables: PatternTables) -> list[PatternInfo]:
    """Return a flat description of every active pattern."""
    info = [
        PatternInfo(family="comment_markers", label=rule.marker, regex=rule.pattern.pattern)
        for rule in tables.comment_markers
    ]
    info.extend(
        PatternInfo(family="environment_checks", label=rule.message, regex=rule.pattern.pattern)
        for rule in tables.environment_checks
    )
    for category, rules in tables.business_data.items():
        info.extend(
            PatternInfo(family="business_data", label=category, regex=rule.pattern.pattern)
            for rule in rules
        )
    return info


def _compile(regex: str, ignore_case: bool, field_name: str) -> re.Pattern[str]:
    try:
        return re.compile(regex, re.IGNORECASE if ignore_case else 0)
    except re.error as exc:
        raise ValueError(f"{field_name}: invalid regex {regex!r}: {exc}") from exc
