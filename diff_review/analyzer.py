"""Analysis orchestration: ignore filtering, scanning and de-duplication."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from diff_review.diff_parser import filter_ignored_files
from diff_review.ignore import IgnoreRule
from diff_review.rules import PatternTables, default_pattern_tables
from diff_review.rules.base import CommentFinding, EnvironmentFinding, SensitiveDataFinding
from diff_review.scanner import scan_diff

logger = logging.getLogger(__name__)


class _Keyed(Protocol):
    @property
    def key(self) -> Hashable: ...


FindingT = TypeVar("FindingT", bound=_Keyed)


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Unique findings for one run plus the diff they came from."""

    comment_matches: tuple[CommentFinding, ...] = ()
    env_issues: tuple[EnvironmentFinding, ...] = ()
    business_data_suspects: tuple[SensitiveDataFinding, ...] = ()
    filtered_diff: str = ""
    ignored_files: tuple[str, ...] = ()
    analyzed_files: tuple[str, ...] = ()

    @property
    def total_findings(self) -> int:
        return len(self.comment_matches) + len(self.env_issues) + len(self.business_data_suspects)

    @property
    def is_empty(self) -> bool:
        return self.total_findings == 0


def dedup(findings: Iterable[FindingT]) -> list[FindingT]:
    """Keep the first finding for each identity key, preserving order."""
    seen: set[Hashable] = set()
    unique: list[FindingT] = []
    for finding in findings:
        key = finding.key
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)
    return unique


def analyze_diff(
    diff_text: str,
    *,
    dialect: str = "git",
    static_rules: Sequence[IgnoreRule] = (),
    file_rules: Sequence[str] = (),
    tables: PatternTables | None = None,
) -> AnalysisResult:
    """Run the full analysis pipeline over raw diff text."""
    if not diff_text or not diff_text.strip():
        logger.warning("No changes found in diff")
        return AnalysisResult(filtered_diff=diff_text.strip() if diff_text else "")

    filtered = filter_ignored_files(diff_text, static_rules, file_rules, dialect)
    if not filtered.diff_text.strip():
        logger.warning("No changes left after ignore filtering")
        return AnalysisResult(
            filtered_diff="",
            ignored_files=filtered.ignored_files,
            analyzed_files=filtered.analyzed_files,
        )

    raw = scan_diff(filtered.diff_text, tables if tables is not None else default_pattern_tables())
    result = AnalysisResult(
        comment_matches=tuple(dedup(raw.comment_matches)),
        env_issues=tuple(dedup(raw.env_issues)),
        business_data_suspects=tuple(dedup(raw.business_data_suspects)),
        filtered_diff=filtered.diff_text,
        ignored_files=filtered.ignored_files,
        analyzed_files=filtered.analyzed_files,
    )
    logger.info(
        "Found %d comment marker(s), %d environment issue(s), %d sensitive value(s)",
        len(result.comment_matches),
        len(result.env_issues),
        len(result.business_data_suspects),
    )
    return result
