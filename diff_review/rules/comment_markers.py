"""Comment marker rules (TODO, FIXME, ...)."""

from __future__ import annotations

import re

from diff_review.rules.base import (
    DEFAULT_COMMENT_TEXT,
    CommentFinding,
    CommentMarkerRule,
    find_all,
)

MARKERS = ("TODO", "FIXME", "BUG", "XXX")

DEFAULT_RULES: tuple[CommentMarkerRule, ...] = tuple(
    CommentMarkerRule(pattern=re.compile(rf"{marker}\s*:(.*)", re.IGNORECASE), marker=marker)
    for marker in MARKERS
)


def match_comment_markers(
    rules: tuple[CommentMarkerRule, ...], *, file: str, line: int, content: str
) -> list[CommentFinding]:
    """Collect every marker occurrence in one added line."""
    findings: list[CommentFinding] = []
    for rule in rules:
        for match in find_all(rule.pattern, content):
            findings.append(
                CommentFinding(
                    file=file,
                    line=line,
                    type=rule.marker,
                    text=_captured_text(match) or DEFAULT_COMMENT_TEXT,
                )
            )
    return findings


def _captured_text(match: re.Match[str]) -> str:
    if match.re.groups < 1:
        return ""
    return (match.group(1) or "").strip()
