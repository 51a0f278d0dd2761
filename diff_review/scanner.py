"""Line scanner that classifies added diff lines against the pattern tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from diff_review.diff_parser import NULL_DEVICE, parse_header_path, parse_hunk_header
from diff_review.rules import PatternTables
from diff_review.rules.base import CommentFinding, EnvironmentFinding, SensitiveDataFinding
from diff_review.rules.business_data import match_business_data
from diff_review.rules.comment_markers import match_comment_markers
from diff_review.rules.environment import match_environment

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RawFindings:
    """Findings in scan order, before de-duplication."""

    comment_matches: list[CommentFinding] = field(default_factory=list)
    env_issues: list[EnvironmentFinding] = field(default_factory=list)
    business_data_suspects: list[SensitiveDataFinding] = field(default_factory=list)


def scan_diff(diff_text: str, tables: PatternTables) -> RawFindings:
    """Walk diff lines, tracking the new-side file and line number.

    Inside a hunk the header's line counts decide where the body ends, so an
    added line such as ``+++count;`` is content rather than a file header.
    """
    findings = RawFindings()
    current_file: str | None = None
    line_number = 0
    old_remaining = 0
    new_remaining = 0

    for raw_line in diff_text.split("\n"):
        line = raw_line.rstrip("\r")

        if old_remaining > 0 or new_remaining > 0:
            if line.startswith("+"):
                new_remaining -= 1
                line_number += 1
                if current_file is not None:
                    classify_line(
                        findings, tables, file=current_file, line=line_number, content=line[1:]
                    )
                continue
            if line.startswith("-"):
                old_remaining -= 1
                continue
            if line.startswith(" "):
                old_remaining -= 1
                new_remaining -= 1
                line_number += 1
                continue
            if line.startswith("\\"):
                continue
            # body ended early; handle the line as a header
            old_remaining = new_remaining = 0

        if line.startswith("+++ ") or line.startswith("--- "):
            if line.startswith("+++ "):
                path = parse_header_path(line[4:])
                if path and not path.startswith(NULL_DEVICE):
                    current_file = path
            continue

        if line.startswith("@@"):
            try:
                header = parse_hunk_header(line)
            except ValueError:
                logger.debug("Skipping malformed hunk header in %s: %r", current_file, line)
                continue
            line_number = header.new_start - 1
            old_remaining = header.old_count
            new_remaining = header.new_count
            continue

        if current_file is None:
            continue

        # lines outside a parsed hunk are still read leniently
        if line.startswith("+"):
            line_number += 1
            classify_line(
                findings, tables, file=current_file, line=line_number, content=line[1:]
            )
        elif line.startswith(" "):
            line_number += 1

    return findings


def classify_line(
    findings: RawFindings,
    tables: PatternTables,
    *,
    file: str,
    line: int,
    content: str,
) -> None:
    """Run the three pattern families over one added line."""
    findings.comment_matches.extend(
        match_comment_markers(tables.comment_markers, file=file, line=line, content=content)
    )
    findings.env_issues.extend(
        match_environment(tables.environment_checks, file=file, line=line, content=content)
    )
    findings.business_data_suspects.extend(
        match_business_data(tables.business_data, file=file, line=line, content=content)
    )
