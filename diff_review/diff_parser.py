"""Diff splitting primitives for Git and SVN diffs."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from re import Match, compile
from typing import Literal

from diff_review.ignore import IgnoreRule, should_ignore

logger = logging.getLogger(__name__)

Dialect = Literal["git", "svn"]
DIALECTS: tuple[str, ...] = ("git", "svn")

GIT_FILE_HEADER_RE = compile(r"diff --git a/(.*) b/(.*)")
QUOTED_PATH_RE = compile(r'"(?:[^"\\]|\\.)*"')
SVN_INDEX_PREFIX = "Index: "
NULL_DEVICE = "/dev/null"

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<section>.*)$"
)


@dataclass(slots=True)
class DiffBlock:
    """The raw lines of one file within a diff."""

    file: str | None
    lines: list[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        return "\n".join(self.lines)


@dataclass(slots=True)
class HunkHeader:
    """Parsed hunk header values."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Filtered diff text plus the files it dropped and kept."""

    diff_text: str
    ignored_files: tuple[str, ...] = ()
    analyzed_files: tuple[str, ...] = ()


def split_into_blocks(diff_text: str, dialect: str = "git") -> list[DiffBlock]:
    """Split diff text into per-file blocks using the dialect's file marker."""
    if dialect not in DIALECTS:
        raise ValueError(f"Unknown diff dialect: {dialect}")
    if not diff_text or not diff_text.strip():
        return []

    blocks: list[DiffBlock] = []
    current: DiffBlock | None = None

    for raw_line in diff_text.split("\n"):
        starts_block, path = _block_marker(raw_line, dialect)
        if starts_block:
            if current is not None:
                blocks.append(current)
            current = DiffBlock(file=path, lines=[raw_line])
            continue

        if current is None:
            current = DiffBlock(file=None)
        current.lines.append(raw_line)

    if current is not None:
        blocks.append(current)
    return blocks


def filter_ignored_files(
    diff_text: str,
    static_rules: Sequence[IgnoreRule],
    file_rules: Sequence[str] = (),
    dialect: str = "git",
) -> FilterResult:
    """Drop blocks for ignored files and re-join the rest.

    Blocks without a recognizable file path are always kept.
    """
    if not diff_text or not diff_text.strip():
        return FilterResult(diff_text=diff_text)

    kept: list[DiffBlock] = []
    ignored: list[str] = []
    analyzed: list[str] = []
    for block in split_into_blocks(diff_text, dialect):
        if block.file is None:
            kept.append(block)
            continue
        if should_ignore(block.file, static_rules, file_rules):
            _append_unique(ignored, block.file)
            continue
        kept.append(block)
        _append_unique(analyzed, block.file)

    logger.info("Ignored %d file(s): %s", len(ignored), ", ".join(ignored) or "-")
    logger.info("Analyzing %d file(s): %s", len(analyzed), ", ".join(analyzed) or "-")
    return FilterResult(
        diff_text="\n\n".join(block.content for block in kept),
        ignored_files=tuple(ignored),
        analyzed_files=tuple(analyzed),
    )


def parse_hunk_header(header: str) -> HunkHeader:
    """Parse an ``@@ -a,b +c,d @@`` header; raises ValueError when malformed."""
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        raise ValueError(f"Invalid hunk header: {header}")

    old_count = int(match.group("old_count")) if match.group("old_count") else 1
    new_count = int(match.group("new_count")) if match.group("new_count") else 1

    return HunkHeader(
        old_start=int(match.group("old_start")),
        old_count=old_count,
        new_start=int(match.group("new_start")),
        new_count=new_count,
        section=match.group("section").strip(),
    )


def parse_header_path(value: str) -> str:
    """Extract the path from a ``---``/``+++`` header value."""
    token = value.strip().split("\t", 1)[0].strip()
    return strip_ab_prefix(unquote_path(token))


def unquote_path(token: str) -> str:
    """Undo git's C-style quoting of paths with special or non-ASCII bytes."""
    if len(token) < 2 or not (token.startswith('"') and token.endswith('"')):
        return token
    raw = token[1:-1].encode("utf-8").decode("unicode_escape")
    return raw.encode("latin-1").decode("utf-8", errors="replace")


def strip_ab_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _block_marker(line: str, dialect: str) -> tuple[bool, str | None]:
    if dialect == "git":
        if not line.startswith("diff --git"):
            return (False, None)
        return (True, _git_header_path(line))

    if line.startswith(SVN_INDEX_PREFIX):
        return (True, line[len(SVN_INDEX_PREFIX) :].strip() or None)
    return (False, None)


def _git_header_path(line: str) -> str | None:
    rest = line[len("diff --git ") :]
    if rest.startswith('"'):
        quoted = QUOTED_PATH_RE.match(rest)
        return strip_ab_prefix(unquote_path(quoted.group(0))) if quoted else None
    match = GIT_FILE_HEADER_RE.match(line)
    return match.group(1) if match else None


def _append_unique(items: list[str], value: str) -> None:
    if value not in items:
        items.append(value)
