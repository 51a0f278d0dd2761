"""Pattern rule and finding models."""

from __future__ import annotations

from dataclasses import dataclass
from re import Match, Pattern

DEFAULT_COMMENT_TEXT = "No description provided"


@dataclass(frozen=True, slots=True)
class CommentMarkerRule:
    """Comment marker such as TODO; group 1 captures the free text."""

    pattern: Pattern[str]
    marker: str


@dataclass(frozen=True, slots=True)
class EnvironmentRule:
    """Environment/config risk with a fixed warning message."""

    pattern: Pattern[str]
    message: str


@dataclass(frozen=True, slots=True)
class SensitiveDataRule:
    """Business-sensitive data pattern; the category is its table key."""

    pattern: Pattern[str]


@dataclass(frozen=True, slots=True)
class CommentFinding:
    """A flagged comment marker on an added line."""

    file: str
    line: int
    type: str
    text: str

    @property
    def key(self) -> tuple[str, int, str, str]:
        return (self.file, self.line, self.type, self.text)


@dataclass(frozen=True, slots=True)
class EnvironmentFinding:
    """An environment/config risk on an added line."""

    file: str
    line: int
    message: str

    @property
    def key(self) -> tuple[str, int, str]:
        return (self.file, self.line, self.message)


@dataclass(frozen=True, slots=True)
class SensitiveDataFinding:
    """A business-sensitive value on an added line."""

    file: str
    line: int
    category: str
    match: str
    content: str

    @property
    def key(self) -> tuple[str, int, str, str]:
        # content is derived from file+line
        return (self.file, self.line, self.category, self.match)


def find_all(pattern: Pattern[str], text: str) -> list[Match[str]]:
    """Return every non-overlapping match of ``pattern`` in ``text``."""
    return list(pattern.finditer(text))
