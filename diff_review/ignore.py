"""Ignore-rule matching for diff file paths."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

IgnoreRule = str | re.Pattern[str]


def load_ignore_rules(path: Path) -> list[str]:
    """Read ignore-file rules, skipping blank lines and comments.

    A missing or unreadable file yields no rules.
    """
    if not path.exists():
        return []
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read ignore file %s: %s", path, exc)
        return []

    rules = [line.strip() for line in content.splitlines()]
    rules = [rule for rule in rules if rule and not rule.startswith("#")]
    logger.info("Loaded %d ignore rules from %s", len(rules), path)
    return rules


def should_ignore(
    file_path: str,
    static_rules: Sequence[IgnoreRule],
    file_rules: Sequence[str] = (),
) -> bool:
    """Return True when the path matches a static rule or an ignore-file rule."""
    path = _normalize(file_path)

    for rule in static_rules:
        if isinstance(rule, re.Pattern):
            if rule.search(path):
                return True
        elif match_string_pattern(path, rule):
            return True

    return any(match_ignore_file_rule(path, rule) for rule in file_rules)


def match_string_pattern(file_path: str, pattern: str) -> bool:
    """Match a configured path pattern: directory, wildcard, name or substring."""
    normalized = _normalize(pattern)
    if not normalized:
        return False

    if normalized.endswith("/"):
        return _in_directory(file_path, normalized[:-1])

    if "*" in normalized:
        return match_wildcard(file_path, normalized)

    if file_path == normalized or _basename(file_path) == normalized:
        return True
    return normalized in file_path


def match_wildcard(file_path: str, pattern: str) -> bool:
    """Match ``*`` wildcards against the full path or the basename."""
    regex = re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")
    return bool(regex.match(file_path) or regex.match(_basename(file_path)))


def match_ignore_file_rule(file_path: str, rule: str) -> bool:
    """Match one ignore-file rule against a normalized path."""
    clean = rule.strip()
    if not clean or clean.startswith("#"):
        return False
    clean = _normalize(clean)

    if clean.startswith("/"):
        return match_string_pattern(file_path, clean[1:])

    if clean.endswith("/"):
        return _in_directory(file_path, clean[:-1])

    if "*" in clean:
        return match_wildcard(file_path, clean)

    return (
        file_path.endswith(clean)
        or f"/{clean}" in file_path
        or _basename(file_path) == clean
    )


def _in_directory(file_path: str, directory: str) -> bool:
    return file_path == directory or file_path.startswith(directory + "/")


def _basename(file_path: str) -> str:
    return file_path.rsplit("/", 1)[-1]


def _normalize(path: str) -> str:
    return path.replace("\\", "/")
