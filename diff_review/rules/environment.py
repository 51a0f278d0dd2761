"""Environment and deployment risk rules."""

from __future__ import annotations

import re

from diff_review.rules.base import EnvironmentFinding, EnvironmentRule

DEFAULT_RULES: tuple[EnvironmentRule, ...] = (
    EnvironmentRule(
        pattern=re.compile(r"console\.log\(|alert\(|debugger;|\bprint\(|breakpoint\(\)"),
        message="Possible leftover debugging code",
    ),
    EnvironmentRule(
        pattern=re.compile(r"localhost|127\.0\.0\.1|0\.0\.0\.0"),
        message="Local address found",
    ),
    EnvironmentRule(
        pattern=re.compile(r"api-test|test-api|dev-api|staging-api"),
        message="Test API endpoint found",
    ),
    EnvironmentRule(
        pattern=re.compile(r"test_token|test_key|test_password|test_secret"),
        message="Possible test credentials",
    ),
)


def match_environment(
    rules: tuple[EnvironmentRule, ...], *, file: str, line: int, content: str
) -> list[EnvironmentFinding]:
    """Emit one finding per rule present in the line, however often it matches."""
    return [
        EnvironmentFinding(file=file, line=line, message=rule.message)
        for rule in rules
        if rule.pattern.search(content)
    ]
