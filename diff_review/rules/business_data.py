"""Business-sensitive data rules, grouped by category."""

from __future__ import annotations

import re
from collections.abc import Mapping

from diff_review.rules.base import SensitiveDataFinding, SensitiveDataRule, find_all

_I = re.IGNORECASE


def _rules(*patterns: tuple[str, int]) -> tuple[SensitiveDataRule, ...]:
    return tuple(SensitiveDataRule(pattern=re.compile(regex, flags)) for regex, flags in patterns)


DEFAULT_CATEGORIES: dict[str, tuple[SensitiveDataRule, ...]] = {
    # suspicious test amounts
    "amounts": _rules(
        (r"""(?:price|amount|fee|total|sum|cost)\s*(?:=|:)\s*(?:"|')?0*(?:\.0*)?1(?:"|')?""", _I),
        (r"""(?:"|'|\s)(?:0\.01|1|1\.00|0\.1)(?:"|'|\s)""", 0),
        (r"""(?:price|amount|fee|total)\s*(?:=|:)\s*(?:"|')?(?:0|1|2|100|999|1000)(?:"|')?""", _I),
    ),
    "accounts": _rules(
        (r"test(?:_|-)?(?:account|user|admin|customer)", _I),
        (
            r"""(?:user|account|customer|member)(?:_|-)?(?:id|name)?\s*(?:=|:)\s*"""
            r"""(?:"|')?(?:12|123|1234|123456)(?:\d{0,6})(?:"|')?""",
            _I,
        ),
        (r"""(?:"|'|\s)(?:admin|test|demo|example)(?:_|-)?user(?:"|'|\s)""", 0),
    ),
    "sample_data": _rules((r"demo|example|sample|test", _I)),
    "ids": _rules(
        (
            r"""(?:order|product|transaction|payment)(?:_|-)?id\s*(?:=|:)\s*"""
            r"""(?:"|')?[A-Z]*\d{4,12}(?:"|')?""",
            _I,
        ),
        (r"""(?:"|')[A-Z]{2,8}-\d{4,12}(?:"|')""", 0),
    ),
    "environment": _rules(
        (
            r"""process\.env\.NODE_ENV\s*(?:===|==|!==|!=)\s*(?:"|')"""
            r"""(?:test|development|dev|qa)(?:"|')""",
            0,
        ),
        (r"is(?:Test|Dev|Development|Debug|QA)\s*(?:=|:)\s*true", 0),
    ),
    "status": _rules(
        (r"""status\s*(?:=|:)\s*(?:"|')?(?:success|fail|error|complete|pending)(?:"|')?""", _I),
    ),
    "calculations": _rules(
        (r"""(?:discount|tax|rate)\s*(?:=|:)\s*(?:"|')?[01](?:\.[0-9]+)?(?:"|')?""", _I),
    ),
}


def match_business_data(
    categories: Mapping[str, tuple[SensitiveDataRule, ...]],
    *,
    file: str,
    line: int,
    content: str,
) -> list[SensitiveDataFinding]:
    """Collect every sensitive-data match in one added line."""
    findings: list[SensitiveDataFinding] = []
    trimmed = content.strip()
    for category, rules in categories.items():
        for rule in rules:
            for match in find_all(rule.pattern, content):
                findings.append(
                    SensitiveDataFinding(
                        file=file,
                        line=line,
                        category=category,
                        match=match.group(0),
                        content=trimmed,
                    )
                )
    return findings
