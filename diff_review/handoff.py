"""Prompt document built from analysis findings for the review model."""

from __future__ import annotations

import re
from dataclasses import dataclass

from diff_review.analyzer import AnalysisResult

NO_CHANGES = "No code changes found."
NO_COMMENTS = "No flagged comment markers."
NO_ENV_ISSUES = "No environment issues."
NO_BUSINESS_DATA = "No business-sensitive data."


@dataclass(slots=True)
class PromptSpec:
    """Prompt-generation options."""

    language: str = "English"
    max_bytes: int = 200000
    redact_secrets: bool = False


def build_prompt(result: AnalysisResult, spec: PromptSpec | None = None) -> str:
    """Build the review prompt from a finished analysis."""
    spec = spec or PromptSpec()

    diff_text = result.filtered_diff.strip()
    was_truncated = False
    if diff_text:
        diff_text, was_truncated = truncate_text_to_bytes(
            diff_text,
            max_bytes=spec.max_bytes,
            marker="\n... [diff truncated to max-bytes] ...\n",
        )
    else:
        diff_text = NO_CHANGES

    lines: list[str] = [
        "## Role",
        (
            "You are a senior full-stack engineer with more than fifteen years of "
            "development and code review experience. You understand production "
            "deployment, security practice and business risk control."
        ),
        "",
        "## Task",
        (
            "Review the code diff below together with the automated findings. "
            "Focus on:"
        ),
        "- Code quality: readability, maintainability, performance, security",
        "- Business risk: production readiness, sensitive data, leftover test data",
        "- Deployment safety: configuration, environment isolation, hard-coded values",
        "",
        "## Input",
        "### Code changes (diff)",
        "```diff",
        diff_text,
        "```",
    ]
    if was_truncated:
        lines.append(f"_Diff was truncated to {spec.max_bytes} bytes._")

    lines.extend(
        [
            "",
            "### Flagged comment markers",
            render_comment_list(result),
            "",
            "### Potential environment/config issues",
            render_env_list(result),
            "",
            "### Business-sensitive data",
            render_business_data_list(result),
            "",
            "## Output format",
            "Reply with this structure:",
            "",
            "## Code review",
            "### Code issues",
            "1. <file path>",
            "   - Line <n> - `<code snippet>`",
            "     Problem: <description>",
            "     Fix: <concrete fix>",
            "(write `None` when there are no code issues)",
            "",
            "### Business issues",
            "1. <file path>",
            "   - Line <n> - `<code snippet>`",
            "     Problem: <business or deployment risk>",
            "     Fix: <concrete fix>",
            "(write `None` when there are no business issues)",
            "",
            "## Action items",
            "- [ ] <action item>",
            "",
            "## Review checklist",
            "- Code issues: logic errors, edge cases, error handling, performance, security.",
            "- Business issues: leaked secrets, hard-coded config, leftover test data, "
            "debugging code, environment coupling, data consistency, compliance.",
            "",
            "## Requirements",
            f"1. Respond in {spec.language}.",
            "2. Every issue names the file path, line number, code snippet, problem and fix.",
            "3. Keep problems under 20 words and fixes under 30 words.",
            "4. Quote the actual code and cite exact line numbers.",
            "5. Summarize every required change in the action items.",
        ]
    )
    prompt = "\n".join(lines).strip() + "\n"
    if spec.redact_secrets:
        prompt = redact_text(prompt)
    return prompt


def render_comment_list(result: AnalysisResult) -> str:
    if not result.comment_matches:
        return NO_COMMENTS
    return "\n".join(
        f"- {item.file}:{item.line} {item.type}: {item.text}" for item in result.comment_matches
    )


def render_env_list(result: AnalysisResult) -> str:
    if not result.env_issues:
        return NO_ENV_ISSUES
    return "\n".join(f"- {item.file}:{item.line} {item.message}" for item in result.env_issues)


def render_business_data_list(result: AnalysisResult) -> str:
    if not result.business_data_suspects:
        return NO_BUSINESS_DATA
    return "\n".join(
        f'- {item.file}:{item.line} [{item.category}] match: "{item.match}" '
        f'in: "{item.content}"'
        for item in result.business_data_suspects
    )


def redact_text(text: str) -> str:
    """Redact common secret-like tokens from text outputs."""
    redacted = text
    redacted = _PRIVATE_KEY_BLOCK_RE.sub("<redacted-private-key>", redacted)
    redacted = _BEARER_TOKEN_RE.sub("Bearer <redacted-token>", redacted)
    redacted = _ASSIGNMENT_SECRET_RE.sub(r"\1\2<redacted>", redacted)
    redacted = _AWS_ACCESS_KEY_RE.sub("AKIA<redacted>", redacted)
    redacted = _GITHUB_TOKEN_RE.sub("ghp_<redacted>", redacted)
    redacted = _OPENROUTER_KEY_RE.sub("sk-or-<redacted>", redacted)
    return redacted


def truncate_text_to_bytes(text: str, *, max_bytes: int, marker: str) -> tuple[str, bool]:
    """Truncate utf-8 text to max bytes with deterministic marker."""
    if max_bytes <= 0:
        return ("", True)
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return (text, False)

    marker_bytes = marker.encode("utf-8")
    if len(marker_bytes) >= max_bytes:
        clipped = marker_bytes[:max_bytes].decode("utf-8", errors="ignore")
        return (clipped, True)

    keep = max_bytes - len(marker_bytes)
    clipped = encoded[:keep].decode("utf-8", errors="ignore")
    return (clipped + marker, True)


_PRIVATE_KEY_BLOCK_RE = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----",
    re.DOTALL,
)
_BEARER_TOKEN_RE = re.compile(r"Bearer\s+[A-Za-z0-9._~+/=-]{10,}")
_ASSIGNMENT_SECRET_RE = re.compile(
    r"(?i)\b(api[_-]?key|secret|token|password)\b(\s*[:=]\s*)(['\"]?)[^\s'\"`]{6,}\3"
)
_AWS_ACCESS_KEY_RE = re.compile(r"\bAKIA[0-9A-Z]{16}\b")
_GITHUB_TOKEN_RE = re.compile(r"\bghp_[A-Za-z0-9]{20,}\b")
_OPENROUTER_KEY_RE = re.compile(r"\bsk-or-v1-[A-Za-z0-9]{20,}\b")
