"""Output rendering."""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

import click

from diff_review import __version__
from diff_review.analyzer import AnalysisResult
from diff_review.diff_parser import FilterResult

RULE = "=" * 40


def render_filter_summary(result: FilterResult | AnalysisResult) -> str:
    """Render which files were ignored and which were analyzed."""
    lines = [click.style("File filter results:", fg="blue")]
    if result.ignored_files:
        lines.append(click.style(f"  Ignored files ({len(result.ignored_files)}):", fg="blue"))
        lines.extend(f"    - {click.style(path, fg='cyan')}" for path in result.ignored_files)
    else:
        lines.append(click.style("  No ignored files", fg="green"))

    if result.analyzed_files:
        lines.append(click.style(f"  Analyzed files ({len(result.analyzed_files)}):", fg="green"))
        lines.extend(f"    - {click.style(path, fg='cyan')}" for path in result.analyzed_files)
    else:
        lines.append(click.style("  No files to analyze", fg="yellow"))
    return "\n".join(lines)


def render_report(result: AnalysisResult, summary: str) -> str:
    """Render grouped findings followed by the model summary."""
    lines: list[str] = [f"{RULE} Code review results {RULE}"]

    if result.comment_matches:
        lines.append("")
        lines.append(
            click.style(
                f"Comment markers ({len(result.comment_matches)}):", fg="yellow", bold=True
            )
        )
        by_type: dict[str, list[Any]] = defaultdict(list)
        for comment in result.comment_matches:
            by_type[comment.type].append(comment)
        for marker, comments in by_type.items():
            lines.append(f"  {click.style(marker, fg='yellow')} ({len(comments)}):")
            for comment in comments:
                location = click.style(f"{comment.file}:{comment.line}", fg="cyan")
                lines.append(f"    {location} - {comment.text}")

    if result.env_issues:
        lines.append("")
        lines.append(
            click.style(
                f"Potential environment issues ({len(result.env_issues)}):",
                fg="magenta",
                bold=True,
            )
        )
        by_message: dict[str, list[Any]] = defaultdict(list)
        for issue in result.env_issues:
            by_message[issue.message].append(issue)
        for message, issues in by_message.items():
            lines.append(f"  {click.style(message, fg='magenta')} ({len(issues)}):")
            for issue in issues:
                lines.append(f"    {click.style(f'{issue.file}:{issue.line}', fg='cyan')}")

    if result.business_data_suspects:
        lines.append("")
        lines.append(
            click.style(
                f"Business-sensitive data ({len(result.business_data_suspects)}):",
                fg="cyan",
                bold=True,
            )
        )
        by_category: dict[str, dict[str, list[Any]]] = defaultdict(lambda: defaultdict(list))
        for item in result.business_data_suspects:
            by_category[item.category][item.file].append(item)
        for category in sorted(by_category):
            per_file = by_category[category]
            count = sum(len(items) for items in per_file.values())
            lines.append(click.style(f"  {category} ({count}):", bold=True))
            for path, items in per_file.items():
                lines.append(f"    {click.style(path + ':', fg='cyan')}")
                for item in items:
                    lines.append(
                        f"      {click.style(f'line {item.line}', fg='cyan')} - "
                        f'"{click.style(item.match, fg="yellow")}" in "{item.content}"'
                    )

    if result.is_empty:
        lines.append("")
        lines.append(click.style("No flagged issues found.", fg="green"))

    lines.append("")
    lines.append(f"{RULE} AI review {RULE}")
    lines.append(summary)
    return "\n".join(lines)


def render_json(result: AnalysisResult, summary: str | None) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(result, summary), sort_keys=True)


def build_json_payload(result: AnalysisResult, summary: str | None) -> dict[str, Any]:
    return {
        "comment_matches": [
            {"file": item.file, "line": item.line, "type": item.type, "text": item.text}
            for item in result.comment_matches
        ],
        "env_issues": [
            {"file": item.file, "line": item.line, "message": item.message}
            for item in result.env_issues
        ],
        "business_data_suspects": [
            {
                "file": item.file,
                "line": item.line,
                "category": item.category,
                "match": item.match,
                "content": item.content,
            }
            for item in result.business_data_suspects
        ],
        "summary": summary,
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "ignored_files": list(result.ignored_files),
            "analyzed_files": list(result.analyzed_files),
            "version": __version__,
        },
    }
