"""End-to-end CLI tests over fixture diffs and synthetic repositories."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from diff_review.cli import app
from diff_review.handoff import NO_CHANGES, NO_COMMENTS
from diff_review.llm import MISSING_KEY_SUMMARY, SKIPPED_SUMMARY
from tests.helpers_git import commit_all, init_repo, unified_diff, write_file

runner = CliRunner()
FIXTURE_DIR = Path(__file__).parent / "fixtures" / "diffs"


def _fixture(name: str) -> str:
    return (FIXTURE_DIR / name).read_text(encoding="utf-8")


def _stdin_review(repo: Path) -> list[str]:
    return ["review", "--repo", str(repo), "--vcs", "git", "--stdin"]


def test_review_stdin_json_without_ai(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        [*_stdin_review(tmp_path), "--no-ai", "--format", "json"],
        input=_fixture("git_multi.diff"),
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["comment_matches"] == [
        {"file": "src/checkout.js", "line": 11, "type": "TODO", "text": "remove hard-coded price"}
    ]
    assert payload["env_issues"] == [
        {"file": "src/checkout.js", "line": 13, "message": "Possible leftover debugging code"}
    ]
    assert payload["summary"] == SKIPPED_SUMMARY
    assert payload["meta"]["ignored_files"] == ["tests/checkout.test.js"]
    assert "src/checkout.js" in payload["meta"]["analyzed_files"]


def test_review_svn_diff_file(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        [
            "review",
            "--repo",
            str(tmp_path),
            "--vcs",
            "svn",
            "--diff-file",
            str(FIXTURE_DIR / "svn_simple.diff"),
            "--no-ai",
            "--format",
            "json",
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    ids = [item for item in payload["business_data_suspects"] if item["category"] == "ids"]
    assert ids == [
        {
            "file": "src/order.js",
            "line": 2,
            "category": "ids",
            "match": 'orderId = "ORD123456"',
            "content": 'const orderId = "ORD123456";',
        }
    ]
    assert payload["meta"]["ignored_files"] == ["mocks/order.json"]


def test_review_human_report(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["review", "--repo", str(tmp_path), "--vcs", "git", "--stdin", "--no-ai"],
        input=_fixture("git_multi.diff"),
    )
    assert result.exit_code == 0
    assert "File filter results:" in result.stdout
    assert "Ignored files (1):" in result.stdout
    assert "Comment markers (1):" in result.stdout
    assert "src/checkout.js:11 - remove hard-coded price" in result.stdout
    assert result.stdout.rstrip().endswith(SKIPPED_SUMMARY)


def test_review_empty_diff_warns_and_exits_cleanly(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["review", "--repo", str(tmp_path), "--vcs", "git", "--stdin"], input=""
    )
    assert result.exit_code == 0
    assert "No code changes detected" in result.stderr
    assert result.stdout == ""


def test_review_fully_ignored_diff_skips_model(tmp_path: Path) -> None:
    diff_text = unified_diff("tests/foo.js", "@@ -0,0 +1 @@", "// TODO: hidden")

    result = runner.invoke(
        app,
        ["review", "--repo", str(tmp_path), "--vcs", "git", "--stdin", "--format", "json"],
        input=diff_text,
    )
    assert result.exit_code == 0
    assert "No changes left to review after filtering." in result.stderr
    payload = json.loads(result.stdout)
    assert payload["summary"] == SKIPPED_SUMMARY
    assert payload["comment_matches"] == []


def test_review_without_api_key_reports_placeholder(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    diff_text = unified_diff("src/a.js", "@@ -0,0 +1 @@", "// FIXME: later")

    result = runner.invoke(
        app,
        ["review", "--repo", str(tmp_path), "--vcs", "git", "--stdin", "--format", "json"],
        input=diff_text,
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["summary"] == MISSING_KEY_SUMMARY


def test_review_git_repository_calls_model_with_prompt(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo = init_repo(tmp_path)
    write_file(repo, "src/app.js", "const a = 1;\n")
    commit_all(repo, "baseline")
    write_file(
        repo,
        "src/app.js",
        "const a = 1;\n// TODO: wire config\nconst host = 'localhost';\n",
    )

    prompts: list[str] = []

    async def fake_request_review(prompt, settings, *, client=None):
        prompts.append(prompt)
        return "stub summary"

    monkeypatch.setattr("diff_review.cli.request_review", fake_request_review)

    result = runner.invoke(app, ["review", "--repo", str(repo), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["summary"] == "stub summary"
    assert payload["comment_matches"] == [
        {"file": "src/app.js", "line": 2, "type": "TODO", "text": "wire config"}
    ]
    assert payload["env_issues"] == [
        {"file": "src/app.js", "line": 3, "message": "Local address found"}
    ]
    assert len(prompts) == 1
    assert "- src/app.js:2 TODO: wire config" in prompts[0]
    assert "diff --git a/src/app.js b/src/app.js" in prompts[0]


def test_review_honours_gitignore_rules(tmp_path: Path) -> None:
    (tmp_path / ".gitignore").write_text("# build output\n*.min.js\n", encoding="utf-8")
    diff_text = unified_diff("static/app.min.js", "@@ -0,0 +1 @@", "// TODO: generated")

    result = runner.invoke(
        app,
        [*_stdin_review(tmp_path), "--no-ai", "--format", "json"],
        input=diff_text,
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["comment_matches"] == []
    assert payload["meta"]["ignored_files"] == ["static/app.min.js"]


def test_review_invalid_config_exits_with_usage_error(tmp_path: Path) -> None:
    (tmp_path / ".diff-review.toml").write_text('vcs = "hg"\n', encoding="utf-8")

    result = runner.invoke(
        app, ["review", "--repo", str(tmp_path), "--stdin"], input=_fixture("git_multi.diff")
    )
    assert result.exit_code == 2


def test_review_rejects_diff_file_and_stdin_together(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        [
            "review",
            "--repo",
            str(tmp_path),
            "--stdin",
            "--diff-file",
            str(FIXTURE_DIR / "git_multi.diff"),
        ],
        input="",
    )
    assert result.exit_code == 2


def test_review_unexpected_failure_exits_with_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("diff_review.cli.analyze_diff", boom)

    result = runner.invoke(
        app,
        ["review", "--repo", str(tmp_path), "--vcs", "git", "--stdin", "--no-ai"],
        input=_fixture("git_multi.diff"),
    )
    assert result.exit_code == 1
    assert "Error: boom" in result.stderr


def test_prompt_without_changes_uses_placeholders(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["prompt", "--repo", str(tmp_path), "--vcs", "git", "--stdin"], input=""
    )
    assert result.exit_code == 0
    assert NO_CHANGES in result.stdout
    assert NO_COMMENTS in result.stdout
    assert "## Requirements" in result.stdout


def test_prompt_redacts_secrets_on_request(tmp_path: Path) -> None:
    diff_text = unified_diff("src/a.js", "@@ -0,0 +1 @@", "const API_KEY = 'abcdef123456';")

    plain = runner.invoke(
        app, ["prompt", "--repo", str(tmp_path), "--vcs", "git", "--stdin"], input=diff_text
    )
    redacted = runner.invoke(
        app,
        ["prompt", "--repo", str(tmp_path), "--vcs", "git", "--stdin", "--redact-secrets"],
        input=diff_text,
    )
    assert plain.exit_code == 0
    assert redacted.exit_code == 0
    assert "abcdef123456" in plain.stdout
    assert "abcdef123456" not in redacted.stdout
    assert "API_KEY = <redacted>" in redacted.stdout


def test_review_empty_diff_json_still_emits_payload(tmp_path: Path) -> None:
    result = runner.invoke(app, [*_stdin_review(tmp_path), "--format", "json"], input="")
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["summary"] == SKIPPED_SUMMARY
    assert payload["comment_matches"] == []


def test_review_tolerates_non_utf8_working_copy(tmp_path: Path) -> None:
    repo = init_repo(tmp_path)
    write_file(repo, "a.js", "const a = 1;\n")
    commit_all(repo, "baseline")
    (repo / "a.js").write_bytes("const a = 1;\n// TODO: 中文\n".encode("gbk"))

    result = runner.invoke(
        app, ["review", "--repo", str(repo), "--vcs", "git", "--no-ai", "--format", "json"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [(item["file"], item["line"], item["type"]) for item in payload["comment_matches"]] == [
        ("a.js", 2, "TODO")
    ]


def test_prompt_tolerates_non_utf8_diff_file(tmp_path: Path) -> None:
    diff_file = tmp_path / "change.diff"
    diff_file.write_bytes(
        unified_diff("a.js", "@@ -0,0 +1 @@", "// TODO: 中文").encode("gbk")
    )

    result = runner.invoke(
        app, ["prompt", "--repo", str(tmp_path), "--vcs", "git", "--diff-file", str(diff_file)]
    )
    assert result.exit_code == 0
    assert "- a.js:1 TODO:" in result.stdout
