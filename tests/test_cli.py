"""CLI smoke tests for help, version and config commands."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from diff_review import __version__
from diff_review.cli import app
from diff_review.config import load_app_config

runner = CliRunner()


def test_root_help_works() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Review Git/SVN diffs" in result.stdout
    assert "review" in result.stdout
    assert "prompt" in result.stdout
    assert "patterns" in result.stdout
    assert "config-init" in result.stdout


def test_review_help_works() -> None:
    result = runner.invoke(app, ["review", "--help"])
    assert result.exit_code == 0
    assert "--diff-file" in result.stdout
    assert "--stdin" in result.stdout
    assert "--no-ai" in result.stdout


def test_version_flag_prints_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_config_init_writes_loadable_template(tmp_path: Path) -> None:
    out = tmp_path / ".diff-review.toml"

    result = runner.invoke(app, ["config-init", "--out", str(out)])
    assert result.exit_code == 0
    assert out.exists()

    config = load_app_config(tmp_path)
    assert config.source == str(out.resolve())
    assert config.llm.redact_secrets is True
    assert "*.min.js" in config.ignored_paths
    assert config.patterns.comment_markers[0].type == "HACK"


def test_config_init_refuses_to_overwrite_without_force(tmp_path: Path) -> None:
    out = tmp_path / ".diff-review.toml"
    out.write_text("# existing\n", encoding="utf-8")

    refused = runner.invoke(app, ["config-init", "--out", str(out)])
    assert refused.exit_code == 2
    assert out.read_text(encoding="utf-8") == "# existing\n"

    forced = runner.invoke(app, ["config-init", "--out", str(out), "--force"])
    assert forced.exit_code == 0
    assert out.read_text(encoding="utf-8") != "# existing\n"


def test_config_command_json_reports_source_and_masks_key(tmp_path: Path) -> None:
    (tmp_path / ".diff-review.toml").write_text(
        "\n".join(['format = "json"', "", "[llm]", 'api_key = "sk-secret"']),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["config", "--repo", str(tmp_path), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["format"] == "json"
    assert payload["llm"]["api_key"] == "<set>"
    assert payload["source"] == str(tmp_path.resolve() / ".diff-review.toml")
    assert "sk-secret" not in result.stdout


def test_config_command_human_defaults(tmp_path: Path) -> None:
    result = runner.invoke(app, ["config", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    assert "- source: defaults" in result.stdout
    assert "- vcs: auto" in result.stdout


def test_config_command_rejects_invalid_config(tmp_path: Path) -> None:
    (tmp_path / ".diff-review.toml").write_text('vcs = "hg"\n', encoding="utf-8")

    result = runner.invoke(app, ["config", "--repo", str(tmp_path)])
    assert result.exit_code == 2


def test_patterns_command_json_lists_all_families(tmp_path: Path) -> None:
    result = runner.invoke(app, ["patterns", "--repo", str(tmp_path), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    families = {item["family"] for item in payload["patterns"]}
    assert families == {"comment_markers", "environment_checks", "business_data"}
    assert payload["meta"]["config_source"] is None


def test_patterns_command_includes_configured_additions(tmp_path: Path) -> None:
    (tmp_path / ".diff-review.toml").write_text(
        "\n".join(
            [
                "[patterns]",
                "use_defaults = false",
                'environment_checks = [{ regex = "staging", message = "Staging host" }]',
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["patterns", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    assert result.stdout.strip().splitlines() == [
        "Active patterns:",
        "- [environment_checks] Staging host: staging",
    ]


def test_patterns_command_rejects_bad_regex(tmp_path: Path) -> None:
    (tmp_path / ".diff-review.toml").write_text(
        "\n".join(["[patterns]", 'environment_checks = [{ regex = "(", message = "x" }]']),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["patterns", "--repo", str(tmp_path)])
    assert result.exit_code == 2
