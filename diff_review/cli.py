"""CLI entrypoint for diff-review."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from diff_review import __version__
from diff_review.analyzer import AnalysisResult, analyze_diff
from diff_review.config import AppConfig, default_config_template, load_app_config
from diff_review.diff_parser import DIALECTS
from diff_review.handoff import PromptSpec, build_prompt
from diff_review.ignore import load_ignore_rules
from diff_review.llm import SKIPPED_SUMMARY, LlmSettings, request_review
from diff_review.output import render_filter_summary, render_json, render_report
from diff_review.rules import PatternTables, build_pattern_tables, list_pattern_info
from diff_review.vcs import detect_vcs, get_vcs_diff

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="diff-review",
    no_args_is_help=True,
    help="Review Git/SVN diffs for flagged comments, environment risks and sensitive data.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("review")
def review_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    diff_file: Annotated[Path | None, typer.Option(help="Path to a diff file.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read the diff from stdin.")] = False,
    vcs: Annotated[str | None, typer.Option(help="Diff dialect: auto|git|svn.")] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    no_ai: Annotated[bool, typer.Option("--no-ai", help="Skip the model call.")] = False,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress.")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Log debug details.")] = False,
) -> None:
    """Analyze the current changes and print a review report."""
    configure_logging(verbose=verbose, debug=debug)
    app_config = _load_config_or_raise(repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    if diff_file and stdin:
        raise typer.BadParameter("Use either --diff-file or --stdin, not both.")
    tables = _build_pattern_tables_or_raise(app_config)

    try:
        result = _run_analysis(
            repo=repo,
            diff_file=diff_file,
            stdin=stdin,
            vcs=vcs,
            app_config=app_config,
            tables=tables,
        )
        if result is None:
            typer.echo(
                _warning("No code changes detected. Make sure your edits are saved."),
                err=True,
            )
            if output_format == "json":
                typer.echo(render_json(AnalysisResult(), SKIPPED_SUMMARY))
            return

        if output_format == "human":
            typer.echo(render_filter_summary(result))

        if not result.filtered_diff.strip():
            typer.echo(_warning("No changes left to review after filtering."), err=True)
            summary = SKIPPED_SUMMARY
        elif no_ai:
            summary = SKIPPED_SUMMARY
        else:
            prompt = build_prompt(result, _prompt_spec(app_config))
            summary = asyncio.run(
                request_review(prompt, LlmSettings.from_config(app_config.llm))
            )
    except typer.BadParameter:
        raise
    except Exception as exc:
        logger.debug("Review failed", exc_info=True)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if output_format == "json":
        typer.echo(render_json(result, summary))
    else:
        typer.echo(render_report(result, summary))


@app.command("prompt")
def prompt_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    diff_file: Annotated[Path | None, typer.Option(help="Path to a diff file.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read the diff from stdin.")] = False,
    vcs: Annotated[str | None, typer.Option(help="Diff dialect: auto|git|svn.")] = None,
    redact_secrets: Annotated[
        bool | None,
        typer.Option("--redact-secrets/--no-redact-secrets", help="Redact secret-like values."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Print the prompt that would be sent to the model (no API calls)."""
    configure_logging()
    app_config = _load_config_or_raise(repo, config_file)
    if diff_file and stdin:
        raise typer.BadParameter("Use either --diff-file or --stdin, not both.")
    tables = _build_pattern_tables_or_raise(app_config)

    result = _run_analysis(
        repo=repo,
        diff_file=diff_file,
        stdin=stdin,
        vcs=vcs,
        app_config=app_config,
        tables=tables,
    )
    spec = _prompt_spec(app_config)
    if redact_secrets is not None:
        spec.redact_secrets = redact_secrets
    typer.echo(build_prompt(result or AnalysisResult(), spec))


@app.command("patterns")
def patterns_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the active pattern tables."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    info = list_pattern_info(_build_pattern_tables_or_raise(app_config))

    if output_format == "json":
        payload = {
            "patterns": [
                {"family": item.family, "label": item.label, "regex": item.regex}
                for item in info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Active patterns:"]
    for item in info:
        lines.append(f"- [{item.family}] {item.label}: {item.regex}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    _build_pattern_tables_or_raise(app_config)
    payload = app_config.to_dict()

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- vcs: {payload['vcs']}",
        f"- format: {payload['format']}",
        f"- ignore_file: {payload['ignore_file']}",
        f"- ignored_paths: {payload['ignored_paths']}",
        f"- patterns.use_defaults: {payload['patterns']['use_defaults']}",
        f"- llm.model: {payload['llm']['model']}",
        f"- llm.base_url: {payload['llm']['base_url']}",
        f"- llm.api_key_env: {payload['llm']['api_key_env']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".diff-review.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def configure_logging(*, verbose: bool = False, debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _warning(message: str) -> str:
    return typer.style(f"Warning: {message}", fg="yellow")


def _run_analysis(
    *,
    repo: Path,
    diff_file: Path | None,
    stdin: bool,
    vcs: str | None,
    app_config: AppConfig,
    tables: PatternTables,
) -> AnalysisResult | None:
    """Resolve the diff and analyze it; None when there is nothing to review."""
    dialect = _resolve_dialect(repo, vcs or app_config.vcs, from_vcs=not (diff_file or stdin))
    diff_text = _resolve_diff_input(diff_file=diff_file, stdin=stdin, repo=repo, dialect=dialect)
    if not diff_text.strip():
        return None

    file_rules = load_ignore_rules(repo / app_config.ignore_file)
    return analyze_diff(
        diff_text,
        dialect=dialect,
        static_rules=app_config.ignored_paths,
        file_rules=file_rules,
        tables=tables,
    )


def _resolve_dialect(repo: Path, requested: str, *, from_vcs: bool) -> str:
    requested = requested.lower()
    if requested in DIALECTS:
        return requested
    if requested != "auto":
        raise typer.BadParameter("vcs must be one of: auto, git, svn", param_hint="--vcs")

    detected = detect_vcs(repo)
    if detected is not None:
        return detected
    if from_vcs:
        raise typer.BadParameter(
            "No git or svn repository found. Run inside a working copy or pass --diff-file.",
            param_hint="--repo",
        )
    return "git"


def _resolve_diff_input(
    *,
    diff_file: Path | None,
    stdin: bool,
    repo: Path,
    dialect: str,
) -> str:
    if diff_file is not None:
        try:
            return diff_file.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise typer.BadParameter(str(exc), param_hint="--diff-file") from exc

    if stdin:
        return sys.stdin.read()

    return get_vcs_diff(repo, dialect)


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_pattern_tables_or_raise(app_config: AppConfig) -> PatternTables:
    try:
        return build_pattern_tables(app_config.patterns)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.patterns") from exc


def _prompt_spec(app_config: AppConfig) -> PromptSpec:
    return PromptSpec(
        language=app_config.llm.language,
        max_bytes=app_config.llm.max_bytes,
        redact_secrets=app_config.llm.redact_secrets,
    )
