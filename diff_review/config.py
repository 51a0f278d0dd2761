"""Configuration loading for diff-review."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAMES = (".diff-review.toml", "diff-review.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("diff_review", "diff-review")

DEFAULT_MODEL = "deepseek/deepseek-chat-v3-0324:free"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_API_KEY_ENV = "OPENROUTER_API_KEY"

DEFAULT_IGNORED_PATHS = (
    "tests/",
    "mocks/",
    "node_modules/",
    "package.json",
    "package-lock.json",
)


@dataclass(slots=True)
class CommentMarkerConfig:
    """User-defined comment marker."""

    regex: str
    type: str
    ignore_case: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"regex": self.regex, "type": self.type, "ignore_case": self.ignore_case}


@dataclass(slots=True)
class EnvironmentCheckConfig:
    """User-defined environment check."""

    regex: str
    message: str
    ignore_case: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"regex": self.regex, "message": self.message, "ignore_case": self.ignore_case}


@dataclass(slots=True)
class PatternsConfig:
    """Pattern table additions on top of (or instead of) the built-ins."""

    use_defaults: bool = True
    ignore_case: bool = True
    comment_markers: list[CommentMarkerConfig] = field(default_factory=list)
    environment_checks: list[EnvironmentCheckConfig] = field(default_factory=list)
    business_data: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "use_defaults": self.use_defaults,
            "ignore_case": self.ignore_case,
            "comment_markers": [item.to_dict() for item in self.comment_markers],
            "environment_checks": [item.to_dict() for item in self.environment_checks],
            "business_data": {key: list(value) for key, value in self.business_data.items()},
        }


@dataclass(slots=True)
class LlmConfig:
    """Model endpoint and prompt defaults."""

    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    api_key_env: str = DEFAULT_API_KEY_ENV
    api_key: str | None = None
    timeout_seconds: float = 120.0
    language: str = "English"
    max_bytes: int = 200000
    redact_secrets: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "base_url": self.base_url,
            "api_key_env": self.api_key_env,
            "api_key": "<set>" if self.api_key else None,
            "timeout_seconds": self.timeout_seconds,
            "language": self.language,
            "max_bytes": self.max_bytes,
            "redact_secrets": self.redact_secrets,
        }


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    vcs: str = "auto"
    format: str = "human"
    ignore_file: str = ".gitignore"
    ignored_paths: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORED_PATHS))
    patterns: PatternsConfig = field(default_factory=PatternsConfig)
    llm: LlmConfig = field(default_factory=LlmConfig)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "vcs": self.vcs,
            "format": self.format,
            "ignore_file": self.ignore_file,
            "ignored_paths": list(self.ignored_paths),
            "patterns": self.patterns.to_dict(),
            "llm": self.llm.to_dict(),
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'vcs = "auto"',
            'format = "human"',
            'ignore_file = ".gitignore"',
            "ignored_paths = [",
            '  "tests/",',
            '  "mocks/",',
            '  "node_modules/",',
            '  "package.json",',
            '  "package-lock.json",',
            '  "*.min.js",',
            "]",
            "",
            "[patterns]",
            "use_defaults = true",
            "ignore_case = true",
            "comment_markers = [",
            '  { regex = "HACK\\\\s*:(.*)", type = "HACK" },',
            "]",
            "environment_checks = [",
            '  { regex = "staging\\\\.example\\\\.com", message = "Staging host found" },',
            "]",
            "",
            "[patterns.business_data]",
            '# currencies = ["\\\\bCNY\\\\s*0\\\\.01\\\\b"]',
            "",
            "[llm]",
            'model = "deepseek/deepseek-chat-v3-0324:free"',
            'base_url = "https://openrouter.ai/api/v1"',
            'api_key_env = "OPENROUTER_API_KEY"',
            "timeout_seconds = 120",
            'language = "English"',
            "max_bytes = 200000",
            "redact_secrets = true",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    patterns_mapping = _as_table(mapping.get("patterns"), "patterns")
    llm_mapping = _as_table(mapping.get("llm"), "llm")

    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    raw_ignored = mapping.get("ignored_paths")
    ignored_paths = (
        list(DEFAULT_IGNORED_PATHS) if raw_ignored is None else _as_str_list(raw_ignored)
    )

    return AppConfig(
        vcs=_as_choice(mapping.get("vcs", "auto"), {"auto", "git", "svn"}, "vcs"),
        format=format_value,
        ignore_file=_as_str(mapping.get("ignore_file", ".gitignore"), "ignore_file"),
        ignored_paths=ignored_paths,
        patterns=_parse_patterns_config(patterns_mapping),
        llm=_parse_llm_config(llm_mapping),
        source=source,
    )


def _parse_patterns_config(value: dict[str, Any]) -> PatternsConfig:
    business = _as_table(value.get("business_data"), "patterns.business_data")
    business_data: dict[str, list[str]] = {}
    for category, regexes in business.items():
        business_data[category] = _as_str_list(regexes)

    return PatternsConfig(
        use_defaults=_as_bool(value.get("use_defaults", True), "patterns.use_defaults"),
        ignore_case=_as_bool(value.get("ignore_case", True), "patterns.ignore_case"),
        comment_markers=[
            CommentMarkerConfig(
                regex=_as_str(item.get("regex"), "patterns.comment_markers.regex"),
                type=_as_str(item.get("type"), "patterns.comment_markers.type"),
                ignore_case=_as_bool(
                    item.get("ignore_case", True), "patterns.comment_markers.ignore_case"
                ),
            )
            for item in _as_table_list(value.get("comment_markers"), "patterns.comment_markers")
        ],
        environment_checks=[
            EnvironmentCheckConfig(
                regex=_as_str(item.get("regex"), "patterns.environment_checks.regex"),
                message=_as_str(item.get("message"), "patterns.environment_checks.message"),
                ignore_case=_as_bool(
                    item.get("ignore_case", False), "patterns.environment_checks.ignore_case"
                ),
            )
            for item in _as_table_list(
                value.get("environment_checks"), "patterns.environment_checks"
            )
        ],
        business_data=business_data,
    )


def _parse_llm_config(value: dict[str, Any]) -> LlmConfig:
    raw_key = value.get("api_key")
    timeout = _as_float(value.get("timeout_seconds", 120.0), "llm.timeout_seconds")
    if timeout <= 0:
        raise ValueError("llm.timeout_seconds must be > 0")
    max_bytes = _as_int(value.get("max_bytes", 200000), "llm.max_bytes")
    if max_bytes <= 0:
        raise ValueError("llm.max_bytes must be > 0")

    return LlmConfig(
        model=_as_str(value.get("model", DEFAULT_MODEL), "llm.model"),
        base_url=_as_str(value.get("base_url", DEFAULT_BASE_URL), "llm.base_url").rstrip("/"),
        api_key_env=_as_str(value.get("api_key_env", DEFAULT_API_KEY_ENV), "llm.api_key_env"),
        api_key=None if raw_key is None else _as_str(raw_key, "llm.api_key"),
        timeout_seconds=timeout,
        language=_as_str(value.get("language", "English"), "llm.language"),
        max_bytes=max_bytes,
        redact_secrets=_as_bool(value.get("redact_secrets", False), "llm.redact_secrets"),
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_table_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of tables")
    output: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{field_name} must be a list of tables")
        output.append(item)
    return output


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("Expected a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Expected a list of strings")
        items.append(item)
    return items


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw


def _as_float(raw: Any, field_name: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    return float(raw)
