"""Version-control detection and diff collection."""

from __future__ import annotations

import logging
from pathlib import Path
from subprocess import CalledProcessError, run

logger = logging.getLogger(__name__)

VCS_MARKERS = (("git", ".git"), ("svn", ".svn"))

EMPTY_TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


class VcsError(RuntimeError):
    """Raised when a git/svn command fails."""


def detect_vcs(start: Path) -> str | None:
    """Walk up from ``start`` and return ``"git"``, ``"svn"`` or None."""
    current = start.resolve()
    for directory in (current, *current.parents):
        for name, marker in VCS_MARKERS:
            if (directory / marker).exists():
                logger.info("Detected %s repository at %s", name, directory)
                return name
    logger.warning("No git or svn repository found above %s", current)
    return None


def get_vcs_diff(repo: Path, vcs: str) -> str:
    """Return working-copy changes; command failures degrade to an empty diff."""
    try:
        if vcs == "git":
            return get_git_diff(repo)
        if vcs == "svn":
            return get_svn_diff(repo)
    except VcsError as exc:
        logger.error("Failed to collect %s diff: %s", vcs, exc)
        return ""
    raise ValueError(f"Unsupported VCS: {vcs}")


def get_git_diff(repo: Path) -> str:
    """Unstaged-plus-staged changes against HEAD, followed by the staged diff.

    A repository without commits is diffed against the empty tree.
    """
    base = get_head_revision(repo)
    if base is None:
        logger.info("No HEAD revision in %s; diffing against the empty tree", repo)
        base = EMPTY_TREE_HASH
    working = _run(repo, ["git", "diff", "--no-color", base])
    staged = _run(repo, ["git", "diff", "--no-color", "--cached", base])
    return working + staged


def get_head_revision(repo: Path) -> str | None:
    """Return HEAD revision if present."""
    try:
        return _run(repo, ["git", "rev-parse", "--verify", "HEAD"]).strip() or None
    except VcsError:
        return None


def get_svn_diff(repo: Path) -> str:
    return _run(repo, ["svn", "diff"])


def _run(repo: Path, args: list[str]) -> str:
    logger.debug("%s (cwd=%s)", " ".join(args), repo)
    try:
        completed = run(
            args,
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise VcsError(stderr or f"{' '.join(args)} failed") from exc
    except FileNotFoundError as exc:
        raise VcsError(f"{args[0]} executable not found") from exc

    return completed.stdout
