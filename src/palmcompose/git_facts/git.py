# git.py
# Small, focused wrapper around the Git CLI.
# Input resolution asks this module for `git:` parts so nothing else in the
# codebase calls subprocess("git ...") directly.

from __future__ import annotations

import subprocess
from typing import List, Optional

from ..config import GIT_QUERIES


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Execute a git command and return its raw stdout as text.

    This is the single low-level entry point for all Git operations in this file.

    Args:
        args: List of git arguments (e.g. ["log", "--oneline", "-10"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command.

    Raises:
        subprocess.CalledProcessError: git exited non-zero (e.g. not a repo).
        FileNotFoundError: git is not installed.
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=cwd,
        text=True,
        encoding="utf-8",
        errors="replace",
        stderr=subprocess.DEVNULL,  # callers only care about stdout
    )
    return out


def supported_queries() -> List[str]:
    return sorted(GIT_QUERIES)


def query(name: str, cwd: Optional[str] = None) -> str:
    """
    Run the git query behind a `git:<name>` input part.

    Args:
        name: Query name, one of supported_queries().
        cwd: Optional working directory.

    Returns:
        Raw stdout of the matching git command.

    Raises:
        KeyError: unknown query name.
        subprocess.CalledProcessError / FileNotFoundError: git failed.
    """
    if name not in GIT_QUERIES:
        raise KeyError(name)
    return _git(GIT_QUERIES[name], cwd=cwd)
