# inputs.py
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional

from .config import INPUT_JOINER
from .git_facts import git

logger = logging.getLogger(__name__)

STEP_PREFIX = "step:"
FILE_PREFIX = "file:"
GIT_PREFIX = "git:"


def _file_contents(path: str) -> Optional[str]:
    try:
        return Path(path).expanduser().read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("input file %s unreadable: %s", path, e)
        return None


def _git_query(name: str) -> Optional[str]:
    try:
        return git.query(name)
    except KeyError:
        logger.debug("unknown git query %r (supported: %s)", name, git.supported_queries())
    except (subprocess.CalledProcessError, OSError) as e:
        logger.debug("git:%s failed: %s", name, e)
    return None


def resolve_part(part: str, outputs: Mapping[str, str]) -> Optional[str]:
    """Resolve one trimmed part of an input expression. None means "contributes nothing"."""
    if part.startswith(STEP_PREFIX):
        return outputs.get(part[len(STEP_PREFIX):])
    if part.startswith(FILE_PREFIX):
        return _file_contents(part[len(FILE_PREFIX):])
    if part.startswith(GIT_PREFIX):
        return _git_query(part[len(GIT_PREFIX):])
    return part


def resolve_input(
    expression: Optional[str],
    outputs: Mapping[str, str],
) -> str:
    """
    Resolve a step's input expression into the text fed to its stdin.

    The expression is a comma separated list of parts:
      - step:<name>   captured output of an earlier step
      - file:<path>   contents of a file
      - git:diff      `git diff`
      - git:log       `git log --oneline -10`
      - anything else is literal text

    Parts that cannot be resolved are dropped; this never raises. Resolved
    parts are joined with a blank line, in the order written.
    """
    if not expression:
        return ""

    resolved: List[str] = []
    for raw in expression.split(","):
        value = resolve_part(raw.strip(), outputs)
        if value is not None:
            resolved.append(value)

    return INPUT_JOINER.join(resolved)
