# loader.py
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import DEFAULT_WORKFLOW_FILE
from .errors import (
    DuplicateNameError,
    InvalidFieldError,
    MissingActionError,
    MissingNameError,
    UnknownDependencyError,
    WorkflowNotFoundError,
    WorkflowParseError,
)
from .model import OnFail, ShellCommand, Step, ToolInvocation, WorkflowSpec

logger = logging.getLogger(__name__)


SAMPLE_WORKFLOW = """\
# palm-compose workflow
# Run with: palm-compose run

name = "code-review"
description = "Multi-tool code review pipeline"

# Step 1: Read the source file
[[steps]]
name = "read-code"
run = "cat main.go"

# Step 2: AI reviews the code (depends on step 1)
[[steps]]
name = "ai-review"
tool = "ollama"
args = ["run", "llama3.3", "Review this Go code for bugs and improvements:"]
input = "step:read-code"
depends_on = ["read-code"]

# Step 3: Run tests in parallel with review (no dependency on review)
[[steps]]
name = "run-tests"
run = "go test ./..."
timeout = 60

# Step 4: Generate summary after both review and tests
[[steps]]
name = "summary"
tool = "ollama"
args = ["run", "llama3.3", "Summarize the code review and test results:"]
input = "step:ai-review,step:run-tests"
depends_on = ["ai-review", "run-tests"]
"""


# ----------------------------------------------------------------------
# Field helpers
# ----------------------------------------------------------------------

def _str_list(raw: Any, step: Optional[str], field_name: str) -> List[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
        raise InvalidFieldError(step=step, field_name=field_name, message="expected a list of strings")
    return list(raw)


def _opt_str(raw: Any, step: Optional[str], field_name: str) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise InvalidFieldError(step=step, field_name=field_name, message="expected a string")
    return raw


def _timeout(raw: Any, step: str) -> Optional[float]:
    if raw is None:
        return None
    # bool is an int subclass; `timeout = true` is a mistake, not 1 second
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidFieldError(step=step, field_name="timeout", message="expected seconds as a number")
    if raw < 0:
        raise InvalidFieldError(step=step, field_name="timeout", message="must be >= 0 (0 = no timeout)")
    return float(raw) if raw > 0 else None


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

def parse_step(raw: Mapping[str, Any], index: int = 0) -> Step:
    """
    Turn one raw step record into a Step.

    `run` wins when a record sets both `run` and `tool`.

    Raises:
        MissingNameError, MissingActionError, InvalidFieldError
    """
    if not isinstance(raw, Mapping):
        raise InvalidFieldError(step=None, field_name="steps", message=f"step #{index + 1} is not a table")

    name = _opt_str(raw.get("name"), None, "name")
    if not name:
        raise MissingNameError(index=index)

    run = _opt_str(raw.get("run"), name, "run")
    tool = _opt_str(raw.get("tool"), name, "tool")
    args = _str_list(raw.get("args"), name, "args")

    if run:
        action = ShellCommand(run)
    elif tool:
        action = ToolInvocation(tool, tuple(args))
    else:
        raise MissingActionError(step=name)

    return Step(
        name=name,
        action=action,
        input=_opt_str(raw.get("input"), name, "input") or None,
        depends_on=tuple(_str_list(raw.get("depends_on"), name, "depends_on")),
        on_fail=OnFail.parse(raw.get("on_fail")),
        timeout=_timeout(raw.get("timeout"), name),
    )


def validate_workflow(raw: Mapping[str, Any]) -> WorkflowSpec:
    """
    Validate a decoded workflow document and build a WorkflowSpec.

    Checks run in declaration order and stop at the first violation:
      - every step has a name and a `run` or `tool` action
      - step names are unique
      - every depends_on entry names an existing step

    A workflow with zero steps is valid.
    """
    raw_steps = raw.get("steps") or []
    if not isinstance(raw_steps, list):
        raise InvalidFieldError(step=None, field_name="steps", message="expected an array of [[steps]] tables")

    steps: List[Step] = []
    seen: set[str] = set()
    for idx, raw_step in enumerate(raw_steps):
        step = parse_step(raw_step, idx)
        if step.name in seen:
            raise DuplicateNameError(step=step.name)
        seen.add(step.name)
        steps.append(step)

    _check_dependencies(steps, seen)

    spec = WorkflowSpec(
        name=_opt_str(raw.get("name"), None, "name"),
        description=_opt_str(raw.get("description"), None, "description"),
        steps=steps,
    )
    logger.debug("validated workflow %r with %d step(s)", spec.name, len(steps))
    return spec


def _check_dependencies(steps: Sequence[Step], known: set[str]) -> None:
    for step in steps:
        for dep in step.depends_on:
            if dep not in known:
                raise UnknownDependencyError(step=step.name, dependency=dep, known=sorted(known))


def validate_steps(steps: Sequence[Step], *, name: str = "", description: str = "") -> WorkflowSpec:
    """Validate Step objects built in code (see dsl.py) into a WorkflowSpec."""
    seen: set[str] = set()
    for idx, step in enumerate(steps):
        if not step.name:
            raise MissingNameError(index=idx)
        if step.name in seen:
            raise DuplicateNameError(step=step.name)
        seen.add(step.name)
    _check_dependencies(steps, seen)
    return WorkflowSpec(name=name, description=description, steps=list(steps))


# ----------------------------------------------------------------------
# Workflow loading (TOML file)
# ----------------------------------------------------------------------

def load_workflow_text(text: str, *, source: str = "<string>") -> WorkflowSpec:
    try:
        data: Dict[str, Any] = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise WorkflowParseError(source=source, message=str(e)) from e
    return validate_workflow(data)


def load_workflow(path: str | Path) -> WorkflowSpec:
    """
    Load and validate a workflow from a TOML file.

    Raises:
        WorkflowNotFoundError: the file does not exist
        WorkflowParseError: the file is not valid TOML
        WorkflowError subclasses: the definition is invalid
    """
    wf_path = Path(path).expanduser()
    if not wf_path.is_file():
        raise WorkflowNotFoundError(str(wf_path))

    logger.debug("loading workflow from %s", wf_path)
    return load_workflow_text(wf_path.read_text(encoding="utf-8"), source=str(wf_path))


def find_workflow_file(filename: str | Path = DEFAULT_WORKFLOW_FILE, start: str | Path | None = None) -> Path:
    """
    Locate a workflow file.

    Absolute paths are returned as they are. Relative names are looked up in
    `start` (default: cwd) and then in each parent directory up to the root.
    """
    candidate = Path(filename).expanduser()
    if candidate.is_absolute():
        return candidate

    directory = Path(start or Path.cwd()).resolve()
    for d in (directory, *directory.parents):
        found = d / candidate
        if found.exists():
            return found

    raise WorkflowNotFoundError(str(filename), hint="run 'palm-compose init' to create one")


def write_sample_workflow(path: str | Path = DEFAULT_WORKFLOW_FILE) -> Path:
    """Write the sample workflow. Never overwrites an existing file."""
    target = Path(path)
    if target.exists():
        raise FileExistsError(f"{target} already exists")
    target.write_text(SAMPLE_WORKFLOW, encoding="utf-8")
    return target
