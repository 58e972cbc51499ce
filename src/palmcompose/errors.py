# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class WorkflowError(ValueError):
    """
    Base class for workflow definition errors.

    These are raised while loading or planning a workflow, before any step
    runs. Step execution problems never raise; they end up in StepResult.error.
    """
    kind = "workflow_error"


@dataclass(eq=False)
class MissingNameError(WorkflowError):
    index: int
    kind = "missing_name"

    def __str__(self) -> str:
        return f"step #{self.index + 1} missing 'name'"


@dataclass(eq=False)
class MissingActionError(WorkflowError):
    step: str
    kind = "missing_action"

    def __str__(self) -> str:
        return f"step '{self.step}': must have 'run' or 'tool'"


@dataclass(eq=False)
class DuplicateNameError(WorkflowError):
    step: str
    kind = "duplicate_name"

    def __str__(self) -> str:
        return f"duplicate step name: '{self.step}'"


@dataclass(eq=False)
class UnknownDependencyError(WorkflowError):
    step: str
    dependency: str
    known: List[str] = field(default_factory=list)
    kind = "unknown_dependency"

    def __str__(self) -> str:
        return f"step '{self.step}' depends on unknown step '{self.dependency}'"


@dataclass(eq=False)
class CyclicDependencyError(WorkflowError):
    stuck: List[str]
    kind = "cyclic_dependency"

    def __str__(self) -> str:
        return f"dependency cycle (or unsatisfiable depends_on). Stuck steps: {self.stuck}"


@dataclass(eq=False)
class InvalidFieldError(WorkflowError):
    step: Optional[str]
    field_name: str
    message: str
    kind = "invalid_field"

    def __str__(self) -> str:
        where = f"step '{self.step}'" if self.step else "workflow"
        return f"{where}: invalid '{self.field_name}': {self.message}"


@dataclass(eq=False)
class WorkflowParseError(WorkflowError):
    source: str
    message: str
    kind = "parse_error"

    def __str__(self) -> str:
        return f"could not parse {self.source}: {self.message}"


class WorkflowNotFoundError(WorkflowError, FileNotFoundError):
    kind = "not_found"

    def __init__(self, path: str, hint: str | None = None):
        self.path = path
        self.hint = hint
        msg = f"{path} not found"
        if hint:
            msg = f"{msg} ({hint})"
        super().__init__(msg)
