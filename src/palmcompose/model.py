# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

from .config import SHELL


class OnFail(str, Enum):
    """What a failing step does to the rest of the workflow."""
    STOP = "stop"
    CONTINUE = "continue"

    @classmethod
    def parse(cls, value: object) -> "OnFail":
        # anything other than "continue" keeps the default
        if isinstance(value, str) and value.strip().lower() == cls.CONTINUE.value:
            return cls.CONTINUE
        return cls.STOP


@dataclass(frozen=True)
class ShellCommand:
    """A command string handed to `sh -c`."""
    command: str

    def argv(self) -> List[str]:
        return [SHELL, "-c", self.command]

    def describe(self) -> str:
        return self.command


@dataclass(frozen=True)
class ToolInvocation:
    """A named executable called directly with its own argument list."""
    tool: str
    args: Tuple[str, ...] = ()

    def argv(self) -> List[str]:
        return [self.tool, *self.args]

    def describe(self) -> str:
        return " ".join([self.tool, *self.args])


Action = Union[ShellCommand, ToolInvocation]


@dataclass(frozen=True)
class Step:
    """
    A single unit of work inside a workflow.

    Canonical dependency field: `depends_on` (names of steps that must finish
    in an earlier wave). `timeout` is in seconds; None or 0 means unbounded.
    """
    name: str
    action: Action
    input: Optional[str] = None
    depends_on: Tuple[str, ...] = ()
    on_fail: OnFail = OnFail.STOP
    timeout: Optional[float] = None

    @property
    def has_timeout(self) -> bool:
        return bool(self.timeout) and self.timeout > 0

    @property
    def continue_on_failure(self) -> bool:
        return self.on_fail is OnFail.CONTINUE


@dataclass
class WorkflowSpec:
    """A validated workflow: metadata plus steps in declaration order."""
    name: str = ""
    description: str = ""
    steps: List[Step] = field(default_factory=list)

    def step_names(self) -> List[str]:
        return [s.name for s in self.steps]


@dataclass
class ExecutionPlan:
    """Ordered waves; steps inside one wave may run concurrently."""
    waves: List[List[Step]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.waves)

    def __iter__(self) -> Iterator[List[Step]]:
        return iter(self.waves)

    def names(self) -> List[List[str]]:
        return [[s.name for s in wave] for wave in self.waves]

    @property
    def step_count(self) -> int:
        return sum(len(w) for w in self.waves)


TIMEOUT_ERROR = "timeout"


@dataclass(frozen=True)
class StepResult:
    """
    Outcome of one step. Created once the step finishes or is killed.

    output is stdout on success, stderr on failure, and empty on timeout.
    """
    step: str
    output: str = ""
    duration: float = 0.0
    exit_code: int = 0
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

    @property
    def timed_out(self) -> bool:
        return self.error == TIMEOUT_ERROR
