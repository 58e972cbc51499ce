# dsl.py
from __future__ import annotations

from typing import Iterable, Optional

from .loader import validate_steps
from .model import OnFail, ShellCommand, Step, ToolInvocation, WorkflowSpec


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(
    name: str,
    cmd: str,
    *,
    input: Optional[str] = None,
    needs: Optional[Iterable[str]] = None,
    on_fail: OnFail | str = OnFail.STOP,
    timeout: Optional[float] = None,
) -> Step:
    """Create a shell step."""
    return Step(
        name=name,
        action=ShellCommand(cmd),
        input=input,
        depends_on=tuple(needs or ()),
        on_fail=OnFail.parse(on_fail),
        timeout=timeout or None,
    )


def tool(
    name: str,
    executable: str,
    *args: str,
    input: Optional[str] = None,
    needs: Optional[Iterable[str]] = None,
    on_fail: OnFail | str = OnFail.STOP,
    timeout: Optional[float] = None,
) -> Step:
    """
    Create a step that calls an executable directly (no shell).

        tool("review", "ollama", "run", "llama3.3", input="git:diff")
    """
    return Step(
        name=name,
        action=ToolInvocation(executable, tuple(args)),
        input=input,
        depends_on=tuple(needs or ()),
        on_fail=OnFail.parse(on_fail),
        timeout=timeout or None,
    )


# ---------------------------------------------------------------------
# Workflow helper
# ---------------------------------------------------------------------

def workflow(*steps: Step, name: str = "", description: str = "") -> WorkflowSpec:
    """
    Workflow definition helper. Validates like a TOML workflow does.

    Users can write:
        from palmcompose import workflow, sh, tool

        wf = workflow(
            sh("read", "cat main.py"),
            tool("review", "ollama", "run", "llama3.3", input="step:read", needs=["read"]),
            name="review",
        )
    """
    return validate_steps(list(steps), name=name, description=description)
