from .dsl import sh, tool, workflow
from .loader import load_workflow, load_workflow_text
from .dag import resolve_waves
from .runner import run_workflow
from .model import ExecutionPlan, OnFail, Step, StepResult, WorkflowSpec

__all__ = [
    "sh",
    "tool",
    "workflow",
    "load_workflow",
    "load_workflow_text",
    "resolve_waves",
    "run_workflow",
    "ExecutionPlan",
    "OnFail",
    "Step",
    "StepResult",
    "WorkflowSpec",
]
