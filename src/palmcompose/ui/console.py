"""Console output formatting utilities for palm-compose."""

from __future__ import annotations

import sys
import threading
from typing import List, Optional, Sequence

from ..config import OUTPUT_PREVIEW_CHARS
from ..model import ExecutionPlan, StepResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, stream=None):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            stream: Where normal output goes (defaults to sys.stdout at print time)
        """
        self.debug = debug
        self._stream = stream
        # step threads report concurrently
        self._lock = threading.Lock()

    def _print(self, *lines: str, err: bool = False) -> None:
        out = sys.stderr if err else (self._stream or sys.stdout)
        with self._lock:
            for line in lines:
                print(line, file=out)

    def print_run_started(self, workflow: str, description: str, step_count: int) -> None:
        """Print run start information."""
        lines = ["", "COMPOSE"]
        if workflow:
            lines.append(f"  Workflow: {workflow}")
        if description:
            lines.append(f"  {description}")
        lines.append(f"  Steps:    {step_count}")
        lines.append("")
        self._print(*lines)

    def print_wave_start(self, index: int, size: int) -> None:
        """Print a header for a wave with more than one step."""
        if size > 1:
            self._print(f"  ⚡ Parallel group {index + 1} ({size} steps)")

    def print_step_running(self, name: str) -> None:
        self._print(f"  → Running {name}...")

    def print_step_finished(self, result: StepResult, verbose: bool = False) -> None:
        """Print a step's outcome, plus an output preview in verbose mode."""
        if result.ok:
            lines = [f"  ✓ {result.step} completed in {result.duration:.2f}s"]
        else:
            lines = [f"  ✗ {result.step} failed: {result.error}"]
        if verbose and result.output:
            lines.extend(["", truncate_output(result.output), ""])
        self._print(*lines)

    def print_plan(self, plan: ExecutionPlan) -> None:
        """Print the waves of a dry run."""
        lines = ["  📋 Dry run: showing execution plan", ""]
        for i, wave in enumerate(plan):
            if len(wave) > 1:
                lines.append(f"  ⚡ Parallel group {i + 1}:")
            else:
                lines.append(f"  → Step {i + 1}:")
            for step in wave:
                lines.append(f"    {step.name}  {step.action.describe()}")
                if step.input:
                    lines.append(f"           input: {step.input}")
                if step.depends_on:
                    lines.append(f"           after: {', '.join(step.depends_on)}")
            lines.append("")
        self._print(*lines)

    def print_results(self, results: Sequence[StepResult]) -> None:
        """Print final results table."""
        rows: List[List[str]] = [["Step", "Time", "Status"]]
        for r in results:
            status = "✓ ok" if r.ok else f"✗ {r.error}"
            rows.append([r.step, f"{r.duration:.2f}s", status])

        widths = [max(len(row[i]) for row in rows) for i in range(3)]
        lines = ["", "  " + "═" * 60, "  Workflow complete", ""]
        for idx, row in enumerate(rows):
            lines.append("  " + "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
            if idx == 0:
                lines.append("  " + "  ".join("─" * w for w in widths))
        self._print(*lines)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        for detail in details or []:
            lines.append(f"  {detail}")
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._print(*lines, err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(exc)
        else:
            self._print(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._print(message)

    def print_warning(self, message: str) -> None:
        self._print(f"  ! {message}")

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._print(f"[DEBUG] {message}", err=True)


def truncate_output(output: str, limit: int = OUTPUT_PREVIEW_CHARS) -> str:
    """Indent output and cut it to `limit` characters."""
    text = output.rstrip("\n")
    suffix = ""
    if len(text) > limit:
        suffix = f"\n    ... ({len(text) - limit} more chars)"
        text = text[:limit]
    return "\n".join("    " + line for line in text.splitlines()) + suffix


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
