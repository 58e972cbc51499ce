# runner.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from .dag import resolve_waves
from .executor import execute_step
from .inputs import resolve_input
from .model import ExecutionPlan, Step, StepResult, WorkflowSpec
from .ui.console import Console, get_console

logger = logging.getLogger(__name__)


class StepState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = frozenset({StepState.SUCCEEDED, StepState.FAILED, StepState.TIMED_OUT})


def _final_state(result: StepResult) -> StepState:
    if result.timed_out:
        return StepState.TIMED_OUT
    return StepState.SUCCEEDED if result.ok else StepState.FAILED


class WorkflowRun:
    """
    State of one workflow run.

    Owns the step name -> output map. Step threads insert their own output
    once they finish, under `_lock`. Each wave resolves inputs from a copy
    of the map taken at the wave barrier, so a step sees every earlier wave
    and nothing from its own.
    """

    def __init__(
        self,
        plan: ExecutionPlan,
        env: Optional[Sequence[str]] = None,
        *,
        verbose: bool = False,
        max_workers: Optional[int] = None,
        console: Optional[Console] = None,
    ):
        self.plan = plan
        self.env = list(env) if env is not None else None
        self.verbose = verbose
        self.max_workers = max_workers
        self.console = console or get_console()

        self.outputs: Dict[str, str] = {}
        self.results: List[StepResult] = []
        self.states: Dict[str, StepState] = {s.name: StepState.PENDING for wave in plan for s in wave}
        self.halted = False
        self._lock = threading.Lock()

    # ---- step lifecycle ----

    def _set_state(self, name: str, state: StepState) -> None:
        with self._lock:
            if self.states.get(name) in TERMINAL_STATES:
                raise RuntimeError(f"step '{name}' already finished ({self.states[name].value})")
            self.states[name] = state

    def _run_step(self, step: Step, visible: Dict[str, str]) -> StepResult:
        self._set_state(step.name, StepState.RUNNING)
        self.console.print_step_running(step.name)

        stdin_data = resolve_input(step.input, visible)
        result = execute_step(step, self.env, stdin_data)

        with self._lock:
            # inserted once, never updated
            if result.ok and step.name not in self.outputs:
                self.outputs[step.name] = result.output

        self.console.print_step_finished(result, verbose=self.verbose)
        return result

    # ---- waves ----

    def _pool_size(self, wave: List[Step]) -> int:
        if self.max_workers is None:
            return len(wave)
        return max(1, min(self.max_workers, len(wave)))

    def run_wave(self, index: int, wave: List[Step]) -> List[StepResult]:
        """Run every step of a wave concurrently and wait for all of them."""
        self.console.print_wave_start(index, len(wave))
        for step in wave:
            self._set_state(step.name, StepState.READY)

        # outputs of earlier waves only; siblings publish into self.outputs while this wave runs
        with self._lock:
            visible = dict(self.outputs)

        with ThreadPoolExecutor(max_workers=self._pool_size(wave), thread_name_prefix="step") as pool:
            futures = [pool.submit(self._run_step, step, visible) for step in wave]

        wave_results: List[StepResult] = []
        for step, fut in zip(wave, futures):
            try:
                result = fut.result()
            except Exception as e:
                logger.exception("step %s crashed", step.name)
                result = StepResult(step=step.name, exit_code=1, error=str(e) or type(e).__name__)
            self._set_state(step.name, _final_state(result))
            wave_results.append(result)

        return wave_results

    def _should_halt(self, wave: List[Step], wave_results: List[StepResult]) -> bool:
        for step, result in zip(wave, wave_results):
            if not result.ok and not step.continue_on_failure:
                logger.debug("step %s failed with on_fail=stop; skipping later waves", step.name)
                return True
        return False

    def run(self) -> List[StepResult]:
        """
        Execute waves in order.

        After each wave, a failed step whose on_fail is "stop" ends the run;
        the rest of that wave has already finished and is reported too.
        """
        for index, wave in enumerate(self.plan):
            wave_results = self.run_wave(index, wave)
            self.results.extend(wave_results)
            if self._should_halt(wave, wave_results):
                self.halted = True
                break
        return self.results


def run_workflow(
    workflow: Union[WorkflowSpec, ExecutionPlan],
    env: Optional[Sequence[str]] = None,
    *,
    verbose: bool = False,
    max_workers: Optional[int] = None,
    allow_cycles: bool = False,
    console: Optional[Console] = None,
) -> List[StepResult]:
    """
    Run a workflow and return its step results in execution order.

    Args:
        workflow: A validated WorkflowSpec, or an already resolved plan.
        env: `KEY=VALUE` strings given to every step (None = os.environ).
        verbose: Print a preview of each step's output.
        max_workers: Optional cap on concurrent steps within a wave.
            Default is one worker per step.
        allow_cycles: Run cyclic leftovers in a final wave instead of raising.

    Raises:
        CyclicDependencyError: the dependency graph has a cycle (unless allow_cycles).
    """
    plan = workflow if isinstance(workflow, ExecutionPlan) else resolve_waves(workflow, allow_cycles=allow_cycles)
    run = WorkflowRun(plan, env, verbose=verbose, max_workers=max_workers, console=console)
    return run.run()
