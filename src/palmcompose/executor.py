# executor.py
from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from typing import Dict, List, Optional, Sequence

from .env import env_to_dict
from .model import TIMEOUT_ERROR, Step, StepResult

logger = logging.getLogger(__name__)

_POSIX = os.name == "posix"


def _exit_error(returncode: int) -> str:
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"signal: {name}"
    return f"exit status {returncode}"


def _kill(proc: subprocess.Popen) -> None:
    """Kill the step and anything it spawned (a `sh -c` child may outlive sh)."""
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


def execute_step(step: Step, env: Optional[Sequence[str]] = None, stdin_data: str = "") -> StepResult:
    """
    Run one step as a subprocess and capture the outcome.

    Args:
        step: The step to run. Shell commands go through `sh -c`, tools are
              executed directly with their args.
        env: `KEY=VALUE` strings for the process; None inherits os.environ.
        stdin_data: Text written to the process's stdin (empty = no stdin).

    Returns:
        StepResult. Never raises for execution problems:
          - exit 0          -> output=stdout, exit_code=0
          - non-zero / spawn failure -> output=stderr, exit_code=1, error set
          - timeout         -> output="", exit_code=-1, error="timeout",
                               duration=step.timeout
    """
    argv: List[str] = step.action.argv()
    proc_env: Optional[Dict[str, str]] = env_to_dict(env) if env is not None else None
    timeout = step.timeout if step.has_timeout else None

    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE if stdin_data else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=proc_env,
            text=True,
            encoding="utf-8",
            errors="replace",  # non-UTF-8 output must not fail the step
            start_new_session=_POSIX,  # own process group so a timeout can kill the whole tree
        )
    except OSError as e:
        logger.debug("step %s failed to start: %s", step.name, e)
        return StepResult(
            step=step.name,
            output="",
            duration=time.monotonic() - start,
            exit_code=1,
            error=str(e),
        )

    try:
        stdout, stderr = proc.communicate(input=stdin_data or None, timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill(proc)
        proc.communicate()  # reap; output of a timed-out step is discarded
        logger.debug("step %s killed after %ss", step.name, timeout)
        return StepResult(
            step=step.name,
            output="",
            duration=float(timeout),
            exit_code=-1,
            error=TIMEOUT_ERROR,
        )

    elapsed = time.monotonic() - start
    if proc.returncode != 0:
        return StepResult(
            step=step.name,
            output=stderr,
            duration=elapsed,
            exit_code=1,
            error=_exit_error(proc.returncode),
        )

    return StepResult(step=step.name, output=stdout, duration=elapsed, exit_code=0)
