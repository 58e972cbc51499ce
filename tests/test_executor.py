from __future__ import annotations

import os
import time

import pytest

from palmcompose.dsl import sh, tool
from palmcompose.executor import execute_step

pytestmark = pytest.mark.skipif(os.name != "posix", reason="uses POSIX shell utilities")


def test_shell_command() -> None:
    result = execute_step(sh("test", "echo hello world"), list(f"{k}={v}" for k, v in os.environ.items()))

    assert result.step == "test"
    assert result.error == ""
    assert result.exit_code == 0
    assert result.output == "hello world\n"
    assert result.duration > 0
    assert result.ok


def test_failing_command() -> None:
    result = execute_step(sh("fail", "false"))

    assert result.error != ""
    assert result.exit_code == 1
    assert not result.ok


def test_failure_output_is_stderr() -> None:
    result = execute_step(sh("fail", "echo out; echo oops >&2; exit 3"))

    assert result.output == "oops\n"
    assert result.exit_code == 1
    assert result.error == "exit status 3"


def test_stdin_is_piped() -> None:
    result = execute_step(sh("stdin-test", "cat"), stdin_data="piped input")

    assert result.error == ""
    assert result.output == "piped input"


def test_no_input_means_empty_stdin() -> None:
    result = execute_step(sh("stdin-test", "cat"))

    assert result.ok
    assert result.output == ""


def test_tool_invocation_runs_without_shell() -> None:
    result = execute_step(tool("echo", "echo", "a  b", "$HOME"))

    assert result.output == "a  b $HOME\n"


def test_missing_tool_is_a_spawn_failure() -> None:
    result = execute_step(tool("ghost", "palm-compose-no-such-binary-7c1e"))

    assert result.exit_code == 1
    assert result.error
    assert result.output == ""


def test_env_is_passed_verbatim() -> None:
    env = [f"PATH={os.environ.get('PATH', '/usr/bin:/bin')}", "PALM_TEST_TOKEN=secret"]

    result = execute_step(sh("env", 'printf %s "$PALM_TEST_TOKEN"'), env)

    assert result.output == "secret"


def test_timeout_kills_the_process() -> None:
    start = time.monotonic()
    result = execute_step(sh("slow", "sleep 10", timeout=1))
    elapsed = time.monotonic() - start

    assert result.error == "timeout"
    assert result.timed_out
    assert result.exit_code == -1
    assert result.output == ""
    assert result.duration == pytest.approx(1.0)
    assert elapsed < 5


def test_fast_step_with_timeout_behaves_normally() -> None:
    result = execute_step(sh("quick", "echo done", timeout=5))

    assert result.ok
    assert result.output == "done\n"


def test_non_utf8_output_is_replaced() -> None:
    result = execute_step(sh("bin", r"printf '\377\376ok'"))

    assert result.ok
    assert result.exit_code == 0
    assert result.output == "��ok"
