from __future__ import annotations

import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from palmcompose.cli import cli
from palmcompose.env import StaticEnvProvider

pytestmark = pytest.mark.skipif(os.name != "posix", reason="uses POSIX shell utilities")


def _invoke(args, tmp_path: Path):
    runner = CliRunner()
    with runner.isolated_filesystem(temp_dir=tmp_path):
        return runner.invoke(cli, args, catch_exceptions=False)


def test_run_success(tmp_path: Path) -> None:
    path = tmp_path / "ok.toml"
    path.write_text(
        """
name = "greet"

[[steps]]
name = "hello"
run = "echo hello"

[[steps]]
name = "shout"
run = "tr a-z A-Z"
input = "step:hello"
depends_on = ["hello"]
"""
    )

    result = _invoke(["run", "--file", str(path), "--verbose"], tmp_path)

    assert result.exit_code == 0, result.output
    assert "Workflow: greet" in result.output
    assert "HELLO" in result.output
    assert "Workflow complete" in result.output


def test_run_failure_exits_1(tmp_path: Path) -> None:
    path = tmp_path / "bad.toml"
    path.write_text('[[steps]]\nname = "boom"\nrun = "exit 4"\n')

    result = _invoke(["run", "-f", str(path)], tmp_path)

    assert result.exit_code == 1
    assert "boom" in result.output


def test_invalid_workflow_exits_1(tmp_path: Path) -> None:
    path = tmp_path / "dup.toml"
    path.write_text('[[steps]]\nname = "x"\nrun = "true"\n\n[[steps]]\nname = "x"\nrun = "true"\n')

    result = _invoke(["run", "-f", str(path)], tmp_path)

    assert result.exit_code == 1
    assert "duplicate step name" in result.output


def test_cycle_needs_flag(tmp_path: Path) -> None:
    path = tmp_path / "cycle.toml"
    path.write_text(
        '[[steps]]\nname = "a"\nrun = "true"\ndepends_on = ["b"]\n\n'
        '[[steps]]\nname = "b"\nrun = "true"\ndepends_on = ["a"]\n'
    )

    assert _invoke(["run", "-f", str(path)], tmp_path).exit_code == 1
    assert _invoke(["run", "-f", str(path), "--allow-cycles"], tmp_path).exit_code == 0


def test_plan_and_dry_run_do_not_execute(tmp_path: Path) -> None:
    marker = tmp_path / "ran"
    path = tmp_path / "plan.toml"
    path.write_text(
        f"""
[[steps]]
name = "a"
run = "touch {marker}"

[[steps]]
name = "b"
tool = "ollama"
args = ["run", "llama3.3"]
input = "step:a"
depends_on = ["a"]

[[steps]]
name = "c"
run = "true"
depends_on = ["a"]
"""
    )

    plan = _invoke(["plan", "-f", str(path)], tmp_path)
    dry = _invoke(["run", "-f", str(path), "--dry-run"], tmp_path)

    for result in (plan, dry):
        assert result.exit_code == 0, result.output
        assert "Parallel group 2" in result.output
        assert "ollama run llama3.3" in result.output
        assert "input: step:a" in result.output
    assert not marker.exists()


def test_missing_file(tmp_path: Path) -> None:
    result = _invoke(["run", "-f", "no-such-workflow-91ab.toml"], tmp_path)

    assert result.exit_code == 1
    assert "palm-compose init" in result.output


def test_init_creates_then_refuses(tmp_path: Path) -> None:
    runner = CliRunner()
    with runner.isolated_filesystem(temp_dir=tmp_path):
        first = runner.invoke(cli, ["init"])
        assert first.exit_code == 0
        assert Path(".palm-compose.toml").exists()

        second = runner.invoke(cli, ["init"])
        assert second.exit_code == 0
        assert "already exists" in second.output

        dry = runner.invoke(cli, ["plan"])
        assert dry.exit_code == 0
        assert "code-review" in dry.output


def test_run_uses_env_provider_from_context(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("PALM_COMPOSE_TOKEN", raising=False)
    path = tmp_path / "env.toml"
    path.write_text('[[steps]]\nname = "show"\nrun = "printf \\"token=$PALM_COMPOSE_TOKEN\\""\n')

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["run", "-f", str(path), "--verbose"],
        obj={"env_provider": StaticEnvProvider({"PALM_COMPOSE_TOKEN": "abc"})},
        catch_exceptions=False,
    )

    assert result.exit_code == 0, result.output
    assert "token=abc" in result.output
