from __future__ import annotations

import pytest

from palmcompose.git_facts import git


def test_query_runs_the_mapped_git_command(monkeypatch) -> None:
    seen = {}

    def fake_check_output(cmd, **kwargs):
        seen["cmd"] = cmd
        seen["errors"] = kwargs.get("errors")
        return "abc123 first commit\n"

    monkeypatch.setattr(git.subprocess, "check_output", fake_check_output)

    assert git.query("log") == "abc123 first commit\n"
    assert seen["cmd"] == ["git", "log", "--oneline", "-10"]
    assert seen["errors"] == "replace"


def test_unknown_query() -> None:
    assert git.supported_queries() == ["diff", "log"]
    with pytest.raises(KeyError):
        git.query("blame")
