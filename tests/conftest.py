from __future__ import annotations

import io
from pathlib import Path

import pytest

from palmcompose.ui.console import Console, set_console


@pytest.fixture
def console() -> Console:
    """Console that writes into a buffer instead of stdout."""
    c = Console(stream=io.StringIO())
    set_console(c)
    return c


@pytest.fixture
def write_workflow(tmp_path: Path):
    def _write(content: str, name: str = "workflow.toml") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
