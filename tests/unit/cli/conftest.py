"""Fixtures for CLI command tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest


@pytest.fixture
def isolated_cwd(
    temp_dir: Path, clean_env: None, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    """Run in an empty working directory with no user config."""
    os.chdir(temp_dir)
    monkeypatch.setattr(Path, "home", lambda: temp_dir)
    yield temp_dir


@pytest.fixture
def story(isolated_cwd: Path) -> Path:
    """A small tree document with text, an instant node and a nested stream."""
    path = isolated_cwd / "story.yaml"
    path.write_text(
        """
stream:
  speed: 2
  children:
    - "Once upon a time "
    - strong: "suddenly"
    - stream: " a nested tale"
    - " ended."
"""
    )
    return path
