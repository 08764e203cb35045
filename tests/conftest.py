from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from click.testing import CliRunner

# Register fixture plugins from tests/fixtures/
pytest_plugins = [
    "tests.fixtures.clock",
    "tests.fixtures.config",
]


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for test environment.

    Logs go to stderr at WARNING level so stream debug events do not mix
    with test stdout.
    """
    from treestream.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory to prevent
    tests that use os.chdir() from affecting other tests.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all TREESTREAM_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("TREESTREAM_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner.

    Example:
        >>> def test_version(cli_runner):
        ...     from treestream.main import cli
        ...     result = cli_runner.invoke(cli, ["--version"])
        ...     assert result.exit_code == 0
    """
    from click.testing import CliRunner

    return CliRunner()
