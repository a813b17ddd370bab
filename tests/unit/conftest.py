"""Fixtures shared by unit tests."""

from pathlib import Path

import pytest

from run_outcome.config import ResolverConfig
from run_outcome.logs import ExecutionLog, LogCollection
from run_outcome.testing.factories import ResolverConfigFactory


@pytest.fixture
def config() -> ResolverConfig:
    """Create plain text results configuration."""
    return ResolverConfigFactory.build()


@pytest.fixture
def logs(tmp_path: Path) -> LogCollection:
    """Create the run's log collection."""
    directory = tmp_path / "logs"
    directory.mkdir()
    return LogCollection(directory=directory)


@pytest.fixture
def main_log(logs: LogCollection) -> ExecutionLog:
    """Create the main execution log."""
    return ExecutionLog(path=logs.directory / "main.log", description="Main log")


@pytest.fixture
def run_log(logs: LogCollection) -> ExecutionLog:
    """Create the launch tool log."""
    return ExecutionLog(path=logs.directory / "run.log", description="Run log")
