"""Abstract seams to the components that run around outcome resolution.

The process runner, the result listener, the result parser, and crash
capture are owned by the surrounding harness. Only the operations the
resolver relies on are declared here.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Sequence
from pathlib import Path

from run_outcome.config import ResultFormat
from run_outcome.logs import ExecutionLog, LogCollection
from run_outcome.models.result import FailureCategory


class ProcessManager(ABC):
    """Process control offered by the process runner."""

    @abstractmethod
    async def kill_tree(self, pid: int, log: ExecutionLog) -> None:
        """Terminate ``pid`` and all of its children, logging to ``log``."""


class ResultListener(ABC):
    """Channel receiving the raw test output from the application."""

    @property
    @abstractmethod
    def completion(self) -> Awaitable[object]:
        """Resolves once the listener considers itself done receiving data."""

    @property
    @abstractmethod
    def test_log_path(self) -> Path:
        """Where the raw test output is, or will be, written."""


class CrashCapture(ABC):
    """Collector of OS crash snapshots for the duration of a run."""

    @abstractmethod
    async def end_capture(self, grace: float) -> None:
        """Stop capturing after waiting ``grace`` seconds for late snapshots."""

    @property
    @abstractmethod
    def snapshots(self) -> Sequence[ExecutionLog]:
        """Captured snapshots in discovery order; complete after end_capture."""


class ResultParser(ABC):
    """Parser of structured test result documents."""

    @abstractmethod
    def clean_xml(self, source: Path, destination: Path) -> None:
        """Extract the structured document embedded in raw output."""

    @abstractmethod
    def is_valid_xml(self, path: Path) -> tuple[bool, ResultFormat]:
        """Check whether ``path`` holds a known structured document."""

    @abstractmethod
    def get_xml_file_path(self, path: Path, result_format: ResultFormat) -> Path:
        """Final path of a structured document of the given format."""

    @abstractmethod
    def get_attachment_file_path(self, path: Path) -> Path:
        """Path of the copy that CI uploads once attachments are added."""

    @abstractmethod
    def update_missing_data(
        self,
        source: Path,
        destination: Path,
        run_name: str,
        attachments: Sequence[Path],
    ) -> None:
        """Write ``source`` to ``destination`` with run name and attachments."""

    @abstractmethod
    def generate_human_readable_results(
        self, source: Path, destination: Path, result_format: ResultFormat
    ) -> tuple[str, bool]:
        """Render ``source`` as text into ``destination``.

        Returns:
            The summary line and whether any test failed

        """

    @abstractmethod
    def generate_failure(
        self,
        logs: LogCollection,
        category: FailureCategory,
        app_name: str,
        variation: str,
        title: str,
        message: str,
        log_path: Path,
        result_format: ResultFormat,
    ) -> None:
        """Write a structured failure document for CI into ``logs``."""
