"""Abstract base class for CI failure report sinks."""

from abc import ABC, abstractmethod

from run_outcome.models.result import ReportEntry


class ReportSink(ABC):
    """Destination of the failure record produced for a run."""

    @abstractmethod
    async def emit(self, entry: ReportEntry) -> None:
        """Publish ``entry``.

        Args:
            entry: Failure record of the run

        """
