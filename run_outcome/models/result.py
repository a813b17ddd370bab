"""Models for run outcomes and the records derived from them."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

RunOutcome = Literal["succeeded", "failed", "crashed", "timed_out"]
FailureCategory = Literal["crash", "launch", "tcp-connection", "timeout"]


@dataclass(frozen=True, kw_only=True)
class ProcessResult:
    """Exit status reported by the process runner."""

    exit_code: int
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        """Whether the process exited cleanly within its time budget."""
        return not self.timed_out and self.exit_code == 0


@dataclass(frozen=True, kw_only=True)
class ParsedResult:
    """What the result file says about the run.

    ``summary_line`` is ``None`` when no terminal summary was found.
    """

    summary_line: str | None = None
    failed: bool = False
    crashed: bool = False


@dataclass(frozen=True, kw_only=True)
class ReportEntry:
    """Failure record handed to the CI reporting sinks."""

    category: FailureCategory
    title: str
    detail: str
    source_log_path: Path


@dataclass(frozen=True, kw_only=True)
class ResolvedOutcome:
    """Final, authoritative result of one run."""

    outcome: RunOutcome
    failure_message: str | None = None
    report: ReportEntry | None = None
