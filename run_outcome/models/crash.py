"""Models for OS crash snapshots."""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import Field, ValidationError

from run_outcome.models.base import Model

log = logging.getLogger(__name__)


class ProcessRecord(Model):
    """A single process entry of a crash snapshot."""

    pid: int = Field(..., description="Process identifier")
    name: str | None = Field(default=None, description="Process name")
    reason: str | None = Field(
        default=None, description="Why the OS terminated the process"
    )


class CrashReport(Model):
    """Crash snapshot body: the processes the OS reported on.

    Records are kept raw and validated one by one, so an entry for an
    unrelated process that doesn't fit ``ProcessRecord`` is skipped instead
    of rejecting the whole snapshot.
    """

    processes: Sequence[Any] = Field(
        default_factory=list, description="Process records in report order"
    )

    def records(self) -> Sequence[ProcessRecord]:
        """Return the well-formed process records, in report order."""
        records = []
        for index, item in enumerate(self.processes):
            try:
                records.append(ProcessRecord.model_validate(item))
            except ValidationError as error:
                log.debug("Skipping process record %d: %s", index, error)
        return records

    def records_for(self, pid: int) -> Sequence[ProcessRecord]:
        """Return every record whose pid equals ``pid``, in report order."""
        return [record for record in self.records() if record.pid == pid]
