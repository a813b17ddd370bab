"""Find why the OS terminated a process, from a crash snapshot."""

import logging

from pydantic import ValidationError

from run_outcome.models.crash import CrashReport

log = logging.getLogger(__name__)


class CrashReportError(Exception):
    """Raised when a crash snapshot can't be parsed."""


def parse_crash_report(text: str, description: str = "") -> CrashReport:
    """Parse a crash snapshot.

    Snapshots are JSON, optionally preceded by a single-line JSON header
    (the ``.ips`` layout). When the whole text does not parse, the first line
    is dropped and the rest parsed as the report body.

    Raises:
        CrashReportError: If neither layout parses

    """
    try:
        return CrashReport.model_validate_json(text)
    except ValidationError as error:
        _, _, body = text.partition("\n")
        if body.strip():
            try:
                return CrashReport.model_validate_json(body)
            except ValidationError:
                pass
        raise CrashReportError(
            f"Malformed crash report '{description}': {error}"
        ) from error


def extract_reason(text: str, pid: int, description: str = "") -> str | None:
    """Return the termination reason recorded for ``pid``.

    Args:
        text: Contents of the crash snapshot
        pid: Process to look up
        description: Snapshot name used in error messages

    Returns:
        The reason of the first record for ``pid``, or None when there is no
        such record or its reason is empty

    Raises:
        CrashReportError: If the snapshot is malformed

    """
    if not text.strip():
        log.debug("Crash report '%s' is empty", description)
        return None

    report = parse_crash_report(text, description)
    records = report.records_for(pid)
    if not records:
        return None

    return records[0].reason or None
