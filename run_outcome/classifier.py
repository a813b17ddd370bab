"""Pick the failure category of a run and explain it for CI."""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from pathlib import Path

from run_outcome.config import ResolverConfig
from run_outcome.crash import extract_reason
from run_outcome.logs import ExecutionLog, LogCollection
from run_outcome.models.result import FailureCategory, ReportEntry

log = logging.getLogger(__name__)

MEMORY_LIMIT_REASON = "per-process-limit"
TCP_FAILURE_PHRASE = "Couldn't establish a TCP connection with any of the hostnames"

# seconds the OS may need to write crash snapshots
SUCCESS_GRACE = 0.0
FAILURE_GRACE = 5.0
CRASH_GRACE = 30.0


def crash_capture_grace(*, succeeded: bool, crashed: bool) -> float:
    """How long crash capture waits for snapshots before it stops."""
    if crashed:
        return CRASH_GRACE
    if not succeeded:
        return FAILURE_GRACE
    return SUCCESS_GRACE


def describe_crash(reason: str) -> str:
    if reason == MEMORY_LIMIT_REASON:
        return "Killed due to using too much memory (per-process-limit)."
    return f"Killed by the OS ({reason})"


def failure_message(*, crash_reason: str | None, launch_failure: bool) -> str | None:
    """Short explanation of a failed run, None when nothing is known."""
    if crash_reason:
        return describe_crash(crash_reason)
    if launch_failure:
        return "Launch failure"
    return None


def tcp_connection_failed(lines: Iterable[str]) -> bool:
    """Whether the device reported it could not reach the host."""
    return any(TCP_FAILURE_PHRASE in line for line in lines)


async def find_crash_reason(
    snapshots: Sequence[ExecutionLog],
    resolve_pid: Callable[[], Awaitable[int | None]],
    logs: LogCollection,
    main_log: ExecutionLog,
) -> str | None:
    """Search crash snapshots in order for the reason the app was killed.

    Every snapshot is registered with ``logs``. A snapshot that can't be
    processed is logged and skipped. The first non-empty reason wins.
    """
    for snapshot in snapshots:
        try:
            logs.add(snapshot)

            pid = await resolve_pid()
            if pid is None:
                continue

            reason = extract_reason(
                await snapshot.read_text(), pid, snapshot.description
            )
            if reason:
                return reason
        except Exception as error:
            log.warning(
                "Failed to process crash report '%s'",
                snapshot.description,
                exc_info=True,
            )
            main_log.write_line(
                "Failed to process crash report '%s': %s", snapshot.description, error
            )
    return None


async def select_category(
    *,
    crash_reason: str | None,
    launch_failure: bool,
    crashed: bool,
    is_simulator: bool,
    timed_out: bool,
    tcp_check: Callable[[], Awaitable[bool]],
) -> FailureCategory | None:
    """Decision table for the failure category, first match wins.

    ``tcp_check`` is only awaited for device crashes without a known reason.
    """
    if crash_reason:
        return "crash"
    if launch_failure:
        return "launch"
    if crashed and not is_simulator and await tcp_check():
        return "tcp-connection"
    if timed_out:
        return "timeout"
    return None


def build_report(
    category: FailureCategory,
    *,
    config: ResolverConfig,
    message: str | None,
    elapsed: float,
    source_log_path: Path,
) -> ReportEntry:
    """Title and detail of the CI failure record for ``category``."""
    app = f"{config.app_name} {config.variation}"
    # simulators have no device name
    device = config.device_name or ""

    match category:
        case "crash":
            title = f"App Crash {app}"
            detail = message or "Killed by the OS"
        case "launch":
            title = f"App Launch {app} on {device}"
            detail = f"{message} on {device}"
        case "tcp-connection":
            title = f"TcpConnection on {device}"
            detail = f"Device {device} could not reach the host over tcp."
        case "timeout":
            minutes = round(elapsed / 60, 2)
            title = f"App Timeout {app} on bot {device}"
            detail = (
                f"{app} Test run timed out after {minutes} minute(s) on bot {device}."
            )

    return ReportEntry(
        category=category,
        title=title,
        detail=detail,
        source_log_path=source_log_path,
    )
