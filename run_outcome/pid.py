"""Extract process ids and launch markers from launch tool output."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

log = logging.getLogger(__name__)

LAUNCHED_PREFIX = "Application launched. PID = "
HOSTING_LAUNCHED = "Launched "
HOSTING_WITH_PID = " with pid "
# Launch tool error codes: app failed to start / launch request rejected
LAUNCH_ERROR_MARKERS = ("error MT1007", "error MT1008")
# Launched through gdbserver, termination of the app can't be detected
EXIT_NOT_OBSERVABLE_MARKER = "MT1111: "

MAIN_LOG_PID_PATTERN = re.compile(r"was launched with pid '([^']*)'")

MarkerKind = Literal["pid", "launch-error", "exit-not-observable"]


@dataclass(frozen=True, kw_only=True)
class LaunchMarker:
    """A recognised line of launch tool output."""

    kind: MarkerKind
    pid: int | None = None


@dataclass(frozen=True, kw_only=True)
class LaunchLogScan:
    """Everything a single pass over the launch log tells us."""

    pid: int | None = None
    launch_failure: bool = False
    exit_observable: bool = True
    empty: bool = False


def _parse_pid(text: str, line: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        log.warning("Could not parse pid from line: %s", line)
        return None


def classify_line(line: str) -> LaunchMarker | None:
    """Classify one line of launch tool output.

    Returns None for lines that carry no marker, including pid lines whose
    number can't be parsed.
    """
    if line.startswith(LAUNCHED_PREFIX):
        pid = _parse_pid(line[len(LAUNCHED_PREFIX) :], line)
        return LaunchMarker(kind="pid", pid=pid) if pid is not None else None

    if HOSTING_LAUNCHED in line and HOSTING_WITH_PID in line:
        pid = _parse_pid(line[line.rfind(" ") :], line)
        return LaunchMarker(kind="pid", pid=pid) if pid is not None else None

    if any(marker in line for marker in LAUNCH_ERROR_MARKERS):
        return LaunchMarker(kind="launch-error")

    if EXIT_NOT_OBSERVABLE_MARKER in line:
        return LaunchMarker(kind="exit-not-observable")

    return None


def scan_launch_log(lines: Iterable[str]) -> LaunchLogScan:
    """Classify every line of the launch log in one pass.

    The first pid found wins. An empty log means the launch tool never got
    as far as starting the app, which counts as a launch failure.
    """
    pid: int | None = None
    launch_failure = False
    exit_observable = True
    empty = True

    for line in lines:
        empty = False
        marker = classify_line(line)
        if marker is None:
            continue
        if marker.kind == "pid" and pid is None:
            pid = marker.pid
        elif marker.kind == "launch-error":
            launch_failure = True
        elif marker.kind == "exit-not-observable":
            exit_observable = False

    return LaunchLogScan(
        pid=pid,
        launch_failure=launch_failure or empty,
        exit_observable=exit_observable,
        empty=empty,
    )


def resolve_pid(lines: Iterable[str]) -> int | None:
    """Return the pid reported by the launch tool, or None if absent."""
    return scan_launch_log(lines).pid


def pid_from_main_log(lines: Iterable[str]) -> int | None:
    """Return the pid from a ``was launched with pid '<pid>'`` line."""
    for line in lines:
        match = MAIN_LOG_PID_PATTERN.search(line)
        if match is None:
            continue
        try:
            return int(match.group(1))
        except ValueError:
            log.debug("Ignoring non numeric pid in main log: %s", line)
    return None
