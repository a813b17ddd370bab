"""Resolve the authoritative outcome of a launched test run."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

from run_outcome.classifier import (
    build_report,
    crash_capture_grace,
    failure_message,
    find_crash_reason,
    select_category,
    tcp_connection_failed,
)
from run_outcome.collaborators import (
    CrashCapture,
    ProcessManager,
    ResultListener,
    ResultParser,
)
from run_outcome.config import ResolverConfig
from run_outcome.interpreter import ResultFileInterpreter
from run_outcome.logs import ExecutionLog, LogCollection
from run_outcome.models.result import (
    ParsedResult,
    ProcessResult,
    ReportEntry,
    ResolvedOutcome,
    RunOutcome,
)
from run_outcome.pid import pid_from_main_log
from run_outcome.reporting.base import ReportSink
from run_outcome.tracker import OutcomeTracker

log = logging.getLogger(__name__)


class OutcomeResolver:
    """Decides what happened to one test run and why.

    The harness feeds the launch and process completion signals through
    ``on_launch_completed`` and ``on_*_process_completed``; afterwards
    ``resolve_outcome`` interprets the result file, ends crash capture, looks
    for a crash reason, and emits at most one failure report. Resolution
    happens once: later calls return the same result.
    """

    def __init__(
        self,
        *,
        config: ResolverConfig,
        listener: ResultListener,
        parser: ResultParser,
        crash_capture: CrashCapture,
        process_manager: ProcessManager,
        main_log: ExecutionLog,
        run_log: ExecutionLog,
        logs: LogCollection,
        sinks: Sequence[ReportSink] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.listener = listener
        self.crash_capture = crash_capture
        self.main_log = main_log
        self.logs = logs
        self.sinks = sinks
        self.tracker = OutcomeTracker(
            config=config,
            listener=listener,
            process_manager=process_manager,
            main_log=main_log,
            run_log=run_log,
            clock=clock,
        )
        self.interpreter = ResultFileInterpreter(
            config=config, parser=parser, main_log=main_log, logs=logs
        )

        self._resolved: ResolvedOutcome | None = None
        self._lock = asyncio.Lock()
        self._crash_pid: int | None = None
        self._crash_pid_resolved = False

    def on_launch_completed(self, launch: asyncio.Future[bool]) -> None:
        self.tracker.on_launch_completed(launch)

    async def on_simulator_process_completed(
        self, process: Awaitable[ProcessResult]
    ) -> None:
        await self.tracker.collect_simulator_result(process)

    async def on_device_process_completed(
        self, process: Awaitable[ProcessResult]
    ) -> None:
        await self.tracker.collect_device_result(process)

    async def resolve_outcome(self) -> ResolvedOutcome:
        """Resolve the run, once.

        Returns:
            Outcome, failure message and the report emitted for CI, if any

        """
        async with self._lock:
            if self._resolved is None:
                self._resolved = await self._resolve()
            return self._resolved

    async def _resolve(self) -> ResolvedOutcome:
        tracker = self.tracker
        timed_out = tracker.timed_out
        succeeded, crashed = await self._read_results(timed_out)

        grace = crash_capture_grace(succeeded=succeeded, crashed=crashed)
        capture_ended = await self._end_capture(grace)

        outcome: RunOutcome
        if timed_out:
            outcome = "timed_out"
        elif crashed:
            outcome = "crashed"
        elif succeeded:
            outcome = "succeeded"
        else:
            outcome = "failed"
        log.info("Run outcome: %s", outcome)

        if outcome == "succeeded":
            return ResolvedOutcome(outcome=outcome)

        crash_reason: str | None = None
        if capture_ended:
            crash_reason = await find_crash_reason(
                self.crash_capture.snapshots,
                self._resolve_crash_pid,
                self.logs,
                self.main_log,
            )

        message = failure_message(
            crash_reason=crash_reason, launch_failure=tracker.launch_failure
        )
        category = await select_category(
            crash_reason=crash_reason,
            launch_failure=tracker.launch_failure,
            crashed=crashed,
            is_simulator=bool(tracker.is_simulator),
            timed_out=timed_out,
            tcp_check=self._tcp_connection_failed,
        )

        report: ReportEntry | None = None
        if category is not None:
            report = build_report(
                category,
                config=self.config,
                message=message,
                elapsed=tracker.stopwatch.elapsed,
                source_log_path=self.main_log.path,
            )
            await self._emit(report)

        return ResolvedOutcome(outcome=outcome, failure_message=message, report=report)

    async def _read_results(self, timed_out: bool) -> tuple[bool, bool]:
        """Return whether the tests succeeded and whether the app crashed."""
        mode = self.config.run_mode
        result_path = self.listener.test_log_path

        if result_path.exists():
            log.info("Result file: %s", result_path)
            try:
                parsed = await self.interpreter.interpret(result_path, timed_out)
            except Exception:
                log.error("Failed to interpret %s", result_path, exc_info=True)
                parsed = ParsedResult()

            if parsed.summary_line is not None:
                tests_run = parsed.summary_line.replace("Tests run: ", "")
                if parsed.failed:
                    log.info("%s failed: %s", mode, tests_run)
                    self.main_log.write_line("Test run failed")
                    return False, parsed.crashed
                log.info("%s succeeded: %s", mode, tests_run)
                self.main_log.write_line("Test run succeeded")
                return True, parsed.crashed

            if timed_out:
                log.info("%s timed out", mode)
                return False, False

            # the interpreter already reported a structured document it could not read
            if not parsed.crashed:
                self.main_log.write_line("Test run crashed")
            log.info("%s crashed", mode)
            return False, True

        if timed_out:
            log.info("%s never launched", mode)
            self.main_log.write_line("Test run never launched")
            return False, False

        if self.tracker.launch_failure:
            log.info("%s failed to launch", mode)
            self.main_log.write_line("Test run failed to launch")
            return False, False

        log.info("%s crashed at startup (no log)", mode)
        self.main_log.write_line(
            "Test run crashed before it started (no log file produced)"
        )
        return False, True

    async def _end_capture(self, grace: float) -> bool:
        allowance = grace + self.config.crash_capture_allowance
        try:
            await asyncio.wait_for(self.crash_capture.end_capture(grace), allowance)
        except TimeoutError:
            log.warning("Crash capture did not stop within %.0f seconds", allowance)
            self.main_log.write_line(
                "Crash capture did not stop within %s seconds, "
                "crash reports were not inspected.",
                allowance,
            )
            return False
        except Exception:
            log.warning("Failed to end crash capture", exc_info=True)
            return False
        return True

    async def _resolve_crash_pid(self) -> int | None:
        """Pid of the app for crash report lookups, resolved once per run."""
        if not self._crash_pid_resolved:
            self._crash_pid_resolved = True
            scan = await self.tracker.scan_run_log()
            self._crash_pid = scan.pid
            if self._crash_pid is None:
                self._crash_pid = pid_from_main_log(await self.main_log.read_lines())
            if self._crash_pid is None:
                log.info("Could not find the pid of the app, crash reports skipped")
        return self._crash_pid

    async def _tcp_connection_failed(self) -> bool:
        return tcp_connection_failed(await self.main_log.read_lines())

    async def _emit(self, report: ReportEntry) -> None:
        for sink in self.sinks:
            try:
                await sink.emit(report)
            except Exception:
                log.error(
                    "Failed to emit %s report to %s",
                    report.category,
                    type(sink).__name__,
                    exc_info=True,
                )
