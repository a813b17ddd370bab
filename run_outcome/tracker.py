"""Track the coarse outcome of a launched test run."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Literal

from run_outcome.collaborators import ProcessManager, ResultListener
from run_outcome.config import ResolverConfig
from run_outcome.logs import ExecutionLog
from run_outcome.models.result import ProcessResult
from run_outcome.pid import LaunchLogScan, scan_launch_log
from run_outcome.waits import wait_until

log = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Test run timed out after %s minute(s)."
COMPLETION_MESSAGE = "Test run completed"
FAILURE_MESSAGE = "Test run failed"

CoarseOutcome = Literal["timed_out", "succeeded", "failed"]


class Stopwatch:
    """Elapsed time since a start point, on a monotonic clock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started = clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started


class OutcomeTracker:
    """Per-run state machine: running, then timed out or completed.

    One instance is built per run. It races process completion against the
    listener when the launch tool can't observe the app exiting, records a
    single coarse outcome and owns the cancellation signal set when the
    launch itself times out.
    """

    def __init__(
        self,
        *,
        config: ResolverConfig,
        listener: ResultListener,
        process_manager: ProcessManager,
        main_log: ExecutionLog,
        run_log: ExecutionLog,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.listener = listener
        self.process_manager = process_manager
        self.main_log = main_log
        self.run_log = run_log
        self.timeout = config.timeout
        self.stopwatch = Stopwatch(clock)
        self.cancellation = asyncio.Event()

        self.coarse: CoarseOutcome | None = None
        self.timed_out = False
        self.launch_failure = False
        self.is_simulator: bool | None = None
        self.launch_scan: LaunchLogScan | None = None
        self.kill_requested = False

    @property
    def success(self) -> bool | None:
        """None while running, then whether the run completed successfully."""
        if self.coarse is None:
            return None
        return self.coarse == "succeeded"

    async def await_completion(self, process: Awaitable[ProcessResult]) -> None:
        """Wait for the process and record the coarse outcome once."""
        if self.coarse is not None:
            log.debug("Outcome already recorded as %s", self.coarse)
            return

        result = await process
        timed_out = result.timed_out or self.cancellation.is_set()

        scan = await self.scan_run_log()
        if scan.launch_failure and not scan.empty:
            self.launch_failure = True

        if not scan.exit_observable and not timed_out:
            self.main_log.write_line(
                "Waiting for listener to complete, since the launch tool won't tell."
            )
            remaining = self.timeout - self.stopwatch.elapsed
            completed = await wait_until(
                self.listener.completion,
                timeout=remaining,
                cancellation=self.cancellation,
            )
            if not completed:
                timed_out = True

        if self.coarse is not None:
            return

        if timed_out:
            self.timed_out = True
            self.coarse = "timed_out"
            self.main_log.write_line(TIMEOUT_MESSAGE, self.timeout / 60)
        elif result.succeeded:
            self.coarse = "succeeded"
            self.main_log.write_line(COMPLETION_MESSAGE)
        else:
            self.coarse = "failed"
            self.main_log.write_line(FAILURE_MESSAGE)
        log.info("Coarse run outcome: %s", self.coarse)

    async def scan_run_log(self) -> LaunchLogScan:
        """Classify the launch tool output, reading it only once per run."""
        if self.launch_scan is None:
            self.launch_scan = scan_launch_log(await self.run_log.read_lines())
        return self.launch_scan

    def on_launch_completed(self, launch: asyncio.Future[bool]) -> None:
        """Record how the launch went; usable as a future done callback."""
        if launch.cancelled():
            self.main_log.write_line("Test launch was cancelled.")
        elif (error := launch.exception()) is not None:
            self.main_log.write_line("Test launch failed: %s", error)
        elif launch.result():
            self.main_log.write_line("Test run started")
        else:
            self.cancellation.set()
            self.main_log.write_line(
                "Test launch timed out after %s minute(s).",
                self.config.launch_timeout / 60,
            )
            self.timed_out = True

    async def collect_simulator_result(
        self, process: Awaitable[ProcessResult]
    ) -> None:
        """Wait for a simulator run and kill the app if it got stuck."""
        self.is_simulator = True
        await self.await_completion(process)

        if self.success or self.kill_requested:
            return
        self.kill_requested = True

        scan = await self.scan_run_log()
        self.launch_failure = scan.launch_failure
        if scan.pid is not None and scan.pid > 0:
            await self.kill_app_process(scan.pid)
        else:
            self.main_log.write_line("Could not find pid in launch tool output.")

    async def collect_device_result(self, process: Awaitable[ProcessResult]) -> None:
        self.is_simulator = False
        await self.await_completion(process)

    async def kill_app_process(self, pid: int) -> None:
        launch_timed_out = self.cancellation.is_set()
        timeout_type = "Launch" if launch_timed_out else "Completion"
        timeout_value = (
            self.config.launch_timeout if launch_timed_out else self.timeout
        )

        self.main_log.write_line(
            "%s timed out after %s seconds", timeout_type, timeout_value
        )
        await self.process_manager.kill_tree(pid, self.main_log)
