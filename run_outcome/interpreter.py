"""Interpret the result file written by the result listener."""

import asyncio
import logging
import shutil
import tempfile
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from run_outcome.collaborators import ResultParser
from run_outcome.config import ResolverConfig, ResultFormat
from run_outcome.logs import ExecutionLog, LogCollection
from run_outcome.models.result import ParsedResult

log = logging.getLogger(__name__)

SUMMARY_MARKER = "Tests run:"
FAILURE_MARKER = "[FAIL]"
DUMP_FENCE = "#" * 10


def scan_result_lines(lines: Iterable[str]) -> tuple[str | None, bool]:
    """Find the terminal summary line and whether any test failed.

    Scanning stops at the first summary line; failures after it are not seen.
    """
    failed = False
    for line in lines:
        if SUMMARY_MARKER in line:
            log.info("%s", line)
            return line, failed
        if FAILURE_MARKER in line:
            log.info("%s", line)
            failed = True
    return None, failed


@dataclass(frozen=True, kw_only=True)
class ResultFileInterpreter:
    """Turns the listener's result file into a verdict.

    When the app produced a structured document it is validated, renamed,
    enriched with attachments and rendered back into the result file as
    text. Otherwise the plain text output is scanned for summary lines.
    """

    config: ResolverConfig
    parser: ResultParser
    main_log: ExecutionLog
    logs: LogCollection

    async def interpret(self, result_path: Path, timed_out: bool) -> ParsedResult:
        """Interpret ``result_path``.

        Args:
            result_path: Raw output written by the listener
            timed_out: Whether the run already timed out; decides how an
                unreadable structured document is classified

        Returns:
            Summary line, failed and crashed flags

        """
        if not result_path.exists():
            # no output at all, the app died before writing anything
            return ParsedResult(crashed=True)

        xml_path = result_path.with_suffix(".xml")
        self.parser.clean_xml(result_path, xml_path)

        if self.config.results_use_xml:
            valid, result_format = self.parser.is_valid_xml(xml_path)
            if valid:
                return await self._interpret_structured(
                    result_path, xml_path, result_format, timed_out
                )

        xml_path.unlink(missing_ok=True)

        try:
            lines = await ExecutionLog(path=result_path).read_lines()
        except OSError as error:
            log.warning("Could not read result file %s: %s", result_path, error)
            return ParsedResult()

        summary_line, failed = scan_result_lines(lines)
        return ParsedResult(summary_line=summary_line, failed=failed)

    async def _interpret_structured(
        self,
        result_path: Path,
        xml_path: Path,
        result_format: ResultFormat,
        timed_out: bool,
    ) -> ParsedResult:
        current = xml_path
        try:
            destination = self.parser.get_xml_file_path(current, result_format)

            if result_format == "nunit-v3":
                run_name = f"{self.config.app_name} {self.config.variation}"
                # a distinct name keeps CI from uploading the results twice
                destination = self.parser.get_attachment_file_path(destination)
                self.parser.update_missing_data(
                    current, destination, run_name, self._attachments()
                )
            else:
                current.rename(destination)
            current = destination

            rendered = Path(tempfile.gettempdir()) / uuid.uuid4().hex
            summary_line, failed = self.parser.generate_human_readable_results(
                current, rendered, result_format
            )
            await asyncio.to_thread(shutil.copyfile, rendered, result_path)
            rendered.unlink(missing_ok=True)

            self.logs.add_file(current, "XmlLog")
            return ParsedResult(summary_line=summary_line, failed=failed)

        except Exception as error:
            log.warning("Could not parse xml result file %s", current, exc_info=True)
            self.main_log.write_line("Could not parse xml result file: %s", error)
            await self._dump(current)

            if timed_out:
                log.info("%s timed out", self.config.run_mode)
                return ParsedResult()

            log.info("%s crashed", self.config.run_mode)
            self.main_log.write_line("Test run crashed")
            return ParsedResult(crashed=True)

    async def _dump(self, path: Path) -> None:
        """Copy the unreadable document into the main log."""
        self.main_log.write_line("File data is:")
        self.main_log.write_line(DUMP_FENCE)
        for line in await ExecutionLog(path=path).read_lines():
            self.main_log.write_line(line)
        self.main_log.write_line(DUMP_FENCE)
        self.main_log.write_line("End of xml results.")

    def _attachments(self) -> Sequence[Path]:
        files = list(self.logs.files())
        # the run command has no build step, so there may be no build logs
        if self.config.build_logs_directory is not None:
            files.extend(
                LogCollection(directory=self.config.build_logs_directory).files()
            )
        return files
