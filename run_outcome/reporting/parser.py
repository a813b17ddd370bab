"""Report sink writing structured failure documents through the result parser."""

import logging
from dataclasses import dataclass

from run_outcome.collaborators import ResultParser
from run_outcome.config import ResolverConfig
from run_outcome.logs import LogCollection
from run_outcome.models.result import ReportEntry
from run_outcome.reporting.base import ReportSink

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ResultParserSink(ReportSink):
    """Writes the failure as a test result document CI can ingest.

    Runs that don't produce structured results have nowhere to put the
    failure, so nothing is written for them.
    """

    parser: ResultParser
    config: ResolverConfig
    logs: LogCollection

    async def emit(self, entry: ReportEntry) -> None:
        if not self.config.results_use_xml:
            log.debug("Structured results disabled, skipping %s report", entry.category)
            return

        self.parser.generate_failure(
            self.logs,
            entry.category,
            self.config.app_name,
            self.config.variation,
            entry.title,
            entry.detail,
            entry.source_log_path,
            self.config.result_format,
        )
