"""Tests for the result file interpreter."""

from pathlib import Path

import pytest

from run_outcome.config import ResolverConfig
from run_outcome.interpreter import ResultFileInterpreter, scan_result_lines
from run_outcome.logs import ExecutionLog, LogCollection
from run_outcome.models.result import ParsedResult
from run_outcome.testing.factories import ResolverConfigFactory
from run_outcome.testing.fakes import FakeResultParser


@pytest.fixture
def parser() -> FakeResultParser:
    """Create a parser that finds no structured document."""
    return FakeResultParser()


@pytest.fixture
def result_path(tmp_path: Path) -> Path:
    """Path of the listener output."""
    return tmp_path / "test.log"


def make_interpreter(
    config: ResolverConfig,
    parser: FakeResultParser,
    main_log: ExecutionLog,
    logs: LogCollection,
) -> ResultFileInterpreter:
    return ResultFileInterpreter(
        config=config, parser=parser, main_log=main_log, logs=logs
    )


class TestScanResultLines:
    """Tests for scan_result_lines."""

    def test_summary_and_failure(self) -> None:
        """Returns the summary line and the failure flag."""
        assert scan_result_lines(["noise", "[FAIL] A", "Tests run: 5"]) == (
            "Tests run: 5",
            True,
        )

    def test_stops_at_summary(self) -> None:
        """Ignores failures printed after the summary."""
        assert scan_result_lines(["Tests run: 5", "[FAIL] late"]) == (
            "Tests run: 5",
            False,
        )

    def test_failures_without_summary(self) -> None:
        """Reports failures even when the summary never arrives."""
        assert scan_result_lines(["[FAIL] A", "[FAIL] B"]) == (None, True)


class TestPlainText:
    """Tests for plain text result files."""

    async def test_missing_file_is_crash(
        self,
        config: ResolverConfig,
        parser: FakeResultParser,
        main_log: ExecutionLog,
        logs: LogCollection,
        result_path: Path,
    ) -> None:
        """No result file at all means the app crashed."""
        interpreter = make_interpreter(config, parser, main_log, logs)

        for timed_out in (False, True):
            assert await interpreter.interpret(result_path, timed_out) == ParsedResult(
                summary_line=None, failed=False, crashed=True
            )

    async def test_scans_lines(
        self,
        config: ResolverConfig,
        parser: FakeResultParser,
        main_log: ExecutionLog,
        logs: LogCollection,
        result_path: Path,
    ) -> None:
        """Finds the summary and failures in plain output."""
        result_path.write_text("noise\n[FAIL] A\nTests run: 5\n")
        interpreter = make_interpreter(config, parser, main_log, logs)

        parsed = await interpreter.interpret(result_path, timed_out=False)

        assert parsed == ParsedResult(
            summary_line="Tests run: 5", failed=True, crashed=False
        )
        assert not result_path.with_suffix(".xml").exists()

    async def test_only_failures_is_unresolved(
        self,
        config: ResolverConfig,
        parser: FakeResultParser,
        main_log: ExecutionLog,
        logs: LogCollection,
        result_path: Path,
    ) -> None:
        """Failures without a summary leave the run unresolved."""
        result_path.write_text("[FAIL] A\n[FAIL] B\n")
        interpreter = make_interpreter(config, parser, main_log, logs)

        parsed = await interpreter.interpret(result_path, timed_out=False)

        assert parsed == ParsedResult(summary_line=None, failed=True, crashed=False)

    async def test_valid_xml_ignored_when_disabled(
        self,
        config: ResolverConfig,
        main_log: ExecutionLog,
        logs: LogCollection,
        result_path: Path,
    ) -> None:
        """Structured documents are not used when the run did not ask for them."""
        result_path.write_text("Tests run: 3\n")
        parser = FakeResultParser(valid=True, summary_line="Tests run: 99")
        interpreter = make_interpreter(config, parser, main_log, logs)

        parsed = await interpreter.interpret(result_path, timed_out=False)

        assert parsed.summary_line == "Tests run: 3"


class TestStructured:
    """Tests for structured result documents."""

    async def test_renders_human_readable_results(
        self,
        main_log: ExecutionLog,
        logs: LogCollection,
        result_path: Path,
    ) -> None:
        """Renames the document and replaces the result file with its rendering."""
        config = ResolverConfigFactory.build(result_format="nunit-v2")
        parser = FakeResultParser(
            valid=True,
            result_format="nunit-v2",
            summary_line="Tests run: 10 Passed: 9 Failed: 1",
            failed=True,
        )
        result_path.write_text("<xml/>")
        interpreter = make_interpreter(config, parser, main_log, logs)

        parsed = await interpreter.interpret(result_path, timed_out=False)

        assert parsed == ParsedResult(
            summary_line="Tests run: 10 Passed: 9 Failed: 1", failed=True
        )
        renamed = result_path.parent / "test-nunit-v2.xml"
        assert renamed.exists()
        assert not result_path.with_suffix(".xml").exists()
        assert result_path.read_text() == "Tests run: 10 Passed: 9 Failed: 1\n"
        assert [entry.path for entry in logs.entries] == [renamed]
        assert parser.updates == []

    async def test_adds_attachments_for_nunit_v3(
        self,
        main_log: ExecutionLog,
        logs: LogCollection,
        result_path: Path,
        tmp_path: Path,
    ) -> None:
        """Attaches run and build logs to NUnit v3 documents."""
        build_logs = tmp_path / "build"
        build_logs.mkdir()
        (build_logs / "build.log").write_text("built")
        main_log.write_line("started")
        config = ResolverConfigFactory.build(
            result_format="nunit-v3", build_logs_directory=build_logs
        )
        parser = FakeResultParser(valid=True, result_format="nunit-v3")
        result_path.write_text("<xml/>")
        interpreter = make_interpreter(config, parser, main_log, logs)

        parsed = await interpreter.interpret(result_path, timed_out=False)

        assert parsed.summary_line == parser.summary_line
        [(source, destination, run_name, attachments)] = parser.updates
        assert source == result_path.with_suffix(".xml")
        assert destination.name == "vsts-test-nunit-v3.xml"
        assert run_name == "monotouchtest Debug"
        assert main_log.path in attachments
        assert build_logs / "build.log" in attachments
        assert logs.entries[-1].path == destination

    @pytest.mark.parametrize(
        ("timed_out", "expected"),
        [
            (True, ParsedResult(crashed=False)),
            (False, ParsedResult(crashed=True)),
        ],
    )
    async def test_unreadable_document_is_recovered(
        self,
        main_log: ExecutionLog,
        logs: LogCollection,
        result_path: Path,
        timed_out: bool,
        expected: ParsedResult,
    ) -> None:
        """Dumps the document and falls back to timeout or crash."""
        config = ResolverConfigFactory.build(result_format="xunit")
        parser = FakeResultParser(
            valid=True,
            result_format="xunit",
            render_error=ValueError("unexpected element"),
        )
        result_path.write_text("<assemblies><broken>")
        interpreter = make_interpreter(config, parser, main_log, logs)

        parsed = await interpreter.interpret(result_path, timed_out=timed_out)

        assert parsed == expected
        dumped = main_log.path.read_text()
        assert "Could not parse xml result file: unexpected element" in dumped
        assert "#" * 10 + "\n<assemblies><broken>\n" + "#" * 10 in dumped
        assert "End of xml results." in dumped
