"""File-backed logs produced and consumed during a run."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ExecutionLog:
    """Append-only text log with a stable path."""

    path: Path
    description: str = ""

    def write_line(self, message: str, *args: object) -> None:
        """Append a line, formatting ``message`` %-style when args are given."""
        line = message % args if args else message
        with self.path.open("a", encoding="utf-8") as stream:
            stream.write(line + "\n")

    def exists(self) -> bool:
        return self.path.exists()

    async def read_lines(self) -> Sequence[str]:
        """Read the whole log, returning an empty list when it does not exist."""
        if not self.path.exists():
            return []
        text = await asyncio.to_thread(
            self.path.read_text, encoding="utf-8", errors="replace"
        )
        return text.splitlines()

    async def read_text(self) -> str:
        return await asyncio.to_thread(
            self.path.read_text, encoding="utf-8", errors="replace"
        )


@dataclass(kw_only=True)
class LogCollection:
    """Logs and artifacts of a run, registered for upload to CI."""

    directory: Path
    entries: list[ExecutionLog] = field(default_factory=list)

    def add(self, entry: ExecutionLog) -> None:
        if entry not in self.entries:
            self.entries.append(entry)

    def add_file(self, path: Path, description: str) -> ExecutionLog:
        entry = ExecutionLog(path=path, description=description)
        self.add(entry)
        log.debug("Registered %s as %s", path, description)
        return entry

    def files(self) -> Sequence[Path]:
        """Files currently present in the log directory, sorted by name."""
        if not self.directory.is_dir():
            return []
        return sorted(path for path in self.directory.iterdir() if path.is_file())
