"""
Script generation service.

Drives a table's row stream and writes a complete data script to a
caller-owned text sink, one row at a time:

1. header comment block, optional ``USE`` directive and transaction begin
2. scalar-variable declarations (legacy compatibility)
3. the unconditional pre-delete of a Replace script
4. per row: comment, position marker, changed SET block (legacy),
   statement(s), periodic PRINT progress marker
5. final progress marker and transaction commit

Generation stops at the first error; output already written to the sink is
incomplete and must be discarded by the caller. There is no cancellation
other than abandoning the sink.
"""

from __future__ import annotations

import getpass
import io
import os
import platform
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, TextIO, Union

from data_script_hub.config import ScriptOptions, Settings, get_settings
from data_script_hub.infrastructure.sql.core.identifier import (
    qualify_table,
    quote_identifier,
)
from data_script_hub.infrastructure.sql.dialects.compatibility import HoistState
from data_script_hub.infrastructure.sql.operations.statements import RowStatementBuilder
from data_script_hub.utils.logging import get_logger

from .exceptions import ScriptGenerationError
from .models import ScriptRow, ScriptTable
from .types import ScriptType

logger = get_logger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class ScriptAuthor:
    """Who and where a script was generated, for the header line."""

    user: str
    domain: str
    machine: str

    @classmethod
    def from_environment(cls, settings: Optional[Settings] = None) -> "ScriptAuthor":
        """Resolve the author from settings overrides, else the host."""
        settings = settings or get_settings()
        machine = settings.author_machine or platform.node() or "localhost"
        return cls(
            user=settings.author_user or _current_user(),
            domain=settings.author_domain or os.environ.get("USERDOMAIN") or machine,
            machine=machine,
        )


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        # No login name available (e.g. containers without a passwd entry)
        return os.environ.get("USER") or os.environ.get("USERNAME") or "unknown"


class ScriptGenerator:
    """
    Generator for the complete script of one table.

    Args:
        table: Filled table to script
        options: Script type, transaction wrapping, progress gap and line
            terminator; defaults come from settings
        author: Header author; resolved from the environment when omitted
        clock: Returns the header timestamp; ``datetime.now`` by default
    """

    def __init__(
        self,
        table: ScriptTable,
        options: Optional[ScriptOptions] = None,
        author: Optional[ScriptAuthor] = None,
        clock: Optional[Clock] = None,
    ):
        self.table = table
        self.options = options or ScriptOptions.from_settings()
        self.author = author or ScriptAuthor.from_environment()
        self.clock = clock or datetime.now
        self.statements = RowStatementBuilder(table.formatter, self.options.line_terminator)

    def generate(self, sink: TextIO) -> int:
        """
        Write the script to ``sink`` and flush it.

        The sink is not closed; the caller owns its lifetime.

        Returns:
            Number of rows scripted

        Raises:
            ScriptGenerationError: If any row cannot be scripted
        """
        table = self.table
        script_type = self.options.script_type
        log = logger.bind(table=table.name, script_type=script_type.value)
        log.info("script_generation_started", rows=len(table))

        count = 0
        try:
            self._write_prologue(sink)

            state = HoistState()
            for row in table:
                state = self._write_row(sink, row, count, state)
                count += 1
                gap = self.options.progress_gap
                if gap > 0 and count % gap == 0:
                    self._line(sink, self._progress(count))

            self._write_epilogue(sink, count)
        except ScriptGenerationError as exc:
            log.error("script_generation_failed", rows_written=count, **exc.to_dict())
            raise
        finally:
            sink.flush()

        log.info("script_generation_completed", rows=count)
        return count

    def _line(self, sink: TextIO, text: str = "") -> None:
        sink.write(text)
        sink.write(self.options.line_terminator)

    def _progress(self, count: int) -> str:
        return f"PRINT '{self.table.name}:{count}/{len(self.table)} COMPLETE'"

    def _write_prologue(self, sink: TextIO) -> None:
        table = self.table
        script_type = self.options.script_type
        terminator = self.options.line_terminator
        metadata = table.metadata

        stamp = self.clock().strftime("%Y-%m-%d %H:%M:%S")
        self._line(
            sink,
            f"/** Auto-Generated {script_type.value} Script. Created {stamp} by "
            f"{self.author.user}@{self.author.domain} on {self.author.machine} **/",
        )
        where = f" Where: {metadata.restriction}" if metadata.restriction else ""
        self._line(
            sink,
            f"/** {script_type.value} {len(table)} Rows. Table: {table.name}{where} **/",
        )

        comment = metadata.header_comment(terminator)
        if comment:
            self._line(sink, f"/** {comment} **/")

        if metadata.use_database:
            self._line(sink, f"USE {quote_identifier(metadata.use_database)}")

        if self.options.use_transaction:
            self._line(sink, "BEGIN TRANSACTION")

        declarations = table.declarations()
        if declarations:
            self._line(sink, "/** sub query declarations **/")
            for declaration in declarations:
                self._line(sink, declaration)

        if script_type is ScriptType.REPLACE:
            self._line(sink, f"/** delete all records from {table.name} **/")
            self._line(sink, f"DELETE FROM {qualify_table(table.name)}")

    def _write_row(
        self, sink: TextIO, row: ScriptRow, position: int, state: HoistState
    ) -> HoistState:
        table = self.table
        script_type = self.options.script_type

        # Render everything first so a failing row writes nothing
        try:
            state, assignments = table.compatibility.hoist(row, table.formatter, state)
            statements = self._statements_for(row, script_type)
        except ScriptGenerationError:
            raise
        except Exception as exc:
            raise ScriptGenerationError(
                f"Could not script row: {exc}",
                table_name=table.name,
                row_index=row.sequence_id,
            ) from exc

        if row.comment:
            self._line(sink, f"/** {row.comment} **/")
        self._line(
            sink, f"/** {table.name}:{script_type.value}:{position}/{len(table)} **/"
        )
        for assignment in assignments:
            self._line(sink, assignment)
        for statement in statements:
            self._line(sink, statement)
        return state

    def _statements_for(self, row: ScriptRow, script_type: ScriptType) -> List[str]:
        if script_type in (ScriptType.INSERT, ScriptType.REPLACE):
            return [self.statements.insert(row)]
        if script_type is ScriptType.UPDATE:
            return [self.statements.update(row)]
        if script_type is ScriptType.DELETE:
            return [self.statements.delete(row)]
        if script_type is ScriptType.INSERT_UPDATE:
            return self.statements.insert_or_update(row)
        if script_type is ScriptType.DELETE_INSERT:
            return self.statements.delete_then_insert(row)
        raise ValueError(f"Unsupported script type: {script_type}")

    def _write_epilogue(self, sink: TextIO, count: int) -> None:
        if self.options.progress_gap > 0:
            self._line(sink, self._progress(count))
        if self.options.use_transaction:
            self._line(sink, "COMMIT;")
            self._line(sink, "-- ROLLBACK;")


def generate_script(
    table: ScriptTable,
    sink: TextIO,
    options: Optional[ScriptOptions] = None,
    author: Optional[ScriptAuthor] = None,
    clock: Optional[Clock] = None,
) -> int:
    """Stream the script for ``table`` to a caller-owned text sink."""
    return ScriptGenerator(table, options, author, clock).generate(sink)


def generate_script_text(
    table: ScriptTable,
    options: Optional[ScriptOptions] = None,
    author: Optional[ScriptAuthor] = None,
    clock: Optional[Clock] = None,
) -> str:
    """Render the script for ``table`` into a string."""
    buffer = io.StringIO()
    generate_script(table, buffer, options, author, clock)
    return buffer.getvalue()


def default_script_file_name(
    table: ScriptTable, script_type: ScriptType, now: Optional[datetime] = None
) -> str:
    """
    File name for a generated script.

    Examples:
        >>> default_script_file_name(table, ScriptType.INSERT, datetime(2024, 3, 9, 14, 5))
        'Insert_Person_202403091405.sql'
    """
    now = now or datetime.now()
    safe_name = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in table.name)
    return f"{script_type.value}_{safe_name}_{now.strftime('%Y%m%d%H%M')}.sql"


def write_script_file(
    table: ScriptTable,
    directory: Union[str, Path],
    options: Optional[ScriptOptions] = None,
    author: Optional[ScriptAuthor] = None,
    clock: Optional[Clock] = None,
    encoding: Optional[str] = None,
) -> Path:
    """
    Write the script for ``table`` to a new file in ``directory``.

    The file is opened with ``newline=""`` so the configured line
    terminator is written unchanged.

    Returns:
        Path of the written file
    """
    options = options or ScriptOptions.from_settings()
    encoding = encoding or get_settings().output_encoding
    clock = clock or datetime.now

    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / default_script_file_name(table, options.script_type, clock())

    with open(path, "w", encoding=encoding, newline="") as handle:
        generate_script(table, handle, options, author, clock)

    logger.info("script_file_written", table=table.name, path=str(path))
    return path


__all__ = [
    "ScriptAuthor",
    "ScriptGenerator",
    "generate_script",
    "generate_script_text",
    "default_script_file_name",
    "write_script_file",
]
