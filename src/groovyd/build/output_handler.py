"""
Compiler output parsing.

The compiler process writes structured records to its output, mixed with
whatever else the VM prints (warnings, stack traces). Records are framed by
start/end markers and their fields are separated by SEPARATOR:

    %%m<category>%%s<message>%%s<url>%%s<line>%%s<column>%%/m
    %%rc<path>%%/rc
    %%c<output path>%%s<source path>%%/c

A record starts at the beginning of a line; a start marker anywhere else is
plain text. The body may span lines (stack traces inside messages) and the
line terminator after the end marker belongs to the record.

Everything outside a record is kept verbatim as unparsed output. Text may
arrive in arbitrary chunks: an incomplete line or a record whose end marker
has not arrived yet is held back until it does, and whatever is still held
when the process exits becomes unparsed output.
"""

import threading
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

from ..model import CompiledArtifact, CompilerDiagnostic, Severity

MESSAGES_START = "%%m"
MESSAGES_END = "%%/m"
TO_RECOMPILE_START = "%%rc"
TO_RECOMPILE_END = "%%/rc"
COMPILED_START = "%%c"
COMPILED_END = "%%/c"
SEPARATOR = "%%s"

RECORD_MARKERS: Dict[str, str] = {
    TO_RECOMPILE_START: TO_RECOMPILE_END,
    MESSAGES_START: MESSAGES_END,
    COMPILED_START: COMPILED_END,
}

MESSAGE_FIELDS = 5
COMPILED_FIELDS = 2


def format_message(
    category: str,
    message: str,
    url: Optional[str] = None,
    line: int = -1,
    column: int = -1
) -> str:
    """Format a message record the way the compiler process emits it."""
    fields = [category, message, url or "", str(line), str(column)]
    return MESSAGES_START + SEPARATOR.join(fields) + MESSAGES_END


def format_recompile(path: str) -> str:
    """Format a to-recompile record."""
    return TO_RECOMPILE_START + path + TO_RECOMPILE_END


def format_compiled(output_path: str, source_path: str) -> str:
    """Format a compiled-file record."""
    return COMPILED_START + output_path + SEPARATOR + source_path + COMPILED_END


def _parse_position(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return -1


class CompilerOutputParser:
    """Incrementally classifies compiler output into records.

    notify_text() may be called from a reader thread while another thread
    waits for the process; state is guarded by a lock. Call finish() once the
    stream is exhausted, then read the results.

    Usage:
        parser = CompilerOutputParser()
        parser.notify_text(chunk)
        ...
        parser.finish()
        for diagnostic in parser.get_compiler_messages():
            print(diagnostic.message)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._line: List[str] = []
        self._record: Optional[str] = None
        self._record_lines: List[str] = []
        self._unparsed: List[str] = []
        self._messages: List[CompilerDiagnostic] = []
        self._to_recompile: Dict[Path, None] = {}
        self._compiled: Dict[CompiledArtifact, None] = {}
        self._finished = False

    def notify_text(self, text: str) -> None:
        """Feed a chunk of process output."""
        if not text:
            return
        with self._lock:
            start = 0
            newline = text.find("\n")
            while newline != -1:
                self._line.append(text[start:newline + 1])
                self._parse_line("".join(self._line))
                self._line = []
                start = newline + 1
                newline = text.find("\n", start)
            if start < len(text):
                self._line.append(text[start:])

    def finish(self) -> None:
        """Mark the stream as complete; held text becomes unparsed output."""
        with self._lock:
            if self._line:
                self._parse_line("".join(self._line))
                self._line = []
            if self._record is not None:
                self._unparsed.extend(self._record_lines)
                self._record = None
                self._record_lines = []
            self._finished = True

    @property
    def is_finished(self) -> bool:
        return self._finished

    @staticmethod
    def _record_start(line: str) -> Optional[str]:
        for marker in RECORD_MARKERS:
            if line.startswith(marker):
                return marker
        return None

    def _parse_line(self, line: str) -> None:
        """Classify one line, which ends with a newline unless it is the last."""
        offset = 0
        if self._record is None:
            marker = self._record_start(line)
            if marker is None:
                self._unparsed.append(line)
                return
            self._record = marker
            offset = len(marker)

        end_marker = RECORD_MARKERS[self._record]
        end = line.find(end_marker, offset)
        if end == -1:
            self._record_lines.append(line)
            return

        marker = self._record
        record_end = end + len(end_marker)
        raw = "".join(self._record_lines) + line[:record_end]
        self._record = None
        self._record_lines = []

        rest = line[record_end:]
        if not self._handle_record(marker, raw[len(marker):-len(end_marker)]):
            self._unparsed.append(raw + rest)
        elif rest.rstrip("\r\n"):
            self._unparsed.append(rest)

    def _handle_record(self, marker: str, body: str) -> bool:
        """Store a record; returns False if its body is malformed."""
        if marker == MESSAGES_START:
            fields = body.split(SEPARATOR)
            if len(fields) != MESSAGE_FIELDS:
                return False
            category, message, url, line, column = fields
            url = url.strip()
            self._messages.append(
                CompilerDiagnostic(
                    severity=Severity.from_category(category.strip()),
                    message=message,
                    url=url.replace("\\", "/") if url and url != "null" else None,
                    line=_parse_position(line),
                    column=_parse_position(column),
                )
            )
        elif marker == TO_RECOMPILE_START:
            path = body.strip()
            if not path:
                return False
            self._to_recompile[Path(path)] = None
        elif marker == COMPILED_START:
            fields = body.split(SEPARATOR)
            if len(fields) != COMPILED_FIELDS or not fields[1].strip():
                return False
            self._compiled[CompiledArtifact(output_path=fields[0].strip(), source_path=fields[1].strip())] = None
        return True

    def get_compiler_messages(self) -> List[CompilerDiagnostic]:
        """Get parsed diagnostics in arrival order."""
        with self._lock:
            return list(self._messages)

    def get_to_recompile_files(self) -> FrozenSet[Path]:
        """Get paths the compiler asked to recompile."""
        with self._lock:
            return frozenset(self._to_recompile)

    def get_recompile_order(self) -> List[Path]:
        """Get recompile paths in the order they were first reported."""
        with self._lock:
            return list(self._to_recompile)

    def get_successfully_compiled(self) -> FrozenSet[CompiledArtifact]:
        """Get compiled-file records."""
        with self._lock:
            return frozenset(self._compiled)

    def get_unparsed_output(self) -> str:
        """Get text that was not part of any record, verbatim."""
        with self._lock:
            return "".join(self._unparsed)
