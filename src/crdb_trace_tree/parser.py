"""CSV trace export parser for CockroachDB debug traces."""

from __future__ import annotations

import csv
import io
import re
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

EXPECTED_HEADING = [
    "span_idx",
    "message_idx",
    "timestamp",
    "duration",
    "operation",
    "loc",
    "tag",
    "message",
    "age",
]


class FormatError(ValueError):
    """Raised when the CSV export does not have the expected shape."""


@dataclass
class LogMessage:
    """One log line recorded in a span."""

    idx: int
    age: int  # ns since the owning span started
    message: str


@dataclass
class TraceNode:
    """A span in the reconstructed trace tree."""

    span_id: int
    operation: str
    location: str
    tag: str
    timestamp: Optional[datetime]
    duration: int  # ns
    messages: List[LogMessage] = field(default_factory=list)
    children: List[TraceNode] = field(default_factory=list)
    attrs: Optional[Dict[str, str]] = None


_DURATION_RE = re.compile(
    r"(?:(\d*)s)?(?:(\d*)ms)?(?:(\d*)[μµ]s)?(?:(\d*)ns)?"
)


def parse_duration(text: str) -> int:
    """Parse a Go-style duration such as ``1s500ms`` into nanoseconds.

    Only the integer ``s``, ``ms``, ``μs`` and ``ns`` components are
    recognised, in that order, each optional. The export escapes
    backslashes and writes the micro sign as its octal UTF-8 bytes, so
    both are unescaped first. A string that does not match yields 0.
    """
    dur = text.replace("\\\\", "\\").replace("\\302\\265", "μ")
    match = _DURATION_RE.match(dur)  # every component is optional, so this always matches
    seconds, millis, micros, nanos = (int(g) if g else 0 for g in match.groups())
    return ((seconds * 1000 + millis) * 1000 + micros) * 1000 + nanos


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse an SQL/ISO 8601 timestamp into an aware UTC datetime.

    Timestamps without an offset are taken to be UTC. Returns None (with a
    warning) when the value cannot be parsed.
    """
    try:
        ts = datetime.fromisoformat(text.strip())
    except ValueError as exc:
        warnings.warn(f"Unparseable timestamp {text!r}: {exc}", stacklevel=2)
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _parse_int(value: str, column: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise FormatError(f"column {column}: expected an integer, got {value!r}") from None


def parse_row(columns: List[str]) -> TraceNode:
    """Convert one CSV data row into a single-message TraceNode.

    Raises FormatError if the row does not have exactly nine columns.
    """
    if len(columns) != len(EXPECTED_HEADING):
        raise FormatError(
            f"expected {len(EXPECTED_HEADING)} columns; got {len(columns)}: {columns}"
        )
    return TraceNode(
        span_id=_parse_int(columns[0], "span_idx"),
        timestamp=parse_timestamp(columns[2]),
        duration=parse_duration(columns[3]),
        operation=columns[4],
        location=columns[5],
        tag=columns[6],
        messages=[
            LogMessage(
                idx=_parse_int(columns[1], "message_idx"),
                message=columns[7],
                age=parse_duration(columns[8]),
            )
        ],
    )


def parse_rows(text: str) -> List[TraceNode]:
    """Tokenize CSV text, check the header and parse every data row.

    ``csv.Error`` from the tokenizer propagates unchanged.
    """
    rows = list(csv.reader(io.StringIO(text.strip())))
    if not rows:
        raise FormatError("parse error: 0 rows")
    header = rows[0]
    if header != EXPECTED_HEADING:
        raise FormatError(
            f"expected first row {','.join(EXPECTED_HEADING)}; got {','.join(header)}"
        )
    if len(rows) == 1:
        raise FormatError("parse error: no data rows after header")
    return [parse_row(row) for row in rows[1:]]

