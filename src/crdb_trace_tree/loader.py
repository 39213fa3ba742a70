"""Trace loading pipeline: CSV text → rows → tree → attributes."""

from __future__ import annotations

import gzip
import sys
from typing import IO

from crdb_trace_tree.parser import TraceNode, parse_rows
from crdb_trace_tree.span_attrs import set_attrs
from crdb_trace_tree.tree import build_tree


def parse_csv(text: str) -> TraceNode:
    """Parse a full CSV trace export into a trace tree.

    Raises FormatError on a bad header, no data rows or a bad row; no
    partial tree is returned.
    """
    root = build_tree(parse_rows(text))
    set_attrs(root)
    return root


def parse_stream(stream: IO) -> TraceNode:
    """Parse a CSV export from an open text or binary stream.

    Bytes that are not valid UTF-8 are replaced rather than rejected.
    """
    data = stream.read()
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return parse_csv(data)


def parse_file(path: str) -> TraceNode:
    """Parse a CSV export file.

    Supports:
    - Plain text ``.csv`` files
    - Gzip-compressed ``.csv.gz`` files
    - ``-`` for stdin
    """
    if path == "-":
        return parse_stream(sys.stdin)

    if path.endswith(".gz"):
        with gzip.open(path, "rt", encoding="utf-8", errors="replace", newline="") as f:
            return parse_stream(f)

    with open(path, encoding="utf-8", errors="replace", newline="") as f:
        return parse_stream(f)
