"""Rebuild CockroachDB debug trace trees from their CSV export."""

from crdb_trace_tree.loader import parse_csv, parse_file, parse_stream
from crdb_trace_tree.parser import FormatError, LogMessage, TraceNode, parse_duration
from crdb_trace_tree.span_attrs import processor_id_for_span_id, span_id_for_processor_id

__version__ = "0.1.0"

__all__ = [
    "FormatError",
    "LogMessage",
    "TraceNode",
    "parse_csv",
    "parse_duration",
    "parse_file",
    "parse_stream",
    "processor_id_for_span_id",
    "span_id_for_processor_id",
]
