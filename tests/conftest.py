"""
Pytest configuration and Hypothesis strategies for property-based testing.

This module provides helpers for writing CSV trace exports and custom
Hypothesis strategies that emit well-formed interleaved span rows together
with the span tree they were generated from.
"""

import csv
import io
import itertools
from dataclasses import dataclass, field

from hypothesis import strategies as st

HEADER = [
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

DEFAULT_TIMESTAMP = "2021-04-12 19:07:30.505934+00:00"


# ============================================================================
# CSV Building Blocks
# ============================================================================


def format_duration(ns: int) -> str:
    """Format nanoseconds the way Go prints durations in the export, e.g. ``1s500ms``."""
    parts = []
    for unit, size in (("s", 10**9), ("ms", 10**6), ("µs", 10**3), ("ns", 1)):
        value, ns = divmod(ns, size)
        if value:
            parts.append(f"{value}{unit}")
    return "".join(parts) or "0s"


def make_row(
    span_id: int,
    idx: int,
    message: str = "log line",
    age: int = 0,
    tag: str = "",
    operation: str = "op",
    location: str = "",
    duration: str = "1ms",
    timestamp: str = DEFAULT_TIMESTAMP,
) -> list[str]:
    """Build one CSV data row with ``age`` given in nanoseconds."""
    return [
        str(span_id),
        str(idx),
        timestamp,
        duration,
        operation,
        location,
        tag,
        message,
        format_duration(age),
    ]


def to_csv(rows: list[list[str]], header: list[str] | None = None) -> str:
    """Serialize rows (with the standard header) to CSV text."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADER if header is None else header)
    writer.writerows(rows)
    return buf.getvalue()


def span_start_message(operation: str, **attrs: str) -> str:
    lines = [f"=== SPAN START: {operation} ==="]
    lines.extend(f"{key}: {value}" for key, value in attrs.items())
    return "\n".join(lines)


# ============================================================================
# Span Trace Strategies
# ============================================================================


@dataclass
class GeneratedTrace:
    """CSV rows emitted for a generated span tree, plus what should be rebuilt."""

    rows: list[list[str]] = field(default_factory=list)
    root_id: int = 0
    children: dict[int, list[int]] = field(default_factory=dict)
    message_counts: dict[int, int] = field(default_factory=dict)
    tags: dict[int, str] = field(default_factory=dict)
    processor_ids: dict[int, int] = field(default_factory=dict)


@st.composite
def span_trace(draw, max_depth: int = 3, max_children: int = 3) -> GeneratedTrace:
    """
    Generate an interleaved row log for a random span tree.

    Rows are emitted depth first. Every span logs a span-start message when
    it opens and its parent logs a message after each child finishes, so the
    stream unwinds the way the tracer writes it. Ages come from one
    increasing clock and message indices from one increasing counter.

    Span ids are unique but drawn in random order, so they carry no
    nesting information.

    Args:
        max_depth: Maximum tree depth
        max_children: Maximum children per node

    Returns:
        GeneratedTrace with the rows and the expected tree shape
    """
    max_spans = sum(max_children**d for d in range(max_depth + 1))
    span_ids = iter(
        draw(
            st.lists(
                st.integers(min_value=1, max_value=10**9),
                min_size=max_spans,
                max_size=max_spans,
                unique=True,
            )
        )
    )
    processor_ids = iter(
        draw(
            st.lists(
                st.integers(min_value=0, max_value=10**6),
                min_size=max_spans,
                max_size=max_spans,
                unique=True,
            )
        )
    )
    clock = itertools.count(0, 1000)
    counter = itertools.count()
    trace = GeneratedTrace()

    def emit(span_id: int, message: str, tag: str = "") -> None:
        trace.rows.append(
            make_row(span_id, next(counter), message=message, age=next(clock), tag=tag)
        )
        trace.message_counts[span_id] = trace.message_counts.get(span_id, 0) + 1

    def generate(depth: int) -> int:
        span_id = next(span_ids)
        trace.children[span_id] = []
        tag = draw(st.sampled_from(["", "txn", "flow", "sql"]))

        attrs = {"cockroach.node": str(depth)}
        if draw(st.booleans()):
            processor_id = next(processor_ids)
            attrs["cockroach.processorid"] = str(processor_id)
            trace.processor_ids[span_id] = processor_id
        emit(span_id, span_start_message(f"op{span_id}", **attrs))

        num_children = draw(st.integers(min_value=0, max_value=max_children)) if depth < max_depth else 0
        for _ in range(num_children):
            trace.children[span_id].append(generate(depth + 1))
            emit(span_id, "child finished", tag=tag)

        # Extra lines logged on the span itself; the tag may arrive on any of them.
        for _ in range(draw(st.integers(min_value=0, max_value=2))):
            emit(span_id, "event", tag=tag)

        later_rows = trace.message_counts[span_id] > 1
        trace.tags[span_id] = tag if later_rows else ""
        return span_id

    trace.root_id = generate(0)
    return trace
