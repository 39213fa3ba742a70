"""CLI entry point for crdb-trace-tree."""

from __future__ import annotations

import argparse
import csv
import sys

from crdb_trace_tree import __version__
from crdb_trace_tree.loader import parse_file
from crdb_trace_tree.parser import FormatError
from crdb_trace_tree.span_attrs import processor_id_for_span_id, span_id_for_processor_id
from crdb_trace_tree.tree import count_nodes, walk


def main() -> int:
    """CLI entry point. Returns 0 on success, 1 on error or failed lookup."""
    parser = argparse.ArgumentParser(
        prog="crdb-trace-tree",
        description="Rebuild the span tree of a CockroachDB debug trace CSV export",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "input",
        help="Trace CSV path (.csv or .csv.gz), or - for stdin",
    )
    lookup = parser.add_mutually_exclusive_group()
    lookup.add_argument(
        "--span",
        type=int,
        default=None,
        help="Print the processor id recorded on this span id",
    )
    lookup.add_argument(
        "--processor",
        type=int,
        default=None,
        help="Print the span id that recorded this processor id",
    )

    args = parser.parse_args()

    # parse → build tree → set attrs
    try:
        root = parse_file(args.input)
    except FormatError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as exc:
        print(f"Error: input is not valid UTF-8: {exc}", file=sys.stderr)
        return 1
    except csv.Error as exc:
        print(f"Error: malformed CSV: {exc}", file=sys.stderr)
        return 1
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except PermissionError as exc:
        print(f"Error: Permission denied — {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.span is not None:
        processor_id = processor_id_for_span_id(root, args.span)
        if processor_id is None:
            print(f"span {args.span}: processor id not found")
            return 1
        print(processor_id)
        return 0

    if args.processor is not None:
        span_id = span_id_for_processor_id(root, args.processor)
        if span_id is None:
            print(f"processor {args.processor}: span not found")
            return 1
        print(span_id)
        return 0

    messages = sum(len(n.messages) for n in walk(root))
    print(
        f"Trace parsed: {args.input} "
        f"(root {root.operation!r}, {count_nodes(root)} spans, {messages} messages)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
