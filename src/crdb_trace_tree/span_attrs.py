"""Span attribute interpreter — reads span-start attributes and processor ids."""

from __future__ import annotations

from typing import Dict, List, Optional

from crdb_trace_tree.parser import LogMessage, TraceNode
from crdb_trace_tree.tree import walk

SPAN_START = "=== SPAN START:"
ATTR_DELIMITER = ": "
PROCESSOR_ID_ATTR = "cockroach.processorid"


def get_attrs(messages: List[LogMessage]) -> Optional[Dict[str, str]]:
    """Extract ``key: value`` attributes from a span-start message.

    Only the first message is considered. Returns None if there are no
    messages or the first one is not a span-start message; this is
    distinct from an empty dict, which means the marker was present
    without attributes.
    """
    if not messages:
        return None
    first = messages[0].message
    if not first.startswith(SPAN_START):
        return None
    attrs: Dict[str, str] = {}
    for line in first.split("\n")[1:]:
        if not line:
            continue
        key, _, value = line.partition(ATTR_DELIMITER)
        attrs[key] = value
    return attrs


def set_attrs(root: TraceNode) -> None:
    """Set ``attrs`` on every node of a fully built tree."""
    for node in walk(root):
        node.attrs = get_attrs(node.messages)


def _processor_id(node: TraceNode) -> Optional[int]:
    if not node.attrs or PROCESSOR_ID_ATTR not in node.attrs:
        return None
    try:
        return int(node.attrs[PROCESSOR_ID_ATTR])
    except ValueError:
        return None


def processor_id_for_span_id(root: TraceNode, span_id: int) -> Optional[int]:
    """Return the processor id recorded on the span, or None.

    The first span with a matching id in preorder decides the result.
    """
    for node in walk(root):
        if node.span_id == span_id:
            return _processor_id(node)
    return None


def span_id_for_processor_id(root: TraceNode, processor_id: int) -> Optional[int]:
    """Return the id of the first span (preorder) recording the processor id."""
    # TODO: build a processor id index once per tree instead of walking it per call.
    for node in walk(root):
        if _processor_id(node) == processor_id:
            return node.span_id
    return None
