"""Span tree builder — reconstructs span nesting from interleaved log rows."""

from __future__ import annotations

from typing import Iterator, List

from crdb_trace_tree.parser import FormatError, TraceNode


class _AncestryStack:
    """Stack of currently open spans. Never shrinks below its bottom frame."""

    def __init__(self, bottom: TraceNode) -> None:
        self._frames: List[TraceNode] = [bottom]

    @property
    def top(self) -> TraceNode:
        return self._frames[-1]

    def __len__(self) -> int:
        return len(self._frames)

    def __contains__(self, span_id: object) -> bool:
        return any(frame.span_id == span_id for frame in self._frames)

    def push(self, node: TraceNode) -> None:
        self._frames.append(node)

    def pop(self) -> TraceNode:
        if len(self._frames) <= 1:
            raise IndexError("cannot pop the root frame")
        return self._frames.pop()


def _absorb(node: TraceNode, row: TraceNode) -> None:
    """Append a row's messages to an already open span."""
    node.messages.extend(row.messages)
    # Tags may be logged after the span was created.
    if not node.tag and row.tag:
        node.tag = row.tag


def build_tree(rows: List[TraceNode]) -> TraceNode:
    """Build a span tree from single-message rows in file order.

    Returns the root, which is the first row.

    - A row for the span on top of the stack adds a message to it
    - A row for a span further down the stack means the spans above it
      finished; they are popped and the row is added to that span
    - A row for any other span opens a new child span. If its first
      message is younger than the latest message of the top span, the new
      span was started by an ancestor, so the stack is popped until the
      ages line up (never past the root)
    - Span ids are compared for equality only, never by magnitude
    """
    if not rows:
        raise FormatError("cannot build a trace tree from 0 rows")

    root = rows[0]
    stack = _AncestryStack(root)

    for row in rows[1:]:
        cur = stack.top
        if row.span_id == cur.span_id:
            _absorb(cur, row)
        elif row.span_id in stack:
            while stack.top.span_id != row.span_id:
                stack.pop()
            _absorb(stack.top, row)
        else:
            age = row.messages[0].age
            while age < stack.top.messages[-1].age and len(stack) > 1:
                stack.pop()
            stack.top.children.append(row)
            stack.push(row)

    return root


def walk(node: TraceNode) -> Iterator[TraceNode]:
    """Yield every node of the tree in preorder.

    Uses an explicit work list, so nesting depth is not limited by the
    interpreter's recursion limit.
    """
    pending = [node]
    while pending:
        current = pending.pop()
        yield current
        pending.extend(reversed(current.children))


def count_nodes(node: TraceNode) -> int:
    """Return the number of spans in the tree rooted at ``node``."""
    return sum(1 for _ in walk(node))
