"""
NodePath: location of a node in the plan tree.

Rules attach paths to their warnings so a UI can highlight the offending
node; formatting is identical regardless of which rule produced the path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from querygovernor.plan.models import PlanNode


class NodePath:
    """
    Immutable path from the root to a node.

    Example:
        path = NodePath.root()           # ("Plan",)
        child = path.child(0)            # ("Plan", "Plans[0]")
        str(child.child(2))              # "Plan → Plans[0] → Plans[2]"
    """

    __slots__ = ("_segments",)

    def __init__(self, segments: tuple[str, ...] | None = None) -> None:
        self._segments: tuple[str, ...] = segments or ("Plan",)

    @classmethod
    def root(cls) -> "NodePath":
        return cls(("Plan",))

    @property
    def segments(self) -> tuple[str, ...]:
        return self._segments

    def child(self, index: int) -> "NodePath":
        return NodePath(self._segments + (f"Plans[{index}]",))

    @property
    def depth(self) -> int:
        """Number of child navigations from the root (0 for the root)."""
        return len(self._segments) - 1

    def __str__(self) -> str:
        return " → ".join(self._segments)

    def __repr__(self) -> str:
        return f"NodePath({'.'.join(self._segments)})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NodePath):
            return self._segments == other._segments
        return False

    def __hash__(self) -> int:
        return hash(self._segments)


def traverse_with_path(root: "PlanNode") -> Iterator[tuple[NodePath, "PlanNode"]]:
    """
    Depth-first, pre-order traversal yielding (path, node).

    Iterative so that very deep plans cannot hit the recursion limit.
    """
    stack: list[tuple[NodePath, PlanNode]] = [(NodePath.root(), root)]
    while stack:
        path, node = stack.pop()
        yield path, node
        for index in range(len(node.children) - 1, -1, -1):
            stack.append((path.child(index), node.children[index]))
