# instancetree/visibility.py
from __future__ import annotations

from typing import Dict, List, Tuple

from .model import Node
from .node_index import NodeIndex


class VisibilityState:
    """Expanded/collapsed flag per node.

    A node's visible children are its full_children while expanded and
    nothing while collapsed. The visible set is the root plus whatever is
    reachable through visible children.
    """

    def __init__(self, index: NodeIndex) -> None:
        self._index = index
        self._expanded: Dict[str, bool] = {n.id: True for n in index.preorder()}

    def is_expanded(self, node: Node) -> bool:
        return self._expanded[node.id]

    def toggle(self, node: Node) -> bool:
        """Flip `node` between expanded and collapsed; return the new state."""
        state = not self._expanded[node.id]
        self._expanded[node.id] = state
        return state

    def collapse_below_root(self) -> None:
        # One toggle per non-root node: the root stays open, so its direct
        # children are shown and everything deeper is hidden.
        for node in self._index.preorder():
            if not node.is_root:
                self.toggle(node)

    def visible_children(self, node: Node) -> Tuple[Node, ...]:
        return node.full_children if self._expanded[node.id] else ()

    def visible_nodes(self) -> List[Node]:
        out: List[Node] = []
        stack = [self._index.root]
        while stack:
            node = stack.pop()
            out.append(node)
            stack.extend(reversed(self.visible_children(node)))
        return out


__all__ = ["VisibilityState"]
