# instancetree/node_index.py
from __future__ import annotations

from collections import deque
from typing import Dict, Iterator, List

from .model import Node


class NodeIndex:
    """id -> Node lookup plus the per-node facts fixed at construction.

    Fills, exactly once per node:
      - descendant_ids: self + every node below it in the full tree
      - depth: distance from the root
      - height: longest path down to a leaf of the full tree
    Expand/collapse never touches any of these.
    """

    def __init__(self, root: Node) -> None:
        self.root = root
        self._by_id: Dict[str, Node] = {}
        self._preorder: List[Node] = []

        stack = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            node.depth = depth
            self._by_id[node.id] = node
            self._preorder.append(node)
            # reversed so the first child is visited first
            for child in reversed(node.full_children):
                stack.append((child, depth + 1))

        # Children come after their parent in pre-order, so walking it
        # backwards finalizes every subtree before its parent needs it.
        for node in reversed(self._preorder):
            ids = {node.id}
            height = 0
            for child in node.full_children:
                ids |= child.descendant_ids
                height = max(height, child.height + 1)
            node.descendant_ids = frozenset(ids)
            node.height = height

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def get(self, node_id: str) -> Node:
        return self._by_id[node_id]

    def preorder(self) -> Iterator[Node]:
        return iter(self._preorder)

    def breadth_first(self, start: Node | None = None) -> Iterator[Node]:
        queue = deque([start or self.root])
        while queue:
            node = queue.popleft()
            yield node
            queue.extend(node.full_children)

    def leaves(self) -> List[Node]:
        return [n for n in self._preorder if not n.full_children]


__all__ = ["NodeIndex"]
