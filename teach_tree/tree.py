"""
Interaction Tree - shared-prefix aggregation of mined patterns.

Nodes are stored in a flat arena addressed by integer index, with a
separate id lookup. A node id is derived from its parent's id, its
abbreviation and its position in the chain, so the same pattern set
always produces the same ids and visibility state survives rebuilds.
"""

import logging
from typing import Any, Iterable, Iterator, Optional, Sequence

import numpy as np

from .config import TeachTreeConfig
from .models import ChildShare, PatternRecord, TreeNode
from .vocabulary import full_name

logger = logging.getLogger(__name__)


ID_SEPARATOR = "-"
ID_ESCAPE = "~"


def escape_abbr(abbr: str) -> str:
    """Escape the id separator and escape character inside an abbreviation."""
    return abbr.replace(ID_ESCAPE, ID_ESCAPE * 2).replace(ID_SEPARATOR, ID_ESCAPE + ID_SEPARATOR)


def make_node_id(parent_id: str, abbr: str, position: int) -> str:
    """
    Id of the child at chain position ``position`` (0-based).

    Vocabulary codes keep the plain ``root-TQ-0`` form; pass-through labels
    containing ``-`` or ``~`` are escaped so distinct paths never share an id.
    """
    return f"{parent_id}{ID_SEPARATOR}{escape_abbr(abbr)}{ID_SEPARATOR}{position}"


class InteractionTree:
    """Arena of TreeNode with an id index and a (parent, abbr) child index."""

    def __init__(
        self,
        root_id: str = "root",
        root_abbr: str = "ROOT",
        root_label: str = "根节点",
    ):
        root = TreeNode(index=0, id=root_id, abbr=root_abbr, label=root_label, depth=0)
        self.nodes: list[TreeNode] = [root]
        self._by_id: dict[str, int] = {root_id: 0}
        self._by_edge: dict[tuple[int, str], int] = {}

    @property
    def root(self) -> TreeNode:
        return self.nodes[0]

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._by_id

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self.nodes)

    def get(self, node_id: str) -> Optional[TreeNode]:
        """Look up a node by id."""
        index = self._by_id.get(node_id)
        return None if index is None else self.nodes[index]

    def children(self, node: TreeNode) -> list[TreeNode]:
        return [self.nodes[i] for i in node.children]

    def parent(self, node: TreeNode) -> Optional[TreeNode]:
        return None if node.parent is None else self.nodes[node.parent]

    def child(self, node: TreeNode, abbr: str) -> Optional[TreeNode]:
        """Direct child of ``node`` with the given abbreviation."""
        index = self._by_edge.get((node.index, abbr))
        return None if index is None else self.nodes[index]

    def add_child(self, node: TreeNode, abbr: str, label: Optional[str] = None) -> TreeNode:
        """Find or create the child of ``node`` keyed by ``abbr``."""
        existing = self.child(node, abbr)
        if existing is not None:
            return existing

        index = len(self.nodes)
        child = TreeNode(
            index=index,
            id=make_node_id(node.id, abbr, node.depth),
            abbr=abbr,
            label=label if label is not None else abbr,
            depth=node.depth + 1,
            parent=node.index,
        )
        self.nodes.append(child)
        self._by_id[child.id] = index
        self._by_edge[(node.index, abbr)] = index
        node.children.append(index)
        return child

    def descendants(self, node: TreeNode) -> Iterator[TreeNode]:
        """Pre-order descendants of ``node`` (excluding it), via an explicit stack."""
        stack = list(reversed(node.children))
        while stack:
            current = self.nodes[stack.pop()]
            yield current
            stack.extend(reversed(current.children))

    def path_to(self, node: TreeNode) -> list[TreeNode]:
        """Nodes from the first level down to ``node``; empty for the root."""
        path = []
        current: Optional[TreeNode] = node
        while current is not None and current.parent is not None:
            path.append(current)
            current = self.parent(current)
        path.reverse()
        return path

    def node_ids(self) -> set[str]:
        """Ids of every non-root node."""
        return {node.id for node in self.nodes[1:]}

    def leaves(self) -> list[TreeNode]:
        return [node for node in self.nodes[1:] if node.is_leaf]

    def to_dict(self, node: Optional[TreeNode] = None) -> dict[str, Any]:
        """Nested dictionary rooted at ``node`` (the root if None)."""
        node = node or self.root
        data = node.to_dict()
        data["children"] = [self.to_dict(child) for child in self.children(node)]
        return data


class TreeBuilder:
    """
    Insert mined patterns into an InteractionTree.

    Each pattern walks from the root, finding or creating one child per
    abbreviation and adding the pattern's count to every node on the way.
    Pattern order only affects child insertion order.
    """

    def __init__(self, config: Optional[TeachTreeConfig] = None):
        self.config = config or TeachTreeConfig()

    def build(self, patterns: Sequence[PatternRecord]) -> InteractionTree:
        """
        Build and enrich a tree.

        Args:
            patterns: Mined PatternRecord list (may be empty)

        Returns:
            InteractionTree whose root count is the number of patterns
        """
        tree = InteractionTree(
            root_id=self.config.root_id,
            root_abbr=self.config.root_abbr,
            root_label=self.config.root_label,
        )
        tree.root.count = len(patterns)

        # arena index -> [sum(score * count), sum(count)]
        score_totals: dict[int, list[float]] = {}

        for record in patterns:
            current = tree.root
            for abbr in record.pattern:
                current = tree.add_child(
                    current,
                    abbr,
                    full_name(abbr, self.config.label_abbreviations),
                )
                current.count += record.count

                if record.avg_score is not None:
                    totals = score_totals.setdefault(current.index, [0.0, 0])
                    totals[0] += record.avg_score * record.count
                    totals[1] += record.count

        self._enrich(tree, score_totals)

        logger.info(f"Built interaction tree: {len(tree) - 1} nodes from {len(patterns)} patterns")
        return tree

    def _enrich(self, tree: InteractionTree, score_totals: dict[int, list[float]]) -> None:
        """Weighted average scores and child count distributions."""
        for node in tree:
            totals = score_totals.get(node.index)
            if totals and totals[1] > 0:
                node.avg_score = totals[0] / totals[1]

            if not node.children:
                continue
            children = tree.children(node)
            counts = np.array([c.count for c in children], dtype=float)
            total = counts.sum()
            percentages = counts / total * 100 if total > 0 else np.zeros_like(counts)
            node.child_distribution = [
                ChildShare(abbr=c.abbr, count=c.count, percentage=float(p))
                for c, p in zip(children, percentages)
            ]


def build_interaction_tree(
    patterns: Sequence[PatternRecord],
    config: Optional[TeachTreeConfig] = None,
) -> InteractionTree:
    """Convenience function to build a tree from patterns."""
    return TreeBuilder(config).build(patterns)


def filter_visible(
    tree: InteractionTree,
    visible_ids: Iterable[str],
    highlight_ids: Optional[Iterable[str]] = None,
) -> dict[str, Any]:
    """
    Export the subtree a renderer should draw.

    Keeps the root plus every visible node whose ancestors are visible,
    in original child order. ``is_leaf`` reflects the full tree so a
    renderer can tell a collapsed node from a true leaf.
    """
    visible = set(visible_ids)
    highlighted = set(highlight_ids or ())

    def export(node: TreeNode) -> dict[str, Any]:
        data = node.to_dict()
        data["is_leaf"] = node.is_leaf
        data["highlighted"] = node.id in highlighted
        data["children"] = [
            export(child) for child in tree.children(node) if child.id in visible
        ]
        return data

    return export(tree.root)
