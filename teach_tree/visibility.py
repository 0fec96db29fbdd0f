"""
Visibility state machine over an InteractionTree.

Every non-root node is either hidden or visible. The controller owns one
mutable set of visible ids plus the current highlight path, and exposes
the transitions a tree view needs: default view, expand/collapse toggle,
pattern-driven path reveal, and rebuild against a new tree.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, Union

from .exceptions import ConfigurationError
from .models import TreeNode
from .tree import InteractionTree
from .vocabulary import PATTERN_SEPARATOR, as_abbreviations

logger = logging.getLogger(__name__)

EXPANDED = "expanded"
COLLAPSED = "collapsed"


@dataclass
class ViewState:
    """Snapshot of the visibility set and highlight path."""

    visible_ids: set[str] = field(default_factory=set)
    highlight_path: Optional[tuple[str, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible_ids": sorted(self.visible_ids),
            "highlight_path": list(self.highlight_path) if self.highlight_path else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewState":
        path = data.get("highlight_path")
        return cls(
            visible_ids=set(data.get("visible_ids") or ()),
            highlight_path=tuple(path) if path else None,
        )


class ViewStateStore(Protocol):
    """Save/load contract for persisting view state between sessions."""

    def save(self, key: str, state: ViewState) -> None:
        ...

    def load(self, key: str) -> Optional[ViewState]:
        ...


class InMemoryViewStateStore:
    """ViewStateStore holding deep-copied snapshots in a dict."""

    def __init__(self):
        self._states: dict[str, ViewState] = {}

    def save(self, key: str, state: ViewState) -> None:
        self._states[key] = copy.deepcopy(state)

    def load(self, key: str) -> Optional[ViewState]:
        state = self._states.get(key)
        return copy.deepcopy(state) if state is not None else None

    def __len__(self) -> int:
        return len(self._states)


def default_visible_ids(tree: InteractionTree, top_k: int = 2) -> set[str]:
    """
    Ids of the top-k root children by count plus all of their descendants.

    Ties keep first-seen order.
    """
    if top_k < 0:
        raise ConfigurationError("top_roots_expanded", top_k, "must not be negative")
    ranked = sorted(tree.children(tree.root), key=lambda n: -n.count)[:top_k]
    visible: set[str] = set()
    for node in ranked:
        visible.add(node.id)
        visible.update(d.id for d in tree.descendants(node))
    return visible


class VisibilityController:
    """
    Single-writer state machine over the visible node ids of one tree.

    Callers that share a controller across threads must serialize access
    (TeachTreeEngine does so with a lock).
    """

    def __init__(
        self,
        tree: InteractionTree,
        top_roots_expanded: int = 2,
        separator: str = PATTERN_SEPARATOR,
    ):
        """
        Initialize with the default view of ``tree``.

        Args:
            tree: Tree to control
            top_roots_expanded: Number of root categories expanded by default
            separator: Separator used when patterns are passed as strings
        """
        if top_roots_expanded < 0:
            raise ConfigurationError(
                "top_roots_expanded", top_roots_expanded, "must not be negative"
            )
        if not separator:
            raise ConfigurationError("pattern_separator", separator, "must not be empty")
        self.tree = tree
        self.top_roots_expanded = top_roots_expanded
        self.separator = separator
        self.visible: set[str] = set()
        self.highlight_path: Optional[tuple[str, ...]] = None
        self.reset()

    def reset(self) -> set[str]:
        """Apply the default view."""
        self.visible = default_visible_ids(self.tree, self.top_roots_expanded)
        logger.debug(f"Visibility reset: {len(self.visible)} nodes visible")
        return self.visible

    def is_visible(self, node_id: str) -> bool:
        return node_id in self.visible

    def toggle_node(self, node_id: str) -> Optional[str]:
        """
        Expand or collapse a node.

        If every direct child is visible the node collapses: all of its
        descendants are hidden (the node itself stays). Otherwise it
        expands by exactly one level.

        Returns:
            EXPANDED, COLLAPSED, or None if the id is not in the tree
        """
        node = self.tree.get(node_id)
        if node is None:
            logger.debug(f"Toggle ignored for unknown node {node_id}")
            return None

        children = self.tree.children(node)
        if all(c.id in self.visible for c in children):
            for descendant in self.tree.descendants(node):
                self.visible.discard(descendant.id)
            logger.debug(f"Collapsed {node_id}")
            return COLLAPSED

        self.visible.update(c.id for c in children)
        logger.debug(f"Expanded {node_id}: {len(children)} children")
        return EXPANDED

    def match_path(self, abbrs: Sequence[str]) -> list[TreeNode]:
        """Nodes on the longest prefix of ``abbrs`` present in the full tree."""
        path = []
        current = self.tree.root
        for abbr in abbrs:
            child = self.tree.child(current, abbr)
            if child is None:
                break
            path.append(child)
            current = child
        return path

    def select_pattern(self, pattern: Union[str, Sequence[str]]) -> list[str]:
        """
        Highlight a pattern and reveal its path.

        Every node on the matched prefix becomes visible; nothing is
        hidden. An unmatched tail is ignored.

        Returns:
            Ids of the matched nodes, root-side first
        """
        abbrs = as_abbreviations(pattern, self.separator)
        self.highlight_path = abbrs or None
        ids = [node.id for node in self.match_path(abbrs)]
        self.visible.update(ids)
        logger.debug(f"Selected pattern of length {len(abbrs)}: {len(ids)} nodes revealed")
        return ids

    def clear_highlight(self) -> None:
        self.highlight_path = None

    def highlight_ids(self) -> list[str]:
        """Node ids on the current highlight path."""
        if not self.highlight_path:
            return []
        return [node.id for node in self.match_path(self.highlight_path)]

    def rebuild(self, tree: InteractionTree) -> set[str]:
        """
        Switch to a rebuilt tree, keeping ids that still exist.

        Falls back to the default view when none survive.
        """
        self.tree = tree
        self.visible &= tree.node_ids()
        if not self.visible:
            logger.info("No visible nodes survived rebuild, applying default view")
            return self.reset()
        logger.info(f"Visibility carried across rebuild: {len(self.visible)} nodes")
        return self.visible

    def snapshot(self) -> ViewState:
        return ViewState(visible_ids=set(self.visible), highlight_path=self.highlight_path)

    def restore(self, state: ViewState) -> set[str]:
        """Apply a saved state, dropping ids absent from the current tree."""
        self.highlight_path = state.highlight_path
        self.visible = set(state.visible_ids) & self.tree.node_ids()
        if not self.visible:
            return self.reset()
        return self.visible

    def save(self, store: ViewStateStore, key: str = "default") -> ViewState:
        state = self.snapshot()
        store.save(key, state)
        return state

    def load(self, store: ViewStateStore, key: str = "default") -> bool:
        """Restore from ``store``; returns False if nothing was saved under ``key``."""
        state = store.load(key)
        if state is None:
            return False
        self.restore(state)
        return True
