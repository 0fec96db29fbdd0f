"""
TeachTree engine - one exploration session over one classroom transcript.

Wires the pipeline (preprocess → mine → build) to the visibility state
machine and the pattern locator. Loading a transcript recomputes
everything wholesale; visibility carries over by node id.
"""

import logging
import threading
from dataclasses import replace
from typing import Any, Iterable, Optional, Sequence, Union

from .config import TeachTreeConfig
from .locator import (
    extract_pattern_details,
    extract_root_to_leaf_patterns,
    find_path_node_ids,
    pattern_for_node,
)
from .models import MergedRun, PatternDetail, PatternRecord, RawEvent
from .patterns import PatternMiner
from .preprocess import coerce_events, preprocess_events
from .table import PatternTable
from .tree import InteractionTree, TreeBuilder, filter_visible
from .visibility import ViewState, ViewStateStore, VisibilityController

logger = logging.getLogger(__name__)


class TeachTreeEngine:
    """
    Stateful facade over the pattern engine.

    All reads and writes of the visibility state and of a tree rebuild go
    through one lock, so a single engine can back a threaded server.
    """

    def __init__(
        self,
        config: Optional[TeachTreeConfig] = None,
        store: Optional[ViewStateStore] = None,
    ):
        """
        Initialize with an empty transcript.

        Args:
            config: Configuration options
            store: Optional view-state store for save/load
        """
        self.config = config or TeachTreeConfig()
        self.store = store
        self._lock = threading.RLock()

        self._miner = PatternMiner(self.config)
        self._builder = TreeBuilder(self.config)

        self._events: list[RawEvent] = []
        self._runs: list[MergedRun] = []
        self._patterns: list[PatternRecord] = []
        self._display: list[PatternRecord] = []
        self._tree: InteractionTree = self._builder.build([])
        self._listing = PatternTable(page_size=self.config.table_page_size)
        self._controller = VisibilityController(
            self._tree,
            top_roots_expanded=self.config.top_roots_expanded,
            separator=self.config.pattern_separator,
        )

    # =========================================================================
    # Pipeline
    # =========================================================================

    def load_events(self, events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]]) -> InteractionTree:
        """
        Replace the transcript and rebuild everything.

        Args:
            events: Ordered transcript events (RawEvent or dicts)

        Returns:
            The rebuilt InteractionTree
        """
        events = coerce_events(events)
        runs = preprocess_events(events, self.config.label_abbreviations)
        result = self._miner.mine(runs, events)
        tree = self._builder.build(result.patterns)
        display = extract_root_to_leaf_patterns(tree, result.patterns)

        with self._lock:
            self._events = events
            self._runs = runs
            self._patterns = result.patterns
            self._display = display
            self._tree = tree
            self._listing.rows = display
            self._listing.first_page()
            self._controller.rebuild(tree)

        logger.info(
            f"Loaded transcript: {len(events)} events, {len(runs)} runs, "
            f"{len(result.patterns)} patterns, {len(display)} root-to-leaf chains"
        )
        return tree

    @property
    def events(self) -> list[RawEvent]:
        with self._lock:
            return list(self._events)

    @property
    def runs(self) -> list[MergedRun]:
        with self._lock:
            return list(self._runs)

    @property
    def patterns(self) -> list[PatternRecord]:
        with self._lock:
            return list(self._patterns)

    @property
    def display_patterns(self) -> list[PatternRecord]:
        """Root-to-leaf chains, the rows of the pattern listing."""
        with self._lock:
            return list(self._display)

    @property
    def tree(self) -> InteractionTree:
        with self._lock:
            return self._tree

    # =========================================================================
    # Visibility
    # =========================================================================

    @property
    def visible_ids(self) -> set[str]:
        with self._lock:
            return set(self._controller.visible)

    @property
    def highlight_path(self) -> Optional[tuple[str, ...]]:
        with self._lock:
            return self._controller.highlight_path

    def toggle_node(self, node_id: str) -> Optional[str]:
        with self._lock:
            return self._controller.toggle_node(node_id)

    def select_pattern(self, pattern: Union[str, Sequence[str]]) -> list[str]:
        with self._lock:
            return self._controller.select_pattern(pattern)

    def clear_selection(self) -> None:
        with self._lock:
            self._controller.clear_highlight()

    def reset_view(self) -> set[str]:
        with self._lock:
            return set(self._controller.reset())

    # =========================================================================
    # Lookups
    # =========================================================================

    def _snapshot(self) -> tuple[InteractionTree, list[RawEvent]]:
        """Tree and transcript from the same load."""
        with self._lock:
            return self._tree, self._events

    def path_node_ids(self, pattern: Union[str, Sequence[str]]) -> list[str]:
        tree, _ = self._snapshot()
        return find_path_node_ids(tree, pattern, self.config.pattern_separator)

    def pattern_details(self, pattern: Union[str, Sequence[str]]) -> list[PatternDetail]:
        """Transcript excerpt for the first occurrence of ``pattern``."""
        _, events = self._snapshot()
        return self._details(pattern, events)

    def _details(
        self,
        pattern: Union[str, Sequence[str]],
        events: list[RawEvent],
    ) -> list[PatternDetail]:
        return extract_pattern_details(
            pattern,
            events,
            self.config.label_abbreviations,
            self.config.pattern_separator,
        )

    def leaf_excerpt(
        self, node_id: str
    ) -> Optional[tuple[tuple[str, ...], list[PatternDetail]]]:
        """
        Chain of a node and the detail records of that chain.

        Detail records are only produced for leaves; inner nodes get an
        empty list. The node and the transcript are read from the same load.

        Returns:
            (chain, details), or None if the node is unknown
        """
        tree, events = self._snapshot()
        node = tree.get(node_id)
        if node is None:
            return None
        chain = pattern_for_node(tree, node_id)
        if not node.is_leaf or node.parent is None:
            return chain, []
        return chain, self._details(chain, events)

    def open_leaf(self, node_id: str) -> list[PatternDetail]:
        """
        Detail records for the chain ending at a leaf node.

        Inner and unknown nodes yield an empty list.
        """
        excerpt = self.leaf_excerpt(node_id)
        return excerpt[1] if excerpt is not None else []

    def table(
        self,
        sort_field: str = "length",
        sort_order: str = "desc",
        page: int = 1,
    ) -> PatternTable:
        """Listing of root-to-leaf patterns at the requested sort and page."""
        table = PatternTable(
            rows=self.display_patterns,
            page_size=self.config.table_page_size,
            sort_field=sort_field,
            sort_order=sort_order,
        )
        table.go_to(page)
        return table

    def listing(self) -> PatternTable:
        """
        Copy of the session's pattern listing.

        Unlike ``table``, the listing keeps its sort and page between
        calls; a transcript load refreshes its rows and returns to page 1.
        """
        with self._lock:
            return replace(self._listing, rows=list(self._listing.rows))

    def sort_listing(self, sort_field: str) -> PatternTable:
        """Sort the listing by ``sort_field``; repeating a field flips the order."""
        with self._lock:
            self._listing.sort_by(sort_field)
            return self.listing()

    def navigate_listing(self, action: str) -> PatternTable:
        """Move the listing to the first, previous, next or last page."""
        with self._lock:
            self._listing.navigate(action)
            return self.listing()

    def render_payload(self) -> dict[str, Any]:
        """Filtered subtree plus visibility and highlight, for a renderer."""
        with self._lock:
            highlight_ids = self._controller.highlight_ids()
            visible = self._controller.visible
            path = self._controller.highlight_path
            return {
                "tree": filter_visible(self._tree, visible, highlight_ids),
                "visible_ids": sorted(visible),
                "highlight_path": list(path) if path else None,
                "highlight_ids": highlight_ids,
            }

    # =========================================================================
    # View state persistence
    # =========================================================================

    def save_view(self, key: str = "default") -> Optional[ViewState]:
        if self.store is None:
            return None
        with self._lock:
            return self._controller.save(self.store, key)

    def load_view(self, key: str = "default") -> bool:
        if self.store is None:
            return False
        with self._lock:
            return self._controller.load(self.store, key)

    def get_stats(self) -> dict[str, Any]:
        """Summary counts for diagnostics."""
        with self._lock:
            return {
                "events": len(self._events),
                "runs": len(self._runs),
                "patterns": len(self._patterns),
                "root_to_leaf_patterns": len(self._display),
                "nodes": len(self._tree) - 1,
                "visible_nodes": len(self._controller.visible),
            }
