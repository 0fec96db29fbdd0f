"""
TeachTree - behavior-sequence pattern mining for classroom transcripts.

Turns a time-ordered transcript of labeled classroom events into a
frequency table of recurring behavior chains and a shared-prefix
interaction tree, plus the visibility state that drives interactive
exploration of that tree.

Usage:
    from teach_tree import (
        TeachTreeConfig, TeachTreeEngine, preprocess_events,
        PatternMiner, build_interaction_tree, VisibilityController,
    )

    config = TeachTreeConfig(max_pattern_length=15, min_pattern_count=2)

    # One-shot pipeline
    runs = preprocess_events(events)
    result = PatternMiner(config).mine(runs, events)
    tree = build_interaction_tree(result.patterns, config)

    # Interactive exploration
    controller = VisibilityController(tree, top_roots_expanded=2)
    controller.toggle_node("root-TQ-0")
    controller.select_pattern(["TQ", "SS", "TF"])

    # Or let the engine wire it all together
    engine = TeachTreeEngine(config)
    engine.load_events(events)
    details = engine.pattern_details("TQ → SS")
"""

from .config import TeachTreeConfig
from .exceptions import TeachTreeError, ConfigurationError, InvalidSortError, InvalidPageActionError
from .models import (
    RawEvent,
    TimeSpan,
    MergedRun,
    PatternRecord,
    ChildShare,
    TreeNode,
    PatternDetail,
)
from .vocabulary import (
    LABEL_ABBREVIATIONS,
    FULL_NAMES,
    PATTERN_SEPARATOR,
    abbreviate,
    full_name,
    split_pattern,
    join_pattern,
)
from .preprocess import preprocess_events, merge_runs
from .scoring import PatternScorer, calculate_pattern_score
from .patterns import PatternMiner, PatternMiningResult, mine_patterns
from .tree import InteractionTree, TreeBuilder, build_interaction_tree, filter_visible
from .visibility import (
    ViewState,
    ViewStateStore,
    InMemoryViewStateStore,
    VisibilityController,
    default_visible_ids,
)
from .locator import (
    find_path_node_ids,
    extract_root_to_leaf_patterns,
    extract_pattern_details,
    pattern_for_node,
)
from .table import PatternTable
from .engine import TeachTreeEngine

__version__ = "0.1.0"
__all__ = [
    # Config
    "TeachTreeConfig",
    # Errors
    "TeachTreeError",
    "ConfigurationError",
    "InvalidSortError",
    "InvalidPageActionError",
    # Models
    "RawEvent",
    "TimeSpan",
    "MergedRun",
    "PatternRecord",
    "ChildShare",
    "TreeNode",
    "PatternDetail",
    # Vocabulary
    "LABEL_ABBREVIATIONS",
    "FULL_NAMES",
    "PATTERN_SEPARATOR",
    "abbreviate",
    "full_name",
    "split_pattern",
    "join_pattern",
    # Preprocessing
    "preprocess_events",
    "merge_runs",
    # Scoring
    "PatternScorer",
    "calculate_pattern_score",
    # Pattern Mining
    "PatternMiner",
    "PatternMiningResult",
    "mine_patterns",
    # Tree
    "InteractionTree",
    "TreeBuilder",
    "build_interaction_tree",
    "filter_visible",
    # Visibility
    "ViewState",
    "ViewStateStore",
    "InMemoryViewStateStore",
    "VisibilityController",
    "default_visible_ids",
    # Locator
    "find_path_node_ids",
    "extract_root_to_leaf_patterns",
    "extract_pattern_details",
    "pattern_for_node",
    # Listing
    "PatternTable",
    # Engine
    "TeachTreeEngine",
]
