"""
Pattern location - map patterns onto the tree and back onto the transcript.
"""

import logging
import re
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from .models import MergedRun, PatternDetail, PatternRecord, RawEvent
from .preprocess import merge_runs
from .tree import InteractionTree
from .vocabulary import PATTERN_SEPARATOR, as_abbreviations

logger = logging.getLogger(__name__)

NON_VERBAL_TEXTS = ("silent", "inaudible")
_ROLE_PREFIX_RE = re.compile(r"^(老师：|学生：)")


def find_path_node_ids(
    tree: InteractionTree,
    pattern: Union[str, Sequence[str]],
    separator: str = PATTERN_SEPARATOR,
) -> list[str]:
    """
    Ids of the nodes matching ``pattern`` from the root down.

    Siblings never share an abbreviation, so the walk is unambiguous. If
    the chain leaves the tree early, the matched prefix is returned.
    """
    ids = []
    current = tree.root
    for abbr in as_abbreviations(pattern, separator):
        child = tree.child(current, abbr)
        if child is None:
            break
        ids.append(child.id)
        current = child
    return ids


def pattern_for_node(tree: InteractionTree, node_id: str) -> tuple[str, ...]:
    """Abbreviation chain from the root to ``node_id``; empty if unknown."""
    node = tree.get(node_id)
    if node is None:
        return ()
    return tuple(n.abbr for n in tree.path_to(node))


def collect_leaf_paths(tree: InteractionTree) -> list[tuple[str, ...]]:
    """Every root-to-leaf abbreviation chain, depth-first in child order."""
    paths = []
    stack = [(tree.nodes[i], ()) for i in reversed(tree.root.children)]
    while stack:
        node, prefix = stack.pop()
        path = prefix + (node.abbr,)
        if node.is_leaf:
            paths.append(path)
        else:
            stack.extend((tree.nodes[i], path) for i in reversed(node.children))
    return paths


def extract_root_to_leaf_patterns(
    tree: InteractionTree,
    patterns: Sequence[PatternRecord],
) -> list[PatternRecord]:
    """
    Mined patterns that correspond to complete root-to-leaf chains.

    Only maximal chains are returned; a chain that ends at an inner node
    is never listed. Sorted by (length desc, count desc).
    """
    leaf_paths = set(collect_leaf_paths(tree))
    matched = [record for record in patterns if record.pattern in leaf_paths]
    matched.sort(key=lambda r: (-r.length, -r.count))
    return matched


def _merged_text(members: Sequence[RawEvent]) -> str:
    texts = [_ROLE_PREFIX_RE.sub("", member.text) for member in members]
    texts = [text for text in texts if text not in NON_VERBAL_TEXTS]
    if texts:
        return " ".join(texts)
    return "inaudible" if members[0].text == "inaudible" else "silent"


def _detail_for_run(run: MergedRun) -> PatternDetail:
    first, last = run.members[0], run.members[-1]
    return PatternDetail(
        source_id=first.id,
        label=first.label,
        abbr=run.abbr,
        text=_merged_text(run.members),
        start_time=first.span.start,
        end_time=last.span.end,
    )


def extract_pattern_details(
    pattern: Union[str, Sequence[str]],
    events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]],
    label_abbreviations: Optional[Mapping[str, str]] = None,
    separator: str = PATTERN_SEPARATOR,
) -> list[PatternDetail]:
    """
    Transcript excerpt for the first occurrence of ``pattern``.

    The transcript is merged into runs; the first contiguous run window
    whose abbreviations equal the pattern yields one detail per run, with
    member dialogue joined, role prefixes stripped and non-verbal markers
    dropped.

    Args:
        pattern: Pattern key or abbreviation sequence
        events: Raw transcript events
        label_abbreviations: Optional vocabulary override
        separator: Separator for string patterns

    Returns:
        One PatternDetail per matched run, or an empty list
    """
    abbrs = as_abbreviations(pattern, separator)
    if not abbrs:
        return []

    runs = merge_runs(events, label_abbreviations)
    n = len(abbrs)
    for i in range(len(runs) - n + 1):
        window = runs[i:i + n]
        if all(run.abbr == abbr for run, abbr in zip(window, abbrs)):
            return [_detail_for_run(run) for run in window]

    logger.debug(f"No transcript occurrence for pattern of length {n}")
    return []
