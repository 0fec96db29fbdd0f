"""
Contiguous N-gram Pattern Mining - Discover recurring behavior chains.

Slides windows of every length from 2 up to the configured maximum
across the merged run sequence and counts each distinct chain:
- Chains below the minimum count are dropped
- Surviving chains are ordered longest first, then most frequent
- Optionally each chain is scored by the duration-aware heuristic
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Union

from .config import TeachTreeConfig
from .models import MergedRun, PatternRecord, RawEvent
from .scoring import PatternScorer

logger = logging.getLogger(__name__)


@dataclass
class PatternMiningResult:
    """Result from a pattern mining run."""
    patterns: list[PatternRecord]
    sequence_length: int
    max_pattern_length: int
    min_pattern_count: int
    scored: bool

    def to_dict(self) -> dict:
        return {
            "patterns": [p.to_dict() for p in self.patterns],
            "sequence_length": self.sequence_length,
            "max_pattern_length": self.max_pattern_length,
            "min_pattern_count": self.min_pattern_count,
            "scored": self.scored,
        }


class PatternMiner:
    """
    Mine frequent contiguous behavior chains from a merged run sequence.

    Unlike gapped sequential mining, every window is contiguous and every
    occurrence counts, including overlapping ones within one transcript.
    """

    def __init__(self, config: Optional[TeachTreeConfig] = None):
        """
        Initialize pattern miner.

        Args:
            config: Configuration options
        """
        self.config = config or TeachTreeConfig()

    def count_ngrams(
        self,
        sequence: Sequence[str],
        max_length: int,
    ) -> dict[tuple[str, ...], int]:
        """
        Count every contiguous window of length 2..max_length.

        Keys are inserted in first-seen order (shorter windows first).
        """
        counts: dict[tuple[str, ...], int] = defaultdict(int)
        for n in range(2, min(max_length, len(sequence)) + 1):
            for i in range(len(sequence) - n + 1):
                counts[tuple(sequence[i:i + n])] += 1
            logger.debug(f"Window length {n}: {len(counts)} distinct chains so far")
        return counts

    def mine(
        self,
        runs: Sequence[Union[MergedRun, str]],
        events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]] = None,
        max_length: Optional[int] = None,
        min_count: Optional[int] = None,
    ) -> PatternMiningResult:
        """
        Mine patterns from a merged sequence.

        Args:
            runs: Merged runs (or bare abbreviations) in transcript order
            events: Raw transcript events, required for scoring
            max_length: Largest window (config default if None)
            min_count: Minimum frequency (config default if None)

        Returns:
            PatternMiningResult with patterns sorted by (length desc, count desc)
        """
        max_length = self.config.max_pattern_length if max_length is None else max_length
        min_count = self.config.min_pattern_count if min_count is None else min_count

        sequence = [r.abbr if isinstance(r, MergedRun) else r for r in runs]
        counts = self.count_ngrams(sequence, max_length)

        frequent = [
            (pattern, count)
            for pattern, count in counts.items()
            if count >= min_count
        ]

        scorer = None
        if self.config.enable_scoring and events is not None:
            scorer = PatternScorer(events, self.config.label_abbreviations)

        records = [
            PatternRecord(
                pattern=pattern,
                count=count,
                avg_score=scorer.score(pattern) if scorer else None,
            )
            for pattern, count in frequent
        ]
        records.sort(key=lambda r: (-r.length, -r.count))

        logger.info(
            f"Mined {len(records)} patterns from {len(sequence)} runs "
            f"(max_length={max_length}, min_count={min_count})"
        )

        return PatternMiningResult(
            patterns=records,
            sequence_length=len(sequence),
            max_pattern_length=max_length,
            min_pattern_count=min_count,
            scored=scorer is not None,
        )


def mine_patterns(
    runs: Sequence[Union[MergedRun, str]],
    events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]] = None,
    max_length: int = 15,
    min_count: int = 2,
    config: Optional[TeachTreeConfig] = None,
) -> list[PatternRecord]:
    """
    Convenience function to mine patterns.

    Args:
        runs: Merged runs or abbreviations
        events: Raw events for scoring (unscored if None)
        max_length: Largest window
        min_count: Minimum frequency
        config: Optional configuration

    Returns:
        Sorted PatternRecord list
    """
    miner = PatternMiner(config)
    return miner.mine(runs, events, max_length=max_length, min_count=min_count).patterns
