"""
Duration-aware pattern quality scoring.

Each literal occurrence of a pattern in the time-aware run sequence is
scored from 0.5 upward for student-centred time and golden interaction
chains, and downward for long lectures, long silences and slow
feedback. The pattern score is the mean over occurrences.

Weights:
- +0.30 * share of occurrence time spent on student speech/discussion
- -0.15 per lecture run (TL) longer than 120s
- -0.10 per silence run (CS) longer than 30s
- +0.25 if the occurrence contains question → speech → feedback (TQ, SS, TF)
- +0.15 if student discussion (SD) totals more than 60s
- +0.10 if student speech (SS) totals more than 20s
- -0.10 per speech → feedback hand-off with a gap over 120s
"""

import logging
from collections import defaultdict
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from .models import MergedRun, RawEvent
from .preprocess import merge_runs

logger = logging.getLogger(__name__)

BASE_SCORE = 0.5
NO_OCCURRENCE_SCORE = 0.5
SCORE_FLOOR = 0.3
SCORE_CEILING = 1.0

STUDENT_ABBRS = ("SS", "SD")
STUDENT_WEIGHT = 0.3

LONG_LECTURE_SECONDS = 120
LONG_LECTURE_PENALTY = 0.15
LONG_SILENCE_SECONDS = 30
LONG_SILENCE_PENALTY = 0.10

GOLDEN_CHAIN = ("TQ", "SS", "TF")
GOLDEN_CHAIN_BONUS = 0.25
DEEP_DISCUSSION_SECONDS = 60
DEEP_DISCUSSION_BONUS = 0.15
FULL_SPEECH_SECONDS = 20
FULL_SPEECH_BONUS = 0.10
SLOW_FEEDBACK_SECONDS = 120
SLOW_FEEDBACK_PENALTY = 0.10


def _contains_chain(abbrs: Sequence[str], chain: Sequence[str]) -> bool:
    n = len(chain)
    return any(tuple(abbrs[i:i + n]) == tuple(chain) for i in range(len(abbrs) - n + 1))


def score_occurrence(runs: Sequence[MergedRun]) -> float:
    """
    Score one occurrence of a pattern (its matched runs, in order).

    Returns:
        Unclamped score; callers clamp to [SCORE_FLOOR, SCORE_CEILING]
    """
    score = BASE_SCORE

    durations: dict[str, int] = defaultdict(int)
    for run in runs:
        durations[run.abbr] += run.active_duration
    total = sum(durations.values())

    student_time = sum(durations[abbr] for abbr in STUDENT_ABBRS)
    if total > 0:
        score += STUDENT_WEIGHT * (student_time / total)

    for run in runs:
        if run.abbr == "TL" and run.active_duration > LONG_LECTURE_SECONDS:
            score -= LONG_LECTURE_PENALTY
        if run.abbr == "CS" and run.active_duration > LONG_SILENCE_SECONDS:
            score -= LONG_SILENCE_PENALTY

    abbrs = [run.abbr for run in runs]
    if _contains_chain(abbrs, GOLDEN_CHAIN):
        score += GOLDEN_CHAIN_BONUS
    if durations["SD"] > DEEP_DISCUSSION_SECONDS:
        score += DEEP_DISCUSSION_BONUS
    if durations["SS"] > FULL_SPEECH_SECONDS:
        score += FULL_SPEECH_BONUS

    for current, following in zip(runs, runs[1:]):
        if current.abbr == "SS" and following.abbr == "TF":
            if following.start_time - current.end_time > SLOW_FEEDBACK_SECONDS:
                score -= SLOW_FEEDBACK_PENALTY

    return score


class PatternScorer:
    """
    Score patterns against one transcript.

    The transcript is merged into time-aware runs once; occurrences are
    located through an index of run positions by abbreviation.
    """

    def __init__(
        self,
        events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]],
        label_abbreviations: Optional[Mapping[str, str]] = None,
    ):
        self.runs = merge_runs(events, label_abbreviations)
        self._positions: dict[str, list[int]] = defaultdict(list)
        for i, run in enumerate(self.runs):
            self._positions[run.abbr].append(i)

    def occurrences(self, pattern: Sequence[str]) -> list[list[MergedRun]]:
        """Every (possibly overlapping) literal occurrence of the pattern."""
        pattern = tuple(pattern)
        if not pattern:
            return []
        n = len(pattern)
        matches = []
        for start in self._positions.get(pattern[0], []):
            window = self.runs[start:start + n]
            if len(window) == n and all(run.abbr == abbr for run, abbr in zip(window, pattern)):
                matches.append(window)
        return matches

    def score(self, pattern: Sequence[str]) -> float:
        """Mean clamped occurrence score; 0.5 when the pattern never occurs."""
        matches = self.occurrences(pattern)
        if not matches:
            return NO_OCCURRENCE_SCORE
        scores = np.clip(
            np.array([score_occurrence(m) for m in matches], dtype=float),
            SCORE_FLOOR,
            SCORE_CEILING,
        )
        return float(scores.mean())


def calculate_pattern_score(
    pattern: Sequence[str],
    events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]],
    label_abbreviations: Optional[Mapping[str, str]] = None,
) -> float:
    """
    Convenience function to score a single pattern.

    Args:
        pattern: Ordered abbreviations
        events: Transcript events
        label_abbreviations: Optional vocabulary override

    Returns:
        Average occurrence score in [0.3, 1.0]
    """
    return PatternScorer(events, label_abbreviations).score(pattern)
