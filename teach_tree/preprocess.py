"""
Event preprocessing - collapse consecutive same-behavior events into runs.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from .models import MergedRun, RawEvent
from .vocabulary import abbreviate

logger = logging.getLogger(__name__)


def coerce_events(events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]]) -> list[RawEvent]:
    """Accept RawEvent instances or plain dicts (as parsed from JSONL)."""
    if not events:
        return []
    return [e if isinstance(e, RawEvent) else RawEvent.from_dict(e) for e in events]


def merge_runs(
    events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]],
    label_abbreviations: Optional[Mapping[str, str]] = None,
) -> list[MergedRun]:
    """
    Merge consecutive events with equal abbreviation into runs.

    Each run keeps its member events. Start/end come from the members
    whose ids carry a timestamp; a run with no timestamped member spans 0-0.

    Args:
        events: Ordered transcript events
        label_abbreviations: Label to abbreviation mapping (default vocabulary if None)

    Returns:
        Ordered list of MergedRun
    """
    runs: list[MergedRun] = []
    timed = False  # current run has at least one timestamped member
    for event in coerce_events(events):
        abbr = abbreviate(event.label, label_abbreviations)
        if not runs or runs[-1].abbr != abbr:
            runs.append(MergedRun(abbr=abbr, label=event.label))
            timed = False
        run = runs[-1]
        run.count += 1
        run.members.append(event)

        span = event.span
        if not span.parsed:
            continue
        if timed:
            run.start_time = min(run.start_time, span.start)
            run.end_time = max(run.end_time, span.end)
        else:
            run.start_time = span.start
            run.end_time = span.end
            timed = True

    return runs


def preprocess_events(
    events: Optional[Iterable[Union[RawEvent, dict[str, Any]]]],
    label_abbreviations: Optional[Mapping[str, str]] = None,
) -> list[MergedRun]:
    """
    Collapse a transcript into merged behavior runs.

    Pure: identical input always yields identical output, and empty
    input yields an empty list.
    """
    runs = merge_runs(events, label_abbreviations)
    logger.debug(f"Preprocessed transcript into {len(runs)} runs")
    return runs


def abbreviation_sequence(runs: Iterable[MergedRun]) -> list[str]:
    """Abbreviation of each run, in order."""
    return [run.abbr for run in runs]
