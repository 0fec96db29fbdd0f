"""
Data models for the TeachTree pattern engine.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from .vocabulary import PATTERN_SEPARATOR, as_abbreviations, join_pattern

_TIMESTAMP_RE = re.compile(r"(\d+)_(\d+)$")


@dataclass(frozen=True)
class TimeSpan:
    """Start/end second offsets embedded in an event id."""

    start: int = 0
    end: int = 0
    parsed: bool = False

    @property
    def duration(self) -> int:
        return self.end - self.start

    @classmethod
    def from_event_id(cls, event_id: str) -> "TimeSpan":
        """
        Parse the trailing ``<start>_<end>`` offsets of an event id.

        ``T01_0012_0019`` yields start=12, end=19. Ids without the suffix
        degrade to a zero span.
        """
        match = _TIMESTAMP_RE.search(event_id or "")
        if not match:
            return cls()
        return cls(start=int(match.group(1)), end=int(match.group(2)), parsed=True)


@dataclass
class RawEvent:
    """A single labeled transcript event."""

    id: str
    label: str
    text: str = ""

    @property
    def span(self) -> TimeSpan:
        return TimeSpan.from_event_id(self.id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "label": self.label, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawEvent":
        """Create from dictionary."""
        return cls(
            id=str(data.get("id", "")),
            label=str(data.get("label", "")),
            text=str(data.get("text", "") or ""),
        )


@dataclass
class MergedRun:
    """A maximal span of consecutive events sharing one abbreviation."""

    abbr: str
    label: str
    count: int = 0
    start_time: int = 0
    end_time: int = 0
    members: list[RawEvent] = field(default_factory=list, repr=False)

    @property
    def duration(self) -> int:
        """Wall-clock span from the earliest start to the latest end."""
        return self.end_time - self.start_time

    @property
    def active_duration(self) -> int:
        """Sum of member event durations, excluding gaps between members."""
        return sum(member.span.duration for member in self.members)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "abbr": self.abbr,
            "label": self.label,
            "count": self.count,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }


@dataclass
class PatternRecord:
    """
    One distinct n-gram that survived the frequency filter.

    ``pattern`` may be given as an abbreviation sequence or as a key
    joined with the default separator.
    """

    pattern: tuple[str, ...]
    count: int
    avg_score: Optional[float] = None

    def __post_init__(self):
        self.pattern = as_abbreviations(self.pattern)

    @property
    def length(self) -> int:
        return len(self.pattern)

    def key(self, separator: str = PATTERN_SEPARATOR) -> str:
        """Pattern as a separator-joined string."""
        return join_pattern(self.pattern, separator)

    def to_dict(self, separator: str = PATTERN_SEPARATOR) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "pattern": self.key(separator),
            "sequence": list(self.pattern),
            "length": self.length,
            "count": self.count,
            "avg_score": self.avg_score,
        }


@dataclass
class ChildShare:
    """Share of a node's outgoing count taken by one child."""

    abbr: str
    count: int
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {"abbr": self.abbr, "count": self.count, "percentage": self.percentage}


@dataclass
class TreeNode:
    """
    A shared-prefix aggregation node.

    Nodes live in an ``InteractionTree`` arena; ``parent`` and ``children``
    hold arena indices, not node references.
    """

    index: int
    id: str
    abbr: str
    label: str
    depth: int
    count: int = 0
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    avg_score: Optional[float] = None
    child_distribution: Optional[list[ChildShare]] = None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> dict[str, Any]:
        """Flat dictionary without children."""
        return {
            "id": self.id,
            "abbr": self.abbr,
            "label": self.label,
            "count": self.count,
            "depth": self.depth,
            "avg_score": self.avg_score,
            "child_distribution": (
                [share.to_dict() for share in self.child_distribution]
                if self.child_distribution is not None
                else None
            ),
        }


@dataclass
class PatternDetail:
    """One matched run of a pattern occurrence, for the detail view."""

    source_id: str
    label: str
    abbr: str
    text: str
    start_time: int
    end_time: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source_id": self.source_id,
            "label": self.label,
            "abbr": self.abbr,
            "text": self.text,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }
