"""
Classroom behavior vocabulary.

Fixed mapping between behavior labels and the short codes used inside
pattern keys. Both lookups are open: a miss passes the input through
unchanged, so transcripts with categories outside the vocabulary still
flow through mining and tree building.
"""

from typing import Mapping, Optional, Sequence, Union

PATTERN_SEPARATOR = " → "

LABEL_ABBREVIATIONS: dict[str, str] = {
    "教师提问": "TQ",  # teacher question
    "教师讲授": "TL",  # teacher lecture
    "教师反馈": "TF",  # teacher feedback
    "教师指令": "TI",  # teacher instruction
    "教师板书": "TB",  # teacher blackboard writing
    "教师巡视": "TP",  # teacher patrol
    "学生发言": "SS",  # student speech
    "学生讨论": "SD",  # student discussion
    "课堂沉寂": "CS",  # classroom silence
    "技术操作": "TO",  # technical operation
}

FULL_NAMES: dict[str, str] = {abbr: label for label, abbr in LABEL_ABBREVIATIONS.items()}


def abbreviate(label: str, mapping: Optional[Mapping[str, str]] = None) -> str:
    """Return the abbreviation for a label, or the label itself if unmapped."""
    table = LABEL_ABBREVIATIONS if mapping is None else mapping
    if label in table:
        return table[label]
    return label


def full_name(abbr: str, mapping: Optional[Mapping[str, str]] = None) -> str:
    """Return the full label for an abbreviation, or the abbreviation itself if unmapped."""
    if mapping is None:
        table = FULL_NAMES
    else:
        table = {code: label for label, code in mapping.items()}
    if abbr in table:
        return table[abbr]
    return abbr


def split_pattern(pattern: str, separator: str = PATTERN_SEPARATOR) -> tuple[str, ...]:
    """Split a pattern key into its abbreviations."""
    if not pattern:
        return ()
    return tuple(pattern.split(separator))


def join_pattern(abbrs: Sequence[str], separator: str = PATTERN_SEPARATOR) -> str:
    """Join abbreviations into a pattern key."""
    return separator.join(abbrs)


def as_abbreviations(
    pattern: Union[str, Sequence[str], None],
    separator: str = PATTERN_SEPARATOR,
) -> tuple[str, ...]:
    """Accept either a pattern key or an abbreviation sequence."""
    if pattern is None:
        return ()
    if isinstance(pattern, str):
        return split_pattern(pattern, separator)
    return tuple(pattern)
