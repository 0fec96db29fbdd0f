"""
Configuration for the TeachTree pattern engine.
"""

from dataclasses import dataclass, field

from .exceptions import ConfigurationError
from .vocabulary import LABEL_ABBREVIATIONS, PATTERN_SEPARATOR


@dataclass
class TeachTreeConfig:
    """Configuration for the TeachTree pattern engine."""

    # Pattern mining
    max_pattern_length: int = 15   # Largest n-gram window
    min_pattern_count: int = 2     # Minimum chain frequency to surface
    enable_scoring: bool = True    # Duration-aware quality score per pattern

    # Visibility
    top_roots_expanded: int = 2    # Highest-frequency root categories expanded on load

    # Vocabulary
    label_abbreviations: dict[str, str] = field(
        default_factory=lambda: dict(LABEL_ABBREVIATIONS)
    )
    pattern_separator: str = PATTERN_SEPARATOR

    # Tree root sentinel
    root_id: str = "root"
    root_abbr: str = "ROOT"
    root_label: str = "根节点"

    # Pattern listing
    table_page_size: int = 5

    def __post_init__(self):
        """Validate numeric options."""
        if self.max_pattern_length < 2:
            raise ConfigurationError(
                "max_pattern_length", self.max_pattern_length, "must be at least 2"
            )
        if self.min_pattern_count < 1:
            raise ConfigurationError(
                "min_pattern_count", self.min_pattern_count, "must be at least 1"
            )
        if self.top_roots_expanded < 0:
            raise ConfigurationError(
                "top_roots_expanded", self.top_roots_expanded, "must not be negative"
            )
        if self.table_page_size < 1:
            raise ConfigurationError(
                "table_page_size", self.table_page_size, "must be at least 1"
            )
        if not self.pattern_separator:
            raise ConfigurationError(
                "pattern_separator", self.pattern_separator, "must not be empty"
            )
