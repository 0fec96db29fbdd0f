"""Pytest fixtures for teach_tree tests."""

import pytest

from teach_tree.config import TeachTreeConfig
from teach_tree.engine import TeachTreeEngine
from teach_tree.mock import MockTranscriptGenerator
from teach_tree.models import PatternRecord, RawEvent
from teach_tree.patterns import PatternMiner
from teach_tree.tree import build_interaction_tree
from teach_tree.visibility import InMemoryViewStateStore


@pytest.fixture
def config():
    """Create test configuration."""
    return TeachTreeConfig()


@pytest.fixture
def abc_sequence():
    """Merged abbreviation sequence with a recurring A → B → C chain."""
    return ["A", "B", "C", "A", "B", "D", "A", "B", "C"]


@pytest.fixture
def abc_patterns(abc_sequence, config):
    """Patterns mined from abc_sequence with max_length=3, min_count=2."""
    return PatternMiner(config).mine(abc_sequence, max_length=3, min_count=2).patterns


@pytest.fixture
def abc_tree(abc_patterns, config):
    """Interaction tree built from abc_patterns."""
    return build_interaction_tree(abc_patterns, config)


@pytest.fixture
def scored_records():
    """Hand-made scored records sharing the A prefix."""
    return [
        PatternRecord(pattern=("A", "B"), count=2, avg_score=0.8),
        PatternRecord(pattern=("A", "C"), count=1, avg_score=0.5),
    ]


@pytest.fixture
def question_events():
    """Two consecutive teacher questions followed by a student answer."""
    return [
        RawEvent(id="T01_0000_0004", label="教师提问", text="老师：今天我们学什么？"),
        RawEvent(id="T01_0004_0009", label="教师提问", text="老师：谁来说说？"),
        RawEvent(id="T01_0009_0020", label="学生发言", text="学生：学分数。"),
    ]


@pytest.fixture
def mock_generator():
    """Create mock transcript generator with fixed seed."""
    return MockTranscriptGenerator(seed=42)


@pytest.fixture
def sample_transcript(mock_generator):
    """Generate a sample transcript for testing."""
    return mock_generator.generate_transcript(30)


@pytest.fixture
def engine(config):
    """Engine with an in-memory view store and no transcript."""
    return TeachTreeEngine(config, store=InMemoryViewStateStore())


@pytest.fixture
def loaded_engine(engine, sample_transcript):
    """Engine with the sample transcript loaded."""
    engine.load_events(sample_transcript)
    return engine
