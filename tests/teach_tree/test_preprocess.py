"""Tests for transcript preprocessing."""

from teach_tree.models import RawEvent, TimeSpan
from teach_tree.preprocess import abbreviation_sequence, merge_runs, preprocess_events
from teach_tree.vocabulary import abbreviate, full_name, split_pattern


class TestTimeSpan:
    """Tests for event id timestamp parsing."""

    def test_parse_padded_offsets(self):
        """Test the trailing start/end offsets are parsed."""
        span = TimeSpan.from_event_id("T01_0012_0019")
        assert span.start == 12
        assert span.end == 19
        assert span.duration == 7
        assert span.parsed

    def test_malformed_id_degrades_to_zero(self):
        """Test ids without offsets give a zero span instead of raising."""
        span = TimeSpan.from_event_id("no-timestamp-here")
        assert (span.start, span.end, span.duration) == (0, 0, 0)
        assert not span.parsed

    def test_empty_id(self):
        """Test empty id."""
        assert TimeSpan.from_event_id("").duration == 0


class TestVocabulary:
    """Tests for label abbreviations."""

    def test_known_labels(self):
        """Test fixed vocabulary lookups."""
        assert abbreviate("教师提问") == "TQ"
        assert abbreviate("学生讨论") == "SD"
        assert full_name("TF") == "教师反馈"

    def test_unknown_label_passes_through(self):
        """Test unmapped categories are not an error."""
        assert abbreviate("自由活动") == "自由活动"
        assert full_name("XX") == "XX"

    def test_custom_mapping(self):
        """Test an extended mapping is honoured in both directions."""
        mapping = {"小组展示": "GP"}
        assert abbreviate("小组展示", mapping) == "GP"
        assert full_name("GP", mapping) == "小组展示"

    def test_split_pattern(self):
        """Test pattern key splitting."""
        assert split_pattern("TQ → SS → TF") == ("TQ", "SS", "TF")
        assert split_pattern("") == ()


class TestPreprocessEvents:
    """Tests for merging consecutive events into runs."""

    def test_empty_input(self):
        """Test empty and missing transcripts."""
        assert preprocess_events([]) == []
        assert preprocess_events(None) == []

    def test_merges_consecutive_labels(self, question_events):
        """Test consecutive same-label events collapse into one run."""
        runs = preprocess_events(question_events)

        assert abbreviation_sequence(runs) == ["TQ", "SS"]
        assert runs[0].count == 2
        assert runs[0].start_time == 0
        assert runs[0].end_time == 9
        assert runs[0].duration == 9
        assert runs[1].count == 1

    def test_non_adjacent_labels_stay_separate(self):
        """Test a label recurring after another label starts a new run."""
        events = [
            RawEvent(id="a_0000_0001", label="教师提问"),
            RawEvent(id="a_0001_0002", label="学生发言"),
            RawEvent(id="a_0002_0003", label="教师提问"),
        ]
        assert abbreviation_sequence(preprocess_events(events)) == ["TQ", "SS", "TQ"]

    def test_unknown_label_run(self):
        """Test unmapped labels form runs under their own name."""
        events = [
            RawEvent(id="a_0000_0005", label="自由活动"),
            RawEvent(id="a_0005_0008", label="自由活动"),
        ]
        runs = preprocess_events(events)
        assert len(runs) == 1
        assert runs[0].abbr == "自由活动"
        assert runs[0].count == 2

    def test_malformed_member_does_not_reset_span(self):
        """Test a member without timestamps leaves the run span intact."""
        events = [
            RawEvent(id="a_0010_0015", label="教师讲授"),
            RawEvent(id="broken", label="教师讲授"),
            RawEvent(id="a_0015_0030", label="教师讲授"),
        ]
        run = preprocess_events(events)[0]
        assert run.count == 3
        assert (run.start_time, run.end_time) == (10, 30)
        assert run.active_duration == 20

    def test_accepts_dicts(self):
        """Test events parsed from JSONL dicts are accepted."""
        runs = preprocess_events([
            {"id": "a_0000_0003", "label": "学生发言", "text": "学生：对。"},
        ])
        assert runs[0].abbr == "SS"

    def test_pure_and_repeatable(self, sample_transcript):
        """Test identical input always yields identical output."""
        first = [r.to_dict() for r in preprocess_events(sample_transcript)]
        second = [r.to_dict() for r in preprocess_events(sample_transcript)]
        assert first == second

    def test_members_retained(self, question_events):
        """Test merge_runs keeps member events in order."""
        runs = merge_runs(question_events)
        assert [m.id for m in runs[0].members] == ["T01_0000_0004", "T01_0004_0009"]
