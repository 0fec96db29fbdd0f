"""Tests for TreeBuilder and InteractionTree."""

import pytest

from teach_tree.config import TeachTreeConfig
from teach_tree.models import PatternRecord
from teach_tree.patterns import PatternMiner
from teach_tree.preprocess import preprocess_events
from teach_tree.tree import InteractionTree, TreeBuilder, build_interaction_tree, filter_visible


class TestTreeStructure:
    """Tests for shared-prefix insertion."""

    def test_reference_tree(self, abc_tree):
        """Test the tree built from the A,B,C,A,B,D,A,B,C patterns."""
        a = abc_tree.get("root-A-0")
        ab = abc_tree.child(a, "B")
        abc = abc_tree.child(ab, "C")

        assert a.count == 5
        assert ab.count >= 3
        assert ab.count == 5
        assert abc.count == 2
        assert abc.is_leaf

        b = abc_tree.get("root-B-0")
        assert b.count == 2
        assert abc_tree.child(b, "C").count == 2

    def test_root_sentinel(self, abc_tree, abc_patterns):
        """Test the root counts patterns and sits at depth 0."""
        root = abc_tree.root
        assert root.id == "root"
        assert root.abbr == "ROOT"
        assert root.depth == 0
        assert root.count == len(abc_patterns)

    def test_children_in_first_seen_order(self, abc_tree):
        """Test root children follow pattern insertion order."""
        assert [c.abbr for c in abc_tree.children(abc_tree.root)] == ["A", "B"]

    def test_less_frequent_branch_with_min_count_one(self, abc_sequence, config):
        """Test C and D both hang off A → B when every window is kept."""
        patterns = PatternMiner(config).mine(abc_sequence, max_length=3, min_count=1).patterns
        tree = build_interaction_tree(patterns, config)
        ab = tree.get("root-A-0-B-1")

        children = {c.abbr: c.count for c in tree.children(ab)}
        assert set(children) == {"C", "D"}
        assert children["C"] == 2
        assert children["D"] == 1

    def test_no_duplicate_siblings(self, sample_transcript, config):
        """Test each (parent, abbr) pair yields one child."""
        runs = preprocess_events(sample_transcript)
        tree = build_interaction_tree(PatternMiner(config).mine(runs, sample_transcript).patterns)

        for node in tree:
            abbrs = [c.abbr for c in tree.children(node)]
            assert len(abbrs) == len(set(abbrs))

    def test_node_ids_deterministic(self, abc_patterns):
        """Test rebuilding the same patterns yields identical ids."""
        first = build_interaction_tree(abc_patterns)
        second = build_interaction_tree(list(reversed(abc_patterns)))
        assert first.node_ids() == second.node_ids()

    def test_node_id_format(self, abc_tree):
        """Test ids chain parent id, abbreviation and chain position."""
        assert "root-A-0-B-1-C-2" in abc_tree
        assert abc_tree.get("root-A-0-B-1-C-2").depth == 3

    def test_hyphenated_labels_get_distinct_ids(self):
        """Test pass-through labels containing the id separator never collide."""
        tree = build_interaction_tree([
            PatternRecord(("A-0-B", "C"), 2),
            PatternRecord(("A", "B-0-C"), 3),
        ])

        ids = [node.id for node in list(tree)[1:]]
        assert len(ids) == len(set(ids)) == 4
        assert tree.get("root-A~-0~-B-0").abbr == "A-0-B"
        assert tree.get("root-A-0-B~-0~-C-1").abbr == "B-0-C"
        for node in list(tree)[1:]:
            assert tree.get(node.id) is node

    def test_escape_character_in_labels(self):
        """Test labels containing the escape character stay distinct."""
        tree = build_interaction_tree([
            PatternRecord(("a~", "b"), 2),
            PatternRecord(("a~-b", "c"), 2),
            PatternRecord(("a", "~b"), 2),
        ])
        ids = [node.id for node in list(tree)[1:]]
        assert len(ids) == len(set(ids)) == 6
        assert "root-a~~-0" in tree

    def test_labels_from_vocabulary(self):
        """Test nodes carry full behavior labels."""
        tree = build_interaction_tree([PatternRecord(("TQ", "SS"), 2)])
        assert tree.get("root-TQ-0").label == "教师提问"
        assert tree.get("root-TQ-0-SS-1").label == "学生发言"

    def test_empty_patterns(self):
        """Test an empty pattern list yields a root-only tree."""
        tree = build_interaction_tree([])
        assert len(tree) == 1
        assert tree.root.children == []
        assert tree.root.count == 0
        assert tree.root.child_distribution is None

    def test_custom_root(self):
        """Test root sentinel settings come from configuration."""
        config = TeachTreeConfig(root_id="top", root_abbr="TOP")
        tree = TreeBuilder(config).build([PatternRecord(("A", "B"), 2)])
        assert tree.root.id == "top"
        assert "top-A-0" in tree


class TestTreeConservation:
    """Tests for count conservation and distributions."""

    @pytest.fixture
    def mined(self, sample_transcript, config):
        runs = preprocess_events(sample_transcript)
        return PatternMiner(config).mine(runs, sample_transcript).patterns

    def test_counts_conserved(self, mined):
        """Test node counts equal the summed counts of patterns passing through them."""
        tree = build_interaction_tree(mined)

        for node in list(tree)[1:]:
            path = tuple(n.abbr for n in tree.path_to(node))
            expected = sum(r.count for r in mined if r.pattern[:node.depth] == path)
            assert node.count == expected

    def test_child_distribution_sums_to_100(self, mined):
        """Test every distribution sums to 100 percent."""
        tree = build_interaction_tree(mined)

        for node in tree:
            if node.children:
                total = sum(share.percentage for share in node.child_distribution)
                assert total == pytest.approx(100.0, abs=0.001)
            else:
                assert node.child_distribution is None

    def test_weighted_average_score(self, scored_records):
        """Test avg_score is weighted by pattern count."""
        tree = build_interaction_tree(scored_records)
        a = tree.get("root-A-0")

        assert a.avg_score == pytest.approx((0.8 * 2 + 0.5 * 1) / 3)
        assert tree.child(a, "B").avg_score == pytest.approx(0.8)
        assert tree.child(a, "C").avg_score == pytest.approx(0.5)

    def test_distribution_percentages(self, scored_records):
        """Test child shares of a two-way split."""
        tree = build_interaction_tree(scored_records)
        shares = {s.abbr: s.percentage for s in tree.get("root-A-0").child_distribution}

        assert shares["B"] == pytest.approx(200 / 3)
        assert shares["C"] == pytest.approx(100 / 3)

    def test_unscored_tree(self, abc_tree):
        """Test patterns without scores leave avg_score empty."""
        assert all(node.avg_score is None for node in abc_tree)


class TestInteractionTree:
    """Tests for arena navigation helpers."""

    def test_descendants_preorder(self, abc_tree):
        """Test descendants are yielded depth-first in child order."""
        ids = [n.id for n in abc_tree.descendants(abc_tree.root)]
        assert ids == [
            "root-A-0",
            "root-A-0-B-1",
            "root-A-0-B-1-C-2",
            "root-B-0",
            "root-B-0-C-1",
        ]

    def test_path_to(self, abc_tree):
        """Test path_to excludes the root."""
        node = abc_tree.get("root-A-0-B-1-C-2")
        assert [n.abbr for n in abc_tree.path_to(node)] == ["A", "B", "C"]
        assert abc_tree.path_to(abc_tree.root) == []

    def test_get_unknown(self, abc_tree):
        """Test unknown ids return None."""
        assert abc_tree.get("root-Z-0") is None
        assert "root-Z-0" not in abc_tree

    def test_to_dict_nested(self, abc_tree):
        """Test nested serialization."""
        data = abc_tree.to_dict()
        assert data["id"] == "root"
        assert [c["abbr"] for c in data["children"]] == ["A", "B"]
        assert data["children"][0]["children"][0]["count"] == 5

    def test_add_child_find_or_create(self):
        """Test add_child returns the existing child for a repeated abbreviation."""
        tree = InteractionTree()
        first = tree.add_child(tree.root, "A")
        second = tree.add_child(tree.root, "A")
        assert first is second
        assert len(tree) == 2


class TestFilterVisible:
    """Tests for the renderer export."""

    def test_only_visible_nodes(self, abc_tree):
        """Test hidden nodes and their subtrees are dropped."""
        data = filter_visible(abc_tree, {"root-A-0", "root-A-0-B-1-C-2"})

        assert [c["id"] for c in data["children"]] == ["root-A-0"]
        # C is visible but its parent is hidden, so it is unreachable
        assert data["children"][0]["children"] == []

    def test_is_leaf_uses_full_tree(self, abc_tree):
        """Test a collapsed inner node is not reported as a leaf."""
        data = filter_visible(abc_tree, {"root-A-0"})
        assert data["children"][0]["is_leaf"] is False

    def test_highlight_flags(self, abc_tree):
        """Test highlighted nodes are flagged."""
        data = filter_visible(abc_tree, abc_tree.node_ids(), ["root-B-0"])
        flags = {c["id"]: c["highlighted"] for c in data["children"]}
        assert flags == {"root-A-0": False, "root-B-0": True}
