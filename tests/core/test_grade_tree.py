import gc

import pytest

from spts.core.enums import GradeEntryType
from spts.core.exceptions import RangeError, ValidationError
from spts.core.grade_tree import GradeNode, final_score, root_weights_sum_to_one


class TestLeaf:
    def test_leaf_returns_raw_score(self):
        node = GradeNode("Quiz", 0.5, 7.25)
        assert node.is_leaf()
        assert node.calculated_score() == 7.25

    def test_leaf_without_score(self):
        node = GradeNode("Quiz", 0.5)
        assert node.calculated_score() is None
        assert node.weighted_value() is None

    def test_weighted_value(self):
        assert GradeNode("Exam", 0.4, 8.0).weighted_value() == pytest.approx(3.2)

    @pytest.mark.parametrize("score", [-0.1, 10.01, 42])
    def test_score_out_of_range(self, score):
        with pytest.raises(RangeError):
            GradeNode("Quiz", 0.5, score)

    @pytest.mark.parametrize("weight", [-0.5, 1.5])
    def test_weight_out_of_range(self, weight):
        with pytest.raises(RangeError):
            GradeNode("Quiz", weight)

    def test_rejected_update_leaves_node_unchanged(self):
        node = GradeNode("Quiz", 0.5, 6.0)
        with pytest.raises(RangeError):
            node.raw_score = 11.0
        with pytest.raises(RangeError):
            node.weight = 2.0
        assert node.raw_score == 6.0
        assert node.weight == 0.5

    def test_boundaries_accepted(self):
        node = GradeNode("Quiz", 0.0, 0.0)
        node.raw_score = 10.0
        node.weight = 1.0
        assert node.raw_score == 10.0
        assert node.weight == 1.0

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            GradeNode("  ")


class TestComposite:
    def test_weighted_mean(self):
        course = GradeNode("Course")
        for score, weight in [(9.0, 0.4), (8.5, 0.3), (8.0, 0.3)]:
            course.add_child(GradeNode(f"Part {score}", weight, score))
        assert course.calculated_score() == pytest.approx(8.55, abs=0.01)

    def test_weights_are_normalized(self):
        course = GradeNode("Course")
        course.add_child(GradeNode("A", 0.2, 10.0))
        course.add_child(GradeNode("B", 0.2, 6.0))
        assert course.calculated_score() == pytest.approx(8.0)

    def test_children_without_score_are_skipped(self):
        course = GradeNode("Course")
        course.add_child(GradeNode("Midterm", 0.3, 8.0))
        course.add_child(GradeNode("Final", 0.5))
        course.add_child(GradeNode("Lab", 0.2, 6.0))
        # (8.0 * 0.3 + 6.0 * 0.2) / 0.5
        assert course.calculated_score() == pytest.approx(7.2)

    def test_no_resolvable_children(self):
        course = GradeNode("Course")
        course.add_child(GradeNode("Midterm", 0.5))
        course.add_child(GradeNode("Final", 0.5))
        assert course.calculated_score() is None

    def test_zero_weight_children(self):
        course = GradeNode("Course")
        course.add_child(GradeNode("Bonus", 0.0, 10.0))
        assert course.calculated_score() is None

    def test_composite_ignores_own_raw_score(self):
        course = GradeNode("Course", raw_score=2.0)
        course.add_child(GradeNode("Exam", 1.0, 9.0))
        assert course.calculated_score() == 9.0

    def test_nested(self, course_tree):
        course_tree.children[0].add_child(GradeNode("Quiz", 1.0, 6.0))
        # Midterm now resolves to its only child's score
        assert course_tree.calculated_score() == pytest.approx(0.3 * 6.0 + 0.5 * 9.0 + 0.2 * 8.0)

    def test_recomputed_on_every_read(self, course_tree):
        assert course_tree.calculated_score() == pytest.approx(8.5)
        course_tree.children[1].raw_score = 5.0
        assert course_tree.calculated_score() == pytest.approx(6.5)


class TestStructure:
    def test_add_child_sets_parent(self):
        parent = GradeNode("Course", enrollment_id="e1")
        child = GradeNode("Exam", 0.5)
        parent.add_child(child)
        assert child.parent is parent
        assert child.depth == 1
        assert child.enrollment_id == "e1"
        assert parent.children == [child]
        assert not parent.is_leaf()
        assert parent.is_root() and not child.is_root()

    def test_children_keep_insertion_order(self, course_tree):
        assert [c.name for c in course_tree.children] == ["Midterm", "Final", "Lab"]

    def test_children_property_is_a_copy(self, course_tree):
        course_tree.children.clear()
        assert len(course_tree.children) == 3

    def test_add_self_rejected(self):
        node = GradeNode("Course")
        with pytest.raises(ValidationError):
            node.add_child(node)

    def test_add_ancestor_rejected(self):
        root = GradeNode("Root")
        middle = GradeNode("Middle")
        leaf = GradeNode("Leaf")
        root.add_child(middle)
        middle.add_child(leaf)
        with pytest.raises(ValidationError):
            leaf.add_child(root)
        assert root.parent is None

    def test_add_moves_child(self):
        first = GradeNode("First")
        second = GradeNode("Second")
        child = GradeNode("Child")
        first.add_child(child)
        second.add_child(child)
        assert child.parent is second
        assert first.children == []

    def test_remove_child(self, course_tree):
        lab = course_tree.children[2]
        course_tree.remove_child(lab)
        assert lab.parent is None
        assert len(course_tree.children) == 2

    def test_remove_non_child(self, course_tree):
        with pytest.raises(ValidationError):
            course_tree.remove_child(GradeNode("Stranger"))

    def test_parent_reference_is_weak(self):
        child = GradeNode("Child")
        GradeNode("Parent").add_child(child)
        gc.collect()
        assert child.parent is None

    def test_delete_subtree(self, course_tree):
        midterm = course_tree.children[0]
        quiz = GradeNode("Quiz", 1.0, 7.0)
        midterm.add_child(quiz)

        released = midterm.delete_subtree()

        assert released == [midterm, quiz]
        assert midterm.parent is None
        assert quiz.parent is None
        assert midterm.is_leaf()
        assert [c.name for c in course_tree.children] == ["Final", "Lab"]

    def test_iter_subtree_and_leaves(self, course_tree):
        names = [node.name for node in course_tree.iter_subtree()]
        assert names == ["Course", "Midterm", "Final", "Lab"]
        assert [leaf.name for leaf in course_tree.leaves()] == ["Midterm", "Final", "Lab"]

    def test_to_dict(self, course_tree):
        data = course_tree.to_dict()
        assert data['calculated_score'] == pytest.approx(8.5)
        assert data['entry_type'] == GradeEntryType.COMPONENT.value
        assert [child['parent_id'] for child in data['children']] == [course_tree.id] * 3
        assert 'children' not in course_tree.to_dict(include_children=False)


class TestRootSet:
    def test_weights_sum_to_one(self):
        roots = [GradeNode("A", 0.3), GradeNode("B", 0.7)]
        assert root_weights_sum_to_one(roots)

    def test_within_tolerance(self):
        assert root_weights_sum_to_one([GradeNode("A", 0.3335), GradeNode("B", 0.3335), GradeNode("C", 0.3335)])

    def test_weights_do_not_sum_to_one(self):
        assert not root_weights_sum_to_one([GradeNode("A", 0.3), GradeNode("B", 0.3)])
        assert not root_weights_sum_to_one([])

    def test_final_score(self):
        roots = [GradeNode("Coursework", 0.4, 8.5), GradeNode("Exam", 0.6, 9.5)]
        assert final_score(roots) == pytest.approx(9.1)
        assert final_score([GradeNode("Exam", 1.0)]) is None
