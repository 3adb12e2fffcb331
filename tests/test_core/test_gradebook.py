"""Tests of the Gradebook class."""

import pandas as pd
import pytest

import gradeflow
from gradeflow.core import Category, Student
from gradeflow.scales import GradeCutoffs

CUTOFFS = GradeCutoffs([("A", 90), ("B", 80), ("C", 70), ("D", 60)])


def _example_gradebook(**kwargs):
    students = [Student("A1", "Alice"), Student("A2", "Bob"), Student("A3", "Carol")]
    points_earned = pd.DataFrame(
        {"HW1": [8, 12, None], "HW2": [9, 10, "x"], "Midterm": [45, 30, 0]},
        index=students,
    )
    points_possible = pd.Series({"HW1": 10, "HW2": 10, "Midterm": 50})
    return gradeflow.Gradebook(points_earned, points_possible, scale=CUTOFFS, **kwargs)


CATEGORIES = [
    Category("Homework", ["hw1", "hw2"], 30),
    Category("Exams", ["midterm"], 70),
]


# construction -------------------------------------------------------------------------


def test_missing_and_garbage_scores_become_zero():
    gb = _example_gradebook()
    assert gb.points_earned.loc["A3"].tolist() == [0, 0, 0]
    assert gb.points_earned.dtypes.eq(float).all()


def test_index_is_cast_to_student_objects():
    # given
    points_earned = pd.DataFrame({"HW1": [1, 2]}, index=["A1", "A2"])

    # when
    gb = gradeflow.Gradebook(points_earned, pd.Series({"HW1": 10}))

    # then
    assert all(isinstance(s, Student) for s in gb.points_earned.index)
    assert gb.pids == {"A1", "A2"}


def test_mismatched_points_possible_raises():
    points_earned = pd.DataFrame({"HW1": [1]}, index=["A1"])
    with pytest.raises(ValueError):
        gradeflow.Gradebook(points_earned, pd.Series({"HW2": 10}))


def test_identity_is_built_from_students_when_not_given():
    gb = _example_gradebook()
    assert list(gb.identity.columns) == ["First Name", "Last Name", "SID", "Email", "Sections"]
    assert list(gb.identity["SID"]) == ["A1", "A2", "A3"]


def test_default_scale_is_used_when_none_given():
    points_earned = pd.DataFrame({"HW1": [1]}, index=["A1"])
    gb = gradeflow.Gradebook(points_earned, pd.Series({"HW1": 10}))
    assert gb.scale == gradeflow.DEFAULT_SCALE


# categories ---------------------------------------------------------------------------


def test_setting_categories_with_unknown_assignment_raises():
    gb = _example_gradebook()
    with pytest.raises(gradeflow.ConfigurationError):
        gb.categories = [Category("Homework", ["HW3"], 100)]


def test_setting_categories_that_are_not_categories_raises():
    gb = _example_gradebook()
    with pytest.raises(TypeError):
        gb.categories = [{"name": "Homework"}]


def test_scores_without_categories_raise():
    gb = _example_gradebook()
    with pytest.raises(ValueError):
        gb.final_score


# scores -------------------------------------------------------------------------------


def test_category_scores_on_example():
    # given
    gb = _example_gradebook(categories=CATEGORIES)

    # when
    scores = gb.category_scores

    # then
    assert list(scores.columns) == ["Homework", "Exams"]
    assert scores.loc["A1", "Homework"] == pytest.approx(25.5)
    # 22 out of 20 is clamped to the weight
    assert scores.loc["A2", "Homework"] == pytest.approx(30)
    assert scores.loc["A2", "Exams"] == pytest.approx(42)
    assert scores.loc["A3"].tolist() == [0, 0]


def test_final_score_and_letter_grades_on_example():
    # given
    gb = _example_gradebook(categories=CATEGORIES)

    # then
    assert gb.final_score.name == "Final Score"
    assert gb.final_score.tolist() == pytest.approx([88.5, 72, 0])
    assert gb.letter_grades.name == "Letter Grade"
    assert gb.letter_grades.tolist() == ["B", "C", "F"]


def test_vectorized_scores_agree_with_pure_functions():
    # given
    gb = _example_gradebook(categories=CATEGORIES)

    # when
    records = gb.grade_records()

    # then
    for record in records:
        assert record.final_score == pytest.approx(gb.final_score.loc[record.student])
        assert record.letter_grade == gb.letter_grades.loc[record.student]
        for name, score in record.category_scores.items():
            assert score == pytest.approx(gb.category_scores.loc[record.student, name])


def test_category_with_zero_points_possible_contributes_zero():
    # given
    points_earned = pd.DataFrame({"HW1": [5], "Bonus": [3]}, index=["A1"])
    points_possible = pd.Series({"HW1": 10, "Bonus": 0})

    gb = gradeflow.Gradebook(
        points_earned,
        points_possible,
        categories=[Category("HW", ["HW1"], 90), Category("Extra", ["Bonus"], 10)],
    )

    # then
    assert gb.category_scores.loc["A1", "Extra"] == 0
    assert gb.final_score.loc["A1"] == pytest.approx(45)


# copying ------------------------------------------------------------------------------


def test_copy_is_independent():
    # given
    gb = _example_gradebook(categories=CATEGORIES)

    # when
    copy = gb.copy()
    copy.points_earned.loc["A1", "HW1"] = 0

    # then
    assert gb.points_earned.loc["A1", "HW1"] == 8
    assert copy.categories == gb.categories


# adding/removing assignments ----------------------------------------------------------


def test_add_assignment_fills_missing_students_with_zero():
    # given
    gb = _example_gradebook()

    # when
    gb.add_assignment("Quiz", pd.Series({"A1": 4, "A3": "3"}), 5)

    # then
    assert gb.assignments[-1] == "Quiz"
    assert gb.points_possible["Quiz"] == 5
    assert gb.points_earned["Quiz"].tolist() == [4, 0, 3]


def test_add_assignment_with_duplicate_name_raises():
    gb = _example_gradebook()
    with pytest.raises(ValueError):
        gb.add_assignment("hw1", pd.Series({"A1": 4}), 5)


def test_add_assignment_with_unknown_student_raises():
    gb = _example_gradebook()
    with pytest.raises(ValueError):
        gb.add_assignment("Quiz", pd.Series({"Z9": 4}), 5)


def test_remove_assignments_keeps_order_and_resets_categories():
    # given
    gb = _example_gradebook(categories=CATEGORIES)

    # when
    gb.remove_assignments(["HW2"])

    # then
    assert gb.assignments == ["HW1", "Midterm"]
    assert list(gb.points_possible.index) == ["HW1", "Midterm"]
    assert gb.categories == []


def test_remove_unknown_assignment_raises():
    gb = _example_gradebook()
    with pytest.raises(KeyError):
        gb.remove_assignments(["HW9"])


# adding/removing students -------------------------------------------------------------


def test_restrict_to_students_updates_scores_and_identity():
    # given
    gb = _example_gradebook()

    # when
    gb.restrict_to_students(["A1", "A3"])

    # then
    assert gb.pids == {"A1", "A3"}
    assert list(gb.identity["SID"]) == ["A1", "A3"]


def test_restrict_to_unknown_student_raises():
    gb = _example_gradebook()
    with pytest.raises(KeyError):
        gb.restrict_to_students(["Z9"])


def test_remove_students_ignores_unknown_pids():
    # given
    gb = _example_gradebook()

    # when
    gb.remove_students(["A2", "Z9"])

    # then
    assert [s.pid for s in gb.students] == ["A1", "A3"]
