"""Pure functions that turn one student's raw scores into a grade.

These operate on plain mappings and are the reference definition of how a
grade is computed. :class:`gradeflow.Gradebook` computes the same quantities
for a whole class at once using pandas.

"""

import dataclasses
import types
from typing import Mapping, Sequence

from .._util import normalize_name, to_score
from ..scales import GradeCutoffs
from ._assignments import AssignmentRegistry
from ._categories import Category
from ._student import Student


# records ==============================================================================


@dataclasses.dataclass(frozen=True)
class StudentScoreRecord:
    """A student's identity and their raw score on each assignment.

    Scores are coerced to floats when the record is created; anything that
    is missing or not a number becomes 0.

    """

    student: Student
    scores: Mapping[str, float]

    def __post_init__(self):
        scores = {str(k): to_score(v) for k, v in self.scores.items()}
        object.__setattr__(self, "scores", types.MappingProxyType(scores))

    def score(self, assignment: str) -> float:
        """The raw score on an assignment, matched ignoring case and whitespace."""
        target = normalize_name(assignment)
        for name, value in self.scores.items():
            if normalize_name(name) == target:
                return value
        return 0.0


@dataclasses.dataclass(frozen=True)
class StudentGradeRecord:
    """A student's identity, weighted category scores, final score and letter."""

    student: Student
    category_scores: Mapping[str, float]
    final_score: float
    letter_grade: str

    def __post_init__(self):
        object.__setattr__(
            self, "category_scores", types.MappingProxyType(dict(self.category_scores))
        )


# public functions =====================================================================


def weighted_category_score(
    scores: Mapping[str, float], category: Category, registry: AssignmentRegistry
) -> float:
    """Compute a student's weighted contribution from a single category.

    The raw scores of the category's assignments are summed and divided by
    the category's denominator: its explicit `max_points` if set and
    nonzero, otherwise the sum of the assignments' maximum points. The
    resulting fraction is multiplied by the category weight and clamped to
    ``[0, weight]``.

    Parameters
    ----------
    scores : Mapping[str, float]
        The student's raw score on each assignment. Missing or non-numeric
        scores count as zero.
    category : Category
        The category definition.
    registry : AssignmentRegistry
        The maximum points of each assignment. Unknown assignments have a
        maximum of zero.

    Returns
    -------
    float
        The weighted score, between 0 and `category.weight`. If the
        denominator is zero, the result is zero.

    Example
    -------

    .. code:: python

        >>> registry = AssignmentRegistry({"HW1": 10, "HW2": 10})
        >>> hw = Category("HW", ["HW1", "HW2"], weight=30)
        >>> weighted_category_score({"HW1": 8, "HW2": 9}, hw, registry)
        25.5

    """
    record = StudentScoreRecord(Student(None), scores)

    total = sum(record.score(a) for a in category.assignments)
    denominator = category.denominator(registry)

    percent = total / denominator if denominator > 0 else 0.0
    weighted = percent * category.weight

    return max(0.0, min(weighted, category.weight))


def final_score(weighted_scores: Mapping[str, float]) -> float:
    """The final score: the sum of the weighted category scores."""
    return float(sum(weighted_scores.values()))


def grade_student(
    record: StudentScoreRecord,
    categories: Sequence[Category],
    registry: AssignmentRegistry,
    cutoffs: GradeCutoffs,
) -> StudentGradeRecord:
    """Compute the grade record of a single student.

    Parameters
    ----------
    record : StudentScoreRecord
        The student's raw scores.
    categories : Sequence[Category]
        The categories, in display order.
    registry : AssignmentRegistry
        The maximum points of each assignment.
    cutoffs : GradeCutoffs
        The letter grade cutoffs.

    Returns
    -------
    StudentGradeRecord

    """
    weighted = {
        category.name: weighted_category_score(record.scores, category, registry)
        for category in categories
    }
    score = final_score(weighted)
    return StudentGradeRecord(
        student=record.student,
        category_scores=weighted,
        final_score=score,
        letter_grade=cutoffs.classify(score),
    )
