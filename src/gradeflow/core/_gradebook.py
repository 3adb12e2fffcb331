"""A type for managing a collection of grades."""

import copy
import logging
from typing import Collection, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .._util import ensure_df
from ..scales import DEFAULT_SCALE, GradeCutoffs, map_scores_to_letter_grades
from ._aggregate import StudentGradeRecord, StudentScoreRecord, grade_student
from ._assignments import AssignmentRegistry
from ._categories import Category, validate_categories
from ._student import Student, Students

logger = logging.getLogger(__name__)

#: the identity columns of a Gradescope export, in order
DEFAULT_IDENTITY_COLUMNS = ["First Name", "Last Name", "SID", "Email", "Sections"]


# private helper functions =============================================================


def _cast_index_to_student_objects(table: pd.DataFrame) -> pd.DataFrame:
    """Ensure that the dataframe index contains Student objects."""

    def _cast(x):
        if isinstance(x, Student):
            return x
        else:
            return Student(x)

    table.index = [_cast(x) for x in table.index]
    return table


def _coerce_scores(table: pd.DataFrame) -> pd.DataFrame:
    """Convert every entry to a float; missing or non-numeric entries become 0."""
    coerced = table.copy()
    for column in coerced.columns:
        coerced[column] = pd.to_numeric(coerced[column], errors="coerce")
    return coerced.fillna(0).astype(float)


def _identity_from_students(students: Sequence[Student]) -> pd.DataFrame:
    """Build an identity table from the attributes of Student objects."""
    rows = [
        [s.first_name, s.last_name, s.pid, s.email, s.section] for s in students
    ]
    return pd.DataFrame(
        rows, index=list(students), columns=DEFAULT_IDENTITY_COLUMNS, dtype=object
    )


# Gradebook ============================================================================


class Gradebook:
    """Stores the grades for a class.

    Typically a Gradebook is not created manually, but is instead produced by
    reading a raw Gradescope export with :func:`gradeflow.io.gradescope.read`,
    or a processed export with :func:`gradeflow.io.gradescope.read_processed`.

    Parameters
    ----------
    points_earned : pandas.DataFrame
        A dataframe with one row per student, and one column for each
        assignment. Each entry should be the raw number of points earned by the
        student on the given assignment. Missing or non-numeric entries are
        treated as zero. The index of the dataframe should consist of
        :class:`Student` objects.
    points_possible : pandas.Series
        A series containing the maximum number of points possible for each
        assignment. The index of the series should match the columns of the
        `points_earned` dataframe.
    identity : Optional[pandas.DataFrame]
        The identity columns of the original export (name, ID, email,
        section, ...), with the same index as `points_earned`. These are
        passed through unchanged to the grade table. If `None`, a table is
        built from the attributes of the :class:`Student` objects.
    categories : Optional[Sequence[Category]]
        The weighted categories used to compute the final score. Default: no
        categories; they must be set before accessing :attr:`final_score`.
    scale : Optional[GradeCutoffs]
        The letter grade cutoffs. If not provided,
        :attr:`gradeflow.scales.DEFAULT_SCALE` is used.

    """

    _kwarg_names = [
        "points_earned",
        "points_possible",
        "identity",
        "categories",
        "scale",
    ]

    def __init__(
        self,
        points_earned: pd.DataFrame,
        points_possible: pd.Series,
        identity: Optional[pd.DataFrame] = None,
        categories: Optional[Sequence[Category]] = None,
        scale: Optional[GradeCutoffs] = None,
    ):
        points_earned = _cast_index_to_student_objects(points_earned.copy())
        self.points_earned = _coerce_scores(points_earned)
        self.points_possible = points_possible.astype(float)
        self.points_possible.name = "Max Points"

        if list(self.points_earned.columns) != list(self.points_possible.index):
            raise ValueError("Points earned and points possible have different assignments.")

        if identity is None:
            identity = _identity_from_students(list(self.points_earned.index))
        else:
            identity = identity.copy()
            identity.index = self.points_earned.index

        self.identity = identity
        self.scale = DEFAULT_SCALE if scale is None else scale
        self.categories = [] if categories is None else categories

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} object with "
            f"{len(self.assignments)} assignments "
            f"and {len(self.pids)} students>"
        )

    # properties: assignments, students ------------------------------------------------

    @property
    def assignments(self) -> list[str]:
        """All assignments in the gradebook, in column order.

        This is a derived attribute; it should not be modified.

        """
        return list(self.points_earned.columns)

    @property
    def registry(self) -> AssignmentRegistry:
        """The maximum points of each assignment, as an :class:`AssignmentRegistry`.

        This is a derived attribute; it should not be modified.

        """
        return AssignmentRegistry.from_series(self.points_possible)

    @property
    def pids(self) -> set[str]:
        """All student PIDs.

        This is a derived attribute; it should not be modified.

        """
        return {s.pid for s in self.points_earned.index}

    @property
    def students(self) -> Students:
        """All students as Student objects.

        Returned in the order they appear in the indices of the `points_earned`
        attribute.

        This is a derived attribute; it should not be modified.

        """
        return Students([s for s in self.points_earned.index])

    # properties: categories -----------------------------------------------------------

    @property
    def categories(self) -> list[Category]:
        """The weighted categories of assignments, in display order.

        When set, the categories are validated against the assignments in
        the gradebook, and a :class:`gradeflow.exceptions.ConfigurationError`
        is raised if a category refers to an unknown assignment.

        """
        return list(self._categories)

    @categories.setter
    def categories(self, value: Sequence[Category]):
        categories = list(value)
        if not all(isinstance(c, Category) for c in categories):
            raise TypeError("Categories must be Category instances.")

        if categories:
            validate_categories(categories, self.registry)

        self._categories = categories

    # properties: scores ---------------------------------------------------------------

    def _weighted_category_score(self, category: Category) -> pd.Series:
        """The weighted score of every student in a single category."""
        registry = self.registry
        columns = [registry.resolve(a) for a in category.assignments]
        columns = [c for c in columns if c is not None]

        total = self.points_earned.loc[:, columns].sum(axis=1)
        denominator = category.denominator(registry)

        if denominator > 0:
            percent = total / denominator
        else:
            percent = pd.Series(0.0, index=self.points_earned.index)

        return (percent * category.weight).clip(lower=0, upper=category.weight)

    @property
    def category_scores(self) -> pd.DataFrame:
        """A table of the weighted score earned in each category.

        Produces a DataFrame with a row for each student and a column for each
        category in which each entry is the student's contribution from that
        category to the final score. A contribution is always between zero
        and the category's weight.

        This is a derived attribute; it should not be modified.

        Raises
        ------
        ValueError
            If :attr:`categories` has not yet been set.

        """
        if not self._categories:
            raise ValueError("Categories should be set before calculating scores.")

        scores = {c.name: self._weighted_category_score(c) for c in self._categories}
        return pd.DataFrame(
            scores, index=self.points_earned.index, columns=[c.name for c in self._categories]
        ).astype(float)

    @property
    def final_score(self) -> pd.Series:
        """A series containing the final score earned by each student.

        The final score is the sum of the weighted category scores. It is not
        clamped.

        This is a derived attribute; it should not be modified.

        Raises
        ------
        ValueError
            If :attr:`categories` has not yet been set.

        """
        score = self.category_scores.sum(axis=1).astype(float)
        score.name = "Final Score"
        return score

    @property
    def letter_grades(self) -> pd.Series:
        """A series containing the letter grade earned by each student.

        Calculated from :attr:`final_score` using the value of the
        :attr:`scale` attribute.

        This is a derived attribute; it should not be modified.

        Raises
        ------
        ValueError
            If :attr:`categories` has not yet been set.

        """
        letters = map_scores_to_letter_grades(self.final_score, scale=self.scale)
        letters.name = "Letter Grade"
        return letters

    # records --------------------------------------------------------------------------

    def score_records(self) -> list[StudentScoreRecord]:
        """One :class:`StudentScoreRecord` per student, in index order."""
        return [
            StudentScoreRecord(student, row.to_dict())
            for student, row in self.points_earned.iterrows()
        ]

    def grade_records(self) -> list[StudentGradeRecord]:
        """One :class:`StudentGradeRecord` per student, in index order.

        Raises
        ------
        ValueError
            If :attr:`categories` has not yet been set.

        """
        if not self._categories:
            raise ValueError("Categories should be set before calculating grades.")

        registry = self.registry
        return [
            grade_student(record, self._categories, registry, self.scale)
            for record in self.score_records()
        ]

    # copying / replacing --------------------------------------------------------------

    def _replace(self, **kwargs) -> "Gradebook":
        """Create a new gradebook with some attributes replaced.

        By default, all attributes are copied. Any attributes that are
        provided as keyword arguments are replaced with the provided values.

        """
        extra = set(kwargs.keys()) - set(self._kwarg_names)
        assert not extra, f"Invalid kwargs provided: {extra}"

        def _copy(obj):
            if hasattr(obj, "copy"):
                return obj.copy()
            else:
                return copy.deepcopy(obj)

        new_kwargs = {}
        for kwarg_name in self._kwarg_names:
            if kwarg_name in kwargs:
                new_kwargs[kwarg_name] = kwargs[kwarg_name]
            else:
                new_kwargs[kwarg_name] = _copy(getattr(self, kwarg_name))

        return self.__class__(**new_kwargs)

    def copy(self) -> "Gradebook":
        """Copy the gradebook.

        Returns
        -------
        Gradebook
            A new gradebook with all attributes copied.

        """
        return self._replace()

    # adding/removing assignments ------------------------------------------------------

    def add_assignment(
        self,
        name: str,
        points_earned: pd.Series,
        points_possible: Union[float, int],
    ):
        """Adds a single assignment to the gradebook, mutating it.

        Parameters
        ----------
        name : str
            The name of the new assignment. Must be unique, ignoring case.
        points_earned : Series[float]
            A Series of points earned by each student, indexed by PID.
            Students that are missing from the series receive zero.
        points_possible : float
            The maximum number of points possible on the assignment.

        Raises
        ------
        ValueError
            If an assignment with the given name already exists, or if grades
            for an unknown student are provided.

        """
        if self.registry.resolve(name) is not None:
            raise ValueError(f'An assignment with the name "{name}" already exists.')

        theirs = {s.pid if isinstance(s, Student) else s for s in points_earned.index}
        unknown = theirs - self.pids
        if unknown:
            raise ValueError(f"Unknown pids {unknown} provided.")

        points = points_earned.reindex(self.points_earned.index)
        self.points_earned[name] = pd.to_numeric(points, errors="coerce").fillna(0)
        self.points_possible[name] = float(points_possible)
        logger.debug('Added assignment "%s" worth %s points.', name, points_possible)

    def restrict_to_assignments(self, assignments: Collection[str]):
        """Restrict the gradebook to only the supplied assignments, removing all others.

        Modifies the gradebook in-place. The categories are reset to an
        empty list, since they may refer to removed assignments.

        Parameters
        ----------
        assignments : Collection[str]
            A collection of assignment names.

        """
        assignments = list(assignments)
        extras = set(assignments) - set(self.assignments)
        if extras:
            raise KeyError(f"These assignments were not in the gradebook: {extras}.")

        self.points_earned = ensure_df(self.points_earned.loc[:, assignments])
        self.points_possible = self.points_possible.loc[assignments]

        self.categories = []

    def remove_assignments(self, assignments: Collection[str]):
        """Removes assignments from the gradebook.

        Modifies the gradebook in-place. The categories are reset to an
        empty list. The order of the remaining assignments is preserved.

        Parameters
        ----------
        assignments : Collection[str]
            A collection of assignments names that will be removed.

        """
        assignments = list(assignments)
        extras = set(assignments) - set(self.assignments)
        if extras:
            raise KeyError(f"These assignments were not in the gradebook: {extras}.")

        return self.restrict_to_assignments(
            [a for a in self.assignments if a not in assignments]
        )

    # adding/removing students ---------------------------------------------------------

    def restrict_to_students(self, to: Collection[Union[str, Student]]):
        """Restrict the gradebook to only the supplied PIDs.

        Parameters
        ----------
        to : Collection[Union[str, Student]]
            A collection of PIDs or Students.

        Raises
        ------
        KeyError
            If a PID was specified that is not in the gradebook.

        """
        pids = [s.pid if isinstance(s, Student) else s for s in to]
        extras = set(pids) - set(self.pids)
        if extras:
            raise KeyError(f"These students were not in the gradebook: {extras}.")

        keep = set(pids)
        mask = np.array([s.pid in keep for s in self.points_earned.index], dtype=bool)
        self.points_earned = self.points_earned.loc[mask].copy()
        self.identity = self.identity.loc[mask].copy()

    def remove_students(self, pids: Collection[Union[str, Student]]):
        """Remove students from the gradebook, mutating it.

        PIDs that are not in the gradebook are ignored.

        """
        pids = {s.pid if isinstance(s, Student) else s for s in pids}
        self.restrict_to_students([s for s in self.students if s.pid not in pids])
