"""Weighted groups of assignments."""

import logging
import math
from typing import Optional, Sequence

from ..exceptions import ConfigurationError
from ._assignments import AssignmentRegistry

logger = logging.getLogger(__name__)


class Category:
    """A named, weighted group of assignments.

    Attributes
    ----------
    name : str
        The name of the category, e.g., "Homework".
    assignments : list[str]
        The names of the assignments in the category. These are matched
        against the assignment registry ignoring case and whitespace.
    weight : float
        The most that the category can contribute to the final score, on the
        same scale as the grade cutoffs (usually out of 100).
    max_points : Optional[float]
        If given (and nonzero), the denominator used when converting the
        category's total points to a percentage. Otherwise the sum of the
        assignments' maximum points is used.

    Raises
    ------
    ValueError
        If the weight or the maximum points are negative.

    """

    _attrs = ["name", "assignments", "weight", "max_points"]

    def __init__(
        self,
        name: str,
        assignments: Sequence[str],
        weight: float,
        max_points: Optional[float] = None,
    ):
        self.name = name
        self.assignments = list(assignments)
        self.weight = float(weight)
        self.max_points = None if max_points is None else float(max_points)

        self.validate()

    def __repr__(self):
        return (
            f"Category(name={self.name!r}, assignments={self.assignments!r}, "
            f"weight={self.weight!r}, max_points={self.max_points!r})"
        )

    def __eq__(self, other):
        if not isinstance(other, Category):
            return False
        return all(getattr(self, attr) == getattr(other, attr) for attr in self._attrs)

    def validate(self):
        """Check that the weight and maximum points are not negative."""
        if self.weight < 0:
            raise ValueError(f'Category "{self.name}" has a negative weight.')

        if self.max_points is not None and self.max_points < 0:
            raise ValueError(f'Category "{self.name}" has negative max points.')

    def denominator(self, registry: AssignmentRegistry) -> float:
        """The number of points that counts as 100% in this category."""
        if self.max_points:
            return self.max_points
        return sum(registry.max_points(a) for a in self.assignments)


def validate_categories(
    categories: Sequence[Category], registry: AssignmentRegistry
) -> None:
    """Check a list of categories against an assignment registry.

    Parameters
    ----------
    categories : Sequence[Category]
        The categories, in display order.
    registry : AssignmentRegistry
        The known assignments.

    Raises
    ------
    ConfigurationError
        If two categories share a name, or if a category refers to an
        assignment that is not in the registry.

    Notes
    -----
    A category whose denominator works out to zero is *not* an error; it
    contributes nothing to the final score. A warning is logged instead.

    """
    names = [c.name for c in categories]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate category names: {duplicates}")

    for category in categories:
        missing = [a for a in category.assignments if registry.resolve(a) is None]
        if missing:
            raise ConfigurationError(
                f'Category "{category.name}" refers to unknown assignments: {missing}'
            )

        if category.denominator(registry) <= 0:
            logger.warning(
                'Category "%s" has no points possible; it will contribute 0.',
                category.name,
            )

    total_weight = sum(c.weight for c in categories)
    if categories and not math.isclose(total_weight, 100):
        logger.warning("Category weights sum to %s, not 100.", total_weight)
