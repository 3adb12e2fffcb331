"""The registry of assignments and their maximum points."""

from collections.abc import Mapping
import typing

import pandas as pd

from .._util import normalize_name
from ..exceptions import ConfigurationError


class AssignmentRegistry(Mapping):
    """A mapping from assignment names to their maximum number of points.

    Behaves like a read-only dictionary, but lookups through :meth:`resolve`
    and :meth:`max_points` ignore case and surrounding whitespace, the same way
    assignment names in a configuration are matched against the column headers
    of a raw export.

    Parameters
    ----------
    max_points : Mapping[str, float]
        The maximum points of each assignment, in display order.

    Raises
    ------
    ConfigurationError
        If any assignment has negative maximum points, or if two names are
        the same after normalization.

    """

    def __init__(self, max_points: typing.Mapping[str, float]):
        self._max_points = {str(k): float(v) for k, v in max_points.items()}

        negative = [k for k, v in self._max_points.items() if v < 0]
        if negative:
            raise ConfigurationError(f"Assignments have negative max points: {negative}")

        self._by_normalized = {}
        for name in self._max_points:
            key = normalize_name(name)
            if key in self._by_normalized:
                raise ConfigurationError(
                    f'Assignments "{self._by_normalized[key]}" and "{name}" '
                    "differ only in case or whitespace."
                )
            self._by_normalized[key] = name

    @classmethod
    def from_series(cls, points_possible: pd.Series) -> "AssignmentRegistry":
        """Create a registry from a Series indexed by assignment name."""
        return cls(points_possible.to_dict())

    def __getitem__(self, name):
        return self._max_points[name]

    def __iter__(self):
        return iter(self._max_points)

    def __len__(self):
        return len(self._max_points)

    def __repr__(self):
        return f"AssignmentRegistry({self._max_points!r})"

    def resolve(self, name: str) -> typing.Optional[str]:
        """The canonical name of an assignment, or `None` if it is unknown."""
        return self._by_normalized.get(normalize_name(name))

    def max_points(self, name: str) -> float:
        """The maximum points of an assignment; zero if it is unknown."""
        canonical = self.resolve(name)
        if canonical is None:
            return 0.0
        return self._max_points[canonical]

    def to_series(self) -> pd.Series:
        """The registry as a Series named "Max Points"."""
        return pd.Series(self._max_points, name="Max Points", dtype=float)
