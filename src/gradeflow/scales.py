"""Mapping final scores to letter grades."""

import math
from collections.abc import Mapping
from typing import Iterable, Iterator, Optional, Tuple, Union

import pandas as pd

from .exceptions import ConfigurationError


# helper functions =====================================================================


def _check_that_scale_monotonically_decreases(pairs):
    prev = float("inf")
    for letter, threshold in pairs:
        if not math.isfinite(threshold):
            raise ConfigurationError(f"The threshold of {letter!r} is not a finite number.")
        if threshold >= prev:
            raise ConfigurationError(
                f"Grade cutoffs are not in strictly descending order at {letter!r}."
            )
        prev = threshold


# GradeCutoffs =========================================================================


class GradeCutoffs:
    """An ordered table of letter grades and their minimum scores.

    The table is scanned from first to last, and the first letter whose
    threshold is at most the score is assigned. For this to be meaningful
    the thresholds must be strictly decreasing; this is checked when the
    table is created.

    Parameters
    ----------
    cutoffs : Union[Mapping[str, float], Iterable[Tuple[str, float]]]
        Either a sequence of ``(letter, threshold)`` pairs or a mapping whose
        iteration order is the scanning order.
    fallback : str
        The letter assigned when no threshold matches. Default: ``"F"``.

    Raises
    ------
    ConfigurationError
        If the table is empty, contains a duplicate letter, has a
        threshold that is not finite, or is not in strictly descending order.

    Example
    -------

    .. code:: python

        >>> cutoffs = GradeCutoffs([("A", 90), ("B", 80), ("C", 70), ("D", 60)])
        >>> cutoffs.classify(79.99)
        'C'
        >>> cutoffs.classify(12)
        'F'

    """

    def __init__(
        self,
        cutoffs: Union[Mapping, Iterable[Tuple[str, float]]],
        fallback: str = "F",
    ):
        if isinstance(cutoffs, Mapping):
            pairs = list(cutoffs.items())
        else:
            pairs = [tuple(pair) for pair in cutoffs]

        if not pairs:
            raise ConfigurationError("Grade cutoffs cannot be empty.")

        letters = [letter for letter, _ in pairs]
        if len(set(letters)) != len(letters):
            raise ConfigurationError(f"Grade cutoffs contain a duplicate letter: {letters}")

        pairs = [(str(letter), float(threshold)) for letter, threshold in pairs]
        _check_that_scale_monotonically_decreases(pairs)

        self._pairs = tuple(pairs)
        self.fallback = fallback

    def __repr__(self):
        return f"GradeCutoffs({list(self._pairs)!r}, fallback={self.fallback!r})"

    def __eq__(self, other):
        if not isinstance(other, GradeCutoffs):
            return False
        return self._pairs == other._pairs and self.fallback == other.fallback

    def __iter__(self) -> Iterator[Tuple[str, float]]:
        return iter(self._pairs)

    def __len__(self):
        return len(self._pairs)

    def __getitem__(self, letter: str) -> float:
        for candidate, threshold in self._pairs:
            if candidate == letter:
                return threshold
        raise KeyError(letter)

    def __contains__(self, letter) -> bool:
        return letter in self.letters

    def items(self):
        """The ``(letter, threshold)`` pairs, in scanning order."""
        return list(self._pairs)

    @property
    def letters(self) -> list[str]:
        """The letters in scanning order."""
        return [letter for letter, _ in self._pairs]

    @property
    def thresholds(self) -> list[float]:
        """The thresholds in scanning order."""
        return [threshold for _, threshold in self._pairs]

    def classify(self, score: float) -> str:
        """Map a single score to a letter grade."""
        for letter, threshold in self._pairs:
            if score >= threshold:
                return letter
        return self.fallback

    def shifted(self, amount: float) -> "GradeCutoffs":
        """A new table with every threshold moved by `amount`.

        Thresholds that would become negative are set to zero.

        """
        return GradeCutoffs(
            [(letter, max(threshold + amount, 0)) for letter, threshold in self._pairs],
            fallback=self.fallback,
        )


# common scales ========================================================================

DEFAULT_SCALE = GradeCutoffs(
    [
        ("A+", 97),
        ("A", 93),
        ("A-", 90),
        ("B+", 87),
        ("B", 83),
        ("B-", 80),
        ("C+", 77),
        ("C", 73),
        ("C-", 70),
        ("D", 60),
        ("F", 0),
    ]
)
"""The default grading scale, on a 0-100 point scale."""

#: a rounded version of the default scale, where each threshold is one half point lower
ROUNDED_DEFAULT_SCALE = DEFAULT_SCALE.shifted(-0.5)
"""The default grading scale in which scores are rounded up. E.g., a 92.5 is an A."""


# public functions =====================================================================


def classify(score: float, cutoffs: Optional[GradeCutoffs] = None) -> str:
    """Map a final score to a letter grade.

    Parameters
    ----------
    score : float
        The final score.
    cutoffs : Optional[GradeCutoffs]
        The cutoff table. Default: :attr:`DEFAULT_SCALE`.

    Returns
    -------
    str
        The first letter whose threshold is at most `score`, or the
        fallback letter of the table if there is none.

    """
    if cutoffs is None:
        cutoffs = DEFAULT_SCALE
    return cutoffs.classify(score)


def map_scores_to_letter_grades(
    scores: pd.Series, scale: Optional[GradeCutoffs] = None
) -> pd.Series:
    """Map each final score to a letter grade.

    Parameters
    ----------
    scores : pandas.Series
        A series containing final scores on the same scale as the cutoffs.
    scale : Optional[GradeCutoffs]
        The cutoff table. Default: :attr:`DEFAULT_SCALE`.

    Returns
    -------
    pandas.Series
        A series containing the resulting letter grades.

    """
    if scale is None:
        scale = DEFAULT_SCALE

    return scores.apply(scale.classify).astype(object)
