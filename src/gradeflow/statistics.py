"""Summary statistics of a class's grades."""

import dataclasses
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .core import Category, Gradebook, StudentGradeRecord
from .scales import GradeCutoffs


# reductions ===========================================================================


def _as_array(values: Iterable[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def mean(values: Iterable[float]) -> float:
    """The arithmetic mean; zero if there are no values."""
    arr = _as_array(values)
    return float(arr.mean()) if arr.size else 0.0


def median(values: Iterable[float]) -> float:
    """The median; the two middle values are averaged for an even count.

    Zero if there are no values.

    """
    arr = _as_array(values)
    return float(np.median(arr)) if arr.size else 0.0


def stddev(values: Iterable[float]) -> float:
    """The sample standard deviation (divisor ``n - 1``).

    Zero if there are fewer than two values.

    """
    arr = _as_array(values)
    return float(arr.std(ddof=1)) if arr.size >= 2 else 0.0


def minimum(values: Iterable[float]) -> float:
    """The smallest value; zero if there are no values."""
    arr = _as_array(values)
    return float(arr.min()) if arr.size else 0.0


def maximum(values: Iterable[float]) -> float:
    """The largest value; zero if there are no values."""
    arr = _as_array(values)
    return float(arr.max()) if arr.size else 0.0


def describe(values: Iterable[float]) -> dict[str, float]:
    """Compute the mean, median, standard deviation, minimum and maximum.

    Parameters
    ----------
    values : Iterable[float]
        The numbers to summarize. May be empty.

    Returns
    -------
    dict[str, float]
        A dictionary with keys "mean", "median", "stddev", "min" and "max".
        Every entry is zero when `values` is empty.

    """
    values = list(values)
    return {
        "mean": mean(values),
        "median": median(values),
        "stddev": stddev(values),
        "min": minimum(values),
        "max": maximum(values),
    }


# letter grades ========================================================================


def letter_grade_distribution(letters: pd.Series, cutoffs: GradeCutoffs) -> pd.Series:
    """Counts the frequency of each letter grade.

    Parameters
    ----------
    letters : pd.Series
        The letter grades.
    cutoffs : GradeCutoffs
        The cutoff table. Its letters determine the order and the set of
        letters that are counted.

    Returns
    -------
    pd.Series
        The count of each letter grade, in the order of the cutoff table.

    """
    counts = letters.value_counts().reindex(cutoffs.letters)
    counts.index.name = "Letter"
    counts.name = "Frequency"
    return counts.fillna(0).astype(int)


def grade_distribution(
    letters: Sequence[str], cutoffs: GradeCutoffs
) -> dict[str, dict[str, float]]:
    """The count and percentage of students receiving each letter grade.

    Parameters
    ----------
    letters : Sequence[str]
        The letter grade of every student.
    cutoffs : GradeCutoffs
        The cutoff table; letters are reported in its order.

    Returns
    -------
    dict[str, dict[str, float]]
        Maps each letter to ``{"count": ..., "percent": ...}``, where the
        percentage is out of 100. With no students, every count and
        percentage is zero.

    """
    letters = list(letters)
    total = len(letters)
    counts = letter_grade_distribution(pd.Series(letters, dtype=object), cutoffs)

    distribution = {}
    for letter in cutoffs.letters:
        count = int(counts[letter])
        percent = count / total * 100 if total else 0.0
        distribution[letter] = {"count": count, "percent": percent}
    return distribution


# metrics ==============================================================================


def _fmt(value: float) -> str:
    return f"{value:.2f}"


@dataclasses.dataclass(frozen=True)
class MetricsSummary:
    """Aggregate statistics for a class.

    Attributes
    ----------
    total_students : int
    categories : dict[str, dict[str, float]]
        For each category, the "mean", "median", "stddev", "min" and "max" of
        the weighted category scores, as well as "max_possible", the
        category's weight.
    final_score : dict[str, float]
        The "mean", "median", "stddev", "min" and "max" of the final scores.
    grade_distribution : dict[str, dict[str, float]]
        The "count" and "percent" of each letter grade, in cutoff order.

    """

    total_students: int
    categories: Mapping[str, Mapping[str, float]]
    final_score: Mapping[str, float]
    grade_distribution: Mapping[str, Mapping[str, float]]

    def to_dict(self, percent: bool = True) -> dict:
        """Convert to a nested dictionary, e.g., for writing as JSON.

        Parameters
        ----------
        percent : bool
            If True, statistics and percentages are formatted as strings
            with two decimal places, and counts are integers. If False, raw
            numbers are returned. Default: True.

        """
        fmt = _fmt if percent else float

        def _stats(stats):
            return {k: fmt(v) for k, v in stats.items()}

        categories = {}
        for name, stats in self.categories.items():
            entry = _stats({k: v for k, v in stats.items() if k != "max_possible"})
            entry["max_possible"] = stats["max_possible"]
            categories[name] = entry

        return {
            "total_students": int(self.total_students),
            "categories": categories,
            "final_score": _stats(self.final_score),
            "grade_distribution": {
                letter: {"count": int(d["count"]), "percent": fmt(d["percent"])}
                for letter, d in self.grade_distribution.items()
            },
        }


def summarize_records(
    records: Sequence[StudentGradeRecord],
    categories: Sequence[Category],
    cutoffs: GradeCutoffs,
) -> MetricsSummary:
    """Compute a :class:`MetricsSummary` from per-student grade records.

    Parameters
    ----------
    records : Sequence[StudentGradeRecord]
        One record per student. May be empty.
    categories : Sequence[Category]
        The categories, in display order.
    cutoffs : GradeCutoffs
        The cutoff table used to order the grade distribution.

    Returns
    -------
    MetricsSummary

    """
    category_stats = {}
    for category in categories:
        stats = describe(r.category_scores[category.name] for r in records)
        stats["max_possible"] = category.weight
        category_stats[category.name] = stats

    return MetricsSummary(
        total_students=len(records),
        categories=category_stats,
        final_score=describe(r.final_score for r in records),
        grade_distribution=grade_distribution(
            [r.letter_grade for r in records], cutoffs
        ),
    )


def compute_metrics(gradebook: Gradebook) -> MetricsSummary:
    """Compute a :class:`MetricsSummary` for every student in a gradebook.

    Raises
    ------
    ValueError
        If the gradebook's categories have not been set.

    """
    category_scores = gradebook.category_scores

    category_stats = {}
    for category in gradebook.categories:
        stats = describe(category_scores[category.name])
        stats["max_possible"] = category.weight
        category_stats[category.name] = stats

    return MetricsSummary(
        total_students=len(gradebook.students),
        categories=category_stats,
        final_score=describe(gradebook.final_score),
        grade_distribution=grade_distribution(
            list(gradebook.letter_grades), gradebook.scale
        ),
    )


# tables ===============================================================================


def grade_table(gradebook: Gradebook, decimals: Optional[int] = 2) -> pd.DataFrame:
    """Compute a table summarizing each student's grade.

    Parameters
    ----------
    gradebook : Gradebook
        The gradebook used to compute grades.
    decimals : Optional[int]
        The number of decimal places to round scores to. If `None`, scores
        are not rounded. Default: 2.

    Returns
    -------
    pd.DataFrame
        A table with one row per student, in gradebook order, containing the
        identity columns, the weighted score of each category, "Final Score"
        and "Letter Grade". The index is reset to a range index.

    """
    scores = pd.concat([gradebook.category_scores, gradebook.final_score], axis=1)
    if decimals is not None:
        scores = scores.round(decimals)

    table = pd.concat(
        [gradebook.identity, scores, gradebook.letter_grades], axis=1
    )
    return table.reset_index(drop=True)
