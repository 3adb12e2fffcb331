"""Unweighted aggregations of assignments: outcome assessment and grade gaps.

Unlike the categories used for the final grade, the groups here are reported
as straight percentages: the points earned on the group's assignments divided
by the points possible, with no weighting and no clamping.

"""

import dataclasses
import logging
from typing import Sequence

import pandas as pd

from .core import Gradebook
from .exceptions import ConfigurationError
from .scales import GradeCutoffs
from . import statistics as _statistics

logger = logging.getLogger(__name__)


# types ================================================================================


@dataclasses.dataclass(frozen=True)
class Outcome:
    """A named set of assignments that measures one student outcome.

    Attributes
    ----------
    code : str
        A short identifier, e.g., "SO1". Used as the column name.
    assignments : Sequence[str]
        The assignments that measure the outcome.

    """

    code: str
    assignments: Sequence[str]


@dataclasses.dataclass(frozen=True)
class AssignmentGroup:
    """A named set of assignments compared in a grade gap analysis."""

    name: str
    assignments: Sequence[str]


# helpers ==============================================================================


def _resolve(gradebook: Gradebook, assignments: Sequence[str], label: str) -> list[str]:
    """Resolve assignment names against the gradebook, raising if any are unknown."""
    registry = gradebook.registry
    resolved = [registry.resolve(a) for a in assignments]
    missing = [a for a, r in zip(assignments, resolved) if r is None]
    if missing:
        raise ConfigurationError(f'"{label}" refers to unknown assignments: {missing}')
    return [r for r in resolved if r is not None]


def _straight_percentage(gradebook: Gradebook, columns: list[str]) -> pd.Series:
    """Points earned over points possible, out of 100; zero if nothing is possible."""
    possible = gradebook.points_possible.loc[columns].sum()
    earned = gradebook.points_earned.loc[:, columns].sum(axis=1)
    if possible > 0:
        return (earned / possible * 100).astype(float)
    return pd.Series(0.0, index=gradebook.points_earned.index)


# outcomes =============================================================================


def outcome_percentages(gradebook: Gradebook, outcomes: Sequence[Outcome]) -> pd.DataFrame:
    """Compute each student's percentage on each outcome.

    Parameters
    ----------
    gradebook : Gradebook
        The gradebook containing the raw scores.
    outcomes : Sequence[Outcome]
        The outcomes, in column order.

    Returns
    -------
    pd.DataFrame
        One row per student and one column per outcome code. Entries are
        percentages out of 100 and are not rounded.

    Raises
    ------
    ConfigurationError
        If an outcome refers to an unknown assignment.

    """
    columns = {}
    for outcome in outcomes:
        resolved = _resolve(gradebook, outcome.assignments, outcome.code)
        columns[outcome.code] = _straight_percentage(gradebook, resolved)

    return pd.DataFrame(
        columns, index=gradebook.points_earned.index, columns=[o.code for o in outcomes]
    ).astype(float)


def count_letters(percentages: Sequence[float], cutoffs: GradeCutoffs) -> dict[str, int]:
    """Count how many percentages fall into each letter of the cutoff table.

    The table is scanned in order and each percentage is counted under the
    first letter whose threshold it meets. Percentages below every threshold
    are not counted.

    """
    counts = {letter: 0 for letter in cutoffs.letters}
    for value in percentages:
        for letter, threshold in cutoffs:
            if value >= threshold:
                counts[letter] += 1
                break
    return counts


def summarize_outcomes(
    percentages: pd.DataFrame, cutoffs: GradeCutoffs
) -> dict[str, dict]:
    """Summarize the output of :func:`outcome_percentages`.

    Returns
    -------
    dict[str, dict]
        For each outcome code, the "average" and "stddev" (rounded to two
        decimals), the number of students "count", and "grade_counts", the
        result of :func:`count_letters`.

    """
    summary = {}
    for code in percentages.columns:
        values = list(percentages[code])
        summary[code] = {
            "average": round(_statistics.mean(values), 2),
            "stddev": round(_statistics.stddev(values), 2),
            "count": len(values),
            "grade_counts": count_letters(values, cutoffs),
        }
    return summary


def outcome_table(gradebook: Gradebook, outcomes: Sequence[Outcome]) -> pd.DataFrame:
    """The identity columns followed by each outcome percentage, rounded to two decimals."""
    percentages = outcome_percentages(gradebook, outcomes).round(2)
    return pd.concat([gradebook.identity, percentages], axis=1).reset_index(drop=True)


# grade gaps ===========================================================================


def grade_gap(
    gradebook: Gradebook, group1: AssignmentGroup, group2: AssignmentGroup
) -> pd.DataFrame:
    """Compare each student's performance on two groups of assignments.

    Parameters
    ----------
    gradebook : Gradebook
        The gradebook containing the raw scores.
    group1, group2 : AssignmentGroup
        The groups to compare.

    Returns
    -------
    pd.DataFrame
        The identity columns, then "<group1> (%)", "<group2> (%)" and "Gap"
        (the first percentage minus the second), rounded to two decimals.

    Raises
    ------
    ConfigurationError
        If either group refers to an unknown assignment.

    """
    first = _straight_percentage(gradebook, _resolve(gradebook, group1.assignments, group1.name))
    second = _straight_percentage(gradebook, _resolve(gradebook, group2.assignments, group2.name))

    gaps = pd.DataFrame(
        {
            f"{group1.name} (%)": first.round(2),
            f"{group2.name} (%)": second.round(2),
            "Gap": (first - second).round(2),
        },
        index=gradebook.points_earned.index,
    )
    return pd.concat([gradebook.identity, gaps], axis=1).reset_index(drop=True)


def summarize_gaps(gaps: pd.DataFrame) -> dict[str, float]:
    """Summarize the "Gap" column produced by :func:`grade_gap`.

    Returns
    -------
    dict[str, float]
        The "average" gap and the number of "positive", "negative" and
        "zero" gaps.

    """
    gap = gaps["Gap"]
    return {
        "average": _statistics.mean(gap),
        "positive": int((gap > 0).sum()),
        "negative": int((gap < 0).sum()),
        "zero": int((gap == 0).sum()),
    }
