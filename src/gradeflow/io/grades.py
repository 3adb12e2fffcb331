"""Write and read computed grades: the grade table and the class metrics."""

import json
import logging
import pathlib
from typing import Union

import pandas as pd

from ..statistics import MetricsSummary

logger = logging.getLogger(__name__)


def write_grade_table(table: pd.DataFrame, path: Union[str, pathlib.Path]):
    """Write a grade table, as made by :func:`gradeflow.statistics.grade_table`."""
    table.to_csv(path, index=False)
    logger.info("Wrote grades for %s students to %s.", len(table), path)


def read_grade_table(path: Union[str, pathlib.Path]) -> pd.DataFrame:
    """Read a grade table written by :func:`write_grade_table`.

    Every column is read as a string, exactly as written, except "Final
    Score", which is converted to a number. Category columns stay strings so
    that they pass through to import files unchanged.

    """
    table = pd.read_csv(path, dtype=str, keep_default_na=False)
    if "Final Score" in table.columns:
        table["Final Score"] = pd.to_numeric(table["Final Score"], errors="coerce").fillna(0)
    return table


def write_metrics(metrics: MetricsSummary, path: Union[str, pathlib.Path]):
    """Write a :class:`gradeflow.statistics.MetricsSummary` as JSON.

    Statistics and percentages are written as strings with two decimal
    places.

    """
    with pathlib.Path(path).open("w") as fileobj:
        json.dump(metrics.to_dict(percent=True), fileobj, indent=2)
    logger.info("Wrote metrics to %s.", path)


def read_metrics(path: Union[str, pathlib.Path]) -> dict:
    """Read metrics written by :func:`write_metrics` as a dictionary."""
    with pathlib.Path(path).open() as fileobj:
        return json.load(fileobj)
