"""Build a Canvas gradebook import from computed grades."""

import json
import logging
import pathlib
from typing import Sequence, Union

import pandas as pd

from ..core import Category

logger = logging.getLogger(__name__)

#: the columns that identify a student in a Canvas gradebook export
PRIMARY_COLUMNS = ["Student", "ID", "SIS User ID", "SIS Login ID", "Section"]

_POINTS_POSSIBLE = "Points Possible"


def _format_weight(weight: float) -> str:
    return f"{weight:g}"


def read_export(path: Union[str, pathlib.Path]) -> pd.DataFrame:
    """Read the students of a gradebook exported from Canvas.

    Only the first five columns are kept and they are renamed to
    :data:`PRIMARY_COLUMNS`. The "Points Possible" row that Canvas places
    under the header is dropped. Every entry is a string.

    """
    table = pd.read_csv(path, dtype=str, keep_default_na=False)
    table = table.iloc[:, : len(PRIMARY_COLUMNS)]
    table.columns = PRIMARY_COLUMNS

    is_points_row = table["Student"].str.strip() == _POINTS_POSSIBLE
    return table.loc[~is_points_row].reset_index(drop=True)


def build_import(
    canvas_students: pd.DataFrame,
    grades: pd.DataFrame,
    categories: Sequence[Category],
) -> tuple[pd.DataFrame, dict[str, list[dict]]]:
    """Match Canvas students to their grades and lay out a Canvas import.

    Students are matched by comparing Canvas's "SIS User ID" to the "SID"
    column of the grade table.

    Parameters
    ----------
    canvas_students : pd.DataFrame
        The students of a Canvas export, as read by :func:`read_export`.
    grades : pd.DataFrame
        A grade table with an "SID" column and one column per category.
    categories : Sequence[Category]
        The categories to import, in column order.

    Returns
    -------
    table : pd.DataFrame
        The import: the primary columns and one column per category. The
        first row is the "Points Possible" row, holding each category's
        weight. Then follows one row per matched Canvas student, in Canvas
        order.
    errors : dict[str, list[dict]]
        "missing_from_grades": Canvas students without a grade, and
        "missing_from_canvas": graded students not in the Canvas export.

    """
    names = [c.name for c in categories]
    grades = grades.copy()
    grades["SID"] = grades["SID"].astype(str)

    by_sid = grades.drop_duplicates("SID").set_index("SID")
    matched = canvas_students["SIS User ID"].isin(by_sid.index)

    rows = canvas_students.loc[matched, PRIMARY_COLUMNS].reset_index(drop=True)
    scores = by_sid.reindex(rows["SIS User ID"]).reset_index(drop=True)
    for name in names:
        rows[name] = scores[name].values if name in scores.columns else ""

    points_row = pd.DataFrame(
        [["    " + _POINTS_POSSIBLE, "", "", "", ""] + [_format_weight(c.weight) for c in categories]],
        columns=PRIMARY_COLUMNS + names,
    )
    table = pd.concat([points_row, rows], ignore_index=True)

    missing_from_grades = canvas_students.loc[~matched, PRIMARY_COLUMNS]
    in_canvas = set(canvas_students.loc[matched, "SIS User ID"])
    identity = [c for c in ["First Name", "Last Name", "SID", "Email", "Sections"] if c in grades]
    missing_from_canvas = grades.loc[~grades["SID"].isin(in_canvas), identity]

    if len(missing_from_grades) or len(missing_from_canvas):
        logger.warning(
            "%s Canvas students have no grade; %s graded students are not in Canvas.",
            len(missing_from_grades),
            len(missing_from_canvas),
        )

    errors = {
        "missing_from_grades": missing_from_grades.to_dict(orient="records"),
        "missing_from_canvas": missing_from_canvas.to_dict(orient="records"),
    }
    return table, errors


def write_import(table: pd.DataFrame, path: Union[str, pathlib.Path]):
    """Write an import built by :func:`build_import` as CSV."""
    table.to_csv(path, index=False)
    logger.info("Wrote Canvas import for %s students to %s.", len(table) - 1, path)


def write_errors(errors: dict, path: Union[str, pathlib.Path]):
    """Write the mismatch report of :func:`build_import` as JSON."""
    with pathlib.Path(path).open("w") as fileobj:
        json.dump(errors, fileobj, indent=2)
