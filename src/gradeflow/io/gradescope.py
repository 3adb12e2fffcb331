"""Read grades exported from Gradescope, and read/write the processed form."""

import json
import logging
import pathlib as _pathlib
from typing import Optional, Sequence, Union

import pandas as _pd

from .._util import find_column
from ..core import Gradebook, Student
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

#: suffixes of the per-assignment columns that follow each score column
_SUFFIXES = (" - Max Points", " - Submission Time", " - Lateness (H:M:S)")

#: the column that ends the assignment columns of a raw export
_TOTAL_LATENESS = "Total Lateness (H:M:S)"

_HEADER_COLUMNS = {
    "first name",
    "last name",
    "name",
    "email",
    "sid",
    "sections",
    "section_name",
}


def _find_index_of_first_assignment_column(columns: Sequence[str]) -> int:
    """Finds the index of the first assignment column in a Gradescope .csv.

    The first assignment is assumed to be the first column that isn't named
    one of "first name", "last name", "name", "email", "sid", "sections" or
    "section_name".

    Raises
    ------
    ConfigurationError
        If there is no assignment column.

    Notes
    -----

    The identity columns vary depending on whether the Gradescope course has
    been linked with Canvas, and on whether the export contains a single
    "name" column or separate "first name" and "last name" columns. We handle
    this by searching for the first column name that isn't a header column.

    """
    for i, column in enumerate(columns):
        if column.strip().lower() not in _HEADER_COLUMNS:
            return i
    raise ConfigurationError("There is no assignment column.")


def _first_nonempty_float(values: _pd.Series) -> float:
    """The first entry of the column that parses as a number; zero if none do."""
    numbers = _pd.to_numeric(values, errors="coerce").dropna()
    if numbers.empty:
        return 0.0
    return float(numbers.iloc[0])


def _students_from_identity(identity: _pd.DataFrame) -> list[Student]:
    """Create a Student for each row of the identity columns.

    The SID is used as the PID; students without an SID are identified by
    their email address instead.

    """
    columns = list(identity.columns)

    def _get(row, target):
        column = find_column(columns, target)
        if column is None:
            return None
        value = row[column]
        return value if value != "" else None

    students = []
    for _, row in identity.iterrows():
        pid = _get(row, "SID") or _get(row, "Email")
        students.append(
            Student(
                pid,
                _get(row, "Name"),
                first_name=_get(row, "First Name"),
                last_name=_get(row, "Last Name"),
                email=_get(row, "Email"),
                section=_get(row, "Sections") or _get(row, "section_name"),
            )
        )
    return students


def _read_table(path) -> _pd.DataFrame:
    # every entry is read as a string so that IDs keep their leading zeros and
    # blank cells stay blank rather than becoming NaN
    return _pd.read_csv(path, dtype=str, keep_default_na=False)


def _assignment_columns(columns: Sequence[str], start: int) -> list[str]:
    """The score columns of a raw export, skipping the per-assignment extras."""
    assignments = []
    for column in columns[start:]:
        if column == _TOTAL_LATENESS:
            break
        if column.endswith(_SUFFIXES):
            continue
        assignments.append(column)
    return assignments


def read(path: Union[str, _pathlib.Path]) -> Gradebook:
    """Read a raw CSV exported from Gradescope into a :class:`gradeflow.Gradebook`.

    The identity columns at the front of the export are kept. Each assignment
    occupies four columns: the score, then "<name> - Max Points",
    "<name> - Submission Time" and "<name> - Lateness (H:M:S)". Reading stops
    at the "Total Lateness (H:M:S)" column.

    Blank scores become zero. The maximum points of an assignment is the
    first non-blank entry in its "Max Points" column. Assignments are sorted
    alphabetically.

    Parameters
    ----------
    path : str or pathlib.Path
        Path to the CSV file that will be read.

    Returns
    -------
    Gradebook

    """
    table = _read_table(path)
    columns = list(table.columns)

    start = _find_index_of_first_assignment_column(columns)
    assignments = sorted(_assignment_columns(columns, start), key=lambda a: (a.lower(), a))

    identity = table.iloc[:, :start]
    students = _students_from_identity(identity)

    points_earned = table.loc[:, assignments].copy()
    points_earned.index = students

    points_possible = _pd.Series(
        {
            a: (
                _first_nonempty_float(table[f"{a} - Max Points"])
                if f"{a} - Max Points" in table.columns
                else 0.0
            )
            for a in assignments
        },
        index=assignments,
        dtype=float,
    )

    logger.info(
        "Read %s assignments for %s students from %s.",
        len(assignments),
        len(students),
        path,
    )

    return Gradebook(points_earned, points_possible, identity=identity)


# processed files ======================================================================


def write_processed(
    gradebook: Gradebook,
    csv_path: Union[str, _pathlib.Path],
    meta_path: Union[str, _pathlib.Path],
):
    """Write a gradebook as a processed CSV and its metadata as JSON.

    The CSV contains the identity columns followed by one column of scores
    per assignment. The JSON file contains the number of assignments and
    students, and the maximum points of each assignment.

    """
    table = _pd.concat([gradebook.identity, gradebook.points_earned], axis=1)
    table.to_csv(csv_path, index=False)

    meta = {
        "counts": {
            "assignments": len(gradebook.assignments),
            "students": len(gradebook.students),
        },
        "assignments": [
            {"name": name, "max_points": float(max_points)}
            for name, max_points in gradebook.points_possible.items()
        ],
    }
    with _pathlib.Path(meta_path).open("w") as fileobj:
        json.dump(meta, fileobj, indent=2)

    logger.info("Wrote processed grades to %s and metadata to %s.", csv_path, meta_path)


def read_meta(meta_path: Union[str, _pathlib.Path]) -> _pd.Series:
    """Read the maximum points of each assignment from a metadata file.

    Assignments without a maximum are given zero.

    """
    with _pathlib.Path(meta_path).open() as fileobj:
        meta = json.load(fileobj)

    max_points = {}
    for entry in meta["assignments"]:
        value = entry.get("max_points")
        max_points[entry["name"]] = float(value) if value is not None else 0.0

    return _pd.Series(max_points, index=list(max_points), dtype=float)


def read_processed(
    csv_path: Union[str, _pathlib.Path],
    meta_path: Union[str, _pathlib.Path],
    identity_columns: Optional[Sequence[str]] = None,
) -> Gradebook:
    """Read a gradebook written by :func:`write_processed`.

    Parameters
    ----------
    csv_path : str or pathlib.Path
        Path to the processed CSV.
    meta_path : str or pathlib.Path
        Path to the metadata JSON.
    identity_columns : Optional[Sequence[str]]
        The identity columns. If `None`, every column of the CSV that is not
        an assignment listed in the metadata is an identity column.

    Returns
    -------
    Gradebook

    Raises
    ------
    ConfigurationError
        If an assignment listed in the metadata is not a column of the CSV.

    """
    table = _read_table(csv_path)
    points_possible = read_meta(meta_path)

    assignments = list(points_possible.index)
    missing = [a for a in assignments if a not in table.columns]
    if missing:
        raise ConfigurationError(
            f"Assignments in the metadata are missing from the CSV: {missing}"
        )

    if identity_columns is None:
        identity_columns = [c for c in table.columns if c not in set(assignments)]

    identity = table.loc[:, list(identity_columns)]
    students = _students_from_identity(identity)

    points_earned = table.loc[:, assignments].copy()
    points_earned.index = students

    logger.debug("Read %s students from %s.", len(students), csv_path)

    return Gradebook(points_earned, points_possible, identity=identity)
