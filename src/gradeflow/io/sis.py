"""Write letter grades as a spreadsheet for import into the SIS."""

import logging
import pathlib
from typing import Union

import pandas as pd
from openpyxl import Workbook, load_workbook

logger = logging.getLogger(__name__)

SHEET_NAME = "Grades"
HEADER = ["ID", "Grade"]


def write_import(grades: pd.DataFrame, path: Union[str, pathlib.Path]):
    """Write each student's SID and letter grade to an Excel workbook.

    The workbook has a single sheet named "Grades" with the columns "ID"
    and "Grade", and one row per student in the order of the grade table.

    Parameters
    ----------
    grades : pd.DataFrame
        A grade table with "SID" and "Letter Grade" columns.
    path : str or pathlib.Path
        Where to write the ``.xlsx`` file.

    """
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME

    ws.append(HEADER)
    for sid, letter in zip(grades["SID"], grades["Letter Grade"]):
        ws.append([str(sid), str(letter)])

    wb.save(path)
    logger.info("Wrote SIS import for %s students to %s.", len(grades), path)


def read_import(path: Union[str, pathlib.Path]) -> pd.DataFrame:
    """Read a workbook written by :func:`write_import` into a DataFrame."""
    wb = load_workbook(path, read_only=True)
    ws = wb[SHEET_NAME]
    rows = list(ws.iter_rows(values_only=True))
    wb.close()

    if not rows:
        return pd.DataFrame(columns=HEADER)

    header, *body = rows
    return pd.DataFrame(body, columns=list(header))
