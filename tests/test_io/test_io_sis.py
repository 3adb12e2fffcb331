import pandas as pd
from openpyxl import load_workbook

from gradeflow.io import sis


def test_write_import_has_one_sheet_with_id_and_grade(tmp_path):
    # given
    grades = pd.DataFrame(
        {"SID": ["A1", "007"], "Final Score": [88.5, 91.0], "Letter Grade": ["B", "A"]}
    )
    path = tmp_path / "sis_import.xlsx"

    # when
    sis.write_import(grades, path)

    # then
    wb = load_workbook(path)
    assert wb.sheetnames == ["Grades"]
    rows = list(wb["Grades"].iter_rows(values_only=True))
    assert rows == [("ID", "Grade"), ("A1", "B"), ("007", "A")]


def test_read_import(tmp_path):
    # given
    grades = pd.DataFrame({"SID": ["A1", "A2"], "Letter Grade": ["B", "F"]})
    sis.write_import(grades, tmp_path / "sis_import.xlsx")

    # when
    table = sis.read_import(tmp_path / "sis_import.xlsx")

    # then
    assert list(table.columns) == ["ID", "Grade"]
    assert table["ID"].tolist() == ["A1", "A2"]
    assert table["Grade"].tolist() == ["B", "F"]
