import json
import pathlib

import pandas as pd
import pytest

import gradeflow
from gradeflow.io import gradescope

EXAMPLES_DIRECTORY = pathlib.Path(__file__).parent.parent / "examples"
RAW_EXPORT = EXAMPLES_DIRECTORY / "class" / "gradescope_raw.csv"


# _find_index_of_first_assignment_column -----------------------------------------------


def test_first_assignment_column_skips_identity_columns():
    columns = ["Name", "SID", "Email", "section_name", "HW1", "HW1 - Max Points"]
    assert gradescope._find_index_of_first_assignment_column(columns) == 4


def test_first_assignment_column_raises_without_assignments():
    with pytest.raises(gradeflow.ConfigurationError):
        gradescope._find_index_of_first_assignment_column(["First Name", "SID"])


# read ---------------------------------------------------------------------------------


def test_read_sorts_assignments_and_skips_extra_columns():
    # when
    gb = gradescope.read(RAW_EXPORT)

    # then
    assert gb.assignments == [
        "HW1",
        "HW2",
        "Lab 01 - Section 1",
        "Lab 01 - Section 2",
        "Midterm",
    ]


def test_read_max_points_uses_first_non_blank_entry():
    # when
    gb = gradescope.read(RAW_EXPORT)

    # then
    # Alice's "Lab 01 - Section 2 - Max Points" is blank
    assert gb.points_possible.to_dict() == {
        "HW1": 10,
        "HW2": 10,
        "Lab 01 - Section 1": 5,
        "Lab 01 - Section 2": 5,
        "Midterm": 50,
    }


def test_read_blank_scores_become_zero():
    # when
    gb = gradescope.read(RAW_EXPORT)

    # then
    assert gb.points_earned.loc["A2", "HW2"] == 0
    assert gb.points_earned.loc["A4", "HW1"] == 0
    assert gb.points_earned.loc["A1", "Midterm"] == 45


def test_read_builds_students_and_keeps_identity():
    # when
    gb = gradescope.read(RAW_EXPORT)

    # then
    alice = gb.students[0]
    assert alice.pid == "A1"
    assert alice.name == "Alice Adams"
    assert alice.email == "alice@jhu.edu"
    assert alice.section == "1"
    assert list(gb.identity.columns) == ["First Name", "Last Name", "SID", "Email", "Sections"]


def test_students_without_sid_are_identified_by_email(tmp_path):
    # given
    path = tmp_path / "export.csv"
    path.write_text(
        "Name,SID,Email,HW1,HW1 - Max Points,Total Lateness (H:M:S)\n"
        "Alice Adams,,alice@jhu.edu,7,10,00:00:00\n"
    )

    # when
    gb = gradescope.read(path)

    # then
    assert gb.pids == {"alice@jhu.edu"}
    assert gb.students[0].name == "Alice Adams"


# processed files ----------------------------------------------------------------------


def test_write_processed_writes_identity_then_scores(tmp_path):
    # given
    gb = gradescope.read(RAW_EXPORT)

    # when
    gradescope.write_processed(gb, tmp_path / "processed.csv", tmp_path / "meta.json")

    # then
    table = pd.read_csv(tmp_path / "processed.csv", dtype=str)
    assert list(table.columns) == ["First Name", "Last Name", "SID", "Email", "Sections"] + gb.assignments

    meta = json.loads((tmp_path / "meta.json").read_text())
    assert meta["counts"] == {"assignments": 5, "students": 4}
    assert meta["assignments"][0] == {"name": "HW1", "max_points": 10.0}


def test_read_processed_gives_back_the_gradebook(tmp_path):
    # given
    gb = gradescope.read(RAW_EXPORT)
    gradescope.write_processed(gb, tmp_path / "processed.csv", tmp_path / "meta.json")

    # when
    result = gradescope.read_processed(tmp_path / "processed.csv", tmp_path / "meta.json")

    # then
    assert result.assignments == gb.assignments
    assert result.pids == gb.pids
    pd.testing.assert_frame_equal(result.points_earned, gb.points_earned)
    assert result.identity["SID"].tolist() == ["A1", "A2", "A3", "A4"]


def test_read_processed_raises_if_meta_assignment_is_missing(tmp_path):
    # given
    gb = gradescope.read(RAW_EXPORT)
    gradescope.write_processed(gb, tmp_path / "processed.csv", tmp_path / "meta.json")

    meta = json.loads((tmp_path / "meta.json").read_text())
    meta["assignments"].append({"name": "Final", "max_points": 100})
    (tmp_path / "meta.json").write_text(json.dumps(meta))

    # when / then
    with pytest.raises(gradeflow.ConfigurationError, match="Final"):
        gradescope.read_processed(tmp_path / "processed.csv", tmp_path / "meta.json")


def test_read_meta_treats_missing_max_points_as_zero(tmp_path):
    # given
    path = tmp_path / "meta.json"
    path.write_text(json.dumps({"assignments": [{"name": "HW1"}, {"name": "HW2", "max_points": 5}]}))

    # when
    max_points = gradescope.read_meta(path)

    # then
    assert max_points.to_dict() == {"HW1": 0.0, "HW2": 5.0}
