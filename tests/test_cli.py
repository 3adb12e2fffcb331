import pytest

from gradeflow.cli import main


def test_process_then_aggregate(class_dir, capsys):
    # when
    assert main(["process", str(class_dir.root)]) == 0
    assert main(["aggregate", str(class_dir.root)]) == 0

    # then
    out = capsys.readouterr().out
    assert "Processed 5 assignments for 4 students." in out
    assert "Computed grades for 4 students." in out
    assert class_dir.grades.exists()


def test_chart_prints_distribution_table(processed_class_dir, capsys):
    # given
    main(["aggregate", str(processed_class_dir.root)])

    # when
    status = main(["chart", str(processed_class_dir.root), "--label-mode", "none"])

    # then
    assert status == 0
    assert "| Grade | Cutoff | Count |" in capsys.readouterr().out
    assert processed_class_dir.chart.exists()


def test_configuration_error_exits_with_status_one(class_dir, caplog):
    # when
    status = main(["aggregate", str(class_dir.root)])

    # then
    assert status == 1
    assert "process" in caplog.text


def test_missing_class_directory_exits_with_status_one(tmp_path):
    assert main(["status", str(tmp_path / "nope")]) == 1


def test_report_requires_email(class_dir):
    with pytest.raises(SystemExit):
        main(["report", str(class_dir.root)])


def test_unknown_label_mode_is_rejected(class_dir):
    with pytest.raises(SystemExit):
        main(["chart", str(class_dir.root), "--label-mode", "letters"])


def test_gap_prints_summary(processed_class_dir, capsys):
    # when
    status = main(["gap", str(processed_class_dir.root)])

    # then
    assert status == 0
    out = capsys.readouterr().out
    assert "Average gap: -7.50%" in out
    assert "Negative gaps: 3" in out


def test_status(class_dir, capsys):
    # when
    main(["status", str(class_dir.root)])

    # then
    out = capsys.readouterr().out
    assert "[x] raw export" in out
    assert "[ ] grades" in out


def test_export_without_assignment_columns_exits_with_status_one(tmp_path, caplog):
    # given
    root = tmp_path / "class"
    root.mkdir()
    (root / "gradescope_raw.csv").write_text(
        "First Name,Last Name,SID,Email\nAlice,Adams,A1,alice@jhu.edu\n"
    )

    # when
    status = main(["process", str(root)])

    # then
    assert status == 1
    assert "no assignment column" in caplog.text
    assert not (root / "gradescope_processed.csv").exists()


def test_assignments_differing_only_in_case_exit_with_status_one(processed_class_dir, caplog):
    # given
    meta_path = processed_class_dir.meta
    csv_path = processed_class_dir.processed
    csv_path.write_text(csv_path.read_text().replace("HW2", "hw1", 1))
    meta_path.write_text(meta_path.read_text().replace('"HW2"', '"hw1"'))

    # when
    status = main(["aggregate", str(processed_class_dir.root)])

    # then
    assert status == 1
    assert "differ only in case" in caplog.text
    assert not processed_class_dir.grades.exists()
