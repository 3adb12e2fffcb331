import pathlib

import pytest

import gradeflow
from gradeflow.core import Category
from gradeflow.io import config
from gradeflow.scales import GradeCutoffs

EXAMPLES_DIRECTORY = pathlib.Path(__file__).parent.parent / "examples"
CLASS_EXAMPLE = EXAMPLES_DIRECTORY / "class"


def test_load_class_config_from_yaml():
    # when
    cfg = config.load_class_config(CLASS_EXAMPLE / "config.yaml")

    # then
    assert cfg.to_categories() == [
        Category("Homework", ["hw1", "HW2"], 30),
        Category("Exams", ["Midterm"], 70),
    ]
    assert cfg.to_cutoffs() == GradeCutoffs([("A", 90), ("B", 80), ("C", 70), ("D", 60)])


def test_cutoffs_may_be_a_list_of_entries():
    # when
    cfg = config.load(CLASS_EXAMPLE / "outcomes.yaml", config.OutcomeConfig)

    # then
    assert cfg.to_cutoffs().letters == ["A", "B", "C", "D"]
    assert [o.code for o in cfg.to_outcomes()] == ["SO1", "SO2"]


def test_load_json_config():
    # when
    cfg = config.load(CLASS_EXAMPLE / "gap_analysis.json", config.GapAnalysisConfig)

    # then
    assert cfg.group1.to_group().name == "Homework"
    assert list(cfg.group2.to_group().assignments) == ["Midterm"]


def test_load_sections_config():
    cfg = config.load(CLASS_EXAMPLE / "sections.yaml", config.SectionsConfig)
    assert cfg.to_mapping() == {"Lab 01": ["Lab 01 - Section 1", "Lab 01 - Section 2"]}


def test_load_merge_config():
    cfg = config.load(CLASS_EXAMPLE / "merge_external.yaml", config.MergeConfig)
    assert cfg.new_column_name == "Participation"
    assert cfg.max_points == 10


def test_unknown_keys_raise(tmp_path):
    # given
    path = tmp_path / "config.yaml"
    path.write_text(
        "course_work:\n"
        "  - name: HW\n"
        "    assignments: [HW1]\n"
        "    weight: 100\n"
        "    wieght: 100\n"
        "grade_cutoffs: {A: 90}\n"
    )

    # when / then
    with pytest.raises(gradeflow.ConfigurationError):
        config.load_class_config(path)


def test_negative_weight_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "course_work:\n"
        "  - name: HW\n"
        "    assignments: [HW1]\n"
        "    weight: -5\n"
        "grade_cutoffs: {A: 90}\n"
    )
    with pytest.raises(gradeflow.ConfigurationError):
        config.load_class_config(path)


def test_empty_course_work_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("course_work: []\ngrade_cutoffs: {A: 90}\n")
    with pytest.raises(gradeflow.ConfigurationError):
        config.load_class_config(path)


def test_cutoffs_out_of_order_raise(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "course_work:\n"
        "  - name: HW\n"
        "    assignments: [HW1]\n"
        "    weight: 100\n"
        "grade_cutoffs: {B: 80, A: 90}\n"
    )
    with pytest.raises(gradeflow.ConfigurationError):
        config.load_class_config(path)


def test_malformed_yaml_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("course_work: [\n")
    with pytest.raises(gradeflow.ConfigurationError, match="parse"):
        config.load_class_config(path)


def test_empty_file_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    with pytest.raises(gradeflow.ConfigurationError, match="empty"):
        config.load_class_config(path)


def test_find_tries_each_extension(tmp_path):
    # given
    (tmp_path / "outcomes.json").write_text("{}")

    # then
    assert config.find(tmp_path, "outcomes") == tmp_path / "outcomes.json"

    with pytest.raises(gradeflow.ConfigurationError):
        config.find(tmp_path, "config")


# scale files --------------------------------------------------------------------------

COURSE_WORK = "course_work:\n  - {name: Homework, assignments: [HW1], weight: 100}\n"


def test_scale_file_is_read_relative_to_the_config(tmp_path):
    # given
    (tmp_path / "scale.csv").write_text("A,90\nB,80\n\nC,70\n")
    path = tmp_path / "config.yaml"
    path.write_text(COURSE_WORK + "scale_file: scale.csv\nfallback_letter: E\n")

    # when
    cfg = config.load_class_config(path)

    # then
    assert cfg.to_cutoffs() == GradeCutoffs([("A", 90), ("B", 80), ("C", 70)], fallback="E")


def test_missing_scale_file_raises(tmp_path):
    # given
    path = tmp_path / "config.yaml"
    path.write_text(COURSE_WORK + "scale_file: scale.csv\n")

    # when / then
    with pytest.raises(gradeflow.ConfigurationError, match="scale.csv"):
        config.load_class_config(path)


def test_scale_file_and_inline_cutoffs_together_raise(tmp_path):
    # given
    (tmp_path / "scale.csv").write_text("A,90\n")
    path = tmp_path / "config.yaml"
    path.write_text(COURSE_WORK + "scale_file: scale.csv\ngrade_cutoffs: {A: 90}\n")

    # when / then
    with pytest.raises(gradeflow.ConfigurationError, match="exactly one"):
        config.load_class_config(path)


def test_config_without_any_cutoffs_raises(tmp_path):
    # given
    path = tmp_path / "config.yaml"
    path.write_text(COURSE_WORK)

    # when / then
    with pytest.raises(gradeflow.ConfigurationError, match="exactly one"):
        config.load_class_config(path)
