import pandas as pd
import pytest

import gradeflow
from gradeflow.scales import (
    DEFAULT_SCALE,
    ROUNDED_DEFAULT_SCALE,
    GradeCutoffs,
    classify,
    map_scores_to_letter_grades,
)

CUTOFFS = GradeCutoffs([("A", 90), ("B", 80), ("C", 70), ("D", 60)])


def test_classify_scans_cutoffs_in_order():
    # given
    score = 79.99

    # when
    letter = CUTOFFS.classify(score)

    # then
    assert letter == "C"


def test_classify_at_threshold_gets_that_letter():
    assert CUTOFFS.classify(90) == "A"
    assert CUTOFFS.classify(60) == "D"


def test_classify_below_every_threshold_gives_fallback():
    assert CUTOFFS.classify(59.99) == "F"
    assert GradeCutoffs([("P", 50)], fallback="NP").classify(10) == "NP"


def test_classify_is_total_for_negative_and_large_scores():
    assert CUTOFFS.classify(-5) == "F"
    assert CUTOFFS.classify(150) == "A"


def test_module_level_classify_defaults_to_default_scale():
    assert classify(93.5) == "A"
    assert classify(93.5, CUTOFFS) == "A"
    assert classify(85, CUTOFFS) == "B"


def test_cutoffs_not_descending_raise():
    with pytest.raises(gradeflow.ConfigurationError):
        GradeCutoffs([("A", 90), ("B", 95)])


def test_cutoffs_with_equal_thresholds_raise():
    with pytest.raises(gradeflow.ConfigurationError):
        GradeCutoffs([("A", 90), ("B", 90)])


def test_non_finite_thresholds_raise():
    with pytest.raises(gradeflow.ConfigurationError, match="finite"):
        GradeCutoffs([("A", 90), ("B", float("nan"))])
    with pytest.raises(gradeflow.ConfigurationError, match="finite"):
        GradeCutoffs([("A", float("inf"))])


def test_empty_cutoffs_raise():
    with pytest.raises(gradeflow.ConfigurationError):
        GradeCutoffs([])


def test_duplicate_letters_raise():
    with pytest.raises(gradeflow.ConfigurationError):
        GradeCutoffs([("A", 90), ("A", 80)])


def test_cutoffs_from_mapping_keep_declared_order():
    # given
    mapping = {"A": 90, "B": 80, "C": 70}

    # when
    cutoffs = GradeCutoffs(mapping)

    # then
    assert cutoffs.letters == ["A", "B", "C"]
    assert cutoffs.thresholds == [90.0, 80.0, 70.0]
    assert cutoffs["B"] == 80
    assert "C" in cutoffs
    assert "F" not in cutoffs


def test_shifted_moves_every_threshold_and_clamps_at_zero():
    assert ROUNDED_DEFAULT_SCALE["A"] == 92.5
    assert ROUNDED_DEFAULT_SCALE["F"] == 0
    assert ROUNDED_DEFAULT_SCALE.classify(92.5) == "A"
    assert DEFAULT_SCALE.classify(92.5) == "A-"


def test_map_scores_to_letter_grades_on_example():
    # given
    scores = pd.Series(data=[84, 95, 55])

    # when
    letters = map_scores_to_letter_grades(scores)

    # then
    assert list(letters) == ["B", "A", "F"]


def test_map_scores_to_letter_grades_with_custom_scale():
    # given
    scores = pd.Series(data=[84, 95, 55], index=["x", "y", "z"])

    # when
    letters = map_scores_to_letter_grades(scores, scale=CUTOFFS)

    # then
    assert letters.to_dict() == {"x": "B", "y": "A", "z": "F"}
