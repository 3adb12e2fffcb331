"""The steps of grading a class, run over the files in its data directory.

Every step takes a :class:`ClassDirectory` explicitly. A step reads the
files it needs, computes, and then writes its outputs; if an input is
missing, a :class:`gradeflow.exceptions.ConfigurationError` is raised before
anything is written.

The usual order is:

1. :func:`process` the raw Gradescope export,
2. optionally preprocess: :func:`combine_sections`, :func:`remove_audit`,
   :func:`merge_column`,
3. :func:`aggregate` into grades and metrics,
4. export with :func:`canvas` and :func:`sis`, and visualize with
   :func:`chart`, :func:`report`, :func:`outcomes` and :func:`gap`.

"""

import dataclasses
import json
import logging
import pathlib
import re
import shutil
from typing import Optional, Union

import matplotlib.pyplot as plt
import pandas as pd

from . import outcomes as _outcomes
from . import plot as _plot
from . import preprocessing as _preprocessing
from . import reports as _reports
from . import statistics as _statistics
from ._util import normalize_name
from .core import Gradebook
from .exceptions import ConfigurationError
from .io import canvas as _canvas
from .io import config as _config
from .io import gradescope as _gradescope
from .io import grades as _grades
from .io import sis as _sis

logger = logging.getLogger(__name__)


# ClassDirectory =======================================================================


@dataclasses.dataclass(frozen=True)
class ClassDirectory:
    """The data directory of one class, and the paths of the files in it.

    Attributes
    ----------
    root : pathlib.Path
        The directory. Nothing outside of it is read or written.

    """

    root: pathlib.Path

    def __post_init__(self):
        object.__setattr__(self, "root", pathlib.Path(self.root))

    def __truediv__(self, name: str) -> pathlib.Path:
        return self.root / name

    @property
    def raw_export(self) -> pathlib.Path:
        return self / "gradescope_raw.csv"

    @property
    def processed(self) -> pathlib.Path:
        return self / "gradescope_processed.csv"

    @property
    def meta(self) -> pathlib.Path:
        return self / "gradescope_meta.json"

    @property
    def grades(self) -> pathlib.Path:
        return self / "grades.csv"

    @property
    def metrics(self) -> pathlib.Path:
        return self / "metrics.json"

    @property
    def canvas_export(self) -> pathlib.Path:
        return self / "canvas_export.csv"

    @property
    def canvas_import(self) -> pathlib.Path:
        return self / "canvas_import.csv"

    @property
    def canvas_errors(self) -> pathlib.Path:
        return self / "canvas_errors.json"

    @property
    def sis_import(self) -> pathlib.Path:
        return self / "sis_import.xlsx"

    @property
    def chart(self) -> pathlib.Path:
        return self / "grade_distribution.png"

    @property
    def chart_html(self) -> pathlib.Path:
        return self / "grade_distribution.html"

    @property
    def reports(self) -> pathlib.Path:
        return self / "reports"

    @property
    def audit(self) -> pathlib.Path:
        return self / "audit.csv"

    @property
    def audit_report(self) -> pathlib.Path:
        return self / "audit_removal_report.json"

    @property
    def merge_report(self) -> pathlib.Path:
        return self / "merge_external_report.json"

    @property
    def outcome_aggregate(self) -> pathlib.Path:
        return self / "abet_aggregate.csv"

    @property
    def outcome_meta(self) -> pathlib.Path:
        return self / "abet_meta.json"

    @property
    def teams_errors(self) -> pathlib.Path:
        return self / "teams_errors.json"

    def config(self, stem: str = "config") -> pathlib.Path:
        """The configuration file named `stem`, with any supported extension."""
        return _config.find(self.root, stem)

    def require(self, path: pathlib.Path, hint: Optional[str] = None) -> pathlib.Path:
        """Return `path`, raising a ConfigurationError if it does not exist."""
        if not path.exists():
            message = f"{path.name} not found in {self.root}."
            if hint:
                message += f" {hint}"
            raise ConfigurationError(message)
        return path

    def backup(self, path: pathlib.Path, suffix: str) -> Optional[pathlib.Path]:
        """Copy `path` to ``<stem>_<suffix><ext>`` unless that copy already exists.

        Returns the path of the new copy, or `None` if it already existed.

        """
        target = path.with_name(f"{path.stem}_{suffix}{path.suffix}")
        if target.exists():
            logger.debug("Backup %s already exists.", target)
            return None
        shutil.copyfile(path, target)
        logger.info("Created backup %s.", target)
        return target


def _write_json(data, path: pathlib.Path):
    with path.open("w") as fileobj:
        json.dump(data, fileobj, indent=2)


# processing ===========================================================================


def process(directory: ClassDirectory) -> Gradebook:
    """Convert the raw Gradescope export into the processed CSV and metadata."""
    raw = directory.require(directory.raw_export, "Export the grades from Gradescope first.")
    gradebook = _gradescope.read(raw)
    _gradescope.write_processed(gradebook, directory.processed, directory.meta)
    return gradebook


def load_gradebook(directory: ClassDirectory, configured: bool = True) -> Gradebook:
    """Read the processed grades of a class.

    Parameters
    ----------
    directory : ClassDirectory
    configured : bool
        If True, the categories and cutoffs of the class configuration are
        applied to the gradebook. Default: True.

    Raises
    ------
    ConfigurationError
        If the processed files or the configuration are missing or invalid.

    """
    directory.require(directory.processed, 'Run "process" first.')
    directory.require(directory.meta, 'Run "process" first.')
    gradebook = _gradescope.read_processed(directory.processed, directory.meta)

    if configured:
        config = _config.load_class_config(directory.config("config"))
        gradebook.scale = config.to_cutoffs()
        gradebook.categories = config.to_categories()

    return gradebook


def _save_processed(directory: ClassDirectory, gradebook: Gradebook):
    _gradescope.write_processed(gradebook, directory.processed, directory.meta)


# aggregation ==========================================================================


def aggregate(directory: ClassDirectory) -> _statistics.MetricsSummary:
    """Compute every student's grade, writing the grade table and the metrics."""
    gradebook = load_gradebook(directory)

    table = _statistics.grade_table(gradebook)
    metrics = _statistics.compute_metrics(gradebook)

    _grades.write_grade_table(table, directory.grades)
    _grades.write_metrics(metrics, directory.metrics)
    return metrics


# exports ==============================================================================


def canvas(directory: ClassDirectory) -> dict:
    """Build the Canvas import from the grade table and a Canvas export.

    Returns the mismatch report, which is also written as JSON.

    """
    export = directory.require(directory.canvas_export, "Export the Canvas gradebook first.")
    directory.require(directory.grades, 'Run "aggregate" first.')
    config = _config.load_class_config(directory.config("config"))

    table, errors = _canvas.build_import(
        _canvas.read_export(export),
        _grades.read_grade_table(directory.grades),
        config.to_categories(),
    )

    _canvas.write_import(table, directory.canvas_import)
    _canvas.write_errors(errors, directory.canvas_errors)
    return errors


def sis(directory: ClassDirectory) -> pathlib.Path:
    """Write the SIS import workbook from the grade table."""
    directory.require(directory.grades, 'Run "aggregate" first.')
    _sis.write_import(_grades.read_grade_table(directory.grades), directory.sis_import)
    return directory.sis_import


# charts and reports ===================================================================


def chart(directory: ClassDirectory, label_mode: str = "counts", html: bool = False) -> str:
    """Draw the grade distribution chart from the metrics.

    Parameters
    ----------
    directory : ClassDirectory
    label_mode : str
        See :func:`gradeflow.plot.grade_distribution_chart`.
    html : bool
        If True, also save the interactive histogram as HTML. Default: False.

    Returns
    -------
    str
        The distribution as a markdown table.

    """
    directory.require(directory.metrics, 'Run "aggregate" first.')
    config = _config.load_class_config(directory.config("config"))
    cutoffs = config.to_cutoffs()

    metrics = _grades.read_metrics(directory.metrics)
    counts = {
        letter: int(entry["count"])
        for letter, entry in metrics["grade_distribution"].items()
    }

    fig = _plot.grade_distribution_chart(
        counts, cutoffs, label_mode=label_mode, path=directory.chart
    )
    plt.close(fig)

    if html:
        _plot.grade_distribution(load_gradebook(directory), path=directory.chart_html)

    return _reports.distribution_table(counts, cutoffs)


def report(directory: ClassDirectory, email: str) -> pathlib.Path:
    """Write the markdown grade report of the student with the given email."""
    gradebook = load_gradebook(directory)
    try:
        student = gradebook.students.find_by_email(email)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    return _reports.write_student_report(gradebook, student, directory.reports)


# outcomes and gaps ====================================================================


def outcomes(directory: ClassDirectory) -> dict:
    """Compute the outcome percentages of every student and their summary.

    Reads the "outcomes" configuration. Writes the per-student percentages
    and the per-outcome summary, which is also returned.

    """
    config = _config.load(directory.config("outcomes"), _config.OutcomeConfig)
    cutoffs = config.to_cutoffs()
    gradebook = load_gradebook(directory, configured=False)

    outcome_list = config.to_outcomes()
    percentages = _outcomes.outcome_percentages(gradebook, outcome_list)
    summary = _outcomes.summarize_outcomes(percentages, cutoffs)

    _outcomes.outcome_table(gradebook, outcome_list).to_csv(
        directory.outcome_aggregate, index=False
    )
    _write_json(summary, directory.outcome_meta)
    logger.info("Wrote outcome assessment to %s.", directory.outcome_aggregate)
    return summary


def _slug(name: str) -> str:
    return re.sub(r"\s+", "_", name.lower())


def gap(directory: ClassDirectory) -> tuple[pathlib.Path, dict]:
    """Compare every student's performance on two groups of assignments.

    Reads the "gap_analysis" configuration and writes
    ``grade_gap_<group1>_vs_<group2>.csv``.

    Returns
    -------
    path : pathlib.Path
        The path of the written table.
    summary : dict
        See :func:`gradeflow.outcomes.summarize_gaps`.

    """
    config = _config.load(directory.config("gap_analysis"), _config.GapAnalysisConfig)
    gradebook = load_gradebook(directory, configured=False)

    group1, group2 = config.group1.to_group(), config.group2.to_group()
    gaps = _outcomes.grade_gap(gradebook, group1, group2)
    if gaps.empty:
        raise ConfigurationError("There are no students to analyze.")

    path = directory / f"grade_gap_{_slug(group1.name)}_vs_{_slug(group2.name)}.csv"
    gaps.to_csv(path, index=False)
    logger.info("Wrote grade gap analysis to %s.", path)
    return path, _outcomes.summarize_gaps(gaps)


# preprocessing ========================================================================


def combine_sections(directory: ClassDirectory) -> Gradebook:
    """Combine per-section assignments as listed in the "sections" configuration.

    The processed files are backed up with the suffix "original" before
    they are rewritten.

    """
    config = _config.load(directory.config("sections"), _config.SectionsConfig)
    gradebook = load_gradebook(directory, configured=False)

    _preprocessing.combine_section_assignments(gradebook, config.to_mapping())

    directory.backup(directory.processed, "original")
    directory.backup(directory.meta, "original")
    _save_processed(directory, gradebook)
    return gradebook


def _read_audit_sids(path: pathlib.Path) -> list[str]:
    table = pd.read_csv(path, dtype=str, keep_default_na=False)
    if "SID" not in table.columns:
        raise ConfigurationError(f'{path.name} must have an "SID" column.')
    return [sid.strip() for sid in table["SID"] if sid.strip()]


def remove_audit(directory: ClassDirectory) -> dict:
    """Remove the students listed in ``audit.csv`` from the processed grades.

    The processed files are backed up with the suffix "with_audit" before
    they are rewritten. Returns the removal report, which is also written as
    JSON.

    """
    audit = directory.require(directory.audit, 'It must have an "SID" column.')
    sids = _read_audit_sids(audit)
    gradebook = load_gradebook(directory, configured=False)

    removal = _preprocessing.remove_students(gradebook, sids)

    directory.backup(directory.processed, "with_audit")
    directory.backup(directory.meta, "with_audit")
    _save_processed(directory, gradebook)

    report = removal.to_dict(requested=len(set(sids)))
    _write_json(report, directory.audit_report)
    return report


def merge_column(directory: ClassDirectory) -> dict:
    """Merge a column of an external CSV as a new assignment.

    Reads the "merge_external" configuration. The processed files are backed
    up with the suffix "pre_merge" before they are rewritten. Returns the
    merge report, which is also written as JSON.

    """
    config = _config.load(directory.config("merge_external"), _config.MergeConfig)
    source_path = directory.require(directory / config.source_file)
    source = pd.read_csv(source_path, dtype=str, keep_default_na=False)
    gradebook = load_gradebook(directory, configured=False)

    unmatched = _preprocessing.merge_external_column(
        gradebook,
        source,
        source_match=config.source_match_column,
        source_data=config.source_data_column,
        target_match=config.target_match_column,
        new_name=config.new_column_name,
        max_points=config.max_points,
    )

    directory.backup(directory.processed, "pre_merge")
    directory.backup(directory.meta, "pre_merge")
    _save_processed(directory, gradebook)

    unmatched_keys = {normalize_name(k) for k in unmatched}
    target_keys = {normalize_name(k) for k in gradebook.identity[config.target_match_column]}
    unmatched_students = [
        s
        for s, key in zip(gradebook.students, gradebook.identity[config.target_match_column])
        if normalize_name(key) in unmatched_keys
    ]
    unmatched_source = source[
        ~source[config.source_match_column].map(normalize_name).isin(target_keys)
    ]

    report = {
        "config": config.model_dump(),
        "summary": {
            "total_students": len(gradebook.students),
            "total_source_records": len(source),
            "students_matched": len(gradebook.students) - len(unmatched_students),
            "students_not_matched": len(unmatched_students),
            "source_records_not_matched": len(unmatched_source),
        },
        "unmatched_students": [
            {"name": s.name, "sid": s.pid, "email": s.email} for s in unmatched_students
        ],
        "unmatched_source_records": [
            {"match_value": m, "data_value": d}
            for m, d in zip(
                unmatched_source[config.source_match_column],
                unmatched_source[config.source_data_column],
            )
        ],
    }
    _write_json(report, directory.merge_report)
    return report


def add_team(
    directory: ClassDirectory,
    teams: Union[str, pathlib.Path] = "teams.csv",
    target: Union[str, pathlib.Path] = "grades.csv",
) -> dict:
    """Add a "Team" column to a CSV in the class directory, in place.

    Parameters
    ----------
    directory : ClassDirectory
    teams : str or pathlib.Path
        A CSV, relative to the class directory, with "email" and "team"
        columns. Default: "teams.csv".
    target : str or pathlib.Path
        The CSV to modify, relative to the class directory. It must have an
        "Email" column. Default: "grades.csv".

    Returns
    -------
    dict
        The mismatch report, which is also written as JSON.

    """
    teams_path = directory.require(directory / teams)
    target_path = directory.require(directory / target)

    teams_table = pd.read_csv(teams_path, dtype=str, keep_default_na=False)
    target_table = pd.read_csv(target_path, dtype=str, keep_default_na=False)

    for column, table, name in (
        ("email", teams_table, teams_path.name),
        ("team", teams_table, teams_path.name),
        ("Email", target_table, target_path.name),
    ):
        if column not in table.columns:
            raise ConfigurationError(f'{name} must have a "{column}" column.')

    if "Team" in target_table.columns:
        raise ConfigurationError(f'{target_path.name} already has a "Team" column.')

    result, errors = _preprocessing.add_team_column(target_table, teams_table)
    result.to_csv(target_path, index=False)
    _write_json(errors, directory.teams_errors)
    logger.info("Added teams to %s.", target_path)
    return errors


# status ===============================================================================


def status(directory: ClassDirectory) -> dict[str, bool]:
    """Which of the standard files of the class directory exist."""
    paths = {
        "raw export": directory.raw_export,
        "processed grades": directory.processed,
        "metadata": directory.meta,
        "grades": directory.grades,
        "metrics": directory.metrics,
        "canvas import": directory.canvas_import,
        "sis import": directory.sis_import,
        "chart": directory.chart,
    }
    result = {name: path.exists() for name, path in paths.items()}

    try:
        directory.config("config")
        result["configuration"] = True
    except ConfigurationError:
        result["configuration"] = False

    return result
