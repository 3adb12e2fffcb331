"""Markdown reports: per-student grade reports and the distribution table."""

import logging
import pathlib
import re
import textwrap
from typing import Mapping, Union

from .core import Gradebook, Student
from .scales import GradeCutoffs

logger = logging.getLogger(__name__)


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def _num(value: float) -> str:
    return f"{value:g}"


def report_filename(student: Student) -> str:
    """The file name of a student's report: ``<First>_<Last>_<email>.md``.

    Characters that are not allowed in file names are replaced by
    underscores.

    """
    parts = [student.first_name or "", student.last_name or "", student.email or str(student.pid)]
    name = "_".join(parts)
    return re.sub(r'[\\/:*?"<>|\s]', "_", name) + ".md"


def student_report(gradebook: Gradebook, student: Union[str, Student]) -> str:
    """Build a markdown report of one student's grade.

    The report shows the student's final score and letter grade, their
    weighted score in each category alongside the category's weight, and
    their raw score on each assignment of each category.

    Parameters
    ----------
    gradebook : Gradebook
        A gradebook whose categories have been set.
    student : Union[str, Student]
        The student, or their email address.

    Returns
    -------
    str
        The report, as markdown.

    Raises
    ------
    ValueError
        If no student has the given email, or the categories are not set.

    """
    if not isinstance(student, Student):
        student = gradebook.students.find_by_email(student)

    category_scores = gradebook.category_scores.loc[student]
    final_score = gradebook.final_score.loc[student]
    letter = gradebook.letter_grades.loc[student]
    registry = gradebook.registry

    parts = []

    def _append(s):
        parts.append(textwrap.dedent(s))

    name = " ".join(p for p in (student.first_name, student.last_name) if p) or student.name
    _append(
        f"""\
        # Grade Report for {name} ({student.email})

        **Final Score:** {_fmt(final_score)}

        **Letter Grade:** {letter}

        ## Assignment Categories
        """
    )
    for category in gradebook.categories:
        score = _fmt(category_scores[category.name])
        _append(f"- **{category.name}** (Weight: {_num(category.weight)}): {score}\n")

    _append("\n## Assignments\n")
    for category in gradebook.categories:
        _append(f"\n### {category.name}\n")
        for assignment in category.assignments:
            column = registry.resolve(assignment)
            if column is None:
                continue
            earned = gradebook.points_earned.loc[student, column]
            _append(f"- {assignment}: {_num(earned)}/{_num(registry[column])}\n")

    return "".join(parts)


def write_student_report(
    gradebook: Gradebook,
    student: Union[str, Student],
    directory: Union[str, pathlib.Path],
) -> pathlib.Path:
    """Write a student's report into a directory, creating it if needed.

    Returns
    -------
    pathlib.Path
        The path of the report; see :func:`report_filename`.

    """
    if not isinstance(student, Student):
        student = gradebook.students.find_by_email(student)

    directory = pathlib.Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / report_filename(student)
    path.write_text(student_report(gradebook, student))
    logger.info("Wrote report for %s to %s.", student, path)
    return path


def distribution_table(counts: Mapping[str, int], cutoffs: GradeCutoffs) -> str:
    """A markdown table of each letter grade, its cutoff and its count.

    Letters that are not in the cutoff table, such as the fallback letter,
    show "N/A" as their cutoff.

    """
    lines = ["| Grade | Cutoff | Count |", "|-------|--------|-------|"]
    for letter, count in counts.items():
        cutoff = f"≥{_num(cutoffs[letter])}%" if letter in cutoffs else "N/A"
        lines.append(f"| {letter:<5} | {cutoff:<6} | {str(count):<5} |")
    return "\n".join(lines) + "\n"
