"""Tools for preprocessing Gradebooks before grading."""

import dataclasses
import logging
import re
from collections.abc import Collection, Mapping, Sequence

import pandas as pd

from ._util import find_column, normalize_name
from .core import Gradebook
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# combine_section_assignments ----------------------------------------------------------


def _check_section_assignments(gradebook: Gradebook, name: str, parts: Sequence[str]):
    """Resolve the parts of a section assignment and check their max points agree."""
    registry = gradebook.registry

    resolved = []
    for part in parts:
        canonical = registry.resolve(part)
        if canonical is None:
            raise ConfigurationError(
                f'Assignment "{part}" in section "{name}" is not in the gradebook.'
            )
        resolved.append(canonical)

    if not resolved:
        raise ConfigurationError(f'Section "{name}" has no valid assignments.')

    max_points = {registry[r] for r in resolved}
    if len(max_points) > 1:
        raise ConfigurationError(
            f'Assignments in section "{name}" have different max points: '
            f"{sorted(max_points)}. All assignments in a section must have the "
            "same max points."
        )

    return resolved, max_points.pop()


def combine_section_assignments(gradebook: Gradebook, dct: Mapping[str, Collection[str]]):
    """Combine per-section copies of an assignment into a single assignment.

    When each lab section takes its own version of a quiz, the grading
    software records one assignment per section. This merges them: each
    student receives their best positive score across the copies (or zero),
    the copies are removed, and the combined assignment is added with the
    common max points.

    Modifies the gradebook in-place. Categories are reset to an empty list.

    Parameters
    ----------
    gradebook : Gradebook
        The gradebook to modify.
    dct : Mapping[str, Collection[str]]
        A mapping whose keys are the new assignment names, and whose values
        are the per-section assignments that should be combined.

    Raises
    ------
    ConfigurationError
        If a per-section assignment is not in the gradebook, a section has
        no assignments, or the copies do not all have the same max points.

    Example
    -------

    .. code:: python

        combine_section_assignments(gb, {
            "quiz 01": ["quiz 01 - section 1", "quiz 01 - section 2"],
        })

    """
    for name, parts in dct.items():
        resolved, max_points = _check_section_assignments(gradebook, name, list(parts))

        best = gradebook.points_earned.loc[:, resolved].clip(lower=0).max(axis=1)

        gradebook.remove_assignments([r for r in dict.fromkeys(resolved)])
        gradebook.add_assignment(name, best, max_points)

        logger.info('Combined %s assignments into "%s".', len(resolved), name)


# remove_students ----------------------------------------------------------------------


@dataclasses.dataclass
class RemovalReport:
    """Which students were removed from a gradebook by :func:`remove_students`.

    Attributes
    ----------
    removed : list[Student]
        The students that were removed.
    not_found : list[str]
        The requested PIDs that were not in the gradebook.

    """

    removed: list
    not_found: list

    def to_dict(self, requested: int) -> dict:
        """A JSON-friendly summary of the removal."""
        return {
            "summary": {
                "audit_students_in_file": requested,
                "students_removed": len(self.removed),
                "audit_students_not_found": len(self.not_found),
            },
            "removed_students": [
                {"name": s.name, "sid": s.pid, "email": s.email} for s in self.removed
            ],
            "audit_students_not_found": list(self.not_found),
        }


def remove_students(gradebook: Gradebook, pids: Collection[str]) -> RemovalReport:
    """Remove students, such as auditors, from a gradebook.

    PIDs are compared after removing surrounding whitespace. Modifies the
    gradebook in-place.

    Parameters
    ----------
    gradebook : Gradebook
        The gradebook to modify.
    pids : Collection[str]
        The PIDs of the students to remove.

    Returns
    -------
    RemovalReport

    """
    wanted = {str(p).strip() for p in pids if str(p).strip()}

    removed = [s for s in gradebook.students if str(s.pid).strip() in wanted]
    found = {str(s.pid).strip() for s in removed}
    not_found = sorted(wanted - found)

    gradebook.remove_students(removed)

    logger.info("Removed %s students; %s not found.", len(removed), len(not_found))
    if not gradebook.students:
        logger.warning("No students remain after removing students.")

    return RemovalReport(removed=removed, not_found=not_found)


# merge_external_column ----------------------------------------------------------------


def merge_external_column(
    gradebook: Gradebook,
    source: pd.DataFrame,
    *,
    source_match: str,
    source_data: str,
    target_match: str,
    new_name: str,
    max_points: float,
) -> list[str]:
    """Add an assignment whose scores come from an external table.

    Rows of `source` are matched to students by comparing the `source_match`
    column with the `target_match` identity column, ignoring case and
    surrounding whitespace. Students without a match, and non-numeric values,
    receive zero.

    Modifies the gradebook in-place.

    Parameters
    ----------
    gradebook : Gradebook
        The gradebook to modify.
    source : pd.DataFrame
        The external table.
    source_match : str
        The column of `source` used to match students.
    source_data : str
        The column of `source` containing the scores.
    target_match : str
        The identity column of the gradebook used to match students, e.g.,
        "Email" or "SID".
    new_name : str
        The name of the new assignment.
    max_points : float
        The maximum points of the new assignment.

    Returns
    -------
    list[str]
        The match keys of students that were not found in `source`.

    Raises
    ------
    ConfigurationError
        If a named column does not exist, or an assignment named `new_name`
        already exists.

    """
    if gradebook.registry.resolve(new_name) is not None:
        raise ConfigurationError(f'Assignment "{new_name}" already exists in the gradebook.')

    for column in (source_match, source_data):
        if column not in source.columns:
            raise ConfigurationError(f'Column "{column}" not found in the source data.')

    if target_match not in gradebook.identity.columns:
        raise ConfigurationError(f'Column "{target_match}" not found in the gradebook.')

    lookup = {}
    for key, value in zip(source[source_match], source[source_data]):
        if pd.isna(key):
            continue
        lookup[normalize_name(key)] = value

    keys = gradebook.identity[target_match]
    values = [lookup.get(normalize_name(k)) if not pd.isna(k) else None for k in keys]
    unmatched = [str(k) for k, v in zip(keys, values) if v is None]

    points = pd.Series(values, index=gradebook.points_earned.index, dtype=object)
    gradebook.add_assignment(new_name, points, max_points)

    if unmatched:
        logger.warning("%s students were not found in the source data.", len(unmatched))

    return unmatched


# add_team_column ----------------------------------------------------------------------


def normalize_email(email: str) -> str:
    """Normalize an email address for matching.

    Lowercases and strips the address, and treats the equivalent Hopkins
    domains ``jhu.edu``, ``jh.edu`` and ``jhmi.edu`` as the same.

    """
    return re.sub(r"@(jhu|jh|jhmi)\.edu$", "@jh.edu", str(email).strip().lower())


def add_team_column(
    table: pd.DataFrame,
    teams: pd.DataFrame,
    *,
    email_column: str = "Email",
    team_email_column: str = "email",
    team_column: str = "team",
) -> tuple[pd.DataFrame, dict[str, list[dict]]]:
    """Add a "Team" column to a table of students.

    The column is inserted after "Sections" if the table has one, and at the
    end otherwise. Students are matched to teams by normalized email; see
    :func:`normalize_email`. Students without a team get an empty string.

    Parameters
    ----------
    table : pd.DataFrame
        A table with one row per student, such as a grade table.
    teams : pd.DataFrame
        A table with one row per student listing their team.
    email_column : str
        The email column of `table`. Default: "Email".
    team_email_column : str
        The email column of `teams`. Default: "email".
    team_column : str
        The team column of `teams`. Default: "team".

    Returns
    -------
    table : pd.DataFrame
        A copy of `table` with the new column.
    errors : dict[str, list[dict]]
        "missing_from_target": rows of `teams` with no matching student, and
        "missing_from_teams": rows of `table` with no matching team.

    """
    team_by_email = {
        normalize_email(e): t
        for e, t in zip(teams[team_email_column], teams[team_column])
    }

    emails = table[email_column].fillna("").map(normalize_email)
    team = emails.map(lambda e: team_by_email.get(e, "")).fillna("")

    result = table.copy()
    sections = find_column(result.columns, "Sections")
    position = (
        list(result.columns).index(sections) + 1 if sections is not None else len(result.columns)
    )
    result.insert(position, "Team", team.values)

    target_emails = set(emails)
    missing_from_target = teams[
        ~teams[team_email_column].map(normalize_email).isin(target_emails)
    ]
    missing_from_teams = table[~emails.isin(set(team_by_email))]

    errors = {
        "missing_from_target": missing_from_target.to_dict(orient="records"),
        "missing_from_teams": missing_from_teams.to_dict(orient="records"),
    }
    return result, errors
