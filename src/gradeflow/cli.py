"""The ``gradeflow`` command line.

Each command runs one step of :mod:`gradeflow.workflow` over a class data
directory, e.g.::

    gradeflow process data/fall2025
    gradeflow aggregate data/fall2025
    gradeflow chart data/fall2025 --label-mode cutoffs

"""

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from . import workflow
from .plot import LABEL_MODES

logger = logging.getLogger(__name__)


# commands =============================================================================


def _print_json(data):
    print(json.dumps(data, indent=2))


def _process(directory, args):
    gradebook = workflow.process(directory)
    print(f"Processed {len(gradebook.assignments)} assignments for {len(gradebook.students)} students.")


def _aggregate(directory, args):
    metrics = workflow.aggregate(directory)
    print(f"Computed grades for {metrics.total_students} students.")
    _print_json(metrics.to_dict()["final_score"])


def _canvas(directory, args):
    errors = workflow.canvas(directory)
    print(f"Wrote {directory.canvas_import}.")
    print(f"{len(errors['missing_from_grades'])} Canvas students have no grade.")
    print(f"{len(errors['missing_from_canvas'])} graded students are not in Canvas.")


def _sis(directory, args):
    print(f"Wrote {workflow.sis(directory)}.")


def _chart(directory, args):
    table = workflow.chart(directory, label_mode=args.label_mode, html=args.html)
    print(f"Wrote {directory.chart}.")
    print()
    print(table)


def _report(directory, args):
    print(f"Wrote {workflow.report(directory, args.email)}.")


def _outcomes(directory, args):
    _print_json(workflow.outcomes(directory))


def _gap(directory, args):
    path, summary = workflow.gap(directory)
    print(f"Wrote {path}.")
    print(f"Average gap: {summary['average']:.2f}%")
    print(f"Positive gaps: {summary['positive']}")
    print(f"Negative gaps: {summary['negative']}")
    print(f"Zero gaps: {summary['zero']}")


def _combine_sections(directory, args):
    gradebook = workflow.combine_sections(directory)
    print(f"{len(gradebook.assignments)} assignments remain.")


def _remove_audit(directory, args):
    _print_json(workflow.remove_audit(directory)["summary"])


def _merge_column(directory, args):
    _print_json(workflow.merge_column(directory)["summary"])


def _add_team(directory, args):
    errors = workflow.add_team(directory, teams=args.teams, target=args.target)
    print(f"{len(errors['missing_from_target'])} team members are not in {args.target}.")
    print(f"{len(errors['missing_from_teams'])} students have no team.")


def _status(directory, args):
    for name, exists in workflow.status(directory).items():
        print(f"[{'x' if exists else ' '}] {name}")


# parser ===============================================================================


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gradeflow",
        description="Turn raw grade exports into grades, reports and import files.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="show debugging messages"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add(name, func, help):
        sub = subparsers.add_parser(name, help=help)
        sub.add_argument("class_dir", help="the class data directory")
        sub.set_defaults(func=func)
        return sub

    add("process", _process, "process the raw Gradescope export")
    add("aggregate", _aggregate, "compute grades and metrics")
    add("canvas", _canvas, "build the Canvas import")
    add("sis", _sis, "build the SIS import")

    chart = add("chart", _chart, "draw the grade distribution chart")
    chart.add_argument("--label-mode", choices=LABEL_MODES, default="counts")
    chart.add_argument(
        "--html", action="store_true", help="also save an interactive HTML histogram"
    )

    report = add("report", _report, "write a student's grade report")
    report.add_argument("--email", required=True, help="the student's email address")

    add("outcomes", _outcomes, "assess student outcomes")
    add("gap", _gap, "compare performance on two groups of assignments")
    add("combine-sections", _combine_sections, "combine per-section assignments")
    add("remove-audit", _remove_audit, "remove the students listed in audit.csv")
    add("merge-column", _merge_column, "merge a column from an external CSV")

    add_team = add("add-team", _add_team, "add a Team column to a CSV")
    add_team.add_argument("--teams", default="teams.csv")
    add_team.add_argument("--target", default="grades.csv")

    add("status", _status, "show which files of the class directory exist")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; returns the exit status."""
    args = _make_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    directory = workflow.ClassDirectory(args.class_dir)
    if not directory.root.is_dir():
        logger.error("Class directory not found: %s", directory.root)
        return 1

    try:
        args.func(directory, args)
    except (ValueError, FileNotFoundError) as exc:
        # ConfigurationError is a ValueError
        logger.error("%s", exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
