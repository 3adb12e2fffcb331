"""A package for turning raw grade exports into final grades and reports."""

from .core import (
    Gradebook,
    AssignmentRegistry,
    Category,
    Student,
    Students,
    StudentScoreRecord,
    StudentGradeRecord,
    weighted_category_score,
    final_score,
    grade_student,
)
from .exceptions import ConfigurationError
from .scales import GradeCutoffs, DEFAULT_SCALE, ROUNDED_DEFAULT_SCALE, classify
from .workflow import ClassDirectory

from . import io
from . import outcomes
from . import plot
from . import preprocessing
from . import reports
from . import scales
from . import statistics
from . import workflow

__all__ = [
    "Gradebook",
    "AssignmentRegistry",
    "Category",
    "Student",
    "Students",
    "StudentScoreRecord",
    "StudentGradeRecord",
    "weighted_category_score",
    "final_score",
    "grade_student",
    "ConfigurationError",
    "GradeCutoffs",
    "DEFAULT_SCALE",
    "ROUNDED_DEFAULT_SCALE",
    "classify",
    "ClassDirectory",
    "io",
    "outcomes",
    "plot",
    "preprocessing",
    "reports",
    "scales",
    "statistics",
    "workflow",
]
