from ._gradebook import Gradebook, DEFAULT_IDENTITY_COLUMNS
from ._assignments import AssignmentRegistry
from ._categories import Category, validate_categories
from ._student import Student, Students
from ._aggregate import (
    StudentScoreRecord,
    StudentGradeRecord,
    weighted_category_score,
    final_score,
    grade_student,
)

__all__ = [
    "Gradebook",
    "DEFAULT_IDENTITY_COLUMNS",
    "AssignmentRegistry",
    "Category",
    "validate_categories",
    "Student",
    "Students",
    "StudentScoreRecord",
    "StudentGradeRecord",
    "weighted_category_score",
    "final_score",
    "grade_student",
]
