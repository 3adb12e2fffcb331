"""Exceptions raised by gradeflow."""


class ConfigurationError(ValueError):
    """Raised when a class configuration cannot be used to compute grades.

    Examples include a category that refers to an assignment which does not
    exist, a grade cutoff table that is not in descending order, or a
    configuration file that does not match its schema.

    Since this is a subclass of `ValueError`, code that already catches
    `ValueError` will also catch configuration problems.

    """
