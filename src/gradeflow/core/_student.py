"""Represent a student in the class."""

import typing


class Student:
    """Represents a student.

    Attributes
    ----------
    pid : str
        The student's ID (the SID column of a Gradescope export).
    name : Optional[str]
        The student's full name. If not available, this will be `None`.
    first_name : Optional[str]
    last_name : Optional[str]
    email : Optional[str]
    section : Optional[str]
        Identity fields carried through unchanged from the raw export.

    When a :class:`Student` instance is printed, the student's name is displayed if
    available; however, when two :class:`Student` instances are compared for equality,
    the :code:`.pid` attribute is used.

    Used in the index of tables in the :class:`Gradebook` class. This allows
    code like:

    .. code::

        gradebook.points_earned.loc['A1000234', 'homework 03']

    which looks up the the number points earned on Homework 03 by student
    'A1000234'. But when the table is printed, the student's name will appear
    instead of their ID.

    """

    def __init__(
        self,
        pid,
        name=None,
        *,
        first_name=None,
        last_name=None,
        email=None,
        section=None,
    ):
        self.pid = pid
        self.first_name = first_name
        self.last_name = last_name
        self.email = email
        self.section = section

        if name is None and (first_name or last_name):
            name = " ".join(part for part in (first_name, last_name) if part)

        self.name = name

    def __repr__(self):
        """String representation uses name, if available; PID otherwise."""
        if self.name is not None:
            s = self.name
        else:
            s = self.pid

        return f"<{s}>"

    def __hash__(self):
        return hash(self.pid)

    def __eq__(self, other):
        """Equality checks always use the pid."""
        if isinstance(other, Student):
            return other.pid == self.pid
        else:
            return self.pid == other

    def __lt__(self, other):
        """Less-than checks always use the pid."""
        if isinstance(other, Student):
            return self.pid < other.pid
        else:
            return self.pid < other


class Students(typing.Sequence[Student]):
    """A sequence of :class:`Student` instances.

    This behaves like a list of :class:`Student` instances, but also provides
    :meth:`find` and :meth:`find_by_email` methods to look up a student.

    """

    def __init__(self, students: typing.Sequence[Student]):
        self._students = students

    def __getitem__(self, ix):
        return self._students[ix]

    def __len__(self):
        return len(self._students)

    def __repr__(self):
        return f"Students({list(self._students)!r})"

    def find(self, pattern: str) -> Student:
        """Finds a student from a substring of their name.

        The search is case-insensitive.

        Parameters
        ----------
        pattern : str
            A pattern to search for in the student's name. All students whose
            (lowercased) names contain this pattern as a substring will be
            considered matches.

        Returns
        -------
        Student
            The matching student.

        Raises
        ------
        ValueError
            If no student matches, or if more than one student matches.

        """

        def is_match(student):
            if student.name is None:
                return False
            return pattern.lower() in student.name.lower()

        matches = [s for s in self._students if is_match(s)]

        if len(matches) == 0:
            raise ValueError(f"No names matched {pattern}.")

        if len(matches) > 1:
            raise ValueError(f'More than one name matched "{pattern}": {matches}')

        return matches[0]

    def find_by_email(self, email: str) -> Student:
        """Finds a student by email address, ignoring case and whitespace.

        Raises
        ------
        ValueError
            If no student has the email address.

        """
        target = email.strip().lower()
        for student in self._students:
            if student.email is not None and student.email.strip().lower() == target:
                return student
        raise ValueError(f"No student has the email {email}.")
