"""Read and write grading scales.

A scale file is a simple CSV with no headers. The first column contains the
letter grade, and the second contains the threshold as a decimal number. The
order of the rows matters!

"""

import pathlib
from typing import Union

from ..exceptions import ConfigurationError
from ..scales import GradeCutoffs


def write(path: Union[str, pathlib.Path], scale: GradeCutoffs):
    """Writes a scale to disk."""
    with pathlib.Path(path).open("w") as fileobj:
        for letter, threshold in scale.items():
            fileobj.write(f"{letter},{threshold:g}\n")


def read(path: Union[str, pathlib.Path], fallback: str = "F") -> GradeCutoffs:
    """Reads a scale from the file.

    Blank lines are ignored.

    Raises
    ------
    ConfigurationError
        If a line is malformed, or the thresholds are not strictly
        descending.

    """
    with pathlib.Path(path).open() as fileobj:
        lines = [line.strip() for line in fileobj if line.strip()]

    def parse_line(line):
        try:
            letter, threshold = line.split(",")
            return (letter.strip(), float(threshold))
        except ValueError as exc:
            raise ConfigurationError(f"Malformed line in scale file {path}: {line!r}") from exc

    return GradeCutoffs([parse_line(line) for line in lines], fallback=fallback)
