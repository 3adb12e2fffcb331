"""Private helper utilities."""

import math
from typing import Iterable, Optional

import pandas as pd


def normalize_name(name: str) -> str:
    """Normalize an assignment name or column header for comparison.

    Names are compared case-insensitively and with surrounding whitespace
    removed.

    """
    return str(name).strip().lower()


def find_column(columns: Iterable[str], target: str) -> Optional[str]:
    """Find the column whose normalized name matches `target`.

    Returns `None` if there is no match.

    """
    target = normalize_name(target)
    for column in columns:
        if normalize_name(column) == target:
            return column
    return None


def to_score(value) -> float:
    """Coerce a raw score to a float, treating missing or garbage values as 0."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0

    if math.isnan(score):
        return 0.0

    return score


def in_jupyter_notebook() -> bool:
    """Determine if the code is being run in a Jupyter notebook."""
    try:
        shell = get_ipython().__class__.__name__  # pyright: ignore
        if shell == "ZMQInteractiveShell":
            return True  # Jupyter notebook or qtconsole
        elif shell == "TerminalInteractiveShell":
            return False  # Terminal running IPython
        else:
            return False  # Other type (?)
    except NameError:
        return False


def ensure_df(x) -> pd.DataFrame:
    """Helps convince the type checker that a variable is a DataFrame."""
    assert isinstance(x, pd.DataFrame)
    return x
