"""Charts of the grade distribution."""

import logging
import pathlib
from typing import Mapping, Optional, Union

import bokeh.io
import bokeh.models
import bokeh.plotting
import matplotlib.pyplot as plt
import numpy as np

from ._util import in_jupyter_notebook as _in_jupyter_notebook
from .core import Gradebook
from .scales import GradeCutoffs
from .statistics import (
    grade_table as _grade_table,
    letter_grade_distribution as _letter_grade_distribution,
)

logger = logging.getLogger(__name__)

#: how the bars of :func:`grade_distribution_chart` are labeled
LABEL_MODES = ("counts", "cutoffs", "none")


def cutoff_label(cutoffs: GradeCutoffs, letter: str) -> str:
    """A label like "≥90%" for a letter of the cutoff table; empty if absent."""
    if letter not in cutoffs:
        return ""
    return f"≥{cutoffs[letter]:g}%"


# bar chart ----------------------------------------------------------------------------


def grade_distribution_chart(
    counts: Mapping[str, int],
    cutoffs: GradeCutoffs,
    *,
    label_mode: str = "counts",
    path: Optional[Union[str, pathlib.Path]] = None,
    width: int = 800,
    height: int = 600,
    dpi: int = 200,
    transparent: bool = False,
):
    """Draw a bar chart of the number of students receiving each letter grade.

    Parameters
    ----------
    counts : Mapping[str, int]
        The number of students with each letter, in display order.
    cutoffs : GradeCutoffs
        The cutoff table, used for the "cutoffs" labels.
    label_mode : str
        How each bar is labeled: "counts" shows the number of students,
        "cutoffs" shows the threshold of the letter (e.g., "≥90%"), and
        "none" shows no labels. Default: "counts".
    path : Optional[Union[str, pathlib.Path]]
        If given, the chart is saved here as a PNG.
    width, height : int
        The size of the chart in pixels at a resolution of 100 dpi.
    dpi : int
        The resolution of the saved image. Default: 200.
    transparent : bool
        Whether the saved image has a transparent background. Default: False.

    Returns
    -------
    matplotlib.figure.Figure

    Raises
    ------
    ValueError
        If `label_mode` is not one of :data:`LABEL_MODES`.

    """
    if label_mode not in LABEL_MODES:
        raise ValueError(f"label_mode must be one of {LABEL_MODES}, not {label_mode!r}.")

    letters = list(counts)
    values = [int(counts[letter]) for letter in letters]

    fig, ax = plt.subplots(figsize=(width / 100, height / 100))
    bars = ax.bar(letters, values, color=(54 / 255, 162 / 255, 235 / 255, 0.5))

    ax.set_title("Grade Distribution")
    ax.set_xlabel("Grade")
    ax.set_ylabel("Students")
    ax.set_ylim(0, max(values + [1]) * 1.15)

    if label_mode == "counts":
        labels = [str(v) for v in values]
    elif label_mode == "cutoffs":
        labels = [cutoff_label(cutoffs, letter) for letter in letters]
    else:
        labels = None

    if labels is not None:
        ax.bar_label(bars, labels=labels, fontweight="bold", color="#333333")

    if path is not None:
        fig.savefig(path, dpi=dpi, transparent=transparent)
        logger.info("Saved grade distribution chart to %s.", path)

    return fig


# interactive histogram ----------------------------------------------------------------


def _plot_grade_distribution_histogram(
    fig: bokeh.models.Model, x_hist: np.ndarray, y_hist: np.ndarray
):
    fig.quad(top=y_hist, bottom=0, left=x_hist[:-1], right=x_hist[1:], fill_alpha=0.7)


def _plot_grade_distribution_students(
    fig: bokeh.models.Model, gb: Gradebook
) -> bokeh.models.GlyphRenderer:
    source_df = _grade_table(gb)
    source_df["student"] = [str(s.name or s.pid) for s in gb.students]

    source = bokeh.models.ColumnDataSource(source_df)

    return fig.scatter(
        "Final Score",
        0.05,
        source=source,
        color="black",
        size=10,
        fill_alpha=0.2,
        marker="triangle",
    )


def _plot_grade_distribution_hover_tool(
    fig: bokeh.models.Model, renderer: bokeh.models.GlyphRenderer
):
    fig.hover.tooltips = [
        ("student", "@student"),
        ("final score", "@{Final Score}"),
        ("letter grade", "@{Letter Grade}"),
    ]
    fig.hover.renderers = [renderer]


def _plot_grade_distribution_thresholds(
    fig: bokeh.models.Model, gb: Gradebook, y_max: float
):
    # plot threshold lines
    for letter, threshold in gb.scale.items():
        fig.line([threshold, threshold], [0, y_max], line_dash="dashed", color="black")

    # set up the ticker
    fig.xaxis.ticker = gb.scale.thresholds

    # change the major labels
    lgd = _letter_grade_distribution(gb.letter_grades, gb.scale)
    for letter, threshold in gb.scale.items():
        count = f"({lgd[letter]})"
        fig.xaxis.major_label_overrides[threshold] = f"{threshold:g}\n{letter}\n{count}"  # pyright: ignore

    fig.xaxis.major_label_text_font_size = "14px"
    fig.grid.visible = False


def grade_distribution(
    gradebook: Gradebook,
    x_min: float = 50,
    x_max: float = 100,
    bin_width: float = 2.5,
    path: Optional[Union[str, pathlib.Path]] = None,
):
    """Visualize the grade distribution with respect to the cutoff table.

    This builds an interactive histogram of the final scores, with each
    individual score marked as a triangle. The thresholds of the gradebook's
    scale are marked as vertical lines, and the frequency of each letter
    grade is shown under its threshold.

    Parameters
    ----------
    gradebook : Gradebook
        A gradebook whose categories have been set.
    x_min : float
        The smallest extent of the axis containing scores. Default: 50
    x_max : float
        The greatest extent of the axis containing scores. Default: 100
    bin_width
        How wide each bin should be. Default: 2.5.
    path : Optional[Union[str, pathlib.Path]]
        If given, the figure is saved here as a standalone HTML file.

    Returns
    -------
    bokeh.plotting.figure
        The figure. In a Jupyter notebook, it is also displayed.

    """
    # x_hist is the bin edges, y_hist is the bin counts
    y_hist, x_hist = np.histogram(
        gradebook.final_score, bins=np.arange(x_min, x_max + bin_width, bin_width)
    )

    # give a little headroom above the plot
    y_max = max(max(y_hist, default=0), 1) * 1.1

    fig = bokeh.plotting.figure(
        title="Grade Distribution",
        min_width=800,
        min_height=400,
        x_range=[x_min, x_max],
        y_range=[0, y_max],
        tools="hover,pan,box_zoom,save,reset,help",
        y_axis_label="Count",
    )

    _plot_grade_distribution_histogram(fig, x_hist, y_hist)
    renderer = _plot_grade_distribution_students(fig, gradebook)
    _plot_grade_distribution_hover_tool(fig, renderer)
    _plot_grade_distribution_thresholds(fig, gradebook, y_max)

    if path is not None:
        bokeh.io.save(fig, filename=str(path), resources="cdn", title="Grade Distribution")
        logger.info("Saved interactive grade distribution to %s.", path)

    if _in_jupyter_notebook():
        bokeh.io.output_notebook()
        bokeh.plotting.show(fig)  # pyright: ignore

    return fig
