"""Load per-class configuration files.

Configuration files are YAML (``.yaml`` or ``.yml``) or JSON documents. They
are plain data; nothing in them is evaluated. Each kind of file has a schema,
and a file that does not match its schema raises a
:class:`gradeflow.exceptions.ConfigurationError`.

A class configuration looks like this:

.. code:: yaml

    course_work:
      - name: Homework
        assignments: [HW1, HW2, HW3]
        weight: 30
      - name: Exams
        assignments: [Midterm, Final]
        weight: 70
        max_points: 200
    grade_cutoffs:
      A: 90
      B: 80
      C: 70
      D: 60
    fallback_letter: F

The cutoffs may also be given as a list of ``{letter: ..., threshold: ...}``
entries. Instead of `grade_cutoffs`, a class configuration may name a
`scale_file`: a CSV of `letter,threshold` lines, read relative to the
configuration file.

"""

import json
import logging
import pathlib
from typing import Any, Optional, Type, TypeVar, Union

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from ..core import Category
from ..exceptions import ConfigurationError
from ..outcomes import AssignmentGroup, Outcome
from ..scales import GradeCutoffs
from . import scales as _scales_io

logger = logging.getLogger(__name__)

#: file extensions that are tried, in order, when looking for a config file
EXTENSIONS = (".yaml", ".yml", ".json")

Model = TypeVar("Model", bound=BaseModel)


# schemas ==============================================================================


class CutoffConfig(BaseModel):
    """One row of a cutoff table."""

    model_config = ConfigDict(extra="forbid")

    letter: str = Field(..., min_length=1)
    threshold: float = Field(..., ge=0.0)


def _cutoffs_as_list(value: Any) -> Any:
    """Accept an ordered mapping of letter to threshold as well as a list."""
    if isinstance(value, dict):
        return [{"letter": k, "threshold": v} for k, v in value.items()]
    return value


def _non_empty(value: list, what: str) -> list:
    if not value:
        raise ValueError(f"{what} must contain at least one entry")
    return value


class _CutoffsMixin(BaseModel):
    grade_cutoffs: list[CutoffConfig]
    fallback_letter: str = Field("F", min_length=1)

    @field_validator("grade_cutoffs", mode="before")
    @classmethod
    def _mapping_to_list(cls, v):
        return _cutoffs_as_list(v)

    @field_validator("grade_cutoffs")
    @classmethod
    def _cutoffs_non_empty(cls, v):
        return _non_empty(v, "grade_cutoffs")

    def to_cutoffs(self) -> GradeCutoffs:
        """Convert to a :class:`gradeflow.scales.GradeCutoffs`.

        Raises
        ------
        ConfigurationError
            If the thresholds are not strictly descending, or a letter is
            repeated.

        """
        return GradeCutoffs(
            [(c.letter, c.threshold) for c in self.grade_cutoffs],
            fallback=self.fallback_letter,
        )


class CategoryConfig(BaseModel):
    """One weighted category of the course work."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    assignments: list[str]
    weight: float = Field(..., ge=0.0)
    max_points: Optional[float] = Field(None, ge=0.0)

    def to_category(self) -> Category:
        return Category(self.name, self.assignments, self.weight, self.max_points)


class ClassConfig(_CutoffsMixin):
    """The configuration of a class: its categories and its cutoff table.

    The cutoffs are given either inline, as `grade_cutoffs`, or as the path
    of a scale file (see :mod:`gradeflow.io.scales`) relative to the
    configuration file, as `scale_file`. Exactly one of the two is required.

    """

    model_config = ConfigDict(extra="forbid")

    course_work: list[CategoryConfig]
    grade_cutoffs: Optional[list[CutoffConfig]] = None
    scale_file: Optional[str] = Field(None, min_length=1)

    _scale: Optional[GradeCutoffs] = PrivateAttr(None)

    @model_validator(mode="after")
    def _one_source_of_cutoffs(self):
        if (self.grade_cutoffs is None) == (self.scale_file is None):
            raise ValueError("exactly one of grade_cutoffs and scale_file must be given")
        return self

    @field_validator("course_work")
    @classmethod
    def _course_work_non_empty(cls, v):
        return _non_empty(v, "course_work")

    def to_categories(self) -> list[Category]:
        """The categories, in the order they are listed."""
        return [c.to_category() for c in self.course_work]

    def to_cutoffs(self) -> GradeCutoffs:
        """Convert to a :class:`gradeflow.scales.GradeCutoffs`.

        Raises
        ------
        ConfigurationError
            If the thresholds are not strictly descending, a letter is
            repeated, or the scale file has not been read by
            :func:`load_class_config`.

        """
        if self.scale_file is None:
            return super().to_cutoffs()
        if self._scale is None:
            raise ConfigurationError(
                f'Scale file "{self.scale_file}" has not been read; use load_class_config.'
            )
        return self._scale


class OutcomeEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str = Field(..., min_length=1)
    assignments: list[str]


class OutcomeConfig(_CutoffsMixin):
    """The student outcomes assessed in a class."""

    model_config = ConfigDict(extra="forbid")

    outcomes: list[OutcomeEntry]

    @field_validator("outcomes")
    @classmethod
    def _outcomes_non_empty(cls, v):
        return _non_empty(v, "outcomes")

    def to_outcomes(self) -> list[Outcome]:
        return [Outcome(o.code, tuple(o.assignments)) for o in self.outcomes]


class SectionEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    assignments: list[str]


class SectionsConfig(BaseModel):
    """Per-section copies of assignments that should be combined."""

    model_config = ConfigDict(extra="forbid")

    sections: list[SectionEntry]

    def to_mapping(self) -> dict[str, list[str]]:
        """Map each combined assignment name to its per-section copies."""
        return {s.name: list(s.assignments) for s in self.sections}


class GroupEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    assignments: list[str]

    @field_validator("assignments")
    @classmethod
    def _assignments_non_empty(cls, v):
        return _non_empty(v, "assignments")

    def to_group(self) -> AssignmentGroup:
        return AssignmentGroup(self.name, tuple(self.assignments))


class GapAnalysisConfig(BaseModel):
    """The two groups of assignments compared by a grade gap analysis."""

    model_config = ConfigDict(extra="forbid")

    group1: GroupEntry
    group2: GroupEntry


class MergeConfig(BaseModel):
    """How to merge a column from an external CSV into the processed grades."""

    model_config = ConfigDict(extra="forbid")

    source_file: str = Field(..., min_length=1)
    source_match_column: str = Field(..., min_length=1)
    source_data_column: str = Field(..., min_length=1)
    target_match_column: str = Field(..., min_length=1)
    new_column_name: str = Field(..., min_length=1)
    max_points: float = Field(..., ge=0.0)


# loading ==============================================================================


def _read_document(path: pathlib.Path) -> Any:
    with path.open() as fileobj:
        if path.suffix == ".json":
            return json.load(fileobj)
        return yaml.safe_load(fileobj)


def load(path: Union[str, pathlib.Path], model: Type[Model]) -> Model:
    """Load and validate a configuration file.

    Parameters
    ----------
    path : str or pathlib.Path
        The file. JSON if its extension is ``.json``, YAML otherwise.
    model : Type[BaseModel]
        The schema to validate against, e.g., :class:`ClassConfig`.

    Returns
    -------
    BaseModel
        An instance of `model`.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ConfigurationError
        If the file cannot be parsed or does not match the schema.

    """
    path = pathlib.Path(path)

    try:
        document = _read_document(path)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not parse {path}: {exc}") from exc

    if document is None:
        raise ConfigurationError(f"{path} is empty.")

    try:
        config = model.model_validate(document)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {path}:\n{exc}") from exc

    logger.debug("Loaded %s from %s.", model.__name__, path)
    return config


def find(directory: Union[str, pathlib.Path], stem: str) -> pathlib.Path:
    """Find the configuration file named `stem` in a directory.

    The extensions in :data:`EXTENSIONS` are tried in order.

    Raises
    ------
    ConfigurationError
        If no such file exists.

    """
    directory = pathlib.Path(directory)
    for extension in EXTENSIONS:
        candidate = directory / f"{stem}{extension}"
        if candidate.exists():
            return candidate

    names = ", ".join(f"{stem}{e}" for e in EXTENSIONS)
    raise ConfigurationError(f"No configuration file found in {directory} (tried {names}).")


def load_class_config(path: Union[str, pathlib.Path]) -> ClassConfig:
    """Load a :class:`ClassConfig` and check that its cutoffs are valid.

    If the configuration names a `scale_file`, it is read relative to the
    directory containing the configuration file.

    Raises
    ------
    ConfigurationError
        If the file does not match the schema, the scale file is missing or
        malformed, or the cutoffs are invalid.

    """
    path = pathlib.Path(path)
    config = load(path, ClassConfig)

    if config.scale_file is not None:
        scale_path = path.parent / config.scale_file
        if not scale_path.is_file():
            raise ConfigurationError(f"Scale file {scale_path} does not exist.")
        config._scale = _scales_io.read(scale_path, fallback=config.fallback_letter)
        logger.debug("Read grade cutoffs from %s.", scale_path)

    config.to_cutoffs()
    return config
