import pathlib
import shutil

import matplotlib
import pytest

matplotlib.use("Agg")

import gradeflow  # noqa: E402

EXAMPLES_DIRECTORY = pathlib.Path(__file__).parent / "examples"
CLASS_EXAMPLE = EXAMPLES_DIRECTORY / "class"


@pytest.fixture
def class_dir(tmp_path):
    """A fresh copy of the example class directory."""
    root = tmp_path / "class"
    shutil.copytree(CLASS_EXAMPLE, root)
    return gradeflow.ClassDirectory(root)


@pytest.fixture
def processed_class_dir(class_dir):
    """The example class directory after the raw export has been processed."""
    gradeflow.workflow.process(class_dir)
    return class_dir
