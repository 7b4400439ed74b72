"""Package-wide checks: every module imports and documents itself."""

import importlib
import pkgutil
import typing

import pytest

import camera_snitch
from camera_snitch.correlation import correlation_context

MODULES = sorted(
    info.name for info in pkgutil.walk_packages(camera_snitch.__path__, prefix=f"{camera_snitch.__name__}.")
)


@pytest.mark.parametrize("module_name", MODULES)
def test_module_has_docstring(module_name):
    module = importlib.import_module(module_name)

    assert module.__doc__
    assert module.__doc__.strip()


def test_correlation_context_annotation_resolves():
    """The return annotation must evaluate on the oldest supported interpreter"""
    hints = typing.get_type_hints(correlation_context.__wrapped__)

    args = typing.get_args(hints["return"])
    assert len(args) == 3
    assert args[0] is str
