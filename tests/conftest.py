# tests/conftest.py
"""Shared fixtures for the ktgen test suite."""

import io

import pytest

from ktgen.names import ClassName
from ktgen.renderer import Renderer
from ktgen.writer import CodeWriter, RenderContext


@pytest.fixture
def renderer():
    return Renderer()


@pytest.fixture
def narrow_renderer():
    """A renderer with a 40-column budget, for wrapping tests."""
    return Renderer(column_limit=40)


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def context():
    return RenderContext(namespace="com.example")


@pytest.fixture
def writer(out, context):
    return CodeWriter(out, context)


@pytest.fixture
def widget_a():
    return ClassName("com.alpha", "Widget")


@pytest.fixture
def widget_b():
    return ClassName("com.beta", "Widget")
