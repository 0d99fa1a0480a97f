"""Pytest configuration and shared fixtures."""

from collections import defaultdict
from unittest.mock import MagicMock

import pytest

from cubeviewer.config import ViewerConfig
from cubeviewer.core.errors import CapabilityUnavailable
from cubeviewer.core.render_engine import create_standalone_context


def make_program():
    """Mock program whose uniforms are distinct mocks per name"""
    program = MagicMock(name="program")
    program.uniforms = defaultdict(MagicMock)
    program.__getitem__.side_effect = lambda name: program.uniforms[name]
    return program


@pytest.fixture
def mock_ctx():
    """A MagicMock standing in for a GL 3.3 moderngl.Context."""
    ctx = MagicMock(name="ctx")
    ctx.version_code = 330
    ctx.program.side_effect = lambda **kwargs: make_program()
    return ctx


@pytest.fixture
def default_config():
    """Provide the default viewer configuration."""
    return ViewerConfig()


@pytest.fixture(scope="session")
def gl_ctx():
    """A real headless OpenGL context, or skip the test."""
    try:
        ctx = create_standalone_context()
    except CapabilityUnavailable as e:
        pytest.skip(f"No headless OpenGL context available: {e}")
    yield ctx
    ctx.release()


@pytest.fixture
def program_factory():
    """Build mock programs with per-name uniform mocks."""
    return make_program
