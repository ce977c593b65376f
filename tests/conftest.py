"""Shared fixtures for ivrflow tests."""

import json
from pathlib import Path

import pytest

from ivrflow.compiler import FlowBuilder
from ivrflow.serialization import FlowSerializer

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture
def builder() -> FlowBuilder:
    """Fresh top-level builder for a flow named 'test'."""
    return FlowBuilder("test")


@pytest.fixture
def serializer() -> FlowSerializer:
    return FlowSerializer()


@pytest.fixture
def render(serializer):
    """Render a graph and parse the JSON back, for structural assertions."""

    def _render(graph):
        return json.loads(serializer.to_json(graph))

    return _render


@pytest.fixture
def support_config_path() -> Path:
    """Directory holding the sample support-line definition."""
    return EXAMPLES_DIR / "support"
