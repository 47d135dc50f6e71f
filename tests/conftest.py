"""Shared test fixtures for bayernatlas-heightmapper."""

import json
from unittest.mock import MagicMock

import numpy as np
import pytest


@pytest.fixture
def sample_heights():
    """40x30 ``[x, y]`` height array with values 300-900m."""
    np.random.seed(42)
    return np.random.uniform(300, 900, (40, 30)).astype(np.float32)


@pytest.fixture
def sample_grid(sample_heights):
    """HeightGrid wrapping sample_heights."""
    from bayernatlas_heightmapper.core.grid import HeightGrid

    return HeightGrid.from_array(sample_heights)


@pytest.fixture
def make_config():
    """Factory for RunConfig with small-grid defaults and per-test overrides."""
    from bayernatlas_heightmapper.models.config import RunConfig

    def _make(**overrides):
        values = dict(
            center_x=4468000,
            center_y=5333000,
            size_x=40,
            size_y=30,
            step_m=20,
            output_path="out.png",
        )
        values.update(overrides)
        return RunConfig(**values)

    return _make


def profile_body(altitudes):
    """Encode altitudes as a profile service response body."""
    heights = [
        {
            "dist": float(i),
            "alts": {"COMB": value, "DTM2": value},
            "easting": 0.0,
            "northing": 0.0,
        }
        for i, value in enumerate(altitudes)
    ]
    return json.dumps({"heights": heights}).encode("utf-8")


@pytest.fixture
def echo_client():
    """Mock ProfileClient answering every point with its easting + northing / 1000."""
    client = MagicMock()

    def post_request(request):
        return profile_body([e / 1000.0 + n / 1000.0 for e, n in request.coordinates])

    client.post_request = MagicMock(side_effect=post_request)
    return client


@pytest.fixture
def zero_client():
    """Mock ProfileClient answering every point with height 0 (outside coverage)."""
    client = MagicMock()
    client.post_request = MagicMock(
        side_effect=lambda request: profile_body([0.0] * len(request.coordinates))
    )
    return client


@pytest.fixture
def make_body():
    """The profile_body() encoder as a fixture."""
    return profile_body
