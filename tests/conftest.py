import os

import matplotlib
matplotlib.use("Agg")

import pytest

from cubekit.core.config import Config, MapperConfig, RenderConfig
from cubekit.cube.state import initialize_cube_state
from cubekit.environment import CubeEnvironment
from cubekit.utils.clock import ManualClock


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # Mapper defaults must not depend on the caller's shell
    monkeypatch.delenv("CUBEKIT_ROTATION_TIMEOUT", raising=False)
    monkeypatch.delenv("CUBEKIT_MOVEMENT_THRESHOLD", raising=False)


@pytest.fixture
def solved():
    return initialize_cube_state()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def mapper_config():
    return MapperConfig(movement_threshold=0.1, rotation_timeout=0.5)


@pytest.fixture
def config():
    return Config(render=RenderConfig(image_width=64, image_height=64, dpi=32))


@pytest.fixture
def env(config, clock):
    environment = CubeEnvironment(config, clock=clock)
    environment.reset()
    yield environment
    environment.close()
