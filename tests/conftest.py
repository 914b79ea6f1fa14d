"""Pytest configuration and fixtures for world feed tests."""

import pytest

from willowfinder.config import WillowFinderConfig
from willowfinder.world import InMemoryWorld


@pytest.fixture
def world():
    """Provide a small scene with the local player on tile (8, 8)."""
    scene = InMemoryWorld(base_x=3000, base_y=3400, size=20)
    scene.place_player(8, 8)
    scene.real_levels.update({"hitpoints": 40, "prayer": 31, "woodcutting": 60, "mining": 45})
    scene.boosted_levels.update({"hitpoints": 37, "prayer": 30})
    return scene


@pytest.fixture
def empty_world():
    """Provide a scene that has no local player (e.g. while loading)."""
    return InMemoryWorld(size=20)


@pytest.fixture
def config():
    """Provide a configuration with the WebSocket endpoint disabled."""
    return WillowFinderConfig(enable_websocket=False)
