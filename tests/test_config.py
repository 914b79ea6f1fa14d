"""Tests for configuration loading."""

from pathlib import Path

import pytest

from willowfinder.config import ConfigError, WillowFinderConfig, load_config


def test_defaults():
    config = load_config(environ={})

    assert config.enable_websocket is True
    assert config.port == 8765
    assert config.highlight_color == "#00FF00"
    assert config.chat_capacity == 10
    assert config.websocket_url == "ws://127.0.0.1:8765"


def test_environment_values_are_parsed():
    config = load_config(environ={
        "WILLOWFINDER_PORT": "9001",
        "WILLOWFINDER_ENABLE_WEBSOCKET": "false",
        "WILLOWFINDER_SHOW_DISTANCE": "0",
        "WILLOWFINDER_PING_INTERVAL": "none",
        "WILLOWFINDER_LOG_DIR": "/tmp/wf-logs",
        "UNRELATED": "1",
    })

    assert config.port == 9001
    assert config.enable_websocket is False
    assert config.show_distance is False
    assert config.ping_interval is None
    assert config.log_dir == Path("/tmp/wf-logs")


def test_overrides_win_and_none_falls_through():
    config = load_config({"port": 1234, "host": None}, environ={"WILLOWFINDER_PORT": "9001"})

    assert config.port == 1234
    assert config.host == "127.0.0.1"


def test_colors_are_normalized():
    assert WillowFinderConfig(bank_highlight_color="#ffcc00").bank_highlight_color == "#FFCC00"


@pytest.mark.parametrize(
    "values",
    [
        {"WILLOWFINDER_HIGHLIGHT_COLOR": "green"},
        {"WILLOWFINDER_PORT": "70000"},
        {"WILLOWFINDER_PORT": "abc"},
        {"WILLOWFINDER_OUTBOUND_QUEUE_SIZE": "0"},
    ],
)
def test_invalid_values_raise_config_error(values):
    with pytest.raises(ConfigError):
        load_config(environ=values)


def test_config_is_immutable():
    config = WillowFinderConfig()
    with pytest.raises(Exception):
        config.port = 1
