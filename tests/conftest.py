"""Pytest configuration and shared fixtures for proxypool tests."""

from pathlib import Path

import pytest
import yaml


@pytest.fixture
def sample_config():
    """Sample configuration dictionary for testing."""
    return {
        "mode": "pool",
        "listener": {"address": "127.0.0.1", "port": 3000},
        "multi_port": {"address": "0.0.0.0", "base_port": 30000},
        "pool": {
            "mode": "random",
            "failure_threshold": 5,
            "blacklist_duration": "1h",
        },
        "management": {
            "enabled": False,
            "listen": "127.0.0.1:9999",
            "probe_target": "example.com:443",
        },
        "nodes": [
            {"name": "alpha", "uri": "socks5://10.0.0.1:1080"},
            {"uri": "http://10.0.0.2:8080#Beta"},
        ],
        "log_level": "debug",
    }


@pytest.fixture
def write_config(tmp_path: Path):
    """Return a helper that dumps a dict to a YAML file under tmp_path."""

    def _write(data, name: str = "config.yaml") -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True)
        return path

    return _write


@pytest.fixture
def write_nodes_file(tmp_path: Path):
    """Return a helper that writes a node list file under tmp_path."""

    def _write(text: str, name: str = "nodes.txt") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
