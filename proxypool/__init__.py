"""Configuration loading for the proxy pool server.

Turns a YAML document and an optional node list file into a fully resolved
configuration for the listener, pool scheduler and management endpoint.
"""

from .config import ConfigError, NodeConfig, ProxyPoolConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "NodeConfig",
    "ProxyPoolConfig",
    "load_config",
]
