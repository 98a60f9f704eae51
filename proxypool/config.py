"""Configuration management for the proxy pool server."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from proxypool.durations import format_duration, parse_duration
from proxypool.log_config import get_logger
from proxypool.naming import name_from_uri

logger = get_logger(__name__)

MODE_POOL = "pool"
MODE_MULTI_PORT = "multi-port"
SUPPORTED_MODES = (MODE_POOL, MODE_MULTI_PORT)
MODE_ALIASES = {"multi_port": MODE_MULTI_PORT}

DEFAULT_BIND_ADDRESS = "0.0.0.0"
DEFAULT_LISTENER_PORT = 2323
DEFAULT_POOL_MODE = "sequential"
DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_BLACKLIST_DURATION = timedelta(hours=24)
DEFAULT_BASE_PORT = 28000
DEFAULT_MANAGEMENT_LISTEN = "127.0.0.1:9090"
DEFAULT_PROBE_TARGET = "www.apple.com:80"
DEFAULT_LOG_LEVEL = "info"

MAX_PORT = 65535


class ConfigError(ValueError):
    """Raised when the configuration cannot be read, decoded or validated."""


@dataclass
class ListenerConfig:
    """Client-facing proxy listener used in pool mode."""

    address: str = ""
    port: int = 0
    username: str = ""
    password: str = ""


@dataclass
class PoolConfig:
    """Scheduling and failure handling for the node pool.

    ``blacklist_duration`` is the cooldown after which a node that crossed
    ``failure_threshold`` consecutive failures may be tried again.
    """

    mode: str = ""
    failure_threshold: int = 0
    blacklist_duration: timedelta = field(default_factory=timedelta)


@dataclass
class MultiPortConfig:
    """Address and credential defaults for multi-port mode.

    ``base_port`` seeds the automatic per-node port assignment in every mode.
    """

    address: str = ""
    base_port: int = 0
    username: str = ""
    password: str = ""


@dataclass
class ManagementConfig:
    """Monitoring HTTP endpoint settings.

    ``enabled`` is tri-state: ``None`` means the key was absent and is
    resolved to ``True`` during normalization.
    """

    enabled: bool | None = None
    listen: str = ""
    probe_target: str = ""


@dataclass
class NodeConfig:
    """A single upstream proxy endpoint expressed as a URI."""

    name: str = ""
    uri: str = ""
    port: int = 0  # 0 means "assign from the multi-port base port"
    username: str = ""
    password: str = ""


@dataclass
class ProxyPoolConfig:
    """Complete proxy pool server configuration.

    Built from YAML by :meth:`from_yaml`, which also runs :meth:`normalize`.
    A normalized instance is the only form handed to the listener, pool
    scheduler and management endpoint; none of them re-validate it.
    """

    mode: str = ""
    listener: ListenerConfig = field(default_factory=ListenerConfig)
    multi_port: MultiPortConfig = field(default_factory=MultiPortConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)
    management: ManagementConfig = field(default_factory=ManagementConfig)
    nodes: list[NodeConfig] = field(default_factory=list)
    nodes_file: str = ""
    log_level: str = ""
    _source_path: Path | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> ProxyPoolConfig:
        """Load, decode and normalize configuration from a YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Fully normalized configuration object.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ConfigError: If the file cannot be read or decoded, or the
                configuration is invalid.
        """
        config_path = Path(config_path)
        logger.info(f"Loading configuration from: {config_path}")

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration: {e}")
            raise ConfigError(f"decode config {config_path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"read config {config_path}: {e}") from e

        cfg = cls._from_dict({} if raw_config is None else raw_config)
        cfg._source_path = config_path
        cfg.normalize()
        logger.info(
            f"Configuration loaded: mode={cfg.mode}, {len(cfg.nodes)} nodes"
        )
        return cfg

    @classmethod
    def _from_dict(cls, config_dict: Any) -> ProxyPoolConfig:
        """Create a raw (not yet normalized) configuration from a dictionary.

        Unknown keys are ignored with a warning. Values of the wrong type
        raise ``ConfigError`` naming the offending key.

        Args:
            config_dict: Raw configuration dictionary.

        Returns:
            Configuration object with user-supplied values only.
        """
        if not isinstance(config_dict, dict):
            raise ConfigError("decode config: top-level document must be a mapping")
        _warn_unknown(config_dict, _TOP_LEVEL_KEYS, "")

        listener_dict = _mapping(config_dict.get("listener"), "listener")
        _warn_unknown(listener_dict, _LISTENER_KEYS, "listener")
        listener = ListenerConfig(
            address=_as_str(listener_dict.get("address"), "listener.address"),
            port=_as_port(listener_dict.get("port"), "listener.port"),
            username=_as_str(listener_dict.get("username"), "listener.username"),
            password=_as_str(listener_dict.get("password"), "listener.password"),
        )

        multi_port_dict = _mapping(config_dict.get("multi_port"), "multi_port")
        _warn_unknown(multi_port_dict, _MULTI_PORT_KEYS, "multi_port")
        multi_port = MultiPortConfig(
            address=_as_str(multi_port_dict.get("address"), "multi_port.address"),
            base_port=_as_port(
                multi_port_dict.get("base_port"), "multi_port.base_port"
            ),
            username=_as_str(multi_port_dict.get("username"), "multi_port.username"),
            password=_as_str(multi_port_dict.get("password"), "multi_port.password"),
        )

        pool_dict = _mapping(config_dict.get("pool"), "pool")
        _warn_unknown(pool_dict, _POOL_KEYS, "pool")
        pool = PoolConfig(
            mode=_as_str(pool_dict.get("mode"), "pool.mode"),
            failure_threshold=_as_int(
                pool_dict.get("failure_threshold"), "pool.failure_threshold"
            ),
            blacklist_duration=_as_duration(
                pool_dict.get("blacklist_duration"), "pool.blacklist_duration"
            ),
        )

        management_dict = _mapping(config_dict.get("management"), "management")
        _warn_unknown(management_dict, _MANAGEMENT_KEYS, "management")
        management = ManagementConfig(
            enabled=_as_optional_bool(
                management_dict.get("enabled"), "management.enabled"
            ),
            listen=_as_str(management_dict.get("listen"), "management.listen"),
            probe_target=_as_str(
                management_dict.get("probe_target"), "management.probe_target"
            ),
        )

        raw_nodes = config_dict.get("nodes")
        if raw_nodes is None:
            raw_nodes = []
        if not isinstance(raw_nodes, list):
            raise ConfigError("decode config: 'nodes' must be a list")
        nodes = [
            _node_from_dict(entry, f"nodes[{idx}]")
            for idx, entry in enumerate(raw_nodes)
        ]

        return cls(
            mode=_as_str(config_dict.get("mode"), "mode"),
            listener=listener,
            multi_port=multi_port,
            pool=pool,
            management=management,
            nodes=nodes,
            nodes_file=_as_str(config_dict.get("nodes_file"), "nodes_file"),
            log_level=_as_str(config_dict.get("log_level"), "log_level"),
        )

    def normalize(self) -> None:
        """Apply defaults, merge node sources and validate invariants.

        Steps run in a fixed order because later ones read values settled by
        earlier ones: the node port cursor starts at the (defaulted)
        multi-port base port and credential inheritance depends on the
        resolved mode. The configuration is mutated in place.

        Raises:
            ConfigError: On the first invalid value encountered.
        """
        if self.mode == "":
            self.mode = MODE_POOL
        self.mode = MODE_ALIASES.get(self.mode, self.mode)
        if self.mode not in SUPPORTED_MODES:
            raise ConfigError(
                f"unsupported mode {self.mode!r} (use 'pool' or 'multi-port')"
            )

        if self.listener.address == "":
            self.listener.address = DEFAULT_BIND_ADDRESS
        if self.listener.port == 0:
            self.listener.port = DEFAULT_LISTENER_PORT

        if self.pool.mode == "":
            self.pool.mode = DEFAULT_POOL_MODE
        if self.pool.failure_threshold <= 0:
            self.pool.failure_threshold = DEFAULT_FAILURE_THRESHOLD
        if self.pool.blacklist_duration <= timedelta(0):
            self.pool.blacklist_duration = DEFAULT_BLACKLIST_DURATION

        if self.multi_port.address == "":
            self.multi_port.address = DEFAULT_BIND_ADDRESS
        if self.multi_port.base_port == 0:
            self.multi_port.base_port = DEFAULT_BASE_PORT

        if self.management.listen == "":
            self.management.listen = DEFAULT_MANAGEMENT_LISTEN
        if self.management.probe_target == "":
            self.management.probe_target = DEFAULT_PROBE_TARGET
        if self.management.enabled is None:
            self.management.enabled = True

        self._merge_nodes_file()
        if not self.nodes:
            raise ConfigError(
                "config.nodes cannot be empty "
                "(configure nodes in config or use nodes_file)"
            )

        port_cursor = self.multi_port.base_port
        for idx, node in enumerate(self.nodes):
            node.name = node.name.strip()
            node.uri = node.uri.strip()

            if node.uri == "":
                raise ConfigError(f"node {idx} is missing uri")

            if node.name == "":
                node.name = name_from_uri(node.uri)
            if node.name == "":
                node.name = f"node-{idx}"

            if node.port == 0:
                if port_cursor > MAX_PORT:
                    raise ConfigError(
                        f"node {idx}: no port left to assign "
                        f"(base port {self.multi_port.base_port})"
                    )
                node.port = port_cursor
                port_cursor += 1

            # Username and password travel as a pair: a node with a password
            # but no username still takes both from multi_port.
            if self.mode == MODE_MULTI_PORT and node.username == "":
                node.username = self.multi_port.username
                node.password = self.multi_port.password

            logger.debug(f"Node {idx}: name={node.name!r} port={node.port}")

        if self.log_level == "":
            self.log_level = DEFAULT_LOG_LEVEL

    def _merge_nodes_file(self) -> None:
        """Append nodes read from ``nodes_file`` after the inline nodes."""
        if self.nodes_file == "":
            return

        from proxypool.nodes_file import load_nodes_from_file

        try:
            file_nodes = load_nodes_from_file(self.nodes_file)
        except (OSError, ValueError) as e:
            raise ConfigError(
                f"load nodes from file {self.nodes_file!r}: {e}"
            ) from e

        logger.info(
            f"Loaded {len(file_nodes)} nodes from {self.nodes_file} "
            f"({len(self.nodes)} inline)"
        )
        self.nodes.extend(file_nodes)

    @property
    def management_enabled(self) -> bool:
        """Whether the monitoring endpoint should run."""
        if self.management.enabled is None:
            return True
        return self.management.enabled

    def summary(self) -> str:
        """Generate configuration summary string.

        Returns:
            Human-readable configuration summary.
        """
        if self.mode == MODE_MULTI_PORT:
            listen_line = (
                f"   Multi-port: {self.multi_port.address} "
                f"from {self.multi_port.base_port}"
            )
        else:
            listen_line = f"   Listener: {self.listener.address}:{self.listener.port}"

        lines = [
            "PROXY POOL CONFIGURATION",
            "=" * 60,
            f"   Mode: {self.mode}",
            listen_line,
            f"   Log Level: {self.log_level}",
            "",
            "POOL",
            "-" * 30,
            f"   Scheduling: {self.pool.mode}",
            f"   Failure Threshold: {self.pool.failure_threshold}",
            f"   Blacklist Duration: {format_duration(self.pool.blacklist_duration)}",
            "",
            "MANAGEMENT",
            "-" * 30,
            f"   Enabled: {self.management_enabled}",
            f"   Listen: {self.management.listen}",
            f"   Probe Target: {self.management.probe_target}",
            "",
            "NODES",
            "-" * 30,
            f"   Count: {len(self.nodes)}",
            f"   Nodes File: {self.nodes_file or '-'}",
            "",
            "=" * 60,
        ]

        return "\n".join(lines)


def load_config(config_path: str | Path) -> ProxyPoolConfig:
    """Load and normalize the configuration at ``config_path``."""
    return ProxyPoolConfig.from_yaml(Path(config_path))


_TOP_LEVEL_KEYS = (
    "mode",
    "listener",
    "multi_port",
    "pool",
    "management",
    "nodes",
    "nodes_file",
    "log_level",
)
_LISTENER_KEYS = ("address", "port", "username", "password")
_MULTI_PORT_KEYS = ("address", "base_port", "username", "password")
_POOL_KEYS = ("mode", "failure_threshold", "blacklist_duration")
_MANAGEMENT_KEYS = ("enabled", "listen", "probe_target")
_NODE_KEYS = ("name", "uri", "port", "username", "password")


def _node_from_dict(entry: Any, key: str) -> NodeConfig:
    node_dict = _mapping(entry, key)
    _warn_unknown(node_dict, _NODE_KEYS, key)
    return NodeConfig(
        name=_as_str(node_dict.get("name"), f"{key}.name"),
        uri=_as_str(node_dict.get("uri"), f"{key}.uri"),
        port=_as_port(node_dict.get("port"), f"{key}.port"),
        username=_as_str(node_dict.get("username"), f"{key}.username"),
        password=_as_str(node_dict.get("password"), f"{key}.password"),
    )


def _warn_unknown(data: dict[str, Any], allowed: tuple[str, ...], key: str) -> None:
    for name in data:
        if name not in allowed:
            dotted = f"{key}.{name}" if key else str(name)
            logger.warning(f"Ignoring unknown configuration key: {dotted}")


def _mapping(value: Any, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"decode config: '{key}' must be a mapping")
    return value


def _as_str(value: Any, key: str) -> str:
    if value is None:
        return ""
    # Unquoted numbers are common for passwords; keep their text.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise ConfigError(f"decode config: '{key}' must be a string")
    return value


def _as_int(value: Any, key: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"decode config: '{key}' must be an integer")
    return value


def _as_port(value: Any, key: str) -> int:
    port = _as_int(value, key)
    if not 0 <= port <= MAX_PORT:
        raise ConfigError(
            f"decode config: '{key}' must be between 0 and {MAX_PORT}, got {port}"
        )
    return port


def _as_optional_bool(value: Any, key: str) -> bool | None:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"decode config: '{key}' must be a boolean")
    return value


def _as_duration(value: Any, key: str) -> timedelta:
    if value is None:
        return timedelta(0)
    try:
        return parse_duration(value)
    except ValueError as e:
        raise ConfigError(f"decode config: '{key}': {e}") from e
