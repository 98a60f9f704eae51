"""Command line interface for checking proxy pool configuration."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from proxypool.config import ConfigError, ProxyPoolConfig
from proxypool.log_config import get_logger

logger = get_logger(__name__)


def _load_config(config_path: Path) -> ProxyPoolConfig:
    """Load and normalize configuration.

    Args:
        config_path: Path to YAML configuration file.

    Returns:
        Loaded and normalized configuration object.

    Raises:
        SystemExit: If configuration loading or validation fails.
    """
    try:
        config = ProxyPoolConfig.from_yaml(config_path)
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except FileNotFoundError:
        print(f"❌ Configuration file not found: {config_path}")
        print(f"💡 Create one with: cp config.example.yaml {config_path}")
        logger.error(f"Configuration file not found: {config_path}")
        sys.exit(2)  # Config problem
    except ConfigError as e:
        logger.error(f"Failed to load config: {e}")
        print(f"❌ Configuration error: {e}")
        print(f"💡 Check settings in: {config_path}")
        sys.exit(2)  # Config problem


def _apply_log_level(config: ProxyPoolConfig, verbose: bool) -> None:
    """Switch logging to the configured ``log_level`` unless -v forced DEBUG."""
    if verbose:
        return

    from proxypool.log_config import parse_log_level, set_global_log_level

    try:
        level = parse_log_level(config.log_level)
    except ValueError as e:
        logger.warning(f"{e}; keeping current log level")
        return
    set_global_log_level(level)


def check_command(args: argparse.Namespace) -> None:
    """Load the configuration and print its resolved summary.

    Args:
        args: Parsed command line arguments containing the config path.
    """
    config_path = Path(args.config)
    config_obj = _load_config(config_path)
    _apply_log_level(config_obj, getattr(args, "verbose", False))

    print(config_obj.summary())
    print(f"✅ Configuration OK: {len(config_obj.nodes)} nodes")


def nodes_command(args: argparse.Namespace) -> None:
    """Print the resolved node table.

    Args:
        args: Parsed command line arguments containing the config path.
    """
    config_path = Path(args.config)
    config_obj = _load_config(config_path)
    _apply_log_level(config_obj, getattr(args, "verbose", False))

    name_width = max(len("NAME"), *(len(n.name) for n in config_obj.nodes))
    print(f"{'NAME':<{name_width}}  {'PORT':>5}  URI")
    for node in config_obj.nodes:
        print(f"{node.name:<{name_width}}  {node.port:>5}  {node.uri}")


def main() -> None:
    """Parse command line arguments and execute the appropriate subcommand.

    Configures logging, parses CLI arguments, and dispatches to the correct
    command function (check or nodes).
    """
    parser = argparse.ArgumentParser(
        prog="proxypool",
        description="Load, normalize and inspect proxy pool server configuration.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console output (logs only)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser(
        "check", help="Validate configuration and show the resolved summary"
    )
    check_parser.add_argument(
        "config",
        nargs="?",
        default="config.yaml",
        help="Configuration file path (default: config.yaml)",
    )
    check_parser.set_defaults(func=check_command)

    nodes_parser = subparsers.add_parser(
        "nodes", help="List resolved upstream nodes with names and ports"
    )
    nodes_parser.add_argument(
        "config",
        nargs="?",
        default="config.yaml",
        help="Configuration file path (default: config.yaml)",
    )
    nodes_parser.set_defaults(func=nodes_command)

    args = parser.parse_args()

    import logging

    from proxypool.log_config import set_global_log_level

    if args.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    set_global_log_level(log_level)

    # Suppress print output if --quiet is set
    if args.quiet:
        import builtins

        builtins.print = lambda *args, **kwargs: None

    if not hasattr(args, "func") or args.func is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
