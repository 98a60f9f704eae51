"""Test package structure and imports."""

import sys
from pathlib import Path


def test_package_import():
    """Test that the proxypool package can be imported."""
    import proxypool

    assert proxypool.__version__ == "0.1.0"
    assert callable(proxypool.load_config)
    assert issubclass(proxypool.ConfigError, ValueError)


def test_cli_module_import():
    """Test that proxypool.cli can be imported."""
    import proxypool.cli

    assert callable(proxypool.cli.main)


def test_main_module_calls_cli():
    """Test that __main__ module calls cli.main()."""
    import proxypool.__main__

    content = Path(proxypool.__main__.__file__).read_text()

    assert "from proxypool.cli import main" in content
    assert "main()" in content


def test_python_version_compatibility():
    """Test that package works with supported Python versions."""
    assert sys.version_info >= (3, 11), "Package requires Python 3.11+"
