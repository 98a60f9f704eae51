"""Allow ``python -m proxypool``."""

from proxypool.cli import main

if __name__ == "__main__":
    main()
