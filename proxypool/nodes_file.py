"""Reader for flat node list files.

A node file holds one upstream proxy URI per line. Blank lines and lines
whose first non-whitespace character is ``#`` are ignored. Lines are not
validated here; a malformed URI is carried through verbatim and only fails
once something tries to connect with it.
"""

from __future__ import annotations

from pathlib import Path

from proxypool.config import NodeConfig
from proxypool.log_config import get_logger

logger = get_logger(__name__)


def load_nodes_from_file(path: str | Path) -> list[NodeConfig]:
    """Read node descriptors from a node list file.

    Only ``uri`` is populated on the returned nodes; names and ports are
    derived later during normalization.

    Args:
        path: Path to a UTF-8 text file with one URI per line.

    Returns:
        Nodes in file order.

    Raises:
        OSError: If the file cannot be opened or read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    nodes: list[NodeConfig] = []
    with open(path, "r", encoding="utf-8", newline="") as f:
        text = f.read()

    # Only "\n" ends a line; a stray "\r" stays inside it until stripped.
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        nodes.append(NodeConfig(uri=line))

    logger.debug(f"Read {len(nodes)} nodes from {path}")
    return nodes
