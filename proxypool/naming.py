"""Naming utilities for upstream nodes.

Node URIs often carry a human label in their fragment, e.g.
``socks5://203.0.113.10:1080#Tokyo%201``. The label is only used when the
whole URI passes strict structural checks: a valid scheme, an authority
with a numeric port and legal host characters, no control characters, and
well-formed percent escapes. A URI that fails any of them yields no name and
the node falls back to ``node-<index>``.

The fragment is unescaped twice: once as a URI fragment and once more as a
query component (where ``+`` reads as a space). If the second pass fails the
singly-unescaped fragment is used.
"""

from __future__ import annotations

import re
import string
from urllib.parse import unquote_to_bytes

_SCHEME_FIRST = set(string.ascii_letters)
_SCHEME_REST = set(string.ascii_letters + string.digits + "+-.")
_HOST_PUNCT = set("-._~!$&'()*+,;=:[]<>\"")
_USERINFO_CHARS = set(string.ascii_letters + string.digits + "-._:~!$&'()*+,;=%@")

_CTL_RE = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_BAD_ESCAPE_BYTES_RE = re.compile(rb"%(?![0-9A-Fa-f]{2})")
# In a host, escapes are only allowed for non-ASCII bytes, plus "%25".
_HOST_ASCII_ESCAPE_RE = re.compile(r"%(?!25)[0-7][0-9A-Fa-f]")
_PORT_RE = re.compile(r"(:[0-9]*)?")


def name_from_uri(uri: str) -> str:
    """Return the node name carried in the ``#fragment`` of ``uri``.

    Args:
        uri: Upstream proxy URI, already stripped of surrounding whitespace.

    Returns:
        Decoded fragment, or an empty string when the URI does not parse or
        has no fragment.
    """
    try:
        fragment = _parse_fragment(uri)
    except ValueError:
        return ""
    if not fragment:
        return ""

    if _BAD_ESCAPE_BYTES_RE.search(fragment):
        decoded = fragment
    else:
        decoded = unquote_to_bytes(fragment.replace(b"+", b" "))
    return decoded.decode("utf-8", errors="replace")


def _parse_fragment(uri: str) -> bytes:
    """Validate ``uri`` and return its singly-unescaped fragment.

    Raises:
        ValueError: If the URI is malformed.
    """
    rest, _, fragment = uri.partition("#")
    if _CTL_RE.search(rest):
        raise ValueError("invalid control character in URI")

    scheme, rest = _split_scheme(rest)

    if rest.endswith("?") and rest.count("?") == 1:
        rest = rest[:-1]
    else:
        rest = rest.partition("?")[0]

    if not rest.startswith("/"):
        if scheme:
            # Opaque form such as "mailto:x"; nothing more to check.
            return _unescape(fragment)
        if ":" in rest.partition("/")[0]:
            raise ValueError("first path segment cannot contain colon")

    if rest.startswith("//") and (scheme or not rest.startswith("///")):
        authority = rest[2:]
        slash = authority.find("/")
        if slash >= 0:
            authority, rest = authority[:slash], authority[slash:]
        else:
            rest = ""
        _check_authority(authority)

    _unescape(rest)
    return _unescape(fragment)


def _split_scheme(raw: str) -> tuple[str, str]:
    for idx, char in enumerate(raw):
        if char in _SCHEME_FIRST:
            continue
        if char in _SCHEME_REST:
            if idx == 0:
                return "", raw
            continue
        if char == ":":
            if idx == 0:
                raise ValueError("missing scheme")
            return raw[:idx].lower(), raw[idx + 1 :]
        return "", raw
    return "", raw


def _check_authority(authority: str) -> None:
    userinfo, at, host = authority.rpartition("@")
    if at:
        if any(char not in _USERINFO_CHARS for char in userinfo):
            raise ValueError("invalid userinfo")
        _unescape(userinfo)

    if host.startswith("["):
        close = host.rfind("]")
        if close < 0:
            raise ValueError("missing ']' in host")
        port = host[close + 1 :]
        host = host[1:close]
    else:
        colon = host.rfind(":")
        port = host[colon:] if colon >= 0 else ""
    if not _PORT_RE.fullmatch(port):
        raise ValueError(f"invalid port {port!r}")

    if _BAD_ESCAPE_RE.search(host) or _HOST_ASCII_ESCAPE_RE.search(host):
        raise ValueError("invalid escape in host")
    for char in host:
        if char.isascii() and not (
            char in string.ascii_letters
            or char in string.digits
            or char in _HOST_PUNCT
            or char == "%"
        ):
            raise ValueError(f"invalid character {char!r} in host")


def _unescape(text: str) -> bytes:
    if _BAD_ESCAPE_RE.search(text):
        raise ValueError("invalid percent escape")
    return unquote_to_bytes(text)
