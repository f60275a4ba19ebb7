"""
Capture Engine - harvest named variables from URLs and JSON-like values.

Both entry points write into a caller-owned store and never raise: they run
on remote, loosely-shaped data, so malformed input simply captures nothing.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, MutableMapping
from urllib.parse import parse_qsl, urlsplit
import logging

logger = logging.getLogger(__name__)

# Deeper structures are ignored rather than risking RecursionError
MAX_DEPTH = 64


@dataclass
class CaptureTarget:
    """Names to harvest and the store receiving them."""
    names: List[str]
    store: Dict[str, str] = field(default_factory=dict)
    
    def capture(self, value: Any) -> None:
        capture_from_object(value, self.names, self.store)
    
    def capture_url(self, url: str) -> None:
        capture_from_url(url, self.names, self.store)


def capture_from_url(
    url: str,
    names: Iterable[str],
    store: MutableMapping[str, str],
) -> None:
    """
    Copy non-empty query parameters named in ``names`` into ``store``.
    
    Strings that are not absolute URLs are ignored.
    
    Example:
        >>> store = {}
        >>> capture_from_url("https://x/cb?state=abc&code=&z=1", ["state", "code", "z"], store)
        >>> store
        {'state': 'abc', 'z': '1'}
    """
    if not isinstance(url, str):
        return
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return
    if not parts.scheme or not parts.query:
        return
    
    params: Dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        # First occurrence wins, like URLSearchParams.get()
        params.setdefault(key, value)
    
    for name in names:
        value = params.get(name)
        if value:
            store[name] = value
            logger.debug(f"Captured {name} from URL")


def capture_from_object(
    value: Any,
    names: Iterable[str],
    store: MutableMapping[str, str],
) -> None:
    """
    Walk ``value`` and capture matching keys and URL query parameters.
    
    Dict entries whose key is a requested name and whose value is a string
    are captured directly; every string leaf is also tried as a URL.
    Dicts are walked in insertion order and lists by index, so a later
    match for the same name overwrites an earlier one.
    """
    wanted = list(names)
    if not wanted:
        return
    _walk(value, wanted, store, 0)


def _walk(value: Any, names: List[str], store: MutableMapping[str, str], depth: int) -> None:
    if depth > MAX_DEPTH:
        return
    if isinstance(value, str):
        capture_from_url(value, names, store)
    elif isinstance(value, dict):
        for key, item in value.items():
            if key in names and isinstance(item, str):
                store[key] = item
            _walk(item, names, store, depth + 1)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _walk(item, names, store, depth + 1)
