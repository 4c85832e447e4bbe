"""Query string helpers for shelf browse URLs.

Values are passed through unescaped, matching what the server produces for
call-number shelf keys and the comma-joined skip list.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


def parse_url_options(url: Optional[str]) -> Dict[str, Any]:
    """Extract options from the query portion of *url*.

    ``"true"``/``"false"`` become booleans; empty values are dropped; every
    other value is kept as a string.
    """
    result: Dict[str, Any] = {}
    if not isinstance(url, str):
        return result
    start = url.find("?")
    if start < 0:
        return result
    query = url[start + 1:].split("#", 1)[0]
    for key_value in query.split("&"):
        if not key_value:
            continue
        key, _, value = key_value.partition("=")
        if value == "true":
            result[key] = True
        elif value == "false":
            result[key] = False
        elif value:
            result[key] = value
    return result


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_render_value(v) for v in value)
    return str(value)


def make_url_parameters(options: Optional[Mapping[str, Any]]) -> str:
    """Build a query string; mappings render as ``key[sub]=value`` pairs."""
    result = []
    for key, value in (options or {}).items():
        if isinstance(value, Mapping):
            for sub_key, sub_value in value.items():
                result.append(f"{key}[{sub_key}]={_render_value(sub_value)}")
        else:
            result.append(f"{key}={_render_value(value)}")
    return "&".join(result)


def append_parameters(url: str, options: Optional[Mapping[str, Any]]) -> str:
    parameters = make_url_parameters(options)
    if not parameters:
        return url
    return url + ("&" if "?" in url else "?") + parameters


def add_parameter(url: str, name: str, value: Any) -> str:
    """Append a single query parameter to *url*."""
    return append_parameters(url, {name: value})


def url_path(url: str) -> str:
    return url.split("?", 1)[0].split("#", 1)[0]


def remove_parameters(url: str, names) -> str:
    """Drop query parameters named in *names* (nested ``key[sub]`` forms included)."""
    path, sep, query = url.partition("?")
    if not sep:
        return url
    query, hash_sep, fragment = query.partition("#")
    drop = set(names)
    kept = [
        pair for pair in query.split("&")
        if pair and pair.partition("=")[0].split("[", 1)[0] not in drop
    ]
    result = path + ("?" + "&".join(kept) if kept else "")
    return result + (hash_sep + fragment if hash_sep else "")
