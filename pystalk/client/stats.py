"""Decoder for the YAML subset found in stats and list replies."""

import re
from typing import Dict, List, Optional, Union


Scalar = Union[int, float, str]
StatMapping = Dict[str, Union[Scalar, List[str]]]

_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")
_FLOAT_PREFIX = "rusage-"


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_scalar(value: str, key: str = "") -> Scalar:
    """Convert a scalar field: integer, else string.

    Only the ``rusage-*`` timings are read as floats, so values such as
    a version ``1.10`` keep their text.
    """
    if _INT_RE.match(value):
        return int(value)
    if key.startswith(_FLOAT_PREFIX) and _FLOAT_RE.match(value):
        return float(value)
    return unquote(value)


def parse_yaml(text: str) -> Union[StatMapping, List[str]]:
    """Decode a stats or list block.

    The broker emits flat mappings::

        ---
        id: 1
        tube: default

    and top-level sequences::

        ---
        - default
        - emails

    A key with no value followed by ``- item`` lines becomes a list.
    Nothing deeper is supported.
    """
    mapping: StatMapping = {}
    items: List[str] = []
    open_key: Optional[str] = None

    for raw in text.splitlines():
        line = raw.rstrip()
        if not line or line == "---":
            continue

        stripped = line.lstrip()
        if stripped == "-" or stripped.startswith("- "):
            item = unquote(stripped[2:].strip())
            if open_key is not None:
                mapping[open_key].append(item)
            elif mapping:
                raise ValueError(f"List item outside of a list field: {line!r}")
            else:
                items.append(item)
            continue

        if line != stripped:
            raise ValueError(f"Nested values are not supported: {line!r}")
        if items:
            raise ValueError(f"Mapping entry after list items: {line!r}")

        key, sep, value = line.partition(":")
        if not sep or not key:
            raise ValueError(f"Malformed stats line: {line!r}")
        value = value.strip()
        if value:
            mapping[key] = parse_scalar(value, key)
            open_key = None
        else:
            mapping[key] = []
            open_key = key

    if items:
        return items
    return mapping
