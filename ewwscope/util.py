"""Small string, list and parsing helpers."""

from __future__ import annotations

import math
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from itertools import dropwhile
from typing import TypeVar

T = TypeVar("T")
V = TypeVar("V")

_ENV_VAR_REFERENCE = re.compile(r"\$\{([^\s]*)\}")


def _lines(text: str) -> list[str]:
    """Split text into lines on ``\\n``, dropping a final empty line and trailing ``\\r``."""
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def list_difference(a: Sequence[T], b: Sequence[T]) -> tuple[list[T], list[T]]:
    """Return (elements of ``a`` missing from ``b``, elements of ``b`` missing from ``a``)."""
    missing = [elem for elem in a if elem not in b]
    new = [elem for elem in b if elem not in a]
    return missing, new


def is_blank(text: str) -> bool:
    """Check whether the text is empty once line breaks and surrounding whitespace are removed."""
    return not text.replace("\n", "").strip()


def trim_lines(text: str) -> str:
    """Strip surrounding whitespace from every line of the text."""
    return "\n".join(line.strip() for line in _lines(text))


def avg(values: Iterable[float]) -> float:
    """Arithmetic mean of the values; NaN when there are none."""
    total = 0.0
    count = 0
    for value in values:
        total += value
        count += 1
    if count == 0:
        return math.nan
    return total / count


def replace_env_var_references(text: str) -> str:
    """Replace ``${NAME}`` references with the environment variable's value, or with nothing."""
    return _ENV_VAR_REFERENCE.sub(lambda match: os.environ.get(match.group(1), ""), text)


def unindent(text: str) -> str:
    """Remove leading empty lines and the common leading-space indentation of all lines."""
    lines = list(dropwhile(lambda line: line == "", _lines(text)))
    indent = min((len(line) - len(line.lstrip(" ")) for line in lines), default=0)
    return "\n".join(line[indent:] for line in lines)


def parse_enum(name: str, value: str, options: Mapping[str | tuple[str, ...], V]) -> V:
    """Map a case-insensitive string onto one of a fixed set of values.

    Keys of ``options`` are either a single accepted spelling or a tuple of them.
    Raises ValueError listing the possible values when nothing matches.
    """
    lowered = value.lower()
    spellings: list[str] = []
    for key, result in options.items():
        accepted = (key,) if isinstance(key, str) else tuple(key)
        if lowered in accepted:
            return result
        spellings.extend(accepted)
    possible = "".join(f"{spelling} " for spelling in spellings)
    raise ValueError(f"Couldn't parse {name}: '{lowered}'. Possible values are {possible}")