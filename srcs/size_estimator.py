"""
Size estimator.

Guesses the byte size of an allocation from its call arguments. These are
heuristics for visualisation, not what a real allocator would hand out.
"""

import math
import re
from typing import Union

from config import C_FAMILY, LANGUAGE_SIZES, TYPE_SIZES
from type_defs import LanguageTag

CALLOC_ARGS = re.compile(r"(\d+)\s*,\s*(\d+)")
COUNT_TIMES_SIZEOF = re.compile(r"(\d+)\s*\*\s*sizeof\s*\([^)]+\)")
SIZEOF_TIMES_COUNT = re.compile(r"sizeof\s*\([^)]+\)\s*\*\s*(\d+)")
SIZEOF_ARG = re.compile(r"sizeof\s*\(([^)]+)\)")
INTEGER = re.compile(r"\d+")
LEADING_INTEGER = re.compile(r"\s*(\d+)")


def estimate_size(function: str, raw_args: Union[str, list], language: LanguageTag) -> int:
    """Estimate the size in bytes of one allocation.

    Args:
        function: Allocation function or operator (``malloc``, ``new[]``, ...).
        raw_args: Argument text for line-extracted events, or a list of
                  evaluated hints for tree-extracted events.
        language: Language of the analysed source.

    Returns:
        Estimated size in bytes, at least 1.

    Example:
        >>> estimate_size("calloc", "10, 4", LanguageTag.C)
        40
    """
    if language in C_FAMILY:
        args = raw_args if isinstance(raw_args, str) else ", ".join(str(a) for a in raw_args)
        if function in ("new", "new[]"):
            return _estimate_new(function, args)
        return _estimate_c_call(function, args)

    unit = LANGUAGE_SIZES.get(language, TYPE_SIZES["DEFAULT"])
    return _size_hint(raw_args) * unit


def _estimate_c_call(function: str, args: str) -> int:
    """Apply the malloc-family rules in priority order."""
    if function == "calloc":
        match = CALLOC_ARGS.search(args)
        if match:
            return (int(match.group(1)) or 1) * (int(match.group(2)) or 1)

    match = COUNT_TIMES_SIZEOF.search(args) or SIZEOF_TIMES_COUNT.search(args)
    if match:
        count = int(match.group(1)) or 1
        return count * type_size(args)

    match = INTEGER.search(args)
    if match:
        return int(match.group(0)) or 1

    return 1


def _estimate_new(function: str, args: str) -> int:
    """``new`` is one default scalar, ``new[]`` is count scalars."""
    if function == "new":
        return TYPE_SIZES["DEFAULT"]

    match = INTEGER.search(args)
    count = int(match.group(0)) if match else 1
    return (count or 1) * TYPE_SIZES["DEFAULT"]


def type_size(args: str) -> int:
    """Resolve the size of the type named in a ``sizeof(...)`` expression.

    Falls back to keywords anywhere in the arguments, then to the default.
    """
    match = SIZEOF_ARG.search(args)
    text = match.group(1).strip() if match else args

    if "char" in text:
        return TYPE_SIZES["CHAR"]
    if "int" in text or "float" in text:
        return TYPE_SIZES["INT"]
    if "double" in text or "long long" in text:
        return TYPE_SIZES["DOUBLE"]

    return TYPE_SIZES["DEFAULT"]


def _size_hint(raw_args: Union[str, list]) -> int:
    """First element/size hint of a payload, 1 when absent or zero."""
    if isinstance(raw_args, list):
        first = raw_args[0] if raw_args else None
        if isinstance(first, bool) or not isinstance(first, (int, float)):
            return 1
        if isinstance(first, float) and not math.isfinite(first):
            return 1
        return int(first) if first >= 1 else 1

    if isinstance(raw_args, str):
        match = LEADING_INTEGER.match(raw_args)
        if match:
            return int(match.group(1)) or 1

    return 1
