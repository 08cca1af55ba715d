"""
Line-level quality scan.

Flags unbounded string calls whose bounded counterpart is not used on the
same line. Stateless: it only reads the normalized source.
"""

import re

from config import UNSAFE_CALLS
from type_defs import WarningKind, WarningRecord

UNSAFE_CALL_PATTERNS = {
    name: re.compile(r"\b" + name + r"\s*\(") for name in UNSAFE_CALLS
}

UNSAFE_MESSAGES = {
    "strcpy": "strcpy() used without bounds checking. Consider using strncpy() or strcpy_s().",
    "gets": "gets() cannot limit its input. Consider using fgets().",
}


def scan_quality(code: str) -> list[WarningRecord]:
    """Scan normalized code line by line for unsafe calls.

    Args:
        code: Comment-free source text.

    Returns:
        One ``Unsafe Function`` warning per unsafe call and line, in line order.
    """
    warnings: list[WarningRecord] = []

    for line_num, line in enumerate(code.split("\n"), start=1):
        for name, pattern in UNSAFE_CALL_PATTERNS.items():
            bounded = UNSAFE_CALLS[name]
            if not pattern.search(line) or bounded in line:
                continue

            message = UNSAFE_MESSAGES.get(
                name,
                f"{name}() used without bounds checking. Consider using {bounded}().",
            )
            warnings.append({
                "type": WarningKind.UNSAFE_FUNCTION,
                "line": line_num,
                "message": message,
                "lineText": line.strip(),
            })

    return warnings
