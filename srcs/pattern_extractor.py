"""
pattern_extractor.py

Line-oriented extraction of allocation and deallocation events.
Used for C-family sources and as the fallback for every other language.

Source is cut into logical statements (physical lines joined until a
statement terminator is seen) while tracking brace depth, the enclosing
function and loop nesting. Each statement is then matched against the
allocation and deallocation patterns.
"""

import re
from typing import Iterator, NamedTuple, Optional

from config import NEWLINE_TERMINATED
from type_defs import LanguageTag, Event, AllocationEvent, DeallocationEvent

# =============================================================================
# PATTERNS
# =============================================================================

# Variable or member path: ptr, node->next, obj.buffer
VAR = r"[A-Za-z_]\w*(?:(?:->|\.)[A-Za-z_]\w*)*"

# A real assignment, not ``==``
ASSIGN = r"\s*=(?!=)\s*"

TYPED_DECL = r"\b[A-Za-z_][\w:]*(?:\s*<[^;=]*?>)?\s*\*+\s*(?P<var>" + VAR + r")" + ASSIGN
CAST_ASSIGN = r"(?P<var>" + VAR + r")" + ASSIGN + r"\([^()]*\)\s*"
BARE_ASSIGN = r"(?P<var>" + VAR + r")" + ASSIGN

ALLOC_CALL = r"(?P<func>malloc|calloc|realloc)\s*(?P<open>\()"
NEW_EXPR = r"(?P<func>new)\s+[\w:]+(?:\s*<[^;=]*?>)?\s*\**\s*(?P<open>[\(\[])?"

# Checked in this order, first match wins
ALLOCATION_PATTERNS = [
    re.compile(TYPED_DECL + ALLOC_CALL),
    re.compile(CAST_ASSIGN + ALLOC_CALL),
    re.compile(BARE_ASSIGN + ALLOC_CALL),
    re.compile(TYPED_DECL + NEW_EXPR),
    re.compile(CAST_ASSIGN + NEW_EXPR),
    re.compile(BARE_ASSIGN + NEW_EXPR),
]

DEALLOCATION_PATTERNS = [
    ("free", re.compile(r"\bfree\s*\(\s*(?P<var>" + VAR + r")\s*\)")),
    ("delete[]", re.compile(r"\bdelete\s*\[\s*\]\s*\(?\s*(?P<var>" + VAR + r")")),
    ("delete", re.compile(r"\bdelete(?:\s*\(\s*|\s+)(?P<var>" + VAR + r")")),
]

FUNCTION_NAME = re.compile(r"\b([A-Za-z_]\w*)\s*\(")
LOOP_KEYWORD = re.compile(r"^(?:\}\s*)?(?:(for|while)\s*(?=\()|(do)\b)")

# Brace-less headers end their own statement: ``if (x)``, ``else``, ``do``
CONTROL_HEADER = re.compile(
    r"^(?:\}\s*)?(?:(?:else\s+)?if|for|while|switch)\s*\(|^(?:\}\s*)?(?:else|do)$")

CONTROL_KEYWORDS = frozenset({"if", "while", "for", "switch", "return", "sizeof", "catch"})

# ``func (r *T) Name(...)``: the first parenthesis is a Go method receiver
RECEIVER_KEYWORDS = frozenset({"func"})


class Statement(NamedTuple):
    """One logical statement with the context it appeared in."""
    text: str
    line: int
    line_text: str
    function: Optional[str]
    in_loop: bool


# =============================================================================
# HELPERS
# =============================================================================

def matching_close(text: str, open_index: int) -> int:
    """Index of the bracket closing the one at ``open_index``, or -1."""
    opener = text[open_index]
    closer = ")" if opener == "(" else "]"
    depth = 0

    for i in range(open_index, len(text)):
        if text[i] == opener:
            depth += 1
        elif text[i] == closer:
            depth -= 1
            if depth == 0:
                return i

    return -1


def balanced_span(text: str, open_index: int) -> str:
    """Return the text between the bracket at ``open_index`` and its match.

    If the bracket is never closed, everything after it is returned.
    """
    close_index = matching_close(text, open_index)
    if close_index < 0:
        return text[open_index + 1:].strip()
    return text[open_index + 1:close_index].strip()


def _brackets_balanced(text: str) -> bool:
    return (text.count("(") <= text.count(")")
            and text.count("[") <= text.count("]"))


def split_top_level(text: str) -> list[str]:
    """Cut ``text`` after every ``;`` outside brackets and string literals.

    ``free(a); free(b);`` gives two pieces, a ``for (...;...;...)`` header
    stays whole. Braces do not nest here, so ``{ free(a); }`` is split too.
    """
    pieces = []
    depth = 0
    quote = None
    start = 0
    index = 0

    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
        elif char in "\"'`":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth = max(0, depth - 1)
        elif char == ";" and depth == 0:
            pieces.append(text[start:index + 1].strip())
            start = index + 1
        index += 1

    pieces.append(text[start:].strip())
    return [piece for piece in pieces if piece]


def _function_header(trimmed: str) -> Optional[str]:
    """Name of the function a top-level line defines, if any."""
    if trimmed.endswith(";"):
        return None
    # ``char *p = malloc(`` is an assignment, not a header
    if "=" in trimmed.split("(", 1)[0]:
        return None

    for match in FUNCTION_NAME.finditer(trimmed):
        name = match.group(1)
        if name in CONTROL_KEYWORDS:
            return None
        if name in RECEIVER_KEYWORDS:
            continue
        return name

    return None


def _loop_header(trimmed: str) -> Optional[str]:
    """Classify a loop header line.

    Returns:
        ``"braced"`` when the body opens on this line, ``"inline"`` when a
        single-statement body follows the header on this line,
        ``"pending"`` when the body is the next statement, or None.
    """
    match = LOOP_KEYWORD.match(trimmed)
    if not match:
        return None

    if match.group(2):                          # do
        rest = trimmed[match.end():].strip()
    else:
        if trimmed.startswith("}") and match.group(1) == "while":
            return None                         # tail of do { } while (...);
        close_index = matching_close(trimmed, trimmed.index("(", match.end()))
        if close_index < 0:
            return "pending"                    # header continues below
        rest = trimmed[close_index + 1:].strip()

    if rest.startswith("{"):
        return "braced"
    if rest == ";":
        return None                             # empty body
    if rest:
        return "inline"
    return "pending"


# =============================================================================
# STATEMENT SEGMENTATION
# =============================================================================

def iter_statements(code: str, language: LanguageTag) -> Iterator[Statement]:
    """Split normalized code into logical statements.

    Physical lines are joined until one ends with ``;``, ``{`` or ``}``
    (a trailing ``\\`` always continues). A brace-less control header
    with closed brackets ends its own statement, and for
    newline-terminated languages so does any line with balanced brackets.
    The reported line is the first physical line of the statement. Several
    ``;``-terminated statements on one line are yielded one by one, all
    with that line.

    Args:
        code: Comment-free source.
        language: Language of the source.

    Yields:
        Statements in source order.
    """
    newline_terminated = language in NEWLINE_TERMINATED

    depth = 0
    function: Optional[str] = None
    loop_depths: list[int] = []     # brace depth at each open loop header
    pending_loop = False            # brace-less loop waiting for its body

    buffer: list[str] = []
    start_line = 0
    start_text = ""

    for line_num, raw_line in enumerate(code.split("\n"), start=1):
        trimmed = raw_line.strip()

        # Blank lines and preprocessor directives never take part
        if not trimmed or (trimmed.startswith("#") and not buffer):
            continue

        depth_before = depth

        if depth == 0:
            header = _function_header(trimmed)
            if header:
                function = header

        # A pending loop body that opens with a brace becomes a braced loop
        consumed_pending = False
        if pending_loop and not buffer:
            if trimmed.startswith("{"):
                loop_depths.append(depth_before)
                pending_loop = False
            else:
                consumed_pending = True

        loop_kind = _loop_header(trimmed)
        if loop_kind == "braced":
            loop_depths.append(depth_before)
        elif loop_kind == "pending":
            pending_loop = True
            consumed_pending = False

        in_loop = bool(loop_depths) or pending_loop or loop_kind is not None

        continues = trimmed.endswith("\\") or not trimmed.endswith((";", "{", "}"))
        if continues and not trimmed.endswith("\\"):
            joined = " ".join(buffer + [trimmed])
            if _brackets_balanced(joined) and (newline_terminated or CONTROL_HEADER.match(joined)):
                continues = False

        if continues:
            if not buffer:
                start_line = line_num
                start_text = trimmed
            buffer.append(trimmed.rstrip("\\").strip())
        else:
            if buffer:
                text, line, line_text = " ".join(buffer + [trimmed]), start_line, start_text
                buffer = []
            else:
                text, line, line_text = trimmed, line_num, trimmed

            for piece in split_top_level(text):
                yield Statement(piece, line, line_text, function, in_loop)

            if consumed_pending:
                pending_loop = False

        # Scope bookkeeping happens after the statement has been emitted
        depth = max(0, depth + trimmed.count("{") - trimmed.count("}"))

        while loop_depths and depth <= loop_depths[-1]:
            loop_depths.pop()

        if depth == 0 and depth_before > 0:
            function = None

    if buffer:
        for piece in split_top_level(" ".join(buffer)):
            yield Statement(piece, start_line, start_text,
                            function, bool(loop_depths) or pending_loop)


# =============================================================================
# STATEMENT MATCHING
# =============================================================================

def match_allocation(statement: Statement) -> Optional[AllocationEvent]:
    """Match the allocation patterns against one statement."""
    for pattern in ALLOCATION_PATTERNS:
        match = pattern.search(statement.text)
        if not match:
            continue

        function = match.group("func")
        open_index = match.start("open") if match.group("open") else -1
        args = balanced_span(statement.text, open_index) if open_index >= 0 else ""

        if function == "new" and match.group("open") == "[":
            function = "new[]"

        return {
            "kind": "allocation",
            "var": match.group("var"),
            "line": statement.line,
            "function": function,
            "raw_args": args,
            "enclosing_function": statement.function,
            "in_loop": statement.in_loop,
            "line_text": statement.line_text,
        }

    return None


def match_deallocation(statement: Statement) -> Optional[DeallocationEvent]:
    """Match the deallocation patterns against one statement."""
    for function, pattern in DEALLOCATION_PATTERNS:
        match = pattern.search(statement.text)
        if match:
            return {
                "kind": "deallocation",
                "var": match.group("var"),
                "line": statement.line,
                "function": function,
                "is_array": function == "delete[]",
                "line_text": statement.line_text,
            }

    return None


def extract_pattern_events(code: str, language: LanguageTag) -> list[Event]:
    """Extract events from normalized code statement by statement.

    An allocation found in a statement is emitted before a deallocation
    found in the same statement.
    """
    events: list[Event] = []

    for statement in iter_statements(code, language):
        allocation = match_allocation(statement)
        if allocation:
            events.append(allocation)

        deallocation = match_deallocation(statement)
        if deallocation:
            events.append(deallocation)

    return events
