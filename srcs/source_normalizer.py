"""
Source normalizer.

Removes comments before any pattern matching runs. Every removed comment
is replaced by the newlines it spanned so line numbers stay valid for the
rest of the pipeline.
"""

import io
import logging
import re
import tokenize

from type_defs import LanguageTag

log = logging.getLogger(__name__)

# Leftmost match wins, so "//" inside a block comment and "/*" inside a
# line comment are both consumed by the comment that started first.
# String and char literals are matched too and kept as they are.
COMMENT_PATTERN = re.compile(
    r'"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'"
    r"|`(?:\\.|[^`\\])*`"
    r"|//[^\n]*|/\*.*?\*/",
    re.DOTALL,
)


def _replace_comment(match: re.Match) -> str:
    text = match.group(0)
    if text[0] in "\"'`":
        return text
    return "\n" * text.count("\n")


def strip_comments(code: str, language: LanguageTag = LanguageTag.C) -> str:
    """Remove comments from source code without shifting lines.

    Args:
        code: Raw source text.
        language: Selects the comment syntax (``#`` for python,
                  ``//`` and ``/* */`` for everything else).

    Returns:
        Code with comments removed, or ``code`` unchanged if removal fails.
    """
    try:
        if language == LanguageTag.PYTHON:
            return _strip_python_comments(code)
        return COMMENT_PATTERN.sub(_replace_comment, code)
    except (TypeError, SyntaxError, tokenize.TokenError) as e:
        log.debug("Comment removal failed, keeping original text: %s", e)
        return code


def _strip_python_comments(code: str) -> str:
    """Blank out ``#`` comments using the standard tokenizer."""
    lines = code.splitlines(keepends=True)
    readline = io.StringIO(code).readline

    comments = [
        tok.start for tok in tokenize.generate_tokens(readline)
        if tok.type == tokenize.COMMENT
    ]

    for row, col in comments:
        line = lines[row - 1]
        ending = line[len(line.rstrip("\r\n")):]
        lines[row - 1] = line[:col].rstrip() + ending

    return "".join(lines)
