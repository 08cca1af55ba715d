"""
Configuration for leakscope

Analysis constants (type sizes, per-language word sizes, unsafe calls)
and runtime settings read from the environment or a ``.env`` file.
"""

import os
from typing import NamedTuple

from dotenv import load_dotenv

from type_defs import LanguageTag

# =============================================================================
# SIZE CONSTANTS
# =============================================================================

# Type sizes in bytes
TYPE_SIZES = {
    "CHAR": 1,
    "SHORT": 2,
    "INT": 4,
    "FLOAT": 4,
    "DOUBLE": 8,
    "LONG_LONG": 8,
    "LONG_DOUBLE": 16,
    "DEFAULT": 4,
}

# Unit cost of one element per language
LANGUAGE_SIZES = {
    LanguageTag.JAVASCRIPT: 8,
    LanguageTag.PYTHON: 8,
    LanguageTag.RUST: 8,
    LanguageTag.GO: 8,
    LanguageTag.JAVA: 4,
    LanguageTag.C: 4,
    LanguageTag.CPP: 4,
    LanguageTag.GENERIC: TYPE_SIZES["DEFAULT"],
}

C_FAMILY = frozenset({LanguageTag.C, LanguageTag.CPP})

# Languages where a newline usually ends a statement
NEWLINE_TERMINATED = frozenset({LanguageTag.PYTHON, LanguageTag.GO})

# =============================================================================
# TRACKER / QUALITY SCAN CONSTANTS
# =============================================================================

# Functions whose leaked allocations get the generic cleanup advice
ENTRY_FUNCTIONS = frozenset({"main"})

# Unbounded call -> bounded counterpart
UNSAFE_CALLS = {
    "strcpy": "strncpy",
    "strcat": "strncat",
    "sprintf": "snprintf",
    "gets": "fgets",
}

# =============================================================================
# RUNTIME SETTINGS
# =============================================================================

DEFAULT_MAX_CODE_SIZE = 100000


class Settings(NamedTuple):
    """Settings resolved from the environment."""
    debug: bool
    max_code_size: int
    default_language: LanguageTag


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """Read leakscope settings, loading a ``.env`` file first if present.

    Returns:
        Settings with defaults applied for unset or invalid values.
    """
    load_dotenv()

    raw_size = os.environ.get("LEAKSCOPE_MAX_CODE_SIZE", "")
    try:
        max_code_size = int(raw_size) if raw_size.strip() else DEFAULT_MAX_CODE_SIZE
    except ValueError:
        max_code_size = DEFAULT_MAX_CODE_SIZE
    if max_code_size <= 0:
        max_code_size = DEFAULT_MAX_CODE_SIZE

    language = LanguageTag.parse(os.environ.get("LEAKSCOPE_DEFAULT_LANGUAGE", "c"))

    return Settings(
        debug=_env_flag("LEAKSCOPE_DEBUG"),
        max_code_size=max_code_size,
        default_language=language,
    )
