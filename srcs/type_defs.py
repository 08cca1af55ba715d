"""
Type definitions for leakscope

Central repository for the TypedDict structures, enumerations and
exceptions shared across the analysis pipeline.
Ensures type consistency and provides IDE autocompletion support.
"""

from enum import Enum
from typing import TypedDict, Optional, Union


# =============================================================================
# ENUMERATIONS
# =============================================================================

class LanguageTag(str, Enum):
    """Language selecting extraction rules and size constants."""
    C = "c"
    CPP = "cpp"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    JAVA = "java"
    RUST = "rust"
    GO = "go"
    GENERIC = "generic"

    @classmethod
    def parse(cls, value: Union[str, "LanguageTag", None]) -> "LanguageTag":
        """Map a user supplied language name to a tag.

        Unknown or missing names select ``GENERIC``.
        """
        if isinstance(value, LanguageTag):
            return value
        if not isinstance(value, str):
            return cls.GENERIC

        name = value.strip().lower()
        name = _LANGUAGE_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            return cls.GENERIC


_LANGUAGE_ALIASES = {
    "c++": "cpp",
    "cxx": "cpp",
    "js": "javascript",
    "node": "javascript",
    "py": "python",
    "golang": "go",
    "rs": "rust",
}


class WarningKind(str, Enum):
    """Kind of a report warning. Values are the public ``type`` strings."""
    POTENTIAL_DOUBLE_FREE = "Potential Double Free"
    DOUBLE_FREE = "Double Free"
    UNSAFE_FUNCTION = "Unsafe Function"
    ANALYSIS_ERROR = "Analysis Error"


# =============================================================================
# EXTRACTED EVENTS
# =============================================================================

class AllocationEvent(TypedDict):
    """Heap allocation recognised in the source."""
    kind: str                    # always "allocation"
    var: str
    line: int
    function: str                # malloc, calloc, realloc, new, new[], Array, ...
    raw_args: Union[str, list]
    enclosing_function: Optional[str]
    in_loop: bool
    line_text: str


class DeallocationEvent(TypedDict):
    """Heap release recognised in the source."""
    kind: str                    # always "deallocation"
    var: str
    line: int
    function: str                # free, delete, delete[], null, del
    is_array: bool
    line_text: str


Event = Union[AllocationEvent, DeallocationEvent]


# =============================================================================
# REPORT ENTRIES (public field names)
# =============================================================================

class AllocationRecord(TypedDict):
    """Live allocation owned by the tracker, also listed in the report."""
    var: str
    line: int
    function: str
    size: int
    lineText: str
    inLoop: bool
    functionName: Optional[str]
    allocId: str
    language: str


class FreeRecord(TypedDict):
    """Release matched against an active allocation."""
    var: str
    line: int
    lineText: str
    freedAllocId: str


class LeakRecord(TypedDict):
    """Allocation that was never balanced by a release."""
    var: str
    line: int
    function: str
    size: int
    inLoop: bool
    fix: str


class WarningRecord(TypedDict):
    """Non-fatal finding attached to a source line."""
    type: WarningKind
    line: int
    message: str
    lineText: str


class TimelinePoint(TypedDict):
    """Memory proxy snapshot after one event."""
    line: int
    memory: int


class AnalysisReport(TypedDict):
    """Complete result of one analysis run."""
    allocations: list[AllocationRecord]
    frees: list[FreeRecord]
    leaks: list[LeakRecord]
    warnings: list[WarningRecord]
    timeline: list[TimelinePoint]


class ReportSummary(TypedDict):
    """Aggregated counters displayed above a report."""
    total_allocations: int
    total_frees: int
    total_leaks: int
    total_warnings: int
    allocated_bytes: int
    freed_bytes: int
    leaked_bytes: int
    critical_issues: int


# =============================================================================
# EXCEPTIONS
# =============================================================================

class InvalidInputError(Exception):
    """Raised when the code handed to analyze() is empty or not text."""

    pass


class ExtractionError(Exception):
    """Raised when an extraction strategy cannot handle the source."""

    pass


class MalformedEventError(Exception):
    """Raised when an event lacks the fields its handler needs."""

    pass
