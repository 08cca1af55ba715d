"""
memory_tracker.py

Lifecycle tracking of heap allocations.
Consumes the extracted events in order and keeps, per variable, a LIFO
stack of allocations that are still live. Releases pop the most recent
allocation, reassignments and end-of-analysis survivors become leaks.
"""

import logging

from config import ENTRY_FUNCTIONS
from size_estimator import estimate_size
from timeline import TimelineRecorder
from type_defs import (
    LanguageTag, WarningKind, MalformedEventError,
    Event, AllocationEvent, DeallocationEvent,
    AllocationRecord, AnalysisReport, LeakRecord,
)

log = logging.getLogger(__name__)

# =============================================================================
# FIX TEXT
# =============================================================================

def release_statement(var: str, function: str, language: LanguageTag) -> str:
    """Source construct that releases an allocation made with ``function``.

    Args:
        var: Variable holding the allocation.
        function: Allocation function or operator (``malloc``, ``new[]``, ...).
        language: Language of the analysed source.

    Returns:
        Statement to suggest in a fix (e.g. ``"free(buf);"``, ``"delete[] arr;"``).
    """
    if function == "new[]":
        return f"delete[] {var};"
    if function == "new" and language == LanguageTag.CPP:
        return f"delete {var};"
    if language == LanguageTag.JAVASCRIPT:
        return f"{var} = null;"
    if language == LanguageTag.PYTHON:
        return f"del {var}"
    return f"free({var});"


def reassignment_fix(var: str, old_line: int, new_line: int, release: str) -> str:
    return (f"Memory leak: {var} was reassigned on line {new_line} without freeing "
            f"the previous allocation on line {old_line}. "
            f"Add {release} before the reassignment.")


def residual_fix(record: AllocationRecord, release: str) -> str:
    """Remediation for an allocation still live at the end of analysis.

    Loop allocations come first, then allocations owned by a helper
    function (ownership probably moves to the caller), then the generic
    cleanup advice.
    """
    if record["inLoop"]:
        return (f"Add {release} inside the loop after use, or collect pointers "
                f"and free them after the loop.")

    function_name = record["functionName"]
    if function_name and function_name not in ENTRY_FUNCTIONS:
        return (f"Memory allocated in {function_name}() on line {record['line']}. "
                f"Ensure caller frees this memory, or free it before function return.")

    return f"Add {release} before function return or at appropriate cleanup point."


# =============================================================================
# TRACKER
# =============================================================================

class LifecycleTracker:
    """Single-use state machine turning events into a report.

    Args:
        language: Language of the analysed source.
        report: Report the tracker appends allocations, frees, leaks and
                warnings to.
    """

    def __init__(self, language: LanguageTag, report: AnalysisReport):
        self.language = language
        self.report = report
        self.timeline = TimelineRecorder()

        # var -> live allocations, oldest first. An entry exists only
        # while its list is non-empty.
        self.active: dict[str, list[AllocationRecord]] = {}
        # var -> order of its first ever allocation
        self.first_seen: dict[str, int] = {}

        self._next_id = 0
        self._finalized = False

    # -------------------------------------------------------------------------
    # Event dispatch
    # -------------------------------------------------------------------------

    def process(self, event: Event) -> None:
        """Apply one event, then snapshot the memory proxy.

        A malformed event is skipped; the timeline still gets its point.
        """
        if self._finalized:
            raise RuntimeError("tracker already finalized, create a new one per analysis")

        try:
            if not isinstance(event, dict):
                raise MalformedEventError("event is not a mapping")
            kind = event.get("kind")
            if kind == "allocation":
                self.on_allocation(event)
            elif kind == "deallocation":
                self.on_deallocation(event)
            else:
                raise MalformedEventError(f"unknown event kind {kind!r}")
        except MalformedEventError as e:
            log.warning("Skipping event at line %s: %s", _line_of(event), e)

        self.timeline.record(_line_of(event))

    def on_allocation(self, event: AllocationEvent) -> None:
        var = _require_var(event)
        line = _line_of(event)

        raw_args = event.get("raw_args", "")
        if not isinstance(raw_args, (str, list)):
            raise MalformedEventError("allocation arguments must be text or a list")

        function = event.get("function") or "unknown"
        try:
            size = estimate_size(function, raw_args, self.language)
        except (TypeError, ValueError, OverflowError) as e:
            raise MalformedEventError(f"cannot size allocation arguments: {e}") from e

        stack = self.active.get(var)
        if stack:
            # The previous pointer value was overwritten without a release
            previous = stack.pop()
            release = release_statement(var, previous["function"], self.language)
            self._leak(previous, reassignment_fix(var, previous["line"], line, release))

        record: AllocationRecord = {
            "var": var,
            "line": line,
            "function": function,
            "size": size,
            "lineText": event.get("line_text", ""),
            "inLoop": bool(event.get("in_loop", False)),
            "functionName": event.get("enclosing_function"),
            "allocId": f"{var}_line{line}_{self._next_id}",
            "language": self.language.value,
        }
        self._next_id += 1

        self.first_seen.setdefault(var, len(self.first_seen))
        self.active.setdefault(var, []).append(record)
        self.report["allocations"].append(dict(record))
        self.timeline.allocate(record["size"])

    def on_deallocation(self, event: DeallocationEvent) -> None:
        var = _require_var(event)
        line = _line_of(event)
        line_text = event.get("line_text", "")

        if var not in self.active:
            self.report["warnings"].append({
                "type": WarningKind.POTENTIAL_DOUBLE_FREE,
                "line": line,
                "message": f"free() called on {var} which may not be allocated or already freed.",
                "lineText": line_text,
            })
            return

        stack = self.active[var]
        if not stack:
            # Unreachable while empty stacks are deleted, kept for compatibility
            self.report["warnings"].append({
                "type": WarningKind.DOUBLE_FREE,
                "line": line,
                "message": f"free() called on {var} which has already been freed.",
                "lineText": line_text,
            })
            return

        freed = stack.pop()
        if not stack:
            del self.active[var]

        self.report["frees"].append({
            "var": var,
            "line": line,
            "lineText": line_text,
            "freedAllocId": freed["allocId"],
        })
        self.timeline.release(freed["size"])

    # -------------------------------------------------------------------------
    # Finalization
    # -------------------------------------------------------------------------

    def finalize(self) -> None:
        """Turn every allocation still live into a leak.

        Variables are visited in the order they were first allocated,
        allocations of one variable oldest first.
        """
        self._finalized = True

        for var in sorted(self.active, key=self.first_seen.__getitem__):
            for record in self.active[var]:
                release = release_statement(var, record["function"], self.language)
                self._leak(record, residual_fix(record, release))

        self.active.clear()

    def _leak(self, record: AllocationRecord, fix: str) -> None:
        leak: LeakRecord = {
            "var": record["var"],
            "line": record["line"],
            "function": record["function"],
            "size": record["size"],
            "inLoop": record["inLoop"],
            "fix": fix,
        }
        self.report["leaks"].append(leak)


def _require_var(event: Event) -> str:
    var = event.get("var")
    if not isinstance(var, str) or not var:
        raise MalformedEventError("event has no variable name")
    return var


def _line_of(event: Event) -> int:
    line = event.get("line") if isinstance(event, dict) else None
    if isinstance(line, int) and not isinstance(line, bool) and line > 0:
        return line
    return 0

