"""
Memory analysis entry point.

Runs the whole pipeline on one source unit:
normalize -> extract events -> track lifecycles -> quality scan -> leaks.
analyze() always hands back a report; failures become an
``Analysis Error`` warning instead of an exception.
"""

import logging
from typing import Union

from event_extractor import extract_events
from memory_tracker import LifecycleTracker
from quality_scan import scan_quality
from source_normalizer import strip_comments
from type_defs import AnalysisReport, InvalidInputError, LanguageTag, WarningKind

log = logging.getLogger(__name__)


def new_report() -> AnalysisReport:
    """Empty report with every sequence present."""
    return {
        "allocations": [],
        "frees": [],
        "leaks": [],
        "warnings": [],
        "timeline": [],
    }


def error_report(message: str) -> AnalysisReport:
    """Report carrying a single ``Analysis Error`` warning."""
    report = new_report()
    report["warnings"].append({
        "type": WarningKind.ANALYSIS_ERROR,
        "line": 0,
        "message": message,
        "lineText": "",
    })
    return report


def _validate_code(code) -> str:
    if not isinstance(code, str) or not code.strip():
        raise InvalidInputError("Invalid code input: code must be a non-empty string")
    return code


def analyze(code: str, language: Union[str, LanguageTag] = LanguageTag.C) -> AnalysisReport:
    """
    Analyze source code for leaks, suspicious releases and unsafe calls.

    Args:
        code: Source text to analyze.
        language: Language tag or name (unknown names use generic rules).

    Returns:
        Report with allocations, frees, leaks, warnings and timeline.

    Example:
        >>> report = analyze("int main() { char *p = malloc(8); }", "c")
        >>> report["leaks"][0]["size"]
        8
    """
    try:
        _validate_code(code)
        tag = LanguageTag.parse(language)

        normalized = strip_comments(code, tag)
        events = extract_events(normalized, tag)

        report = new_report()
        tracker = LifecycleTracker(tag, report)
        for event in events:
            tracker.process(event)

        report["warnings"].extend(scan_quality(normalized))
        tracker.finalize()
        report["timeline"] = tracker.timeline.points

        log.debug("Analyzed %d events: %d leaks, %d warnings",
                  len(events), len(report["leaks"]), len(report["warnings"]))
        return report

    except InvalidInputError as e:
        return error_report(str(e))

    except Exception as e:
        log.exception("Analysis failed")
        return error_report(f"Analysis encountered an error: {e}. Some results may be incomplete.")
