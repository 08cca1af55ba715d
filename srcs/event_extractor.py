"""
Event extractor.

Chooses the extraction strategy for a language: the expression-tree
walker when one is registered for it, the line patterns otherwise or
whenever the tree walker fails.
"""

import logging
from typing import Callable

from pattern_extractor import extract_pattern_events
from tree_extractors import extract_javascript_events, extract_python_events
from type_defs import LanguageTag, Event

log = logging.getLogger(__name__)

TREE_STRATEGIES: dict[LanguageTag, Callable[[str], list[Event]]] = {
    LanguageTag.JAVASCRIPT: extract_javascript_events,
    LanguageTag.PYTHON: extract_python_events,
}


def extract_events(code: str, language: LanguageTag) -> list[Event]:
    """Turn normalized source into an ordered list of events.

    Never raises: a failing tree walker falls back to the line patterns,
    and a failing pattern scan yields no events.

    Args:
        code: Comment-free source text.
        language: Language of the source.

    Returns:
        Allocation and deallocation events in source order.
    """
    strategy = TREE_STRATEGIES.get(language)

    if strategy is not None:
        try:
            return strategy(code)
        except Exception as e:
            log.warning("Tree extraction failed for %s, using line patterns: %s",
                        language.value, e)

    try:
        return extract_pattern_events(code, language)
    except Exception:
        log.exception("Pattern extraction failed for %s, no events extracted",
                      language.value)
        return []
