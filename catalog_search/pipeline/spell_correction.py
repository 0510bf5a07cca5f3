"""
Pipeline - Spell Correction

Bounded retry protocol for empty searches, as an explicit state machine.

    INITIAL --empty, suggestion--> RETRY_MATCH_ALL --empty--> RETRY_MATCH_ANY --> DONE
    INITIAL --empty, no suggestion-------------------------> RETRY_MATCH_ANY
    any state --results (or blank query)--> DONE
"""

from enum import Enum
from typing import Optional
from dataclasses import dataclass

from catalog_search.backend.query import StructuredQuery


class CorrectionState(Enum):
    INITIAL = "initial"
    RETRY_MATCH_ALL = "retry_match_all"
    RETRY_MATCH_ANY = "retry_match_any"
    DONE = "done"


@dataclass(frozen=True)
class Correction:
    """Corrected term reported to the caller."""
    term: str
    matches_all: bool


def transition(
    state: CorrectionState,
    empty: bool,
    query_text: Optional[str],
    suggestion: Optional[str],
) -> CorrectionState:
    """
    Next state after executing the query for ``state``.

    Args:
        state: State whose query was just executed
        empty: Whether that execution returned no results
        query_text: Caller's free-text query
        suggestion: Backend spelling suggestion from the initial execution

    Returns:
        The state to execute next, or DONE
    """
    if state is CorrectionState.DONE or not empty:
        return CorrectionState.DONE

    if state is CorrectionState.INITIAL:
        if not query_text or not query_text.strip():
            return CorrectionState.DONE
        if suggestion and suggestion.strip():
            return CorrectionState.RETRY_MATCH_ALL
        return CorrectionState.RETRY_MATCH_ANY

    if state is CorrectionState.RETRY_MATCH_ALL:
        return CorrectionState.RETRY_MATCH_ANY

    return CorrectionState.DONE


def retry_term(query_text: Optional[str], suggestion: Optional[str]) -> Optional[str]:
    """Suggestion when there is one, otherwise the original text."""
    if suggestion and suggestion.strip():
        return suggestion
    return query_text


def retry_query(
    query: StructuredQuery,
    state: CorrectionState,
    suggestion: Optional[str],
    minimum_match: str,
) -> StructuredQuery:
    """
    Copy of ``query`` rewritten for a retry state; ``query`` is not modified.

    RETRY_MATCH_ALL keeps the default AND operator, RETRY_MATCH_ANY switches
    to OR with the configured minimum-match.
    """
    attempt = query.copy()
    attempt.query = retry_term(query.query, suggestion)
    if state is CorrectionState.RETRY_MATCH_ANY:
        attempt.set_param("q.op", "OR")
        attempt.set_param("mm", minimum_match)
    return attempt


def correction_for(
    state: CorrectionState,
    query_text: Optional[str],
    suggestion: Optional[str],
) -> Optional[Correction]:
    """Correction reported when the retry for ``state`` returned results."""
    if state is CorrectionState.RETRY_MATCH_ALL:
        return Correction(term=suggestion, matches_all=True)
    if state is CorrectionState.RETRY_MATCH_ANY:
        return Correction(term=retry_term(query_text, suggestion), matches_all=False)
    return None
