"""
Pipeline - Result Fetcher

Executes a composed query and runs the spell-correction retries on empty results.
"""

import logging
from typing import Optional
from dataclasses import dataclass

from catalog_search.backend.base_client import BaseBackendClient
from catalog_search.backend.query import StructuredQuery
from catalog_search.backend.result import ResultSet
from catalog_search.pipeline.spell_correction import (
    Correction,
    CorrectionState,
    correction_for,
    retry_query,
    transition,
)

logger = logging.getLogger(__name__)


@dataclass
class FetchOutcome:
    """Result to present plus the correction that produced it, if any."""
    result: ResultSet
    correction: Optional[Correction] = None
    executions: int = 1


class ResultFetcher:
    """Runs a query with at most two spell-correction retries."""

    def __init__(self, minimum_match: str):
        self.minimum_match = minimum_match

    async def fetch(self, client: BaseBackendClient, query: StructuredQuery) -> FetchOutcome:
        """
        Execute ``query`` and retry with the backend's suggestion when empty.

        Facet-only queries are never retried. The caller's query is not
        modified by retries.

        Args:
            client: Backend client for the request's locale
            query: Fully composed query

        Returns:
            FetchOutcome with the original or corrected result
        """
        original = await client.execute(query)
        outcome = FetchOutcome(result=original)

        if not query.fetches_rows:
            return outcome

        suggestion = original.spelling_suggestion
        state = transition(
            CorrectionState.INITIAL, original.is_empty, query.query, suggestion
        )

        while state is not CorrectionState.DONE:
            attempt = retry_query(query, state, suggestion, self.minimum_match)
            logger.debug(f"Empty search for '{query.query}', retrying as {state.value} with '{attempt.query}'")
            result = await client.execute(attempt)
            outcome.executions += 1

            if not result.is_empty:
                outcome.result = result
                outcome.correction = correction_for(state, query.query, suggestion)
                break
            state = transition(state, True, query.query, suggestion)

        return outcome
