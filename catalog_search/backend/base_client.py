"""
Backend - Base Client

Abstract base class for search backend clients.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel

from catalog_search.backend.query import StructuredQuery
from catalog_search.backend.result import ResultSet


class AnalysisRequest(BaseModel):
    """Field analysis request."""
    field_name: Optional[str] = None
    field_type: Optional[str] = None
    field_value: str
    query: Optional[str] = None
    show_match: bool = False


class BaseBackendClient(ABC):
    """Base class for search backend client implementations."""

    collection: str = ""

    @abstractmethod
    async def execute(self, query: StructuredQuery) -> ResultSet:
        """
        Execute a query against the catalog collection.

        Args:
            query: Composed structured query

        Returns:
            ResultSet snapshot of the backend response

        Raises:
            SearchExecutionError: on transport or protocol failure
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the collection answers."""
        pass

    @abstractmethod
    async def commit(self) -> Dict[str, Any]:
        """Commit pending updates."""
        pass

    @abstractmethod
    async def rollback(self) -> Dict[str, Any]:
        """Roll back uncommitted updates."""
        pass

    @abstractmethod
    async def delete_by_query(self, query: str) -> Dict[str, Any]:
        """Delete every document matching ``query``."""
        pass

    @abstractmethod
    async def analyze(self, request: AnalysisRequest) -> Dict[str, Any]:
        """
        Run field analysis.

        Raises:
            AnalysisError: when the backend cannot analyze the request
        """
        pass

    async def close(self) -> None:
        """Release transport resources."""
        return None
