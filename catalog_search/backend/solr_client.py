"""
Backend - Solr Client

Catalog collection client over Solr's HTTP API.
"""

import logging
from typing import Optional, List, Dict, Any, Tuple
import httpx

from catalog_search.backend.base_client import AnalysisRequest, BaseBackendClient
from catalog_search.backend.query import StructuredQuery
from catalog_search.backend.result import ResultSet
from catalog_search.errors import AnalysisError, SearchExecutionError

logger = logging.getLogger(__name__)


class SolrClient(BaseBackendClient):
    """Solr collection client."""

    def __init__(
        self,
        base_url: str,
        collection: str,
        timeout_ms: int = 10000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.collection = collection
        self.timeout = timeout_ms / 1000
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy load the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}/{self.collection}",
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def execute(self, query: StructuredQuery) -> ResultSet:
        """Run a select request and parse the JSON response."""
        form: Dict[str, List[str]] = {}
        for name, value in query.to_params() + [("wt", "json"), ("json.nl", "flat")]:
            form.setdefault(name, []).append(value)
        data = await self._request(
            "POST", "/select", "query", SearchExecutionError, data=form
        )
        return ResultSet.from_solr(data)

    async def ping(self) -> bool:
        data = await self._request(
            "GET", "/admin/ping", "ping", SearchExecutionError,
            params=[("wt", "json")],
        )
        return data.get("status") == "OK"

    async def commit(self) -> Dict[str, Any]:
        return await self._update({"commit": {}}, "commit")

    async def rollback(self) -> Dict[str, Any]:
        return await self._update({"rollback": {}}, "rollback")

    async def delete_by_query(self, query: str) -> Dict[str, Any]:
        return await self._update({"delete": {"query": query}}, "delete by query")

    async def analyze(self, request: AnalysisRequest) -> Dict[str, Any]:
        """Run the field analysis handler."""
        params: List[Tuple[str, str]] = [
            ("wt", "json"),
            ("analysis.fieldvalue", request.field_value),
        ]
        if request.field_name:
            params.append(("analysis.fieldname", request.field_name))
        if request.field_type:
            params.append(("analysis.fieldtype", request.field_type))
        if request.query:
            params.append(("analysis.query", request.query))
        if request.show_match:
            params.append(("analysis.showmatch", "true"))

        data = await self._request(
            "GET", "/analysis/field", "analysis", AnalysisError, params=params
        )
        return data.get("analysis", {})

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _update(self, payload: Dict[str, Any], operation: str) -> Dict[str, Any]:
        data = await self._request(
            "POST", "/update", operation, SearchExecutionError,
            params=[("wt", "json")], json=payload,
        )
        return data.get("responseHeader", {})

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        error_type: type,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Send a request, wrapping transport and decoding failures."""
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Solr {operation} failed on {self.collection}: {e}")
            raise error_type(f"Solr {operation} failed on {self.collection}") from e
        except ValueError as e:
            logger.error(f"Invalid Solr {operation} response from {self.collection}: {e}")
            raise error_type(f"Invalid Solr {operation} response from {self.collection}") from e
