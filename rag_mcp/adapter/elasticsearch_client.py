"""
Elasticsearch Client for the RAG MCP server

Talks to Elasticsearch over its REST API with httpx. Implements the
retrieval oracle used by the search tool, plus the index bootstrap calls
used by scripts/setup_index.py.

Ranking policy sent with every search:
- multi_match over title^2, content and tags with AUTO fuzziness
- match_phrase on title boosted x2 as a should clause
- highlights requested for title and content
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from ragkit.retriever.oracles import RetrievalHit, RetrievalResponse

logger = logging.getLogger("ragkit.adapter.elasticsearch")

INDEX_MAPPINGS = {
    "properties": {
        "id": {"type": "keyword"},
        "title": {
            "type": "text",
            "fields": {"keyword": {"type": "keyword"}},
        },
        "content": {"type": "text"},
        "tags": {"type": "keyword"},
    }
}


class ElasticsearchError(Exception):
    """Error communicating with Elasticsearch."""
    pass


def build_search_body(query: str, size: int) -> Dict[str, Any]:
    """Request body for a fielded, fuzzy full-text search"""
    return {
        "size": size,
        "query": {
            "bool": {
                "must": [
                    {
                        "multi_match": {
                            "query": query,
                            "fields": ["title^2", "content", "tags"],
                            "fuzziness": "AUTO",
                        }
                    }
                ],
                "should": [
                    {
                        "match_phrase": {
                            "title": {"query": query, "boost": 2},
                        }
                    }
                ],
            }
        },
        "highlight": {
            "fields": {"title": {}, "content": {}},
        },
    }


def parse_total(hits: Dict[str, Any]) -> Optional[int]:
    """hits.total is an int on old clusters and {"value": n, ...} on newer ones"""
    total = hits.get("total")
    if isinstance(total, int):
        return total
    if isinstance(total, dict) and isinstance(total.get("value"), int):
        return total["value"]
    return None


class ElasticsearchClient:
    """
    Async Elasticsearch REST client.

    The underlying httpx client is created lazily on first use.

    Usage:
        client = ElasticsearchClient(endpoint="http://localhost:9200", api_key="...")
        response = await client.search("vector databases", size=5)
        await client.close()
    """

    def __init__(
        self,
        endpoint: str = "http://localhost:9200",
        api_key: str = "",
        index: str = "documents",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Elasticsearch client.

        Args:
            endpoint: Cluster URL
            api_key: Encoded API key, sent as "Authorization: ApiKey <key>"
            index: Index holding the documents
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.index = index
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._http is None:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"ApiKey {self.api_key}"
            self._http = httpx.AsyncClient(
                base_url=self.endpoint,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._http

    async def close(self):
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        client = self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ElasticsearchError(f"{method} {path} failed: {e}") from e
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        reason = response.text
        try:
            error = response.json().get("error")
            if isinstance(error, dict):
                reason = error.get("reason") or error.get("type") or reason
            elif error:
                reason = str(error)
        except (ValueError, AttributeError):
            pass
        raise ElasticsearchError(f"{action} failed ({response.status_code}): {reason}")

    async def search(self, query: str, size: int) -> RetrievalResponse:
        """Run a ranked search and return hits in relevance order."""
        response = await self._request(
            "POST",
            f"/{self.index}/_search",
            json=build_search_body(query, size),
        )
        self._raise_for_status(response, "Search")

        hits = response.json().get("hits", {})
        return RetrievalResponse(
            hits=[
                RetrievalHit(
                    source=hit.get("_source", {}),
                    score=hit.get("_score"),
                    highlight=hit.get("highlight", {}),
                )
                for hit in hits.get("hits", [])
            ],
            total=parse_total(hits),
        )

    async def index_exists(self) -> bool:
        response = await self._request("HEAD", f"/{self.index}")
        if response.status_code == 404:
            return False
        self._raise_for_status(response, "Index check")
        return True

    async def ensure_index(self) -> bool:
        """Create the index with its mappings if missing. Returns True if created."""
        if await self.index_exists():
            logger.info("Index '%s' already exists", self.index)
            return False

        response = await self._request("PUT", f"/{self.index}", json={"mappings": INDEX_MAPPINGS})
        self._raise_for_status(response, "Create index")
        logger.info("Index '%s' created", self.index)
        return True

    async def bulk_index(self, documents: Iterable[Dict[str, Any]]) -> Tuple[int, List[Dict[str, Any]]]:
        """
        Bulk-load documents, using each document's id as the _id.

        Returns:
            (number of documents sent, list of per-item errors)
        """
        lines = []
        count = 0
        for doc in documents:
            lines.append(json.dumps({"index": {"_index": self.index, "_id": doc["id"]}}))
            lines.append(json.dumps(doc))
            count += 1

        if not count:
            return 0, []

        response = await self._request(
            "POST",
            "/_bulk",
            params={"refresh": "true"},
            content="\n".join(lines) + "\n",
            headers={"Content-Type": "application/x-ndjson"},
        )
        self._raise_for_status(response, "Bulk index")

        body = response.json()
        errors = []
        if body.get("errors"):
            errors = [
                item["index"]
                for item in body.get("items", [])
                if item.get("index", {}).get("error")
            ]
        return count, errors
