"""Search client for the product catalog.

Thin wrapper over the ``_search`` endpoint: keyword product lookups and a
terms aggregation over review text. Skills use it; the sequencer does not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from stepflow.config import SearchConfig

logger = logging.getLogger(__name__)

_KEYWORD_FIELD = "Reviews.Body"
_KEYWORD_BUCKETS = 2500
_KEYWORD_MIN_DOCS = 3


class SearchError(RuntimeError):
    """Search request failed or returned an unexpected payload."""


@dataclass
class Product:
    id: str
    name: str
    price: int  # minor units (cents)


@dataclass
class Bucket:
    key: str
    doc_count: int


class SearchClient:
    """Blocking client for one products index."""

    def __init__(self, config: SearchConfig, transport: httpx.BaseTransport | None = None) -> None:
        if not config.domain:
            raise ValueError("SearchClient needs a search domain (ELASTICSEARCH_DOMAIN)")
        self.config = config
        auth = (config.username, config.password) if config.username else None
        self._http = httpx.Client(
            base_url=config.domain,
            auth=auth,
            timeout=config.timeout,
            transport=transport,
        )

    def __enter__(self) -> SearchClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ── Queries ──────────────────────────────────────────────

    def find_products(self, query: str, type: str = "", count: int = 10) -> list[Product]:
        """Full-text match of ``query`` across all product fields."""
        body = {
            "size": count,
            "query": self._scoped({"multi_match": {"query": query, "fields": ["*"]}}, type),
        }
        data = self._search(body)
        try:
            hits = data["hits"]["hits"]
            return [
                Product(
                    id=hit["_id"],
                    name=hit["_source"].get("Name", ""),
                    price=int(hit["_source"].get("Price", 0)),
                )
                for hit in hits
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise SearchError(f"Malformed product hits: {e}") from e

    def find_product_keywords(self, type: str = "") -> list[Bucket]:
        """Most frequent review terms, as (term, document count) buckets."""
        body: dict[str, Any] = {
            "size": 0,
            "aggs": {
                "keywords": {
                    "terms": {
                        "field": _KEYWORD_FIELD,
                        "size": _KEYWORD_BUCKETS,
                        "min_doc_count": _KEYWORD_MIN_DOCS,
                    }
                }
            },
        }
        if type:
            body["query"] = self._scoped({"match_all": {}}, type)
        data = self._search(body)
        try:
            buckets = data["aggregations"]["keywords"]["buckets"]
            return [Bucket(key=str(b["key"]), doc_count=int(b["doc_count"])) for b in buckets]
        except (KeyError, TypeError, ValueError) as e:
            raise SearchError(f"Malformed keyword aggregation: {e}") from e

    # ── Internals ────────────────────────────────────────────

    @staticmethod
    def _scoped(query: dict, type: str) -> dict:
        """Restrict a query to one product type, if given."""
        if not type:
            return query
        return {"bool": {"must": query, "filter": [{"term": {"type": type}}]}}

    def _search(self, body: dict) -> dict:
        path = f"/{self.config.index}/_search"
        try:
            resp = self._http.post(path, json=body)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            logger.error("Search request to %s failed: %s", path, e)
            raise SearchError(str(e)) from e
        except ValueError as e:
            raise SearchError(f"Invalid JSON from search: {e}") from e
