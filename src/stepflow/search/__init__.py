"""Product search over an Elasticsearch-compatible HTTP API."""

from stepflow.search.client import Bucket, Product, SearchClient, SearchError

__all__ = [
    "Bucket",
    "Product",
    "SearchClient",
    "SearchError",
]
