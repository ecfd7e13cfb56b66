from .elasticsearch_client import ElasticsearchClient, ElasticsearchError

__all__ = [
    "ElasticsearchClient",
    "ElasticsearchError",
]
