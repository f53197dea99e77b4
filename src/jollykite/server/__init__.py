"""Server side: scheduled ingestion and the public history endpoint.

The two services share only the durable store.
"""

from jollykite.server.ingest import IngestionService
from jollykite.server.query import QueryService, parse_query_params
from jollykite.server.storage import MeasurementStore, SqlMeasurementStore

__all__ = [
    "IngestionService",
    "MeasurementStore",
    "QueryService",
    "SqlMeasurementStore",
    "parse_query_params",
]
