"""
Geocore SDK - Python client for the Geocore geospatial API.

Layers:
- core: Session state, async HTTP client and envelope unwrapping
- query: Chainable query builders per entity type
- sdk: High-level GeocoreClient with one-shot resource operations
"""

from geocore.core.client import (
    GeocoreError,
    HttpError,
    MalformedEnvelope,
    MissingParameter,
    ServiceError,
    TransportError,
    ValidationError,
)
from geocore.query import (
    EventsQuery,
    GroupsQuery,
    ItemsQuery,
    ObjectsQuery,
    Operation,
    PlacesQuery,
    Query,
    TaggableQuery,
    TagsQuery,
)
from geocore.sdk import GeocoreClient

__version__ = "0.3.0"
__all__ = [
    "EventsQuery",
    "GeocoreClient",
    "GeocoreError",
    "GroupsQuery",
    "HttpError",
    "ItemsQuery",
    "MalformedEnvelope",
    "MissingParameter",
    "ObjectsQuery",
    "Operation",
    "PlacesQuery",
    "Query",
    "ServiceError",
    "TaggableQuery",
    "TagsQuery",
    "TransportError",
    "ValidationError",
]
