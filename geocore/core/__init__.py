"""
Core layer - Session state, HTTP client and query-string helpers.

This layer provides:
- Session and response envelope dataclasses
- Async HTTP client with token auth and envelope unwrapping
- Query-string serialization shared by builders and facades
"""

from geocore.core.client import (
    APIClient,
    GeocoreError,
    HttpError,
    MalformedEnvelope,
    MissingParameter,
    ServiceError,
    TransportError,
    ValidationError,
    unwrap_envelope,
)
from geocore.core.types import Envelope, ItemRecord, Session
from geocore.core.utils import build_query_string, merge_options

__all__ = [
    "APIClient",
    "Envelope",
    "GeocoreError",
    "HttpError",
    "ItemRecord",
    "MalformedEnvelope",
    "MissingParameter",
    "ServiceError",
    "Session",
    "TransportError",
    "ValidationError",
    "build_query_string",
    "merge_options",
    "unwrap_envelope",
]
