"""
Core types for the Geocore API.

These dataclasses hold session state and the response envelope every
Geocore endpoint wraps its payload in. Domain entities themselves stay
plain JSON (dicts and lists).
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

# =============================================================================
# Session
# =============================================================================


@dataclass
class Session:
    """Connection and authentication state shared by every request of a client."""

    base_url: str | None = None
    project_id: str | None = None
    access_token: str | None = None

    def configure(self, base_url: str | None = None, project_id: str | None = None) -> "Session":
        """
        Set the base URL and project ID.

        Empty or missing values keep whatever was configured before.

        Args:
            base_url: Geocore service endpoint base URL
            project_id: Geocore project ID

        Returns:
            This session

        """
        self.base_url = base_url or self.base_url
        self.project_id = project_id or self.project_id
        return self

    def deauthenticate(self) -> None:
        """Forget the access token."""
        self.access_token = None

    def is_authenticated(self) -> str | bool:
        """Return the access token if one is held, else False."""
        if not self.access_token:
            return False
        return self.access_token


# =============================================================================
# Response Envelope
# =============================================================================


ENVELOPE_SUCCESS = "success"
ENVELOPE_ERROR = "error"

_MISSING = object()


@dataclass
class Envelope:
    """The uniform wrapper around every Geocore response body."""

    status: str | None
    result: Any = None
    code: Any = None
    message: Any = None
    has_result: bool = False

    @property
    def is_success(self) -> bool:
        """A success envelope must carry a result."""
        return self.status == ENVELOPE_SUCCESS and self.has_result

    @property
    def is_error(self) -> bool:
        return self.status == ENVELOPE_ERROR

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Envelope":
        """Create from a decoded response body."""
        result = data.get("result", _MISSING)
        return cls(
            status=data.get("status"),
            result=None if result is _MISSING else result,
            code=data.get("code"),
            message=data.get("message"),
            has_result=result is not _MISSING,
        )


# =============================================================================
# Entity Types
# =============================================================================


class ItemRecord(dict):
    """
    An item document with follow-up accessors bound to its ID.

    Behaves exactly like the JSON object returned by the service; ``events()``
    and ``places()`` fetch the item's related events and places.
    """

    def __init__(self, data: dict[str, Any], fetch: Callable[[str], Awaitable[Any]]):
        super().__init__(data)
        self._fetch = fetch

    def events(self) -> Awaitable[Any]:
        """Fetch events related to this item."""
        return self._fetch(f"/items/{self['id']}/events")

    def places(self) -> Awaitable[Any]:
        """Fetch places related to this item."""
        return self._fetch(f"/items/{self['id']}/places")
