"""
Geocore SDK - High-level client with nice ergonomics.

This layer provides one-shot convenience calls for every Geocore resource and
factories for the chainable query builders. Built on top of the core
APIClient; every call here is one HTTP request with the same path, verb and
envelope handling as the equivalent query builder.
"""

import builtins
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from geocore.core.client import APIClient
from geocore.core.types import Session
from geocore.core.utils import encode_component, joined_param, merge_options
from geocore.query import (
    EventsQuery,
    GroupsQuery,
    ItemsQuery,
    ObjectsQuery,
    PlacesQuery,
    Query,
    TagsQuery,
)

logger = logging.getLogger(__name__)

Options = Mapping[str, Any] | Query | None


def _resolve_options(options: Options) -> dict[str, Any]:
    """Accept either a plain mapping or a query builder as list options."""
    if isinstance(options, Query):
        return options.build_query_parameters()
    return dict(options or {})


class GeocoreClient:
    """
    High-level Geocore API client.

    Example:
        async with GeocoreClient("https://geocore.example/api", "PRO-TEST-1") as client:
            await client.authenticate("USE-TEST-1-ADMIN-1", "secret")

            # One-shot calls
            user = await client.users.get("USE-TEST-1-ADMIN-1")

            # Query builders
            places = await client.places.query().set_num(10).set_center(35.67, 139.72).nearest()

    """

    def __init__(
        self,
        base_url: str | None = None,
        project_id: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the Geocore client.

        Args:
            base_url: Geocore endpoint base URL (or GEOCORE_BASE_URL env var)
            project_id: Geocore project ID (or GEOCORE_PROJECT_ID env var)
            access_token: Existing access token (or GEOCORE_ACCESS_TOKEN env var)
            timeout: Request timeout in seconds (or GEOCORE_TIMEOUT env var)
            http_client: Preconfigured ``httpx.AsyncClient``

        """
        self._client = APIClient(
            base_url=base_url,
            project_id=project_id,
            access_token=access_token,
            timeout=timeout,
            http_client=http_client,
        )

        # Sub-clients for different resources
        self.users = UserOperations(self._client)
        self.objects = ObjectOperations(self._client)
        self.places = PlaceOperations(self._client)
        self.items = ItemOperations(self._client)
        self.groups = GroupOperations(self._client)
        self.authorities = AuthorityOperations(self._client)
        self.tags = TagOperations(self._client)
        self.events = EventOperations(self._client)
        self.ref = ReferenceOperations(self._client)

    @property
    def api(self) -> APIClient:
        """The underlying core client, for building queries directly."""
        return self._client

    @property
    def session(self) -> Session:
        return self._client.session

    def configure(self, base_url: str | None = None, project_id: str | None = None) -> "GeocoreClient":
        """Set base URL and project ID; empty values keep the current setting."""
        self._client.session.configure(base_url, project_id)
        return self

    async def authenticate(self, user_id: str, password: str) -> str:
        """Log in and keep the returned access token for later requests."""
        return await self._client.authenticate(user_id, password)

    def deauthenticate(self) -> None:
        self._client.deauthenticate()

    def is_authenticated(self) -> str | bool:
        return self._client.is_authenticated()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GeocoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


# =============================================================================
# User Operations
# =============================================================================


class UserOperations:
    """Operations on users."""

    def __init__(self, client: APIClient):
        self._client = client

    async def get(self, user_id: str) -> Any:
        """
        Get a user's details.

        Args:
            user_id: User ID or system ID

        Returns:
            User document

        """
        return await self._client.get(f"/users/{user_id}")

    async def update(self, user_id: str, user_update: dict[str, Any]) -> Any:
        """
        Update a user's information.

        Args:
            user_id: User ID or system ID
            user_update: Fields to change

        Returns:
            Updated user document

        """
        return await self._client.post(f"/users/{user_id}", user_update)

    async def groups(self, user_id: str) -> Any:
        """List the groups a user belongs to."""
        return await self._client.get(f"/users/{user_id}/groups")


# =============================================================================
# Object Operations
# =============================================================================


class ObjectOperations:
    """Operations on generic objects (any entity, addressed by ID)."""

    def __init__(self, client: APIClient):
        self._client = client
        self.data = ObjectDataOperations(client)
        self.bins = ObjectBinaryOperations(client)
        self.relationships = RelationshipOperations(client)
        self.custom_data = CustomDataOperations(client)

    def query(self) -> ObjectsQuery:
        return ObjectsQuery(self._client)

    async def get(self, object_id: str) -> Any:
        """Get any object by ID or system ID."""
        return await self._client.get(f"/objs/{object_id}")


class ObjectDataOperations:
    """Keyed JSON data attached to objects."""

    def __init__(self, client: APIClient):
        self._client = client

    async def list(self, object_id: str) -> Any:
        return await self._client.get(f"/objs/{object_id}/data")

    async def get(self, object_id: str, key: str) -> Any:
        return await self._client.get(f"/objs/{object_id}/data/{key}")

    async def add_or_update(self, object_id: str, key: str, data: Any) -> Any:
        """
        Add or replace the data stored under a key.

        Args:
            object_id: Object ID or system ID
            key: Data key
            data: JSON-serializable data

        Returns:
            Stored data descriptor

        """
        return await self._client.post(f"/objs/{object_id}/data/{key}", data)


class ObjectBinaryOperations:
    """Binary attachments of objects."""

    UPLOAD_FIELD = "data"

    def __init__(self, client: APIClient):
        self._client = client

    async def list(self, object_id: str) -> Any:
        """List the binary keys of an object."""
        return await self._client.get(f"/objs/{object_id}/bins")

    async def url(self, object_id: str, key: str) -> Any:
        """Get the download URL and info for a binary."""
        return await self._client.get(f"/objs/{object_id}/bins/{key}/url")

    async def upload(self, object_id: str, key: str, content: bytes, filename: str) -> Any:
        """
        Upload a binary for an object.

        Args:
            object_id: Object ID or system ID
            key: Binary key
            content: File content
            filename: File name sent with the content

        Returns:
            Binary descriptor

        """
        logger.debug(f"Uploading {filename} ({len(content)} bytes) to {object_id}/{key}")
        return await self._client.upload(f"/objs/{object_id}/bins/{key}", self.UPLOAD_FIELD, content, filename)


class RelationshipOperations:
    """Relationships between two objects."""

    def __init__(self, client: APIClient):
        self._client = client
        self.bins = RelationshipBinaryOperations(client)


class RelationshipBinaryOperations:
    def __init__(self, client: APIClient):
        self._client = client

    async def list(self, object_id1: str, object_id2: str) -> Any:
        return await self._client.get(f"/objs/relationship/{object_id1}/{object_id2}/bins")

    async def url(self, object_id1: str, object_id2: str, key: str) -> Any:
        return await self._client.get(f"/objs/relationship/{object_id1}/{object_id2}/bins/{key}/url")


class CustomDataOperations:
    """Custom key/value data of objects."""

    def __init__(self, client: APIClient):
        self._client = client

    async def update(self, object_id: str, key: str, value: Any) -> Any:
        return await self._client.put(f"/objs/{object_id}/customData/{key}/{encode_component(value)}")

    async def delete(self, object_id: str, key: str) -> Any:
        return await self._client.delete(f"/objs/{object_id}/customData/{key}")


# =============================================================================
# Tagging
# =============================================================================


class EntityTagOperations:
    """Tag membership of a single taggable entity (place, item, ...)."""

    def __init__(self, client: APIClient, base_path: str):
        self._client = client
        self._base_path = base_path

    async def list(self, entity_id: str) -> Any:
        return await self._client.get(f"{self._base_path}/{entity_id}/tags")

    async def update(self, entity_id: str, tag_names: builtins.list[str]) -> Any:
        """Attach tags by name, creating them if needed."""
        return await self._client.post(f"{self._base_path}/{entity_id}/tags{joined_param('tag_names', tag_names)}")

    async def delete(self, entity_id: str, tag_names: builtins.list[str]) -> Any:
        """Detach tags by name."""
        return await self._client.post(
            f"{self._base_path}/{entity_id}/tags{joined_param('del_tag_names', tag_names)}"
        )


# =============================================================================
# Place Operations
# =============================================================================


class PlaceOperations:
    """Operations on places."""

    def __init__(self, client: APIClient):
        self._client = client
        self.tags = EntityTagOperations(client, "/places")
        self.items = PlaceItemOperations(client)

    def query(self) -> PlacesQuery:
        return PlacesQuery(self._client)

    async def get(self, place_id: str) -> Any:
        return await self._client.get(f"/places/{place_id}")

    async def list(self, options: Options = None) -> Any:
        """
        List places.

        Args:
            options: Query parameters, or a query builder to take them from

        Returns:
            List of place documents

        """
        return await self._client.get("/places", _resolve_options(options))

    async def search_within_rect(
        self,
        latitude_top: float,
        longitude_left: float,
        latitude_bottom: float,
        longitude_right: float,
        options: Options = None,
    ) -> Any:
        """
        Search places inside a rectangle.

        Args:
            latitude_top: Northern edge (max latitude)
            longitude_left: Western edge (min longitude)
            latitude_bottom: Southern edge (min latitude)
            longitude_right: Eastern edge (max longitude)
            options: Extra query parameters or a query builder

        Returns:
            List of place documents

        """
        geometry = {
            "max_lat": latitude_top,
            "min_lon": longitude_left,
            "min_lat": latitude_bottom,
            "max_lon": longitude_right,
        }
        return await self._client.get(
            "/places/search/within/rect",
            merge_options(geometry, _resolve_options(options)),
        )

    async def search_within_circle(
        self,
        latitude: float,
        longitude: float,
        radius: float,
        options: Options = None,
    ) -> Any:
        """Search places within radius of a point."""
        geometry = {"lat": latitude, "lon": longitude, "radius": radius}
        return await self._client.get(
            "/places/search/within/circle",
            merge_options(geometry, _resolve_options(options)),
        )

    async def search_nearest(self, latitude: float, longitude: float, options: Options = None) -> Any:
        """Search the places nearest to a point."""
        geometry = {"lat": latitude, "lon": longitude}
        return await self._client.get("/places/search/nearest", merge_options(geometry, _resolve_options(options)))

    async def search_by_name(self, name_prefix: str, options: Options = None) -> Any:
        """Search places whose name starts with the prefix."""
        return await self._client.get(
            f"/places/search/name/{encode_component(name_prefix)}",
            _resolve_options(options),
        )

    async def children(self, place_id: str) -> Any:
        return await self._client.get(f"/places/{place_id}/children")

    async def add(self, place: dict[str, Any], tag_names: builtins.list[str] | None = None) -> Any:
        """
        Create a place.

        Args:
            place: Place document
            tag_names: Tags to attach on creation

        Returns:
            The created place

        """
        return await self._client.post(f"/places{joined_param('tag_names', tag_names)}", place)

    async def update(self, place_id: str, place_update: dict[str, Any]) -> Any:
        return await self._client.post(f"/places/{place_id}", place_update)

    async def delete(self, place_id: str) -> Any:
        return await self._client.delete(f"/places/{place_id}")

    async def delete_geometry(self, place_id: str) -> Any:
        """Remove the geometry of a place, keeping the place itself."""
        return await self._client.delete(f"/places/{place_id}/geometry")


class PlaceItemOperations:
    """Items located at a place."""

    def __init__(self, client: APIClient):
        self._client = client

    async def list(self, place_id: str) -> Any:
        return await self._client.get(f"/places/{place_id}/items")

    async def add(self, place_id: str, item: dict[str, Any]) -> Any:
        return await self._client.post(f"/places/{place_id}/items", item)


# =============================================================================
# Item Operations
# =============================================================================


class ItemOperations:
    """Operations on items."""

    def __init__(self, client: APIClient):
        self._client = client
        self.tags = EntityTagOperations(client, "/items")

    def query(self) -> ItemsQuery:
        return ItemsQuery(self._client)

    async def get(self, item_id: str) -> Any:
        return await self._client.get(f"/items/{item_id}")

    async def list(self, options: Options = None) -> Any:
        return await self._client.get("/items", _resolve_options(options))

    async def add(self, item: dict[str, Any], tag_names: builtins.list[str] | None = None) -> Any:
        """Create an item, optionally tagged by name."""
        return await self._client.post(f"/items{joined_param('tag_names', tag_names)}", item)

    async def update(self, item_id: str, item_update: dict[str, Any]) -> Any:
        return await self._client.post(f"/items/{item_id}", item_update)

    async def delete(self, item_id: str) -> Any:
        return await self._client.delete(f"/items/{item_id}")


# =============================================================================
# Group & Authority Operations
# =============================================================================


class GroupOperations:
    """Operations on user groups."""

    def __init__(self, client: APIClient):
        self._client = client

    def query(self) -> GroupsQuery:
        return GroupsQuery(self._client)

    async def get(self, group_id: str) -> Any:
        return await self._client.get(f"/groups/{group_id}")

    async def add(self, group: dict[str, Any], user_ids: builtins.list[str] | None = None) -> Any:
        """
        Create a group.

        Args:
            group: Group document (may reference a parent group)
            user_ids: Users to add to the new group

        Returns:
            The created group

        """
        return await self._client.post(f"/groups{joined_param('user_ids', user_ids)}", group)

    async def update(self, group_id: str, group_update: dict[str, Any]) -> Any:
        return await self._client.post(f"/groups/{group_id}", group_update)

    async def delete(self, group_id: str) -> Any:
        """Delete a group; resolves to the deleted group."""
        return await self._client.delete(f"/groups/{group_id}")


class AuthorityOperations:
    """Operations on authorities (permissions granted to groups)."""

    def __init__(self, client: APIClient):
        self._client = client

    async def get(self, authority_id: str) -> Any:
        return await self._client.get(f"/auths/{authority_id}")

    async def add(self, authority: dict[str, Any], group_ids: list[str] | None = None) -> Any:
        """
        Create an authority.

        Args:
            authority: Authority document
            group_ids: Groups to grant the authority to

        Returns:
            The created authority

        """
        return await self._client.post(f"/auths{joined_param('group_ids', group_ids)}", authority)

    async def update(self, authority_id: str, authority_update: dict[str, Any]) -> Any:
        return await self._client.post(f"/auths/{authority_id}", authority_update)

    async def delete(self, authority_id: str) -> Any:
        return await self._client.delete(f"/auths/{authority_id}")


# =============================================================================
# Tag & Event Operations
# =============================================================================


class TagOperations:
    """Operations on tags themselves."""

    def __init__(self, client: APIClient):
        self._client = client

    def query(self) -> TagsQuery:
        return TagsQuery(self._client)

    async def get(self, tag_id: str) -> Any:
        return await self._client.get(f"/tags/{tag_id}")

    async def list(self, options: Options = None) -> Any:
        return await self._client.get("/tags", _resolve_options(options))

    async def update(self, tag_id: str, tag_update: dict[str, Any]) -> Any:
        return await self._client.post(f"/tags/{tag_id}", tag_update)

    async def delete(self, tag_id: str) -> Any:
        return await self._client.delete(f"/tags/{tag_id}")


class EventOperations:
    """Operations on events."""

    def __init__(self, client: APIClient):
        self._client = client

    def query(self) -> EventsQuery:
        return EventsQuery(self._client)

    async def get(self, event_id: str) -> Any:
        return await self._client.get(f"/events/{event_id}")

    async def list(self, options: Options = None) -> Any:
        return await self._client.get("/events", _resolve_options(options))

    async def add(self, event: dict[str, Any], tag_names: builtins.list[str] | None = None) -> Any:
        return await self._client.post(f"/events{joined_param('tag_names', tag_names)}", event)

    async def update(self, event_id: str, event_update: dict[str, Any]) -> Any:
        return await self._client.post(f"/events/{event_id}", event_update)

    async def delete(self, event_id: str) -> Any:
        return await self._client.delete(f"/events/{event_id}")


# =============================================================================
# Reference Data
# =============================================================================


class ReferenceOperations:
    """Public reference datasets."""

    def __init__(self, client: APIClient):
        self._client = client
        self.gadm = GadmOperations(client)


class GadmOperations:
    """GADM administrative boundaries, four levels deep."""

    BASE_PATH = "/public/ref/gadm"

    def __init__(self, client: APIClient):
        self._client = client

    async def level0(self) -> Any:
        return await self._client.get(self.BASE_PATH)

    async def level1(self, level0_id: str) -> Any:
        return await self._client.get(f"{self.BASE_PATH}/{level0_id}")

    async def level2(self, level0_id: str, level1_id: str) -> Any:
        return await self._client.get(f"{self.BASE_PATH}/{level0_id}/{level1_id}")

    async def level3(self, level0_id: str, level1_id: str, level2_id: str) -> Any:
        return await self._client.get(f"{self.BASE_PATH}/{level0_id}/{level1_id}/{level2_id}")
