"""
Query builders - chainable request composition for Geocore entities.

Each builder accumulates filters through setters that return the builder
itself, then issues exactly one request from a terminal method (``get``,
``all``, ``count`` or an entity-specific finalizer).

Terminal methods are plain methods returning an awaitable: the request path
and query string are captured when the terminal method is called, and a
missing required parameter raises MissingParameter right there, before
anything is sent.

Example:
    places = await PlacesQuery(api).set_num(5).all()
    nearest = await PlacesQuery(api).set_center(35.67, 139.72).nearest()

"""

from collections.abc import Awaitable
from datetime import datetime
from typing import Any, Self

from geocore.core.client import APIClient, MissingParameter, ValidationError
from geocore.core.types import ItemRecord
from geocore.core.utils import build_query_string, encode_component, format_timestamp, merge_options

# =============================================================================
# Base Builders
# =============================================================================


class Operation:
    """Base builder: an entity ID plus an optional custom-data key/value."""

    BASE_PATH: str | None = None

    def __init__(self, client: APIClient):
        self._client = client
        self._id: str | None = None
        self._custom_data_key: str | None = None
        self._custom_data_value: Any = None

    def with_id(self, entity_id: str) -> Self:
        """Target a single entity by system ID or human ID."""
        self._id = entity_id
        return self

    def with_custom_data_key(self, key: str) -> Self:
        self._custom_data_key = key
        return self

    def having_custom_data(self, value: Any, key: str) -> Self:
        """Set a custom-data value together with its key."""
        self._custom_data_value = value
        return self.with_custom_data_key(key)

    def _require(self, name: str, *values: Any) -> None:
        if any(value is None for value in values):
            raise MissingParameter(name)

    def _base_path(self, base_path: str | None) -> str:
        path = base_path or self.BASE_PATH
        if not path:
            raise ValidationError(f"{type(self).__name__} has no base path; pass one explicitly")
        return path


class Query(Operation):
    """
    Builder with pagination, ordering, date-range and parent filters.

    Date filters take a datetime or a string already in the service's
    "YYYY/MM/DD hh:mm:ss" format.
    """

    def __init__(self, client: APIClient):
        super().__init__(client)
        self._num = 0
        self._page = 0
        self._recently_created = False
        self._recently_updated = False
        self._updated_after: str | None = None
        self._updated_before: str | None = None
        self._created_after: str | None = None
        self._created_before: str | None = None
        self._parent_id: str | None = None

    def number_per_page(self, num: int) -> Self:
        self._num = num
        return self

    def page(self, page: int) -> Self:
        self._page = page
        return self

    set_num = number_per_page
    set_page = page

    def order_by_recently_created(self) -> Self:
        self._recently_created = True
        return self

    def order_by_recently_updated(self) -> Self:
        self._recently_updated = True
        return self

    def updated_after(self, timestamp: datetime | str) -> Self:
        self._updated_after = format_timestamp(timestamp)
        return self

    def updated_before(self, timestamp: datetime | str) -> Self:
        self._updated_before = format_timestamp(timestamp)
        return self

    def created_after(self, timestamp: datetime | str) -> Self:
        self._created_after = format_timestamp(timestamp)
        return self

    def created_before(self, timestamp: datetime | str) -> Self:
        self._created_before = format_timestamp(timestamp)
        return self

    def with_parent(self, parent_id: str) -> Self:
        self._parent_id = parent_id
        return self

    def build_query_parameters(self) -> dict[str, Any]:
        """
        Collect the query parameters that have been set.

        Subclasses extend the dict returned here with their own filters.

        Returns:
            Ordered mapping of parameter name to value

        """
        params: dict[str, Any] = {}
        if self._num > 0:
            params["num"] = self._num
        if self._page > 0:
            params["page"] = self._page
        if self._recently_created:
            params["recent_created"] = True
        if self._recently_updated:
            params["recent_updated"] = True
        if self._updated_after is not None:
            params["update_after"] = self._updated_after
        if self._updated_before is not None:
            params["update_before"] = self._updated_before
        if self._created_after is not None:
            params["create_after"] = self._created_after
        if self._created_before is not None:
            params["create_before"] = self._created_before
        if self._parent_id is not None:
            params["parent_id"] = self._parent_id
        return params

    # =========================================================================
    # Terminal Methods
    # =========================================================================

    def get(self, base_path: str | None = None) -> Awaitable[Any]:
        """
        Fetch the entity set with with_id().

        Args:
            base_path: Resource path; defaults to the builder's BASE_PATH

        Returns:
            Awaitable resolving to the entity

        Raises:
            MissingParameter: If no ID was set

        """
        path = self._base_path(base_path)
        self._require("id", self._id)
        return self._client.get(f"{path}/{self._id}")

    def all(self, base_path: str | None = None) -> Awaitable[Any]:
        """Fetch the entities matching the accumulated filters, in service order."""
        path = self._base_path(base_path)
        return self._client.get(f"{path}{build_query_string(self.build_query_parameters())}")

    def count(self, base_path: str | None = None) -> Awaitable[Any]:
        """Count the entities matching the accumulated filters."""
        path = self._base_path(base_path)
        return self._client.get(f"{path}/count{build_query_string(self.build_query_parameters())}")


class TaggableQuery(Query):
    """Query over entities that can be filtered by tag membership."""

    def __init__(self, client: APIClient):
        super().__init__(client)
        self._tag_sids: list[str] = []
        self._tag_ids: list[str] = []
        self._tag_names: list[str] = []
        self._excluded_tag_ids: list[str] = []
        self._excluded_tag_names: list[str] = []
        self._tag_detail = False

    def with_tag_system_ids(self, tag_sids: list[str]) -> Self:
        """Filter by tag system IDs (the service-assigned tag identifiers)."""
        self._tag_sids = list(tag_sids)
        return self

    def with_tag_ids(self, tag_ids: list[str]) -> Self:
        self._tag_ids = list(tag_ids)
        return self

    def with_tag_names(self, tag_names: list[str]) -> Self:
        self._tag_names = list(tag_names)
        return self

    def exclude_tag_ids(self, tag_ids: list[str]) -> Self:
        self._excluded_tag_ids = list(tag_ids)
        return self

    def exclude_tag_names(self, tag_names: list[str]) -> Self:
        self._excluded_tag_names = list(tag_names)
        return self

    def with_tag_detail(self) -> Self:
        """Ask the service to include full tag documents in results."""
        self._tag_detail = True
        return self

    def build_query_parameters(self) -> dict[str, Any]:
        params = super().build_query_parameters()
        if self._tag_sids:
            params["tag_sids"] = list(self._tag_sids)
        if self._tag_ids:
            params["tag_ids"] = list(self._tag_ids)
        if self._tag_names:
            params["tag_names"] = list(self._tag_names)
        if self._excluded_tag_ids:
            params["excl_tag_ids"] = list(self._excluded_tag_ids)
        if self._excluded_tag_names:
            params["excl_tag_names"] = list(self._excluded_tag_names)
        if self._tag_detail:
            params["tag_detail"] = True
        return params


# =============================================================================
# Entity Queries
# =============================================================================


class ObjectsQuery(Query):
    """Query over generic objects, the supertype of every Geocore entity."""

    BASE_PATH = "/objs"

    def custom_data(self) -> Awaitable[Any]:
        """Fetch all custom data of the object."""
        self._require("id", self._id)
        return self._client.get(f"{self.BASE_PATH}/{self._id}/customData")

    def update_custom_data(self) -> Awaitable[Any]:
        """Store the value set with having_custom_data() under its key."""
        self._require("id", self._id)
        self._require("custom_data_key", self._custom_data_key)
        self._require("custom_data_value", self._custom_data_value)
        return self._client.put(
            f"{self.BASE_PATH}/{self._id}/customData/{self._custom_data_key}/"
            f"{encode_component(self._custom_data_value)}"
        )

    def delete_custom_data(self) -> Awaitable[Any]:
        """Remove the custom data stored under the configured key."""
        self._require("id", self._id)
        self._require("custom_data_key", self._custom_data_key)
        return self._client.delete(f"{self.BASE_PATH}/{self._id}/customData/{self._custom_data_key}")


class TagsQuery(TaggableQuery):
    BASE_PATH = "/tags"


class GroupsQuery(TaggableQuery):
    """Query over user groups."""

    BASE_PATH = "/groups"

    def authorities(self) -> Awaitable[Any]:
        """Fetch the authorities granted to the group."""
        self._require("id", self._id)
        return self._client.get(f"{self.BASE_PATH}/{self._id}/auths")

    def tags(self) -> Awaitable[Any]:
        """Fetch the tags attached to the group."""
        self._require("id", self._id)
        return self._client.get(f"{self.BASE_PATH}/{self._id}/tags")


class PlacesQuery(TaggableQuery):
    """
    Query over places, with geographic search finalizers.

    Geometry parameters are sent first, followed by the usual pagination,
    date and tag filters.
    """

    BASE_PATH = "/places"

    def __init__(self, client: APIClient):
        super().__init__(client)
        self._center_lat: float | None = None
        self._center_lon: float | None = None
        self._radius: float | None = None
        self._min_lat: float | None = None
        self._min_lon: float | None = None
        self._max_lat: float | None = None
        self._max_lon: float | None = None
        self._checkinable = False

    def set_center(self, lat: float, lon: float) -> Self:
        self._center_lat = lat
        self._center_lon = lon
        return self

    def set_radius(self, radius: float) -> Self:
        self._radius = radius
        return self

    def set_rectangle(self, min_lat: float, min_lon: float, max_lat: float, max_lon: float) -> Self:
        self._min_lat = min_lat
        self._min_lon = min_lon
        self._max_lat = max_lat
        self._max_lon = max_lon
        return self

    def only_checkinable(self) -> Self:
        """Restrict results to places that accept check-ins."""
        self._checkinable = True
        return self

    def build_query_parameters(self) -> dict[str, Any]:
        params = super().build_query_parameters()
        if self._checkinable:
            params["checkinable"] = True
        return params

    def _center(self) -> dict[str, Any]:
        self._require("center", self._center_lat, self._center_lon)
        return {"lat": self._center_lat, "lon": self._center_lon}

    def _search(self, kind: str, geometry: dict[str, Any]) -> Awaitable[Any]:
        query = build_query_string(merge_options(geometry, self.build_query_parameters()))
        return self._client.get(f"{self.BASE_PATH}/search/{kind}{query}")

    def nearest(self) -> Awaitable[Any]:
        """Fetch the places nearest to the center."""
        return self._search("nearest", self._center())

    def smallest_bounds(self) -> Awaitable[Any]:
        """Fetch the places with the smallest bounds containing the center."""
        return self._search("smallestbounds", self._center())

    def within_circle(self) -> Awaitable[Any]:
        """Fetch the places within radius of the center."""
        geometry = self._center()
        self._require("radius", self._radius)
        geometry["radius"] = self._radius
        return self._search("within/circle", geometry)

    def within_rectangle(self) -> Awaitable[Any]:
        """Fetch the places inside the rectangle."""
        self._require("rectangle", self._min_lat, self._min_lon, self._max_lat, self._max_lon)
        return self._search(
            "within/rect",
            {
                "max_lat": self._max_lat,
                "min_lon": self._min_lon,
                "min_lat": self._min_lat,
                "max_lon": self._max_lon,
            },
        )

    def events(self) -> Awaitable[Any]:
        raise NotImplementedError("Place event queries are reserved for future use")

    def event_relationships(self) -> Awaitable[Any]:
        raise NotImplementedError("Place event relationship queries are reserved for future use")


class ItemsQuery(TaggableQuery):
    """Query over items; results come back as ItemRecord documents."""

    BASE_PATH = "/items"

    def get(self, base_path: str | None = None) -> Awaitable[Any]:
        return self._wrap_one(super().get(base_path))

    def all(self, base_path: str | None = None) -> Awaitable[Any]:
        return self._wrap_many(super().all(base_path))

    def _record(self, data: Any) -> Any:
        if isinstance(data, dict) and "id" in data:
            return ItemRecord(data, self._client.get)
        return data

    async def _wrap_one(self, pending: Awaitable[Any]) -> Any:
        return self._record(await pending)

    async def _wrap_many(self, pending: Awaitable[Any]) -> Any:
        result = await pending
        if not isinstance(result, list):
            return result
        return [self._record(item) for item in result]


class EventsQuery(TaggableQuery):
    BASE_PATH = "/events"
