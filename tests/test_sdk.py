"""Tests for the high-level GeocoreClient and its resource operations."""

import asyncio
import json

import httpx
import pytest
from conftest import BASE_URL

from geocore.core.client import ACCESS_TOKEN_HEADER
from geocore.query import EventsQuery, GroupsQuery, ItemsQuery, ObjectsQuery, PlacesQuery, TagsQuery
from geocore.sdk import GeocoreClient


def call(awaitable):
    return asyncio.run(awaitable)


# =============================================================================
# Client
# =============================================================================


def test_client_session_lifecycle(client, server):
    assert client.configure(None, "PRO-TEST-2") is client
    assert client.session.base_url == BASE_URL
    assert client.session.project_id == "PRO-TEST-2"

    server.result = {"token": "T"}
    assert call(client.authenticate("USE-TEST-1-ADMIN-1", "pw")) == "T"
    assert client.is_authenticated() == "T"
    assert server.last.url.params["project_id"] == "PRO-TEST-2"

    call(client.users.get("USE-TEST-1-ADMIN-1"))
    assert server.last.headers[ACCESS_TOKEN_HEADER] == "T"

    client.deauthenticate()
    assert client.is_authenticated() is False


def test_query_factories(client):
    assert isinstance(client.objects.query(), ObjectsQuery)
    assert isinstance(client.places.query(), PlacesQuery)
    assert isinstance(client.items.query(), ItemsQuery)
    assert isinstance(client.groups.query(), GroupsQuery)
    assert isinstance(client.tags.query(), TagsQuery)
    assert isinstance(client.events.query(), EventsQuery)
    assert client.places.query() is not client.places.query()


def test_async_context_manager_leaves_injected_client_open(server):
    async def scenario():
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
        async with GeocoreClient(BASE_URL, "PRO-TEST-1", http_client=http_client) as client:
            await client.objects.get("OBJ-1")
        return http_client

    http_client = call(scenario())
    assert not http_client.is_closed
    call(http_client.aclose())


def test_async_context_manager_closes_own_client():
    async def scenario():
        async with GeocoreClient(BASE_URL, "PRO-TEST-1") as client:
            return client.api._http

    assert call(scenario()).is_closed


# =============================================================================
# Users & Objects
# =============================================================================


def test_users(client, server):
    call(client.users.get("USE-1"))
    assert server.last_url == f"{BASE_URL}/users/USE-1"

    server.result = {"id": "USE-1", "name": "Administrator JS Test"}
    user = call(client.users.update("USE-1", {"name": "Administrator JS Test"}))
    assert user["name"] == "Administrator JS Test"
    assert server.last.method == "POST"
    assert json.loads(server.last.content) == {"name": "Administrator JS Test"}

    call(client.users.groups("USE-1"))
    assert server.last_url == f"{BASE_URL}/users/USE-1/groups"


def test_object_data_and_bins(client, server):
    call(client.objects.data.list("OBJ-1"))
    assert server.last_url == f"{BASE_URL}/objs/OBJ-1/data"
    call(client.objects.data.get("OBJ-1", "profile"))
    assert server.last_url == f"{BASE_URL}/objs/OBJ-1/data/profile"
    call(client.objects.data.add_or_update("OBJ-1", "profile", {"age": 3}))
    assert server.last.method == "POST"
    assert json.loads(server.last.content) == {"age": 3}

    call(client.objects.bins.list("OBJ-1"))
    assert server.last_url == f"{BASE_URL}/objs/OBJ-1/bins"
    call(client.objects.bins.url("OBJ-1", "photo"))
    assert server.last_url == f"{BASE_URL}/objs/OBJ-1/bins/photo/url"
    call(client.objects.bins.upload("OBJ-1", "photo", b"bytes", "photo.jpg"))
    assert server.last_url == f"{BASE_URL}/objs/OBJ-1/bins/photo"
    assert b'name="data"; filename="photo.jpg"' in server.last.content


def test_relationship_bins(client, server):
    call(client.objects.relationships.bins.list("OBJ-1", "OBJ-2"))
    assert server.last_url == f"{BASE_URL}/objs/relationship/OBJ-1/OBJ-2/bins"
    call(client.objects.relationships.bins.url("OBJ-1", "OBJ-2", "k"))
    assert server.last_url == f"{BASE_URL}/objs/relationship/OBJ-1/OBJ-2/bins/k/url"


def test_custom_data_facade_matches_builder(client, server):
    call(client.objects.custom_data.update("OBJ-1", "color", "dark blue"))
    facade_request = (server.last.method, server.last_url)
    call(client.objects.query().with_id("OBJ-1").having_custom_data("dark blue", "color").update_custom_data())
    assert (server.last.method, server.last_url) == facade_request

    call(client.objects.custom_data.delete("OBJ-1", "color"))
    assert server.last.method == "DELETE"
    assert server.last_url == f"{BASE_URL}/objs/OBJ-1/customData/color"


def test_object_get_matches_builder(client, server):
    call(client.objects.get("OBJ-1"))
    call(client.objects.query().with_id("OBJ-1").get())
    assert server.requests[0].url == server.requests[1].url


# =============================================================================
# Places & Items
# =============================================================================


def test_places_list_accepts_builder_or_mapping(client, server):
    call(client.places.list(client.places.query().set_num(5)))
    assert server.last_url == f"{BASE_URL}/places?num=5"
    call(client.places.list({"num": 5}))
    assert server.last_url == f"{BASE_URL}/places?num=5"
    call(client.places.list())
    assert server.last_url == f"{BASE_URL}/places"
    call(client.places.list({"num": None, "page": 2}))
    assert server.last_url == f"{BASE_URL}/places?page=2"


def test_places_searches(client, server):
    call(client.places.search_nearest(35.67, 139.72))
    assert server.last_url == f"{BASE_URL}/places/search/nearest?lat=35.67&lon=139.72"

    call(client.places.search_within_rect(35.68, 139.7, 35.62, 139.78, {"num": 10}))
    assert server.last_url == (
        f"{BASE_URL}/places/search/within/rect?max_lat=35.68&min_lon=139.7&min_lat=35.62&max_lon=139.78&num=10"
    )

    call(client.places.search_within_circle(35.0, 139.0, 500))
    assert server.last_url == f"{BASE_URL}/places/search/within/circle?lat=35&lon=139&radius=500"

    call(client.places.search_by_name("Tokyo Tower"))
    assert server.last_url == f"{BASE_URL}/places/search/name/Tokyo%20Tower"


def test_places_crud(client, server):
    call(client.places.add({"name": "Shop"}, ["food", "cafe"]))
    assert server.last.method == "POST"
    assert server.last_url == f"{BASE_URL}/places?tag_names=food%2Ccafe"
    assert json.loads(server.last.content) == {"name": "Shop"}

    call(client.places.add({"name": "Shop"}))
    assert server.last_url == f"{BASE_URL}/places"
    call(client.places.add({"name": "Shop"}, []))
    assert server.last_url == f"{BASE_URL}/places"

    call(client.places.update("PLA-1", {"name": "Cafe"}))
    assert (server.last.method, server.last_url) == ("POST", f"{BASE_URL}/places/PLA-1")
    call(client.places.children("PLA-1"))
    assert server.last_url == f"{BASE_URL}/places/PLA-1/children"
    call(client.places.delete("PLA-1"))
    assert (server.last.method, server.last_url) == ("DELETE", f"{BASE_URL}/places/PLA-1")
    call(client.places.delete_geometry("PLA-1"))
    assert server.last_url == f"{BASE_URL}/places/PLA-1/geometry"


def test_place_tags_and_items(client, server):
    call(client.places.tags.list("PLA-1"))
    assert server.last_url == f"{BASE_URL}/places/PLA-1/tags"
    call(client.places.tags.update("PLA-1", ["a", "b"]))
    assert (server.last.method, server.last_url) == ("POST", f"{BASE_URL}/places/PLA-1/tags?tag_names=a%2Cb")
    call(client.places.tags.delete("PLA-1", ["a"]))
    assert (server.last.method, server.last_url) == ("POST", f"{BASE_URL}/places/PLA-1/tags?del_tag_names=a")

    call(client.places.items.list("PLA-1"))
    assert server.last_url == f"{BASE_URL}/places/PLA-1/items"
    call(client.places.items.add("PLA-1", {"name": "coupon"}))
    assert server.last.method == "POST"
    assert json.loads(server.last.content) == {"name": "coupon"}


def test_items(client, server):
    call(client.items.get("ITE-1"))
    assert server.last_url == f"{BASE_URL}/items/ITE-1"
    call(client.items.list({"num": 3}))
    assert server.last_url == f"{BASE_URL}/items?num=3"
    call(client.items.add({"name": "coupon"}, ["promo"]))
    assert server.last_url == f"{BASE_URL}/items?tag_names=promo"
    call(client.items.update("ITE-1", {"name": "x"}))
    assert server.last.method == "POST"
    call(client.items.delete("ITE-1"))
    assert server.last.method == "DELETE"
    call(client.items.tags.update("ITE-1", ["promo"]))
    assert server.last_url == f"{BASE_URL}/items/ITE-1/tags?tag_names=promo"


# =============================================================================
# Groups, Authorities, Tags, Events, References
# =============================================================================


def test_groups(client, server):
    group = {"id": "GRO-TEST-1-jsapi_test_1", "name": "JS API group create test"}
    server.result = group
    created = call(client.groups.add(group, ["USE-TEST-1-ADMIN-1"]))
    assert created["id"] == "GRO-TEST-1-jsapi_test_1"
    assert server.last_url == f"{BASE_URL}/groups?user_ids=USE-TEST-1-ADMIN-1"

    call(client.groups.get("GRO-1"))
    assert server.last_url == f"{BASE_URL}/groups/GRO-1"
    call(client.groups.update("GRO-1", {"name": "n"}))
    assert server.last.method == "POST"
    call(client.groups.delete("GRO-1"))
    assert (server.last.method, server.last_url) == ("DELETE", f"{BASE_URL}/groups/GRO-1")


def test_authorities(client, server):
    call(client.authorities.add({"id": "AUT-1"}, ["GRO-1", "GRO-2"]))
    assert server.last_url == f"{BASE_URL}/auths?group_ids=GRO-1%2CGRO-2"
    call(client.authorities.get("AUT-1"))
    assert server.last_url == f"{BASE_URL}/auths/AUT-1"
    call(client.authorities.update("AUT-1", {"name": "n"}))
    assert server.last.method == "POST"
    call(client.authorities.delete("AUT-1"))
    assert (server.last.method, server.last_url) == ("DELETE", f"{BASE_URL}/auths/AUT-1")


def test_tags_and_events(client, server):
    call(client.tags.get("TAG-1"))
    assert server.last_url == f"{BASE_URL}/tags/TAG-1"
    call(client.tags.list(client.tags.query().with_tag_detail()))
    assert server.last_url == f"{BASE_URL}/tags?tag_detail=true"
    call(client.tags.delete("TAG-1"))
    assert server.last.method == "DELETE"

    call(client.events.add({"name": "Sale"}, ["promo"]))
    assert server.last_url == f"{BASE_URL}/events?tag_names=promo"
    call(client.events.list())
    assert server.last_url == f"{BASE_URL}/events"
    call(client.events.get("EVE-1"))
    assert server.last_url == f"{BASE_URL}/events/EVE-1"


@pytest.mark.parametrize(
    ("method", "args", "path"),
    [
        ("level0", (), "/public/ref/gadm"),
        ("level1", ("JPN",), "/public/ref/gadm/JPN"),
        ("level2", ("JPN", "13"), "/public/ref/gadm/JPN/13"),
        ("level3", ("JPN", "13", "1"), "/public/ref/gadm/JPN/13/1"),
    ],
)
def test_gadm_reference(client, server, method, args, path):
    call(getattr(client.ref.gadm, method)(*args))
    assert server.last_url == f"{BASE_URL}{path}"
