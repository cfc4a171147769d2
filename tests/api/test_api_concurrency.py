"""
Tests for state changes made while a request awaits a provider.

Route handlers are called directly so the state can be changed between
the provider call starting and returning.
"""

import asyncio

import pytest
from fastapi import HTTPException

from refuel.api.v1.routes.planning import (
    MAX_GENERATION_ATTEMPTS,
    ensure_modified_route,
    generate_modified_route,
)
from refuel.api.v1.routes.pois import discover_pois
from refuel.features.gpx.schemas import GeoPoint, Route
from refuel.features.poi import POIDiscoveryService, POIProvider, ProviderFeature
from refuel.features.poi.schemas import CandidatePOI
from refuel.features.routing import RouteGenerator
from refuel.features.routing.directions import DirectionsProvider
from refuel.features.session import AppState


def p(lat, lon):
    return GeoPoint(latitude=lat, longitude=lon)


def pairs(route):
    return [(pt.latitude, pt.longitude) for pt in route.points]


def poi(id_, lat, lon, selected=False):
    return CandidatePOI(
        id=id_,
        name=f"POI {id_}",
        category="Water Supply",
        location=p(lat, lon),
        distance_from_route=1.0,
        distance_along_route=0.0,
        selected=selected,
    )


ROUTE = Route(name="Loop", points=(p(0.0, 0.0), p(0.0, 1.0), p(0.0, 2.0)))
OTHER_ROUTE = Route(name="Other", points=(p(10.0, 10.0), p(10.0, 11.0)))


class GatedDirections(DirectionsProvider):
    """Blocks the first call until released; later calls return at once."""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def route(self, waypoints):
        self.calls += 1
        if self.calls == 1:
            self.started.set()
            await self.release.wait()
        return None


class TogglingDirections(DirectionsProvider):
    """Changes the selection on every call, so no result is ever current."""

    def __init__(self, state, poi_id):
        self.state = state
        self.poi_id = poi_id
        self.calls = 0

    async def route(self, waypoints):
        self.calls += 1
        self.state.toggle_poi(self.poi_id)
        return None


class GatedProvider(POIProvider):
    """Blocks until released, then returns one feature near ROUTE."""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch_features(self, bbox, tags):
        self.started.set()
        await self.release.wait()
        return [ProviderFeature(
            id="1",
            tags={"amenity": "drinking_water"},
            point=p(0.01, 1.01),
        )]


@pytest.fixture
def state():
    state = AppState(default_max_deviation_km=5.0, max_deviation_limit_km=50.0)
    state.load_route(ROUTE, "loop.gpx")
    state.set_pois([poi("a", 0.01, 1.1, selected=True), poi("b", 0.01, 0.1)])
    return state


# =============================================================================
# Test Generation
# =============================================================================

class TestGenerationDuringToggle:

    def test_toggle_mid_generation_regenerates(self, state):
        """POI b selected while a's detour is fetched must appear in the result."""

        async def scenario():
            directions = GatedDirections()
            task = asyncio.create_task(
                ensure_modified_route(state, RouteGenerator(directions))
            )
            await directions.started.wait()
            state.toggle_poi("b")
            directions.release.set()
            return await task

        result = asyncio.run(scenario())

        expected = [(0.0, 0.0), (0.01, 0.1), (0.0, 1.0), (0.01, 1.1), (0.0, 2.0)]
        assert pairs(result) == expected
        assert pairs(state.modified_route) == expected

    def test_unchanged_selection_generates_once(self, state):
        async def scenario():
            directions = GatedDirections()
            directions.release.set()
            await generate_modified_route(state=state, generator=RouteGenerator(directions))
            return directions.calls

        assert asyncio.run(scenario()) == 1
        assert pairs(state.modified_route) == [
            (0.0, 0.0), (0.0, 1.0), (0.01, 1.1), (0.0, 2.0),
        ]

    def test_selection_never_settles(self, state):
        directions = TogglingDirections(state, "b")

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(ensure_modified_route(state, RouteGenerator(directions)))

        assert exc_info.value.status_code == 409
        assert directions.calls >= MAX_GENERATION_ATTEMPTS
        assert state.modified_route is None


# =============================================================================
# Test Discovery
# =============================================================================

class TestDiscoveryDuringRouteChange:

    def run_discovery(self, state, change):
        async def scenario():
            provider = GatedProvider()
            task = asyncio.create_task(
                discover_pois(state=state, discovery=POIDiscoveryService(provider))
            )
            await provider.started.wait()
            change()
            provider.release.set()
            return await task

        return asyncio.run(scenario())

    def test_route_replaced_mid_discovery(self, state):
        with pytest.raises(HTTPException) as exc_info:
            self.run_discovery(state, lambda: state.load_route(OTHER_ROUTE, "other.gpx"))

        assert exc_info.value.status_code == 409
        assert state.original_route == OTHER_ROUTE
        assert state.pois == []

    def test_toggle_mid_discovery_keeps_results(self, state):
        pois = self.run_discovery(state, lambda: state.toggle_poi("b"))

        assert [x.id for x in pois] == ["1"]
        assert [x.id for x in state.pois] == ["1"]
