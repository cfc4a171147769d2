"""
Tests for route generation.

Covers straight insertion, routed detours with seam trimming, per-POI
fallback and ordering of several detours.
"""

import asyncio
import dataclasses

import pytest

from refuel.features.gpx.schemas import GeoPoint, Route
from refuel.features.poi.schemas import CandidatePOI
from refuel.features.routing import RouteGenerator, generate_route
from refuel.features.routing.directions import DirectionsProvider
from refuel.features.routing.generator import group_detours, trim_seams
from refuel.shared.exceptions import DirectionsError, EmptyRouteError


def p(lat, lon):
    return GeoPoint(latitude=lat, longitude=lon)


def pairs(route):
    return [(pt.latitude, pt.longitude) for pt in route.points]


def poi(id_, lat, lon, selected=True, along=0.0):
    return CandidatePOI(
        id=id_,
        name=f"POI {id_}",
        category="Water Supply",
        location=p(lat, lon),
        distance_from_route=1.0,
        distance_along_route=along,
        selected=selected,
    )


ROUTE = Route(name="Loop", points=(p(0.0, 0.0), p(0.0, 1.0), p(0.0, 2.0)))


class FakeDirections(DirectionsProvider):
    """Answers from a dict keyed by POI location; records waypoints per call."""

    def __init__(self, paths=None, fail_for=(), delays=None):
        self.paths = paths or {}
        self.fail_for = set(fail_for)
        self.delays = delays or {}
        self.calls = []

    async def route(self, waypoints):
        target = waypoints[1]
        self.calls.append(list(waypoints))
        await asyncio.sleep(self.delays.get(target, 0))
        if target in self.fail_for:
            raise DirectionsError("boom")
        return self.paths.get(target)


def run(generator, route, candidates):
    return asyncio.run(generator.generate(route, candidates))


# =============================================================================
# Test Straight Insertion
# =============================================================================

class TestStraightInsertion:
    """Generation without a directions provider."""

    def test_single_poi_inserted_after_nearest_point(self):
        result = generate_route(ROUTE, [poi("a", 0.01, 1.1)])
        assert pairs(result) == [(0.0, 0.0), (0.0, 1.0), (0.01, 1.1), (0.0, 2.0)]

    def test_equidistant_poi_attaches_to_earlier_point(self):
        """(0.01, 0.5) is exactly as far from index 0 as from index 1."""
        result = generate_route(ROUTE, [poi("mid", 0.01, 0.5)])
        assert pairs(result) == [(0.0, 0.0), (0.01, 0.5), (0.0, 1.0), (0.0, 2.0)]

    def test_async_generator_without_provider_matches(self):
        candidates = [poi("a", 0.01, 1.1)]
        assert run(RouteGenerator(None), ROUTE, candidates) == generate_route(ROUTE, candidates)

    def test_modified_name(self):
        assert generate_route(ROUTE, [poi("a", 0.01, 1.1)]).name == "Loop (Modified)"

    def test_unnamed_route(self):
        route = Route(points=ROUTE.points)
        assert generate_route(route, [poi("a", 0.01, 1.1)]).name == "Route (Modified)"

    def test_no_selection_returns_identical_route(self):
        candidates = [poi("a", 0.01, 1.1, selected=False)]
        result = generate_route(ROUTE, candidates)
        assert result.name == "Loop"
        assert result.points == ROUTE.points

    def test_no_candidates(self):
        assert run(RouteGenerator(FakeDirections()), ROUTE, []).points == ROUTE.points

    def test_unselected_pois_ignored(self):
        candidates = [poi("a", 0.01, 1.1), poi("b", 0.01, 0.1, selected=False)]
        assert len(generate_route(ROUTE, candidates).points) == 4

    def test_poi_at_last_point(self):
        result = generate_route(ROUTE, [poi("end", 0.01, 2.01)])
        assert pairs(result)[-1] == (0.01, 2.01)

    def test_original_points_preserved_in_order(self):
        candidates = [poi("a", 0.01, 0.1), poi("b", 0.01, 1.1), poi("c", 0.01, 2.01)]
        result = generate_route(ROUTE, candidates)
        originals = [pt for pt in result.points if pt in ROUTE.points]
        assert originals == list(ROUTE.points)
        assert len(result.points) == len(ROUTE.points) + 3

    def test_original_route_not_mutated(self):
        before = ROUTE.points
        generate_route(ROUTE, [poi("a", 0.01, 1.1)])
        assert ROUTE.points == before

    def test_empty_route_raises(self):
        with pytest.raises(EmptyRouteError):
            generate_route(Route(), [poi("a", 0.0, 0.0)])

    def test_empty_route_raises_async(self):
        with pytest.raises(EmptyRouteError):
            run(RouteGenerator(None), Route(), [])


# =============================================================================
# Test Grouping
# =============================================================================

class TestGroupDetours:

    def test_ordered_by_index_then_along_route(self):
        candidates = [
            poi("late", 0.01, 1.05, along=115.0),
            poi("first", 0.01, 0.05, along=0.0),
            poi("early", -0.01, 1.02, along=111.0),
        ]
        detours = group_detours(ROUTE, candidates)
        assert [(d.entry_index, d.poi.id) for d in detours] == [
            (0, "first"),
            (1, "early"),
            (1, "late"),
        ]

    def test_multiple_pois_same_index_emitted_in_along_order(self):
        candidates = [poi("b", 0.02, 1.05, along=116.0), poi("a", 0.01, 1.01, along=112.0)]
        result = generate_route(ROUTE, candidates)
        assert pairs(result) == [
            (0.0, 0.0), (0.0, 1.0), (0.01, 1.01), (0.02, 1.05), (0.0, 2.0),
        ]


# =============================================================================
# Test Seam Trimming
# =============================================================================

class TestTrimSeams:

    def test_both_ends_trimmed(self):
        path = [p(0, 1), p(0.005, 1.05), p(0.01, 1.1), p(0, 2)]
        assert trim_seams(path, p(0, 1), p(0, 2)) == [p(0.005, 1.05), p(0.01, 1.1)]

    def test_within_tolerance(self):
        path = [p(0.0000004, 1.0), p(0.5, 1.5), p(0.0, 2.0000004)]
        assert trim_seams(path, p(0, 1), p(0, 2)) == [p(0.5, 1.5)]

    def test_nothing_to_trim(self):
        path = [p(0.1, 1.0), p(0.5, 1.5)]
        assert trim_seams(path, p(0, 1), p(0, 2)) == path

    def test_no_exit_point(self):
        path = [p(0, 2), p(0.01, 2.01)]
        assert trim_seams(path, p(0, 2), None) == [p(0.01, 2.01)]


# =============================================================================
# Test Routed Detours
# =============================================================================

class TestRoutedDetours:
    """Generation with a directions provider."""

    def test_routed_path_is_spliced_without_duplicates(self):
        directions = FakeDirections(paths={
            p(0.01, 1.1): [p(0, 1), p(0.01, 1.1), p(0.005, 1.5), p(0, 2)],
        })
        result = run(RouteGenerator(directions), ROUTE, [poi("a", 0.01, 1.1)])

        assert pairs(result) == [
            (0.0, 0.0), (0.0, 1.0), (0.01, 1.1), (0.005, 1.5), (0.0, 2.0),
        ]

    def test_waypoints_entry_poi_exit(self):
        directions = FakeDirections()
        run(RouteGenerator(directions), ROUTE, [poi("a", 0.01, 1.1)])
        assert directions.calls == [[p(0, 1), p(0.01, 1.1), p(0, 2)]]

    def test_waypoints_at_last_point_have_no_exit(self):
        directions = FakeDirections()
        run(RouteGenerator(directions), ROUTE, [poi("end", 0.01, 2.01)])
        assert directions.calls == [[p(0, 2), p(0.01, 2.01)]]

    def test_none_from_provider_falls_back(self):
        result = run(RouteGenerator(FakeDirections()), ROUTE, [poi("a", 0.01, 1.1)])
        assert pairs(result) == [(0.0, 0.0), (0.0, 1.0), (0.01, 1.1), (0.0, 2.0)]

    def test_path_empty_after_trimming_falls_back(self):
        # Path holds only the seam points
        directions = FakeDirections(paths={p(0.01, 1.1): [p(0, 1), p(0, 2)]})
        result = run(RouteGenerator(directions), ROUTE, [poi("a", 0.01, 1.1)])
        assert pairs(result) == [(0.0, 0.0), (0.0, 1.0), (0.01, 1.1), (0.0, 2.0)]

    def test_failure_only_affects_its_poi(self):
        directions = FakeDirections(
            paths={p(0.01, 1.1): [p(0, 1), p(0.01, 1.1), p(0.02, 1.5), p(0, 2)]},
            fail_for=[p(0.01, 0.1)],
        )
        candidates = [poi("a", 0.01, 1.1), poi("b", 0.01, 0.1)]
        result = run(RouteGenerator(directions), ROUTE, candidates)

        assert pairs(result) == [
            (0.0, 0.0), (0.01, 0.1),
            (0.0, 1.0), (0.01, 1.1), (0.02, 1.5),
            (0.0, 2.0),
        ]

    def test_all_failures_equal_straight_insertion(self):
        candidates = [poi("a", 0.01, 1.1), poi("b", 0.01, 0.1)]
        directions = FakeDirections(fail_for=[p(0.01, 1.1), p(0.01, 0.1)])
        result = run(RouteGenerator(directions), ROUTE, candidates)
        assert result == generate_route(ROUTE, candidates)

    def test_concurrent_calls_keep_route_order(self):
        directions = FakeDirections(
            paths={
                p(0.01, 0.1): [p(0, 0), p(0.01, 0.1), p(0.005, 0.5), p(0, 1)],
                p(0.01, 1.1): [p(0, 1), p(0.01, 1.1), p(0, 2)],
            },
            delays={p(0.01, 0.1): 0.05},
        )
        candidates = [poi("b", 0.01, 1.1), poi("a", 0.01, 0.1)]
        result = run(RouteGenerator(directions, max_concurrency=4), ROUTE, candidates)

        assert pairs(result) == [
            (0.0, 0.0), (0.01, 0.1), (0.005, 0.5),
            (0.0, 1.0), (0.01, 1.1),
            (0.0, 2.0),
        ]

    def test_sequential_calls_in_route_order(self):
        directions = FakeDirections()
        candidates = [poi("b", 0.01, 1.1), poi("a", 0.01, 0.1)]
        run(RouteGenerator(directions, max_concurrency=1), ROUTE, candidates)
        assert [call[1] for call in directions.calls] == [p(0.01, 0.1), p(0.01, 1.1)]


class TestDetourValue:

    def test_detour_is_immutable(self):
        detour = group_detours(ROUTE, [poi("a", 0.01, 1.1)])[0]
        with pytest.raises(dataclasses.FrozenInstanceError):
            detour.entry_index = 0
