"""
GPX Parser Service

Reads GPX 1.0/1.1 tracks or routes into a Route and writes a Route back
as a single-track GPX 1.1 document.
"""

import logging
import math
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import List, Optional, Union

import gpxpy
import gpxpy.gpx
import gpxpy.gpxfield

from refuel.shared.constants import (
    APP_NAME,
    DEFAULT_ROUTE_NAME,
    IMPORTED_ROUTE_NAME,
    IMPORTED_TRACK_NAME,
)
from refuel.shared.exceptions import EmptyRouteError, ParseError
from .schemas import GeoPoint, Route

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip the XML namespace: '{ns}trkpt' -> 'trkpt'."""
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in _children(element, name):
        if child.text and child.text.strip():
            return child.text.strip()
    return None


class GPXParserService:
    """Service for parsing and writing GPX files."""

    @staticmethod
    def parse(content: Union[str, bytes]) -> Route:
        """
        Parse GPX content into a Route.

        Tracks take precedence over routes: the first `trk` (all of its
        segments, in order) is used when present, otherwise the first `rte`.
        Points without lat/lon are skipped. A file with no usable points
        (or without any trk/rte) parses to an empty route; use `load()` to
        reject it.

        Args:
            content: GPX document as text or bytes

        Returns:
            Route (possibly empty)

        Raises:
            ParseError: If XML is malformed, the root is not <gpx>, or a
                coordinate is not a number or out of range
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            logger.error(f"Failed to parse GPX: {e}")
            raise ParseError(f"Invalid GPX file: {e}")

        if _local_name(root.tag) != "gpx":
            raise ParseError(f"Invalid GPX file: unexpected root element <{_local_name(root.tag)}>")

        tracks = _children(root, "trk")
        routes = _children(root, "rte")

        if tracks:
            track = tracks[0]
            name = _child_text(track, "name") or IMPORTED_TRACK_NAME
            elements = [
                point
                for segment in _children(track, "trkseg")
                for point in _children(segment, "trkpt")
            ]
        elif routes:
            rte = routes[0]
            name = _child_text(rte, "name") or IMPORTED_ROUTE_NAME
            elements = _children(rte, "rtept")
        else:
            logger.info("GPX file contains no track or route")
            return Route()

        points: List[GeoPoint] = []
        skipped = 0
        for element in elements:
            point = GPXParserService._parse_point(element)
            if point is None:
                skipped += 1
                continue
            points.append(point)

        if skipped:
            logger.debug(f"Skipped {skipped} GPX points without coordinates")

        return Route(name=name, points=tuple(points))

    @staticmethod
    def _parse_point(element: ET.Element) -> Optional[GeoPoint]:
        """Build a GeoPoint from a trkpt/rtept element, None if lat/lon missing."""
        lat_raw = (element.get("lat") or "").strip()
        lon_raw = (element.get("lon") or "").strip()
        if not lat_raw or not lon_raw:
            return None

        try:
            lat = float(lat_raw)
            lon = float(lon_raw)
        except ValueError:
            raise ParseError(f"Invalid coordinates: lat={lat_raw!r} lon={lon_raw!r}")

        if not (-90 <= lat <= 90) or not (-180 <= lon <= 180):
            raise ParseError(f"Coordinates out of range: lat={lat} lon={lon}")

        elevation = None
        ele_text = _child_text(element, "ele")
        if ele_text is not None:
            try:
                elevation = float(ele_text)
            except ValueError:
                logger.debug(f"Ignoring invalid elevation {ele_text!r}")
            else:
                if not math.isfinite(elevation):
                    elevation = None

        return GeoPoint(
            latitude=lat,
            longitude=lon,
            elevation=elevation,
            timestamp=_child_text(element, "time"),
        )

    @staticmethod
    def validate(route: Route) -> Route:
        """
        Ensure the route has at least one point.

        Raises:
            EmptyRouteError: If route has no points
        """
        if route.is_empty:
            raise EmptyRouteError("No valid route found in GPX file")
        return route

    @staticmethod
    def load(content: Union[str, bytes]) -> Route:
        """Parse and validate: the entry point for user-supplied files."""
        return GPXParserService.validate(GPXParserService.parse(content))

    @staticmethod
    def serialize(route: Route, now: Optional[datetime] = None) -> str:
        """
        Write route as a GPX 1.1 document with one track and one segment.

        Args:
            route: Route to export
            now: Generation timestamp for metadata (default: current UTC time)

        Returns:
            GPX XML text
        """
        name = route.name or DEFAULT_ROUTE_NAME

        gpx = gpxpy.gpx.GPX()
        gpx.creator = APP_NAME
        gpx.name = name
        gpx.time = now or datetime.now(timezone.utc)

        track = gpxpy.gpx.GPXTrack(name=name)
        segment = gpxpy.gpx.GPXTrackSegment()
        track.segments.append(segment)
        gpx.tracks.append(track)

        for point in route.points:
            segment.points.append(gpxpy.gpx.GPXTrackPoint(
                latitude=point.latitude,
                longitude=point.longitude,
                elevation=point.elevation,
                time=GPXParserService._parse_time(point.timestamp),
            ))

        return gpx.to_xml(version="1.1")

    @staticmethod
    def _parse_time(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        try:
            return gpxpy.gpxfield.parse_time(value)
        except (gpxpy.gpx.GPXException, ValueError) as e:
            logger.debug(f"Dropping unparseable time {value!r}: {e}")
            return None
