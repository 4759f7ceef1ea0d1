"""GPX track parsing and distance/elevation analysis."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Sequence, Tuple

import gpxpy
import gpxpy.gpx

from .errors import NotFound, ParseError
from .models import TrackPoint

logger = logging.getLogger("bruggi_site.gpx")

EARTH_RADIUS_M = 6_371_000


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to `digits` decimals with halves going away from zero."""
    scale = 10 ** digits
    return math.copysign(math.floor(abs(value) * scale + 0.5), value) / scale


def haversine_m(a: TrackPoint, b: TrackPoint) -> float:
    """Great-circle distance in meters between two points."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def analyze(points: Sequence[TrackPoint]) -> Tuple[int, float]:
    """Return (elevation gain in meters, distance in km) for an ordered track.

    Descents are ignored. Both totals are accumulated unrounded and rounded
    once: gain to the meter, distance to two decimals.
    """
    if len(points) < 2:
        return 0, 0.0

    gain = 0.0
    distance = 0.0
    for prev, point in zip(points, points[1:]):
        delta = point.elevation - prev.elevation
        if delta > 0:
            gain += delta
        distance += haversine_m(prev, point)

    return int(round_half_up(gain)), round_half_up(distance / 1000, 2)


def parse_track_points(path: Path) -> List[TrackPoint]:
    """Read every track point of a GPX file, flattening tracks and segments."""
    if not path.is_file():
        raise NotFound(f"GPX file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            gpx = gpxpy.parse(handle)
    except (gpxpy.gpx.GPXException, ValueError) as exc:
        raise ParseError(f"Invalid GPX data in {path}: {exc}") from exc

    points: List[TrackPoint] = []
    for track in gpx.tracks:
        for segment in track.segments:
            for point in segment.points:
                points.append(
                    TrackPoint(
                        latitude=float(point.latitude),
                        longitude=float(point.longitude),
                        elevation=float(point.elevation or 0.0),
                    )
                )
    logger.debug("Parsed %d track points from %s", len(points), path)
    return points


def analyze_file(path: Path) -> Tuple[int, float]:
    return analyze(parse_track_points(path))
