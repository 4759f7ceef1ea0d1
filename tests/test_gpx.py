"""Tests for GPX parsing and track analysis."""

import pytest

from bruggi_site.errors import NotFound, ParseError
from bruggi_site.gpx import (
    analyze,
    analyze_file,
    haversine_m,
    parse_track_points,
    round_half_up,
)
from bruggi_site.models import TrackPoint

from conftest import write_gpx


class TestHaversine:
    def test_symmetric(self):
        a = TrackPoint(44.7431, 9.1892)
        b = TrackPoint(44.7566, 9.2079)
        assert haversine_m(a, b) == pytest.approx(haversine_m(b, a))

    def test_zero_for_identical_points(self):
        a = TrackPoint(44.7431, 9.1892, 900)
        assert haversine_m(a, TrackPoint(44.7431, 9.1892, 1200)) == 0.0

    def test_positive_for_distinct_points(self):
        assert haversine_m(TrackPoint(0, 0), TrackPoint(0, 0.0001)) > 0

    def test_one_degree_of_latitude(self):
        # 2 * pi * 6371 km / 360
        distance = haversine_m(TrackPoint(0, 0), TrackPoint(1, 0))
        assert distance == pytest.approx(111_194.93, abs=0.01)


class TestAnalyze:
    def test_empty_track(self):
        assert analyze([]) == (0, 0.0)

    def test_single_point(self):
        assert analyze([TrackPoint(44.0, 9.0, 1000)]) == (0, 0.0)

    def test_descents_are_ignored(self):
        points = [TrackPoint(44.0, 9.0, ele) for ele in (1000, 1010, 1005, 1020)]
        gain, distance = analyze(points)
        assert gain == 25
        assert distance == 0.0

    def test_gain_rounded_once_at_the_end(self):
        # Three climbs of 0.4 m: per-step rounding would give 0.
        points = [TrackPoint(44.0, 9.0, ele) for ele in (0.0, 0.4, 0.8, 1.2)]
        assert analyze(points)[0] == 1

    def test_distance_rounded_once_at_the_end(self):
        # Each leg is ~4.4 m, i.e. 0.00 km when rounded individually.
        points = [TrackPoint(0.0, i * 0.00004, 0) for i in range(400)]
        expected = sum(haversine_m(a, b) for a, b in zip(points, points[1:])) / 1000
        assert analyze(points)[1] == round_half_up(expected, 2)
        assert analyze(points)[1] > 0

    def test_gain_halves_round_up(self):
        assert analyze([TrackPoint(45.0, 9.0, 100.0), TrackPoint(45.0, 9.0, 100.5)])[0] == 1
        assert analyze([TrackPoint(45.0, 9.0, 100.0), TrackPoint(45.0, 9.0, 102.5)])[0] == 3

    def test_return_types(self):
        gain, distance = analyze([TrackPoint(0, 0, 0), TrackPoint(0.01, 0.01, 10.6)])
        assert isinstance(gain, int) and gain == 11
        assert isinstance(distance, float)


class TestParseTrackPoints:
    def test_flattens_tracks_and_segments(self, tmp_path):
        path = tmp_path / "two.gpx"
        path.write_text(
            """<?xml version="1.0"?>
<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <trkseg>
      <trkpt lat="44.0" lon="9.0"><ele>100</ele></trkpt>
      <trkpt lat="44.1" lon="9.0"><ele>150</ele></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="44.2" lon="9.0"><ele>120</ele></trkpt>
    </trkseg>
  </trk>
  <trk>
    <trkseg>
      <trkpt lat="44.3" lon="9.0"><ele>200</ele></trkpt>
    </trkseg>
  </trk>
</gpx>
""",
            encoding="utf-8",
        )
        points = parse_track_points(path)
        assert [p.latitude for p in points] == [44.0, 44.1, 44.2, 44.3]
        assert [p.elevation for p in points] == [100, 150, 120, 200]

    def test_missing_file(self, tmp_path):
        with pytest.raises(NotFound):
            parse_track_points(tmp_path / "missing.gpx")

    def test_malformed_xml(self, tmp_path):
        path = tmp_path / "broken.gpx"
        path.write_text("<gpx><trk><trkseg>", encoding="utf-8")
        with pytest.raises(ParseError):
            parse_track_points(path)

    def test_unparsable_coordinates(self, tmp_path):
        path = write_gpx(tmp_path / "bad.gpx", [("north", "9.0", 100), ("44.1", "9.0", 120)])
        with pytest.raises(ParseError):
            parse_track_points(path)

    def test_analyze_file(self, tmp_path):
        path = write_gpx(
            tmp_path / "climb.gpx",
            [(44.0, 9.0, 1000), (44.0, 9.0, 1010), (44.0, 9.0, 1005), (44.0, 9.0, 1020)],
        )
        assert analyze_file(path) == (25, 0.0)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,digits,expected",
        [
            (0.5, 0, 1.0),
            (2.5, 0, 3.0),
            (2.4999, 0, 2.0),
            (0.125, 2, 0.13),
            (1.0, 2, 1.0),
            (-2.5, 0, -3.0),
        ],
    )
    def test_halves_go_away_from_zero(self, value, digits, expected):
        assert round_half_up(value, digits) == expected
