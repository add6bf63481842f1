import pytest

from app.core.exceptions import ValidationError
from app.utils import geo_math


def test_distance_is_symmetric_and_zero_on_same_point():
    a = geo_math.distance_km(19.0760, 72.8777, 18.9220, 72.8347)
    b = geo_math.distance_km(18.9220, 72.8347, 19.0760, 72.8777)

    assert a == pytest.approx(b)
    assert geo_math.distance_km(10.0, 20.0, 10.0, 20.0) == 0.0


def test_distance_across_mumbai_harbour():
    distance = geo_math.distance_km(19.0760, 72.8777, 18.9220, 72.8347)
    assert abs(distance - 17.3) <= 0.5


def test_one_degree_of_latitude():
    assert geo_math.distance_km(0, 0, 1, 0) == pytest.approx(111.19, abs=0.01)


def test_antipodal_distance_does_not_fail():
    distance = geo_math.distance_km(0, 0, 0, 180)
    assert distance == pytest.approx(geo_math.EARTH_RADIUS_KM * 3.141592653589793)


def test_bearing_is_within_range():
    assert geo_math.bearing(0, 0, 1, 0) == pytest.approx(0.0)
    assert geo_math.bearing(0, 0, 0, 1) == pytest.approx(90.0)
    assert geo_math.bearing(0, 0, -1, 0) == pytest.approx(180.0)
    assert geo_math.bearing(0, 0, 0, -1) == pytest.approx(270.0)

    for lat2, lng2 in [(18.9, 72.8), (-33.9, 151.2), (51.5, -0.1)]:
        value = geo_math.bearing(19.0760, 72.8777, lat2, lng2)
        assert 0.0 <= value < 360.0


def test_safe_zone_box_contains_center():
    zone = geo_math.safe_zone(19.0, 72.8, 10)

    assert zone.north > 19.0 > zone.south
    assert zone.east > 72.8 > zone.west
    # longitude span widens away from the equator
    assert (zone.east - zone.west) > (zone.north - zone.south)
    assert geo_math.is_in_zone(19.0, 72.8, zone)
    assert not geo_math.is_in_zone(20.0, 72.8, zone)


def test_safe_zone_rejects_poles_and_negative_radius():
    with pytest.raises(ValidationError):
        geo_math.safe_zone(90.0, 0.0, 10)
    with pytest.raises(ValidationError):
        geo_math.safe_zone(-90.0, 0.0, 10)
    with pytest.raises(ValidationError):
        geo_math.safe_zone(10.0, 0.0, -1)


def test_zone_polygon_vertices():
    points = geo_math.zone_polygon(19.0, 72.8, 10, sides=4)

    assert len(points) == 4
    # first vertex due north of the center
    assert points[0].lng == pytest.approx(72.8)
    assert points[0].lat > 19.0

    with pytest.raises(ValidationError):
        geo_math.zone_polygon(19.0, 72.8, 10, sides=2)


def test_nearest_zone_empty_and_ties():
    assert geo_math.nearest_zone(19.0, 72.8, []) is None

    west = geo_math.safe_zone(10.0, -0.5, 5)
    east = geo_math.safe_zone(10.0, 0.5, 5)
    far = geo_math.safe_zone(15.0, 0.0, 5)

    # equidistant zones keep list order
    nearest = geo_math.nearest_zone(10.0, 0.0, [far, east, west])
    assert nearest.zone == east
    assert nearest.distance_km == pytest.approx(
        geo_math.distance_km(10.0, 0.0, 10.0, 0.5)
    )
    assert nearest.bearing == pytest.approx(90.0, abs=0.1)
    assert 0.0 <= nearest.bearing < 360.0
