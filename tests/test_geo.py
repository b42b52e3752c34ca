import pytest

from dining_enricher.enricher.geo import (
    calculate_distance,
    estimate_drive_time,
    is_on_mountain,
    is_valid_coordinate,
)


def test_distance_to_self_is_zero():
    assert calculate_distance(39.64, -106.37, 39.64, -106.37) == 0


def test_one_degree_of_latitude_is_about_69_miles():
    assert calculate_distance(40.0, -105.0, 41.0, -105.0) == pytest.approx(69.1, abs=0.1)


def test_distance_is_symmetric():
    vail_to_aspen = calculate_distance(39.6403, -106.3742, 39.1911, -106.8175)
    aspen_to_vail = calculate_distance(39.1911, -106.8175, 39.6403, -106.3742)
    assert vail_to_aspen == pytest.approx(aspen_to_vail)
    assert 35 < vail_to_aspen < 45


@pytest.mark.parametrize(
    "lat, lng, expected",
    [
        (39.64, -106.37, True),    # Colorado
        (50.11, -122.95, True),    # British Columbia
        (61.2, -149.9, True),      # Alaska
        (-33.87, 151.21, False),   # Sydney
        (46.0, 7.7, False),        # Alps
        (20.0, -100.0, False),     # South of the box
    ],
)
def test_is_valid_coordinate(lat, lng, expected):
    assert is_valid_coordinate(lat, lng) is expected


def test_on_mountain_threshold_is_one_mile():
    assert is_on_mountain(0.4)
    assert not is_on_mountain(1.0)
    assert not is_on_mountain(3.2)


def test_drive_time_estimate():
    assert estimate_drive_time(0) == 1
    assert estimate_drive_time(35) == 60
    assert estimate_drive_time(10) == 17
