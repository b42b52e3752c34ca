"""Distance and location heuristics for resort/venue pairs."""
import math

EARTH_RADIUS_MILES = 3959.0

# Rough North America bounds
MIN_LATITUDE, MAX_LATITUDE = 24.0, 72.0
MIN_LONGITUDE, MAX_LONGITUDE = -170.0, -50.0

ON_MOUNTAIN_MAX_MILES = 1.0
MOUNTAIN_ROAD_MPH = 35.0


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two coordinates using the haversine formula.

    Returns:
        float: Distance in miles.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """Check that a coordinate falls inside the supported continent."""
    return MIN_LATITUDE <= lat <= MAX_LATITUDE and MIN_LONGITUDE <= lng <= MAX_LONGITUDE


def is_on_mountain(distance_miles: float) -> bool:
    """Venues closer than a mile to the resort point are treated as on-mountain."""
    return distance_miles < ON_MOUNTAIN_MAX_MILES


def estimate_drive_time(distance_miles: float) -> int:
    """Estimated drive time in whole minutes at mountain-road speed, at least one minute."""
    return max(1, round(distance_miles / MOUNTAIN_ROAD_MPH * 60))
