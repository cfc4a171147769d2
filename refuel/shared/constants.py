"""
Constants shared across features.

Default POI categories mirror OpenStreetMap tagging.
"""

# Rough conversion used to pad search boxes
KM_PER_DEGREE = 111.0

# Two points closer than this (degrees) are the same rejoin point
SEAM_TOLERANCE_DEG = 1e-6

APP_NAME = "Refuel"
DEFAULT_ROUTE_NAME = "Refuel Route"
IMPORTED_TRACK_NAME = "Imported Track"
IMPORTED_ROUTE_NAME = "Imported Route"
MODIFIED_ROUTE_SUFFIX = "(Modified)"

UNKNOWN_CATEGORY = "Unknown"

# (id, label, enabled by default, OSM tags)
DEFAULT_CATEGORIES: list[tuple[str, str, bool, tuple[str, ...]]] = [
    (
        "water",
        "Water Supply",
        True,
        ("amenity=drinking_water", "man_made=water_well", "amenity=water_point"),
    ),
    (
        "store",
        "Stores",
        False,
        ("shop=convenience", "shop=supermarket", "shop=general"),
    ),
    (
        "food",
        "Food / Resto",
        False,
        ("amenity=restaurant", "amenity=cafe", "amenity=fast_food"),
    ),
]
