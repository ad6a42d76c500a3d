from __future__ import annotations

from typing import Optional, TypeVar

from ...domain.regions import climate_zone, find_region, nearest_region
from ...schemas.models import LocationFields

LocationT = TypeVar("LocationT", bound=LocationFields)


def with_derived_region(location: LocationT) -> LocationT:
    """Fill regionName/climateZone from GPS coordinates when the client left them out."""
    if not location.has_coordinates():
        return location
    if location.regionName and location.climateZone:
        return location
    match = nearest_region(location.latitude, location.longitude)
    zone = climate_zone(location.latitude, location.longitude, location.altitude)
    return location.model_copy(
        update={
            "regionName": location.regionName or match.region.name,
            "climateZone": location.climateZone or zone.zone,
        }
    )


def location_region_id(location: LocationFields) -> Optional[str]:
    if location.has_coordinates():
        return nearest_region(location.latitude, location.longitude).region.id
    region = find_region(location.regionName)
    return region.id if region else None
