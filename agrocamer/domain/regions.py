"""Cameroon regions, nearest-capital lookup and climate zones."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

EARTH_RADIUS_KM = 6371.0
DEFAULT_REGION_ID = "centre"


@dataclass(frozen=True)
class Region:
    id: str
    name: str
    city: str
    lat: float
    lon: float


@dataclass(frozen=True)
class RegionMatch:
    region: Region
    distance_km: Optional[float] = None


@dataclass(frozen=True)
class ClimateZone:
    zone: str
    characteristics: Tuple[str, ...]


CAMEROON_REGIONS: Tuple[Region, ...] = (
    Region("extreme-nord", "Extrême-Nord", "Maroua", 10.5917, 14.3167),
    Region("nord", "Nord", "Garoua", 9.3000, 13.3833),
    Region("adamaoua", "Adamaoua", "Ngaoundéré", 7.3167, 13.5833),
    Region("centre", "Centre", "Yaoundé", 3.8667, 11.5167),
    Region("est", "Est", "Bertoua", 4.5833, 13.6833),
    Region("littoral", "Littoral", "Douala", 4.0503, 9.7000),
    Region("nord-ouest", "Nord-Ouest", "Bamenda", 5.9500, 10.1500),
    Region("ouest", "Ouest", "Bafoussam", 5.4833, 10.4167),
    Region("sud", "Sud", "Ebolowa", 2.9333, 11.1500),
    Region("sud-ouest", "Sud-Ouest", "Buéa", 4.1500, 9.2333),
)

_REGIONS_BY_ID: Dict[str, Region] = {region.id: region for region in CAMEROON_REGIONS}

_SAHEL = ClimateZone(
    "Sahélienne",
    (
        "Saison sèche très longue (8-9 mois)",
        "Températures: 25-45°C",
        "Pluviométrie: 300-600mm/an",
        "Cultures: sorgho, mil, arachide, niébé",
    ),
)
_SUDANO_SAHEL = ClimateZone(
    "Soudano-sahélienne",
    (
        "Saison sèche longue (7-8 mois)",
        "Températures: 25-40°C",
        "Pluviométrie: 600-1000mm/an",
        "Cultures: coton, maïs, sorgho, arachide",
    ),
)
_ADAMAOUA = ClimateZone(
    "Altitude tropicale (Adamaoua)",
    (
        "Climat tempéré d'altitude",
        "Températures: 18-28°C",
        "Pluviométrie: 1400-1800mm/an",
        "Élevage bovin, maïs, patate douce",
    ),
)
_WESTERN_HIGHLANDS = ClimateZone(
    "Hautes terres de l'Ouest",
    (
        "Climat frais et humide",
        "Températures: 15-25°C",
        "Pluviométrie: 1800-3000mm/an",
        "Café arabica, thé, légumes, maraîchage",
    ),
)
_COASTAL = ClimateZone(
    "Côtière équatoriale",
    (
        "Climat très humide toute l'année",
        "Températures: 24-32°C",
        "Pluviométrie: 3000-5000mm/an",
        "Palmier à huile, hévéa, banane plantain",
    ),
)
_FOREST = ClimateZone(
    "Forestière équatoriale",
    (
        "Forêt tropicale humide",
        "Températures: 23-30°C",
        "Pluviométrie: 1500-2500mm/an",
        "Cacao, manioc, macabo, plantain",
    ),
)
_GUINEA_SAVANNA = ClimateZone(
    "Soudano-guinéenne",
    (
        "Deux saisons (sèche et pluies)",
        "Températures: 22-32°C",
        "Pluviométrie: 1200-1600mm/an",
        "Maïs, manioc, igname, légumineuses",
    ),
)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def find_region(text: Optional[str]) -> Optional[Region]:
    """Match a region id or display name such as "Extrême-Nord" or "nord ouest"."""
    if not text:
        return None
    key = text.strip().lower().replace("ê", "e").replace("è", "e").replace(" ", "-")
    return _REGIONS_BY_ID.get(key)


def nearest_region(lat: float, lon: float) -> RegionMatch:
    best = CAMEROON_REGIONS[0]
    best_distance = math.inf
    for region in CAMEROON_REGIONS:
        distance = haversine_km(lat, lon, region.lat, region.lon)
        if distance < best_distance:
            best, best_distance = region, distance
    return RegionMatch(region=best, distance_km=best_distance)


def resolve_region(
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    region_id: Optional[str] = None,
    default: str = DEFAULT_REGION_ID,
) -> RegionMatch:
    """Coordinates win over the region id; unknown ids fall back to ``default``."""
    if latitude is not None and longitude is not None:
        return nearest_region(latitude, longitude)
    region = find_region(region_id) or find_region(default) or _REGIONS_BY_ID[DEFAULT_REGION_ID]
    return RegionMatch(region=region)


def climate_zone(lat: float, lon: float, altitude: Optional[float] = None) -> ClimateZone:
    alt = altitude or 0.0
    if lat > 10:
        return _SAHEL
    if lat > 8:
        return _SUDANO_SAHEL
    if lat > 6 and alt > 800:
        return _ADAMAOUA
    if alt > 1000:
        return _WESTERN_HIGHLANDS
    if lon < 10 and lat < 5:
        return _COASTAL
    if lat < 5:
        return _FOREST
    return _GUINEA_SAVANNA
