from __future__ import annotations

from typing import Optional

from ..schemas.models import LocationFields


def format_location_context(location: LocationFields) -> Optional[str]:
    """Farmer location block appended to the analysis prompts, or None."""
    lines = []
    if location.regionName:
        lines.append(f"- Région: {location.regionName}")
    if location.climateZone:
        lines.append(f"- Zone climatique: {location.climateZone}")
    if location.has_coordinates():
        lines.append(
            f"- Coordonnées GPS: {location.latitude:.4f}, {location.longitude:.4f}"
        )
    if location.altitude is not None:
        lines.append(f"- Altitude: {round(location.altitude)} m")
    if not lines:
        return None
    return (
        "LOCALISATION DE L'AGRICULTEUR:\n"
        + "\n".join(lines)
        + "\nAdapte tes recommandations à cette zone et à la saison actuelle."
    )
