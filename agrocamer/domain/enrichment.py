"""Overlay authoritative database values onto model-produced analyses.

Matching is advisory: a miss leaves the model output as it was. Both
``enrich_*`` functions return a copy and never touch their input.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..schemas.models import HarvestAnalysis, PlantAnalysis, PriceEstimate
from ..schemas.reference import (
    CropRow,
    DiseaseRow,
    MarketPriceRow,
    ReferenceSnapshot,
)

CHEMICAL_TREATMENT = "chemical"


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def names_match(left: Optional[str], right: Optional[str]) -> bool:
    a, b = _norm(left), _norm(right)
    if not a or not b:
        return False
    return a in b or b in a


def find_crop(snapshot: ReferenceSnapshot, name: Optional[str]) -> Optional[CropRow]:
    for crop in snapshot.crops:
        if names_match(name, crop.name) or names_match(name, crop.name_local):
            return crop
    return None


def find_disease(
    snapshot: ReferenceSnapshot,
    name: Optional[str],
    crop: Optional[CropRow] = None,
) -> Optional[DiseaseRow]:
    matches = [
        disease
        for disease in snapshot.diseases
        if names_match(name, disease.name) or names_match(name, disease.name_local)
    ]
    if not matches:
        return None
    if crop is not None:
        for disease in matches:
            if disease.crop_id == crop.id:
                return disease
    return matches[0]


def _recorded_key(row: MarketPriceRow) -> float:
    if row.recorded_at is None:
        return float("-inf")
    return row.recorded_at.timestamp()


def find_price(
    snapshot: ReferenceSnapshot,
    crop: CropRow,
    grade: Optional[str],
    region: Optional[str] = None,
) -> Optional[MarketPriceRow]:
    wanted_grade = _norm(grade)
    wanted_region = _norm(region)
    rows = [
        row
        for row in snapshot.market_prices
        if row.crop_id == crop.id and _norm(row.quality_grade) == wanted_grade
    ]
    if not rows:
        return None
    return max(
        rows,
        key=lambda row: (
            bool(wanted_region) and _norm(row.region) == wanted_region,
            _recorded_key(row),
        ),
    )


def enrich_plant_analysis(
    result: PlantAnalysis, snapshot: ReferenceSnapshot
) -> PlantAnalysis:
    updates: Dict[str, Any] = {}
    crop = find_crop(snapshot, result.detected_crop)
    if crop is not None and not result.detected_crop_local and crop.name_local:
        updates["detected_crop_local"] = crop.name_local

    disease = None
    if not result.is_healthy:
        disease = find_disease(snapshot, result.disease_name, crop)
    if disease is not None:
        if not result.local_name and disease.name_local:
            updates["local_name"] = disease.name_local
        if disease.symptoms:
            updates["symptoms"] = list(disease.symptoms)
        if disease.causes:
            updates["causes"] = list(disease.causes)
        treatments = [row for row in snapshot.treatments if row.disease_id == disease.id]
        if treatments:
            updates["chemical_treatments"] = [
                row.describe() for row in treatments if _norm(row.type) == CHEMICAL_TREATMENT
            ]
            updates["biological_treatments"] = [
                row.describe() for row in treatments if _norm(row.type) != CHEMICAL_TREATMENT
            ]
        updates["from_database"] = True

    return result.model_copy(update=updates, deep=True)


def enrich_harvest_analysis(
    result: HarvestAnalysis,
    snapshot: ReferenceSnapshot,
    region: Optional[str] = None,
) -> HarvestAnalysis:
    updates: Dict[str, Any] = {}
    crop = find_crop(snapshot, result.detected_crop)
    if crop is None:
        return result.model_copy(deep=True)
    if not result.detected_crop_local and crop.name_local:
        updates["detected_crop_local"] = crop.name_local

    price = find_price(snapshot, crop, result.grade, region)
    if price is not None:
        updates["estimatedPrice"] = PriceEstimate(
            min=price.price_min,
            max=price.price_max,
            currency=price.currency,
            unit=price.unit,
            market=price.market_name,
        )
        updates["from_database"] = True

    return result.model_copy(update=updates, deep=True)
