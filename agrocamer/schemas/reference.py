"""Read-only rows mirrored from the hosted database."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, List, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _as_list(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                return [text]
        return [text]
    return value


TextList = Annotated[List[str], BeforeValidator(_as_list)]


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CropRow(_Row):
    id: str
    name: str
    name_local: Optional[str] = None
    category: str = "vegetable"
    regions: TextList = Field(default_factory=list)
    growing_season: TextList = Field(default_factory=list)
    description: Optional[str] = None


class DiseaseRow(_Row):
    id: str
    crop_id: Optional[str] = None
    name: str
    name_local: Optional[str] = None
    severity: Optional[str] = None
    description: Optional[str] = None
    symptoms: TextList = Field(default_factory=list)
    causes: TextList = Field(default_factory=list)


class TreatmentRow(_Row):
    id: str
    disease_id: Optional[str] = None
    name: str
    type: str = "biological"
    description: Optional[str] = None
    dosage: Optional[str] = None
    application_method: Optional[str] = None
    availability: Optional[str] = None
    price_range: Optional[str] = None

    def describe(self) -> str:
        text = self.name
        if self.dosage:
            text = f"{text} - {self.dosage}"
        if self.application_method:
            text = f"{text} ({self.application_method})"
        return text


class MarketPriceRow(_Row):
    id: str
    crop_id: Optional[str] = None
    market_name: str
    region: str
    price_min: float
    price_max: float
    currency: str = "XAF"
    unit: str = "kg"
    quality_grade: Optional[str] = None
    recorded_at: Optional[datetime] = None


class AlertRow(_Row):
    id: str
    type: str = "info"
    title: str
    message: str
    region: Optional[str] = None
    severity: Optional[str] = None
    is_active: bool = True
    crop_id: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ChatHistoryRow(_Row):
    session_id: str
    role: str
    content: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReferenceSnapshot:
    """Rows read at the start of one request. Missing tables stay empty."""

    crops: Tuple[CropRow, ...] = ()
    diseases: Tuple[DiseaseRow, ...] = ()
    treatments: Tuple[TreatmentRow, ...] = ()
    market_prices: Tuple[MarketPriceRow, ...] = ()

    def is_empty(self) -> bool:
        return not (self.crops or self.diseases or self.treatments or self.market_prices)

    def crop_name(self, crop_id: Optional[str]) -> Optional[str]:
        for crop in self.crops:
            if crop.id == crop_id:
                return crop.name
        return None

    def to_prompt_context(self, limit: int = 20) -> str:
        lines: List[str] = []
        if self.crops:
            names = []
            for crop in self.crops[:limit]:
                names.append(f"{crop.name} ({crop.name_local})" if crop.name_local else crop.name)
            lines.append("Cultures: " + ", ".join(names))
        if self.diseases:
            lines.append("Maladies connues:")
            for disease in self.diseases[:limit]:
                label = disease.name
                crop = self.crop_name(disease.crop_id)
                if crop:
                    label = f"{label} [{crop}]"
                if disease.symptoms:
                    label = f"{label}: {', '.join(disease.symptoms[:3])}"
                lines.append(f"- {label}")
        if self.market_prices:
            lines.append("Prix du marché:")
            for price in self.market_prices[:limit]:
                crop = self.crop_name(price.crop_id) or price.crop_id or "?"
                grade = f" grade {price.quality_grade}" if price.quality_grade else ""
                lines.append(
                    f"- {crop}{grade}: {price.price_min:g}-{price.price_max:g} "
                    f"{price.currency}/{price.unit} ({price.market_name}, {price.region})"
                )
        return "\n".join(lines)
