from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Severity = Literal["healthy", "low", "medium", "high", "critical"]
Grade = Literal["A", "B", "C"]

_SEVERITY_ALIASES = {
    "none": "healthy",
    "sain": "healthy",
    "saine": "healthy",
    "faible": "low",
    "moderate": "medium",
    "modéré": "medium",
    "modérée": "medium",
    "moyenne": "medium",
    "élevé": "high",
    "élevée": "high",
    "severe": "critical",
    "critique": "critical",
}


class _Lenient(BaseModel):
    """Model output: unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")


# ==================== Requests ====================


class LocationFields(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    accuracy: Optional[float] = None
    regionName: Optional[str] = None
    climateZone: Optional[str] = None

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class PlantAnalysisRequest(LocationFields):
    """Body of analyze-plant. ``image`` is base64 or a data URI."""

    image: Optional[str] = None
    language: str = "fr"
    userSpecifiedCrop: Optional[str] = None
    crop_hint: Optional[str] = None


class HarvestAnalysisRequest(LocationFields):
    image: Optional[str] = None
    language: str = "fr"
    crop_type: Optional[str] = None


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    messages: Optional[List[ChatMessage]] = None
    language: str = "fr"
    region: Optional[str] = None
    session_id: Optional[str] = Field(
        default=None, description="Client session key used for chat history rows."
    )


class WeatherRequest(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    accuracy: Optional[float] = None
    region: Optional[str] = None
    language: str = "fr"


class AlertsRequest(BaseModel):
    region: Optional[str] = None
    language: str = "fr"


class TipsRequest(BaseModel):
    category: str = "seasonal"
    region: Optional[str] = None
    language: str = "fr"


# ==================== AI results ====================


class PlantAnalysis(_Lenient):
    """Plant-health diagnosis returned by the model, possibly enriched."""

    is_healthy: bool
    detected_crop: str
    detected_crop_local: Optional[str] = None
    disease_name: Optional[str] = None
    local_name: Optional[str] = None
    confidence: float = Field(..., ge=0, le=100)
    severity: Severity
    description: str
    causes: List[str] = Field(default_factory=list)
    symptoms: List[str] = Field(default_factory=list)
    biological_treatments: List[str] = Field(default_factory=list)
    chemical_treatments: List[str] = Field(default_factory=list)
    prevention: List[str]
    maintenance_tips: List[str] = Field(default_factory=list)
    yield_improvement_tips: List[str] = Field(default_factory=list)
    from_database: bool = False

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        key = value.strip().lower()
        return _SEVERITY_ALIASES.get(key, key)

    @field_validator(
        "causes",
        "symptoms",
        "biological_treatments",
        "chemical_treatments",
        "maintenance_tips",
        "yield_improvement_tips",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class HarvestQuality(_Lenient):
    color: float = Field(..., ge=0, le=100)
    size: float = Field(..., ge=0, le=100)
    defects: float = Field(..., ge=0, le=100)
    uniformity: float = Field(..., ge=0, le=100)
    maturity: float = Field(..., ge=0, le=100)
    moisture: Optional[float] = None
    cleanliness: Optional[float] = None


class PriceEstimate(_Lenient):
    min: float
    max: float
    currency: str = "XAF"
    unit: str = "kg"
    market: str = ""


class YieldEstimation(_Lenient):
    estimated_yield_per_hectare: str = ""
    yield_potential: Literal["low", "medium", "high", "excellent"] = "medium"
    yield_factors: List[str] = Field(default_factory=list)
    optimization_tips: List[str] = Field(default_factory=list)


class SellingStrategy(_Lenient):
    best_time_to_sell: str = ""
    target_buyers: List[str] = Field(default_factory=list)
    negotiation_tips: List[str] = Field(default_factory=list)


class HarvestAnalysis(_Lenient):
    """Harvest-quality grading returned by the model, possibly enriched."""

    is_good_quality: Optional[bool] = None
    detected_crop: Optional[str] = None
    detected_crop_local: Optional[str] = None
    grade: Grade
    quality: HarvestQuality
    issues_detected: List[str] = Field(default_factory=list)
    recommendedUse: List[str]
    estimatedPrice: PriceEstimate
    yield_estimation: Optional[YieldEstimation] = None
    feedback: str
    improvement_tips: List[str] = Field(default_factory=list)
    storage_tips: List[str] = Field(default_factory=list)
    selling_strategy: Optional[SellingStrategy] = None
    from_database: bool = False

    @field_validator("grade", mode="before")
    @classmethod
    def normalize_grade(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("issues_detected", "improvement_tips", "storage_tips", mode="before")
    @classmethod
    def none_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    @model_validator(mode="after")
    def derive_good_quality(self) -> "HarvestAnalysis":
        if self.is_good_quality is None:
            self.is_good_quality = self.grade in {"A", "B"}
        return self


class Alert(_Lenient):
    id: str = ""
    type: Literal["warning", "info", "danger"] = "info"
    title: str
    message: str
    region: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    source: Literal["database", "ai"] = "ai"

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        key = value.strip().lower()
        return key if key in {"warning", "info", "danger"} else "info"


class Tip(_Lenient):
    id: str = ""
    title: str
    content: str
    category: str = "seasonal"
    readTime: str = "2 min"
    crop: Optional[str] = None


# ==================== Responses ====================


class PlantAnalysisResponse(BaseModel):
    success: bool = True
    analysis: PlantAnalysis
    analyzed_at: datetime
    provider: Optional[str] = None


class HarvestAnalysisResponse(BaseModel):
    success: bool = True
    analysis: HarvestAnalysis
    analyzed_at: datetime
    provider: Optional[str] = None


class ChatResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: datetime
    database_context_used: bool = False


class RegionInfo(BaseModel):
    region: str
    regionName: str
    nearestCity: str
    distanceToCity: Optional[int] = None
    climateZone: str
    climateCharacteristics: List[str] = Field(default_factory=list)
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    source: Literal["gps", "region"] = "region"


class WeatherReport(BaseModel):
    temp: int
    feels_like: int
    humidity: float
    wind_speed: int
    description: str
    icon: str
    location: str
    rain_probability: float
    agricultural_advice: str


class WeatherResponse(BaseModel):
    success: bool = True
    weather: WeatherReport
    location: RegionInfo
    updated_at: datetime


class AlertsResponse(BaseModel):
    success: bool = True
    alerts: List[Alert]
    region: str
    generated_at: datetime


class TipsResponse(BaseModel):
    success: bool = True
    tips: List[Tip]
    category: str
    generated_at: datetime


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
