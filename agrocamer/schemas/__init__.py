from .models import (
    Alert,
    AlertsRequest,
    AlertsResponse,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    HarvestAnalysis,
    HarvestAnalysisRequest,
    HarvestAnalysisResponse,
    HarvestQuality,
    LocationFields,
    PlantAnalysis,
    PlantAnalysisRequest,
    PlantAnalysisResponse,
    PriceEstimate,
    RegionInfo,
    SellingStrategy,
    Tip,
    TipsRequest,
    TipsResponse,
    WeatherReport,
    WeatherRequest,
    WeatherResponse,
    YieldEstimation,
)
from .reference import (
    AlertRow,
    ChatHistoryRow,
    CropRow,
    DiseaseRow,
    MarketPriceRow,
    ReferenceSnapshot,
    TreatmentRow,
)

__all__ = [
    "Alert",
    "AlertRow",
    "AlertsRequest",
    "AlertsResponse",
    "ChatHistoryRow",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "CropRow",
    "DiseaseRow",
    "ErrorResponse",
    "HarvestAnalysis",
    "HarvestAnalysisRequest",
    "HarvestAnalysisResponse",
    "HarvestQuality",
    "LocationFields",
    "MarketPriceRow",
    "PlantAnalysis",
    "PlantAnalysisRequest",
    "PlantAnalysisResponse",
    "PriceEstimate",
    "ReferenceSnapshot",
    "RegionInfo",
    "SellingStrategy",
    "Tip",
    "TipsRequest",
    "TipsResponse",
    "TreatmentRow",
    "WeatherReport",
    "WeatherRequest",
    "WeatherResponse",
    "YieldEstimation",
]
