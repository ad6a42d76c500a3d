from __future__ import annotations

from typing import Dict


IMAGE_REQUIRED = "image_required"
MESSAGES_REQUIRED = "messages_required"
NO_PROVIDERS = "no_providers"
ANALYSIS_UNAVAILABLE = "analysis_unavailable"
CHAT_UNAVAILABLE = "chat_unavailable"
ANALYSIS_FAILED = "analysis_failed"
WEATHER_FAILED = "weather_failed"
UNEXPECTED_ERROR = "unexpected_error"
REQUEST_INVALID = "request_invalid"

_MESSAGES: Dict[str, Dict[str, str]] = {
    "fr": {
        IMAGE_REQUIRED: "Image requise pour l'analyse",
        MESSAGES_REQUIRED: "Messages requis",
        NO_PROVIDERS: "Aucun fournisseur IA configuré",
        ANALYSIS_UNAVAILABLE: (
            "Tous les services IA sont temporairement indisponibles. "
            "Veuillez réessayer plus tard."
        ),
        CHAT_UNAVAILABLE: "Service temporairement indisponible. Veuillez réessayer.",
        ANALYSIS_FAILED: "Une erreur est survenue lors de l'analyse",
        WEATHER_FAILED: "Impossible de récupérer la météo",
        UNEXPECTED_ERROR: "Une erreur est survenue",
        REQUEST_INVALID: "Requête invalide",
    },
    "en": {
        IMAGE_REQUIRED: "An image is required for the analysis",
        MESSAGES_REQUIRED: "Messages are required",
        NO_PROVIDERS: "No AI provider configured",
        ANALYSIS_UNAVAILABLE: (
            "All AI services are temporarily unavailable. Please try again later."
        ),
        CHAT_UNAVAILABLE: "Service temporarily unavailable. Please try again.",
        ANALYSIS_FAILED: "An error occurred during the analysis",
        WEATHER_FAILED: "Unable to fetch the weather",
        UNEXPECTED_ERROR: "An error occurred",
        REQUEST_INVALID: "Invalid request",
    },
}


def normalize_language(language: str | None) -> str:
    value = (language or "").strip().lower()
    return "en" if value.startswith("en") else "fr"


def message(key: str, language: str | None = "fr") -> str:
    return _MESSAGES[normalize_language(language)][key]


def language_label(language: str | None) -> str:
    """Language name as written inside French prompts."""
    return "anglais" if normalize_language(language) == "en" else "français"
