from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class WeatherCondition:
    fr: str
    en: str
    icon: str

    def describe(self, language: str) -> str:
        return self.en if language == "en" else self.fr


WMO_CONDITIONS: Dict[int, WeatherCondition] = {
    0: WeatherCondition("Ciel dégagé", "Clear sky", "sun"),
    1: WeatherCondition("Principalement dégagé", "Mainly clear", "sun"),
    2: WeatherCondition("Partiellement nuageux", "Partly cloudy", "cloud-sun"),
    3: WeatherCondition("Couvert", "Overcast", "cloud"),
    45: WeatherCondition("Brouillard", "Fog", "cloud-fog"),
    48: WeatherCondition("Brouillard givrant", "Depositing rime fog", "cloud-fog"),
    51: WeatherCondition("Bruine légère", "Light drizzle", "cloud-drizzle"),
    53: WeatherCondition("Bruine modérée", "Moderate drizzle", "cloud-drizzle"),
    55: WeatherCondition("Bruine dense", "Dense drizzle", "cloud-drizzle"),
    61: WeatherCondition("Pluie légère", "Light rain", "cloud-rain"),
    63: WeatherCondition("Pluie modérée", "Moderate rain", "cloud-rain"),
    65: WeatherCondition("Forte pluie", "Heavy rain", "cloud-rain"),
    80: WeatherCondition("Averses légères", "Light showers", "cloud-rain"),
    81: WeatherCondition("Averses modérées", "Moderate showers", "cloud-rain"),
    82: WeatherCondition("Fortes averses", "Violent showers", "cloud-rain"),
    95: WeatherCondition("Orage", "Thunderstorm", "cloud-lightning"),
    96: WeatherCondition("Orage avec grêle", "Thunderstorm with hail", "cloud-lightning"),
    99: WeatherCondition("Orage violent", "Severe thunderstorm", "cloud-lightning"),
}

_ADVICE = {
    "fr": {
        "rain": "🌧️ Forte probabilité de pluie. Reportez les traitements phytosanitaires.",
        "heat": "🌡️ Chaleur excessive. Arrosez tôt le matin ou en soirée.",
        "humid": "💧 Humidité élevée. Surveillez les maladies fongiques.",
        "ideal": "☀️ Conditions idéales pour le travail au champ.",
        "normal": "📋 Conditions normales pour les activités agricoles.",
    },
    "en": {
        "rain": "🌧️ High rain probability. Postpone pesticide treatments.",
        "heat": "🌡️ Excessive heat. Water early morning or evening.",
        "humid": "💧 High humidity. Watch for fungal diseases.",
        "ideal": "☀️ Ideal conditions for field work.",
        "normal": "📋 Normal conditions for agricultural activities.",
    },
}


def weather_condition(code: object) -> WeatherCondition:
    try:
        key = int(code) if code is not None else 0
    except (TypeError, ValueError):
        key = 0
    return WMO_CONDITIONS.get(key, WMO_CONDITIONS[0])


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def agricultural_advice(
    temp: float, humidity: float, rain_probability: float, language: str = "fr"
) -> str:
    """First matching rule wins: rain, heat, humidity, ideal, normal."""
    texts = _ADVICE["en" if language == "en" else "fr"]
    if rain_probability > 70:
        return texts["rain"]
    if temp > 35:
        return texts["heat"]
    if humidity > 85:
        return texts["humid"]
    if 25 <= temp <= 32 and rain_probability < 30:
        return texts["ideal"]
    return texts["normal"]
