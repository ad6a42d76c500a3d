from __future__ import annotations

from typing import Optional

from ..ai.wire import ToolSpec
from ..schemas.models import HarvestAnalysis
from .messages import language_label


HARVEST_SYSTEM_PROMPT = """Tu es un expert en évaluation de la qualité des récoltes agricoles au Cameroun.
Tu dois analyser l'image de produits agricoles et évaluer:
1. Le produit récolté
2. La qualité visuelle (couleur, taille, uniformité, maturité)
3. Le pourcentage de défauts
4. Le grade de qualité (A=Export, B=Marché local, C=Transformation)
5. Les utilisations recommandées
6. Le prix estimé sur les marchés camerounais
7. Les conseils de stockage et de vente

IMPORTANT:
- Base tes estimations de prix sur les marchés camerounais actuels (Mokolo, Mboppi, Sandaga, etc.)
- Devise: XAF (Franc CFA)
- Sois réaliste et précis dans tes évaluations
- Prends en compte la saison actuelle pour les prix"""

_SCORE = {"type": "number", "minimum": 0, "maximum": 100}
_STRING_LIST = {"type": "array", "items": {"type": "string"}}

HARVEST_TOOL_PARAMETERS = {
    "type": "object",
    "properties": {
        "is_good_quality": {"type": "boolean", "description": "Récolte de bonne qualité"},
        "detected_crop": {"type": "string", "description": "Produit identifié"},
        "detected_crop_local": {"type": "string", "description": "Nom local du produit"},
        "grade": {
            "type": "string",
            "enum": ["A", "B", "C"],
            "description": "Grade de qualité global",
        },
        "quality": {
            "type": "object",
            "properties": {
                "color": {**_SCORE, "description": "Score couleur 0-100"},
                "size": {**_SCORE, "description": "Score taille 0-100"},
                "defects": {**_SCORE, "description": "Pourcentage de défauts 0-100"},
                "uniformity": {**_SCORE, "description": "Score uniformité 0-100"},
                "maturity": {**_SCORE, "description": "Score maturité 0-100"},
            },
            "required": ["color", "size", "defects", "uniformity", "maturity"],
        },
        "issues_detected": {**_STRING_LIST, "description": "Problèmes observés"},
        "recommendedUse": {**_STRING_LIST, "description": "Utilisations recommandées"},
        "estimatedPrice": {
            "type": "object",
            "properties": {
                "min": {"type": "number", "description": "Prix minimum estimé"},
                "max": {"type": "number", "description": "Prix maximum estimé"},
                "currency": {"type": "string", "description": "Devise (XAF)"},
                "unit": {"type": "string", "description": "Unité (kg, sac, etc.)"},
                "market": {"type": "string", "description": "Marché de référence au Cameroun"},
            },
            "required": ["min", "max", "currency", "unit", "market"],
        },
        "feedback": {"type": "string", "description": "Commentaire détaillé sur la qualité"},
        "improvement_tips": {**_STRING_LIST, "description": "Conseils d'amélioration"},
        "storage_tips": {**_STRING_LIST, "description": "Conseils de stockage"},
        "selling_strategy": {
            "type": "object",
            "properties": {
                "best_time_to_sell": {"type": "string"},
                "target_buyers": _STRING_LIST,
                "negotiation_tips": _STRING_LIST,
            },
        },
    },
    "required": ["grade", "quality", "recommendedUse", "estimatedPrice", "feedback"],
    "additionalProperties": False,
}

HARVEST_JSON_SHAPE = """{
  "is_good_quality": "boolean - Récolte de bonne qualité",
  "detected_crop": "string - Produit identifié",
  "detected_crop_local": "string - Nom local du produit",
  "grade": "string - A | B | C",
  "quality": {
    "color": "number - Score couleur 0-100",
    "size": "number - Score taille 0-100",
    "defects": "number - Pourcentage de défauts 0-100",
    "uniformity": "number - Score uniformité 0-100",
    "maturity": "number - Score maturité 0-100"
  },
  "issues_detected": ["array of strings - Problèmes observés"],
  "recommendedUse": ["array of strings - Utilisations recommandées"],
  "estimatedPrice": {
    "min": "number - Prix minimum estimé",
    "max": "number - Prix maximum estimé",
    "currency": "string - XAF",
    "unit": "string - kg, sac, etc.",
    "market": "string - Marché de référence au Cameroun"
  },
  "feedback": "string - Commentaire détaillé sur la qualité",
  "improvement_tips": ["array of strings - Conseils d'amélioration"],
  "storage_tips": ["array of strings - Conseils de stockage"],
  "selling_strategy": {
    "best_time_to_sell": "string",
    "target_buyers": ["array of strings"],
    "negotiation_tips": ["array of strings"]
  }
}"""

HARVEST_TOOL = ToolSpec(
    name="analyze_harvest_quality",
    description="Analyse la qualité d'une récolte et retourne les informations détaillées",
    parameters=HARVEST_TOOL_PARAMETERS,
    json_shape=HARVEST_JSON_SHAPE,
    result_model=HarvestAnalysis,
)


def build_harvest_user_prompt(
    language: str,
    *,
    crop: Optional[str] = None,
    location: Optional[str] = None,
) -> str:
    product = f" (produit: {crop})" if crop else ""
    lines = [
        f"Analyse cette image de récolte{product}.\n"
        "Évalue la qualité et donne une estimation de prix pour le marché camerounais."
    ]
    if location:
        lines.append(location)
    lines.append(f"Réponds en {language_label(language)}.")
    return "\n\n".join(lines)
