from __future__ import annotations

from typing import Optional

from ..ai.wire import ToolSpec
from ..schemas.models import PlantAnalysis
from .messages import language_label


CAMEROON_CROPS = (
    "cacao, café, maïs, manioc, banane plantain, tomate, gombo, arachide, "
    "haricot, igname, macabo, patate douce"
)

PLANT_SYSTEM_PROMPT = f"""Tu es un expert agronome spécialisé dans les cultures camerounaises et les maladies des plantes en Afrique centrale.
Tu dois analyser l'image fournie et identifier:
1. La culture concernée
2. Si la plante est saine ou non
3. La maladie, le ravageur ou la carence détectée
4. Le niveau de gravité
5. Les solutions adaptées au contexte camerounais

IMPORTANT:
- Propose UNIQUEMENT des traitements disponibles au Cameroun
- Inclus des noms locaux quand disponibles
- Priorise les solutions biologiques
- Pour les traitements chimiques, utilise des produits commerciaux disponibles localement
- Si la plante est saine, mets severity à "healthy" et donne des conseils d'entretien et de rendement
- Adapte le vocabulaire pour des agriculteurs avec un niveau d'éducation variable

Cultures camerounaises courantes: {CAMEROON_CROPS}."""

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

PLANT_TOOL_PARAMETERS = {
    "type": "object",
    "properties": {
        "is_healthy": {"type": "boolean", "description": "La plante est-elle saine"},
        "detected_crop": {"type": "string", "description": "Culture identifiée"},
        "detected_crop_local": {"type": "string", "description": "Nom local de la culture"},
        "disease_name": {
            "type": "string",
            "description": "Nom scientifique ou commun de la maladie/ravageur",
        },
        "local_name": {"type": "string", "description": "Nom local camerounais si disponible"},
        "confidence": {
            "type": "number",
            "description": "Niveau de confiance de la détection (0-100)",
        },
        "severity": {
            "type": "string",
            "enum": ["healthy", "low", "medium", "high", "critical"],
            "description": "Niveau de gravité",
        },
        "description": {"type": "string", "description": "Explication simple"},
        "causes": {**_STRING_LIST, "description": "Causes probables"},
        "symptoms": {**_STRING_LIST, "description": "Symptômes visibles"},
        "biological_treatments": {
            **_STRING_LIST,
            "description": "Traitements biologiques disponibles au Cameroun",
        },
        "chemical_treatments": {
            **_STRING_LIST,
            "description": "Traitements chimiques avec noms commerciaux locaux et dosages",
        },
        "prevention": {**_STRING_LIST, "description": "Mesures préventives"},
        "maintenance_tips": {**_STRING_LIST, "description": "Conseils d'entretien"},
        "yield_improvement_tips": {
            **_STRING_LIST,
            "description": "Conseils pour améliorer le rendement",
        },
    },
    "required": [
        "is_healthy",
        "detected_crop",
        "confidence",
        "severity",
        "description",
        "prevention",
    ],
    "additionalProperties": False,
}

PLANT_JSON_SHAPE = """{
  "is_healthy": "boolean - La plante est-elle saine",
  "detected_crop": "string - Culture identifiée",
  "detected_crop_local": "string - Nom local de la culture",
  "disease_name": "string - Nom scientifique ou commun de la maladie/ravageur (vide si saine)",
  "local_name": "string - Nom local camerounais si disponible",
  "confidence": "number - Niveau de confiance de la détection (0-100)",
  "severity": "string - healthy | low | medium | high | critical",
  "description": "string - Explication simple",
  "causes": ["array of strings - Causes probables"],
  "symptoms": ["array of strings - Symptômes visibles"],
  "biological_treatments": ["array of strings - Traitements biologiques disponibles au Cameroun"],
  "chemical_treatments": ["array of strings - Traitements chimiques avec noms commerciaux locaux et dosages"],
  "prevention": ["array of strings - Mesures préventives"],
  "maintenance_tips": ["array of strings - Conseils d'entretien"],
  "yield_improvement_tips": ["array of strings - Conseils pour améliorer le rendement"]
}"""

PLANT_TOOL = ToolSpec(
    name="analyze_plant_disease",
    description=(
        "Analyse une image de plante et retourne les informations sur la "
        "maladie détectée ou l'état de santé"
    ),
    parameters=PLANT_TOOL_PARAMETERS,
    json_shape=PLANT_JSON_SHAPE,
    result_model=PlantAnalysis,
)


def build_plant_user_prompt(
    language: str,
    *,
    crop: Optional[str] = None,
    location: Optional[str] = None,
) -> str:
    hint = f" (culture indiquée par l'agriculteur: {crop})" if crop else ""
    lines = [f"Analyse cette image de plante{hint}."]
    if location:
        lines.append(location)
    lines.append(
        f"Réponds en {language_label(language)} avec les informations "
        "structurées sur l'état de la plante."
    )
    return "\n\n".join(lines)
