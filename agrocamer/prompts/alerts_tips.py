from __future__ import annotations

from datetime import date
from typing import Optional

from .messages import language_label


ALERTS_MAX_TOKENS = 512
ALERTS_TEMPERATURE = 0.8
TIPS_MAX_TOKENS = 2048
TIPS_TEMPERATURE = 0.7

TIP_CATEGORIES = ("seasonal", "crops", "regional", "guides")
DEFAULT_TIP_CATEGORY = "seasonal"

FRENCH_MONTHS = (
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
)

ALERTS_SYSTEM_PROMPT = "Tu es un système d'alerte agricole pour le Cameroun."
TIPS_SYSTEM_PROMPT = "Tu es un conseiller agricole pour les agriculteurs camerounais."


def month_name(today: Optional[date] = None) -> str:
    today = today or date.today()
    return FRENCH_MONTHS[today.month - 1]


def normalize_tip_category(category: Optional[str]) -> str:
    value = (category or "").strip().lower()
    return value if value in TIP_CATEGORIES else DEFAULT_TIP_CATEGORY


def build_alerts_prompt(region: str, language: str, today: Optional[date] = None) -> str:
    return f"""Génère 1 à 2 alertes agricoles pertinentes pour la région "{region}" au mois de {month_name(today)}.

Les alertes doivent être:
- Réalistes et basées sur les problèmes agricoles courants au Cameroun
- Spécifiques à la saison actuelle
- Utiles pour les agriculteurs locaux

Types d'alertes possibles:
- Ravageurs saisonniers (chenilles légionnaires, charançons, etc.)
- Maladies des cultures (pourriture brune du cacao, mosaïque du manioc, etc.)
- Conditions météorologiques (sécheresse, inondations, etc.)
- Conseils de plantation selon le calendrier agricole
- Alertes prix du marché

Réponds UNIQUEMENT avec un tableau JSON valide, sans texte avant ou après:
[
  {{
    "id": "unique_id",
    "type": "warning|info|danger",
    "title": "Titre court",
    "message": "Message détaillé (max 100 mots)"
  }}
]

Langue: {language_label(language)}"""


def _category_request(category: str, region: str, today: Optional[date]) -> str:
    if category == "crops":
        return (
            "Génère 4 conseils pratiques pour les cultures principales du Cameroun "
            "(cacao, café, maïs, manioc, banane plantain)."
        )
    if category == "regional":
        return f"Génère 4 conseils agricoles spécifiques à la région {region} du Cameroun."
    if category == "guides":
        return (
            "Génère 4 guides pratiques courts pour les agriculteurs camerounais "
            "(préparation du sol, récolte, stockage, vente)."
        )
    return (
        f"Génère 4 conseils agricoles saisonniers pour le mois de {month_name(today)} "
        f"au Cameroun, région {region}."
    )


def build_tips_prompt(
    category: str, region: str, language: str, today: Optional[date] = None
) -> str:
    category = normalize_tip_category(category)
    return f"""{_category_request(category, region, today)}

Chaque conseil doit être:
- Pratique et actionnable
- Adapté au contexte camerounais
- Court mais informatif (50-100 mots de contenu)

Réponds UNIQUEMENT avec un tableau JSON valide:
[
  {{
    "id": "unique_id",
    "title": "Titre du conseil",
    "content": "Contenu détaillé du conseil...",
    "category": "{category}",
    "readTime": "X min",
    "crop": "culture concernée si applicable"
  }}
]

Langue: {language_label(language)}"""
