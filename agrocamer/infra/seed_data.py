"""Starter reference rows for the in-memory store and local sqlite databases."""

from __future__ import annotations

from datetime import datetime

from ..schemas.reference import (
    AlertRow,
    CropRow,
    DiseaseRow,
    MarketPriceRow,
    TreatmentRow,
)


SEED_CROPS = [
    CropRow(id="crop-cacao", name="Cacao", name_local="Kakao", category="cash_crop",
            regions=["centre", "sud", "sud-ouest", "est"]),
    CropRow(id="crop-maize", name="Maïs", name_local="Mbassi", category="cereal",
            regions=["ouest", "nord-ouest", "adamaoua", "nord", "centre"]),
    CropRow(id="crop-cassava", name="Manioc", name_local="Mbong", category="tuber",
            regions=["centre", "sud", "est", "littoral"]),
    CropRow(id="crop-tomato", name="Tomate", name_local="Tomato", category="vegetable",
            regions=["ouest", "nord-ouest", "centre"]),
    CropRow(id="crop-plantain", name="Banane plantain", name_local="Ekon", category="fruit",
            regions=["littoral", "sud-ouest", "centre", "ouest"]),
]

SEED_DISEASES = [
    DiseaseRow(
        id="disease-black-pod",
        crop_id="crop-cacao",
        name="Pourriture brune (Phytophthora megakarya)",
        name_local="Black pod",
        severity="high",
        symptoms=["Taches brunes sur les cabosses", "Duvet blanc sur les cabosses atteintes"],
        causes=["Champignon Phytophthora megakarya", "Forte humidité en saison des pluies"],
    ),
    DiseaseRow(
        id="disease-cassava-mosaic",
        crop_id="crop-cassava",
        name="Mosaïque du manioc",
        name_local="Cassava mosaic",
        severity="medium",
        symptoms=["Feuilles jaunes marbrées", "Feuilles déformées", "Croissance ralentie"],
        causes=["Virus transmis par la mouche blanche", "Boutures infectées"],
    ),
    DiseaseRow(
        id="disease-fall-armyworm",
        crop_id="crop-maize",
        name="Chenille légionnaire d'automne",
        name_local="Fall armyworm",
        severity="high",
        symptoms=["Trous dans les feuilles", "Sciure dans le cornet"],
        causes=["Spodoptera frugiperda"],
    ),
    DiseaseRow(
        id="disease-late-blight",
        crop_id="crop-tomato",
        name="Mildiou de la tomate",
        name_local="Late blight",
        severity="high",
        symptoms=["Taches brunes huileuses sur les feuilles", "Fruits bruns et fermes"],
        causes=["Phytophthora infestans", "Temps frais et humide"],
    ),
]

SEED_TREATMENTS = [
    TreatmentRow(id="treat-black-pod-1", disease_id="disease-black-pod", name="Récolte sanitaire",
                 type="cultural", application_method="Retirer les cabosses atteintes chaque semaine"),
    TreatmentRow(id="treat-black-pod-2", disease_id="disease-black-pod", name="Ridomil Gold 66 WP",
                 type="chemical", dosage="50 g / 15 L", application_method="Pulvérisation des cabosses"),
    TreatmentRow(id="treat-mosaic-1", disease_id="disease-cassava-mosaic", name="Boutures saines certifiées",
                 type="biological"),
    TreatmentRow(id="treat-armyworm-1", disease_id="disease-fall-armyworm", name="Extrait de neem",
                 type="biological", dosage="50 ml / 15 L"),
    TreatmentRow(id="treat-armyworm-2", disease_id="disease-fall-armyworm", name="Emamectine benzoate",
                 type="chemical", dosage="10 ml / 15 L"),
    TreatmentRow(id="treat-blight-1", disease_id="disease-late-blight", name="Bouillie bordelaise",
                 type="biological", dosage="200 g / 15 L"),
    TreatmentRow(id="treat-blight-2", disease_id="disease-late-blight", name="Mancozèbe 80 WP",
                 type="chemical", dosage="40 g / 15 L"),
]

SEED_MARKET_PRICES = [
    MarketPriceRow(id="price-cacao-a", crop_id="crop-cacao", market_name="Douala", region="littoral",
                   price_min=1400, price_max=1600, unit="kg", quality_grade="A",
                   recorded_at=datetime(2025, 1, 15)),
    MarketPriceRow(id="price-cacao-b", crop_id="crop-cacao", market_name="Yaoundé", region="centre",
                   price_min=1100, price_max=1300, unit="kg", quality_grade="B",
                   recorded_at=datetime(2025, 1, 15)),
    MarketPriceRow(id="price-maize-a", crop_id="crop-maize", market_name="Mokolo", region="centre",
                   price_min=250, price_max=300, unit="kg", quality_grade="A",
                   recorded_at=datetime(2025, 1, 10)),
    MarketPriceRow(id="price-tomato-b", crop_id="crop-tomato", market_name="Mboppi", region="littoral",
                   price_min=8000, price_max=12000, unit="cageot", quality_grade="B",
                   recorded_at=datetime(2025, 1, 12)),
]

SEED_ALERTS = [
    AlertRow(id="alert-armyworm", type="warning", title="Chenille légionnaire",
             message="Inspectez le cornet des jeunes plants de maïs deux fois par semaine.",
             region=None, severity="medium"),
]
