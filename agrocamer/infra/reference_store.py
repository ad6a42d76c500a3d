"""Read access to crops, diseases, treatments, market prices and alerts."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from ..schemas.reference import (
    AlertRow,
    CropRow,
    DiseaseRow,
    MarketPriceRow,
    TreatmentRow,
)
from .config import get_config
from .seed_data import (
    SEED_ALERTS,
    SEED_CROPS,
    SEED_DISEASES,
    SEED_MARKET_PRICES,
    SEED_TREATMENTS,
)
from .supabase_client import get_supabase_client

RowT = TypeVar("RowT", bound=BaseModel)

TABLE_MODELS: Dict[str, Type[BaseModel]] = {
    "crops": CropRow,
    "diseases": DiseaseRow,
    "treatments": TreatmentRow,
    "market_prices": MarketPriceRow,
    "agricultural_alerts": AlertRow,
}


def _is_current_alert(row: AlertRow, region: Optional[str], now: datetime) -> bool:
    if not row.is_active:
        return False
    if row.region and region and row.region.lower() != region.lower():
        return False
    if row.expires_at is None:
        return True
    expires_at = row.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at > now


class ReferenceStore:
    def list_crops(self) -> List[CropRow]:
        raise NotImplementedError

    def list_diseases(self) -> List[DiseaseRow]:
        raise NotImplementedError

    def list_treatments(self) -> List[TreatmentRow]:
        raise NotImplementedError

    def list_market_prices(self) -> List[MarketPriceRow]:
        raise NotImplementedError

    def list_active_alerts(self, region: Optional[str] = None) -> List[AlertRow]:
        raise NotImplementedError


class MemoryReferenceStore(ReferenceStore):
    def __init__(
        self,
        *,
        crops: Iterable[CropRow] = (),
        diseases: Iterable[DiseaseRow] = (),
        treatments: Iterable[TreatmentRow] = (),
        market_prices: Iterable[MarketPriceRow] = (),
        alerts: Iterable[AlertRow] = (),
    ) -> None:
        self._crops = list(crops)
        self._diseases = list(diseases)
        self._treatments = list(treatments)
        self._market_prices = list(market_prices)
        self._alerts = list(alerts)

    @classmethod
    def seeded(cls) -> "MemoryReferenceStore":
        return cls(
            crops=SEED_CROPS,
            diseases=SEED_DISEASES,
            treatments=SEED_TREATMENTS,
            market_prices=SEED_MARKET_PRICES,
            alerts=SEED_ALERTS,
        )

    def list_crops(self) -> List[CropRow]:
        return list(self._crops)

    def list_diseases(self) -> List[DiseaseRow]:
        return list(self._diseases)

    def list_treatments(self) -> List[TreatmentRow]:
        return list(self._treatments)

    def list_market_prices(self) -> List[MarketPriceRow]:
        return list(self._market_prices)

    def list_active_alerts(self, region: Optional[str] = None) -> List[AlertRow]:
        now = datetime.now(timezone.utc)
        return [row for row in self._alerts if _is_current_alert(row, region, now)]


class SqliteReferenceStore(ReferenceStore):
    """Each table keeps the row id plus the JSON-encoded row."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = Lock()
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._path)

    def _init_db(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            for table in TABLE_MODELS:
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} ("
                    "id TEXT PRIMARY KEY, "
                    "row_json TEXT NOT NULL)"
                )

    def insert(self, table: str, rows: Sequence[BaseModel]) -> None:
        if table not in TABLE_MODELS:
            raise ValueError(f"unknown reference table: {table}")
        with self._lock, self._connect() as conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO {table} (id, row_json) VALUES (?, ?)",
                [
                    (
                        row.id,
                        json.dumps(row.model_dump(mode="json"), ensure_ascii=False),
                    )
                    for row in rows
                ],
            )

    def seed_if_empty(self) -> None:
        if self.list_crops():
            return
        self.insert("crops", SEED_CROPS)
        self.insert("diseases", SEED_DISEASES)
        self.insert("treatments", SEED_TREATMENTS)
        self.insert("market_prices", SEED_MARKET_PRICES)
        self.insert("agricultural_alerts", SEED_ALERTS)

    def _select(self, table: str, model: Type[RowT]) -> List[RowT]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT row_json FROM {table} ORDER BY id").fetchall()
        return [model.model_validate(json.loads(row[0])) for row in rows]

    def list_crops(self) -> List[CropRow]:
        return self._select("crops", CropRow)

    def list_diseases(self) -> List[DiseaseRow]:
        return self._select("diseases", DiseaseRow)

    def list_treatments(self) -> List[TreatmentRow]:
        return self._select("treatments", TreatmentRow)

    def list_market_prices(self) -> List[MarketPriceRow]:
        return self._select("market_prices", MarketPriceRow)

    def list_active_alerts(self, region: Optional[str] = None) -> List[AlertRow]:
        now = datetime.now(timezone.utc)
        rows = self._select("agricultural_alerts", AlertRow)
        return [row for row in rows if _is_current_alert(row, region, now)]


class SupabaseReferenceStore(ReferenceStore):
    """Hosted Postgres behind the Supabase REST API (service-role client)."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def _select(self, table: str, model: Type[RowT], columns: str = "*") -> List[RowT]:
        response = self._client.table(table).select(columns).execute()
        return [model.model_validate(row) for row in (response.data or [])]

    def list_crops(self) -> List[CropRow]:
        return self._select("crops", CropRow)

    def list_diseases(self) -> List[DiseaseRow]:
        return self._select("diseases", DiseaseRow)

    def list_treatments(self) -> List[TreatmentRow]:
        return self._select("treatments", TreatmentRow)

    def list_market_prices(self) -> List[MarketPriceRow]:
        return self._select("market_prices", MarketPriceRow)

    def list_active_alerts(self, region: Optional[str] = None) -> List[AlertRow]:
        response = (
            self._client.table("agricultural_alerts")
            .select("*")
            .eq("is_active", True)
            .execute()
        )
        now = datetime.now(timezone.utc)
        rows = [AlertRow.model_validate(row) for row in (response.data or [])]
        return [row for row in rows if _is_current_alert(row, region, now)]


def build_reference_store() -> ReferenceStore:
    cfg = get_config()
    store = (cfg.reference_store or "memory").lower()
    if store == "supabase":
        return SupabaseReferenceStore(get_supabase_client())
    if store == "sqlite":
        if cfg.reference_store_path:
            path = Path(cfg.reference_store_path)
        else:
            root = Path(__file__).resolve().parents[2]
            path = root / ".cache" / "reference.sqlite3"
        sqlite_store = SqliteReferenceStore(path)
        sqlite_store.seed_if_empty()
        return sqlite_store
    return MemoryReferenceStore.seeded()


@lru_cache(maxsize=1)
def get_reference_store() -> ReferenceStore:
    return build_reference_store()
