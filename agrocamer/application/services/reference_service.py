"""Per-request reference snapshot read from the configured store."""

from __future__ import annotations

import contextvars
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Sequence

from ...infra.reference_store import ReferenceStore
from ...observability.logging_utils import log_warning
from ...observability.otel import start_span
from ...schemas.reference import ReferenceSnapshot

SNAPSHOT_TABLES = ("crops", "diseases", "treatments", "market_prices")


def _readers(store: ReferenceStore) -> Dict[str, Callable[[], Sequence]]:
    return {
        "crops": store.list_crops,
        "diseases": store.list_diseases,
        "treatments": store.list_treatments,
        "market_prices": store.list_market_prices,
    }


def fetch_reference_snapshot(
    store: ReferenceStore, *, include: Iterable[str] = SNAPSHOT_TABLES
) -> ReferenceSnapshot:
    """Read the requested tables concurrently and wait for all of them.

    A failing read is logged and leaves its table empty; enrichment treats
    an empty table as "no match".
    """
    readers = _readers(store)
    tables: List[str] = [table for table in include if table in readers]
    if not tables:
        return ReferenceSnapshot()

    rows: Dict[str, tuple] = {}
    with start_span("reference.fetch", {"reference.tables": ",".join(tables)}):
        with ThreadPoolExecutor(max_workers=len(tables)) as executor:
            # Each reader runs in its own copy of the caller context (trace id).
            futures = {
                table: executor.submit(contextvars.copy_context().run, readers[table])
                for table in tables
            }
            for table, future in futures.items():
                try:
                    rows[table] = tuple(future.result())
                except Exception as exc:
                    log_warning(
                        "reference_fetch_failed",
                        table=table,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    rows[table] = ()
    return ReferenceSnapshot(**rows)
