from __future__ import annotations

from functools import lru_cache

import httpx

from .config import get_config


def build_http_client(timeout: float | None = None) -> httpx.Client:
    cfg = get_config()
    return httpx.Client(
        timeout=timeout if timeout is not None else cfg.http_timeout_seconds,
        headers={"User-Agent": "agrocamer/0.1"},
    )


@lru_cache(maxsize=1)
def get_http_client() -> httpx.Client:
    return build_http_client()
