"""Provider registry for the AI fallback chain.

The registry is a pure function of a ``ProviderSettings`` value: the gateway
comes first when its key is set, then each direct Gemini key in declaration
order. Providers without a key are never listed.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


GATEWAY_PROVIDER_NAME = "Lovable AI Gateway"
DIRECT_PROVIDER_PREFIX = "Gemini API"


class WireFormat(str, Enum):
    GATEWAY = "gateway"
    DIRECT_VENDOR = "direct_vendor"


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    endpoint: str
    api_key: str = field(repr=False)
    model: str
    wire_format: WireFormat

    @property
    def is_gateway(self) -> bool:
        return self.wire_format is WireFormat.GATEWAY


@dataclass(frozen=True)
class ProviderSettings:
    gateway_api_key: Optional[str] = field(default=None, repr=False)
    gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    gateway_model: str = "google/gemini-2.5-flash"
    direct_api_keys: Tuple[Optional[str], ...] = field(default=(), repr=False)
    direct_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    direct_model: str = "gemini-2.0-flash"


_KEY_PARAM = re.compile(r"(?:\?|&)key=([^&\s]+)", re.I)
_AUTH_PREFIXES = (
    re.compile(r"^authorization:\s*", re.I),
    re.compile(r"^bearer\s+", re.I),
    re.compile(r"^token\s+", re.I),
)


def sanitize_api_key(value: Optional[str]) -> Optional[str]:
    """Strip the usual copy/paste debris from a credential.

    Returns None when nothing usable is left so callers can treat the key as
    unset.
    """
    if not value:
        return None
    key = value.strip()
    if len(key) >= 2 and key[0] == key[-1] and key[0] in {'"', "'"}:
        key = key[1:-1].strip()
    match = _KEY_PARAM.search(key)
    if match:
        key = match.group(1)
    for prefix in _AUTH_PREFIXES:
        key = prefix.sub("", key)
    key = unicodedata.normalize("NFKC", key)
    key = "".join(ch for ch in key if 0x20 < ord(ch) <= 0x7E)
    return key or None


def build_direct_endpoint(base: str, model: str) -> str:
    return f"{base.rstrip('/')}/models/{model}:generateContent"


def build_providers(
    settings: ProviderSettings, *, gateway_model: Optional[str] = None
) -> List[ProviderDescriptor]:
    providers: List[ProviderDescriptor] = []
    if settings.gateway_api_key:
        providers.append(
            ProviderDescriptor(
                name=GATEWAY_PROVIDER_NAME,
                endpoint=settings.gateway_url,
                api_key=settings.gateway_api_key,
                model=gateway_model or settings.gateway_model,
                wire_format=WireFormat.GATEWAY,
            )
        )
    endpoint = build_direct_endpoint(settings.direct_api_base, settings.direct_model)
    for index, key in enumerate(settings.direct_api_keys, start=1):
        if not key:
            continue
        providers.append(
            ProviderDescriptor(
                name=f"{DIRECT_PROVIDER_PREFIX} {index}",
                endpoint=endpoint,
                api_key=key,
                model=settings.direct_model,
                wire_format=WireFormat.DIRECT_VENDOR,
            )
        )
    return providers
