from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional


class FailureKind(str, Enum):
    RETRYABLE = "retryable"
    FATAL = "fatal"


# 429 rate limit, 402 quota, 5xx upstream trouble, 529 provider overloaded.
DEFAULT_RETRYABLE_STATUSES: FrozenSet[int] = frozenset({402, 429, 500, 503, 529})


@dataclass(frozen=True)
class StatusClassifier:
    """Explicit status -> failure kind table consulted by the invoker.

    Statuses missing from the table fall back to ``default``.
    """

    table: Mapping[int, FailureKind] = field(default_factory=dict)
    default: FailureKind = FailureKind.FATAL

    @classmethod
    def from_statuses(
        cls,
        retryable: Iterable[int] = DEFAULT_RETRYABLE_STATUSES,
        *,
        default: FailureKind = FailureKind.FATAL,
    ) -> "StatusClassifier":
        table: Dict[int, FailureKind] = {
            int(code): FailureKind.RETRYABLE for code in retryable
        }
        return cls(table=table, default=default)

    @classmethod
    def from_codes(cls, raw: Optional[str]) -> "StatusClassifier":
        if not raw:
            return cls.from_statuses()
        codes = []
        for token in raw.replace(";", ",").split(","):
            token = token.strip()
            if token.isdigit():
                codes.append(int(token))
        if not codes:
            return cls.from_statuses()
        return cls.from_statuses(codes)

    def classify(self, status_code: int) -> FailureKind:
        return self.table.get(status_code, self.default)

    def is_retryable(self, status_code: int) -> bool:
        return self.classify(status_code) is FailureKind.RETRYABLE
