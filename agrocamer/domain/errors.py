from __future__ import annotations

from typing import Any, Dict, Optional


class AgroCamerError(Exception):
    """Error with an HTTP status and a user-facing message."""

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidRequestError(AgroCamerError):
    status_code = 400


class ProvidersNotConfiguredError(AgroCamerError):
    status_code = 500


class ProvidersUnavailableError(AgroCamerError):
    status_code = 503


class UpstreamServiceError(AgroCamerError):
    status_code = 502
