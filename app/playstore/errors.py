import json
from typing import Optional

from googleapiclient.errors import HttpError


class PlayStoreError(Exception):
    """
    Error reported by the Google Play Developer API.

    Carries the HTTP status and the machine-readable reason code from the
    vendor's error body (e.g. ``invalid``, ``applicationNotFound``) so callers
    can tell transient 5xx failures from permanent 4xx ones.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        text = f"googleapi: Error {self.status_code}: {self.message}"
        if self.reason:
            text = f"{text}, {self.reason}"
        return text

    @property
    def is_transient(self) -> bool:
        return self.status_code is not None and self.status_code >= 500

    def to_dict(self) -> dict:
        return {
            "status_code": self.status_code,
            "reason": self.reason,
            "message": self.message,
        }

    @classmethod
    def from_http_error(cls, error: HttpError) -> "PlayStoreError":
        status_code = getattr(error.resp, "status", None)
        if status_code is not None:
            status_code = int(status_code)

        message = None
        reason = None
        try:
            payload = json.loads(error.content.decode("utf-8"))
        except (AttributeError, UnicodeDecodeError, ValueError):
            payload = None

        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            body = payload["error"]
            message = body.get("message")
            details = body.get("errors") or []
            if details and isinstance(details[0], dict):
                reason = details[0].get("reason")
            if not reason and isinstance(body.get("status"), str):
                reason = body["status"]

        if not message and payload is None and error.content:
            # plain-text body, e.g. from a proxy in front of the API
            message = error.content.decode("utf-8", errors="replace").strip()
        if not message:
            message = getattr(error.resp, "reason", None) or "unknown error"
        return cls(message, status_code=status_code, reason=reason)


class CredentialError(PlayStoreError):
    """Service-account credentials are malformed or were rejected."""
