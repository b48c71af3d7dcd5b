"""Vendor-level failures. These abort the current turn; tool failures never land here."""

from __future__ import annotations


class VendorError(Exception):
    """Base class for errors raised while talking to an LLM vendor."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message)
        self.provider = provider


class VendorHttpError(VendorError):
    """Vendor answered with a status outside 2xx."""

    def __init__(self, provider: str, status_code: int, body: str) -> None:
        super().__init__(provider, f"{provider} API error ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class VendorParseError(VendorError):
    """Vendor answered 2xx but the payload is malformed or missing fields."""

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(provider, f"Invalid response from {provider}: {detail}")
        self.detail = detail


class VendorTransportError(VendorError):
    """The request never produced a response (connection error, timeout)."""
