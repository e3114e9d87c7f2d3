# FILE: teletext/errors.py
"""
Error taxonomy for the page pipeline

Every error that may reach the HTTP boundary derives from TeletextError and
carries a fixed status code and a machine-readable code.
"""
from typing import Any, Dict


class TeletextError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: int = None, code: str = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_response(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, "code": self.code}


class InvalidPageError(TeletextError):
    """Malformed or out-of-range page ID"""

    status_code = 400
    code = "INVALID_PAGE"

    def __init__(self, page_id: str, reason: str = "must be 100-899, 404, 666 or 999"):
        super().__init__(f"Invalid page number: {page_id}. {reason[0].upper()}{reason[1:]}.")
        self.page_id = page_id


class InvalidParametersError(TeletextError):
    """Request parameters that the target page does not accept"""

    status_code = 400
    code = "INVALID_PARAMETERS"


class PageNotFoundError(TeletextError):
    """Valid page ID for which no content can be produced"""

    status_code = 404
    code = "PAGE_NOT_FOUND"

    def __init__(self, page_id: str):
        super().__init__(f"Page {page_id} not found")
        self.page_id = page_id


class AdapterError(TeletextError):
    """An adapter's own logic failed, or no adapter owns the page"""

    status_code = 500
    code = "ADAPTER_ERROR"

    def __init__(self, message: str, adapter_name: str):
        super().__init__(f"Adapter error ({adapter_name}): {message}")
        self.adapter_name = adapter_name


class ExternalAPIError(TeletextError):
    """Upstream content or AI provider failure"""

    status_code = 502
    code = "EXTERNAL_API_ERROR"

    def __init__(self, message: str, api_name: str):
        super().__init__(f"External API error ({api_name}): {message}")
        self.api_name = api_name


class RateLimitExceededError(TeletextError):
    """The request throttler exhausted its retries against a rate-limited provider"""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, attempts: int):
        super().__init__(
            f"AI service is busy (rate limited after {attempts} attempts). Please try again later."
        )
        self.attempts = attempts
