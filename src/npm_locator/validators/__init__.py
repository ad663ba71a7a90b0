"""Request and response validation against the published JSON Schemas."""

from .schemas import InvalidRequestError, validate_request, validate_response

__all__ = [
    "InvalidRequestError",
    "validate_request",
    "validate_response",
]
