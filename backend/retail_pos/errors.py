# Overview: Typed failures shared by the sale engine, catalog services and routes.

"""
Error taxonomy.

Every failure carries a human-readable message plus a details dict with
the offending values, and maps to exactly one HTTP status class. The sale
engine returns these as values; catalog and auth services raise them.
"""

from __future__ import annotations

from flask import jsonify


class PosError(Exception):
    """Base class for failures surfaced to API callers."""

    kind = "Error"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind, "details": self.details}


class ValidationFailed(PosError):
    """Malformed input or a reconciliation mismatch. Caller fixes the request."""

    kind = "ValidationFailed"
    status_code = 400


class InsufficientStock(PosError):
    """Business rejection: the basket asks for more than a variant holds."""

    kind = "InsufficientStock"
    status_code = 400

    def __init__(self, variant_id: int, sku: str | None, requested: int, available: int):
        label = sku or f"variant {variant_id}"
        super().__init__(
            f"Insufficient stock for {label}: requested {requested}, available {available}",
            details={
                "variantId": variant_id,
                "sku": sku,
                "requested": requested,
                "available": available,
            },
        )
        self.variant_id = variant_id
        self.sku = sku
        self.requested = requested
        self.available = available


class NotFound(PosError):
    kind = "NotFound"
    status_code = 404


class ConflictError(PosError):
    """409-level uniqueness conflict (e.g., duplicate SKU or username)."""

    kind = "Conflict"
    status_code = 409


class StorageFailure(PosError):
    """The transaction could not commit. Retryable by the caller."""

    kind = "StorageFailure"
    status_code = 500


def error_response(err: PosError):
    return jsonify(err.to_dict()), err.status_code
