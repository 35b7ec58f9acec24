"""Error taxonomy shared by the stores, services and routes."""
from __future__ import annotations


class ApiError(Exception):
    """An error that maps onto an HTTP response `{success: false, error}`."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError, ValueError):
    """Bad request data, raised before any store is touched."""

    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class StorageError(ApiError):
    """The local fallback store itself failed; there is nothing left to fall back to."""

    status_code = 500


class RemoteStoreError(ApiError):
    """Any failure talking to the primary database."""

    status_code = 503


class LocalOnlyProduct(Exception):
    """Raised when an order references products that only exist in the local catalog."""

    def __init__(self, product_ids: list[str]):
        super().__init__(f"local-only products: {', '.join(product_ids)}")
        self.product_ids = product_ids
