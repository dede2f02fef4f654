from typing import Dict, Optional


class StoreError(Exception):
    """Base class for store-layer exceptions."""


class StorageUnavailable(StoreError):
    """
    Raised when the backing store cannot be reached or fails below the
    conditional-write layer. Never a conflict; callers must not merge on it.
    """

    def __init__(self, message: str = "Storage is unavailable", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationRejected(StoreError):
    """Raised when submitted field values violate the entity schema."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = dict(errors)
