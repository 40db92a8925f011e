from typing import Optional


class ProfileStoreError(Exception):
    """Base exception for profile persistence errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class ProfileNotFoundError(ProfileStoreError):
    """Raised when a requested profile does not exist on disk."""

    pass


class ProfileFormatError(ProfileStoreError):
    """Indicates a persisted document that is not valid JSON or does not
    match the expected record shapes."""

    pass


class ProfileWriteError(ProfileStoreError):
    """Raised for errors while writing or deleting profile files."""

    pass
