"""
Exception classes for the DNS log indexer.

All exceptions inherit from DnsLogIndexError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class DnsLogIndexError(Exception):
    """Base exception for all DNS log indexer errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InputError(DnsLogIndexError):
    """Raised when the log source cannot be opened or read."""

    pass


class StorageError(DnsLogIndexError):
    """Raised when the domain store cannot be opened, initialized or merged into."""

    pass


class ExportError(DnsLogIndexError):
    """Raised when a report cannot be written."""

    pass


class ConfigError(DnsLogIndexError):
    """Raised when configuration is missing or invalid."""

    pass
