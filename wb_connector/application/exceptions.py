"""
Core exceptions for the World Bank connector.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains. Every failure aborts
the whole query; there is no partial-success result.
"""


class ConnectorError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration / Caller Errors ---

class ConfigurationError(ConnectorError):
    """Raised for errors related to application configuration."""
    pass


class QueryError(ConnectorError):
    """Raised when a query is missing required parameters or is invalid."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(ConnectorError):
    """Base class for errors related to external systems (network, API, etc.)."""
    pass


class TransportError(InfrastructureError):
    """Raised when a request fails for good, after retries are exhausted."""

    def __init__(self, message: str, url: str, status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ApiError(InfrastructureError):
    """Raised when the World Bank API answers with an error message."""
    pass


class ExportError(InfrastructureError):
    """Raised when a result frame cannot be written to disk."""
    pass


# --- Decoding Errors ---

class DecodeError(ConnectorError):
    """Base class for response bodies that cannot be decoded."""
    pass


class EnvelopeDecodeError(DecodeError):
    """
    Raised when the response envelope does not have the expected shape.

    This indicates an API contract change rather than a transient condition,
    so it is never retried.
    """
    pass


class RecordDecodeError(DecodeError):
    """Raised when a record inside a page is malformed."""

    def __init__(self, message: str, resource: str = None):
        if resource:
            message = f"{message} (while decoding {resource})"
        super().__init__(message)
        self.resource = resource


class UnknownCodeError(ConnectorError):
    """Raised when a model, scenario or variable code is not recognised."""

    def __init__(self, kind: str, code):
        super().__init__(f"No {kind} entry matched for code: {code!r}")
        self.kind = kind
        self.code = code
