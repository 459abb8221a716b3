"""Error types for norman."""

from typing import Optional, Dict, Any


class NormanError(Exception):
    """Base exception for norman errors."""

    def __init__(self, message: str, code: str = "NORMAN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for reporting."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConnectionError(NormanError):
    """Error connecting to or disconnecting from a database."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONNECTION_ERROR", details=details)


class NotConnectedError(ConnectionError):
    """An adapter operation needs a connection the adapter does not have."""

    def __init__(self, adapter_signature: str):
        super().__init__(
            f"Adapter {adapter_signature} is not connected",
            details={"adapter": adapter_signature},
        )
        self.code = "NOT_CONNECTED"


class NoCompatibleAdapterError(NormanError):
    """No registered adapter accepts the connection string."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "No compatible adapter found for connection string",
            code="NO_COMPATIBLE_ADAPTER",
            details=details,
        )


class AdapterAlreadyConnectedError(NormanError):
    """A connection was requested while another adapter is connected."""

    def __init__(self, adapter_signature: str):
        super().__init__(
            f"An adapter is already connected: {adapter_signature}",
            code="ADAPTER_ALREADY_CONNECTED",
            details={"adapter": adapter_signature},
        )


class NoActiveConnectionError(NormanError):
    """Close was requested with no active connection."""

    def __init__(self):
        super().__init__("No active connection to close", code="NO_ACTIVE_CONNECTION")


class MappingError(NormanError):
    """Fatal error that stops a mapping run before any graph is built."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="MAPPING_ERROR", details=details)


class CatalogScanError(NormanError):
    """Non-fatal failure of one catalog scan for one schema or table.

    These are collected during a mapping run instead of being raised.
    """

    def __init__(self, stage: str, scope: str, cause: Exception):
        super().__init__(
            f"Failed to map {stage} for {scope}: {cause}",
            code="CATALOG_SCAN_ERROR",
            details={
                "stage": stage,
                "scope": scope,
                "cause_type": type(cause).__name__,
            },
        )
        self.stage = stage
        self.scope = scope
        self.cause = cause


class ReportError(NormanError):
    """Error while writing a report."""

    def __init__(self, report_name: str, message: str):
        super().__init__(
            f"Error generating report {report_name}: {message}",
            code="REPORT_ERROR",
            details={"report": report_name},
        )
