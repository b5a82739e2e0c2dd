"""
Error types for the data store SDK.

This module defines all exception types raised by the SDK:
- DataStoreError: Base exception
- RequestTimeoutError: Request exceeded its deadline and was aborted
- HttpStatusError: Server answered with a non-2xx status
- DataStoreConnectionError: Network failure before a response arrived
- ResponseDecodeError: Response body is not a valid envelope
- ApplicationError: Envelope reports an error (opt-in only)
- ValueCodecError: Native value cannot be coerced to a scalar kind
- ClientConfigurationError: Conflicting process-wide client parameters

Invariants:
    - All errors inherit from DataStoreError
    - Errors include context for debugging
    - The transport layer never raises ApplicationError on its own
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DataStoreError(Exception):
    """Base exception for all data store SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "DATASTORE_ERROR"
        self.details = details or {}


class RequestTimeoutError(DataStoreError):
    """Request did not complete within the configured timeout.

    The in-flight call has been cancelled when this is raised, so no
    response will be delivered later.
    """

    def __init__(
        self,
        timeout_ms: int,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"Request timeout after {timeout_ms} ms",
            code="TIMEOUT",
            details={"timeout_ms": timeout_ms, "url": url},
        )
        self.timeout_ms = timeout_ms
        self.url = url


class HttpStatusError(DataStoreError):
    """Server answered with a non-2xx HTTP status."""

    def __init__(
        self,
        status_code: int,
        url: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"HTTP error! status: {status_code}",
            code="HTTP_ERROR",
            details={"status_code": status_code, "url": url, "body": body},
        )
        self.status_code = status_code
        self.url = url
        self.body = body


class DataStoreConnectionError(DataStoreError):
    """Failed to reach the data store.

    Raised when:
    - Host is unreachable
    - Connection is reset mid-request
    - TLS negotiation fails
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details={"url": url},
        )
        self.url = url


class ResponseDecodeError(DataStoreError):
    """Response body does not match the expected envelope shape."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="DECODE_ERROR",
            details={"path": path},
        )
        self.path = path


class ApplicationError(DataStoreError):
    """The store reported an error inside an otherwise successful response.

    Only raised by Response.raise_for_error(); callers decide when to check.

    Attributes:
        status: Application status code from the envelope
        error: Error text from the envelope
        trace_id: Trace identifier, if the store sent one
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        error: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="APPLICATION_ERROR",
            details={"status": status, "error": error, "trace_id": trace_id},
        )
        self.status = status
        self.error = error
        self.trace_id = trace_id


class ValueCodecError(DataStoreError, ValueError):
    """A native value cannot be coerced to the requested kind."""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="CODEC_ERROR",
            details={"kind": kind},
        )
        self.kind = kind


class ClientConfigurationError(DataStoreError):
    """The shared client was requested with parameters that differ from
    the ones it was first built with.
    """

    def __init__(
        self,
        message: str,
        requested: Optional[Dict[str, Any]] = None,
        active: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details={"requested": requested or {}, "active": active or {}},
        )
        self.requested = requested or {}
        self.active = active or {}
