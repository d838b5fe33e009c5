"""
CKB Client Error Model

This module provides the error handling framework for the CKB Python SDK.
Every component raises one of these typed errors instead of returning a
partially valid structure.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """SDK error codes."""

    OK = 0
    UNKNOWN = 1

    # Encoding errors (100-199)
    MALFORMED_ENCODING = 100

    # Configuration / registry errors (200-299)
    UNKNOWN_SCRIPT = 200

    # Node errors (300-399)
    RPC_ERROR = 300

    # Transport errors (400-499)
    NETWORK_ERROR = 400
    ID_MISMATCH = 401
    TIMEOUT = 402

    # Balancing errors (500-599)
    INSUFFICIENT_FUNDS = 500
    CELL_NOT_FOUND = 501

    # Query errors (600-699)
    AMBIGUOUS_RESULT = 600

    # Signing errors (700-799)
    SIGNER_ERROR = 700


class CkbError(Exception):
    """
    Root of the ckb_client exception tree.

    ``code`` groups errors by subsystem (codec, client, transport, balancing,
    signing). ``details`` holds machine-readable context such as the RPC
    method or the capacity still missing.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = dict(details) if details else {}
        self.cause = cause

    def __str__(self) -> str:
        text = f"{self.code.name}: {self.message}"
        if self.details:
            text += " (" + ", ".join(f"{k}={v!r}" for k, v in self.details.items()) + ")"
        if self.cause is not None:
            text += f"; caused by {type(self.cause).__name__}: {self.cause}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form for logs and API responses."""
        data: Dict[str, Any] = {"code": int(self.code), "name": self.code.name, "message": self.message}
        if self.details:
            data["details"] = self.details
        if self.cause is not None:
            data["cause"] = repr(self.cause)
        return data


class MalformedEncodingError(CkbError):
    """Bad binary input: truncated data, bad offsets or invalid discriminants."""

    def __init__(self, message: str = "Malformed encoding",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.MALFORMED_ENCODING, details, cause)


class UnknownScriptError(CkbError):
    """Known-script registry miss for a network/name pair."""

    def __init__(self, name: Any, network: str):
        label = getattr(name, "value", name)
        super().__init__(
            f"Unknown script {label} on network {network}",
            ErrorCode.UNKNOWN_SCRIPT,
            {"name": str(label), "network": network},
        )
        self.name = name
        self.network = network


class RpcError(CkbError):
    """Node-reported failure, code and message kept verbatim."""

    def __init__(self, rpc_code: Optional[int], rpc_message: str, data: Any = None,
                 method: Optional[str] = None):
        details: Dict[str, Any] = {"rpc_code": rpc_code}
        if data is not None:
            details["data"] = data
        if method:
            details["method"] = method
        super().__init__(rpc_message, ErrorCode.RPC_ERROR, details)
        self.rpc_code = rpc_code
        self.rpc_message = rpc_message
        self.data = data
        self.method = method


class NetworkError(CkbError):
    """HTTP or connection level failure."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NETWORK_ERROR, details, cause)


class IdMismatchError(NetworkError):
    """Response correlation id differs from the outstanding request id."""

    def __init__(self, expected: Any, got: Any):
        super().__init__(f"Id mismatched, got {got}, expected {expected}",
                         {"expected": expected, "got": got})
        self.code = ErrorCode.ID_MISMATCH
        self.expected = expected
        self.got = got


class RpcTimeoutError(NetworkError):
    """Request cancelled after exceeding its timeout."""

    def __init__(self, method: str, timeout: float):
        super().__init__(f"Request {method} timed out after {timeout}s",
                         {"method": method, "timeout": timeout})
        self.code = ErrorCode.TIMEOUT
        self.method = method
        self.timeout = timeout


class InsufficientFundsError(CkbError):
    """The balancer could not satisfy a capacity or token requirement."""

    def __init__(self, message: str = "Insufficient funds",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INSUFFICIENT_FUNDS, details)


class CellNotFoundError(CkbError):
    """An input refers to a cell the client cannot resolve."""

    def __init__(self, out_point: Any):
        super().__init__(f"Cell {out_point!r} not found", ErrorCode.CELL_NOT_FOUND,
                         {"out_point": repr(out_point)})
        self.out_point = out_point


class AmbiguousResultError(CkbError):
    """A query expected to match at most once matched several times."""

    def __init__(self, message: str = "Ambiguous result",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.AMBIGUOUS_RESULT, details)


class SignerError(CkbError):
    """Signing or verification could not be performed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.SIGNER_ERROR, details, cause)


def error_from_response(response: Dict[str, Any], method: Optional[str] = None) -> Optional[RpcError]:
    """
    Create an RpcError from a JSON-RPC response.

    Args:
        response: Decoded JSON-RPC response object
        method: RPC method the response belongs to

    Returns:
        RpcError instance or None if the response carries no error
    """
    error_data = response.get("error")
    if error_data is None:
        return None

    if isinstance(error_data, dict):
        return RpcError(error_data.get("code"), str(error_data.get("message", "Unknown error")),
                        error_data.get("data"), method)
    return RpcError(None, str(error_data), None, method)


class ErrorHandler:
    """
    Utility class for categorizing errors.
    """

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """
        Check if an error is retryable by the caller.

        Transport faults are retryable with a fresh correlation id. Node
        rejections, encoding and balancing failures are not.
        """
        if isinstance(error, CkbError):
            return error.code in (ErrorCode.NETWORK_ERROR, ErrorCode.ID_MISMATCH, ErrorCode.TIMEOUT)
        return False


__all__ = [
    "ErrorCode",
    "CkbError",
    "MalformedEncodingError",
    "UnknownScriptError",
    "RpcError",
    "NetworkError",
    "IdMismatchError",
    "RpcTimeoutError",
    "InsufficientFundsError",
    "CellNotFoundError",
    "AmbiguousResultError",
    "SignerError",
    "error_from_response",
    "ErrorHandler",
]
