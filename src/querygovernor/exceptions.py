"""
Package-level exception hierarchy for QueryGovernor.

All exceptions inherit from QueryGovernorError, enabling:
- Catching all QueryGovernor errors with a single except clause
- Context fields for debugging (config_key, engine, statement kind)
- Structured serialization via to_dict() for JSON error responses

Classification and limit rewriting never raise for any SQL text; these
exceptions cover configuration, plan normalization and the service layer.

Hierarchy:
    QueryGovernorError
    ├── ConfigurationError         – Invalid configuration or missing driver
    ├── PlanParseError             – Native plan payload cannot be normalized
    ├── EstimationError            – Engine strategy failed (caught by the estimator)
    ├── ConnectionFailedError      – Database connection could not be opened
    └── UnsupportedOperationError
        ├── UnsupportedEngineError    – No adapter/strategy for the engine
        └── UnsupportedStatementError – Statement kind cannot be explained
"""

from __future__ import annotations

from typing import Any


class QueryGovernorError(Exception):
    """
    Base exception for all QueryGovernor errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON error responses."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
        }


# ── Configuration ────────────────────────────────────────────────────────


class ConfigurationError(QueryGovernorError):
    """
    Error in governor configuration.

    Attributes:
        config_key: The configuration key that caused the error (if known).
    """

    def __init__(self, message: str, config_key: str | None = None) -> None:
        self.config_key = config_key
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result


# ── Plans ────────────────────────────────────────────────────────────────


class PlanParseError(QueryGovernorError):
    """
    A native EXPLAIN payload could not be normalized into a plan tree.

    Attributes:
        engine: The engine whose adapter rejected the payload.
    """

    def __init__(self, message: str, engine: str | None = None) -> None:
        self.engine = engine
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["engine"] = self.engine
        return result


# ── Estimation ───────────────────────────────────────────────────────────


class EstimationError(QueryGovernorError):
    """
    An engine strategy could not produce a row estimate.

    Never escapes estimate(): the estimator converts it into a zero
    estimate with a diagnostic string.
    """

    def __init__(self, message: str, engine: str | None = None) -> None:
        self.engine = engine
        super().__init__(message)


# ── Connections ──────────────────────────────────────────────────────────


class ConnectionFailedError(QueryGovernorError):
    """
    A database connection could not be opened.

    Wraps driver and network errors raised while connecting so callers
    can report them like any other QueryGovernorError.
    """

    def __init__(self, engine: str, reason: str) -> None:
        self.engine = engine
        super().__init__(f"Could not connect to {engine}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["engine"] = self.engine
        return result


# ── Unsupported operations ───────────────────────────────────────────────


class UnsupportedOperationError(QueryGovernorError):
    """The requested operation is not available for this input."""
    pass


class UnsupportedEngineError(UnsupportedOperationError):
    """
    No adapter or strategy exists for the engine.

    Attributes:
        engine: The engine tag that was requested.
    """

    def __init__(self, engine: str, operation: str) -> None:
        self.engine = engine
        self.operation = operation
        super().__init__(f"{operation} is not supported for engine '{engine}'")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["engine"] = self.engine
        result["operation"] = self.operation
        return result


class UnsupportedStatementError(UnsupportedOperationError):
    """
    The statement kind does not allow the requested operation.

    EXPLAIN ANALYZE executes the statement, so only SELECTs are accepted.
    """

    def __init__(self, kind: str, operation: str) -> None:
        self.kind = kind
        self.operation = operation
        super().__init__(f"{operation} requires a SELECT statement, got {kind}")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind
        return result
