"""
Exception hierarchy for the arbitrage path discovery system.

Provides specific exception types for the different failure categories so
callers can tell fatal run conditions (missing or isolated anchor, storage
failures) apart from the locally recovered ones (missing symbol, missing pool).
"""

from typing import Optional, Dict, Any


class ArbitragePathError(Exception):
    """Base exception for all arbitrage path discovery errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ArbitragePathError):
    """Raised when there are configuration-related issues."""

    pass


class ValidationError(ArbitragePathError):
    """Raised when validation of data or configuration fails."""

    pass


class DataError(ArbitragePathError):
    """Raised when pool or token source data cannot be processed."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.source = source


class AnchorNotFoundError(ArbitragePathError):
    """Raised when the anchor token is absent after address and symbol lookups."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        symbol: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.address = address
        self.symbol = symbol


class AnchorDisconnectedError(ArbitragePathError):
    """Raised when the anchor token resolves but has no pool connections."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.address = address


class MissingSymbolError(ArbitragePathError):
    """Raised when a token address has no cached symbol."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message)
        self.address = address


class MissingPoolError(ArbitragePathError):
    """Raised when a step references a pool absent from the pool cache."""

    def __init__(
        self,
        message: str,
        pool_address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.pool_address = pool_address


class StorageError(ArbitragePathError):
    """Raised when a durable store operation or flush transaction fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.operation = operation
