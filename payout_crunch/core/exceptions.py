"""
Custom exception classes for the payout service.
Each class maps to one failure class the retry supervisor knows how to handle.
"""

from typing import Any, Optional, Dict


class CrunchError(Exception):
    """Base exception class for the payout service."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(CrunchError):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


# Transient conditions: short cool-down, then restart


class ConnectivityError(CrunchError):
    """Raised when the chain connection dropped and a restart should recover it."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONNECTIVITY_ERROR", details)


class SubscriptionFinishedError(ConnectivityError):
    """Raised when the finalized block subscription ends on its own."""

    def __init__(self, message: str = "Finalized block subscription finished"):
        super().__init__(message)
        self.code = "SUBSCRIPTION_FINISHED"


class RuntimeUpgradeDetectedError(CrunchError):
    """Raised when the chain runtime changed under a live subscription."""

    def __init__(self, previous_version: int, current_version: int):
        super().__init__(
            f"Runtime upgrade detected: {previous_version} -> {current_version}",
            "RUNTIME_UPGRADE_DETECTED",
            {"previous_version": previous_version, "current_version": current_version}
        )
        self.previous_version = previous_version
        self.current_version = current_version


# Batch validation


class WeightExceededError(CrunchError):
    """Raised when a candidate batch is heavier than the maximum extrinsic weight."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "WEIGHT_EXCEEDED", details)


class SingleCallWeightExceededError(CrunchError):
    """Raised when a batch of one call still exceeds the maximum extrinsic weight."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SINGLE_CALL_WEIGHT_EXCEEDED", details)


class InsufficientBalanceError(CrunchError):
    """Raised when the signer cannot pay fees and keep the existential deposit."""

    def __init__(self, available: int, fee: int, existential_deposit: int):
        super().__init__(
            f"Available balance ({available}) is less than fees ({fee}) "
            f"+ existential deposit ({existential_deposit})",
            "INSUFFICIENT_BALANCE",
            {"available": available, "fee": fee, "existential_deposit": existential_deposit}
        )


class DryRunError(CrunchError):
    """Raised when fee and weight simulation itself fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DRY_RUN_ERROR", details)


# Execution


class DispatchFailureError(CrunchError):
    """Raised when the submitted batch extrinsic failed as a whole."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DISPATCH_FAILURE", details)


# Notifications


class NotificationError(CrunchError):
    """Raised when a notification could not be delivered."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOTIFICATION_ERROR", details)
