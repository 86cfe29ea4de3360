"""Launchpad error taxonomy.

Every failure carries a stable ``kind`` so callers can branch on it without
parsing messages. Category classes mirror how the caller is expected to react:
fix the input, wait for a state change, retry with other economics, or stop.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    # Input validation
    TRADE_TOO_SMALL = "trade_too_small"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_RESERVES = "invalid_reserves"
    MALFORMED_METADATA = "malformed_metadata"

    # State
    LAUNCH_NOT_ACTIVE = "launch_not_active"
    ALREADY_GRADUATED = "already_graduated"
    THRESHOLD_NOT_REACHED = "threshold_not_reached"
    LAUNCHES_PAUSED = "launches_paused"
    TRADING_PAUSED = "trading_paused"

    # Economic
    SLIPPAGE_EXCEEDED = "slippage_exceeded"
    INSUFFICIENT_OUTPUT = "insufficient_output"
    INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"
    INSUFFICIENT_GRADUATION_FUNDS = "insufficient_graduation_funds"
    MATH_OVERFLOW = "math_overflow"

    # Authorization
    UNAUTHORIZED = "unauthorized"
    INVALID_CREATOR = "invalid_creator"
    INVALID_TREASURY = "invalid_treasury"

    # Configuration
    INVALID_CONFIG = "invalid_config"


class LaunchpadError(Exception):
    """Base error. ``kind`` is the stable identifier."""

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        self.kind = kind
        self.message = message or kind.value.replace("_", " ")
        super().__init__(f"{kind.value}: {self.message}")


class InputValidationError(LaunchpadError):
    pass


class StateError(LaunchpadError):
    pass


class EconomicError(LaunchpadError):
    pass


class AuthorizationError(LaunchpadError):
    pass


class ConfigurationError(LaunchpadError):
    pass
