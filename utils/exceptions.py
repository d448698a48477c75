"""Custom exception hierarchy for SmartTrader.

Input absence (no signal, no balance) is not an error and is reported by
returning ``None``. Degenerate math and invalid configuration raise one of
the exceptions below.
"""


# Base Exception
class SmartTraderError(Exception):
    """Base exception for all SmartTrader errors."""

    pass


# Configuration Errors
class ConfigurationError(SmartTraderError):
    """Base class for configuration-related errors."""

    pass


class InvalidSettingsError(ConfigurationError, ValueError):
    """Raised when settings validation fails."""

    pass


# Calculation Errors
class CalculationError(SmartTraderError):
    """Base class for sizing and risk calculation errors."""

    pass


class InvalidStopLossError(CalculationError, ValueError):
    """Raised when a stop-loss yields zero or negative loss distance."""

    pass


class InvalidLeverageError(CalculationError, ValueError):
    """Raised when leverage is below 1."""

    pass


class InvalidDCAConfigError(CalculationError, ValueError):
    """Raised when a DCA ladder cannot be built from the given spacing."""

    pass


# Payload Errors
class PayloadError(SmartTraderError):
    """Base class for execution payload conversion errors."""

    pass


class UnresolvedEntryPriceError(PayloadError):
    """Raised when a legacy payload has no entry price and none was supplied."""

    pass
