# src/finbot/core/exceptions.py
"""Error taxonomy shared by the Store, the domain service and the dialog engine."""


class FinanceBotError(Exception):
    """Base class for all application errors"""


class ConfigError(FinanceBotError):
    """Missing credentials or invalid settings at startup"""


class ValidationError(FinanceBotError):
    """Bad user input: non-numeric amount, empty name, out-of-range day"""


class NotFoundError(FinanceBotError):
    """Referenced row is missing or owned by another user"""


class AlreadyExistsError(FinanceBotError):
    """Unique constraint violated (category or saving name)"""


class CategoryInUseError(FinanceBotError):
    """Category still has transactions referencing it"""


class TypeMismatchError(FinanceBotError):
    """Transaction sign disagrees with the category type"""


class InsufficientFundsError(FinanceBotError):
    """Withdrawal larger than the saving balance"""

    def __init__(self, available, requested):
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient funds: available {available}, requested {requested}")


class ReportTooLongError(FinanceBotError):
    """Rendered report does not fit into a single message"""


class StoreError(FinanceBotError):
    """Database level failure"""


class TransportError(FinanceBotError):
    """Messaging platform send/receive failure"""
