"""
Ledger Exceptions
Every failure is scoped to a single operation and reported to the caller.
"""


class LedgerError(Exception):
    """Base class for stock ledger failures."""


class LedgerValidationError(LedgerError):
    """Input rejected before the store is touched."""


class InvalidQuantity(LedgerValidationError):
    def __init__(self, units):
        self.units = units
        super().__init__(f"Units must be a positive integer, got {units!r}")


class InvalidExpiryDate(LedgerValidationError):
    def __init__(self, expiry_date):
        self.expiry_date = expiry_date
        super().__init__(f"Expiry date must be in the future, got {expiry_date!r}")


class InvalidOperation(LedgerValidationError):
    def __init__(self, operation):
        self.operation = operation
        super().__init__(f'Invalid operation {operation!r}. Use "add" or "remove"')


class InvalidBloodGroup(LedgerValidationError):
    def __init__(self, blood_group):
        self.blood_group = blood_group
        super().__init__(f"Unknown blood group {blood_group!r}")


class InsufficientStock(LedgerError):
    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock available. Available: {available}, Requested: {requested}"
        )


class RecordNotFound(LedgerError):
    pass


class ConcurrentUpdateConflict(LedgerError):
    """Retry budget exhausted while racing another writer on the same record."""


class DonationNotEligible(LedgerError):
    pass


class RequestNotFulfillable(LedgerError):
    pass
