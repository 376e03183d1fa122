"""Domain-specific exceptions"""

from typing import Dict


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Referenced payment, client or order does not exist"""

    pass


class InvalidTransitionError(DomainException):
    """Operation is not legal from the payment's current status"""

    pass


class InvalidInputError(DomainException):
    """Malformed or out-of-range input, reported per field"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in self.errors.items()))


class TransactionFailureError(DomainException):
    """The unit of work could not be committed; safe to retry"""

    pass
