"""Error taxonomy surfaced by the invoice core.

Storage failures are split so callers can tell a rejected write
(``ConstraintViolation``) from a backend fault (``StorageUnavailable``).
A missing invoice is an expected outcome and gets its own type.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class InvoiceError(Exception):
    """Base class for errors raised by the invoice core."""


class InvoiceNotFound(InvoiceError):
    def __init__(self, invoice_number: int) -> None:
        super().__init__(f"Invoice {invoice_number} not found")
        self.invoice_number = invoice_number


class StorageError(InvoiceError):
    """The storage backend failed to complete an operation."""


class ConstraintViolation(StorageError):
    """A referential, CHECK or uniqueness constraint rejected the write."""


class StorageUnavailable(StorageError):
    """Connectivity, timeout or any other non-constraint backend failure."""


class RollbackFailed(StorageUnavailable):
    """Rolling back after a failed write also failed.

    ``original`` is the error that triggered the rollback, already translated,
    so its kind stays visible to the caller.
    """

    def __init__(self, original: BaseException, rollback_error: BaseException) -> None:
        super().__init__(f"tx error: {original}, rollback error: {rollback_error}")
        self.original = translate_storage_error(original)
        self.rollback_error = rollback_error


class InvalidDiscountRate(ValueError):
    def __init__(self, rate_text: str, reason: str = "not a decimal percentage") -> None:
        super().__init__(f"Invalid discount rate {rate_text!r}: {reason}")
        self.rate_text = rate_text


class AmountOverflow(ValueError):
    """An amount does not fit the signed 64-bit monetary columns."""


def translate_storage_error(exc: BaseException) -> BaseException:
    """Map a SQLAlchemy exception onto the storage taxonomy.

    Errors that already belong to the taxonomy, and non-storage errors,
    are returned unchanged.
    """
    if isinstance(exc, InvoiceError):
        return exc
    if isinstance(exc, IntegrityError):
        return ConstraintViolation(str(exc.orig))
    if isinstance(exc, SQLAlchemyError):
        return StorageUnavailable(str(exc))
    return exc


@contextmanager
def storage_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise translate_storage_error(exc) from exc
