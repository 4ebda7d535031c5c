"""Error codes and result values returned by registry operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(IntEnum):
    """Failure kinds a registry operation can report."""

    NOT_AUTHORIZED = 100
    INVALID_PORTFOLIO = 101
    INSUFFICIENT_BALANCE = 102  # reserved
    INVALID_TOKEN = 103
    REBALANCE_FAILED = 104  # reserved
    PORTFOLIO_EXISTS = 105  # reserved
    INVALID_PERCENTAGE = 106
    MAX_ASSETS_EXCEEDED = 107
    LENGTH_MISMATCH = 108
    STORAGE_CAPACITY_EXCEEDED = 109
    INVALID_TOKEN_ID = 110

    @property
    def label(self) -> str:
        """CamelCase name, e.g. ``NotAuthorized``."""
        return "".join(part.capitalize() for part in self.name.split("_"))


class RegistryError(Exception):
    """Raised inside an operation when a precondition is violated.

    Public engine operations never let this escape: it is caught at the
    operation boundary, the transaction is rolled back and the code is
    returned as a failed ``Result``.
    """

    def __init__(self, code: ErrorCode, detail: str | None = None) -> None:
        self.code = code
        self.detail = detail
        message = f"{code.label} (u{code.value})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a registry operation.

    Attributes:
        value: Success payload (None on failure)
        error: Error code (None on success)
    """

    value: T | None = None
    error: ErrorCode | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorCode) -> Result[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        """Whether the operation succeeded."""
        return self.error is None

    def unwrap(self) -> T:
        """Return the success value or raise the carried error.

        Raises:
            RegistryError: If the result is a failure
        """
        if self.error is not None:
            raise RegistryError(self.error)
        return self.value  # type: ignore[return-value]
