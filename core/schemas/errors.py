"""
Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for merkle-ledger.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Every operation in the core is pure and deterministic, so no error
is ever marked retryable: repeating a call with the same input
always yields the same outcome.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Construction Errors
    EMPTY_INPUT = "EMPTY_INPUT"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"

    # Hashing & Encoding Errors
    UNSUPPORTED_HASH_ALGORITHM = "UNSUPPORTED_HASH_ALGORITHM"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    PROOF_DECODE_ERROR = "PROOF_DECODE_ERROR"

    # Verification Outcomes (reported, never raised by verify_proof)
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"
    ROOT_MISMATCH = "ROOT_MISMATCH"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class MerkleLedgerError(BaseModel):
    """
    Base error model for structured error communication.

    Used when an error has to cross a process boundary (CLI JSON output,
    logs) without carrying a live exception.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.EMPTY_INPUT],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "MerkleLedgerException":
        """Convert this error model to a raised exception."""
        return MerkleLedgerException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class MerkleLedgerException(Exception):
    """
    Base exception for all merkle-ledger errors.

    This exception carries structured error information and can be
    converted to/from MerkleLedgerError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "MERKLE_LEDGER_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> MerkleLedgerError:
        """Convert this exception to a MerkleLedgerError model."""
        return MerkleLedgerError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class EmptyInputError(MerkleLedgerException, ValueError):
    """Raised when a tree is built from zero records."""

    def __init__(
        self,
        message: str = "Cannot build a Merkle tree from an empty sequence",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.EMPTY_INPUT,
            details=details,
            retryable=False,
        )


class IndexOutOfRange(MerkleLedgerException, IndexError):
    """Raised when a leaf or layer index falls outside the tree."""

    def __init__(
        self,
        message: str,
        index: int | None = None,
        bound: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if index is not None:
            full_details["index"] = index
        if bound is not None:
            full_details["bound"] = bound
        super().__init__(
            message=message,
            code=ErrorCodes.INDEX_OUT_OF_RANGE,
            details=full_details,
            retryable=False,
        )
        self.index = index
        self.bound = bound


class UnsupportedHashAlgorithmError(MerkleLedgerException, ValueError):
    """Raised when a hasher is requested for an unknown or variable-size algorithm."""

    def __init__(
        self,
        algorithm: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        full_details["algorithm"] = algorithm
        super().__init__(
            message=f"Unsupported hash algorithm: {algorithm!r}",
            code=ErrorCodes.UNSUPPORTED_HASH_ALGORITHM,
            details=full_details,
            retryable=False,
        )
        self.algorithm = algorithm


class ProofDecodeError(MerkleLedgerException, ValueError):
    """Raised when serialized proof bytes or dicts cannot be decoded."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.PROOF_DECODE_ERROR,
            details=details,
            retryable=False,
        )


class CanonicalizationException(MerkleLedgerException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )
