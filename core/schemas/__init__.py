"""
Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.
Error taxonomy, canonical record encoding and the example record schema.
"""

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonical_equals,
    canonicalize_value,
    dumps_canonical,
    encode_canonical,
)

# Error models and exceptions
from .errors import (
    CanonicalizationException,
    EmptyInputError,
    ErrorCodes,
    IndexOutOfRange,
    MerkleLedgerError,
    MerkleLedgerException,
    ProofDecodeError,
    UnsupportedHashAlgorithmError,
)

# Record schemas
from .records import (
    EXAMPLE_TRANSACTIONS,
    Transaction,
    record_from_item,
    records_from_items,
)

__all__ = [
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonical_equals",
    "canonicalize_value",
    "dumps_canonical",
    "encode_canonical",
    # Errors
    "CanonicalizationException",
    "EmptyInputError",
    "ErrorCodes",
    "IndexOutOfRange",
    "MerkleLedgerError",
    "MerkleLedgerException",
    "ProofDecodeError",
    "UnsupportedHashAlgorithmError",
    # Records
    "EXAMPLE_TRANSACTIONS",
    "Transaction",
    "record_from_item",
    "records_from_items",
]
