"""
Schemas & Canonicalization
File: records.py

Purpose: Example record schema used by the command-line harness.

The Merkle core treats records as opaque bytes. This module only supplies
a ready-made Transaction model plus helpers that turn harness input
(strings, transaction dicts) into record bytes.
"""

from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .canonical import encode_canonical


class Transaction(BaseModel):
    """
    A simple value transfer between two parties.

    Serialized with canonical JSON, so two equal transactions always
    produce the same record bytes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    from_: str = Field(
        ...,
        alias="from",
        description="Sending party",
        min_length=1,
    )
    to: str = Field(
        ...,
        description="Receiving party",
        min_length=1,
    )
    amount: int = Field(
        ...,
        description="Transferred amount",
    )

    def to_record(self) -> bytes:
        """Encode this transaction as record bytes."""
        return encode_canonical(self)

    def label(self) -> str:
        """Short human-readable form, e.g. 'Bob→Alice:12'."""
        return f"{self.from_}→{self.to}:{self.amount}"


def record_from_item(item: Any) -> bytes:
    """
    Convert one harness input item into record bytes.

    Strings are UTF-8 encoded as-is; dicts are validated as Transactions
    and canonically encoded.

    Raises:
        TypeError: If the item is neither a string nor a mapping.
        pydantic.ValidationError: If a mapping is not a valid Transaction.
    """
    if isinstance(item, str):
        return item.encode("utf-8")
    if isinstance(item, dict):
        return Transaction.model_validate(item).to_record()
    raise TypeError(f"Unsupported record item of type {type(item).__name__}")


def records_from_items(items: Sequence[Any]) -> list[bytes]:
    """Convert a sequence of harness input items into record bytes, in order."""
    return [record_from_item(item) for item in items]


# Four-transaction example used by the `demo` command and the tests.
EXAMPLE_TRANSACTIONS: tuple[Transaction, ...] = (
    Transaction(from_="Bob", to="Alice", amount=12),
    Transaction(from_="Alice", to="Jake", amount=25),
    Transaction(from_="Jake", to="Bob", amount=7),
    Transaction(from_="Eric", to="Bob", amount=82),
)
