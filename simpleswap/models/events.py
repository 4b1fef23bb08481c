"""Events emitted by the exchange pool.

Events mirror the on-ledger log entries of the pool contract. Besides the
structured fields, each event can render itself as a raw log (topics + data)
using the standard ABI encoding, so consumers that index logs by topic can
decode them with any ABI-aware tool.
"""

from typing import ClassVar

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from simpleswap.models.types import Address


def _address_bytes(address: str) -> bytes:
    return bytes.fromhex(address[2:])


class PoolEvent(BaseModel):
    """Base class for pool events.

    Subclasses declare the event signature and which fields are indexed.
    Indexed fields become log topics; the rest is ABI-encoded into data.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: ClassVar[str]
    # (field name, ABI type, indexed) in declaration order
    abi_fields: ClassVar[tuple[tuple[str, str, bool], ...]]

    @classmethod
    def signature(cls) -> str:
        """Canonical event signature, e.g. ``Swap(address,uint256,...)``."""
        types = ",".join(abi_type for _, abi_type, _ in cls.abi_fields)
        return f"{cls.name}({types})"

    @classmethod
    def topic0(cls) -> bytes:
        """Keccak-256 hash of the event signature."""
        return keccak(text=cls.signature())

    def to_log(self) -> tuple[list[bytes], bytes]:
        """Encode the event as (topics, data)."""
        topics = [self.topic0()]
        data_types: list[str] = []
        data_values: list[object] = []
        for field_name, abi_type, indexed in self.abi_fields:
            value = getattr(self, field_name)
            if abi_type == "address":
                value = _address_bytes(value)
            if indexed:
                topics.append(encode([abi_type], [value]))
            else:
                data_types.append(abi_type)
                data_values.append(value)
        return topics, encode(data_types, data_values)


class LiquidityAdded(PoolEvent):
    """Both assets were deposited into the pool reserves."""

    name: ClassVar[str] = "LiquidityAdded"
    abi_fields: ClassVar[tuple[tuple[str, str, bool], ...]] = (
        ("provider", "address", True),
        ("amount_a", "uint256", False),
        ("amount_b", "uint256", False),
    )

    provider: Address
    amount_a: int = Field(ge=0, alias="amountA")
    amount_b: int = Field(ge=0, alias="amountB")

    @field_serializer("amount_a", "amount_b", when_used="json")
    def serialize_amount(self, value: int) -> str:
        return str(value)


class Swap(PoolEvent):
    """One asset was exchanged for the other.

    Exactly one of ``amount_a_in``/``amount_b_in`` is non-zero, and the
    output lands on the opposite side.
    """

    name: ClassVar[str] = "Swap"
    abi_fields: ClassVar[tuple[tuple[str, str, bool], ...]] = (
        ("sender", "address", True),
        ("amount_a_in", "uint256", False),
        ("amount_b_in", "uint256", False),
        ("amount_a_out", "uint256", False),
        ("amount_b_out", "uint256", False),
        ("recipient", "address", True),
    )

    sender: Address
    amount_a_in: int = Field(ge=0, alias="amountAIn")
    amount_b_in: int = Field(ge=0, alias="amountBIn")
    amount_a_out: int = Field(ge=0, alias="amountAOut")
    amount_b_out: int = Field(ge=0, alias="amountBOut")
    recipient: Address

    @field_serializer(
        "amount_a_in", "amount_b_in", "amount_a_out", "amount_b_out", when_used="json"
    )
    def serialize_amount(self, value: int) -> str:
        return str(value)
