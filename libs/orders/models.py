"""
Pydantic models for signed orders.

Field names are snake_case in Python and camelCase on the wire and in the
store (``orderHash``, ``chainId``...). Stored items are the camelCase dump of
an :class:`Order` plus the denormalized composite attributes produced by
:func:`composite_attributes`.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

COMPOSITE_DELIMITER = "_"


class OrderStatus(str, Enum):
    """Lifecycle status of an order."""

    OPEN = "open"
    FILLED = "filled"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    ERROR = "error"
    UNVERIFIED = "unverified"


class TableKey(str, Enum):
    """Attribute names usable as primary, partition or sort keys."""

    ORDER_HASH = "orderHash"
    OFFERER = "offerer"
    FILLER = "filler"
    ORDER_STATUS = "orderStatus"
    CHAIN_ID = "chainId"
    CREATED_AT = "createdAt"
    DEADLINE = "deadline"
    OFFERER_ORDER_STATUS = "offerer_orderStatus"
    FILLER_ORDER_STATUS = "filler_orderStatus"
    FILLER_OFFERER = "filler_offerer"
    CHAIN_ID_FILLER = "chainId_filler"
    CHAIN_ID_ORDER_STATUS = "chainId_orderStatus"
    CHAIN_ID_ORDER_STATUS_FILLER = "chainId_orderStatus_filler"
    FILLER_OFFERER_ORDER_STATUS = "filler_offerer_orderStatus"


class SortField(str, Enum):
    """Attributes an index can be ordered by."""

    CREATED_AT = "createdAt"
    DEADLINE = "deadline"


# Component fields of each denormalized composite, in canonical join order.
COMPOSITE_FIELDS: tuple[tuple[str, ...], ...] = (
    ("offerer", "orderStatus"),
    ("filler", "orderStatus"),
    ("filler", "offerer"),
    ("chainId", "filler"),
    ("chainId", "orderStatus"),
    ("chainId", "orderStatus", "filler"),
    ("filler", "offerer", "orderStatus"),
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderInput(_CamelModel):
    """Token offered by the order's offerer."""

    token: str
    amount: int


class OrderOutput(_CamelModel):
    """Token owed to a recipient; decays linearly from start to end amount."""

    token: str
    recipient: str
    start_amount: int
    end_amount: int


class SettledAmount(_CamelModel):
    """Amount actually delivered for one output at settlement."""

    token_out: str
    amount_out: int


class Order(_CamelModel):
    """
    A signed order as tracked by the service.

    Only ``order_status``, ``tx_hash`` and ``settled_amounts`` change after
    creation (see :meth:`OrderRepository.update_order_status`).

    Examples:
        >>> order = Order(
        ...     order_hash="0x" + "ab" * 32,
        ...     offerer="0x" + "11" * 20,
        ...     reactor="0x" + "22" * 20,
        ...     chain_id=1,
        ...     nonce="42",
        ...     deadline=1_800_000_000,
        ...     input={"token": "0x" + "33" * 20, "amount": 10**18},
        ...     outputs=[],
        ...     encoded_order="0x00",
        ...     signature="0x00",
        ... )
    """

    order_hash: str = Field(..., description="Hex order digest (primary key)")
    offerer: str
    filler: str | None = Field(default=None, description="Assigned once the order is filled")
    reactor: str = Field(..., description="Settlement contract address")
    chain_id: int
    order_status: OrderStatus = OrderStatus.OPEN
    nonce: str = Field(..., description="uint256 as a decimal string")
    deadline: int
    start_time: int | None = None
    decay_start_time: int | None = None
    decay_end_time: int | None = None
    input: OrderInput
    outputs: list[OrderOutput] = Field(default_factory=list)
    encoded_order: str
    signature: str
    created_at: int | None = None
    tx_hash: str | None = None
    settled_amounts: list[SettledAmount] | None = None

    @property
    def effective_start_time(self) -> int | None:
        """Start of the order's validity window (falls back to decay start)."""
        return self.start_time if self.start_time is not None else self.decay_start_time

    def to_item(self) -> dict[str, Any]:
        """Return the camelCase, JSON-compatible store representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class QueryResult(BaseModel):
    """One page of orders and the cursor for the next page, if any."""

    orders: list[Order]
    cursor: str | None = None


def attribute_value(value: Any) -> str:
    """Render an attribute as it appears inside a composite key."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def join_attributes(item: Mapping[str, Any], fields: tuple[str, ...]) -> str | None:
    """
    Join ``fields`` of ``item`` with the composite delimiter.

    Returns None if any component is missing, so orders without e.g. a
    filler stay out of filler-keyed indexes.
    """
    values = [item.get(field) for field in fields]
    if any(value is None for value in values):
        return None
    return COMPOSITE_DELIMITER.join(attribute_value(value) for value in values)


def composite_attributes(item: Mapping[str, Any]) -> dict[str, str]:
    """
    Compute every denormalized composite attribute for a stored item.

    This is the only place composites are derived. It runs on create and on
    every status transition so the index partition keys never drift from the
    primary fields.

    Examples:
        >>> composite_attributes({"offerer": "0xa", "orderStatus": "open", "chainId": 1})
        {'offerer_orderStatus': '0xa_open', 'chainId_orderStatus': '1_open'}
    """
    composites: dict[str, str] = {}
    for fields in COMPOSITE_FIELDS:
        joined = join_attributes(item, fields)
        if joined is not None:
            composites[COMPOSITE_DELIMITER.join(fields)] = joined
    return composites
