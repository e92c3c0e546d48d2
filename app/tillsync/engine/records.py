"""Typed views over the plain dict records exchanged with the POS client.

On the wire and in storage a record is an untyped mapping. These
``TypedDict`` classes give the integrity and repair rules checked field
access while leaving the runtime value a plain ``dict``. ``total=False``
because a record under validation may be missing any field.
"""

from __future__ import annotations

from typing import Literal, TypedDict, Union

from app.tillsync.engine.fields import parse_timestamp

EntityKind = Literal["ingredient", "menu", "transaction", "purchaseItem", "saleItem"]
TransactionType = Literal["sale", "purchase"]


class IngredientRecord(TypedDict, total=False):
    id: str
    name: str
    stockUnit: str
    buyUnit: str
    ratio: float
    minStock: float
    currentStock: float
    lastUpdated: int


class MenuIngredientLine(TypedDict, total=False):
    ingredientId: str
    quantity: float


class MenuRecord(TypedDict, total=False):
    id: str
    name: str
    category: str
    price: float
    cost: float
    ingredients: list[MenuIngredientLine]
    isActive: bool
    lastUpdated: int


class PurchaseItemRecord(TypedDict, total=False):
    ingredientId: str
    quantity: float
    unitPrice: float
    totalPrice: float


class SaleItemRecord(TypedDict, total=False):
    menuId: str
    quantity: float
    unitPrice: float
    totalPrice: float


LineItemRecord = Union[PurchaseItemRecord, SaleItemRecord]


class TransactionRecord(TypedDict, total=False):
    id: str
    type: TransactionType
    timestamp: int
    items: list[LineItemRecord]
    total: float
    platform: str
    notes: str
    synced: bool
    lastUpdated: int


EntityRecord = Union[IngredientRecord, MenuRecord, TransactionRecord, PurchaseItemRecord, SaleItemRecord]

RECORD_TYPES: dict[str, type] = {
    "ingredient": IngredientRecord,
    "menu": MenuRecord,
    "transaction": TransactionRecord,
    "purchaseItem": PurchaseItemRecord,
    "saleItem": SaleItemRecord,
}


def last_updated(record: EntityRecord | dict) -> int:
    """Modification timestamp of a snapshot; missing or unparseable counts as 0."""
    timestamp = parse_timestamp(record.get("lastUpdated"))
    return 0 if timestamp is None else timestamp
