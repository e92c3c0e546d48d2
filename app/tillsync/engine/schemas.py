"""Declared field schemas for every entity kind the POS front-end persists.

Schemas are built once at import time and never change afterwards. Field
order is the declaration order and is the order in which validation
messages and conflicts are reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    ENUM = "enum"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class FieldDeclaration:
    type: FieldType
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    min: float | None = None
    max: float | None = None
    min_items: int | None = None
    max_items: int | None = None
    values: tuple = ()

    def to_dict(self) -> dict:
        payload: dict = {"type": self.type.value, "required": self.required}
        for key, wire_key in (
            ("min_length", "minLength"),
            ("max_length", "maxLength"),
            ("min", "min"),
            ("max", "max"),
            ("min_items", "minItems"),
            ("max_items", "maxItems"),
        ):
            value = getattr(self, key)
            if value is not None:
                payload[wire_key] = value
        if self.type is FieldType.ENUM:
            payload["values"] = list(self.values)
        return payload


@dataclass(frozen=True)
class Schema:
    kind: str
    fields: Mapping[str, FieldDeclaration]

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.fields

    def field_names(self) -> tuple[str, ...]:
        return tuple(self.fields)


def _schema(kind: str, **fields: FieldDeclaration) -> Schema:
    return Schema(kind=kind, fields=MappingProxyType(dict(fields)))


def _string(*, required: bool = False, min_length: int | None = None, max_length: int | None = None):
    return FieldDeclaration(FieldType.STRING, required=required, min_length=min_length, max_length=max_length)


def _number(*, required: bool = False, min: float | None = None, max: float | None = None):
    return FieldDeclaration(FieldType.NUMBER, required=required, min=min, max=max)


def _timestamp(*, required: bool = False):
    return FieldDeclaration(FieldType.TIMESTAMP, required=required)


INGREDIENT = _schema(
    "ingredient",
    id=_string(required=True, min_length=1),
    name=_string(required=True, min_length=1, max_length=100),
    stockUnit=_string(required=True, min_length=1),
    buyUnit=_string(required=True, min_length=1),
    ratio=_number(required=True, min=0.001),
    minStock=_number(min=0),
    currentStock=_number(min=0),
    lastUpdated=_timestamp(required=True),
)

MENU = _schema(
    "menu",
    id=_string(required=True, min_length=1),
    name=_string(required=True, min_length=1, max_length=200),
    category=_string(max_length=50),
    price=_number(required=True, min=0),
    cost=_number(min=0),
    ingredients=FieldDeclaration(FieldType.ARRAY, required=True, min_items=1),
    isActive=FieldDeclaration(FieldType.BOOLEAN, required=True),
    lastUpdated=_timestamp(required=True),
)

TRANSACTION = _schema(
    "transaction",
    id=_string(required=True, min_length=1),
    type=FieldDeclaration(FieldType.ENUM, required=True, values=("sale", "purchase")),
    timestamp=_timestamp(required=True),
    items=FieldDeclaration(FieldType.ARRAY, required=True, min_items=1),
    total=_number(required=True, min=0),
    platform=_string(),
    notes=_string(max_length=500),
    synced=FieldDeclaration(FieldType.BOOLEAN, required=True),
    lastUpdated=_timestamp(required=True),
)

PURCHASE_ITEM = _schema(
    "purchaseItem",
    ingredientId=_string(required=True, min_length=1),
    quantity=_number(required=True, min=0.001),
    unitPrice=_number(required=True, min=0),
    totalPrice=_number(required=True, min=0),
)

SALE_ITEM = _schema(
    "saleItem",
    menuId=_string(required=True, min_length=1),
    quantity=_number(required=True, min=1),
    unitPrice=_number(required=True, min=0),
    totalPrice=_number(required=True, min=0),
)

SCHEMA_REGISTRY: Mapping[str, Schema] = MappingProxyType(
    {schema.kind: schema for schema in (INGREDIENT, MENU, TRANSACTION, PURCHASE_ITEM, SALE_ITEM)}
)


def get_schema(kind: str) -> Schema | None:
    return SCHEMA_REGISTRY.get(kind)


def known_kinds() -> tuple[str, ...]:
    return tuple(SCHEMA_REGISTRY)


def line_item_kind(transaction_type: object) -> str:
    return "saleItem" if transaction_type == "sale" else "purchaseItem"
