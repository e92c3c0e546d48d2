"""Cross-field invariants per entity kind.

Each kind maps to one registered check function. A check receives the raw
record plus an :class:`IntegrityContext` and returns the list of violated
invariants as human-readable messages. Adding a kind means registering a
new function; nothing else dispatches on the kind name.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from app.tillsync.core.reporting import ErrorReporter, NullErrorReporter
from app.tillsync.engine.fields import format_number, parse_number, parse_timestamp
from app.tillsync.engine.records import (
    IngredientRecord,
    LineItemRecord,
    MenuRecord,
    TransactionRecord,
)
from app.tillsync.engine.results import IntegrityResult, ValidationResult
from app.tillsync.engine.schemas import line_item_kind

# Two-decimal currency precision; identical on every client and server.
AMOUNT_TOLERANCE = 0.01
FUTURE_TIMESTAMP_TOLERANCE_MS = 60_000


@dataclass(frozen=True)
class IntegrityContext:
    now_ms: int
    validate: Callable[[str, dict], ValidationResult]


InvariantCheck = Callable[[dict, IntegrityContext], list[str]]

_DEFAULT_CHECKS: dict[str, InvariantCheck] = {}


def invariant(kind: str) -> Callable[[InvariantCheck], InvariantCheck]:
    def register(func: InvariantCheck) -> InvariantCheck:
        _DEFAULT_CHECKS[kind] = func
        return func

    return register


def amounts_match(expected: float, actual: float) -> bool:
    return abs(expected - actual) <= AMOUNT_TOLERANCE


def sum_line_totals(items: list) -> float:
    total = 0.0
    for item in items:
        if isinstance(item, Mapping):
            total += parse_number(item.get("totalPrice")) or 0.0
    return total


@invariant("ingredient")
def check_ingredient(record: IngredientRecord, context: IntegrityContext) -> list[str]:
    ratio = parse_number(record.get("ratio"))
    if ratio is not None and ratio <= 0:
        return ["Ingredient ratio must be positive"]
    return []


@invariant("menu")
def check_menu(record: MenuRecord, context: IntegrityContext) -> list[str]:
    errors: list[str] = []
    ingredients = record.get("ingredients")
    if isinstance(ingredients, (list, tuple)):
        for index, line in enumerate(ingredients):
            if not isinstance(line, Mapping):
                errors.append(f"Menu ingredient at index {index} is missing required fields")
                continue
            quantity = line.get("quantity")
            if not line.get("ingredientId") or quantity is None or quantity == "":
                errors.append(f"Menu ingredient at index {index} is missing required fields")
                continue
            parsed = parse_number(quantity)
            if parsed is None or parsed <= 0:
                errors.append(f"Menu ingredient at index {index} must have positive quantity")

    price = parse_number(record.get("price"))
    cost = parse_number(record.get("cost"))
    if price is not None and cost is not None and price < cost:
        errors.append(
            f"Menu item price ({format_number(price)}) should not be less than cost ({format_number(cost)})"
        )
    return errors


@invariant("transaction")
def check_transaction(record: TransactionRecord, context: IntegrityContext) -> list[str]:
    errors: list[str] = []
    items = record.get("items")
    if isinstance(items, (list, tuple)):
        item_kind = line_item_kind(record.get("type"))
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                errors.append(f"Transaction item at index {index}: item must be an object")
                continue
            item_result = context.validate(item_kind, dict(item))
            if not item_result.valid:
                errors.append(f"Transaction item at index {index}: {', '.join(item_result.errors)}")

        declared = parse_number(record.get("total"))
        calculated = sum_line_totals(items)
        if declared is not None and not amounts_match(calculated, declared):
            errors.append(
                f"Transaction total ({format_number(declared)}) does not match "
                f"sum of items ({format_number(calculated)})"
            )

    timestamp = parse_timestamp(record.get("timestamp"))
    if timestamp is not None and timestamp > context.now_ms + FUTURE_TIMESTAMP_TOLERANCE_MS:
        errors.append("Transaction timestamp cannot be in the future")
    return errors


def _line_total_errors(label: str, record: LineItemRecord) -> list[str]:
    quantity = parse_number(record.get("quantity"))
    unit_price = parse_number(record.get("unitPrice"))
    total_price = parse_number(record.get("totalPrice"))
    if quantity is None or unit_price is None or total_price is None:
        return []
    expected = quantity * unit_price
    if amounts_match(expected, total_price):
        return []
    return [
        f"{label} total price ({format_number(total_price)}) does not match "
        f"quantity x unit price ({format_number(expected)})"
    ]


@invariant("purchaseItem")
def check_purchase_item(record: LineItemRecord, context: IntegrityContext) -> list[str]:
    return _line_total_errors("Purchase item", record)


@invariant("saleItem")
def check_sale_item(record: LineItemRecord, context: IntegrityContext) -> list[str]:
    return _line_total_errors("Sale item", record)


DEFAULT_CHECKS: Mapping[str, InvariantCheck] = MappingProxyType(_DEFAULT_CHECKS)


class IntegrityChecker:
    def __init__(
        self,
        checks: Mapping[str, InvariantCheck] | None = None,
        reporter: ErrorReporter | None = None,
    ):
        self._checks = MappingProxyType(dict(DEFAULT_CHECKS if checks is None else checks))
        self._reporter = reporter or NullErrorReporter()

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(self._checks)

    def check(self, kind: str, record: dict, context: IntegrityContext) -> IntegrityResult:
        func = self._checks.get(kind)
        if func is None:
            return IntegrityResult(valid=True)
        try:
            errors = func(record, context)
        except Exception as exc:
            self._reporter.report("integrity-check", exc, {"kind": kind})
            errors = [f"Integrity check for {kind} failed: {exc.__class__.__name__}"]
        return IntegrityResult(valid=not errors, errors=tuple(errors))
