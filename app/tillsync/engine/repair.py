from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from types import MappingProxyType

from app.tillsync.core.reporting import ErrorReporter, NullErrorReporter
from app.tillsync.engine.fields import format_number, parse_number
from app.tillsync.engine.integrity import amounts_match, sum_line_totals
from app.tillsync.engine.records import LineItemRecord, TransactionRecord
from app.tillsync.engine.results import RepairResult

# Receives a private copy of the record, updates it in place and returns
# the notes describing each change.
RepairFunc = Callable[[dict], list[str]]

_DEFAULT_REPAIRS: dict[str, RepairFunc] = {}


def repairs_for(*kinds: str) -> Callable[[RepairFunc], RepairFunc]:
    def register(func: RepairFunc) -> RepairFunc:
        for kind in kinds:
            _DEFAULT_REPAIRS[kind] = func
        return func

    return register


@repairs_for("transaction")
def repair_transaction_total(record: TransactionRecord) -> list[str]:
    items = record.get("items")
    declared = parse_number(record.get("total"))
    if not isinstance(items, (list, tuple)) or declared is None:
        return []
    calculated = sum_line_totals(items)
    if amounts_match(calculated, declared):
        return []
    record["total"] = calculated
    return [f"Corrected transaction total from {format_number(declared)} to {format_number(calculated)}"]


@repairs_for("purchaseItem", "saleItem")
def repair_line_total(record: LineItemRecord) -> list[str]:
    quantity = parse_number(record.get("quantity"))
    unit_price = parse_number(record.get("unitPrice"))
    total_price = parse_number(record.get("totalPrice"))
    if quantity is None or unit_price is None or total_price is None:
        return []
    expected = quantity * unit_price
    if amounts_match(expected, total_price):
        return []
    record["totalPrice"] = expected
    return [f"Corrected item total price from {format_number(total_price)} to {format_number(expected)}"]


DEFAULT_REPAIRS: Mapping[str, RepairFunc] = MappingProxyType(_DEFAULT_REPAIRS)


class RecordRepairer:
    """Recomputes derivable fields; never fills in data that is absent."""

    def __init__(
        self,
        repairs: Mapping[str, RepairFunc] | None = None,
        reporter: ErrorReporter | None = None,
    ):
        self._repairs = MappingProxyType(dict(DEFAULT_REPAIRS if repairs is None else repairs))
        self._reporter = reporter or NullErrorReporter()

    def repair(self, kind: str, record: Mapping) -> RepairResult:
        data = copy.deepcopy(dict(record))
        func = self._repairs.get(kind)
        if func is None:
            return RepairResult(repaired=False, data=data)
        try:
            notes = func(data)
        except Exception as exc:
            self._reporter.report("repair", exc, {"kind": kind})
            return RepairResult(repaired=False, data=copy.deepcopy(dict(record)))
        return RepairResult(repaired=bool(notes), data=data, repairs=tuple(notes))
