import json

from app.tillsync.engine.conflicts import detect_conflicts
from app.tillsync.engine.resolver import (
    RESOLUTION_RULES,
    UNRESOLVED,
    ConflictResolver,
    ResolutionRule,
    higher_value,
    most_recent,
    non_empty,
    prefer_active,
    resolve_field,
)
from app.tillsync.engine.results import Conflict
from tests.record_helpers import ingredient, menu, snapshot_pair


def _conflict(field, local_value, remote_value, local_ts=100, remote_ts=100):
    return Conflict(field, local_value, remote_value, local_ts, remote_ts)


def test_rule_priority_is_declared():
    assert [rule.name for rule in RESOLUTION_RULES] == ["most-recent", "higher-value", "prefer-active", "non-empty"]
    assert RESOLUTION_RULES[1].matches("currentStock")
    assert RESOLUTION_RULES[1].matches("quantity")
    assert not RESOLUTION_RULES[1].matches("minStock")
    assert RESOLUTION_RULES[2].field_patterns == ("isActive",)


def test_most_recent_rule():
    assert most_recent(_conflict("name", "a", "b", 200, 100)) == "a"
    assert most_recent(_conflict("name", "a", "b", 100, 200)) == "b"
    assert most_recent(_conflict("name", "a", "b")) is UNRESOLVED


def test_tie_rules_in_isolation():
    assert higher_value(_conflict("currentStock", 5, 8)) == 8
    assert higher_value(_conflict("currentStock", 5, "8")) is UNRESOLVED
    assert prefer_active(_conflict("isActive", False, True)) is True
    assert prefer_active(_conflict("isActive", False, None)) is UNRESOLVED
    assert non_empty(_conflict("category", "  ", "rice")) == "rice"
    assert non_empty(_conflict("category", "rice", "")) == "rice"
    assert non_empty(_conflict("category", "rice", "noodle")) is UNRESOLVED
    assert non_empty(_conflict("category", "", " ")) is UNRESOLVED


def test_timestamps_dominate_every_field():
    local, remote = snapshot_pair(
        ingredient(),
        local={"currentStock": 1, "name": "Local", "lastUpdated": 300},
        remote={"currentStock": 99, "name": "Remote", "lastUpdated": 200},
    )
    report = detect_conflicts(local, remote, "ingredient")
    resolution = ConflictResolver().resolve(report.conflicts, "ingredient", local, remote)
    assert resolution.strategy == "automatic"
    assert resolution.resolved_data["currentStock"] == 1
    assert resolution.resolved_data["name"] == "Local"
    assert resolution.resolved_data["lastUpdated"] == 300
    assert {item.strategy for item in resolution.auto_resolved} == {"most-recent"}


def test_newer_remote_wins():
    local, remote = snapshot_pair(
        menu(),
        local={"price": 55, "lastUpdated": 100},
        remote={"price": 65, "lastUpdated": 150},
    )
    report = detect_conflicts(local, remote, "menu")
    resolution = ConflictResolver().resolve(report.conflicts, "menu", local, remote)
    assert resolution.resolved_data["price"] == 65
    assert resolution.resolved_timestamp == 150


def test_stock_max_wins_on_tie():
    local = {"currentStock": 5, "lastUpdated": 100}
    remote = {"currentStock": 8, "lastUpdated": 100}
    conflicts = [_conflict("currentStock", 5, 8)]
    resolution = ConflictResolver().resolve(conflicts, "ingredient", local, remote)
    assert resolution.strategy == "automatic"
    assert resolution.resolved_data == {"currentStock": 8, "lastUpdated": 100}
    assert resolution.auto_resolved[0].strategy == "higher-value"


def test_active_flag_prefers_true_on_tie():
    resolution = ConflictResolver().resolve(
        [_conflict("isActive", True, False)], "menu", {"isActive": True}, {"isActive": False}
    )
    assert resolution.resolved_data["isActive"] is True
    assert resolution.auto_resolved[0].strategy == "prefer-active"


def test_two_non_blank_strings_on_tie_need_a_human():
    local = menu(category="rice", lastUpdated=100)
    remote = menu(category="noodle", lastUpdated=100)
    conflicts = [
        _conflict("category", "rice", "noodle"),
        _conflict("currentStock", 3, 4),
    ]
    resolution = ConflictResolver().resolve(conflicts, "menu", local, remote)
    assert resolution.strategy == "manual"
    assert resolution.resolved_data is None
    assert [conflict.field for conflict in resolution.manual_required] == ["category"]
    assert [item.field for item in resolution.auto_resolved] == ["currentStock"]
    assert resolution.resolved_timestamp == 100


def test_numeric_rule_only_for_stock_fields():
    resolution = ConflictResolver().resolve([_conflict("price", 10, 12)], "menu", {}, {})
    assert resolution.strategy == "manual"


def test_resolution_does_not_mutate_inputs():
    local, remote = snapshot_pair(menu(), local={"lastUpdated": 1}, remote={"lastUpdated": 2, "ingredients": []})
    before = json.dumps([local, remote], sort_keys=True)
    report = detect_conflicts(local, remote, "menu")
    resolution = ConflictResolver().resolve(report.conflicts, "menu", local, remote)
    resolution.resolved_data["ingredients"].append({"ingredientId": "x", "quantity": 1})
    assert json.dumps([local, remote], sort_keys=True) == before


def test_resolution_is_deterministic():
    local, remote = snapshot_pair(
        ingredient(), local={"name": "A", "lastUpdated": 10}, remote={"name": "B", "lastUpdated": 20}
    )
    conflicts = detect_conflicts(local, remote, "ingredient").conflicts
    first = ConflictResolver().resolve(conflicts, "ingredient", local, remote).to_dict()
    second = ConflictResolver().resolve(conflicts, "ingredient", local, remote).to_dict()
    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_custom_rule_set():
    prefer_local = ResolutionRule("prefer-local", ("notes",), lambda conflict: conflict.local_value)
    resolver = ConflictResolver(rules=(prefer_local,))
    assert resolve_field(_conflict("notes", "a", "b"), resolver.rules).value == "a"
    assert resolve_field(_conflict("platform", "a", "b"), resolver.rules) is None


def test_string_timestamps_pick_the_newer_side():
    local = ingredient(name="Rice A", lastUpdated="1759999999000")
    remote = ingredient(name="Rice B", lastUpdated="1760000000000")
    report = detect_conflicts(local, remote, "ingredient")
    resolution = ConflictResolver().resolve(report.conflicts, "ingredient", local, remote)
    assert resolution.strategy == "automatic"
    assert resolution.resolved_data["name"] == "Rice B"
    assert resolution.resolved_timestamp == 1_760_000_000_000
    assert resolution.resolved_data["lastUpdated"] == 1_760_000_000_000
