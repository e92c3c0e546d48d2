from tests.record_helpers import NOW_MS, ingredient, menu, snapshot_pair


def test_detect_conflicts(pinned_client):
    local, remote = snapshot_pair(
        ingredient(),
        local={"currentStock": 2400, "lastUpdated": NOW_MS - 5000},
        remote={"currentStock": 2300, "lastUpdated": NOW_MS - 1000},
    )
    response = pinned_client.post(
        "/tillsync/sync/detect", json={"kind": "ingredient", "local": local, "remote": remote}
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["hasConflicts"] is True
    assert [conflict["field"] for conflict in payload["conflicts"]] == ["currentStock", "lastUpdated"]
    assert payload["conflicts"][0]["localValue"] == 2400
    assert payload["conflicts"][0]["remoteTimestamp"] == NOW_MS - 1000


def test_detect_identical_snapshots(pinned_client):
    record = menu()
    response = pinned_client.post("/tillsync/sync/detect", json={"kind": "menu", "local": record, "remote": record})
    assert response.status_code == 200
    assert response.json() == {"kind": "menu", "hasConflicts": False, "conflicts": []}


def test_detect_unknown_kind(pinned_client):
    response = pinned_client.post("/tillsync/sync/detect", json={"kind": "refund", "local": {}, "remote": {}})
    assert response.status_code == 422
    assert response.json()["code"] == "UNKNOWN_ENTITY_KIND"


def test_resolve_detects_when_conflicts_are_omitted(pinned_client):
    local, remote = snapshot_pair(
        menu(),
        local={"price": 55, "lastUpdated": NOW_MS - 5000},
        remote={"price": 65, "lastUpdated": NOW_MS - 1000},
    )
    response = pinned_client.post("/tillsync/sync/resolve", json={"kind": "menu", "local": local, "remote": remote})
    assert response.status_code == 200
    payload = response.json()
    assert payload["strategy"] == "automatic"
    assert payload["resolvedData"]["price"] == 65
    assert payload["resolvedTimestamp"] == NOW_MS - 1000
    assert payload["manualRequired"] == []


def test_resolve_with_explicit_conflicts(pinned_client):
    local = {"currentStock": 5, "lastUpdated": 100}
    remote = {"currentStock": 8, "lastUpdated": 100}
    conflicts = [
        {
            "field": "currentStock",
            "localValue": 5,
            "remoteValue": 8,
            "localTimestamp": 100,
            "remoteTimestamp": 100,
        }
    ]
    response = pinned_client.post(
        "/tillsync/sync/resolve",
        json={"kind": "ingredient", "local": local, "remote": remote, "conflicts": conflicts},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["strategy"] == "automatic"
    assert payload["resolvedData"] == {"currentStock": 8, "lastUpdated": 100}
    assert payload["autoResolved"] == [{"field": "currentStock", "strategy": "higher-value", "value": 8}]


def test_resolve_reports_manual_fields(pinned_client):
    conflicts = [
        {"field": "category", "localValue": "rice", "remoteValue": "noodle", "localTimestamp": 7, "remoteTimestamp": 7}
    ]
    response = pinned_client.post(
        "/tillsync/sync/resolve",
        json={"kind": "menu", "local": {"lastUpdated": 7}, "remote": {"lastUpdated": 7}, "conflicts": conflicts},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["strategy"] == "manual"
    assert payload["resolvedData"] is None
    assert payload["manualRequired"] == conflicts


def test_reconcile_prefers_the_only_valid_side(pinned_client):
    local, remote = snapshot_pair(menu(), local={"price": 10, "lastUpdated": NOW_MS - 1000})
    response = pinned_client.post(
        "/tillsync/sync/reconcile",
        json={"entity_id": "menu-001", "kind": "menu", "local": local, "remote": remote},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "resolved"
    assert payload["strategy"] == "remote-valid"
    assert payload["resolved_data"] == remote
    assert payload["pending"] is None

    response = pinned_client.post(
        "/tillsync/sync/reconcile",
        json={"entity_id": "menu-001", "kind": "menu", "local": remote, "remote": local},
    )
    assert response.json()["strategy"] == "local-valid"


def test_reconcile_identical_snapshots(pinned_client):
    record = ingredient()
    response = pinned_client.post(
        "/tillsync/sync/reconcile",
        json={"entity_id": "ing-001", "kind": "ingredient", "local": record, "remote": record},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["strategy"] == "most-recent"
    assert payload["resolved_data"] == record


def test_reconcile_resolves_automatically_and_records_history(pinned_client):
    local, remote = snapshot_pair(
        menu(),
        local={"price": 55, "isActive": False, "lastUpdated": NOW_MS - 1000},
        remote={"price": 65, "lastUpdated": NOW_MS - 5000},
    )
    response = pinned_client.post(
        "/tillsync/sync/reconcile",
        json={"entity_id": "menu-001", "kind": "menu", "local": local, "remote": remote},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["strategy"] == "automatic"
    assert payload["resolved_data"]["price"] == 55
    assert payload["resolved_data"]["isActive"] is False
    assert payload["resolved_data"]["lastUpdated"] == NOW_MS - 1000

    stats = pinned_client.get("/tillsync/sync/stats").json()
    assert stats["total"] == 1
    assert stats["resolved"] == 1
    assert stats["pending"] == 0
    assert stats["last_hour"] == 1
    assert stats["resolution_rate"] == 100.0


def test_reconcile_unknown_kind(pinned_client):
    response = pinned_client.post(
        "/tillsync/sync/reconcile",
        json={"entity_id": "x", "kind": "refund", "local": {}, "remote": {}},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "UNKNOWN_ENTITY_KIND"


def test_stats_start_empty(pinned_client):
    response = pinned_client.get("/tillsync/sync/stats")
    assert response.status_code == 200
    assert response.json() == {
        "total": 0,
        "pending": 0,
        "last_hour": 0,
        "today": 0,
        "resolved": 0,
        "resolution_rate": 0.0,
    }
