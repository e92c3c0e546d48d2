from tests.record_helpers import ingredient, menu, transaction


def test_validate_record_ok(pinned_client):
    response = pinned_client.post("/tillsync/validation/ingredient", json={"record": ingredient()})
    assert response.status_code == 200
    assert response.json() == {"kind": "ingredient", "valid": True, "errors": [], "warnings": []}


def test_validate_record_reports_errors_and_warnings(pinned_client):
    record = menu(price=10, loyaltyPoints=3)
    response = pinned_client.post("/tillsync/validation/menu", json={"record": record})
    assert response.status_code == 200
    payload = response.json()
    assert payload["valid"] is False
    assert payload["errors"] == ["Menu item price (10) should not be less than cost (25)"]
    assert payload["warnings"] == ["Unexpected field: loyaltyPoints"]


def test_validate_unknown_kind_is_an_invalid_result(pinned_client):
    response = pinned_client.post("/tillsync/validation/refund", json={"record": {"id": "r-1"}})
    assert response.status_code == 200
    payload = response.json()
    assert payload["valid"] is False
    assert payload["errors"] == ["Unknown entity kind: refund"]


def test_validate_requires_object_record(pinned_client):
    response = pinned_client.post("/tillsync/validation/ingredient", json={"record": [1, 2]})
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["trace_id"]


def test_batch_validate(pinned_client):
    entities = [
        {"kind": "ingredient", "data": ingredient()},
        {"kind": "transaction", "data": transaction(total=90)},
        {"kind": "menu", "data": menu(extra="x")},
    ]
    response = pinned_client.post("/tillsync/validation/batch", json={"entities": entities})
    assert response.status_code == 200
    payload = response.json()
    assert payload["valid"] == 2
    assert payload["invalid"] == 1
    assert payload["errors"] == [
        {
            "index": 1,
            "kind": "transaction",
            "errors": ["Transaction total (90) does not match sum of items (100)"],
        }
    ]
    assert payload["warnings"] == [{"index": 2, "kind": "menu", "warnings": ["Unexpected field: extra"]}]


def test_batch_validate_empty(pinned_client):
    response = pinned_client.post("/tillsync/validation/batch", json={"entities": []})
    assert response.status_code == 200
    assert response.json() == {"valid": 0, "invalid": 0, "errors": [], "warnings": []}


def test_batch_validate_rejects_oversized_batches(pinned_client):
    entities = [{"kind": "ingredient", "data": ingredient()}] * 501
    response = pinned_client.post("/tillsync/validation/batch", json={"entities": entities})
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "BATCH_TOO_LARGE"
    assert payload["details"] == {"max_items": 500, "received": 501}


def test_repair_fixes_transaction_total(pinned_client):
    response = pinned_client.post("/tillsync/repair/transaction", json={"record": transaction(total=90)})
    assert response.status_code == 200
    payload = response.json()
    assert payload["validation"]["valid"] is False
    assert payload["repair"]["repaired"] is True
    assert payload["repair"]["repairs"] == ["Corrected transaction total from 90 to 100"]
    assert payload["repair"]["data"]["total"] == 100
    assert payload["revalidation"]["valid"] is True


def test_repair_leaves_valid_record_untouched(pinned_client):
    record = transaction()
    response = pinned_client.post("/tillsync/repair/transaction", json={"record": record})
    assert response.status_code == 200
    payload = response.json()
    assert payload["validation"]["valid"] is True
    assert payload["repair"] == {"repaired": False, "repairs": [], "data": record}
    assert payload["revalidation"] is None


def test_repair_unknown_kind(pinned_client):
    response = pinned_client.post("/tillsync/repair/refund", json={"record": {}})
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "UNKNOWN_ENTITY_KIND"
    assert payload["details"] == {"kind": "refund"}
