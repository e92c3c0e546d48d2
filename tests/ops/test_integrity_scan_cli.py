import json

import pytest

import app.ops.integrity_scan as integrity_scan
import app.tillsync.engine.engine as engine_module
from app.ops.integrity_scan import load_entities, main, run_scan
from tests.record_helpers import NOW_MS, ingredient, menu, transaction


@pytest.fixture(autouse=True)
def pinned_clock(monkeypatch):
    monkeypatch.setattr(engine_module, "system_clock", lambda: NOW_MS)


def _write(tmp_path, entries, *, lines=False):
    path = tmp_path / ("records.jsonl" if lines else "records.json")
    if lines:
        path.write_text("\n".join(json.dumps(entry) for entry in entries) + "\n", encoding="utf-8")
    else:
        path.write_text(json.dumps(entries), encoding="utf-8")
    return path


def test_integrity_scan_no_findings(tmp_path, capsys):
    path = _write(tmp_path, [{"kind": "ingredient", "data": ingredient()}, {"kind": "menu", "data": menu()}])
    exit_code = run_scan(str(path), "json", True)
    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["summary"]["records"] == 2
    assert payload["summary"]["critical"] == 0
    assert payload["summary"]["invalid_records"] == 0
    assert payload["summary"]["engine_errors"] == 0


def test_integrity_scan_critical_exit(tmp_path, capsys):
    path = _write(
        tmp_path,
        [
            {"kind": "menu", "data": menu(price=5)},
            {"kind": "ingredient", "data": ingredient(id="ing-009", extra=1)},
        ],
        lines=True,
    )
    exit_code = run_scan(str(path), "json", True)
    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert payload["summary"]["invalid_records"] == 1
    assert payload["summary"]["critical"] == 1
    assert payload["summary"]["warn"] == 1
    critical = [finding for finding in payload["findings"] if finding["severity"] == "CRITICAL"]
    assert critical[0]["entity_id"] == "menu-001"
    assert critical[0]["index"] == 0


def test_integrity_scan_repair_output(tmp_path, capsys):
    path = _write(tmp_path, [{"kind": "transaction", "data": transaction(total=90)}])
    exit_code = run_scan(str(path), "json", False, repair=True)
    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["repairs"][0]["repairs"] == ["Corrected transaction total from 90 to 100"]


def test_integrity_scan_text_format(tmp_path, capsys):
    path = _write(tmp_path, [{"kind": "refund", "data": {"id": "r-1"}}])
    exit_code = main(["--input", str(path), "--format", "text"])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Record Integrity Scan" in output
    assert "[CRITICAL] #0 kind=refund id=r-1 Unknown entity kind: refund" in output


def test_integrity_scan_disabled(tmp_path, monkeypatch):
    path = _write(tmp_path, [])
    monkeypatch.setattr(integrity_scan.settings, "OPS_ENABLE_INTEGRITY_SCAN", False)
    assert run_scan(str(path), "json", False) == 2


def test_load_entities_rejects_malformed_entries(tmp_path):
    path = _write(tmp_path, [{"kind": "menu"}])
    with pytest.raises(ValueError):
        load_entities(path)
