from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from dataclasses import asdict, dataclass
from pathlib import Path

from app.tillsync.core.config import settings
from app.tillsync.core.reporting import CollectingErrorReporter
from app.tillsync.engine.engine import DataIntegrityEngine

SEVERITY_CRITICAL = "CRITICAL"
SEVERITY_WARN = "WARN"


@dataclass(frozen=True)
class IntegrityFinding:
    index: int
    kind: str
    severity: str
    message: str
    entity_id: str | None


def load_entities(path: Path) -> list[tuple[str, dict]]:
    """Reads ``[{"kind": ..., "data": {...}}, ...]`` or the same entries as JSON lines."""
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("["):
        entries = json.loads(stripped)
    else:
        entries = [json.loads(line) for line in text.splitlines() if line.strip()]
    entities = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict) or "kind" not in entry or not isinstance(entry.get("data"), dict):
            raise ValueError(f"entry {position} must be an object with 'kind' and 'data'")
        entities.append((str(entry["kind"]), entry["data"]))
    return entities


def _entity_id(data: dict) -> str | None:
    value = data.get("id")
    return str(value) if value not in (None, "") else None


def scan_entities(engine: DataIntegrityEngine, entities: list[tuple[str, dict]]) -> list[IntegrityFinding]:
    findings: list[IntegrityFinding] = []
    batch = engine.batch_validate(entities)
    for index, ((kind, data), result) in enumerate(zip(entities, batch.results)):
        entity_id = _entity_id(data)
        for message in result.errors:
            findings.append(IntegrityFinding(index, kind, SEVERITY_CRITICAL, message, entity_id))
        for message in result.warnings:
            findings.append(IntegrityFinding(index, kind, SEVERITY_WARN, message, entity_id))
    return findings


def repair_entities(engine: DataIntegrityEngine, entities: list[tuple[str, dict]]) -> list[dict]:
    repairs = []
    for index, (kind, data) in enumerate(entities):
        if not engine.is_known_kind(kind):
            continue
        outcome = engine.repair_if_invalid(kind, data)
        if outcome.repair.repaired:
            repairs.append(
                {
                    "index": index,
                    "kind": kind,
                    "repairs": list(outcome.repair.repairs),
                    "valid_after_repair": outcome.revalidation.valid if outcome.revalidation else None,
                    "data": outcome.repair.data,
                }
            )
    return repairs


def _summarize(entities: list[tuple[str, dict]], findings: list[IntegrityFinding]) -> dict:
    counts = Counter(f.severity for f in findings)
    invalid = len({f.index for f in findings if f.severity == SEVERITY_CRITICAL})
    return {
        "records": len(entities),
        "invalid_records": invalid,
        "critical": counts.get(SEVERITY_CRITICAL, 0),
        "warn": counts.get(SEVERITY_WARN, 0),
    }


def _format_text(summary: dict, findings: list[IntegrityFinding], repairs: list[dict] | None) -> str:
    lines = [
        "Record Integrity Scan",
        f"Records: {summary['records']}",
        f"Invalid records: {summary['invalid_records']}",
        f"CRITICAL: {summary['critical']}",
        f"WARN: {summary['warn']}",
        "",
    ]
    for finding in findings:
        lines.append(
            f"[{finding.severity}] #{finding.index} kind={finding.kind} "
            f"id={finding.entity_id or '-'} {finding.message}"
        )
    if repairs:
        lines.append("")
        for repair in repairs:
            lines.append(f"[REPAIRED] #{repair['index']} kind={repair['kind']} {'; '.join(repair['repairs'])}")
    return "\n".join(lines)


def run_scan(input_path: str, output_format: str, fail_on_invalid: bool, *, repair: bool = False) -> int:
    if not settings.OPS_ENABLE_INTEGRITY_SCAN:
        print("Integrity scan disabled by OPS_ENABLE_INTEGRITY_SCAN.", file=sys.stderr)
        return 2
    reporter = CollectingErrorReporter()
    engine = DataIntegrityEngine(reporter=reporter)
    entities = load_entities(Path(input_path))
    findings = scan_entities(engine, entities)
    repairs = repair_entities(engine, entities) if repair else None
    summary = _summarize(entities, findings)
    summary["engine_errors"] = len(reporter.reports)
    if output_format == "json":
        output = {"summary": summary, "findings": [asdict(finding) for finding in findings]}
        if repairs is not None:
            output["repairs"] = repairs
        print(json.dumps(output, indent=2, default=str))
    else:
        print(_format_text(summary, findings, repairs))
    if fail_on_invalid and summary["invalid_records"] > 0:
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="TILLSYNC record integrity scan")
    parser.add_argument("--input", required=True, help="JSON array or JSON lines of {kind, data} entries")
    parser.add_argument("--format", choices=["json", "text"], default="text")
    parser.add_argument("--fail-on-invalid", action="store_true")
    parser.add_argument("--repair", action="store_true", help="Recompute derivable fields of invalid records")
    args = parser.parse_args(argv)
    return run_scan(args.input, args.format, args.fail_on_invalid, repair=args.repair)


if __name__ == "__main__":
    raise SystemExit(main())
