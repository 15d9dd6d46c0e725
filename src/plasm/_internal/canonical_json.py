"""Canonical JSON for the report files the CLI writes.

Repeated runs over the same receipt must produce byte-identical reports, so
every report goes through canonical_dumps.
"""

import json
from pathlib import Path
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """Serialize with sorted keys, compact separators and raw UTF-8."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def write_report(output_dir: Path, filename: str, report: dict) -> Path:
    """Write a canonical JSON report, creating output_dir if needed.

    Returns:
        Path of the written report
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / filename
    report_path.write_text(canonical_dumps(report) + "\n", encoding="utf-8")
    return report_path
