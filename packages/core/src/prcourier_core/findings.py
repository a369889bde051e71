"""Loading review findings written by the external reviewer.

Two JSON shapes are accepted:

* a flat list of findings: ``[{"file": ..., "line": 12, "severity": "error", "message": ...}]``
* a list of per-file results: ``[{"file": ..., "issues": [{"line": 12, ...}]}]``

The second shape also tells us which files were reviewed even when they
produced no findings, which feeds the "files reviewed" total of the final
summary.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from prcourier_core.models import SEVERITIES, Finding

logger = logging.getLogger(__name__)


class FindingsError(ValueError):
    """The findings file is missing or is not valid findings JSON."""


def _parse_line(value) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value)
        else:
            return None
    return value if value > 0 else None


def parse_finding(raw: dict, file: str | None = None) -> Finding | None:
    """Build a Finding from one JSON object, or return None when it is unusable."""
    path = raw.get("file") or file
    message = raw.get("message")
    if not path or not message:
        logger.warning("Dropping finding without file or message: %r", raw)
        return None

    severity = str(raw.get("severity", "info")).lower()
    if severity not in SEVERITIES:
        logger.debug("Unknown severity %r for %s, using info", severity, path)
        severity = "info"

    return Finding(
        file=path,
        line=_parse_line(raw.get("line")),
        severity=severity,
        message=message,
        suggestion=raw.get("suggestion") or None,
        code=raw.get("code") or raw.get("codeSnippet") or None,
    )


def parse_findings(data) -> tuple[list[Finding], list[str]]:
    """Return (findings, reviewed files) for either accepted JSON shape."""
    if not isinstance(data, list):
        raise FindingsError("Findings JSON must be a list.")

    findings: list[Finding] = []
    files: list[str] = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning("Dropping non-object findings entry: %r", entry)
            continue
        if "issues" in entry:
            file = entry.get("file")
            if file and file not in files:
                files.append(file)
            for issue in entry.get("issues") or []:
                finding = parse_finding(issue, file=file) if isinstance(issue, dict) else None
                if finding is not None:
                    findings.append(finding)
        else:
            finding = parse_finding(entry)
            if finding is not None:
                findings.append(finding)
                if finding.file not in files:
                    files.append(finding.file)
    return findings, files


def load_findings(path: str) -> tuple[list[Finding], list[str]]:
    p = Path(path)
    if not p.exists():
        raise FindingsError(f"Findings file not found: {path}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise FindingsError(f"Findings file is not valid JSON: {e}") from e
    return parse_findings(data)
