import json
import os
from typing import Any, Dict, List, Optional, TextIO

from core.config import OutputFormat
from core.standards import standard_label
from features.base import Match
from features.catalog import Catalog, build_catalog
from pipeline import BatchResult, FileResult, Outcome
from templates import render as render_template


_USE_COLOR = not os.environ.get("STDGATE_NO_COLORS")


class _C:
    """ANSI color codes."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    # Colors
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"


class _NoColor:
    RESET = BOLD = DIM = RED = GREEN = YELLOW = MAGENTA = CYAN = ""


def _outcome_color(outcome: Outcome, colors) -> str:
    """Get color code for a batch outcome."""
    return {
        Outcome.OK: colors.GREEN,
        Outcome.VIOLATION: colors.YELLOW,
        Outcome.FAILURE: f"{colors.BOLD}{colors.RED}",
    }.get(outcome, "")


def _location_key(match: Match):
    return (match.location.line, match.location.column, match.offset)


def group_findings(file_result: FileResult, catalog: Catalog) -> List[Dict[str, Any]]:
    """
    Group a file's findings by feature.

    Groups follow catalog order; matches within a group are sorted by
    (line, column, offset).
    """
    by_id: Dict[str, List[Match]] = {}
    for match in file_result.result.findings:
        by_id.setdefault(match.feature_id, []).append(match)
    groups = []
    for descriptor in catalog.all():
        matches = by_id.get(descriptor.id)
        if matches:
            groups.append({"feature": descriptor, "matches": sorted(matches, key=_location_key)})
    return groups


def render_human(batch: BatchResult, catalog: Catalog, color: bool = True) -> str:
    colors = _C if color else _NoColor
    files = [
        {
            "name": f.name,
            "required_standard": f.required_standard,
            "groups": group_findings(f, catalog),
            "notes": f.notes,
            "diagnostics": f.diagnostics,
        }
        for f in batch.files
    ]
    outcome = batch.outcome
    return render_template(
        "report.j2",
        c=colors,
        files=files,
        failures=batch.failures,
        floor=batch.floor_standard,
        required=batch.required_standard,
        file_count=len(batch.files),
        finding_count=batch.finding_count,
        outcome=outcome.value,
        outcome_color=_outcome_color(outcome, colors),
    )


def to_machine(batch: BatchResult, catalog: Catalog) -> Dict[str, Any]:
    """Machine-readable report. Field names are stable; new fields are only appended."""
    records = []
    notes = []
    diagnostics = []
    files = []

    for f in batch.files:
        for group in group_findings(f, catalog):
            descriptor = group["feature"]
            for m in group["matches"]:
                records.append(
                    {
                        "file": f.name,
                        "featureId": m.feature_id,
                        "minStandard": descriptor.min_standard,
                        "line": m.location.line,
                        "column": m.location.column,
                        "matchedText": m.matched_text,
                    }
                )
        for note in f.notes:
            notes.append(
                {
                    "file": f.name,
                    "kind": "ambiguous",
                    "featureId": note.feature_id,
                    "line": note.line,
                    "column": note.column,
                    "text": note.text,
                    "reason": note.reason,
                    "candidates": list(note.candidates),
                }
            )
        for diag in f.diagnostics:
            diagnostics.append(
                {
                    "file": f.name,
                    "kind": "scan-partial-failure",
                    "line": diag.line,
                    "column": diag.column,
                    "message": diag.message,
                }
            )
        files.append(
            {
                "file": f.name,
                "requiredStandard": f.required_standard,
                "findings": len(f.result.findings),
            }
        )

    failures = [{"file": x.name, "kind": x.kind, "message": x.message} for x in batch.failures]

    return {
        "records": records,
        "notes": notes,
        "diagnostics": diagnostics,
        "failures": failures,
        "files": files,
        "summary": {
            "requiredStandard": batch.required_standard,
            "floorStandard": batch.floor_standard,
            "files": len(batch.files),
            "findings": batch.finding_count,
            "outcome": batch.outcome.value,
        },
    }


def render(
    batch: BatchResult,
    fmt: OutputFormat,
    catalog: Optional[Catalog] = None,
    color: Optional[bool] = None,
) -> str:
    """Render a batch result in the requested format."""
    catalog = catalog or build_catalog()
    if fmt == OutputFormat.MACHINE:
        return json.dumps(to_machine(batch, catalog), indent=2) + "\n"
    return render_human(batch, catalog, color=_USE_COLOR if color is None else color)


def report(
    batch: BatchResult,
    fmt: OutputFormat,
    catalog: Catalog,
    output_file: Optional[TextIO] = None,
) -> int:
    """
    Print the report to stdout (and to output_file when given).

    Returns: the batch exit code
    """
    print(render(batch, fmt, catalog), end="")
    if output_file:
        # Files never carry ANSI codes
        print(render(batch, fmt, catalog, color=False), end="", file=output_file)
    return batch.exit_code


def list_features(catalog: Catalog, color: Optional[bool] = None) -> str:
    """One line per catalog feature, in catalog order."""
    colors = _C if (_USE_COLOR if color is None else color) else _NoColor
    width = max(len(d.id) for d in catalog.all())
    lines = []
    for d in catalog.all():
        lines.append(
            f"{colors.YELLOW}{d.id:<{width}}{colors.RESET}  {standard_label(d.min_standard)}  "
            f"{d.description}  {colors.DIM}{d.example}{colors.RESET}"
        )
    return "\n".join(lines) + "\n"
