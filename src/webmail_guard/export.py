"""Export scan results to CSV or JSON."""

import csv
import json

from .models import ScanResult

_CSV_FIELDS = [
    "id",
    "sender",
    "subject",
    "timestamp",
    "scanSource",
    "score",
    "status",
    "threats",
    "scannedAt",
    "degraded",
]


def export_results(results: list[ScanResult], format: str, output_path: str) -> None:
    """Export scan results to a file, lowest score first.

    Args:
        results: The scan results to export.
        format: Output format, either 'csv' or 'json'.
        output_path: Path to write the output file.
    """
    rows = [r.to_dict() for r in sorted(results, key=lambda r: r.score)]

    if format == "csv":
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=_CSV_FIELDS, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow({**row, "threats": "; ".join(row["threats"])})
    elif format == "json":
        with open(output_path, "w") as f:
            json.dump(rows, f, indent=2)
    else:
        raise ValueError(f"Unsupported export format: {format}")
