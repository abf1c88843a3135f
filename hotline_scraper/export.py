"""
Export completed units (processed_models.json) to CSV with optional filters.
Usage:
  hotline-export [--output FILE] [--since DATE] [--until DATE] [--make MAKE] [--model MODEL]
"""
import argparse
import csv
from pathlib import Path

from hotline_scraper.config import CHECKPOINT_DIR, UNIT_RECORDS_FILE, VISITED_IDS_FILE
from hotline_scraper.models import CheckpointStore, UnitRecord

COLUMNS = ["year", "make", "model", "engine", "documents_discovered", "completed_at"]


def filter_records(
    records: list[UnitRecord],
    since: str | None = None,
    until: str | None = None,
    make: str | None = None,
    model: str | None = None,
) -> list[UnitRecord]:
    out = []
    for r in records:
        day = r.completed_at[:10]
        if since and day < since:
            continue
        if until and day > until:
            continue
        if make and r.make != make:
            continue
        if model and r.model != model:
            continue
        out.append(r)
    return out


def export_csv(
    output_path: Path,
    checkpoint_dir: Path = CHECKPOINT_DIR,
    since: str | None = None,
    until: str | None = None,
    make: str | None = None,
    model: str | None = None,
) -> int:
    store = CheckpointStore(Path(checkpoint_dir) / VISITED_IDS_FILE, Path(checkpoint_dir) / UNIT_RECORDS_FILE)
    _, records = store.load()
    rows = filter_records(records, since=since, until=until, make=make, model=model)
    if not rows:
        return 0
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for r in rows:
            writer.writerow(r.to_dict())
    return len(rows)


def main():
    ap = argparse.ArgumentParser(description="Export completed Hotline Archive units to CSV")
    ap.add_argument("--output", "-o", help="Output CSV path")
    ap.add_argument("--checkpoint-dir", type=Path, default=CHECKPOINT_DIR)
    ap.add_argument("--since", help="Only units completed on or after this date (YYYY-MM-DD)")
    ap.add_argument("--until", help="Only units completed on or before this date (YYYY-MM-DD)")
    ap.add_argument("--make", help="Filter by make")
    ap.add_argument("--model", help="Filter by model")
    args = ap.parse_args()
    out = Path(args.output or "hotline_units.csv")
    n = export_csv(out, args.checkpoint_dir, since=args.since, until=args.until, make=args.make, model=args.model)
    print(f"Exported {n} rows to {out}")


if __name__ == "__main__":
    main()
