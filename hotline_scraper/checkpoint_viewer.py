"""
Quick script to print current Hotline Archive scraping progress (checkpoint logs + output file count).
Usage: hotline-checkpoints [--checkpoint-dir DIR] [--output-dir DIR]
"""
import argparse
from collections import Counter
from pathlib import Path

from hotline_scraper.config import CHECKPOINT_DIR, OUTPUT_DIR, UNIT_RECORDS_FILE, VISITED_IDS_FILE
from hotline_scraper.models import CheckpointStore


def summarize(checkpoint_dir: Path, output_dir: Path) -> list[str]:
    store = CheckpointStore(Path(checkpoint_dir) / VISITED_IDS_FILE, Path(checkpoint_dir) / UNIT_RECORDS_FILE)
    document_ids, records = store.load()
    lines = [
        f"Visited HANumbers: {len(document_ids)}",
        f"Completed units: {len(records)}",
    ]
    per_make = Counter((r.year, r.make) for r in records)
    for (year, make), n in sorted(per_make.items()):
        docs = sum(r.documents_discovered for r in records if (r.year, r.make) == (year, make))
        lines.append(f"  {year} {make}: {n} units, {docs} documents listed")
    if records:
        last = records[-1]
        lines.append(f"Last completed: {last.year} {last.make} {last.model} {last.engine} at {last.completed_at}")
    output_dir = Path(output_dir)
    files = len(list(output_dir.glob("*.html"))) if output_dir.is_dir() else 0
    lines.append(f"Document files in {output_dir}: {files}")
    return lines


def main():
    ap = argparse.ArgumentParser(description="Show Hotline Archive checkpoint progress")
    ap.add_argument("--checkpoint-dir", type=Path, default=CHECKPOINT_DIR)
    ap.add_argument("--output-dir", type=Path, default=OUTPUT_DIR)
    args = ap.parse_args()
    for line in summarize(args.checkpoint_dir, args.output_dir):
        print(line)


if __name__ == "__main__":
    main()
