from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from framedata.errors import MalformedRecord
from framedata.ingest.character_page import record_json
from framedata.store.legacy import character_from_document, detect_shape

logger = logging.getLogger("normalize_corpus")


def normalize_file(src: Path, out_dir: Path, dry_run: bool = False) -> bool:
    try:
        doc = json.loads(src.read_text(encoding="utf-8"))
        character = character_from_document(doc, source=src.name)
    except (OSError, ValueError, MalformedRecord) as e:
        logger.warning("skipping %s: %s", src.name, e)
        return False

    shape = detect_shape(doc) if isinstance(doc, dict) else None
    out = out_dir / src.name
    print(f"[normalize] {src.name}: {shape} -> {out}")
    if not dry_run:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(record_json(character), encoding="utf-8")
    return True


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m scripts.normalize_corpus",
        description="Rewrite legacy character records into the current movelists shape",
    )
    p.add_argument("input_dir", help="Directory with *.json character records")
    p.add_argument("--output-dir", type=str, default=None, help="Defaults to rewriting in place")
    p.add_argument("--dry-run", action="store_true", help="Report only, write nothing")
    return p


def main() -> None:
    args = build_arg_parser().parse_args()
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    in_dir = Path(args.input_dir)
    out_dir = Path(args.output_dir) if args.output_dir else in_dir
    files = sorted(in_dir.glob("*.json"))
    if not files:
        raise FileNotFoundError(f"No *.json records found in {in_dir.resolve()}")

    ok = sum(1 for f in files if normalize_file(f, out_dir, args.dry_run))
    print(f"[done] normalized={ok} skipped={len(files) - ok}")


if __name__ == "__main__":
    main()
