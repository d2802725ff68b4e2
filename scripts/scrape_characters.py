from __future__ import annotations

import argparse
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import requests

from framedata.config import ScraperConfig, load_scraper_config
from framedata.errors import IncompleteExtraction
from framedata.ingest.character_page import build_character
from framedata.ingest.wiki_index import extract_character_links

logger = logging.getLogger("scrape_characters")


@dataclass
class BatchSummary:
    saved: List[str] = field(default_factory=list)
    incomplete: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def setup_logging(verbose: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(ch)


def record_filename(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip()) + ".json"


def cleanup_small_files(output_dir: Path, min_bytes: int) -> int:
    """Deletes records below the size threshold left behind by earlier runs."""
    if not output_dir.exists():
        return 0
    removed = 0
    for p in sorted(output_dir.glob("*.json")):
        size = p.stat().st_size
        if size < min_bytes:
            print(f"[cleanup] removing {p.name} ({size} bytes)")
            p.unlink()
            removed += 1
    return removed


def fetch(sess: requests.Session, url: str, cfg: ScraperConfig) -> str:
    r = sess.get(url, timeout=cfg.timeout)
    r.raise_for_status()
    return r.text


def scrape_one(sess: requests.Session, slug: str, cfg: ScraperConfig, summary: BatchSummary) -> Optional[Path]:
    try:
        html = fetch(sess, cfg.character_url(slug), cfg)
    except requests.RequestException as e:
        logger.warning("fetch failed for %s: %s", slug, e)
        summary.failed.append(slug)
        return None

    try:
        result = build_character(html, cfg, slug=slug)
    except IncompleteExtraction as e:
        logger.warning("%s", e)
        summary.incomplete.append(slug)
        return None
    except Exception:
        # unusual markup must not stop the rest of the batch
        logger.exception("extraction failed for %s", slug)
        summary.failed.append(slug)
        return None

    out = cfg.output_dir / record_filename(result.character.name)
    try:
        cfg.output_dir.mkdir(parents=True, exist_ok=True)
        out.write_text(result.to_json(), encoding="utf-8")
    except OSError as e:
        logger.error("cannot write %s: %s", out, e)
        summary.failed.append(slug)
        return None
    print(f"[save] {out.name} ({result.size} bytes, {len(result.warnings)} warnings)")
    summary.saved.append(result.character.name)
    return out


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m scripts.scrape_characters",
        description="Scrape every character page of the game wiki into one JSON record per character",
    )
    p.add_argument("--only", nargs="*", default=None, help="Page slugs to scrape instead of the whole index")
    p.add_argument("--limit", type=int, default=None, help="Stop after this many characters")
    p.add_argument("--delay", type=float, default=None, help="Seconds between page requests")
    p.add_argument("--output-dir", type=str, default=None, help="Where records are written")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    return p


def main() -> None:
    args = build_arg_parser().parse_args()
    setup_logging(args.verbose)

    cfg = load_scraper_config()
    if args.delay is not None:
        cfg.request_delay = max(0.0, args.delay)
    if args.output_dir:
        cfg.output_dir = Path(args.output_dir)

    cleanup_small_files(cfg.output_dir, cfg.min_record_bytes)

    sess = requests.Session()
    sess.headers.update({"User-Agent": cfg.user_agent})

    if args.only:
        slugs = list(args.only)
    else:
        print(f"[index] {cfg.index_url}")
        try:
            slugs = extract_character_links(fetch(sess, cfg.index_url, cfg), cfg.game_path)
        except requests.RequestException as e:
            logger.error("could not fetch character index: %s", e)
            return
    if args.limit is not None:
        slugs = slugs[: max(0, args.limit)]

    if not slugs:
        print("[index] no characters found, check the wiki page structure")
        return
    print(f"[index] {len(slugs)} characters: {', '.join(slugs)}")

    summary = BatchSummary()
    for i, slug in enumerate(slugs):
        print(f"[scrape] {slug}")
        scrape_one(sess, slug, cfg, summary)
        if i < len(slugs) - 1 and cfg.request_delay > 0:
            time.sleep(cfg.request_delay)

    cleanup_small_files(cfg.output_dir, cfg.min_record_bytes)

    print("-" * 60)
    print(f"[done] saved={len(summary.saved)} incomplete={len(summary.incomplete)} failed={len(summary.failed)}")
    if summary.incomplete:
        print(f"[done] incomplete: {', '.join(summary.incomplete)}")
    if summary.failed:
        print(f"[done] failed: {', '.join(summary.failed)}")


if __name__ == "__main__":
    main()
