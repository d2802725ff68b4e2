from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_OVERRIDES_PATH = PACKAGE_DIR / "data" / "overrides.json"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


@dataclass
class ScraperConfig:
    base_url: str = "https://wiki.gbl.gg"
    game_path: str = "Eternal_Fighter_Zero"
    output_dir: Path = Path("characters")
    min_record_bytes: int = 2 * 1024
    request_delay: float = 2.0
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def game_title(self) -> str:
        # "Eternal_Fighter_Zero" -> "Eternal Fighter Zero"
        return self.game_path.replace("_", " ")

    @property
    def index_url(self) -> str:
        return f"{self.base_url}/w/{self.game_path}"

    def character_url(self, slug: str) -> str:
        return f"{self.base_url}/w/{self.game_path}/{slug}"


@dataclass
class CorpusConfig:
    directories: List[Path] = field(default_factory=lambda: [Path("characters"), Path("test/characters")])
    overrides_path: Optional[Path] = DEFAULT_OVERRIDES_PATH


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_scraper_config() -> ScraperConfig:
    cfg = ScraperConfig()
    cfg.base_url = os.getenv("FRAMEDATA_BASE_URL", cfg.base_url).rstrip("/")
    cfg.game_path = os.getenv("FRAMEDATA_GAME_PATH", cfg.game_path)
    out = os.getenv("FRAMEDATA_OUTPUT_DIR")
    if out:
        cfg.output_dir = Path(out)
    cfg.request_delay = _env_float("FRAMEDATA_REQUEST_DELAY", cfg.request_delay)
    cfg.min_record_bytes = _env_int("FRAMEDATA_MIN_RECORD_BYTES", cfg.min_record_bytes)
    return cfg


def load_corpus_config() -> CorpusConfig:
    """
    Corpus directories come from FRAMEDATA_CHARACTER_DIRS (os.pathsep-separated),
    earlier directories win on duplicate character names.
    FRAMEDATA_OVERRIDES points at an alternate overrides JSON; an empty value disables overrides.
    """
    cfg = CorpusConfig()
    dirs = os.getenv("FRAMEDATA_CHARACTER_DIRS")
    if dirs:
        cfg.directories = [Path(d) for d in dirs.split(os.pathsep) if d.strip()]
    overrides = os.getenv("FRAMEDATA_OVERRIDES")
    if overrides is not None:
        cfg.overrides_path = Path(overrides) if overrides.strip() else None
    return cfg
