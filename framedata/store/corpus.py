from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from framedata.config import CorpusConfig, load_corpus_config
from framedata.errors import CorpusLoadFailure, MalformedRecord
from framedata.model.records import Character
from framedata.query.overrides import Overrides, apply_patches, load_overrides
from framedata.store.legacy import character_from_document

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    loaded: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)


class CharacterCorpus:
    """Read-only snapshot of every loaded character, keyed by lower-cased name."""

    def __init__(self, characters: Dict[str, Character], report: Optional[LoadReport] = None):
        self._characters = dict(characters)
        self.report = report or LoadReport()

    def get(self, name: Optional[str]) -> Optional[Character]:
        if not name:
            return None
        return self._characters.get(name.strip().lower())

    def names(self) -> List[str]:
        return [c.name for c in self._characters.values()]

    def __len__(self) -> int:
        return len(self._characters)

    def __iter__(self) -> Iterator[Character]:
        return iter(self._characters.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._characters


def _json_files(directory: Path) -> List[Path]:
    if not directory.exists():
        return []
    try:
        return sorted(p for p in directory.iterdir() if p.suffix == ".json" and p.is_file())
    except OSError as e:
        raise CorpusLoadFailure(f"cannot read {directory}: {e}") from e


def load_corpus(directories: Sequence[str | Path], overrides: Optional[Overrides] = None) -> CharacterCorpus:
    """
    Reads every *.json record under the given directories (in order, files sorted by name).
    The first record for a name wins; later duplicates are dropped. Broken files and
    unreadable directories are logged and skipped, never raised.
    """
    characters: Dict[str, Character] = {}
    report = LoadReport()

    for directory in directories:
        directory = Path(directory)
        try:
            files = _json_files(directory)
        except CorpusLoadFailure as e:
            logger.error("%s", e)
            report.failures.append(str(directory))
            continue

        for path in files:
            try:
                doc = json.loads(path.read_text(encoding="utf-8"))
                character = character_from_document(doc, source=path.name)
            except (OSError, ValueError, MalformedRecord) as e:
                logger.warning("failed to load %s: %s", path.name, e)
                report.failures.append(str(path))
                continue
            except Exception:
                # unexpected value types deep inside an otherwise valid record
                logger.exception("failed to adapt %s", path.name)
                report.failures.append(str(path))
                continue

            if character.key in characters:
                logger.debug("duplicate character %r in %s ignored", character.name, path)
                report.duplicates.append(str(path))
                continue

            if overrides is not None:
                apply_patches(character, overrides)
            characters[character.key] = character
            report.loaded.append(character.name)

    logger.info("loaded %d characters", len(characters))
    return CharacterCorpus(characters, report)


class CorpusStore:
    """
    Holds the current snapshot. reload() builds a complete new snapshot first and
    then swaps the reference, so readers never see a half-loaded corpus.
    """

    def __init__(self, config: Optional[CorpusConfig] = None):
        self.config = config or load_corpus_config()
        self._lock = threading.Lock()
        self._overrides: Optional[Overrides] = None
        self._snapshot: Optional[CharacterCorpus] = None

    @property
    def overrides(self) -> Overrides:
        if self._overrides is None:
            self._overrides = load_overrides(self.config.overrides_path)
        return self._overrides

    @property
    def snapshot(self) -> CharacterCorpus:
        snap = self._snapshot
        if snap is None:
            snap = self.reload()
        return snap

    def reload(self) -> CharacterCorpus:
        with self._lock:
            overrides = load_overrides(self.config.overrides_path)
            snap = load_corpus(self.config.directories, overrides)
            self._overrides = overrides
            self._snapshot = snap
        return snap

    def get(self, name: Optional[str]) -> Optional[Character]:
        return self.snapshot.get(name)


_store: Optional[CorpusStore] = None
_store_lock = threading.Lock()


def init_store(config: Optional[CorpusConfig] = None) -> CorpusStore:
    global _store
    store = CorpusStore(config)
    store.reload()
    with _store_lock:
        _store = store
    return store


def get_store() -> CorpusStore:
    global _store
    with _store_lock:
        if _store is None:
            _store = CorpusStore()
        return _store
