"""Directory-level driver: classify assets, extract, merge or match, write.

Every unit goes through the same steps regardless of its category. Units
share nothing, so with ``Config.jobs > 1`` they run on a thread pool and
are only joined at the end.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Optional

from .config import MODE_MATCH, MODE_UPDATE, Config, normalize_encoding
from .extractor import Extractor
from .lcf_reader import AssetReadError, XmlAssetReader, read_ini_encoding
from .match import match
from .merge import merge
from .po_codec import read_store, write_store
from .term_model import Category, EntryStore

log = logging.getLogger(__name__)

INI_FILE = "rpg_rt.ini"
DATABASE_FILES = ("rpg_rt.ldb", "rpg_rt.edb")
MAP_TREE_FILES = ("rpg_rt.lmt", "rpg_rt.emt")
MAP_SUFFIXES = (".lmu", ".emu")

# Side outputs written next to a unit; never treated as units themselves
_SIDE_SUFFIXES = (".stale.po", ".unmatched.po")


class AssetKind(Enum):
    DATABASE = "database"
    MAP_TREE = "map_tree"
    MAP = "map"
    UNKNOWN = "unknown"


class DirectoryAccessError(OSError):
    """An input or output directory cannot be listed."""


@dataclass
class UnitResult:
    """Summary of one written (or skipped) unit."""
    name: str
    terms: int = 0
    translated: int = 0
    fuzzy: int = 0
    stale: int = 0
    written: bool = False


def classify(filename: str) -> AssetKind:
    """Decide what kind of asset a file is from its name alone."""
    lname = os.path.basename(filename).lower()
    if lname in DATABASE_FILES:
        return AssetKind.DATABASE
    if lname in MAP_TREE_FILES:
        return AssetKind.MAP_TREE
    if lname.endswith(MAP_SUFFIXES):
        return AssetKind.MAP
    return AssetKind.UNKNOWN


def map_unit_name(filename: str) -> str:
    """Map0001.emu and Map0001.lmu both become the unit Map0001.lmu."""
    stem = os.path.splitext(os.path.basename(filename))[0]
    return f"{stem}.lmu"


def _terms(n: int) -> str:
    return f"{n} term" if n == 1 else f"{n} terms"


def _is_are(n: int) -> str:
    return f"{_terms(n)} is" if n == 1 else f"{_terms(n)} are"


def list_dir(path: str, label: str) -> dict:
    """Return ``{lowercase name: name}`` for the files in ``path``."""
    try:
        names = os.listdir(path)
    except OSError as e:
        raise DirectoryAccessError(f"Cannot access {label} directory {path}") from e
    return {name.lower(): name for name in names
            if os.path.isfile(os.path.join(path, name))}


class TermPipeline:
    """Runs one create, update or match pass as described by a Config."""

    def __init__(self, config: Config, reader=None, extractor: Optional[Extractor] = None):
        self.config = config
        self.reader = reader or XmlAssetReader()
        self.extractor = extractor or Extractor()
        self.encoding = ""
        self._output_files = {}
        self._handlers = {
            AssetKind.DATABASE: self._dump_database,
            AssetKind.MAP_TREE: self._dump_map_tree,
            AssetKind.MAP: self._dump_map,
        }

    def run(self) -> list:
        """Process the whole input directory.

        Raises:
            DirectoryAccessError: a directory cannot be listed.
            EncodingError: no usable text encoding.
            SettingsError: the configuration is inconsistent.
        """
        cfg = self.config
        cfg.validate()
        self._output_files = list_dir(cfg.output_dir, "output")

        if cfg.mode == MODE_MATCH:
            return self.run_match()

        files = list_dir(cfg.input_dir, "input")
        self.encoding = self.resolve_encoding(files)
        log.info("Using encoding %s", self.encoding)

        jobs = []
        for lname, name in sorted(files.items(), key=lambda kv: kv[1]):
            kind = classify(lname)
            handler = self._handlers.get(kind)
            if handler is not None:
                jobs.append(partial(handler, os.path.join(cfg.input_dir, name)))
        return self._run_jobs(jobs)

    def resolve_encoding(self, files: dict) -> str:
        """Pick the game text encoding.

        Order: explicit config value, RPG_RT.ini, detection on the
        database (or, without one, the first other asset).
        """
        cfg = self.config
        encoding = cfg.encoding
        if not encoding and INI_FILE in files:
            encoding = read_ini_encoding(os.path.join(cfg.input_dir, files[INI_FILE]))
        if not encoding:
            candidates = sorted(
                (classify(lname) != AssetKind.DATABASE, name)
                for lname, name in files.items()
                if classify(lname) != AssetKind.UNKNOWN)
            if candidates:
                path = os.path.join(cfg.input_dir, candidates[0][1])
                try:
                    encoding = self.reader.detect_encoding(path)
                except AssetReadError as e:
                    log.warning("Encoding detection failed: %s", e)
        return normalize_encoding(encoding)

    # ── Create / update ───────────────────────────────────────────────

    def _dump_database(self, path: str) -> list:
        log.info("Parsing Database %s", os.path.basename(path))
        try:
            db = self.reader.read_database(path, self.encoding)
        except AssetReadError as e:
            log.warning("Skipping database: %s", e)
            return []

        labels = {
            Category.DATABASE: "in the database",
            Category.COMMON_EVENTS: "in Common Events",
            Category.BATTLE_EVENTS: "in Battle Events",
        }
        results = []
        for store in self.extractor.extract_database(db):
            log.info(" %s %s", _terms(len(store)), labels[store.category])
            results.append(self.process_unit(store, always_write=True))
        return results

    def _dump_map_tree(self, path: str) -> list:
        log.info("Parsing Maptree %s", os.path.basename(path))
        try:
            tree = self.reader.read_map_tree(path, self.encoding)
        except AssetReadError as e:
            log.warning("Skipping map tree: %s", e)
            return []
        return [self.process_unit(self.extractor.extract(tree, Category.MAP_TREE))]

    def _dump_map(self, path: str) -> list:
        log.info("Parsing Map %s", os.path.basename(path))
        try:
            game_map = self.reader.read_map(path, self.encoding)
        except AssetReadError as e:
            log.warning("Skipping map: %s", e)
            return []
        store = self.extractor.extract(game_map, Category.MAP, map_unit_name(path))
        return [self.process_unit(store)]

    def process_unit(self, store: EntryStore, always_write: bool = False) -> UnitResult:
        """Merge a fresh store with its previous unit (update mode) and write it.

        Stores without terms are skipped unless ``always_write`` is set.
        """
        cfg = self.config
        result = UnitResult(store.name, terms=len(store))
        if not store and not always_write:
            log.info(" Skipped. No terms found.")
            return result

        if not always_write:
            log.info(" %s", _terms(len(store)))

        if cfg.mode == MODE_UPDATE:
            existing = self._output_files.get(f"{store.name}.po".lower())
            if existing:
                previous = read_store(os.path.join(cfg.output_dir, existing),
                                      name=store.name, category=store.category)
                store.header = previous.header
                stale = merge(store, previous)
                result.stale = len(stale)
                if stale:
                    log.info(" %s stale", _is_are(len(stale)))
                    write_store(stale, os.path.join(cfg.output_dir, f"{store.name}.stale.po"))

        write_store(store, os.path.join(cfg.output_dir, f"{store.name}.po"))
        result.translated = store.translated_count
        result.fuzzy = store.fuzzy_count
        result.written = True
        return result

    # ── Match ─────────────────────────────────────────────────────────

    def run_match(self) -> list:
        """Match every unit of the input directory against the same unit in MDIR."""
        cfg = self.config
        dst_files = list_dir(cfg.input_dir, "input")
        src_files = list_dir(cfg.match_dir, "merge input")

        jobs = []
        for lname, src_name in sorted(src_files.items(), key=lambda kv: kv[1]):
            if not lname.endswith(".po") or lname.endswith(_SIDE_SUFFIXES):
                continue
            dst_name = dst_files.get(lname)
            if dst_name is None:
                log.debug("No counterpart for %s in %s", src_name, cfg.input_dir)
                continue
            jobs.append(partial(
                self._match_unit,
                os.path.join(cfg.input_dir, dst_name),
                os.path.join(cfg.match_dir, src_name),
            ))
        return self._run_jobs(jobs)

    def _match_unit(self, dst_path: str, src_path: str) -> list:
        cfg = self.config
        dst_name = os.path.basename(dst_path)
        unit = dst_name[:-3]
        dst = read_store(dst_path, name=unit)
        src = read_store(src_path, name=unit)

        stale, matched = match(dst, src, cfg.normalization)
        log.info("Matching %s", dst_name)
        log.info(" %s matched", _terms(matched))
        if dst.fuzzy_count:
            log.info(" %s fuzzy matched", _is_are(dst.fuzzy_count))
        if stale:
            log.info(" %s unmatched", _is_are(len(stale)))
            write_store(stale, os.path.join(cfg.output_dir, f"{unit}.unmatched.po"))
        write_store(dst, os.path.join(cfg.output_dir, dst_name))

        return [UnitResult(unit, terms=len(dst), translated=matched,
                           fuzzy=dst.fuzzy_count, stale=len(stale), written=True)]

    # ── Workers ───────────────────────────────────────────────────────

    def _run_jobs(self, jobs: list) -> list:
        """Run unit jobs, in parallel when configured. Results keep job order."""
        n = min(self.config.jobs, len(jobs))
        if n <= 1:
            batches = [job() for job in jobs]
        else:
            with ThreadPoolExecutor(max_workers=n) as pool:
                futures = [pool.submit(job) for job in jobs]
                batches = [f.result() for f in futures]
        return [result for batch in batches for result in batch]
