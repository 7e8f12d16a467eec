"""Asset reader interface and the lcf2xml backend.

The binary LCF containers (RPG_RT.ldb, RPG_RT.lmt, Map####.lmu) are not
parsed here. liblcf's ``lcf2xml`` converts them to XML documents
(RPG_RT.edb, RPG_RT.emt, Map####.emu) and ``XmlAssetReader`` turns those
into the typed tree from ``game_objects``. Any other backend only has to
provide the four ``AssetReader`` methods.
"""

import configparser
import logging
import re
from typing import Protocol

import chardet
from lxml import etree

from .game_objects import (
    CommonEvent, Database, DatabaseRecord, Event, EventCommand, EventPage,
    Map, MapInfo, MapTree, Troop,
)

log = logging.getLogger(__name__)

# Database tables that hold player-visible names and descriptions.
# XML container element -> row element
DATABASE_TABLES = {
    "actors": "Actor",
    "classes": "Class",
    "skills": "Skill",
    "items": "Item",
    "enemies": "Enemy",
    "troops": "Troop",
    "terrains": "Terrain",
    "attributes": "Attribute",
    "states": "State",
}

_XML_DECL_RE = re.compile(rb'^\s*<\?xml[^>]*encoding\s*=\s*["\']([A-Za-z0-9._-]+)["\']')


class AssetReadError(Exception):
    """An asset file is missing, unreadable or not the expected document."""


class AssetReader(Protocol):
    """What the pipeline needs from an asset backend."""

    def read_database(self, path: str, encoding: str = "") -> Database: ...

    def read_map_tree(self, path: str, encoding: str = "") -> MapTree: ...

    def read_map(self, path: str, encoding: str = "") -> Map: ...

    def detect_encoding(self, path: str) -> str: ...


def read_ini_encoding(ini_path: str) -> str:
    """Return the ``[EasyRPG] Encoding`` value of an RPG_RT.ini, or "".

    The INI is in the game's legacy codepage; only the ASCII key matters,
    so it is read as latin-1.
    """
    parser = configparser.ConfigParser(strict=False, interpolation=None)
    try:
        with open(ini_path, "r", encoding="latin-1") as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as e:
        log.warning("Cannot read %s: %s", ini_path, e)
        return ""
    for section in parser.sections():
        if section.lower() == "easyrpg":
            return parser.get(section, "encoding", fallback="").strip()
    return ""


class XmlAssetReader:
    """Reads the XML documents written by liblcf's lcf2xml."""

    def detect_encoding(self, path: str) -> str:
        """Best-effort encoding of an asset file.

        The XML declaration wins; without one the raw bytes are handed to
        chardet. Returns "" when nothing can be determined.
        """
        raw = self._read_bytes(path)
        declared = _XML_DECL_RE.match(raw)
        if declared:
            return declared.group(1).decode("ascii")
        guess = chardet.detect(raw)
        return guess.get("encoding") or ""

    def read_database(self, path: str, encoding: str = "") -> Database:
        root = self._load(path, encoding, "LDB", "Database")
        db = Database()

        for container, row_tag in DATABASE_TABLES.items():
            rows = []
            for el in self._rows(root, container, row_tag):
                rows.append(DatabaseRecord(id=_id(el), fields=_leaf_fields(el)))
            db.tables[container] = rows

        # Battle commands sit one level deeper than the other tables
        commands = root.find("battlecommands/BattleCommands/commands")
        if commands is not None:
            db.tables["battlecommands"] = [
                DatabaseRecord(id=_id(el), fields=_leaf_fields(el))
                for el in commands.findall("BattleCommand")
            ]

        terms = root.find("terms/Terms")
        if terms is not None:
            db.terms = _leaf_fields(terms)

        for el in self._rows(root, "commonevents", "CommonEvent"):
            db.common_events.append(CommonEvent(
                id=_id(el),
                name=_text(el, "name"),
                commands=_commands(el),
            ))

        for el in self._rows(root, "troops", "Troop"):
            pages = [EventPage(id=_id(p), commands=_commands(p))
                     for p in el.findall("pages/TroopPage")]
            db.troops.append(Troop(id=_id(el), name=_text(el, "name"), pages=pages))

        return db

    def read_map_tree(self, path: str, encoding: str = "") -> MapTree:
        root = self._load(path, encoding, "LMT", "TreeMap")
        return MapTree(maps=[
            MapInfo(id=_id(el), name=_text(el, "name"),
                    parent_id=_int(el, "parent_map"))
            for el in root.findall("maps/MapInfo")
        ])

    def read_map(self, path: str, encoding: str = "") -> Map:
        root = self._load(path, encoding, "LMU", "Map")
        events = []
        for el in root.findall("events/Event"):
            pages = [EventPage(id=_id(p), commands=_commands(p))
                     for p in el.findall("pages/EventPage")]
            events.append(Event(
                id=_id(el),
                name=_text(el, "name"),
                x=_int(el, "x"),
                y=_int(el, "y"),
                pages=pages,
            ))
        return Map(events=events)

    # ── Private helpers ───────────────────────────────────────────────

    @staticmethod
    def _read_bytes(path: str) -> bytes:
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise AssetReadError(f"Cannot read {path}: {e}") from e

    def _load(self, path: str, encoding: str, root_tag: str, body_tag: str):
        """Parse a document and return its body element.

        ``encoding`` only applies to documents without an XML declaration;
        a declared encoding always wins.
        """
        raw = self._read_bytes(path)
        use_hint = bool(encoding) and not _XML_DECL_RE.match(raw)
        parser = etree.XMLParser(
            encoding=encoding if use_hint else None,
            resolve_entities=False,
            no_network=True,
            huge_tree=True,
        )
        try:
            root = etree.fromstring(raw, parser)
        except (etree.XMLSyntaxError, LookupError, ValueError) as e:
            raise AssetReadError(f"{path} is not a valid lcf2xml document: {e}") from e

        if root.tag != root_tag:
            raise AssetReadError(f"{path}: expected <{root_tag}>, found <{root.tag}>")
        body = root.find(body_tag)
        if body is None:
            raise AssetReadError(f"{path}: <{root_tag}> has no <{body_tag}>")
        return body

    @staticmethod
    def _rows(root, container: str, row_tag: str) -> list:
        return root.findall(f"{container}/{row_tag}")


def _id(el) -> int:
    try:
        return int(el.get("id", "0"))
    except ValueError:
        return 0


def _text(el, tag: str) -> str:
    child = el.find(tag)
    if child is None:
        return ""
    return child.text or ""


def _int(el, tag: str, default: int = 0) -> int:
    try:
        return int(_text(el, tag).strip())
    except ValueError:
        return default


def _leaf_fields(el) -> dict:
    """Map each childless child element to its text."""
    return {child.tag: child.text or ""
            for child in el
            if isinstance(child.tag, str) and len(child) == 0}


def _commands(el) -> list:
    """Read ``event_commands/EventCommand`` below a page or common event."""
    commands = []
    for cmd in el.findall("event_commands/EventCommand"):
        params = []
        for token in _text(cmd, "parameters").split():
            try:
                params.append(int(token))
            except ValueError:
                continue
        commands.append(EventCommand(
            code=_int(cmd, "code"),
            indent=_int(cmd, "indent"),
            string=_text(cmd, "string"),
            parameters=params,
        ))
    return commands
