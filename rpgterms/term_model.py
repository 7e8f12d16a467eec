"""Data model for translatable terms and the per-unit entry store."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from . import LINE_BREAK_RE


class Category(str, Enum):
    """Closed set of term groups. Each one is written as its own unit."""
    DATABASE = "database"
    COMMON_EVENTS = "common_events"
    BATTLE_EVENTS = "battle_events"
    MAP_TREE = "map_tree"
    MAP = "map"


# Fixed output unit names; maps are named after their own file
UNIT_NAMES = {
    Category.DATABASE: "RPG_RT.ldb",
    Category.COMMON_EVENTS: "RPG_RT.ldb.common",
    Category.BATTLE_EVENTS: "RPG_RT.ldb.battle",
    Category.MAP_TREE: "RPG_RT.lmt",
}


def normalize_text(text: str) -> str:
    """Fold CR/CRLF line endings to LF. Used for entry identity."""
    return LINE_BREAK_RE.sub("\n", text)


@dataclass
class Entry:
    """A single translatable message."""
    original: str              # Source-language text as extracted
    context: str = ""          # Field context e.g. "actors.name"; empty for event text
    translation: str = ""      # Target-language text (empty until translated)
    locations: list = field(default_factory=list)  # Provenance, comment-only
    fuzzy: bool = False        # Translation assigned with reduced confidence

    @property
    def key(self) -> tuple:
        return (self.context, normalize_text(self.original))

    def add_location(self, location: str):
        if location and location not in self.locations:
            self.locations.append(location)

    def copy(self) -> "Entry":
        return replace(self, locations=list(self.locations))


class EntryStore:
    """Insertion-ordered, deduplicated mapping of ``key -> Entry``.

    One store backs one output unit. Order is kept as-is on write so that
    repeated runs over the same game produce minimal diffs.
    """

    def __init__(self, name: str = "", category: Optional[Category] = None):
        self.name = name
        self.category = category
        self.header = ""  # msgstr of the metadata record, if the unit had one
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __repr__(self) -> str:
        return f"<EntryStore {self.name or '?'}: {len(self)} entries>"

    @property
    def entries(self) -> list:
        return list(self._entries.values())

    @property
    def translated_count(self) -> int:
        return sum(1 for e in self if e.translation)

    @property
    def fuzzy_count(self) -> int:
        return sum(1 for e in self if e.fuzzy)

    def get(self, key) -> Optional[Entry]:
        return self._entries.get(key)

    def add(self, original: str, context: str = "", location: str = "") -> Optional[Entry]:
        """Add an extracted message.

        Blank and whitespace-only text is ignored. Text already present in
        the same context only gains the new location.

        Returns:
            The stored Entry, or None when the text was ignored.
        """
        if not isinstance(original, str) or not original.strip():
            return None
        entry = Entry(original=normalize_text(original), context=context)
        entry.add_location(location)
        return self.add_entry(entry)

    def add_entry(self, entry: Entry) -> Entry:
        """Insert an Entry, merging it into an existing one with the same key.

        On a collision the first translation wins and only locations are
        carried over.
        """
        existing = self._entries.get(entry.key)
        if existing is None:
            self._entries[entry.key] = entry
            return entry
        for loc in entry.locations:
            existing.add_location(loc)
        return existing

    def copy(self) -> "EntryStore":
        """Deep copy: no Entry object is shared with the result."""
        clone = EntryStore(self.name, self.category)
        clone.header = self.header
        for e in self:
            clone.add_entry(e.copy())
        return clone
