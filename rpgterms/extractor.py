"""Term extraction from the typed game-object tree.

Walks a Database, MapTree or Map and collects every player-visible string
into one EntryStore per category. Identical text in the same context is
stored once with all of its locations.
"""

import logging

from .game_objects import (
    CODE_CHANGE_HERO_NAME, CODE_CHANGE_HERO_TITLE, CODE_SHOW_CHOICE_OPTION,
    CODE_SHOW_MESSAGE, CODE_SHOW_MESSAGE_2,
)
from .term_model import UNIT_NAMES, Category, EntryStore

log = logging.getLogger(__name__)

# Database tables and their translatable fields.
# Context of each entry is "<table>.<field>", e.g. "skills.description".
DATABASE_FIELDS = {
    "actors":         ["name", "title", "skill_name"],
    "classes":        ["name"],
    "skills":         ["name", "description", "using_message1", "using_message2"],
    "items":          ["name", "description"],
    "enemies":        ["name"],
    "troops":         ["name"],
    "terrains":       ["name"],
    "attributes":     ["name"],
    "states":         ["name", "message_actor", "message_enemy",
                       "message_already", "message_affected", "message_recovery"],
    "battlecommands": ["name"],
}

# Single-string commands extracted as one message each
_SINGLE_TEXT_CODES = {
    CODE_SHOW_CHOICE_OPTION: "choice",
    CODE_CHANGE_HERO_NAME: "hero name",
    CODE_CHANGE_HERO_TITLE: "hero title",
}


class Extractor:
    """Builds EntryStores from asset trees."""

    def __init__(self):
        self._handlers = {
            Category.DATABASE: self._database_terms,
            Category.COMMON_EVENTS: self._common_events,
            Category.BATTLE_EVENTS: self._battle_events,
            Category.MAP_TREE: self._map_tree,
            Category.MAP: self._map,
        }

    def extract(self, tree, category: Category, name: str = "") -> EntryStore:
        """Collect all terms of one category from ``tree``.

        Args:
            tree: Database for the three database categories, MapTree or Map
                for the other two.
            category: Which group of terms to collect.
            name: Unit name; defaults to the fixed name of the category.
                Maps have no fixed name and should always pass one.

        Returns:
            A new EntryStore. Missing or malformed parts of the tree are
            skipped, never raised.
        """
        store = EntryStore(name or UNIT_NAMES.get(category, ""), category)
        if tree is not None:
            self._handlers[category](tree, store)
        log.debug("%s: %d terms", store.name, len(store))
        return store

    def extract_database(self, db) -> list:
        """Return the main, common-event and battle-event stores of a database."""
        return [self.extract(db, category) for category in
                (Category.DATABASE, Category.COMMON_EVENTS, Category.BATTLE_EVENTS)]

    # ── Database ───────────────────────────────────────────────────────

    def _database_terms(self, db, store: EntryStore):
        for table, fields in DATABASE_FIELDS.items():
            for record in db.tables.get(table, []):
                for fld in fields:
                    store.add(record.get(fld), context=f"{table}.{fld}",
                              location=f"{table}/{record.id}/{fld}")

        for fld, text in db.terms.items():
            if isinstance(text, str):
                store.add(text, context=f"terms.{fld}", location=f"terms/{fld}")

    def _common_events(self, db, store: EntryStore):
        for event in db.common_events:
            self._extract_event_commands(
                event.commands, store, f"CE{event.id}({event.name})")

    def _battle_events(self, db, store: EntryStore):
        for troop in db.troops:
            for page_idx, page in enumerate(troop.pages, start=1):
                self._extract_event_commands(
                    page.commands, store, f"Troop{troop.id}({troop.name})/p{page_idx}")

    # ── Map tree and maps ──────────────────────────────────────────────

    def _map_tree(self, tree, store: EntryStore):
        for info in tree.maps:
            if info.id == 0:
                continue  # Root node holds the project name, never shown in game
            store.add(info.name, context="mapinfos.name", location=f"mapinfos/{info.id}")

    def _map(self, game_map, store: EntryStore):
        for event in game_map.events:
            prefix = f"{store.name}/Ev{event.id}({event.name})@{event.x},{event.y}"
            for page_idx, page in enumerate(event.pages, start=1):
                self._extract_event_commands(page.commands, store, f"{prefix}/p{page_idx}")

    # ── Event commands ─────────────────────────────────────────────────

    @staticmethod
    def _extract_event_commands(commands: list, store: EntryStore, prefix: str):
        """Add the text of one event command list to ``store``.

        A Show Message command and the continuation lines after it form one
        message. Continuation lines without a leading Show Message are
        ignored.
        """
        i = 0
        while i < len(commands):
            cmd = commands[i]

            if cmd.code == CODE_SHOW_MESSAGE:
                start = i
                lines = [cmd.string]
                i += 1
                while i < len(commands) and commands[i].code == CODE_SHOW_MESSAGE_2:
                    lines.append(commands[i].string)
                    i += 1
                if all(isinstance(line, str) for line in lines):
                    store.add("\n".join(lines), location=f"{prefix}/line {start + 1}")
                continue

            kind = _SINGLE_TEXT_CODES.get(cmd.code)
            if kind:
                store.add(cmd.string, location=f"{prefix}/line {i + 1} ({kind})")
            i += 1
