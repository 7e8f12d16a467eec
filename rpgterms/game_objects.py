"""Typed game-object tree produced by an asset reader.

Only the parts of the RPG Maker 2000/2003 data model that can carry
player-visible text are represented. Everything else in the asset files is
dropped by the reader.
"""

from dataclasses import dataclass, field

# Event command codes that carry text in ``EventCommand.string``
CODE_SHOW_MESSAGE = 10110     # Show Message, first line
CODE_SHOW_MESSAGE_2 = 20110   # Show Message continuation line
CODE_SHOW_CHOICE = 10140      # Show Choice; string is the "a/b/c" summary, not extracted
CODE_SHOW_CHOICE_OPTION = 20140  # One choice branch; string is the option text
CODE_CHANGE_HERO_NAME = 10610   # parameters[0]=actor id
CODE_CHANGE_HERO_TITLE = 10620  # parameters[0]=actor id


@dataclass
class EventCommand:
    code: int = 0
    indent: int = 0
    string: str = ""
    parameters: list = field(default_factory=list)


@dataclass
class EventPage:
    id: int = 0
    commands: list = field(default_factory=list)


@dataclass
class Event:
    """A map event with its pages."""
    id: int = 0
    name: str = ""
    x: int = 0
    y: int = 0
    pages: list = field(default_factory=list)


@dataclass
class CommonEvent:
    id: int = 0
    name: str = ""
    commands: list = field(default_factory=list)


@dataclass
class Troop:
    """An enemy group. Its pages are the battle events."""
    id: int = 0
    name: str = ""
    pages: list = field(default_factory=list)


@dataclass
class DatabaseRecord:
    """One row of a database table, reduced to its string fields."""
    id: int = 0
    fields: dict = field(default_factory=dict)

    def get(self, name: str) -> str:
        value = self.fields.get(name, "")
        return value if isinstance(value, str) else ""


@dataclass
class Database:
    """Contents of RPG_RT.ldb."""
    tables: dict = field(default_factory=dict)  # table name -> [DatabaseRecord]
    terms: dict = field(default_factory=dict)   # vocabulary field -> text
    common_events: list = field(default_factory=list)
    troops: list = field(default_factory=list)


@dataclass
class MapInfo:
    id: int = 0
    name: str = ""
    parent_id: int = 0


@dataclass
class MapTree:
    """Contents of RPG_RT.lmt."""
    maps: list = field(default_factory=list)


@dataclass
class Map:
    """Contents of one Map####.lmu."""
    events: list = field(default_factory=list)
