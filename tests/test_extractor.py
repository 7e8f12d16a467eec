from rpgterms.extractor import Extractor
from rpgterms.game_objects import (
    CODE_CHANGE_HERO_NAME, CODE_CHANGE_HERO_TITLE, CODE_SHOW_CHOICE,
    CODE_SHOW_CHOICE_OPTION, CODE_SHOW_MESSAGE, CODE_SHOW_MESSAGE_2,
    CommonEvent, Database, DatabaseRecord, Event, EventCommand, EventPage,
    Map, MapInfo, MapTree, Troop,
)
from rpgterms.term_model import Category


def _cmd(code, string=""):
    return EventCommand(code=code, string=string)


def _keys(store):
    return [(e.context, e.original) for e in store]


def test_database_fields_and_terms():
    db = Database(
        tables={
            "actors": [
                DatabaseRecord(1, {"name": "Alex", "title": "Hero", "skill_name": "",
                                   "initial_level": "1"}),
                DatabaseRecord(2, {"name": "Brian", "title": "Hero"}),
            ],
            "items": [DatabaseRecord(1, {"name": "Potion", "description": "  "})],
        },
        terms={"level_up": "Level up!", "gold": "G", "menu_save": ""},
    )

    store = Extractor().extract(db, Category.DATABASE)

    assert store.name == "RPG_RT.ldb"
    assert _keys(store) == [
        ("actors.name", "Alex"),
        ("actors.title", "Hero"),
        ("actors.name", "Brian"),
        ("items.name", "Potion"),
        ("terms.level_up", "Level up!"),
        ("terms.gold", "G"),
    ]
    hero = store.get(("actors.title", "Hero"))
    assert hero.locations == ["actors/1/title", "actors/2/title"]


def test_message_lines_are_joined():
    db = Database(common_events=[CommonEvent(3, "Inn", [
        _cmd(CODE_SHOW_MESSAGE, "Welcome!"),
        _cmd(CODE_SHOW_MESSAGE_2, "Stay the night?"),
        _cmd(CODE_SHOW_CHOICE, "Yes/No"),
        _cmd(CODE_SHOW_CHOICE_OPTION, "Yes"),
        _cmd(CODE_SHOW_CHOICE_OPTION, "No"),
    ])])

    store = Extractor().extract(db, Category.COMMON_EVENTS)

    assert store.name == "RPG_RT.ldb.common"
    assert [e.original for e in store] == ["Welcome!\nStay the night?", "Yes", "No"]
    assert store.entries[0].locations == ["CE3(Inn)/line 1"]
    assert store.entries[1].locations == ["CE3(Inn)/line 4 (choice)"]
    assert all(e.context == "" for e in store)


def test_orphan_continuation_line_is_ignored():
    db = Database(common_events=[CommonEvent(1, "x", [
        _cmd(CODE_SHOW_MESSAGE_2, "lost line"),
        _cmd(CODE_SHOW_MESSAGE, "kept"),
    ])])
    store = Extractor().extract(db, Category.COMMON_EVENTS)
    assert [e.original for e in store] == ["kept"]


def test_battle_events_come_from_troop_pages():
    db = Database(troops=[Troop(2, "Bats", [
        EventPage(1, [_cmd(CODE_SHOW_MESSAGE, "Screech!")]),
        EventPage(2, [_cmd(CODE_SHOW_MESSAGE, "Screech!")]),
    ])])
    store = Extractor().extract(db, Category.BATTLE_EVENTS)
    assert store.name == "RPG_RT.ldb.battle"
    assert len(store) == 1
    assert store.entries[0].locations == ["Troop2(Bats)/p1/line 1", "Troop2(Bats)/p2/line 1"]


def test_extract_database_gives_three_units():
    stores = Extractor().extract_database(Database())
    assert [s.category for s in stores] == [
        Category.DATABASE, Category.COMMON_EVENTS, Category.BATTLE_EVENTS]
    assert all(len(s) == 0 for s in stores)


def test_map_text_is_deduplicated_across_events():
    game_map = Map(events=[
        Event(1, "Guard", 4, 7, [EventPage(1, [
            _cmd(CODE_SHOW_MESSAGE, "Hello"),
            _cmd(CODE_CHANGE_HERO_NAME, "Sir Guard"),
            _cmd(CODE_CHANGE_HERO_TITLE, "Knight"),
        ])]),
        Event(2, "Cat", 1, 2, [EventPage(1, [
            _cmd(CODE_SHOW_MESSAGE, "Hello"),
            _cmd(CODE_SHOW_MESSAGE, "   "),
        ])]),
    ])

    store = Extractor().extract(game_map, Category.MAP, "Map0001.lmu")

    assert [e.original for e in store] == ["Hello", "Sir Guard", "Knight"]
    assert store.entries[0].locations == [
        "Map0001.lmu/Ev1(Guard)@4,7/p1/line 1",
        "Map0001.lmu/Ev2(Cat)@1,2/p1/line 1",
    ]
    assert store.entries[1].locations == ["Map0001.lmu/Ev1(Guard)@4,7/p1/line 2 (hero name)"]


def test_map_tree_skips_root():
    tree = MapTree(maps=[MapInfo(0, "My Game"), MapInfo(1, "Town"), MapInfo(2, "")])
    store = Extractor().extract(tree, Category.MAP_TREE)
    assert _keys(store) == [("mapinfos.name", "Town")]
    assert store.entries[0].locations == ["mapinfos/1"]


def test_missing_tree_gives_empty_store():
    store = Extractor().extract(None, Category.MAP, "Map0009.lmu")
    assert len(store) == 0
    assert store.name == "Map0009.lmu"


def test_non_string_fields_are_skipped():
    db = Database(tables={"enemies": [DatabaseRecord(1, {"name": 5})]},
                  terms={"gold": None})
    store = Extractor().extract(db, Category.DATABASE)
    assert len(store) == 0
