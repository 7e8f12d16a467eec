import pytest

from rpgterms.term_model import Entry, EntryStore

LDB_XML = """<?xml version="1.0" encoding="UTF-8"?>
<LDB>
 <Database>
  <actors>
   <Actor id="0001">
    <name>Alex</name>
    <title>Hero</title>
    <skill_name></skill_name>
    <initial_level>1</initial_level>
   </Actor>
   <Actor id="0002">
    <name>Brian</name>
    <title>Hero</title>
   </Actor>
  </actors>
  <skills>
   <Skill id="0001">
    <name>Fire</name>
    <description>Burns one enemy</description>
    <using_message1> casts Fire!</using_message1>
    <using_message2></using_message2>
   </Skill>
  </skills>
  <items>
   <Item id="0001">
    <name>Potion</name>
    <description>Restores 50 HP</description>
   </Item>
  </items>
  <troops>
   <Troop id="0001">
    <name>Slime x2</name>
    <pages>
     <TroopPage id="0001">
      <event_commands>
       <EventCommand><code>10110</code><indent>0</indent><string>The slimes attack!</string><parameters></parameters></EventCommand>
       <EventCommand><code>0</code><indent>0</indent><string></string><parameters></parameters></EventCommand>
      </event_commands>
     </TroopPage>
    </pages>
   </Troop>
  </troops>
  <terms>
   <Terms>
    <encounter> appeared!</encounter>
    <level_up>Level up!</level_up>
    <gold>G</gold>
    <menu_save></menu_save>
   </Terms>
  </terms>
  <commonevents>
   <CommonEvent id="0001">
    <name>Inn</name>
    <event_commands>
     <EventCommand><code>10110</code><indent>0</indent><string>Welcome!</string><parameters>0</parameters></EventCommand>
     <EventCommand><code>20110</code><indent>0</indent><string>Stay the night?</string><parameters></parameters></EventCommand>
     <EventCommand><code>10140</code><indent>0</indent><string>Yes/No</string><parameters>2</parameters></EventCommand>
     <EventCommand><code>20140</code><indent>0</indent><string>Yes</string><parameters>0</parameters></EventCommand>
     <EventCommand><code>20140</code><indent>0</indent><string>No</string><parameters>1</parameters></EventCommand>
     <EventCommand><code>20141</code><indent>0</indent><string></string><parameters></parameters></EventCommand>
    </event_commands>
   </CommonEvent>
  </commonevents>
  <battlecommands>
   <BattleCommands>
    <commands>
     <BattleCommand id="0001"><name>Attack</name><type>0</type></BattleCommand>
    </commands>
   </BattleCommands>
  </battlecommands>
 </Database>
</LDB>
"""

LMT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<LMT>
 <TreeMap>
  <maps>
   <MapInfo id="0000"><name>My Game</name><parent_map>0</parent_map></MapInfo>
   <MapInfo id="0001"><name>Town</name><parent_map>0</parent_map></MapInfo>
   <MapInfo id="0002"><name>Castle</name><parent_map>1</parent_map></MapInfo>
  </maps>
 </TreeMap>
</LMT>
"""

MAP_XML = """<?xml version="1.0" encoding="UTF-8"?>
<LMU>
 <Map>
  <chipset_id>1</chipset_id>
  <events>
   <Event id="0001">
    <name>Guard</name>
    <x>4</x>
    <y>7</y>
    <pages>
     <EventPage id="0001">
      <event_commands>
       <EventCommand><code>10110</code><indent>0</indent><string>Hello</string><parameters></parameters></EventCommand>
       <EventCommand><code>10610</code><indent>0</indent><string>Sir Guard</string><parameters>3</parameters></EventCommand>
      </event_commands>
     </EventPage>
    </pages>
   </Event>
   <Event id="0002">
    <name>Cat</name>
    <x>1</x>
    <y>2</y>
    <pages>
     <EventPage id="0001">
      <event_commands>
       <EventCommand><code>10110</code><indent>0</indent><string>Hello</string><parameters></parameters></EventCommand>
       <EventCommand><code>10110</code><indent>0</indent><string>   </string><parameters></parameters></EventCommand>
      </event_commands>
     </EventPage>
    </pages>
   </Event>
  </events>
 </Map>
</LMU>
"""

EMPTY_MAP_XML = """<?xml version="1.0" encoding="UTF-8"?>
<LMU>
 <Map>
  <chipset_id>1</chipset_id>
  <events></events>
 </Map>
</LMU>
"""


def make_store(pairs, name="unit", context=""):
    """Build a store from ``[(original, translation), ...]``."""
    store = EntryStore(name)
    for original, translation in pairs:
        store.add_entry(Entry(original=original, context=context, translation=translation))
    return store


@pytest.fixture
def game_dir(tmp_path):
    """A game folder converted with lcf2xml."""
    game = tmp_path / "game"
    game.mkdir()
    (game / "RPG_RT.edb").write_text(LDB_XML, encoding="utf-8")
    (game / "RPG_RT.emt").write_text(LMT_XML, encoding="utf-8")
    (game / "Map0001.emu").write_text(MAP_XML, encoding="utf-8")
    (game / "Map0002.emu").write_text(EMPTY_MAP_XML, encoding="utf-8")
    (game / "Readme.txt").write_text("not an asset", encoding="utf-8")
    return game


@pytest.fixture
def out_dir(tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    return out
