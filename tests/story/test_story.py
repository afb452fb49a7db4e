import yaml

from taleforge import game
from taleforge.events import ActionFailureKind, SessionEnded, failures

WORLD = game.DEMO_WORLD

WALKTHROUGH = [
    "north",
    "east",
    "take drive",
    "talk to the skipper",
    "1",
    "1",
    "2",
    "west",
    "west",
    "north",
    "open grate",
    "take soup",
    "eat soup",
    "vent",
    "east",
    "south",
    "open cabinet",
    "take key",
    "north",
    "west",
    "unlock hatch with key",
    "pod",
    "launch",
]


def _story():
    with open(WORLD, encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def test_escape_walkthrough(io_backend):
    io_backend.inputs = list(WALKTHROUGH)
    g = game.Game(WORLD, io_backend=io_backend)
    g.run()
    ending = _story()["endings"]["escaped"]["text"]
    assert io_backend.outputs[-1] == ending
    assert g.session.ended
    assert g.world.current_room == "escape_pod"
    assert g.world.flags == {"asked_destination": True, "knows_key": True, "escaped": True}
    assert g.world.health == 10
    assert "You eat the soup. You are healed by 3 HP.\nYou are now at 10/10 HP." in io_backend.outputs
    assert "Farewell!" not in io_backend.outputs


def test_captain_reveals_the_key_only_after_small_talk(io_backend):
    g = game.Game(WORLD, io_backend=io_backend)
    g.play_turn("north")
    g.play_turn("east")
    events = g.play_turn("talk to captain")
    assert events[-1].choices == ["Where is this ship going?", "Nothing. Goodbye."]
    assert events[-1].numbers == [1, 3]
    assert failures(g.play_turn("2")) != []
    g.play_turn("1")
    events = g.play_turn("1")
    assert events[-1].numbers == [1, 2, 3]
    events = g.play_turn("2")
    assert "engine room cabinet" in events[0].text
    assert not g.session.in_dialogue


def test_hatch_needs_the_key(io_backend):
    g = game.Game(WORLD, io_backend=io_backend)
    g.world.set_current_room("crew_area")
    events = g.play_turn("pod")
    assert failures(events) == [ActionFailureKind.LOCKED]
    assert "sealed" in events[0].text
    events = g.play_turn("unlock hatch")
    assert "nothing that fits" in events[0].text
    assert g.world.is_locked("crew_area", "pod")


def test_cannot_launch_without_maps(io_backend):
    g = game.Game(WORLD, io_backend=io_backend)
    g.world.set_current_room("escape_pod")
    events = g.play_turn("launch")
    assert failures(events) == [ActionFailureKind.PRECONDITION_NOT_MET]
    assert "star maps" in events[0].text
    assert not g.session.ended


def test_vent_is_hidden_until_the_grate_is_open(io_backend):
    g = game.Game(WORLD, io_backend=io_backend)
    g.world.set_current_room("kitchen")
    assert "vent" not in g.world.visible_exits()
    assert g.play_turn("vent")[0].text == 'I don\'t know how to "vent".'
    g.play_turn("open grate")
    assert "vent" in g.world.visible_exits()
    assert g.world.describe_item("grate").startswith("The grate lies on the floor.")
    g.play_turn("vent")
    assert g.world.current_room == "crew_area"


def test_ship_docks_when_time_runs_out(io_backend):
    g = game.Game(WORLD, io_backend=io_backend)
    g.session.turns = g.catalog.settings.max_turns - 1
    events = g.play_turn("wait")
    assert events[-1] == SessionEnded("out_of_turns")
    assert "docks" in events[-2].text


def test_grate_cuts_and_soup_heals(io_backend):
    g = game.Game(WORLD, io_backend=io_backend)
    g.world.set_current_room("kitchen")
    g.play_turn("open grate")
    assert g.world.health == 7
    events = g.play_turn("status")
    assert events[0].text.splitlines() == [
        "You are in the Kitchen.",
        "You are at 7/10 HP.",
        "You are empty-handed.",
        "Turns left: 79.",
    ]
    assert failures(g.play_turn("eat soup")) == [ActionFailureKind.NOT_REACHABLE]
    g.play_turn("take soup")
    g.play_turn("consume soup")
    assert g.world.health == 10
    assert g.world.location_of("soup") == "NOWHERE"
