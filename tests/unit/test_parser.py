import pytest

from taleforge.events import ParseFailureKind
from taleforge.parser import CommandParser, Intent, ParseFailure, Target
from taleforge.session import GameSession


def test_bare_verbs(parser, session):
    assert parser.parse("look", session.world) == Intent("look", raw="look")
    assert parser.parse("i", session.world).verb == "inventory"
    assert parser.parse("  WAIT ", session.world).verb == "wait"


def test_empty_line_is_a_dedicated_failure(parser, session):
    result = parser.parse("   ", session.world)
    assert isinstance(result, ParseFailure)
    assert result.kind is ParseFailureKind.EMPTY


@pytest.mark.parametrize("text", ["take lamp", "get the lamp", "grab brass lamp", "pick up lamp", "TAKE Lamp"])
def test_take_synonyms_resolve_the_room_item(parser, session, text):
    intent = parser.parse(text, session.world)
    assert isinstance(intent, Intent)
    assert intent.verb == "take"
    assert intent.target == Target("item", "lamp", "lamp")


def test_look_at_canonicalizes_to_examine(parser, session):
    intent = parser.parse("look at the statue", session.world)
    assert intent.verb == "examine"
    assert intent.target.id == "statue"
    assert intent.preposition == "at"


def test_object_and_instrument(parser, session):
    session.world.set_current_room("vault")
    intent = parser.parse("unlock door with key", session.world)
    assert intent.verb == "unlock"
    assert intent.target == Target("exit", "south", "south")
    assert intent.instrument == Target("item", "key", "key")
    assert intent.preposition == "with"


def test_unique_prefix_match(parser, session):
    intent = parser.parse("take sta", session.world)
    assert intent.target.id == "statue"


def test_ambiguous_match_lists_candidates(parser, session):
    result = parser.parse("examine brass", session.world)
    assert isinstance(result, ParseFailure)
    assert result.kind is ParseFailureKind.AMBIGUOUS
    assert set(result.candidates) == {"key", "lamp"}
    assert result.raw == "examine brass"


def test_exact_name_beats_partial(parser, session):
    session.world.set_current_room("vault")
    intent = parser.parse("examine door", session.world)
    assert intent.target.id == "south"


def test_unknown_object(parser, session):
    result = parser.parse("take rock", session.world)
    assert result == ParseFailure(ParseFailureKind.UNKNOWN_OBJECT, verb="take", phrase="rock", raw="take rock")


def test_objects_in_other_rooms_are_unknown(parser, session):
    result = parser.parse("take rope", session.world)
    assert result.kind is ParseFailureKind.UNKNOWN_OBJECT


def test_unknown_verb(parser, session):
    result = parser.parse("dance wildly", session.world)
    assert result.kind is ParseFailureKind.UNKNOWN_VERB
    assert result.verb == "dance"


@pytest.mark.parametrize("text", ["north", "n", "go north", "walk n", "go to north"])
def test_movement(parser, session, text):
    intent = parser.parse(text, session.world)
    assert intent.verb == "go"
    assert intent.target == Target("exit", "north", "north")


def test_exit_alias_is_movement(parser, session):
    session.world.set_current_room("vault")
    intent = parser.parse("vault door", session.world)
    assert intent.verb == "go"
    assert intent.target.id == "south"


def test_compass_word_without_exit(parser, session):
    intent = parser.parse("west", session.world)
    assert intent == Intent("go", direction="west", raw="west")


def test_hidden_exits_are_not_candidates(parser, session):
    session.world.set_exit("start", "north", hidden=True)
    intent = parser.parse("north", session.world)
    assert intent.target is None


def test_npcs_and_rule_verbs(parser, session):
    session.world.set_current_room("hall")
    intent = parser.parse("talk to the captain", session.world)
    assert intent.verb == "talk"
    assert intent.target == Target("npc", "captain", "captain")
    session.world.set_current_room("start")
    assert parser.parse("light lamp", session.world).verb == "light"


def test_catalog_verb_synonyms(world_data, build_catalog):
    world_data["settings"]["verbs"] = {"light": ["ignite", "kindle"]}
    catalog = build_catalog(world_data)
    session = GameSession.new(catalog)
    assert CommandParser(catalog).parse("ignite lamp", session.world).verb == "light"


def test_visible_objects_always_parse(world_data, build_catalog):
    world_data["items"]["jack"] = {"names": ["jack in the box", "toy"], "tags": ["portable"]}
    world_data["rooms"]["hall"]["items"].append("jack")
    catalog = build_catalog(world_data)
    parser = CommandParser(catalog)
    world = GameSession.new(catalog).world
    for room_id in ("start", "hall", "vault"):
        world.set_current_room(room_id)
        for target, names in parser.candidates(world):
            for name in names:
                for verb in ("examine", "take"):
                    result = parser.parse(f"{verb} {name}", world)
                    if isinstance(result, ParseFailure):
                        # a shared alias may legitimately name two things
                        assert result.kind is ParseFailureKind.AMBIGUOUS
                        assert target.name in result.candidates
                    else:
                        assert result.target == target


def test_parse_does_not_mutate(parser, session):
    before = session.save()
    for text in ("take lamp", "north", "xyzzy", "", "unlock door with key"):
        parser.parse(text, session.world)
    assert session.save() == before


def test_name_containing_a_preposition(world_data, build_catalog):
    world_data["items"]["jack"] = {"names": ["jack in the box"], "tags": ["portable"]}
    world_data["rooms"]["start"]["items"].append("jack")
    catalog = build_catalog(world_data)
    session = GameSession.new(catalog)
    intent = CommandParser(catalog).parse("take the jack in the box", session.world)
    assert intent == Intent("take", target=Target("item", "jack", "jack in the box"), raw="take the jack in the box")
    session.world.set_current_room("vault")
    intent = CommandParser(catalog).parse("unlock door with key", session.world)
    assert intent.target.id == "south"
    assert intent.instrument.id == "key"
    assert intent.preposition == "with"


def test_status_and_eat_are_built_in_verbs(parser, session):
    assert parser.parse("hp", session.world) == Intent("status", raw="hp")
    assert parser.parse("eat lamp", session.world).verb == "eat"
