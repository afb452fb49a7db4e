import copy
import sys
from pathlib import Path

import pytest
import yaml

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from taleforge.catalog import ContentCatalog  # noqa: E402
from taleforge.dialogue import DialogueEngine  # noqa: E402
from taleforge.interfaces import IOBackend  # noqa: E402
from taleforge.messages import load_messages  # noqa: E402
from taleforge.parser import CommandParser  # noqa: E402
from taleforge.resolver import ActionResolver  # noqa: E402
from taleforge.session import GameSession  # noqa: E402


class DummyIO(IOBackend):
    def __init__(self, inputs: list[str] | None = None) -> None:
        self.inputs = inputs or []
        self.outputs: list[str] = []

    def get_input(self, prompt: str = "> ") -> str:  # noqa: ARG002 - test stub
        if not self.inputs:
            raise EOFError
        return self.inputs.pop(0)

    def output(self, text: str) -> None:
        self.outputs.append(text)


WORLD = {
    "settings": {"start": "start", "intro": "You wake up on a cold floor."},
    "rooms": {
        "start": {
            "names": ["Start"],
            "description": "A bare room.",
            "items": ["lamp", "statue"],
            "exits": {"north": "hall"},
        },
        "hall": {
            "names": ["Hall"],
            "description": "A long hall.",
            "items": ["rope"],
            "exits": {"south": "start", "east": "vault"},
        },
        "vault": {
            "names": ["Vault"],
            "description": "A steel vault.",
            "exits": {
                "west": "hall",
                "south": {
                    "target": "vault-door",
                    "names": ["door", "vault door"],
                    "tags": ["door"],
                    "locked": True,
                    "locked_text": "The vault door is locked.",
                },
            },
        },
        "vault-door": {
            "names": ["Vault Door"],
            "description": "Beyond the vault door.",
            "exits": {"north": "vault"},
        },
    },
    "items": {
        "lamp": {
            "names": ["lamp", "brass lamp"],
            "description": "A brass lamp.",
            "tags": ["portable"],
            "state": "off",
            "states": {"off": "The lamp is dark.", "on": "The lamp glows."},
        },
        "statue": {"names": ["statue"], "description": "Too heavy to move."},
        "rope": {"names": ["rope"], "tags": ["portable"]},
        "key": {"names": ["key", "brass key"], "tags": ["portable"]},
    },
    "inventory": ["key"],
    "npcs": {
        "captain": {"names": ["captain"], "location": "hall", "dialogue": "greet"},
        "guard": {"names": ["guard"], "location": "hall", "talk": "The guard ignores you."},
    },
    "dialogue": {
        "greet": {
            "text": "Welcome aboard.",
            "choices": [
                {"text": "Who are you?", "next": "who"},
                {
                    "text": "We met before.",
                    "preconditions": [{"check": "flag", "flag": "met_captain", "equals": True}],
                    "next": "again",
                },
            ],
        },
        "who": {
            "text": "I am the captain.",
            "effects": [{"do": "set_flag", "flag": "met_captain"}],
            "choices": [{"text": "Nice to meet you.", "next": "greet"}, {"text": "Bye."}],
        },
        "again": {"text": "So we did."},
    },
    "actions": {
        "unlock": {
            "verb": "unlock",
            "target": "south",
            "room": "vault",
            "instrument": "key",
            "preconditions": [
                {"check": "flag", "flag": "key_used", "equals": False, "failure": "The lock is jammed."},
                {"check": "has_item", "item": "key", "failure": "You need the key."},
            ],
            "effects": [
                {"do": "move_item", "item": "key", "to": "NOWHERE"},
                {"do": "set_flag", "flag": "key_used", "value": True},
                {"do": "set_exit", "room": "vault", "exit": "south", "locked": False},
            ],
            "success": "The key turns and snaps off in the lock.",
        },
        "light_lamp": {
            "verb": "light",
            "target": "lamp",
            "preconditions": [{"check": "has_item", "item": "lamp", "failure": "You are not holding the lamp."}],
            "effects": [
                {"do": "set_item_state", "item": "lamp", "state": "on"},
                {"do": "add_flag", "flag": "lights"},
            ],
            "success": "The lamp flickers on.",
        },
    },
}


def write_world(path: Path, data: dict) -> Path:
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, sort_keys=False)
    return path


@pytest.fixture
def io_backend() -> DummyIO:
    return DummyIO()


@pytest.fixture
def world_data() -> dict:
    return copy.deepcopy(WORLD)


@pytest.fixture
def world_file(tmp_path, world_data) -> Path:
    return write_world(tmp_path / "world.yaml", world_data)


@pytest.fixture
def make_io():
    return DummyIO


@pytest.fixture
def make_world(tmp_path):
    def make(data: dict, name: str = "custom.yaml") -> Path:
        return write_world(tmp_path / name, data)

    return make


@pytest.fixture
def build_catalog(make_world):
    def build(data: dict, name: str = "custom.yaml") -> ContentCatalog:
        return ContentCatalog.from_file(make_world(data, name))

    return build


@pytest.fixture
def catalog(world_file) -> ContentCatalog:
    return ContentCatalog.from_file(world_file)


@pytest.fixture
def session(catalog) -> GameSession:
    return GameSession.new(catalog)


@pytest.fixture
def messages() -> dict[str, str]:
    return load_messages()


@pytest.fixture
def parser(catalog) -> CommandParser:
    return CommandParser(catalog)


@pytest.fixture
def dialogue(catalog, messages) -> DialogueEngine:
    return DialogueEngine(catalog, messages)


@pytest.fixture
def resolver(catalog, messages, dialogue) -> ActionResolver:
    return ActionResolver(catalog, messages, dialogue)
