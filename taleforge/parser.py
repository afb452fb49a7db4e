"""Turn a line of player text into a structured intent."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .events import ParseFailureKind

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import ContentCatalog
    from .world import WorldModel

ARTICLES = frozenset({"the", "a", "an"})
PREPOSITIONS = frozenset({"at", "to", "with", "on", "onto", "in", "into", "from", "under", "about", "through", "using"})
DIRECTION_ALIASES = {
    "n": "north",
    "s": "south",
    "e": "east",
    "w": "west",
    "u": "up",
    "d": "down",
    "ne": "northeast",
    "nw": "northwest",
    "se": "southeast",
    "sw": "southwest",
}
COMPASS = frozenset(DIRECTION_ALIASES.values()) | {"out"}

VERB_SYNONYMS: dict[str, tuple[str, ...]] = {
    "go": ("go", "walk", "run", "head", "move"),
    "look": ("look", "l"),
    "examine": ("examine", "x", "inspect", "check"),
    "inventory": ("inventory", "inv", "i"),
    "take": ("take", "get", "grab", "pick"),
    "drop": ("drop", "discard", "put"),
    "talk": ("talk", "speak", "chat"),
    "ask": ("ask",),
    "use": ("use",),
    "open": ("open",),
    "close": ("close", "shut"),
    "unlock": ("unlock",),
    "lock": ("lock",),
    "eat": ("eat",),
    "wait": ("wait", "z"),
    "status": ("status", "health", "hp", "diagnose"),
    "help": ("help",),
    "quit": ("quit", "q"),
}
# "pick up lamp", "put down lamp"
PARTICLES = {"take": "up", "drop": "down"}


@dataclass(frozen=True)
class Target:
    kind: str  # "item", "exit" or "npc"
    id: str
    name: str


@dataclass(frozen=True)
class Intent:
    verb: str
    target: Target | None = None
    instrument: Target | None = None
    preposition: str | None = None
    direction: str | None = None
    raw: str = ""


@dataclass(frozen=True)
class ParseFailure:
    kind: ParseFailureKind
    verb: str | None = None
    phrase: str | None = None
    candidates: tuple[str, ...] = ()
    raw: str = ""


Candidate = tuple[Target, tuple[str, ...]]


def normalize(raw: str) -> list[str]:
    return raw.strip().casefold().split()


def _phrase(tokens: Iterable[str]) -> str:
    parts = list(tokens)
    while parts and parts[0] in ARTICLES:
        parts.pop(0)
    return " ".join(parts)


def _split(tokens: list[str]) -> tuple[list[str], str | None, list[str]]:
    """Split ``door with key`` into object, preposition and instrument."""
    for idx, token in enumerate(tokens[1:], start=1):
        if token in PREPOSITIONS:
            return tokens[:idx], token, tokens[idx + 1 :]
    return tokens, None, []


class CommandParser:
    """Match ``verb [preposition] object [preposition object]`` against what is visible."""

    def __init__(self, catalog: ContentCatalog):
        self.catalog = catalog
        self.synonyms: dict[str, str] = {}
        for verb, words in VERB_SYNONYMS.items():
            for word in words:
                self.synonyms[word] = verb
        for verb, words in catalog.settings.verbs.items():
            self.synonyms[verb.casefold()] = verb
            for word in words:
                self.synonyms[word.casefold()] = verb
        for verb in catalog.rule_verbs():
            self.synonyms.setdefault(verb.casefold(), verb)

    @property
    def verbs(self) -> list[str]:
        return sorted(set(self.synonyms.values()))

    def parse(self, raw_text: str, world: WorldModel) -> Intent | ParseFailure:
        tokens = normalize(raw_text)
        if not tokens:
            return ParseFailure(ParseFailureKind.EMPTY, raw=raw_text)
        verb = self.synonyms.get(tokens[0])
        if verb is None:
            return self._parse_movement(tokens, world, raw_text, explicit=False)
        rest = tokens[1:]
        particle = PARTICLES.get(verb)
        if particle and len(rest) > 1 and rest[0] == particle:
            rest = rest[1:]
        preposition = None
        if rest and rest[0] in PREPOSITIONS:
            preposition, rest = rest[0], rest[1:]
        if verb == "go" and _phrase(rest):
            return self._parse_movement(rest, world, raw_text, explicit=True)
        if not _phrase(rest):
            return Intent(verb, preposition=preposition, raw=raw_text)
        if verb == "look":
            verb = "examine"
        candidates = self.candidates(world)
        # a name may itself contain a preposition ("jack in the box")
        whole = self._match(_phrase(rest), candidates, verb, raw_text, partial=False)
        if isinstance(whole, Target):
            return Intent(verb, target=whole, preposition=preposition, raw=raw_text)
        obj_tokens, second_prep, inst_tokens = _split(rest)
        target = self._match(_phrase(obj_tokens), candidates, verb, raw_text)
        if isinstance(target, ParseFailure):
            return target
        instrument = None
        if _phrase(inst_tokens):
            instrument = self._match(_phrase(inst_tokens), candidates, verb, raw_text)
            if isinstance(instrument, ParseFailure):
                return instrument
        return Intent(verb, target=target, instrument=instrument, preposition=second_prep or preposition, raw=raw_text)

    def _parse_movement(self, tokens: list[str], world: WorldModel, raw: str, *, explicit: bool) -> Intent | ParseFailure:
        phrase = _phrase(tokens)
        word = DIRECTION_ALIASES.get(phrase, phrase)
        target = self._match(word, self.exit_candidates(world), "go", raw, partial=explicit)
        if isinstance(target, Target):
            return Intent("go", target=target, direction=word, raw=raw)
        if target.kind is ParseFailureKind.AMBIGUOUS:
            return target
        if word in COMPASS:
            return Intent("go", direction=word, raw=raw)
        if explicit:
            return target
        return ParseFailure(ParseFailureKind.UNKNOWN_VERB, verb=tokens[0], raw=raw)

    def exit_candidates(self, world: WorldModel) -> list[Candidate]:
        return [
            (Target("exit", key, key), (key, *cfg.names)) for key, cfg in world.visible_exits().items()
        ]

    def candidates(self, world: WorldModel) -> list[Candidate]:
        """Everything the player can name right now: held items, room items, exits, NPCs."""
        found: list[Candidate] = []
        for item_id in world.inventory + world.items_in():
            names = self.catalog.items[item_id].names
            found.append((Target("item", item_id, names[0]), names))
        found.extend(self.exit_candidates(world))
        for npc_id in world.npcs_in():
            names = self.catalog.npcs[npc_id].names
            found.append((Target("npc", npc_id, names[0]), names))
        return found

    def _match(
        self, phrase: str, candidates: list[Candidate], verb: str, raw: str = "", *, partial: bool = True
    ) -> Target | ParseFailure:
        exact = {target: None for target, names in candidates if any(n.casefold() == phrase for n in names)}
        if not exact and partial:
            exact = {
                target: None
                for target, names in candidates
                if any(n.casefold().startswith(phrase) or phrase in n.casefold() for n in names)
            }
        if len(exact) == 1:
            return next(iter(exact))
        if exact:
            return ParseFailure(
                ParseFailureKind.AMBIGUOUS,
                verb=verb,
                phrase=phrase,
                candidates=tuple(target.name for target in exact),
                raw=raw,
            )
        return ParseFailure(ParseFailureKind.UNKNOWN_OBJECT, verb=verb, phrase=phrase, raw=raw)


__all__ = [
    "ARTICLES",
    "PREPOSITIONS",
    "DIRECTION_ALIASES",
    "VERB_SYNONYMS",
    "Target",
    "Intent",
    "ParseFailure",
    "CommandParser",
    "normalize",
]
