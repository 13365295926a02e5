from __future__ import annotations

import logging
import random
import threading
from enum import Enum
from typing import Optional, Sequence

from ..config import LevelConfig, level_name
from ..dungeon.tiles import Position, Tile
from ..engine.state import GameState
from ..entities import Entity, EntityKind
from ..exceptions import NarrativeError
from .client import GeminiClient
from .fallback import OfflineNarrator, describe_direction
from .settings import NarrativeSettings

logger = logging.getLogger(__name__)

PERSONAS = {
    EntityKind.GHOST: "You are a sad, lonely ghost. You speak in riddles.",
    EntityKind.RAT: "You are a greedy, suspicious rat. You want food.",
}
DEFAULT_PERSONA = "You are a weary dungeon dweller."


class NarrativeStatus(str, Enum):
    READY = "ready"
    MISSING = "missing"
    ERROR = "error"


def goal_position(state: GameState) -> Position:
    """Where the player should be heading: the seed if present, else the stairs."""
    seed = next((e for e in state.entities if e.kind is EntityKind.SEED), None)
    if seed is not None:
        return seed.position
    stairs = state.map.find(Tile.STAIRS)
    return stairs if stairs is not None else Position(0, 0)


def build_dialogue_prompt(npc: Entity, location: str, utterance: str, direction: str) -> str:
    persona = PERSONAS.get(npc.kind, DEFAULT_PERSONA)
    return (
        "Roleplay Context:\n"
        f"{persona}\n"
        f"Current Location: {location}.\n\n"
        "KEY GAME INFO:\n"
        f'- The player is asking you: "{utterance}"\n'
        f"- The way forward (Stairs/Goal) is located to the **{direction}** of the player's current position.\n\n"
        "Instructions:\n"
        "- If the player asks for directions, give them a hint based on the direction provided above.\n"
        '- Do NOT explicitly say "Go North East". Use flavor.\n'
        "- Keep response under 30 words."
    )


def build_tip_prompt(location: str, health: int) -> str:
    return (
        "You are a narrator for a pixel dungeon game.\n"
        f"Current Level: {location}.\n"
        f"Player Health: {health}.\n\n"
        "Give a one-sentence atmospheric description of the smell, sound, or feeling of this specific level."
    )


class NarrativeService:
    """Produces NPC replies and ambient tips.

    Uses the remote model when a key is configured and falls back to canned
    text otherwise, or whenever a request fails. The methods never raise; they
    block, so call them off the game loop (see ``NarrativeDispatcher``).
    """

    def __init__(
        self,
        settings: Optional[NarrativeSettings] = None,
        client: Optional[GeminiClient] = None,
        rng: Optional[random.Random] = None,
        levels: Sequence[LevelConfig] = (),
    ) -> None:
        self.settings = settings or NarrativeSettings()
        self.levels = tuple(levels)
        self._fallback = OfflineNarrator(rng or random.Random())
        self._lock = threading.Lock()
        self._client: Optional[GeminiClient] = client
        self._status = NarrativeStatus.READY if client is not None else NarrativeStatus.MISSING
        if client is None and self.settings.has_key:
            self.reconfigure(self.settings)

    @property
    def status(self) -> NarrativeStatus:
        return self._status

    def reconfigure(self, settings: NarrativeSettings) -> NarrativeStatus:
        """Swap in new settings (e.g. a freshly entered API key)."""
        with self._lock:
            self.settings = settings
            if not settings.has_key:
                self._client = None
                self._status = NarrativeStatus.MISSING
            else:
                try:
                    self._client = GeminiClient(settings)
                    self._status = NarrativeStatus.READY
                except ValueError as exc:
                    logger.error("Narrative client could not be created: %s", exc)
                    self._client = None
                    self._status = NarrativeStatus.ERROR
        logger.info("Narrative status: %s", self._status.value)
        return self._status

    def _record(self, client: GeminiClient, status: NarrativeStatus) -> None:
        # Only the current client updates the status.
        with self._lock:
            if self._client is client and self._status is not status:
                logger.info("Narrative status: %s -> %s", self._status.value, status.value)
                self._status = status

    def _generate(self, prompt: str) -> Optional[str]:
        with self._lock:
            client = self._client
        if client is None:
            return None
        try:
            text = client.generate(prompt)
        except NarrativeError as exc:
            logger.warning("Narrative request failed, using offline text: %s", exc)
            self._record(client, NarrativeStatus.ERROR)
            return None
        self._record(client, NarrativeStatus.READY)
        return text

    def request_dialogue(self, npc: Entity, state: GameState, utterance: str) -> str:
        direction = describe_direction(state.player, goal_position(state))
        location = level_name(self.levels, state.level_id)
        text = self._generate(build_dialogue_prompt(npc, location, utterance, direction))
        if text is None:
            return self._fallback.hint(direction)
        return text or "..."

    def request_ambient_tip(self, state: GameState) -> str:
        location = level_name(self.levels, state.level_id)
        text = self._generate(build_tip_prompt(location, state.health))
        if text is None:
            return self._fallback.tip(state.level_id)
        return text or "Watch your step."
