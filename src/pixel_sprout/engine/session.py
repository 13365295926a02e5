from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from ..config import GameSettings, LevelConfig
from ..rng import RNGManager
from ..narrative.dispatcher import NarrativeDispatcher, NarrativeReply, ReplyKind
from ..narrative.service import NarrativeService
from ..narrative.settings import NarrativeSettings
from .events import GameEvent
from .intents import Intent
from .rules import (
    Effect,
    LevelEntered,
    OpenDialogue,
    RequestDialogue,
    RequestTip,
    RuleContext,
    Transition,
    apply_intent,
    new_game,
)
from .scheduler import tick
from .state import GameState, LogKind
from .view import StateView, snapshot

logger = logging.getLogger(__name__)


class Overlay(str, Enum):
    INTRO = "intro"
    TUTORIAL = "tutorial"
    DIALOGUE = "dialogue"
    LEVEL_START = "level_start"


@dataclass
class Conversation:
    entity_id: str
    speaker: str
    history: List[Tuple[str, str]] = field(default_factory=list)
    loading: bool = False
    open: bool = True

    def add(self, sender: str, text: str) -> None:
        self.history.append((sender, text))


class GameSession:
    """Interactive wrapper around the pure rules.

    Holds the current ``GameState``, the overlays that pause input, the open
    conversation and the narrative dispatcher. Front ends call ``dispatch``
    with intents, ``advance`` with elapsed real time and read ``view()``.
    Narrative replies are only applied on the caller's thread, in ``pump``.
    """

    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        levels: Optional[Sequence[LevelConfig]] = None,
        narrator: Optional[NarrativeService] = None,
        dispatcher: Optional[NarrativeDispatcher] = None,
        overlays: Iterable[Overlay] = (Overlay.INTRO, Overlay.TUTORIAL),
    ) -> None:
        self.settings = settings or GameSettings.from_env()
        self.rngm = RNGManager(self.settings.seed)
        self.ctx = RuleContext.build(self.settings, levels, self.rngm)
        self.narrator = narrator or NarrativeService(
            NarrativeSettings.load(),
            rng=self.rngm.context_rng("narrative"),
            levels=self.ctx.levels,
        )
        self.dispatcher = dispatcher or NarrativeDispatcher()
        self.overlays: Set[Overlay] = set(overlays)
        self.conversation: Optional[Conversation] = None
        self._listeners: List[Callable[[GameEvent, "GameSession"], None]] = []
        self.state: GameState = new_game(self.ctx)

    # -- events ---------------------------------------------------------------------

    def add_listener(self, listener: Callable[[GameEvent, "GameSession"], None]) -> None:
        self._listeners.append(listener)

    def _emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception:  # pragma: no cover - a broken listener must not stop the game
                logger.exception("Listener failed on %s", event)

    # -- input ----------------------------------------------------------------------

    @property
    def blocked(self) -> bool:
        return bool(self.overlays)

    def dispatch(self, intent: Intent) -> bool:
        """Apply one intent. Returns False if it was ignored or rejected."""
        self.pump()
        if self.blocked:
            logger.debug("Intent %s ignored; overlays open: %s", intent.value, sorted(o.value for o in self.overlays))
            return False
        transition = apply_intent(self.state, intent, self.ctx)
        self._commit(transition)
        return transition.accepted

    def dismiss(self, overlay: Optional[Overlay] = None) -> None:
        """Close ``overlay`` or, without an argument, the front-most one."""
        if overlay is None:
            for candidate in (Overlay.LEVEL_START, Overlay.DIALOGUE, Overlay.TUTORIAL, Overlay.INTRO):
                if candidate in self.overlays:
                    overlay = candidate
                    break
        if overlay is None or overlay not in self.overlays:
            return
        self.overlays.discard(overlay)
        if overlay is Overlay.DIALOGUE and self.conversation is not None:
            self.conversation.open = False
        self._emit(GameEvent.OVERLAY_CHANGED)

    def close_dialogue(self) -> None:
        self.dismiss(Overlay.DIALOGUE)

    def say(self, utterance: str) -> bool:
        """Send a line to the NPC of the open conversation."""
        convo = self.conversation
        if convo is None or not convo.open or not utterance.strip():
            return False
        npc = self.state.entity(convo.entity_id)
        if npc is None:
            convo.add("npc", "...")
            self._emit(GameEvent.DIALOGUE_UPDATED)
            return False
        convo.add("player", utterance)
        convo.loading = True
        self.dispatcher.submit(
            ReplyKind.DIALOGUE,
            self.narrator.request_dialogue,
            npc,
            self.state,
            utterance,
            entity_id=npc.id,
        )
        self._emit(GameEvent.DIALOGUE_UPDATED)
        return True

    # -- time -----------------------------------------------------------------------

    def advance(self, elapsed_ms: int) -> None:
        """Move the virtual clock forward, resolving due removals."""
        before = self.state
        self.state = tick(self.state, elapsed_ms)
        if self.state is not before:
            self._emit(GameEvent.STATE_CHANGED)
        self.pump()

    def pump(self) -> int:
        """Apply narrative replies that arrived since the last call."""
        replies = self.dispatcher.drain()
        for reply in replies:
            self._apply_reply(reply)
        return len(replies)

    # -- internals ------------------------------------------------------------------

    def _apply_reply(self, reply: NarrativeReply) -> None:
        if reply.kind is ReplyKind.TIP:
            self.state = self.state.log_message(reply.text, LogKind.INFO)
            self._emit(GameEvent.STATE_CHANGED)
            return
        # Replies land in whichever conversation is current, even if it moved on.
        if self.conversation is None:
            self.state = self.state.log_message(reply.text, LogKind.DIALOG)
            self._emit(GameEvent.STATE_CHANGED)
            return
        self.conversation.add("npc", reply.text)
        self.conversation.loading = False
        self._emit(GameEvent.DIALOGUE_UPDATED)

    def _commit(self, transition: Transition) -> None:
        was_finished = self.state.is_finished
        self.state = transition.state
        for effect in transition.effects:
            self._run_effect(effect)
        self._emit(GameEvent.STATE_CHANGED)
        if self.state.is_finished and not was_finished:
            self._emit(GameEvent.GAME_ENDED)

    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, OpenDialogue):
            self.conversation = Conversation(effect.entity_id, effect.speaker)
            for line in effect.lines:
                self.conversation.add("npc", line)
            self.overlays.add(Overlay.DIALOGUE)
            self._emit(GameEvent.DIALOGUE_UPDATED)
        elif isinstance(effect, RequestDialogue):
            self.say(effect.utterance)
        elif isinstance(effect, RequestTip):
            self.dispatcher.submit(ReplyKind.TIP, self.narrator.request_ambient_tip, self.state)
        elif isinstance(effect, LevelEntered):
            self.conversation = None
            self.overlays.add(Overlay.LEVEL_START)
            self._emit(GameEvent.LEVEL_CHANGED)
        else:  # pragma: no cover
            raise TypeError(f"Unknown effect {effect!r}")

    # -- output ---------------------------------------------------------------------

    def view(self, recent: int = 4) -> StateView:
        return snapshot(self.state, self.ctx.levels, recent)

    def close(self) -> None:
        self.dispatcher.shutdown(wait=False)
