from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .state import GameState, LogKind, PendingRemoval

logger = logging.getLogger(__name__)


def schedule_removal(state: GameState, entity_id: str, delay_ms: int, message: Optional[str] = None) -> GameState:
    """Queue ``entity_id`` for removal ``delay_ms`` after the current clock."""
    if delay_ms < 0:
        raise ValueError("delay_ms must be >= 0")
    pending = PendingRemoval(entity_id=entity_id, due_ms=state.clock_ms + delay_ms, message=message)
    logger.debug("Removal of %s scheduled at t=%dms", entity_id, pending.due_ms)
    return replace(state, pending_removals=state.pending_removals + (pending,))


def drain_due(state: GameState) -> GameState:
    due = tuple(p for p in state.pending_removals if p.due_ms <= state.clock_ms)
    if not due:
        return state
    state = replace(state, pending_removals=tuple(p for p in state.pending_removals if p.due_ms > state.clock_ms))
    for pending in due:
        if state.entity(pending.entity_id) is None:
            logger.debug("Scheduled removal of %s skipped: already gone", pending.entity_id)
            continue
        state = state.without_entity(pending.entity_id)
        if pending.message:
            state = state.log_message(pending.message, LogKind.SUCCESS)
    return state


def tick(state: GameState, elapsed_ms: int) -> GameState:
    """Advance the virtual clock and drop every entity whose removal is due."""
    if elapsed_ms < 0:
        raise ValueError("elapsed_ms must be >= 0")
    if elapsed_ms == 0 and not state.pending_removals:
        return state
    return drain_due(replace(state, clock_ms=state.clock_ms + elapsed_ms))
