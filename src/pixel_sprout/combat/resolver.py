from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping, Optional

from ..entities import Entity, EntityKind

logger = logging.getLogger(__name__)

PLAYER_DAMAGE = 5
RETALIATION_DAMAGE: Mapping[EntityKind, int] = {EntityKind.RAT: 3}


class BumpOutcome(str, Enum):
    HIT = "hit"
    KILLED = "killed"
    NO_EFFECT = "no_effect"


@dataclass(frozen=True)
class CombatResult:
    target: Entity
    attacker_health: int
    outcome: BumpOutcome
    damage_dealt: int = 0
    damage_taken: int = 0

    @property
    def attacker_dead(self) -> bool:
        return self.attacker_health <= 0


def _apply_damage(target: Entity, damage: int) -> Entity:
    remaining = max(0, (target.health or 0) - damage)
    return replace(target, health=remaining, dying=remaining <= 0)


def strike(attacker_health: int, target: Entity, damage: int = PLAYER_DAMAGE) -> CombatResult:
    """One-sided hit with no counter-attack (used when talking to a hostile)."""
    if damage < 0:
        raise ValueError("damage must be >= 0")
    if not target.damageable or target.dying:
        return CombatResult(target, attacker_health, BumpOutcome.NO_EFFECT)
    hit = _apply_damage(target, damage)
    outcome = BumpOutcome.KILLED if hit.dying else BumpOutcome.HIT
    logger.debug("%s struck for %d (%s -> %s)", target.id, damage, target.health, hit.health)
    return CombatResult(hit, attacker_health, outcome, damage_dealt=damage)


def resolve_bump(
    attacker_health: int,
    target: Entity,
    damage: int = PLAYER_DAMAGE,
    retaliation: Optional[Mapping[EntityKind, int]] = None,
) -> CombatResult:
    """Resolve the player walking into ``target``.

    The exchange is simultaneous: the target takes ``damage`` and, if it
    survives, hits back for its retaliation value. A target that drops to zero
    is flagged ``dying`` and does not retaliate. Targets without health are
    immune and the bump has no effect.
    """
    result = strike(attacker_health, target, damage)
    if result.outcome is not BumpOutcome.HIT:
        return result
    table = RETALIATION_DAMAGE if retaliation is None else retaliation
    counter = table.get(target.kind, 0)
    if counter <= 0:
        return result
    remaining = max(0, attacker_health - counter)
    logger.debug("%s retaliates for %d (player %d -> %d)", target.id, counter, attacker_health, remaining)
    return replace(result, attacker_health=remaining, damage_taken=counter)
