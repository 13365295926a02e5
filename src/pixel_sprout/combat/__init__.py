from .resolver import PLAYER_DAMAGE, RETALIATION_DAMAGE, BumpOutcome, CombatResult, resolve_bump, strike

__all__ = ["PLAYER_DAMAGE", "RETALIATION_DAMAGE", "BumpOutcome", "CombatResult", "resolve_bump", "strike"]
