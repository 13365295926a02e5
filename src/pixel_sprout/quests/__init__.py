"""Quest data model, lifecycle rules and per-level quest catalog.

Only the models are re-exported here; ``quests.engine`` and ``quests.catalog``
operate on ``GameState`` and are imported from their modules directly.
"""

from .models import DialoguePhase, Objective, Quest, QuestReward, QuestStatus, QuestType

__all__ = ["DialoguePhase", "Objective", "Quest", "QuestReward", "QuestStatus", "QuestType"]
