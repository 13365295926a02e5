from .dispatcher import NarrativeDispatcher, NarrativeReply, ReplyKind
from .fallback import OfflineNarrator, describe_direction
from .service import NarrativeService, NarrativeStatus
from .settings import NarrativeSettings

__all__ = [
    "NarrativeDispatcher",
    "NarrativeReply",
    "ReplyKind",
    "OfflineNarrator",
    "describe_direction",
    "NarrativeService",
    "NarrativeStatus",
    "NarrativeSettings",
]
