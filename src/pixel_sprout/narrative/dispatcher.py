from __future__ import annotations

import logging
import queue
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class ReplyKind(str, Enum):
    DIALOGUE = "dialogue"
    TIP = "tip"


@dataclass(frozen=True)
class NarrativeReply:
    kind: ReplyKind
    text: str
    entity_id: Optional[str] = None


class NarrativeDispatcher:
    """Runs narrative requests off the game loop.

    Work is submitted to an executor; finished replies are pushed onto a
    thread-safe inbox which the owner drains from its own thread with
    ``drain()``. Nothing is ever delivered to game state from a worker thread.
    """

    def __init__(self, executor: Optional[Executor] = None) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="narrative")
        self._inbox: "queue.SimpleQueue[NarrativeReply]" = queue.SimpleQueue()
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def submit(
        self,
        kind: ReplyKind,
        fn: Callable[..., str],
        *args: Any,
        entity_id: Optional[str] = None,
    ) -> Future:
        self._in_flight += 1
        future = self._executor.submit(fn, *args)

        def _deliver(done: Future) -> None:
            exc = done.exception()
            if exc is not None:
                logger.error("Narrative %s request failed: %s", kind.value, exc)
                self._inbox.put(NarrativeReply(kind, "...", entity_id))
                return
            self._inbox.put(NarrativeReply(kind, done.result(), entity_id))

        future.add_done_callback(_deliver)
        return future

    def drain(self) -> List[NarrativeReply]:
        replies: List[NarrativeReply] = []
        while True:
            try:
                replies.append(self._inbox.get_nowait())
            except queue.Empty:
                break
        self._in_flight = max(0, self._in_flight - len(replies))
        return replies

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
