"""Per-tab word queues."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncio

    from models.message_models import WordCandidate

__all__: list[str] = ["PendingWord", "TabQueue", "TabState"]


class TabState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"


@dataclass
class PendingWord:
    """A queued candidate together with the target language it was requested for."""

    candidate: WordCandidate
    target_language: str


@dataclass
class TabQueue:
    """Words awaiting translation for one tab.

    Only one processing loop may run per tab. Batches that arrive while the loop is running are
    appended to ``pending`` and counted into ``total``; the running loop picks them up.

    Attributes:
        tab_id (int): Owning tab.
        state (TabState): IDLE until a loop starts, PROCESSING while it runs.
        pending (deque[PendingWord]): FIFO of words not yet taken into a chunk.
        total (int): Words submitted during the current run.
        processed (int): Words accounted for during the current run.
        loop_starts (int): Number of processing loops started for this queue.
        task (asyncio.Task[None] | None): The running processing loop.
    """

    tab_id: int
    state: TabState = TabState.IDLE
    pending: deque[PendingWord] = field(default_factory=deque)
    total: int = 0
    processed: int = 0
    loop_starts: int = 0
    task: asyncio.Task[None] | None = None

    @property
    def is_processing(self) -> bool:
        return self.state is TabState.PROCESSING

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 100
        return round(self.processed / self.total * 100)

    def enqueue(self, words: list[WordCandidate], target_language: str) -> None:
        self.pending.extend(PendingWord(candidate=word, target_language=target_language) for word in words)
        self.total += len(words)

    def take_chunk(self, size: int) -> list[PendingWord]:
        """Remove and return up to ``size`` words in submission order."""
        chunk: list[PendingWord] = []
        while self.pending and len(chunk) < size:
            chunk.append(self.pending.popleft())
        return chunk

    def drop_pending(self) -> int:
        dropped: int = len(self.pending)
        self.pending.clear()
        return dropped
