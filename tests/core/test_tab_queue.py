"""Tests for TabQueue."""

from __future__ import annotations

from core.tab_queue import TabQueue, TabState
from models.message_models import WordCandidate


def test_enqueue_and_take_chunk_in_order() -> None:
    queue = TabQueue(tab_id=1)
    queue.enqueue([WordCandidate("a", 0), WordCandidate("b", 1), WordCandidate("c", 2)], "fr")

    chunk = queue.take_chunk(2)

    assert [item.candidate.text for item in chunk] == ["a", "b"]
    assert all(item.target_language == "fr" for item in chunk)
    assert [item.candidate.text for item in queue.take_chunk(2)] == ["c"]
    assert queue.take_chunk(2) == []
    assert queue.total == 3


def test_percentage() -> None:
    queue = TabQueue(tab_id=1)
    assert queue.percentage == 100

    queue.enqueue([WordCandidate("a"), WordCandidate("b"), WordCandidate("c")], "fr")
    queue.processed = 1
    assert queue.percentage == 33


def test_drop_pending() -> None:
    queue = TabQueue(tab_id=1)
    queue.enqueue([WordCandidate("a"), WordCandidate("b")], "fr")

    assert queue.drop_pending() == 2
    assert not queue.pending
    assert queue.state is TabState.IDLE
    assert not queue.is_processing
