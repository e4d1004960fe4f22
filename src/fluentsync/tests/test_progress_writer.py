"""Tests for the progress writer."""
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
import random

import pytest
from faker import Faker

from fluentsync.errors import EncodeError
from fluentsync.models.progress_models import ProgressSnapshot, WordOfDay
from fluentsync.services.progress_writer import ProgressWriter
from fluentsync.services.reload_signal import CallbackReloadNotifier
from fluentsync.services.shared_store import (
    KEY_LAST_UPDATE,
    KEY_LESSONS_COMPLETED,
    KEY_STREAK,
    KEY_TODAY_POINTS,
    KEY_TOTAL_WORDS,
    KEY_WORD_OF_THE_DAY,
    KEY_WORD_OF_THE_DAY_DATE,
    InMemorySharedStore,
)
from fluentsync.services.word_codec import WordOfDayCodec

fake = Faker()

NOW = datetime(2025, 11, 9, 9, 0, tzinfo=UTC)


@dataclass
class HostProgress:
    """Stand-in for the host application's progress object."""
    streak: int
    total_points: int
    vocabulary_mastered: int
    lessons_completed: int


class FailingCodec(WordOfDayCodec):
    """Codec whose encoding always fails."""

    def encode(self, word: WordOfDay) -> bytes:
        raise EncodeError("cannot encode")


@pytest.fixture
def writer(store, notifier) -> ProgressWriter:
    """Create a writer with a fixed clock."""
    return ProgressWriter(store, notifier, clock=lambda: NOW, rng=random.Random(4))


def test_publish_progress_writes_all_keys(writer: ProgressWriter, store, notifier) -> None:
    """Test that publishing stores every counter and the update time."""
    writer.publish_progress(
        ProgressSnapshot(streak=7, today_points=120, total_words_learned=150, lessons_completed=5)
    )

    assert store.get_integer(KEY_STREAK) == 7
    assert store.get_integer(KEY_TODAY_POINTS) == 120
    assert store.get_integer(KEY_TOTAL_WORDS) == 150
    assert store.get_integer(KEY_LESSONS_COMPLETED) == 5
    assert store.get_timestamp(KEY_LAST_UPDATE) == NOW
    assert notifier.scopes == ["all"]


def test_publish_progress_uses_fresh_timestamp(store, notifier) -> None:
    """Test that the stored update time comes from the clock, not the snapshot."""
    writer = ProgressWriter(store, notifier, clock=lambda: NOW)
    writer.publish_progress(ProgressSnapshot(streak=1, last_update=NOW - timedelta(days=3)))
    assert store.get_timestamp(KEY_LAST_UPDATE) == NOW


def test_notify_happens_after_writes(store) -> None:
    """Test that surfaces are signalled only once the values are stored."""
    seen = []

    def on_reload(scope: str) -> None:
        seen.append((scope, store.get_integer(KEY_LESSONS_COMPLETED), store.get_timestamp(KEY_LAST_UPDATE)))

    writer = ProgressWriter(store, CallbackReloadNotifier(on_reload), clock=lambda: NOW)
    writer.publish_progress(ProgressSnapshot(lessons_completed=9))
    assert seen == [("all", 9, NOW)]


def test_publish_progress_on_unavailable_store(notifier) -> None:
    """Test that an unavailable store never makes publishing fail."""
    writer = ProgressWriter(InMemorySharedStore(available=False), notifier)
    writer.publish_progress(ProgressSnapshot(streak=3))
    assert notifier.scopes == ["all"]


def test_publish_from_progress_maps_fields(writer: ProgressWriter, store) -> None:
    """Test mapping the host progress object onto a snapshot."""
    snapshot = writer.publish_from_progress(
        HostProgress(streak=4, total_points=900, vocabulary_mastered=33, lessons_completed=2)
    )

    assert snapshot.counters() == (4, 900, 33, 2)
    assert store.get_integer(KEY_TODAY_POINTS) == 900
    assert store.get_integer(KEY_TOTAL_WORDS) == 33


def test_publish_word_of_day(writer: ProgressWriter, store, notifier, random_word: WordOfDay) -> None:
    """Test that a word is encoded, timestamped and signalled."""
    assert writer.publish_word_of_day(random_word) is True

    assert WordOfDayCodec().decode(store.get_bytes(KEY_WORD_OF_THE_DAY)) == random_word
    assert store.get_timestamp(KEY_WORD_OF_THE_DAY_DATE) == NOW
    assert notifier.scopes == ["wordOfDay"]


def test_encode_failure_keeps_previous_word(store, notifier, random_word: WordOfDay) -> None:
    """Test that a failed publish is a no-op."""
    ProgressWriter(store, notifier, clock=lambda: NOW).publish_word_of_day(random_word)
    previous = store.get_bytes(KEY_WORD_OF_THE_DAY)

    failing = ProgressWriter(store, notifier, codec=FailingCodec(), clock=lambda: NOW + timedelta(days=1))
    assert failing.publish_word_of_day(random_word) is False

    assert store.get_bytes(KEY_WORD_OF_THE_DAY) == previous
    assert store.get_timestamp(KEY_WORD_OF_THE_DAY_DATE) == NOW
    assert notifier.scopes == ["wordOfDay"]


def test_set_word_of_day_from_vocabulary(writer: ProgressWriter, store) -> None:
    """Test publishing from loose vocabulary fields."""
    writer.set_word_of_day_from_vocabulary("Ephemeral", "Lasting a short time", "Fame is ephemeral.", "/ɪˈfem(ə)rəl/")
    word = WordOfDayCodec().decode(store.get_bytes(KEY_WORD_OF_THE_DAY))
    assert word.word == "Ephemeral"
    assert word.pronunciation == "/ɪˈfem(ə)rəl/"


def test_rotate_word_of_day_once_per_day(store, notifier) -> None:
    """Test that rotation publishes at most once per calendar day."""
    candidates = [
        WordOfDay(word=fake.unique.word(), definition=fake.sentence(), example=fake.sentence(), pronunciation="/x/")
        for _ in range(5)
    ]
    writer = ProgressWriter(store, notifier, clock=lambda: NOW, rng=random.Random(1))

    first = writer.rotate_word_of_day(candidates, now=NOW)
    assert first in candidates
    assert writer.rotate_word_of_day(candidates, now=NOW + timedelta(hours=10)) is None
    assert notifier.scopes == ["wordOfDay"]

    next_day = NOW + timedelta(days=1)
    writer.clock = lambda: next_day
    assert writer.rotate_word_of_day(candidates, now=next_day) in candidates
    assert notifier.scopes == ["wordOfDay", "wordOfDay"]


def test_rotate_word_of_day_without_candidates(writer: ProgressWriter, notifier) -> None:
    """Test that an empty vocabulary publishes nothing."""
    assert writer.rotate_word_of_day([], now=NOW) is None
    assert notifier.scopes == []
