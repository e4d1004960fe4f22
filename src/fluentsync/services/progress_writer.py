"""Service for publishing user progress into the shared store."""
import logging
import random
from datetime import datetime, UTC
from typing import Any, Callable, Optional, Sequence

from fluentsync import monitoring
from fluentsync.errors import EncodeError
from fluentsync.models.progress_models import SCOPE_ALL, DisplayKind, ProgressSnapshot, WordOfDay
from fluentsync.services.reload_signal import ReloadNotifier
from fluentsync.services.shared_store import (
    KEY_LAST_UPDATE,
    KEY_LESSONS_COMPLETED,
    KEY_STREAK,
    KEY_TODAY_POINTS,
    KEY_TOTAL_WORDS,
    KEY_WORD_OF_THE_DAY,
    KEY_WORD_OF_THE_DAY_DATE,
    SharedStore,
)
from fluentsync.services.word_codec import WordOfDayCodec

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class ProgressWriter:
    """Writes progress snapshots and the word of the day for display surfaces.

    Holds no state of its own: everything lives in the store.
    """

    def __init__(
        self,
        store: SharedStore,
        notifier: ReloadNotifier,
        codec: Optional[WordOfDayCodec] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the writer with a store and a reload notifier."""
        self.store = store
        self.notifier = notifier
        self.codec = codec or WordOfDayCodec()
        self.clock = clock
        self.rng = rng or random.Random()

    def publish_progress(self, snapshot: ProgressSnapshot) -> None:
        """Store the four counters with a fresh timestamp and reload all surfaces."""
        self.store.set_integer(KEY_STREAK, snapshot.streak)
        self.store.set_integer(KEY_TODAY_POINTS, snapshot.today_points)
        self.store.set_integer(KEY_TOTAL_WORDS, snapshot.total_words_learned)
        self.store.set_integer(KEY_LESSONS_COMPLETED, snapshot.lessons_completed)
        self.store.set_timestamp(KEY_LAST_UPDATE, self.clock())

        monitoring.publishes.labels(kind="progress").inc()
        logger.info(
            "Published progress: streak=%d, today_points=%d, words=%d, lessons=%d",
            snapshot.streak,
            snapshot.today_points,
            snapshot.total_words_learned,
            snapshot.lessons_completed,
        )
        self.notifier.notify_displays_changed(SCOPE_ALL)

    def publish_from_progress(self, progress: Any) -> ProgressSnapshot:
        """Publish a host progress object.

        Today's points are taken from ``total_points`` as supplied; no
        daily reset is applied here.
        """
        snapshot = ProgressSnapshot(
            streak=progress.streak,
            today_points=progress.total_points,
            total_words_learned=progress.vocabulary_mastered,
            lessons_completed=progress.lessons_completed,
        )
        self.publish_progress(snapshot)
        return snapshot

    def publish_word_of_day(self, word: WordOfDay) -> bool:
        """Store the encoded word and reload the word surfaces.

        Returns False, leaving any previous word in place, if the word
        cannot be encoded.
        """
        try:
            encoded = self.codec.encode(word)
        except EncodeError as e:
            logger.error("Word of the day not published: %s", e)
            monitoring.publish_failures.labels(kind="word_of_day").inc()
            return False

        self.store.set_bytes(KEY_WORD_OF_THE_DAY, encoded)
        self.store.set_timestamp(KEY_WORD_OF_THE_DAY_DATE, self.clock())

        monitoring.publishes.labels(kind="word_of_day").inc()
        logger.info("Published word of the day: %s", word.word)
        self.notifier.notify_displays_changed(DisplayKind.WORD_OF_DAY)
        return True

    def set_word_of_day_from_vocabulary(
        self,
        word: str,
        definition: str,
        example: str,
        pronunciation: str,
    ) -> bool:
        """Publish a word of the day built from vocabulary fields."""
        return self.publish_word_of_day(
            WordOfDay(
                word=word,
                definition=definition,
                example=example,
                pronunciation=pronunciation,
            )
        )

    def rotate_word_of_day(
        self,
        candidates: Sequence[WordOfDay],
        now: Optional[datetime] = None,
    ) -> Optional[WordOfDay]:
        """Publish a random candidate unless a word was already set today.

        Days are compared in the timezone of ``now``. Returns the published
        word, or None when nothing was published.
        """
        now = now or self.clock()
        last_set = self.store.get_timestamp(KEY_WORD_OF_THE_DAY_DATE)
        if last_set is not None:
            if now.tzinfo is not None:
                last_set = last_set.astimezone(now.tzinfo)
            else:
                last_set = last_set.replace(tzinfo=None)
            if last_set.date() == now.date():
                logger.debug("Word of the day already set on %s", last_set.date())
                return None

        if not candidates:
            logger.debug("No vocabulary to pick a word of the day from")
            return None

        word = self.rng.choice(list(candidates))
        if not self.publish_word_of_day(word):
            return None
        return word
