"""Read path used by display surfaces on every refresh."""
import logging
from datetime import datetime, timedelta, UTC
from typing import Callable, Optional

from fluentsync import monitoring
from fluentsync.config import settings
from fluentsync.errors import DecodeError
from fluentsync.models.progress_models import (
    DisplayEntry,
    DisplayOptions,
    ProgressSnapshot,
    Timeline,
    WordOfDay,
)
from fluentsync.services.shared_store import (
    KEY_LAST_UPDATE,
    KEY_LESSONS_COMPLETED,
    KEY_STREAK,
    KEY_TODAY_POINTS,
    KEY_TOTAL_WORDS,
    KEY_WORD_OF_THE_DAY,
    SharedStore,
)
from fluentsync.services.word_codec import WordOfDayCodec

logger = logging.getLogger(__name__)

PLACEHOLDER_SNAPSHOT = ProgressSnapshot(
    streak=7,
    today_points=120,
    total_words_learned=150,
    lessons_completed=5,
)

PLACEHOLDER_WORD = WordOfDay(
    word="Serendipity",
    definition="The occurrence of events by chance in a happy way",
    example="Finding this park was pure serendipity.",
    pronunciation="/ˌserənˈdɪpɪti/",
)


def default_refresh_interval() -> timedelta:
    return timedelta(minutes=settings.scheduler.refresh_interval_minutes)


class RefreshScheduler:
    """Builds display entries from the shared store.

    Never raises for missing or broken data: absent counters read as 0 and
    an undecodable word reads as no word.
    """

    def __init__(
        self,
        store: SharedStore,
        codec: Optional[WordOfDayCodec] = None,
        refresh_interval: Optional[timedelta] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.store = store
        self.codec = codec or WordOfDayCodec()
        self.refresh_interval = (
            refresh_interval if refresh_interval is not None else default_refresh_interval()
        )
        if self.refresh_interval <= timedelta(0):
            raise ValueError("refresh_interval must be positive")
        self.clock = clock

    def produce_entry(self, now: datetime, options: Optional[DisplayOptions] = None) -> DisplayEntry:
        """Read the current store contents into an entry stamped ``now``."""
        entry = self._load_entry(now, options)
        monitoring.entries_produced.labels(origin="scheduled").inc()
        return entry

    def next_refresh_time(self, now: datetime) -> datetime:
        return now + self.refresh_interval

    def placeholder_entry(self) -> DisplayEntry:
        """Fixed sample entry for previews, independent of the store."""
        monitoring.entries_produced.labels(origin="placeholder").inc()
        return DisplayEntry(
            generated_at=self.clock(),
            snapshot=PLACEHOLDER_SNAPSHOT,
            word_of_day=PLACEHOLDER_WORD,
            display_options=DisplayOptions(),
        )

    def current_entry(self, options: Optional[DisplayOptions] = None) -> DisplayEntry:
        """Entry for an ad-hoc refresh request, stamped with the current time."""
        entry = self._load_entry(self.clock(), options)
        monitoring.entries_produced.labels(origin="current").inc()
        return entry

    # Preview requests read live data the same way
    snapshot_entry = current_entry

    def timeline(
        self,
        options: Optional[DisplayOptions] = None,
        now: Optional[datetime] = None,
    ) -> Timeline:
        """One entry plus the time after which the surface should refresh."""
        now = now or self.clock()
        entry = self.produce_entry(now, options)
        return Timeline(entries=[entry], refresh_after=self.next_refresh_time(now))

    def _load_entry(self, now: datetime, options: Optional[DisplayOptions]) -> DisplayEntry:
        snapshot = ProgressSnapshot(
            streak=max(self.store.get_integer(KEY_STREAK), 0),
            today_points=max(self.store.get_integer(KEY_TODAY_POINTS), 0),
            total_words_learned=max(self.store.get_integer(KEY_TOTAL_WORDS), 0),
            lessons_completed=max(self.store.get_integer(KEY_LESSONS_COMPLETED), 0),
            last_update=self.store.get_timestamp(KEY_LAST_UPDATE),
        )
        return DisplayEntry(
            generated_at=now,
            snapshot=snapshot,
            word_of_day=self._load_word_of_day(),
            display_options=options or DisplayOptions(),
        )

    def _load_word_of_day(self) -> Optional[WordOfDay]:
        data = self.store.get_bytes(KEY_WORD_OF_THE_DAY)
        if data is None:
            return None

        try:
            return self.codec.decode(data)
        except DecodeError as e:
            logger.warning("Ignoring stored word of the day: %s", e)
            monitoring.decode_errors.inc()
            return None
