"""Models for progress snapshots and display entries."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class DisplayKind(Enum):
    """Kinds of display surfaces that can be reloaded by name."""
    STATS = "stats"  # Streak and counters surface
    WORD_OF_DAY = "wordOfDay"  # Word of the day surface


# Reload scope that targets every display surface
SCOPE_ALL = "all"


@dataclass(frozen=True)
class ProgressSnapshot:
    """Latest user progress as published by the host application."""
    streak: int = 0
    today_points: int = 0
    total_words_learned: int = 0
    lessons_completed: int = 0
    last_update: Optional[datetime] = None

    def __post_init__(self):
        for name in ("streak", "today_points", "total_words_learned", "lessons_completed"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    def counters(self) -> tuple:
        """Return the four counters, ignoring the update time."""
        return (self.streak, self.today_points, self.total_words_learned, self.lessons_completed)


@dataclass(frozen=True)
class WordOfDay:
    """The word shown on the word of the day surface."""
    word: str
    definition: str
    example: str
    pronunciation: str


@dataclass(frozen=True)
class DisplayOptions:
    """Per-surface configuration supplied with each refresh request."""
    show_streak: bool = True
    show_stats: bool = True


@dataclass(frozen=True)
class DisplayEntry:
    """A display snapshot produced for one refresh."""
    generated_at: datetime
    snapshot: ProgressSnapshot = field(default_factory=ProgressSnapshot)
    word_of_day: Optional[WordOfDay] = None
    display_options: DisplayOptions = field(default_factory=DisplayOptions)


@dataclass(frozen=True)
class Timeline:
    """Entries for a surface plus the earliest time it should refresh again."""
    entries: List[DisplayEntry]
    refresh_after: datetime
