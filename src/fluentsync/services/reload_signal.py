"""Reload signals sent to display surfaces after a publish."""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Union

from fluentsync import monitoring
from fluentsync.models.progress_models import SCOPE_ALL, DisplayKind

logger = logging.getLogger(__name__)


def normalize_scope(scope: Union[str, DisplayKind]) -> str:
    """Return the scope tag for ``scope``; raises ValueError if unknown."""
    if isinstance(scope, DisplayKind):
        return scope.value
    if scope == SCOPE_ALL:
        return scope
    return DisplayKind(scope).value


def scope_matches(scope: str, kind: DisplayKind) -> bool:
    """Check whether a reload with ``scope`` targets surfaces of ``kind``."""
    return scope == SCOPE_ALL or scope == kind.value


class ReloadNotifier(ABC):
    """Fire-and-forget channel into the host's refresh system."""

    def notify_displays_changed(self, scope: Union[str, DisplayKind] = SCOPE_ALL) -> None:
        """Ask surfaces in ``scope`` ("all" or a display kind) to re-read the store."""
        tag = normalize_scope(scope)
        monitoring.reload_signals.labels(scope=tag).inc()
        self._send(tag)

    @abstractmethod
    def _send(self, scope: str) -> None:
        """Deliver the reload signal."""


class CallbackReloadNotifier(ReloadNotifier):
    """Forward reload signals to a plain callable."""

    def __init__(self, callback: Callable[[str], None]):
        self.callback = callback

    def _send(self, scope: str) -> None:
        self.callback(scope)


class LoggingReloadNotifier(ReloadNotifier):
    """Notifier for hosts without a refresh system; surfaces poll on their own."""

    def _send(self, scope: str) -> None:
        logger.info("Display reload requested (scope: %s)", scope)
