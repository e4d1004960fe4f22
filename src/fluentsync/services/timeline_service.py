"""Service that keeps display surfaces refreshed on their timelines."""
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional

from fluentsync.models.progress_models import DisplayEntry, DisplayKind, DisplayOptions
from fluentsync.services.refresh_scheduler import RefreshScheduler
from fluentsync.services.reload_signal import ReloadNotifier, scope_matches

logger = logging.getLogger(__name__)


@dataclass
class DisplaySurface:
    """A display surface and the sink its entries are rendered into."""
    name: str
    kind: DisplayKind
    on_entry: Callable[[DisplayEntry], Any]
    options: DisplayOptions = field(default_factory=DisplayOptions)


class TimelineService(ReloadNotifier):
    """Runs one refresh task per display surface.

    A surface re-reads the store when its timeline expires or when a
    reload signal for its kind arrives, whichever comes first. Surfaces
    refresh independently of each other.
    """

    def __init__(
        self,
        scheduler: RefreshScheduler,
        surfaces: Iterable[DisplaySurface] = (),
        retry_delay: float = 60,
    ):
        """Initialize the service with a scheduler and the surfaces to drive."""
        self.scheduler = scheduler
        self.retry_delay = retry_delay
        self.surfaces: Dict[str, DisplaySurface] = {}
        self.tasks: Dict[str, asyncio.Task] = {}
        self.latest_entries: Dict[str, DisplayEntry] = {}
        self.running = False
        self._reload_events: Dict[str, asyncio.Event] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        for surface in surfaces:
            self.add_surface(surface)

    def add_surface(self, surface: DisplaySurface) -> None:
        """Register a surface; it starts refreshing at once if the service runs."""
        if surface.name in self.surfaces:
            logger.warning("Surface %s already exists", surface.name)
            return

        self.surfaces[surface.name] = surface
        if self.running:
            self._start_surface(surface)

    async def remove_surface(self, name: str) -> None:
        """Stop refreshing a surface and forget it."""
        if name not in self.surfaces:
            logger.warning("Surface %s does not exist", name)
            return

        del self.surfaces[name]
        self._reload_events.pop(name, None)
        self.latest_entries.pop(name, None)
        task = self.tasks.pop(name, None)
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        logger.info("Removed surface: %s", name)

    async def start(self) -> None:
        """Start the timeline service."""
        if self.running:
            return

        self.running = True
        self._loop = asyncio.get_running_loop()
        logger.info("Starting timeline service...")

        for surface in self.surfaces.values():
            self._start_surface(surface)

    async def stop(self) -> None:
        """Stop the timeline service."""
        if not self.running:
            return

        self.running = False
        logger.info("Stopping timeline service...")

        # Cancel all tasks
        for task in self.tasks.values():
            task.cancel()

        # Wait for tasks to complete
        await asyncio.gather(*self.tasks.values(), return_exceptions=True)
        self.tasks.clear()
        self._reload_events.clear()
        self._loop = None

    def _send(self, scope: str) -> None:
        loop = self._loop
        if not self.running or loop is None or loop.is_closed():
            logger.debug("Timeline service not running, reload %s ignored", scope)
            return

        for name, surface in list(self.surfaces.items()):
            event = self._reload_events.get(name)
            if event is not None and scope_matches(scope, surface.kind):
                # Writers may signal from another thread
                loop.call_soon_threadsafe(event.set)

    def _start_surface(self, surface: DisplaySurface) -> None:
        self._reload_events[surface.name] = asyncio.Event()
        self.tasks[surface.name] = asyncio.create_task(self._run_surface(surface))
        logger.info("Started surface: %s (%s)", surface.name, surface.kind.value)

    async def _run_surface(self, surface: DisplaySurface) -> None:
        """Refresh loop for one surface."""
        reload_event = self._reload_events[surface.name]

        while self.running:
            try:
                # Clear first so a signal that arrives during the read is kept
                reload_event.clear()
                timeline = self.scheduler.timeline(surface.options)

                for entry in timeline.entries:
                    await self._deliver(surface, entry)

                delay = (timeline.refresh_after - self.scheduler.clock()).total_seconds()
                try:
                    await asyncio.wait_for(reload_event.wait(), timeout=max(delay, 0))
                    logger.debug("Reload signal received by surface %s", surface.name)
                except asyncio.TimeoutError:
                    logger.debug("Timeline expired for surface %s", surface.name)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error refreshing surface %s: %s", surface.name, str(e))
                await asyncio.sleep(self.retry_delay)

    async def _deliver(self, surface: DisplaySurface, entry: DisplayEntry) -> None:
        self.latest_entries[surface.name] = entry
        try:
            result = surface.on_entry(entry)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Surface %s failed to render entry: %s", surface.name, str(e))
