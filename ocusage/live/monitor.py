"""Live monitoring of opencode session usage."""

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from rich.console import Console
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ocusage.config.loader import OutputMode
from ocusage.core.aggregation import AggregatedUsage
from ocusage.core.reports import Report, ReportKind, SessionEntry, session_usage
from ocusage.output.console import emit_report
from ocusage.storage.models import SessionRecord
from ocusage.storage.repository import SessionRepository

logger = logging.getLogger(__name__)

# deep enough for info/<file> and message/<session>/<file>
MAX_WATCH_DEPTH = 5


def is_ignored_path(path: str, root: Optional[str] = None) -> bool:
    """True for dotfiles, temp files and paths nested too deep below ``root``."""
    p = Path(path)
    if p.name.endswith(".tmp"):
        return True
    parts = p.parts
    if root is not None:
        try:
            parts = p.relative_to(root).parts
        except ValueError:
            return True
        if len(parts) > MAX_WATCH_DEPTH:
            return True
    return any(part.startswith(".") and part not in (".", "..") for part in parts)


class SessionFileEventHandler(FileSystemEventHandler):
    """Forwards file add, change and remove events to a callback."""

    def __init__(self, root: str, on_change: Callable[[str], None]):
        super().__init__()
        self.root = root
        self.on_change = on_change

    def _dispatch_path(self, event: FileSystemEvent, path: str) -> bool:
        if event.is_directory or is_ignored_path(path, self.root):
            return False
        logger.debug("%s: %s", event.event_type, path)
        self.on_change(path)
        return True

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch_path(event, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch_path(event, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._dispatch_path(event, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # a temp file renamed into place counts as a change of its destination
        if not self._dispatch_path(event, event.dest_path):
            self._dispatch_path(event, event.src_path)


class LiveMonitor:
    """Re-renders the session report whenever the data directory changes.

    The monitor owns the session map; ``refresh`` is the only way to
    update and show it. Every refresh is a full recompute without date
    filtering.
    """

    def __init__(
        self,
        repository: SessionRepository,
        output_mode: OutputMode = OutputMode.TABLE,
        show_models: bool = True,
        console: Optional[Console] = None,
        observer_factory: Callable[[], Observer] = Observer
    ):
        """Initialize live monitor.

        Args:
            repository: Repository to read sessions from
            output_mode: How each refresh is printed
            show_models: Include per-model breakdowns
            console: Rich console for output
            observer_factory: Creates the watchdog observer
        """
        self.repository = repository
        self.output_mode = output_mode
        self.show_models = show_models
        self.console = console or Console()
        self.observer_factory = observer_factory
        self._sessions: Dict[str, Tuple[SessionRecord, AggregatedUsage]] = {}

    @property
    def sessions(self) -> Dict[str, Tuple[SessionRecord, AggregatedUsage]]:
        """Read-only copy of the current session map."""
        return dict(self._sessions)

    def recompute(self) -> None:
        """Re-read every session and replace its map entry."""
        for session_file in self.repository.list_sessions():
            session = session_file.session
            try:
                usage = session_usage(self.repository, session_file)
            except OSError as e:
                logger.warning("Could not process session file %s. Skipping. (%s)", session_file.file_path, e)
                continue
            self._sessions[session.id] = (session, usage)

    def build_report(self) -> Report:
        entries = [
            SessionEntry.from_session(session, usage)
            for session, usage in self._sessions.values()
            if usage.has_usage
        ]
        return Report(kind=ReportKind.LIVE, entries=entries)

    def refresh(self, changed_path: Optional[str] = None) -> None:
        """Recompute all sessions and print the live report."""
        if changed_path:
            logger.debug("Refreshing after change to %s", changed_path)
        self.recompute()
        emit_report(self.build_report(), self.output_mode, self.show_models, self.console)

    def _on_file_event(self, path: str) -> None:
        try:
            self.refresh(path)
        except OSError as e:
            logger.error("Live refresh after change to %s failed: %s", path, e)

    def _schedule(self, observer: Observer) -> List[Path]:
        watched = []
        for storage_dir in self.repository.session_storage_dirs():
            if not storage_dir.is_dir():
                logger.debug("Not watching %s: directory does not exist", storage_dir)
                continue
            handler = SessionFileEventHandler(str(storage_dir), self._on_file_event)
            observer.schedule(handler, str(storage_dir), recursive=True)
            watched.append(storage_dir)
        return watched

    def run(self, stop_event: Optional[threading.Event] = None, poll_interval: float = 1.0) -> None:
        """Render once, then watch until interrupted or ``stop_event`` is set.

        Raises:
            DataDirectoryNotFoundError: If the base data directory does not exist
        """
        if not self.repository.session_storage_dirs():
            logger.warning("No opencode projects found to watch.")
            return

        self.refresh()

        observer = self.observer_factory()
        watched = self._schedule(observer)
        logger.debug("Watching %d session directories", len(watched))
        observer.start()
        stop_event = stop_event or threading.Event()
        try:
            while not stop_event.wait(poll_interval):
                pass
        except KeyboardInterrupt:
            pass
        finally:
            observer.stop()
            observer.join()
