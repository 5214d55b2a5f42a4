"""
Report assembly.

Drives discovery, loading, filtering, aggregation and bucketing to build
session and period reports. Report builders never raise for missing data:
an absent data directory or an empty session list is reported through the
report's status so every output mode can say "no data" its own way.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from .aggregation import AggregatedUsage, accumulate
from .periods import Granularity, period_key
from .timefilter import TimeWindow
from ocusage.storage.discovery import DataDirectoryNotFoundError
from ocusage.storage.models import SessionRecord
from ocusage.storage.repository import SessionInfoFile, SessionRepository

logger = logging.getLogger(__name__)


class ReportKind(Enum):
    """Kind of report, with the root element used for XML output."""
    SESSION = "sessions"
    PERIOD = "report"
    LIVE = "liveReport"

    @property
    def root_tag(self) -> str:
        return self.value


class ReportStatus(Enum):
    """Outcome of building a report."""
    OK = "ok"
    MISSING_DATA_DIR = "missing_data_dir"
    NO_SESSIONS = "no_sessions"
    UNREADABLE_DATA_DIR = "unreadable_data_dir"


def format_created(timestamp: int) -> str:
    """Local-time rendering of an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _usage_fields(usage: AggregatedUsage) -> Dict[str, float]:
    return {
        "totalCost": usage.total_cost,
        "inputTokens": usage.total_input_tokens,
        "outputTokens": usage.total_output_tokens,
        "cacheReadTokens": usage.total_cache_read_tokens,
        "cacheWriteTokens": usage.total_cache_write_tokens,
    }


@dataclass
class SessionEntry:
    """One session row."""
    id: str
    title: str
    created: str
    usage: AggregatedUsage

    @classmethod
    def from_session(cls, session: SessionRecord, usage: AggregatedUsage) -> "SessionEntry":
        return cls(
            id=session.id,
            title=session.title,
            created=format_created(session.created),
            usage=usage
        )

    def to_dict(self, show_models: bool = True) -> dict:
        entry = {"id": self.id, "title": self.title, "created": self.created}
        entry.update(_usage_fields(self.usage))
        if show_models:
            entry["models"] = {
                model_id: model.to_dict() for model_id, model in self.usage.models.items()
            }
        return entry


@dataclass
class PeriodEntry:
    """One period bucket row."""
    period: str
    usage: AggregatedUsage

    def to_dict(self, show_models: bool = True) -> dict:
        entry = {"period": self.period}
        entry.update(_usage_fields(self.usage))
        if show_models:
            entry["models"] = {
                model_id: model.to_dict() for model_id, model in self.usage.models.items()
            }
        return entry


ReportEntry = Union[SessionEntry, PeriodEntry]


@dataclass
class Report:
    """A built report, ready to render."""
    kind: ReportKind
    entries: List[ReportEntry] = field(default_factory=list)
    status: ReportStatus = ReportStatus.OK
    error: Optional[str] = None
    granularity: Optional[Granularity] = None

    def totals(self) -> AggregatedUsage:
        """Grand total over all entries."""
        total = AggregatedUsage()
        for entry in self.entries:
            total.merge(entry.usage)
        return total


def _load_sessions(repository: SessionRepository, report: Report) -> Optional[List[SessionInfoFile]]:
    """List sessions, recording an unusable data directory or empty result on ``report``."""
    try:
        session_files = repository.list_sessions()
    except DataDirectoryNotFoundError as e:
        report.status = ReportStatus.MISSING_DATA_DIR
        report.error = str(e)
        return None
    except OSError as e:
        logger.error("Could not list opencode sessions: %s", e)
        report.status = ReportStatus.UNREADABLE_DATA_DIR
        report.error = str(e)
        return None

    if not session_files:
        report.status = ReportStatus.NO_SESSIONS
        return None
    return session_files


def session_usage(
    repository: SessionRepository,
    session_file: SessionInfoFile,
    window: Optional[TimeWindow] = None
) -> AggregatedUsage:
    """Aggregate the messages of one session that fall inside ``window``."""
    usage = AggregatedUsage()
    for message in repository.iter_messages(session_file):
        if window is None or window.contains(message.created):
            accumulate(usage, message)
    return usage


def build_session_report(
    repository: SessionRepository,
    window: Optional[TimeWindow] = None
) -> Report:
    """Build the per-session report.

    Sessions created outside ``window`` are skipped; the remaining sessions
    aggregate their in-window messages. Sessions without usage are omitted.
    """
    window = window or TimeWindow()
    report = Report(kind=ReportKind.SESSION)
    session_files = _load_sessions(repository, report)
    if session_files is None:
        return report

    for session_file in session_files:
        session = session_file.session
        if not window.contains(session.created):
            continue
        try:
            usage = session_usage(repository, session_file, window)
        except OSError as e:
            logger.warning("Could not process session file %s. Skipping. (%s)", session_file.file_path, e)
            continue
        if usage.has_usage:
            report.entries.append(SessionEntry.from_session(session, usage))

    return report


def build_period_report(
    repository: SessionRepository,
    granularity: Granularity,
    window: Optional[TimeWindow] = None
) -> Report:
    """Build a report bucketed by calendar period.

    Every in-window assistant message of an in-window session is added to
    the bucket of its period key. Buckets are sorted by key; buckets without
    usage are omitted.
    """
    window = window or TimeWindow()
    report = Report(kind=ReportKind.PERIOD, granularity=granularity)
    session_files = _load_sessions(repository, report)
    if session_files is None:
        return report

    buckets: Dict[str, AggregatedUsage] = {}
    for session_file in session_files:
        if not window.contains(session_file.session.created):
            continue
        try:
            for message in repository.iter_messages(session_file):
                if message.role != "assistant" or message.tokens is None:
                    continue
                if not window.contains(message.created):
                    continue
                key = period_key(message.created, granularity)
                accumulate(buckets.setdefault(key, AggregatedUsage()), message)
        except OSError as e:
            logger.warning("Could not process session file %s. Skipping. (%s)", session_file.file_path, e)

    for key in sorted(buckets):
        usage = buckets[key]
        if usage.has_usage:
            report.entries.append(PeriodEntry(period=key, usage=usage))

    return report
