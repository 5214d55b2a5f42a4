"""
Repository pattern for data access.

Reads session and message records from opencode's storage tree:

    <base>/<project>/storage/session/info/<session>.json
    <base>/<project>/storage/session/message/<session>/<message>.json
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from .discovery import list_session_storage_dirs, resolve_base_data_dir
from .models import MessageRecord, RecordParseError, SessionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionInfoFile:
    """A parsed session info file and the storage directory it belongs to."""
    file_path: Path
    session_storage_dir: Path
    session: SessionRecord


def _load_json(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RecordParseError(f"Invalid JSON in {path}: {e}", str(path))


def _json_files(directory: Path) -> List[Path]:
    return sorted(p for p in directory.iterdir() if p.name.endswith(".json"))


def read_session_record(file_path: Path) -> SessionRecord:
    """Read and parse one session info file.

    Raises:
        RecordParseError: If the file is not a valid session record
        OSError: If the file cannot be read
    """
    data = _load_json(Path(file_path))
    try:
        return SessionRecord.from_dict(data)
    except RecordParseError as e:
        raise RecordParseError(f"{file_path}: {e}", str(file_path))


def read_message_record(file_path: Path) -> MessageRecord:
    """Read and parse one message file.

    Raises:
        RecordParseError: If the file is not a valid message record
        OSError: If the file cannot be read
    """
    data = _load_json(Path(file_path))
    try:
        return MessageRecord.from_dict(data)
    except RecordParseError as e:
        raise RecordParseError(f"{file_path}: {e}", str(file_path))


def list_session_info_files(data_dir: Optional[str] = None) -> List[SessionInfoFile]:
    """Parse every session info file under the data directory.

    Unreadable or malformed files are skipped with a warning. Projects
    without an ``info`` directory simply have no sessions yet.

    Args:
        data_dir: Explicit base data directory (platform default if omitted)

    Returns:
        Session info files ordered by storage directory, then file name

    Raises:
        DataDirectoryNotFoundError: If the base data directory does not exist
    """
    base_dir = resolve_base_data_dir(data_dir)
    session_files = []

    for storage_dir in list_session_storage_dirs(base_dir):
        info_dir = storage_dir / "info"
        try:
            files = _json_files(info_dir)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not list session info directory %s: %s. Skipping.", info_dir, e)
            continue

        for file_path in files:
            try:
                session = read_session_record(file_path)
            except (RecordParseError, OSError) as e:
                logger.warning("Could not read or parse session info file %s. Skipping. (%s)", file_path, e)
                continue
            session_files.append(SessionInfoFile(
                file_path=file_path,
                session_storage_dir=storage_dir,
                session=session
            ))

    return session_files


def list_message_files(session_id: str, session_storage_dir: Path) -> List[Path]:
    """List the message files of one session, sorted by name.

    A session without a message directory has no messages.
    """
    message_dir = Path(session_storage_dir) / "message" / session_id
    try:
        return _json_files(message_dir)
    except FileNotFoundError:
        return []


class SessionRepository:
    """Read-only access to the sessions and messages of one data directory."""

    def __init__(self, data_dir: Optional[str] = None):
        """Initialize the repository.

        Args:
            data_dir: Explicit base data directory (platform default if omitted)
        """
        self.data_dir = data_dir

    def base_dir(self) -> Path:
        return resolve_base_data_dir(self.data_dir)

    def session_storage_dirs(self) -> List[Path]:
        return list_session_storage_dirs(self.base_dir())

    def list_sessions(self) -> List[SessionInfoFile]:
        return list_session_info_files(self.data_dir)

    def iter_messages(self, session_file: SessionInfoFile) -> Iterator[MessageRecord]:
        """Yield every readable message of a session.

        Unreadable messages are skipped with a warning.
        """
        message_files = list_message_files(session_file.session.id, session_file.session_storage_dir)
        for file_path in message_files:
            try:
                yield read_message_record(file_path)
            except (RecordParseError, OSError) as e:
                logger.warning("Could not process message file %s. Skipping. (%s)", file_path, e)


def get_repository(data_dir: Optional[str] = None) -> SessionRepository:
    """Get a repository for the given data directory.

    Args:
        data_dir: Explicit base data directory (platform default if omitted)

    Returns:
        An instance of SessionRepository
    """
    return SessionRepository(data_dir)
