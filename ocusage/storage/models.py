"""
Data models for the storage layer.

Typed views of the session and message records opencode writes to disk.
Optional fields stay ``None`` here; numeric defaults are applied only when
usage is aggregated.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class RecordParseError(ValueError):
    """Raised when a session or message file cannot be parsed."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class SessionRevert:
    """Revert metadata attached to a session."""
    message_id: str
    part_id: Optional[str] = None
    snapshot: Optional[str] = None
    diff: Optional[str] = None


@dataclass(frozen=True)
class SessionRecord:
    """Immutable session metadata, one file per session."""
    id: str
    title: str
    version: str
    created: int  # epoch milliseconds
    updated: int
    parent_id: Optional[str] = None
    share_url: Optional[str] = None
    revert: Optional[SessionRevert] = None

    @classmethod
    def from_dict(cls, data: Any) -> "SessionRecord":
        """Build a session record from its on-disk JSON shape.

        Raises:
            RecordParseError: If ``id`` or ``time.created`` is missing
        """
        if not isinstance(data, dict):
            raise RecordParseError("session record must be a JSON object")
        if not data.get("id"):
            raise RecordParseError("session record missing 'id'")

        times = data.get("time")
        if not isinstance(times, dict) or not isinstance(times.get("created"), (int, float)):
            raise RecordParseError(f"session {data['id']} missing 'time.created'")
        created = int(times["created"])
        updated = times.get("updated")

        share = data.get("share")
        revert_data = data.get("revert")
        revert = None
        if isinstance(revert_data, dict) and revert_data.get("messageID"):
            revert = SessionRevert(
                message_id=revert_data["messageID"],
                part_id=revert_data.get("partID"),
                snapshot=revert_data.get("snapshot"),
                diff=revert_data.get("diff")
            )

        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            version=str(data.get("version") or ""),
            created=created,
            updated=int(updated) if isinstance(updated, (int, float)) else created,
            parent_id=data.get("parentID"),
            share_url=share.get("url") if isinstance(share, dict) else None,
            revert=revert
        )


@dataclass(frozen=True)
class TokenCounts:
    """Token counts reported for one assistant turn."""
    input: Optional[int] = None
    output: Optional[int] = None
    reasoning: Optional[int] = None
    cache_read: Optional[int] = None
    cache_write: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenCounts":
        cache = data.get("cache")
        if not isinstance(cache, dict):
            cache = {}
        return cls(
            input=_optional_int(data.get("input")),
            output=_optional_int(data.get("output")),
            reasoning=_optional_int(data.get("reasoning")),
            cache_read=_optional_int(cache.get("read")),
            cache_write=_optional_int(cache.get("write"))
        )


@dataclass(frozen=True)
class MessageRecord:
    """Immutable message record, one file per message, stored under its session."""
    id: str
    role: str  # only "assistant" messages carry usage
    session_id: str
    created: int  # epoch milliseconds
    completed: Optional[int] = None
    cost: Optional[float] = None
    tokens: Optional[TokenCounts] = None
    model_id: Optional[str] = None
    provider_id: Optional[str] = None
    mode: Optional[str] = None
    summary: Optional[bool] = None
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Any) -> "MessageRecord":
        """Build a message record from its on-disk JSON shape.

        Raises:
            RecordParseError: If ``time.created`` is missing
        """
        if not isinstance(data, dict):
            raise RecordParseError("message record must be a JSON object")
        role = data.get("role")
        if not isinstance(role, str):
            role = ""

        times = data.get("time")
        if not isinstance(times, dict) or not isinstance(times.get("created"), (int, float)):
            raise RecordParseError(f"message {data.get('id')} missing 'time.created'")

        tokens = data.get("tokens")
        cost = data.get("cost")
        error = data.get("error")

        return cls(
            id=str(data.get("id") or ""),
            role=role,
            session_id=str(data.get("sessionID") or ""),
            created=int(times["created"]),
            completed=_optional_int(times.get("completed")),
            cost=float(cost) if isinstance(cost, (int, float)) else None,
            tokens=TokenCounts.from_dict(tokens) if isinstance(tokens, dict) else None,
            model_id=data.get("modelID") or None,
            provider_id=data.get("providerID") or None,
            mode=data.get("mode"),
            summary=data.get("summary"),
            error=error if isinstance(error, dict) else None
        )


def _optional_int(value: Any) -> Optional[int]:
    # bool is an int subclass; opencode never writes booleans here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)
