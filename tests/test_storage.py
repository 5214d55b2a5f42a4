"""
Unit tests for storage layer.

Tests record parsing and tolerant loading of session and message files.
"""

import json
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from ocusage.demo.seed_demo_data import write_message, write_session
from ocusage.storage.discovery import DataDirectoryNotFoundError
from ocusage.storage.models import MessageRecord, RecordParseError, SessionRecord
from ocusage.storage.repository import (
    SessionRepository,
    list_message_files,
    list_session_info_files,
    read_message_record
)


class TestSessionRecord:
    """Test session record parsing."""

    def test_full_record(self):
        """All known fields are mapped from the camelCase JSON."""
        record = SessionRecord.from_dict({
            "id": "ses_1",
            "parentID": "ses_0",
            "title": "Refactor",
            "version": "0.3.1",
            "share": {"url": "https://example.com/s/1"},
            "time": {"created": 1709280000000, "updated": 1709283600000},
            "revert": {"messageID": "msg_9", "snapshot": "abc"},
        })
        assert record.id == "ses_1"
        assert record.parent_id == "ses_0"
        assert record.share_url == "https://example.com/s/1"
        assert record.created == 1709280000000
        assert record.updated == 1709283600000
        assert record.revert.message_id == "msg_9"
        assert record.revert.snapshot == "abc"
        assert record.revert.diff is None

    def test_optional_fields_default(self):
        """Missing optional fields fall back to empty values."""
        record = SessionRecord.from_dict({"id": "ses_1", "time": {"created": 5}})
        assert record.title == ""
        assert record.version == ""
        assert record.updated == 5
        assert record.parent_id is None
        assert record.revert is None

    def test_missing_id_raises(self):
        with pytest.raises(RecordParseError, match="missing 'id'"):
            SessionRecord.from_dict({"time": {"created": 5}})

    def test_missing_created_raises(self):
        with pytest.raises(RecordParseError, match="time.created"):
            SessionRecord.from_dict({"id": "ses_1", "time": {}})

    def test_non_object_raises(self):
        with pytest.raises(RecordParseError):
            SessionRecord.from_dict(["not", "an", "object"])


class TestMessageRecord:
    """Test message record parsing."""

    def test_assistant_message(self):
        """Token structure and model identifiers are parsed."""
        message = MessageRecord.from_dict({
            "id": "msg_1",
            "role": "assistant",
            "sessionID": "ses_1",
            "time": {"created": 100, "completed": 200},
            "cost": 0.25,
            "tokens": {"input": 10, "output": 20, "reasoning": 3, "cache": {"read": 4, "write": 5}},
            "modelID": "claude-sonnet-4",
            "providerID": "anthropic",
        })
        assert message.role == "assistant"
        assert message.session_id == "ses_1"
        assert message.completed == 200
        assert message.cost == 0.25
        assert message.tokens.input == 10
        assert message.tokens.reasoning == 3
        assert message.tokens.cache_read == 4
        assert message.tokens.cache_write == 5
        assert message.model_id == "claude-sonnet-4"

    def test_null_counts_stay_none(self):
        """Absent or null numbers are not defaulted at parse time."""
        message = MessageRecord.from_dict({
            "role": "assistant",
            "time": {"created": 100},
            "cost": None,
            "tokens": {"input": None, "output": 7},
        })
        assert message.cost is None
        assert message.tokens.input is None
        assert message.tokens.output == 7
        assert message.tokens.cache_read is None

    def test_missing_tokens(self):
        message = MessageRecord.from_dict({"role": "user", "time": {"created": 1}})
        assert message.tokens is None
        assert message.model_id is None

    def test_other_roles_are_kept(self):
        """Roles besides user and assistant parse; aggregation ignores them."""
        message = MessageRecord.from_dict({"role": "system", "time": {"created": 1}})
        assert message.role == "system"
        assert MessageRecord.from_dict({"time": {"created": 1}}).role == ""

    def test_missing_created_raises(self):
        with pytest.raises(RecordParseError, match="time.created"):
            MessageRecord.from_dict({"role": "assistant"})


class TestRepositoryLoading:
    """Test listing and reading files from a data directory."""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.base_dir = self.temp_dir / "project"
        self.base_dir.mkdir()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_base_dir_raises(self):
        with pytest.raises(DataDirectoryNotFoundError):
            list_session_info_files(str(self.temp_dir / "missing"))

    def test_lists_sessions_across_projects(self):
        """Sessions from every project are returned with their storage dir."""
        storage_a = write_session(self.base_dir, "a", "ses_a", "A", datetime(2024, 3, 1, 12))
        storage_b = write_session(self.base_dir, "b", "ses_b", "B", datetime(2024, 3, 2, 12))

        files = list_session_info_files(str(self.base_dir))
        assert [f.session.id for f in files] == ["ses_a", "ses_b"]
        assert files[0].session_storage_dir == storage_a
        assert files[1].session_storage_dir == storage_b
        assert files[0].file_path.name == "ses_a.json"

    def test_project_without_info_dir_is_skipped(self):
        """A project with no sessions yet is not an error."""
        (self.base_dir / "empty" / "storage" / "session").mkdir(parents=True)
        (self.base_dir / "bare").mkdir()
        assert list_session_info_files(str(self.base_dir)) == []

    def test_malformed_session_file_skipped_with_warning(self, caplog):
        """Broken info files are skipped; the rest still load."""
        storage = write_session(self.base_dir, "a", "ses_ok", "OK", datetime(2024, 3, 1, 12))
        (storage / "info" / "broken.json").write_text("{not json", encoding="utf-8")
        (storage / "info" / "notes.txt").write_text("ignored", encoding="utf-8")

        with caplog.at_level("WARNING"):
            files = list_session_info_files(str(self.base_dir))

        assert [f.session.id for f in files] == ["ses_ok"]
        assert "broken.json" in caplog.text

    def test_list_message_files_sorted(self):
        storage = write_session(self.base_dir, "a", "ses_1", "S", datetime(2024, 3, 1, 12))
        write_message(storage, "ses_1", "msg_b", datetime(2024, 3, 1, 12, 5))
        write_message(storage, "ses_1", "msg_a", datetime(2024, 3, 1, 12, 1))

        files = list_message_files("ses_1", storage)
        assert [f.name for f in files] == ["msg_a.json", "msg_b.json"]

    def test_list_message_files_missing_dir(self):
        """A session without a message directory has no messages."""
        storage = write_session(self.base_dir, "a", "ses_1", "S", datetime(2024, 3, 1, 12))
        assert list_message_files("ses_1", storage) == []

    def test_read_message_record_malformed_raises(self):
        """Malformed message JSON is reported to the caller."""
        path = self.temp_dir / "bad.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(RecordParseError, match="bad.json"):
            read_message_record(path)

    def test_read_message_record(self):
        storage = write_session(self.base_dir, "a", "ses_1", "S", datetime(2024, 3, 1, 12))
        path = write_message(storage, "ses_1", "msg_1", datetime(2024, 3, 1, 12, 1),
                             cost=0.01, input_tokens=100, output_tokens=50)
        message = read_message_record(path)
        assert message.id == "msg_1"
        assert message.tokens.input == 100
        assert message.cost == 0.01

    def test_iter_messages_skips_unreadable(self, caplog):
        """The repository skips broken messages with a warning."""
        storage = write_session(self.base_dir, "a", "ses_1", "S", datetime(2024, 3, 1, 12))
        write_message(storage, "ses_1", "msg_1", datetime(2024, 3, 1, 12, 1))
        (storage / "message" / "ses_1" / "msg_2.json").write_text(
            json.dumps({"role": "assistant"}), encoding="utf-8"
        )

        repository = SessionRepository(str(self.base_dir))
        session_file = repository.list_sessions()[0]
        with caplog.at_level("WARNING"):
            messages = list(repository.iter_messages(session_file))

        assert [m.id for m in messages] == ["msg_1"]
        assert "msg_2.json" in caplog.text
