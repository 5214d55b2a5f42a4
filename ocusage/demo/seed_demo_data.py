# ocusage/demo/seed_demo_data.py

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


def write_session(base_dir: Path, project: str, session_id: str, title: str, created: datetime) -> Path:
    """Write a session info file and return the project's session storage dir."""
    storage_dir = Path(base_dir) / project / "storage" / "session"
    info_dir = storage_dir / "info"
    info_dir.mkdir(parents=True, exist_ok=True)
    created_ms = int(created.timestamp() * 1000)
    info = {
        "id": session_id,
        "title": title,
        "version": "0.1.0",
        "time": {"created": created_ms, "updated": created_ms},
    }
    (info_dir / f"{session_id}.json").write_text(json.dumps(info), encoding="utf-8")
    return storage_dir


def write_message(
    storage_dir: Path,
    session_id: str,
    message_id: str,
    created: datetime,
    role: str = "assistant",
    cost: float = 0.0,
    input_tokens: int = 0,
    output_tokens: int = 0,
    cache_read: int = 0,
    cache_write: int = 0,
    model_id: Optional[str] = "claude-sonnet-4"
) -> Path:
    """Write one message file under a session."""
    message_dir = Path(storage_dir) / "message" / session_id
    message_dir.mkdir(parents=True, exist_ok=True)
    message = {
        "id": message_id,
        "role": role,
        "sessionID": session_id,
        "time": {"created": int(created.timestamp() * 1000)},
        "cost": cost,
        "tokens": {
            "input": input_tokens,
            "output": output_tokens,
            "reasoning": 0,
            "cache": {"read": cache_read, "write": cache_write},
        },
    }
    if model_id:
        message["modelID"] = model_id
        message["providerID"] = "anthropic"
    path = message_dir / f"{message_id}.json"
    path.write_text(json.dumps(message), encoding="utf-8")
    return path


def seed_demo_data(base_dir: Path) -> None:
    """Create a small opencode data tree with two projects."""
    storage = write_session(base_dir, "webapp", "ses_001", "Fix login redirect", datetime(2024, 3, 1, 14, 30))
    write_message(storage, "ses_001", "msg_001", datetime(2024, 3, 1, 14, 31), role="user")
    write_message(storage, "ses_001", "msg_002", datetime(2024, 3, 1, 14, 32),
                  cost=0.01, input_tokens=100, output_tokens=50)
    write_message(storage, "ses_001", "msg_003", datetime(2024, 3, 1, 14, 40),
                  cost=0.02, input_tokens=200, output_tokens=75, cache_read=1200)

    storage = write_session(base_dir, "cli-tool", "ses_002", "Add --json flag", datetime(2024, 3, 4, 14, 0))
    write_message(storage, "ses_002", "msg_001", datetime(2024, 3, 4, 14, 5),
                  cost=0.5, input_tokens=4000, output_tokens=1000, cache_write=300,
                  model_id="gpt-4.1")
    write_message(storage, "ses_002", "msg_002", datetime(2024, 3, 5, 10, 0),
                  cost=0.25, input_tokens=1500, output_tokens=500)


if __name__ == "__main__":
    target = Path(sys.argv[1] if len(sys.argv) > 1 else "demo-data")
    seed_demo_data(target)
    print(f"Demo usage data written to {target}")
