"""Persist chat-assistant exchanges keyed by client session."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, List

from ..schemas.reference import ChatHistoryRow
from .config import get_config
from .supabase_client import get_supabase_client

CHAT_TABLE = "chat_history"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ChatStore:
    def append(self, session_id: str, role: str, content: str) -> None:
        raise NotImplementedError

    def history(self, session_id: str) -> List[ChatHistoryRow]:
        raise NotImplementedError

    def record_exchange(self, session_id: str, user_message: str, reply: str) -> None:
        self.append(session_id, "user", user_message)
        self.append(session_id, "assistant", reply)


class NoopChatStore(ChatStore):
    def append(self, session_id: str, role: str, content: str) -> None:
        return None

    def history(self, session_id: str) -> List[ChatHistoryRow]:
        return []


class MemoryChatStore(ChatStore):
    def __init__(self, max_items: int) -> None:
        self._max_items = max(1, int(max_items))
        self._items: List[ChatHistoryRow] = []
        self._lock = Lock()

    def append(self, session_id: str, role: str, content: str) -> None:
        row = ChatHistoryRow(
            session_id=session_id, role=role, content=content, created_at=_now()
        )
        with self._lock:
            self._items.append(row)
            if len(self._items) > self._max_items:
                self._items = self._items[-self._max_items :]

    def history(self, session_id: str) -> List[ChatHistoryRow]:
        with self._lock:
            return [row for row in self._items if row.session_id == session_id]


class SqliteChatStore(ChatStore):
    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = Lock()
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._path)

    def _init_db(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {CHAT_TABLE} ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "session_id TEXT NOT NULL, "
                "role TEXT NOT NULL, "
                "content TEXT NOT NULL, "
                "created_at TEXT NOT NULL)"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{CHAT_TABLE}_session "
                f"ON {CHAT_TABLE} (session_id)"
            )

    def append(self, session_id: str, role: str, content: str) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                f"INSERT INTO {CHAT_TABLE} (session_id, role, content, created_at) "
                "VALUES (?, ?, ?, ?)",
                (session_id, role, content, _now().isoformat()),
            )

    def history(self, session_id: str) -> List[ChatHistoryRow]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT session_id, role, content, created_at FROM {CHAT_TABLE} "
                "WHERE session_id = ? ORDER BY id",
                (session_id,),
            ).fetchall()
        return [
            ChatHistoryRow(session_id=row[0], role=row[1], content=row[2], created_at=row[3])
            for row in rows
        ]


class SupabaseChatStore(ChatStore):
    def __init__(self, client: Any) -> None:
        self._client = client

    def append(self, session_id: str, role: str, content: str) -> None:
        self._client.table(CHAT_TABLE).insert(
            {"session_id": session_id, "role": role, "content": content}
        ).execute()

    def record_exchange(self, session_id: str, user_message: str, reply: str) -> None:
        self._client.table(CHAT_TABLE).insert(
            [
                {"session_id": session_id, "role": "user", "content": user_message},
                {"session_id": session_id, "role": "assistant", "content": reply},
            ]
        ).execute()

    def history(self, session_id: str) -> List[ChatHistoryRow]:
        response = (
            self._client.table(CHAT_TABLE)
            .select("*")
            .eq("session_id", session_id)
            .order("created_at")
            .execute()
        )
        return [ChatHistoryRow.model_validate(row) for row in (response.data or [])]


def build_chat_store() -> ChatStore:
    cfg = get_config()
    store = (cfg.chat_store or "memory").lower()
    if store in {"off", "disabled", "none"}:
        return NoopChatStore()
    if store == "supabase":
        return SupabaseChatStore(get_supabase_client())
    if store == "sqlite":
        if cfg.chat_store_path:
            path = Path(cfg.chat_store_path)
        else:
            root = Path(__file__).resolve().parents[2]
            path = root / ".cache" / "chat_history.sqlite3"
        return SqliteChatStore(path=path)
    return MemoryChatStore(max_items=cfg.chat_store_max_items)


@lru_cache(maxsize=1)
def get_chat_store() -> ChatStore:
    return build_chat_store()
