"""SQLite-based chat store used as the persistence target for memories."""

import sqlite3
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional, List

from .models import ChatContext, ChatMessage

logger = logging.getLogger(__name__)


class SQLiteChatStore:
    """SQLite-based persistent chat store."""

    def __init__(self, db_path: str = "data/chats.db"):
        """
        Initialize SQLite chat store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chats (
                chat_id TEXT PRIMARY KEY,
                character_id TEXT,
                group_id TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chat_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                content TEXT NOT NULL,
                is_user INTEGER NOT NULL DEFAULT 0,
                is_system INTEGER NOT NULL DEFAULT 0,
                send_date TIMESTAMP,
                extra TEXT,
                FOREIGN KEY (chat_id) REFERENCES chats(chat_id)
            )
        """)

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_messages_chat ON messages(chat_id, position)"
        )

        conn.commit()
        conn.close()
        logger.info(f"Database initialized at {self.db_path}")

    def create_chat(
        self,
        chat_id: str,
        character_id: Optional[str] = None,
        group_id: Optional[str] = None
    ) -> ChatContext:
        """
        Create a new, empty chat.

        Args:
            chat_id: Unique chat ID
            character_id: Character the chat belongs to
            group_id: Group the chat belongs to

        Returns:
            Created ChatContext
        """
        conn = self._get_connection()
        now = datetime.now().isoformat()
        conn.execute(
            """
            INSERT INTO chats (chat_id, character_id, group_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (chat_id, character_id, group_id, now, now)
        )
        conn.commit()
        conn.close()

        return ChatContext(character_id=character_id, group_id=group_id, chat_id=chat_id)

    def load_chat(self, chat_id: str) -> Optional[ChatContext]:
        """
        Load a chat with all of its messages.

        Args:
            chat_id: Chat ID

        Returns:
            ChatContext or None if not found
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("SELECT * FROM chats WHERE chat_id = ?", (chat_id,))
        chat_row = cursor.fetchone()

        if not chat_row:
            conn.close()
            return None

        cursor.execute(
            """
            SELECT name, content, is_user, is_system, send_date, extra
            FROM messages
            WHERE chat_id = ?
            ORDER BY position
            """,
            (chat_id,)
        )
        rows = cursor.fetchall()
        conn.close()

        messages = []
        for row in rows:
            messages.append(ChatMessage(
                name=row["name"],
                text=row["content"],
                is_user=bool(row["is_user"]),
                is_system=bool(row["is_system"]),
                send_date=datetime.fromisoformat(row["send_date"]) if row["send_date"] else datetime.now(),
                extra=json.loads(row["extra"]) if row["extra"] else None
            ))

        return ChatContext(
            character_id=chat_row["character_id"],
            group_id=chat_row["group_id"],
            chat_id=chat_row["chat_id"],
            chat=messages
        )

    def save_chat(self, context: ChatContext):
        """
        Replace the stored messages of a chat with the live ones.

        Message extras (including attached memories) are written as JSON.

        Args:
            context: Chat to save
        """
        if not context.chat_id:
            logger.warning("Cannot save a chat without an ID")
            return

        conn = self._get_connection()
        cursor = conn.cursor()
        now = datetime.now().isoformat()

        cursor.execute(
            """
            INSERT OR IGNORE INTO chats (chat_id, character_id, group_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (context.chat_id, context.character_id, context.group_id, now, now)
        )
        cursor.execute("DELETE FROM messages WHERE chat_id = ?", (context.chat_id,))
        cursor.executemany(
            """
            INSERT INTO messages (chat_id, position, name, content, is_user, is_system, send_date, extra)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    context.chat_id,
                    position,
                    message.name,
                    message.text,
                    int(message.is_user),
                    int(message.is_system),
                    message.send_date.isoformat(),
                    json.dumps(message.extra) if message.extra else None,
                )
                for position, message in enumerate(context.chat)
            ]
        )
        cursor.execute(
            "UPDATE chats SET updated_at = ? WHERE chat_id = ?",
            (now, context.chat_id)
        )

        conn.commit()
        conn.close()
        logger.debug(f"Saved chat {context.chat_id} ({len(context.chat)} messages)")

    def list_chats(self, limit: int = 50) -> List[ChatContext]:
        """
        List chats, most recently updated first.

        Args:
            limit: Maximum number of chats

        Returns:
            List of ChatContext objects (without messages)
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT * FROM chats
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (limit,)
        )
        rows = cursor.fetchall()
        conn.close()

        return [
            ChatContext(
                character_id=row["character_id"],
                group_id=row["group_id"],
                chat_id=row["chat_id"]
            )
            for row in rows
        ]
