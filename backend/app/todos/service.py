"""TodoStore: DuckDB-backed personal todo items."""
import datetime as dt
import logging
from typing import List, Optional

from app.database import Database, new_object_id, utcnow

from .schemas import Todo

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS todos (
    id         VARCHAR PRIMARY KEY,
    user_id    VARCHAR NOT NULL,
    text       VARCHAR NOT NULL,
    date       DATE NOT NULL,
    completed  BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMP NOT NULL
)
"""

_INDEX = "CREATE INDEX IF NOT EXISTS idx_todos_user ON todos(user_id)"

_COLUMNS = "id, user_id, text, date, completed, created_at"


class TodoStore:
    """User-scoped todos. Every call is filtered by owner."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._db.execute(_CREATE_TABLE)
        self._db.execute(_INDEX)

    # -----------------------------------------------------------------------
    # CRUD
    # -----------------------------------------------------------------------

    def create(self, user_id: str, text: str, date: Optional[dt.date] = None) -> Todo:
        now = utcnow()
        todo = Todo(
            id=new_object_id(),
            userId=user_id,
            text=text,
            date=date or now.date(),
            createdAt=now,
        )
        self._db.execute(
            f"INSERT INTO todos ({_COLUMNS}) VALUES (?, ?, ?, ?, FALSE, ?)",
            [todo.id, todo.userId, todo.text, todo.date, todo.createdAt],
        )
        return todo

    def list_for_user(self, user_id: str, date: Optional[dt.date] = None) -> List[Todo]:
        if date is not None:
            rows = self._db.fetchall(
                f"SELECT {_COLUMNS} FROM todos WHERE user_id = ? AND date = ? "
                "ORDER BY created_at ASC",
                [user_id, date],
            )
        else:
            rows = self._db.fetchall(
                f"SELECT {_COLUMNS} FROM todos WHERE user_id = ? ORDER BY created_at ASC",
                [user_id],
            )
        return [self._row_to_todo(r) for r in rows]

    def set_completed(self, user_id: str, todo_id: str, completed: bool) -> Optional[Todo]:
        row = self._db.fetchone(
            f"UPDATE todos SET completed = ? WHERE id = ? AND user_id = ? RETURNING {_COLUMNS}",
            [completed, todo_id, user_id],
        )
        return self._row_to_todo(row) if row else None

    def delete(self, user_id: str, todo_id: str) -> bool:
        row = self._db.fetchone(
            "DELETE FROM todos WHERE id = ? AND user_id = ? RETURNING id",
            [todo_id, user_id],
        )
        return row is not None

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    @staticmethod
    def _row_to_todo(row: tuple) -> Todo:
        return Todo(
            id=row[0],
            userId=row[1],
            text=row[2],
            date=row[3],
            completed=row[4],
            createdAt=row[5],
        )
