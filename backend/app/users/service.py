"""UserDirectory: DuckDB-backed users, follows and block lists."""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from app.database import Database, new_object_id, utcnow

from .schemas import User, UserRef

logger = logging.getLogger(__name__)

_CREATE_USERS = """
CREATE TABLE IF NOT EXISTS users (
    id         VARCHAR PRIMARY KEY,
    username   VARCHAR NOT NULL UNIQUE,
    email      VARCHAR,
    password_hash VARCHAR,
    is_banned  BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMP NOT NULL
)
"""

_CREATE_BLOCKS = """
CREATE TABLE IF NOT EXISTS user_blocks (
    blocker_id VARCHAR NOT NULL,
    blocked_id VARCHAR NOT NULL,
    PRIMARY KEY (blocker_id, blocked_id)
)
"""

_CREATE_FOLLOWS = """
CREATE TABLE IF NOT EXISTS user_follows (
    follower_id VARCHAR NOT NULL,
    followed_id VARCHAR NOT NULL,
    PRIMARY KEY (follower_id, followed_id)
)
"""


class UserDirectory:
    """Lookup of users, ban status and blocks.

    Uniqueness of usernames is enforced by the table constraint.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._db.execute(_CREATE_USERS)
        self._db.execute(_CREATE_BLOCKS)
        self._db.execute(_CREATE_FOLLOWS)

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------

    def create(
        self,
        username: str,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> User:
        user_id = user_id or new_object_id()
        self._db.execute(
            "INSERT INTO users (id, username, email, password_hash, is_banned, created_at) "
            "VALUES (?, ?, ?, ?, FALSE, ?)",
            [user_id, username, email, password_hash, utcnow()],
        )
        logger.info("[Users] Created %s (%s)", user_id, username)
        return User(id=user_id, username=username)

    def is_taken(self, username: str, email: str) -> bool:
        """True if either the username or the email is already registered."""
        row = self._db.fetchone(
            "SELECT 1 FROM users WHERE username = ? OR lower(email) = lower(?) LIMIT 1",
            [username, email],
        )
        return row is not None

    def credentials(self, email: str) -> Optional[Tuple[User, Optional[str]]]:
        """The user registered with ``email`` and their password hash."""
        row = self._db.fetchone(
            "SELECT id, username, is_banned, password_hash FROM users "
            "WHERE lower(email) = lower(?)",
            [email],
        )
        if row is None:
            return None
        return User(id=row[0], username=row[1], isBanned=row[2]), row[3]

    def get(self, user_id: str) -> Optional[User]:
        row = self._db.fetchone(
            "SELECT id, username, is_banned FROM users WHERE id = ?", [user_id]
        )
        return User(id=row[0], username=row[1], isBanned=row[2]) if row else None

    def refs(self, user_ids: Iterable[str]) -> Dict[str, UserRef]:
        """Display fields for a set of users; unknown ids get a bare ref."""
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        rows = self._db.fetchall(
            f"SELECT id, username FROM users WHERE id IN ({placeholders})", ids
        )
        found = {row[0]: UserRef(id=row[0], username=row[1]) for row in rows}
        return {uid: found.get(uid, UserRef(id=uid)) for uid in ids}

    def search(self, query: str, limit: int = 20) -> List[User]:
        rows = self._db.fetchall(
            "SELECT id, username, is_banned FROM users "
            "WHERE username ILIKE ? ORDER BY username LIMIT ?",
            [f"%{query}%", limit],
        )
        return [User(id=r[0], username=r[1], isBanned=r[2]) for r in rows]

    def set_banned(self, user_id: str, banned: bool) -> bool:
        """Set the ban flag. Returns False when the flag already had that value."""
        row = self._db.fetchone(
            "UPDATE users SET is_banned = ? WHERE id = ? AND is_banned <> ? RETURNING id",
            [banned, user_id, banned],
        )
        if row:
            logger.info("[Users] %s banned=%s", user_id, banned)
        return row is not None

    # -----------------------------------------------------------------------
    # Blocks
    # -----------------------------------------------------------------------

    def block(self, blocker_id: str, blocked_id: str) -> bool:
        """Record a block. Returns False if it already existed."""
        if blocked_id in self.blocked_ids(blocker_id):
            return False
        self._db.execute(
            "INSERT INTO user_blocks (blocker_id, blocked_id) VALUES (?, ?)",
            [blocker_id, blocked_id],
        )
        # Blocking someone also stops following them
        self.unfollow(blocker_id, blocked_id)
        logger.info("[Users] %s blocked %s", blocker_id, blocked_id)
        return True

    def unblock(self, blocker_id: str, blocked_id: str) -> bool:
        row = self._db.fetchone(
            "DELETE FROM user_blocks WHERE blocker_id = ? AND blocked_id = ? RETURNING blocker_id",
            [blocker_id, blocked_id],
        )
        return row is not None

    def blocked_ids(self, blocker_id: str) -> List[str]:
        rows = self._db.fetchall(
            "SELECT blocked_id FROM user_blocks WHERE blocker_id = ? ORDER BY blocked_id",
            [blocker_id],
        )
        return [r[0] for r in rows]

    def is_blocked_between(self, user_a: str, user_b: str) -> bool:
        """True if either user blocked the other."""
        row = self._db.fetchone(
            "SELECT 1 FROM user_blocks "
            "WHERE (blocker_id = ? AND blocked_id = ?) OR (blocker_id = ? AND blocked_id = ?) "
            "LIMIT 1",
            [user_a, user_b, user_b, user_a],
        )
        return row is not None

    # -----------------------------------------------------------------------
    # Follows
    # -----------------------------------------------------------------------

    def follow(self, follower_id: str, followed_id: str) -> bool:
        """Record a follow. Returns False if it already existed."""
        if self.is_following(follower_id, followed_id):
            return False
        self._db.execute(
            "INSERT INTO user_follows (follower_id, followed_id) VALUES (?, ?)",
            [follower_id, followed_id],
        )
        logger.info("[Users] %s followed %s", follower_id, followed_id)
        return True

    def unfollow(self, follower_id: str, followed_id: str) -> bool:
        row = self._db.fetchone(
            "DELETE FROM user_follows WHERE follower_id = ? AND followed_id = ? "
            "RETURNING follower_id",
            [follower_id, followed_id],
        )
        return row is not None

    def is_following(self, follower_id: str, followed_id: str) -> bool:
        row = self._db.fetchone(
            "SELECT 1 FROM user_follows WHERE follower_id = ? AND followed_id = ?",
            [follower_id, followed_id],
        )
        return row is not None

    def followers(self, user_id: str, viewer_id: Optional[str] = None) -> List[UserRef]:
        """Users following ``user_id``, minus anyone ``viewer_id`` blocked."""
        return self._follow_list(
            "SELECT u.id, u.username FROM user_follows f "
            "JOIN users u ON u.id = f.follower_id WHERE f.followed_id = ?",
            user_id,
            viewer_id,
        )

    def following(self, user_id: str, viewer_id: Optional[str] = None) -> List[UserRef]:
        """Users ``user_id`` follows, minus anyone ``viewer_id`` blocked."""
        return self._follow_list(
            "SELECT u.id, u.username FROM user_follows f "
            "JOIN users u ON u.id = f.followed_id WHERE f.follower_id = ?",
            user_id,
            viewer_id,
        )

    def _follow_list(self, sql: str, user_id: str, viewer_id: Optional[str]) -> List[UserRef]:
        rows = self._db.fetchall(
            f"{sql} AND u.id NOT IN "
            "(SELECT blocked_id FROM user_blocks WHERE blocker_id = ?) "
            "ORDER BY u.username",
            [user_id, viewer_id or ""],
        )
        return [UserRef(id=r[0], username=r[1]) for r in rows]
