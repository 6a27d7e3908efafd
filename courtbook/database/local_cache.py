"""
Local sqlite cache for offline booking history and the signed-in session.

The remote store stays authoritative; this cache only lets history and the
last sign-in survive without network access.
"""

import json
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import List, Optional, Union

from courtbook.domain.booking import Booking
from courtbook.domain.session import AuthSession
from courtbook.utils.logger import get_logger

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS bookings (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    time_slot TEXT NOT NULL,
    payload TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_bookings_user ON bookings (user_id);
CREATE TABLE IF NOT EXISTS auth_session (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    payload TEXT NOT NULL
);
"""


class LocalDataService:
    """
    sqlite-backed offline cache.

    Booking rows keep the full document as JSON next to the indexed columns,
    so extra fields written by the remote store are not lost. The session
    table holds a single row.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        """
        Args:
            db_path: sqlite file path, or ":memory:" for a throwaway cache
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def save_booking(self, booking: Booking) -> None:
        """Insert or replace a cached booking by id."""
        document = booking.to_dict()
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO bookings (id, user_id, date, time_slot, payload) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    booking.id,
                    booking.user_id,
                    document["date"],
                    booking.time_slot,
                    json.dumps(document, ensure_ascii=False, default=str),
                ),
            )
        logger.debug(
            "Booking cached locally",
            operation="save_booking",
            context={"booking_id": booking.id},
        )

    def get_booking_history(self, user_id: str) -> List[Booking]:
        """Cached bookings of a user ordered by date then slot."""
        with closing(self._conn.cursor()) as cursor:
            cursor.execute(
                "SELECT payload FROM bookings WHERE user_id = ? ORDER BY date, time_slot",
                (user_id,),
            )
            rows = cursor.fetchall()
        return [Booking.from_dict(json.loads(row["payload"])) for row in rows]

    def save_session(self, session: AuthSession) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO auth_session (id, payload) VALUES (1, ?)",
                (json.dumps(session.to_dict()),),
            )
        logger.debug("Session cached locally", operation="save_session")

    def get_session(self) -> Optional[AuthSession]:
        with closing(self._conn.cursor()) as cursor:
            cursor.execute("SELECT payload FROM auth_session WHERE id = 1")
            row = cursor.fetchone()
        if row is None:
            return None
        try:
            return AuthSession.from_dict(json.loads(row["payload"]))
        except json.JSONDecodeError as e:
            logger.warning("Discarding unreadable cached session", operation="get_session", error=str(e))
            self.clear_session()
            return None

    def clear_session(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM auth_session")
        logger.debug("Cached session cleared", operation="clear_session")
