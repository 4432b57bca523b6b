"""
Database module for the inventory and its capture history.

Schema versioning ensures automatic migration when the schema changes.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
import time
from typing import List, Optional

from models.capture import CaptureResult
from models.detection import labels_of
from models.inventory import CaptureRecord, InventoryItem

# Schema version - increment when schema changes
EXPECTED_SCHEMA_VERSION = 1


class Database:
    """
    SQLite storage for the inventory.

    Tables:
    - schema_meta: tracks schema version
    - inventory_items: one row per item name with its quantity (always >= 1)
    - captures: one row per delivered capture result

    The connection is shared between web worker threads, so every
    statement runs under a lock.
    """

    def __init__(self, local_database_path: str):
        """
        Args:
            local_database_path: Path to the SQLite database file, or ":memory:".
        """
        self.local_database_path = local_database_path
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

        db_dir = os.path.dirname(local_database_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        logging.info(f"Database initialized at {local_database_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self.conn is None:
            self.conn = sqlite3.connect(self.local_database_path, check_same_thread=False)
        return self.conn

    def _get_schema_version(self) -> Optional[int]:
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
            )
            if cursor.fetchone() is None:
                return None

            cursor.execute("SELECT schema_version FROM schema_meta LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error:
            return None

    def _drop_tables(self) -> None:
        cursor = self._get_connection().cursor()
        for table in ("inventory_items", "captures", "schema_meta"):
            cursor.execute(f"DROP TABLE IF EXISTS {table}")
        self._get_connection().commit()
        logging.info("Old tables dropped")

    def _create_schema(self) -> None:
        cursor = self._get_connection().cursor()

        cursor.execute("""
            CREATE TABLE schema_meta (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                schema_version INTEGER NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)

        cursor.execute("""
            CREATE TABLE inventory_items (
                name TEXT PRIMARY KEY,
                quantity INTEGER NOT NULL CHECK (quantity > 0),
                updated_at REAL NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE captures (
                id INTEGER PRIMARY KEY,
                ts REAL NOT NULL,
                artifact_reference TEXT,
                classify_status TEXT NOT NULL,
                labels TEXT NOT NULL
            )
        """)
        cursor.execute("CREATE INDEX idx_captures_ts ON captures(ts)")

        cursor.execute(
            "INSERT INTO schema_meta (id, schema_version) VALUES (1, ?)",
            (EXPECTED_SCHEMA_VERSION,)
        )

        self._get_connection().commit()
        logging.info(f"Created schema version {EXPECTED_SCHEMA_VERSION}")

    def initialize(self) -> None:
        """
        Initialize the database schema.

        If schema_meta is missing or the version doesn't match
        EXPECTED_SCHEMA_VERSION, drops the tables and creates a fresh schema.
        """
        with self._lock:
            try:
                current_version = self._get_schema_version()

                if current_version != EXPECTED_SCHEMA_VERSION:
                    if current_version is not None:
                        logging.warning(
                            f"Schema version mismatch: found {current_version}, "
                            f"expected {EXPECTED_SCHEMA_VERSION}. Dropping old tables."
                        )
                    else:
                        logging.info("No schema found, creating fresh database.")
                    self._drop_tables()
                    self._create_schema()
                else:
                    logging.info(f"Schema version {current_version} is current")
            except sqlite3.Error as e:
                logging.error(f"Database initialization error: {e}")
                raise

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def increment_item(self, name: str, amount: int = 1) -> int:
        """
        Add `amount` units of an item, creating it if needed.

        Returns:
            The new quantity.
        """
        with self._lock:
            conn = self._get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO inventory_items (name, quantity, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(name) DO UPDATE SET
                        quantity = quantity + excluded.quantity,
                        updated_at = excluded.updated_at
                    """,
                    (name, amount, time.time()),
                )
                conn.commit()
                row = conn.execute(
                    "SELECT quantity FROM inventory_items WHERE name = ?", (name,)
                ).fetchone()
            except sqlite3.Error as e:
                conn.rollback()
                logging.error(f"Error adding item {name!r}: {e}")
                raise
            return int(row[0])

    def decrement_item(self, name: str) -> int:
        """
        Remove one unit of an item. The last unit deletes the row.

        Returns:
            The remaining quantity (0 if deleted or never present).
        """
        with self._lock:
            conn = self._get_connection()
            try:
                row = conn.execute(
                    "SELECT quantity FROM inventory_items WHERE name = ?", (name,)
                ).fetchone()
                if row is None:
                    return 0

                quantity = int(row[0])
                if quantity <= 1:
                    conn.execute("DELETE FROM inventory_items WHERE name = ?", (name,))
                    remaining = 0
                else:
                    conn.execute(
                        "UPDATE inventory_items SET quantity = ?, updated_at = ? WHERE name = ?",
                        (quantity - 1, time.time(), name),
                    )
                    remaining = quantity - 1
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logging.error(f"Error removing item {name!r}: {e}")
                raise
            return remaining

    def get_item(self, name: str) -> Optional[InventoryItem]:
        with self._lock:
            row = self._get_connection().execute(
                "SELECT name, quantity, updated_at FROM inventory_items WHERE name = ?", (name,)
            ).fetchone()
        return InventoryItem(name=row[0], quantity=row[1], updated_at=row[2]) if row else None

    def list_items(self) -> List[InventoryItem]:
        with self._lock:
            rows = self._get_connection().execute(
                "SELECT name, quantity, updated_at FROM inventory_items ORDER BY name"
            ).fetchall()
        return [InventoryItem(name=r[0], quantity=r[1], updated_at=r[2]) for r in rows]

    # -------------------------------------------------------------------------
    # Capture history
    # -------------------------------------------------------------------------

    def add_capture(self, result: CaptureResult) -> Optional[int]:
        """
        Record a delivered capture result.

        Returns:
            ID of the inserted record, or None on error.
        """
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO captures (ts, artifact_reference, classify_status, labels)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        result.captured_at or time.time(),
                        result.artifact_reference,
                        result.classify_status.value,
                        json.dumps(labels_of(result.detections)),
                    ),
                )
                conn.commit()
                return cursor.lastrowid
            except sqlite3.Error as e:
                logging.error(f"Error adding capture record: {e}")
                return None

    def recent_captures(self, limit: int = 20) -> List[CaptureRecord]:
        with self._lock:
            rows = self._get_connection().execute(
                """
                SELECT id, ts, artifact_reference, classify_status, labels
                FROM captures ORDER BY ts DESC, id DESC LIMIT ?
                """,
                (max(1, int(limit)),),
            ).fetchall()
        return [
            CaptureRecord(
                id=r[0],
                timestamp=r[1],
                artifact_reference=r[2],
                classify_status=r[3],
                labels=json.loads(r[4]),
            )
            for r in rows
        ]

    def close(self) -> None:
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
                logging.info("Database connection closed")
