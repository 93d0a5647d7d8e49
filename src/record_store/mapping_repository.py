import sqlite3
import json
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class RemoteIdMappingRepository:
    """Maps remote ids to internal uids and stores per-handler metadata.

    A remote id is unique within its table; the same remote id may name
    unrelated records in two tables. Nothing here is synchronized: callers
    serialize operations that share a remote id.
    """

    def __init__(self, db_path: str = "interest.db"):
        self.db_path = db_path

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_tables(self) -> None:
        """Create the mapping and metadata tables"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS remote_id_mapping (
                    table_name TEXT NOT NULL,
                    remote_id TEXT NOT NULL,
                    uid_local INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    touched_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (table_name, remote_id)
                )
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS remote_id_metadata (
                    table_name TEXT NOT NULL,
                    remote_id TEXT NOT NULL,
                    handler_key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (table_name, remote_id, handler_key)
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_mapping_table_uid
                ON remote_id_mapping(table_name, uid_local)
            ''')
            conn.commit()
        finally:
            conn.close()

    def get(self, table: str, remote_id: str) -> int:
        """Return the uid mapped to ``remote_id`` in ``table``, or 0 when unmapped"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT uid_local FROM remote_id_mapping WHERE table_name = ? AND remote_id = ?',
                (table, remote_id)
            )
            row = cursor.fetchone()
        finally:
            conn.close()

        return int(row['uid_local']) if row else 0

    def exists(self, table: str, remote_id: str) -> bool:
        return self.get(table, remote_id) > 0

    def remote_id_for(self, table: str, uid: int) -> Optional[str]:
        """Return the remote id that owns ``uid`` in ``table``"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT remote_id FROM remote_id_mapping WHERE table_name = ? AND uid_local = ?',
                (table, int(uid))
            )
            row = cursor.fetchone()
            return row['remote_id'] if row else None
        finally:
            conn.close()

    def set(self, table: str, remote_id: str, uid: int) -> None:
        """Insert or replace the mapping for ``remote_id`` in ``table``"""
        conn = self._get_connection()
        try:
            conn.execute('''
                INSERT INTO remote_id_mapping (table_name, remote_id, uid_local)
                VALUES (?, ?, ?)
                ON CONFLICT(table_name, remote_id) DO UPDATE SET
                    uid_local = excluded.uid_local,
                    touched_at = CURRENT_TIMESTAMP
            ''', (table, remote_id, int(uid)))
            conn.commit()
            logger.info(f"Mapped remote id {remote_id} to {table}:{uid}")
        finally:
            conn.close()

    def remove(self, table: str, remote_id: str) -> None:
        """Remove the mapping and any handler metadata for ``remote_id`` in ``table``"""
        conn = self._get_connection()
        try:
            conn.execute(
                'DELETE FROM remote_id_mapping WHERE table_name = ? AND remote_id = ?',
                (table, remote_id)
            )
            conn.execute(
                'DELETE FROM remote_id_metadata WHERE table_name = ? AND remote_id = ?',
                (table, remote_id)
            )
            conn.commit()
            logger.info(f"Removed mapping for remote id {remote_id} in {table}")
        finally:
            conn.close()

    def get_metadata_value(self, table: str, remote_id: str, handler_key: str) -> Optional[Dict[str, Any]]:
        """Return the metadata stored by ``handler_key`` for ``remote_id``"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT value FROM remote_id_metadata
                WHERE table_name = ? AND remote_id = ? AND handler_key = ?
            ''', (table, remote_id, handler_key))
            row = cursor.fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        return json.loads(row['value'])

    def set_metadata_value(self, table: str, remote_id: str, handler_key: str, value: Dict[str, Any]) -> None:
        """Replace the metadata stored by ``handler_key`` for ``remote_id``"""
        conn = self._get_connection()
        try:
            conn.execute('''
                INSERT INTO remote_id_metadata (table_name, remote_id, handler_key, value)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(table_name, remote_id, handler_key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
            ''', (table, remote_id, handler_key, json.dumps(value)))
            conn.commit()
        finally:
            conn.close()
