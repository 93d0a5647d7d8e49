"""
File index: gives every stored file an internal uid.
"""

import sqlite3
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class FileIndex:
    """SQLite index of stored files, keyed by uid"""

    def __init__(self, db_path: str = "interest.db"):
        self.db_path = db_path

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_tables(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS files (
                    uid INTEGER PRIMARY KEY AUTOINCREMENT,
                    storage_id INTEGER NOT NULL,
                    folder TEXT NOT NULL,
                    name TEXT NOT NULL,
                    size INTEGER DEFAULT 0,
                    sha1 TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    modified_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(storage_id, folder, name)
                )
            ''')
            conn.commit()
        finally:
            conn.close()

    def add(self, storage_id: int, folder: str, name: str) -> int:
        """Register a new file and return its uid"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO files (storage_id, folder, name)
                VALUES (?, ?, ?)
            ''', (storage_id, folder, name))
            uid = cursor.lastrowid
            conn.commit()
            logger.info(f"Indexed file {storage_id}:{folder}{name} as uid {uid}")
            return uid
        finally:
            conn.close()

    def get(self, uid: int) -> Optional[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM files WHERE uid = ?', (uid,))
            row = cursor.fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def find(self, storage_id: int, folder: str, name: str) -> Optional[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT * FROM files WHERE storage_id = ? AND folder = ? AND name = ?',
                (storage_id, folder, name)
            )
            row = cursor.fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def rename(self, uid: int, name: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute('''
                UPDATE files SET name = ?, modified_at = CURRENT_TIMESTAMP
                WHERE uid = ?
            ''', (name, uid))
            conn.commit()
        finally:
            conn.close()

    def update_contents_info(self, uid: int, size: int, sha1: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute('''
                UPDATE files SET size = ?, sha1 = ?, modified_at = CURRENT_TIMESTAMP
                WHERE uid = ?
            ''', (size, sha1, uid))
            conn.commit()
        finally:
            conn.close()
