"""
Record adapter for the backing store.
Keeps each record's non-file fields as a JSON document in a single SQLite table.
"""

import sqlite3
import json
import logging
from typing import Dict, Any, List, Optional
from datetime import datetime

logger = logging.getLogger(__name__)


class RecordExistsError(Exception):
    """A live record already holds the requested uid"""


class RecordAdapter:
    """Document-style storage of records keyed by (table, uid)"""

    def __init__(self, db_path: str = "interest.db"):
        self.db_path = db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row access by name"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _serialize_document(self, document: Dict[str, Any]) -> str:
        """Serialize document to JSON string"""
        def json_serializer(obj):
            if isinstance(obj, datetime):
                return obj.isoformat()
            if isinstance(obj, bytes):
                return obj.decode("utf-8", errors="replace")
            raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

        return json.dumps(document, default=json_serializer)

    def init_collections(self) -> None:
        """Create the records table"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS records (
                    table_name TEXT NOT NULL,
                    uid INTEGER NOT NULL,
                    document TEXT NOT NULL,
                    deleted BOOLEAN DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (table_name, uid)
                )
            ''')
            conn.commit()
            logger.info("Record collections initialized successfully")
        except Exception as e:
            logger.error(f"Error initializing record collections: {e}")
            raise
        finally:
            conn.close()

    def create_record(self, table: str, data: Dict[str, Any], uid: Optional[int] = None) -> int:
        """Insert a record and return its uid.

        When ``uid`` is given (e.g. the id of a stored file) the row is created
        under that uid. A soft-deleted row with that uid is replaced.

        Raises:
            RecordExistsError: if a live record already holds ``uid``
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            if uid:
                cursor.execute(
                    'SELECT deleted FROM records WHERE table_name = ? AND uid = ?',
                    (table, uid)
                )
                row = cursor.fetchone()
                if row and not row['deleted']:
                    raise RecordExistsError(f"Record {table}:{uid} already exists.")
                if row:
                    cursor.execute('''
                        UPDATE records
                        SET document = ?, deleted = 0, updated_at = CURRENT_TIMESTAMP
                        WHERE table_name = ? AND uid = ?
                    ''', (self._serialize_document(data), table, uid))
                    conn.commit()
                    logger.info(f"Recreated deleted record {table}:{uid}")
                    return uid
            else:
                cursor.execute(
                    'SELECT COALESCE(MAX(uid), 0) + 1 FROM records WHERE table_name = ?',
                    (table,)
                )
                uid = cursor.fetchone()[0]

            cursor.execute('''
                INSERT INTO records (table_name, uid, document)
                VALUES (?, ?, ?)
            ''', (table, uid, self._serialize_document(data)))
            conn.commit()

            logger.info(f"Created record {table}:{uid}")
            return uid

        except Exception as e:
            logger.error(f"Error creating record in {table}: {e}")
            raise
        finally:
            conn.close()

    def update_record(self, table: str, uid: int, data: Dict[str, Any]) -> bool:
        """Merge ``data`` into an existing, non-deleted record"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT document FROM records WHERE table_name = ? AND uid = ? AND deleted = 0',
                (table, uid)
            )
            row = cursor.fetchone()
            if not row:
                logger.warning(f"No record found to update in {table} with uid: {uid}")
                return False

            document = json.loads(row['document'])
            document.update(data)

            cursor.execute('''
                UPDATE records
                SET document = ?, updated_at = CURRENT_TIMESTAMP
                WHERE table_name = ? AND uid = ?
            ''', (self._serialize_document(document), table, uid))
            conn.commit()

            logger.info(f"Updated record {table}:{uid}")
            return True

        except Exception as e:
            logger.error(f"Error updating record {table}:{uid}: {e}")
            raise
        finally:
            conn.close()

    def delete_record(self, table: str, uid: int) -> bool:
        """Soft delete a record"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE records
                SET deleted = 1, updated_at = CURRENT_TIMESTAMP
                WHERE table_name = ? AND uid = ? AND deleted = 0
            ''', (table, uid))
            success = cursor.rowcount > 0
            conn.commit()

            if success:
                logger.info(f"Deleted record {table}:{uid}")
            else:
                logger.warning(f"No record found to delete in {table} with uid: {uid}")

            return success

        except Exception as e:
            logger.error(f"Error deleting record {table}:{uid}: {e}")
            raise
        finally:
            conn.close()

    def get_record(self, table: str, uid: int, fields: Optional[List[str]] = None) -> Optional[Dict[str, Any]]:
        """Return the current row for ``uid``, or None.

        Soft-deleted rows, unknown tables and non-positive uids all yield None.
        ``fields`` limits the returned keys; ``uid`` is always included.
        """
        fields = fields or ['*']
        if uid is None or int(uid) <= 0:
            return None

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT document FROM records WHERE table_name = ? AND uid = ? AND deleted = 0',
                (table, int(uid))
            )
            row = cursor.fetchone()
            if not row:
                return None

            document = json.loads(row['document'])
            record = {'uid': int(uid)}
            if '*' in fields:
                record.update(document)
            else:
                record.update({field: document.get(field) for field in fields if field != 'uid'})
            return record

        except Exception as e:
            logger.error(f"Error getting record {table}:{uid}: {e}")
            raise
        finally:
            conn.close()

    def count_records(self, table: str) -> int:
        """Count non-deleted records in a table"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT COUNT(*) FROM records WHERE table_name = ? AND deleted = 0',
                (table,)
            )
            return cursor.fetchone()[0]
        finally:
            conn.close()
