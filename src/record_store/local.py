import logging
from .record_adapter import RecordAdapter
from .mapping_repository import RemoteIdMappingRepository
from .file_index import FileIndex

logger = logging.getLogger(__name__)


def get_record_adapter(db_path: str = "interest.db") -> RecordAdapter:
    return RecordAdapter(db_path)


def init_db(db_path: str = "interest.db") -> None:
    """Initialize database with all required tables."""
    try:
        RecordAdapter(db_path).init_collections()
        RemoteIdMappingRepository(db_path).init_tables()
        FileIndex(db_path).init_tables()
        logger.info(f"Database initialized: {db_path}")
    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")
        raise
