"""
Database Package
================

Database models, connection management, and repositories.
"""

from schedule_ingest.db.connection import (
    DatabaseManager,
    close_database,
    get_session_factory,
    init_database,
)
from schedule_ingest.db.models import AssignmentRecord, Base, UploadedFileRecord

__all__ = [
    # Models
    "Base",
    "UploadedFileRecord",
    "AssignmentRecord",
    # Connection
    "DatabaseManager",
    "init_database",
    "close_database",
    "get_session_factory",
]
