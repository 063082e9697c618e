"""
Database Repositories
=====================

Data access layer following repository pattern.

Components:
    - FileRecordsRepository: uploaded_files status/text and assignments inserts
"""

from schedule_ingest.db.repositories.files_repo import FileRecordsRepository

__all__ = ["FileRecordsRepository"]
