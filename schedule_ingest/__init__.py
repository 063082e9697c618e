"""
Schedule Ingest
===============

Asynchronous ingestion pipeline that turns uploaded documents into
schedule/assignment records.
"""

__version__ = "0.1.0"
