"""
SQLAlchemy ORM Models
=====================

Tables written by the ingestion pipeline:

- uploaded_files: one row per upload, carries the processing status
- assignments: schedule items extracted from an upload

The users table is owned by the request path; ``user_id`` columns are
stored as plain UUIDs here.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UUIDMixin:
    """Mixin for UUID primary key."""

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        server_default=func.gen_random_uuid(),
        nullable=False,
    )


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UploadedFileRecord(Base, UUIDMixin, TimestampMixin):
    """
    Stored upload.

    Attributes:
        user_id: Owning user
        original_name: File name as uploaded
        file_path: Storage location read by the extraction strategies
        file_size: Size in bytes
        mime_type: Declared content type
        processing_status: pending/processing/text_extracted/completed/failed
        processing_error: Human-readable reason when status is failed
        extracted_text: Normalized text, set at text_extracted
    """

    __tablename__ = "uploaded_files"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    processing_status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        server_default="pending",
        index=True,
    )
    processing_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    extracted_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    assignments: Mapped[list["AssignmentRecord"]] = relationship(
        back_populates="file",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<UploadedFileRecord("
            f"id={self.id}, "
            f"name={self.original_name}, "
            f"status={self.processing_status})>"
        )


class AssignmentRecord(Base, UUIDMixin, TimestampMixin):
    """
    Schedule item extracted from an upload.

    ``file_id`` is set to NULL when the upload is deleted so the
    assignment survives its source file.
    """

    __tablename__ = "assignments"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    file_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("uploaded_files.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assignment: Mapped[str] = mapped_column(String(500), nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source: Mapped[str] = mapped_column(String(255), nullable=False)

    file: Mapped[UploadedFileRecord | None] = relationship(back_populates="assignments")

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<AssignmentRecord("
            f"id={self.id}, "
            f"assignment={self.assignment[:40]!r}, "
            f"due_date={self.due_date})>"
        )
