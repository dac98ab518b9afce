"""SQLAlchemy database models for casetrack.

Defines the schema for cases and their day-organized source images.
Uses SQLAlchemy 2.x type-safe patterns with Mapped and mapped_column.
"""
from datetime import datetime, timezone
from typing import Optional, List
from sqlalchemy import Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from casetrack import db


def _utcnow():
    return datetime.now(timezone.utc)


class Case(db.Model):
    """A patient case whose photos are organized by recovery day."""
    __tablename__ = 'cases'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    surgery_type: Mapped[Optional[str]] = mapped_column(String(100))
    body_part: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False
    )

    images: Mapped[List["SourceImage"]] = relationship(
        back_populates="case",
        cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'surgery_type': self.surgery_type,
            'body_part': self.body_part,
            'description': self.description,
            'source_image_count': len(self.images),
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    def __repr__(self):
        return f"<Case {self.id}: {self.name}>"


class SourceImage(db.Model):
    """An uploaded photo assigned to a recovery day of a case."""
    __tablename__ = 'source_images'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey('cases.id'), nullable=False)

    # 0 = surgery day / anchor, negative = before
    day_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Original upload information
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_path: Mapped[Optional[str]] = mapped_column(String(500))  # Folder-relative upload path

    # Storage (relative to UPLOAD_FOLDER)
    storage_path: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_path: Mapped[Optional[str]] = mapped_column(String(500))

    mime_type: Mapped[str] = mapped_column(String(100), default='image/jpeg', nullable=False)
    width: Mapped[Optional[int]] = mapped_column(Integer)
    height: Mapped[Optional[int]] = mapped_column(Integer)
    capture_date: Mapped[Optional[datetime]] = mapped_column(DateTime)  # EXIF capture time, camera-local

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    case: Mapped["Case"] = relationship(back_populates="images")

    __table_args__ = (
        Index('ix_source_images_case_day', 'case_id', 'day_number'),
    )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'case_id': self.case_id,
            'day_number': self.day_number,
            'sort_order': self.sort_order,
            'original_filename': self.original_filename,
            'original_path': self.original_path,
            'mime_type': self.mime_type,
            'width': self.width,
            'height': self.height,
            'capture_date': self.capture_date.isoformat() if self.capture_date else None,
            'created_at': self.created_at.isoformat(),
        }

    def __repr__(self):
        return f"<SourceImage {self.id}: case={self.case_id} day={self.day_number}>"
