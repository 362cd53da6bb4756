"""File model - metadata for project documents, scoped through the project"""

from sqlalchemy import Column, String, Text, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, generate_id, utcnow


class File(Base):
    """Uploaded project file.

    Only metadata lives here; the bytes are kept in external object storage
    under storage_key.
    """
    __tablename__ = "file"
    __table_args__ = (
        Index("ix_file_project_id", "project_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(String(36), ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    uploaded_by_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    name = Column(Text, nullable=False)
    mime_type = Column(Text, nullable=False)
    size_bytes = Column(BigInteger, nullable=False, default=0)
    storage_key = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    project = relationship("Project", back_populates="files")
    uploaded_by = relationship("User")

    def __repr__(self):
        return f"<File(id={self.id}, name='{self.name}')>"
