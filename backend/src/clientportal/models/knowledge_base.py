"""Knowledge base models - help-center categories, tags, articles and feedback

Categories, tags and articles carry their own organization_id. Feedback has
none; it reaches its organization through the article.
"""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from .base import Base, UTCDateTime, generate_id, utcnow


class KbArticleStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


kb_article_tag = Table(
    "kb_article_tag",
    Base.metadata,
    Column("article_id", String(36), ForeignKey("kb_article.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(36), ForeignKey("kb_tag.id", ondelete="CASCADE"), primary_key=True),
)


class KbCategory(Base):
    """Article category; categories nest through parent_id."""
    __tablename__ = "kb_category"
    __table_args__ = (
        CheckConstraint("position >= 0", name="ck_kb_category_position_non_negative"),
        Index("ix_kb_category_organization_id", "organization_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    organization_id = Column(
        String(36), ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    parent_id = Column(String(36), ForeignKey("kb_category.id", ondelete="SET NULL"), nullable=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(Text, nullable=True)
    color = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    organization = relationship("Organization")
    parent = relationship("KbCategory", remote_side=[id], back_populates="children")
    children = relationship("KbCategory", back_populates="parent")
    articles = relationship("KbArticle", back_populates="category", passive_deletes=True)

    @validates('name')
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError("Category name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<KbCategory(id={self.id}, name='{self.name}')>"


class KbTag(Base):
    __tablename__ = "kb_tag"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_kb_tag_org_name"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    organization_id = Column(
        String(36), ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(Text, nullable=False)
    color = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    organization = relationship("Organization")
    articles = relationship("KbArticle", secondary=kb_article_tag, back_populates="tags")

    @validates('name')
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError("Tag name cannot be empty")
        return value.strip().lower()

    def __repr__(self):
        return f"<KbTag(id={self.id}, name='{self.name}')>"


class KbArticle(Base):
    """Help article.

    The slug is derived from the title on create and is unique within the
    organization. published_at is set the first time the article is published
    and kept when it is later archived.
    """
    __tablename__ = "kb_article"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'published', 'archived')",
            name="ck_kb_article_status",
        ),
        CheckConstraint("view_count >= 0", name="ck_kb_article_view_count_non_negative"),
        UniqueConstraint("organization_id", "slug", name="uq_kb_article_org_slug"),
        Index("ix_kb_article_org_status", "organization_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    organization_id = Column(
        String(36), ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    category_id = Column(String(36), ForeignKey("kb_category.id", ondelete="RESTRICT"), nullable=False)
    author_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    title = Column(Text, nullable=False)
    slug = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default=KbArticleStatus.DRAFT.value)
    featured = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)
    published_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    organization = relationship("Organization")
    category = relationship("KbCategory", back_populates="articles")
    author = relationship("User")
    tags = relationship("KbTag", secondary=kb_article_tag, back_populates="articles")
    feedback = relationship("KbFeedback", back_populates="article", passive_deletes=True)

    @validates('title')
    def validate_title(self, key, value):
        if not value or not value.strip():
            raise ValueError("Article title cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<KbArticle(id={self.id}, slug='{self.slug}', status='{self.status}')>"


class KbFeedback(Base):
    __tablename__ = "kb_feedback"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_kb_feedback_rating"),
        Index("ix_kb_feedback_article_id", "article_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    article_id = Column(String(36), ForeignKey("kb_article.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    helpful = Column(Boolean, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    article = relationship("KbArticle", back_populates="feedback")
    user = relationship("User")

    def __repr__(self):
        return f"<KbFeedback(id={self.id}, article_id={self.article_id}, rating={self.rating})>"
