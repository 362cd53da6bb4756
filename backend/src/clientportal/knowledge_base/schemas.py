"""Pydantic schemas for the knowledge base"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import KbArticleStatus


# ============================================================================
# Categories and tags
# ============================================================================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    position: int = Field(0, ge=0)
    parent_id: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    position: Optional[int] = Field(None, ge=0)
    parent_id: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    organization_id: str
    parent_id: Optional[str]
    name: str
    description: Optional[str]
    icon: Optional[str]
    color: Optional[str]
    position: int
    article_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=60)
    color: Optional[str] = None


class TagResponse(BaseModel):
    id: str
    name: str
    color: Optional[str]
    article_count: int = 0

    class Config:
        from_attributes = True


# ============================================================================
# Articles
# ============================================================================

class ArticleCreate(BaseModel):
    """Schema for writing an article.

    ``tag_names`` are matched against the organization's tags; missing tags
    are created.
    """
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    status: KbArticleStatus = KbArticleStatus.DRAFT
    featured: bool = False
    category_id: str = Field(..., min_length=1)
    tag_names: Optional[List[str]] = None

    class Config:
        use_enum_values = True


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    status: Optional[KbArticleStatus] = None
    featured: Optional[bool] = None
    category_id: Optional[str] = None
    tag_names: Optional[List[str]] = None

    class Config:
        use_enum_values = True


class TagSummary(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ArticleResponse(BaseModel):
    id: str
    organization_id: str
    category_id: str
    author_id: Optional[str]
    title: str
    slug: str
    content: str
    excerpt: Optional[str]
    status: str
    featured: bool
    view_count: int
    published_at: Optional[datetime]
    tags: List[TagSummary] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ArticleListResponse(BaseModel):
    items: list[ArticleResponse]
    total: int
    page: int
    per_page: int
    total_pages: int


class SearchRequest(BaseModel):
    """Full-text search over published articles"""
    query: str = Field(..., min_length=1, max_length=200)
    category_id: Optional[str] = None
    tags: Optional[List[str]] = None
    page: int = Field(1, ge=1)
    per_page: int = Field(10, ge=1, le=50)


# ============================================================================
# Feedback and analytics
# ============================================================================

class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    helpful: Optional[bool] = None


class FeedbackResponse(BaseModel):
    id: str
    article_id: str
    user_id: Optional[str]
    rating: int
    comment: Optional[str]
    helpful: Optional[bool]
    created_at: datetime

    class Config:
        from_attributes = True


class PopularArticle(BaseModel):
    id: str
    title: str
    slug: str
    view_count: int


class KnowledgeBaseAnalytics(BaseModel):
    """Knowledge base totals for the caller's organization"""
    total_articles: int
    published_articles: int
    total_categories: int
    total_tags: int
    total_views: int
    average_rating: Optional[float]
    popular_articles: List[PopularArticle]
