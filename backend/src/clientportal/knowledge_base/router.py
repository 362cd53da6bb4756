"""Knowledge base API endpoints

Owners and admins edit categories, tags and articles. Every member of the
organization can read published articles, search them and leave feedback;
drafts and archived articles are visible to editors only.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import KbArticleStatus, Membership, MembershipRole
from ..observability.logging_config import get_logger
from ..pagination import page_window, total_pages
from ..schemas import patch_values
from ..tenancy.dependencies import Gateway, OWNER_ADMIN, require_roles
from .schemas import (
    ArticleCreate,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    FeedbackCreate,
    FeedbackResponse,
    KnowledgeBaseAnalytics,
    SearchRequest,
    TagCreate,
    TagResponse,
)
from .service import (
    assign_tags,
    normalize_tag_names,
    publication_values,
    record_view,
    summarize_articles,
    unique_slug,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/knowledge-base", tags=["knowledge-base"])

KB_READERS = tuple(MembershipRole)
EDITOR_ROLES = {role.value for role in OWNER_ADMIN}
ARTICLE_ORDER = [{"featured": "desc"}, {"published_at": "desc"}, {"created_at": "desc"}, {"id": "asc"}]


def _article_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Article not found"
    )


def _category_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Category not found"
    )


def _visible(where: dict, membership: Membership) -> dict:
    """Restrict non-editors to published articles."""
    if membership.role in EDITOR_ROLES:
        return where
    return {**where, "status": KbArticleStatus.PUBLISHED.value}


def _category_response(gateway, category) -> CategoryResponse:
    response = CategoryResponse.model_validate(category)
    response.article_count = gateway.kb_article.count({"category_id": category.id})
    return response


# ============================================================================
# Categories
# ============================================================================

@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: CategoryCreate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Create a category (OWNER/ADMIN).

    Raises:
        HTTPException 404: Parent category not found in this organization
    """
    category = gateway.kb_category.create(category_data.model_dump(exclude_unset=True))
    gateway.commit()

    logger.info(f"Knowledge base category created: {category.id}")
    return _category_response(gateway, category)


@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(
    gateway: Gateway,
    _: Membership = Depends(require_roles(*KB_READERS)),
):
    categories = gateway.kb_category.find_many(order_by=[{"position": "asc"}, {"name": "asc"}])
    return [_category_response(gateway, c) for c in categories]


@router.get("/categories/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*KB_READERS)),
):
    category = gateway.kb_category.find_unique({"id": category_id})
    if not category:
        raise _category_not_found()
    return _category_response(gateway, category)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    data = patch_values(category_data, nullable=("description", "icon", "color", "parent_id"))
    if data.get("parent_id") == category_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A category cannot be its own parent"
        )

    category = gateway.kb_category.update({"id": category_id}, data)
    gateway.commit()
    return _category_response(gateway, category)


@router.delete("/categories/{category_id}", response_model=CategoryResponse)
def delete_category(
    category_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Delete an empty category.

    Raises:
        HTTPException 400: The category still has articles
        HTTPException 404: Category not found in this organization
    """
    category = gateway.kb_category.find_unique({"id": category_id})
    if not category:
        raise _category_not_found()
    if gateway.kb_article.count({"category_id": category_id}) > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete category with existing articles"
        )

    response = _category_response(gateway, category)
    gateway.kb_category.delete({"id": category_id})
    gateway.commit()
    return response


# ============================================================================
# Tags
# ============================================================================

@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    tag_data: TagCreate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Create a tag; names are stored lower-case.

    Raises:
        HTTPException 409: The organization already has a tag with this name
    """
    name = normalize_tag_names([tag_data.name])
    if name and gateway.kb_tag.count({"name": name[0]}) > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Tag already exists"
        )

    tag = gateway.kb_tag.create(tag_data.model_dump(exclude_unset=True))
    gateway.commit()
    return TagResponse(id=tag.id, name=tag.name, color=tag.color, article_count=0)


@router.get("/tags", response_model=List[TagResponse])
def list_tags(
    gateway: Gateway,
    _: Membership = Depends(require_roles(*KB_READERS)),
):
    tags = gateway.kb_tag.find_many(order_by={"name": "asc"}, include=["articles"])
    return [
        TagResponse(id=t.id, name=t.name, color=t.color, article_count=len(t.articles))
        for t in tags
    ]


# ============================================================================
# Articles
# ============================================================================

@router.post("/articles", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
def create_article(
    article_data: ArticleCreate,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Write an article authored by the caller (OWNER/ADMIN).

    Raises:
        HTTPException 404: Category not found in this organization
    """
    data = article_data.model_dump(exclude_unset=True, exclude={"tag_names"})
    data["status"] = article_data.status
    data["slug"] = unique_slug(gateway, article_data.title)
    data["author_id"] = membership.user_id

    article = gateway.kb_article.create(publication_values(data))
    if article_data.tag_names:
        assign_tags(gateway, article, article_data.tag_names)
    gateway.commit()

    logger.info(f"Knowledge base article created: {article.id} ({article.slug})")
    return ArticleResponse.model_validate(article)


@router.get("/articles", response_model=ArticleListResponse)
def list_articles(
    gateway: Gateway,
    status_filter: Optional[KbArticleStatus] = Query(None, alias="status"),
    category_id: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    membership: Membership = Depends(require_roles(*KB_READERS)),
):
    """List articles, featured first, then most recently published."""
    where = {}
    if status_filter:
        where["status"] = status_filter.value
    if category_id:
        where["category_id"] = category_id
    if featured is not None:
        where["featured"] = featured
    where = _visible(where, membership)

    skip, take = page_window(page, per_page)
    total = gateway.kb_article.count(where)
    articles = gateway.kb_article.find_many(where=where, order_by=ARTICLE_ORDER, skip=skip, take=take)

    return ArticleListResponse(
        items=[ArticleResponse.model_validate(a) for a in articles],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages(total, per_page),
    )


@router.get("/articles/slug/{slug}", response_model=ArticleResponse)
def get_article_by_slug(
    slug: str,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*KB_READERS)),
):
    """Fetch an article by its slug and count the view."""
    article = gateway.kb_article.find_unique(_visible({"slug": slug}, membership))
    if not article:
        raise _article_not_found()

    article = record_view(gateway, article)
    gateway.commit()
    return ArticleResponse.model_validate(article)


@router.get("/articles/{article_id}", response_model=ArticleResponse)
def get_article(
    article_id: str,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*KB_READERS)),
):
    """Fetch an article and count the view."""
    article = gateway.kb_article.find_unique(_visible({"id": article_id}, membership))
    if not article:
        raise _article_not_found()

    article = record_view(gateway, article)
    gateway.commit()
    return ArticleResponse.model_validate(article)


@router.patch("/articles/{article_id}", response_model=ArticleResponse)
def update_article(
    article_id: str,
    article_data: ArticleUpdate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Edit an article. The slug stays stable when the title changes."""
    article = gateway.kb_article.find_unique({"id": article_id})
    if not article:
        raise _article_not_found()

    data = patch_values(article_data, nullable=("excerpt",))
    tag_names = data.pop("tag_names", None)

    article = gateway.kb_article.update({"id": article.id}, publication_values(data, article))
    if tag_names is not None:
        assign_tags(gateway, article, tag_names)
    gateway.commit()
    return ArticleResponse.model_validate(article)


@router.delete("/articles/{article_id}", response_model=ArticleResponse)
def delete_article(
    article_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Delete an article together with its feedback and tag links."""
    article = gateway.kb_article.find_unique({"id": article_id})
    if not article:
        raise _article_not_found()

    response = ArticleResponse.model_validate(article)
    gateway.kb_article.delete({"id": article_id})
    gateway.commit()
    return response


# ============================================================================
# Search, feedback and analytics
# ============================================================================

@router.post("/search", response_model=ArticleListResponse)
def search_articles(
    search: SearchRequest,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*KB_READERS)),
):
    """Case-insensitive search in title, content and excerpt of published articles."""
    where = {
        "status": KbArticleStatus.PUBLISHED.value,
        "OR": [
            {"title": {"contains": search.query, "mode": "insensitive"}},
            {"content": {"contains": search.query, "mode": "insensitive"}},
            {"excerpt": {"contains": search.query, "mode": "insensitive"}},
        ],
    }
    if search.category_id:
        where["category_id"] = search.category_id
    if search.tags:
        where["tags"] = {"some": {"name": {"in": normalize_tag_names(search.tags)}}}

    skip, take = page_window(search.page, search.per_page)
    total = gateway.kb_article.count(where)
    articles = gateway.kb_article.find_many(
        where=where,
        order_by=[{"featured": "desc"}, {"published_at": "desc"}, {"id": "asc"}],
        skip=skip,
        take=take,
    )

    logger.info(
        f"Knowledge base search returned {total} result(s)",
        extra={"query_length": len(search.query), "results": total},
    )
    return ArticleListResponse(
        items=[ArticleResponse.model_validate(a) for a in articles],
        total=total,
        page=search.page,
        per_page=search.per_page,
        total_pages=total_pages(total, search.per_page),
    )


@router.post(
    "/articles/{article_id}/feedback",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_feedback(
    article_id: str,
    feedback_data: FeedbackCreate,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*KB_READERS)),
):
    """Rate an article the caller can see.

    Raises:
        HTTPException 404: Article not found in this organization
    """
    if not gateway.kb_article.find_unique(_visible({"id": article_id}, membership)):
        raise _article_not_found()

    data = feedback_data.model_dump(exclude_unset=True)
    data["article_id"] = article_id
    data["user_id"] = membership.user_id

    feedback = gateway.kb_feedback.create(data)
    gateway.commit()
    return FeedbackResponse.model_validate(feedback)


@router.get("/analytics", response_model=KnowledgeBaseAnalytics)
def get_analytics(
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Article, view and rating totals for the organization."""
    summary = summarize_articles(
        gateway.kb_article.find_many(),
        [f.rating for f in gateway.kb_feedback.find_many()],
    )
    return KnowledgeBaseAnalytics(
        total_categories=gateway.kb_category.count(),
        total_tags=gateway.kb_tag.count(),
        **summary,
    )
