"""Knowledge base helpers: slugs, tag resolution, view counting and analytics.

Everything goes through the request's TenantGateway, so slugs and tag names
are unique per organization and never collide across tenants.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from ..models import KbArticle, KbArticleStatus
from ..models.base import utcnow
from ..observability.logging_config import get_logger
from ..tenancy.gateway import TenantGateway

logger = get_logger(__name__)

_UNSAFE = re.compile(r"[^a-z0-9 -]")
_SPACES = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(title: str) -> str:
    """Lower-case, ASCII letters and digits, words joined by single dashes."""
    slug = _UNSAFE.sub("", title.lower()).strip()
    slug = _DASHES.sub("-", _SPACES.sub("-", slug)).strip("-")
    return slug or "article"


def unique_slug(gateway: TenantGateway, title: str) -> str:
    """Slug for ``title``, suffixed -2, -3, ... when the organization already uses it."""
    base = slugify(title)
    taken = {
        a.slug for a in gateway.kb_article.find_many({"slug": {"starts_with": base}})
    }
    candidate, n = base, 2
    while candidate in taken:
        candidate = f"{base}-{n}"
        n += 1
    return candidate


def normalize_tag_names(names: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for name in names:
        name = name.strip().lower()
        if name and name not in seen:
            seen.append(name)
    return seen


def resolve_tags(gateway: TenantGateway, names: Iterable[str]) -> List[Any]:
    """Return the organization's tags for ``names``, creating the missing ones."""
    wanted = normalize_tag_names(names)
    if not wanted:
        return []

    existing = {t.name: t for t in gateway.kb_tag.find_many({"name": {"in": wanted}})}
    tags = []
    for name in wanted:
        tag = existing.get(name)
        if tag is None:
            tag = gateway.kb_tag.create({"name": name})
            logger.info(f"Knowledge base tag created: {name}")
        tags.append(tag)
    return tags


def assign_tags(gateway: TenantGateway, article: KbArticle, names: Iterable[str]) -> KbArticle:
    """Replace the article's tags. ``article`` must come from the same gateway."""
    article.tags = resolve_tags(gateway, names)
    gateway.session.flush()
    return article


def publication_values(data: Dict[str, Any], current: Optional[KbArticle] = None) -> Dict[str, Any]:
    """Stamp published_at the first time an article is published."""
    if data.get("status") != KbArticleStatus.PUBLISHED.value:
        return data
    if current is not None and current.published_at is not None:
        return data
    return {**data, "published_at": utcnow()}


def record_view(gateway: TenantGateway, article: KbArticle) -> KbArticle:
    """Increment the view counter in SQL; updated_at is left as it was."""
    return gateway.kb_article.update(
        {"id": article.id},
        {"view_count": KbArticle.view_count + 1, "updated_at": article.updated_at},
    )


def summarize_articles(articles: Iterable[Any], ratings: Iterable[int], top: int = 10) -> Dict[str, Any]:
    """Totals over already-fetched articles and feedback ratings."""
    articles = list(articles)
    ratings = list(ratings)
    published = [a for a in articles if a.status == KbArticleStatus.PUBLISHED.value]
    popular = sorted(published, key=lambda a: (-a.view_count, a.title))[:top]

    return {
        "total_articles": len(articles),
        "published_articles": len(published),
        "total_views": sum(a.view_count for a in articles),
        "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else None,
        "popular_articles": [
            {"id": a.id, "title": a.title, "slug": a.slug, "view_count": a.view_count}
            for a in popular
        ],
    }
