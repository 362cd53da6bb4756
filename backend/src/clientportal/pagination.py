"""Pagination helpers shared by list endpoints."""

from typing import Tuple


def page_window(page: int, per_page: int) -> Tuple[int, int]:
    """Return (skip, take) for a 1-indexed page."""
    return (page - 1) * per_page, per_page


def total_pages(total: int, per_page: int) -> int:
    return (total + per_page - 1) // per_page if total > 0 else 0
